"""
Pipeline package for claim-to-header processing.

Stages, in order:
- decode: split the token and decode its metadata and claims sections
- resolve: find a claim by dot-separated path with a depth limit
- serialize: render the claim value as a header string
- inject: sanitize and set the header, honoring protected names and
  collision policy
"""

from claimheaders.pipeline.context import PipelineContext
from claimheaders.pipeline.context import PipelineState
from claimheaders.pipeline.executor import Pipeline

__all__ = ["Pipeline", "PipelineContext", "PipelineState"]
