"""
Pipeline operations for claim extraction.

Each operation is a pure function over decoded token data, except
inject_header which mutates the outbound request headers.
"""

from claimheaders.pipeline.operations.decode import decode_token
from claimheaders.pipeline.operations.decode import strip_prefix
from claimheaders.pipeline.operations.inject import inject_header
from claimheaders.pipeline.operations.inject import is_protected_header
from claimheaders.pipeline.operations.inject import PROTECTED_HEADERS
from claimheaders.pipeline.operations.inject import sanitize_header_value
from claimheaders.pipeline.operations.resolve import resolve_path
from claimheaders.pipeline.operations.serialize import serialize_value

__all__ = [
    "decode_token",
    "strip_prefix",
    "resolve_path",
    "serialize_value",
    "sanitize_header_value",
    "is_protected_header",
    "inject_header",
    "PROTECTED_HEADERS",
]
