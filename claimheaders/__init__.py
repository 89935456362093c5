"""
claimheaders: JWT claims to upstream request headers, as a mitmproxy addon.

The token is decoded but NOT verified. Run this only behind a gateway that
has already checked the signature.
"""

from claimheaders.addon import ClaimHeadersAddon
from claimheaders.config import Config
from claimheaders.pipeline import Pipeline

__all__ = ["ClaimHeadersAddon", "Config", "Pipeline"]

__version__ = "0.1.0"
