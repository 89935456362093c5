"""
Token decoding for the pipeline.

Splits a JWT-shaped credential into its three segments and decodes the
metadata (segment 0) and claims (segment 1) sections. The signature segment
is kept verbatim.

Security note: nothing here verifies the signature or the expiry. Deploy only
behind a gateway that already validated the token.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import math
import re
from typing import Any

from claimheaders.errors import DecodeError
from claimheaders.errors import DecodeErrorReason
from claimheaders.models import DecodedCredential

logger = logging.getLogger(__name__)

# Unpadded base64url alphabet
_BASE64URL_RE = re.compile(r"^[A-Za-z0-9_-]*$")


def decode_token(token: str, strict: bool = False) -> DecodedCredential:
    """
    Decode a credential without signature verification.

    Args:
        token: Credential in the form metadata.claims.signature
        strict: Require an 'alg' field in the metadata section

    Returns:
        DecodedCredential with both sections parsed

    Raises:
        DecodeError: on a wrong segment count, bad base64url, or a section
            that is not a JSON object
    """
    segments = token.split(".")
    if len(segments) != 3:
        raise DecodeError(
            DecodeErrorReason.SEGMENT_COUNT_MISMATCH,
            f"invalid token format: expected 3 segments, got {len(segments)}",
        )

    metadata_bytes = _decode_segment(segments[0], "metadata")
    claims_bytes = _decode_segment(segments[1], "claims")

    metadata = _parse_section(metadata_bytes, "metadata")
    claims = _parse_section(claims_bytes, "claims")

    if strict and "alg" not in metadata:
        raise DecodeError(
            DecodeErrorReason.INVALID_STRUCTURE,
            "invalid token metadata: missing required 'alg' field",
        )

    logger.debug(
        f"Decoded token: {len(metadata)} metadata fields, {len(claims)} claims"
    )
    return DecodedCredential(
        metadata=metadata,
        claims=claims,
        signature_part=segments[2],
    )


def strip_prefix(value: str, prefix: str) -> str:
    """
    Remove a configured prefix such as "Bearer " from a header value.

    The match is exact and case-sensitive. The remainder is trimmed. Values
    without the prefix, or an empty prefix, leave the value unchanged.
    """
    if not prefix:
        return value

    if not value.startswith(prefix):
        return value

    return value[len(prefix):].strip()


def _decode_segment(segment: str, name: str) -> bytes:
    """Decode one unpadded base64url segment."""
    # Padding, foreign characters and impossible lengths are all rejected
    if not _BASE64URL_RE.match(segment) or len(segment) % 4 == 1:
        raise DecodeError(
            DecodeErrorReason.INVALID_ENCODING,
            f"invalid token encoding in {name} segment",
        )

    padded = segment + "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(
            DecodeErrorReason.INVALID_ENCODING,
            f"invalid token encoding in {name} segment: {e}",
        ) from e


def _parse_section(data: bytes, name: str) -> dict[str, Any]:
    """Parse decoded bytes as a JSON object."""
    try:
        parsed = json.loads(
            data.decode("utf-8"),
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float,
        )
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise DecodeError(
            DecodeErrorReason.INVALID_STRUCTURE,
            f"invalid token JSON in {name} segment: {e}",
        ) from e

    if not isinstance(parsed, dict):
        raise DecodeError(
            DecodeErrorReason.INVALID_STRUCTURE,
            f"invalid token JSON in {name} segment: expected an object, "
            f"got {type(parsed).__name__}",
        )

    return parsed


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON
    raise ValueError(f"unsupported constant {name}")


def _parse_finite_float(text: str) -> float:
    # Out-of-range literals such as 1e400 would otherwise become inf
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value
