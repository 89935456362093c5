"""
Header injection with security guards.

Writes claim values onto the outbound request:
1. Protected headers are never touched (silent no-op)
2. Values are size-checked and stripped of control characters
3. Existing headers are preserved or replaced per collision policy
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from claimheaders.errors import InjectionError
from claimheaders.errors import InjectionErrorReason
from claimheaders.models import CollisionPolicy

if TYPE_CHECKING:
    from mitmproxy import http

logger = logging.getLogger(__name__)

# Routing and framing headers a claim must never overwrite
PROTECTED_HEADERS = frozenset([
    "host",
    "x-forwarded-for",
    "x-forwarded-host",
    "x-forwarded-proto",
    "x-forwarded-port",
    "x-real-ip",
    "content-length",
    "content-type",
    "transfer-encoding",
])

# Lone UTF-16 surrogates cannot be encoded as header bytes
_SURROGATE_RE = re.compile(r"[\ud800-\udfff]")

# C0 controls and DEL, mapped to None for str.translate
_CONTROL_CHARS = {code: None for code in [*range(0x20), 0x7F]}


def is_protected_header(name: str) -> bool:
    """Check a header name against the protected set (case-insensitive)."""
    return name.lower() in PROTECTED_HEADERS


def sanitize_header_value(value: str, max_size: int) -> str:
    """
    Make a string safe to use as a header value.

    The size limit applies to the UTF-8 length of the raw value. Every code
    point below 0x20 and 0x7F is removed (this covers CR and LF), lone
    surrogates become U+FFFD, then surrounding whitespace is trimmed.

    Raises:
        InjectionError: if the raw value is longer than max_size bytes
    """
    size = len(value.encode("utf-8", "surrogatepass"))
    if size > max_size:
        raise InjectionError(
            InjectionErrorReason.SIZE_EXCEEDED,
            f"header value exceeds maximum size ({max_size} bytes)",
        )

    value = _SURROGATE_RE.sub("\ufffd", value)
    return value.translate(_CONTROL_CHARS).strip()


def inject_header(
    request: http.Request,
    name: str,
    raw_value: str,
    collision_policy: CollisionPolicy,
    max_size: int,
) -> bool:
    """
    Set a header on the outbound request.

    Args:
        request: mitmproxy request to mutate
        name: Target header name
        raw_value: Unsanitized header value
        collision_policy: What to do when the header already has a value
        max_size: Maximum raw value size in bytes

    Returns:
        True if the header was written, False for a protected header or a
        preserved existing value

    Raises:
        InjectionError: if the value is too large
    """
    if is_protected_header(name):
        logger.debug(f"Skipping protected header: {name}")
        return False

    sanitized = sanitize_header_value(raw_value, max_size)

    existing = request.headers.get(name)
    if existing and collision_policy is CollisionPolicy.PRESERVE_EXISTING:
        logger.debug(f"Preserving existing header: {name}")
        return False

    request.headers[name] = sanitized
    return True
