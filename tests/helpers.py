"""Token and request builders shared by the tests."""

import base64
import json
from typing import Any

from mitmproxy import http

# Scenario token: {"alg":"HS256","typ":"JWT"} . {"sub":"1234567890"} . sig
SAMPLE_TOKEN = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9.eyJzdWIiOiIxMjM0NTY3ODkwIn0.sig"
)

DEFAULT_METADATA = {"alg": "HS256", "typ": "JWT"}


def b64url(data: bytes) -> str:
    """Unpadded base64url, as used in JWT segments."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def make_token(
    claims: dict[str, Any],
    metadata: dict[str, Any] | None = None,
    signature: str = "signature",
) -> str:
    """Build an unsigned three-segment token from two JSON objects."""
    if metadata is None:
        metadata = DEFAULT_METADATA
    return ".".join([
        b64url(json.dumps(metadata).encode("utf-8")),
        b64url(json.dumps(claims).encode("utf-8")),
        signature,
    ])


def make_request(headers: dict[str, str] | None = None) -> http.Request:
    """A bare outbound GET request carrying exactly the given headers."""
    request = http.Request.make("GET", "http://upstream.internal/api")
    # Set after make() so url/content setters cannot rewrite them
    request.headers.clear()
    for name, value in (headers or {}).items():
        request.headers[name] = value
    return request


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
