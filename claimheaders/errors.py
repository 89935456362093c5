"""
Error taxonomy for claim extraction and header injection.

Every error carries a stable machine-readable code plus a human-readable
message. Request-fatal errors (DecodeError) abort the whole request according
to the fail-open/fail-closed setting; the remaining errors are local to a
single claim mapping and never stop the request.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class DecodeErrorReason(str, Enum):
    SEGMENT_COUNT_MISMATCH = "segment_count_mismatch"
    INVALID_ENCODING = "invalid_encoding"
    INVALID_STRUCTURE = "invalid_structure"


class ResolutionErrorReason(str, Enum):
    DEPTH_EXCEEDED = "depth_exceeded"
    NOT_TRAVERSABLE = "not_traversable"
    NOT_FOUND = "not_found"


class InjectionErrorReason(str, Enum):
    SIZE_EXCEEDED = "size_exceeded"


class ClaimHeadersError(Exception):
    """Base exception for the claimheaders addon."""

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class DecodeError(ClaimHeadersError):
    """The credential could not be decoded into metadata and claims."""

    def __init__(self, reason: DecodeErrorReason, message: str):
        self.reason = reason
        super().__init__(reason.value, message)


class ResolutionError(ClaimHeadersError):
    """A claim path could not be resolved against a section."""

    def __init__(
        self,
        reason: ResolutionErrorReason,
        message: str,
        path: str,
        segment: str | None = None,
    ):
        self.reason = reason
        self.path = path
        self.segment = segment
        details: dict[str, Any] = {"path": path}
        if segment is not None:
            details["segment"] = segment
        super().__init__(reason.value, message, details)


class SerializationError(ClaimHeadersError):
    """A claim value could not be rendered as a header value."""

    def __init__(self, message: str):
        super().__init__("serialization_failed", message)


class InjectionError(ClaimHeadersError):
    """A header value was rejected before being written."""

    def __init__(self, reason: InjectionErrorReason, message: str):
        self.reason = reason
        super().__init__(reason.value, message)


class ConfigError(ClaimHeadersError):
    """The configuration is invalid. Carries every problem found."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        message = "invalid configuration: " + "; ".join(self.errors)
        super().__init__("invalid_config", message, {"errors": self.errors})
