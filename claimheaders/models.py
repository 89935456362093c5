"""
Core type definitions for the claimheaders addon.

Configuration records are frozen so a single instance can be shared by every
request without coordination.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from claimheaders.errors import ClaimHeadersError


# =============================================================================
# Policies and modes (values match the config file vocabulary)
# =============================================================================


class CollisionPolicy(str, Enum):
    REPLACE_EXISTING = "replace-existing"
    PRESERVE_EXISTING = "preserve-existing"


class ListRenderMode(str, Enum):
    JOINED_TEXT = "joined-text"
    ENCODED_LIST = "encoded-list"


class Section(str, Enum):
    METADATA = "metadata"  # token segment 0
    CLAIMS = "claims"  # token segment 1


# =============================================================================
# Decoded credential
# =============================================================================


@dataclass(frozen=True)
class DecodedCredential:
    """
    A token split into its two decoded sections.

    The signature part is kept verbatim and is never decoded or verified.
    """

    metadata: dict[str, Any]
    claims: dict[str, Any]
    signature_part: str

    def section(self, section: Section) -> dict[str, Any]:
        if section is Section.METADATA:
            return self.metadata
        return self.claims


# =============================================================================
# Claim mapping (one per configured rule)
# =============================================================================


@dataclass(frozen=True)
class ClaimMapping:
    """Maps a dot-separated claim path to an outbound header."""

    path: str
    target_header_name: str
    collision_policy: CollisionPolicy = CollisionPolicy.PRESERVE_EXISTING
    list_render_mode: ListRenderMode = ListRenderMode.JOINED_TEXT

    @classmethod
    def from_dict(cls, data: dict) -> ClaimMapping:
        return cls(
            path=data["path"],
            target_header_name=data["targetHeaderName"],
            collision_policy=CollisionPolicy(
                data.get("collisionPolicy", CollisionPolicy.PRESERVE_EXISTING.value)
            ),
            list_render_mode=ListRenderMode(
                data.get("listRenderMode", ListRenderMode.JOINED_TEXT.value)
            ),
        )

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "targetHeaderName": self.target_header_name,
            "collisionPolicy": self.collision_policy.value,
            "listRenderMode": self.list_render_mode.value,
        }


# =============================================================================
# Per-request results
# =============================================================================


@dataclass
class MappingOutcome:
    """What happened to a single claim mapping during one request."""

    mapping: ClaimMapping
    injected: bool = False
    section: Section | None = None
    error: ClaimHeadersError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict[str, Any] = {
            "header": self.mapping.target_header_name,
            "injected": self.injected,
        }
        if self.section is not None:
            result["section"] = self.section.value
        if self.error is not None:
            result["error"] = self.error.code
        return result


@dataclass(frozen=True)
class Rejection:
    """Structured response emitted when a request is rejected (fail-closed)."""

    message: str
    error: str = "unauthorized"
    status_code: int = 401

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}
