"""
Dot-path resolution over decoded token sections.

"user.profile.email" walks three levels of nested objects. The number of
segments is capped so a hostile path cannot force deep traversal.
"""

from __future__ import annotations

from typing import Any

from claimheaders.errors import ResolutionError
from claimheaders.errors import ResolutionErrorReason


def resolve_path(root: dict[str, Any], path: str, max_depth: int) -> Any:
    """
    Get a nested value from a decoded section using dot notation.

    Args:
        root: Decoded section (metadata or claims)
        path: Dot-separated path, e.g. "realm_access.roles"
        max_depth: Maximum number of path segments

    Returns:
        The value at the path, as-is. A JSON null is returned as None and
        counts as found.

    Raises:
        ResolutionError: DEPTH_EXCEEDED, NOT_TRAVERSABLE or NOT_FOUND
    """
    if not path:
        raise ResolutionError(
            ResolutionErrorReason.NOT_FOUND,
            "claim not found: empty path",
            path,
        )

    parts = path.split(".")

    # Checked before touching the document
    if len(parts) > max_depth:
        raise ResolutionError(
            ResolutionErrorReason.DEPTH_EXCEEDED,
            f"claim path depth exceeds maximum ({max_depth})",
            path,
        )

    current: dict[str, Any] = root
    for part in parts[:-1]:
        if part not in current:
            raise _not_found(path)

        value = current[part]
        if not isinstance(value, dict):
            raise ResolutionError(
                ResolutionErrorReason.NOT_TRAVERSABLE,
                f"invalid claim path: '{part}' is not an object",
                path,
                segment=part,
            )
        current = value

    if parts[-1] not in current:
        raise _not_found(path)
    return current[parts[-1]]


def _not_found(path: str) -> ResolutionError:
    return ResolutionError(
        ResolutionErrorReason.NOT_FOUND, f"claim not found: {path}", path
    )
