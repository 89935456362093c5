"""
Configuration for the claimheaders addon.

A config file is a JSON object with camelCase keys, e.g.:

    {
        "sourceHeaderName": "Authorization",
        "tokenPrefix": "Bearer ",
        "claimMappings": [
            {"path": "sub", "targetHeaderName": "X-User-Id"},
            {"path": "realm_access.roles", "targetHeaderName": "X-User-Roles",
             "listRenderMode": "encoded-list"}
        ],
        "sections": ["claims", "metadata"],
        "failOpen": false
    }

Loading validates the structure against config.schema.json and then checks
the cross-field rules. The resulting Config is frozen and shared by every
request.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any

from claimheaders.errors import ConfigError
from claimheaders.models import ClaimMapping
from claimheaders.models import Section
from claimheaders.schema_validator import validate_config_schema

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_HEADER = "Authorization"
DEFAULT_TOKEN_PREFIX = "Bearer "
DEFAULT_MAX_PATH_DEPTH = 10
DEFAULT_MAX_HEADER_VALUE_BYTES = 8192
DEFAULT_LOG_LEVEL = "warn"

# Config logLevel -> logging level
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class Config:
    """Validated, immutable addon configuration."""

    claim_mappings: tuple[ClaimMapping, ...]
    source_header_name: str = DEFAULT_SOURCE_HEADER
    token_prefix: str = DEFAULT_TOKEN_PREFIX
    sections: tuple[Section, ...] = (Section.CLAIMS,)
    # Fail-open and fail-closed are both supported; the default passes
    # requests through on credential errors.
    fail_open: bool = True
    remove_source_header: bool = False
    max_path_depth: int = DEFAULT_MAX_PATH_DEPTH
    max_header_value_bytes: int = DEFAULT_MAX_HEADER_VALUE_BYTES
    strict_mode: bool = False
    log_level: str = DEFAULT_LOG_LEVEL
    log_missing_claims: bool = False
    source: str | None = field(default=None, compare=False)

    @classmethod
    def from_dict(cls, data: Any, source: Path | str | None = None) -> Config:
        """
        Build a Config from a parsed config file.

        Raises:
            ConfigError: with every schema and semantic problem found
        """
        result = validate_config_schema(data, source)
        if not result.valid:
            raise ConfigError(result.errors)

        errors = _check_semantics(data)
        if errors:
            raise ConfigError(errors)

        return cls(
            claim_mappings=tuple(
                ClaimMapping.from_dict(m) for m in data["claimMappings"]
            ),
            source_header_name=data.get("sourceHeaderName", DEFAULT_SOURCE_HEADER),
            token_prefix=data.get("tokenPrefix", DEFAULT_TOKEN_PREFIX),
            sections=tuple(Section(s) for s in data.get("sections", ["claims"])),
            fail_open=data.get("failOpen", True),
            remove_source_header=data.get("removeSourceHeaderAfterProcessing", False),
            max_path_depth=int(data.get("maxPathDepth", DEFAULT_MAX_PATH_DEPTH)),
            max_header_value_bytes=int(
                data.get("maxHeaderValueBytes", DEFAULT_MAX_HEADER_VALUE_BYTES)
            ),
            strict_mode=data.get("strictMode", False),
            log_level=data.get("logLevel", DEFAULT_LOG_LEVEL),
            log_missing_claims=data.get("logMissingClaims", False),
            source=str(source) if source else None,
        )

    @classmethod
    def from_file(cls, path: Path | str) -> Config:
        """
        Load and validate a JSON config file.

        Raises:
            ConfigError: if the file cannot be read, is not JSON, or is invalid
        """
        path = Path(path).expanduser()
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigError([f"cannot read config file {path}: {e}"]) from e
        except json.JSONDecodeError as e:
            raise ConfigError([f"{path.name}: invalid JSON: {e}"]) from e

        config = cls.from_dict(data, source=path)
        logger.info(
            f"Loaded config from {path}: {len(config.claim_mappings)} claim mappings"
        )
        return config

    @property
    def logging_level(self) -> int:
        return LOG_LEVELS[self.log_level]

    def to_dict(self) -> dict:
        """Normalized config in file format, with every default filled in."""
        return {
            "sourceHeaderName": self.source_header_name,
            "tokenPrefix": self.token_prefix,
            "claimMappings": [m.to_dict() for m in self.claim_mappings],
            "sections": [s.value for s in self.sections],
            "failOpen": self.fail_open,
            "removeSourceHeaderAfterProcessing": self.remove_source_header,
            "maxPathDepth": self.max_path_depth,
            "maxHeaderValueBytes": self.max_header_value_bytes,
            "strictMode": self.strict_mode,
            "logLevel": self.log_level,
            "logMissingClaims": self.log_missing_claims,
        }


def _check_semantics(data: dict) -> list[str]:
    """Rules the schema cannot express."""
    errors: list[str] = []

    seen_headers: dict[str, int] = {}
    for i, mapping in enumerate(data["claimMappings"]):
        header = mapping["targetHeaderName"]
        lowered = header.lower()
        if lowered in seen_headers:
            errors.append(
                f"claimMappings.{i}: duplicate targetHeaderName '{header}' "
                f"(also used by claimMappings.{seen_headers[lowered]})"
            )
        else:
            seen_headers[lowered] = i

    sections = data.get("sections", [])
    if len(set(sections)) != len(sections):
        errors.append(f"sections: duplicate section names in {sections}")

    return errors
