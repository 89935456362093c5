"""
JSON Schema validation for claimheaders configs.

Checks the structure of a config dict against config.schema.json: key names,
types, enums and numeric bounds. Cross-field rules live in config.py.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

logger = logging.getLogger(__name__)

SCHEMAS_DIR = Path(__file__).parent / "schemas"
CONFIG_SCHEMA_PATH = SCHEMAS_DIR / "config.schema.json"


@dataclass
class ValidationResult:
    """Result of schema validation."""

    valid: bool
    errors: list[str]

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(valid=True, errors=[])

    @classmethod
    def failure(cls, errors: list[str]) -> ValidationResult:
        return cls(valid=False, errors=errors)


class SchemaValidator:
    """
    Validates JSON data against schemas.

    Schemas and validators are loaded once and cached per path.
    """

    _schemas: dict[str, dict] = {}
    _validators: dict[str, Draft202012Validator] = {}

    @classmethod
    def load_schema(cls, schema_path: Path | str) -> dict:
        """
        Load a JSON schema from file.

        Raises:
            OSError, json.JSONDecodeError: if the schema cannot be read
        """
        schema_path = Path(schema_path)
        cache_key = str(schema_path)

        if cache_key in cls._schemas:
            return cls._schemas[cache_key]

        with open(schema_path, encoding="utf-8") as f:
            schema = json.load(f)
        cls._schemas[cache_key] = schema
        return schema

    @classmethod
    def _get_validator(cls, schema_path: Path | str) -> Draft202012Validator:
        """Get or create a validator for a schema."""
        cache_key = str(Path(schema_path))

        if cache_key in cls._validators:
            return cls._validators[cache_key]

        schema = cls.load_schema(schema_path)
        Draft202012Validator.check_schema(schema)
        validator = Draft202012Validator(schema)
        cls._validators[cache_key] = validator
        return validator

    @classmethod
    def validate(
        cls,
        data: Any,
        schema_path: Path | str,
        context: str = "",
    ) -> ValidationResult:
        """
        Validate data against a JSON schema.

        Args:
            data: The data to validate
            schema_path: Path to the JSON schema file
            context: Optional context string for error messages (e.g., config file name)

        Returns:
            ValidationResult with valid=True if valid, or valid=False with error messages
        """
        validator = cls._get_validator(schema_path)

        errors: list[str] = []
        for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path]):
            path = ".".join(str(p) for p in error.path) or "(root)"
            prefix = f"{context}: " if context else ""
            errors.append(f"{prefix}{path}: {error.message}")

        if errors:
            for error in errors:
                logger.debug(f"Schema validation error: {error}")
            return ValidationResult.failure(errors)

        return ValidationResult.success()


def validate_config_schema(
    config: Any, config_path: Path | str | None = None
) -> ValidationResult:
    """Convenience function to validate a config dict."""
    context = Path(config_path).name if config_path else ""
    return SchemaValidator.validate(config, CONFIG_SCHEMA_PATH, context)
