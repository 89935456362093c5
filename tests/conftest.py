"""Pytest fixtures for the claimheaders tests."""

import json
import logging
from pathlib import Path

import pytest

from claimheaders.config import Config


@pytest.fixture
def config_data() -> dict:
    """A minimal valid config in file format."""
    return {
        "claimMappings": [
            {"path": "sub", "targetHeaderName": "X-User-Id"},
        ],
    }


@pytest.fixture
def make_config():
    """Build a validated Config from file-format overrides."""

    def _make(mappings: list[dict] | None = None, **options) -> Config:
        data = {
            "claimMappings": mappings or [{"path": "sub", "targetHeaderName": "X-User-Id"}],
        }
        data.update(options)
        return Config.from_dict(data)

    return _make


@pytest.fixture
def config_file(tmp_path: Path):
    """Write a config dict to a JSON file and return its path."""

    def _write(data: dict, name: str = "claimheaders.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def reset_package_logger():
    """The addon sets the package logger level from config; undo it per test."""
    logger = logging.getLogger("claimheaders")
    level = logger.level
    yield
    logger.setLevel(level)
