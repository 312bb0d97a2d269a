"""
Pytest configuration and shared fixtures.
"""

import json
import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def nested_tokens() -> dict:
    """A single-file token source with primitives and semantics."""
    return {
        "color": {
            "blue": {
                "500": {"value": "#3b82f6", "type": "color", "description": "Brand blue"},
                "700": {"value": "#1d4ed8", "type": "color"},
            },
            "primary": {
                "value": "{color.blue.500}",
                "tier": "semantic",
                "reference": "color.blue.500",
                "description": "Primary action color",
            },
        },
        "spacing": {
            "sm": {"value": "0.5rem"},
            "md": {"value": "1rem"},
        },
        "empty-group": {"nested": {}},
    }


@pytest.fixture
def token_dir(temp_dir: Path) -> Path:
    """A directory source with one file per category."""
    tokens = temp_dir / "tokens"
    tokens.mkdir()
    (tokens / "colors.json").write_text(
        json.dumps({"blue": {"500": {"value": "#3b82f6"}}})
    )
    (tokens / "semantic.json").write_text(
        json.dumps(
            {
                "primary": {
                    "value": "{colors.blue.500}",
                    "tier": "semantic",
                    "reference": "colors.blue.500",
                }
            }
        )
    )
    return tokens
