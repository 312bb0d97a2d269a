"""
Usage models - where tokens are referenced in component sources.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class UsageMatch(BaseModel):
    """A single line that references a token."""

    line: int = Field(..., ge=1, description="1-based line number")
    line_content: str = Field(..., alias="lineContent", description="Raw line text")
    property: str = Field("", description="Declaration or selector that matched")

    model_config = {"frozen": True, "populate_by_name": True}


class UsageEntry(BaseModel):
    """All references to one token inside one component file."""

    component_path: str = Field(..., alias="componentPath")
    component_title: str = Field(..., alias="componentTitle")
    component_category: str | None = Field(None, alias="componentCategory")
    matches: list[UsageMatch] = Field(default_factory=list)

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def match_count(self) -> int:
        return len(self.matches)

    def to_api_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


UsageIndex = dict[str, list[UsageEntry]]


def usage_index_to_dict(index: UsageIndex) -> dict[str, list[dict[str, Any]]]:
    """Serialize a usage index for tool responses."""
    return {path: [entry.to_api_dict() for entry in entries] for path, entries in index.items()}


def usage_count(index: UsageIndex, path: str) -> int:
    """Total number of matching lines for a token across all components."""
    return sum(entry.match_count for entry in index.get(path, []))
