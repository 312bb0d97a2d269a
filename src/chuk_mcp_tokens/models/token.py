"""
Token models - the catalog's data structure.

A catalog is a tree of TokenCategory nodes, each holding named
DesignToken leaves. Every token is addressed by a dotted TokenPath built
from category keys down to the leaf name.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, Field, field_validator

from chuk_mcp_tokens.constants import TokenTier

TokenValue = Union[str, int, float]
TokenPath = str


def parse_alias(value: Any) -> str | None:
    """Return the path inside an alias value like ``{colors.blue.500}``."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if len(text) > 2 and text.startswith("{") and text.endswith("}"):
        inner = text[1:-1].strip()
        if inner and "{" not in inner and "}" not in inner:
            return inner
    return None


class DesignToken(BaseModel):
    """
    A single design token.

    Primitive tokens carry an authored value. Semantic tokens carry a
    reference to another token path; their resolved_value is filled in by
    the resolver and is never authored.
    """

    value: TokenValue = Field(..., description="Authored value (or alias for semantics)")
    type: str | None = Field(None, description="Token type (color, dimension, ...)")
    description: str | None = Field(None, description="Human-readable description")
    tier: TokenTier = Field(TokenTier.PRIMITIVE, description="Value tier")
    reference: TokenPath | None = Field(None, description="Referenced token path")
    resolved_value: TokenValue | None = Field(
        None,
        alias="resolvedValue",
        description="Terminal primitive value (derived)",
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("value", "resolved_value", mode="before")
    @classmethod
    def reject_bool(cls, v: Any) -> Any:
        """Booleans are not token values even though bool subclasses int."""
        if isinstance(v, bool):
            raise ValueError("Token value must be a string or number")
        return v

    @property
    def is_semantic(self) -> bool:
        return self.tier == TokenTier.SEMANTIC

    def with_resolved(self, resolved: TokenValue | None) -> DesignToken:
        """Return a copy carrying the given resolved value."""
        if resolved == self.resolved_value:
            return self
        return self.model_copy(update={"resolved_value": resolved})

    def authored(self) -> DesignToken:
        """Return a copy without derived fields."""
        return self.with_resolved(None)

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize for tool responses (camelCase, None fields omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_source_dict(self) -> dict[str, Any]:
        """Serialize back to the source leaf format."""
        data: dict[str, Any] = {"value": self.value}
        if self.type is not None:
            data["type"] = self.type
        if self.description is not None:
            data["description"] = self.description
        if self.is_semantic:
            data["tier"] = self.tier.value
            data["reference"] = self.reference
        elif parse_alias(self.value) is not None:
            # Keeps an alias-shaped literal primitive on re-parse
            data["tier"] = self.tier.value
        return data


class TokenCategory(BaseModel):
    """
    A node of the catalog tree.

    ``name`` is the display name derived from the source key; ``key`` is the
    raw source key used to build token paths.
    """

    name: str = Field(..., description="Display name (Title Case)")
    key: str = Field(..., description="Source key used in token paths")
    tokens: dict[str, DesignToken] = Field(
        default_factory=dict, description="Local token name to token"
    )
    subcategories: list[TokenCategory] | None = Field(
        None, description="Nested categories in source order"
    )

    model_config = {"frozen": True}

    @property
    def children(self) -> list[TokenCategory]:
        return self.subcategories or []

    def get_subcategory(self, key: str) -> TokenCategory | None:
        """Find a direct subcategory by source key."""
        for sub in self.children:
            if sub.key == key:
                return sub
        return None

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize for tool responses."""
        data: dict[str, Any] = {
            "name": self.name,
            "key": self.key,
            "tokens": {name: token.to_api_dict() for name, token in self.tokens.items()},
        }
        if self.subcategories:
            data["subcategories"] = [sub.to_api_dict() for sub in self.subcategories]
        return data


class TokenMeta(BaseModel):
    """Token counts reported alongside the catalog."""

    token_count: int = Field(0, alias="tokenCount")
    primitive_count: int = Field(0, alias="primitiveCount")
    semantic_count: int = Field(0, alias="semanticCount")

    model_config = {"frozen": True, "populate_by_name": True}

    def to_api_dict(self) -> dict[str, int]:
        return self.model_dump(by_alias=True)
