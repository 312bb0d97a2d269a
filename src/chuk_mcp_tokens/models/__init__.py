"""
Pydantic models for the token catalog.

This module provides:
- DesignToken: A primitive or semantic token leaf
- TokenCategory: A node of the category tree
- TokenMeta: Token counts by tier
- UsageEntry / UsageMatch: Reverse-index records
"""

from chuk_mcp_tokens.models.token import (
    DesignToken,
    TokenCategory,
    TokenMeta,
    TokenPath,
    TokenValue,
)
from chuk_mcp_tokens.models.usage import (
    UsageEntry,
    UsageIndex,
    UsageMatch,
    usage_count,
    usage_index_to_dict,
)

__all__ = [
    "DesignToken",
    "TokenCategory",
    "TokenMeta",
    "TokenPath",
    "TokenValue",
    "UsageEntry",
    "UsageIndex",
    "UsageMatch",
    "usage_count",
    "usage_index_to_dict",
]
