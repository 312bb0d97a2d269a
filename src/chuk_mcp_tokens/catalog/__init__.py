"""
Token catalog - parsing, resolution, browsing and mutation.

Tokens come from JSON or YAML sources, either one file per category or a
single nested file. Semantic tokens are resolved to primitive values after
every load and every mutation.
"""

from chuk_mcp_tokens.catalog.manager import TokenManager, TokenSnapshot
from chuk_mcp_tokens.catalog.parser import ParseResult, TokenParser
from chuk_mcp_tokens.catalog.resolver import (
    ReferenceResolver,
    ResolutionResult,
    find_dependents,
    resolve,
)

__all__ = [
    "ParseResult",
    "ReferenceResolver",
    "ResolutionResult",
    "TokenManager",
    "TokenParser",
    "TokenSnapshot",
    "find_dependents",
    "resolve",
]
