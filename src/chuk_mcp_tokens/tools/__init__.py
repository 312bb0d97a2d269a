"""
MCP tool implementations.

Tools are organized by domain:
- tokens - Catalog browsing, mutation, reload and save
- usage - Token consumption sites across component sources
"""

from chuk_mcp_tokens.tools.tokens import register_token_tools
from chuk_mcp_tokens.tools.usage import register_usage_tools

__all__ = [
    "register_token_tools",
    "register_usage_tools",
]
