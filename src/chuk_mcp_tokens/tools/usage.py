"""
Usage tools - MCP tools for token consumption sites.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from chuk_mcp_tokens.catalog import TokenManager
from chuk_mcp_tokens.errors import TokenError
from chuk_mcp_tokens.models.usage import usage_count, usage_index_to_dict
from chuk_mcp_tokens.tools.tokens import ensure_loaded, error_response
from chuk_mcp_tokens.usage import UsageIndexer

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def register_usage_tools(
    mcp: ChukMCPServer,
    manager: TokenManager,
    indexer: UsageIndexer,
    corpus_root: Path,
) -> dict[str, Any]:
    """
    Register token usage tools with the MCP server.

    Args:
        mcp: The MCP server instance
        manager: The token manager
        indexer: The usage indexer
        corpus_root: Root directory of component sources

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_usage(
        path: str | None = None,
        refresh: bool = False,
        include_values: bool = False,
    ) -> str:
        """
        Find where tokens are used across component sources.

        Scans component files line by line for custom-property references
        such as var(--colors-blue-500). Results are cached briefly; pass
        refresh=True to rescan.

        Args:
            path: Optional token path to report on (default: all tokens)
            refresh: Rescan even if a cached index is fresh
            include_values: Also report hardcoded copies of token values

        Returns:
            JSON string mapping token paths to usage entries

        Example:
            tokens_usage(path="colors.blue.500")
        """
        try:
            snapshot = await ensure_loaded(manager)
            index = await indexer.build_index(
                corpus_root,
                snapshot.token_map,
                include_values=include_values,
                refresh=refresh,
            )

            if path is not None:
                entries = {path: index.get(path, [])}
                return json.dumps(
                    {
                        "status": "success",
                        "usage": usage_index_to_dict(entries),
                        "count": usage_count(index, path),
                    }
                )

            return json.dumps(
                {
                    "status": "success",
                    "usage": usage_index_to_dict(index),
                    "tokensUsed": len(index),
                    "tokensUnused": len(snapshot.token_map) - len(index),
                }
            )
        except TokenError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Failed to index token usage")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_usage"] = tokens_usage

    return tools
