"""
Token tools - MCP tools for browsing and editing the token catalog.

Tools for reading the category tree, creating, updating and deleting
tokens, and reloading or saving the token source.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from chuk_mcp_tokens.catalog import TokenManager, TokenSnapshot
from chuk_mcp_tokens.catalog.tree import (
    categories_to_dicts,
    filter_by_query,
    filter_by_tier,
    render_markdown,
    token_map_to_dict,
)
from chuk_mcp_tokens.constants import ErrorMessages, SuccessMessages, TokenTier
from chuk_mcp_tokens.errors import InvalidToken, TokenError

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

    from chuk_mcp_tokens.usage import UsageIndexer

logger = logging.getLogger(__name__)


def error_response(error: TokenError) -> str:
    """JSON error for a catalog error."""
    return json.dumps(
        {
            "status": "error",
            "error": error.kind,
            "message": error.message,
            "path": error.path,
        }
    )


def catalog_payload(snapshot: TokenSnapshot) -> dict[str, Any]:
    """The categories + tokenMap pair every mutation returns."""
    return {
        "categories": categories_to_dicts(list(snapshot.categories)),
        "tokenMap": token_map_to_dict(dict(snapshot.token_map)),
    }


async def ensure_loaded(manager: TokenManager) -> TokenSnapshot:
    """Load the configured source on first use."""
    if not manager.is_loaded:
        if manager.source is None:
            raise ValueError(ErrorMessages.NO_TOKENS_PATH)
        return await manager.load()
    return manager.snapshot


def register_token_tools(
    mcp: ChukMCPServer,
    manager: TokenManager,
    indexer: UsageIndexer | None = None,
) -> dict[str, Any]:
    """
    Register token catalog tools with the MCP server.

    Args:
        mcp: The MCP server instance
        manager: The token manager
        indexer: Usage indexer whose cache is dropped on reload

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_get(
        tier: str | None = None,
        query: str | None = None,
        format: str = "json",
    ) -> str:
        """
        Get the design token catalog.

        Returns the category tree, the flat token map with resolved values,
        token counts and any load or resolution warnings. The tier and query
        filters narrow the category tree only; the token map is always
        complete.

        Args:
            tier: Optional tier filter ('primitive' or 'semantic')
            query: Optional case-insensitive search over names, values,
                descriptions and references
            format: 'json' (default) or 'markdown'

        Returns:
            JSON string with categories, tokenMap and meta

        Example:
            tokens_get(tier="semantic", query="primary")
        """
        try:
            snapshot = await ensure_loaded(manager)
            categories = list(snapshot.categories)

            if tier:
                try:
                    categories = filter_by_tier(categories, TokenTier(tier))
                except ValueError:
                    return error_response(
                        InvalidToken(
                            tier, f"Invalid tier: '{tier}'. Expected 'primitive' or 'semantic'."
                        )
                    )
            if query:
                categories = filter_by_query(categories, query)

            if format == "markdown":
                return json.dumps({"status": "success", "markdown": render_markdown(categories)})

            return json.dumps(
                {
                    "status": "success",
                    "categories": categories_to_dicts(categories),
                    "tokenMap": token_map_to_dict(dict(snapshot.token_map)),
                    "meta": snapshot.meta.to_api_dict(),
                    "warnings": {
                        "parse": [w.to_dict() for w in snapshot.parse_warnings],
                        "resolution": [w.to_dict() for w in snapshot.resolution_warnings],
                    },
                }
            )
        except TokenError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Failed to get tokens")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_get"] = tokens_get

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_create(path: str, token: dict[str, Any]) -> str:
        """
        Create a design token.

        Missing categories along the path are created. Semantic tokens must
        define a reference; primitive tokens must define a value. Fails if
        a token already exists at the path.

        Args:
            path: Dotted token path (e.g., 'colors.blue.500')
            token: Token payload with value, and optionally type,
                description, tier and reference

        Returns:
            JSON string with the updated categories and tokenMap

        Example:
            tokens_create(
                path="semantic.primary",
                token={"value": "{colors.blue.500}", "tier": "semantic",
                       "reference": "colors.blue.500"}
            )
        """
        try:
            await ensure_loaded(manager)
            snapshot = await manager.create(path, token)
            return json.dumps(
                {
                    "status": "success",
                    "message": SuccessMessages.TOKEN_CREATED.format(path=path),
                    **catalog_payload(snapshot),
                }
            )
        except TokenError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Failed to create token")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_create"] = tokens_create

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_update(path: str, token: dict[str, Any]) -> str:
        """
        Replace an existing design token.

        The tier may change. Every semantic token is re-resolved, so
        tokens that depend on this one pick up the new value.

        Args:
            path: Dotted token path
            token: New token payload

        Returns:
            JSON string with the updated categories and tokenMap

        Example:
            tokens_update(path="colors.blue.500", token={"value": "#2563eb"})
        """
        try:
            await ensure_loaded(manager)
            snapshot = await manager.update(path, token)
            return json.dumps(
                {
                    "status": "success",
                    "message": SuccessMessages.TOKEN_UPDATED.format(path=path),
                    **catalog_payload(snapshot),
                }
            )
        except TokenError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Failed to update token")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_update"] = tokens_update

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_delete(path: str) -> str:
        """
        Delete a design token.

        Tokens that referenced it directly are listed in dependentsWarning
        and are left unresolved, not rewritten.

        Args:
            path: Dotted token path

        Returns:
            JSON string with the updated categories and tokenMap, plus
            dependentsWarning when other tokens referenced this one

        Example:
            tokens_delete(path="colors.blue.500")
        """
        try:
            await ensure_loaded(manager)
            snapshot, dependents = await manager.delete(path)
            result: dict[str, Any] = {
                "status": "success",
                "message": SuccessMessages.TOKEN_DELETED.format(path=path),
                **catalog_payload(snapshot),
            }
            if dependents:
                result["dependentsWarning"] = list(dependents.dependents)
            return json.dumps(result)
        except TokenError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Failed to delete token")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_delete"] = tokens_delete

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_reload() -> str:
        """
        Re-read the token source from disk.

        Discards unsaved edits and clears cached usage indexes.

        Returns:
            JSON string with token counts and warnings

        Example:
            tokens_reload()
        """
        try:
            snapshot = await manager.reload()
            if indexer is not None:
                indexer.invalidate()
            return json.dumps(
                {
                    "status": "success",
                    "meta": snapshot.meta.to_api_dict(),
                    "warnings": {
                        "parse": [w.to_dict() for w in snapshot.parse_warnings],
                        "resolution": [w.to_dict() for w in snapshot.resolution_warnings],
                    },
                }
            )
        except TokenError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Failed to reload tokens")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_reload"] = tokens_reload

    @mcp.tool  # type: ignore[arg-type]
    async def tokens_save() -> str:
        """
        Write the current catalog back to the token source.

        Returns:
            JSON string with the written path

        Example:
            tokens_save()
        """
        try:
            await ensure_loaded(manager)
            path = await manager.save()
            return json.dumps(
                {
                    "status": "success",
                    "message": SuccessMessages.TOKENS_SAVED.format(path=path),
                    "path": str(path),
                }
            )
        except Exception as e:
            logger.exception("Failed to save tokens")
            return json.dumps({"status": "error", "message": str(e)})

    tools["tokens_save"] = tokens_save

    return tools
