#!/usr/bin/env python3
"""
Async Design Token MCP Server using chuk-mcp-server

This server provides MCP tools for browsing and maintaining a design token
catalog. Tokens are loaded from Style Dictionary-style JSON or YAML files;
semantic tokens are resolved to their primitive values.

The server provides tools for:
- Browsing the category tree, filtered by tier or free text
- Creating, updating and deleting tokens with dependents warnings
- Finding where tokens are used across component sources
- Reloading and saving the token source
"""

import logging
from typing import Any

from chuk_mcp_server import ChukMCPServer

from chuk_mcp_tokens.catalog import TokenManager
from chuk_mcp_tokens.config import ServerConfig
from chuk_mcp_tokens.tools import register_token_tools, register_usage_tools
from chuk_mcp_tokens.usage import ScanCache, UsageIndexer

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_server(config: ServerConfig) -> tuple[ChukMCPServer, dict[str, Any]]:
    """
    Build the MCP server and register all tools.

    Args:
        config: Server configuration

    Returns:
        (server, dictionary of registered tool functions)
    """
    server = ChukMCPServer("chuk-mcp-tokens")

    tokens_path = config.resolve_tokens_path()
    if tokens_path is None:
        logger.warning("No token source found under %s", config.project_root)

    manager = TokenManager(tokens_path)
    indexer = UsageIndexer(
        cache=ScanCache(ttl=config.usage_cache_ttl),
        include=config.corpus_include,
        exclude=config.corpus_exclude,
    )

    tools: dict[str, Any] = {}
    tools.update(register_token_tools(server, manager, indexer))
    tools.update(register_usage_tools(server, manager, indexer, config.resolve_corpus_root()))

    logger.info("CHUK Tokens MCP Server initialized")
    logger.info(f"  Project root: {config.project_root}")
    logger.info(f"  Tokens path: {tokens_path}")
    logger.info(f"  Corpus root: {config.resolve_corpus_root()}")
    return server, tools


server_config = ServerConfig.from_env()
mcp, _tools = create_server(server_config)

# Export tool functions for direct access
tokens_get = _tools["tokens_get"]
tokens_create = _tools["tokens_create"]
tokens_update = _tools["tokens_update"]
tokens_delete = _tools["tokens_delete"]
tokens_reload = _tools["tokens_reload"]
tokens_save = _tools["tokens_save"]
tokens_usage = _tools["tokens_usage"]
