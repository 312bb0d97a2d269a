#!/usr/bin/env python3
"""
Entry point for the CHUK Tokens MCP Server.

This module provides the main entry point for the MCP server,
supporting multiple transport modes (stdio, http).
"""

import argparse
import asyncio
import logging
import os

from chuk_mcp_tokens.constants import ENV_PREFIX

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point with transport detection."""
    parser = argparse.ArgumentParser(description="CHUK Tokens MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport mode (default: stdio)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="HTTP port (only for http transport)",
    )
    parser.add_argument(
        "--project-root",
        help="Project root (default: current directory)",
    )
    parser.add_argument(
        "--tokens-path",
        help="Token directory or file, relative to the project root",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    # The server module reads its configuration from the environment
    if args.project_root:
        os.environ[f"{ENV_PREFIX}PROJECT_ROOT"] = args.project_root
    if args.tokens_path:
        os.environ[f"{ENV_PREFIX}PATH"] = args.tokens_path

    # Import after argument parsing to avoid issues
    from chuk_mcp_tokens.async_server import mcp

    if args.transport == "stdio":
        logger.info("Starting CHUK Tokens MCP Server (stdio)")
        asyncio.run(mcp.run_stdio())
    else:
        logger.info(f"Starting CHUK Tokens MCP Server (http:{args.port})")
        asyncio.run(mcp.run_http(port=args.port))


if __name__ == "__main__":
    main()
