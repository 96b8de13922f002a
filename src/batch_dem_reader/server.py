#!/usr/bin/env python3
"""
DEM Reader MCP Server - Entry Point

This module provides the async MCP server for batch elevation lookups.
Supports both stdio (for Claude Desktop) and HTTP (for API access) transports.
"""

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from .constants import DEFAULT_HTTP_HOST, DEFAULT_HTTP_PORT, EnvVar, ServerConfig

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = logging.getLogger(__name__)


def _check_configuration() -> bool:
    """
    Log the tile set configuration.

    Returns:
        True if a tile set base URL is configured, False otherwise
    """
    base_url = os.environ.get(EnvVar.BASE_URL)
    if not base_url:
        logger.warning(
            f"{EnvVar.BASE_URL} is not set. Elevation tools will fail until it is configured."
        )
        return False

    cache_dir = os.environ.get(EnvVar.CACHE_DIR)
    logger.info(f"Tile set: {base_url}")
    logger.info(f"  Cache directory: {cache_dir or 'system temp (dem)'}")
    return True


# Import mcp instance and all registered tools from async server
from .async_server import mcp  # noqa: F401, E402


def main() -> None:
    """Main entry point for the MCP server."""
    import argparse

    _check_configuration()

    parser = argparse.ArgumentParser(description=ServerConfig.DESCRIPTION)
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["stdio", "http"],
        default=None,
        help="Transport mode (stdio for Claude Desktop, http for API)",
    )
    parser.add_argument(
        "--host", default=DEFAULT_HTTP_HOST, help=f"Host for HTTP mode (default: {DEFAULT_HTTP_HOST})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_HTTP_PORT,
        help=f"Port for HTTP mode (default: {DEFAULT_HTTP_PORT})",
    )

    args = parser.parse_args()

    if args.mode == "stdio":
        print("DEM Reader MCP Server starting in STDIO mode", file=sys.stderr)
        mcp.run(stdio=True)
    elif args.mode == "http":
        print(
            f"DEM Reader MCP Server starting in HTTP mode on {args.host}:{args.port}",
            file=sys.stderr,
        )
        mcp.run(host=args.host, port=args.port, stdio=False)
    else:
        if os.environ.get(EnvVar.MCP_STDIO) or (not sys.stdin.isatty()):
            print("DEM Reader MCP Server starting in STDIO mode (auto-detected)", file=sys.stderr)
            mcp.run(stdio=True)
        else:
            print(
                f"DEM Reader MCP Server starting in HTTP mode on {args.host}:{args.port}",
                file=sys.stderr,
            )
            mcp.run(host=args.host, port=args.port, stdio=False)


if __name__ == "__main__":
    main()
