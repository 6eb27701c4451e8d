"""Unified entry point for the Azure SQL MCP Server.

Usage:
    # STDIO mode (default)
    python main.py

    # HTTP mode (REST API + MCP over SSE)
    python main.py --http --host 0.0.0.0 --port 8000

    # Connection check against the configured database
    python main.py --check
"""

import argparse
import asyncio
import logging
import os
import sys

from core.config import AppConfig
from database.connection import ConnectionManager
from tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Log to stderr; stdout carries the MCP stdio channel."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


def build_registry(app_config: AppConfig) -> ToolRegistry:
    """Composition root: one ConnectionManager shared by every transport."""
    manager = ConnectionManager(app_config.azure_sql)
    return ToolRegistry(manager)


async def run_stdio_mode(app_config: AppConfig) -> int:
    """Run MCP server in STDIO mode.

    This mode is used when the server is spawned as a subprocess by an MCP host.
    """
    logger.info("Starting Azure SQL MCP Server in STDIO mode")

    from protocol.stdio_server import StdioMCPServer, serve_until_signal

    registry = build_registry(app_config)
    try:
        server = StdioMCPServer(registry, app_config)
    except Exception as e:
        logger.error(f"Failed to start STDIO server: {e}", exc_info=True)
        return 1
    return await serve_until_signal(server, registry.manager, exit_on_signal=True)


async def run_http_mode(app_config: AppConfig, host: str, port: int) -> int:
    """Run REST API and MCP SSE transport with uvicorn."""
    logger.info(f"Starting Azure SQL MCP Server in HTTP mode on {host}:{port}")

    import uvicorn
    from http_server import create_http_app

    registry = build_registry(app_config)
    app = create_http_app(registry, app_config)

    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=app_config.log_level.lower()
    )
    server = uvicorn.Server(config)

    try:
        await server.serve()
    except Exception as e:
        logger.error(f"HTTP server error: {e}", exc_info=True)
        return 1
    return 0


async def run_check_mode(app_config: AppConfig) -> int:
    """Run the connection check and print its report."""
    from database.diagnostics import format_check_report, run_connection_check

    manager = ConnectionManager(app_config.azure_sql)
    result = await run_connection_check(manager)
    print(format_check_report(result), file=sys.stderr)
    return 0 if result.get("success") else 1


def main():
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description="Azure SQL MCP Server"
    )
    parser.add_argument(
        "--http",
        action="store_true",
        help="Run in HTTP mode (default: STDIO mode)"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Test the database connection and exit"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address for HTTP mode (default: from HTTP_HOST env or 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for HTTP mode (default: from HTTP_PORT env or 8000)"
    )

    args = parser.parse_args()

    app_config = AppConfig.from_env()
    setup_logging(app_config.log_level)

    if args.check:
        exit_code = asyncio.run(run_check_mode(app_config))
    elif args.http:
        host = args.host or os.getenv("HTTP_HOST", "0.0.0.0")
        port = args.port or int(os.getenv("HTTP_PORT", "8000"))
        exit_code = asyncio.run(run_http_mode(app_config, host, port))
    else:
        exit_code = asyncio.run(run_stdio_mode(app_config))

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
