"""HTTP server for the Azure SQL MCP Server.

Serves the REST API under /api/v1 and MCP over SSE under /sse/.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from api.middleware import setup_middleware
from api.routes import router as api_router
from core.config import AppConfig
from protocol.sse_server import SseMCPServer
from protocol.stdio_server import close_manager
from tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def create_http_app(registry: ToolRegistry, app_config: AppConfig) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        registry: ToolRegistry holding the shared ConnectionManager
        app_config: Application configuration

    Returns:
        FastAPI app; its lifespan shutdown closes the database connection
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("HTTP server started")
        yield
        logger.info("Shutting down, closing database connection...")
        await close_manager(registry.manager)

    app = FastAPI(
        title="Azure SQL MCP API",
        description="REST API & SSE for Azure SQL Database tools via MCP",
        version=app_config.server_version,
        lifespan=lifespan
    )
    app.state.tool_registry = registry
    app.state.app_config = app_config

    setup_middleware(app, app_config.http_config)

    app.include_router(api_router)
    logger.info("REST API routes registered")

    mcp_sse_server = SseMCPServer(registry, app_config)
    app.mount("/sse", mcp_sse_server.create_asgi_app())
    logger.info("MCP SSE server mounted at /sse/")

    @app.get("/")
    async def root():
        return {
            "name": app_config.server_name,
            "version": app_config.server_version,
            "modes": ["REST API", "MCP SSE"],
            "endpoints": {
                "health": "/api/v1/health",
                "tools": "/api/v1/tools",
                "invoke": "/api/v1/tools/{tool_name}",
                "mcp_sse": "/sse/",
                "docs": "/docs"
            }
        }

    return app
