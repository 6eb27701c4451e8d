"""Base MCP server - transport-agnostic MCP protocol wiring.

Binds the MCP list_tools / call_tool requests to the ToolRegistry,
independent of the transport (STDIO, HTTP/SSE).
"""

import logging
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.types import TextContent, Tool

from core.config import AppConfig
from core.error_handling import ToolResult
from tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolCallFailed(Exception):
    """Raised inside call_tool so the MCP server marks the result isError."""

    def __init__(self, result: ToolResult):
        self.result = result
        super().__init__(result.text)


def to_mcp_content(result: ToolResult) -> List[TextContent]:
    """Convert a ToolResult into MCP content, raising for error results.

    The low-level MCP server turns an exception from a call_tool handler into
    a CallToolResult with isError=true and the exception text as content.
    """
    if result.is_error:
        raise ToolCallFailed(result)
    return [TextContent(type="text", text=result.text)]


class BaseMCPServer:
    """Base MCP server providing core protocol functionality.

    This class encapsulates the MCP protocol logic independent of
    the transport mechanism (STDIO, HTTP/SSE, etc.).
    """

    def __init__(self, registry: ToolRegistry, app_config: AppConfig):
        """Initialize base MCP server.

        Args:
            registry: ToolRegistry holding the shared ConnectionManager
            app_config: Application configuration (server name, version)
        """
        self.registry = registry
        self.app_config = app_config
        self.server = Server(app_config.server_name, version=app_config.server_version)
        self._setup_handlers()
        logger.info(f"Initialized {app_config.server_name} MCP server")

    def _setup_handlers(self):
        """Setup MCP protocol handlers."""

        @self.server.list_tools()
        async def list_tools() -> List[Tool]:
            """List all available tools."""
            return self.registry.list_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
            """Handle tool execution."""
            result = await self.registry.invoke(name, arguments)
            return to_mcp_content(result)
