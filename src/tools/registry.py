"""Tool registry: the dispatch boundary between the host protocol and SQL."""

import logging
from typing import Any, Dict, List, Optional

from mcp.types import Tool

from core.error_handling import ToolResult, format_error_result
from core.exceptions import AzureSQLMCPError, UnknownToolError
from database.connection import ConnectionManager
from tools.base import ToolHandler, ToolRequest
from tools.definitions import get_all_tools, get_required_arguments
from tools.handlers import DDLHandler, QueryHandler, SchemaHandler
from tools.validators import InputValidator

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Central registry for MCP tool handlers.

    Routes tool calls to handlers by name. invoke() never raises: every
    failure becomes a ToolResult with is_error set.
    """

    def __init__(self, manager: ConnectionManager):
        self.manager = manager
        self.tools: Dict[str, Tool] = {tool.name: tool for tool in get_all_tools()}
        self.handlers: Dict[str, ToolHandler] = {}
        self._register_handlers()

    def _register_handlers(self):
        """Register all tool handlers."""
        handler_classes = [
            QueryHandler,
            SchemaHandler,
            DDLHandler,
        ]

        for handler_class in handler_classes:
            handler = handler_class()
            for tool_name in handler.tool_names:
                self.handlers[tool_name] = handler
                logger.debug(f"Registered {tool_name} -> {handler_class.__name__}")

        logger.info(f"Registered {len(self.handlers)} MCP tools across {len(handler_classes)} handlers")

    def list_tools(self) -> List[Tool]:
        """Return the tool catalog."""
        return list(self.tools.values())

    def is_tool_registered(self, tool_name: str) -> bool:
        """Check if a tool has a registered handler."""
        return tool_name in self.handlers

    async def invoke(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """
        Route a tool call to its handler.

        Args:
            name: Tool name from the catalog
            arguments: Tool arguments (None is treated as empty)

        Returns:
            The handler's result, or an error result for unknown tools,
            missing arguments and any credential, connection or query failure
        """
        try:
            handler = self.handlers.get(name)
            if handler is None:
                raise UnknownToolError(f"Unknown tool: {name}", details={"tool": name})

            args = dict(arguments or {})
            InputValidator.require_arguments(name, args, get_required_arguments(self.tools[name]))

            logger.debug(f"Routing {name} to {handler.__class__.__name__}")
            return await handler.handle(ToolRequest(name=name, arguments=args), self.manager)

        except AzureSQLMCPError as e:
            return format_error_result(e)
        except Exception as e:
            logger.exception(f"Unexpected error in tool {name}")
            return format_error_result(e)
