"""Base classes for MCP tool handlers."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from core.error_handling import ToolResult, format_success_result
from database.connection import ConnectionManager


class ToolRequest(BaseModel):
    """A named tool invocation with its arguments."""

    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolHandler(ABC):
    """Abstract base class for MCP tool handlers."""

    @property
    @abstractmethod
    def tool_names(self) -> List[str]:
        """Return list of tool names this handler supports."""
        pass

    @abstractmethod
    async def handle(self, request: ToolRequest, manager: ConnectionManager) -> ToolResult:
        """
        Handle tool invocation.

        Args:
            request: Tool name and arguments (required arguments already checked)
            manager: Connection manager used to run SQL

        Returns:
            ToolResult on success

        Raises:
            AzureSQLMCPError: converted to an error result by the registry
        """
        pass

    def _rows_response(self, rows: List[Dict[str, Any]]) -> ToolResult:
        """Create standardized JSON rows response."""
        return format_success_result(rows)

    def _success_response(self, text: str) -> ToolResult:
        """Create standardized text response."""
        return format_success_result(text)
