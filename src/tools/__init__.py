"""MCP tools package for the Azure SQL MCP Server."""

from tools.base import ToolHandler, ToolRequest
from tools.registry import ToolRegistry
from tools.definitions import get_all_tools
from tools.validators import InputValidator

__all__ = [
    'ToolHandler',
    'ToolRequest',
    'ToolRegistry',
    'get_all_tools',
    'InputValidator',
]
