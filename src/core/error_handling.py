"""Unified result envelopes for MCP tool calls and the REST API.

Every tool invocation ends in a ToolResult, whether it succeeded or failed,
so the host always receives a well-formed response.
"""

import json
import logging
import traceback
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

from core.exceptions import AzureSQLMCPError

logger = logging.getLogger(__name__)


class ToolResult(BaseModel):
    """Text payload plus error flag returned by every tool invocation."""

    text: str
    is_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Render in the MCP CallToolResult shape."""
        return {
            "content": [{
                "type": "text",
                "text": self.text
            }],
            "isError": self.is_error
        }


def to_json_text(data: Any) -> str:
    """Serialize rows as indented JSON; datetimes, decimals and bytes become strings."""
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def format_error_result(
    error: Exception,
    include_stacktrace: bool = False,
    context: Optional[Dict[str, Any]] = None
) -> ToolResult:
    """Convert an exception into an error ToolResult.

    Args:
        error: The exception that occurred
        include_stacktrace: Whether to append the stack trace (for debugging)
        context: Additional context information

    Returns:
        ToolResult with is_error set
    """
    error_message = error.message if isinstance(error, AzureSQLMCPError) else str(error)
    error_type = type(error).__name__

    error_text = f"Error: {error_message}"

    if include_stacktrace:
        error_text += f"\n\nStack trace:\n{traceback.format_exc()}"

    if context:
        error_text += f"\n\nContext: {context}"

    logger.error(f"{error_type}: {error_message}", exc_info=include_stacktrace)

    return ToolResult(text=error_text, is_error=True)


def format_success_result(data: Any) -> ToolResult:
    """Wrap rows (or a plain message) into a successful ToolResult."""
    if isinstance(data, str):
        text = data
    else:
        text = to_json_text(data)
    return ToolResult(text=text)


def format_rest_response(
    result: ToolResult,
    tool_name: Optional[str] = None
) -> Dict[str, Any]:
    """Format a ToolResult for the REST API.

    Returns:
        {"success": bool, "data"|"error": ..., "timestamp": ...} plus the
        MCP-shaped envelope under "result"
    """
    response: Dict[str, Any] = {
        "success": not result.is_error,
        "timestamp": datetime.now().isoformat(),
        "result": result.to_dict()
    }
    if tool_name:
        response["tool"] = tool_name
    if result.is_error:
        response["error"] = result.text
    else:
        response["data"] = result.text
    return response
