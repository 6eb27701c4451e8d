"""FastAPI routes for the Azure SQL MCP REST API."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Request
from pydantic import BaseModel

from api.middleware import limiter, _http_config
from core.error_handling import format_rest_response
from tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    database_connected: bool


class ToolInfo(BaseModel):
    name: str
    description: str
    parameters: Dict[str, Any]


def get_tool_registry(request: Request) -> ToolRegistry:
    """FastAPI dependency returning the registry built by the composition root."""
    return request.app.state.tool_registry


router = APIRouter(prefix="/api/v1")


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, registry: ToolRegistry = Depends(get_tool_registry)):
    """Health check endpoint. Reports the cached connection without opening one."""
    connected = registry.manager.is_connected
    return HealthResponse(
        status="healthy" if connected else "idle",
        timestamp=datetime.now().isoformat(),
        version=request.app.version,
        database_connected=connected
    )


@router.get("/tools", response_model=List[ToolInfo])
async def list_tools(registry: ToolRegistry = Depends(get_tool_registry)):
    """List all available MCP tools."""
    return [
        ToolInfo(
            name=tool.name,
            description=tool.description or "",
            parameters=tool.inputSchema
        )
        for tool in registry.list_tools()
    ]


@router.post("/tools/{tool_name}")
@limiter.limit(_http_config.rate_limit_tools)
async def invoke_tool(
    request: Request,
    tool_name: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
    registry: ToolRegistry = Depends(get_tool_registry)
):
    """Invoke a tool; the JSON body is the tool's arguments object."""
    result = await registry.invoke(tool_name, arguments)
    return format_rest_response(result, tool_name)
