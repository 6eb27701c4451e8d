"""View and stored procedure creation handlers.

Only the object name is sanitized. The view query, procedure parameter list
and procedure body are spliced into the DDL verbatim, so callers of these
tools must be trusted to send arbitrary DDL.
"""

import logging
from typing import Any, List

from core.error_handling import ToolResult
from database.connection import ConnectionManager
from tools.base import ToolHandler, ToolRequest
from tools.definitions import TOOL_CREATE_STORED_PROCEDURE, TOOL_CREATE_VIEW
from tools.validators import InputValidator

logger = logging.getLogger(__name__)


def build_create_view(view_name: str, query: str) -> str:
    return f"CREATE VIEW {view_name} AS\n{query}"


def build_create_procedure(procedure_name: str, parameters: str, body: str) -> str:
    lines = [f"CREATE PROCEDURE {procedure_name}"]
    if parameters:
        lines.append(parameters)
    lines.extend(["AS", "BEGIN", body, "END"])
    return "\n".join(lines)


def _parameter_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


class DDLHandler(ToolHandler):
    """Handler for create_view and create_stored_procedure."""

    @property
    def tool_names(self) -> List[str]:
        return [TOOL_CREATE_VIEW, TOOL_CREATE_STORED_PROCEDURE]

    async def handle(self, request: ToolRequest, manager: ConnectionManager) -> ToolResult:
        if request.name == TOOL_CREATE_VIEW:
            return await self._create_view(request, manager)
        return await self._create_procedure(request, manager)

    async def _create_view(self, request: ToolRequest, manager: ConnectionManager) -> ToolResult:
        args = request.arguments
        view_name = InputValidator.sanitize_identifier(args["view_name"], "view_name")
        replace = InputValidator.optional_bool(args, "replace_if_exists")

        # CREATE VIEW must be the first statement of its batch
        if replace:
            await manager.execute_query(f"DROP VIEW IF EXISTS {view_name}")
        await manager.execute_query(build_create_view(view_name, args["query"]))

        logger.info(f"Created view {view_name}")
        return self._success_response(f"View '{view_name}' created successfully.")

    async def _create_procedure(self, request: ToolRequest, manager: ConnectionManager) -> ToolResult:
        args = request.arguments
        procedure_name = InputValidator.sanitize_identifier(args["procedure_name"], "procedure_name")
        replace = InputValidator.optional_bool(args, "replace_if_exists")
        parameters = _parameter_text(args.get("parameters"))

        if replace:
            await manager.execute_query(f"DROP PROCEDURE IF EXISTS {procedure_name}")
        await manager.execute_query(build_create_procedure(procedure_name, parameters, str(args["body"])))

        logger.info(f"Created stored procedure {procedure_name}")
        return self._success_response(f"Stored procedure '{procedure_name}' created successfully.")
