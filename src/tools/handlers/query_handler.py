"""Free-form SQL execution handler."""

import logging
from typing import List

from core.error_handling import ToolResult
from database.connection import ConnectionManager
from tools.base import ToolHandler, ToolRequest
from tools.definitions import TOOL_EXECUTE_SQL_QUERY
from tools.validators import InputValidator

logger = logging.getLogger(__name__)


class QueryHandler(ToolHandler):
    """Handler for execute_sql_query."""

    @property
    def tool_names(self) -> List[str]:
        return [TOOL_EXECUTE_SQL_QUERY]

    async def handle(self, request: ToolRequest, manager: ConnectionManager) -> ToolResult:
        """
        Run the caller's SQL verbatim with bound parameters.

        No statement-type validation is done here; the database's own
        permissions decide what the query may do.
        """
        query = request.arguments["query"]
        parameters = InputValidator.optional_list(request.arguments, "parameters")

        logger.debug(f"Executing query with {len(parameters)} parameter(s)")
        rows = await manager.execute_query(query, parameters)
        return self._rows_response(rows)
