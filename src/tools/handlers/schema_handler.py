"""Catalog and schema information handlers."""

import logging
from typing import List

from core.error_handling import ToolResult
from database.connection import ConnectionManager
from tools.base import ToolHandler, ToolRequest
from tools.definitions import (
    TOOL_GET_DATABASE_INFO,
    TOOL_GET_TABLE_SCHEMA,
    TOOL_LIST_STORED_PROCEDURES,
    TOOL_LIST_TABLES,
    TOOL_LIST_VIEWS,
)

logger = logging.getLogger(__name__)


TABLE_SCHEMA_QUERY = """
SELECT
    COLUMN_NAME,
    DATA_TYPE,
    IS_NULLABLE,
    COLUMN_DEFAULT,
    CHARACTER_MAXIMUM_LENGTH,
    NUMERIC_PRECISION,
    NUMERIC_SCALE
FROM INFORMATION_SCHEMA.COLUMNS
WHERE TABLE_NAME = @param0
ORDER BY ORDINAL_POSITION
"""

LIST_TABLES_QUERY = """
SELECT
    TABLE_NAME,
    TABLE_TYPE,
    TABLE_SCHEMA
FROM INFORMATION_SCHEMA.TABLES
WHERE TABLE_TYPE = 'BASE TABLE'
ORDER BY TABLE_SCHEMA, TABLE_NAME
"""

DATABASE_INFO_QUERY = """
SELECT
    @@VERSION as sql_version,
    DB_NAME() as database_name,
    @@SERVERNAME as server_name,
    GETDATE() as current_datetime
"""

LIST_VIEWS_QUERY = """
SELECT
    TABLE_NAME as view_name,
    TABLE_SCHEMA as schema_name,
    VIEW_DEFINITION as definition
FROM INFORMATION_SCHEMA.VIEWS
ORDER BY TABLE_SCHEMA, TABLE_NAME
"""

LIST_PROCEDURES_QUERY = """
SELECT
    ROUTINE_NAME as procedure_name,
    ROUTINE_SCHEMA as schema_name,
    CREATED as created_date,
    LAST_ALTERED as last_modified
FROM INFORMATION_SCHEMA.ROUTINES
WHERE ROUTINE_TYPE = 'PROCEDURE'
ORDER BY ROUTINE_SCHEMA, ROUTINE_NAME
"""

# Argument-free catalog queries
_CATALOG_QUERIES = {
    TOOL_LIST_TABLES: LIST_TABLES_QUERY,
    TOOL_GET_DATABASE_INFO: DATABASE_INFO_QUERY,
    TOOL_LIST_VIEWS: LIST_VIEWS_QUERY,
    TOOL_LIST_STORED_PROCEDURES: LIST_PROCEDURES_QUERY,
}


class SchemaHandler(ToolHandler):
    """Handler for read-only catalog queries."""

    @property
    def tool_names(self) -> List[str]:
        return [TOOL_GET_TABLE_SCHEMA, *_CATALOG_QUERIES]

    async def handle(self, request: ToolRequest, manager: ConnectionManager) -> ToolResult:
        if request.name == TOOL_GET_TABLE_SCHEMA:
            return await self._handle_table_schema(request, manager)

        rows = await manager.execute_query(_CATALOG_QUERIES[request.name])
        return self._rows_response(rows)

    async def _handle_table_schema(self, request: ToolRequest, manager: ConnectionManager) -> ToolResult:
        """Columns of one table; the name is a bound parameter, never spliced."""
        table_name = str(request.arguments["table_name"])
        rows = await manager.execute_query(TABLE_SCHEMA_QUERY, [table_name])
        if not rows:
            logger.info(f"No columns found for table {table_name!r}")
        return self._rows_response(rows)
