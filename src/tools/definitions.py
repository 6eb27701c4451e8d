"""MCP tool definitions for the Azure SQL MCP Server."""

from typing import Any, Dict, List
from mcp.types import Tool


# Tool name constants (used for matching in handlers)
TOOL_EXECUTE_SQL_QUERY = "execute_sql_query"
TOOL_GET_TABLE_SCHEMA = "get_table_schema"
TOOL_LIST_TABLES = "list_tables"
TOOL_GET_DATABASE_INFO = "get_database_info"
TOOL_CREATE_VIEW = "create_view"
TOOL_CREATE_STORED_PROCEDURE = "create_stored_procedure"
TOOL_LIST_VIEWS = "list_views"
TOOL_LIST_STORED_PROCEDURES = "list_stored_procedures"


def _no_arguments() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {},
        "required": []
    }


def get_all_tools() -> List[Tool]:
    """Return the fixed tool catalog advertised to the host."""
    return [
        Tool(
            name=TOOL_EXECUTE_SQL_QUERY,
            description=(
                "Run a SQL query against the Azure SQL database and return the rows as JSON. "
                "Reference parameters as @param0, @param1, ... in the order given."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "The SQL query to execute"
                    },
                    "parameters": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Optional positional parameters bound to @param0, @param1, ..."
                    }
                },
                "required": ["query"]
            }
        ),
        Tool(
            name=TOOL_GET_TABLE_SCHEMA,
            description="Get the column definitions of a table, in column order",
            inputSchema={
                "type": "object",
                "properties": {
                    "table_name": {
                        "type": "string",
                        "description": "Name of the table to describe"
                    }
                },
                "required": ["table_name"]
            }
        ),
        Tool(
            name=TOOL_LIST_TABLES,
            description="List the base tables in the database",
            inputSchema=_no_arguments()
        ),
        Tool(
            name=TOOL_GET_DATABASE_INFO,
            description="Get engine version, database name, server name and current server time",
            inputSchema=_no_arguments()
        ),
        Tool(
            name=TOOL_CREATE_VIEW,
            description=(
                "Create a view. The view name is reduced to letters, digits and underscores; "
                "the SELECT query is used verbatim."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "view_name": {
                        "type": "string",
                        "description": "Name of the view to create"
                    },
                    "query": {
                        "type": "string",
                        "description": "SELECT query defining the view"
                    },
                    "replace_if_exists": {
                        "type": "boolean",
                        "description": "Drop an existing view of the same name first (default: false)",
                        "default": False
                    }
                },
                "required": ["view_name", "query"]
            }
        ),
        Tool(
            name=TOOL_CREATE_STORED_PROCEDURE,
            description=(
                "Create a stored procedure. The procedure name is reduced to letters, digits and "
                "underscores; the parameter list and body are used verbatim."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "procedure_name": {
                        "type": "string",
                        "description": "Name of the stored procedure to create"
                    },
                    "parameters": {
                        "type": "string",
                        "description": "Parameter declarations (e.g. @param1 INT, @param2 VARCHAR(50))"
                    },
                    "body": {
                        "type": "string",
                        "description": "SQL statements of the procedure body"
                    },
                    "replace_if_exists": {
                        "type": "boolean",
                        "description": "Drop an existing procedure of the same name first (default: false)",
                        "default": False
                    }
                },
                "required": ["procedure_name", "body"]
            }
        ),
        Tool(
            name=TOOL_LIST_VIEWS,
            description="List the views in the database with their definitions",
            inputSchema=_no_arguments()
        ),
        Tool(
            name=TOOL_LIST_STORED_PROCEDURES,
            description="List the stored procedures in the database",
            inputSchema=_no_arguments()
        )
    ]


def get_required_arguments(tool: Tool) -> List[str]:
    """Required argument names declared in a tool's input schema."""
    return list(tool.inputSchema.get("required", []))
