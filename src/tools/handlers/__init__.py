"""Tool handlers package."""

from tools.handlers.query_handler import QueryHandler
from tools.handlers.schema_handler import SchemaHandler
from tools.handlers.ddl_handler import DDLHandler

__all__ = [
    'QueryHandler',
    'SchemaHandler',
    'DDLHandler',
]
