"""Core modules for the Azure SQL MCP Server."""

from .exceptions import (
    AzureSQLMCPError,
    ConfigurationError,
    CredentialError,
    DatabaseConnectionError,
    QueryExecutionError,
    ToolValidationError,
    UnknownToolError
)

__all__ = [
    "AzureSQLMCPError",
    "ConfigurationError",
    "CredentialError",
    "DatabaseConnectionError",
    "QueryExecutionError",
    "ToolValidationError",
    "UnknownToolError"
]
