"""Custom exceptions for the Azure SQL MCP Server."""


class AzureSQLMCPError(Exception):
    """Base exception for all Azure SQL MCP server errors."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ConfigurationError(AzureSQLMCPError):
    """Exception raised when configuration is invalid."""
    pass


class CredentialError(AzureSQLMCPError):
    """Exception raised when no credential source could produce a token."""
    pass


class DatabaseConnectionError(AzureSQLMCPError):
    """Exception raised when opening the database connection fails."""
    pass


class QueryExecutionError(AzureSQLMCPError):
    """Exception raised when the database rejects or fails a statement."""
    pass


class ToolValidationError(AzureSQLMCPError):
    """Exception raised when a tool call is missing required arguments."""
    pass


class UnknownToolError(AzureSQLMCPError):
    """Exception raised when the tool name is not in the catalog."""
    pass
