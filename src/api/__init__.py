"""REST API for the Azure SQL MCP Server."""
