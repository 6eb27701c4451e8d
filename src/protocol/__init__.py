"""MCP protocol servers (STDIO and HTTP/SSE transports)."""
