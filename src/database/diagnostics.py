"""Connection check for the configured Azure SQL database (`main.py --check`)."""

import logging
import time
from typing import Any, Dict

from core.exceptions import AzureSQLMCPError
from database.connection import ConnectionManager

logger = logging.getLogger(__name__)

VERSION_DISPLAY_LIMIT = 80


async def run_connection_check(manager: ConnectionManager) -> Dict[str, Any]:
    """
    Connect and run a few read-only probes.

    Returns:
        {"success": bool, ...} with server version, database/server names,
        base table count and round-trip latency on success, or
        "error"/"error_type" on failure
    """
    config = manager.config
    logger.info(f"Checking connection to {config.server}/{config.database}")

    result: Dict[str, Any] = {
        "server": config.server,
        "database": config.database,
        "credential": "service_principal" if config.has_service_principal else "ambient_default",
    }

    try:
        await manager.connect()
        logger.info("Connection established")

        version_rows = await manager.execute_query("SELECT @@VERSION as version")
        version = str(version_rows[0]["version"]) if version_rows else "Unknown"
        result["server_version"] = version

        info_rows = await manager.execute_query(
            "SELECT DB_NAME() as database_name, @@SERVERNAME as server_name, GETDATE() as current_datetime"
        )
        if info_rows:
            result["database_name"] = info_rows[0]["database_name"]
            result["server_name"] = info_rows[0]["server_name"]
            result["current_datetime"] = str(info_rows[0]["current_datetime"])

        count_rows = await manager.execute_query(
            "SELECT COUNT(*) as table_count FROM INFORMATION_SCHEMA.TABLES WHERE TABLE_TYPE = 'BASE TABLE'"
        )
        result["table_count"] = count_rows[0]["table_count"] if count_rows else 0

        started = time.perf_counter()
        await manager.execute_query("SELECT 1 as test")
        result["latency_ms"] = round((time.perf_counter() - started) * 1000, 1)

        result["success"] = True
    except AzureSQLMCPError as e:
        logger.error(f"Connection check failed: {e.message}")
        result["success"] = False
        result["error"] = e.message
        result["error_type"] = type(e).__name__
    finally:
        try:
            await manager.close()
        except Exception as e:
            logger.warning(f"Error closing connection: {e}")

    return result


def format_check_report(result: Dict[str, Any]) -> str:
    """Render a check result as a short multi-line report."""
    lines = [
        f"Server: {result.get('server') or 'N/A'}",
        f"Database: {result.get('database') or 'N/A'}",
        f"Credential: {result.get('credential')}",
    ]

    if not result.get("success"):
        lines.append(f"Check failed ({result.get('error_type')}): {result.get('error')}")
        return "\n".join(lines)

    version = result.get("server_version", "")
    if len(version) > VERSION_DISPLAY_LIMIT:
        version = version[:VERSION_DISPLAY_LIMIT] + "..."
    lines.extend([
        f"Server version: {version}",
        f"Connected database: {result.get('database_name')}",
        f"Server name: {result.get('server_name')}",
        f"Current time: {result.get('current_datetime')}",
        f"Base tables: {result.get('table_count')}",
        f"Round trip: {result.get('latency_ms')}ms",
        "All checks passed",
    ])
    return "\n".join(lines)
