"""Lazily-created, token-authenticated connection to Azure SQL Database."""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

try:
    import aioodbc
    import pyodbc
    DRIVER_ERRORS = (pyodbc.Error,)
except ImportError:
    aioodbc = None
    pyodbc = None
    DRIVER_ERRORS = ()

from core.config import AzureSQLConfig
from core.exceptions import DatabaseConnectionError, QueryExecutionError
from database.credentials import (
    SQL_COPT_SS_ACCESS_TOKEN,
    CredentialFactory,
    acquire_access_token,
    create_credential,
    encode_access_token,
)

logger = logging.getLogger(__name__)

# @param0, @param1, ... refer to parameters[0], parameters[1], ...
_PARAM_PATTERN = re.compile(r"@param(\d+)\b", re.IGNORECASE)


def bind_parameters(sql: str, parameters: Optional[Sequence[Any]] = None) -> Tuple[str, List[Any]]:
    """Rewrite @paramN references into ODBC ? markers.

    Returns the rewritten SQL and the values in marker order. SQL written
    with ? markers is returned unchanged with the parameters in the given
    order. SQL with no markers of either kind gets no values.
    """
    if not parameters:
        return sql, []

    values: List[Any] = []

    def _replace(match: re.Match) -> str:
        index = int(match.group(1))
        if index >= len(parameters):
            raise QueryExecutionError(
                f"No value supplied for @param{index} ({len(parameters)} parameter(s) given)"
            )
        values.append(parameters[index])
        return "?"

    bound_sql = _PARAM_PATTERN.sub(_replace, sql)
    if values:
        return bound_sql, values
    if "?" in sql:
        return sql, list(parameters)
    # Neither @paramN nor ? markers: supplied values are unused
    return sql, []


def _driver_message(error: Exception) -> str:
    """pyodbc errors carry (sqlstate, message); keep the engine message."""
    if len(error.args) >= 2 and isinstance(error.args[1], str):
        return error.args[1]
    return str(error)


def _is_link_failure(error: Exception) -> bool:
    """SQLSTATE class 08 means the connection itself is gone."""
    sqlstate = error.args[0] if error.args else ""
    return isinstance(sqlstate, str) and sqlstate.startswith("08")


class ConnectionManager:
    """
    Owns the single Azure SQL connection handle.

    The handle is opened on first use and reused while it reports itself
    connected. A new access token is only requested when a new connection
    is opened.
    """

    def __init__(
        self,
        config: AzureSQLConfig,
        credential_factory: CredentialFactory = create_credential
    ):
        self.config = config
        self.credential_factory = credential_factory
        self._connection = None
        self._connect_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """True when a cached handle exists and has not been closed."""
        return self._connection is not None and not self._connection.closed

    async def get_access_token(self) -> str:
        """Acquire a bearer token for the configured identity."""
        return await acquire_access_token(self.config, self.credential_factory)

    async def connect(self):
        """Return the cached connection, opening a new one if needed."""
        if self.is_connected:
            return self._connection

        # Concurrent first calls must share one handle
        async with self._connect_lock:
            if self.is_connected:
                return self._connection
            return await self._open()

    async def _open(self):
        self.config.require_target()
        if aioodbc is None:
            raise DatabaseConnectionError("aioodbc and pyodbc are required for Azure SQL connections")

        access_token = await self.get_access_token()

        try:
            connection = await aioodbc.connect(
                dsn=self.config.get_connection_string(),
                autocommit=True,
                timeout=self.config.connect_timeout,
                attrs_before={SQL_COPT_SS_ACCESS_TOKEN: encode_access_token(access_token)}
            )
        except DRIVER_ERRORS as e:
            logger.error(f"Azure SQL connection failed: {e}")
            raise DatabaseConnectionError(
                f"Failed to connect to {self.config.server}/{self.config.database}: {_driver_message(e)}",
                details={"server": self.config.server, "database": self.config.database}
            ) from e

        connection.timeout = self.config.request_timeout
        self._connection = connection
        logger.info(f"Connected to Azure SQL {self.config.server}/{self.config.database}")
        return self._connection

    async def execute_query(
        self,
        sql: str,
        parameters: Optional[Sequence[Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute SQL and return the first result set as row dicts.

        Args:
            sql: SQL text, optionally referencing @param0, @param1, ...
            parameters: Positional values for the placeholders

        Returns:
            List of {column name: value} dicts; empty for statements
            that produce no result set
        """
        connection = await self.connect()
        bound_sql, values = bind_parameters(sql, parameters)

        try:
            async with connection.cursor() as cursor:
                await cursor.execute(bound_sql, *values)

                while cursor.description is None:
                    if not await cursor.nextset():
                        return []

                columns = [column[0] for column in cursor.description]
                rows = await cursor.fetchall()
                return [dict(zip(columns, row)) for row in rows]

        except DRIVER_ERRORS as e:
            logger.error(f"Query error: {e}")
            if _is_link_failure(e):
                logger.warning("Connection reported broken, discarding cached handle")
                await self._discard()
            raise QueryExecutionError(_driver_message(e), details={"query": sql[:200]}) from e

    async def _discard(self):
        connection, self._connection = self._connection, None
        try:
            await connection.close()
        except DRIVER_ERRORS as e:
            logger.debug(f"Ignoring close error on broken connection: {e}")

    async def close(self):
        """Close the cached connection, if any."""
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        await connection.close()
        logger.info("Azure SQL connection closed")
