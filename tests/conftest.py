"""
pytest 配置文件

提供測試環境設定、假的 ODBC 驅動與 Azure 憑證 fixtures
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, Mock, patch

import pytest
from azure.core.credentials import AccessToken

# 添加 src 目錄到 Python 路徑
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from core.config import AzureSQLConfig  # noqa: E402


class FakeDriverError(Exception):
    """pyodbc 風格的錯誤：args = (sqlstate, message)"""


class FakeCursor:
    """最小 aioodbc cursor 替身，依序回放 connection.responses"""

    def __init__(self, connection: "FakeConnection"):
        self.connection = connection
        self.description = None
        self._rows: List[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, sql: str, *params):
        self.connection.executed.append((sql, params))
        response = self.connection.responses.pop(0) if self.connection.responses else None
        if isinstance(response, Exception):
            raise response
        if response is None:
            # 沒有結果集（DDL 等）
            self.description = None
            self._rows = []
            return
        columns = list(response[0].keys()) if response else []
        self.description = [(column,) for column in columns]
        self._rows = [tuple(row[column] for column in columns) for row in response]

    async def nextset(self):
        return False

    async def fetchall(self):
        return list(self._rows)


class FakeConnection:
    """最小 aioodbc connection 替身"""

    def __init__(self):
        self.closed = False
        self.timeout = 0
        self.close_calls = 0
        self.executed: List[tuple] = []
        self.responses: List[Any] = []

    def cursor(self):
        return FakeCursor(self)

    async def close(self):
        self.close_calls += 1
        self.closed = True


class FakeDriver:
    """替換 database.connection.aioodbc，記錄每次 connect 呼叫"""

    def __init__(self):
        self.connections: List[FakeConnection] = []
        self.connect_kwargs: List[Dict[str, Any]] = []
        self.responses: List[Any] = []
        self.connect_error: Optional[Exception] = None
        self.connect_delay = 0.0
        self.connect = AsyncMock(side_effect=self._connect)

    async def _connect(self, **kwargs):
        self.connect_kwargs.append(kwargs)
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.connect_error is not None:
            raise self.connect_error
        connection = FakeConnection()
        # 預先排好的回應交給新連線
        connection.responses = self.responses
        self.connections.append(connection)
        return connection

    @property
    def executed(self) -> List[tuple]:
        return [item for connection in self.connections for item in connection.executed]


class FakeCredential:
    """azure-identity 非同步憑證替身"""

    def __init__(self, token: str = "fake-token", error: Optional[Exception] = None):
        self.token = token
        self.error = error
        self.get_token_calls = 0
        self.scopes = None
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True
        return False

    async def get_token(self, *scopes, **kwargs):
        self.get_token_calls += 1
        self.scopes = scopes
        if self.error is not None:
            raise self.error
        return AccessToken(self.token, 4102444800)


@pytest.fixture
def azure_config():
    """已設定 server/database、未設定 service principal 的配置"""
    return AzureSQLConfig(
        server="contoso.database.windows.net",
        database="salesdb",
        driver="ODBC Driver 18 for SQL Server",
    )


@pytest.fixture
def fake_credential():
    return FakeCredential()


@pytest.fixture
def credential_factory(fake_credential):
    """每次 token 取得都會呼叫一次的工廠"""
    return Mock(return_value=fake_credential)


@pytest.fixture
def fake_driver():
    driver = FakeDriver()
    with patch("database.connection.aioodbc", driver), \
            patch("database.connection.DRIVER_ERRORS", (FakeDriverError,)):
        yield driver


@pytest.fixture
def manager(azure_config, credential_factory, fake_driver):
    from database.connection import ConnectionManager

    return ConnectionManager(azure_config, credential_factory=credential_factory)


@pytest.fixture
def registry(manager):
    from tools.registry import ToolRegistry

    return ToolRegistry(manager)
