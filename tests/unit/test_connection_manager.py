"""
連線管理器單元測試

測試延遲連線、token 取得次數、參數綁定與錯誤轉換。
"""

import asyncio
import struct

import pytest

from conftest import FakeDriverError
from core.exceptions import (
    ConfigurationError,
    CredentialError,
    DatabaseConnectionError,
    QueryExecutionError,
)
from database.connection import ConnectionManager, bind_parameters
from database.credentials import SQL_COPT_SS_ACCESS_TOKEN


class TestBindParameters:
    """@paramN 參數綁定測試"""

    def test_no_parameters_returns_sql_unchanged(self):
        """✅ 無參數時 SQL 不變"""
        sql, values = bind_parameters("SELECT 1 as test")
        assert sql == "SELECT 1 as test"
        assert values == []

    def test_named_placeholders_become_markers(self):
        """✅ @param0/@param1 轉為 ? 並依出現順序排列值"""
        sql, values = bind_parameters(
            "SELECT * FROM t WHERE b = @param1 AND a = @param0",
            ["a-value", "b-value"]
        )
        assert sql == "SELECT * FROM t WHERE b = ? AND a = ?"
        assert values == ["b-value", "a-value"]

    def test_repeated_placeholder_binds_twice(self):
        """✅ 同一參數出現兩次會綁定兩次"""
        sql, values = bind_parameters("SELECT @param0, @param0", [5])
        assert sql == "SELECT ?, ?"
        assert values == [5, 5]

    def test_param10_not_confused_with_param1(self):
        """✅ @param10 不會被當成 @param1"""
        parameters = list(range(11))
        sql, values = bind_parameters("SELECT @param10, @param1", parameters)
        assert sql == "SELECT ?, ?"
        assert values == [10, 1]

    def test_qmark_style_passes_parameters_in_order(self):
        """✅ 使用 ? 的 SQL 直接依序帶入參數"""
        sql, values = bind_parameters("SELECT * FROM t WHERE a = ? AND b = ?", ["x", "y"])
        assert sql == "SELECT * FROM t WHERE a = ? AND b = ?"
        assert values == ["x", "y"]

    def test_unused_parameters_are_dropped(self):
        """✅ SQL 沒有任何參數標記時不傳入多餘的值"""
        sql, values = bind_parameters("SELECT 1 as test", ["unused", 42])
        assert sql == "SELECT 1 as test"
        assert values == []

    def test_missing_parameter_value(self):
        """❌ 參照超出範圍的 @paramN"""
        with pytest.raises(QueryExecutionError, match="@param2"):
            bind_parameters("SELECT @param0, @param2", ["only-one"])


class TestConnect:
    """connect() 測試"""

    @pytest.mark.asyncio
    async def test_connect_opens_with_token_and_tls(self, manager, fake_driver, fake_credential):
        """✅ 首次連線取得 token 並以加密設定開啟"""
        connection = await manager.connect()

        assert manager.is_connected is True
        assert fake_driver.connect.await_count == 1
        kwargs = fake_driver.connect_kwargs[0]
        assert kwargs["autocommit"] is True
        assert kwargs["timeout"] == 30
        assert "Encrypt=yes" in kwargs["dsn"]
        assert "TrustServerCertificate=no" in kwargs["dsn"]
        assert "UID=" not in kwargs["dsn"]
        assert connection.timeout == 30

        token_bytes = "fake-token".encode("UTF-16-LE")
        expected = struct.pack(f"<I{len(token_bytes)}s", len(token_bytes), token_bytes)
        assert kwargs["attrs_before"] == {SQL_COPT_SS_ACCESS_TOKEN: expected}
        assert fake_credential.scopes == ("https://database.windows.net/.default",)

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(self, manager, fake_driver, credential_factory):
        """✅ 已連線時不重新取得 token 或重新握手"""
        first = await manager.connect()
        second = await manager.connect()

        assert first is second
        assert fake_driver.connect.await_count == 1
        assert credential_factory.call_count == 1

    @pytest.mark.asyncio
    async def test_reconnects_after_handle_closed(self, manager, fake_driver, credential_factory):
        """✅ 連線被驅動關閉後重新取得 token 並連線"""
        first = await manager.connect()
        first.closed = True

        second = await manager.connect()

        assert second is not first
        assert fake_driver.connect.await_count == 2
        assert credential_factory.call_count == 2

    @pytest.mark.asyncio
    async def test_missing_server_is_configuration_error(self, credential_factory, fake_driver):
        """❌ 未設定 server/database 時不請求 token"""
        from core.config import AzureSQLConfig

        manager = ConnectionManager(AzureSQLConfig(), credential_factory=credential_factory)

        with pytest.raises(ConfigurationError, match="AZURE_SQL_SERVER"):
            await manager.connect()
        credential_factory.assert_not_called()
        fake_driver.connect.assert_not_called()

    @pytest.mark.asyncio
    async def test_driver_failure_is_connection_error(self, manager, fake_driver):
        """❌ 握手失敗轉為 DatabaseConnectionError 且不重試"""
        fake_driver.connect_error = FakeDriverError("28000", "Login failed for user '<token-identified principal>'")

        with pytest.raises(DatabaseConnectionError, match="Login failed"):
            await manager.connect()

        assert manager.is_connected is False
        assert fake_driver.connect.await_count == 1

    @pytest.mark.asyncio
    async def test_credential_failure_propagates(self, azure_config, fake_driver):
        """❌ 憑證失敗轉為 CredentialError"""
        from azure.core.exceptions import ClientAuthenticationError
        from conftest import FakeCredential

        credential = FakeCredential(error=ClientAuthenticationError("no identity available"))
        manager = ConnectionManager(azure_config, credential_factory=lambda config: credential)

        with pytest.raises(CredentialError, match="no identity available"):
            await manager.connect()
        fake_driver.connect.assert_not_called()


class TestExecuteQuery:
    """execute_query() 測試"""

    @pytest.mark.asyncio
    async def test_select_returns_row_dicts(self, manager, fake_driver):
        """✅ SELECT 1 as test 回傳一列"""
        fake_driver.responses.append([{"test": 1}])

        rows = await manager.execute_query("SELECT 1 as test")

        assert rows == [{"test": 1}]
        assert fake_driver.executed == [("SELECT 1 as test", ())]

    @pytest.mark.asyncio
    async def test_parameters_are_bound(self, manager, fake_driver):
        """✅ 參數以 ? 綁定傳給驅動"""
        fake_driver.responses.append([{"id": 7}])

        await manager.execute_query("SELECT id FROM t WHERE name = @param0", ["alice"])

        assert fake_driver.executed == [("SELECT id FROM t WHERE name = ?", ("alice",))]

    @pytest.mark.asyncio
    async def test_statement_without_result_set(self, manager, fake_driver):
        """✅ DDL 無結果集時回傳空列表"""
        fake_driver.responses.append(None)

        rows = await manager.execute_query("DROP VIEW IF EXISTS v")

        assert rows == []

    @pytest.mark.asyncio
    async def test_two_queries_share_one_connection(self, manager, fake_driver, credential_factory):
        """✅ 連續兩次查詢只取得一次 token、連線一次"""
        fake_driver.responses.extend([[{"a": 1}], [{"b": 2}]])

        await manager.execute_query("SELECT 1 as a")
        await manager.execute_query("SELECT 2 as b")

        assert credential_factory.call_count == 1
        assert fake_driver.connect.await_count == 1

    @pytest.mark.asyncio
    async def test_failed_query_keeps_connection(self, manager, fake_driver):
        """❌ 查詢失敗保留伺服器訊息，連線仍可使用"""
        fake_driver.responses.extend([
            FakeDriverError("42000", "Incorrect syntax near 'SELEC'."),
            [{"ok": 1}],
        ])

        with pytest.raises(QueryExecutionError, match="Incorrect syntax near 'SELEC'"):
            await manager.execute_query("SELEC 1")

        assert manager.is_connected is True
        rows = await manager.execute_query("SELECT 1 as ok")
        assert rows == [{"ok": 1}]
        assert fake_driver.connect.await_count == 1

    @pytest.mark.asyncio
    async def test_link_failure_discards_connection(self, manager, fake_driver, credential_factory):
        """❌ 通訊中斷 (SQLSTATE 08) 後下一次呼叫重新連線"""
        fake_driver.responses.extend([
            FakeDriverError("08S01", "Communication link failure"),
            [{"ok": 1}],
        ])

        with pytest.raises(QueryExecutionError, match="Communication link failure"):
            await manager.execute_query("SELECT 1 as ok")

        assert manager.is_connected is False
        assert fake_driver.connections[0].close_calls == 1

        await manager.execute_query("SELECT 1 as ok")
        assert fake_driver.connect.await_count == 2
        assert credential_factory.call_count == 2


class TestConcurrentConnect:
    """併發首次連線測試"""

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_share_connection(self, manager, fake_driver, credential_factory):
        """✅ 兩個同時的首次查詢只開啟一條連線，關閉後沒有遺留連線"""
        fake_driver.connect_delay = 0.05
        fake_driver.responses.extend([[{"a": 1}], [{"b": 2}]])

        results = await asyncio.gather(
            manager.execute_query("SELECT 1 as a"),
            manager.execute_query("SELECT 2 as b"),
        )
        await manager.close()

        assert sorted(results, key=str) == [[{"a": 1}], [{"b": 2}]]
        assert fake_driver.connect.await_count == 1
        assert credential_factory.call_count == 1
        assert [connection.closed for connection in fake_driver.connections] == [True]

    @pytest.mark.asyncio
    async def test_failed_connect_is_not_cached(self, manager, fake_driver):
        """❌ 連線失敗不會被快取，之後的呼叫會再嘗試"""
        fake_driver.connect_error = FakeDriverError("08001", "TCP Provider: timeout")

        with pytest.raises(DatabaseConnectionError):
            await manager.connect()

        fake_driver.connect_error = None
        await manager.connect()
        assert manager.is_connected is True
        assert fake_driver.connect.await_count == 2


class TestClose:
    """close() 測試"""

    @pytest.mark.asyncio
    async def test_close_without_connection_is_noop(self, manager, fake_driver):
        """✅ 尚未連線時 close 不做任何事"""
        await manager.close()
        assert manager.is_connected is False
        fake_driver.connect.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_releases_handle(self, manager, fake_driver):
        """✅ close 關閉並清除快取連線"""
        connection = await manager.connect()

        await manager.close()
        await manager.close()

        assert connection.close_calls == 1
        assert manager.is_connected is False
