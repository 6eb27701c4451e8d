"""Configuration management for the Azure SQL MCP Server."""

import logging
import os
from typing import Optional
from pathlib import Path
from pydantic import BaseModel, Field, SecretStr
from dotenv import load_dotenv

from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# 載入 .env 檔案：ENV_FILE_PATH 優先，其次工作目錄與專案根目錄
_env_loaded = False

env_file = os.getenv('ENV_FILE_PATH')
if env_file and Path(env_file).exists():
    load_dotenv(env_file, override=False)
    _env_loaded = True
else:
    possible_paths = [
        Path.cwd() / '.env',
        Path(__file__).parent.parent.parent / '.env',
    ]
    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(str(env_path), override=False)
            _env_loaded = True
            break

if not _env_loaded:
    load_dotenv()


AZURE_SQL_SCOPE = "https://database.windows.net/.default"
DEFAULT_MSSQL_DRIVER = "ODBC Driver 18 for SQL Server"


def detect_mssql_driver() -> str:
    """Detect the installed Microsoft ODBC driver.

    Returns:
        str: Driver name, preferring Driver 18 > Driver 17
    """
    try:
        import pyodbc
    except ImportError:
        # pyodbc 不可用，使用預設值
        return DEFAULT_MSSQL_DRIVER

    try:
        available_drivers = pyodbc.drivers()
    except pyodbc.Error as e:
        logger.debug(f"ODBC driver detection failed: {e}")
        return DEFAULT_MSSQL_DRIVER

    preferred_drivers = [
        "ODBC Driver 18 for SQL Server",
        "ODBC Driver 17 for SQL Server",
    ]

    for driver in preferred_drivers:
        if driver in available_drivers:
            return driver

    for driver in available_drivers:
        if "SQL Server" in driver:
            return driver

    return DEFAULT_MSSQL_DRIVER


def _env_or_none(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


class AzureSQLConfig(BaseModel):
    """Azure SQL Database connection and identity settings."""

    server: Optional[str] = Field(default=None, description="Azure SQL logical server host name")
    database: Optional[str] = Field(default=None, description="Database name")
    port: int = Field(default=1433, description="TDS port")
    driver: str = Field(default=DEFAULT_MSSQL_DRIVER, description="ODBC driver for SQL Server")

    tenant_id: Optional[str] = Field(default=None, description="Entra ID tenant for the service principal")
    client_id: Optional[str] = Field(default=None, description="Service principal application id")
    client_secret: Optional[SecretStr] = Field(default=None, description="Service principal secret")

    # Transport security and timeouts are fixed, not read from the environment
    encrypt: bool = True
    trust_server_certificate: bool = False
    connect_timeout: int = 30
    request_timeout: int = 30

    @classmethod
    def from_env(cls) -> "AzureSQLConfig":
        """Create configuration from environment variables."""
        secret = _env_or_none("AZURE_CLIENT_SECRET")
        return cls(
            server=_env_or_none("AZURE_SQL_SERVER"),
            database=_env_or_none("AZURE_SQL_DATABASE"),
            port=int(os.getenv("AZURE_SQL_PORT", "1433")),
            driver=os.getenv("MSSQL_DRIVER") or detect_mssql_driver(),
            tenant_id=_env_or_none("AZURE_TENANT_ID"),
            client_id=_env_or_none("AZURE_CLIENT_ID"),
            client_secret=SecretStr(secret) if secret else None,
        )

    @property
    def has_service_principal(self) -> bool:
        """True when tenant id, client id and client secret are all present."""
        return bool(
            self.tenant_id
            and self.client_id
            and self.client_secret
            and self.client_secret.get_secret_value()
        )

    def require_target(self) -> None:
        """Raise ConfigurationError unless server and database are configured."""
        missing = []
        if not self.server:
            missing.append("AZURE_SQL_SERVER")
        if not self.database:
            missing.append("AZURE_SQL_DATABASE")
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                details={"missing": missing}
            )

    def get_connection_string(self) -> str:
        """Generate the ODBC connection string for token authentication.

        No UID/PWD is included; the access token is supplied as a
        pre-connect attribute.
        """
        parts = [
            f"DRIVER={{{self.driver}}}",
            f"SERVER=tcp:{self.server},{self.port}",
            f"DATABASE={self.database}",
            f"Encrypt={'yes' if self.encrypt else 'no'}",
            f"TrustServerCertificate={'yes' if self.trust_server_certificate else 'no'}",
            f"Connection Timeout={self.connect_timeout}",
        ]
        return ";".join(parts)


class HTTPConfig(BaseModel):
    """HTTP server configuration including rate limiting and CORS."""

    rate_limit_default: str = Field(
        default="100/minute",
        description="Default rate limit for all endpoints"
    )
    rate_limit_tools: str = Field(
        default="30/minute",
        description="Rate limit for tool invocation endpoints"
    )
    cors_preflight_max_age: int = Field(
        default=600,
        description="CORS preflight max age in seconds"
    )

    @classmethod
    def from_env(cls) -> "HTTPConfig":
        """Create HTTP configuration from environment variables."""
        return cls(
            rate_limit_default=os.getenv("RATE_LIMIT_DEFAULT", "100/minute"),
            rate_limit_tools=os.getenv("RATE_LIMIT_TOOLS", "30/minute"),
            cors_preflight_max_age=int(os.getenv("CORS_PREFLIGHT_MAX_AGE", "600"))
        )


class AppConfig(BaseModel):
    """Application configuration combining all configs."""

    azure_sql: AzureSQLConfig
    http_config: HTTPConfig
    server_name: str = Field(default="azure-sql-mcp-server", description="MCP server name identifier")
    server_version: str = "1.0.0"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create full application configuration from environment variables."""
        return cls(
            azure_sql=AzureSQLConfig.from_env(),
            http_config=HTTPConfig.from_env(),
            server_name=os.getenv("MCP_SERVER_NAME", "azure-sql-mcp-server"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper()
        )
