"""Entra ID credential selection and access token acquisition for Azure SQL."""

import logging
import struct
from enum import Enum
from typing import Callable

from azure.core.credentials_async import AsyncTokenCredential
from azure.core.exceptions import AzureError
from azure.identity.aio import ClientSecretCredential, DefaultAzureCredential

from core.config import AZURE_SQL_SCOPE, AzureSQLConfig
from core.exceptions import CredentialError

logger = logging.getLogger(__name__)

# msodbcsql pre-connect attribute carrying the access token
SQL_COPT_SS_ACCESS_TOKEN = 1256


class CredentialKind(str, Enum):
    """Identity source used to obtain the database token."""
    SERVICE_PRINCIPAL = "service_principal"
    AMBIENT_DEFAULT = "ambient_default"


CredentialFactory = Callable[[AzureSQLConfig], AsyncTokenCredential]


def resolve_credential_kind(config: AzureSQLConfig) -> CredentialKind:
    """Pick the service principal only when all three of its fields are set."""
    if config.has_service_principal:
        return CredentialKind.SERVICE_PRINCIPAL
    return CredentialKind.AMBIENT_DEFAULT


def create_credential(config: AzureSQLConfig) -> AsyncTokenCredential:
    """Build the async azure-identity credential for the resolved kind."""
    kind = resolve_credential_kind(config)
    if kind is CredentialKind.SERVICE_PRINCIPAL:
        logger.info("Using service principal authentication")
        return ClientSecretCredential(
            tenant_id=config.tenant_id,
            client_id=config.client_id,
            client_secret=config.client_secret.get_secret_value(),
        )

    # Environment, managed identity, Azure CLI, ... in azure-identity's order
    logger.info("Using DefaultAzureCredential chain")
    return DefaultAzureCredential()


async def acquire_access_token(
    config: AzureSQLConfig,
    credential_factory: CredentialFactory = create_credential
) -> str:
    """Request a bearer token scoped to Azure SQL.

    Raises:
        CredentialError: if no credential source produced a token
    """
    try:
        credential = credential_factory(config)
        async with credential:
            access_token = await credential.get_token(AZURE_SQL_SCOPE)
    except AzureError as e:
        logger.error(f"Token acquisition failed: {type(e).__name__}")
        raise CredentialError(
            f"Failed to acquire Azure SQL access token: {e}",
            details={"credential": resolve_credential_kind(config).value}
        ) from e

    return access_token.token


def encode_access_token(token: str) -> bytes:
    """Pack a token into the length-prefixed UTF-16-LE struct msodbcsql expects."""
    token_bytes = token.encode("UTF-16-LE")
    return struct.pack(f"<I{len(token_bytes)}s", len(token_bytes), token_bytes)
