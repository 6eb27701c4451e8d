"""Database access for the Azure SQL MCP Server."""

from .connection import ConnectionManager, bind_parameters
from .credentials import CredentialKind, create_credential, resolve_credential_kind

__all__ = [
    "ConnectionManager",
    "bind_parameters",
    "CredentialKind",
    "create_credential",
    "resolve_credential_kind"
]
