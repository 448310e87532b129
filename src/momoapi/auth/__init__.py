"""Authentication layer — interfaces and credential storage."""

from momoapi.auth.interfaces import (
    AccessTokenCredentials,
    BasicAuthCredentials,
    CredentialStore,
    RequestSigner,
    StoredCredentials,
)

__all__ = [
    "AccessTokenCredentials",
    "BasicAuthCredentials",
    "CredentialStore",
    "RequestSigner",
    "StoredCredentials",
]
