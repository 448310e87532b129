"""MTN MOMO provider package."""

from momoapi.providers.momo.auth import (
    BasicAuthSigner,
    BearerTokenSigner,
    InMemoryCredentialStore,
)
from momoapi.providers.momo.client import MomoApiClient

__all__ = [
    "BasicAuthSigner",
    "BearerTokenSigner",
    "InMemoryCredentialStore",
    "MomoApiClient",
]
