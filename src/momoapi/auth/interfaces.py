"""Abstract interfaces for the authentication layer.

This module defines the credential types and the contracts that the store
and the request signers implement.  It is free of transport details so that
the signing policies can be tested without any HTTP machinery, and so that
an application can inject its own store (e.g. one backed by a keyring).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import requests


@dataclass(frozen=True)
class BasicAuthCredentials:
    """Provisioning identity used for HTTP Basic authentication.

    Considered present only when both fields are non-empty.

    Attributes:
        api_user_id: The API user UUID.
        api_key: The API key generated for that user.
    """

    api_user_id: str = ""
    api_key: str = ""

    @property
    def is_present(self) -> bool:
        return bool(self.api_user_id) and bool(self.api_key)


@dataclass(frozen=True)
class AccessTokenCredentials:
    """Bearer token used for transactional calls.

    Considered valid whenever non-empty.  Expiry is not checked here; the
    server answers 401 once the token has expired.
    """

    access_token: str = ""

    @property
    def is_present(self) -> bool:
        return bool(self.access_token)


@dataclass(frozen=True)
class StoredCredentials:
    """Snapshot of both credentials held by a :class:`CredentialStore`."""

    basic: BasicAuthCredentials
    bearer: AccessTokenCredentials


class CredentialStore(ABC):
    """Holds the current Basic and Bearer credentials.

    Implementations are injected into the signers and the repository.
    Mutations replace the credentials wholesale; the last writer wins.
    Requests signed after a mutation see the new values, requests already
    sent are unaffected.
    """

    @abstractmethod
    def set_basic_auth(self, api_user_id: str, api_key: str) -> None:
        """Replace the Basic credentials."""

    @abstractmethod
    def set_access_token(self, access_token: str) -> None:
        """Replace the Bearer token."""

    @abstractmethod
    def clear(self) -> None:
        """Reset both credentials to empty values."""

    @abstractmethod
    def get(self) -> StoredCredentials:
        """Return a consistent snapshot of both credentials."""

    def has_basic_auth(self) -> bool:
        """Return ``True`` if both the API user ID and key are non-empty."""
        return self.get().basic.is_present

    def has_valid_access_token(self) -> bool:
        """Return ``True`` if an access token is stored."""
        return self.get().bearer.is_present


class RequestSigner(ABC):
    """A transform applied to an outgoing request before it is sent.

    A signer adds its ``Authorization`` header only when its credential is
    present.  It never fails the request: an unsigned request is forwarded
    as is and the server's 401/403 is reported to the caller.

    Attributes:
        scheme: The authentication scheme the signer implements.  The API
            client applies a signer only to endpoints declaring that scheme.
    """

    scheme: str

    @abstractmethod
    def __call__(self, request: requests.Request) -> requests.Request:
        """Return ``request``, signed if the credential is available."""
