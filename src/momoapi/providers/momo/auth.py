"""MOMO credential store and request signers.

Three pieces are defined here:

* :class:`InMemoryCredentialStore` — a lock-guarded holder for the current
  Basic and Bearer credentials, injected into the signers and the
  repository.

* :class:`BasicAuthSigner` — adds ``Authorization: Basic <b64>`` built from
  the API user ID and API key.  Used by the token endpoints.

* :class:`BearerTokenSigner` — adds ``Authorization: Bearer <token>``.
  Used by every transactional endpoint.

Neither signer raises when its credential is missing: the request goes out
unsigned and the provider's 401 is surfaced as an error result.
"""

import base64
import logging
import threading

import requests

from momoapi.auth.interfaces import (
    AccessTokenCredentials,
    BasicAuthCredentials,
    CredentialStore,
    RequestSigner,
    StoredCredentials,
)
from momoapi.core.constants import Headers, TokenType

logger = logging.getLogger(__name__)


class InMemoryCredentialStore(CredentialStore):
    """Process-local credential holder.

    Created empty unless initial values are given.  Reads return a frozen
    snapshot, so a signer never observes a half-written pair.
    """

    def __init__(
        self,
        basic: BasicAuthCredentials | None = None,
        bearer: AccessTokenCredentials | None = None,
    ):
        """Initialise the store.

        Args:
            basic: Initial Basic credentials.  Empty when omitted.
            bearer: Initial Bearer token.  Empty when omitted.
        """
        self._lock = threading.Lock()
        self._basic = basic or BasicAuthCredentials()
        self._bearer = bearer or AccessTokenCredentials()

    # -------------------------
    # CredentialStore interface
    # -------------------------

    def set_basic_auth(self, api_user_id: str, api_key: str) -> None:
        with self._lock:
            self._basic = BasicAuthCredentials(api_user_id, api_key)

    def set_access_token(self, access_token: str) -> None:
        with self._lock:
            self._bearer = AccessTokenCredentials(access_token)

    def clear(self) -> None:
        with self._lock:
            self._basic = BasicAuthCredentials("", "")
            self._bearer = AccessTokenCredentials("")

    def get(self) -> StoredCredentials:
        with self._lock:
            return StoredCredentials(basic=self._basic, bearer=self._bearer)


def _with_authorization(
    request: requests.Request, value: str
) -> requests.Request:
    request.headers = {
        **(request.headers or {}),
        Headers.AUTHORIZATION: value,
    }
    return request


class BasicAuthSigner(RequestSigner):
    """Signs requests with HTTP Basic authentication."""

    scheme = TokenType.BASIC.value

    def __init__(self, store: CredentialStore):
        """Initialise the signer.

        Args:
            store: The store read at signing time.
        """
        self._store = store

    def __call__(self, request: requests.Request) -> requests.Request:
        """Attach the Basic header when both user ID and key are set.

        Args:
            request: The outgoing request.

        Returns:
            The same request, with ``Authorization`` set if the
            credentials are present.
        """
        basic = self._store.get().basic
        if not basic.is_present:
            logger.debug("Basic credentials absent; sending %s unsigned",
                         request.url)
            return request
        token = base64.b64encode(
            f"{basic.api_user_id}:{basic.api_key}".encode("utf-8")
        ).decode("ascii")
        return _with_authorization(request, f"{TokenType.BASIC.value} {token}")


class BearerTokenSigner(RequestSigner):
    """Signs requests with the current access token."""

    scheme = TokenType.BEARER.value

    def __init__(self, store: CredentialStore):
        """Initialise the signer.

        Args:
            store: The store read at signing time.
        """
        self._store = store

    def __call__(self, request: requests.Request) -> requests.Request:
        """Attach the Bearer header when a token is stored.

        Args:
            request: The outgoing request.

        Returns:
            The same request, with ``Authorization`` set if a token is
            present.
        """
        bearer = self._store.get().bearer
        if not bearer.is_present:
            logger.debug("No access token; sending %s unsigned", request.url)
            return request
        return _with_authorization(
            request, f"{TokenType.BEARER.value} {bearer.access_token}"
        )


def default_signers(store: CredentialStore) -> list[RequestSigner]:
    """Return the standard signer chain (Basic, then Bearer) for ``store``."""
    return [BasicAuthSigner(store), BearerTokenSigner(store)]
