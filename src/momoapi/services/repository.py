"""Repository layer: the single entry point callers use.

Every public method picks the endpoint and credential pairing, fills in the
API version, target environment and subscription key defaults from
:class:`~momoapi.core.settings.MomoSettings`, sends exactly one request and
normalises the outcome into a :data:`~momoapi.core.result.Result`.  No
method raises; every failure becomes an :class:`~momoapi.core.result.Error`.
"""

import functools
import logging
import time
from collections.abc import Callable, Iterator

import requests

from momoapi.auth.interfaces import (
    AccessTokenCredentials,
    BasicAuthCredentials,
    CredentialStore,
)
from momoapi.core.constants import Headers, ProductType
from momoapi.core.models import (
    AccessToken,
    AccountBalance,
    AccountHolder,
    AccountHolderStatus,
    ApiKey,
    ApiUser,
    BasicUserInfo,
    MomoNotification,
    MomoTransaction,
    Oauth2AccessToken,
    ProviderCallBackHost,
    UserInfoWithConsent,
    WireModel,
)
from momoapi.core.result import Error, Loading, Result, Success
from momoapi.core.settings import (
    MomoSettings,
    generate_request_id,
    resolve_subscription_key,
)
from momoapi.providers.momo.auth import InMemoryCredentialStore, default_signers
from momoapi.providers.momo.client import MomoApiClient, parse_error_response
from momoapi.providers.momo.endpoints import Endpoint, get_endpoint

logger = logging.getLogger(__name__)


def _returns_error(method):
    """Turn any exception raised by an endpoint method into an ``Error``.

    Covers argument resolution (product type, subscription key, path
    values) as well as the request itself.
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s failed: %s", method.__name__, exc)
            return Error(str(exc) or exc.__class__.__name__)

    return wrapper


class MomoRepository:
    """Typed access to every MOMO operation, returning ``Result`` values.

    The repository, the signers and the application share one
    :class:`~momoapi.auth.interfaces.CredentialStore`.  Set the Basic
    credentials before requesting a token, then store the token before
    making transactional calls::

        repo = MomoRepository.create(MomoSettings.from_env())
        repo.set_basic_auth(api_user_id, api_key)
        result = repo.get_access_token(ProductType.COLLECTION)
        if isinstance(result, Success):
            repo.set_access_token(result.value.access_token)
    """

    def __init__(
        self,
        client: MomoApiClient,
        settings: MomoSettings,
        credentials: CredentialStore,
    ):
        """Initialise the repository.

        Args:
            client: The API client.  Its signers must read ``credentials``.
            settings: Source of the per-call defaults.
            credentials: The store the client's signers read from.
        """
        self.client = client
        self.settings = settings
        self.credentials = credentials

    @classmethod
    def create(
        cls,
        settings: MomoSettings | None = None,
        credentials: CredentialStore | None = None,
        session: requests.Session | None = None,
    ) -> "MomoRepository":
        """Wire a store, the default signers and a client together.

        Args:
            settings: Client settings.  Read from the environment when
                omitted.
            credentials: Credential store.  A new empty
                :class:`InMemoryCredentialStore` when omitted.
            session: Optional :class:`requests.Session` for the client.

        Returns:
            A ready-to-use :class:`MomoRepository`.
        """
        settings = settings or MomoSettings.from_env()
        credentials = credentials or InMemoryCredentialStore()
        client = MomoApiClient.from_settings(
            settings, signers=default_signers(credentials), session=session
        )
        return cls(client, settings, credentials)

    # ----------------------
    # Credentials
    # ----------------------

    def set_basic_auth(self, api_user_id: str, api_key: str) -> None:
        """Store the API user ID and key used for Basic authentication."""
        self.credentials.set_basic_auth(api_user_id, api_key)

    def set_access_token(self, access_token: str) -> None:
        """Store the token used for Bearer authentication."""
        self.credentials.set_access_token(access_token)

    def clear_credentials(self) -> None:
        """Reset both credentials to empty values."""
        self.credentials.clear()

    def get_basic_auth(self) -> BasicAuthCredentials:
        """Return the current Basic credentials."""
        return self.credentials.get().basic

    def get_access_token_auth(self) -> AccessTokenCredentials:
        """Return the current Bearer token."""
        return self.credentials.get().bearer

    def has_basic_auth(self) -> bool:
        """Return ``True`` if both the API user ID and key are set."""
        return self.credentials.has_basic_auth()

    def has_valid_access_token(self) -> bool:
        """Return ``True`` if an access token is stored."""
        return self.credentials.has_valid_access_token()

    # ----------------------
    # Authentication
    # ----------------------

    @_returns_error
    def create_api_user(
        self,
        provider_callback_host: ProviderCallBackHost | str | None = None,
        api_user_id: str | None = None,
        *,
        product_type: ProductType | str = ProductType.COLLECTION,
        api_version: str | None = None,
        subscription_key: str | None = None,
    ) -> Result[str]:
        """Register a new API user with the provider.

        Args:
            provider_callback_host: Callback host for the user.  Defaults to
                ``settings.provider_callback_host``.
            api_user_id: UUID for the new user, sent as ``X-Reference-Id``.
                Defaults to ``settings.api_user_id``, or a fresh UUID.
            product_type: Product whose subscription key authorises the
                call.
            api_version: API version path segment.
            subscription_key: Overrides the resolved subscription key.

        Returns:
            ``Success`` carrying the API user ID on 201 Created.
        """
        if not isinstance(provider_callback_host, ProviderCallBackHost):
            provider_callback_host = ProviderCallBackHost(
                provider_callback_host or self.settings.provider_callback_host
            )
        api_user_id = (
            api_user_id or self.settings.api_user_id or generate_request_id()
        )
        return self._safe_call(
            "create_api_user",
            path_params={"apiVersion": self._version(api_version)},
            headers={
                Headers.X_REFERENCE_ID: api_user_id,
                Headers.OCP_APIM_SUBSCRIPTION_KEY: self._key(
                    product_type, subscription_key
                ),
            },
            body=provider_callback_host,
            empty_value=api_user_id,
        )

    @_returns_error
    def get_api_user(
        self,
        api_user_id: str | None = None,
        *,
        product_type: ProductType | str = ProductType.COLLECTION,
        api_version: str | None = None,
        subscription_key: str | None = None,
    ) -> Result[ApiUser]:
        """Fetch an API user; defaults to ``settings.api_user_id``."""
        return self._safe_call(
            "get_api_user",
            path_params={
                "apiVersion": self._version(api_version),
                "apiUser": api_user_id or self.settings.api_user_id,
            },
            headers={
                Headers.OCP_APIM_SUBSCRIPTION_KEY: self._key(
                    product_type, subscription_key
                ),
            },
        )

    @_returns_error
    def create_api_key(
        self,
        api_user_id: str | None = None,
        *,
        product_type: ProductType | str = ProductType.COLLECTION,
        api_version: str | None = None,
        subscription_key: str | None = None,
    ) -> Result[ApiKey]:
        """Generate a new API key for an API user.

        Each call invalidates the previous key of that user.
        """
        return self._safe_call(
            "create_api_key",
            path_params={
                "apiVersion": self._version(api_version),
                "apiUser": api_user_id or self.settings.api_user_id,
            },
            headers={
                Headers.OCP_APIM_SUBSCRIPTION_KEY: self._key(
                    product_type, subscription_key
                ),
            },
        )

    @_returns_error
    def get_access_token(
        self,
        product_type: ProductType | str,
        *,
        subscription_key: str | None = None,
    ) -> Result[AccessToken]:
        """Request an access token for ``product_type``.

        Signed with the Basic credentials held by the store.  When none are
        set the request goes out unsigned and the provider's 401 is
        returned as an ``Error``.
        """
        return self._safe_call(
            "get_access_token",
            path_params={"productType": ProductType(product_type).value},
            headers={
                Headers.OCP_APIM_SUBSCRIPTION_KEY: self._key(
                    product_type, subscription_key
                ),
            },
        )

    @_returns_error
    def get_oauth2_access_token(
        self,
        product_type: ProductType | str,
        *,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[Oauth2AccessToken]:
        """Request an OAuth 2.0 access token for ``product_type``."""
        return self._safe_call(
            "get_oauth2_access_token",
            path_params={"productType": ProductType(product_type).value},
            headers=self._product_headers(
                product_type, subscription_key, environment
            ),
        )

    # ----------------------
    # Common
    # ----------------------

    @_returns_error
    def get_basic_user_info(
        self,
        account_holder_id: str,
        product_type: ProductType | str = ProductType.COLLECTION,
        *,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[BasicUserInfo]:
        """Fetch basic information about the holder of an MSISDN."""
        return self._safe_call(
            "get_basic_user_info",
            path_params={
                "productType": ProductType(product_type).value,
                "apiVersion": self._version(api_version),
                "accountHolderId": account_holder_id,
            },
            headers=self._product_headers(
                product_type, subscription_key, environment
            ),
        )

    @_returns_error
    def validate_account_holder_status(
        self,
        account_holder: AccountHolder,
        product_type: ProductType | str = ProductType.COLLECTION,
        *,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[AccountHolderStatus]:
        """Check whether an account holder is registered and active."""
        return self._safe_call(
            "validate_account_holder_status",
            path_params={
                "productType": ProductType(product_type).value,
                "apiVersion": self._version(api_version),
                "accountHolderIdType": account_holder.party_id_type.lower(),
                "accountHolderId": account_holder.party_id,
            },
            headers=self._product_headers(
                product_type, subscription_key, environment
            ),
        )

    @_returns_error
    def get_account_balance(
        self,
        product_type: ProductType | str = ProductType.COLLECTION,
        currency: str | None = None,
        *,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[AccountBalance]:
        """Fetch the merchant account balance.

        With a non-blank ``currency`` the currency-scoped endpoint is used,
        otherwise the default balance endpoint.  The provider only serves
        this reliably for the Collection product; other products may fail.

        Args:
            product_type: The product whose account is queried.
            currency: ISO 4217 code (``EUR`` on the sandbox), or ``None``.
        """
        path_params = {
            "productType": ProductType(product_type).value,
            "apiVersion": self._version(api_version),
        }
        headers = self._product_headers(
            product_type, subscription_key, environment
        )
        if currency and currency.strip():
            path_params["currency"] = currency.strip()
            return self._safe_call(
                "get_account_balance_in_currency",
                path_params=path_params,
                headers=headers,
            )
        return self._safe_call(
            "get_account_balance", path_params=path_params, headers=headers
        )

    @_returns_error
    def get_user_info_with_consent(
        self,
        product_type: ProductType | str = ProductType.COLLECTION,
        *,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[UserInfoWithConsent]:
        """Fetch the personal information the holder consented to share."""
        return self._safe_call(
            "get_user_info_with_consent",
            path_params={
                "productType": ProductType(product_type).value,
                "apiVersion": self._version(api_version),
            },
            headers=self._product_headers(
                product_type, subscription_key, environment
            ),
        )

    @_returns_error
    def transfer(
        self,
        transaction: MomoTransaction,
        product_type: ProductType | str = ProductType.DISBURSEMENT,
        *,
        reference_id: str | None = None,
        callback_url: str | None = None,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[str]:
        """Transfer money from the merchant account to a payee.

        Returns:
            ``Success`` carrying the ``X-Reference-Id`` to poll with
            :meth:`get_transfer_status`.
        """
        return self._submit(
            "transfer", transaction, product_type, reference_id,
            callback_url, api_version, subscription_key, environment,
        )

    @_returns_error
    def get_transfer_status(
        self,
        reference_id: str,
        product_type: ProductType | str = ProductType.DISBURSEMENT,
        *,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[MomoTransaction]:
        """Fetch the state of a transfer."""
        return self._status(
            "get_transfer_status", reference_id, product_type,
            api_version, subscription_key, environment,
        )

    @_returns_error
    def request_to_pay_delivery_notification(
        self,
        reference_id: str,
        notification: MomoNotification | str,
        product_type: ProductType | str = ProductType.COLLECTION,
        *,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[dict]:
        """Send a notification to the payer of a request to pay.

        The message travels both in the ``notificationMessage`` header and
        in the body.  Check its length with
        :func:`~momoapi.core.settings.is_notification_message_valid` first.
        """
        if not isinstance(notification, MomoNotification):
            notification = MomoNotification(notification)
        headers = self._product_headers(
            product_type, subscription_key, environment
        )
        headers[Headers.NOTIFICATION_MESSAGE] = (
            notification.notification_message
        )
        return self._safe_call(
            "request_to_pay_delivery_notification",
            path_params={
                "productType": ProductType(product_type).value,
                "apiVersion": self._version(api_version),
                "referenceId": reference_id,
            },
            headers=headers,
            body=notification,
            empty_value=reference_id,
        )

    # ----------------------
    # Collection
    # ----------------------

    @_returns_error
    def request_to_pay(
        self,
        transaction: MomoTransaction,
        *,
        reference_id: str | None = None,
        callback_url: str | None = None,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[str]:
        """Ask a payer to approve a payment to the merchant.

        Returns:
            ``Success`` carrying the reference ID to poll with
            :meth:`request_to_pay_status`.
        """
        return self._submit(
            "request_to_pay", transaction, ProductType.COLLECTION,
            reference_id, callback_url, api_version, subscription_key,
            environment,
        )

    @_returns_error
    def request_to_pay_status(
        self,
        reference_id: str,
        *,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[MomoTransaction]:
        return self._status(
            "request_to_pay_status", reference_id, ProductType.COLLECTION,
            api_version, subscription_key, environment,
        )

    @_returns_error
    def request_to_withdraw(
        self,
        transaction: MomoTransaction,
        *,
        reference_id: str | None = None,
        callback_url: str | None = None,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[str]:
        """Ask an account holder to approve a withdrawal to the merchant."""
        return self._submit(
            "request_to_withdraw", transaction, ProductType.COLLECTION,
            reference_id, callback_url, api_version, subscription_key,
            environment,
        )

    @_returns_error
    def request_to_withdraw_status(
        self,
        reference_id: str,
        *,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[MomoTransaction]:
        return self._status(
            "request_to_withdraw_status", reference_id,
            ProductType.COLLECTION, api_version, subscription_key,
            environment,
        )

    # ----------------------
    # Disbursement
    # ----------------------

    @_returns_error
    def deposit(
        self,
        transaction: MomoTransaction,
        *,
        reference_id: str | None = None,
        callback_url: str | None = None,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[str]:
        """Deposit money into a payee's account."""
        return self._submit(
            "deposit", transaction, ProductType.DISBURSEMENT, reference_id,
            callback_url, api_version, subscription_key, environment,
        )

    @_returns_error
    def deposit_status(
        self,
        reference_id: str,
        *,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[MomoTransaction]:
        return self._status(
            "deposit_status", reference_id, ProductType.DISBURSEMENT,
            api_version, subscription_key, environment,
        )

    @_returns_error
    def refund(
        self,
        transaction: MomoTransaction,
        *,
        reference_id: str | None = None,
        callback_url: str | None = None,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[str]:
        """Refund a previous collection.

        ``transaction.reference_id_to_refund`` must hold the reference ID of
        the original request to pay.
        """
        return self._submit(
            "refund", transaction, ProductType.DISBURSEMENT, reference_id,
            callback_url, api_version, subscription_key, environment,
        )

    @_returns_error
    def refund_status(
        self,
        reference_id: str,
        *,
        api_version: str | None = None,
        subscription_key: str | None = None,
        environment: str | None = None,
    ) -> Result[MomoTransaction]:
        return self._status(
            "refund_status", reference_id, ProductType.DISBURSEMENT,
            api_version, subscription_key, environment,
        )

    # ----------------------
    # Internal helpers
    # ----------------------

    def _version(self, api_version: str | None) -> str:
        return api_version or self.settings.api_version

    def _key(
        self, product_type: ProductType | str, subscription_key: str | None
    ) -> str:
        return subscription_key or resolve_subscription_key(
            product_type, self.settings
        )

    def _product_headers(
        self,
        product_type: ProductType | str,
        subscription_key: str | None,
        environment: str | None,
    ) -> dict[str, str | None]:
        return {
            Headers.OCP_APIM_SUBSCRIPTION_KEY: self._key(
                product_type, subscription_key
            ),
            Headers.X_TARGET_ENVIRONMENT: (
                environment or self.settings.target_environment
            ),
        }

    def _submit(
        self,
        name: str,
        transaction: MomoTransaction,
        product_type: ProductType | str,
        reference_id: str | None,
        callback_url: str | None,
        api_version: str | None,
        subscription_key: str | None,
        environment: str | None,
    ) -> Result[str]:
        reference_id = reference_id or generate_request_id()
        headers = self._product_headers(
            product_type, subscription_key, environment
        )
        headers[Headers.X_REFERENCE_ID] = reference_id
        headers[Headers.X_CALLBACK_URL] = callback_url
        return self._safe_call(
            name,
            path_params={
                "productType": ProductType(product_type).value,
                "apiVersion": self._version(api_version),
            },
            headers=headers,
            body=transaction,
            empty_value=reference_id,
        )

    def _status(
        self,
        name: str,
        reference_id: str,
        product_type: ProductType | str,
        api_version: str | None,
        subscription_key: str | None,
        environment: str | None,
    ) -> Result[MomoTransaction]:
        return self._safe_call(
            name,
            path_params={
                "productType": ProductType(product_type).value,
                "apiVersion": self._version(api_version),
                "referenceId": reference_id,
            },
            headers=self._product_headers(
                product_type, subscription_key, environment
            ),
        )

    def _safe_call(
        self,
        name: str,
        path_params: dict[str, str] | None = None,
        headers: dict[str, str | None] | None = None,
        body: WireModel | None = None,
        empty_value=None,
    ) -> Result:
        """Execute one endpoint and normalise the outcome.

        Args:
            name: Endpoint name in the catalog.
            path_params: Values for the path placeholders.  Extra keys are
                ignored by the template.
            headers: Request headers.
            body: Request body model.
            empty_value: Value carried by ``Success`` for endpoints that
                answer with no body.

        Returns:
            ``Success`` with the parsed body (or ``empty_value``), or
            ``Error`` for HTTP failures, empty bodies where one is expected,
            and any exception raised while building, sending or decoding.
        """
        endpoint = get_endpoint(name)
        try:
            response = self.client.execute(
                endpoint, path_params=path_params, headers=headers, body=body
            )
            return _normalise(endpoint, response, empty_value)
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s failed: %s", endpoint.name, exc)
            return Error(str(exc) or exc.__class__.__name__)


def _normalise(
    endpoint: Endpoint, response: requests.Response, empty_value
) -> Result:
    status_line = f"{response.status_code} {response.reason or ''}".strip()
    if not response.ok:
        logger.info("%s returned %s", endpoint.name, status_line)
        return Error(status_line, parse_error_response(response))
    if endpoint.response is None:
        return Success(empty_value)
    if not response.content or not response.content.strip():
        return Error(status_line)
    return Success(endpoint.response.from_dict(response.json()))


def watch_transaction(
    status_call: Callable[[str], Result[MomoTransaction]],
    reference_id: str,
    interval: float = 5.0,
    max_attempts: int = 12,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[Result[MomoTransaction]]:
    """Poll a transaction until it leaves the ``PENDING`` state.

    Yields :class:`~momoapi.core.result.Loading` before every status query.
    The last value yielded is the final result: the first ``Error``, the
    first ``Success`` whose transaction is no longer pending, or the last
    pending ``Success`` once ``max_attempts`` queries have been made.  A
    ``FAILED`` transaction is a ``Success``; inspect its ``status``.

    Args:
        status_call: A repository status method, e.g.
            ``repo.request_to_pay_status``.
        reference_id: The reference ID returned when the transaction was
            submitted.
        interval: Seconds between queries.
        max_attempts: Maximum number of queries.
        sleep: Sleep function, replaceable in tests.

    Raises:
        ValueError: If ``max_attempts`` is less than one.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    result: Result[MomoTransaction] = Loading()
    for attempt in range(max_attempts):
        yield Loading()
        result = status_call(reference_id)
        pending = isinstance(result, Success) and result.value.is_pending
        if not pending:
            break
        if attempt < max_attempts - 1:
            sleep(interval)
    yield result
