"""Catalog of MOMO REST endpoints.

Each operation is described by an immutable :class:`Endpoint` and
interpreted by :meth:`~momoapi.providers.momo.client.MomoApiClient.execute`.
Path templates and header names must match the provider byte for byte.

+----------------+--------------------------------------------------------+
| Service        | Endpoints                                              |
+================+========================================================+
| Authentication | create/get API user, create API key, access token,    |
|                | OAuth 2.0 access token                                 |
+----------------+--------------------------------------------------------+
| Common         | basic user info, account holder status, balance,      |
|                | balance in currency, user info with consent, transfer |
|                | (+status), delivery notification                       |
+----------------+--------------------------------------------------------+
| Collection     | request to pay (+status), request to withdraw         |
|                | (+status)                                              |
+----------------+--------------------------------------------------------+
| Disbursement   | deposit (+status), refund (+status)                   |
+----------------+--------------------------------------------------------+
"""

import re
from dataclasses import dataclass
from urllib.parse import quote

from momoapi.core.constants import Headers, TokenType
from momoapi.core.models import (
    AccessToken,
    AccountBalance,
    AccountHolderStatus,
    ApiKey,
    ApiUser,
    BasicUserInfo,
    MomoNotification,
    MomoTransaction,
    Oauth2AccessToken,
    ProviderCallBackHost,
    UserInfoWithConsent,
)

AUTHENTICATION = "authentication"
COMMON = "common"
COLLECTION = "collection"
DISBURSEMENT = "disbursement"

_PLACEHOLDER = re.compile(r"{(\w+)}")

_SUBSCRIPTION = (Headers.OCP_APIM_SUBSCRIPTION_KEY,)
_PRODUCT = (Headers.OCP_APIM_SUBSCRIPTION_KEY, Headers.X_TARGET_ENVIRONMENT)
_PRODUCT_WITH_REFERENCE = _PRODUCT + (Headers.X_REFERENCE_ID,)


@dataclass(frozen=True)
class Endpoint:
    """Descriptor of a single MOMO REST operation.

    Attributes:
        name: Unique key in :data:`ENDPOINTS`.
        service: Service group the endpoint belongs to.
        method: HTTP verb.
        path: URL template with ``{placeholder}`` segments.
        auth: Authentication scheme (``"Basic"``/``"Bearer"``), or ``None``
            for endpoints authorised by the subscription key alone.
        headers: Headers the caller must supply.
        body: Model type of the JSON request body, if any.
        response: Model type of the response body.  ``None`` means the
            provider answers with an empty body (e.g. 202 Accepted).
    """

    name: str
    service: str
    method: str
    path: str
    auth: str | None
    headers: tuple[str, ...]
    body: type | None = None
    response: type | None = None

    @property
    def placeholders(self) -> tuple[str, ...]:
        """Names of the path placeholders, in template order."""
        return tuple(_PLACEHOLDER.findall(self.path))

    def format_path(self, **params: str) -> str:
        """Substitute the path placeholders.

        Values are percent-encoded so a caller-supplied identifier can never
        introduce extra path segments.

        Args:
            **params: One value per placeholder.

        Returns:
            The concrete request path.

        Raises:
            ValueError: If a placeholder has no value or an empty one.
        """
        missing = [
            p for p in self.placeholders
            if params.get(p) is None or str(params[p]) == ""
        ]
        if missing:
            raise ValueError(
                f"Missing path parameter(s) for {self.name}: "
                f"{', '.join(missing)}"
            )
        return _PLACEHOLDER.sub(
            lambda m: quote(str(params[m.group(1)]), safe=""), self.path
        )


_BASIC = TokenType.BASIC.value
_BEARER = TokenType.BEARER.value

_CATALOG: tuple[Endpoint, ...] = (
    # ----------------------
    # Authentication
    # ----------------------
    Endpoint(
        "create_api_user", AUTHENTICATION, "POST", "/{apiVersion}/apiuser",
        None, (Headers.X_REFERENCE_ID,) + _SUBSCRIPTION,
        body=ProviderCallBackHost,
    ),
    Endpoint(
        "get_api_user", AUTHENTICATION, "GET",
        "/{apiVersion}/apiuser/{apiUser}",
        None, _SUBSCRIPTION, response=ApiUser,
    ),
    Endpoint(
        "create_api_key", AUTHENTICATION, "POST",
        "/{apiVersion}/apiuser/{apiUser}/apikey",
        None, _SUBSCRIPTION, response=ApiKey,
    ),
    Endpoint(
        "get_access_token", AUTHENTICATION, "POST", "/{productType}/token/",
        _BASIC, _SUBSCRIPTION, response=AccessToken,
    ),
    Endpoint(
        "get_oauth2_access_token", AUTHENTICATION, "POST",
        "/{productType}/oauth2/token/",
        _BASIC, _PRODUCT, response=Oauth2AccessToken,
    ),
    # ----------------------
    # Common
    # ----------------------
    Endpoint(
        "get_basic_user_info", COMMON, "GET",
        "/{productType}/{apiVersion}/accountholder/msisdn/"
        "{accountHolderId}/basicuserinfo",
        _BEARER, _PRODUCT, response=BasicUserInfo,
    ),
    Endpoint(
        "validate_account_holder_status", COMMON, "GET",
        "/{productType}/{apiVersion}/accountholder/"
        "{accountHolderIdType}/{accountHolderId}/active",
        _BEARER, _PRODUCT, response=AccountHolderStatus,
    ),
    Endpoint(
        "get_account_balance", COMMON, "GET",
        "/{productType}/{apiVersion}/account/balance",
        _BEARER, _PRODUCT, response=AccountBalance,
    ),
    Endpoint(
        "get_account_balance_in_currency", COMMON, "GET",
        "/{productType}/{apiVersion}/account/balance/{currency}",
        _BEARER, _PRODUCT, response=AccountBalance,
    ),
    Endpoint(
        "get_user_info_with_consent", COMMON, "GET",
        "/{productType}/oauth2/{apiVersion}/userinfo",
        _BEARER, _PRODUCT, response=UserInfoWithConsent,
    ),
    Endpoint(
        "transfer", COMMON, "POST", "/{productType}/{apiVersion}/transfer",
        _BEARER, _PRODUCT_WITH_REFERENCE, body=MomoTransaction,
    ),
    Endpoint(
        "get_transfer_status", COMMON, "GET",
        "/{productType}/{apiVersion}/transfer/{referenceId}",
        _BEARER, _PRODUCT, response=MomoTransaction,
    ),
    Endpoint(
        "request_to_pay_delivery_notification", COMMON, "POST",
        "/{productType}/{apiVersion}/requesttopay/{referenceId}"
        "/deliverynotification",
        _BEARER, (Headers.NOTIFICATION_MESSAGE,) + _PRODUCT,
        body=MomoNotification,
    ),
    # ----------------------
    # Collection
    # ----------------------
    Endpoint(
        "request_to_pay", COLLECTION, "POST",
        "/collection/{apiVersion}/requesttopay",
        _BEARER, _PRODUCT_WITH_REFERENCE, body=MomoTransaction,
    ),
    Endpoint(
        "request_to_pay_status", COLLECTION, "GET",
        "/collection/{apiVersion}/requesttopay/{referenceId}",
        _BEARER, _PRODUCT, response=MomoTransaction,
    ),
    Endpoint(
        "request_to_withdraw", COLLECTION, "POST",
        "/collection/{apiVersion}/requesttowithdraw",
        _BEARER, _PRODUCT_WITH_REFERENCE, body=MomoTransaction,
    ),
    Endpoint(
        "request_to_withdraw_status", COLLECTION, "GET",
        "/collection/{apiVersion}/requesttowithdraw/{referenceId}",
        _BEARER, _PRODUCT, response=MomoTransaction,
    ),
    # ----------------------
    # Disbursement
    # ----------------------
    Endpoint(
        "deposit", DISBURSEMENT, "POST", "/disbursement/{apiVersion}/deposit",
        _BEARER, _PRODUCT_WITH_REFERENCE, body=MomoTransaction,
    ),
    Endpoint(
        "deposit_status", DISBURSEMENT, "GET",
        "/disbursement/{apiVersion}/deposit/{referenceId}",
        _BEARER, _PRODUCT, response=MomoTransaction,
    ),
    Endpoint(
        "refund", DISBURSEMENT, "POST", "/disbursement/{apiVersion}/refund",
        _BEARER, _PRODUCT_WITH_REFERENCE, body=MomoTransaction,
    ),
    Endpoint(
        "refund_status", DISBURSEMENT, "GET",
        "/disbursement/{apiVersion}/refund/{referenceId}",
        _BEARER, _PRODUCT, response=MomoTransaction,
    ),
)

ENDPOINTS: dict[str, Endpoint] = {e.name: e for e in _CATALOG}
"""All endpoints keyed by name."""


def endpoints_for(service: str) -> list[Endpoint]:
    """Return the endpoints of one service group, in catalog order."""
    return [e for e in _CATALOG if e.service == service]


def get_endpoint(name: str) -> Endpoint:
    """Look up an endpoint by name.

    Raises:
        KeyError: If no endpoint has that name.
    """
    try:
        return ENDPOINTS[name]
    except KeyError:
        raise KeyError(f"Unknown MOMO endpoint: {name!r}") from None
