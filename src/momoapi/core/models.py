"""Data model dataclasses for MOMO request and response bodies.

Python attribute names are snake_case.  The JSON name used on the wire is
declared per field (``externalId``, ``access_token``, …) so that
:meth:`WireModel.to_dict` and :meth:`WireModel.from_dict` translate between
the two without losing ``None``-valued optional fields.
"""

import time
from dataclasses import MISSING, dataclass, field, fields
from enum import Enum
from typing import Any

from momoapi.core.constants import MomoApiErrorCode, TransactionStatus


def _wire(name: str, default: Any = MISSING, model: type | None = None):
    """Declare a dataclass field together with its JSON wire name."""
    metadata: dict[str, Any] = {"wire": name}
    if model is not None:
        metadata["model"] = model
    return field(default=default, metadata=metadata)


class WireModel:
    """Mixin that maps dataclass fields to and from JSON dictionaries."""

    def to_dict(self, drop_none: bool = False) -> dict[str, Any]:
        """Serialise the instance to a JSON-compatible dictionary.

        Args:
            drop_none: When ``True``, omit fields whose value is ``None``.
                Request bodies are sent this way; the default keeps them so
                that a round trip through :meth:`from_dict` is lossless.

        Returns:
            A dictionary keyed by wire names.
        """
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, WireModel):
                value = value.to_dict(drop_none=drop_none)
            elif isinstance(value, Enum):
                value = value.value
            if value is None and drop_none:
                continue
            data[f.metadata.get("wire", f.name)] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """Build an instance from a dictionary keyed by wire names.

        Unknown keys are ignored.  Nested models declared on a field are
        parsed recursively.

        Args:
            data: The decoded JSON object.

        Returns:
            An instance of ``cls``.

        Raises:
            ValueError: If ``data`` is not a mapping or a required field is
                missing.
        """
        if not isinstance(data, dict):
            raise ValueError(
                f"Expected a JSON object for {cls.__name__}, "
                f"got {type(data).__name__}"
            )
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            key = f.metadata.get("wire", f.name)
            if key not in data:
                continue
            value = data[key]
            model = f.metadata.get("model")
            if model is not None and isinstance(value, dict):
                value = model.from_dict(value)
            kwargs[f.name] = value
        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise ValueError(f"Invalid {cls.__name__} payload: {exc}") from exc


# ----------------------
# Provisioning
# ----------------------


@dataclass
class ProviderCallBackHost(WireModel):
    """Body sent when provisioning an API user."""

    provider_callback_host: str | None = _wire("providerCallbackHost", None)


@dataclass
class ApiUser(WireModel):
    """An API user registered with the provider."""

    provider_callback_host: str | None = _wire("providerCallbackHost", None)
    target_environment: str | None = _wire("targetEnvironment", None)


@dataclass
class ApiKey(WireModel):
    """Opaque key generated for an API user."""

    api_key: str = _wire("apiKey")


# ----------------------
# Tokens
# ----------------------


@dataclass
class AccessToken(WireModel):
    """Short-lived bearer token returned by the token endpoint."""

    access_token: str = _wire("access_token")
    token_type: str = _wire("token_type")
    expires_in: str | int = _wire("expires_in")
    """Lifetime of the token in minutes, string-encoded."""

    def expires_at(self, now: float | None = None) -> float:
        """Convert :attr:`expires_in` to an absolute Unix timestamp.

        A blank or non-numeric ``expires_in`` is treated as one minute.

        Args:
            now: Reference time; defaults to :func:`time.time`.

        Returns:
            The Unix timestamp at which the token stops being valid.
        """
        try:
            minutes = int(str(self.expires_in).strip())
        except ValueError:
            minutes = 1
        start = time.time() if now is None else now
        return start + minutes * 60


@dataclass
class Oauth2AccessToken(AccessToken):
    """Token returned by the OAuth 2.0 token endpoint."""

    scope: str | None = _wire("scope", None)
    refresh_token: str | None = _wire("refresh_token", None)
    refresh_token_expired_in: str | int | None = _wire(
        "refresh_token_expired_in", None
    )


# ----------------------
# Accounts
# ----------------------


@dataclass
class AccountHolder(WireModel):
    """A party on either side of a transaction."""

    party_id_type: str = _wire("partyIdType")
    """Identifier type, e.g. ``"MSISDN"``."""

    party_id: str = _wire("partyId")


@dataclass
class AccountBalance(WireModel):
    """Balance of the merchant account."""

    available_balance: str = _wire("availableBalance")
    currency: str = _wire("currency")


@dataclass
class AccountHolderStatus(WireModel):
    """Body returned by the account-holder validation endpoint."""

    result: bool | None = _wire("result", None)


@dataclass
class BasicUserInfo(WireModel):
    """Basic personal information about an account holder."""

    sub: str | None = _wire("sub", None)
    name: str | None = _wire("name", None)
    given_name: str | None = _wire("given_name", None)
    family_name: str | None = _wire("family_name", None)
    birthdate: str | None = _wire("birthdate", None)
    locale: str | None = _wire("locale", None)
    gender: str | None = _wire("gender", None)
    updated_at: str | int | None = _wire("updated_at", None)


@dataclass
class UserInfoWithConsent(BasicUserInfo):
    """Account holder information released with the holder's consent."""

    middle_name: str | None = _wire("middle_name", None)
    email: str | None = _wire("email", None)
    email_verified: bool | None = _wire("email_verified", None)
    phone_number: str | None = _wire("phone_number", None)
    phone_number_verified: bool | None = _wire("phone_number_verified", None)
    address: str | None = _wire("address", None)
    status: str | None = _wire("status", None)
    credit_score: str | None = _wire("credit_score", None)
    active: bool | None = _wire("active", None)
    country_of_birth: str | None = _wire("country_of_birth", None)
    region_of_birth: str | None = _wire("region_of_birth", None)
    city_of_birth: str | None = _wire("city_of_birth", None)
    occupation: str | None = _wire("occupation", None)
    employer_name: str | None = _wire("employer_name", None)
    identification_type: str | None = _wire("identification_type", None)
    identification_value: str | None = _wire("identification_value", None)


# ----------------------
# Transactions
# ----------------------


@dataclass
class MomoTransaction(WireModel):
    """Payload shared by pay, withdraw, deposit, refund and transfer.

    ``external_id`` is generated by the caller and must be unique per
    transaction.  The status fields are only populated in responses.
    """

    amount: str = _wire("amount")
    currency: str = _wire("currency")
    external_id: str = _wire("externalId")
    financial_transaction_id: str | None = _wire("financialTransactionId", None)
    payer: AccountHolder | None = _wire("payer", None, model=AccountHolder)
    payee: AccountHolder | None = _wire("payee", None, model=AccountHolder)
    payer_message: str | None = _wire("payerMessage", None)
    payee_note: str | None = _wire("payeeNote", None)
    status: str | None = _wire("status", None)
    """``SUCCESSFUL``, ``PENDING`` or ``FAILED``."""

    reason: Any = _wire("reason", None)
    """Failure reason; the provider sends either a code or an object."""

    reference_id_to_refund: str | None = _wire("referenceIdToRefund", None)

    @property
    def transaction_status(self) -> TransactionStatus | None:
        """The :attr:`status` as an enum, or ``None`` if absent or unknown."""
        try:
            return TransactionStatus(self.status)
        except ValueError:
            return None

    @property
    def is_pending(self) -> bool:
        return self.transaction_status is TransactionStatus.PENDING

    @property
    def is_terminal_failure(self) -> bool:
        """``True`` when a 200 OK body reports the transaction as failed."""
        return self.transaction_status is TransactionStatus.FAILED


@dataclass
class MomoNotification(WireModel):
    """Body of a request-to-pay delivery notification."""

    notification_message: str = _wire("notificationMessage")


# ----------------------
# Errors
# ----------------------


@dataclass
class ErrorResponse(WireModel):
    """Error body returned by the provider on failed calls."""

    code: str | None = _wire("code", None)
    message: str | None = _wire("message", None)

    @property
    def error_code(self) -> MomoApiErrorCode | None:
        """The :attr:`code` as a known enum member, or ``None``."""
        try:
            return MomoApiErrorCode(self.code)
        except ValueError:
            return None
