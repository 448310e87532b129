"""Client settings and small pure helpers used around repository calls.

:class:`MomoSettings` collects the externally supplied configuration (base
URL, target environment, per-product subscription keys, …).  It is usually
built from ``MOMO_*`` environment variables with
:meth:`MomoSettings.from_env`.
"""

import os
import uuid
from dataclasses import dataclass

from momoapi.core.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_ENVIRONMENT,
    DEFAULT_TIMEOUT,
    NOTIFICATION_MESSAGE_LENGTH,
    ApiVersion,
    ProductType,
)
from momoapi.core.exceptions import ConfigurationError


@dataclass
class MomoSettings:
    """Configuration for a MOMO client.

    Attributes:
        base_url: Root URL of the MOMO API.  Plain ``http://`` is accepted
            for local sandboxes.
        target_environment: Value of the ``X-Target-Environment`` header.
        api_version: Default API version path segment.
        api_user_id: The API user (a UUID) registered with the provider.
        api_key: The API key generated for :attr:`api_user_id`.
        provider_callback_host: Callback host registered with new API users.
        http_logging: Whether the API client logs requests and responses.
        timeout: Connect/read/write timeout in seconds.
    """

    base_url: str = DEFAULT_BASE_URL
    target_environment: str = DEFAULT_ENVIRONMENT
    api_version: str = ApiVersion.V1.value
    api_user_id: str = ""
    api_key: str = ""
    provider_callback_host: str = ""
    collection_primary_key: str = ""
    collection_secondary_key: str = ""
    disbursement_primary_key: str = ""
    disbursement_secondary_key: str = ""
    remittance_primary_key: str = ""
    remittance_secondary_key: str = ""
    http_logging: bool = True
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> "MomoSettings":
        """Build settings from ``MOMO_*`` environment variables.

        Unset variables fall back to the dataclass defaults.

        Returns:
            A populated :class:`MomoSettings` instance.
        """
        logging_flag = os.getenv("MOMO_HTTP_LOGGING", "1").strip().lower()
        return cls(
            base_url=os.getenv("MOMO_BASE_URL", DEFAULT_BASE_URL),
            target_environment=os.getenv(
                "MOMO_ENVIRONMENT", DEFAULT_ENVIRONMENT
            ),
            api_version=os.getenv("MOMO_API_VERSION", ApiVersion.V1.value),
            api_user_id=os.getenv("MOMO_API_USER_ID", ""),
            api_key=os.getenv("MOMO_API_KEY", ""),
            provider_callback_host=os.getenv(
                "MOMO_PROVIDER_CALLBACK_HOST", ""
            ),
            collection_primary_key=os.getenv(
                "MOMO_COLLECTION_PRIMARY_KEY", ""
            ),
            collection_secondary_key=os.getenv(
                "MOMO_COLLECTION_SECONDARY_KEY", ""
            ),
            disbursement_primary_key=os.getenv(
                "MOMO_DISBURSEMENT_PRIMARY_KEY", ""
            ),
            disbursement_secondary_key=os.getenv(
                "MOMO_DISBURSEMENT_SECONDARY_KEY", ""
            ),
            remittance_primary_key=os.getenv(
                "MOMO_REMITTANCE_PRIMARY_KEY", ""
            ),
            remittance_secondary_key=os.getenv(
                "MOMO_REMITTANCE_SECONDARY_KEY", ""
            ),
            http_logging=logging_flag not in ("0", "false", "no", "off"),
            timeout=float(os.getenv("MOMO_TIMEOUT", DEFAULT_TIMEOUT)),
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def generate_request_id() -> str:
    """Return a new random UUID4 string.

    Used for the ``X-Reference-Id`` header and for ``externalId`` values.
    """
    return str(uuid.uuid4())


def format_phone_number(number: str | None, country_code: str) -> str | None:
    """Normalise a phone number to the international MSISDN form.

    Args:
        number: The number as typed by a user, e.g. ``"0712345678"`` or
            ``"+256712345678"``.
        country_code: Dialling code without ``+``, e.g. ``"256"``.

    Returns:
        ``None`` for a blank number.  A local number (shorter than 11
        characters, leading ``0``) gets the ``0`` replaced by
        ``country_code``.  A 13-character number with a leading ``+`` loses
        the ``+``.  Anything else is returned unchanged.
    """
    if number is None or not number.strip():
        return None
    if len(number) < 11 and number.startswith("0"):
        return country_code + number[1:]
    if len(number) == 13 and number.startswith("+"):
        return number[1:]
    return number


def resolve_subscription_key(
    product_type: ProductType | str,
    settings: MomoSettings | None = None,
) -> str:
    """Select the subscription key for a product.

    The primary key wins whenever it is non-blank; otherwise the secondary
    key is returned.

    Args:
        product_type: The product whose key is required.
        settings: Source of the keys.  Read from the environment when
            omitted.

    Returns:
        The selected key (possibly empty when neither key is configured).

    Raises:
        ConfigurationError: If ``product_type`` is not a known product.
    """
    settings = settings or MomoSettings.from_env()
    try:
        product = ProductType(product_type)
    except ValueError as exc:
        raise ConfigurationError(
            f"Unknown product type: {product_type!r}"
        ) from exc

    primary, secondary = {
        ProductType.COLLECTION: (
            settings.collection_primary_key,
            settings.collection_secondary_key,
        ),
        ProductType.DISBURSEMENT: (
            settings.disbursement_primary_key,
            settings.disbursement_secondary_key,
        ),
        ProductType.REMITTANCE: (
            settings.remittance_primary_key,
            settings.remittance_secondary_key,
        ),
    }[product]
    return primary if primary.strip() else secondary


def is_notification_message_valid(
    message: str | None,
    max_length: int = NOTIFICATION_MESSAGE_LENGTH,
) -> bool:
    """Return ``True`` if a delivery notification message can be sent.

    Args:
        message: The notification text.
        max_length: Maximum number of characters accepted by the provider.

    Returns:
        ``True`` when ``message`` is non-blank and at most ``max_length``
        characters long.
    """
    if message is None or not message.strip():
        return False
    return len(message) <= max_length
