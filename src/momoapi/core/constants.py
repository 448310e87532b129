"""Constants and enumerations shared across the MOMO client."""

from enum import Enum

DEFAULT_BASE_URL = "https://sandbox.momodeveloper.mtn.com"
DEFAULT_ENVIRONMENT = "sandbox"

NOTIFICATION_MESSAGE_LENGTH = 160

# Seconds, applied to connect/read/write.
DEFAULT_TIMEOUT = 60


class Headers:
    """HTTP header names used by the MOMO API."""

    OCP_APIM_SUBSCRIPTION_KEY = "Ocp-Apim-Subscription-Key"
    X_REFERENCE_ID = "X-Reference-Id"
    X_TARGET_ENVIRONMENT = "X-Target-Environment"
    X_CALLBACK_URL = "X-Callback-Url"
    NOTIFICATION_MESSAGE = "notificationMessage"
    CONTENT_TYPE = "Content-Type"
    AUTHORIZATION = "Authorization"


class TokenType(str, Enum):
    """Prefixes of the ``Authorization`` header."""

    BASIC = "Basic"
    BEARER = "Bearer"


class ApiVersion(str, Enum):
    """Versions of the MOMO REST API."""

    V1 = "v1_0"
    V2 = "v2_0"


class ProductType(str, Enum):
    """MOMO API products.

    The value is the path segment used in product-scoped URLs.
    """

    COLLECTION = "collection"
    DISBURSEMENT = "disbursement"
    REMITTANCE = "remittance"


class AccountHolderType(str, Enum):
    """Identifier types accepted for an account holder."""

    MSISDN = "msisdn"
    EMAIL = "email"
    PARTY_CODE = "party_code"


class TransactionStatus(str, Enum):
    """Status reported inside a transaction body."""

    SUCCESSFUL = "SUCCESSFUL"
    PENDING = "PENDING"
    FAILED = "FAILED"


class MomoApiErrorCode(str, Enum):
    """Error codes the provider returns in error bodies."""

    PAYER_NOT_FOUND = "PAYER_NOT_FOUND"
    PAYER_LIMIT_REACHED = "PAYER_LIMIT_REACHED"
    NOT_ENOUGH_FUNDS = "NOT_ENOUGH_FUNDS"
    NOT_ALLOWED = "NOT_ALLOWED"
    NOT_ALLOWED_TARGET_ENVIRONMENT = "NOT_ALLOWED_TARGET_ENVIRONMENT"
    INVALID_CALLBACK_URL_HOST = "INVALID_CALLBACK_URL_HOST"
    INVALID_CURRENCY = "INVALID_CURRENCY"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    PAYEE_NOT_ALLOWED_TO_RECEIVE = "PAYEE_NOT_ALLOWED_TO_RECEIVE"
    PAYMENT_NOT_APPROVED = "PAYMENT_NOT_APPROVED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    APPROVAL_REJECTED = "APPROVAL_REJECTED"
    EXPIRED = "EXPIRED"
    TRANSACTION_CANCELED = "TRANSACTION_CANCELED"
    RESOURCE_ALREADY_EXIST = "RESOURCE_ALREADY_EXIST"
    TRANSACTION_NOT_COMPLETED = "TRANSACTION_NOT_COMPLETED"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    INFORMATIONAL_SCOPE_INSTRUCTION = "INFORMATIONAL_SCOPE_INSTRUCTION"
    MISSING_SCOPE_INSTRUCTION = "MISSING_SCOPE_INSTRUCTION"
    MORE_THAN_ONE_FINANCIAL_SCOPE_NOT_SUPPORTED = (
        "MORE_THAN_ONE_FINANCIAL_SCOPE_NOT_SUPPORTED"
    )
    UNSUPPORTED_SCOPE_COMBINATION = "UNSUPPORTED_SCOPE_COMBINATION"
    CONSENT_MISMATCH = "CONSENT_MISMATCH"
    UNSUPPORTED_SCOPE = "UNSUPPORTED_SCOPE"
    NOT_FOUND = "NOT_FOUND"
    PAYEE_NOT_FOUND = "PAYEE_NOT_FOUND"
    INTERNAL_PROCESSING_ERROR = "INTERNAL_PROCESSING_ERROR"
    COULD_NOT_PERFORM_TRANSACTION = "COULD_NOT_PERFORM_TRANSACTION"
