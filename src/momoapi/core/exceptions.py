"""Domain exceptions for the momoapi library."""


class MomoError(Exception):
    """Base class for all momoapi library exceptions."""


class ConfigurationError(MomoError):
    """Raised when a required setting (e.g. a subscription key) is missing."""


class MomoApiError(MomoError):
    """Raised when the MOMO API answers with a non-2xx status.

    The repository never lets this escape: it is converted into an
    :class:`~momoapi.core.result.Error` result.  It is raised by
    :meth:`~momoapi.providers.momo.client.MomoApiClient.raise_for_status`
    for callers that use the client directly.

    Attributes:
        status_code: The HTTP status code.
        reason: The HTTP reason phrase.
        error_response: The provider's error body, when it carried one.
    """

    def __init__(self, status_code: int, reason: str, error_response=None):
        self.status_code = status_code
        self.reason = reason
        self.error_response = error_response
        super().__init__(f"{status_code} {reason}".strip())
