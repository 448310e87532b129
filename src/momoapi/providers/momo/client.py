"""HTTP binding between the endpoint catalog and the MOMO API."""

import logging

import requests

from momoapi.auth.interfaces import RequestSigner
from momoapi.core.constants import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, Headers
from momoapi.core.exceptions import MomoApiError
from momoapi.core.models import ErrorResponse, WireModel
from momoapi.core.settings import MomoSettings
from momoapi.providers.momo.endpoints import Endpoint, get_endpoint

logger = logging.getLogger(__name__)

_USER_AGENT = "momoapi-python/0.1"

# Header values never written to the log.
_REDACTED_HEADERS = {
    Headers.AUTHORIZATION.lower(),
    Headers.OCP_APIM_SUBSCRIPTION_KEY.lower(),
}


class MomoApiClient:
    """Issues MOMO API requests described by :class:`Endpoint` entries.

    The client knows nothing about where credentials come from.  It applies
    the injected :class:`~momoapi.auth.interfaces.RequestSigner` chain to
    each request, selecting only the signers whose scheme matches the
    endpoint's declared auth scheme, so a single request never carries both
    a Basic and a Bearer header.

    Plain ``http://`` base URLs are accepted for sandbox testing.  TLS
    certificate validation is always on for ``https://``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        connect_timeout: float = DEFAULT_TIMEOUT,
        read_timeout: float = DEFAULT_TIMEOUT,
        write_timeout: float = DEFAULT_TIMEOUT,
        signers: list[RequestSigner] | None = None,
        http_logging: bool = True,
        session: requests.Session | None = None,
    ):
        """Initialise the client.

        Args:
            base_url: Root URL of the MOMO API.
            connect_timeout: Seconds to wait for a connection.
            read_timeout: Seconds to wait between bytes of the response.
            write_timeout: Seconds allowed for sending the request.
                ``requests`` has no separate write timeout, so the larger of
                this and ``read_timeout`` is used as the read timeout.
            signers: Ordered request transforms that attach credentials.
            http_logging: When ``True``, requests and responses (headers
                and bodies) are logged at DEBUG level.  Disable in
                production.
            session: An existing :class:`requests.Session` to reuse.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = (connect_timeout, max(read_timeout, write_timeout))
        self.signers: list[RequestSigner] = list(signers or [])
        self.http_logging = http_logging
        self.session = session or requests.Session()
        # Sent per request; an injected session is left untouched.
        self.default_headers = {
            "User-Agent": _USER_AGENT,
            "Accept": "application/json",
        }

    @classmethod
    def from_settings(
        cls,
        settings: MomoSettings,
        signers: list[RequestSigner] | None = None,
        session: requests.Session | None = None,
    ) -> "MomoApiClient":
        """Build a client from :class:`~momoapi.core.settings.MomoSettings`."""
        return cls(
            base_url=settings.base_url,
            connect_timeout=settings.timeout,
            read_timeout=settings.timeout,
            write_timeout=settings.timeout,
            signers=signers,
            http_logging=settings.http_logging,
            session=session,
        )

    # -------------------------
    # Dispatch
    # -------------------------

    def execute(
        self,
        endpoint: Endpoint,
        path_params: dict[str, str] | None = None,
        headers: dict[str, str | None] | None = None,
        body: WireModel | dict | None = None,
    ) -> requests.Response:
        """Send a single request for ``endpoint``.

        Args:
            endpoint: The catalog entry to call.
            path_params: Values for the path placeholders.
            headers: Request headers.  ``None`` values are dropped.
            body: JSON body; a :class:`~momoapi.core.models.WireModel` is
                serialised without its ``None`` fields.

        Returns:
            The raw :class:`requests.Response`, whatever its status.

        Raises:
            ValueError: If a path parameter or a required header is missing.
            requests.RequestException: On transport failures (timeouts,
                connection errors, …).
        """
        path = endpoint.format_path(**(path_params or {}))
        request_headers = dict(self.default_headers)
        request_headers.update(
            (k, str(v)) for k, v in (headers or {}).items() if v is not None
        )
        missing = [h for h in endpoint.headers if not request_headers.get(h)]
        if missing:
            raise ValueError(
                f"Missing required header(s) for {endpoint.name}: "
                f"{', '.join(missing)}"
            )

        json_body = None
        if body is not None:
            json_body = (
                body.to_dict(drop_none=True)
                if isinstance(body, WireModel)
                else body
            )
            request_headers[Headers.CONTENT_TYPE] = "application/json"

        request = requests.Request(
            endpoint.method,
            f"{self.base_url}{path}",
            headers=request_headers,
            json=json_body,
        )
        for signer in self.signers:
            if endpoint.auth is not None and signer.scheme == endpoint.auth:
                request = signer(request)

        prepared = self.session.prepare_request(request)
        send_kwargs = self.session.merge_environment_settings(
            prepared.url, {}, None, None, None
        )
        self._log_request(prepared)
        response = self.session.send(
            prepared, timeout=self.timeout, **send_kwargs
        )
        self._log_response(response)
        return response

    def call(self, name: str, **kwargs) -> requests.Response:
        """Look up an endpoint by name and :meth:`execute` it."""
        return self.execute(get_endpoint(name), **kwargs)

    @staticmethod
    def raise_for_status(response: requests.Response) -> None:
        """Raise :class:`MomoApiError` if ``response`` is not a 2xx.

        Raises:
            MomoApiError: Carrying the status, reason and, when present,
                the provider's error body.
        """
        if not response.ok:
            raise MomoApiError(
                response.status_code,
                response.reason or "",
                parse_error_response(response),
            )

    # -------------------------
    # Wire logging
    # -------------------------

    def _log_request(self, prepared: requests.PreparedRequest) -> None:
        if not self.http_logging or not logger.isEnabledFor(logging.DEBUG):
            return
        logger.debug("--> %s %s", prepared.method, prepared.url)
        for name, value in prepared.headers.items():
            logger.debug("%s: %s", name, _redact(name, value))
        body = prepared.body
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        logger.debug("%s", body or "")
        logger.debug("--> END %s", prepared.method)

    def _log_response(self, response: requests.Response) -> None:
        if not self.http_logging or not logger.isEnabledFor(logging.DEBUG):
            return
        elapsed = (
            f" ({response.elapsed.total_seconds() * 1000:.0f}ms)"
            if response.elapsed
            else ""
        )
        logger.debug(
            "<-- %s %s %s%s",
            response.status_code,
            response.reason or "",
            response.url,
            elapsed,
        )
        for name, value in response.headers.items():
            logger.debug("%s: %s", name, _redact(name, value))
        logger.debug("%s", response.text)
        logger.debug("<-- END HTTP")


def _redact(name: str, value: str) -> str:
    return "<redacted>" if name.lower() in _REDACTED_HEADERS else value


def parse_error_response(response: requests.Response) -> ErrorResponse | None:
    """Decode the provider's error body, if the response carries one.

    Returns:
        An :class:`~momoapi.core.models.ErrorResponse`, or ``None`` when the
        body is empty, not JSON, or has neither ``code`` nor ``message``.
    """
    if not response.content:
        return None
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict) or not (
        "code" in data or "message" in data
    ):
        return None
    return ErrorResponse.from_dict(data)
