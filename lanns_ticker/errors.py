"""Error taxonomy for the HTTP client and the heartbeat ticker."""

from __future__ import annotations

from typing import Any

__all__ = [
    "TickerError",
    "HttpClientError",
    "UrlValidationError",
    "TransportError",
    "HttpStatusError",
    "UnhandledStatusError",
    "TooManyRedirectsError",
    "SerializationError",
    "ProtocolError",
    "DiscoveryServiceError",
]


class TickerError(Exception):
    """Base class for every error raised or reported by lanns_ticker."""

    code: str = "E_TICKER"


class HttpClientError(TickerError):
    """Base class for errors that end a logical HTTP request."""

    code = "E_HTTP_CLIENT"


class UrlValidationError(HttpClientError):
    """Target URL could not be parsed; no network call was attempted."""

    code = "E_INVALID_URL"


class TransportError(HttpClientError):
    """Connection, DNS or timeout failure reported by the transport."""

    code = "E_TRANSPORT"


class HttpStatusError(HttpClientError):
    """Server answered with a 4xx or 5xx status.

    Attributes:
        status_code: HTTP status code of the response.
        status_message: Reason phrase of the response.
    """

    def __init__(self, status_code: int, status_message: str | None) -> None:
        self.status_code = status_code
        self.status_message = status_message
        self.code = f"E_STATUS_{status_code}"
        super().__init__(f"{self.code}: {status_code} {status_message or ''}".rstrip())


class UnhandledStatusError(HttpClientError):
    """Server answered with a 3xx the client does not follow.

    Attributes:
        status_code: HTTP status code of the response.
        status_message: Reason phrase of the response.
        response: Raw transport response, attached for diagnosis.
    """

    code = "E_UNHANDLED_STATUSCODE"

    def __init__(self, status_code: int, status_message: str | None, response: Any = None) -> None:
        self.status_code = status_code
        self.status_message = status_message
        self.response = response
        super().__init__(f"{self.code}: {status_code} {status_message or ''}".rstrip())


class TooManyRedirectsError(HttpClientError):
    """Redirect chain exceeded the configured number of hops."""

    code = "E_TOO_MANY_REDIRECTS"

    def __init__(self, max_redirects: int, last_url: str) -> None:
        self.max_redirects = max_redirects
        self.last_url = last_url
        super().__init__(f"{self.code}: more than {max_redirects} redirects (last: {last_url})")


class SerializationError(TickerError):
    """Payload could not be serialized to JSON text."""

    code = "E_SERIALIZATION"


class ProtocolError(TickerError):
    """Discovery service answered with invalid JSON or reported a failure.

    Attributes:
        detail: The ``error`` field sent by the service, if any.
    """

    code = "E_PROTOCOL"

    def __init__(self, message: str, detail: Any = None) -> None:
        self.detail = detail
        super().__init__(message)


class DiscoveryServiceError(TickerError):
    """The pulse request to the discovery service failed at the HTTP layer."""

    code = "E_DISCOVERY_SERVICE"
