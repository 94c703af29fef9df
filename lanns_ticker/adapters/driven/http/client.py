"""Redirect-following HTTP client adapter."""

import asyncio
import enum
import json
import logging
import re
from dataclasses import replace
from types import TracebackType
from typing import Any

import aiohttp
from aiohttp import ClientTimeout
from multidict import CIMultiDict
from yarl import URL

from lanns_ticker.errors import (
    HttpStatusError,
    SerializationError,
    TooManyRedirectsError,
    TransportError,
    UnhandledStatusError,
    UrlValidationError,
)
from lanns_ticker.ports.http import HttpResult, RequestSpec

__all__ = [
    "HttpClient",
    "Outcome",
    "classify_status",
    "normalize_url",
    "encode_body",
    "build_request_spec",
]

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 20
MAX_REDIRECTS = 10
FIRST_FAILING_HTTP_CODE = 400
REDIRECT_HTTP_CODES = frozenset({301, 302})
DEFAULT_CONTENT_TYPE = "text/plain"
SUPPORTED_SCHEMES = ("http", "https")

_SCHEME_PREFIX = re.compile(r"^https?:", re.IGNORECASE)

# Failures reported by the transport itself (no HTTP response received)
TRANSPORT_ERRORS = (
    aiohttp.ClientError,  # Connection refused, DNS failed, payload errors
    asyncio.TimeoutError,  # Request timeout
    OSError,  # OS-level network error
)


class Outcome(enum.Enum):
    """Classification of a response status code."""

    SUCCESS = "success"
    REDIRECT = "redirect"
    STATUS_ERROR = "status_error"
    UNHANDLED = "unhandled"


def classify_status(status: int) -> Outcome:
    """Map a status code to how the client handles it.

    Args:
        status: HTTP status code.

    Returns:
        SUCCESS below 300, REDIRECT for 301/302, STATUS_ERROR from 400,
        UNHANDLED for anything else.
    """
    if status < 300:
        return Outcome.SUCCESS
    if status in REDIRECT_HTTP_CODES:
        return Outcome.REDIRECT
    if status >= FIRST_FAILING_HTTP_CODE:
        return Outcome.STATUS_ERROR
    return Outcome.UNHANDLED


def _check_url(url: URL, raw: str) -> URL:
    try:
        # Port parsing is lazy in yarl
        _ = url.explicit_port
    except ValueError as e:
        raise UrlValidationError(f"Invalid URL {raw!r}: {e}") from e
    if url.scheme not in SUPPORTED_SCHEMES or not url.host:
        raise UrlValidationError(f"Invalid URL {raw!r}: expected http(s)://host[:port]/path")
    return url


def normalize_url(raw: str) -> URL:
    """Parse a target URL, assuming http:// when no scheme is given.

    Args:
        raw: URL as given by the caller.

    Returns:
        Parsed absolute URL.

    Raises:
        UrlValidationError: If the URL cannot be parsed or has no host.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise UrlValidationError(f"Invalid URL: {raw!r}")
    text = raw.strip()
    if not _SCHEME_PREFIX.match(text):
        text = "http://" + text
    try:
        url = URL(text)
    except (ValueError, TypeError) as e:
        raise UrlValidationError(f"Invalid URL {raw!r}: {e}") from e
    return _check_url(url, raw)


def encode_body(body: Any, encoding: str = "utf-8") -> bytes:
    """Turn a request body into bytes.

    Strings are encoded, bytes pass through, anything else is sent as JSON text.

    Raises:
        SerializationError: If the body cannot be serialized or encoded.
    """
    if isinstance(body, bytes):
        return body
    if not isinstance(body, str):
        try:
            body = json.dumps(body)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Request body is not JSON serializable: {e}") from e
    try:
        return body.encode(encoding)
    except (LookupError, UnicodeError) as e:
        raise SerializationError(f"Request body cannot be encoded as {encoding}: {e}") from e


def build_request_spec(
    url: str,
    method: str = "GET",
    *,
    headers: dict[str, str] | None = None,
    body: Any = None,
    encoding: str = "utf-8",
    port: int | None = None,
) -> RequestSpec:
    """Normalize the URL, encode the body and inject default headers.

    Connection: keep-alive is added unless the caller set a Connection header.
    For a POST with a body, Content-Length is always computed from the encoded
    bytes and Content-Type: text/plain is added unless already present.
    Header names are compared case-insensitively.
    """
    target = normalize_url(url)
    merged: CIMultiDict[str] = CIMultiDict(headers or {})
    merged.setdefault("Connection", "keep-alive")

    data: bytes | None = None
    if method.upper() == "POST" and body is not None:
        data = encode_body(body, encoding)
        merged["Content-Length"] = str(len(data))
        merged.setdefault("Content-Type", DEFAULT_CONTENT_TYPE)

    return RequestSpec(url=target, method=method.upper(), headers=merged, body=data, port=port)


class HttpClient:
    """HTTP client that follows 301/302 redirects transparently.

    Features:
    - Exactly one terminal outcome per call: a returned HttpResult or a raised
      HttpClientError, however many redirect hops were followed.
    - Redirects keep method, headers and body; chains longer than
      max_redirects raise TooManyRedirectsError.
    - Context manager for proper resource cleanup.
    - No retry: transport failures surface immediately as TransportError.
    """

    def __init__(self, *, timeout: float = REQUEST_TIMEOUT, max_redirects: int = MAX_REDIRECTS) -> None:
        """Initialize HTTP client.

        Args:
            timeout: Total timeout of each exchange in seconds.
            max_redirects: Maximum number of redirect hops per request.
        """
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "HttpClient":
        """Enter async context manager (start session).

        Returns:
            Self for use in async with statement.
        """
        self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Exit async context manager (close session).

        Args:
            exc_type: Exception type if raised in context.
            exc: Exception instance if raised in context.
            tb: Traceback if raised in context.
        """
        if self.session:
            await self.session.close()

    async def get(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        port: int | None = None,
    ) -> HttpResult:
        """Send a GET request, following redirects.

        Args:
            url: Target URL; http:// is assumed when no scheme is given.
            headers: Extra request headers.
            port: Port to use when the URL carries none.

        Returns:
            The terminal successful response.
        """
        return await self.request(build_request_spec(url, "GET", headers=headers, port=port))

    async def post(
        self,
        url: str,
        body: Any = None,
        *,
        encoding: str = "utf-8",
        headers: dict[str, str] | None = None,
        port: int | None = None,
    ) -> HttpResult:
        """Send a POST request, following redirects with the same body.

        Args:
            url: Target URL; http:// is assumed when no scheme is given.
            body: str, bytes, or a JSON-serializable value.
            encoding: Encoding used for str bodies.
            headers: Extra request headers.
            port: Port to use when the URL carries none.

        Returns:
            The terminal successful response.
        """
        spec = build_request_spec(
            url, "POST", headers=headers, body=body, encoding=encoding, port=port
        )
        return await self.request(spec)

    async def request(self, spec: RequestSpec) -> HttpResult:
        """Perform one logical exchange, following up to max_redirects hops.

        Args:
            spec: Prepared request.

        Returns:
            The terminal successful response (status < 300).

        Raises:
            RuntimeError: If session not initialized.
            HttpClientError: On any non-successful terminal outcome.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with' context manager")

        current = spec
        for _ in range(self.max_redirects + 1):
            outcome = await self._exchange(current)
            if isinstance(outcome, HttpResult):
                return outcome
            logger.debug(f"Redirect {current.url} -> {outcome}")
            current = replace(current, url=outcome, port=None)

        raise TooManyRedirectsError(self.max_redirects, str(current.url))

    async def _exchange(self, spec: RequestSpec) -> HttpResult | URL:
        """Send one hop and return the success result or the redirect target."""
        assert self.session is not None
        target = spec.url
        port = spec.effective_port
        if port is not None and port != target.port:
            target = target.with_port(port)

        logger.debug(f"{spec.method} {target}")
        try:
            async with self.session.request(
                spec.method,
                target,
                headers=spec.headers,
                data=spec.body,
                allow_redirects=False,
                timeout=ClientTimeout(total=self.timeout),
            ) as resp:
                outcome = classify_status(resp.status)
                if outcome is Outcome.SUCCESS:
                    body = await resp.text(errors="replace")
                    return HttpResult(
                        status_code=resp.status,
                        reason=resp.reason,
                        headers=resp.headers,
                        body=body,
                        url=str(target),
                    )
                if outcome is Outcome.REDIRECT:
                    location = resp.headers.get("Location")
                    if location:
                        return self._redirect_target(target, location)
                    raise UnhandledStatusError(resp.status, resp.reason, resp)
                if outcome is Outcome.STATUS_ERROR:
                    raise HttpStatusError(resp.status, resp.reason)
                raise UnhandledStatusError(resp.status, resp.reason, resp)
        except TRANSPORT_ERRORS as e:
            raise TransportError(f"{spec.method} {target} failed: {e}") from e

    @staticmethod
    def _redirect_target(current: URL, location: str) -> URL:
        """Resolve a Location header against the URL that produced it."""
        try:
            target = current.join(URL(location))
        except (ValueError, TypeError) as e:
            raise UrlValidationError(f"Invalid redirect location {location!r}: {e}") from e
        return _check_url(target, location)
