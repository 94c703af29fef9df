"""HTTP port definitions (DTOs and client interface)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from multidict import CIMultiDict, CIMultiDictProxy
from yarl import URL

__all__ = ["RequestSpec", "HttpResult", "HttpClientPort"]


@dataclass
class RequestSpec:
    """One logical HTTP request, reused unchanged across redirect hops.

    Only ``url`` is replaced when a redirect is followed; protocol and
    default port follow from it.

    Attributes:
        url: Normalized absolute target URL.
        method: "GET" or "POST".
        headers: Request headers, case-insensitive.
        body: Encoded request body, or None.
        port: Caller port override, used when the URL carries no port.
    """

    url: URL
    method: str = "GET"
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    body: bytes | None = None
    port: int | None = None

    @property
    def protocol(self) -> str:
        """Scheme of the current URL ("http" or "https")."""
        return self.url.scheme

    @property
    def effective_port(self) -> int | None:
        """Resolve port as URL-embedded > caller override > scheme default."""
        return self.url.explicit_port or self.port or self.url.port


@dataclass(frozen=True)
class HttpResult:
    """Terminal successful outcome of a request (status < 300).

    Attributes:
        status_code: Final HTTP status code.
        reason: Reason phrase of the final response.
        headers: Headers of the final response.
        body: Full response body decoded to text.
        url: URL that produced the final response.
    """

    status_code: int
    reason: str | None
    headers: CIMultiDictProxy[str] | CIMultiDict[str]
    body: str
    url: str


class HttpClientPort(Protocol):
    """Interface the heartbeat scheduler needs from an HTTP client."""

    async def post(
        self,
        url: str,
        body: Any = None,
        *,
        encoding: str = "utf-8",
        headers: dict[str, str] | None = None,
        port: int | None = None,
    ) -> HttpResult:
        """Send a POST and return the terminal success, or raise."""
        ...
