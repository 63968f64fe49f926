"""HTTP port definitions (DTOs and transport interface)."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

__all__ = [
    "CHECK_STATUS_FAILED",
    "TEXT_FIELD",
    "PendingRequest",
    "ResponseEnvelope",
    "TransportPort",
    "TransportResponse",
]

# Field wrapping non-JSON response bodies
TEXT_FIELD = "__text"
CHECK_STATUS_FAILED = "checkStatus false."


@dataclass
class PendingRequest:
    """One outgoing HTTP request, handed to the transport exactly once.

    Attributes:
        url: Fully resolved target URL (base URL, path and query).
        method: HTTP method, e.g. 'GET', 'POST'.
        headers: Merged request headers.
        body: Serialized body (str), raw upload body, or None for GET.
        timeout: Advisory timeout in seconds, enforced by the transport only.
        options: Extra transport options merged from config and call site.
    """

    url: str
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
    timeout: float | None = None
    options: dict[str, Any] = field(default_factory=dict)


class TransportResponse(Protocol):
    """Subset of a transport response the orchestrator relies on.

    `aiohttp.ClientResponse` satisfies it.
    """

    status: int
    headers: Mapping[str, str]

    async def json(self, *, content_type: str | None = ...) -> Any: ...

    async def text(self) -> str: ...


class TransportPort(Protocol):
    """Interface for performing the actual network I/O."""

    async def send(self, req: PendingRequest, /) -> TransportResponse:
        """Send one request.

        Args:
            req: Request to send.

        Returns:
            Transport response (body not yet read).
        """
        ...


@dataclass
class ResponseEnvelope:
    """Result of one orchestrated round trip.

    Attributes:
        data: Parsed body after the after-middleware. Non-JSON bodies are
            wrapped as ``{TEXT_FIELD: text}``.
        origin_request: The request handed to the transport.
        origin_response: The raw transport response.
        error: None on success, ``CHECK_STATUS_FAILED`` when the status
            predicate rejected the response, or the raised exception.
    """

    data: Any = field(default_factory=dict)
    origin_request: PendingRequest | None = None
    origin_response: TransportResponse | None = None
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None
