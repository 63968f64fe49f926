"""aiohttp transport adapter with retry."""

import logging
from types import TracebackType

import aiohttp
from aiohttp import ClientResponse, ClientTimeout

from fetchgate.adapters.driven.http.retry import retry
from fetchgate.ports.http import PendingRequest, TransportPort

__all__ = ["HttpClient"]

logger = logging.getLogger(__name__)

REQUEST_RETRIES = 3


class HttpClient(TransportPort):
    """Transport performing the network I/O for the orchestrator.

    Features:
    - Retry with backoff on transient errors.
    - Context manager for proper session cleanup.
    - Per-request timeout from the request config.
    """

    def __init__(self, retries: int = REQUEST_RETRIES) -> None:
        """Initialize HTTP client.

        Args:
            retries: Attempts per request on transient errors (1 = no retry).
        """
        self.retries = retries
        self.session: aiohttp.ClientSession | None = None
        self._send_with_retry = retry(times=retries)(self._send_once)

    async def __aenter__(self) -> "HttpClient":
        self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.session:
            await self.session.close()

    def _require_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with' context manager")
        return self.session

    async def _send_once(self, req: PendingRequest) -> ClientResponse:
        session = self._require_session()
        options = dict(req.options)
        if req.timeout:
            options.setdefault("timeout", ClientTimeout(total=req.timeout))
        response = await session.request(
            req.method,
            req.url,
            data=req.body,
            headers=req.headers,
            **options,
        )
        logger.debug(f"{req.method} {req.url} returned status {response.status}")
        return response

    async def send(self, req: PendingRequest) -> ClientResponse:
        """Send one request (with retry on transient errors).

        Args:
            req: Request built by the orchestrator.

        Returns:
            HTTP response; the body is read by the caller.

        Raises:
            RuntimeError: If session not initialized.
            aiohttp exceptions: Once retries are exhausted.
        """
        return await self._send_with_retry(req)
