"""Request orchestrator: middleware, transport call, status check, broadcast."""

import asyncio
import json
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from typing import Any

from fetchgate.adapters.driven.events.emitter import EventEmitter
from fetchgate.adapters.driven.http.url import resolve_url, to_query_string
from fetchgate.core.pipeline import Middleware, run_middlewares
from fetchgate.ports.events import EventsPort
from fetchgate.ports.http import (
    CHECK_STATUS_FAILED,
    TEXT_FIELD,
    PendingRequest,
    ResponseEnvelope,
    TransportPort,
    TransportResponse,
)
from fetchgate.ports.metrics import HttpAttemptDto, MetricsPort
from fetchgate.ports.settings import RequestConfig

__all__ = ["RequestOrchestrator", "JSON_HEADERS", "HTML_HEADERS"]

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json; charset=utf-8"}
HTML_HEADERS = {"Content-Type": "text/html"}

_ABSOLUTE_URL = re.compile(r"^(https?:)?//", re.IGNORECASE)

ErrorHandler = Callable[[Any], Any]
StatusCheck = Callable[[TransportResponse], bool]
MiddlewareArg = Middleware | Sequence[Middleware | None] | None


def _as_list(middlewares: MiddlewareArg) -> list[Middleware | None]:
    if isinstance(middlewares, (list, tuple)):
        return list(middlewares)
    return [middlewares]


def _is_json_response(response: TransportResponse) -> bool:
    content_type = response.headers.get("Content-Type") or ""
    return "json" in content_type.lower()


class RequestOrchestrator:
    """Drive single HTTP requests through the middleware pipeline.

    One request goes through: URL resolution -> before-middleware ->
    transport call -> body parsing -> after-middleware -> status check ->
    success broadcast. Failures are routed to the per-call ``on_error``
    handler (default: broadcast on the error channel) and never raised
    back to the caller.

    Example:
        orchestrator = RequestOrchestrator(transport, RequestConfig(base_url="http://api"))
        orchestrator.use(before=compress(2048), after=decompress())
        result = await orchestrator.get("/users", params={"id": 123})
    """

    def __init__(
        self,
        transport: TransportPort,
        config: RequestConfig | None = None,
        *,
        events: EventsPort | None = None,
        check_status: StatusCheck | None = None,
        metrics: MetricsPort | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            transport: Performs the network I/O.
            config: Request configuration; defaults to RequestConfig().
            events: Broadcast target; a private EventEmitter if omitted.
            check_status: Status predicate overriding the default.
            metrics: Optional collector updated after each round trip.
        """
        self.transport = transport
        self.config = config or RequestConfig()
        self.events = events if events is not None else EventEmitter()
        self.metrics = metrics
        self.before_middlewares: list[Middleware | None] = []
        self.after_middlewares: list[Middleware | None] = []
        if check_status is not None:
            self.check_status = check_status  # type: ignore[method-assign]

    def set_config(self, **changes: Any) -> None:
        """Merge changes into the current config.

        Raises:
            TypeError: On unknown config fields.
        """
        self.config = replace(self.config, **changes)

    def use(self, before: MiddlewareArg = None, after: MiddlewareArg = None) -> None:
        """Append middleware; each argument may be one function or a list."""
        if before is not None:
            self.before_middlewares.extend(_as_list(before))
        if after is not None:
            self.after_middlewares.extend(_as_list(after))

    def use_before(self, fn: MiddlewareArg) -> None:
        self.use(before=fn)

    def use_after(self, fn: MiddlewareArg) -> None:
        self.use(after=fn)

    def on_res(self, result: ResponseEnvelope) -> None:
        """Broadcast a result on the success channel."""
        self.events.emit(self.config.res_mark, result)

    def on_err(self, error: Any) -> None:
        """Broadcast an error on the error channel."""
        self.events.emit(self.config.err_mark, error)

    def check_status(self, response: TransportResponse) -> bool:
        """Decide whether a transport response counts as successful.

        Override through the constructor or a subclass.
        """
        return True

    def url_filter(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        """Resolve path against the base URL and append query params.

        Absolute and protocol-relative paths bypass the base URL.

        Returns:
            Final URL, or "" if nothing could be resolved.
        """
        if _ABSOLUTE_URL.match(path):
            url = path
        else:
            url = resolve_url(self.config.base_url, path)
        if not url:
            logger.warning("No URL to request; call set_config(base_url=...) first")
            return ""
        if params:
            url = to_query_string(url, params)
        return url

    @staticmethod
    def _call_params(
        method: str, url: str | Mapping[str, Any], data: Any, options: dict[str, Any]
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"method": method, **options}
        if data is not None:
            params["data"] = data
        if isinstance(url, Mapping):
            params.update(url)
        else:
            params["url"] = url
        return params

    async def get(self, url: str | Mapping[str, Any], **options: Any) -> ResponseEnvelope:
        return await self.request(**self._call_params("GET", url, None, options))

    async def post(
        self, url: str | Mapping[str, Any], data: Any = None, **options: Any
    ) -> ResponseEnvelope:
        return await self.request(**self._call_params("POST", url, data, options))

    async def put(
        self, url: str | Mapping[str, Any], data: Any = None, **options: Any
    ) -> ResponseEnvelope:
        return await self.request(**self._call_params("PUT", url, data, options))

    async def delete(
        self, url: str | Mapping[str, Any], data: Any = None, **options: Any
    ) -> ResponseEnvelope:
        return await self.request(**self._call_params("DELETE", url, data, options))

    async def patch(
        self, url: str | Mapping[str, Any], data: Any = None, **options: Any
    ) -> ResponseEnvelope:
        return await self.request(**self._call_params("PATCH", url, data, options))

    async def upload(self, url: str, body: Any) -> TransportResponse:
        """POST a raw body, bypassing middleware, status check and broadcasts.

        Raises:
            Exception: Whatever the transport raises.
        """
        pending = PendingRequest(
            url=self.url_filter(url),
            method="POST",
            body=body,
            timeout=self.config.timeout,
            options=dict(self.config.transport_options),
        )
        return await self.transport.send(pending)

    def _build_request(
        self,
        url: str,
        method: str,
        body: Any,
        content_headers: Mapping[str, str],
        headers: Mapping[str, str] | None,
        options: Mapping[str, Any],
    ) -> PendingRequest:
        return PendingRequest(
            url=url,
            method=method,
            headers={**content_headers, **self.config.common_headers, **(headers or {})},
            body=body,
            timeout=self.config.timeout,
            options={**self.config.transport_options, **options},
        )

    async def _parse_body(self, response: TransportResponse, on_error: ErrorHandler) -> Any:
        try:
            if _is_json_response(response):
                data = await response.json(content_type=None)
            else:
                data = await response.text()
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Failed to parse response body: {e}")
            _notify(on_error, e)
            return {}
        if isinstance(data, str):
            return {TEXT_FIELD: data}
        return data

    def _record(self, started: float, finished: float, response: TransportResponse, failed: bool) -> None:
        if self.metrics is None:
            return
        self.metrics.update(
            HttpAttemptDto(
                started_at_sec=started,
                finished_at_sec=finished,
                is_failed=failed,
                status_code=getattr(response, "status", None),
            )
        )
        logger.debug(f"Request metrics: {self.metrics}")

    async def request(
        self,
        url: str,
        *,
        method: str = "POST",
        data: Any = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        on_error: ErrorHandler | None = None,
        **options: Any,
    ) -> ResponseEnvelope:
        """Send one request through the full pipeline.

        Args:
            url: Path relative to the base URL, or an absolute URL.
            method: HTTP method; GET requests carry no body.
            data: Payload, run through the before-middleware.
            headers: Per-call headers, highest precedence.
            params: Query parameters.
            on_error: Error handler; defaults to on_err (error broadcast).
            **options: Extra transport options.

        Returns:
            The processed envelope; its ``error`` is set on failure.
        """
        handle_error = on_error or self.on_err
        method = method.upper()
        pending: PendingRequest | None = None
        result: ResponseEnvelope | None = None

        try:
            target = self.url_filter(url, params)

            body = None
            content_headers: Mapping[str, str] = {}
            if method != "GET":
                payload = await run_middlewares(data, self.before_middlewares)
                if isinstance(payload, str):
                    body = payload
                    content_headers = HTML_HEADERS
                else:
                    body = None if payload is None else json.dumps(payload)
                    content_headers = JSON_HEADERS

            pending = self._build_request(target, method, body, content_headers, headers, options)
            logger.debug(f"{method} {target}")

            loop = asyncio.get_running_loop()
            started = loop.time()
            response = await self.transport.send(pending)
            finished = loop.time()

            parsed = await self._parse_body(response, handle_error)
            response_data = await run_middlewares(parsed, self.after_middlewares)
            result = ResponseEnvelope(
                data=response_data,
                origin_request=pending,
                origin_response=response,
            )

            is_pass = self.check_status(response)
            self._record(started, finished, response, failed=not is_pass)
            if not is_pass:
                # Error handler fires, yet the success broadcast below still runs
                result.error = CHECK_STATUS_FAILED
                logger.warning(f"Status check failed for {method} {target}")
                _notify(handle_error, result)

            self.on_res(result)
        except Exception as e:
            logger.error(f"{method} {url} failed: {e}", exc_info=True)
            _notify(handle_error, e)
            if result is None:
                result = ResponseEnvelope(data={}, origin_request=pending)
            result.error = e

        return result


def _notify(handler: ErrorHandler, error: Any) -> None:
    """Call an error handler; a failing handler is logged, not raised."""
    try:
        handler(error)
    except Exception as e:  # noqa: BLE001
        logger.error(f"Error handler failed: {e}", exc_info=True)
