"""Polling scheduler that batches due poll items into one request per tick."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from fetchgate.ports.http import ResponseEnvelope
from fetchgate.ports.poll import PollBatch, PollItem, PollResult, PollRoute

__all__ = ["PollScheduler", "RequestFn"]

logger = logging.getLogger(__name__)

RequestFn = Callable[[str, Any], Awaitable[ResponseEnvelope | Mapping[str, Any]]]
ItemsArg = Mapping[str, PollItem | Mapping[str, Any]]


def _to_item(value: PollItem | Mapping[str, Any]) -> PollItem:
    if isinstance(value, PollItem):
        return value
    if isinstance(value, Mapping):
        return PollItem(**value)
    raise TypeError(f"Poll item must be a PollItem or a mapping (got: {type(value).__name__})")


class PollScheduler:
    """Periodic poller multiplexing many poll items over one request.

    Every ``interval_sec`` the scheduler:
    1. Asks every registered item for its data.
    2. Keeps the items with data that are due on the current tick (every
       item is due on tick 1, then on ticks divisible by its ``freq``).
    3. Sends one request carrying all kept data, as a background task.
    4. Routes each key of the response back to its item's callback.

    The timer never waits for a response, so batches of consecutive ticks
    may be in flight at the same time.

    Example:
        scheduler = PollScheduler(interval_sec=2)
        scheduler.set_request_fn(orchestrator.post)
        scheduler.set_poll_url("/poll")
        scheduler.add_items({"user": PollItem("QueryUser", get_user_params, freq=5, callback=on_user)})
        scheduler.start()
    """

    def __init__(
        self,
        interval_sec: float = 2.0,
        poll_method: str = "poll",
        *,
        response_field: str | None = "data",
    ) -> None:
        """Initialize the scheduler.

        Args:
            interval_sec: Base tick period in seconds.
            poll_method: Method name put in every batch envelope.
            response_field: Field of the response body holding the keyed
                results; None when the body itself is keyed.
        """
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be positive (got: {interval_sec})")
        self.interval_sec = interval_sec
        self.poll_method = poll_method
        self.response_field = response_field
        self.poll_url = ""
        self.request_fn: RequestFn | None = None
        self.items: dict[str, PollItem] = {}
        self.tick = 1
        self.is_started = False
        self._timer: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[None]] = set()

    def set_request_fn(self, request_fn: RequestFn) -> None:
        self.request_fn = request_fn

    def set_poll_url(self, url: str) -> None:
        self.poll_url = url

    def set_items(self, items: ItemsArg) -> None:
        """Replace the whole registry.

        Raises:
            TypeError: If items is not a mapping of poll items.
        """
        if not isinstance(items, Mapping):
            raise TypeError("set_items expects a mapping of item key -> poll item")
        self.items = {key: _to_item(value) for key, value in items.items()}

    def add_items(self, items: ItemsArg) -> None:
        """Merge items into the registry; existing keys are overwritten."""
        if not isinstance(items, Mapping):
            raise TypeError("add_items expects a mapping of item key -> poll item")
        self.items.update({key: _to_item(value) for key, value in items.items()})

    def remove_items(self, keys: str | Iterable[str]) -> None:
        """Remove one key or a list of keys; unknown keys are ignored."""
        key_list = [keys] if isinstance(keys, str) else list(keys)
        for key in key_list:
            self.items.pop(key, None)

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    def _check_config(self) -> bool:
        if self.request_fn is None:
            logger.warning("Polling not started: call set_request_fn(request_fn) first")
            return False
        if not self.poll_url:
            logger.warning("Polling not started: call set_poll_url(poll_url) first")
            return False
        return True

    def start(self) -> bool:
        """Start ticking on the running event loop.

        Returns:
            True if started, False if already running or not configured.
        """
        if self.is_started or not self._check_config():
            return False
        self.tick = 1
        self._timer = asyncio.get_running_loop().create_task(self._run())
        self.is_started = True
        logger.info(f"Polling {self.poll_url} every {self.interval_sec}s with {len(self.items)} items")
        return True

    def stop(self) -> None:
        """Cancel the timer; in-flight batches are left to finish."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self.is_started:
            logger.info("Polling stopped")
        self.is_started = False

    async def aclose(self) -> None:
        """Stop and cancel every in-flight batch."""
        timer = self._timer
        self.stop()
        pending = list(self._pending)
        if timer is not None:
            pending.append(timer)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            try:
                self._on_tick()
            except Exception as e:  # noqa: BLE001
                logger.error(f"Poll tick {self.tick} failed: {e}", exc_info=True)
            next_tick += self.interval_sec
            await asyncio.sleep(max(0, next_tick - loop.time()))

    def _on_tick(self) -> None:
        batch = self.collect(self.tick)
        self.tick += 1
        if not batch:
            return

        # Fire and forget
        task = asyncio.get_running_loop().create_task(self.dispatch(batch))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def poll_once(self) -> PollBatch | None:
        """Run one tick and wait for its batch to be routed.

        Returns:
            The tick's batch, or None if the scheduler is not configured.
        """
        if not self._check_config():
            return None
        batch = self.collect(self.tick)
        self.tick += 1
        if batch:
            await self.dispatch(batch)
        return batch

    def collect(self, tick: int) -> PollBatch:
        """Build the batch of items due on a tick from a registry snapshot.

        Every producer is called, even for items not due on this tick.
        """
        batch = PollBatch(tick=tick)
        for item_key, item in list(self.items.items()):
            try:
                data = item.get_data()
                if not (data and item.is_due(tick)):
                    continue
                route = PollRoute(item_key=item_key, item=replace(item))
                batch.routes[item.response_key] = route
            except Exception as e:  # noqa: BLE001
                logger.error(f"Poll item '{item_key}' skipped on tick {tick}: {e}", exc_info=True)
                continue
            batch.params.append(data)
        return batch

    async def dispatch(self, batch: PollBatch) -> None:
        """Send one batch and route the response back to its items."""
        request_fn = self.request_fn
        if request_fn is None:
            logger.warning(f"Dropping batch of tick {batch.tick}: no request_fn set")
            return

        envelope = {"method": self.poll_method, "data": {"Params": list(batch.params)}}
        try:
            response = await request_fn(self.poll_url, envelope)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Poll request for tick {batch.tick} failed: {e}", exc_info=True)
            return
        await self.route(batch.routes, response)

    def _keyed_results(self, response: ResponseEnvelope | Mapping[str, Any]) -> Mapping[str, Any] | None:
        body = response.data if isinstance(response, ResponseEnvelope) else response
        if self.response_field is not None:
            body = body.get(self.response_field) if isinstance(body, Mapping) else None
        return body if isinstance(body, Mapping) else None

    async def route(
        self,
        routes: Mapping[str, PollRoute],
        response: ResponseEnvelope | Mapping[str, Any],
    ) -> int:
        """Call the callback of every routed key present in the response.

        Args:
            routes: Demultiplexing map of the batch.
            response: Orchestrator envelope or plain response body.

        Returns:
            Number of callbacks that completed.
        """
        results = self._keyed_results(response)
        if results is None:
            logger.debug("Poll response carries no keyed results")
            return 0

        delivered = 0
        for response_key, response_data in results.items():
            route = routes.get(response_key)
            if route is None or not callable(route.item.callback):
                continue
            poll_result = PollResult(
                response_data=response_data,
                response_key=response_key,
                item_key=route.item_key,
                item=route.item,
            )
            try:
                outcome = route.item.callback(poll_result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:  # noqa: BLE001
                logger.error(f"Callback of poll item '{route.item_key}' failed: {e}", exc_info=True)
                continue
            delivered += 1
        return delivered
