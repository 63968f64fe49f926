"""Polling port definitions (DTOs)."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

__all__ = ["PollBatch", "PollCallback", "PollItem", "PollResult", "PollRoute"]

# Receives a PollResult; may return an awaitable
PollCallback = Callable[[Any], Any]


@dataclass
class PollItem:
    """One registered unit of periodic work.

    Attributes:
        response_key: Key under which the batched response carries this
            item's result.
        get_data: Producer called every tick; returns the item's request
            params, or a falsy value when there is nothing to send.
        freq: Frequency divisor of the scheduler tick (fires on tick 1 and
            on every tick divisible by it).
        callback: Called with a PollResult when a response arrives.
    """

    response_key: str
    get_data: Callable[[], Any]
    freq: int = 1
    callback: PollCallback | None = None

    def __post_init__(self) -> None:
        if isinstance(self.freq, bool) or not isinstance(self.freq, int) or self.freq < 1:
            raise ValueError(f"freq must be an integer >= 1 (got: {self.freq!r})")

    def is_due(self, tick: int) -> bool:
        """Return True if the item fires on this tick."""
        return tick == 1 or tick % self.freq == 0


@dataclass(frozen=True)
class PollRoute:
    """Where one response key is routed back to."""

    item_key: str
    item: PollItem


@dataclass
class PollBatch:
    """Poll items due on one tick, merged into one transport call.

    Attributes:
        tick: Tick the batch was built on.
        params: Produced data of every included item, in registry order.
        routes: Demultiplexing map, response key -> route.
    """

    tick: int
    params: list[Any] = field(default_factory=list)
    routes: dict[str, PollRoute] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.params)


@dataclass(frozen=True)
class PollResult:
    """Argument passed to a poll item callback."""

    response_data: Any
    response_key: str
    item_key: str
    item: PollItem
