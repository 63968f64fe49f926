"""In-process event emitter for the orchestrator's broadcast channels."""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from fetchgate.ports.events import EventsPort

__all__ = ["EventEmitter", "Listener"]

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]


class EventEmitter(EventsPort):
    """Synchronous named-channel emitter.

    Listeners run in subscription order on the caller's stack. A failing
    listener is logged and does not prevent the others from running.
    """

    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[Listener]] = defaultdict(list)

    def on(self, name: str, listener: Listener) -> Listener:
        """Subscribe listener to a channel.

        Returns:
            The listener, so the method can be used as a decorator.
        """
        self._listeners[name].append(listener)
        return listener

    def once(self, name: str, listener: Listener) -> Listener:
        """Subscribe listener for a single emission."""

        def _once(payload: Any) -> Any:
            self.off(name, _once)
            return listener(payload)

        return self.on(name, _once)

    def off(self, name: str, listener: Listener) -> None:
        """Unsubscribe listener; unknown listeners are ignored."""
        listeners = self._listeners.get(name)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def listener_count(self, name: str) -> int:
        return len(self._listeners.get(name, ()))

    def emit(self, name: str, payload: Any) -> int:
        # Snapshot so once() listeners can unsubscribe while iterating
        listeners = list(self._listeners.get(name, ()))
        for listener in listeners:
            try:
                listener(payload)
            except Exception as e:  # noqa: BLE001
                logger.error(f"Listener for '{name}' failed: {e}", exc_info=True)
        return len(listeners)
