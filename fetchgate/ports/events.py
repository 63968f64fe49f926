"""Event broadcasting port definition (interface)."""

from typing import Any, Protocol

__all__ = ["EventsPort"]


class EventsPort(Protocol):
    """Interface for broadcasting named events.

    The orchestrator emits on two channels (success and error); consumers
    subscribe through the concrete implementation.
    """

    def emit(self, name: str, payload: Any, /) -> int:
        """Broadcast payload on a channel.

        Args:
            name: Channel name.
            payload: Value passed to every listener.

        Returns:
            Number of listeners notified.
        """
        ...
