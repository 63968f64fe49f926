"""Tests for the in-process event emitter."""

from unittest.mock import Mock

from fetchgate.adapters.driven.events.emitter import EventEmitter

__all__ = []


def test_emit_calls_listeners_in_subscription_order() -> None:
    """Listeners should run in the order they subscribed."""
    emitter = EventEmitter()
    calls: list[tuple[str, int]] = []
    emitter.on("onRes", lambda payload: calls.append(("first", payload)))
    emitter.on("onRes", lambda payload: calls.append(("second", payload)))

    assert emitter.emit("onRes", 1) == 2
    assert calls == [("first", 1), ("second", 1)]


def test_emit_without_listeners() -> None:
    """Emitting on an unused channel should notify nobody."""
    assert EventEmitter().emit("onErr", object()) == 0


def test_once_listener_runs_a_single_time() -> None:
    """A once() listener should be dropped after its first call."""
    emitter = EventEmitter()
    listener = Mock()
    emitter.once("onRes", listener)

    emitter.emit("onRes", "a")
    emitter.emit("onRes", "b")

    listener.assert_called_once_with("a")
    assert emitter.listener_count("onRes") == 0


def test_off_unsubscribes() -> None:
    """off() should remove the listener and ignore unknown ones."""
    emitter = EventEmitter()
    listener = Mock()
    emitter.on("onRes", listener)

    emitter.off("onRes", listener)
    emitter.off("onRes", listener)
    emitter.off("other", listener)
    emitter.emit("onRes", 1)

    listener.assert_not_called()


def test_failing_listener_does_not_block_others() -> None:
    """A listener raising should be logged while the rest still run."""
    emitter = EventEmitter()
    survivor = Mock()
    emitter.on("onErr", Mock(side_effect=RuntimeError("boom")))
    emitter.on("onErr", survivor)

    emitter.emit("onErr", "payload")

    survivor.assert_called_once_with("payload")
