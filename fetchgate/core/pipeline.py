"""Sequential before/after middleware execution."""

import inspect
from collections.abc import Callable, Sequence
from typing import Any

__all__ = ["Middleware", "run_middlewares"]

# A stage may return its result directly or an awaitable of it
Middleware = Callable[[Any], Any]


async def run_middlewares(value: Any, middlewares: Sequence[Middleware | None] | None) -> Any:
    """Fold a middleware list left-to-right over a value.

    Each stage receives the previous stage's output. Async stages are
    awaited before the next stage starts, so stages never overlap.
    Non-callable entries are skipped.

    Args:
        value: Initial value. A dict is shallow-copied first so stages do
            not mutate the caller's object.
        middlewares: Ordered stages; None or empty means identity.

    Returns:
        Output of the last stage.

    Raises:
        Exception: Whatever a stage raises; remaining stages are skipped.
    """
    if not middlewares:
        return value

    data = dict(value) if isinstance(value, dict) else value
    for middleware in middlewares:
        if not callable(middleware):
            continue
        data = middleware(data)
        if inspect.isawaitable(data):
            data = await data
    return data
