"""URL resolution helpers."""

from collections.abc import Mapping
from typing import Any

from yarl import URL

__all__ = ["resolve_url", "to_query_string"]


def resolve_url(base: str, path: str) -> str:
    """Join a base URL and a path with exactly one slash between them.

    Args:
        base: Base URL, may be empty.
        path: Path relative to the base.

    Returns:
        Joined URL; path alone if base is empty, base alone if path is empty.
    """
    if not base:
        return path
    if not path:
        return base
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def _query_value(value: Any) -> str | int | float:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return value
    return str(value)


def to_query_string(url: str, params: Mapping[str, Any] | None) -> str:
    """Append params to a URL's query, keeping any existing query.

    None values are dropped.

    Args:
        url: Target URL.
        params: Query parameters.

    Returns:
        URL with the encoded query.
    """
    if not params:
        return url
    query = {key: _query_value(value) for key, value in params.items() if value is not None}
    if not query:
        return url
    return str(URL(url).update_query(query))
