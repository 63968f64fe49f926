"""LZMA payload codec and the middleware stages built on it."""

import asyncio
import json
import logging
import lzma
from collections.abc import Awaitable, Callable
from typing import Any

__all__ = [
    "DEFAULT_COMPRESS_LEN_LIMIT",
    "CodecError",
    "compress",
    "decode",
    "decompress",
    "encode",
]

logger = logging.getLogger(__name__)

DEFAULT_COMPRESS_LEN_LIMIT = 2048
COMPRESS_PRESET = 1

Wrapper = Callable[[Any], Any]


class CodecError(ValueError):
    """Raised when an encoded payload cannot be decoded."""


def _identity(data: Any) -> Any:
    return data


def encode(payload: Any, size_limit: int = DEFAULT_COMPRESS_LEN_LIMIT) -> Any:
    """Compress a payload whose JSON form is longer than size_limit.

    Args:
        payload: JSON-serializable value.
        size_limit: Length of the JSON text above which to compress.

    Returns:
        The payload unchanged, or the compressed bytes as a lowercase hex
        string (.lzma "alone" container).
    """
    if not payload:
        return payload

    text = json.dumps(payload)
    if len(text) <= size_limit:
        return payload

    compressed = lzma.compress(text.encode(), format=lzma.FORMAT_ALONE, preset=COMPRESS_PRESET)
    return compressed.hex()


def decode(data: Any) -> Any:
    """Reverse encode(); non-string values are returned unchanged.

    Raises:
        CodecError: If the string is not a valid encoded payload.
    """
    if not isinstance(data, str):
        return data
    try:
        raw = lzma.decompress(bytes.fromhex(data), format=lzma.FORMAT_AUTO)
        return json.loads(raw)
    except (ValueError, lzma.LZMAError) as e:
        raise CodecError("decompress fail") from e


def compress(
    size_limit: int = DEFAULT_COMPRESS_LEN_LIMIT,
    wrapper: Wrapper = _identity,
) -> Callable[[Any], Awaitable[Any]]:
    """Build a before-request middleware that encodes large payloads.

    Args:
        size_limit: Passed to encode().
        wrapper: Applied to the encoded result, e.g. to wrap it in an
            envelope the server expects.

    Returns:
        Async middleware.
    """

    async def _compress(data: Any) -> Any:
        encoded = await asyncio.to_thread(encode, data, size_limit)
        return wrapper(encoded)

    return _compress


def decompress(
    before: Wrapper = _identity,
    after: Wrapper = _identity,
) -> Callable[[Any], Awaitable[Any]]:
    """Build an after-response middleware that decodes payloads.

    Args:
        before: Extracts the encoded value from the response body.
        after: Applied to the decoded value.

    Returns:
        Async middleware.
    """

    async def _decompress(data: Any) -> Any:
        decoded = await asyncio.to_thread(decode, before(data))
        logger.debug("Decompressed response payload")
        return after(decoded)

    return _decompress
