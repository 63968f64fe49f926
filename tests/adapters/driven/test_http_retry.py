"""Tests for the transport retry decorator."""

from unittest.mock import AsyncMock, Mock, call, patch

import pytest

from fetchgate.adapters.driven.http.retry import RETRYABLE_ERRORS, retry

__all__ = []


@pytest.mark.asyncio
@pytest.mark.parametrize("exc_type", RETRYABLE_ERRORS)
async def test_retry_gives_up_after_configured_attempts(exc_type: type[BaseException]) -> None:
    """Every transient error type should be retried until attempts run out."""
    mock_fn = AsyncMock(side_effect=exc_type(Mock(), Mock()))
    wrapped = retry(times=3)(mock_fn)

    with (
        patch("fetchgate.adapters.driven.http.retry.asyncio.sleep", new=AsyncMock()),
        pytest.raises(exc_type),
    ):
        await wrapped()

    assert mock_fn.call_count == 3


@pytest.mark.asyncio
async def test_retry_returns_first_success() -> None:
    """A transient failure followed by success should return the success."""
    transient = RETRYABLE_ERRORS[1]("reset")
    mock_fn = AsyncMock(side_effect=[transient, "response"])
    wrapped = retry(times=3)(mock_fn)

    with patch("fetchgate.adapters.driven.http.retry.asyncio.sleep", new=AsyncMock()):
        assert await wrapped("req") == "response"

    assert mock_fn.await_args_list == [call("req"), call("req")]


@pytest.mark.asyncio
async def test_retry_passes_permanent_errors_through() -> None:
    """Errors outside RETRYABLE_ERRORS should not be retried."""
    mock_fn = AsyncMock(side_effect=KeyError("missing"))
    wrapped = retry(times=5)(mock_fn)

    with pytest.raises(KeyError):
        await wrapped()

    assert mock_fn.call_count == 1


@pytest.mark.asyncio
async def test_retry_reuses_last_delay() -> None:
    """With more attempts than delays, the last delay should repeat."""
    mock_fn = AsyncMock(side_effect=RETRYABLE_ERRORS[1]("reset"))
    wrapped = retry(times=4, delay_sec=(0.1, 0.2))(mock_fn)
    mock_sleep = AsyncMock()

    with (
        patch("fetchgate.adapters.driven.http.retry.asyncio.sleep", mock_sleep),
        pytest.raises(RETRYABLE_ERRORS[1]),
    ):
        await wrapped()

    assert [c.args[0] for c in mock_sleep.await_args_list] == [0.1, 0.2, 0.2]
