"""Tests for round-trip metrics collection."""

from fetchgate.adapters.driven.metrics.http_metrics import Metrics
from fetchgate.ports.metrics import HttpAttemptDto

__all__ = []


def test_metrics_initialization() -> None:
    """Metrics should start with an empty window."""
    metrics = Metrics()

    assert str(metrics) == "Metrics: waiting for data …"
    assert metrics.total == 0


def test_metrics_calculates_latency() -> None:
    """Latency should be the round-trip duration in milliseconds."""
    metrics = Metrics(window_size=10)
    metrics.update(HttpAttemptDto(started_at_sec=100.0, finished_at_sec=100.25, status_code=200))

    output = str(metrics)
    assert "latency= 250.0 ms" in output
    assert "status=200" in output


def test_metrics_tracks_failures() -> None:
    """Failure rate should reflect the attempts marked failed."""
    metrics = Metrics(window_size=10)

    for i in range(3):
        metrics.update(HttpAttemptDto(100.0 + i, 100.0 + i, False, 200))
    metrics.update(HttpAttemptDto(104.0, 104.0, True, 500))

    output = str(metrics)
    assert "fail= 25.0%" in output
    assert "status=500" in output


def test_metrics_missing_status_code_is_zero() -> None:
    """Attempts without a status code should render as status 0."""
    metrics = Metrics()
    metrics.update(HttpAttemptDto(1.0, 1.0))

    assert "status=  0" in str(metrics)


def test_metrics_respects_window_size() -> None:
    """Only the most recent attempts should be kept, the total keeps counting."""
    metrics = Metrics(window_size=4)

    for i in range(9):
        metrics.update(HttpAttemptDto(100.0 + i, 100.0 + i, False, 200))

    output = str(metrics)
    assert "win=4/4" in output
    assert "total=9" in output
    assert metrics.total == 9
