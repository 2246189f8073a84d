"""Tests for ec2metrics.core.fetcher: throttling retry with backoff."""

import time
from unittest.mock import call, patch

import pytest

from ec2metrics.core.fetcher import ChunkFetcher
from ec2metrics.core.models import Chunk
from ec2metrics.core.stats import SourceStats
from ec2metrics.core.utils import QueryTimeout
from ec2metrics.metrics.interface import RateLimited, UpstreamFailure
from tests.helpers import BASE, ExplodingSource, FakeSource, at, samples_every

CHUNK = Chunk(BASE, at(3600), 300)


@patch("ec2metrics.core.fetcher.time.sleep")  # don't actually sleep in tests
def test_returns_samples_without_retry(mock_sleep):
    samples = samples_every(300, 3)
    source = FakeSource(script=[samples])
    result = ChunkFetcher(source).fetch("i-abc", CHUNK)

    assert result == samples
    assert source.calls == [("i-abc", CHUNK.start, CHUNK.end, 300)]
    mock_sleep.assert_not_called()


@patch("ec2metrics.core.fetcher.time.sleep")
def test_retries_twice_then_succeeds(mock_sleep):
    """Two throttles then success: three invocations in total."""
    samples = samples_every(300, 2)
    source = FakeSource(script=[
        RateLimited("slow down", code="Throttling"),
        RateLimited("slow down", code="Throttling"),
        samples,
    ])
    result = ChunkFetcher(source).fetch("i-abc", CHUNK)

    assert result == samples
    assert len(source.calls) == 3
    assert mock_sleep.call_args_list == [call(0.2), call(0.4)]


@patch("ec2metrics.core.fetcher.time.sleep")
def test_gives_up_after_four_attempts(mock_sleep):
    err = RateLimited("slow down", code="Throttling")
    source = ExplodingSource(err)

    with pytest.raises(RateLimited) as exc_info:
        ChunkFetcher(source).fetch("i-abc", CHUNK)

    assert exc_info.value is err
    assert source.calls == 4
    assert mock_sleep.call_args_list == [call(0.2), call(0.4), call(0.8)]


@patch("ec2metrics.core.fetcher.time.sleep")
def test_every_retry_reissues_the_same_window(mock_sleep):
    source = FakeSource(script=[RateLimited("x"), []])
    ChunkFetcher(source).fetch("i-abc", CHUNK)
    assert source.calls[0] == source.calls[1]


@patch("ec2metrics.core.fetcher.time.sleep")
def test_upstream_failure_is_not_retried(mock_sleep):
    err = UpstreamFailure("access denied", code="AccessDenied")
    source = ExplodingSource(err)

    with pytest.raises(UpstreamFailure) as exc_info:
        ChunkFetcher(source).fetch("i-abc", CHUNK)

    assert exc_info.value is err
    assert source.calls == 1
    mock_sleep.assert_not_called()


@patch("ec2metrics.core.fetcher.time.sleep")
def test_foreign_exceptions_propagate_untouched(mock_sleep):
    source = ExplodingSource(ConnectionError("socket closed"))
    with pytest.raises(ConnectionError):
        ChunkFetcher(source).fetch("i-abc", CHUNK)
    assert source.calls == 1


@patch("ec2metrics.core.fetcher.time.sleep")
def test_custom_retry_count(mock_sleep):
    source = ExplodingSource(RateLimited("x"))
    fetcher = ChunkFetcher(source, max_retries=1, base_backoff_ms=50)
    with pytest.raises(RateLimited):
        fetcher.fetch("i-abc", CHUNK)
    assert source.calls == 2
    mock_sleep.assert_called_once_with(0.05)


@patch("ec2metrics.core.fetcher.time.sleep")
def test_backoff_past_deadline_times_out(mock_sleep):
    source = ExplodingSource(RateLimited("x"))
    deadline = time.monotonic() + 0.1  # first backoff (0.2s) would overrun

    with pytest.raises(QueryTimeout) as exc_info:
        ChunkFetcher(source).fetch("i-abc", CHUNK, deadline=deadline)

    assert isinstance(exc_info.value.__cause__, RateLimited)
    assert source.calls == 1
    mock_sleep.assert_not_called()


@patch("ec2metrics.core.fetcher.time.sleep")
def test_records_stats(mock_sleep):
    stats = SourceStats("fake")
    source = FakeSource(script=[RateLimited("x"), samples_every(300, 4)])
    ChunkFetcher(source, stats=stats).fetch("i-abc", CHUNK)

    d = stats.to_dict()
    assert d["stats"]["calls"] == 1
    assert d["stats"]["samples"] == 4
    assert d["stats"]["throttles"] == 1
    assert d["stats"]["errors"] == 0
    assert stats.health == "healthy"


@patch("ec2metrics.core.fetcher.time.sleep")
def test_exhausted_throttling_counts_as_error(mock_sleep):
    stats = SourceStats("fake")
    with pytest.raises(RateLimited):
        ChunkFetcher(ExplodingSource(RateLimited("x")), stats=stats).fetch("i-abc", CHUNK)

    d = stats.to_dict()
    assert d["stats"]["throttles"] == 4
    assert d["stats"]["errors"] == 1
    assert stats.health == "degraded"


@patch("ec2metrics.core.fetcher.time.sleep")
def test_timeout_during_backoff_counts_as_error(mock_sleep):
    stats = SourceStats("fake")
    fetcher = ChunkFetcher(ExplodingSource(RateLimited("x")), stats=stats)

    with pytest.raises(QueryTimeout):
        fetcher.fetch("i-abc", CHUNK, deadline=time.monotonic() + 0.1)

    d = stats.to_dict()
    assert d["stats"]["throttles"] == 1
    assert d["stats"]["errors"] == 1
    assert "deadline" in d["stats"]["last_error_msg"]
    assert stats.health == "degraded"


@patch("ec2metrics.core.fetcher.time.sleep")
def test_foreign_exception_counts_as_error(mock_sleep):
    stats = SourceStats("fake")
    fetcher = ChunkFetcher(ExplodingSource(ConnectionError("socket closed")), stats=stats)

    with pytest.raises(ConnectionError):
        fetcher.fetch("i-abc", CHUNK)

    d = stats.to_dict()
    assert d["stats"]["errors"] == 1
    assert d["stats"]["last_error_msg"] == "socket closed"
    assert stats.health == "degraded"
