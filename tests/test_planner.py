"""Tests for ec2metrics.core.planner: chunking under the datapoint cap."""

from datetime import timedelta

import pytest

from ec2metrics.core.models import TimeRange
from ec2metrics.core.planner import estimate_datapoints, plan_chunks
from tests.helpers import BASE, at


def _assert_covers(chunks, time_range, period, cap=1440):
    assert chunks[0].start == time_range.start
    assert chunks[-1].end == time_range.end
    for prev, cur in zip(chunks, chunks[1:]):
        assert prev.end == cur.start
    for c in chunks:
        assert c.start < c.end
        assert c.period_seconds == period
        assert estimate_datapoints(c.duration_seconds, period) <= cap


def test_one_hour_at_five_minutes_is_single_chunk():
    r = TimeRange(BASE, BASE + timedelta(hours=1))
    chunks = plan_chunks(r, 300)
    assert estimate_datapoints(r.duration_seconds, 300) == 12
    assert len(chunks) == 1
    assert (chunks[0].start, chunks[0].end) == (r.start, r.end)


def test_two_days_at_one_minute_is_two_chunks():
    r = TimeRange(BASE, BASE + timedelta(days=2))
    chunks = plan_chunks(r, 60)
    assert estimate_datapoints(r.duration_seconds, 60) == 2880
    assert len(chunks) == 2
    assert chunks[0].end == BASE + timedelta(days=1)
    _assert_covers(chunks, r, 60)


def test_exactly_at_cap_is_not_split():
    r = TimeRange(BASE, at(1440 * 60))
    assert len(plan_chunks(r, 60)) == 1


def test_one_over_cap_splits_and_clamps_last_chunk():
    r = TimeRange(BASE, at(1441 * 60))
    chunks = plan_chunks(r, 60)
    assert len(chunks) == 2
    assert chunks[1].start == at(1440 * 60)
    assert chunks[1].end == r.end


def test_partial_period_rounds_estimate_up():
    # 1440 periods plus one second needs a second chunk
    r = TimeRange(BASE, at(1440 * 60 + 1))
    chunks = plan_chunks(r, 60)
    assert len(chunks) == 2
    assert chunks[1].duration_seconds == 1


@pytest.mark.parametrize("days,period", [
    (7, 60), (15, 60), (30, 300), (90, 900), (455, 3600), (3, 300),
])
def test_plans_cover_range_contiguously(days, period):
    r = TimeRange(BASE, BASE + timedelta(days=days, minutes=7, seconds=13))
    chunks = plan_chunks(r, period)
    _assert_covers(chunks, r, period)


def test_plan_is_deterministic():
    r = TimeRange(BASE, BASE + timedelta(days=9))
    assert plan_chunks(r, 60) == plan_chunks(r, 60)


def test_custom_cap():
    r = TimeRange(BASE, BASE + timedelta(hours=1))
    chunks = plan_chunks(r, 60, max_datapoints=25)
    assert len(chunks) == 3
    _assert_covers(chunks, r, 60, cap=25)
