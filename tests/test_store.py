"""Unit tests for the sample store and range filtering."""

from datetime import UTC, timedelta

import pytest
from conftest import BASE_TIME, make_sample

from procview.models import TimeRange
from procview.series.store import SampleStore, filter_samples


def _samples(n: int) -> list:
    return [make_sample(i, user=float(i)) for i in range(n)]


class TestFilterSamples:
    def test_unbounded_range_is_identity(self) -> None:
        samples = _samples(5)
        assert filter_samples(samples, TimeRange()) == samples
        assert filter_samples(samples, None) == samples

    def test_inclusive_bounds(self) -> None:
        samples = _samples(10)
        result = filter_samples(
            samples,
            TimeRange(start=BASE_TIME + timedelta(seconds=2), end=BASE_TIME + timedelta(seconds=5)),
        )
        assert [s.cpu_user_percent for s in result] == [2, 3, 4, 5]

    def test_start_only(self) -> None:
        result = filter_samples(_samples(5), TimeRange(start=BASE_TIME + timedelta(seconds=3)))
        assert [s.cpu_user_percent for s in result] == [3, 4]

    def test_end_only(self) -> None:
        result = filter_samples(_samples(5), TimeRange(end=BASE_TIME + timedelta(seconds=1)))
        assert [s.cpu_user_percent for s in result] == [0, 1]

    def test_empty_window(self) -> None:
        result = filter_samples(
            _samples(5),
            TimeRange(start=BASE_TIME + timedelta(seconds=30), end=BASE_TIME + timedelta(seconds=40)),
        )
        assert result == []

    def test_aware_bounds_against_naive_samples(self) -> None:
        start = (BASE_TIME + timedelta(seconds=1)).replace(tzinfo=UTC)
        end = (BASE_TIME + timedelta(seconds=2)).replace(tzinfo=UTC)
        result = filter_samples(_samples(5), TimeRange(start=start, end=end))
        assert [s.cpu_user_percent for s in result] == [1, 2]


class TestSampleStore:
    def test_append_respects_window(self) -> None:
        store = SampleStore(window=100)
        for i in range(250):
            store.append(make_sample(i, user=1.0))
            assert len(store) <= 100

        assert len(store) == 100
        assert store.samples[0].timestamp == BASE_TIME + timedelta(seconds=150)
        assert store.samples[-1].timestamp == BASE_TIME + timedelta(seconds=249)

    def test_append_drops_oldest_of_oversized_load(self) -> None:
        store = SampleStore(_samples(120), window=100)
        store.append(make_sample(120, user=0.0))
        assert len(store) == 100
        assert store.samples[0].cpu_user_percent == 21

    def test_replace_is_wholesale(self) -> None:
        store = SampleStore(_samples(3))
        store.replace(_samples(150))
        # Ingestion is not subject to the streaming window.
        assert len(store) == 150

    def test_last_and_bounds(self) -> None:
        store = SampleStore()
        assert store.last is None
        assert store.bounds() == TimeRange()

        store.replace(_samples(4))
        assert store.last is not None
        assert store.last.cpu_user_percent == 3
        assert store.bounds() == TimeRange(start=BASE_TIME, end=BASE_TIME + timedelta(seconds=3))

    def test_filter_with_bounds_returns_everything(self) -> None:
        store = SampleStore(_samples(6))
        assert store.filter(store.bounds()) == list(store.samples)

    def test_rejects_non_positive_window(self) -> None:
        with pytest.raises(ValueError, match="window"):
            SampleStore(window=0)
