"""In-memory time-series store and inclusive range filtering."""

import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from procview.models import Sample, TimeRange

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 100


def _comparable(value: datetime, reference: datetime) -> datetime:
    """Align naive/aware datetimes so they can be compared (naive is read as UTC)."""
    if (value.tzinfo is None) == (reference.tzinfo is None):
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC).replace(tzinfo=None)


def _in_range(timestamp: datetime, time_range: TimeRange) -> bool:
    if time_range.start is not None and timestamp < _comparable(time_range.start, timestamp):
        return False
    if time_range.end is not None and timestamp > _comparable(time_range.end, timestamp):
        return False
    return True


def filter_samples(samples: Sequence[Sample], time_range: TimeRange | None) -> list[Sample]:
    """Return the samples with ``start <= timestamp <= end``.

    Boundary-equal timestamps are included.  With both bounds absent the full
    sequence is returned unchanged.
    """
    if time_range is None or time_range.is_unbounded:
        return list(samples)
    return [s for s in samples if _in_range(s.timestamp, time_range)]


class SampleStore:
    """Owns the canonical ordered sample sequence.

    ``replace`` swaps the whole sequence on new ingestion.  ``append`` is the
    streaming path and keeps at most ``window`` samples, dropping the oldest.
    """

    def __init__(self, samples: Iterable[Sample] = (), window: int = DEFAULT_WINDOW) -> None:
        if window < 1:
            msg = f"window must be positive, got {window}"
            raise ValueError(msg)
        self._window = window
        self._samples: list[Sample] = list(samples)

    @property
    def window(self) -> int:
        return self._window

    @property
    def samples(self) -> tuple[Sample, ...]:
        return tuple(self._samples)

    @property
    def last(self) -> Sample | None:
        return self._samples[-1] if self._samples else None

    def __len__(self) -> int:
        return len(self._samples)

    def replace(self, samples: Iterable[Sample]) -> None:
        self._samples = list(samples)
        logger.debug("Store replaced with %d samples", len(self._samples))

    def clear(self) -> None:
        self._samples = []

    def append(self, sample: Sample) -> None:
        """Append under the capacity window; the oldest samples are dropped first."""
        self._samples.append(sample)
        overflow = len(self._samples) - self._window
        if overflow > 0:
            del self._samples[:overflow]

    def filter(self, time_range: TimeRange | None) -> list[Sample]:
        return filter_samples(self._samples, time_range)

    def bounds(self) -> TimeRange:
        """Range spanning the first and last stored timestamps (unbounded when empty)."""
        if not self._samples:
            return TimeRange()
        return TimeRange(start=self._samples[0].timestamp, end=self._samples[-1].timestamp)
