"""Threshold incident detection over a sample view."""

from collections.abc import Sequence
from datetime import datetime

from procview.models import Incident, Sample

DEFAULT_THRESHOLD = 80
MIN_RUN_LENGTH = 3


def validate_threshold(threshold: int) -> int:
    """Check that a CPU threshold is an integer percentage in 1-100."""
    if isinstance(threshold, bool) or not isinstance(threshold, int) or not 1 <= threshold <= 100:
        msg = f"threshold must be an integer between 1 and 100, got {threshold!r}"
        raise ValueError(msg)
    return threshold


def detect_incidents(samples: Sequence[Sample], threshold: int = DEFAULT_THRESHOLD) -> list[Incident]:
    """Find runs of 3+ consecutive samples whose user+sys CPU exceeds ``threshold``.

    Single left-to-right sweep.  The comparison is strict, runs shorter than
    three samples are dropped as noise, and a run still open at the end of the
    sequence is closed at the last sample's timestamp.
    """
    validate_threshold(threshold)
    incidents: list[Incident] = []

    run_length = 0
    run_start: datetime | None = None
    run_end: datetime | None = None
    run_peak = 0.0

    def close_run() -> None:
        if run_length >= MIN_RUN_LENGTH and run_start is not None and run_end is not None:
            incidents.append(Incident(start=run_start, end=run_end, peak=round(run_peak, 2), samples=run_length))

    for sample in samples:
        total = sample.total_cpu
        if total > threshold:
            if run_length == 0:
                run_start = sample.timestamp
                run_peak = total
            else:
                run_peak = max(run_peak, total)
            run_end = sample.timestamp
            run_length += 1
        else:
            close_run()
            run_length = 0
            run_start = None
            run_end = None
            run_peak = 0.0

    # Flush the open run; its end is the last sample of the sequence.
    if samples:
        run_end = samples[-1].timestamp
    close_run()

    return incidents
