"""Summary statistics over a sample view."""

from collections.abc import Sequence

from procview.models import Sample, SampleStats


def compute_stats(samples: Sequence[Sample]) -> SampleStats:
    """Averages and peak total CPU, rounded to one decimal.

    ``avg_mem`` is None when no sample carries memory data, which keeps
    "not available" distinct from a real 0% average.
    """
    count = len(samples)
    if count == 0:
        return SampleStats(avg_user=0.0, avg_sys=0.0, max_total=0.0, avg_mem=None, count=0)

    sum_user = sum(s.cpu_user_percent for s in samples)
    sum_sys = sum(s.cpu_sys_percent for s in samples)
    max_total = max(s.total_cpu for s in samples)
    memory = [s.memory_percent for s in samples if s.memory_percent is not None]

    return SampleStats(
        avg_user=round(sum_user / count, 1),
        avg_sys=round(sum_sys / count, 1),
        max_total=round(max_total, 1),
        avg_mem=round(sum(memory) / len(memory), 1) if memory else None,
        count=count,
    )
