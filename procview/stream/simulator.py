"""Live stream simulation: random-walks the last sample once per interval.

Uses APScheduler's AsyncIOScheduler with an interval job so ticks run as
coroutines on the server's event loop.  The simulator owns its scheduler:
``start`` creates it, ``stop`` removes the job and shuts it down.  Both are
idempotent, and a tick that slips in after ``stop`` commits nothing.
"""

import contextlib
import logging
import random
from collections.abc import Callable
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-untyped]
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore[import-untyped]

from procview.models import Sample
from procview.observability.metrics import STREAM_ACTIVE, STREAM_TICKS_TOTAL
from procview.series.store import SampleStore

logger = logging.getLogger(__name__)

TICK_STEP = timedelta(seconds=1)
USER_DRIFT = 5.0
SYS_DRIFT = 2.5
MEMORY_DRIFT = 1.0

_JOB_ID = "stream_tick"


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))


def next_sample(last: Sample, rng: random.Random | None = None) -> Sample:
    """Derive the next simulated sample from ``last``.

    Timestamp advances exactly one second.  User CPU drifts by up to +/-5,
    system CPU by +/-2.5 and memory (when present) by +/-1; every percentage
    is clamped to [0, 100] and rounded to two decimals.
    """
    rng = rng or random.Random()
    memory: float | None = None
    if last.memory_percent is not None:
        memory = round(_clamp(last.memory_percent + rng.uniform(-MEMORY_DRIFT, MEMORY_DRIFT)), 2)

    return Sample(
        timestamp=last.timestamp + TICK_STEP,
        pid=last.pid,
        cpu_user_percent=round(_clamp(last.cpu_user_percent + rng.uniform(-USER_DRIFT, USER_DRIFT)), 2),
        cpu_sys_percent=round(_clamp(last.cpu_sys_percent + rng.uniform(-SYS_DRIFT, SYS_DRIFT)), 2),
        memory_percent=memory,
        command=last.command,
    )


class StreamSimulator:
    """Idle/active state machine appending one synthetic sample per tick."""

    def __init__(
        self,
        store: SampleStore,
        interval_seconds: float = 1.0,
        rng: random.Random | None = None,
        scheduler_factory: Callable[[], AsyncIOScheduler] = AsyncIOScheduler,
    ) -> None:
        self._store = store
        self._interval = interval_seconds
        self._rng = rng or random.Random()
        self._scheduler_factory = scheduler_factory
        self._scheduler: AsyncIOScheduler | None = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def tick(self) -> Sample | None:
        """Append one simulated sample. Returns None when idle or the store is empty."""
        if not self._active:
            return None
        last = self._store.last
        if last is None:
            return None
        sample = next_sample(last, self._rng)
        self._store.append(sample)
        STREAM_TICKS_TOTAL.inc()
        return sample

    async def _tick_job(self) -> None:
        self.tick()

    def start(self) -> None:
        """Begin ticking. No-op when already active.

        Raises:
            ValueError: If the store has no sample to walk from.
        """
        if self._active:
            return
        if self._store.last is None:
            msg = "Cannot start the live stream without any samples"
            raise ValueError(msg)

        scheduler = self._scheduler_factory()
        scheduler.add_job(
            self._tick_job,
            trigger=IntervalTrigger(seconds=self._interval),
            id=_JOB_ID,
            name="Live stream tick",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        self._active = True
        STREAM_ACTIVE.set(1)
        logger.info("Live stream started (interval %.1fs, window %d)", self._interval, self._store.window)

    def stop(self) -> None:
        """Stop ticking and cancel the pending job. No-op when idle."""
        if not self._active:
            return
        self._active = False
        STREAM_ACTIVE.set(0)
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None:
            with contextlib.suppress(Exception):
                scheduler.remove_job(_JOB_ID)
            with contextlib.suppress(Exception):
                scheduler.shutdown(wait=False)
        logger.info("Live stream stopped")

    def close(self) -> None:
        self.stop()
