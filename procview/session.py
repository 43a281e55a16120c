"""Dashboard session: the single owner of all viewer state.

Holds the sample store, range filter, CPU threshold, stream simulator, the
current analysis, the analyzing flag and the persisted analysis slot.
Statistics and incidents are recomputed from the current view on every call.
"""

import logging
from datetime import datetime

from procview.analysis.requester import AnalysisBackend, request_analysis
from procview.config import Settings
from procview.errors import (
    AnalysisInProgressError,
    EmptyViewError,
    NoAnalysisError,
    NoValidSamplesError,
    StreamActiveError,
)
from procview.ingest.parser import generate_demo_samples, parse_log_data
from procview.models import AnalysisResult, Incident, Sample, SampleStats, TimeRange
from procview.series.incidents import DEFAULT_THRESHOLD, detect_incidents, validate_threshold
from procview.series.stats import compute_stats
from procview.series.store import SampleStore
from procview.state.slot import AnalysisSlot
from procview.stream.simulator import StreamSimulator

logger = logging.getLogger(__name__)


class DashboardSession:
    def __init__(
        self,
        store: SampleStore,
        simulator: StreamSimulator,
        slot: AnalysisSlot,
        threshold: int = DEFAULT_THRESHOLD,
        backend: AnalysisBackend | None = None,
    ) -> None:
        self.store = store
        self.simulator = simulator
        self.slot = slot
        self.threshold = validate_threshold(threshold)
        self.time_range = TimeRange()
        self.analysis: AnalysisResult | None = None
        self.analyzing = False
        # None = build the configured LLM backend per request
        self.backend = backend

    @classmethod
    def from_settings(cls, settings: Settings, backend: AnalysisBackend | None = None) -> "DashboardSession":
        store = SampleStore(window=settings.stream_window)
        return cls(
            store=store,
            simulator=StreamSimulator(store, interval_seconds=settings.stream_interval_seconds),
            slot=AnalysisSlot(settings.analysis_state_path),
            threshold=settings.default_cpu_threshold,
            backend=backend,
        )

    @property
    def streaming(self) -> bool:
        return self.simulator.active

    # ------------------------------------------------------------------
    # Data loading
    # ------------------------------------------------------------------

    def load_samples(self, samples: list[Sample]) -> None:
        if not samples:
            raise NoValidSamplesError
        self.simulator.stop()
        self.store.replace(samples)
        self.analysis = None
        self.reset_range()

    def load_text(self, text: str) -> int:
        """Parse JSONL text into the store. Returns the number of samples loaded."""
        samples = parse_log_data(text)
        self.load_samples(samples)
        return len(samples)

    def load_demo(self, now: datetime | None = None) -> int:
        samples = generate_demo_samples(now)
        self.load_samples(samples)
        return len(samples)

    def reset(self) -> None:
        """Back to the empty setup state."""
        self.simulator.stop()
        self.store.clear()
        self.analysis = None
        self.time_range = TimeRange()

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def set_range(self, start: datetime | None, end: datetime | None) -> None:
        if self.streaming:
            msg = "Time range cannot be changed while the live stream is running"
            raise StreamActiveError(msg)
        self.time_range = TimeRange(start=start, end=end)

    def reset_range(self) -> None:
        self.time_range = self.store.bounds()

    def set_threshold(self, threshold: int) -> None:
        self.threshold = validate_threshold(threshold)

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    def view(self) -> list[Sample]:
        """Visible samples: the whole rolling window while streaming, else the filtered store."""
        if self.streaming:
            return list(self.store.samples)
        return self.store.filter(self.time_range)

    def stats(self) -> SampleStats:
        return compute_stats(self.view())

    def incidents(self) -> list[Incident]:
        return detect_incidents(self.view(), self.threshold)

    # ------------------------------------------------------------------
    # Live stream
    # ------------------------------------------------------------------

    def start_stream(self) -> None:
        if self.streaming:
            return
        self.simulator.start()
        # Streamed data no longer matches any earlier analysis.
        self.analysis = None

    def stop_stream(self) -> None:
        self.simulator.stop()

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze(self, stop_stream: bool = False) -> AnalysisResult:
        """Run an AI analysis of the current view.

        Args:
            stop_stream: Confirmation to stop a running live stream first.

        Raises:
            AnalysisInProgressError: If another analysis is still running.
            StreamActiveError: If streaming and ``stop_stream`` is False.
            EmptyViewError: If the current view holds no samples.
            MissingCredentialError: If no LLM API key is configured.
        """
        if self.analyzing:
            msg = "An analysis is already in progress"
            raise AnalysisInProgressError(msg)
        if self.streaming and not stop_stream:
            msg = "Analyzing will pause the live stream; confirm to continue"
            raise StreamActiveError(msg)
        # Capture before stopping: once idle, view() is filtered by the pre-stream range.
        samples = self.view()
        if not samples:
            msg = "No samples in the selected range to analyze"
            raise EmptyViewError(msg)
        self.stop_stream()

        self.analyzing = True
        try:
            result = await request_analysis(samples, backend=self.backend)
        finally:
            self.analyzing = False
        self.analysis = result
        return result

    def clear_analysis(self) -> None:
        self.analysis = None

    def has_saved_analysis(self) -> bool:
        return self.slot.exists()

    def save_analysis(self) -> None:
        if self.analysis is None:
            msg = "There is no analysis to save"
            raise NoAnalysisError(msg)
        self.slot.save(self.analysis)

    def load_analysis(self) -> bool:
        """Replace the current analysis with the saved one. Returns False if none is usable."""
        saved = self.slot.load()
        if saved is None:
            return False
        self.analysis = saved
        return True

    def close(self) -> None:
        self.simulator.close()
