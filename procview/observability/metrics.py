"""Prometheus metric definitions for procview self-instrumentation.

All metrics are module-level singletons registered with the default
prometheus_client registry.  Import them wherever instrumentation is needed.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# ---------------------------------------------------------------------------
# Histogram bucket definitions
# ---------------------------------------------------------------------------

REQUEST_DURATION_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0)
ANALYSIS_DURATION_BUCKETS = (0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 30.0, 60.0)

# ---------------------------------------------------------------------------
# Request-level metrics
# ---------------------------------------------------------------------------

REQUEST_DURATION = Histogram(
    "procview_request_duration_seconds",
    "End-to-end request duration in seconds",
    labelnames=["endpoint"],
    buckets=REQUEST_DURATION_BUCKETS,
)

REQUESTS_TOTAL = Counter(
    "procview_requests_total",
    "Total number of requests",
    labelnames=["endpoint", "status"],
)

# ---------------------------------------------------------------------------
# Ingestion / stream metrics
# ---------------------------------------------------------------------------

SAMPLES_INGESTED_TOTAL = Counter(
    "procview_samples_ingested",
    "Total number of valid samples parsed from JSON lines",
)

LINES_SKIPPED_TOTAL = Counter(
    "procview_lines_skipped",
    "Total number of JSON lines skipped as invalid",
)

STREAM_TICKS_TOTAL = Counter(
    "procview_stream_ticks",
    "Total number of simulated samples appended by the live stream",
)

STREAM_ACTIVE = Gauge(
    "procview_stream_active",
    "Whether the live stream simulation is running (1=active, 0=idle)",
)

# ---------------------------------------------------------------------------
# Analysis / LLM metrics
# ---------------------------------------------------------------------------

LLM_CALLS_TOTAL = Counter(
    "procview_llm_calls",
    "Total number of LLM calls",
    labelnames=["status"],
)

ANALYSIS_REQUESTS_TOTAL = Counter(
    "procview_analysis_requests",
    "Total number of AI analysis requests",
    labelnames=["status"],
)

ANALYSIS_DURATION = Histogram(
    "procview_analysis_duration_seconds",
    "Time taken by an AI analysis request in seconds",
    buckets=ANALYSIS_DURATION_BUCKETS,
)

LLM_TOKEN_USAGE = Counter(
    "procview_llm_token_usage",
    "Total LLM token usage",
    labelnames=["type"],
)

LLM_ESTIMATED_COST = Counter(
    "procview_llm_estimated_cost_dollars",
    "Estimated cumulative LLM cost in USD",
)

APP_INFO = Info(
    "procview",
    "procview build information",
)

# ---------------------------------------------------------------------------
# Cost pricing (USD per token), GPT-4o-mini as default
# ---------------------------------------------------------------------------

# Keys are model name prefixes; the callback handler picks the longest match.
COST_PER_TOKEN: dict[str, dict[str, float]] = {
    "gpt-4o-mini": {"prompt": 0.15 / 1_000_000, "completion": 0.60 / 1_000_000},
    "gpt-4o": {"prompt": 2.50 / 1_000_000, "completion": 10.00 / 1_000_000},
    "claude-sonnet-4": {"prompt": 3.00 / 1_000_000, "completion": 15.00 / 1_000_000},
}
DEFAULT_COST_PER_TOKEN: dict[str, float] = {"prompt": 2.50 / 1_000_000, "completion": 10.00 / 1_000_000}
