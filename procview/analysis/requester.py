"""AI performance analysis: downsample, prompt, normalize.

The LLM sits behind the narrow ``AnalysisBackend`` protocol so the
downsampling and fallback logic can be tested with fakes.  A missing API key
is raised to the caller; every other failure is logged and replaced by a
fixed low-severity fallback report.
"""

import json
import logging
import math
import time
from collections.abc import Sequence
from typing import Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.runnables import RunnableConfig

from procview.analysis.llm import create_llm
from procview.config import Settings, get_settings
from procview.models import FALLBACK_ANALYSIS, AnalysisResult, Sample
from procview.observability.callbacks import LLMMetricsCallbackHandler
from procview.observability.metrics import ANALYSIS_DURATION, ANALYSIS_REQUESTS_TOTAL

logger = logging.getLogger(__name__)

MAX_PROMPT_POINTS = 100

_PROMPT_TEMPLATE = """\
Analyze the following CPU usage log data for a Linux process.
The data is a time series of User CPU % and System CPU %.

Data (Sampled):
{data}

Please provide:
1. A brief summary of the performance characteristics.
2. Specific recommendations to optimize the process based on whether it's user-bound or kernel-bound (sys).
3. A severity level (LOW, MEDIUM, HIGH) based on total CPU saturation.
"""


class AnalysisBackend(Protocol):
    """Anything that turns a prompt into a structured AnalysisResult, or raises."""

    async def request(self, prompt: str) -> AnalysisResult: ...


class LLMAnalysisBackend:
    """AnalysisBackend backed by a LangChain chat model with structured output."""

    def __init__(self, llm: BaseChatModel) -> None:
        self._llm = llm

    async def request(self, prompt: str) -> AnalysisResult:
        structured = self._llm.with_structured_output(AnalysisResult)
        config: RunnableConfig = {"callbacks": [LLMMetricsCallbackHandler()]}
        result = await structured.ainvoke(prompt, config=config)
        if isinstance(result, AnalysisResult):
            return result
        # Some providers hand back a plain dict; validate it into the model.
        return AnalysisResult.model_validate(result)


def create_analysis_backend(settings: Settings | None = None) -> AnalysisBackend:
    """Build the LLM backend. Raises MissingCredentialError when no API key is set."""
    return LLMAnalysisBackend(create_llm(settings or get_settings()))


def fallback_analysis() -> AnalysisResult:
    return FALLBACK_ANALYSIS.model_copy(deep=True)


def downsample(samples: Sequence[Sample], max_points: int = MAX_PROMPT_POINTS) -> list[Sample]:
    """Keep every Nth sample, N = ceil(len / max_points), starting at the first."""
    if not samples:
        return []
    step = math.ceil(len(samples) / max_points)
    return list(samples[::step])


def build_prompt(samples: Sequence[Sample]) -> str:
    """Serialize the downsampled series into the analysis prompt."""
    sampled = [s.model_dump(mode="json", exclude_none=True) for s in downsample(samples)]
    return _PROMPT_TEMPLATE.format(data=json.dumps(sampled))


async def request_analysis(
    samples: Sequence[Sample],
    backend: AnalysisBackend | None = None,
) -> AnalysisResult:
    """Ask the LLM for a performance report on ``samples``.

    Args:
        samples: The sample view to analyze (downsampled to ~100 points).
        backend: Analysis backend. Defaults to the configured LLM.

    Returns:
        The LLM's AnalysisResult, or the fixed fallback report if the call
        failed for any reason.

    Raises:
        MissingCredentialError: If no backend is given and no API key is set.
    """
    if backend is None:
        backend = create_analysis_backend()

    prompt = build_prompt(samples)
    start = time.monotonic()
    try:
        result = await backend.request(prompt)
    except Exception:
        ANALYSIS_REQUESTS_TOTAL.labels(status="error").inc()
        logger.exception("AI analysis request failed")
        return fallback_analysis()
    finally:
        ANALYSIS_DURATION.observe(time.monotonic() - start)

    ANALYSIS_REQUESTS_TOTAL.labels(status="success").inc()
    logger.info("AI analysis completed (severity %s)", result.severity)
    return result
