"""LangChain callback handler that records LLM token and cost metrics.

Create a fresh ``LLMMetricsCallbackHandler`` per analysis request and pass it
via ``config["callbacks"]``.  The handler writes to module-level metric
singletons defined in :mod:`procview.observability.metrics`.

All callback methods are wrapped in try/except: metrics collection must
never break an analysis request.
"""

import logging
from typing import Any
from uuid import UUID

from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.outputs import LLMResult

from procview.observability.metrics import (
    COST_PER_TOKEN,
    DEFAULT_COST_PER_TOKEN,
    LLM_CALLS_TOTAL,
    LLM_ESTIMATED_COST,
    LLM_TOKEN_USAGE,
)

logger = logging.getLogger(__name__)


def _pricing_for(model_name: str) -> dict[str, float]:
    """Pick per-token prices by the longest matching model-name prefix."""
    matches = [prefix for prefix in COST_PER_TOKEN if model_name.startswith(prefix)]
    if not matches:
        return DEFAULT_COST_PER_TOKEN
    return COST_PER_TOKEN[max(matches, key=len)]


def _extract_token_counts(llm_output: dict[str, Any]) -> tuple[int, int] | None:
    """Read (prompt, completion) token counts from OpenAI or Anthropic llm_output."""
    token_usage = llm_output.get("token_usage")
    if token_usage:
        return int(token_usage.get("prompt_tokens", 0)), int(token_usage.get("completion_tokens", 0))
    usage = llm_output.get("usage")
    if usage:
        return int(usage.get("input_tokens", 0)), int(usage.get("output_tokens", 0))
    return None


class LLMMetricsCallbackHandler(BaseCallbackHandler):
    """Counts LLM calls, tokens and estimated cost for analysis requests."""

    def on_llm_end(
        self,
        response: LLMResult,
        *,
        run_id: UUID,
        parent_run_id: UUID | None = None,
        **kwargs: Any,
    ) -> None:
        try:
            LLM_CALLS_TOTAL.labels(status="success").inc()

            llm_output = response.llm_output
            if not llm_output:
                return

            counts = _extract_token_counts(llm_output)
            if counts is None:
                return
            prompt_tokens, completion_tokens = counts

            LLM_TOKEN_USAGE.labels(type="prompt").inc(prompt_tokens)
            LLM_TOKEN_USAGE.labels(type="completion").inc(completion_tokens)

            model_name = str(llm_output.get("model_name") or llm_output.get("model") or "")
            pricing = _pricing_for(model_name)
            cost = (prompt_tokens * pricing["prompt"]) + (completion_tokens * pricing["completion"])
            LLM_ESTIMATED_COST.inc(cost)
        except Exception:
            logger.debug("metrics: on_llm_end failed", exc_info=True)

    def on_llm_error(
        self,
        error: BaseException,
        *,
        run_id: UUID,
        parent_run_id: UUID | None = None,
        **kwargs: Any,
    ) -> None:
        try:
            LLM_CALLS_TOTAL.labels(status="error").inc()
        except Exception:
            logger.debug("metrics: on_llm_error failed", exc_info=True)
