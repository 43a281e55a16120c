"""Shared pytest configuration and fixtures."""

from collections.abc import Generator
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from procview.config import Settings, get_settings
from procview.models import AnalysisResult, Sample


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run e2e tests that hit a real LLM (requires .env with valid credentials)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="Need --run-e2e flag to run")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture(autouse=True)
def _no_dotenv(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Block .env and real credentials so tests never reach a live LLM by accident.

    Sets Settings.model_config['env_file'] = None and removes API key env vars
    before each test (except e2e).
    """
    if "e2e" in request.keywords:
        yield
        return

    for var in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "LLM_PROVIDER", "ANALYSIS_STATE_PATH"):
        monkeypatch.delenv(var, raising=False)

    get_settings.cache_clear()
    original = Settings.model_config.get("env_file")
    Settings.model_config["env_file"] = None

    try:
        yield
    finally:
        Settings.model_config["env_file"] = original
        get_settings.cache_clear()


@pytest.fixture
def mock_settings(tmp_path: Path) -> Generator[Any]:
    """Provide fake settings so tests don't need a .env file.

    Patches get_settings at every import site so cached references are overridden.
    """
    fake_settings = type(
        "FakeSettings",
        (),
        {
            "llm_provider": "openai",
            "openai_api_key": "sk-proj-test-fake",
            "openai_model": "gpt-4o-mini",
            "openai_base_url": "",
            "anthropic_api_key": "",
            "anthropic_model": "claude-sonnet-4-20250514",
            "active_model": "gpt-4o-mini",
            "analysis_state_path": str(tmp_path / "state" / "cpu_analysis_result.json"),
            "stream_interval_seconds": 1.0,
            "stream_window": 100,
            "default_cpu_threshold": 80,
            "api_url": "http://procview.test:8000",
            "log_level": "INFO",
        },
    )()
    with (
        patch("procview.config.get_settings", return_value=fake_settings),
        patch("procview.analysis.requester.get_settings", return_value=fake_settings),
        patch("procview.api.main.get_settings", return_value=fake_settings),
    ):
        yield fake_settings


# ---------------------------------------------------------------------------
# Sample helpers
# ---------------------------------------------------------------------------

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


def make_sample(
    second: int,
    user: float,
    sys_: float = 0.0,
    memory: float | None = None,
    pid: int = 4242,
    command: str | None = None,
) -> Sample:
    """Build a sample ``second`` seconds after BASE_TIME."""
    return Sample(
        timestamp=BASE_TIME + timedelta(seconds=second),
        pid=pid,
        cpu_user_percent=user,
        cpu_sys_percent=sys_,
        memory_percent=memory,
        command=command,
    )


def make_series(totals: list[float]) -> list[Sample]:
    """One sample per second whose user+sys equals each value in ``totals``."""
    return [make_sample(i, user=t * 0.75, sys_=t * 0.25) for i, t in enumerate(totals)]


class FakeBackend:
    """AnalysisBackend test double recording prompts and returning or raising."""

    def __init__(self, result: AnalysisResult | None = None, error: Exception | None = None) -> None:
        self.result = result or AnalysisResult(
            summary="CPU is mostly user-bound with a short spike.",
            recommendations=["Profile the hot loop"],
            severity="MEDIUM",
        )
        self.error = error
        self.prompts: list[str] = []

    async def request(self, prompt: str) -> AnalysisResult:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.result
