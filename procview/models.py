"""Pydantic models and TypedDicts for samples, incidents and analysis results."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import TypedDict

Severity = Literal["LOW", "MEDIUM", "HIGH"]


class Sample(BaseModel):
    """One CPU/memory observation of a process."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    pid: int = 0
    cpu_user_percent: float
    cpu_sys_percent: float
    memory_percent: float | None = None
    command: str | None = None

    @property
    def total_cpu(self) -> float:
        return self.cpu_user_percent + self.cpu_sys_percent


class TimeRange(BaseModel):
    """Inclusive time filter. A missing bound means unbounded on that side."""

    model_config = ConfigDict(frozen=True)

    start: datetime | None = None
    end: datetime | None = None

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None


class Incident(BaseModel):
    """A sustained run of samples whose total CPU exceeded the threshold."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    peak: float
    samples: int


class AnalysisResult(BaseModel):
    """Natural-language performance report returned by the LLM."""

    summary: str = Field(description="Brief summary of the performance characteristics")
    recommendations: list[str] = Field(
        description="Specific optimization recommendations (user-bound vs kernel-bound)"
    )
    severity: Severity = Field(description="Severity based on total CPU saturation")


class SampleStats(TypedDict):
    avg_user: float
    avg_sys: float
    max_total: float
    avg_mem: float | None  # None = no sample carried memory data
    count: int


FALLBACK_ANALYSIS = AnalysisResult(
    summary="Failed to generate analysis using AI.",
    recommendations=["Check your network connection", "Verify API Key"],
    severity="LOW",
)
