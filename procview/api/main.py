"""FastAPI backend for the process CPU viewer.

Owns one DashboardSession, built at startup and closed on shutdown so the
live stream never outlives the server.  Run with:
    uvicorn procview.api.main:app
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from procview.config import get_settings
from procview.errors import (
    AnalysisInProgressError,
    EmptyViewError,
    MissingCredentialError,
    NoAnalysisError,
    NoValidSamplesError,
    StreamActiveError,
)
from procview.models import AnalysisResult, Incident, Sample, SampleStats
from procview.observability.metrics import APP_INFO, REQUEST_DURATION, REQUESTS_TOTAL
from procview.session import DashboardSession

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class LoadRequest(BaseModel):
    """Request body for POST /samples."""

    text: str


class LoadResponse(BaseModel):
    """Response body for POST /samples and POST /samples/demo."""

    loaded: int


class RangeRequest(BaseModel):
    """Request body for PUT /range. Missing bounds are unbounded."""

    start: datetime | None = None
    end: datetime | None = None


class ThresholdRequest(BaseModel):
    """Request body for PUT /threshold."""

    threshold: int


class AnalyzeRequest(BaseModel):
    """Request body for POST /analysis."""

    stop_stream: bool = False


class DashboardResponse(BaseModel):
    """Everything the UI draws, recomputed from the current view."""

    samples: list[Sample]
    stats: SampleStats
    incidents: list[Incident]
    range_start: datetime | None
    range_end: datetime | None
    threshold: int
    streaming: bool
    analyzing: bool
    analysis: AnalysisResult | None
    has_saved_analysis: bool


class StreamResponse(BaseModel):
    """Response body for the stream endpoints."""

    streaming: bool


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str
    model: str
    streaming: bool
    sample_count: int


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the session once at startup, stop the stream on shutdown."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    APP_INFO.info({"version": "0.1.0", "model": settings.active_model})
    app.state.session = DashboardSession.from_settings(settings)
    logger.info("Dashboard session ready")
    try:
        yield
    finally:
        app.state.session.close()
        logger.info("Shutting down procview")


app = FastAPI(title="Process CPU Viewer", lifespan=lifespan)


def _session(request: Request) -> DashboardSession:
    return request.app.state.session  # type: ignore[no-any-return]


@app.middleware("http")
async def record_request_metrics(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Record per-endpoint request counts and durations."""
    start = time.monotonic()
    endpoint = request.url.path
    try:
        response = await call_next(request)
    except Exception:
        REQUESTS_TOTAL.labels(endpoint=endpoint, status="error").inc()
        REQUEST_DURATION.labels(endpoint=endpoint).observe(time.monotonic() - start)
        raise
    status = "success" if response.status_code < 400 else "error"
    REQUESTS_TOTAL.labels(endpoint=endpoint, status=status).inc()
    REQUEST_DURATION.labels(endpoint=endpoint).observe(time.monotonic() - start)
    return response


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    session = _session(request)
    return HealthResponse(
        status="healthy",
        model=get_settings().active_model,
        streaming=session.streaming,
        sample_count=len(session.store),
    )


@app.post("/samples", response_model=LoadResponse)
async def load_samples(body: LoadRequest, request: Request) -> LoadResponse:
    """Replace the data with parsed JSON lines."""
    if not body.text.strip():
        raise HTTPException(status_code=422, detail="Please paste some log data first.")
    try:
        loaded = _session(request).load_text(body.text)
    except NoValidSamplesError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return LoadResponse(loaded=loaded)


@app.post("/samples/demo", response_model=LoadResponse)
async def load_demo(request: Request) -> LoadResponse:
    return LoadResponse(loaded=_session(request).load_demo())


@app.delete("/samples", status_code=204)
async def reset_samples(request: Request) -> Response:
    _session(request).reset()
    return Response(status_code=204)


@app.get("/dashboard", response_model=DashboardResponse)
async def dashboard(request: Request) -> DashboardResponse:
    session = _session(request)
    view = session.view()
    return DashboardResponse(
        samples=view,
        stats=session.stats(),
        incidents=session.incidents(),
        range_start=session.time_range.start,
        range_end=session.time_range.end,
        threshold=session.threshold,
        streaming=session.streaming,
        analyzing=session.analyzing,
        analysis=session.analysis,
        has_saved_analysis=session.has_saved_analysis(),
    )


@app.put("/range", status_code=204)
async def set_range(body: RangeRequest, request: Request) -> Response:
    try:
        _session(request).set_range(body.start, body.end)
    except StreamActiveError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return Response(status_code=204)


@app.post("/range/reset", status_code=204)
async def reset_range(request: Request) -> Response:
    session = _session(request)
    if session.streaming:
        raise HTTPException(status_code=409, detail="Time range cannot be changed while the live stream is running")
    session.reset_range()
    return Response(status_code=204)


@app.put("/threshold", status_code=204)
async def set_threshold(body: ThresholdRequest, request: Request) -> Response:
    try:
        _session(request).set_threshold(body.threshold)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return Response(status_code=204)


@app.post("/stream/start", response_model=StreamResponse)
async def start_stream(request: Request) -> StreamResponse:
    session = _session(request)
    try:
        session.start_stream()
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return StreamResponse(streaming=session.streaming)


@app.post("/stream/stop", response_model=StreamResponse)
async def stop_stream(request: Request) -> StreamResponse:
    session = _session(request)
    session.stop_stream()
    return StreamResponse(streaming=session.streaming)


@app.post("/analysis", response_model=AnalysisResult)
async def analyze(request: Request, body: AnalyzeRequest | None = None) -> AnalysisResult:
    """Run an AI analysis of the current view."""
    stop = body.stop_stream if body else False
    try:
        return await _session(request).analyze(stop_stream=stop)
    except (StreamActiveError, AnalysisInProgressError, EmptyViewError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except MissingCredentialError as exc:
        logger.error("Analysis requested without credentials: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.delete("/analysis", status_code=204)
async def clear_analysis(request: Request) -> Response:
    _session(request).clear_analysis()
    return Response(status_code=204)


@app.post("/analysis/save", status_code=204)
async def save_analysis(request: Request) -> Response:
    try:
        _session(request).save_analysis()
    except NoAnalysisError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return Response(status_code=204)


@app.post("/analysis/load", response_model=AnalysisResult)
async def load_analysis(request: Request) -> AnalysisResult:
    session = _session(request)
    if not session.load_analysis() or session.analysis is None:
        raise HTTPException(status_code=404, detail="No saved analysis available")
    return session.analysis
