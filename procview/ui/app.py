"""Streamlit UI for the process CPU viewer.

Talks to the FastAPI backend via httpx. Run with:
    streamlit run procview/ui/app.py
"""

from datetime import datetime
from typing import Any

import httpx
import pandas as pd
import streamlit as st
from streamlit_autorefresh import st_autorefresh

from procview.config import get_settings
from procview.ui.client import ApiClient, ApiError

STREAM_REFRESH_MS = 1000
SEVERITY_STYLES = {"LOW": st.success, "MEDIUM": st.warning, "HIGH": st.error}

st.set_page_config(page_title="Process CPU Viewer", layout="wide")


@st.cache_resource
def get_client() -> ApiClient:
    return ApiClient(get_settings().api_url)


client = get_client()

# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

if "confirm_analysis" not in st.session_state:
    st.session_state.confirm_analysis = False

if "flash" not in st.session_state:
    st.session_state.flash = None


def _flash(message: str, level: str = "success") -> None:
    """Queue a message that survives the next st.rerun()."""
    st.session_state.flash = (level, message)


def _show_flash() -> None:
    if st.session_state.flash:
        level, message = st.session_state.flash
        (st.error if level == "error" else st.success)(message)
        st.session_state.flash = None


def _call(fn: Any, *args: Any, **kwargs: Any) -> Any:
    """Run an API call, surfacing API and connection errors in the page."""
    try:
        return fn(*args, **kwargs)
    except ApiError as exc:
        _flash(exc.detail, "error")
    except httpx.ConnectError:
        _flash("Cannot reach the API server. Is `uvicorn procview.api.main:app` running?", "error")
    return None


def _parse_bound(raw: str) -> datetime | None:
    raw = raw.strip()
    return datetime.fromisoformat(raw) if raw else None


# ---------------------------------------------------------------------------
# Setup view
# ---------------------------------------------------------------------------


def render_setup() -> None:
    st.title("Process CPU Viewer")
    _show_flash()
    st.markdown(
        "Paste the JSON lines produced by the capture script "
        "(`{timestamp, pid, cpu_user_percent, cpu_sys_percent, memory_percent}` per line), "
        "or load the demo data."
    )
    log_input = st.text_area("Log data", height=280, placeholder='{"timestamp": "2024-01-01T12:00:00", ...}')

    col_parse, col_demo = st.columns(2)
    with col_parse:
        if st.button("Visualize", type="primary", use_container_width=True):
            if not log_input.strip():
                st.error("Please paste some log data first.")
            else:
                _call(client.load_text, log_input)
                st.rerun()
    with col_demo:
        if st.button("Load demo data", use_container_width=True):
            _call(client.load_demo)
            st.rerun()


# ---------------------------------------------------------------------------
# Dashboard view
# ---------------------------------------------------------------------------


def render_stats(stats: dict[str, Any]) -> None:
    cols = st.columns(5)
    cols[0].metric("Avg user CPU", f"{stats['avg_user']:.1f}%")
    cols[1].metric("Avg system CPU", f"{stats['avg_sys']:.1f}%")
    cols[2].metric("Peak total CPU", f"{stats['max_total']:.1f}%")
    avg_mem = stats["avg_mem"]
    cols[3].metric("Avg memory", "N/A" if avg_mem is None else f"{avg_mem:.1f}%")
    cols[4].metric("Samples", stats["count"])


def render_charts(samples: list[dict[str, Any]], threshold: int) -> None:
    if not samples:
        st.info("No samples in the selected time range.")
        return

    df = pd.DataFrame(samples)
    df["timestamp"] = pd.to_datetime(df["timestamp"])
    df = df.set_index("timestamp")

    st.subheader("CPU usage")
    cpu = df[["cpu_user_percent", "cpu_sys_percent"]].rename(
        columns={"cpu_user_percent": "User CPU %", "cpu_sys_percent": "System CPU %"}
    )
    st.area_chart(cpu)

    totals = pd.DataFrame(
        {"Total CPU %": df["cpu_user_percent"] + df["cpu_sys_percent"], "Threshold %": float(threshold)},
        index=df.index,
    )
    st.line_chart(totals)

    if "memory_percent" in df.columns and df["memory_percent"].notna().any():
        st.subheader("Memory usage")
        st.line_chart(df[["memory_percent"]].rename(columns={"memory_percent": "Memory %"}))


def render_incidents(incidents: list[dict[str, Any]], threshold: int) -> None:
    st.subheader(f"Threshold incidents (> {threshold}% for 3+ samples)")
    if not incidents:
        st.caption("No sustained threshold violations.")
        return
    for inc in incidents:
        st.warning(f"{inc['start']} → {inc['end']} · {inc['samples']} samples · peak {inc['peak']:.1f}%")


def render_analysis(data: dict[str, Any]) -> None:
    st.subheader("AI analysis")
    streaming: bool = data["streaming"]

    col_run, col_save, col_load = st.columns(3)
    with col_run:
        no_data = not data["samples"]
        if st.button(
            "Analyze with AI", type="primary", disabled=data["analyzing"] or no_data, use_container_width=True
        ):
            if streaming:
                st.session_state.confirm_analysis = True
            else:
                with st.spinner("Analyzing..."):
                    _call(client.analyze)
                st.rerun()
    with col_save:
        if st.button("Save", disabled=data["analysis"] is None, use_container_width=True):
            if _call(client.save_analysis):
                _flash("Analysis saved.")
            st.rerun()
    with col_load:
        if st.button("Load saved", disabled=not data["has_saved_analysis"], use_container_width=True):
            _call(client.load_analysis)
            st.rerun()

    if st.session_state.confirm_analysis:
        st.warning("Analyzing will pause the live stream. Continue?")
        col_yes, col_no = st.columns(2)
        if col_yes.button("Continue"):
            st.session_state.confirm_analysis = False
            with st.spinner("Analyzing..."):
                _call(client.analyze, stop_stream=True)
            st.rerun()
        if col_no.button("Cancel"):
            st.session_state.confirm_analysis = False
            st.rerun()

    analysis = data["analysis"]
    if analysis is None:
        st.caption("No analysis yet.")
        return
    SEVERITY_STYLES[analysis["severity"]](f"Severity: {analysis['severity']}")
    st.markdown(analysis["summary"])
    for rec in analysis["recommendations"]:
        st.markdown(f"- {rec}")


def render_sidebar(data: dict[str, Any]) -> None:
    streaming: bool = data["streaming"]
    with st.sidebar:
        st.title("Controls")
        if st.button("Back to setup"):
            _call(client.reset)
            st.rerun()

        st.divider()
        st.subheader("Live stream")
        live = st.toggle("Simulate live data", value=streaming)
        if live != streaming:
            _call(client.start_stream if live else client.stop_stream)
            st.rerun()

        st.divider()
        st.subheader("Alert threshold")
        threshold = st.slider("Total CPU %", min_value=1, max_value=100, value=int(data["threshold"]))
        if threshold != data["threshold"]:
            _call(client.set_threshold, threshold)
            st.rerun()

        st.divider()
        st.subheader("Time range")
        start_raw = st.text_input("Start", value=data["range_start"] or "", disabled=streaming)
        end_raw = st.text_input("End", value=data["range_end"] or "", disabled=streaming)
        col_apply, col_reset = st.columns(2)
        if col_apply.button("Apply", disabled=streaming):
            try:
                _call(client.set_range, _parse_bound(start_raw), _parse_bound(end_raw))
                st.rerun()
            except ValueError:
                st.error("Use ISO 8601 timestamps, e.g. 2024-01-01T12:00:00")
        if col_reset.button("Reset", disabled=streaming):
            _call(client.reset_range)
            st.rerun()
        if streaming:
            st.caption("Range filtering is disabled while streaming.")


def render_dashboard(data: dict[str, Any]) -> None:
    title = "Process analysis"
    if data["streaming"]:
        title += " · :red[LIVE]"
        st_autorefresh(interval=STREAM_REFRESH_MS, key="stream_refresh")
    st.title(title)

    _show_flash()
    render_sidebar(data)
    render_stats(data["stats"])
    render_charts(data["samples"], data["threshold"])
    render_incidents(data["incidents"], data["threshold"])
    render_analysis(data)


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------

health = _call(client.health)
if health is None:
    _show_flash()
else:
    if health["sample_count"] == 0:
        render_setup()
    else:
        dashboard = _call(client.dashboard)
        if dashboard is not None:
            render_dashboard(dashboard)
