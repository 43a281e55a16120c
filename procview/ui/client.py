"""Thin httpx client for the procview API, used by the Streamlit UI."""

from datetime import datetime
from typing import Any

import httpx

DEFAULT_TIMEOUT_SECONDS = 10.0
ANALYSIS_TIMEOUT_SECONDS = 120.0


class ApiError(Exception):
    """Non-2xx response from the API, carrying the server's detail message."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class ApiClient:
    def __init__(self, base_url: str, transport: httpx.BaseTransport | None = None) -> None:
        self._client = httpx.Client(base_url=base_url, timeout=DEFAULT_TIMEOUT_SECONDS, transport=transport)

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = self._client.request(method, path, **kwargs)
        if resp.is_error:
            detail = resp.text
            try:
                body = resp.json()
                if isinstance(body, dict) and "detail" in body:
                    detail = str(body["detail"])
            except ValueError:
                pass
            raise ApiError(resp.status_code, detail)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def health(self) -> dict[str, Any]:
        return self._request("GET", "/health", timeout=5.0)  # type: ignore[no-any-return]

    def load_text(self, text: str) -> int:
        return int(self._request("POST", "/samples", json={"text": text})["loaded"])

    def load_demo(self) -> int:
        return int(self._request("POST", "/samples/demo")["loaded"])

    def reset(self) -> None:
        self._request("DELETE", "/samples")

    def dashboard(self) -> dict[str, Any]:
        return self._request("GET", "/dashboard")  # type: ignore[no-any-return]

    def set_range(self, start: datetime | None, end: datetime | None) -> None:
        self._request(
            "PUT",
            "/range",
            json={
                "start": start.isoformat() if start else None,
                "end": end.isoformat() if end else None,
            },
        )

    def reset_range(self) -> None:
        self._request("POST", "/range/reset")

    def set_threshold(self, threshold: int) -> None:
        self._request("PUT", "/threshold", json={"threshold": threshold})

    def start_stream(self) -> bool:
        return bool(self._request("POST", "/stream/start")["streaming"])

    def stop_stream(self) -> bool:
        return bool(self._request("POST", "/stream/stop")["streaming"])

    def analyze(self, stop_stream: bool = False) -> dict[str, Any]:
        return self._request(  # type: ignore[no-any-return]
            "POST", "/analysis", json={"stop_stream": stop_stream}, timeout=ANALYSIS_TIMEOUT_SECONDS
        )

    def save_analysis(self) -> bool:
        self._request("POST", "/analysis/save")
        return True

    def load_analysis(self) -> dict[str, Any]:
        return self._request("POST", "/analysis/load")  # type: ignore[no-any-return]

    def clear_analysis(self) -> None:
        self._request("DELETE", "/analysis")
