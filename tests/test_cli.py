"""Tests for the command-line report."""

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from conftest import make_series

from procview.cli import main
from procview.errors import MissingCredentialError
from procview.models import AnalysisResult


def _write_capture(path: Path, totals: list[float]) -> Path:
    lines = [
        json.dumps(
            {
                "timestamp": s.timestamp.isoformat(),
                "pid": s.pid,
                "cpu_user_percent": s.cpu_user_percent,
                "cpu_sys_percent": s.cpu_sys_percent,
            }
        )
        for s in make_series(totals)
    ]
    path.write_text("\n".join(lines) + "\nthis line is broken\n", encoding="utf-8")
    return path


class TestCli:
    def test_prints_report(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        capture = _write_capture(tmp_path / "cpu.jsonl", [90.0, 90.0, 90.0, 10.0])

        assert main([str(capture)]) == 0

        out = capsys.readouterr().out
        assert "**Samples:** 4" in out
        assert "## Threshold Incidents (> 80%)" in out
        assert "2024-05-01T12:00:02" in out

    def test_threshold_and_range(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        capture = _write_capture(tmp_path / "cpu.jsonl", [90.0, 90.0, 90.0, 10.0])

        code = main([str(capture), "--threshold", "95", "--start", "2024-05-01T12:00:01"])

        out = capsys.readouterr().out
        assert code == 0
        assert "**Samples:** 3" in out
        assert "No sustained threshold violations" in out

    def test_invalid_threshold(self, tmp_path: Path) -> None:
        capture = _write_capture(tmp_path / "cpu.jsonl", [10.0])
        with pytest.raises(SystemExit):
            main([str(capture), "--threshold", "0"])

    def test_no_valid_lines(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        capture = tmp_path / "bad.jsonl"
        capture.write_text("nope\n", encoding="utf-8")

        assert main([str(capture)]) == 1
        assert "Could not parse any valid JSON lines" in capsys.readouterr().err

    def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([str(tmp_path / "absent.jsonl")]) == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_analyze(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        capture = _write_capture(tmp_path / "cpu.jsonl", [50.0, 60.0])
        result = AnalysisResult(summary="Moderate load.", recommendations=["Nothing urgent"], severity="LOW")

        with patch("procview.cli.request_analysis", new_callable=AsyncMock, return_value=result) as mock_request:
            assert main([str(capture), "--analyze"]) == 0

        mock_request.assert_awaited_once()
        assert "Moderate load." in capsys.readouterr().out

    def test_analyze_missing_credential(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        capture = _write_capture(tmp_path / "cpu.jsonl", [50.0])

        with patch(
            "procview.cli.request_analysis",
            new_callable=AsyncMock,
            side_effect=MissingCredentialError("API key not found."),
        ):
            assert main([str(capture), "--analyze"]) == 1

        assert "API key not found." in capsys.readouterr().err

    def test_analyze_end_to_end_without_key(self, tmp_path: Path, mock_settings: Any) -> None:
        mock_settings.openai_api_key = ""
        capture = _write_capture(tmp_path / "cpu.jsonl", [50.0])
        assert main([str(capture), "--analyze"]) == 1
