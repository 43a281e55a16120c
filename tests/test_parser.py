"""Unit tests for JSON-lines ingestion and demo data generation."""

import json
import random
from datetime import UTC, datetime, timedelta

from procview.ingest.parser import DEMO_SAMPLE_COUNT, generate_demo_samples, parse_log_data, parse_log_file


def _line(**fields: object) -> str:
    return json.dumps(fields)


CAPTURE_LINE = _line(
    timestamp="2024-05-01T12:00:01",
    pid=321,
    cpu_user_percent=12.346,
    cpu_sys_percent=3.001,
    memory_percent=41.239,
)


class TestParseLogData:
    def test_parses_capture_script_shape(self) -> None:
        samples = parse_log_data(CAPTURE_LINE)

        assert len(samples) == 1
        s = samples[0]
        assert s.timestamp == datetime(2024, 5, 1, 12, 0, 1)
        assert s.pid == 321
        assert s.cpu_user_percent == 12.35
        assert s.cpu_sys_percent == 3.0
        assert s.memory_percent == 41.24
        assert s.command is None

    def test_skips_invalid_lines_and_keeps_order(self) -> None:
        text = "\n".join(
            [
                _line(timestamp="2024-05-01T12:00:01", cpu_user_percent=1, cpu_sys_percent=1),
                "not json at all",
                _line(timestamp="2024-05-01T12:00:02", cpu_user_percent="5", cpu_sys_percent=1),
                "",
                _line(timestamp="2024-05-01T12:00:03", cpu_user_percent=2, cpu_sys_percent=2),
                "[1, 2, 3]",
                _line(timestamp="2024-05-01T12:00:04", cpu_sys_percent=2),
                _line(timestamp="2024-05-01T12:00:05", cpu_user_percent=3, cpu_sys_percent=3),
            ]
        )
        samples = parse_log_data(text)

        assert [s.cpu_user_percent for s in samples] == [1, 2, 3]
        assert [s.timestamp.second for s in samples] == [1, 3, 5]

    def test_all_invalid_returns_empty(self) -> None:
        assert parse_log_data("garbage\n{\"cpu_user_percent\": 1}\n   \n") == []

    def test_empty_input_returns_empty(self) -> None:
        assert parse_log_data("") == []

    def test_boolean_cpu_is_not_numeric(self) -> None:
        assert parse_log_data(_line(cpu_user_percent=True, cpu_sys_percent=1.0)) == []

    def test_unparseable_timestamp_skips_line(self) -> None:
        assert parse_log_data(_line(timestamp="yesterday-ish", cpu_user_percent=1, cpu_sys_percent=1)) == []

    def test_defaults_for_missing_fields(self) -> None:
        before = datetime.now()
        samples = parse_log_data(_line(cpu_user_percent=10, cpu_sys_percent=5))
        after = datetime.now()

        assert len(samples) == 1
        s = samples[0]
        assert s.pid == 0
        assert s.memory_percent is None
        assert before <= s.timestamp <= after

    def test_keeps_command_and_zero_memory(self) -> None:
        samples = parse_log_data(
            _line(
                timestamp="2024-05-01T12:00:00",
                cpu_user_percent=1,
                cpu_sys_percent=1,
                memory_percent=0,
                command="nginx: worker",
            )
        )
        assert samples[0].memory_percent == 0
        assert samples[0].command == "nginx: worker"

    def test_non_numeric_memory_is_dropped(self) -> None:
        samples = parse_log_data(_line(cpu_user_percent=1, cpu_sys_percent=1, memory_percent="lots"))
        assert samples[0].memory_percent is None

    def test_handles_crlf_and_surrounding_whitespace(self) -> None:
        text = f"  {CAPTURE_LINE}  \r\n\r\n{CAPTURE_LINE}\r\n"
        assert len(parse_log_data(text)) == 2

    def test_iso_timestamp_with_timezone(self) -> None:
        samples = parse_log_data(_line(timestamp="2024-05-01T12:00:00Z", cpu_user_percent=1, cpu_sys_percent=1))
        assert samples[0].timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class TestParseLogFile:
    def test_reads_file(self, tmp_path: object) -> None:
        path = tmp_path / "capture.jsonl"  # type: ignore[operator]
        path.write_text(f"{CAPTURE_LINE}\n{CAPTURE_LINE}\n", encoding="utf-8")
        assert len(parse_log_file(path)) == 2


class TestGenerateDemoSamples:
    def test_sixty_samples_one_second_apart(self) -> None:
        now = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)
        samples = generate_demo_samples(now=now, rng=random.Random(1))

        assert len(samples) == DEMO_SAMPLE_COUNT
        assert samples[0].timestamp == now - timedelta(seconds=60)
        assert samples[-1].timestamp == now - timedelta(seconds=1)
        gaps = {b.timestamp - a.timestamp for a, b in zip(samples, samples[1:], strict=False)}
        assert gaps == {timedelta(seconds=1)}

    def test_spike_shape(self) -> None:
        samples = generate_demo_samples(rng=random.Random(7))

        for i, s in enumerate(samples):
            if 40 < i < 50:
                assert 60 <= s.cpu_user_percent <= 70
                assert 20 <= s.cpu_sys_percent <= 25
            else:
                assert 10 <= s.cpu_user_percent <= 20
                assert 2 <= s.cpu_sys_percent <= 7
            assert 45 <= s.memory_percent <= 46  # type: ignore[operator]
            assert s.pid == 1234
            assert s.command == "python3 worker.py"

    def test_spike_is_distinguishable_from_baseline(self) -> None:
        samples = generate_demo_samples(rng=random.Random(3))
        spike_min = min(s.total_cpu for s in samples[41:50])
        baseline_max = max(s.total_cpu for s in samples[:41] + samples[50:])
        assert spike_min > baseline_max
