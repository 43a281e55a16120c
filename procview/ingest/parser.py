"""JSON-lines ingestion and demo data generation.

Parsing is best-effort: each line is decoded independently and invalid lines
are logged and skipped.  Partial success is the normal case; an empty result
is left for the caller to report.
"""

import json
import logging
import random
from datetime import datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from procview.models import Sample
from procview.observability.metrics import LINES_SKIPPED_TOTAL, SAMPLES_INGESTED_TOTAL

logger = logging.getLogger(__name__)

DEMO_SAMPLE_COUNT = 60
DEMO_PID = 1234
DEMO_COMMAND = "python3 worker.py"


def _is_number(value: object) -> bool:
    """True for int/float values; bools are rejected even though they subclass int."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_entry(entry: dict[str, object]) -> Sample | None:
    """Build a Sample from a decoded JSON object, or None if it is invalid."""
    user = entry.get("cpu_user_percent")
    sys_ = entry.get("cpu_sys_percent")
    if not _is_number(user) or not _is_number(sys_):
        return None

    memory = entry.get("memory_percent")
    pid = entry.get("pid")
    command = entry.get("command")

    try:
        return Sample.model_validate(
            {
                "timestamp": entry.get("timestamp") or datetime.now(),
                "pid": pid if isinstance(pid, int) and not isinstance(pid, bool) else 0,
                "cpu_user_percent": round(float(user), 2),  # type: ignore[arg-type]
                "cpu_sys_percent": round(float(sys_), 2),  # type: ignore[arg-type]
                "memory_percent": round(float(memory), 2) if _is_number(memory) else None,  # type: ignore[arg-type]
                "command": command if isinstance(command, str) else None,
            }
        )
    except ValidationError:
        return None


def parse_log_data(text: str) -> list[Sample]:
    """Parse newline-delimited JSON into samples, skipping invalid lines.

    Args:
        text: Raw JSONL text, one sample object per line.

    Returns:
        Valid samples in their original relative order. Empty if no line was valid.
    """
    samples: list[Sample] = []
    skipped = 0

    for line in text.splitlines():
        clean = line.strip()
        if not clean:
            continue
        try:
            entry = json.loads(clean)
        except json.JSONDecodeError:
            entry = None

        sample = _parse_entry(entry) if isinstance(entry, dict) else None
        if sample is None:
            logger.warning("Skipping invalid log line: %s", clean[:200])
            skipped += 1
            continue
        samples.append(sample)

    SAMPLES_INGESTED_TOTAL.inc(len(samples))
    LINES_SKIPPED_TOTAL.inc(skipped)
    logger.info("Parsed %d samples (%d lines skipped)", len(samples), skipped)
    return samples


def parse_log_file(path: str | Path) -> list[Sample]:
    """Read a JSONL capture file and parse it."""
    return parse_log_data(Path(path).read_text(encoding="utf-8"))


def generate_demo_samples(now: datetime | None = None, rng: random.Random | None = None) -> list[Sample]:
    """Generate one minute of demo data with a CPU spike.

    Samples are one second apart and end one second before ``now``.  Indices
    41-49 sit on a ~60% user / ~20% sys plateau; the rest idle near 10% / 2%.
    """
    now = now or datetime.now().astimezone()
    rng = rng or random.Random()
    samples: list[Sample] = []

    for i in range(DEMO_SAMPLE_COUNT):
        is_spike = 40 < i < 50
        base_user = 60.0 if is_spike else 10.0
        base_sys = 20.0 if is_spike else 2.0
        samples.append(
            Sample(
                timestamp=now - timedelta(seconds=DEMO_SAMPLE_COUNT - i),
                pid=DEMO_PID,
                cpu_user_percent=round(min(100.0, base_user + rng.random() * 10), 2),
                cpu_sys_percent=round(min(100.0, base_sys + rng.random() * 5), 2),
                memory_percent=round(45 + rng.random(), 2),
                command=DEMO_COMMAND,
            )
        )
    return samples
