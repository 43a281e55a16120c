"""Single-slot JSON persistence for the last saved analysis.

The slot is one file.  Saving is atomic (temp file + rename).  Loading never
raises: a missing file means "nothing saved" and a corrupt one is logged and
treated the same way.
"""

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from procview.models import AnalysisResult

logger = logging.getLogger(__name__)


class AnalysisSlot:
    """Named storage slot holding one serialized AnalysisResult."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def save(self, result: AnalysisResult) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(result.model_dump_json())
            os.replace(tmp_path, self._path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise
        logger.info("Analysis saved to %s", self._path)

    def load(self) -> AnalysisResult | None:
        """Return the saved analysis, or None if absent or unreadable."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError:
            logger.exception("Failed to read saved analysis from %s", self._path)
            return None

        try:
            return AnalysisResult.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            logger.exception("Failed to load saved analysis from %s", self._path)
            return None

    def clear(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path.unlink()
