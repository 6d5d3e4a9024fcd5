"""Persisted provisioning stage."""

import json
import os
import tempfile
from pathlib import Path

import structlog

from ..exceptions import StageError
from ..models import Stage

logger = structlog.get_logger()

STAGE_DIR = ".tfpilot"
STAGE_FILE = "stage.json"


class StageStore:
    """
    Reads and writes the provisioning stage of one terraform directory.

    Writes go through a temporary file in the same directory followed by
    os.replace, so an interrupted write leaves the previous stage intact.
    """

    def __init__(self, workdir: Path):
        self.path = workdir / STAGE_DIR / STAGE_FILE

    def load(self) -> Stage:
        if not self.path.exists():
            return Stage.UNINITIALIZED

        try:
            data = json.loads(self.path.read_text())
            return Stage(data["stage"])
        except (ValueError, KeyError, TypeError) as e:
            raise StageError(f"Unreadable stage file {self.path}: {e}") from e

    def save(self, stage: Stage) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".stage-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump({"stage": stage.value}, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

        logger.debug("Saved stage", stage=stage.value, path=str(self.path))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        try:
            self.path.parent.rmdir()
        except OSError:
            pass
