"""Key/value persistence for plan state.

Each key is a JSON file in the data directory. Writes go to a temporary file
that replaces the target before ``save`` returns, so a read after a write
always sees it. Unreadable or malformed records are reported as absent.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TypeVar

from platformdirs import user_data_dir
from pydantic import BaseModel, ValidationError

ACTIVE_PLAN_KEY = "active_plan"
TIMETABLE_KEY = "timetable"
HISTORY_KEY = "history"

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class PersistenceGateway:
    """Read/write access to the local JSON key/value store."""

    def __init__(self, data_dir: Path | None = None):
        """Initialize the gateway, creating the data directory if needed."""
        if data_dir is None:
            data_dir = Path(user_data_dir("braindump_cli")) / "state"

        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key '{key}'")
        return self.data_dir / f"{key}.json"

    def load(self, key: str) -> str | None:
        """Return the raw blob stored under *key*, or None if there is none."""
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

    def save(self, key: str, blob: str) -> None:
        """Write *blob* under *key*, replacing any previous value."""
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        path.chmod(0o600)

    def delete(self, key: str) -> None:
        """Remove the record under *key* if present."""
        self._path(key).unlink(missing_ok=True)

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    # -- typed helpers -----------------------------------------------------

    def load_model(self, key: str, model: type[ModelT]) -> ModelT | None:
        """Load and validate a pydantic model. Malformed content counts as absent."""
        blob = self.load(key)
        if blob is None:
            return None
        try:
            return model.model_validate_json(blob)
        except ValidationError as e:
            logger.warning(
                "Dropping malformed '%s' record (%d validation errors)",
                key,
                e.error_count(),
            )
            return None

    def save_model(self, key: str, value: BaseModel) -> None:
        self.save(key, value.model_dump_json(indent=2))
