"""Durable storage for the run's progress record."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from backfill.models.progress import ProgressRecord


class ProgressStoreError(RuntimeError):
    """Raised when the progress document cannot be read or written."""


class ProgressStore(Protocol):
    """Persistence boundary for :class:`ProgressRecord`.

    The runner only ever calls these methods after a batch has settled, so implementations do not
    need to guard against concurrent writers.
    """

    @property
    def location(self) -> str:
        """Human-readable description of where the record lives."""

    def load(self) -> Optional[ProgressRecord]:
        """Return the stored record, or ``None`` when no run has been started."""

    def save(self, record: ProgressRecord) -> None:
        """Persist ``record`` and refresh its ``last_updated`` timestamp."""

    def delete(self) -> bool:
        """Remove the stored record; return ``True`` if one existed."""


class JsonProgressStore:
    """Progress store backed by a single JSON file, replaced atomically on every save."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def load(self) -> Optional[ProgressRecord]:
        if not self._path.exists():
            return None

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProgressStoreError(f"Could not read progress file {self._path}: {exc}") from exc

        try:
            return ProgressRecord.model_validate(raw)
        except ValidationError as exc:
            raise ProgressStoreError(f"Progress file {self._path} is not a valid progress record: {exc}") from exc

    def save(self, record: ProgressRecord) -> None:
        record.touch()
        payload = json.dumps(record.to_document(), ensure_ascii=False, indent=2)

        directory = self._path.parent
        temp_path: Optional[Path] = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
        except OSError as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise ProgressStoreError(f"Could not write progress file {self._path}: {exc}") from exc

        try:
            os.replace(temp_path, self._path)
        except OSError as exc:
            temp_path.unlink(missing_ok=True)
            raise ProgressStoreError(f"Could not replace progress file {self._path}: {exc}") from exc

    def delete(self) -> bool:
        try:
            self._path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise ProgressStoreError(f"Could not delete progress file {self._path}: {exc}") from exc
        return True


__all__ = ["JsonProgressStore", "ProgressStore", "ProgressStoreError"]
