"""File-backed local storage."""

import json
import os
from pathlib import Path

import logfire

from crux.domain.repository import LocalStorage, LocalStorageError


class FileLocalStorage(LocalStorage):
    """Local storage persisted as one JSON object on disk.

    Every ``set``/``remove`` rewrites the file through a temporary file and an
    atomic rename, so a crash never leaves a half-written store behind.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._values: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logfire.warn("Local storage unreadable, starting empty", path=str(self.path), error=str(e))
            return {}
        if not isinstance(raw, dict):
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _persist(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(self._values), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logfire.error("Local storage write failed", path=str(self.path), error=str(e))
            raise LocalStorageError(f"Could not write {self.path}: {e}") from e

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._persist()

    def remove(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._persist()
