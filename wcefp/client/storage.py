"""Key/value preference persistence standing in for browser ``localStorage``."""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
import tempfile
from typing import Protocol

from .logging import get_logger

logger = get_logger(__name__)


class PreferenceStore(Protocol):
    def get(self, key: str) -> str | None:
        """Return the stored string or None."""

    def set(self, key: str, value: str) -> None:
        """Store a string value, replacing any previous one."""

    def remove(self, key: str) -> None:
        """Delete a key if present."""


@dataclass
class InMemoryPreferenceStore:
    def __post_init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = str(value)

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


@dataclass
class JsonFilePreferenceStore:
    """Whole-file JSON store; the last writer wins, there is no locking.

    Writes go through a temporary file replaced into place. A file that
    cannot be parsed is logged and read as empty.
    """

    path: Path

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring preferences file %s: not a JSON object", self.path)
            return {}
        return {str(key): str(value) for key, value in payload.items()}

    def _write(self, values: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(values, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._read()
        values[key] = str(value)
        self._write(values)

    def remove(self, key: str) -> None:
        values = self._read()
        if values.pop(key, None) is not None:
            self._write(values)


def create_store(path: str | Path | None) -> PreferenceStore:
    if path:
        return JsonFilePreferenceStore(path=Path(path))
    return InMemoryPreferenceStore()
