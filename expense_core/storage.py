"""Persistence utilities for the expense dashboard core."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .exceptions import PersistenceError

logger = logging.getLogger(__name__)


class JSONStorage:
    """Simple file-based JSON storage with crash-safe writes.

    Each resource is one JSON document under ``base_path``.
    """

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            # Reads then find nothing and writes fail individually.
            logger.warning("Unable to create data directory %s: %s", self._base_path, exc)

    def load(self, resource: str) -> Any:
        """Return the decoded document, or ``None`` when it was never saved."""
        path = self._base_path / resource
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted JSON data in {path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc
        logger.debug("Loaded %s", path)
        return payload

    def save(self, resource: str, payload: Any) -> None:
        path = self._base_path / resource
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=False)
                handle.flush()
            # Use replace for atomic move on POSIX; ensures crash-safe persistence.
            temp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc
        logger.debug("Saved %s", path)

    @property
    def base_path(self) -> Path:
        return self._base_path
