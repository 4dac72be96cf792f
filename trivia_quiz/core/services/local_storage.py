"""Prefixed key/value store persisted as a single JSON document."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any

from trivia_quiz.constants.storage_constants import STORAGE_KEY_PREFIX

logger = logging.getLogger(__name__)


class JsonLocalStorage:
    """Best-effort local storage.

    Every key is namespaced with ``prefix`` so several applications can share
    one file. Read and write failures are logged and reported through the
    return value instead of raising.
    """

    def __init__(self, path: Path, prefix: str = STORAGE_KEY_PREFIX) -> None:
        self._path = Path(path)
        self._prefix = prefix
        self._lock = Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._read_document().get(self._prefix + key)

    def set(self, key: str, value: Any) -> bool:
        with self._lock:
            document = self._read_document()
            document[self._prefix + key] = value
            return self._write_document(document)

    def remove(self, key: str) -> bool:
        with self._lock:
            document = self._read_document()
            if document.pop(self._prefix + key, None) is None:
                return True
            return self._write_document(document)

    def clear(self) -> bool:
        """Remove every key owned by this prefix."""
        with self._lock:
            document = self._read_document()
            kept = {key: value for key, value in document.items() if not key.startswith(self._prefix)}
            return self._write_document(kept)

    def is_available(self) -> bool:
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
            except OSError:
                return False
            return self._path.parent.is_dir()

    def _read_document(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Storage read failed for %s: %s", self._path, exc)
            return {}
        if not isinstance(document, dict):
            logger.warning("Storage file %s does not contain an object; ignoring it", self._path)
            return {}
        return document

    def _write_document(self, document: dict[str, Any]) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            logger.warning("Storage write failed for %s: %s", self._path, exc)
            return False
        return True
