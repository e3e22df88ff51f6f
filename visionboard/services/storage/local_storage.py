"""
Local Storage Implementation

A small key/value document on disk standing in for browser local storage:
a JSON object whose values are strings. The wish collection is stored as
one JSON-serialized array under a fixed key, exactly as the board has
always persisted it.

TRADEOFFS:
- Every mutation rewrites the whole document (fine for a personal board)
- No migration or versioning of the stored array
- Writes go through a temporary file + os.replace so a crash mid-write
  never leaves a truncated document behind
- Records are loaded one by one: savings outside [0, target] are clamped
  and a record that still fails validation is skipped with a warning
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from visionboard.config import get_settings
from visionboard.models.wish import Wish
from visionboard.services.storage.interface import StorageError, WishStorageInterface


logger = structlog.get_logger(__name__)


class LocalStorageFile:
    """
    String key/value store persisted as a JSON document.

    Mirrors the getItem/setItem/removeItem surface of browser storage.
    """

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path or get_settings().storage.storage_path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not read {self._path}: {e}") from e
        if not raw.strip():
            return {}
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Local storage document is not valid JSON: {e}") from e
        if not isinstance(document, dict):
            raise StorageError("Local storage document must be a JSON object")
        return document

    def _write_document(self, document: dict[str, str]) -> None:
        tmp_path = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, ensure_ascii=False)
            os.replace(tmp_path, self._path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Could not write {self._path}: {e}") from e
        finally:
            # Only set when the document never replaced the target
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_document().get(key)
        return None if value is None else str(value)

    def set_item(self, key: str, value: str) -> None:
        document = self._read_document()
        document[key] = value
        self._write_document(document)

    def remove_item(self, key: str) -> None:
        document = self._read_document()
        if key in document:
            del document[key]
            self._write_document(document)


class LocalStorageWishStorage(WishStorageInterface):
    """Wish collection as one JSON array under a fixed local storage key."""

    def __init__(
        self,
        local_storage: Optional[LocalStorageFile] = None,
        key: Optional[str] = None,
    ):
        self._local_storage = local_storage or LocalStorageFile()
        self._key = key or get_settings().storage.storage_key

    @property
    def key(self) -> str:
        return self._key

    def load_wishes(self) -> list[Wish]:
        saved = self._local_storage.get_item(self._key)
        if not saved:
            return []

        try:
            records = json.loads(saved)
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored wishes are not valid JSON: {e}") from e
        if not isinstance(records, list):
            raise StorageError("Stored wishes must be a JSON array")

        wishes = []
        for position, record in enumerate(records):
            try:
                wishes.append(Wish.from_storage_dict(record))
            except ValidationError as e:
                # One unreadable record must not take the whole board down
                logger.warning(
                    "stored_wish_skipped",
                    position=position,
                    key=self._key,
                    error_count=e.error_count(),
                    error=str(e),
                )

        logger.debug("wishes_loaded", count=len(wishes), key=self._key)
        return wishes

    def save_wishes(self, wishes: list[Wish]) -> None:
        payload = json.dumps(
            [wish.to_storage_dict() for wish in wishes],
            ensure_ascii=False,
        )
        self._local_storage.set_item(self._key, payload)
        logger.debug("wishes_saved", count=len(wishes), key=self._key)


class InMemoryWishStorage(WishStorageInterface):
    """Keeps the serialized array in memory. Used by tests and no-storage mode."""

    def __init__(self, wishes: Optional[list[Wish]] = None):
        self._payload: Optional[str] = None
        self.save_count = 0
        if wishes:
            self._payload = json.dumps([w.to_storage_dict() for w in wishes])

    def load_wishes(self) -> list[Wish]:
        if not self._payload:
            return []
        return [Wish.from_storage_dict(record) for record in json.loads(self._payload)]

    def save_wishes(self, wishes: list[Wish]) -> None:
        self._payload = json.dumps([w.to_storage_dict() for w in wishes])
        self.save_count += 1
