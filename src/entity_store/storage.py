"""
Flat-file JSON storage shared by templates, documents and alerts.

Each record lives in its own ``<id>.json`` file inside the store directory.
Writes go to a temporary file first and are renamed into place, and callers
that need read-modify-write atomicity wrap their work in ``locked()``.
"""

import json
import os
import fcntl
import re
import threading
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .errors import StorageError, ValidationError


logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStore:
    """Directory of JSON records with thread- and process-safe locking."""

    def __init__(self, directory: Path, entity_name: str):
        """Initialize storage rooted at ``directory``."""
        self.directory = Path(directory)
        self.entity_name = entity_name
        self.lock = threading.RLock()
        self._lock_depth = 0

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create {entity_name} storage at {self.directory}: {e}")

        self.lock_file = self.directory / ".storage.lock"

        logger.info(f"JsonFileStore for {entity_name} initialized with path: {self.directory}")

    def _path_for(self, record_id: str) -> Path:
        if not record_id or not _SAFE_ID.match(record_id) or record_id.startswith("."):
            raise ValidationError(f"Invalid {self.entity_name} ID: {record_id!r}")
        return self.directory / f"{record_id}.json"

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold an exclusive lock across threads and processes.

        Re-entrant within the owning thread; only the outermost call takes
        the file lock.
        """
        with self.lock:
            if self._lock_depth:
                self._lock_depth += 1
                try:
                    yield
                finally:
                    self._lock_depth -= 1
                return

            lock_fd = None
            try:
                lock_fd = os.open(str(self.lock_file), os.O_CREAT | os.O_WRONLY, 0o644)
                fcntl.flock(lock_fd, fcntl.LOCK_EX)
                self._lock_depth = 1
                yield
            finally:
                self._lock_depth = 0
                if lock_fd is not None:
                    fcntl.flock(lock_fd, fcntl.LOCK_UN)
                    os.close(lock_fd)

    def exists(self, record_id: str) -> bool:
        return self._path_for(record_id).exists()

    def load(self, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a single record, or None if it does not exist."""
        path = self._path_for(record_id)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load {self.entity_name} {record_id}: {e}")
            raise StorageError(f"Failed to read {self.entity_name} {record_id}: {e}")

    def save(self, record_id: str, record: Dict[str, Any]) -> None:
        """Write a record atomically."""
        path = self._path_for(record_id)
        temp_file = path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2, default=str)
            temp_file.replace(path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save {self.entity_name} {record_id}: {e}")
            if temp_file.exists():
                temp_file.unlink()
            raise StorageError(f"Failed to write {self.entity_name} {record_id}: {e}")

    def delete(self, record_id: str) -> bool:
        """Remove a record. Returns False if it was not there."""
        path = self._path_for(record_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to delete {self.entity_name} {record_id}: {e}")
            raise StorageError(f"Failed to delete {self.entity_name} {record_id}: {e}")
        return True

    def load_all(self) -> List[Dict[str, Any]]:
        """Load every readable record; corrupt files are logged and skipped."""
        records = []
        try:
            paths = sorted(self.directory.glob("*.json"))
        except OSError as e:
            raise StorageError(f"Failed to list {self.entity_name} storage: {e}")

        for path in paths:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    records.append(json.load(f))
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable {self.entity_name} file {path.name}: {e}")
                continue

        return records
