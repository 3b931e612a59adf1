"""
Local Storage Implementations

DESIGN DECISION: State lives in plain JSON files in a data directory:
1. No database setup required for a single-user app
2. The user can back up, inspect or copy the files directly
3. Each blob is one file, so a change to the savings goal never
   rewrites the transaction log

TRADEOFFS:
- One writer at a time (fine, there is one user)
- Whole-file rewrites (fine at personal-log sizes)

Writes go to a temporary file first and are then renamed over the old
file, so a crash mid-write leaves the previous version intact.
"""

import json
import os
import tempfile
from collections import deque
from pathlib import Path
from typing import Optional, Union

import structlog

from dzbudget.models.audit import AuditEvent
from dzbudget.services.storage.interface import (
    AuditStorageInterface,
    StateStorageInterface,
    StorageError,
)

logger = structlog.get_logger()


class JsonFileStateStorage(StateStorageInterface):
    """Stores each blob as `<data_dir>/<key>.json`."""

    def __init__(self, data_dir: Union[str, Path]):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def read_blob(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def write_blob(self, key: str, content: str) -> None:
        path = self._path_for(key)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{key}.", suffix=".tmp", dir=self._data_dir
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    tmp.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def delete_blob(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}") from e


class InMemoryStateStorage(StateStorageInterface):
    """Dict-backed storage for tests and throwaway sessions."""

    def __init__(self, blobs: Optional[dict[str, str]] = None):
        self.blobs: dict[str, str] = dict(blobs or {})
        self.write_count = 0

    def read_blob(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    def write_blob(self, key: str, content: str) -> None:
        self.blobs[key] = content
        self.write_count += 1

    def delete_blob(self, key: str) -> bool:
        return self.blobs.pop(key, None) is not None


class JsonLinesAuditStorage(AuditStorageInterface):
    """Append-only audit trail, one JSON object per line."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    def append_event(self, event: AuditEvent) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(event.to_json_line() + "\n")
        except OSError as e:
            raise StorageError(f"Failed to append audit event: {e}") from e
        return True

    def get_recent_events(self, limit: int = 100) -> list[dict]:
        if not self._path.exists():
            return []
        with self._path.open("r", encoding="utf-8") as fh:
            tail = deque(self._parse_lines(fh), maxlen=limit)
        return list(reversed(tail))

    def _parse_lines(self, lines):
        # A crash mid-append can leave a truncated last line
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.warning("audit_line_unreadable", path=str(self._path), line=number)


class InMemoryAuditStorage(AuditStorageInterface):
    """Keeps audit events in a list (tests)."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[dict]:
        return [e.to_log_dict() for e in reversed(self.events[-limit:])]
