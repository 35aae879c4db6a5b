"""Persistent store for per-collection file indexes.

One IndexRecord per collection id, kept as JSON in a SQLite table shared by
every process that lists the same media folders.
"""

import json
import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from .database import DatabaseConnection
from .errors import IndexStoreError
from .records import FileRecord

logger = logging.getLogger(__name__)

# Bump when the persisted record layout changes; older records are ignored
INDEX_VERSION = '2'

_SCHEMA = """
CREATE TABLE IF NOT EXISTS media_index (
    id TEXT PRIMARY KEY,
    record TEXT NOT NULL,
    timestamp INTEGER NOT NULL DEFAULT 0
)
"""


@dataclass
class IndexRecord:
    """Persisted file index of one collection.

    Attributes:
        version: Layout version (INDEX_VERSION when written by this code)
        type: Collection type ("local", ...)
        name: Collection name
        checksum: Hash of the file map, used to skip redundant writes
        timestamp: Unix time of the last rescan
        folder: Collection folder path
        url: Collection URL prefix
        files: filename -> FileRecord
    """
    version: Optional[str] = None
    type: Optional[str] = None
    name: Optional[str] = None
    checksum: Optional[str] = None
    timestamp: int = 0
    folder: Optional[str] = None
    url: Optional[str] = None
    files: Dict[str, FileRecord] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'type': self.type,
            'name': self.name,
            'checksum': self.checksum,
            'timestamp': self.timestamp,
            'folder': self.folder,
            'url': self.url,
            'files': {filename: record.to_dict() for filename, record in self.files.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'IndexRecord':
        files = {
            filename: FileRecord.from_dict(info, filename=filename)
            for filename, info in (data.get('files') or {}).items()
        }
        return cls(
            version=data.get('version'),
            type=data.get('type'),
            name=data.get('name'),
            checksum=data.get('checksum'),
            timestamp=int(data.get('timestamp') or 0),
            folder=data.get('folder'),
            url=data.get('url'),
            files=files,
        )


class MediaIndexStore:
    """
    SQLite-backed store of IndexRecords keyed by collection id.

    The store is safe to share between threads of one process; lock()
    additionally excludes writers in other processes.
    """

    def __init__(self, db_path: Path, timeout: float = 30.0):
        """
        Initialize the index store.

        Args:
            db_path: Path to the SQLite database file (created on first use)
            timeout: Seconds to wait for a lock held by another process
        """
        self.db_path = db_path
        self.db = DatabaseConnection(db_path, timeout=timeout)
        self._mutex = threading.RLock()
        self._schema_ready = False

    def _ensure_schema(self) -> None:
        if not self._schema_ready:
            cursor = self.db.execute(_SCHEMA)
            cursor.close()
            self._schema_ready = True

    def get(
        self,
        collection_id: str,
        *,
        folder: Optional[str] = None,
        collection_type: Optional[str] = None,
    ) -> Tuple[IndexRecord, int]:
        """
        Fetch the stored index of a collection.

        Args:
            collection_id: Collection id
            folder: Expected collection folder; a mismatch invalidates the record
            collection_type: Expected collection type; a mismatch invalidates the record

        Returns:
            (record, stored timestamp); an empty record and 0 when the record is
            absent, unreadable, of another version or of another collection
        """
        with self._mutex:
            try:
                self._ensure_schema()
                cursor = self.db.execute(
                    "SELECT record, timestamp FROM media_index WHERE id = ?",
                    (collection_id,)
                )
                row = cursor.fetchone()
                cursor.close()
            except sqlite3.Error as e:
                raise IndexStoreError(f"Cannot read media index: {e}", id=collection_id) from e

        if row is None:
            return IndexRecord(), 0

        try:
            record = IndexRecord.from_dict(json.loads(row['record']))
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable media index: {{'id': {collection_id!r}, 'error': {str(e)!r}}}")
            return IndexRecord(), 0

        if record.version != INDEX_VERSION:
            logger.debug(f"Media index version mismatch: {{'id': {collection_id!r}, 'version': {record.version!r}}}")
            return IndexRecord(), 0
        if folder is not None and record.folder != folder:
            return IndexRecord(), 0
        if collection_type is not None and record.type != collection_type:
            return IndexRecord(), 0

        record.timestamp = int(row['timestamp'])
        return record, record.timestamp

    def save(self, collection_id: str, record: IndexRecord) -> None:
        """Overwrite the stored index of a collection."""
        payload = json.dumps(record.to_dict(), sort_keys=True, default=str)
        with self._mutex:
            try:
                self._ensure_schema()
                cursor = self.db.execute(
                    "INSERT OR REPLACE INTO media_index (id, record, timestamp) VALUES (?, ?, ?)",
                    (collection_id, payload, int(record.timestamp))
                )
                cursor.close()
            except sqlite3.Error as e:
                raise IndexStoreError(f"Cannot write media index: {e}", id=collection_id) from e

        logger.debug(f"Saved media index: {{'id': {collection_id!r}, 'files': {len(record.files)}, 'checksum': {record.checksum!r}}}")

    def touch(self, collection_id: str, timestamp: Optional[int] = None) -> None:
        """Update only the freshness timestamp of a stored index."""
        timestamp = int(time.time()) if timestamp is None else int(timestamp)
        with self._mutex:
            try:
                self._ensure_schema()
                cursor = self.db.execute(
                    "UPDATE media_index SET timestamp = ? WHERE id = ?",
                    (timestamp, collection_id)
                )
                cursor.close()
            except sqlite3.Error as e:
                raise IndexStoreError(f"Cannot touch media index: {e}", id=collection_id) from e

        logger.debug(f"Touched media index: {{'id': {collection_id!r}, 'timestamp': {timestamp}}}")

    def delete(self, collection_id: str) -> None:
        with self._mutex:
            try:
                self._ensure_schema()
                cursor = self.db.execute("DELETE FROM media_index WHERE id = ?", (collection_id,))
                cursor.close()
            except sqlite3.Error as e:
                raise IndexStoreError(f"Cannot delete media index: {e}", id=collection_id) from e

    @contextmanager
    def lock(self) -> Iterator['MediaIndexStore']:
        """
        Hold exclusive write access for a read-merge-write sequence.

        Usage:
            with store.lock():
                record, _ = store.get(collection_id)
                store.save(collection_id, merged)

        Commits when the block completes, rolls back when it raises; the lock
        is released in both cases.
        """
        with self._mutex:
            if self.db.in_transaction:
                raise IndexStoreError("Media index is already locked", path=str(self.db_path))
            try:
                self._ensure_schema()
                with self.db.transaction("EXCLUSIVE"):
                    yield self
            except sqlite3.Error as e:
                raise IndexStoreError(f"Media index transaction failed: {e}", path=str(self.db_path)) from e

    def close(self) -> None:
        with self._mutex:
            self.db.close()

    def __enter__(self) -> 'MediaIndexStore':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
