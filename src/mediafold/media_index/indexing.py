"""Index freshness decisions: when to rescan, when to write.

The stored index is reused while fresh. A rescan recomputes the file map
and its checksum; an unchanged checksum only refreshes the stored timestamp,
so the index is written only when the folder content actually changed.
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from mediafold.common import natural_sort_key
from .index_store import INDEX_VERSION, IndexRecord, MediaIndexStore
from .records import FileRecord

logger = logging.getLogger(__name__)

Rescan = Callable[[Dict[str, FileRecord]], Dict[str, FileRecord]]


def collection_index_id(collection_type: str, identifier: str) -> str:
    """Content-addressed id of a collection: md5("<type>:<identifier>")."""
    return hashlib.md5(f"{collection_type}:{identifier}".encode('utf-8')).hexdigest()


@dataclass(frozen=True)
class CollectionIdentity:
    """Fields identifying a collection in the persisted index."""
    collection_type: str
    folder: str
    name: Optional[str] = None
    url: Optional[str] = None
    identifier: Optional[str] = None

    @property
    def id(self) -> str:
        return collection_index_id(self.collection_type, self.identifier or self.folder)


def compact_files(files: Mapping[str, FileRecord]) -> Dict[str, FileRecord]:
    """
    Normalize a file map for storage.

    Sorts by filename and drops meta entries that repeat a direct field
    (and a remote name equal to the filename).
    """
    compacted: Dict[str, FileRecord] = {}
    for filename in sorted(files, key=lambda key: natural_sort_key(key, case_sensitive=True)):
        record = files[filename]
        direct = record.direct_fields()
        meta = {
            key: value for key, value in record.meta.items()
            if not (key in direct and direct[key] == value)
        }
        if meta.get('name') == filename:
            del meta['name']
        compacted[filename] = FileRecord(meta=meta, **direct)
    return compacted


def compute_checksum(files: Mapping[str, FileRecord]) -> str:
    """Hash of the canonical JSON form of a compacted file map."""
    payload = {filename: record.to_dict() for filename, record in compact_files(files).items()}
    canonical = json.dumps(payload, sort_keys=True, separators=(',', ':'), default=str)
    return hashlib.md5(canonical.encode('utf-8')).hexdigest()


def generate_index(
    identity: CollectionIdentity,
    files: Mapping[str, FileRecord],
    checksum: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> IndexRecord:
    """Build the IndexRecord to persist for a collection."""
    return IndexRecord(
        version=INDEX_VERSION,
        type=identity.collection_type,
        name=identity.name,
        checksum=checksum or compute_checksum(files),
        timestamp=int(time.time()) if timestamp is None else timestamp,
        folder=identity.folder,
        url=identity.url,
        files=compact_files(files),
    )


def refresh_index(
    store: Optional[MediaIndexStore],
    identity: CollectionIdentity,
    index_timeout: int,
    rescan: Rescan,
    now: Optional[int] = None,
) -> Dict[str, FileRecord]:
    """
    Return the file map of a collection, rescanning when the index is stale.

    Args:
        store: Persisted index; None disables persistence (always rescan)
        identity: Collection identity
        index_timeout: Seconds the stored index stays fresh; 0 rescans every time
        rescan: Builds the current file map from the previous one
        now: Current unix time (defaults to time.time())

    Returns:
        Dictionary of filename -> FileRecord
    """
    now = int(time.time()) if now is None else now

    if store is not None:
        record, stored_at = store.get(
            identity.id, folder=identity.folder, collection_type=identity.collection_type
        )
    else:
        record, stored_at = IndexRecord(), 0

    stale = not stored_at or not index_timeout or now - stored_at > index_timeout
    if not stale:
        logger.debug(f"Reusing media index: {{'id': {identity.id!r}, 'files': {len(record.files)}}}")
        return record.files

    files = rescan(record.files)
    checksum = compute_checksum(files)

    if store is not None:
        if checksum == record.checksum:
            store.touch(identity.id, now)
        else:
            logger.info(f"Media index changed: {{'folder': {identity.folder!r}, 'files': {len(files)}}}")
            store.save(identity.id, generate_index(identity, files, checksum, now))

    return files


def update_index(
    store: Optional[MediaIndexStore],
    identity: CollectionIdentity,
    files: Optional[Mapping[str, Optional[FileRecord]]] = None,
    now: Optional[int] = None,
) -> None:
    """
    Merge added and removed files into the stored index.

    The read-merge-write runs under the store's exclusive lock.

    Args:
        store: Persisted index; None makes this a no-op
        identity: Collection identity
        files: filename -> FileRecord for added/changed files, None values for
            removed ones; None resets the stored timestamp so the next load
            rescans the folder
        now: Current unix time (defaults to time.time())
    """
    if store is None:
        return

    with store.lock():
        record, _ = store.get(identity.id, folder=identity.folder, collection_type=identity.collection_type)

        if files is None:
            merged = dict(record.files)
            timestamp = 0
        else:
            merged = dict(record.files)
            for filename, info in files.items():
                if info is None:
                    merged.pop(filename, None)
                else:
                    merged[filename] = info
            timestamp = int(time.time()) if now is None else now

        store.save(identity.id, generate_index(identity, merged, timestamp=timestamp))

    logger.info(
        f"Updated media index: {{'folder': {identity.folder!r}, 'files': {len(merged)}, 'timestamp': {timestamp}}}"
    )
