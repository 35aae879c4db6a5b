"""File listing and per-file record preparation.

Turns a raw directory listing into FileRecords, reusing dimensions from the
previous index when a file is unchanged so images are only probed once.
"""

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from mediafold.common import natural_sort_key
from .errors import classify_error
from .filenames import META_SUFFIX
from .media_types import MediaTypeConfig, PROBED_TYPES, get_media_type, type_defaults
from .path_utils import should_index_file
from .probes import read_image_size as default_image_probe
from .probes import read_vector_size as default_vector_probe
from .records import FileRecord, FileStat

logger = logging.getLogger(__name__)

SizeProbe = Callable[[Path], Dict[str, Any]]

SIDECAR_ATTRIBUTES = {'type': 'meta', 'mime': 'text/yaml'}

# Keys of a probe result that map onto FileRecord fields
_PROBE_FIELDS = ('width', 'height', 'mime')


def list_directory(folder: Path) -> Iterator[Tuple[str, FileStat]]:
    """
    List regular files of one folder (non-recursive).

    Args:
        folder: Folder to list

    Yields:
        (filename, FileStat) pairs in directory order
    """
    with os.scandir(folder) as entries:
        for entry in entries:
            if not entry.is_file():
                continue
            stat = entry.stat()
            yield entry.name, FileStat(size=stat.st_size, modified=int(stat.st_mtime))


def _remote_name(record: FileRecord) -> Optional[str]:
    """Name a file had at its origin (explicit name or remote URL basename)."""
    if record.name:
        return record.name
    remote_url = record.meta.get('remote_url')
    if remote_url:
        return PurePosixPath(str(remote_url)).name or None
    return None


def _build_lookup(cached: Mapping[str, FileRecord]) -> Dict[str, FileRecord]:
    """Index cached records by remote-origin name where it differs from the filename."""
    lookup: Dict[str, FileRecord] = {}
    for filename, record in cached.items():
        name = _remote_name(record)
        if name and name != filename:
            lookup[name] = record
    return lookup


def _is_unchanged(existing: FileRecord, stat: FileStat) -> bool:
    if existing.size != stat.size:
        return False
    return existing.modified is None or existing.modified == stat.modified


def prepare_file_info(
    files: Iterable[Tuple[str, FileStat]],
    media_types: Mapping[str, MediaTypeConfig],
    cached: Optional[Mapping[str, FileRecord]],
    *,
    folder: Path,
    defaults: Optional[Mapping[str, Any]] = None,
    read_image_size: SizeProbe = default_image_probe,
    read_vector_size: SizeProbe = default_vector_probe,
) -> Dict[str, FileRecord]:
    """
    Build enriched file records from a directory listing.

    Removes all non-media files and adds type information and dimensions.

    Args:
        files: (filename, FileStat) pairs from a directory listing
        media_types: Registry of lowercase extension -> media type
        cached: File records of the previous index; None disables cache reuse
            and dimension probing entirely (listing-only contexts)
        folder: Folder the filenames are relative to
        defaults: Attributes applied to every media type
        read_image_size: Pixel-dimension probe for raster images
        read_vector_size: Dimension probe for vector images

    Returns:
        Dictionary of filename -> FileRecord in natural, case-insensitive order
    """
    lookup = _build_lookup(cached) if cached else {}

    records: Dict[str, FileRecord] = {}
    for filename, stat in files:
        _, dot, extension = filename.rpartition('.')
        extension = extension if dot else None
        if not should_index_file(filename, extension):
            continue

        if filename.endswith(META_SUFFIX):
            attributes: Dict[str, Any] = dict(SIDECAR_ATTRIBUTES)
        else:
            entry = get_media_type(media_types, extension)
            if entry is None:
                continue
            attributes = type_defaults(entry, defaults)

        semantic_type = attributes.pop('type', 'file')
        registry_mime = attributes.pop('mime', None)

        existing: Optional[FileRecord] = None
        probed: Dict[str, Any] = {}
        if cached is not None:
            previous = lookup.get(filename) or cached.get(filename)
            if previous is not None and previous.filename != filename:
                # Stored under its remote-origin name: keep the indexed filename
                filename = previous.filename
            if previous is not None and _is_unchanged(previous, stat):
                existing = previous
            elif semantic_type in PROBED_TYPES:
                probe = read_vector_size if semantic_type == 'vector' else read_image_size
                try:
                    probed = dict(probe(folder / filename))
                except Exception as e:
                    # Any probe failure leaves the file without dimensions
                    logger.warning(
                        f"Could not read dimensions for index: {{'file': {filename!r}, "
                        f"'category': {classify_error(e)!r}, 'error': {str(e)!r}}}"
                    )

        meta: Dict[str, Any] = dict(attributes)
        if existing is not None:
            meta.update(existing.meta)
        meta.update({key: value for key, value in probed.items() if key not in _PROBE_FIELDS})

        record = FileRecord(
            filename=filename,
            size=stat.size,
            modified=stat.modified,
            mime=probed.get('mime') or (existing.mime if existing else None) or registry_mime,
            type=semantic_type,
            width=probed.get('width', existing.width if existing else None),
            height=probed.get('height', existing.height if existing else None),
            name=existing.name if existing else None,
            meta=meta,
        )
        records[filename] = record

    return {filename: records[filename] for filename in sorted(records, key=natural_sort_key)}
