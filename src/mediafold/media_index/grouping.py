"""Grouping of file records into logical media items, and item ordering."""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, TypeVar, Union

from mediafold.common import natural_sort_key
from .filenames import KIND_ALTERNATIVE, get_file_parts
from .records import FileRecord, GroupedItem

logger = logging.getLogger(__name__)

V = TypeVar('V')


def group_files(index: Mapping[str, FileRecord], url: Optional[str] = None) -> Dict[str, GroupedItem]:
    """
    Fold file records into grouped media items keyed by "<name>.<extension>".

    Records are visited in index order (natural filename order). Alternatives
    are indexed by scale factor, the later record winning on collisions; a
    second base/meta/thumb record is shallow-merged over the first.

    Args:
        index: filename -> FileRecord
        url: Collection URL prefix; sets FileRecord.url when given

    Returns:
        Dictionary of logical name -> GroupedItem in insertion order
    """
    media: Dict[str, GroupedItem] = {}

    for filename, record in index.items():
        parts = get_file_parts(filename)
        record = replace(record, filename=filename)
        if url:
            record = replace(record, url=f"{url.rstrip('/')}/{filename}")

        key = parts.name if parts.extension is None else f"{parts.name}.{parts.extension}"
        item = media.setdefault(key, GroupedItem())

        if parts.kind == KIND_ALTERNATIVE:
            if parts.extra in item.alternatives:
                logger.debug(f"Replacing alternative: {{'item': {key!r}, 'scale': {parts.extra}, 'file': {filename!r}}}")
            item.alternatives[parts.extra] = record
        else:
            previous = getattr(item, parts.kind)
            setattr(item, parts.kind, record.merged_over(previous) if previous else record)

    return media


def parse_media_order(value: Union[str, Iterable[str], None]) -> Optional[List[str]]:
    """
    Normalize an ordering hint.

    Args:
        value: Comma-separated names or a list of names

    Returns:
        List of trimmed, non-empty names, or None when no hint is given
    """
    if value is None:
        return None
    names = value.split(',') if isinstance(value, str) else value
    order = [str(name).strip() for name in names if str(name).strip()]
    return order or None


def order_media(items: Mapping[str, V], media_order: Optional[List[str]] = None) -> Dict[str, V]:
    """
    Order media items by an explicit hint or by natural name order.

    Names listed in media_order come first in hint order; the rest follow in
    natural, case-insensitive order.
    """
    natural = sorted(items, key=natural_sort_key)
    if not media_order:
        return {key: items[key] for key in natural}

    ordered: Dict[str, V] = {}
    for name in media_order:
        if name in items and name not in ordered:
            ordered[name] = items[name]
    for key in natural:
        if key not in ordered:
            ordered[key] = items[key]
    return ordered
