"""Filename classification for grouping related media files.

A media item may be spread over several files:

    photo.jpg             base file
    photo@2x.jpg          alternative (scale factor 2)
    photo.jpg.meta.yaml   metadata sidecar
    photo.jpg.thumb.png   thumbnail override
"""

import re
from typing import NamedTuple, Optional, Union

META_SUFFIX = '.meta.yaml'

KIND_BASE = 'base'
KIND_ALTERNATIVE = 'alternative'
KIND_META = 'meta'
KIND_THUMB = 'thumb'

_THUMB_PATTERN = re.compile(r'^(.*?)\.thumb\.(.*)$', re.DOTALL)
_ALTERNATIVE_PATTERN = re.compile(r'^(.*?)@(\d+)x$', re.DOTALL)


class FileParts(NamedTuple):
    """Result of classifying one filename."""
    name: str
    extension: Optional[str]
    kind: str
    extra: Union[int, str, None]


def get_file_parts(filename: str) -> FileParts:
    """
    Split a filename into logical name, extension, kind and extra data.

    Args:
        filename: Bare filename (no directory part)

    Returns:
        FileParts; extra is the scale factor for alternatives and the
        thumbnail extension for thumbs

    Examples:
        >>> get_file_parts("photo@2x.jpg")
        FileParts(name='photo', extension='jpg', kind='alternative', extra=2)
        >>> get_file_parts("photo.jpg.thumb.png")
        FileParts(name='photo', extension='jpg', kind='thumb', extra='png')
    """
    kind = None
    extra: Union[int, str, None] = None

    if filename.endswith(META_SUFFIX):
        kind = KIND_META
        filename = filename[:-len(META_SUFFIX)]
    else:
        match = _THUMB_PATTERN.match(filename)
        if match:
            kind = KIND_THUMB
            filename, extra = match.group(1), match.group(2)

    name, dot, extension = filename.rpartition('.')
    if not dot:
        name, extension = filename, None

    if kind is None:
        match = _ALTERNATIVE_PATTERN.match(name) if extension else None
        if match and int(match.group(2)) > 0:
            kind = KIND_ALTERNATIVE
            name, extra = match.group(1), int(match.group(2))
        else:
            kind = KIND_BASE

    return FileParts(name, extension, kind, extra)


def get_basename(filename: str) -> str:
    """Logical key shared by all files of one media item ("photo.jpg")."""
    parts = get_file_parts(filename)
    if parts.extension is None:
        return parts.name
    return f"{parts.name}.{parts.extension}"
