"""Content-based MIME detection for media files."""

from pathlib import Path
from typing import Optional

import filetype

UNKNOWN_MIME = 'application/octet-stream'
SVG_MIME = 'image/svg+xml'

# filetype matches binary signatures only; SVG is sniffed from the same head
_HEAD_SIZE = 4096


def _looks_like_svg(head: bytes) -> bool:
    text = head.lstrip().lower()
    return text.startswith((b'<?xml', b'<svg', b'<!doctype svg')) and b'<svg' in text


def detect_mime_type(file_path: Path, fallback: Optional[str] = None) -> str:
    """
    Detect the MIME type of a file from its leading bytes.

    Args:
        file_path: Path to the file
        fallback: MIME type reported when the content is not recognized,
            usually the registry entry for the file's extension

    Returns:
        MIME type string (e.g., 'image/jpeg', 'image/svg+xml');
        fallback or 'application/octet-stream' if undetermined

    Raises:
        OSError: If file cannot be read
    """
    with open(file_path, 'rb') as f:
        head = f.read(_HEAD_SIZE)

    kind = filetype.guess(head)
    if kind is not None:
        return kind.mime
    if _looks_like_svg(head):
        return SVG_MIME
    return fallback or UNKNOWN_MIME


def is_raster_mime_type(mime_type: str) -> bool:
    """Check if a MIME type is a pixel image (SVG excluded)."""
    return mime_type.startswith('image/') and mime_type != SVG_MIME
