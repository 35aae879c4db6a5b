"""Dimension probes for raster and vector images."""

import logging
import re
import warnings
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image, UnidentifiedImageError

from .errors import ProbeError

logger = logging.getLogger(__name__)

SVG_MIME = 'image/svg+xml'

_LEADING_NUMBER = re.compile(r'^\s*([+-]?\d+(?:\.\d+)?)')


def read_image_size(file_path: Path) -> Dict[str, Any]:
    """
    Read pixel dimensions of a raster image without decoding pixel data.

    Args:
        file_path: Path to image file

    Returns:
        Dictionary with width, height and mime

    Raises:
        ProbeError: If the file cannot be opened as an image
    """
    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", Image.DecompressionBombWarning)
            with Image.open(file_path) as img:
                width, height = img.size
                mime = Image.MIME.get(img.format or '')
        for warning in caught:
            logger.warning(
                f"Image warning: {{'path': {str(file_path)!r}, 'warning': {warning.category.__name__!r}, "
                f"'message': {str(warning.message)!r}}}"
            )
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise ProbeError(f"Cannot read image size from {file_path}: {e}", path=str(file_path)) from e

    result: Dict[str, Any] = {'width': width, 'height': height}
    if mime:
        result['mime'] = mime
    return result


def _parse_length(value: Optional[str]) -> Optional[int]:
    """Integer part of an SVG length ("120px" -> 120, "50%" -> 50)."""
    if value is None:
        return None
    match = _LEADING_NUMBER.match(value)
    if not match:
        return None
    return int(float(match.group(1)))


def parse_vector_size(data: bytes | str) -> Optional[Dict[str, Any]]:
    """
    Extract dimensions from SVG markup.

    Uses the root element's width/height attributes, falling back to a
    four-number viewBox ("min-x min-y width height").

    Args:
        data: SVG document content

    Returns:
        Dictionary with width, height and mime, or None if no size is declared
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError:
        return None

    width = height = None
    if root.get('width') and root.get('height'):
        width = _parse_length(root.get('width'))
        height = _parse_length(root.get('height'))
    else:
        view_box = (root.get('viewBox') or '').split(' ')
        if len(view_box) == 4:
            width = _parse_length(view_box[2])
            height = _parse_length(view_box[3])

    if width is None or height is None:
        return None
    return {'width': width, 'height': height, 'mime': SVG_MIME}


def read_vector_size(file_path: Path) -> Dict[str, Any]:
    """
    Read declared dimensions of an SVG file.

    Args:
        file_path: Path to SVG file

    Returns:
        Dictionary with width, height and mime

    Raises:
        ProbeError: If the file cannot be read or declares no size
    """
    try:
        data = file_path.read_bytes()
    except OSError as e:
        raise ProbeError(f"Cannot read image size from {file_path}: {e}", path=str(file_path)) from e

    size = parse_vector_size(data)
    if size is None:
        raise ProbeError(f"Cannot read image size from {file_path}", path=str(file_path))
    return size
