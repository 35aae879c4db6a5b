"""EXIF metadata extraction using Pillow."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import GPSTAGS, TAGS
from PIL.TiffImagePlugin import IFDRational

from ..errors import MetadataExtractionError
from ..mime_detector import detect_mime_type, is_raster_mime_type

logger = logging.getLogger(__name__)

GPS_IFD = 0x8825

# EXIF tag -> flat metadata key
_TEXT_TAGS = {
    'Make': 'camera_make',
    'Model': 'camera_model',
    'LensMake': 'lens_make',
    'LensModel': 'lens_model',
    'Software': 'software',
    'Artist': 'artist',
    'Copyright': 'copyright',
    'ImageDescription': 'description',
}
_DATETIME_TAGS = {
    'DateTime': 'datetime',
    'DateTimeOriginal': 'datetime_original',
    'DateTimeDigitized': 'datetime_digitized',
}
_RATIONAL_TAGS = {
    'FocalLength': 'focal_length',
    'FNumber': 'f_number',
}


def extract_exif(file_path: Path) -> Dict[str, Any]:
    """
    Read image metadata as a flat key/value map.

    Always contains FileSize, MimeType, width and height; EXIF tags
    (camera, lens, exposure, dates, GPS) are added when present.

    Args:
        file_path: Path to image file

    Returns:
        Metadata dictionary with YAML-safe values

    Raises:
        MetadataExtractionError: If the file is not a readable image
    """
    try:
        mime_type = detect_mime_type(file_path)
    except OSError as e:
        raise MetadataExtractionError(f"Cannot read {file_path}: {e}", path=str(file_path)) from e

    if not is_raster_mime_type(mime_type):
        raise MetadataExtractionError(
            f"No EXIF support for {mime_type}: {file_path}", path=str(file_path), mime=mime_type
        )

    metadata: Dict[str, Any] = {
        'FileSize': file_path.stat().st_size,
        'MimeType': mime_type,
    }

    try:
        with Image.open(file_path) as img:
            metadata['width'], metadata['height'] = img.size
            exif_data = img.getexif()

            for tag_id, value in exif_data.items():
                tag_name = TAGS.get(tag_id, tag_id)

                if tag_name in _TEXT_TAGS:
                    text = _clean_text(value)
                    if text:
                        metadata[_TEXT_TAGS[tag_name]] = text
                elif tag_name in _DATETIME_TAGS:
                    parsed = _parse_exif_datetime(value)
                    if parsed:
                        metadata[_DATETIME_TAGS[tag_name]] = parsed
                elif tag_name in _RATIONAL_TAGS:
                    number = _parse_rational(value)
                    if number is not None:
                        metadata[_RATIONAL_TAGS[tag_name]] = number
                elif tag_name == 'ExposureTime':
                    metadata['exposure_time'] = _format_exposure_time(value)
                elif tag_name in ('ISOSpeedRatings', 'ISO'):
                    iso = _parse_iso(value)
                    if iso is not None:
                        metadata['iso'] = iso
                elif tag_name == 'Orientation':
                    metadata['orientation'] = int(value)

            metadata.update(_extract_gps_data(exif_data))
    except (OSError, UnidentifiedImageError) as e:
        raise MetadataExtractionError(f"Cannot read EXIF from {file_path}: {e}", path=str(file_path)) from e

    return metadata


def _clean_text(value: Any) -> Optional[str]:
    if isinstance(value, bytes):
        value = value.decode('utf-8', errors='replace')
    text = str(value).replace('\x00', '').strip()
    return text or None


def _parse_iso(value: Any) -> Optional[int]:
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, tuple) and value:
        return int(value[0])
    return None


def _extract_gps_data(exif_data) -> Dict[str, float]:
    """
    Extract GPS coordinates from EXIF data.

    Returns:
        Dictionary with gps_latitude, gps_longitude, gps_altitude
    """
    gps_info: Dict[str, float] = {}

    gps_ifd = exif_data.get_ifd(GPS_IFD)
    if not gps_ifd:
        return gps_info

    gps_data = {GPSTAGS.get(tag_id, tag_id): value for tag_id, value in gps_ifd.items()}

    if 'GPSLatitude' in gps_data and 'GPSLatitudeRef' in gps_data:
        lat = _convert_gps_coordinate(gps_data['GPSLatitude'])
        if lat is not None:
            gps_info['gps_latitude'] = -lat if gps_data['GPSLatitudeRef'] == 'S' else lat

    if 'GPSLongitude' in gps_data and 'GPSLongitudeRef' in gps_data:
        lon = _convert_gps_coordinate(gps_data['GPSLongitude'])
        if lon is not None:
            gps_info['gps_longitude'] = -lon if gps_data['GPSLongitudeRef'] == 'W' else lon

    if 'GPSAltitude' in gps_data:
        altitude = _parse_rational(gps_data['GPSAltitude'])
        if altitude is not None:
            # AltitudeRef 1 = below sea level
            gps_info['gps_altitude'] = -altitude if gps_data.get('GPSAltitudeRef') == 1 else altitude

    return gps_info


def _convert_gps_coordinate(coord_tuple) -> Optional[float]:
    """Convert (degrees, minutes, seconds) to decimal degrees."""
    if not coord_tuple or len(coord_tuple) < 3:
        return None

    degrees, minutes, seconds = (_parse_rational(part) for part in coord_tuple[:3])
    if degrees is None or minutes is None or seconds is None:
        return None

    return degrees + (minutes / 60.0) + (seconds / 3600.0)


def _parse_rational(value) -> Optional[float]:
    """
    Parse EXIF rational value to float.

    Args:
        value: Rational value (can be int, float, IFDRational, or tuple)

    Returns:
        Float value or None
    """
    if isinstance(value, IFDRational):
        if value.denominator == 0:
            return None
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, tuple) and len(value) == 2:
        numerator, denominator = value
        if denominator == 0:
            return None
        return float(numerator) / float(denominator)
    return None


def _parse_exif_datetime(value: Any) -> Optional[str]:
    """
    Parse EXIF datetime to ISO format.

    EXIF format: "2020:01:01 12:00:00"
    ISO format: "2020-01-01T12:00:00"
    """
    parts = str(value).strip().split(' ')
    if len(parts) == 2:
        date_part = parts[0].replace(':', '-')
        return f"{date_part}T{parts[1]}"
    return None


def _format_exposure_time(value) -> str:
    """
    Format exposure time as fraction string.

    Returns:
        Formatted string like "1/100" or "2.5"
    """
    if isinstance(value, IFDRational) and value.numerator == 1:
        return f"1/{value.denominator}"
    if isinstance(value, tuple) and len(value) == 2:
        numerator, denominator = value
        return f"{numerator}/{denominator}"
    return str(float(value)) if isinstance(value, IFDRational) else str(value)
