"""Media type registry: file extension -> mime, semantic type and default attributes."""

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

# Semantic types whose files carry pixel dimensions
IMAGE_TYPES = frozenset({'image', 'animated', 'vector'})
PROBED_TYPES = frozenset({'image', 'vector'})


class MediaTypeConfig(BaseModel):
    """Registry entry for one file extension.

    Unknown keys are allowed and form the default attribute bag that is
    merged into every file record of this type.
    """

    model_config = ConfigDict(extra='allow')

    type: str = Field(default='file', description="Semantic type (image, animated, vector, video, audio, file)")
    mime: str = Field(default='application/octet-stream', description="MIME type")
    thumb: Optional[str] = Field(default=None, description="Default thumbnail resource")

    @property
    def attributes(self) -> Dict[str, Any]:
        """Default attribute bag (all keys besides type/mime/thumb)."""
        return dict(self.model_extra or {})


def _entry(type_: str, mime: str, **attributes: Any) -> MediaTypeConfig:
    return MediaTypeConfig(type=type_, mime=mime, **attributes)


DEFAULT_MEDIA_TYPES: Dict[str, MediaTypeConfig] = {
    # Images
    'jpg': _entry('image', 'image/jpeg', thumb='media/thumb-jpg.png'),
    'jpe': _entry('image', 'image/jpeg', thumb='media/thumb-jpg.png'),
    'jpeg': _entry('image', 'image/jpeg', thumb='media/thumb-jpeg.png'),
    'png': _entry('image', 'image/png', thumb='media/thumb-png.png'),
    'gif': _entry('animated', 'image/gif', thumb='media/thumb-gif.png'),
    'webp': _entry('image', 'image/webp', thumb='media/thumb-webp.png'),
    'avif': _entry('image', 'image/avif', thumb='media/thumb.png'),
    'svg': _entry('vector', 'image/svg+xml', thumb='media/thumb-svg.png'),
    'bmp': _entry('file', 'image/bmp', thumb='media/thumb-bmp.png'),
    'tif': _entry('file', 'image/tiff', thumb='media/thumb-tiff.png'),
    'tiff': _entry('file', 'image/tiff', thumb='media/thumb-tiff.png'),
    # Video
    'mp4': _entry('video', 'video/mp4', thumb='media/thumb-mp4.png'),
    'mov': _entry('video', 'video/quicktime', thumb='media/thumb-mov.png'),
    'm4v': _entry('video', 'video/x-m4v', thumb='media/thumb-m4v.png'),
    'webm': _entry('video', 'video/webm', thumb='media/thumb-webm.png'),
    'ogv': _entry('video', 'video/ogg', thumb='media/thumb-ogg.png'),
    # Audio
    'mp3': _entry('audio', 'audio/mp3', thumb='media/thumb-mp3.png'),
    'ogg': _entry('audio', 'audio/ogg', thumb='media/thumb-ogg.png'),
    'm4a': _entry('audio', 'audio/m4a', thumb='media/thumb-m4a.png'),
    'wav': _entry('audio', 'audio/wav', thumb='media/thumb-wav.png'),
    'aiff': _entry('audio', 'audio/aiff', thumb='media/thumb-aif.png'),
    'flac': _entry('audio', 'audio/flac', thumb='media/thumb-flac.png'),
    # Documents and archives
    'txt': _entry('file', 'text/plain', thumb='media/thumb-txt.png'),
    'pdf': _entry('file', 'application/pdf', thumb='media/thumb-pdf.png'),
    'doc': _entry('file', 'application/msword', thumb='media/thumb-doc.png'),
    'docx': _entry('file', 'application/vnd.openxmlformats-officedocument.wordprocessingml.document', thumb='media/thumb-docx.png'),
    'xls': _entry('file', 'application/vnd.ms-excel', thumb='media/thumb-xls.png'),
    'xlsx': _entry('file', 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet', thumb='media/thumb-xlsx.png'),
    'json': _entry('file', 'application/json', thumb='media/thumb-json.png'),
    'xml': _entry('file', 'application/xml', thumb='media/thumb-xml.png'),
    'zip': _entry('file', 'application/zip', thumb='media/thumb-zip.png'),
    'gz': _entry('file', 'application/gzip', thumb='media/thumb-gz.png'),
}

DEFAULT_TYPE_ATTRIBUTES: Dict[str, Any] = {
    'type': 'file',
    'thumb': 'media/thumb.png',
    'mime': 'application/octet-stream',
}


def get_media_type(
    media_types: Mapping[str, MediaTypeConfig],
    extension: Optional[str],
) -> Optional[MediaTypeConfig]:
    """Look up a registry entry by extension (case-insensitive).

    Returns:
        The entry, or None when the extension is missing or unregistered
    """
    if not extension:
        return None
    return media_types.get(extension.lower())


def type_defaults(
    entry: MediaTypeConfig,
    defaults: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Flatten a registry entry over the global defaults bag.

    Keys of the entry win; empty values in the entry do not mask defaults.
    """
    merged: Dict[str, Any] = dict(defaults or DEFAULT_TYPE_ATTRIBUTES)
    for key, value in entry.model_dump().items():
        if value is None or value == {}:
            continue
        merged[key] = value
    return merged
