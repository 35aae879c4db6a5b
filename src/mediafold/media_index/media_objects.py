"""Realized media objects and the factory that constructs them."""

import copy
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, ClassVar, Dict, Mapping, Optional, Type

from .errors import DerivationError, ProbeError
from .media_types import DEFAULT_MEDIA_TYPES, IMAGE_TYPES, MediaTypeConfig, get_media_type, type_defaults
from .metadata.sidecar import SidecarStore
from .probes import read_image_size, read_vector_size
from .records import FileRecord

logger = logging.getLogger(__name__)


@dataclass
class Medium:
    """A constructed media item.

    Subclasses only differ in their type tag; callers branch on Medium.type.

    Attributes:
        filename: Logical filename ("photo.jpg", also for derived variants)
        path: File the medium is read from
        mime: MIME type
        size: Size in bytes (None for derived variants)
        width: Pixel width, if known
        height: Pixel height, if known
        url: Public URL, if the collection has a URL prefix
        modified: Modification time of the file
        attributes: Registry defaults and secondary file metadata
        meta_file: Metadata sidecar reference (parsed on demand)
        thumbnails: Deferred thumbnail references by purpose ("page", ...)
        alternatives: Responsive variants by width ratio to this medium
        derived_from: Originating file of a derived variant
        timestamp: External timestamp tag of the collection that returned it
    """
    type: ClassVar[str] = 'file'

    filename: str
    path: Path
    mime: Optional[str] = None
    size: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    url: Optional[str] = None
    modified: Optional[int] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    meta_file: Optional[Path] = None
    thumbnails: Dict[str, Path] = field(default_factory=dict)
    alternatives: Dict[float, 'Medium'] = field(default_factory=dict)
    derived_from: Optional[Path] = None
    timestamp: Optional[str] = None

    @property
    def basename(self) -> str:
        return self.filename.rpartition('.')[0] or self.filename

    @property
    def extension(self) -> str:
        return self.filename.rpartition('.')[2] if '.' in self.filename else ''

    @property
    def source_path(self) -> Path:
        """File holding the pixels/bytes of this medium."""
        return self.derived_from or self.path

    def add_alternative(self, ratio: float, medium: 'Medium') -> None:
        """Register a responsive variant; ratio is its width relative to this medium."""
        if ratio <= 0:
            raise ValueError(f"Alternative ratio must be positive: {ratio}")
        self.alternatives[round(float(ratio), 4)] = medium

    def add_meta_file(self, path: Path) -> None:
        self.meta_file = path

    def read_metadata(self, sidecars: SidecarStore) -> Dict[str, Any]:
        """Parse the attached metadata sidecar; empty when there is none."""
        if self.meta_file is None or not sidecars.exists(self.meta_file):
            return {}
        return sidecars.read(self.meta_file)

    def thumbnail_path(self, kind: str = 'page') -> Optional[Path]:
        return self.thumbnails.get(kind)

    def with_timestamp(self, timestamp: Optional[str]) -> 'Medium':
        """Copy of this medium carrying the given timestamp tag.

        Containers and alternatives are copied so changes to the copy never
        reach this object. Alternatives carry the same tag.
        """
        return replace(
            self,
            timestamp=timestamp,
            attributes=copy.deepcopy(self.attributes),
            thumbnails=dict(self.thumbnails),
            alternatives={ratio: alternative.with_timestamp(timestamp)
                          for ratio, alternative in self.alternatives.items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Summary for listings and logs."""
        data: Dict[str, Any] = {
            'filename': self.filename,
            'type': self.type,
            'mime': self.mime,
            'size': self.size,
            'path': str(self.path),
        }
        if self.width is not None and self.height is not None:
            data['width'] = self.width
            data['height'] = self.height
        if self.url:
            data['url'] = self.url
        if self.meta_file:
            data['meta_file'] = str(self.meta_file)
        if self.thumbnails:
            data['thumbnails'] = {kind: str(path) for kind, path in self.thumbnails.items()}
        if self.alternatives:
            data['alternatives'] = {
                str(ratio): alternative.filename for ratio, alternative in sorted(self.alternatives.items())
            }
        if self.timestamp is not None:
            data['timestamp'] = self.timestamp
        return data


class ImageMedium(Medium):
    type: ClassVar[str] = 'image'


class VideoMedium(Medium):
    type: ClassVar[str] = 'video'


class AudioMedium(Medium):
    type: ClassVar[str] = 'audio'


class FileMedium(Medium):
    type: ClassVar[str] = 'file'


MEDIUM_CLASSES: Dict[str, Type[Medium]] = {
    'image': ImageMedium,
    'animated': ImageMedium,
    'vector': ImageMedium,
    'video': VideoMedium,
    'audio': AudioMedium,
}


class MediumFactory:
    """
    Constructs Medium objects from files and derives scaled image variants.

    Construction dispatches on the semantic type of the file's registry
    entry; dimensions come from the file record when given and are probed
    otherwise.
    """

    def __init__(
        self,
        media_types: Optional[Mapping[str, MediaTypeConfig]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
        image_probe=read_image_size,
        vector_probe=read_vector_size,
    ):
        self.media_types = media_types if media_types is not None else DEFAULT_MEDIA_TYPES
        self.defaults = defaults
        self.image_probe = image_probe
        self.vector_probe = vector_probe

    def create_from_file(self, path: Path, record: Optional[FileRecord] = None) -> Optional[Medium]:
        """
        Construct a medium for a file.

        Args:
            path: File path
            record: Index record of the file, if known

        Returns:
            Medium, or None if the file is missing or its type is not registered
        """
        if not path.is_file():
            logger.debug(f"Cannot create medium, file not found: {{'path': {str(path)!r}}}")
            return None

        entry = get_media_type(self.media_types, path.suffix[1:])
        if entry is None:
            logger.debug(f"Cannot create medium, unknown media type: {{'path': {str(path)!r}}}")
            return None

        attributes = type_defaults(entry, self.defaults)
        semantic_type = attributes.pop('type', 'file')
        registry_mime = attributes.pop('mime', None)

        if record is None:
            stat = path.stat()
            record = FileRecord(filename=path.name, size=stat.st_size, modified=int(stat.st_mtime))
        attributes.update(record.meta)

        width, height = record.width, record.height
        if (width is None or height is None) and semantic_type in IMAGE_TYPES:
            width, height = self._probe(path, semantic_type)

        medium_class = MEDIUM_CLASSES.get(semantic_type, FileMedium)
        return medium_class(
            filename=path.name,
            path=path,
            mime=record.mime or registry_mime,
            size=record.size,
            width=width,
            height=height,
            url=record.url,
            modified=record.modified,
            attributes=attributes,
        )

    def create_from_record(self, record: FileRecord, folder: Path) -> Optional[Medium]:
        """Construct a medium for an indexed file of a collection folder."""
        return self.create_from_file(folder / record.filename, record)

    def _probe(self, path: Path, semantic_type: str):
        probe = self.vector_probe if semantic_type == 'vector' else self.image_probe
        try:
            size = probe(path)
        except ProbeError as e:
            logger.warning(f"Could not read dimensions: {{'path': {str(path)!r}, 'error': {e.message!r}}}")
            return None, None
        return size.get('width'), size.get('height')

    def scaled_from_medium(self, medium: Medium, from_factor: int, to_factor: int = 1) -> Medium:
        """
        Derive the variant of an image at another scale factor.

        Only nominal dimensions are computed (rounded to whole pixels); the
        derived medium reads from the same file as its source.

        Args:
            medium: Source medium, rendered at from_factor
            from_factor: Scale factor of the source ("@3x" -> 3)
            to_factor: Scale factor to derive (1 for the nominal size)

        Returns:
            Derived medium; non-image media are returned unchanged

        Raises:
            DerivationError: If a factor is not positive or the source has no dimensions
        """
        if from_factor <= 0 or to_factor <= 0:
            raise DerivationError(
                f"Scale factors must be positive: {from_factor} -> {to_factor}",
                filename=medium.filename
            )
        if not isinstance(medium, ImageMedium):
            return medium
        if not medium.width or not medium.height:
            raise DerivationError(
                f"Cannot scale {medium.filename}: unknown dimensions",
                filename=medium.filename
            )

        ratio = to_factor / from_factor
        suffix = f"@{to_factor}x" if to_factor != 1 else ''
        basename = re.sub(rf"@{from_factor}x$", suffix, medium.basename)
        filename = f"{basename}.{medium.extension}" if medium.extension else basename

        return replace(
            medium,
            filename=filename,
            width=round(medium.width * ratio),
            height=round(medium.height * ratio),
            size=None,
            url=None,
            attributes=dict(medium.attributes),
            thumbnails=dict(medium.thumbnails),
            alternatives={},
            derived_from=medium.source_path,
            timestamp=None,
        )
