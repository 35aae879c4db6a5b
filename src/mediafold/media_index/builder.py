"""Realization of grouped file records into media objects."""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from .config import STANDARD_EXIF
from .errors import ConstructionError, DerivationError, classify_error
from .media_objects import ImageMedium, Medium, MediumFactory
from .metadata.sidecar import SidecarStore, sidecar_path
from .records import GroupedItem

logger = logging.getLogger(__name__)

ExifReader = Callable[[Path], Dict[str, Any]]


class MediaItemBuilder:
    """
    Builds the Medium of one grouped media item.

    The nominal medium comes from the base file, or is derived from the
    largest alternative when there is no base file. Missing intermediate
    scales are derived, and every alternative is registered on the result
    by its width ratio.
    """

    def __init__(
        self,
        factory: MediumFactory,
        sidecars: SidecarStore,
        locate: Callable[[str], Path],
        exif_reader: Optional[ExifReader] = None,
        standard_exif: Iterable[str] = STANDARD_EXIF,
    ):
        """
        Args:
            factory: Constructs and scales media objects
            sidecars: Metadata sidecar store
            locate: Maps a collection filename to its path
            exif_reader: Reads EXIF attributes; None disables sidecar generation
            standard_exif: Attributes never written to generated sidecars
        """
        self.factory = factory
        self.sidecars = sidecars
        self.locate = locate
        self.exif_reader = exif_reader
        self.standard_exif = frozenset(standard_exif)

    def build(self, name: str, item: GroupedItem) -> Optional[Medium]:
        """
        Realize a grouped item.

        Args:
            name: Logical name of the item ("photo.jpg")
            item: Grouped file records

        Returns:
            The realized medium, or None if nothing could be constructed
        """
        alternatives: Dict[int, Medium] = {}
        for scale, record in sorted(item.alternatives.items()):
            alternative = self.factory.create_from_file(self.locate(record.filename), record)
            if alternative is None:
                logger.warning(f"Could not create alternative: {{'item': {name!r}, 'file': {record.filename!r}}}")
                continue
            alternatives[scale] = alternative

        try:
            medium, file_path = self._construct(name, item, alternatives)
        except ConstructionError as e:
            logger.warning(
                f"Could not initialize media: {{'item': {name!r}, 'category': {classify_error(e)!r}, "
                f"'error': {e.message!r}}}"
            )
            return None

        meta_path = self.locate(item.meta.filename) if item.meta is not None else None
        if meta_path is None:
            expected = sidecar_path(file_path)
            if self.sidecars.exists(expected):
                meta_path = expected
            elif self.exif_reader is not None and isinstance(medium, ImageMedium):
                meta_path = self._write_exif_sidecar(name, file_path, expected)

        if meta_path is not None:
            medium.add_meta_file(meta_path)

        if item.thumb is not None:
            # Constructed on request only
            medium.thumbnails['page'] = self.locate(item.thumb.filename)

        if alternatives:
            self._add_alternatives(medium, alternatives)

        return medium

    def _construct(
        self, name: str, item: GroupedItem, alternatives: Dict[int, Medium]
    ) -> Tuple[Medium, Path]:
        """Nominal medium of an item and the path of the file it comes from.

        Raises:
            ConstructionError: If neither the base file nor an alternative yields a medium
        """
        if item.base is not None:
            file_path = self.locate(item.base.filename)
            medium = self.factory.create_from_file(file_path, item.base)
            if medium is None:
                raise ConstructionError(f"Could not create base media from {item.base.filename}", item=name)
            medium.size = item.base.size
            return medium, file_path

        if not alternatives:
            raise ConstructionError(f"No base file or alternative for {name}", item=name)

        max_scale = max(alternatives)
        master = alternatives[max_scale]
        try:
            return self.factory.scaled_from_medium(master, max_scale, 1), master.path
        except DerivationError as e:
            raise ConstructionError(f"Could not derive base media: {e.message}", item=name) from e

    def _write_exif_sidecar(self, name: str, file_path: Path, meta_path: Path) -> Optional[Path]:
        """Store the non-standard EXIF attributes of a file as its sidecar."""
        try:
            exif = self.exif_reader(file_path)
            trimmed = {key: value for key, value in exif.items() if key not in self.standard_exif}
            if not trimmed:
                return None
            self.sidecars.write(meta_path, trimmed)
        except Exception as e:
            # Sidecar generation is best effort; the item is listed without it
            logger.warning(
                f"Could not create image meta: {{'item': {name!r}, 'category': {classify_error(e)!r}, "
                f"'error': {str(e)!r}}}"
            )
            return None

        logger.debug(f"Created image meta: {{'item': {name!r}, 'path': {str(meta_path)!r}}}")
        return meta_path

    def _add_alternatives(self, medium: Medium, alternatives: Dict[int, Medium]) -> None:
        max_scale = max(alternatives)
        master = alternatives[max_scale]

        for scale in range(max_scale - 1, 1, -1):
            if scale in alternatives:
                continue
            try:
                alternatives[scale] = self.factory.scaled_from_medium(master, max_scale, scale)
            except DerivationError as e:
                logger.warning(
                    f"Could not create alternative image: {{'file': {medium.filename!r}, 'scale': {scale}, "
                    f"'error': {e.message!r}}}"
                )

        for scale in sorted(alternatives):
            alternative = alternatives[scale]
            if alternative is medium or not alternative.width or not medium.width:
                continue
            if alternative.width != medium.width:
                medium.add_alternative(alternative.width / medium.width, alternative)
