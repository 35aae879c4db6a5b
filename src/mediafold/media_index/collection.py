"""Media collection of one folder."""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from mediafold.common import normalize_path
from .builder import ExifReader, MediaItemBuilder
from .config import MediaIndexConfig
from .errors import SchemaVersionMismatchError
from .file_info import SizeProbe, list_directory, prepare_file_info
from .grouping import group_files, order_media, parse_media_order
from .index_store import INDEX_VERSION, MediaIndexStore
from .indexing import CollectionIdentity, refresh_index, update_index
from .media_objects import Medium, MediumFactory
from .metadata import YamlSidecarStore, extract_exif
from .metadata.sidecar import SidecarStore
from .ordering import FrontmatterOrderSource, OrderSource
from .probes import read_image_size as default_image_probe
from .probes import read_vector_size as default_vector_probe
from .records import FileRecord, FileStat, GroupedItem

logger = logging.getLogger(__name__)

Lister = Callable[[Path], Iterable[Tuple[str, FileStat]]]
Slot = Union[GroupedItem, Medium]

SNAPSHOT_VERSION = INDEX_VERSION


class MediaCollection:
    """
    Media items of one folder, grouped by logical name.

    Items are realized lazily: each slot holds the grouped file records until
    the item is first accessed, then the constructed Medium. Callers always
    receive copies stamped with the collection's current timestamp tag.

    Example:
        >>> media = MediaCollection(Path("pages/blog"), store=store)
        >>> for name, medium in media.items():
        ...     print(name, medium.width, medium.height)
    """

    def __init__(
        self,
        path: Union[Path, str],
        config: Optional[MediaIndexConfig] = None,
        *,
        store: Optional[MediaIndexStore] = None,
        factory: Optional[MediumFactory] = None,
        sidecars: Optional[SidecarStore] = None,
        exif_reader: Optional[ExifReader] = None,
        read_image_size: SizeProbe = default_image_probe,
        read_vector_size: SizeProbe = default_vector_probe,
        lister: Lister = list_directory,
        order_source: Optional[OrderSource] = None,
        media_order: Union[str, List[str], None] = None,
        url: Optional[str] = None,
        collection_type: str = 'local',
        name: Optional[str] = None,
        collection_id: Optional[str] = None,
        timestamp: Optional[str] = None,
        initialize: bool = True,
    ):
        """
        Args:
            path: Media folder
            config: Media index configuration (defaults when None)
            store: Persisted index; None keeps the index in memory only
            factory: Media object factory (built from config when None)
            sidecars: Metadata sidecar store (YAML files when None)
            exif_reader: EXIF reader; defaults to Pillow when EXIF sidecars are enabled
            read_image_size: Pixel-dimension probe used while indexing
            read_vector_size: Vector dimension probe used while indexing
            lister: Directory listing used while indexing
            order_source: Supplies the ordering hint on demand
                (frontmatter.yaml of the folder when None)
            media_order: Explicit ordering hint
            url: URL prefix of the folder
            collection_type: Collection type stored in the index
            name: Collection name stored in the index
            collection_id: Identifier used instead of the path for the index id
            timestamp: Timestamp tag applied to returned media
            initialize: Index the folder now
        """
        self.config = config or MediaIndexConfig()
        self.path = Path(path)
        self.url = url
        self.collection_type = collection_type
        self.name = name
        self.collection_id = collection_id
        self.index_timeout = self.config.index.timeout

        self._store = store
        self._lister = lister
        self._read_image_size = read_image_size
        self._read_vector_size = read_vector_size
        self._order_source = order_source or FrontmatterOrderSource(self.path)
        self._media_order = parse_media_order(media_order)
        self._timestamp = timestamp

        media = self.config.media
        self.factory = factory or MediumFactory(
            media.types,
            media.defaults,
            image_probe=read_image_size,
            vector_probe=read_vector_size,
        )
        if exif_reader is None and media.auto_metadata_exif:
            exif_reader = extract_exif
        self.standard_exif = list(media.standard_exif)
        self.sidecars = sidecars or YamlSidecarStore()
        self._builder = MediaItemBuilder(
            self.factory,
            self.sidecars,
            locate=lambda filename: self.path / filename,
            exif_reader=exif_reader,
            standard_exif=self.standard_exif,
        )

        self._exists = self.path.is_dir()
        self._index: Dict[str, FileRecord] = {}
        self._raw: Dict[str, GroupedItem] = {}
        self._grouped: Dict[str, Slot] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

        if initialize:
            self._initialize()

    @property
    def identity(self) -> CollectionIdentity:
        return CollectionIdentity(
            collection_type=self.collection_type,
            folder=normalize_path(self.path),
            name=self.name,
            url=self.url,
            identifier=self.collection_id,
        )

    @property
    def id(self) -> str:
        """Index id of this collection."""
        return self.identity.id

    def exists(self) -> bool:
        return self._exists

    def _initialize(self) -> None:
        if not self._exists:
            logger.debug(f"Media folder does not exist: {{'path': {str(self.path)!r}}}")
            return

        self._index = refresh_index(self._store, self.identity, self.index_timeout, self._rescan)
        self._set_grouped(group_files(self._index, self.url))

        logger.debug(f"Loaded media collection: {{'path': {str(self.path)!r}, 'items': {len(self._grouped)}}}")

    def _rescan(self, cached: Dict[str, FileRecord]) -> Dict[str, FileRecord]:
        return prepare_file_info(
            self._lister(self.path),
            self.config.media.types,
            cached,
            folder=self.path,
            defaults=self.config.media.defaults,
            read_image_size=self._read_image_size,
            read_vector_size=self._read_vector_size,
        )

    def _set_grouped(self, grouped: Mapping[str, GroupedItem]) -> None:
        self._raw = dict(grouped)
        self._grouped = order_media(grouped, self._media_order)

    def _key_lock(self, name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(name, threading.Lock())

    def _discard_key_lock(self, name: str) -> None:
        # Only grouped slots need a lock; realized and hidden ones never build again
        with self._locks_guard:
            self._locks.pop(name, None)

    def _realize(self, name: str) -> Optional[Medium]:
        """Realized medium of a slot, constructing it on first access."""
        slot = self._grouped.get(name)
        if slot is None or isinstance(slot, Medium):
            return slot

        with self._key_lock(name):
            slot = self._grouped.get(name)
            if slot is None or isinstance(slot, Medium):
                return slot

            if not slot.is_realizable():
                logger.debug(f"Dropping media item without files: {{'item': {name!r}}}")
                self.hide(name)
                return None

            medium = self._builder.build(name, slot)
            if medium is not None and name in self._grouped:
                self._grouped[name] = medium
                self._discard_key_lock(name)
            return medium

    def get(self, name: str, default: Any = None) -> Optional[Medium]:
        """
        Medium for a name.

        Returns:
            Copy of the realized medium, or default when the name is unknown
            or the item cannot be constructed
        """
        medium = self._realize(name)
        if medium is None:
            return default
        return medium.with_timestamp(self._timestamp)

    def __getitem__(self, name: str) -> Medium:
        medium = self.get(name)
        if medium is None:
            raise KeyError(name)
        return medium

    def __contains__(self, name: object) -> bool:
        return name in self._grouped

    def __len__(self) -> int:
        return len(self._grouped)

    def __iter__(self) -> Iterator[str]:
        for name, _ in self.items():
            yield name

    def __delitem__(self, name: str) -> None:
        if name not in self._grouped:
            raise KeyError(name)
        self.hide(name)

    def items(self) -> Iterator[Tuple[str, Medium]]:
        """
        Iterate over (name, medium) pairs in the current order.

        Items removed while iterating are skipped; items that cannot be
        constructed are left out.
        """
        for name in list(self._grouped):
            if name not in self._grouped:
                continue
            medium = self.get(name)
            if medium is None:
                continue
            yield name, medium

    def all(self) -> Dict[str, Medium]:
        """All media, ordered by the ordering hint or by natural name order."""
        if self._media_order is None:
            self._media_order = parse_media_order(self._order_source())
        self._grouped = order_media(self._grouped, self._media_order)
        return dict(self.items())

    def _by_type(self, media_type: str) -> Dict[str, Medium]:
        return {name: medium for name, medium in self.all().items() if medium.type == media_type}

    def images(self) -> Dict[str, Medium]:
        return self._by_type('image')

    def videos(self) -> Dict[str, Medium]:
        return self._by_type('video')

    def audios(self) -> Dict[str, Medium]:
        return self._by_type('audio')

    def files(self) -> Dict[str, Medium]:
        return self._by_type('file')

    def add(self, name: str, medium: Optional[Medium]) -> None:
        """Add or replace a medium; None is ignored."""
        if medium is None:
            return
        self._grouped[name] = medium

    def hide(self, name: str) -> None:
        """Remove an item from this collection (files are untouched)."""
        self._grouped.pop(name, None)
        self._discard_key_lock(name)

    def set_timestamps(self, timestamp: Optional[str] = None) -> None:
        """Set the timestamp tag applied to media returned from now on."""
        self._timestamp = timestamp

    def thumbnail(self, name: str) -> Optional[Medium]:
        """Construct the thumbnail override of an item, if it has one."""
        medium = self._realize(name)
        if medium is None:
            return None
        path = medium.thumbnail_path('page')
        if path is None:
            return None
        thumbnail = self.factory.create_from_file(path)
        if thumbnail is None:
            logger.warning(f"Could not create thumbnail: {{'item': {name!r}, 'path': {str(path)!r}}}")
            return None
        return thumbnail.with_timestamp(self._timestamp)

    def update_index(self, files: Optional[Mapping[str, Optional[FileRecord]]] = None) -> None:
        """
        Merge file changes into the persisted index.

        Args:
            files: filename -> FileRecord for added files, None for removed
                ones; None forces a rescan on the next load
        """
        update_index(self._store, self.identity, files)

    def to_snapshot(self) -> Dict[str, Any]:
        """JSON-safe state of this collection, holding only unrealized data."""
        return {
            'version': SNAPSHOT_VERSION,
            'index': {filename: record.to_dict() for filename, record in self._index.items()},
            'grouped': {
                name: self._raw[name].to_dict()
                for name in self._grouped
                if name in self._raw
            },
            'path': str(self.path),
            'url': self.url,
            'exists': self._exists,
            'media_order': self._media_order,
            'standard_exif': list(self.standard_exif),
            'index_folder': self.config.index.folder,
            'index_file': self.config.index.file,
            'index_timeout': self.index_timeout,
        }

    @classmethod
    def from_snapshot(
        cls,
        data: Mapping[str, Any],
        config: Optional[MediaIndexConfig] = None,
        **kwargs: Any,
    ) -> 'MediaCollection':
        """
        Restore a collection from to_snapshot() output.

        Args:
            data: Snapshot dictionary
            config: Base configuration; index and EXIF settings come from the snapshot
            **kwargs: Collaborators passed to the constructor

        Raises:
            SchemaVersionMismatchError: If the snapshot was written by another version
        """
        version = data.get('version')
        if version != SNAPSHOT_VERSION:
            raise SchemaVersionMismatchError(
                f"Unsupported media snapshot version: {version!r}",
                version=version,
                expected=SNAPSHOT_VERSION,
            )

        config = (config or MediaIndexConfig()).model_copy(deep=True)
        config.index.folder = data.get('index_folder')
        config.index.file = data.get('index_file') or config.index.file
        config.index.timeout = int(data.get('index_timeout') or 0)
        config.media.standard_exif = list(data.get('standard_exif') or [])

        collection = cls(
            data['path'],
            config,
            url=data.get('url'),
            media_order=data.get('media_order'),
            initialize=False,
            **kwargs,
        )
        collection._exists = bool(data.get('exists'))
        collection._index = {
            filename: FileRecord.from_dict(record, filename)
            for filename, record in (data.get('index') or {}).items()
        }
        grouped = {name: GroupedItem.from_dict(item) for name, item in (data.get('grouped') or {}).items()}
        collection._raw = dict(grouped)
        collection._grouped = order_media(grouped, collection._media_order)
        return collection
