"""Media folder indexing, grouping and lazy media construction."""

from .builder import MediaItemBuilder
from .collection import MediaCollection
from .config import IndexConfig, MediaConfig, MediaIndexConfig, STANDARD_EXIF
from .file_info import list_directory, prepare_file_info
from .filenames import FileParts, get_basename, get_file_parts
from .grouping import group_files, order_media, parse_media_order
from .index_store import INDEX_VERSION, IndexRecord, MediaIndexStore
from .indexing import CollectionIdentity, collection_index_id, compute_checksum, generate_index
from .media_objects import AudioMedium, FileMedium, ImageMedium, Medium, MediumFactory, VideoMedium
from .media_types import DEFAULT_MEDIA_TYPES, MediaTypeConfig
from .records import FileRecord, FileStat, GroupedItem

__version__ = "0.1.0"

__all__ = [
    'MediaCollection',
    'MediaItemBuilder',
    'MediumFactory',
    'Medium',
    'ImageMedium',
    'VideoMedium',
    'AudioMedium',
    'FileMedium',
    'MediaIndexConfig',
    'IndexConfig',
    'MediaConfig',
    'MediaTypeConfig',
    'DEFAULT_MEDIA_TYPES',
    'STANDARD_EXIF',
    'MediaIndexStore',
    'IndexRecord',
    'INDEX_VERSION',
    'CollectionIdentity',
    'collection_index_id',
    'compute_checksum',
    'generate_index',
    'FileRecord',
    'FileStat',
    'GroupedItem',
    'FileParts',
    'get_file_parts',
    'get_basename',
    'list_directory',
    'prepare_file_info',
    'group_files',
    'order_media',
    'parse_media_order',
]
