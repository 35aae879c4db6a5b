"""Record types shared by the index, the grouper and the collection."""

from dataclasses import dataclass, field, fields, asdict
from typing import Any, Dict, Optional

# Direct FileRecord fields; everything else lives in FileRecord.meta
RECORD_FIELDS = ('filename', 'size', 'modified', 'mime', 'type', 'width', 'height', 'name', 'url')


@dataclass(frozen=True)
class FileStat:
    """Size and modification time reported by a directory listing."""
    size: int
    modified: Optional[int] = None


@dataclass
class FileRecord:
    """Information about one physical file in a media folder.

    Attributes:
        filename: Filename relative to the collection folder
        size: Size in bytes
        modified: Modification time (unix seconds), None if unknown
        mime: MIME type
        type: Semantic type from the media type registry
        width: Pixel width (images and vectors only)
        height: Pixel height (images and vectors only)
        name: Remote-origin name when the file was stored under another name
        url: Public URL of the file, when the collection has a URL prefix
        meta: Secondary attributes (registry defaults, probe output, remote data)
    """
    filename: str
    size: int = 0
    modified: Optional[int] = None
    mime: Optional[str] = None
    type: str = 'file'
    width: Optional[int] = None
    height: Optional[int] = None
    name: Optional[str] = None
    url: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict for persistence; None values are omitted."""
        data = asdict(self)
        return {key: value for key, value in data.items() if value is not None and value != {}}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], filename: Optional[str] = None) -> 'FileRecord':
        """Build a record from a persisted dict.

        Unknown keys are folded into meta so records written by newer
        versions still load.
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        extra = {key: value for key, value in data.items() if key not in known}
        if filename is not None:
            values['filename'] = filename
        meta = dict(values.pop('meta', None) or {})
        meta.update(extra)
        return cls(meta=meta, **values)

    def direct_fields(self) -> Dict[str, Any]:
        """Direct fields with a value, excluding meta."""
        return {
            key: getattr(self, key)
            for key in RECORD_FIELDS
            if getattr(self, key) is not None
        }

    def metadata(self) -> Dict[str, Any]:
        """Flat view of meta with direct fields taking precedence."""
        data = dict(self.meta)
        data.update(self.direct_fields())
        return data

    def merged_over(self, older: 'FileRecord') -> 'FileRecord':
        """Shallow merge: fields set on self win over older."""
        values = older.direct_fields()
        values.update(self.direct_fields())
        meta = dict(older.meta)
        meta.update(self.meta)
        return FileRecord(meta=meta, **values)


@dataclass
class GroupedItem:
    """Related files of one logical media item, before realization.

    Attributes:
        base: The file itself ("photo.jpg")
        alternatives: Resolution variants by scale factor ("photo@2x.jpg" -> 2)
        meta: Metadata sidecar ("photo.jpg.meta.yaml")
        thumb: Thumbnail override ("photo.jpg.thumb.png")
    """
    base: Optional[FileRecord] = None
    alternatives: Dict[int, FileRecord] = field(default_factory=dict)
    meta: Optional[FileRecord] = None
    thumb: Optional[FileRecord] = None

    def is_realizable(self) -> bool:
        return self.base is not None or bool(self.alternatives)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.base is not None:
            data['base'] = self.base.to_dict()
        if self.alternatives:
            data['alternative'] = {str(scale): record.to_dict() for scale, record in self.alternatives.items()}
        if self.meta is not None:
            data['meta'] = self.meta.to_dict()
        if self.thumb is not None:
            data['thumb'] = self.thumb.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GroupedItem':
        def record(key: str) -> Optional[FileRecord]:
            value = data.get(key)
            return FileRecord.from_dict(value) if value else None

        alternatives = {
            int(scale): FileRecord.from_dict(value)
            for scale, value in (data.get('alternative') or {}).items()
        }
        return cls(
            base=record('base'),
            alternatives=alternatives,
            meta=record('meta'),
            thumb=record('thumb'),
        )
