"""Configuration models for the media index."""

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mediafold.common import LoggingConfig, expand_path_variables
from .media_types import DEFAULT_MEDIA_TYPES, DEFAULT_TYPE_ATTRIBUTES, MediaTypeConfig

# Attributes already known from the file index; never written to sidecars
STANDARD_EXIF = ('FileSize', 'MimeType', 'height', 'width')


class IndexConfig(BaseModel):
    """Persisted index location and freshness."""

    model_config = ConfigDict(extra='forbid')

    folder: str | None = Field(
        default="${USER_CACHE}/mediafold",
        description="Folder holding the index database (None disables persistence)"
    )
    file: str = Field(
        default="media-index.db",
        description="Index database file name"
    )
    timeout: int = Field(
        default=0,
        ge=0,
        description="Seconds a stored index stays fresh (0: rescan on every load)"
    )

    def database_path(self) -> Optional[Path]:
        """Resolved path of the index database, or None when disabled."""
        if not self.folder or not self.file:
            return None
        return Path(expand_path_variables(self.folder)) / self.file


class MediaConfig(BaseModel):
    """Media type registry and metadata behavior."""

    model_config = ConfigDict(extra='forbid')

    auto_metadata_exif: bool = Field(
        default=False,
        description="Write EXIF attributes to .meta.yaml sidecars on first access"
    )
    standard_exif: List[str] = Field(
        default_factory=lambda: list(STANDARD_EXIF),
        description="EXIF attributes excluded from generated sidecars"
    )
    types: Dict[str, MediaTypeConfig] = Field(
        default_factory=lambda: dict(DEFAULT_MEDIA_TYPES),
        description="Registry: lowercase extension -> media type"
    )
    defaults: Dict[str, Any] = Field(
        default_factory=lambda: dict(DEFAULT_TYPE_ATTRIBUTES),
        description="Attributes applied to every media type"
    )

    @field_validator('types', mode='before')
    @classmethod
    def normalize_extensions(cls, v: Any) -> Any:
        """Lowercase registry keys and strip a leading dot."""
        if isinstance(v, dict):
            return {str(key).lower().lstrip('.'): value for key, value in v.items()}
        return v


class MediaIndexConfig(BaseModel):
    """Root configuration for the media index."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
