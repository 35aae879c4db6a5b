"""Metadata sidecar files ("photo.jpg.meta.yaml")."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Protocol

import yaml

from ..errors import MetadataExtractionError
from ..filenames import META_SUFFIX

logger = logging.getLogger(__name__)


def sidecar_path(file_path: Path) -> Path:
    """Expected sidecar location of a media file."""
    return file_path.with_name(file_path.name + META_SUFFIX)


class SidecarStore(Protocol):
    """Read/write access to metadata sidecars by path."""

    def exists(self, path: Path) -> bool: ...

    def read(self, path: Path) -> Dict[str, Any]: ...

    def write(self, path: Path, data: Dict[str, Any]) -> None: ...


class YamlSidecarStore:
    """Sidecars stored as YAML mappings next to the media file."""

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def read(self, path: Path) -> Dict[str, Any]:
        """
        Parse a sidecar.

        Raises:
            MetadataExtractionError: If the file is unreadable or not a mapping
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise MetadataExtractionError(f"Cannot read sidecar {path}: {e}", path=str(path)) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise MetadataExtractionError(f"Sidecar {path} is not a mapping", path=str(path))
        return data

    def write(self, path: Path, data: Dict[str, Any]) -> None:
        """
        Write a sidecar atomically (temp file + rename).

        Raises:
            MetadataExtractionError: If the file cannot be written
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix='.', suffix='.tmp', dir=path.parent)
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    yaml.safe_dump(data, f, allow_unicode=True, sort_keys=True)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, yaml.YAMLError) as e:
            raise MetadataExtractionError(f"Cannot write sidecar {path}: {e}", path=str(path)) from e

        logger.debug(f"Wrote metadata sidecar: {{'path': {str(path)!r}, 'keys': {len(data)}}}")
