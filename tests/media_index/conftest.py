"""Shared fixtures for media index tests."""

from pathlib import Path

import pytest
from PIL import Image

from mediafold.media_index.index_store import MediaIndexStore


@pytest.fixture
def media_dir(tmp_path):
    """Empty media folder."""
    folder = tmp_path / "media"
    folder.mkdir()
    return folder


@pytest.fixture
def make_image(media_dir):
    """Create a solid-color image; the format follows the file extension."""
    def _make(name: str, size=(200, 100), folder: Path = None, exif=None) -> Path:
        path = (folder or media_dir) / name
        img = Image.new('RGB', size, color='red')
        if exif is not None:
            img.save(path, exif=exif)
        else:
            img.save(path)
        return path
    return _make


@pytest.fixture
def store(tmp_path):
    """Index store in a temporary database."""
    index_store = MediaIndexStore(tmp_path / "index" / "media-index.db")
    yield index_store
    index_store.close()
