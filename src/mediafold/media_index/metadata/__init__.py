"""Metadata extraction and sidecar persistence."""

from .exif_extractor import extract_exif
from .sidecar import SidecarStore, YamlSidecarStore, sidecar_path

__all__ = [
    'extract_exif',
    'SidecarStore',
    'YamlSidecarStore',
    'sidecar_path',
]
