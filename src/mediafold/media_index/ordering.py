"""Ordering hints stored next to the media."""

import logging
from pathlib import Path
from typing import Callable, List, Optional

import yaml

from .grouping import parse_media_order

logger = logging.getLogger(__name__)

FRONTMATTER_FILE = 'frontmatter.yaml'

OrderSource = Callable[[], Optional[List[str]]]


class FrontmatterOrderSource:
    """
    Reads the `media_order` hint from a folder's frontmatter.yaml.

    The hint is a comma-separated string or a list of names.
    """

    def __init__(self, folder: Path, filename: str = FRONTMATTER_FILE):
        self.path = Path(folder) / filename

    def __call__(self) -> Optional[List[str]]:
        if not self.path.is_file():
            return None

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read media order: {{'path': {str(self.path)!r}, 'error': {str(e)!r}}}")
            return None

        if not isinstance(data, dict):
            return None
        return parse_media_order(data.get('media_order'))
