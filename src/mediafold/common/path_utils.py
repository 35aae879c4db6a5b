"""Path utilities for consistent path handling across packages."""

import re
import unicodedata
from pathlib import Path
from typing import List, Tuple, Union

_DIGITS = re.compile(r'(\d+)')


def normalize_path(path: Path | str) -> str:
    """
    Normalize a path for consistent storage and comparison across all packages.

    Applies:
    - Unicode NFC normalization (canonical composition) for consistent Unicode handling
    - Forward slash conversion for cross-platform consistency

    Args:
        path: Path object or string to normalize

    Returns:
        Normalized path string with forward slashes and NFC Unicode normalization

    Examples:
        >>> normalize_path(Path("café/résumé.txt"))
        'café/résumé.txt'
        >>> normalize_path(r"C:\\Users\\test\\photos")
        'C:/Users/test/photos'
    """
    normalized = unicodedata.normalize('NFC', str(path))
    return normalized.replace('\\', '/')


def natural_sort_key(value: str, case_sensitive: bool = False) -> List[Union[Tuple[int, int], Tuple[int, str]]]:
    """
    Sort key that orders embedded numbers by value ("img2" before "img10").

    Args:
        value: String to build the key for
        case_sensitive: Compare text chunks without case folding

    Returns:
        List of comparable chunks

    Examples:
        >>> sorted(["b10.jpg", "B2.jpg", "a.jpg"], key=natural_sort_key)
        ['a.jpg', 'B2.jpg', 'b10.jpg']
    """
    text = value if case_sensitive else value.casefold()
    key: List[Union[Tuple[int, int], Tuple[int, str]]] = []
    for chunk in _DIGITS.split(text):
        if not chunk:
            continue
        if chunk.isdigit():
            key.append((0, int(chunk)))
        else:
            key.append((1, chunk))
    return key
