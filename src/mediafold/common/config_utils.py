"""Placeholder expansion for configured paths."""

import os
import re
import tempfile
from pathlib import Path
from typing import Callable, Dict

import platformdirs

_PLACEHOLDER = re.compile(r'\$\{([A-Z_][A-Z0-9_]*)\}')

PATH_VARIABLES: Dict[str, Callable[[], str]] = {
    'USER_HOME': lambda: str(Path.home()),
    'USER_DATA': platformdirs.user_data_dir,
    'USER_CONFIG': platformdirs.user_config_dir,
    'USER_CACHE': platformdirs.user_cache_dir,
    'TEMP': tempfile.gettempdir,
}


def expand_path_variables(path: str) -> str:
    """Expand ${NAME} placeholders and a leading ~ in a configured path.

    Names in PATH_VARIABLES resolve to platform directories. Other names are
    read from the environment and left as written when unset.

    Example:
        >>> expand_path_variables("${USER_CACHE}/mediafold")
        '/home/me/.cache/mediafold'
    """
    if not isinstance(path, str):
        return path

    def replace(match: re.Match) -> str:
        name = match.group(1)
        if name in PATH_VARIABLES:
            return PATH_VARIABLES[name]()
        return os.environ.get(name, match.group(0))

    return os.path.expanduser(_PLACEHOLDER.sub(replace, path))
