"""Common utilities for mediafold packages."""

from .config import ConfigLoader
from .config_utils import expand_path_variables
from .logging import setup_logging, LogContext
from .logging_config import LoggingConfig
from .errors import MediafoldError
from .path_utils import normalize_path, natural_sort_key

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'expand_path_variables',
    'setup_logging',
    'LogContext',
    'MediafoldError',
    'normalize_path',
    'natural_sort_key',
]
