"""Base error definitions for mediafold packages."""

from typing import Any, Dict


class MediafoldError(Exception):
    """Base exception for all mediafold errors.

    Keyword arguments are kept as context for structured log messages.
    """

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context
