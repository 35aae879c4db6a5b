"""Logging section of the mediafold configuration."""

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class LoggingConfig(BaseModel):
    """Console and file logging settings."""

    model_config = ConfigDict(extra='forbid')

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level"
    )
    format: Literal["simple", "detailed", "json"] = Field(
        default="simple",
        description="Console format; the log file is always JSON lines"
    )
    file: str | None = Field(default=None, description="Optional log file path")
    max_file_size_mb: int = Field(default=10, ge=1, description="Log file size before rotation")
    backup_count: int = Field(default=5, ge=0, description="Rotated log files to keep")
    quiet_loggers: List[str] = Field(
        default_factory=lambda: ["PIL"],
        description="Third-party loggers capped at WARNING"
    )

    @field_validator('level', 'format', mode='before')
    @classmethod
    def normalize_case(cls, v: str, info: ValidationInfo) -> str:
        """Accept level and format in any case."""
        if not isinstance(v, str):
            return v
        return v.upper() if info.field_name == 'level' else v.lower()
