"""Logging section of the viewer configuration."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["simple", "detailed", "json"]


class LoggingConfig(BaseModel):
    """``[logging]`` table: console format, level and optional rotating file."""

    model_config = ConfigDict(extra='forbid')

    level: LogLevel = Field(default="INFO", description="Root log level")
    format: LogFormat = Field(default="simple", description="Console log format")
    file: str | None = Field(default=None, description="Rotating JSON log file")
    max_file_size_mb: int = Field(default=10, ge=1, description="Rotate the log file at this size")
    backup_count: int = Field(default=5, ge=0, description="Rotated log files to keep")

    @field_validator('level', 'format', mode='before')
    @classmethod
    def normalize_case(cls, v, info: ValidationInfo):
        # Levels are matched upper-case and formats lower-case
        if not isinstance(v, str):
            return v
        return v.upper() if info.field_name == 'level' else v.lower()
