"""Common utilities for vsix-viewer packages."""

from .config import ConfigLoader
from .logging import setup_logging, LogContext
from .logging_config import LoggingConfig
from .errors import ViewerError, ConfigurationError
from .path_utils import segment_path, icon_type_for, normalize_path

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'LogContext',
    'ViewerError',
    'ConfigurationError',
    'segment_path',
    'icon_type_for',
    'normalize_path',
]
