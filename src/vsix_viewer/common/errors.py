"""Base error definitions for vsix_viewer packages."""

from typing import Any, Dict


class ViewerError(Exception):
    """Base exception for all vsix_viewer errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(ViewerError):
    """Configuration is invalid or cannot be loaded."""
    pass
