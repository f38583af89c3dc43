"""HTTP API for browsing tracked archives."""

from .server import create_app

__all__ = ['create_app']
