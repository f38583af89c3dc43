"""Path utilities for archive entry names."""

import posixpath
import unicodedata
from pathlib import Path

ENTRY_SEPARATOR = "/"


def segment_path(entry_path: str) -> list[str]:
    """
    Split an archive entry path into its non-empty components.

    Archive entries always use a forward slash, whatever the host OS.
    Empty segments produced by leading, trailing or repeated separators are
    dropped, so a directory marker ("a/b/") yields the same segments as the
    entry it names ("a/b").

    Args:
        entry_path: Entry name as stored in the archive

    Returns:
        Ordered list of path components

    Examples:
        >>> segment_path("a//b/c/")
        ['a', 'b', 'c']
        >>> segment_path("/")
        []
    """
    return [segment for segment in entry_path.split(ENTRY_SEPARATOR) if segment]


def icon_type_for(label: str) -> str:
    """
    Return the icon type of a file label: its lowercase extension without the dot.

    Dotfiles without a further extension use the name after the dot, so
    ``.gitignore`` maps to ``gitignore``. Labels without an extension map to
    an empty string.

    Examples:
        >>> icon_type_for("README.MD")
        'md'
        >>> icon_type_for(".gitignore")
        'gitignore'
        >>> icon_type_for("LICENSE")
        ''
    """
    _, ext = posixpath.splitext(label)
    if ext:
        return ext[1:].lower()
    if label.startswith(".") and len(label) > 1:
        return label[1:].lower()
    return ""


def normalize_path(path: Path | str) -> str:
    """
    Normalize a filesystem path for use as a registry key.

    Applies Unicode NFC normalization and converts backslashes to forward
    slashes, so the same archive is tracked once regardless of how its path
    was spelled by the caller.

    Args:
        path: Path object or string to normalize

    Returns:
        Normalized path string
    """
    path_str = str(path)
    normalized = unicodedata.normalize('NFC', path_str)
    return normalized.replace('\\', '/')
