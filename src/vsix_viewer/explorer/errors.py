"""Archive explorer errors."""

from typing import Optional

from vsix_viewer.common import ViewerError


class ArchiveError(ViewerError):
    """Archive processing failed."""
    pass


class ReadError(ArchiveError):
    """Archive file is missing or unreadable."""
    pass


class ParseError(ArchiveError):
    """Archive bytes are not a valid zip archive."""
    pass


class EntryNotFoundError(ArchiveError):
    """Requested entry path is not present in the archive."""
    pass


class OwnerNotFoundError(ArchiveError):
    """Tree node does not belong to any currently tracked archive."""
    pass


def classify_error(exception: Optional[BaseException]) -> str:
    """
    Classify an exception into a short category for log fields.

    Returns:
        'read', 'parse', 'entry_not_found', 'owner_not_found', 'io' or 'unknown'
    """
    if isinstance(exception, ReadError):
        return 'read'
    elif isinstance(exception, ParseError):
        return 'parse'
    elif isinstance(exception, EntryNotFoundError):
        return 'entry_not_found'
    elif isinstance(exception, OwnerNotFoundError):
        return 'owner_not_found'
    elif isinstance(exception, OSError):
        return 'io'
    else:
        return 'unknown'
