# =============================================================================
# Exceptions
# =============================================================================
# All errors raised by the junk filter derive from JunkError, so callers (the
# CLI in particular) can catch the whole family in one place.
#
# Per-message problems (MalformedMessageError) are recovered from during batch
# operations: the message is counted and skipped. Store and directory problems
# are fatal for the operation that hit them.
# =============================================================================


class JunkError(Exception):
    """Base class for junk filter errors."""
    pass


class MalformedMessageError(JunkError):
    """Raised when a message file cannot be parsed into a usable message."""
    pass


class DirectoryError(JunkError):
    """Raised when a message directory cannot be listed."""
    pass


class FilterClosedError(JunkError):
    """Raised when a filter is used after close()."""
    pass


class StoreError(JunkError):
    """Base class for problems with the persisted filter state."""
    pass


class CorruptStoreError(StoreError):
    """Raised when a store file is truncated, malformed or fails its checksum."""
    pass


class IncompatibleStoreError(StoreError):
    """Raised when a store file was written with an unknown format or schema version."""
    pass


class StoreLockedError(StoreError):
    """Raised when another filter instance already holds the store."""
    pass


class FilterExistsError(StoreError):
    """Raised when creating a new filter would overwrite existing files."""
    pass
