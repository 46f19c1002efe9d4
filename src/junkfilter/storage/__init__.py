# =============================================================================
# Storage Module
# =============================================================================
# File-level primitives for the persisted filter state.
#
# Provides:
#   - Atomic replace of a file (temporary file, fsync, rename)
#   - Exclusive single-writer lock on a store
# =============================================================================

from junkfilter.storage.files import ExclusiveLock, atomic_write

__all__ = ["ExclusiveLock", "atomic_write"]
