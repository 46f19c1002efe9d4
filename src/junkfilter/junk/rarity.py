# =============================================================================
# Rarity Filter
# =============================================================================
# A compact, approximate answer to "has this token been seen at least N
# times during training?", without looking the token up in the word store.
#
# Most tokens in a message were never seen during training, or seen once.
# The counting Bloom filter below lets the scorer skip those cheaply.
#
# How it works:
#   1. A token is hashed once with BLAKE2b; the digest is cut into k slot
#      indices into an array of 8-bit counters
#   2. Training increments the token's k counters, saturating at 255
#   3. The estimated count of a token is the minimum of its k counters
#
# Other tokens can only ever push a counter up, so the estimate is never
# below the true count: no false negatives. A false positive only means one
# extra store lookup. Saturated counters are never decremented, since they no
# longer know their true value.
# =============================================================================

import hashlib
import logging
import struct
from pathlib import Path
from typing import Protocol

from junkfilter.errors import CorruptStoreError, IncompatibleStoreError
from junkfilter.storage import atomic_write

logger = logging.getLogger(__name__)

# File layout: header, counters, sha256 of header + counters
MAGIC = b"JFCB"
VERSION = 1
HEADER = struct.Struct(">4sHHI")   # magic, version, k, slot count
CHECKSUM_SIZE = 32

DEFAULT_SLOTS = 1 << 20
DEFAULT_HASHES = 7
SATURATED = 255


class RarityOracle(Protocol):
    """Approximate count-at-least-N oracle used by the scorer."""

    def add(self, token: str, count: int = 1) -> None: ...

    def discard(self, token: str) -> None: ...

    def at_least(self, token: str, n: int) -> bool: ...


class NullRarityFilter:
    """
    A rarity oracle that knows nothing.

    Every token might be common, so every token is looked up in the word
    store. Classification results are identical to those with a real filter.
    """

    def add(self, token: str, count: int = 1) -> None:
        pass

    def discard(self, token: str) -> None:
        pass

    def at_least(self, token: str, n: int) -> bool:
        return True


class CountingBloomFilter:
    """
    Counting Bloom filter with saturating 8-bit counters.

    Usage:
        >>> bloom = CountingBloomFilter()
        >>> bloom.add("free viagra")
        >>> bloom.at_least("free viagra", 1)
        True
        >>> bloom.at_least("meeting agenda", 1)
        False

    Attributes:
        slots: Number of counters. Must be a power of two.
        hashes: Number of counters per token (k).
        modified: True when counters changed since load or the last save.
    """

    def __init__(
        self,
        slots: int = DEFAULT_SLOTS,
        hashes: int = DEFAULT_HASHES,
        counters: bytearray | None = None,
    ) -> None:
        """
        Initialize the filter.

        Args:
            slots: Number of counters, a power of two up to 2**31.
            hashes: Counters per token. Each index takes 4 bytes of a 64 byte
                    digest, so at most 16.
            counters: Existing counter array, used when loading from disk.

        Raises:
            ValueError: For an invalid slot count, hash count or counter array.
        """
        if slots < 1 or slots & (slots - 1) or slots > 1 << 31:
            raise ValueError(f"slots must be a power of two up to 2**31, got {slots}")
        if not 1 <= hashes <= 16:
            raise ValueError(f"hashes must be between 1 and 16, got {hashes}")
        if counters is not None and len(counters) != slots:
            raise ValueError(f"expected {slots} counters, got {len(counters)}")

        self.slots = slots
        self.hashes = hashes
        self._mask = slots - 1
        self._counters = counters if counters is not None else bytearray(slots)
        self.modified = False

    def _indices(self, token: str) -> list[int]:
        digest = hashlib.blake2b(token.encode("utf-8")).digest()
        return [
            int.from_bytes(digest[i * 4:i * 4 + 4], "big") & self._mask
            for i in range(self.hashes)
        ]

    def add(self, token: str, count: int = 1) -> None:
        """Record count more observations of token."""
        counters = self._counters
        for index in self._indices(token):
            counters[index] = min(counters[index] + count, SATURATED)
        self.modified = True

    def discard(self, token: str) -> None:
        """
        Remove one observation of token.

        Only call this for a token that was added before, otherwise counts of
        other tokens could be under-reported.
        """
        counters = self._counters
        for index in self._indices(token):
            if 0 < counters[index] < SATURATED:
                counters[index] -= 1
        self.modified = True

    def count(self, token: str) -> int:
        """Upper bound of the number of observations of token."""
        return min(self._counters[index] for index in self._indices(token))

    def at_least(self, token: str, n: int) -> bool:
        """True if token may have been observed at least n times."""
        return self.count(token) >= min(n, SATURATED)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        header = HEADER.pack(MAGIC, VERSION, self.hashes, self.slots)
        body = header + bytes(self._counters)
        return body + hashlib.sha256(body).digest()

    @classmethod
    def from_bytes(cls, data: bytes) -> "CountingBloomFilter":
        """
        Decode a filter written by to_bytes().

        Raises:
            CorruptStoreError: Truncated data, bad magic or checksum mismatch.
            IncompatibleStoreError: Unknown version.
        """
        if len(data) < HEADER.size + CHECKSUM_SIZE:
            raise CorruptStoreError("rarity filter is truncated")

        magic, version, hashes, slots = HEADER.unpack_from(data)
        if magic != MAGIC:
            raise CorruptStoreError("not a rarity filter file")
        if version != VERSION:
            raise IncompatibleStoreError(f"unsupported rarity filter version {version}")

        if len(data) != HEADER.size + slots + CHECKSUM_SIZE:
            raise CorruptStoreError("rarity filter is truncated")

        body, checksum = data[:-CHECKSUM_SIZE], data[-CHECKSUM_SIZE:]
        if hashlib.sha256(body).digest() != checksum:
            raise CorruptStoreError("rarity filter checksum mismatch")

        try:
            return cls(slots=slots, hashes=hashes, counters=bytearray(body[HEADER.size:]))
        except ValueError as e:
            raise CorruptStoreError(f"invalid rarity filter: {e}") from e

    def save(self, path: Path) -> None:
        atomic_write(path, self.to_bytes())
        self.modified = False
        logger.debug(f"Saved rarity filter to {path}")

    @classmethod
    def load(cls, path: Path) -> "CountingBloomFilter":
        """
        Load a filter from path.

        Raises:
            FileNotFoundError: If there is no file at path.
            CorruptStoreError, IncompatibleStoreError: If the file is unusable.
        """
        with open(path, "rb") as f:
            data = f.read()
        try:
            bloom = cls.from_bytes(data)
        except CorruptStoreError as e:
            raise CorruptStoreError(f"{path}: {e}") from e
        logger.debug(f"Loaded rarity filter from {path} ({bloom.slots} slots, k={bloom.hashes})")
        return bloom
