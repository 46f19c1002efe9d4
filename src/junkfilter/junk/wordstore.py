# =============================================================================
# Word Store
# =============================================================================
# The statistical memory of the classifier: for every token, how many ham
# messages and how many spam messages contained it, plus the total number of
# ham and spam messages trained.
#
# The store lives in memory and is written out as a single JSON document:
#
#   {
#     "format": "junkfilter-words",
#     "version": 1,
#     "hams": 120,
#     "spams": 340,
#     "words": {"free viagra": [0, 57], "meeting agenda": [31, 0], ...},
#     "checksum": "<sha256 of the canonical JSON of all other fields>"
#   }
#
# Saving goes through atomic_write(), so a crash mid-save leaves either the
# previous document or the new one. Loading refuses anything that doesn't
# check out: a truncated or edited file is an error, never an empty store.
# =============================================================================

import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

from junkfilter.errors import CorruptStoreError, IncompatibleStoreError
from junkfilter.storage import atomic_write

logger = logging.getLogger(__name__)

FORMAT = "junkfilter-words"

# Current schema version - increment when changing the document layout
SCHEMA_VERSION = 1


@dataclass
class WordCounts:
    """
    Occurrence counts of one token.

    Attributes:
        ham: Number of ham messages the token appeared in.
        spam: Number of spam messages the token appeared in.
    """
    ham: int = 0
    spam: int = 0

    @property
    def total(self) -> int:
        return self.ham + self.spam


class WordStore:
    """
    Token to (ham, spam) counts, with message totals.

    Usage:
        >>> store = WordStore()
        >>> store.increment("free viagra", ham=False)
        >>> store.lookup("free viagra")
        WordCounts(ham=0, spam=1)
        >>> store.save(Path("words.json"))

    Attributes:
        hams: Number of ham messages trained.
        spams: Number of spam messages trained.
        modified: True when anything changed since load or the last save.
    """

    def __init__(self) -> None:
        self.hams = 0
        self.spams = 0
        self._words: dict[str, WordCounts] = {}
        self.modified = False

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, token: object) -> bool:
        return token in self._words

    def items(self) -> Iterator[tuple[str, WordCounts]]:
        """Iterate over (token, counts), sorted by token."""
        for token in sorted(self._words):
            yield token, self._words[token]

    def lookup(self, token: str) -> WordCounts:
        """Counts for token; (0, 0) when unknown. Returns a copy."""
        counts = self._words.get(token)
        if counts is None:
            return WordCounts()
        return WordCounts(ham=counts.ham, spam=counts.spam)

    def increment(self, token: str, *, ham: bool) -> None:
        """Add one ham or spam observation of token."""
        counts = self._words.get(token)
        if counts is None:
            counts = self._words[token] = WordCounts()
        if ham:
            counts.ham += 1
        else:
            counts.spam += 1
        self.modified = True

    def remove(self, token: str, *, ham: bool) -> bool:
        """
        Remove one ham or spam observation of token.

        Records that drop to zero observations are pruned.

        Returns:
            False if there was no such observation to remove.
        """
        counts = self._words.get(token)
        if counts is None or (counts.ham if ham else counts.spam) == 0:
            return False

        if ham:
            counts.ham -= 1
        else:
            counts.spam -= 1
        if counts.total == 0:
            del self._words[token]
        self.modified = True
        return True

    def add_message(self, *, ham: bool) -> None:
        if ham:
            self.hams += 1
        else:
            self.spams += 1
        self.modified = True

    def remove_message(self, *, ham: bool) -> None:
        if ham:
            self.hams = max(0, self.hams - 1)
        else:
            self.spams = max(0, self.spams - 1)
        self.modified = True

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        data: dict[str, Any] = {
            "format": FORMAT,
            "version": SCHEMA_VERSION,
            "hams": self.hams,
            "spams": self.spams,
            "words": {
                token: [counts.ham, counts.spam]
                for token, counts in self.items()
            },
        }
        data["checksum"] = _checksum(data)
        return json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "WordStore":
        """
        Decode a store written by to_bytes().

        Raises:
            CorruptStoreError: Unparseable, truncated, or checksum mismatch.
            IncompatibleStoreError: Different format or schema version.
        """
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptStoreError(f"word store is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise CorruptStoreError("word store is not a JSON object")
        if data.get("format") != FORMAT:
            raise IncompatibleStoreError(f"unknown word store format {data.get('format')!r}")
        if data.get("version") != SCHEMA_VERSION:
            raise IncompatibleStoreError(f"unsupported word store version {data.get('version')!r}")

        checksum = data.pop("checksum", None)
        if checksum != _checksum(data):
            raise CorruptStoreError("word store checksum mismatch")

        store = cls()
        try:
            store.hams = _count(data["hams"])
            store.spams = _count(data["spams"])
            for token, (ham, spam) in data["words"].items():
                store._words[token] = WordCounts(ham=_count(ham), spam=_count(spam))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CorruptStoreError(f"invalid word store structure: {e}") from e
        return store

    def save(self, path: Path) -> None:
        atomic_write(path, self.to_bytes())
        self.modified = False
        logger.debug(f"Saved {len(self)} words to {path}")

    @classmethod
    def load(cls, path: Path) -> "WordStore":
        """
        Load a store from path.

        Raises:
            FileNotFoundError: If there is no file at path.
            CorruptStoreError, IncompatibleStoreError: If the file is unusable.
        """
        with open(path, "rb") as f:
            raw = f.read()
        try:
            store = cls.from_bytes(raw)
        except CorruptStoreError as e:
            raise CorruptStoreError(f"{path}: {e}") from e
        logger.debug(f"Loaded {len(store)} words from {path} (hams {store.hams}, spams {store.spams})")
        return store


def _checksum(data: dict[str, Any]) -> str:
    canonical = json.dumps(data, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _count(value: Any) -> int:
    """Validate a stored count."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"invalid count {value!r}")
    return value
