# =============================================================================
# Junk Filter
# =============================================================================
# The object callers work with: it owns the word store, the rarity filter,
# the tokenizer, the scorer and the exclusive lock on the persisted files.
#
# Lifecycle:
#   1. new_filter() for a fresh, empty filter (refuses to overwrite files),
#      or open_filter() to continue with persisted state
#   2. train() / untrain() / classify_*() any number of times
#   3. save() whenever the state should be durable
#   4. close(): saves, then releases the lock
#
# Training counts every token of a message in the word store and records it
# in the rarity filter. Classification only reads. Batch training skips (and
# counts) messages that don't parse; a directory that can't be listed, or a
# store that doesn't load, is an error for the whole operation.
# =============================================================================

import logging
from dataclasses import dataclass
from pathlib import Path

from junkfilter.core import MessageParser, ParsedMessage
from junkfilter.errors import (
    FilterClosedError,
    FilterExistsError,
    MalformedMessageError,
)
from junkfilter.junk.params import Params
from junkfilter.junk.rarity import CountingBloomFilter, NullRarityFilter, RarityOracle
from junkfilter.junk.scorer import Classification, Scorer
from junkfilter.junk.tokenizer import Tokenizer
from junkfilter.junk.wordstore import WordStore
from junkfilter.storage import ExclusiveLock

logger = logging.getLogger(__name__)


@dataclass
class FilterStats:
    """
    Statistics about the filter.

    Attributes:
        hams: Number of ham messages trained on.
        spams: Number of spam messages trained on.
        words: Number of distinct tokens in the word store.
    """
    hams: int = 0
    spams: int = 0
    words: int = 0


@dataclass
class TrainResult:
    """
    Outcome of batch training.

    Attributes:
        hams: Ham messages trained.
        sent: Sent messages trained (as ham).
        spams: Spam messages trained.
        malformed: Messages skipped because they could not be read or parsed.
    """
    hams: int = 0
    sent: int = 0
    spams: int = 0
    malformed: int = 0


class Filter:
    """
    A persistent, trainable junk filter.

    Use new_filter() or open_filter() rather than constructing one directly:
    they take the lock and load state.

    Usage:
        >>> with open_filter(Params(), Path("words.json"), Path("words.bloom")) as f:
        ...     result = f.classify_message_path(Path("incoming/1.eml"))
        ...     if result.probability > 0.95:
        ...         print("junk")

    Attributes:
        params: Classifier parameters, fixed for the lifetime of the filter.
        db_path: Path of the word store file.
        bloom_path: Path of the rarity filter file.
    """

    def __init__(
        self,
        params: Params,
        db_path: Path,
        bloom_path: Path,
        *,
        store: WordStore,
        rarity: RarityOracle,
        lock: ExclusiveLock,
        parser: MessageParser | None = None,
    ) -> None:
        self.params = params
        self.db_path = db_path
        self.bloom_path = bloom_path

        self._store = store
        self._rarity = rarity
        self._lock = lock
        self._parser = parser or MessageParser()
        self._tokenizer = Tokenizer(params)
        self._scorer = Scorer(params)

        # A new filter is written on the first save even when nothing changed
        self._new = False
        self._closed = False

    def __enter__(self) -> "Filter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # Don't persist state of an operation that failed halfway
        self.close(discard=exc_type is not None)

    @property
    def stats(self) -> FilterStats:
        """Get filter statistics."""
        return FilterStats(
            hams=self._store.hams,
            spams=self._store.spams,
            words=len(self._store),
        )

    @property
    def store(self) -> WordStore:
        return self._store

    def _check_open(self) -> None:
        if self._closed:
            raise FilterClosedError("filter is closed")

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    def parse_message(self, message: ParsedMessage) -> set[str]:
        """Tokenize a parsed message without scoring or training."""
        return self._tokenizer.tokenize(message)

    def tokenize_path(self, path: Path | str) -> set[str]:
        """
        Read, parse and tokenize the message at path.

        Raises:
            OSError: If the file can't be read.
            MalformedMessageError: If it isn't a message.
        """
        return self.parse_message(self._parser.parse_path(path))

    # -------------------------------------------------------------------------
    # Training
    # -------------------------------------------------------------------------

    def train(self, ham: bool, tokens: set[str] | frozenset[str]) -> None:
        """
        Train the filter with the tokens of one message.

        Args:
            ham: True for a ham (or sent) message, False for spam.
            tokens: Token set of the message.
        """
        self._check_open()
        for token in tokens:
            self._store.increment(token, ham=ham)
            self._rarity.add(token)
        self._store.add_message(ham=ham)

    def untrain(self, ham: bool, tokens: set[str] | frozenset[str]) -> None:
        """
        Remove a message's contribution from training.

        Use when a message was trained with the wrong label: untrain with
        the old label, then train with the new one.
        """
        self._check_open()
        for token in tokens:
            if self._store.remove(token, ham=ham):
                self._rarity.discard(token)
        self._store.remove_message(ham=ham)

    def train_message(self, path: Path | str, ham: bool) -> set[str]:
        """Train with the message file at path. Returns its tokens."""
        self._check_open()
        tokens = self.tokenize_path(path)
        self.train(ham, tokens)
        return tokens

    def untrain_message(self, path: Path | str, ham: bool) -> set[str]:
        """Untrain the message file at path. Returns its tokens."""
        self._check_open()
        tokens = self.tokenize_path(path)
        self.untrain(ham, tokens)
        return tokens

    def train_dir(self, directory: Path | str, files: list[str], ham: bool) -> tuple[int, int]:
        """
        Train with the listed files of a directory.

        Files that can't be read or parsed are logged and skipped.

        Returns:
            Tuple of (trained, malformed) message counts.
        """
        self._check_open()
        trained = 0
        malformed = 0
        for name in files:
            path = Path(directory) / name
            try:
                tokens = self.tokenize_path(path)
            except (OSError, MalformedMessageError) as e:
                logger.warning(f"Skipping message {path}: {e}")
                malformed += 1
                continue
            self.train(ham, tokens)
            trained += 1
        return trained, malformed

    def train_dirs(
        self,
        ham_dir: Path | str,
        sent_dir: Path | str | None,
        spam_dir: Path | str,
        ham_files: list[str],
        sent_files: list[str],
        spam_files: list[str],
    ) -> TrainResult:
        """
        Train with ham, sent and spam messages, then save.

        Sent messages are the operator's own mail and train as ham.

        Args:
            ham_dir: Directory of ham messages.
            sent_dir: Directory of sent messages, or None.
            spam_dir: Directory of spam messages.
            ham_files: File names within ham_dir to train.
            sent_files: File names within sent_dir to train.
            spam_files: File names within spam_dir to train.

        Returns:
            Counts of trained and skipped messages.
        """
        self._check_open()
        result = TrainResult()

        result.hams, malformed = self.train_dir(ham_dir, ham_files, True)
        result.malformed += malformed

        if sent_dir is not None and sent_files:
            result.sent, malformed = self.train_dir(sent_dir, sent_files, True)
            result.malformed += malformed

        result.spams, malformed = self.train_dir(spam_dir, spam_files, False)
        result.malformed += malformed

        logger.info(
            f"Trained {result.hams} ham, {result.sent} sent, {result.spams} spam messages "
            f"({result.malformed} malformed)"
        )
        self.save()
        return result

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    def classify_words(self, tokens: set[str] | frozenset[str]) -> Classification:
        """Classify a token set."""
        self._check_open()
        return self._scorer.classify(tokens, self._store, self._rarity)

    def classify_message(self, message: ParsedMessage) -> Classification:
        return self.classify_words(self.parse_message(message))

    def classify_message_bytes(self, raw: bytes) -> Classification:
        """
        Classify a raw message.

        Raises:
            MalformedMessageError: If raw isn't a message.
        """
        self._check_open()
        return self.classify_message(self._parser.parse_bytes(raw))

    def classify_message_path(self, path: Path | str) -> Classification:
        """
        Classify the message file at path.

        Raises:
            OSError: If the file can't be read.
            MalformedMessageError: If it isn't a message.
        """
        self._check_open()
        return self.classify_message(self._parser.parse_path(path))

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self) -> None:
        """
        Write the word store and rarity filter to disk, if they changed.

        Each file is replaced atomically. On failure the in-memory state is
        untouched and save() can be retried.

        The rarity filter is written first. Interrupted between the two
        writes, the files on disk pair a newer rarity filter with an older
        word store: counts are over-reported, never under-reported.

        Raises:
            OSError: If writing fails.
        """
        self._check_open()
        if isinstance(self._rarity, CountingBloomFilter) and (self._new or self._rarity.modified):
            self._rarity.save(self.bloom_path)
        if self._new or self._store.modified:
            self._store.save(self.db_path)
        self._new = False

    def close(self, discard: bool = False) -> None:
        """
        Save (unless discard is set) and release the lock.

        The filter can't be used afterwards. Closing twice is a no-op. The
        lock is released even when saving fails.
        """
        if self._closed:
            return
        try:
            if not discard:
                self.save()
        finally:
            self._closed = True
            self._lock.release()


# =============================================================================
# Constructors
# =============================================================================

def _lock_for(db_path: Path) -> ExclusiveLock:
    return ExclusiveLock(db_path.with_name(db_path.name + ".lock"))


def new_filter(
    params: Params,
    db_path: Path | str,
    bloom_path: Path | str,
    *,
    use_rarity: bool = True,
) -> Filter:
    """
    Create a new, empty filter.

    The files are written on the first save.

    Args:
        params: Classifier parameters.
        db_path: Path for the word store.
        bloom_path: Path for the rarity filter.
        use_rarity: Set to False to run without a rarity filter.

    Raises:
        FilterExistsError: If either file already exists.
        StoreLockedError: If another filter holds the store.
    """
    db_path = Path(db_path)
    bloom_path = Path(bloom_path)

    # Checked under the lock, so a filter created concurrently is never overwritten
    lock = _lock_for(db_path)
    lock.acquire()
    for path in (db_path, bloom_path):
        if path.exists():
            lock.release()
            raise FilterExistsError(f"{path} already exists")

    rarity: RarityOracle = CountingBloomFilter() if use_rarity else NullRarityFilter()
    f = Filter(params, db_path, bloom_path, store=WordStore(), rarity=rarity, lock=lock)
    f._new = True
    logger.debug(f"Created new filter {db_path}")
    return f


def open_filter(
    params: Params,
    db_path: Path | str,
    bloom_path: Path | str,
    *,
    use_rarity: bool = True,
) -> Filter:
    """
    Open a filter with its persisted state.

    Missing files start out empty. Present but unusable files are fatal.

    Args:
        params: Classifier parameters.
        db_path: Path of the word store.
        bloom_path: Path of the rarity filter.
        use_rarity: Set to False to ignore the rarity filter file.

    Raises:
        StoreLockedError: If another filter holds the store.
        CorruptStoreError: If a file is truncated or damaged.
        IncompatibleStoreError: If a file has an unsupported version.
    """
    db_path = Path(db_path)
    bloom_path = Path(bloom_path)

    lock = _lock_for(db_path)
    lock.acquire()
    try:
        store = _load_store(db_path)
        rarity = _load_rarity(bloom_path, store) if use_rarity else NullRarityFilter()
    except BaseException:
        lock.release()
        raise

    logger.debug(
        f"Opened filter {db_path}: {len(store)} words, hams {store.hams}, spams {store.spams}"
    )
    return Filter(params, db_path, bloom_path, store=store, rarity=rarity, lock=lock)


def _load_store(path: Path) -> WordStore:
    try:
        return WordStore.load(path)
    except FileNotFoundError:
        logger.info(f"No word store at {path}, starting empty")
        return WordStore()


def _load_rarity(path: Path, store: WordStore) -> CountingBloomFilter:
    try:
        return CountingBloomFilter.load(path)
    except FileNotFoundError:
        pass

    # Rebuild from the word store, otherwise every trained word would look rare
    bloom = CountingBloomFilter()
    for token, counts in store.items():
        bloom.add(token, counts.total)
    # Derived from the store; only written once training changes it
    bloom.modified = False
    logger.info(f"No rarity filter at {path}, rebuilt from {len(store)} words")
    return bloom
