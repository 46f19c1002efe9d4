# =============================================================================
# Filter Evaluation
# =============================================================================
# Ways of measuring how well a filter separates ham from spam, all built on
# the same primitives (train, classify, parse, save):
#
#   - test:    classify labeled directories with an already trained filter
#   - analyze: shuffle a labeled corpus, train on one part, test on the rest
#   - play:    replay messages in order of their Date header, classifying
#              each one and then training on it (online learning)
#
# Everything is deterministic given the same inputs and seed: directories are
# listed in sorted order, shuffling uses a seeded random.Random, and replay
# order is a stable sort on the message date.
# =============================================================================

import logging
import os
import random
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from junkfilter.core import MessageParser
from junkfilter.errors import DirectoryError, MalformedMessageError
from junkfilter.junk.filter import Filter, TrainResult

logger = logging.getLogger(__name__)

# Seed used when shuffling should be reproducible
FIXED_SEED = 0


@dataclass
class Misclassification:
    """A message that ended up on the wrong side of the threshold."""
    path: Path
    ham: bool
    probability: float


@dataclass
class EvaluationReport:
    """
    Counts from classifying labeled messages.

    Attributes:
        ham_ok: Hams classified below the threshold (true negatives).
        ham_bad: Hams classified at or above the threshold.
        spam_ok: Spams classified above the threshold (true positives).
        spam_bad: Spams classified at or below the threshold.
        malformed: Messages that couldn't be read or parsed.
        misclassified: The wrongly classified messages, in processing order.
    """
    ham_ok: int = 0
    ham_bad: int = 0
    spam_ok: int = 0
    spam_bad: int = 0
    malformed: int = 0
    misclassified: list[Misclassification] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Number of messages classified."""
        return self.ham_ok + self.ham_bad + self.spam_ok + self.spam_bad

    @property
    def specificity(self) -> float:
        """Fraction of hams identified as ham. 0.0 without hams."""
        return _ratio(self.ham_ok, self.ham_ok + self.ham_bad)

    @property
    def sensitivity(self) -> float:
        """Fraction of spams identified as spam. 0.0 without spams."""
        return _ratio(self.spam_ok, self.spam_ok + self.spam_bad)

    @property
    def accuracy(self) -> float:
        """Fraction of all messages classified correctly. 0.0 without messages."""
        return _ratio(self.ham_ok + self.spam_ok, self.total)

    def record(self, path: Path, ham: bool, probability: float, threshold: float) -> bool:
        """
        Count one classification.

        A ham is correct below the threshold, a spam above it.

        Returns:
            True if the message was classified correctly.
        """
        if ham:
            correct = probability < threshold
            if correct:
                self.ham_ok += 1
            else:
                self.ham_bad += 1
        else:
            correct = probability > threshold
            if correct:
                self.spam_ok += 1
            else:
                self.spam_bad += 1

        if not correct:
            self.misclassified.append(Misclassification(path, ham, probability))
        return correct


def _ratio(numerator: int, denominator: int) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


@dataclass
class AnalyzeResult:
    """Outcome of analyze(): what was trained, and how testing went."""
    training: TrainResult
    report: EvaluationReport


@dataclass
class PlayResult:
    """
    Outcome of play().

    Attributes:
        hams: Dated ham messages found.
        sent: Dated sent messages found.
        spams: Dated spam messages found.
        bad: Messages that couldn't be parsed (when scanning or replaying).
        undated: Messages skipped for lack of a Date header.
        report: Classification counts of the replayed ham and spam messages.
    """
    hams: int = 0
    sent: int = 0
    spams: int = 0
    bad: int = 0
    undated: int = 0
    report: EvaluationReport = field(default_factory=EvaluationReport)


# =============================================================================
# Corpus Helpers
# =============================================================================

def list_dir(directory: Path | str) -> list[str]:
    """
    Names of the entries in directory, sorted.

    Raises:
        DirectoryError: If the directory can't be listed.
    """
    try:
        return sorted(os.listdir(directory))
    except OSError as e:
        raise DirectoryError(f"listing directory {str(directory)!r}: {e}") from e


def make_rng(seed: bool) -> random.Random:
    """
    Random source for shuffling.

    Args:
        seed: True for a time-based (different every run) source, False for
              a fixed, reproducible one.
    """
    if seed:
        return random.Random(time.time_ns() // 1_000_000)
    return random.Random(FIXED_SEED)


def shuffle(names: list[str], rng: random.Random) -> None:
    """Shuffle names in place: each position swaps with a random position."""
    count = len(names)
    for i in range(count):
        n = rng.randrange(count)
        names[i], names[n] = names[n], names[i]


def split(names: list[str], ratio: float) -> tuple[list[str], list[str]]:
    """Split names into (train, test), the first int(ratio * len) for training."""
    ntrain = int(ratio * len(names))
    return names[:ntrain], names[ntrain:]


# =============================================================================
# Evaluation Modes
# =============================================================================

def classify_dir(
    f: Filter,
    directory: Path | str,
    files: list[str],
    ham: bool,
    threshold: float,
    report: EvaluationReport | None = None,
) -> EvaluationReport:
    """
    Classify the listed files of a directory and count the results.

    Messages that can't be read or parsed count as malformed.
    """
    report = report if report is not None else EvaluationReport()
    for name in files:
        path = Path(directory) / name
        try:
            result = f.classify_message_path(path)
        except (OSError, MalformedMessageError) as e:
            logger.warning(f"Classifying message {path}: {e}")
            report.malformed += 1
            continue
        report.record(path, ham, result.probability, threshold)
    return report


def classify_dirs(
    f: Filter,
    ham_dir: Path | str,
    spam_dir: Path | str,
    threshold: float,
) -> EvaluationReport:
    """Classify every message in a ham and a spam directory, without training."""
    report = EvaluationReport()
    classify_dir(f, ham_dir, list_dir(ham_dir), True, threshold, report)
    classify_dir(f, spam_dir, list_dir(spam_dir), False, threshold, report)
    return report


def analyze(
    f: Filter,
    ham_dir: Path | str,
    spam_dir: Path | str,
    *,
    sent_dir: Path | str | None = None,
    train_ratio: float = 0.5,
    threshold: float = 0.95,
    seed: bool = False,
) -> AnalyzeResult:
    """
    Train on part of a labeled corpus and test on the rest.

    Ham and spam file lists are shuffled separately, the first train_ratio of
    each is trained (together with all sent messages), the remainder tested.
    """
    ham_files = list_dir(ham_dir)
    spam_files = list_dir(spam_dir)
    sent_files = list_dir(sent_dir) if sent_dir is not None else []

    rng = make_rng(seed)
    shuffle(ham_files, rng)
    shuffle(spam_files, rng)

    train_ham, test_ham = split(ham_files, train_ratio)
    train_spam, test_spam = split(spam_files, train_ratio)

    training = f.train_dirs(ham_dir, sent_dir, spam_dir, train_ham, sent_files, train_spam)

    report = EvaluationReport()
    classify_dir(f, ham_dir, test_ham, True, threshold, report)
    classify_dir(f, spam_dir, test_spam, False, threshold, report)
    return AnalyzeResult(training=training, report=report)


@dataclass
class _Arrival:
    path: Path
    ham: bool
    sent: bool
    date: datetime


def play(
    f: Filter,
    ham_dir: Path | str,
    spam_dir: Path | str,
    *,
    sent_dir: Path | str | None = None,
    threshold: float = 0.95,
    parser: MessageParser | None = None,
) -> PlayResult:
    """
    Replay messages in order of arrival, learning as they come in.

    Every ham and spam message is classified with what the filter has
    learned so far, then trained with its true label. Sent messages are only
    trained, as ham. Messages without a date can't be placed and are skipped.
    The filter is saved at the end.

    Raises:
        DirectoryError: If a directory can't be listed.
    """
    parser = parser or MessageParser()
    result = PlayResult()
    arrivals: list[_Arrival] = []

    def scan(directory: Path | str, ham: bool, sent: bool) -> None:
        for name in list_dir(directory):
            path = Path(directory) / name
            try:
                message = parser.parse_path(path)
            except (OSError, MalformedMessageError) as e:
                logger.warning(f"Skipping message {path}: {e}")
                result.bad += 1
                continue
            if not message.has_date:
                result.undated += 1
                continue

            arrivals.append(_Arrival(path, ham, sent, message.date))
            if sent:
                result.sent += 1
            elif ham:
                result.hams += 1
            else:
                result.spams += 1

    scan(ham_dir, True, False)
    scan(spam_dir, False, False)
    if sent_dir is not None:
        scan(sent_dir, True, True)

    # Earliest first; ties keep scan order
    arrivals.sort(key=lambda a: a.date)

    report = result.report
    for arrival in arrivals:
        try:
            if arrival.sent:
                tokens = f.tokenize_path(arrival.path)
            else:
                classification = f.classify_message_path(arrival.path)
                tokens = set(classification.tokens)
                report.record(arrival.path, arrival.ham, classification.probability, threshold)
        except (OSError, MalformedMessageError) as e:
            logger.warning(f"Skipping message {arrival.path}: {e}")
            result.bad += 1
            continue

        f.train(arrival.ham, tokens)

    f.save()
    return result
