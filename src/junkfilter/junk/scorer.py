# =============================================================================
# Scorer
# =============================================================================
# Turns the counts of a message's tokens into one spam probability.
#
# How it works:
#   1. Skip tokens without enough evidence: the rarity filter answers first,
#      the word store confirms (fewer than rare_words observations)
#   2. Per token: p = spam / (spam + ham), smoothed toward 0.5 for tokens
#      seen only a few times (Robinson):
#         f = (s * x + n * p) / (s + n)     with s = 0.45, x = 0.5
#   3. Clamp f to [max_power, 1 - max_power]: no single token may be more
#      certain than that
#   4. Skip neutral tokens, |f - 0.5| < ignore_words
#   5. Keep the top_words most hammy and top_words most spammy tokens
#   6. Combine under the naive independence assumption, in log-odds space:
#         eta = sum(ln(1 - f) - ln(f))
#         P(spam) = 1 / (1 + e^eta)
#
# No tokens left means no evidence either way: exactly 0.5.
# =============================================================================

import logging
import math
from dataclasses import dataclass, field

from junkfilter.junk.params import Params
from junkfilter.junk.rarity import RarityOracle
from junkfilter.junk.wordstore import WordStore

logger = logging.getLogger(__name__)

# Robinson smoothing: strength of the prior and its value
PRIOR_STRENGTH = 0.45
PRIOR_PROBABILITY = 0.5


@dataclass(frozen=True)
class WordScore:
    """
    A token that contributed to a classification.

    Attributes:
        word: The token.
        probability: Smoothed and clamped spam probability of the token.
        ham: Ham count from the word store.
        spam: Spam count from the word store.
    """
    word: str
    probability: float
    ham: int = 0
    spam: int = 0

    @property
    def distance(self) -> float:
        """How far the token is from neutral."""
        return abs(self.probability - 0.5)


@dataclass
class Classification:
    """
    Result of classifying a message.

    Attributes:
        probability: Spam probability, 0.0 (ham) to 1.0 (spam).
        tokens: All tokens of the message.
        hams: Hammy tokens used, strongest first.
        spams: Spammy tokens used, strongest first.
        rare: Number of tokens skipped as unknown or too rare.
        neutral: Number of tokens skipped as too close to 0.5.
    """
    probability: float
    tokens: frozenset[str] = field(default_factory=frozenset)
    hams: list[WordScore] = field(default_factory=list)
    spams: list[WordScore] = field(default_factory=list)
    rare: int = 0
    neutral: int = 0

    def is_spam(self, threshold: float) -> bool:
        return self.probability > threshold


class Scorer:
    """
    Computes spam probabilities from word store counts.

    The scorer never modifies the store or the rarity filter.

    Usage:
        >>> scorer = Scorer(Params())
        >>> result = scorer.classify(tokens, store, rarity)
        >>> round(result.probability, 4)
        0.9972

    Attributes:
        params: Classifier parameters.
    """

    def __init__(self, params: Params) -> None:
        self.params = params

    def word_probability(self, ham: int, spam: int) -> float:
        """
        Smoothed, clamped spam probability of a token.

        A token never seen is exactly neutral.
        """
        n = ham + spam
        if n == 0:
            return PRIOR_PROBABILITY

        p = spam / n
        f = (PRIOR_STRENGTH * PRIOR_PROBABILITY + n * p) / (PRIOR_STRENGTH + n)

        max_power = self.params.max_power
        return min(max(f, max_power), 1.0 - max_power)

    def classify(
        self,
        tokens: set[str] | frozenset[str],
        store: WordStore,
        rarity: RarityOracle,
    ) -> Classification:
        """
        Classify a token set.

        Args:
            tokens: Tokens of one message.
            store: Word store to read counts from.
            rarity: Rarity oracle used to skip store lookups for rare tokens.

        Returns:
            Classification with the probability and the tokens that drove it.
        """
        params = self.params
        hams: list[WordScore] = []
        spams: list[WordScore] = []
        rare = 0
        neutral = 0

        # Sorted, so diagnostics and float summation don't depend on set order
        for token in sorted(tokens):
            if not rarity.at_least(token, params.rare_words):
                rare += 1
                continue

            counts = store.lookup(token)
            if counts.total == 0 or counts.total < params.rare_words:
                rare += 1
                continue

            probability = self.word_probability(counts.ham, counts.spam)
            if abs(probability - 0.5) < params.ignore_words:
                neutral += 1
                continue

            score = WordScore(token, probability, counts.ham, counts.spam)
            if probability < 0.5:
                hams.append(score)
            elif probability > 0.5:
                spams.append(score)
            else:
                neutral += 1

        hams = _strongest(hams, params.top_words)
        spams = _strongest(spams, params.top_words)

        probability = combine([s.probability for s in hams + spams])

        logger.debug(
            f"Classified {len(tokens)} tokens: probability {probability:.6f}, "
            f"{len(hams)} ham words, {len(spams)} spam words, "
            f"{rare} rare, {neutral} neutral"
        )
        for score in hams + spams:
            logger.debug(
                f"  {score.word!r}: {score.probability:.4f} (ham {score.ham}, spam {score.spam})"
            )

        return Classification(
            probability=probability,
            tokens=frozenset(tokens),
            hams=hams,
            spams=spams,
            rare=rare,
            neutral=neutral,
        )


def _strongest(scores: list[WordScore], limit: int) -> list[WordScore]:
    """The limit scores furthest from 0.5; ties go to the longer, then smaller word."""
    ranked = sorted(scores, key=lambda s: (-s.distance, -len(s.word), s.word))
    return ranked[:limit]


def combine(probabilities: list[float]) -> float:
    """
    Combine independent token probabilities into one.

    Equivalent to prod(p) / (prod(p) + prod(1 - p)), computed as a sum of
    log-odds so long messages can't underflow. Every p must be in (0, 1).

    Example:
        >>> round(combine([0.95, 0.95]), 4)
        0.9972
        >>> combine([])
        0.5
    """
    if not probabilities:
        return 0.5

    eta = 0.0
    for p in probabilities:
        eta += math.log(1.0 - p) - math.log(p)

    # Numerically stable logistic function
    if eta >= 0:
        z = math.exp(-eta)
        return z / (1.0 + z)
    z = math.exp(eta)
    return 1.0 / (1.0 + z)
