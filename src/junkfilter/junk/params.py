# =============================================================================
# Junk Filter Parameters
# =============================================================================
# The tunable knobs of the classifier, fixed for the lifetime of a filter.
#
# Params is passed explicitly into the filter; nothing reads settings from a
# global. The same values come from the config file's [params] section or
# from command line flags.
# =============================================================================

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class Params:
    """
    Classifier parameters.

    Attributes:
        one_grams: Use single words as features.
        two_grams: Use adjacent word pairs as features.
        three_grams: Use adjacent word triplets as features.
        max_power: Bound on how certain a single word can be. Word
                   probabilities are clamped to [max_power, 1 - max_power].
        ignore_words: Words with a probability within this distance from 0.5
                      carry no signal and are skipped.
        top_words: Number of most hammy and number of most spammy words of
                   a message used for the combined probability.
        rare_words: Words observed fewer than this many times during training
                    are skipped for scoring.
    """
    one_grams: bool = False
    two_grams: bool = True
    three_grams: bool = False
    max_power: float = 0.05
    ignore_words: float = 0.1
    top_words: int = 10
    rare_words: int = 1

    def __post_init__(self) -> None:
        if not (self.one_grams or self.two_grams or self.three_grams):
            raise ValueError("at least one of one_grams, two_grams, three_grams must be enabled")
        if not 0.0 <= self.max_power < 0.5:
            raise ValueError(f"max_power must be in [0, 0.5), got {self.max_power}")
        if not 0.0 <= self.ignore_words < 0.5:
            raise ValueError(f"ignore_words must be in [0, 0.5), got {self.ignore_words}")
        if self.top_words < 1:
            raise ValueError(f"top_words must be at least 1, got {self.top_words}")
        if self.rare_words < 0:
            raise ValueError(f"rare_words must not be negative, got {self.rare_words}")

    @property
    def ngram_sizes(self) -> tuple[int, ...]:
        """The enabled n-gram sizes, ascending."""
        sizes = []
        if self.one_grams:
            sizes.append(1)
        if self.two_grams:
            sizes.append(2)
        if self.three_grams:
            sizes.append(3)
        return tuple(sizes)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Params":
        """Build Params from a mapping, ignoring unknown keys."""
        defaults = cls()
        return cls(
            one_grams=bool(data.get("one_grams", defaults.one_grams)),
            two_grams=bool(data.get("two_grams", defaults.two_grams)),
            three_grams=bool(data.get("three_grams", defaults.three_grams)),
            max_power=float(data.get("max_power", defaults.max_power)),
            ignore_words=float(data.get("ignore_words", defaults.ignore_words)),
            top_words=int(data.get("top_words", defaults.top_words)),
            rare_words=int(data.get("rare_words", defaults.rare_words)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
