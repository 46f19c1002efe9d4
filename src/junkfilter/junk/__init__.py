# =============================================================================
# Junk Module
# =============================================================================
# Statistical junk (spam) filtering for email.
#
# The filter learns from labeled messages:
#   - Messages are reduced to sets of words and word n-grams
#   - A word store counts in how many ham and spam messages each token occurs
#   - A counting Bloom filter cheaply skips tokens seen too rarely to trust
#   - The strongest hammy and spammy tokens of a message are combined into
#     a single spam probability
#
# Training can be done in bulk from directories, or online, one message at a
# time, as mail arrives.
# =============================================================================

from junkfilter.junk.filter import Filter, FilterStats, TrainResult, new_filter, open_filter
from junkfilter.junk.params import Params
from junkfilter.junk.rarity import CountingBloomFilter, NullRarityFilter, RarityOracle
from junkfilter.junk.scorer import Classification, Scorer, WordScore
from junkfilter.junk.tokenizer import Tokenizer
from junkfilter.junk.wordstore import WordCounts, WordStore

__all__ = [
    "Classification",
    "CountingBloomFilter",
    "Filter",
    "FilterStats",
    "NullRarityFilter",
    "Params",
    "RarityOracle",
    "Scorer",
    "Tokenizer",
    "TrainResult",
    "WordCounts",
    "WordScore",
    "WordStore",
    "new_filter",
    "open_filter",
]
