# =============================================================================
# Email Tokenizer for Junk Classification
# =============================================================================
# Converts a parsed message into the set of features the classifier scores.
#
# Features are words and n-grams of words:
#   - Text is split on anything that isn't a letter or digit
#   - Words are lowercased
#   - Words longer than MAX_WORD_LENGTH are dropped (base64 blobs, hashes)
#   - N-grams join adjacent words with a single space, which never occurs
#     inside a word
#
# Subject and body are tokenized as separate segments so that an n-gram never
# spans the last subject word and the first body word.
#
# The result is a set: a word that appears ten times in one message is
# trained and scored once. Presence, not frequency.
# =============================================================================

import re

from junkfilter.core.message import ParsedMessage
from junkfilter.junk.params import Params

# Longest word we consider a word
MAX_WORD_LENGTH = 40

# Separator between the words of an n-gram
NGRAM_SEPARATOR = " "

# Letters and digits in any script; underscore is a separator
WORD_PATTERN = re.compile(r"[^\W_]+")


class Tokenizer:
    """
    Extracts scoring features from messages.

    Stateless apart from its parameters: the same input always yields the
    same token set.

    Usage:
        >>> tokenizer = Tokenizer(Params(one_grams=True, two_grams=True))
        >>> sorted(tokenizer.tokenize_text("Free viagra, free!"))
        ['free', 'free viagra', 'viagra', 'viagra free']

    Attributes:
        ngram_sizes: The n-gram sizes extracted, e.g. (1, 2).
    """

    def __init__(self, params: Params | None = None) -> None:
        """
        Initialize the tokenizer.

        Args:
            params: Parameters selecting the n-gram sizes. Defaults to Params().
        """
        self.ngram_sizes = (params or Params()).ngram_sizes

    def tokenize(self, message: ParsedMessage) -> set[str]:
        """
        Tokenize a parsed message.

        Args:
            message: Message with decoded subject and plain text body.

        Returns:
            Set of word and n-gram tokens.
        """
        tokens: set[str] = set()
        for segment in (message.subject, message.body_text):
            tokens |= self.tokenize_text(segment)
        return tokens

    def tokenize_text(self, text: str) -> set[str]:
        """Tokenize a single piece of text."""
        words = split_words(text)
        tokens: set[str] = set()
        for size in self.ngram_sizes:
            for i in range(len(words) - size + 1):
                tokens.add(NGRAM_SEPARATOR.join(words[i:i + size]))
        return tokens


def split_words(text: str) -> list[str]:
    """
    Split text into normalized words, in order.

    Example:
        >>> split_words("Hello, WORLD! it's_me")
        ['hello', 'world', 'it', 's', 'me']
    """
    if not text:
        return []
    return [
        word
        for word in WORD_PATTERN.findall(text.lower())
        if len(word) <= MAX_WORD_LENGTH
    ]
