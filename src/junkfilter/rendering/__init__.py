# =============================================================================
# Rendering Module
# =============================================================================
# Turns HTML message bodies into the plain text the tokenizer works on.
#
# Uses inscriptis for HTML-to-text conversion.
# =============================================================================

from junkfilter.rendering.text import TextExtractor

__all__ = ["TextExtractor"]
