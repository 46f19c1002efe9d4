# =============================================================================
# Junkfilter Core Module
# =============================================================================
# Message model and parser. The parser reduces raw RFC 5322 bytes to the
# fields the junk filter consumes:
#   - ParsedMessage: subject, sender, plain body text and date
#   - MessageParser: raw bytes or file path to ParsedMessage
# =============================================================================

from junkfilter.core.message import ParsedMessage
from junkfilter.core.parser import MessageParser

__all__ = [
    "ParsedMessage",
    "MessageParser",
]
