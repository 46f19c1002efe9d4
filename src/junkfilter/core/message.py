# =============================================================================
# Parsed Message Model
# =============================================================================
# The simplified view of an email message that the junk filter works with.
#
# A raw RFC 5322 message can be arbitrarily complex (nested multiparts,
# attachments, encoded headers). The parser flattens it into the handful of
# fields that matter for classification:
#   - Subject and sender (decoded)
#   - A plain text body (HTML-only bodies are converted to text)
#   - The Date header, normalized to UTC, for chronological replay
# =============================================================================

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ParsedMessage:
    """
    A message reduced to what the tokenizer needs.

    Attributes:
        subject: Decoded Subject header.
        sender: From address (just the address, no display name).
        body_text: Plain text body. For HTML-only messages this holds the
                   text extracted from the HTML part.
        date: Date header in UTC, or None when missing or unparseable.
        headers: Decoded header values, keyed by lowercase header name.
                 Only the first occurrence of each header is kept.

    Example:
        >>> message = ParsedMessage(
        ...     subject="Meeting agenda",
        ...     sender="alice@example.com",
        ...     body_text="Please find the agenda attached.",
        ... )
    """
    subject: str = ""
    sender: str = ""
    body_text: str = ""
    date: datetime | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def has_date(self) -> bool:
        """Returns True if the message carries a usable Date header."""
        return self.date is not None

    def __repr__(self) -> str:
        return (
            f"ParsedMessage(subject={self.subject!r}, sender={self.sender!r}, "
            f"date={self.date!r})"
        )
