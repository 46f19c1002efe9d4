# =============================================================================
# Message Parser
# =============================================================================
# Turns raw RFC 5322 bytes into a ParsedMessage.
#
# This is deliberately shallow. We walk the MIME tree with the standard
# library email package and keep:
#   - The first text/plain part as the body
#   - Otherwise the first text/html part, converted to text
#   - Subject, From and Date headers (RFC 2047 decoded)
#
# Attachments are ignored entirely. Charsets that Python doesn't know fall
# back to UTF-8 with replacement characters, so odd encodings never make a
# message unparseable on their own.
# =============================================================================

import email
import email.errors
import email.header
import email.utils
import logging
from datetime import datetime, timezone
from email.message import Message as EmailMessage
from pathlib import Path

from junkfilter.core.message import ParsedMessage
from junkfilter.errors import MalformedMessageError
from junkfilter.rendering.text import TextExtractor

logger = logging.getLogger(__name__)


class MessageParser:
    """
    Parses raw email messages for the junk filter.

    Usage:
        >>> parser = MessageParser()
        >>> message = parser.parse_path(Path("mail/cur/1700000000.eml"))
        >>> message.subject
        'Meeting agenda'

    Attributes:
        text_extractor: Converts HTML bodies to plain text.
    """

    def __init__(self, text_extractor: TextExtractor | None = None) -> None:
        self.text_extractor = text_extractor or TextExtractor()

    def parse_path(self, path: Path | str) -> ParsedMessage:
        """
        Read and parse the message file at path.

        Raises:
            OSError: If the file cannot be read.
            MalformedMessageError: If the file is not a parseable message.
        """
        with open(path, "rb") as f:
            raw = f.read()
        return self.parse_bytes(raw)

    def parse_bytes(self, raw: bytes) -> ParsedMessage:
        """
        Parse a raw message.

        A message is malformed when it is empty or has no header section at
        all. Everything else is parsed leniently.
        """
        if not raw.strip():
            raise MalformedMessageError("empty message")

        msg = email.message_from_bytes(raw)
        if not msg.keys():
            raise MalformedMessageError("message has no headers")

        headers: dict[str, str] = {}
        for name, value in msg.items():
            key = name.lower()
            if key not in headers:
                headers[key] = decode_header(str(value))

        _, sender = email.utils.parseaddr(headers.get("from", ""))

        return ParsedMessage(
            subject=headers.get("subject", ""),
            sender=sender.lower(),
            body_text=self._extract_body(msg),
            date=parse_date(headers.get("date", "")),
            headers=headers,
        )

    def _extract_body(self, msg: EmailMessage) -> str:
        """Pick the best text body, converting HTML when that's all there is."""
        body_text = ""
        body_html = ""

        for part in msg.walk():
            if part.is_multipart():
                continue
            disposition = str(part.get("Content-Disposition", ""))
            if "attachment" in disposition:
                continue

            content_type = part.get_content_type()
            if content_type == "text/plain" and not body_text:
                body_text = _decode_part(part)
            elif content_type == "text/html" and not body_html:
                body_html = _decode_part(part)

        if body_text:
            return body_text
        if body_html:
            return self.text_extractor.extract(body_html)
        return ""


# =============================================================================
# Helpers
# =============================================================================

def decode_header(value: str) -> str:
    """Decode an RFC 2047 encoded header value."""
    if not value:
        return ""
    try:
        decoded_parts = email.header.decode_header(value)
    except email.errors.HeaderParseError:
        return value

    result = ""
    for part, charset in decoded_parts:
        if isinstance(part, bytes):
            try:
                result += part.decode(charset or "utf-8", errors="replace")
            except LookupError:
                result += part.decode("utf-8", errors="replace")
        else:
            result += part
    return result


def parse_date(value: str) -> datetime | None:
    """
    Parse a Date header into an aware UTC datetime.

    Dates without a timezone are assumed to be UTC. Returns None for missing
    or unparseable dates.
    """
    if not value:
        return None
    try:
        parsed = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        logger.debug(f"Unparseable date header: {value!r}")
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _decode_part(part: EmailMessage) -> str:
    """Decode a message part to string."""
    payload = part.get_payload(decode=True)
    if isinstance(payload, bytes):
        charset = part.get_content_charset() or "utf-8"
        try:
            return payload.decode(charset, errors="replace")
        except (LookupError, UnicodeDecodeError):
            return payload.decode("utf-8", errors="replace")
    return str(payload) if payload else ""
