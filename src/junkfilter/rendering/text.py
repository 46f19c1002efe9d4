# =============================================================================
# HTML to Text Extraction
# =============================================================================
# Spam is frequently HTML-only, so the words inside the markup matter. This
# turns an HTML body into the text a reader would see, using inscriptis for
# the layout work such as tables and line breaks.
#
# Links, images and anchors are hidden: their URLs and alt texts are not
# words of the message.
# =============================================================================

import re

from inscriptis import get_text
from inscriptis.css_profiles import CSS_PROFILES
from inscriptis.model.config import ParserConfig


class TextExtractor:
    """
    Extracts readable text from HTML.

    Usage:
        >>> extractor = TextExtractor()
        >>> extractor.extract("<p>Buy <b>now</b></p>")
        'Buy now'
    """

    def __init__(self) -> None:
        self._config = ParserConfig(
            css=CSS_PROFILES['strict'],  # Better whitespace handling
            display_links=False,
            display_images=False,
            display_anchors=False,
        )

    def extract(self, html_content: str) -> str:
        """
        Convert HTML to plain text.

        Args:
            html_content: HTML content to convert.

        Returns:
            Plain text with normalized whitespace. Empty for empty input.
        """
        if not html_content or not html_content.strip():
            return ""

        html_content = self._preclean_html(html_content)
        text = get_text(html_content, self._config)
        return self._clean_output(text)

    def _preclean_html(self, html: str) -> str:
        """Remove content that never renders as words."""
        # Remove IE conditional comments
        html = re.sub(r'<!--\[if[^\]]*\]>.*?<!\[endif\]-->', '', html, flags=re.DOTALL | re.IGNORECASE)

        # Remove style and script tags
        html = re.sub(r'<style[^>]*>.*?</style>', '', html, flags=re.DOTALL | re.IGNORECASE)
        html = re.sub(r'<script[^>]*>.*?</script>', '', html, flags=re.DOTALL | re.IGNORECASE)

        # Remove XML declarations
        html = re.sub(r'<\?xml[^>]*\?>', '', html, flags=re.IGNORECASE)

        return html

    def _clean_output(self, text: str) -> str:
        # Remove zero-width characters, often used to break up spam words
        text = re.sub(r'[\u200b\u200c\u200d\u2060\ufeff]+', '', text)

        lines = [line.strip() for line in text.split('\n')]
        return '\n'.join(line for line in lines if line)
