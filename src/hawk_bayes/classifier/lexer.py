# =============================================================================
# Lexer - Text to Token Counts
# =============================================================================
# Converts raw text into the token multiset the classifier works on.
#
# We extract:
#   - Words (runs of Unicode letters/digits, with inner ' and - allowed)
#   - URLs and their host names
#   - HTML tag names, as "<tag>" tokens
#
# Markup is stripped before words are extracted. Words keep their case by
# default: the degenerator bridges "Hello" and "hello" at lookup time.
# =============================================================================

import logging
import re
from collections import Counter
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from hawk_bayes.config import LexerConfig
from hawk_bayes.core import TextMissingError


logger = logging.getLogger(__name__)


class Lexer:
    """
    Splits text into counted tokens.

    Usage:
        >>> lexer = Lexer()
        >>> lexer.tokenize("Buy now, buy NOW! http://example.com/offer")
        {'http://example.com/offer': 1, 'example.com': 1, 'Buy': 1, 'now': 1, 'buy': 1, 'NOW': 1}
    """

    # Anything that looks like an opening/closing tag, comment or doctype
    MARKUP_PATTERN = re.compile(r"<[a-zA-Z!/][^>]*>")

    URL_PATTERN = re.compile(
        r"(?:https?|ftp)://[^\s/$.?#][^\s<>\"']*",
        re.IGNORECASE,
    )

    # Letters/digits, optionally joined by apostrophes or hyphens
    WORD_PATTERN = re.compile(r"[^\W_]+(?:['\-][^\W_]+)*")

    # Punctuation that commonly trails a URL in prose
    URL_TRAILING = ".,;:!?)]}"

    # Elements whose content is never visible text
    INVISIBLE_TAGS = ["script", "style", "head", "title"]

    def __init__(self, config: LexerConfig | None = None) -> None:
        """
        Initialize the lexer.

        Args:
            config: Lexer configuration.
        """
        self.config = config or LexerConfig()
        self._stopwords = frozenset(w.lower() for w in self.config.stopwords)

    def tokenize(self, text: str) -> dict[str, int]:
        """
        Tokenize text.

        Args:
            text: Raw text, possibly containing HTML and URLs.

        Returns:
            Mapping of token -> occurrence count. Empty for empty or
            whitespace-only text.

        Raises:
            TextMissingError: If text is not a string.
        """
        if not isinstance(text, str):
            raise TextMissingError(f"Text to tokenize must be a string, got {type(text).__name__}")

        counts: Counter[str] = Counter()
        if not text.strip():
            return dict(counts)

        if self.config.get_html and self.MARKUP_PATTERN.search(text):
            text = self._strip_markup(text, counts)

        if self.config.get_uris:
            text = self._extract_urls(text, counts)

        for word in self.WORD_PATTERN.findall(text):
            word = self._normalize(word)
            if word:
                counts[word] += 1

        logger.debug(f"Tokenized {len(text)} chars into {len(counts)} distinct tokens")
        return dict(counts)

    def _strip_markup(self, text: str, counts: Counter) -> str:
        """Count tag names as tokens and return the visible text."""
        soup = BeautifulSoup(text, "html.parser")

        for tag in soup.find_all(True):
            counts[f"<{tag.name.lower()}>"] += 1

        for tag in soup.find_all(self.INVISIBLE_TAGS):
            if not tag.decomposed:
                tag.decompose()

        return soup.get_text(" ")

    def _extract_urls(self, text: str, counts: Counter) -> str:
        """Count URLs and their hosts, and cut them out of the text."""
        def replace(match: re.Match) -> str:
            url = match.group().rstrip(self.URL_TRAILING)
            counts[url] += 1
            try:
                host = urlsplit(url).hostname
            except ValueError:
                # Malformed netloc (e.g., bad IPv6 literal): keep the URL only
                host = None
            if host:
                counts[host] += 1
            # Keep whatever trailing punctuation we trimmed off
            return " " + match.group()[len(url):]

        return self.URL_PATTERN.sub(replace, text)

    def _normalize(self, word: str) -> str | None:
        """Apply size, number, stopword and case rules. None drops the word."""
        if len(word) < self.config.min_size:
            return None
        if len(word) > self.config.max_size:
            word = word[:self.config.max_size]
        if not self.config.allow_numbers and word.isdigit():
            return None
        if word.lower() in self._stopwords:
            return None
        if self.config.normalize_case:
            word = word.lower()
        return word
