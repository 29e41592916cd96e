"""
HTML lyric extraction for Genius song pages.

Genius does not expose lyrics through its API, so the song page is scraped.
The page layout is not versioned and changes without notice: everything here
is best effort, and a None result is an ordinary outcome for callers.
"""
import copy
import re
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Tag

from logging_config import get_logger

logger = get_logger(__name__)

# Attribute Genius puts on the element(s) holding the lyrics
CONTAINER_MARKER = "data-lyrics-container"

# Lines this short (or shorter) are treated as noise
MIN_LINE_LENGTH = 5
# Below this many surviving lines the tag-agnostic fallback is tried
MIN_PRIMARY_LINES = 5

DEFAULT_DENYLIST = (
    "contributor",
    "translation",
    "embed",
    "genius",
    "trending",
    "sign up",
    "subscribe",
    "login",
    "log in",
    "follow",
    "verified artist",
    "more on genius",
    "you might also like",
    "see live",
    "get tickets",
    "advertisement",
    "privacy policy",
    "terms of use",
    "cookie",
)

# Removed together with their inner text, in this order
NON_TEXT_TAGS = ["script", "style"]
LINK_TAG = "a"

# Elements whose start and end both break a line
BLOCK_TAGS = [
    "div", "p", "li", "ul", "ol", "h1", "h2", "h3", "h4", "h5", "h6",
    "section", "article", "header", "footer", "aside", "blockquote", "table", "tr",
]

WHITESPACE_RE = re.compile(r'\s+')

# Only digits, whitespace, punctuation or symbols
NO_WORDS_RE = re.compile(r'[\d\s\W_]+')
# "Producer:" style metadata rows with nothing after the colon
EMPTY_LABEL_RE = re.compile(r'^[^\W\d_][\w .&\'/-]{0,30}:\s*$')

def clean_line(text: str) -> str:
    """Collapse whitespace (including &nbsp;) and trim one candidate line."""
    return WHITESPACE_RE.sub(" ", text).strip()

def _remove(container: Tag, name: str) -> None:
    for tag in container.find_all(name):
        # A nested match goes with its decomposed parent
        if not tag.decomposed:
            tag.decompose()

class LyricsExtractor(ABC):
    """Turns a raw lyrics page into ordered lyric lines."""

    @abstractmethod
    def extract(self, html: str) -> Optional[List[str]]:
        """Returns the cleaned lines, or None when no lyrics were found."""

    def extract_text(self, html: str) -> Optional[str]:
        """Same as extract(), joined with newlines."""
        lines = self.extract(html)
        if not lines:
            return None
        text = "\n".join(lines).strip()
        return text or None

class GeniusHtmlExtractor(LyricsExtractor):
    """BeautifulSoup scraper for the lyrics container of a Genius song page."""

    def __init__(self, denylist: Iterable[str] = DEFAULT_DENYLIST, marker: str = CONTAINER_MARKER):
        self.denylist = tuple(token.lower() for token in denylist)
        self.marker = marker

    def extract(self, html: str) -> Optional[List[str]]:
        if not html:
            return None

        container = self.find_container(BeautifulSoup(html, 'html.parser'))
        if container is None:
            logger.debug("Extractor - No lyrics container marker in page")
            return None

        for name in NON_TEXT_TAGS:
            _remove(container, name)

        lines = self._primary_lines(container)
        if len(lines) < MIN_PRIMARY_LINES:
            fallback = self._fallback_lines(container)
            logger.debug(f"Extractor - Only {len(lines)} lines survived filtering, fallback found {len(fallback)}")
            if len(fallback) > len(lines):
                lines = fallback

        if not lines:
            logger.debug("Extractor - Container held no usable lines")
            return None
        return lines

    def find_container(self, soup: BeautifulSoup) -> Optional[Tag]:
        """
        Last element carrying the container marker.

        Earlier matches are often duplicated or nested preview fragments; the
        final match in document order holds the real content. Markup inside
        <script> is text to the parser, so embedded JSON never matches.
        """
        containers = soup.find_all(attrs={self.marker: True})
        if not containers:
            return None
        return containers[-1]

    def _primary_lines(self, container: Tag) -> List[str]:
        # Work on a copy: the fallback still needs the link text
        container = copy.copy(container)
        _remove(container, LINK_TAG)

        for br in container.find_all('br'):
            br.replace_with('\n')
        for block in container.find_all(BLOCK_TAGS):
            block.insert_before('\n')
            block.insert_after('\n')

        lines = []
        for fragment in container.get_text().split('\n'):
            line = clean_line(fragment)
            if line and not self.is_noise(line):
                lines.append(line)
        return lines

    def _fallback_lines(self, container: Tag) -> List[str]:
        # Annotated lyrics live inside <a> tags, so every text node is a candidate
        lines = []
        for fragment in container.get_text('\n').split('\n'):
            line = clean_line(fragment)
            if len(line) > MIN_LINE_LENGTH and not self.is_denylisted(line):
                lines.append(line)
        return lines

    def is_denylisted(self, line: str) -> bool:
        lowered = line.lower()
        return any(token in lowered for token in self.denylist)

    def is_noise(self, line: str) -> bool:
        """True for cleaned lines that are navigation, metadata or decoration."""
        if len(line) <= MIN_LINE_LENGTH:
            return True
        if NO_WORDS_RE.fullmatch(line):
            return True
        if self.is_denylisted(line):
            return True
        if EMPTY_LABEL_RE.match(line):
            return True
        if len(line) < 20:
            parts = line.split(":")
            if len(parts) == 2 and parts[0].strip() and not parts[1].strip():
                return True
        return False
