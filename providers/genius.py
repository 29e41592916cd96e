"""Genius Provider: plain (untimed) lyrics scraped from genius.com"""

import asyncio
from typing import Optional
from urllib.parse import quote

import requests

from config import VERSION, get_provider_config
from logging_config import get_logger
from models import LyricSet
from .base import LyricsProvider, NetworkError, NoLyricsFound, NoSearchResult
from .html_extractor import GeniusHtmlExtractor, LyricsExtractor

logger = get_logger(__name__)

class GeniusProvider(LyricsProvider):
    """
    Two-step lookup: an authenticated API search to find the song page,
    then an unauthenticated fetch of that page whose HTML is handed to the
    extractor. No retries here; the next refresh cycle is the retry.
    """
    API_URL = "https://api.genius.com"
    SITE_URL = "https://genius.com"
    HEADERS = {
        "User-Agent": f"LyricWidget/{VERSION}",
    }

    def __init__(self, credential: Optional[str] = None,
                 extractor: Optional[LyricsExtractor] = None,
                 session: Optional[requests.Session] = None):
        super().__init__(provider_name="genius", credential=credential, session=session)

        config = get_provider_config("genius")

        self.api_url = config.get("api_url", self.API_URL).rstrip("/")
        self.site_url = config.get("site_url", self.SITE_URL).rstrip("/")
        self.extractor = extractor or GeniusHtmlExtractor()

    async def get_lyrics(self, title: str, artist: str) -> LyricSet:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.fetch_lyrics, title, artist)

    def fetch_lyrics(self, title: str, artist: str) -> LyricSet:
        """Blocking implementation of get_lyrics()."""
        title = (title or "").strip()
        artist = (artist or "").strip()
        if not title and not artist:
            raise NoSearchResult("Empty title and artist")

        path = self.search_song_path(title, artist)
        page_url = f"{self.site_url}{path}"
        html = self._fetch_page(page_url)

        text = self.extractor.extract_text(html)
        if not text:
            logger.info(f"Genius - No lyrics extracted from {page_url}")
            raise NoLyricsFound(f"No lyrics on {page_url}")

        lyric_set = LyricSet.from_text(text, source=self.name, url=page_url)
        logger.info(f"Genius - Extracted {len(lyric_set)} lines for {artist} - {title}")
        return lyric_set

    def search_song_path(self, title: str, artist: str) -> str:
        """Page path of the first search hit for the song."""
        url = f"{self.api_url}/search?q={quote(title)}%20{quote(artist)}"
        headers = dict(self.HEADERS)
        if self.credential:
            headers["Authorization"] = f"Bearer {self.credential}"

        logger.debug(f"Genius - Searching: {url}")
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Genius search failed: {e}") from e

        if not response.ok:
            raise NetworkError(f"Genius search returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise NoSearchResult(f"Genius search returned invalid JSON: {e}") from e

        try:
            hits = data["response"]["hits"]
            path = hits[0]["result"]["path"]
        except (KeyError, IndexError, TypeError):
            logger.info(f"Genius - No search results for: {artist} - {title}")
            raise NoSearchResult(f"No search hit for {artist} - {title}") from None

        if not isinstance(path, str) or not path:
            raise NoSearchResult(f"First search hit for {artist} - {title} has no page path")
        if not path.startswith("/"):
            path = f"/{path}"
        return path

    def _fetch_page(self, url: str) -> str:
        try:
            response = self.session.get(url, headers=self.HEADERS, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Genius page fetch failed: {e}") from e

        if not response.ok:
            raise NetworkError(f"Genius page returned status {response.status_code}")

        try:
            return response.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise NoLyricsFound(f"Genius page at {url} is not valid UTF-8") from e
