"""
Base Provider Class
All lyrics providers must inherit from this base class.
"""

from abc import ABC, abstractmethod
from typing import Optional

import requests

from config import get_provider_config
from logging_config import get_logger
from models import LyricSet

logger = get_logger(__name__)

class ProviderError(Exception):
    """Base class for failures of a lyrics or playback provider."""

class NoSearchResult(ProviderError):
    """The search returned nothing usable (no hits, no page path, not JSON)."""

class NoLyricsFound(ProviderError):
    """The lyrics page was fetched but no lyrics could be extracted."""

class NetworkError(ProviderError):
    """Transport failure, non-success status or a malformed collaborator payload."""

class LyricsProvider(ABC):
    """Base class for all lyrics providers."""

    def __init__(self, provider_name: str, credential: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize the provider using configuration from config.py

        Args:
            provider_name (str): Name of the provider (must match config key)
            credential (str, optional): Bearer token for authenticated calls
            session (requests.Session, optional): Shared HTTP session
        """
        config = get_provider_config(provider_name.lower())

        self.name = provider_name
        self.enabled = config.get('enabled', True)
        self.timeout = config.get('timeout', 10)
        self.credential = credential or None

        self.session = session or requests.Session()

        if self.enabled:
            logger.info(f"Initialized {self.name} provider (authenticated: {self.credential is not None})")
        else:
            logger.info(f"{self.name} provider is disabled")

    @abstractmethod
    async def get_lyrics(self, title: str, artist: str) -> LyricSet:
        """
        Get plain lyrics for a song.

        Args:
            title (str): Song title
            artist (str): Artist name

        Returns:
            LyricSet: Cleaned lines in source order

        Raises:
            NoSearchResult: The song could not be located
            NoLyricsFound: The page held no extractable lyrics
            NetworkError: A request failed
        """

    def __str__(self) -> str:
        status = "enabled" if self.enabled else "disabled"
        return f"{self.name} Provider (Status: {status})"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name='{self.name}' enabled={self.enabled}>"
