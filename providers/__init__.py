from .base import LyricsProvider, NetworkError, NoLyricsFound, NoSearchResult, ProviderError
from .genius import GeniusProvider
from .html_extractor import GeniusHtmlExtractor, LyricsExtractor
from .spotify_api import SpotifyAPI

__all__ = [
    'LyricsProvider',
    'ProviderError',
    'NoSearchResult',
    'NoLyricsFound',
    'NetworkError',
    'GeniusProvider',
    'GeniusHtmlExtractor',
    'LyricsExtractor',
    'SpotifyAPI',
]
