"""
Spotify API Integration
Reads the currently playing track from the Spotify Web API
"""
import asyncio
import time
from typing import Any, Dict, Optional

import requests
import spotipy
from spotipy.exceptions import SpotifyException

from config import SPOTIFY
from logging_config import get_logger
from models import UNKNOWN_ARTIST, TrackSnapshot, utc_now
from .base import NetworkError

logger = get_logger(__name__)

class SpotifyAPI:
    """
    Playback snapshot fetcher.

    The access token is obtained elsewhere (login flow) and injected here;
    this class never refreshes or stores it.
    """

    def __init__(self, credential: Optional[str] = None, timeout: Optional[int] = None):
        self.credential = credential or None
        self.timeout = timeout or SPOTIFY.get("timeout", 5)
        self.sp: Optional[spotipy.Spotify] = None

        self.request_stats = {
            'total_requests': 0,
            'no_track': 0,
            'errors': {
                'network': 0,
                'http': 0,
                'decode': 0
            }
        }
        self._last_request_time = 0.0

        if self.credential:
            # Retries disabled: the refresh cycle is the retry mechanism
            self.sp = spotipy.Spotify(
                auth=self.credential,
                requests_timeout=self.timeout,
                retries=0,
                status_retries=0
            )
            logger.info("Spotify API initialized with access token")
        else:
            logger.warning("No Spotify access token - playback state unavailable until login")

    @property
    def has_credential(self) -> bool:
        return self.credential is not None

    async def fetch_snapshot(self) -> Optional[TrackSnapshot]:
        """
        One authenticated currently-playing query.

        Returns:
            TrackSnapshot, or None when nothing is playing (empty body,
            non-success status, or a payload without a track)

        Raises:
            NetworkError: transport failure or malformed payload
        """
        if self.sp is None:
            return None

        self.request_stats['total_requests'] += 1
        self._last_request_time = time.time()

        try:
            loop = asyncio.get_running_loop()
            current = await loop.run_in_executor(None, self.sp.current_user_playing_track)
        except SpotifyException as e:
            self.request_stats['errors']['http'] += 1
            logger.warning(f"Spotify returned status {e.http_status}, treating as nothing playing: {e.msg}")
            return None
        except requests.RequestException as e:
            self.request_stats['errors']['network'] += 1
            logger.error(f"Spotify request failed: {e}")
            raise NetworkError(f"Spotify request failed: {e}") from e

        if not current or not current.get('item'):
            self.request_stats['no_track'] += 1
            logger.debug("No track currently playing")
            return None

        try:
            return self.parse_playback(current)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            self.request_stats['errors']['decode'] += 1
            logger.error(f"Malformed Spotify playback payload: {e}")
            raise NetworkError(f"Malformed Spotify playback payload: {e}") from e

    @staticmethod
    def parse_playback(current: Dict[str, Any]) -> TrackSnapshot:
        """Normalize a currently-playing payload into a TrackSnapshot."""
        item = current['item']

        title = item['name']
        if not isinstance(title, str):
            raise TypeError(f"track name is {type(title).__name__}")

        artists = item.get('artists') or []
        artist = artists[0].get('name') if artists else None

        album = item.get('album') or {}
        images = album.get('images') or []

        progress_ms = int(current.get('progress_ms') or 0)
        duration_ms = item.get('duration_ms')
        duration_ms = int(duration_ms) if duration_ms else None

        return TrackSnapshot(
            title=title,
            artist=artist or UNKNOWN_ARTIST,
            elapsed_ms=max(progress_ms, 0),
            duration_ms=duration_ms if duration_ms and duration_ms > 0 else None,
            track_id=item.get('id'),
            is_playing=bool(current.get('is_playing', False)),
            album=album.get('name'),
            album_art_url=images[0].get('url') if images else None,
            fetched_at=utc_now()
        )

    def get_request_stats(self) -> Dict[str, Any]:
        """Get current API request statistics"""
        last = self._last_request_time
        return {
            'Total Requests': self.request_stats['total_requests'],
            'Nothing Playing': self.request_stats['no_track'],
            'Errors': self.request_stats['errors'],
            'Last Request Age': f"{time.time() - last:.1f}s" if last else None
        }
