"""Pytest configuration and shared fixtures"""
import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path

# Keep the settings manager away from the real settings.json; must run before config is imported
os.environ.setdefault(
    "LYRICWIDGET_SETTINGS_FILE",
    str(Path(tempfile.mkdtemp(prefix="lyricwidget-tests-")) / "settings.json")
)

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

import pytest
from unittest.mock import AsyncMock, Mock

from models import LyricSet, TrackSnapshot
from providers.spotify_api import SpotifyAPI

FIXTURES_DIR = Path(__file__).parent / "fixtures"

TIMELINE_OPTIONS = {
    "entry_count": 24,
    "step_seconds": 5.0,
    "refresh_after_seconds": 30.0,
    "idle_refresh_seconds": 15.0,
    "lead_in_ms": 3000,
    "fallback_line_ms": 4000,
    "min_dwell_ms": 0,
}

def load_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")

@pytest.fixture
def now():
    return datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc)

@pytest.fixture
def snapshot(now):
    return TrackSnapshot(
        title="Billie Jean",
        artist="Michael Jackson",
        elapsed_ms=30000,
        duration_ms=294000,
        track_id="5ChkMS8OtdzJeqyybCc9R5",
        is_playing=True,
        album="Thriller",
        album_art_url="https://i.scdn.co/image/thriller",
        fetched_at=now
    )

@pytest.fixture
def spotify_client(snapshot):
    """Create a mock Spotify client"""
    client = Mock(spec=SpotifyAPI)
    client.has_credential = True
    client.fetch_snapshot = AsyncMock(return_value=snapshot)
    client.get_request_stats.return_value = {'Total Requests': 1}
    return client

@pytest.fixture
def lyrics_provider():
    """Create a mock lyrics provider returning ten lines"""
    provider = Mock()
    provider.name = "genius"
    provider.enabled = True
    provider.get_lyrics = AsyncMock(return_value=LyricSet(
        tuple(f"Lyric line number {i}" for i in range(1, 11)),
        source="genius",
        url="https://genius.com/Michael-jackson-billie-jean-lyrics"
    ))
    return provider
