"""Tests for the Spotify playback snapshot fetcher"""
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
import requests
from spotipy.exceptions import SpotifyException

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from models import UNKNOWN_ARTIST
from providers.base import NetworkError
from providers.spotify_api import SpotifyAPI

PLAYING = {
    "is_playing": True,
    "progress_ms": 30000,
    "item": {
        "id": "5ChkMS8OtdzJeqyybCc9R5",
        "name": "Billie Jean",
        "duration_ms": 294000,
        "artists": [{"name": "Michael Jackson"}, {"name": "Someone Else"}],
        "album": {
            "name": "Thriller",
            "images": [{"url": "https://i.scdn.co/image/large"}, {"url": "https://i.scdn.co/image/small"}],
        },
    },
}

@pytest.fixture
def spotify_cls():
    with patch("providers.spotify_api.spotipy.Spotify") as mock_cls:
        yield mock_cls

@pytest.fixture
def api(spotify_cls):
    return SpotifyAPI(credential="spotify-token", timeout=5)

def test_client_built_with_injected_token(api, spotify_cls):
    spotify_cls.assert_called_once_with(
        auth="spotify-token",
        requests_timeout=5,
        retries=0,
        status_retries=0
    )
    assert api.has_credential

async def test_no_credential_makes_no_request(spotify_cls):
    api = SpotifyAPI(credential="")
    assert not api.has_credential
    assert await api.fetch_snapshot() is None
    spotify_cls.assert_not_called()

async def test_playing_track_is_decoded(api, spotify_cls):
    spotify_cls.return_value.current_user_playing_track.return_value = PLAYING

    snapshot = await api.fetch_snapshot()

    assert snapshot.title == "Billie Jean"
    assert snapshot.artist == "Michael Jackson"
    assert snapshot.elapsed_ms == 30000
    assert snapshot.duration_ms == 294000
    assert snapshot.track_id == "5ChkMS8OtdzJeqyybCc9R5"
    assert snapshot.is_playing is True
    assert snapshot.album == "Thriller"
    assert snapshot.album_art_url == "https://i.scdn.co/image/large"
    assert api.request_stats['total_requests'] == 1

async def test_nothing_playing_is_none(api, spotify_cls):
    # spotipy returns None for 204 No Content
    spotify_cls.return_value.current_user_playing_track.return_value = None
    assert await api.fetch_snapshot() is None
    assert api.request_stats['no_track'] == 1

async def test_payload_without_item_is_none(api, spotify_cls):
    spotify_cls.return_value.current_user_playing_track.return_value = {"is_playing": False, "item": None}
    assert await api.fetch_snapshot() is None

@pytest.mark.parametrize("status", [401, 403, 429, 500])
async def test_http_error_is_none(api, spotify_cls, status):
    error = SpotifyException(status, -1, "The access token expired")
    spotify_cls.return_value.current_user_playing_track.side_effect = error
    assert await api.fetch_snapshot() is None
    assert api.request_stats['errors']['http'] == 1

async def test_transport_failure_is_network_error(api, spotify_cls):
    spotify_cls.return_value.current_user_playing_track.side_effect = requests.ConnectionError("unreachable")
    with pytest.raises(NetworkError):
        await api.fetch_snapshot()
    assert api.request_stats['errors']['network'] == 1

@pytest.mark.parametrize("payload", [
    {"item": {"artists": []}},
    {"item": {"name": 42}},
    {"item": {"name": "Billie Jean", "artists": ["Michael Jackson"]}},
    {"item": {"name": "Billie Jean"}, "progress_ms": "soon"},
])
async def test_malformed_payload_is_network_error(api, spotify_cls, payload):
    spotify_cls.return_value.current_user_playing_track.return_value = payload
    with pytest.raises(NetworkError):
        await api.fetch_snapshot()
    assert api.request_stats['errors']['decode'] == 1

async def test_missing_artist_defaults(api, spotify_cls):
    spotify_cls.return_value.current_user_playing_track.return_value = {
        "is_playing": True,
        "progress_ms": 1000,
        "item": {"name": "Untitled", "artists": []},
    }
    snapshot = await api.fetch_snapshot()
    assert snapshot.artist == UNKNOWN_ARTIST
    assert snapshot.duration_ms is None
    assert snapshot.album_art_url is None
    assert snapshot.track_id is None

def test_paused_and_zero_duration():
    snapshot = SpotifyAPI.parse_playback({
        "is_playing": False,
        "progress_ms": None,
        "item": {"name": "Billie Jean", "duration_ms": 0, "artists": [{"name": "Michael Jackson"}]},
    })
    assert snapshot.is_playing is False
    assert snapshot.elapsed_ms == 0
    assert snapshot.duration_ms is None

def test_request_stats(api):
    stats = api.get_request_stats()
    assert stats['Total Requests'] == 0
    assert stats['Last Request Age'] is None
