import asyncio
from typing import Optional

from quart import Quart, jsonify

from config import PROVIDERS, SPOTIFY
from logging_config import get_logger
from models import utc_now
from providers import GeniusProvider, SpotifyAPI
from timeline import SessionTimelineBuilder

logger = get_logger(__name__)

app = Quart(__name__)
app.config['SERVER_NAME'] = None

# Shared builder, created on first use so tests can swap it out
_timeline_builder: Optional[SessionTimelineBuilder] = None
# Overlapping requests must never run two refresh cycles at once
_refresh_lock = asyncio.Lock()

# --- Helper Functions ---

def get_timeline_builder() -> SessionTimelineBuilder:
    """
    Lazily build the shared timeline builder with the credentials from the
    environment. Every route goes through this one instance so the carried
    lyric state and the request statistics are shared.
    """
    global _timeline_builder
    if _timeline_builder is None:
        spotify = SpotifyAPI(credential=SPOTIFY.get("access_token"))
        genius = GeniusProvider(credential=PROVIDERS["genius"].get("access_token"))
        _timeline_builder = SessionTimelineBuilder(spotify, genius)
    return _timeline_builder

def set_timeline_builder(builder: Optional[SessionTimelineBuilder]) -> None:
    global _timeline_builder
    _timeline_builder = builder

async def refresh_if_needed(force: bool = False):
    """Active timeline, rebuilding it first when it has expired (or when forced)."""
    builder = get_timeline_builder()
    async with _refresh_lock:
        # Another request may have refreshed while this one waited on the lock
        if force or builder.needs_refresh(utc_now()):
            await builder.build_timeline()
    return builder.current_timeline

@app.after_request
async def add_cache_headers(response):
    """Timeline data changes every few seconds: never let a client cache it."""
    response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
    response.headers['Pragma'] = 'no-cache'
    response.headers['Expires'] = '0'
    return response

# --- Routes ---

@app.route("/timeline")
async def timeline():
    """Full precomputed timeline, for surfaces that schedule their own updates."""
    try:
        active = await refresh_if_needed()
        return active.to_dict()
    except Exception as e:
        logger.error(f"Timeline Error: {e}", exc_info=True)
        return {"error": str(e)}, 500

@app.route("/lyrics")
async def lyrics():
    """
    Current display state plus the lines around it.
    Polled by the frontend; only hits the network when the timeline expired.
    """
    try:
        active = await refresh_if_needed()
        state = active.state_at(utc_now())
        data = state.to_dict()
        data["visible"] = state.visible_lines()
        data["valid_until"] = active.valid_until.isoformat()
        return data
    except Exception as e:
        logger.error(f"Lyrics Error: {e}", exc_info=True)
        return {"error": str(e)}, 500

@app.route("/current-track")
async def current_track():
    """Song identity of the current state, without the lyric lines."""
    try:
        active = await refresh_if_needed()
        state = active.state_at(utc_now())
        snapshot = state.snapshot
        if snapshot is None:
            return {"error": "No track playing", "title": state.title, "artist": state.artist}

        return {
            "title": snapshot.title,
            "artist": snapshot.artist,
            "album": snapshot.album,
            "album_art_url": snapshot.album_art_url,
            "track_id": snapshot.track_id,
            "is_playing": snapshot.is_playing,
            "duration_ms": snapshot.duration_ms,
            "elapsed_ms": state.elapsed_ms,
            "elapsed_label": state.elapsed_label,
        }
    except Exception as e:
        logger.error(f"Track Info Error: {e}", exc_info=True)
        return {"error": str(e)}, 500

@app.route("/api/timeline/refresh", methods=['POST'])
async def force_refresh():
    """Run a refresh cycle now, regardless of the active timeline's validity."""
    try:
        active = await refresh_if_needed(force=True)
        logger.info(f"Timeline refreshed on request ({len(active)} entries)")
        return jsonify({"status": "success", "valid_until": active.valid_until.isoformat()})
    except Exception as e:
        logger.error(f"Timeline Refresh Error: {e}", exc_info=True)
        return jsonify({"error": str(e)}), 500

@app.route("/api/stats")
async def stats():
    """Spotify request counters, for troubleshooting rate limits."""
    builder = get_timeline_builder()
    return jsonify(builder.spotify.get_request_stats())
