"""
Session timeline builder.

Each refresh cycle polls Spotify once, fetches lyrics only when the track
changed, and precomputes display states at fixed steps so surfaces can keep
advancing lines without further network calls until ``valid_until``.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from config import TIMELINE
from logging_config import get_logger
from lyrics import NO_LINE, line_at, map_to_line
from models import UNKNOWN_ARTIST, DisplayState, LyricSet, SessionTimeline, TrackSnapshot, as_utc, utc_now
from providers.base import LyricsProvider, NetworkError, ProviderError
from providers.spotify_api import SpotifyAPI

logger = get_logger(__name__)

NOT_PLAYING_TITLE = "Not Playing"
LOGIN_REQUIRED = ("Login to Spotify", "No song currently playing")
NO_ACTIVE_TRACK = ("No track found", "Make sure music is playing on Spotify")
SPOTIFY_UNAVAILABLE = ("Spotify unavailable", "Unable to reach Spotify")

LOADING_LYRICS = "Loading lyrics…"
NO_LYRICS = "No lyrics available"

class SessionTimelineBuilder:
    """
    Owns the active timeline and the only state carried between cycles:
    the lyrics of the track seen last.
    """

    def __init__(self, spotify: SpotifyAPI, lyrics_provider: Optional[LyricsProvider] = None,
                 options: Optional[Dict[str, Any]] = None):
        self.spotify = spotify
        self.lyrics_provider = lyrics_provider

        opts = dict(TIMELINE)
        opts.update(options or {})
        self.entry_count = max(int(opts["entry_count"]), 1)
        self.step = timedelta(seconds=float(opts["step_seconds"]))
        self.refresh_after = timedelta(seconds=float(opts["refresh_after_seconds"]))
        self.idle_refresh = timedelta(seconds=float(opts["idle_refresh_seconds"]))
        self.lead_in_ms = int(opts["lead_in_ms"])
        self.fallback_line_ms = int(opts["fallback_line_ms"])
        self.min_dwell_ms = int(opts["min_dwell_ms"])

        if self.step <= timedelta(0):
            raise ValueError("step_seconds must be positive")

        self._current: Optional[SessionTimeline] = None
        self._track_key: Any = None
        self._lyric_set: Optional[LyricSet] = None
        self._lyrics_placeholder = NO_LYRICS

    @property
    def current_timeline(self) -> Optional[SessionTimeline]:
        return self._current

    def needs_refresh(self, now: Optional[datetime] = None) -> bool:
        now = as_utc(now) if now else utc_now()
        return self._current is None or self._current.is_expired(now)

    def current_state(self, now: Optional[datetime] = None) -> Optional[DisplayState]:
        if self._current is None:
            return None
        return self._current.state_at(as_utc(now) if now else utc_now())

    def reset(self) -> None:
        """Forget the active timeline and the carried lyrics."""
        self._current = None
        self._forget_lyrics()

    async def build_timeline(self, now: Optional[datetime] = None) -> SessionTimeline:
        """Run one refresh cycle and replace the active timeline."""
        now = as_utc(now) if now else utc_now()

        if not self.spotify.has_credential:
            logger.debug("No Spotify credential, emitting login placeholder")
            return self._replace(self._placeholder(now, *LOGIN_REQUIRED))

        try:
            snapshot = await self.spotify.fetch_snapshot()
        except NetworkError as e:
            logger.warning(f"Playback snapshot failed: {e}")
            return self._replace(self._placeholder(now, *SPOTIFY_UNAVAILABLE))

        if snapshot is None:
            return self._replace(self._placeholder(now, *NO_ACTIVE_TRACK))

        lyric_set = await self._lyrics_for(snapshot)
        return self._replace(self._project(now, snapshot, lyric_set))

    async def _lyrics_for(self, snapshot: TrackSnapshot) -> LyricSet:
        if self._lyric_set is not None and snapshot.track_key == self._track_key:
            logger.debug(f"Track unchanged ({snapshot.artist} - {snapshot.title}), reusing {len(self._lyric_set)} lines")
            return self._lyric_set

        logger.info(f"Track changed: {snapshot.artist} - {snapshot.title}")
        self._forget_lyrics()

        if self.lyrics_provider is None or not self.lyrics_provider.enabled:
            self._remember_lyrics(snapshot, LyricSet(), NO_LYRICS)
            return self._lyric_set

        try:
            # Searched by title alone when Spotify lists no artist
            artist = "" if snapshot.artist == UNKNOWN_ARTIST else snapshot.artist
            lyric_set = await self.lyrics_provider.get_lyrics(snapshot.title, artist)
        except NetworkError as e:
            # Not remembered: the next cycle tries again
            logger.warning(f"Lyrics fetch failed for {snapshot.artist} - {snapshot.title}: {e}")
            self._lyrics_placeholder = LOADING_LYRICS
            return LyricSet()
        except ProviderError as e:
            logger.info(f"No lyrics for {snapshot.artist} - {snapshot.title}: {e}")
            self._remember_lyrics(snapshot, LyricSet(), NO_LYRICS)
            return self._lyric_set

        self._remember_lyrics(snapshot, lyric_set, NO_LYRICS)
        return lyric_set

    def _remember_lyrics(self, snapshot: TrackSnapshot, lyric_set: LyricSet, placeholder: str) -> None:
        self._track_key = snapshot.track_key
        self._lyric_set = lyric_set
        self._lyrics_placeholder = placeholder

    def _forget_lyrics(self) -> None:
        self._track_key = None
        self._lyric_set = None
        self._lyrics_placeholder = NO_LYRICS

    def _project(self, now: datetime, snapshot: TrackSnapshot, lyric_set: LyricSet) -> SessionTimeline:
        """Display states from ``now`` onwards, extrapolating the snapshot's position."""
        base_elapsed = snapshot.elapsed_ms
        if snapshot.is_playing:
            # The snapshot is already stale by the time it is used
            staleness_ms = int((now - snapshot.fetched_at).total_seconds() * 1000)
            base_elapsed += max(staleness_ms, 0)

        step_ms = int(self.step.total_seconds() * 1000)
        placeholder = self._lyrics_placeholder
        entries = []
        for i in range(self.entry_count):
            elapsed = base_elapsed + (i * step_ms if snapshot.is_playing else 0)
            index = map_to_line(
                elapsed,
                snapshot.duration_ms,
                len(lyric_set),
                lead_in_ms=self.lead_in_ms,
                fallback_line_ms=self.fallback_line_ms,
                min_dwell_ms=self.min_dwell_ms
            )
            entries.append(DisplayState(
                at_time=now + self.step * i,
                line=line_at(lyric_set.lines, index, placeholder),
                title=snapshot.title,
                artist=snapshot.artist,
                line_index=index,
                lines=lyric_set.lines,
                elapsed_ms=elapsed,
                snapshot=snapshot
            ))

        return SessionTimeline(
            entries=tuple(entries),
            valid_until=now + min(self.refresh_after, self.step * max(self.entry_count - 1, 1)),
            created_at=now,
            snapshot=snapshot,
            lyric_set=lyric_set
        )

    def _placeholder(self, now: datetime, artist: str, line: str) -> SessionTimeline:
        # A stale LyricSet is never carried into a "not playing" state
        self._forget_lyrics()
        state = DisplayState(
            at_time=now,
            line=line,
            title=NOT_PLAYING_TITLE,
            artist=artist,
            line_index=NO_LINE
        )
        return SessionTimeline(
            entries=(state,),
            valid_until=now + self.idle_refresh,
            created_at=now
        )

    def _replace(self, timeline: SessionTimeline) -> SessionTimeline:
        self._current = timeline
        return timeline
