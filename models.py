"""
Data model shared by the providers, the position mapper and the timeline builder.
Every object here is immutable; progression happens by building new ones.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from lyrics import NO_LINE, format_elapsed, visible_window

UNKNOWN_ARTIST = "Unknown Artist"

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(moment: datetime) -> datetime:
    """Aware UTC copy of ``moment``; naive values are taken as local time."""
    return moment.astimezone(timezone.utc)

@dataclass(frozen=True)
class TrackSnapshot:
    """One polled reading of the current playback state."""
    title: str
    artist: str = UNKNOWN_ARTIST
    elapsed_ms: int = 0
    duration_ms: Optional[int] = None
    track_id: Optional[str] = None
    is_playing: bool = True
    album: Optional[str] = None
    album_art_url: Optional[str] = None
    fetched_at: datetime = field(default_factory=utc_now)

    @property
    def track_key(self) -> Any:
        """Identity used to detect a song change between refresh cycles."""
        if self.track_id:
            return self.track_id
        return (self.title.casefold(), self.artist.casefold())

@dataclass(frozen=True)
class LyricSet:
    """Cleaned lyric lines for exactly one (title, artist) pair, in source order."""
    lines: Tuple[str, ...] = ()
    source: Optional[str] = None
    url: Optional[str] = None

    def __post_init__(self):
        cleaned = tuple(line.strip() for line in self.lines if line and line.strip())
        object.__setattr__(self, "lines", cleaned)

    @classmethod
    def from_text(cls, text: str, source: Optional[str] = None, url: Optional[str] = None) -> "LyricSet":
        return cls(tuple(text.splitlines()), source=source, url=url)

    def __len__(self) -> int:
        return len(self.lines)

    def __bool__(self) -> bool:
        return bool(self.lines)

@dataclass(frozen=True)
class DisplayState:
    """One point on the output timeline."""
    at_time: datetime
    line: str
    title: str
    artist: str
    line_index: int = NO_LINE
    lines: Tuple[str, ...] = ()
    elapsed_ms: Optional[int] = None
    snapshot: Optional[TrackSnapshot] = None

    @property
    def elapsed_label(self) -> str:
        return format_elapsed(self.elapsed_ms)

    def visible_lines(self, before: int = 2, after: int = 2) -> List[Dict[str, Any]]:
        """Lines around the current one, for compact surfaces."""
        if not self.lines:
            return [{"text": self.line, "is_current": True}]
        return [
            {"text": text, "is_current": is_current}
            for text, is_current in visible_window(self.lines, self.line_index, before, after)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "at_time": self.at_time.isoformat(),
            "title": self.title,
            "artist": self.artist,
            "line": self.line,
            "line_index": self.line_index,
            "lines": list(self.lines),
            "elapsed_ms": self.elapsed_ms,
            "elapsed_label": self.elapsed_label,
            "is_playing": self.snapshot.is_playing if self.snapshot else False,
            "album_art_url": self.snapshot.album_art_url if self.snapshot else None,
        }

@dataclass(frozen=True)
class SessionTimeline:
    """Finite, ordered display states from one refresh instant plus a revalidation instant."""
    entries: Tuple[DisplayState, ...]
    valid_until: datetime
    created_at: datetime
    snapshot: Optional[TrackSnapshot] = None
    lyric_set: Optional[LyricSet] = None

    def __post_init__(self):
        if not self.entries:
            raise ValueError("A timeline needs at least one display state")

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def is_placeholder(self) -> bool:
        return self.snapshot is None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.valid_until

    def state_at(self, now: datetime) -> DisplayState:
        """Latest entry scheduled at or before ``now`` (the first one if none is)."""
        current = self.entries[0]
        for entry in self.entries:
            if entry.at_time > now:
                break
            current = entry
        return current

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created_at": self.created_at.isoformat(),
            "valid_until": self.valid_until.isoformat(),
            "lyrics_source": self.lyric_set.source if self.lyric_set else None,
            "lyrics_url": self.lyric_set.url if self.lyric_set else None,
            "entries": [entry.to_dict() for entry in self.entries],
        }
