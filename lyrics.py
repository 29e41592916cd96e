"""
Lyric position mapping.

Lyrics scraped from Genius carry no timestamps, so the current line is
estimated from playback progress: a fixed lead-in covers the intro, then the
remaining time is spread evenly over the lines. Lyric density is assumed to be
uniform across the track, which is wrong for songs with long instrumental
sections; that approximation is accepted.
"""
from typing import Iterator, Optional, Sequence, Tuple

# Returned when there are no lines to point at
NO_LINE = -1

DEFAULT_LEAD_IN_MS = 3000
DEFAULT_FALLBACK_LINE_MS = 4000

def map_to_line(
    elapsed_ms: int,
    duration_ms: Optional[int],
    line_count: int,
    *,
    lead_in_ms: int = DEFAULT_LEAD_IN_MS,
    fallback_line_ms: int = DEFAULT_FALLBACK_LINE_MS,
    min_dwell_ms: int = 0
) -> int:
    """
    Returns the index of the lyric line for a playback position.

    Args:
        elapsed_ms: Playback position in milliseconds
        duration_ms: Track length in milliseconds, None or <= 0 if unknown
        line_count: Number of lyric lines
        lead_in_ms: Time subtracted from the position before mapping
        fallback_line_ms: Assumed time per line when the duration is unknown
        min_dwell_ms: Minimum time each line stays on screen, 0 disables

    Returns:
        int: Index in [0, line_count - 1], or NO_LINE when line_count is 0
    """
    if line_count <= 0:
        return NO_LINE

    adjusted = max((elapsed_ms or 0) - lead_in_ms, 0)

    if not duration_ms or duration_ms <= 0:
        index = adjusted // fallback_line_ms
    else:
        index = int(adjusted / duration_ms * line_count)

    # Reading-speed floor: never advance faster than one line per min_dwell_ms
    if min_dwell_ms > 0:
        index = min(index, adjusted // min_dwell_ms)

    return int(min(max(index, 0), line_count - 1))

def line_at(lines: Sequence[str], index: int, placeholder: str) -> str:
    """Text of the line at ``index``, or ``placeholder`` when out of range."""
    if lines and 0 <= index < len(lines):
        return lines[index]
    return placeholder

def visible_window(lines: Sequence[str], index: int, before: int = 2, after: int = 2) -> Iterator[Tuple[str, bool]]:
    """Yields (text, is_current) for the lines surrounding ``index``."""
    if not lines:
        return
    safe_index = min(max(index, 0), len(lines) - 1)
    start = max(0, safe_index - before)
    end = min(len(lines), safe_index + after + 1)
    for i in range(start, end):
        yield lines[i], i == safe_index

def format_elapsed(ms: Optional[int]) -> str:
    """Formats milliseconds as m:ss."""
    if ms is None or ms < 0:
        return "--:--"
    total_seconds = int(ms) // 1000
    return f"{total_seconds // 60}:{total_seconds % 60:02d}"
