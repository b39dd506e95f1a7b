from dataclasses import dataclass
from typing import Optional

NO_TRACK = "No track currently playing"


@dataclass(frozen=True)
class TrackDetails:
    name: str
    artists: str  # comma separated
    album: str
    progress: float  # fraction of the track played, 0 to 1


def join_artists(artists) -> str:
    return ", ".join(a["name"] for a in artists or [])


def compute_progress(progress_ms, duration_ms) -> float:
    if not duration_ms or duration_ms <= 0:
        return 0.0
    return min(max((progress_ms or 0) / duration_ms, 0.0), 1.0)


def track_details_from_playback(playback) -> Optional[TrackDetails]:
    """Turn a currently-playing payload into TrackDetails, or None if idle."""
    if not playback or not playback.get("item"):
        return None

    item = playback["item"]
    return TrackDetails(
        name=item.get("name", ""),
        artists=join_artists(item.get("artists")),
        album=(item.get("album") or {}).get("name", ""),
        progress=compute_progress(playback.get("progress_ms"), item.get("duration_ms")),
    )


def fetch_track_details(sp) -> Optional[TrackDetails]:
    return track_details_from_playback(sp.current_user_playing_track())


def format_line(details: Optional[TrackDetails]) -> str:
    if details is None:
        return NO_TRACK
    return f"{details.name} - {details.artists}"


def format_detailed(details: Optional[TrackDetails]) -> str:
    if details is None:
        return NO_TRACK + "\n"
    return (
        f"Track: {details.name}\n"
        f"Artists: {details.artists}\n"
        f"Album: {details.album}\n"
        f"Progress: {details.progress:.2f}\n"
    )


FORMATTERS = {
    "line": format_line,
    "detailed": format_detailed,
}
