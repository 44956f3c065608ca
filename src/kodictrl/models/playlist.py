"""Playlist models consumed when resuming a video."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kodictrl.models.media import OpenMedia


@dataclass(frozen=True, slots=True)
class KodiPlaybackData:
    """Subtitle and audio stream preferences saved with a playlist.

    Attributes:
        subtitle_enabled: Whether subtitles were shown.
        current_subtitle_index: Index of the selected subtitle stream.
        current_audio_stream: Index of the selected audio stream.
    """

    subtitle_enabled: bool = False
    current_subtitle_index: int | None = None
    current_audio_stream: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KodiPlaybackData:
        """Create from the "kodi" entry of a playlist's custom data."""
        subtitle_index = data.get("currentSubtitleIndex", data.get("current_subtitle_index"))
        audio_stream = data.get("currentAudioStream", data.get("current_audio_stream"))
        return cls(
            subtitle_enabled=bool(data.get("subtitleEnabled", data.get("subtitle_enabled", False))),
            current_subtitle_index=int(subtitle_index) if subtitle_index is not None else None,
            current_audio_stream=int(audio_stream) if audio_stream is not None else None,
        )


@dataclass(frozen=True, slots=True)
class PlaylistVideo:
    """A playlist entry with a resume point.

    Attributes:
        url: Playable URL sent to Kodi.
        current_seconds: Resume position in seconds.
        total_seconds: Duration in seconds.
        label: Display label.
        open_media: Metadata published when the video is opened.
        playlist_id: ID of the playlist that holds this entry.
    """

    url: str
    current_seconds: float = 0
    total_seconds: float = 0
    label: str = ""
    open_media: OpenMedia | None = None
    playlist_id: str | None = None


@dataclass(frozen=True, slots=True)
class Playlist:
    """A playlist and its custom data.

    Attributes:
        id: Playlist identifier.
        label: Display label.
        items: Entries in play order.
        custom_data: Free-form data; the "kodi" key holds playback preferences.
    """

    id: str
    label: str = ""
    items: tuple[PlaylistVideo, ...] = ()
    custom_data: dict[str, Any] = field(default_factory=dict)

    @property
    def kodi_data(self) -> KodiPlaybackData | None:
        """Return parsed Kodi playback preferences, or None if not stored."""
        raw = self.custom_data.get("kodi")
        if not isinstance(raw, dict) or not raw:
            return None
        return KodiPlaybackData.from_dict(raw)
