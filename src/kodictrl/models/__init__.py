"""Data models for Kodi hosts, connection state and playlists."""

from kodictrl.models.host import KodiHost, are_hosts_equal
from kodictrl.models.media import ConnectionState, OpenMedia
from kodictrl.models.playlist import KodiPlaybackData, Playlist, PlaylistVideo

__all__ = [
    "ConnectionState",
    "KodiHost",
    "KodiPlaybackData",
    "OpenMedia",
    "Playlist",
    "PlaylistVideo",
    "are_hosts_equal",
]
