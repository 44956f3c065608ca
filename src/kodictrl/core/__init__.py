"""Core business logic layer.

This module holds the connection and playback logic that sits between the
async Kodi client and a consuming UI.

Classes:
    ConfigManager: QSettings wrapper for configuration.
    HostRegistry: Persisted Kodi hosts and the selected one.
    KodiApp: Connection coordinator for the selected host.
    PlaybackSequencer: Open, stop and resume playback.
    EventBus: UI event broadcaster.
"""

from kodictrl.core.app import HostUnreachableError, KodiApp, KodiError, NoHostError
from kodictrl.core.config import ConfigManager
from kodictrl.core.events import EventBus, EventCategory, EventName
from kodictrl.core.hosts import HostRegistry
from kodictrl.core.player import PlaybackSequencer, PlayerStartWatcher, WatcherState
from kodictrl.core.playlist import InMemoryPlaylistProvider, PlaylistProvider

__all__ = [
    "ConfigManager",
    "EventBus",
    "EventCategory",
    "EventName",
    "HostRegistry",
    "HostUnreachableError",
    "InMemoryPlaylistProvider",
    "KodiApp",
    "KodiError",
    "NoHostError",
    "PlaybackSequencer",
    "PlayerStartWatcher",
    "PlaylistProvider",
    "WatcherState",
]
