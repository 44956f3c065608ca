"""Playlist lookup used when resuming a video on Kodi.

Defines the provider protocol and an in-memory provider.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from kodictrl.models.playlist import Playlist, PlaylistVideo

logger = logging.getLogger(__name__)


class PlaylistProvider(ABC):
    """Abstract base class for playlist sources.

    Subclasses resolve the playlist a video belongs to, so that its saved
    subtitle and audio stream preferences can be restored.
    """

    @abstractmethod
    async def get_playlist_from_item(self, item: PlaylistVideo) -> Playlist | None:
        """Return the playlist holding item.

        Args:
            item: The entry being resumed.

        Returns:
            The Playlist if known, None otherwise.
        """


class InMemoryPlaylistProvider(PlaylistProvider):
    """Playlist provider backed by a dict.

    Looks up by the item's playlist_id first, then by URL.

    Example:
        provider = InMemoryPlaylistProvider([playlist])
        found = await provider.get_playlist_from_item(video)
    """

    def __init__(self, playlists: Iterable[Playlist] = ()) -> None:
        """Initialize with known playlists.

        Args:
            playlists: Playlists to serve.
        """
        self._playlists: dict[str, Playlist] = {p.id: p for p in playlists}

    def add(self, playlist: Playlist) -> None:
        """Add or replace a playlist."""
        self._playlists[playlist.id] = playlist

    def remove(self, playlist_id: str) -> bool:
        """Remove a playlist by ID.

        Returns:
            True if the playlist was removed, False if not found.
        """
        return self._playlists.pop(playlist_id, None) is not None

    async def get_playlist_from_item(self, item: PlaylistVideo) -> Playlist | None:
        """Return the playlist holding item, or None."""
        if item.playlist_id is not None:
            return self._playlists.get(item.playlist_id)

        for playlist in self._playlists.values():
            if any(entry.url == item.url for entry in playlist.items):
                return playlist

        logger.debug("No playlist holds %s", item.url)
        return None
