"""Playback sequencing: open media, wait for it to start, resume position.

Kodi acknowledges Player.Open before playback actually starts, so resuming
a video waits for the start notification before seeking and restoring the
subtitle and audio stream selection.
"""

import asyncio
import logging
import math
from enum import Enum
from typing import Any

from PySide6.QtCore import QObject, Signal

from kodictrl.api.client import KodiClient
from kodictrl.api.protocol import JsonRpcNotification
from kodictrl.core.app import KodiApp
from kodictrl.core.events import EventBus, EventCategory, EventName
from kodictrl.core.playlist import PlaylistProvider
from kodictrl.models.media import OpenMedia
from kodictrl.models.playlist import PlaylistVideo

logger = logging.getLogger(__name__)

ON_AV_START = "Player.OnAVStart"
ON_PLAY = "Player.OnPlay"

# Kodi 18 introduced Player.OnAVStart; older hosts only send Player.OnPlay
AV_START_MIN_MAJOR_VERSION = 18
# How long an OnPlay waits for a real OnAVStart before it counts as the start
LEGACY_START_DELAY = 3.0
# Resume slightly before the saved position to cover startup lag
RESUME_REWIND_SECONDS = 5
DEFAULT_START_TIMEOUT = 30.0


def compute_resume_percentage(current_seconds: float, total_seconds: float) -> int:
    """Return the seek target in percent for a saved resume point.

    Rounds half up and clamps to 0-100; 0 if the duration is unknown.
    """
    if total_seconds <= 0:
        return 0
    percentage = math.floor(
        ((current_seconds - RESUME_REWIND_SECONDS) / total_seconds) * 100 + 0.5
    )
    return max(0, min(100, percentage))


class WatcherState(Enum):
    """Lifecycle of a PlayerStartWatcher."""

    IDLE = "idle"
    AWAITING_START = "awaiting_start"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class PlayerStartWatcher:
    """Resolves with the player ID once playback really starts.

    Player.OnAVStart resolves immediately. On hosts older than Kodi 18,
    Player.OnPlay resolves after a delay unless an OnAVStart arrives first.
    The watcher unsubscribes as soon as it resolves or is cancelled.

    Example:
        watcher = PlayerStartWatcher(client, kodi_major_version=20)
        watcher.start()
        await client.player_open({"file": url})
        player_id = await watcher.wait(timeout=30)
    """

    def __init__(
        self,
        client: KodiClient,
        kodi_major_version: int | None,
        legacy_delay: float = LEGACY_START_DELAY,
    ) -> None:
        """Initialize the watcher.

        Args:
            client: Transport delivering notifications.
            kodi_major_version: Host major version (None if unknown).
            legacy_delay: Seconds an OnPlay waits before it counts.
        """
        self._client = client
        self._accepts_on_play = (
            kodi_major_version is not None
            and 0 < kodi_major_version < AV_START_MIN_MAJOR_VERSION
        )
        self._legacy_delay = legacy_delay
        self._state = WatcherState.IDLE
        self._future: asyncio.Future[int] | None = None
        self._timer: asyncio.TimerHandle | None = None

    @property
    def state(self) -> WatcherState:
        """Return the watcher state."""
        return self._state

    def start(self) -> "asyncio.Future[int]":
        """Subscribe to notifications.

        Returns:
            Future resolving with the player ID.

        Raises:
            RuntimeError: If the watcher was already started.
        """
        if self._state is not WatcherState.IDLE:
            raise RuntimeError(f"Watcher already {self._state.value}")
        self._future = asyncio.get_running_loop().create_future()
        self._client.add_notification_listener(self._on_notification)
        self._state = WatcherState.AWAITING_START
        return self._future

    async def wait(self, timeout: float | None = None) -> int:
        """Wait for the player ID, starting the watcher if needed.

        Args:
            timeout: Seconds to wait; None waits forever.

        Raises:
            TimeoutError: If playback did not start in time.
        """
        future = self.start() if self._state is WatcherState.IDLE else self._future
        if future is None:
            raise RuntimeError(f"Watcher already {self._state.value}")
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            self.cancel()

    def cancel(self) -> None:
        """Stop watching (no-op once resolved)."""
        if self._state in (WatcherState.RESOLVED, WatcherState.CANCELLED):
            return
        self._state = WatcherState.CANCELLED
        self._teardown()
        if self._future and not self._future.done():
            self._future.cancel()

    def _on_notification(self, notification: JsonRpcNotification) -> None:
        if self._state is not WatcherState.AWAITING_START:
            return

        if notification.method == ON_AV_START:
            player_id = notification.player_id
            if player_id is None:
                logger.debug("Ignoring %s without player ID", ON_AV_START)
                return
            self._resolve(player_id)
        elif self._accepts_on_play and notification.method == ON_PLAY:
            player_id = notification.player_id
            if player_id is None:
                return
            self._cancel_timer()
            self._timer = asyncio.get_running_loop().call_later(
                self._legacy_delay, self._resolve, player_id
            )

    def _resolve(self, player_id: int) -> None:
        if self._state is not WatcherState.AWAITING_START:
            return
        self._state = WatcherState.RESOLVED
        self._teardown()
        if self._future and not self._future.done():
            self._future.set_result(player_id)
        logger.debug("Playback started on player %d", player_id)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _teardown(self) -> None:
        self._cancel_timer()
        self._client.remove_notification_listener(self._on_notification)


class PlaybackSequencer(QObject):
    """Opens media on Kodi and resumes videos at their saved position.

    Example:
        sequencer = PlaybackSequencer(app, events, playlist_provider)
        sequencer.open_media_changed.connect(show_now_playing)
        await sequencer.open_url("http://example.com/movie.mkv")
        await sequencer.resume_playlist_video(video)
    """

    open_media_changed = Signal(object)  # OpenMedia | None

    def __init__(
        self,
        app: KodiApp,
        events: EventBus,
        playlist_provider: PlaylistProvider | None = None,
        legacy_start_delay: float = LEGACY_START_DELAY,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the sequencer.

        Args:
            app: Connection coordinator (also provides the transport).
            events: Bus for "opened" UI events.
            playlist_provider: Resolves playlists when resuming.
            legacy_start_delay: Delay before an OnPlay counts as started.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self._app = app
        self._client = app.client
        self._events = events
        self._playlist_provider = playlist_provider
        self._legacy_start_delay = legacy_start_delay
        self._open_media: OpenMedia | None = None

    @property
    def open_media(self) -> OpenMedia | None:
        """Return the last published open media."""
        return self._open_media

    def _set_open_media(self, open_media: OpenMedia | None) -> None:
        self._open_media = open_media
        self.open_media_changed.emit(open_media)

    async def stop_playing_if_any(self) -> bool:
        """Stop the active player, if any.

        With several active players, the last one listed is stopped.

        Returns:
            True.
        """
        players = await self._client.get_active_players()
        self._set_open_media(None)

        if not players:
            return True

        player_id = players[-1].get("playerid")
        if player_id is None:
            logger.warning("Active player without ID: %s", players[-1])
            return True
        logger.info("Stopping player %s", player_id)
        await self._client.player_stop(player_id)
        return True

    async def open(
        self,
        item: dict[str, Any],
        open_media: OpenMedia | None = None,
        emit_remote_open_event: bool = True,
    ) -> bool:
        """Stop current playback and open item.

        Args:
            item: Player.Open item, e.g. {"file": url}.
            open_media: Metadata published once opened.
            emit_remote_open_event: Whether to ask the UI to show the remote.

        Returns:
            True once opened.
        """
        await self.stop_playing_if_any()
        await self._client.player_open(item)
        logger.info("Opened %s", item)

        if emit_remote_open_event:
            self._events.publish(EventCategory.KODI_REMOTE, EventName.OPEN)
        if open_media is not None:
            self._set_open_media(open_media)
        self._events.publish(EventCategory.KODI, EventName.OPEN)
        return True

    async def open_url(
        self,
        url: str,
        open_media: OpenMedia | None = None,
        emit_remote_open_event: bool = True,
    ) -> bool:
        """Open a URL or file path on Kodi."""
        return await self.open({"file": url}, open_media, emit_remote_open_event)

    def watch_player_start(self, kodi_major_version: int | None) -> PlayerStartWatcher:
        """Return a started watcher for the next playback start."""
        watcher = PlayerStartWatcher(self._client, kodi_major_version, self._legacy_start_delay)
        watcher.start()
        return watcher

    async def get_player_id_on_start(
        self,
        kodi_major_version: int | None,
        timeout: float | None = None,
    ) -> int:
        """Wait for playback to start and return the player ID.

        Args:
            kodi_major_version: Host major version.
            timeout: Seconds to wait; None waits forever.

        Raises:
            TimeoutError: If playback did not start in time.
        """
        return await self.watch_player_start(kodi_major_version).wait(timeout)

    async def get_kodi_major_version(self) -> int | None:
        """Return the host's major version, or None if not reported."""
        properties = await self._client.get_application_properties()
        version = properties.get("version")
        if isinstance(version, dict) and isinstance(version.get("major"), int):
            return version["major"]
        return None

    async def resume_playlist_video(
        self,
        item: PlaylistVideo,
        start_timeout: float | None = DEFAULT_START_TIMEOUT,
    ) -> bool:
        """Open a playlist video and resume it at its saved position.

        Steps run strictly in order and the first failure aborts the rest:
        ensure connection, read the host version, open the URL, wait for
        playback to start, seek, then restore subtitle and audio stream.

        Args:
            item: Video to resume.
            start_timeout: Seconds to wait for playback to start.

        Returns:
            True once every command succeeded.

        Raises:
            NoHostError: If no host is selected.
            HostUnreachableError: If the host cannot be reached.
            TimeoutError: If playback did not start in time.
        """
        await self._app.check_and_connect_to_current_host()
        major_version = await self.get_kodi_major_version()

        # Subscribe before opening so a fast OnAVStart cannot be missed
        watcher = self.watch_player_start(major_version)
        try:
            await self.open_url(item.url, item.open_media)
        except BaseException:
            watcher.cancel()
            raise
        player_id = await watcher.wait(start_timeout)

        playlist = None
        if self._playlist_provider is not None:
            playlist = await self._playlist_provider.get_playlist_from_item(item)

        seek = compute_resume_percentage(item.current_seconds, item.total_seconds)
        logger.info("Resuming player %d at %d%%", player_id, seek)
        await self._client.player_seek(player_id, seek, major_version)

        kodi_data = playlist.kodi_data if playlist is not None else None
        if kodi_data is not None:
            await self._client.player_set_subtitle(
                player_id,
                kodi_data.subtitle_enabled,
                kodi_data.current_subtitle_index,
            )
            if kodi_data.current_audio_stream is not None:
                await self._client.player_set_audio_stream(
                    player_id, kodi_data.current_audio_stream
                )
        return True
