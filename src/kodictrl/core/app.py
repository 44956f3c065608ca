"""Connection coordinator for the current Kodi host.

KodiApp owns the current host and the connection to it. It republishes
transport connectivity as ConnectionState through a Qt signal, falls back to
an HTTP ping when the WebSocket fails, and stays quiet while the app is in
the background.
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from PySide6.QtCore import QObject, Signal

from kodictrl.api.client import KodiClient
from kodictrl.core.hosts import HostRegistry
from kodictrl.models.host import KodiHost
from kodictrl.models.media import ConnectionState

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_GRACE = 1.0


class KodiError(Exception):
    """Base class for coordinator errors."""

    code = "kodiError"


class NoHostError(KodiError):
    """No Kodi host is selected."""

    code = "noHost"


class HostUnreachableError(KodiError):
    """The selected host did not answer after a connection attempt."""

    code = "hostUnreachable"


class KodiApp(QObject):
    """Keeps the app connected to the selected Kodi host.

    Example:
        app = KodiApp(KodiClient(), HostRegistry(ConfigManager()))
        app.connection_changed.connect(lambda s: print(s.is_connected))
        await app.connect_to_default_host()
        await app.check_and_connect_to_current_host()
    """

    connection_changed = Signal(object)  # ConnectionState

    def __init__(
        self,
        client: KodiClient,
        registry: HostRegistry,
        connect_grace: float = DEFAULT_CONNECT_GRACE,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            client: Transport to the Kodi host.
            registry: Source of the current host.
            connect_grace: Seconds to wait for a connection before checking it.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self._client = client
        self._registry = registry
        self._connect_grace = connect_grace

        self._current_host: KodiHost | None = None
        self._is_connected = False
        self._is_ws_connected = False
        self._app_in_background = False
        self._initialized = False

        self._last_transport_state: bool | None = None
        self._published: ConnectionState | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._probes: set[asyncio.Task[Any]] = set()
        self._host_lock = asyncio.Lock()

        self._registry.current_host_changed.connect(self._on_current_host_changed)

    @property
    def client(self) -> KodiClient:
        """Return the transport."""
        return self._client

    @property
    def current_host(self) -> KodiHost | None:
        """Return the host the coordinator is bound to."""
        return self._current_host

    @property
    def is_connected(self) -> bool:
        """Return True if connected via WebSocket or reachable via HTTP."""
        return self._is_connected

    @property
    def is_ws_connected(self) -> bool:
        """Return True if connected via WebSocket."""
        return self._is_ws_connected

    @property
    def app_in_background(self) -> bool:
        """Return True while the app is backgrounded."""
        return self._app_in_background

    @property
    def connection_state(self) -> ConnectionState:
        """Return the current connectivity snapshot."""
        return ConnectionState(self._is_connected, self._is_ws_connected)

    def initialize(self) -> None:
        """Subscribe to transport connectivity (once)."""
        if self._initialized:
            return
        self._initialized = True
        self._client.set_event_handlers(on_connection_changed=self._on_transport_connection_changed)

    async def connect_to_default_host(self) -> None:
        """Connect to the registry's current host.

        Switching hosts disconnects from the previous one first. Concurrent
        calls run one after the other.
        """
        async with self._host_lock:
            host = self._registry.get_current_host()

            if host is None:
                self._current_host = None
                self._client.set_host(None)
                await self.disconnect()
                return

            if host != self._current_host:
                await self.disconnect()
                self._current_host = host
                self._client.set_host(host)

            await self.connect()

    async def connect(self) -> None:
        """Open the WebSocket, falling back to an HTTP ping on failure."""
        self.initialize()
        self._client.set_error_handler(self._on_transport_error)

        try:
            await self._client.connect()
        except ConnectionError as e:
            logger.warning("WebSocket connection failed: %s", e)
            await self._check_http_reachability()

    async def disconnect(self) -> None:
        """Close the connection and publish the disconnected state.

        Reachability probes still pending from earlier transport errors are
        cancelled.
        """
        self._client.set_error_handler(None)
        for probe in list(self._probes):
            probe.cancel()
        self._probes.clear()
        await self._client.disconnect()

        self._is_connected = False
        self._is_ws_connected = False
        self._publish()

    def app_goes_in_background(self) -> None:
        """Stop republishing connectivity until the app returns."""
        self._app_in_background = True

    async def app_goes_out_background(self) -> None:
        """Resume, then reconnect or drop a stale connection."""
        self._app_in_background = False

        if not self._is_connected:
            await self.connect_to_default_host()
            return

        if await self._client.ping():
            await self.connect()
        else:
            await self.disconnect()

    async def check_and_connect_to_current_host(self) -> bool:
        """Make sure the current host is connected.

        Returns:
            True when connected.

        Raises:
            NoHostError: If no host is selected.
            HostUnreachableError: If the host is still unreachable after the
                grace period.
        """
        host = self._current_host
        if host is None:
            raise NoHostError("No Kodi host selected")

        if not self._is_connected:
            await self.connect()
            await asyncio.sleep(self._connect_grace)
        else:
            await self.connect()

        if not self._is_connected:
            raise HostUnreachableError(f"{host.display_name} is unreachable")
        return True

    async def close(self) -> None:
        """Disconnect and stop following the registry."""
        self._registry.current_host_changed.disconnect(self._on_current_host_changed)
        for task in list(self._tasks):
            task.cancel()
        await self.disconnect()

    async def _check_http_reachability(self) -> None:
        reachable = await self._client.ping()
        logger.info(
            "Kodi %s via HTTP",
            "reachable" if reachable else "unreachable",
        )
        self._is_connected = reachable
        self._is_ws_connected = self._client.is_connected
        self._publish()

    def _on_transport_connection_changed(self, connected: bool) -> None:
        if connected == self._last_transport_state:
            return
        self._last_transport_state = connected

        if self._app_in_background:
            logger.debug("Ignoring connectivity change while in background")
            return

        logger.info("Kodi %s", "connected" if connected else "disconnected")
        self._is_connected = connected
        self._is_ws_connected = connected
        self._publish()

    def _on_transport_error(self, error: Exception) -> None:
        logger.warning("Transport error: %s", error)
        probe = self._schedule(self._check_http_reachability)
        if probe is not None:
            self._probes.add(probe)

    def _on_current_host_changed(self, host: object) -> None:
        logger.debug("Current host changed to %s, reconnecting", host)
        self._schedule(self.connect_to_default_host)

    def _publish(self) -> None:
        state = self.connection_state
        if state == self._published:
            return
        self._published = state
        self.connection_changed.emit(state)

    def _schedule(
        self, factory: Callable[[], Coroutine[Any, Any, None]]
    ) -> asyncio.Task[None] | None:
        """Run a coroutine on the running loop, if any.

        Returns:
            The task, or None when no event loop is running.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop running (e.g. registry edited from sync code)
            logger.debug("No event loop running, skipping %s", factory.__name__)
            return None
        task = loop.create_task(factory())
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        self._probes.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background connection task failed", exc_info=task.exception())
