"""Kodi JSON-RPC API client over WebSocket, with an HTTP fallback.

Kodi serves JSON-RPC on two endpoints:
- WebSocket (default port 9090): requests plus server-pushed notifications
  such as "Player.OnAVStart".
- HTTP POST to /jsonrpc (default port 8080): requests only. Used when the
  WebSocket is down and for the "JSONRPC.Ping" reachability probe.
"""

import asyncio
import base64
import json
import logging
import urllib.request
from collections.abc import Callable, Iterable
from contextlib import suppress
from typing import Any

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from kodictrl.api.protocol import (
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    KodiRpcError,
)
from kodictrl.models.host import KodiHost

logger = logging.getLogger(__name__)

# Type aliases for event handlers
ConnectionHandler = Callable[[bool], None]
NotificationHandler = Callable[[JsonRpcNotification], None]
ErrorHandler = Callable[[Exception], None]

PONG = "pong"


class KodiClient:
    """Async client for the Kodi JSON-RPC API.

    Example:
        async with KodiClient(KodiHost("192.168.1.50")) as client:
            players = await client.get_active_players()
            if players:
                await client.player_stop(players[-1]["playerid"])
    """

    _DEFAULT_TIMEOUT: float = 10.0
    # Library queries can return multi-megabyte responses
    _MAX_MESSAGE_SIZE: int = 8 * 1024 * 1024

    def __init__(self, host: KodiHost | None = None, timeout: float = _DEFAULT_TIMEOUT) -> None:
        """Initialize the client.

        Args:
            host: Kodi host to talk to (can be set later with set_host).
            timeout: Connection/operation timeout in seconds.
        """
        self._host = host
        self._timeout = timeout
        self._ws: ClientConnection | None = None
        self._request_id: int = 0
        self._pending: dict[int, asyncio.Future[JsonRpcResponse]] = {}
        self._connected: bool = False
        self._receive_task: asyncio.Task[None] | None = None
        self._connect_lock = asyncio.Lock()

        # Event handlers
        self._on_connection_changed: ConnectionHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._notification_listeners: list[NotificationHandler] = []

    @property
    def host(self) -> KodiHost | None:
        """Return the target host."""
        return self._host

    @property
    def timeout(self) -> float:
        """Return the request timeout in seconds."""
        return self._timeout

    @property
    def is_connected(self) -> bool:
        """Return True if the WebSocket is open."""
        return self._connected and self._ws is not None

    def set_host(self, host: KodiHost | None) -> None:
        """Point the client at another host.

        Takes effect on the next connect() or HTTP request; callers
        disconnect first when switching hosts.
        """
        self._host = host

    def set_event_handlers(
        self,
        on_connection_changed: ConnectionHandler | None = None,
        on_error: ErrorHandler | None = None,
    ) -> None:
        """Set event handlers for client events.

        Args:
            on_connection_changed: Called with True/False when the WebSocket opens/closes.
            on_error: Called with transport errors.
        """
        self._on_connection_changed = on_connection_changed
        self._on_error = on_error

    def set_error_handler(self, on_error: ErrorHandler | None) -> None:
        """Replace only the error handler."""
        self._on_error = on_error

    def add_notification_listener(self, listener: NotificationHandler) -> None:
        """Subscribe to server notifications."""
        self._notification_listeners.append(listener)

    def remove_notification_listener(self, listener: NotificationHandler) -> None:
        """Unsubscribe from server notifications (no-op if not subscribed)."""
        with suppress(ValueError):
            self._notification_listeners.remove(listener)

    async def __aenter__(self) -> "KodiClient":
        """Enter async context (connect)."""
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context (disconnect)."""
        await self.disconnect()

    async def connect(self) -> None:
        """Open the WebSocket to the current host.

        Raises:
            ConnectionError: If no host is set or the connection fails.
        """
        # Concurrent callers share the connection opened by the first one
        async with self._connect_lock:
            if self._connected:
                return
            if self._host is None:
                raise ConnectionError("No Kodi host configured")

            url = self._host.ws_url
            try:
                ws = await connect(
                    url,
                    open_timeout=self._timeout,
                    max_size=self._MAX_MESSAGE_SIZE,
                )
            except (OSError, TimeoutError, WebSocketException) as e:
                raise ConnectionError(f"Failed to connect to {url}: {e}") from e

            logger.info("WebSocket connected to %s", url)
            self._ws = ws
            self._connected = True
            self._receive_task = asyncio.create_task(self._receive_loop(ws))
        self._emit_connection_changed(True)

    async def disconnect(self) -> None:
        """Close the WebSocket (no-op if not connected)."""
        if self._receive_task:
            self._receive_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._receive_task
            self._receive_task = None

        if self._ws:
            try:
                await asyncio.wait_for(self._ws.close(), timeout=1.0)
            except (OSError, TimeoutError, WebSocketException):
                pass
            self._ws = None

        self._fail_pending(ConnectionError("Connection closed"))
        self._mark_disconnected()

    async def _receive_loop(self, ws: ClientConnection) -> None:
        """Background task to receive and dispatch messages from ws."""
        try:
            async for message in ws:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError as e:
                    logger.debug("Ignoring malformed message: %s", e)
                    self._emit_error(e)
                    continue
                if isinstance(data, dict):
                    self._handle_message(data)
        except ConnectionClosed as e:
            logger.warning("WebSocket to %s closed: %s", self._host.ws_url if self._host else "?", e)
            self._emit_error(e)
        except asyncio.CancelledError:
            pass
        finally:
            self._fail_pending(ConnectionError("Connection closed"))
            self._mark_disconnected()

    def _handle_message(self, data: dict[str, Any]) -> None:
        """Handle an incoming message."""
        # Notifications carry a method but no id
        if "id" not in data and "method" in data:
            notification = JsonRpcNotification.from_dict(data)
            logger.debug("Notification %s", notification.method)
            for listener in list(self._notification_listeners):
                try:
                    listener(notification)
                except Exception:
                    logger.exception("Notification listener failed for %s", notification.method)
            return

        response_id = data.get("id")
        if isinstance(response_id, int):
            future = self._pending.pop(response_id, None)
            if future and not future.done():
                future.set_result(JsonRpcResponse.from_dict(data))

    def _mark_disconnected(self) -> None:
        if not self._connected:
            return
        self._connected = False
        logger.info("WebSocket disconnected")
        self._emit_connection_changed(False)

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()

    def _emit_connection_changed(self, connected: bool) -> None:
        if self._on_connection_changed:
            self._on_connection_changed(connected)

    def _emit_error(self, error: Exception) -> None:
        if self._on_error:
            self._on_error(error)

    def _next_id(self) -> int:
        """Generate next request ID."""
        self._request_id += 1
        return self._request_id

    async def _send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Send a request over the WebSocket and wait for its response.

        Raises:
            ConnectionError: If not connected or the request times out.
        """
        if not self.is_connected or self._ws is None:
            raise ConnectionError("Not connected to Kodi")

        future: asyncio.Future[JsonRpcResponse] = asyncio.get_running_loop().create_future()
        self._pending[request.id] = future

        try:
            await self._ws.send(json.dumps(request.to_dict()))
            return await asyncio.wait_for(future, timeout=self._timeout)
        except TimeoutError:
            raise ConnectionError(f"Request {request.id} ({request.method}) timed out") from None
        except (OSError, WebSocketException) as e:
            raise ConnectionError(f"Request {request.id} ({request.method}) failed: {e}") from e
        finally:
            self._pending.pop(request.id, None)

    async def http_call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Call a JSON-RPC method over HTTP POST.

        Raises:
            ConnectionError: If no host is set or the request fails.
            KodiRpcError: If Kodi returns an error.
        """
        host = self._host
        if host is None:
            raise ConnectionError("No Kodi host configured")

        request = JsonRpcRequest(self._next_id(), method, params)
        try:
            loop = asyncio.get_event_loop()
            data = await loop.run_in_executor(None, self._post_json, host, request.to_dict())
        except (OSError, ValueError) as e:
            # URLError/HTTPError are OSError; bad JSON is ValueError
            raise ConnectionError(f"HTTP request {method} to {host.http_url} failed: {e}") from e

        if not isinstance(data, dict):
            raise ConnectionError(f"Unexpected HTTP response to {method}: {data!r}")
        return self._unwrap(method, JsonRpcResponse.from_dict(data))

    def _post_json(self, host: KodiHost, payload: dict[str, Any]) -> Any:
        """POST a JSON-RPC payload (blocking)."""
        headers = {"Content-Type": "application/json"}
        if host.has_credentials:
            token = base64.b64encode(f"{host.login}:{host.password}".encode()).decode("ascii")
            headers["Authorization"] = f"Basic {token}"
        req = urllib.request.Request(
            host.http_url,
            data=json.dumps(payload).encode("utf-8"),
            headers=headers,
            method="POST",
        )
        with urllib.request.urlopen(req, timeout=self._timeout) as response:
            return json.loads(response.read().decode("utf-8"))

    @staticmethod
    def _unwrap(method: str, response: JsonRpcResponse) -> Any:
        if not response.is_success:
            raise KodiRpcError(method, response.error or JsonRpcError(-1, "Unknown error"))
        return response.result

    async def call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Call a JSON-RPC method.

        Goes over the WebSocket when it is open, otherwise over HTTP.

        Args:
            method: Method name.
            params: Method parameters.

        Returns:
            The method result.

        Raises:
            ConnectionError: If the host cannot be reached or the request times out.
            KodiRpcError: If Kodi returns an error.
        """
        if not self.is_connected:
            return await self.http_call(method, params)

        logger.debug("-> %s %s", method, params)
        response = await self._send(JsonRpcRequest(self._next_id(), method, params))
        return self._unwrap(method, response)

    async def ping(self) -> bool:
        """Probe HTTP reachability with JSONRPC.Ping.

        Never raises.

        Returns:
            True only if Kodi answered "pong".
        """
        try:
            result = await self.http_call("JSONRPC.Ping")
        except (ConnectionError, KodiRpcError) as e:
            logger.debug("Ping failed: %s", e)
            return False
        return result == PONG

    # Specific Kodi API methods

    async def get_application_properties(
        self,
        properties: Iterable[str] = ("version", "name"),
    ) -> dict[str, Any]:
        """Get application properties (Application.GetProperties).

        Returns:
            Dict such as {"name": "Kodi", "version": {"major": 20, "minor": 2, ...}}.
        """
        result = await self.call("Application.GetProperties", {"properties": list(properties)})
        return result if isinstance(result, dict) else {}

    async def get_active_players(self) -> list[dict[str, Any]]:
        """Get active players (Player.GetActivePlayers).

        Returns:
            List like [{"playerid": 1, "type": "video"}], empty when idle.
        """
        result = await self.call("Player.GetActivePlayers")
        return result if isinstance(result, list) else []

    async def player_open(self, item: dict[str, Any], options: dict[str, Any] | None = None) -> Any:
        """Open an item (Player.Open).

        Args:
            item: Playback descriptor, e.g. {"file": "http://..."}.
            options: Optional Player.Open options, e.g. {"resume": True}.
        """
        params: dict[str, Any] = {"item": item}
        if options:
            params["options"] = options
        return await self.call("Player.Open", params)

    async def player_stop(self, player_id: int) -> Any:
        """Stop a player (Player.Stop)."""
        return await self.call("Player.Stop", {"playerid": player_id})

    async def player_seek(
        self,
        player_id: int,
        percentage: float,
        kodi_major_version: int | None = None,
    ) -> Any:
        """Seek to a percentage of the media (Player.Seek).

        Kodi 18 wraps the value in {"percentage": ...}; older hosts take a
        bare number.
        """
        value: Any = {"percentage": percentage}
        if kodi_major_version is not None and kodi_major_version < 18:  # noqa: PLR2004
            value = percentage
        return await self.call("Player.Seek", {"playerid": player_id, "value": value})

    async def player_set_subtitle(
        self,
        player_id: int,
        enabled: bool,
        index: int | None = None,
    ) -> Any:
        """Select and enable/disable subtitles (Player.SetSubtitle).

        Args:
            player_id: ID of the player.
            enabled: Whether subtitles are shown.
            index: Subtitle stream index; None just toggles "on"/"off".
        """
        subtitle: int | str = index if index is not None else ("on" if enabled else "off")
        return await self.call(
            "Player.SetSubtitle",
            {"playerid": player_id, "subtitle": subtitle, "enable": enabled},
        )

    async def player_set_audio_stream(self, player_id: int, index: int) -> Any:
        """Select an audio stream (Player.SetAudioStream)."""
        return await self.call(
            "Player.SetAudioStream",
            {"playerid": player_id, "stream": index},
        )
