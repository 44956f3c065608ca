"""Test fixtures for kodictrl tests."""

import asyncio
import json
import os
from collections.abc import AsyncGenerator, Generator
from typing import Any
from unittest.mock import MagicMock

# Run Qt headless when no display platform is configured.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
import pytest_asyncio
from websockets.asyncio.server import ServerConnection, serve

from kodictrl.api.client import KodiClient
from kodictrl.core.config import ConfigManager
from kodictrl.core.hosts import HostRegistry
from kodictrl.models.host import KodiHost


class FakeKodiClient(KodiClient):
    """KodiClient whose network side is scripted.

    Requests are recorded in ``calls`` and answered from ``responses``
    (a value, an exception to raise, or a callable taking the params).
    """

    def __init__(self, host: KodiHost | None = None) -> None:
        super().__init__(host, timeout=1.0)
        self.calls: list[tuple[str, dict[str, Any] | None]] = []
        self.responses: dict[str, Any] = {}
        self.connect_error: Exception | None = None
        self.ping_result = True
        self.ping_count = 0
        self.connect_count = 0
        self.disconnect_count = 0

    async def connect(self) -> None:
        self.connect_count += 1
        if self.connect_error is not None:
            raise self.connect_error
        if self._connected:
            return
        self._ws = MagicMock()
        self._connected = True
        self._emit_connection_changed(True)

    async def disconnect(self) -> None:
        self.disconnect_count += 1
        self._ws = None
        self._fail_pending(ConnectionError("Connection closed"))
        self._mark_disconnected()

    def drop(self, error: Exception | None = None) -> None:
        """Simulate the server dropping the WebSocket."""
        self._ws = None
        self._mark_disconnected()
        self._emit_error(error or ConnectionError("connection lost"))

    async def ping(self) -> bool:
        self.ping_count += 1
        return self.ping_result

    async def call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        self.calls.append((method, params))
        response = self.responses.get(method, "OK")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(params)
        return response

    @property
    def methods(self) -> list[str]:
        """Return the called method names in order."""
        return [method for method, _ in self.calls]

    def push(self, method: str, player_id: int) -> None:
        """Deliver a player notification as Kodi would."""
        self._handle_message(player_notification(method, player_id))


def player_notification(method: str, player_id: int) -> dict[str, Any]:
    """Return a Kodi player notification payload."""
    return {
        "jsonrpc": "2.0",
        "method": method,
        "params": {
            "sender": "xbmc",
            "data": {
                "item": {"type": "movie", "id": 42},
                "player": {"playerid": player_id, "speed": 1},
            },
        },
    }


async def drain(rounds: int = 5) -> None:
    """Let scheduled callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def config() -> Generator[ConfigManager, None, None]:
    """Return a fresh ConfigManager for each test."""
    # Use unique organization/app to avoid touching real settings
    config = ConfigManager("KodiCTRLTest", "TestConfig")
    config.clear()
    yield config
    config.clear()


@pytest.fixture
def registry(config: ConfigManager) -> HostRegistry:
    """Return a HostRegistry over the test config."""
    return HostRegistry(config)


@pytest.fixture
def living_room() -> KodiHost:
    """Return a sample host."""
    return KodiHost(host="192.168.1.50", port=8080, name="Living Room")


@pytest.fixture
def bedroom() -> KodiHost:
    """Return a second sample host."""
    return KodiHost(host="192.168.1.51", port=8080, name="Bedroom")


@pytest.fixture
def fake_client() -> FakeKodiClient:
    """Return a scripted client."""
    return FakeKodiClient()


def _mock_kodi_result(method: str) -> Any:
    if method == "JSONRPC.Ping":
        return "pong"
    if method == "Application.GetProperties":
        return {"name": "Kodi", "version": {"major": 20, "minor": 2, "tag": "stable"}}
    if method == "Player.GetActivePlayers":
        return []
    if method in {"Player.Open", "Player.Seek", "Player.SetSubtitle", "Player.SetAudioStream"}:
        return "OK"
    return None


@pytest_asyncio.fixture
async def mock_kodi_server() -> AsyncGenerator[tuple[int, list[dict[str, Any]]], None]:
    """Fixture providing a mock Kodi WebSocket server.

    Player.Open is followed by a Player.OnAVStart notification for player 1.

    Returns:
        Tuple of (port, received requests).
    """
    received: list[dict[str, Any]] = []

    async def handler(websocket: ServerConnection) -> None:
        async for message in websocket:
            data = json.loads(message)
            received.append(data)
            method = data.get("method", "")
            result = _mock_kodi_result(method)

            if result is None:
                response: dict[str, Any] = {
                    "jsonrpc": "2.0",
                    "id": data.get("id"),
                    "error": {"code": -32601, "message": "Method not found."},
                }
            else:
                response = {"jsonrpc": "2.0", "id": data.get("id"), "result": result}
            await websocket.send(json.dumps(response))

            if method == "Player.Open":
                notification = player_notification("Player.OnAVStart", 1)
                await websocket.send(json.dumps(notification))

    async with serve(handler, "127.0.0.1", 0) as server:
        port = next(iter(server.sockets)).getsockname()[1]
        yield port, received


