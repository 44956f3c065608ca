"""JSON-RPC protocol types for Kodi communication."""

from dataclasses import dataclass
from typing import Any

JSONRPC_VERSION = "2.0"


@dataclass(frozen=True)
class JsonRpcRequest:
    """A JSON-RPC 2.0 request.

    Attributes:
        id: Request identifier.
        method: Kodi method name, e.g. "Player.Open".
        params: Method parameters.
    """

    id: int
    method: str
    params: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "id": self.id,
            "method": self.method,
        }
        if self.params is not None:
            result["params"] = self.params
        return result


@dataclass(frozen=True)
class JsonRpcError:
    """A JSON-RPC 2.0 error object returned by Kodi.

    Attributes:
        code: Error code (-32601 method not found, -32602 invalid params...).
        message: Error message.
        data: Additional error data (Kodi puts the offending stack here).
    """

    code: int
    message: str
    data: Any = None

    def __str__(self) -> str:
        """Return error message representation."""
        if self.data:
            return f"[{self.code}] {self.message}: {self.data}"
        return f"[{self.code}] {self.message}"


@dataclass(frozen=True)
class JsonRpcResponse:
    """A JSON-RPC 2.0 response.

    Attributes:
        id: Request identifier matching the request.
        result: Result data (None if error).
        error: Error data (None if success).
    """

    id: int | str | None = None
    result: Any = None
    error: JsonRpcError | None = None

    @property
    def is_success(self) -> bool:
        """Return True if response indicates success."""
        return self.error is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JsonRpcResponse":
        """Create response from JSON dict."""
        error_data = data.get("error")
        error: JsonRpcError | None = None
        if isinstance(error_data, dict):
            error = JsonRpcError(
                code=error_data.get("code", -1),
                message=error_data.get("message", "Unknown error"),
                data=error_data.get("data"),
            )
        return cls(
            id=data.get("id"),
            result=data.get("result"),
            error=error,
        )


@dataclass(frozen=True)
class JsonRpcNotification:
    """A server-initiated Kodi notification such as "Player.OnAVStart".

    Attributes:
        method: Notification method name.
        params: Notification parameters ({"sender": "xbmc", "data": {...}}).
    """

    method: str
    params: dict[str, Any] | None = None

    @property
    def data(self) -> dict[str, Any]:
        """Return the notification payload ("params.data"), or empty dict."""
        if not self.params:
            return {}
        data = self.params.get("data")
        return data if isinstance(data, dict) else {}

    @property
    def player_id(self) -> int | None:
        """Return "params.data.player.playerid" if present."""
        player = self.data.get("player")
        if not isinstance(player, dict):
            return None
        player_id = player.get("playerid")
        return player_id if isinstance(player_id, int) else None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JsonRpcNotification":
        """Create notification from JSON dict."""
        params = data.get("params")
        return cls(
            method=data.get("method", ""),
            params=params if isinstance(params, dict) else None,
        )


class KodiRpcError(RuntimeError):
    """Raised when Kodi answers a request with a JSON-RPC error."""

    def __init__(self, method: str, error: JsonRpcError) -> None:
        super().__init__(f"{method} failed: {error}")
        self.method = method
        self.error = error
