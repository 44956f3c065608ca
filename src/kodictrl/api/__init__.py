"""API client for Kodi JSON-RPC over WebSocket and HTTP."""

from kodictrl.api.client import KodiClient
from kodictrl.api.protocol import (
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    KodiRpcError,
)

__all__ = [
    "KodiClient",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcNotification",
    "JsonRpcError",
    "KodiRpcError",
]
