"""Kodi host connection model."""

from dataclasses import dataclass
from typing import Any

DEFAULT_HTTP_PORT = 8080
DEFAULT_WS_PORT = 9090
DEFAULT_NAME_PREFIX = "Kodi Host "


def _coerce_port(value: object, default: int) -> int:
    """Coerce a stored port ("8080", 8080, 8080.0) to int, or return default."""
    if isinstance(value, bool):
        return default
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        try:
            return int(float(str(value)))
        except (TypeError, ValueError):
            return default


@dataclass(frozen=True, slots=True)
class KodiHost:
    """A Kodi instance reachable over JSON-RPC.

    Two hosts are the same endpoint when host and port match, see
    ``are_hosts_equal``. Dataclass equality compares every field and is
    used to detect edits of the currently selected host.

    Attributes:
        host: Hostname or IP address.
        port: HTTP JSON-RPC port (default 8080).
        name: Human-readable label.
        ws_port: WebSocket JSON-RPC port (default 9090).
        login: Optional HTTP basic-auth user.
        password: Optional HTTP basic-auth password.
    """

    host: str
    port: int = DEFAULT_HTTP_PORT
    name: str = ""
    ws_port: int = DEFAULT_WS_PORT
    login: str = ""
    password: str = ""

    @property
    def display_name(self) -> str:
        """Return name or the generated default label."""
        return self.name or f"{DEFAULT_NAME_PREFIX}{self.host}"

    @property
    def http_url(self) -> str:
        """Return the HTTP JSON-RPC endpoint."""
        return f"http://{self.host}:{self.port}/jsonrpc"

    @property
    def ws_url(self) -> str:
        """Return the WebSocket JSON-RPC endpoint."""
        return f"ws://{self.host}:{self.ws_port}/jsonrpc"

    @property
    def has_credentials(self) -> bool:
        """Return True if basic-auth credentials are configured."""
        return bool(self.login)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a settings-friendly dict."""
        return {
            "name": self.name,
            "host": self.host,
            "port": self.port,
            "ws_port": self.ws_port,
            "login": self.login,
            "password": self.password,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "KodiHost":
        """Create a host from a stored dict.

        Ports may come back from the settings backend as strings.

        Raises:
            ValueError: If the entry has no host address.
        """
        host = data.get("host")
        if not host:
            raise ValueError("host entry has no address")
        return cls(
            host=str(host),
            port=_coerce_port(data.get("port"), DEFAULT_HTTP_PORT),
            name=str(data.get("name") or ""),
            ws_port=_coerce_port(data.get("ws_port"), DEFAULT_WS_PORT),
            login=str(data.get("login") or ""),
            password=str(data.get("password") or ""),
        )


def are_hosts_equal(host1: KodiHost, host2: KodiHost) -> bool:
    """Return True if both descriptors point at the same (host, port)."""
    return host1.host == host2.host and _coerce_port(host1.port, -1) == _coerce_port(
        host2.port, -2
    )
