"""Main entry point for the KodiCTRL command line."""

import argparse
import asyncio
import logging
import sys

from PySide6.QtCore import QCoreApplication

from kodictrl.api.client import KodiClient
from kodictrl.api.protocol import KodiRpcError
from kodictrl.core.app import HostUnreachableError, KodiApp, NoHostError
from kodictrl.core.config import ConfigManager
from kodictrl.core.events import EventBus
from kodictrl.core.hosts import HostRegistry
from kodictrl.core.player import PlaybackSequencer
from kodictrl.models.host import DEFAULT_HTTP_PORT, DEFAULT_WS_PORT, KodiHost
from kodictrl.models.media import ConnectionState

logger = logging.getLogger(__name__)

EXIT_NO_HOST = 1
EXIT_UNREACHABLE = 2
EXIT_RPC_ERROR = 3


def build_parser() -> argparse.ArgumentParser:
    """Return the command line parser."""
    parser = argparse.ArgumentParser(
        prog="kodictrl",
        description="KodiCTRL: Kodi remote control",
    )
    parser.add_argument(
        "host", nargs="?", default=None, help="Kodi hostname or IP (default: saved host)",
    )
    parser.add_argument(
        "port", nargs="?", type=int, default=DEFAULT_HTTP_PORT,
        help=f"HTTP JSON-RPC port (default: {DEFAULT_HTTP_PORT})",
    )
    parser.add_argument(
        "--ws-port", type=int, default=DEFAULT_WS_PORT,
        help=f"WebSocket port (default: {DEFAULT_WS_PORT})",
    )
    parser.add_argument("--name", default="", help="display name for a new host")
    parser.add_argument("--user", default="", help="HTTP basic-auth user")
    parser.add_argument("--password", default="", help="HTTP basic-auth password")
    parser.add_argument("--open", dest="open_url", default=None, help="URL to play")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def _print_state(state: ConnectionState) -> None:
    if state.is_ws_connected:
        print("Connected (WebSocket)")
    elif state.is_connected:
        print("Connected (HTTP only)")
    else:
        print("Disconnected")


async def run(args: argparse.Namespace, config: ConfigManager) -> int:
    """Connect to the selected host and run the requested command.

    Returns:
        Exit code.
    """
    registry = HostRegistry(config)
    if args.host:
        registry.set_current_host(
            KodiHost(
                host=args.host,
                port=args.port,
                name=args.name,
                ws_port=args.ws_port,
                login=args.user,
                password=args.password,
            )
        )

    client = KodiClient(timeout=config.get_request_timeout())
    app = KodiApp(client, registry, connect_grace=config.get_connect_grace())
    app.connection_changed.connect(_print_state)
    sequencer = PlaybackSequencer(app, EventBus())

    try:
        await app.connect_to_default_host()
        await app.check_and_connect_to_current_host()

        if args.open_url:
            await sequencer.open_url(args.open_url, emit_remote_open_event=False)
            print(f"Playing {args.open_url}")
        else:
            players = await client.get_active_players()
            print(f"Active players: {[p.get('playerid') for p in players] or 'none'}")
    except NoHostError:
        print("No Kodi host configured. Usage: kodictrl <host> [port]", file=sys.stderr)
        return EXIT_NO_HOST
    except HostUnreachableError as e:
        print(f"Host unreachable: {e}", file=sys.stderr)
        return EXIT_UNREACHABLE
    except (KodiRpcError, ConnectionError) as e:
        print(f"Kodi error: {e}", file=sys.stderr)
        return EXIT_RPC_ERROR
    finally:
        await app.close()

    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the KodiCTRL command line.

    Returns:
        Exit code (0 for success).
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.debug("Target host %s port %s", args.host, args.port)

    QCoreApplication.setOrganizationName("KodiCTRL")
    QCoreApplication.setApplicationName("KodiCTRL")
    _qt_app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    return asyncio.run(run(args, ConfigManager()))


if __name__ == "__main__":
    sys.exit(main())
