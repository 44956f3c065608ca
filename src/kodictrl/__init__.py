"""KodiCTRL: remote control client for Kodi over JSON-RPC."""

__version__ = "0.1.0"
