"""Configuration manager using QSettings for persistent storage."""

import logging
from typing import cast

from PySide6.QtCore import QSettings

from kodictrl.models.host import KodiHost

logger = logging.getLogger(__name__)

# Settings keys
_KEY_HOSTS = "kodi_hosts"
_KEY_CURRENT_HOST = "kodi_current_host"

# Network
_KEY_REQUEST_TIMEOUT = "network/request_timeout"
_KEY_CONNECT_GRACE = "network/connect_grace"


class ConfigManager:
    """Wrapper around QSettings for type-safe config access.

    QSettings stores config in platform-specific locations:
    - Windows: HKEY_CURRENT_USER\\Software\\KodiCTRL\\KodiCTRL
    - macOS: ~/Library/Preferences/com.KodiCTRL.KodiCTRL.plist
    - Linux: ~/.config/KodiCTRL/KodiCTRL.conf

    Example:
        config = ConfigManager()
        hosts = config.get_kodi_hosts()
        config.save_kodi_hosts(hosts)
    """

    def __init__(self, organization: str = "KodiCTRL", application: str = "KodiCTRL") -> None:
        """Initialize the config manager.

        Args:
            organization: Organization name for QSettings.
            application: Application name for QSettings.
        """
        self._settings = QSettings(organization, application)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    # -- Hosts -----------------------------------------------------------------

    def get_kodi_hosts(self) -> list[KodiHost]:
        """Load saved Kodi hosts.

        Invalid entries are skipped.

        Returns:
            List of KodiHost objects in saved order, or empty list.
        """
        raw_data = self._settings.value(_KEY_HOSTS, [], list)
        hosts: list[KodiHost] = []

        if not isinstance(raw_data, list):
            return hosts

        data = cast(list[object], raw_data)
        for raw_item in data:
            if not isinstance(raw_item, dict):
                continue
            item = cast(dict[str, object], raw_item)
            try:
                hosts.append(KodiHost.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid Kodi host entry: %s", e)

        return hosts

    def save_kodi_hosts(self, hosts: list[KodiHost]) -> None:
        """Persist Kodi hosts.

        Args:
            hosts: Hosts to save, in display order.
        """
        self._settings.setValue(_KEY_HOSTS, [h.to_dict() for h in hosts])

    def get_current_host_index(self) -> int | None:
        """Return the saved index of the selected host.

        Returns:
            Index into the host list, or None if unset or unreadable.
        """
        value = self._settings.value(_KEY_CURRENT_HOST, None)
        if value is None or value == "":
            return None
        try:
            return int(str(value))
        except ValueError:
            logger.warning("Ignoring invalid current host index: %r", value)
            return None

    def set_current_host_index(self, index: int | None) -> None:
        """Save the index of the selected host.

        Args:
            index: Index into the host list, or None to clear.
        """
        if index is None:
            self._settings.remove(_KEY_CURRENT_HOST)
        else:
            self._settings.setValue(_KEY_CURRENT_HOST, index)

    # -- Network settings ------------------------------------------------------

    def get_request_timeout(self) -> float:
        """Return the JSON-RPC request timeout in seconds.

        Returns:
            Timeout in seconds (default 10).
        """
        value = self._settings.value(_KEY_REQUEST_TIMEOUT, 10.0, float)
        return max(1.0, min(60.0, float(value)))  # type: ignore[arg-type]

    def set_request_timeout(self, seconds: float) -> None:
        """Set the JSON-RPC request timeout.

        Args:
            seconds: Timeout in seconds (1-60).
        """
        self._settings.setValue(_KEY_REQUEST_TIMEOUT, max(1.0, min(60.0, seconds)))

    def get_connect_grace(self) -> float:
        """Return how long to wait for a connection before giving up.

        Returns:
            Grace period in seconds (default 1).
        """
        value = self._settings.value(_KEY_CONNECT_GRACE, 1.0, float)
        return max(0.1, min(10.0, float(value)))  # type: ignore[arg-type]

    def set_connect_grace(self, seconds: float) -> None:
        """Set the connection grace period.

        Args:
            seconds: Grace period in seconds (0.1-10).
        """
        self._settings.setValue(_KEY_CONNECT_GRACE, max(0.1, min(10.0, seconds)))

    # -- General settings ------------------------------------------------------

    def clear(self) -> None:
        """Clear all settings (useful for testing or reset)."""
        self._settings.clear()

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()
