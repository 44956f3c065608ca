"""Registry of known Kodi hosts and the selected one.

Hosts are unique by (host, port). The selected host is stored as an index
into the host list, so the list and the index are always read together.
"""

import logging
from dataclasses import replace

from PySide6.QtCore import QObject, Signal

from kodictrl.core.config import ConfigManager
from kodictrl.models.host import KodiHost, are_hosts_equal

logger = logging.getLogger(__name__)


class HostRegistry(QObject):
    """Persisted list of Kodi hosts with a current selection.

    Emits current_host_changed whenever the selection is written, which the
    connection coordinator answers by reconnecting to the default host.

    Example:
        registry = HostRegistry(ConfigManager())
        registry.add_host(KodiHost("192.168.1.50"))
        registry.set_current_host(KodiHost("192.168.1.50"))
    """

    current_host_changed = Signal(object)  # KodiHost | None

    def __init__(self, config: ConfigManager, parent: QObject | None = None) -> None:
        """Initialize the registry.

        Args:
            config: Settings store holding the host list and index.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self._config = config

    def get_hosts(self) -> list[KodiHost]:
        """Return saved hosts, with empty names replaced by a default label."""
        return [
            host if host.name else replace(host, name=host.display_name)
            for host in self._config.get_kodi_hosts()
        ]

    def set_hosts(self, hosts: list[KodiHost]) -> bool:
        """Replace the host list.

        If the current host is not in the new list, the first new host (or
        none) becomes current.

        Returns:
            True once the list is saved.
        """
        current = self.get_current_host()
        current_exists = current is not None and any(
            are_hosts_equal(host, current) for host in hosts
        )

        self._config.save_kodi_hosts(list(hosts))
        logger.debug("Saved %d Kodi host(s)", len(hosts))

        if not current_exists:
            self.set_current_host(hosts[0] if hosts else None)

        return True

    def add_host(self, host: KodiHost) -> bool:
        """Append a host unless one with the same (host, port) exists.

        Returns:
            Whether the list was saved.
        """
        hosts = self.get_hosts()
        if not any(are_hosts_equal(existing, host) for existing in hosts):
            hosts.append(host)
        return self.set_hosts(hosts)

    def remove_host(self, host: KodiHost) -> bool:
        """Remove every host equal to host by (host, port).

        Returns:
            Whether the list was saved.
        """
        hosts = [existing for existing in self.get_hosts() if not are_hosts_equal(existing, host)]
        return self.set_hosts(hosts)

    def get_current_host(self) -> KodiHost | None:
        """Return the selected host.

        Falls back to the first host when the saved index is missing or out
        of range.

        Returns:
            The host, or None if there are no hosts.
        """
        hosts = self.get_hosts()
        if not hosts:
            return None
        index = self._config.get_current_host_index()
        if index is not None and 0 <= index < len(hosts):
            return hosts[index]
        return hosts[0]

    def set_current_host(self, host: KodiHost | None) -> KodiHost | None:
        """Select a host, adding it to the list if unknown.

        Args:
            host: Host to select, or None to clear the selection.

        Returns:
            The host passed in.
        """
        index: int | None = None
        if host is not None:
            hosts = self.get_hosts()
            for i, existing in enumerate(hosts):
                if are_hosts_equal(existing, host):
                    index = i
            if index is None:
                # Saved directly so the selection is announced only once
                self._config.save_kodi_hosts([*hosts, host])
                index = len(hosts)

        self._config.set_current_host_index(index)
        logger.info("Current Kodi host: %s", host.display_name if host else None)
        self.current_host_changed.emit(host)
        return host
