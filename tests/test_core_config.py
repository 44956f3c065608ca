"""Tests for ConfigManager using QSettings."""

from kodictrl.core.config import ConfigManager
from kodictrl.models.host import KodiHost


class TestConfigManagerHosts:
    """Test Kodi host storage."""

    def test_initially_empty(self, config: ConfigManager) -> None:
        """Test that config starts empty."""
        assert config.get_kodi_hosts() == []

    def test_save_and_load_hosts(self, config: ConfigManager) -> None:
        """Test saving and loading hosts keeps order and fields."""
        hosts = [
            KodiHost(host="192.168.1.50", name="Living Room"),
            KodiHost(host="192.168.1.51", port=8081, ws_port=9091, login="kodi", password="pw"),
        ]
        config.save_kodi_hosts(hosts)

        loaded = config.get_kodi_hosts()
        assert len(loaded) == 2
        assert loaded[0].host == "192.168.1.50"
        assert loaded[0].name == "Living Room"
        assert loaded[1].port == 8081
        assert loaded[1].ws_port == 9091
        assert loaded[1].login == "kodi"

    def test_invalid_entries_skipped(self, config: ConfigManager) -> None:
        """Test entries without an address are dropped on load."""
        config.settings.setValue(
            "kodi_hosts",
            [{"host": "192.168.1.50"}, {"name": "broken"}, "garbage"],
        )
        loaded = config.get_kodi_hosts()
        assert [h.host for h in loaded] == ["192.168.1.50"]


class TestConfigManagerCurrentHost:
    """Test current host index storage."""

    def test_index_initially_none(self, config: ConfigManager) -> None:
        """Test that the index is None initially."""
        assert config.get_current_host_index() is None

    def test_set_and_get_index(self, config: ConfigManager) -> None:
        """Test setting and getting the index."""
        config.set_current_host_index(2)
        assert config.get_current_host_index() == 2

    def test_clear_index(self, config: ConfigManager) -> None:
        """Test None removes the index."""
        config.set_current_host_index(1)
        config.set_current_host_index(None)
        assert config.get_current_host_index() is None

    def test_string_index_coerced(self, config: ConfigManager) -> None:
        """Test an index stored as text is read back as int."""
        config.settings.setValue("kodi_current_host", "3")
        assert config.get_current_host_index() == 3

    def test_garbage_index_ignored(self, config: ConfigManager) -> None:
        """Test an unreadable index is treated as unset."""
        config.settings.setValue("kodi_current_host", "first")
        assert config.get_current_host_index() is None


class TestConfigManagerNetwork:
    """Test network settings."""

    def test_defaults(self, config: ConfigManager) -> None:
        """Test default timeout and grace period."""
        assert config.get_request_timeout() == 10.0
        assert config.get_connect_grace() == 1.0

    def test_request_timeout_clamped(self, config: ConfigManager) -> None:
        """Test the timeout is clamped to 1-60 seconds."""
        config.set_request_timeout(0.1)
        assert config.get_request_timeout() == 1.0
        config.set_request_timeout(600)
        assert config.get_request_timeout() == 60.0
        config.set_request_timeout(5)
        assert config.get_request_timeout() == 5.0

    def test_connect_grace_clamped(self, config: ConfigManager) -> None:
        """Test the grace period is clamped to 0.1-10 seconds."""
        config.set_connect_grace(0)
        assert config.get_connect_grace() == 0.1
        config.set_connect_grace(2.5)
        assert config.get_connect_grace() == 2.5

    def test_clear(self, config: ConfigManager) -> None:
        """Test clear resets everything."""
        config.save_kodi_hosts([KodiHost(host="h")])
        config.set_current_host_index(0)
        config.clear()
        assert config.get_kodi_hosts() == []
        assert config.get_current_host_index() is None
