import pytest
import json
from livesync.core.config_manager import ConfigManager, LiveSyncConfig

@pytest.fixture
def config_manager(tmp_path):
    config_path = tmp_path / "test_config.json"
    return ConfigManager(str(config_path))

class TestConfigManager:
    def test_default_config(self, config_manager):
        assert isinstance(config_manager.config, LiveSyncConfig)
        assert config_manager.config.preferred_port == 9090
        assert config_manager.config.debounce_ms == 140
        assert config_manager.config.reconnect_ms == 800
        assert config_manager.config.watched_extensions == [".html", ".htm", ".css"]
        assert config_manager.config.port_search_limit is None

    def test_save_and_load(self, config_manager):
        config_manager.update('preferred_port', 8000)
        config_manager.update('log_level', 'DEBUG')

        # Create new instance to test loading
        new_config = ConfigManager(str(config_manager.config_path))

        assert new_config.get('preferred_port') == 8000
        assert new_config.get('log_level') == 'DEBUG'

    def test_invalid_key(self, config_manager):
        with pytest.raises(KeyError):
            config_manager.update('invalid_key', 'value')

    def test_config_file_format(self, config_manager):
        config_manager.save_config()

        with open(config_manager.config_path) as f:
            config_data = json.load(f)

        assert isinstance(config_data, dict)
        assert config_data['host'] == '127.0.0.1'
        assert config_data['watched_extensions'] == [".html", ".htm", ".css"]

    def test_partial_file_keeps_defaults(self, tmp_path):
        config_path = tmp_path / "partial.json"
        config_path.write_text(json.dumps({"debounce_ms": 300}))

        config = ConfigManager(str(config_path)).config
        assert config.debounce_ms == 300
        assert config.preferred_port == 9090
