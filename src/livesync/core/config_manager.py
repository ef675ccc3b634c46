import json
from pathlib import Path
from typing import Any, List, Optional
from dataclasses import dataclass, field, asdict


@dataclass
class LiveSyncConfig:
    host: str = "127.0.0.1"
    preferred_port: int = 9090
    debounce_ms: int = 140
    reconnect_ms: int = 800
    watched_extensions: List[str] = field(
        default_factory=lambda: [".html", ".htm", ".css"]
    )
    port_search_limit: Optional[int] = None  # None searches without a ceiling
    log_level: str = "INFO"


class ConfigManager:
    def __init__(self, config_path: str = "livesync.json"):
        self.config_path = Path(config_path)
        self.config = self._load_config()

    def _load_config(self) -> LiveSyncConfig:
        """Load configuration from file or create default"""
        if self.config_path.exists():
            with open(self.config_path) as f:
                config_dict = json.load(f)
                return LiveSyncConfig(**config_dict)
        return LiveSyncConfig()

    def save_config(self):
        """Save current configuration to file"""
        with open(self.config_path, 'w') as f:
            json.dump(asdict(self.config), f, indent=2)

    def get(self, key: str) -> Any:
        """Get configuration value"""
        return getattr(self.config, key)

    def update(self, key: str, value: Any):
        """Update configuration value"""
        if hasattr(self.config, key):
            setattr(self.config, key, value)
            self.save_config()
        else:
            raise KeyError(f"Unknown configuration key: {key}")
