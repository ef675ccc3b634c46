"""Local live-preview engine: static file server, script injection and
WebSocket change broadcasting."""

from .core.config_manager import ConfigManager, LiveSyncConfig
from .core.engine import LiveSyncEngine
from .core.session import SessionState

__all__ = ["ConfigManager", "LiveSyncConfig", "LiveSyncEngine", "SessionState"]
__version__ = "0.1.0"
