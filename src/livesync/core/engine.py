import asyncio
import logging
from pathlib import Path
from typing import Optional

from .config_manager import LiveSyncConfig
from .session import Session, SessionState, SessionStateMachine
from ..monitoring.metrics import MetricsTracker
from ..preview.coalescer import ChangeCoalescer, Snapshot
from ..preview.live_server import StaticFileServer
from ..preview.port_allocator import find_free_port
from ..preview.websocket_server import BroadcastHub, ChangeMessage

logger = logging.getLogger(__name__)

HTML_EXTENSIONS = ('.html', '.htm')


class LiveSyncEngine:
    """Owns the one preview session and the operations that drive it.

    Hosts (an editor plugin, the CLI, a file watcher) call ``start``,
    ``stop``, ``pause``, ``resume`` and report document changes through
    ``notify_changed``/``on_edit`` (debounced) or ``on_save`` (immediate).
    """

    def __init__(self, config: Optional[LiveSyncConfig] = None):
        self.config = config or LiveSyncConfig()
        self.metrics = MetricsTracker()
        self.machine = SessionStateMachine()
        self.session: Optional[Session] = None
        self.last_root: Optional[str] = None
        self.coalescer = ChangeCoalescer(
            self._broadcast_if_allowed,
            debounce=self.config.debounce_ms / 1000,
            extensions=self.config.watched_extensions,
            metrics=self.metrics
        )
        self._lifecycle_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self.machine.state

    @property
    def status_label(self) -> str:
        return self.machine.label

    @property
    def port(self) -> Optional[int]:
        return self.session.port if self.session else None

    @property
    def root(self) -> Optional[str]:
        return self.session.root_directory if self.session else None

    async def start(self, root: str) -> Optional[int]:
        """Serve ``root`` and return the port; a live session is reused"""
        async with self._lifecycle_lock:
            if self.session is not None:
                return self.session.port

            root_path = Path(root)
            if not root_path.is_dir():
                raise FileNotFoundError(f"Root directory not found: {root}")

            port = find_free_port(self.config.preferred_port, self.config.host,
                                  self.config.port_search_limit)
            hub = BroadcastHub(metrics=self.metrics)
            server = StaticFileServer(str(root_path), port, hub,
                                      reconnect_ms=self.config.reconnect_ms)
            try:
                await server.start(self.config.host)
            except OSError as e:
                logger.error(f"Could not listen on {self.config.host}:{port}: {e}")
                return None

            self.session = Session(root_directory=str(root_path), port=port,
                                   server=server, hub=hub)
            self.last_root = str(root_path)
            self.machine.mark_live()
            logger.info(f"livesync running at http://{self.config.host}:{port}")
            return port

    async def stop(self):
        """Tear the session down; does nothing when already stopped.

        A start still in progress finishes first and is then torn down.
        """
        async with self._lifecycle_lock:
            self.coalescer.flush_all()
            session, self.session = self.session, None
            if session is not None:
                await session.hub.close()
                await session.server.stop()
            if self.machine.mark_stopped():
                logger.info("livesync stopped")

    def pause(self) -> bool:
        paused = self.machine.pause()
        if paused:
            logger.info("Live editing paused (server still running)")
        return paused

    def resume(self) -> bool:
        resumed = self.machine.resume()
        if resumed:
            logger.info("Live editing resumed")
        return resumed

    async def toggle(self, root: Optional[str] = None) -> SessionState:
        """Go live when stopped, otherwise flip between editing and paused"""
        if self.state is SessionState.STOPPED:
            target = root or self.last_root
            if target is None:
                raise ValueError("No root directory to serve")
            await self.start(target)
        elif self.state is SessionState.LIVE_EDITING:
            self.pause()
        else:
            self.resume()
        return self.state

    def on_edit(self, path: str, snapshot: Snapshot) -> bool:
        return self.coalescer.on_edit(path, snapshot)

    def notify_changed(self, path: str, content: str) -> bool:
        return self.on_edit(path, content)

    async def on_save(self, path: str, snapshot: Snapshot) -> bool:
        return await self.coalescer.on_save(path, snapshot)

    async def _broadcast_if_allowed(self, path: str, content: str):
        # Checked when the send happens, not when the edit was scheduled
        if self.session is None or not self.machine.may_broadcast:
            self.metrics.record('broadcast_suppressed', path)
            return
        await self.session.hub.broadcast(ChangeMessage(file=path, content=content))

    def choose_open_path(self, candidate: Optional[str] = None) -> str:
        """URL path of the page to open for ``candidate``, else index.html"""
        root = self.root or self.last_root
        if not root or not candidate:
            return "index.html"
        root_path = Path(root).resolve()
        file_path = Path(candidate).resolve()
        if file_path.suffix.lower() not in HTML_EXTENSIONS:
            return "index.html"
        try:
            return file_path.relative_to(root_path).as_posix()
        except ValueError:
            return "index.html"

    def preview_url(self, rel_path: str = "") -> Optional[str]:
        if self.port is None:
            return None
        return f"http://{self.config.host}:{self.port}/{rel_path}"
