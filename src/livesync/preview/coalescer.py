import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set, Union

from ..monitoring.metrics import MetricsTracker

logger = logging.getLogger(__name__)

Snapshot = Union[str, Callable[[], str]]
SendCallback = Callable[[str, str], Awaitable[None]]

DEFAULT_EXTENSIONS = ('.html', '.htm', '.css')


def _resolve(snapshot: Snapshot) -> str:
    return snapshot() if callable(snapshot) else snapshot


class ChangeCoalescer:
    """Trailing-edge debounce of edit events, one timer per document.

    ``on_edit`` restarts the quiet window for that document; only the last
    edit of a burst reaches ``send``. ``on_save`` skips the window. Both
    ignore documents whose extension is not watched.
    """

    def __init__(self, send: SendCallback, debounce: float = 0.140,
                 extensions: Iterable[str] = DEFAULT_EXTENSIONS,
                 metrics: Optional[MetricsTracker] = None):
        self.send = send
        self.debounce = debounce
        self.extensions = {ext.lower() for ext in extensions}
        self.metrics = metrics or MetricsTracker()
        self._pending: Dict[str, asyncio.TimerHandle] = {}
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> List[str]:
        return list(self._pending)

    def is_watched(self, identity: str) -> bool:
        return Path(identity).suffix.lower() in self.extensions

    def on_edit(self, identity: str, snapshot: Snapshot) -> bool:
        """Schedule a send for ``identity`` after the quiet window"""
        if not self.is_watched(identity):
            return False

        previous = self._pending.pop(identity, None)
        if previous is not None:
            previous.cancel()
            self.metrics.record('edit_coalesced', identity)

        loop = asyncio.get_running_loop()
        self._pending[identity] = loop.call_later(
            self.debounce, self._fire, identity, snapshot
        )
        return True

    async def on_save(self, identity: str, snapshot: Snapshot) -> bool:
        """Send immediately; a pending debounced send still fires later"""
        if not self.is_watched(identity):
            return False
        content = self._read_snapshot(identity, snapshot)
        if content is None:
            return False
        await self.send(identity, content)
        return True

    def _read_snapshot(self, identity: str, snapshot: Snapshot) -> Optional[str]:
        try:
            return _resolve(snapshot)
        except Exception as e:
            logger.error(f"Could not read {identity}: {e}")
            self.metrics.record_error('snapshot', str(e))
            return None

    def _fire(self, identity: str, snapshot: Snapshot):
        self._pending.pop(identity, None)
        content = self._read_snapshot(identity, snapshot)
        if content is None:
            return
        task = asyncio.ensure_future(self.send(identity, content))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Broadcast failed: {task.exception()}")
            self.metrics.record_error('send', str(task.exception()))

    def flush_all(self):
        """Cancel every scheduled timer and in-flight send"""
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
