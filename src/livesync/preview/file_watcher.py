import asyncio
import hashlib
import logging
from pathlib import Path
from typing import Awaitable, Callable, Dict, Iterable, Optional, Set

from watchfiles import Change, awatch

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[str, str], Awaitable[object]]


class FileWatcher:
    """Reports files written to disk under the watched paths.

    Each modified file with a watched extension whose content hash changed
    is passed to ``handler(path, content)``. Hidden files are skipped.
    """

    def __init__(self, handler: ChangeHandler,
                 extensions: Iterable[str] = ('.html', '.htm', '.css')):
        self.handler = handler
        self.extensions = {ext.lower() for ext in extensions}
        self.watched_paths: Set[Path] = set()
        self._stop_event = asyncio.Event()
        self._file_hashes: Dict[str, str] = {}

    def add_path(self, path: str):
        """Add a path to watch"""
        self.watched_paths.add(Path(path))

    async def start(self):
        """Watch until ``stop`` is called"""
        if not self.watched_paths:
            return
        async for changes in awatch(*self.watched_paths,
                                    stop_event=self._stop_event):
            for change_type, file_path in changes:
                if change_type in {Change.added, Change.modified}:
                    await self._handle_file_change(file_path)

    def stop(self):
        """Stop watching for changes"""
        self._stop_event.set()

    async def _handle_file_change(self, file_path: str):
        path = Path(file_path)
        if path.suffix.lower() not in self.extensions:
            return
        if not path.is_file() or path.name.startswith('.'):
            return

        content = self._read_file(path)
        if content is None:
            return

        new_hash = hashlib.sha256(content.encode()).hexdigest()
        if new_hash == self._file_hashes.get(file_path):
            return
        self._file_hashes[file_path] = new_hash

        try:
            await self.handler(str(path), content)
        except Exception as e:
            logger.error(f"Error handling file {file_path}: {e}")

    @staticmethod
    def _read_file(path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping unreadable file {path}: {e}")
            return None
