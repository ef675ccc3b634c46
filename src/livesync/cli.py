import argparse
import asyncio
import logging
import webbrowser
from pathlib import Path
from typing import List, Optional

from .core.config_manager import ConfigManager
from .core.engine import LiveSyncEngine
from .preview.file_watcher import FileWatcher

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="livesync",
        description="Serve a folder and push HTML/CSS edits to open browsers"
    )
    parser.add_argument("root", nargs="?", default=".",
                        help="directory to serve (default: current directory)")
    parser.add_argument("--port", type=int,
                        help="preferred port; the next free one is used if busy")
    parser.add_argument("--config", default="livesync.json",
                        help="JSON configuration file")
    parser.add_argument("--open", action="store_true", dest="open_browser",
                        help="open the preview in the default browser")
    parser.add_argument("--page", help="HTML file to open with --open")
    parser.add_argument("--no-watch", action="store_true",
                        help="do not watch the folder for saved files")
    parser.add_argument("--log-level", help="logging level (default from config)")
    return parser


async def serve(engine: LiveSyncEngine, root: str, open_browser: bool = False,
                page: Optional[str] = None, watch: bool = True):
    port = await engine.start(root)
    if port is None:
        return

    if open_browser:
        candidate = str(Path(root) / page) if page else None
        webbrowser.open(engine.preview_url(engine.choose_open_path(candidate)))

    watcher = None
    try:
        if watch:
            watcher = FileWatcher(engine.on_save, engine.config.watched_extensions)
            watcher.add_path(root)
            await watcher.start()
        else:
            await asyncio.Future()  # run until cancelled
    finally:
        if watcher is not None:
            watcher.stop()
        await engine.stop()


def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)
    config = ConfigManager(args.config).config
    if args.port is not None:
        config.preferred_port = args.port
    if args.log_level:
        config.log_level = args.log_level

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    engine = LiveSyncEngine(config)
    try:
        asyncio.run(serve(engine, args.root, args.open_browser, args.page,
                          watch=not args.no_watch))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
