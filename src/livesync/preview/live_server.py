import logging
from pathlib import Path
from typing import Optional

from aiohttp import web

from .client_script import BOOTSTRAP_PATH, SOCKET_PATH, render_client_script
from .websocket_server import BroadcastHub

logger = logging.getLogger(__name__)

MIME_TYPES = {
    '.html': 'text/html; charset=utf-8',
    '.htm': 'text/html; charset=utf-8',
    '.css': 'text/css; charset=utf-8',
    '.js': 'application/javascript; charset=utf-8',
    '.json': 'application/json',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.svg': 'image/svg+xml',
}
DEFAULT_MIME = 'application/octet-stream'
NO_STORE = {'Cache-Control': 'no-store'}


def mime_type(file_path: str) -> str:
    """Content type for ``file_path`` by extension"""
    return MIME_TYPES.get(Path(file_path).suffix.lower(), DEFAULT_MIME)


def is_text_type(mime: str) -> bool:
    return mime.startswith('text/')


def inject_script(html: str, port: int) -> str:
    """Add the bootstrap ``<script>`` tag to ``html``.

    Documents that already reference the bootstrap are returned unchanged.
    The tag goes before ``</head>`` when there is one, otherwise before
    ``</body>``, otherwise at the end.
    """
    if BOOTSTRAP_PATH in html:
        return html
    tag = f'\n<script src="http://127.0.0.1:{port}/{BOOTSTRAP_PATH}" defer></script>\n'
    for closing in ('</head>', '</body>'):
        if closing in html:
            return html.replace(closing, tag + closing, 1)
    return html + tag


class StaticFileServer:
    """Serves ``root`` over HTTP and hosts the hub's socket on the same app"""

    def __init__(self, root: str, port: int, hub: BroadcastHub,
                 reconnect_ms: int = 800):
        self.root = Path(root)
        self.port = port
        self.hub = hub
        self.client_script = render_client_script(reconnect_ms, SOCKET_PATH)
        self.app = self._create_app()
        self.runner: Optional[web.AppRunner] = None

    def _create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(SOCKET_PATH, self.hub.handle_socket)
        app.router.add_get('/{path:.*}', self.handle_request)
        return app

    async def start(self, host: str = '127.0.0.1'):
        """Bind the listener; returns once it is accepting connections"""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, host, self.port)
        try:
            await site.start()
        except OSError:
            await self.runner.cleanup()
            self.runner = None
            raise

    async def stop(self):
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None

    async def handle_request(self, request: web.Request) -> web.StreamResponse:
        rel_path = request.match_info.get('path', '') or 'index.html'

        if rel_path == BOOTSTRAP_PATH:
            return web.Response(
                text=self.client_script,
                headers={'Content-Type': 'application/javascript', **NO_STORE}
            )

        file_path = self.root / rel_path
        if not file_path.is_file():
            return web.Response(status=404, text='404 - Not found',
                                content_type='text/plain')

        mime = mime_type(str(file_path))

        if mime.startswith('text/html'):
            try:
                html = file_path.read_text(encoding='utf-8')
                html = inject_script(html, self.port)
            except Exception as e:
                logger.error(f"Failed to serve {file_path}: {e}")
                return web.Response(status=500, text='Server error')
            return web.Response(text=html,
                                headers={'Content-Type': mime, **NO_STORE})

        if is_text_type(mime):
            text = file_path.read_text(encoding='utf-8')
            return web.Response(text=text,
                                headers={'Content-Type': mime, **NO_STORE})

        return web.FileResponse(file_path,
                                headers={'Content-Type': mime, **NO_STORE})
