import asyncio
import json
import logging
from dataclasses import dataclass, asdict
from typing import Optional, Set

from aiohttp import WSCloseCode, WSMsgType, web

from ..monitoring.metrics import MetricsTracker

logger = logging.getLogger(__name__)


@dataclass
class ChangeMessage:
    file: str
    content: str

    def to_json(self) -> str:
        return json.dumps(asdict(self))


class BroadcastHub:
    """Connection set for one session, fanned out to on every change"""

    def __init__(self, metrics: Optional[MetricsTracker] = None):
        self.clients: Set[web.WebSocketResponse] = set()
        self.metrics = metrics or MetricsTracker()

    @property
    def client_count(self) -> int:
        return len(self.clients)

    async def handle_socket(self, request: web.Request) -> web.WebSocketResponse:
        """Handle individual client connections"""
        websocket = web.WebSocketResponse()
        await websocket.prepare(request)
        self._register(websocket)
        try:
            # Server -> client only; incoming frames are drained and ignored
            async for message in websocket:
                if message.type == WSMsgType.ERROR:
                    logger.debug(f"Socket error: {websocket.exception()}")
                    break
        finally:
            self._unregister(websocket)
        return websocket

    def _register(self, websocket: web.WebSocketResponse):
        self.clients.add(websocket)
        logger.debug(f"Client connected ({len(self.clients)} open)")

    def _unregister(self, websocket: web.WebSocketResponse):
        self.clients.discard(websocket)
        logger.debug(f"Client disconnected ({len(self.clients)} open)")

    async def broadcast(self, message: ChangeMessage) -> int:
        """Send ``message`` to every open client and return how many got it.

        Clients that are closing are skipped; clients whose send fails are
        dropped. Neither is retried.
        """
        payload = message.to_json()
        ready = [client for client in self.clients if not client.closed]
        if not ready:
            self.metrics.record('broadcast_clients', 0)
            return 0

        results = await asyncio.gather(
            *(client.send_str(payload) for client in ready),
            return_exceptions=True
        )
        delivered = 0
        for client, result in zip(ready, results):
            if isinstance(result, Exception):
                logger.debug(f"Dropping client after send failure: {result}")
                self.metrics.record_error('broadcast_send', str(result))
                self.clients.discard(client)
            else:
                delivered += 1

        self.metrics.record('broadcast_clients', delivered)
        logger.debug(f"Broadcast {message.file} to {delivered} client(s)")
        return delivered

    async def close(self):
        """Close every connection and empty the set"""
        clients = list(self.clients)
        self.clients.clear()
        for client in clients:
            try:
                await client.close(code=WSCloseCode.GOING_AWAY,
                                   message=b'Server shutdown')
            except Exception as e:
                logger.debug(f"Error closing client: {e}")
