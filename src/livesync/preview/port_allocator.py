import logging
import socket
from typing import Optional

logger = logging.getLogger(__name__)

MAX_PORT = 65535


def is_port_free(port: int, host: str = "127.0.0.1") -> bool:
    """Try to bind ``host:port``; the probe socket is closed either way"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
            sock.listen(1)
        except OSError:
            return False
    return True


def find_free_port(preferred: int = 9090, host: str = "127.0.0.1",
                   max_attempts: Optional[int] = None) -> int:
    """Return the first bindable port counting up from ``preferred``.

    The probe is released before returning, so another process may still
    grab the port before the caller binds it. ``max_attempts`` of ``None``
    keeps searching until a port is found or the port range runs out.
    """
    port = preferred
    attempts = 0
    while port <= MAX_PORT:
        if max_attempts is not None and attempts >= max_attempts:
            break
        if is_port_free(port, host):
            if port != preferred:
                logger.debug(f"Port {preferred} busy, using {port}")
            return port
        port += 1
        attempts += 1
    raise RuntimeError(f"No free port found starting at {preferred}")
