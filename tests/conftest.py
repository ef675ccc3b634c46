import pytest
from pathlib import Path
from typing import AsyncGenerator

from livesync.core.config_manager import LiveSyncConfig
from livesync.core.engine import LiveSyncEngine


# Site served by the engine in tests
@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    (tmp_path / "index.html").write_text(
        "<html><head><title>t</title></head><body><p>hi</p></body></html>"
    )
    (tmp_path / "style.css").write_text("body { color: red; }")
    (tmp_path / "app.js").write_text("console.log('app');")
    (tmp_path / "data.json").write_text('{"a": 1}')
    (tmp_path / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 64)
    (tmp_path / "pages").mkdir()
    (tmp_path / "pages" / "about.htm").write_text("<body>about</body>")
    return tmp_path


@pytest.fixture
def config() -> LiveSyncConfig:
    return LiveSyncConfig(preferred_port=19090, debounce_ms=50)


@pytest.fixture
async def engine(config) -> AsyncGenerator[LiveSyncEngine, None]:
    engine = LiveSyncEngine(config)
    yield engine
    await engine.stop()


@pytest.fixture
async def live_engine(engine, site_root) -> LiveSyncEngine:
    port = await engine.start(str(site_root))
    assert port is not None
    return engine


# Async client session
@pytest.fixture
async def async_client() -> AsyncGenerator:
    from aiohttp import ClientSession
    async with ClientSession() as session:
        yield session


# Polls until the server side has caught up with a client action
@pytest.fixture
def wait_until():
    import asyncio

    async def _wait(predicate, timeout: float = 2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(0.01)

    return _wait
