"""Shared test fixtures."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

import twstats.main as main_module
from twstats.config import AppConfig
from twstats.core.registry import ServerRegistry
from twstats.core.stats import ServiceStats


@pytest.fixture
def registry() -> ServerRegistry:
    return ServerRegistry()


@pytest.fixture(autouse=True)
def _init_server(tmp_path):
    """Initialize server singletons for every test, using a temp directory."""
    config = AppConfig()
    config.scanner.json_path = str(tmp_path / "servers.json")
    config.logging.level = "warning"

    # Patch module-level singletons
    main_module._config = config
    main_module._stats = ServiceStats()
    main_module._registry = ServerRegistry(eviction_seconds=config.registry.eviction_seconds)

    yield

    # Cleanup
    main_module._config = None
    main_module._stats = None
    main_module._registry = None


@pytest.fixture
async def client():
    from twstats.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
