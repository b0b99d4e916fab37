"""twstats server — main entry point.

This is the only file that knows about concrete implementations.
It wires together the registry, the snapshot watcher, the scanner
supervisor and the API layer.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from twstats.api.monitoring import VERSION
from twstats.api.monitoring import router as monitoring_router
from twstats.api.players import router as players_router
from twstats.api.servers import router as servers_router
from twstats.config import AppConfig, load_config
from twstats.core.registry import ServerRegistry
from twstats.core.stats import ServiceStats
from twstats.core.watcher import SnapshotWatcher
from twstats.scanner.process import ScannerProcess
from twstats.source.file_source import FileSnapshotSource

log = structlog.get_logger()

# Module-level singletons (set during startup)
_registry: ServerRegistry | None = None
_stats: ServiceStats | None = None
_config: AppConfig | None = None


def get_registry() -> ServerRegistry:
    assert _registry is not None, "Server not initialized"
    return _registry


def get_stats() -> ServiceStats:
    assert _stats is not None, "Server not initialized"
    return _stats


def get_config() -> AppConfig:
    assert _config is not None, "Server not initialized"
    return _config


def _setup_logging(config: AppConfig) -> None:
    """Configure structlog based on the logging config."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.logging.format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.logging.level.upper()),
        ),
    )


async def _cancel(tasks: list[asyncio.Task]) -> None:
    for task in tasks:
        task.cancel()
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for task, result in zip(tasks, results):
        if isinstance(result, Exception):
            log.error("background_task_failed", task=task.get_name(),
                      error=repr(result))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    global _registry, _stats, _config

    _config = load_config()
    _setup_logging(_config)

    log.info("server_starting",
             env=_config.server.env,
             snapshot_file=_config.scanner.json_path,
             scanner=_config.scanner.executable or None)

    # Create components
    _stats = ServiceStats()
    _registry = ServerRegistry(
        eviction_seconds=_config.registry.eviction_seconds,
        locations=_config.registry.locations,
    )
    source = FileSnapshotSource(_config.scanner.json_path)
    watcher = SnapshotWatcher(
        source=source,
        registry=_registry,
        stats=_stats,
        poll_interval=_config.watcher.poll_interval_seconds,
    )

    tasks = []
    if _config.scanner.executable:
        scanner = ScannerProcess(
            executable=_config.scanner.executable,
            json_path=_config.scanner.json_path,
            source=source,
            stats=_stats,
            geoip_path=_config.scanner.geoip_path,
            restart_delay=_config.scanner.restart_delay_seconds,
        )
        tasks.append(asyncio.create_task(scanner.run()))
    tasks.append(asyncio.create_task(watcher.run()))

    log.info("server_started",
             host=_config.server.host,
             port=_config.server.port)

    yield

    # Shutdown
    await _cancel(tasks)
    log.info("server_stopped")


app = FastAPI(
    title="twstats",
    description="Game server browser backed by scanner snapshots",
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(monitoring_router)
app.include_router(players_router)
app.include_router(servers_router)


def run() -> None:
    """Console entry point: serve the app with uvicorn using the loaded config."""
    import uvicorn

    config = load_config()
    uvicorn.run("twstats.main:app", host=config.server.host, port=config.server.port)
