"""Service configuration.

Loads from config.yaml if present, with environment variable overrides.
Environment variables use the pattern: TWSTATS_<SECTION>_<KEY> (uppercase).
The legacy TWSTATS_EXEC / TWSTATS_JSON variables are still honoured.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3001
    env: str = "dev"  # "dev" or "prod"


@dataclass
class ScannerConfig:
    executable: str = ""  # empty: the scanner is managed elsewhere
    json_path: str = "servers.json"
    geoip_path: str = ""
    restart_delay_seconds: float = 5.0


@dataclass
class WatcherConfig:
    poll_interval_seconds: float = 1.0


@dataclass
class RegistryConfig:
    eviction_seconds: float = 600.0
    # address ("host:port") -> locale code
    locations: dict[str, str] = field(default_factory=dict)


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"  # "console" or "json"


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _apply_env_overrides(config: AppConfig) -> None:
    """Override config values from environment variables."""
    mapping = {
        "TWSTATS_EXEC": lambda v: setattr(config.scanner, "executable", v),
        "TWSTATS_JSON": lambda v: setattr(config.scanner, "json_path", v),
        "TWSTATS_SERVER_HOST": lambda v: setattr(config.server, "host", v),
        "TWSTATS_SERVER_PORT": lambda v: setattr(config.server, "port", int(v)),
        "TWSTATS_SERVER_ENV": lambda v: setattr(config.server, "env", v),
        "TWSTATS_SCANNER_EXECUTABLE": lambda v: setattr(config.scanner, "executable", v),
        "TWSTATS_SCANNER_JSON_PATH": lambda v: setattr(config.scanner, "json_path", v),
        "TWSTATS_SCANNER_GEOIP_PATH": lambda v: setattr(config.scanner, "geoip_path", v),
        "TWSTATS_SCANNER_RESTART_DELAY": lambda v: setattr(config.scanner, "restart_delay_seconds", float(v)),
        "TWSTATS_WATCHER_POLL_INTERVAL": lambda v: setattr(config.watcher, "poll_interval_seconds", float(v)),
        "TWSTATS_REGISTRY_EVICTION": lambda v: setattr(config.registry, "eviction_seconds", float(v)),
        "TWSTATS_LOG_LEVEL": lambda v: setattr(config.logging, "level", v),
        "TWSTATS_LOG_FORMAT": lambda v: setattr(config.logging, "format", v),
    }
    for env_key, setter in mapping.items():
        val = os.environ.get(env_key)
        if val is not None:
            setter(val)


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML file + environment overrides."""
    config = AppConfig()

    if config_path is None:
        config_path = Path(os.environ.get("TWSTATS_CONFIG", "config.yaml"))
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        for section in ("server", "scanner", "watcher", "registry", "logging"):
            target = getattr(config, section)
            for k, v in (raw.get(section) or {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)

        config.registry.locations = {
            str(addr): str(code) for addr, code in (config.registry.locations or {}).items()
        }

    # Environment overrides always win
    _apply_env_overrides(config)
    return config
