from __future__ import annotations
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from shared.log import get_logger

logger = get_logger(__name__)

DEFAULT_SERVER_URL = "ws://127.0.0.1:8080"
CONFIG_ENV = "LETSCHAT_CONFIG"
SERVER_ENV = "LETSCHAT_SERVER"


class ConfigError(Exception):
    """Raised when a config file exists but does not hold a mapping."""
    pass


@dataclass(frozen=True)
class ClientConfig:
    """
    Client settings. Precedence: defaults < YAML file < environment < CLI.

    Example config.yaml:

        server_url: ws://chat.example.org:8080
        ping_interval: 20
        ping_timeout: 60
        log_level: INFO
    """
    server_url: str = DEFAULT_SERVER_URL
    ping_interval: Optional[float] = 15.0
    ping_timeout: Optional[float] = 45.0
    log_level: Optional[str] = None

    @classmethod
    def load(cls, path: Optional[Path] = None) -> ClientConfig:
        config = cls()
        file_values = _read_yaml(path or default_config_path())
        if file_values:
            config = replace(config, **file_values)

        server = os.getenv(SERVER_ENV)
        if server:
            config = replace(config, server_url=server)
        return config

    def with_overrides(self, **overrides: Any) -> ClientConfig:
        """Apply CLI options, skipping the ones left unset (None)"""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values)


def default_config_path() -> Path:
    env_path = os.getenv(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".letschat" / "config.yaml"


_EXPECTED_TYPES = {
    "server_url": (str,),
    "ping_interval": (int, float, type(None)),
    "ping_timeout": (int, float, type(None)),
    "log_level": (str, type(None)),
}


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Load known keys from a YAML file. Missing or unparsable files yield {}."""
    if not path.exists():
        logger.debug("No config file at %s; using defaults", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Error reading {path}: {e}")
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(ClientConfig)}
    result: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Unknown config key %r in %s", key, path)
            continue
        if not isinstance(value, _EXPECTED_TYPES[key]) or isinstance(value, bool):
            logger.warning("Ignoring config key %r in %s: bad value %r", key, path, value)
            continue
        result[key] = value
    return result
