"""Server configuration: typed dataclasses loaded from an optional YAML file."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "IRRIGATION_BRIDGE_CONFIG"
DEFAULT_CONFIG_PATH = "config/server.yaml"


@dataclass
class NetworkConfig:
    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class CorsConfig:
    allow_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class ServerConfig:
    network: NetworkConfig = field(default_factory=NetworkConfig)
    cors: CorsConfig = field(default_factory=CorsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _known(cls, section: Dict[str, Any]) -> Dict[str, Any]:
    names = cls.__dataclass_fields__
    return {k: v for k, v in (section or {}).items() if k in names}


def _load_yaml(path: str) -> Dict[str, Any]:
    raw = Path(path).read_text()
    data = yaml.safe_load(raw) if raw else {}
    return data or {}


def load_config(path: Optional[str] = None) -> ServerConfig:
    """
    Read YAML config into a typed ServerConfig with sensible defaults.
    A missing file yields the defaults; unknown keys are ignored.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
    if not Path(path).is_file():
        logger.debug(f"No config file at {path}, using defaults")
        return ServerConfig()

    data = _load_yaml(path)
    return ServerConfig(
        network=NetworkConfig(**_known(NetworkConfig, data.get("network"))),
        cors=CorsConfig(**_known(CorsConfig, data.get("cors"))),
        logging=LoggingConfig(**_known(LoggingConfig, data.get("logging"))),
    )
