"""
Client configuration.

Values come from (lowest to highest precedence):
  1. ClientConfig defaults
  2. a YAML file (default ~/.litclient/config.yaml, if present)
  3. LIT_* environment variables

Example config.yaml:

    host: 192.168.1.20
    rpc_port: 8001
    peer_port: 2448
    request_timeout: 30
"""

from __future__ import annotations
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from shared.errors import ConfigError
from shared.log import get_logger
from shared.utils import is_valid_port

logger = get_logger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_RPC_PORT = 8001
DEFAULT_PEER_PORT = 2448
# the node's websocket endpoint only accepts this sub-protocol and origin
RPC_SUBPROTOCOL = "echo-protocol"
RPC_ORIGIN = "http://localhost/"
RPC_PATH = "/ws"


def default_config_path() -> Path:
    return Path.home() / ".litclient" / "config.yaml"


@dataclass(frozen=True)
class ClientConfig:
    host: str = DEFAULT_HOST
    rpc_port: int = DEFAULT_RPC_PORT
    peer_port: int = DEFAULT_PEER_PORT
    subprotocol: str = RPC_SUBPROTOCOL
    origin: str = RPC_ORIGIN
    # None waits for a reply forever
    request_timeout: Optional[float] = None
    ping_interval: Optional[float] = 20.0

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.rpc_port}{RPC_PATH}"

    def validate(self) -> 'ClientConfig':
        if not self.host:
            raise ConfigError("host must not be empty")
        for name in ("rpc_port", "peer_port"):
            if not is_valid_port(getattr(self, name)):
                raise ConfigError(f"{name} must be an integer between 1 and 65535, got {getattr(self, name)!r}")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be positive, got {self.request_timeout!r}")
        return self


_ENV_OVERRIDES = {
    "LIT_HOST": ("host", str),
    "LIT_RPC_PORT": ("rpc_port", int),
    "LIT_PEER_PORT": ("peer_port", int),
    "LIT_REQUEST_TIMEOUT": ("request_timeout", float),
}


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error reading {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(ClientConfig)}
    unknown = set(data) - known
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", path, sorted(unknown))
    return {k: v for k, v in data.items() if k in known}


def _env_overrides(environ: Dict[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for var, (name, cast) in _ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            values[name] = cast(raw)
        except ValueError as e:
            raise ConfigError(f"{var}={raw!r} is not a valid {cast.__name__}") from e
    return values


def load_config(path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None, **overrides: Any) -> ClientConfig:
    """
    Build a ClientConfig from file, environment and explicit overrides.

    An explicitly given `path` must exist; the default path is optional.
    Overrides whose value is None are ignored so CLI options can be passed
    straight through.
    """
    config = ClientConfig()

    config_path = path or default_config_path()
    if config_path.exists():
        config = replace(config, **_load_yaml(config_path))
        logger.debug("Loaded config from %s", config_path)
    elif path is not None:
        raise ConfigError(f"Config file not found: {path}")

    config = replace(config, **_env_overrides(os.environ if environ is None else environ))
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
    return config.validate()
