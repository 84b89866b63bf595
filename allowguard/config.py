"""
AllowGuard configuration.

Sources, later wins:
    1. Defaults below
    2. YAML file (EngineConfig.from_yaml)
    3. Environment (ALLOWGUARD_*)

Example allowguard.yaml:

    rpc_url: https://cloudflare-eth.com
    min_confirmations: 1
    log_chunk_size: 3000
    from_block: 0
    log_level: WARNING
    app_names:
      "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D": Uniswap V2
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Optional

import yaml

from allowguard.core.addresses import checksum
from allowguard.core.exceptions import ConfigError, ValidationError


DEFAULT_RPC_URL = "https://cloudflare-eth.com"

ENV_RPC_URL           = "ALLOWGUARD_RPC_URL"
ENV_MIN_CONFIRMATIONS = "ALLOWGUARD_MIN_CONFIRMATIONS"
ENV_LOG_LEVEL         = "ALLOWGUARD_LOG_LEVEL"
ENV_PRIVATE_KEY       = "ALLOWGUARD_PRIVATE_KEY"

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class EngineConfig:
    rpc_url:           str = DEFAULT_RPC_URL
    min_confirmations: int = 1
    log_chunk_size:    int = 3000
    from_block:        int = 0
    log_level:         str = "WARNING"
    app_names:         Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.min_confirmations < 1:
            raise ConfigError("min_confirmations must be >= 1", {"value": self.min_confirmations})
        if self.log_chunk_size < 1:
            raise ConfigError("log_chunk_size must be >= 1", {"value": self.log_chunk_size})
        if self.from_block < 0:
            raise ConfigError("from_block must be >= 0", {"value": self.from_block})
        if self.log_level.upper() not in _LEVELS:
            raise ConfigError("Unknown log_level", {"value": self.log_level})

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper())

    @classmethod
    def from_dict(cls, data: dict) -> "EngineConfig":
        known = {f for f in cls.__dataclass_fields__}
        unknown = set(data) - known
        if unknown:
            raise ConfigError("Unknown config keys", {"keys": ", ".join(sorted(unknown))})

        values = dict(data)
        try:
            for key in ("min_confirmations", "log_chunk_size", "from_block"):
                if key in values:
                    values[key] = int(values[key])
            values["app_names"] = {
                checksum(address): str(name)
                for address, name in (values.get("app_names") or {}).items()
            }
        except (TypeError, ValueError, ValidationError) as e:
            raise ConfigError("Invalid config value", {"error": e}) from e
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Path) -> "EngineConfig":
        """Load config from a YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError("Cannot read config file", {"path": path, "error": e}) from e
        except yaml.YAMLError as e:
            raise ConfigError("Config file is not valid YAML", {"path": path}) from e

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping", {"path": path})
        return cls.from_dict(data)

    def with_env(self, environ: Optional[dict] = None) -> "EngineConfig":
        """Apply ALLOWGUARD_* environment overrides."""
        env = os.environ if environ is None else environ
        overrides = {}
        if env.get(ENV_RPC_URL):
            overrides["rpc_url"] = env[ENV_RPC_URL]
        if env.get(ENV_MIN_CONFIRMATIONS):
            try:
                overrides["min_confirmations"] = int(env[ENV_MIN_CONFIRMATIONS])
            except ValueError as e:
                raise ConfigError(
                    f"{ENV_MIN_CONFIRMATIONS} must be an integer",
                    {"value": env[ENV_MIN_CONFIRMATIONS]},
                ) from e
        if env.get(ENV_LOG_LEVEL):
            overrides["log_level"] = env[ENV_LOG_LEVEL]
        return replace(self, **overrides) if overrides else self


def load_config(path: Optional[Path] = None, environ: Optional[dict] = None) -> EngineConfig:
    """Defaults, then YAML (if given), then environment."""
    config = EngineConfig.from_yaml(path) if path else EngineConfig()
    return config.with_env(environ)
