"""
Spender identity resolution.

Two independent sources, both best-effort:
    AppNameRegistry     - known application contracts, from config/YAML
    EnsReverseResolver  - ENS reverse record (forward-verified by web3)

NameResolver combines them behind the IdentityResolver interface.
Lookups never raise; a failure is logged and reported as None.
"""

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml
from ens import AsyncENS
from web3 import AsyncWeb3

from allowguard.core.addresses import checksum
from allowguard.core.exceptions import ConfigError, ValidationError


logger = logging.getLogger(__name__)


class AppNameRegistry:
    """Checksummed address -> application name."""

    def __init__(self, names: Optional[Mapping[str, str]] = None):
        self._names: Dict[str, str] = {
            checksum(address): name for address, name in (names or {}).items()
        }

    def __len__(self) -> int:
        return len(self._names)

    @classmethod
    def from_yaml(cls, path: Path) -> "AppNameRegistry":
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError("Cannot load app names", {"path": path, "error": e}) from e
        if not isinstance(data, dict):
            raise ConfigError("App names file must contain a mapping", {"path": path})
        try:
            return cls(data)
        except ValidationError as e:
            raise ConfigError("App names file has an invalid address", {"path": path}) from e

    def lookup(self, address: str) -> Optional[str]:
        try:
            return self._names.get(checksum(address))
        except ValidationError:
            return None


class EnsReverseResolver:

    def __init__(self, w3: AsyncWeb3):
        self.ens = AsyncENS.from_web3(w3)

    async def reverse_name(self, address: str) -> Optional[str]:
        try:
            return await self.ens.name(address)
        except Exception as e:
            logger.warning("ENS reverse lookup failed for %s: %s", address, e)
            return None


class NameResolver:
    """IdentityResolver over an app-name registry and an optional ENS resolver."""

    def __init__(
        self,
        registry: Optional[AppNameRegistry] = None,
        ens:      Optional[EnsReverseResolver] = None,
    ):
        self.registry = registry or AppNameRegistry()
        self.ens = ens

    async def application_name(self, address: str) -> Optional[str]:
        return self.registry.lookup(address)

    async def reverse_name(self, address: str) -> Optional[str]:
        if self.ens is None:
            return None
        return await self.ens.reverse_name(address)
