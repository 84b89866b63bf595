"""
Runtime wiring for CLI commands: config -> web3 -> session.
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import SignAndSendRawMiddlewareBuilder

from allowguard.adapters import (
    AppNameRegistry,
    ApprovalLogScanner,
    EnsReverseResolver,
    NameResolver,
    Web3Token,
)
from allowguard.config import ENV_PRIVATE_KEY, EngineConfig, load_config
from allowguard.core.addresses import checksum
from allowguard.core.exceptions import ConfigError
from allowguard.session import AllowanceSession


def configure_logging(config: EngineConfig, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.logging_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class CliRuntime:
    """Everything a command needs to reach the chain."""

    config: EngineConfig
    w3:     AsyncWeb3
    signer: Optional[str] = None

    @classmethod
    def from_config(
        cls,
        config_path: Optional[Path] = None,
        rpc_url:     Optional[str] = None,
        environ:     Optional[dict] = None,
    ) -> "CliRuntime":
        env = os.environ if environ is None else environ
        config = load_config(config_path, env)
        if rpc_url:
            config = replace(config, rpc_url=rpc_url)

        w3 = AsyncWeb3(AsyncHTTPProvider(config.rpc_url))

        signer = None
        private_key = env.get(ENV_PRIVATE_KEY)
        if private_key:
            try:
                account = Account.from_key(private_key)
            except Exception as e:
                raise ConfigError(f"{ENV_PRIVATE_KEY} is not a valid private key") from e
            w3.middleware_onion.inject(SignAndSendRawMiddlewareBuilder.build(account), layer=0)
            signer = account.address

        return cls(config=config, w3=w3, signer=signer)

    async def open_session(
        self,
        token_address: str,
        owner:         str,
        from_block:    Optional[int] = None,
    ) -> AllowanceSession:
        """Load token metadata and Approval history, then run discovery."""
        owner = checksum(owner)
        token = Web3Token(self.w3, token_address, sender=self.signer)
        metadata = await token.metadata(owner)

        scanner = ApprovalLogScanner(self.w3, self.config.log_chunk_size)
        start = self.config.from_block if from_block is None else from_block
        events = await scanner.scan(token.address, owner, from_block=start)

        resolver = NameResolver(
            AppNameRegistry(self.config.app_names),
            EnsReverseResolver(self.w3),
        )
        session = AllowanceSession(
            token=             metadata,
            owner=             owner,
            events=            events,
            reader=            token,
            writer=            token if self.signer else None,
            resolver=          resolver,
            signer=            self.signer,
            min_confirmations= self.config.min_confirmations,
        )
        await session.refresh()
        return session
