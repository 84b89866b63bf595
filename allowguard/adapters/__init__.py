"""AllowGuard adapters binding the engine's capabilities to web3."""

from allowguard.adapters.events import ApprovalLogScanner
from allowguard.adapters.names import AppNameRegistry, EnsReverseResolver, NameResolver
from allowguard.adapters.web3_token import Web3PendingChange, Web3Token, classify_call_error

__all__ = [
    "ApprovalLogScanner",
    "AppNameRegistry",
    "EnsReverseResolver",
    "NameResolver",
    "Web3PendingChange",
    "Web3Token",
    "classify_call_error",
]
