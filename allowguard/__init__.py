"""
allowguard/__init__.py

AllowGuard: ERC-20 allowance reconciliation engine.

Discovers the live, non-negligible allowances an owner has granted for a
token, and changes them safely across tokens that disagree on how
approve() may be called.
"""

__version__ = "0.1.0"

from allowguard.core.models import (
    Allowance,
    AuthorizationEvent,
    DiscoveryRun,
    DiscoveryStatus,
    TokenMetadata,
)
from allowguard.core.exceptions import (
    AllowGuardError,
    ApprovalCallError,
    CallFailure,
    ConfigError,
    ConfirmationError,
    TransportError,
    UpdateFailedError,
    ValidationError,
)
from allowguard.core.amounts import UNLIMITED, from_text, to_display
from allowguard.discovery import AllowanceDiscovery, DiscoveryFailed
from allowguard.update import AllowanceUpdater, UpdateOutcome, UpdateState
from allowguard.session import AllowanceSession

__all__ = [
    # Model
    "Allowance",
    "AuthorizationEvent",
    "DiscoveryRun",
    "DiscoveryStatus",
    "TokenMetadata",
    # Engine
    "AllowanceDiscovery",
    "AllowanceSession",
    "AllowanceUpdater",
    "UpdateOutcome",
    "UpdateState",
    # Errors
    "AllowGuardError",
    "ApprovalCallError",
    "CallFailure",
    "ConfigError",
    "ConfirmationError",
    "DiscoveryFailed",
    "TransportError",
    "UpdateFailedError",
    "ValidationError",
    # Helpers
    "UNLIMITED",
    "from_text",
    "to_display",
]
