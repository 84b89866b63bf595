"""
allowguard/core/models.py

AllowGuard Data Model

AuthorizationEvent  - immutable historical Approval record, decoded once at
                      the boundary. Never re-parsed inside the engine.
TokenMetadata       - what the engine needs to know about the token.
Allowance           - reconciled view of one spender's live authorization.
DiscoveryRun        - one discovery pass with its own status, owned by
                      the caller instead of an implicit loading flag.

Invariants
    One Allowance per spender per run.
    Allowance.current_amount is only ever set by discovery.
    Allowance.pending_target_amount is staging state; setting it issues
    no ledger call.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Tuple

from allowguard.core.addresses import checksum, shorten_address, topic_to_address
from allowguard.core.amounts import to_display
from allowguard.core.exceptions import AllowGuardError, ValidationError


# keccak256("Approval(address,address,uint256)")
APPROVAL_TOPIC = "0x8c5be1e5ebec7d5bd14f714f22dc3bd3f1fc0cf11088a7c6c1559617d7e604bb"


def _hex(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)


@dataclass(frozen=True)
class AuthorizationEvent:
    """
    One Approval(owner, spender, value) log for the token.

    topics[1] is the owner word, topics[2] the spender word; both are
    32-byte topics with the address right-aligned.
    """
    owner_topic:      str
    spender_topic:    str
    token:            Optional[str] = None
    block_number:     Optional[int] = None
    transaction_hash: Optional[str] = None

    @property
    def owner(self) -> str:
        return topic_to_address(self.owner_topic)

    @property
    def spender(self) -> str:
        return topic_to_address(self.spender_topic)

    @classmethod
    def from_log(cls, log: Mapping[str, Any]) -> "AuthorizationEvent":
        """
        Decode a raw log record (web3 AttributeDict or plain dict).

        Raises ValidationError when the record is not an indexed
        Approval log (fewer than three topics, or malformed topics).
        """
        topics = log.get("topics") or []
        if len(topics) < 3:
            raise ValidationError(
                "Approval log must carry owner and spender topics",
                {"topics": len(topics)},
            )

        owner_topic   = _hex(topics[1])
        spender_topic = _hex(topics[2])
        for topic in (owner_topic, spender_topic):
            topic_to_address(topic)

        return cls(
            owner_topic=      owner_topic,
            spender_topic=    spender_topic,
            token=            checksum(log["address"]) if log.get("address") else None,
            block_number=     log.get("blockNumber"),
            transaction_hash= _hex(log.get("transactionHash")),
        )


@dataclass(frozen=True)
class TokenMetadata:
    """Token facts discovery and formatting depend on."""
    address:      str
    decimals:     int
    total_supply: int
    symbol:       str = "???"
    balance:      int = 0

    def display(self, amount: int) -> str:
        return to_display(amount, self.decimals, self.total_supply)


@dataclass
class Allowance:
    """Live authorization granted by the owner to one spender."""
    spender:               str
    current_amount:        int
    pending_target_amount: int = 0
    app_name:              Optional[str] = None
    reverse_name:          Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.app_name or self.reverse_name or self.spender

    @property
    def short_name(self) -> str:
        return self.app_name or self.reverse_name or shorten_address(self.spender)

    def to_dict(self, token: Optional[TokenMetadata] = None) -> dict:
        data = {
            "spender":               self.spender,
            "display_name":          self.display_name,
            "current_amount":        str(self.current_amount),
            "pending_target_amount": str(self.pending_target_amount),
        }
        if token is not None:
            data["display_amount"] = token.display(self.current_amount)
        return data


class DiscoveryStatus(Enum):
    PENDING = "pending"
    READY   = "ready"
    FAILED  = "failed"


@dataclass(frozen=True)
class DiscoveryRun:
    """
    Result of one discovery pass.

    A FAILED run carries the error and no allowances; the caller decides
    whether to keep showing the previous READY run.
    """
    owner:      str
    token:      str
    status:     DiscoveryStatus = DiscoveryStatus.PENDING
    allowances: Tuple[Allowance, ...] = field(default_factory=tuple)
    error:      Optional[AllowGuardError] = None

    @property
    def ready(self) -> bool:
        return self.status is DiscoveryStatus.READY

    def complete(self, allowances: Sequence[Allowance]) -> "DiscoveryRun":
        return DiscoveryRun(
            owner=self.owner,
            token=self.token,
            status=DiscoveryStatus.READY,
            allowances=tuple(allowances),
        )

    def fail(self, error: AllowGuardError) -> "DiscoveryRun":
        return DiscoveryRun(
            owner=self.owner,
            token=self.token,
            status=DiscoveryStatus.FAILED,
            error=error,
        )

    def find(self, spender: str) -> Optional[Allowance]:
        spender = checksum(spender)
        for allowance in self.allowances:
            if allowance.spender == spender:
                return allowance
        return None
