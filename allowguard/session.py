"""
Reconciliation session for one (owner, token) pair.

This is what a presentation layer holds on to: the reconciled allowance
list, an explicit loading state, and the revoke / update commands.
"""

import logging
from typing import Iterable, List, Optional

from allowguard.capabilities import AllowanceReader, ApprovalWriter, IdentityResolver
from allowguard.core.addresses import checksum
from allowguard.core.amounts import ZERO_DISPLAY, format_units, from_text
from allowguard.core.exceptions import ValidationError
from allowguard.core.models import (
    Allowance,
    AuthorizationEvent,
    DiscoveryRun,
    DiscoveryStatus,
    TokenMetadata,
)
from allowguard.discovery.engine import AllowanceDiscovery, DiscoveryFailed
from allowguard.update.protocol import AllowanceUpdater, UpdateOutcome


logger = logging.getLogger(__name__)


def token_is_empty(token: TokenMetadata, allowances: Iterable[Allowance]) -> bool:
    """No visible balance and no allowances: nothing worth showing."""
    return format_units(token.balance, token.decimals) == ZERO_DISPLAY and not list(allowances)


class AllowanceSession:
    """
    Holds the latest DiscoveryRun for one owner and token.

    `allowances` always reflects the last READY run. A FAILED refresh
    leaves it untouched (stale but visible); changing the owner clears it.
    """

    def __init__(
        self,
        token:             TokenMetadata,
        owner:             Optional[str],
        events:            Iterable[AuthorizationEvent],
        reader:            AllowanceReader,
        writer:            Optional[ApprovalWriter] = None,
        resolver:          Optional[IdentityResolver] = None,
        signer:            Optional[str] = None,
        min_confirmations: int = 1,
    ):
        self.token  = token
        self.owner  = checksum(owner) if owner else None
        self.events = list(events)
        self.signer = checksum(signer) if signer else None

        self.discovery = AllowanceDiscovery(reader, resolver)
        self.updater   = AllowanceUpdater(writer, min_confirmations) if writer else None

        self.run:    Optional[DiscoveryRun] = None
        self._ready: Optional[DiscoveryRun] = None

    # ── Read side ─────────────────────────────────────────────

    @property
    def allowances(self) -> List[Allowance]:
        return list(self._ready.allowances) if self._ready else []

    @property
    def loading(self) -> bool:
        return self.run is not None and self.run.status is DiscoveryStatus.PENDING

    @property
    def can_write(self) -> bool:
        """Only the connected signer may change its own allowances."""
        return self.updater is not None and self.signer is not None and self.signer == self.owner

    def find(self, spender: str) -> Allowance:
        spender = checksum(spender)
        for allowance in self.allowances:
            if allowance.spender == spender:
                return allowance
        raise ValidationError("No allowance for spender", {"spender": spender})

    # ── Discovery ─────────────────────────────────────────────

    async def refresh(self) -> Optional[DiscoveryRun]:
        """Re-run discovery, replacing the allowance set wholesale."""
        if not self.owner:
            return None

        self.run = DiscoveryRun(owner=self.owner, token=self.token.address)
        try:
            run = await self.discovery.discover(self.events, self.owner, self.token)
        except DiscoveryFailed as e:
            self.run = e.run
            raise

        self.run = run
        self._ready = run
        return run

    async def set_owner(
        self,
        owner:  str,
        events: Iterable[AuthorizationEvent],
    ) -> Optional[DiscoveryRun]:
        """Switch to another owner. Same owner is a no-op."""
        owner = checksum(owner)
        if owner == self.owner:
            return self.run

        self.owner  = owner
        self.events = list(events)
        self.run    = None
        self._ready = None
        return await self.refresh()

    # ── Commands ──────────────────────────────────────────────

    def stage(self, spender: str, text: str) -> Allowance:
        """Set the pending target. Issues no ledger call."""
        allowance = self.find(spender)
        allowance.pending_target_amount = from_text(text, self.token.decimals)
        return allowance

    async def update(self, spender: str, text: Optional[str] = None) -> UpdateOutcome:
        """
        Change the spender's authorization to `text` (or the staged target).

        Errors from the strategy chain propagate and leave the allowance
        set untouched. On success discovery is re-run.
        """
        if not self.can_write:
            raise ValidationError(
                "Allowances can only be changed by the connected owner",
                {"owner": self.owner, "signer": self.signer},
            )

        allowance = self.find(spender)
        if text is None:
            target = allowance.pending_target_amount
        else:
            target = from_text(text, self.token.decimals)

        outcome = await self.updater.apply(allowance, target)

        try:
            await self.refresh()
        except DiscoveryFailed as e:
            # The change itself is confirmed; only the re-read failed.
            logger.warning("Refresh after update failed: %s", e)
        return outcome

    async def revoke(self, spender: str) -> UpdateOutcome:
        return await self.update(spender, "0")
