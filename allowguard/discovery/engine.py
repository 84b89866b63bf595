"""
Allowance discovery: raw Approval history -> reconciled allowance set.
"""

import asyncio
import logging
from typing import Awaitable, Iterable, List, Optional

from allowguard.capabilities import AllowanceReader, IdentityResolver
from allowguard.core.addresses import checksum
from allowguard.core.amounts import is_negligible
from allowguard.core.exceptions import AllowGuardError, TransportError
from allowguard.core.models import (
    Allowance,
    AuthorizationEvent,
    DiscoveryRun,
    TokenMetadata,
)


logger = logging.getLogger(__name__)


def unique_spenders(events: Iterable[AuthorizationEvent]) -> List[str]:
    """Distinct spender addresses in first-occurrence order."""
    seen = set()
    spenders = []
    for event in events:
        spender = event.spender
        if spender not in seen:
            seen.add(spender)
            spenders.append(spender)
    return spenders


class DiscoveryFailed(TransportError):
    """Carries the FAILED DiscoveryRun alongside the underlying error."""

    def __init__(self, run: DiscoveryRun):
        super().__init__(str(run.error), {"owner": run.owner, "token": run.token})
        self.run = run


class AllowanceDiscovery:
    """
    Builds the reconciled allowance set for one (owner, token) pair.

    Steps:
        1. Dedupe events by spender, first occurrence wins
        2. Fetch live allowance per spender, concurrently
        3. Drop amounts that display as zero
        4. Resolve display identity for survivors (best-effort)
        5. Stable sort by amount, descending

    A failed amount query fails the whole run. A failed identity lookup
    never does.
    """

    def __init__(
        self,
        reader:   AllowanceReader,
        resolver: Optional[IdentityResolver] = None,
    ):
        self.reader   = reader
        self.resolver = resolver

    async def discover(
        self,
        events: Iterable[AuthorizationEvent],
        owner:  Optional[str],
        token:  Optional[TokenMetadata],
    ) -> Optional[DiscoveryRun]:
        """
        Run discovery.

        Returns None (and does nothing) when owner or token is not yet
        known. Otherwise returns a READY DiscoveryRun, or raises
        DiscoveryFailed carrying the FAILED run when any amount query fails.
        """
        if not owner or token is None:
            return None

        owner = checksum(owner)
        run = DiscoveryRun(owner=owner, token=token.address)
        spenders = unique_spenders(events)
        logger.debug("Discovering %d spender(s) of %s for %s", len(spenders), token.address, owner)

        try:
            results = await asyncio.gather(
                *(self._load(owner, spender, token) for spender in spenders)
            )
        except AllowGuardError as e:
            logger.debug("Discovery failed for %s: %s", owner, e)
            raise DiscoveryFailed(run.fail(e)) from e

        allowances = sorted(
            (a for a in results if a is not None),
            key=lambda a: a.current_amount,
            reverse=True,
        )
        logger.debug("Discovered %d non-negligible allowance(s)", len(allowances))
        return run.complete(allowances)

    async def _load(
        self,
        owner:   str,
        spender: str,
        token:   TokenMetadata,
    ) -> Optional[Allowance]:
        try:
            amount = await self.reader.allowance(owner, spender)
        except AllowGuardError:
            raise
        except Exception as e:
            raise TransportError(
                "Allowance query failed",
                {"spender": spender, "error": e},
            ) from e

        # Filter before identity lookups to save round trips.
        if is_negligible(amount, token.decimals, token.total_supply):
            return None

        app_name, reverse_name = await asyncio.gather(
            self._best_effort("application_name", spender),
            self._best_effort("reverse_name", spender),
        )
        return Allowance(
            spender=spender,
            current_amount=amount,
            app_name=app_name,
            reverse_name=reverse_name,
        )

    async def _best_effort(self, lookup: str, spender: str) -> Optional[str]:
        if self.resolver is None:
            return None
        call: Awaitable[Optional[str]] = getattr(self.resolver, lookup)(spender)
        try:
            return await call
        except Exception as e:
            logger.warning("%s lookup failed for %s: %s", lookup, spender, e)
            return None

