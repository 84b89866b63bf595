"""
Allowance update protocol.

Not every deployed token accepts approve() between two non-zero values
(https://github.com/ethereum/EIPs/issues/20#issuecomment-263524729), and
tokens declare nothing about which dialect they speak. The updater finds
out empirically by walking the strategy chain in update/machine.py until
one call goes through.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from allowguard.capabilities import ApprovalWriter, PendingChange
from allowguard.core.exceptions import ApprovalCallError, UpdateFailedError
from allowguard.core.models import Allowance
from allowguard.update.machine import (
    INITIAL_STATE,
    AttemptResult,
    UpdateState,
    transition,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateOutcome:
    """A confirmed authorization change."""
    spender:         str
    previous_amount: int
    target_amount:   int
    strategy:        UpdateState
    attempts:        Tuple[UpdateState, ...]


class AllowanceUpdater:
    """
    Drives one spender's authorization from its current amount to a target.

    Strategy attempts are strictly sequential. Only a REVERTED failure
    advances the chain; an OTHER failure is re-raised unchanged. When the
    final strategy also reverts, UpdateFailedError is raised. The
    succeeding change is confirmed before apply() returns.
    """

    def __init__(self, writer: ApprovalWriter, min_confirmations: int = 1):
        self.writer = writer
        self.min_confirmations = min_confirmations

    async def apply(self, allowance: Allowance, target: int) -> UpdateOutcome:
        state = INITIAL_STATE
        attempts: List[UpdateState] = []
        last_error = None
        change = None

        while not state.terminal:
            attempts.append(state)
            try:
                change = await self._attempt(state, allowance, target)
            except ApprovalCallError as e:
                logger.debug("%s failed for %s: %s", state.value, allowance.spender, e)
                last_error = e
                state = transition(state, AttemptResult.from_failure(e.failure))
                if not e.reverted:
                    raise
                continue
            state = transition(state, AttemptResult.SUCCESS)

        if state is UpdateState.FAILED:
            raise UpdateFailedError(
                "Every update strategy reverted",
                last_error=last_error,
                attempts=[s.value for s in attempts],
            ) from last_error

        await change.confirm(self.min_confirmations)
        logger.info(
            "Allowance for %s set to %d via %s",
            allowance.spender, target, attempts[-1].value,
        )
        return UpdateOutcome(
            spender=         allowance.spender,
            previous_amount= allowance.current_amount,
            target_amount=   target,
            strategy=        attempts[-1],
            attempts=        tuple(attempts),
        )

    async def _attempt(
        self,
        state:     UpdateState,
        allowance: Allowance,
        target:    int,
    ) -> PendingChange:
        spender = allowance.spender

        if state is UpdateState.DIRECT_SET:
            logger.debug("Calling approve(%s, %d)", spender, target)
            return await self.writer.approve(spender, target)

        if state is UpdateState.DELTA_SET:
            delta = target - allowance.current_amount
            if delta >= 0:
                logger.debug("Calling increaseApproval(%s, %d)", spender, delta)
                return await self.writer.increase_allowance(spender, delta)
            logger.debug("Calling decreaseApproval(%s, %d)", spender, -delta)
            return await self.writer.decrease_allowance(spender, -delta)

        # RESET_THEN_SET: a zero window is acceptable, a non-zero one is not.
        logger.debug("Calling approve(%s, 0)", spender)
        reset = await self.writer.approve(spender, 0)
        await reset.confirm(self.min_confirmations)
        logger.debug("Calling approve(%s, %d)", spender, target)
        return await self.writer.approve(spender, target)
