"""
Update strategy state machine.

Pure policy, no I/O. The chain is tried in strict order of preference:

    DIRECT_SET      approve(spender, target)
    DELTA_SET       increase/decrease by |target - current|
    RESET_THEN_SET  approve(spender, 0), confirm, approve(spender, target)

Transitions:
    any active state  + SUCCESS   -> DONE
    any active state  + OTHER     -> FAILED
    DIRECT_SET        + REVERTED  -> DELTA_SET
    DELTA_SET         + REVERTED  -> RESET_THEN_SET
    RESET_THEN_SET    + REVERTED  -> FAILED

DONE and FAILED are terminal.
"""

from enum import Enum

from allowguard.core.exceptions import CallFailure, InvalidStateTransition


class UpdateState(Enum):
    DIRECT_SET     = "direct_set"
    DELTA_SET      = "delta_set"
    RESET_THEN_SET = "reset_then_set"
    DONE           = "done"
    FAILED         = "failed"

    @property
    def terminal(self) -> bool:
        return self in (UpdateState.DONE, UpdateState.FAILED)


class AttemptResult(Enum):
    SUCCESS  = "success"
    REVERTED = "reverted"
    OTHER    = "other"

    @classmethod
    def from_failure(cls, failure: CallFailure) -> "AttemptResult":
        if failure is CallFailure.REVERTED:
            return cls.REVERTED
        return cls.OTHER


INITIAL_STATE = UpdateState.DIRECT_SET

_ON_REVERT = {
    UpdateState.DIRECT_SET:     UpdateState.DELTA_SET,
    UpdateState.DELTA_SET:      UpdateState.RESET_THEN_SET,
    UpdateState.RESET_THEN_SET: UpdateState.FAILED,
}


def transition(state: UpdateState, result: AttemptResult) -> UpdateState:
    """Next state after an attempt in `state` ended with `result`."""
    if state.terminal:
        raise InvalidStateTransition(
            "Update already finished",
            {"state": state.value, "result": result.value},
        )
    if result is AttemptResult.SUCCESS:
        return UpdateState.DONE
    if result is AttemptResult.OTHER:
        return UpdateState.FAILED
    return _ON_REVERT[state]
