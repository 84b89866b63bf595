"""
AllowGuard Update Protocol

Moves one spender's authorization to a target amount through an ordered
strategy chain (direct approve, relative delta, reset-then-approve).
The chain policy lives in machine.py and has no I/O.
"""

from allowguard.update.machine import AttemptResult, UpdateState, transition
from allowguard.update.protocol import AllowanceUpdater, UpdateOutcome

__all__ = [
    "AllowanceUpdater",
    "AttemptResult",
    "UpdateOutcome",
    "UpdateState",
    "transition",
]
