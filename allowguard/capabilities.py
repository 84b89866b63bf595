"""
allowguard/capabilities.py

Collaborator contracts the engine consumes. The engine never talks to a
node directly; adapters in allowguard/adapters implement these against
web3, and the test suite implements them in memory.

All methods are coroutines: every network round trip is a suspension point.
"""

from typing import Optional, Protocol


class PendingChange(Protocol):
    """A submitted authorization change awaiting confirmation."""

    async def confirm(self, min_confirmations: int) -> None:
        """Block until confirmed. Raises ConfirmationError / TransportError."""
        ...


class AllowanceReader(Protocol):

    async def allowance(self, owner: str, spender: str) -> int:
        """Current authorization. Raises TransportError."""
        ...


class ApprovalWriter(Protocol):
    """
    Authorization-setting calls. Each raises ApprovalCallError classified
    as CallFailure.REVERTED or CallFailure.OTHER.
    """

    async def approve(self, spender: str, amount: int) -> PendingChange:
        ...

    async def increase_allowance(self, spender: str, delta: int) -> PendingChange:
        ...

    async def decrease_allowance(self, spender: str, delta: int) -> PendingChange:
        ...


class IdentityResolver(Protocol):
    """Best-effort name lookups. Never raise; absence is None."""

    async def reverse_name(self, address: str) -> Optional[str]:
        ...

    async def application_name(self, address: str) -> Optional[str]:
        ...
