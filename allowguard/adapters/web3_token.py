"""
ERC-20 token adapter over AsyncWeb3.

Implements AllowanceReader and ApprovalWriter. Writes are sent with
`transact({"from": sender})`; signing is the provider's business (a
node-managed account, or SignAndSendRawMiddlewareBuilder installed by
the caller).

Revert detection: web3 estimates gas before sending, so a token that
rejects the call fails here with ContractLogicError or an RPC error
with code -32000 ("execution reverted"). Both classify as REVERTED.
Everything else classifies as OTHER.
"""

import asyncio
import logging
from typing import Any, Optional

from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3RPCError

from allowguard.core.addresses import checksum
from allowguard.core.exceptions import (
    ApprovalCallError,
    CallFailure,
    ConfirmationError,
    TransportError,
)
from allowguard.core.models import TokenMetadata


logger = logging.getLogger(__name__)


EXECUTION_REVERTED_CODE = -32000

ERC20_ABI = [
    {"constant": True, "inputs": [], "name": "symbol",
     "outputs": [{"name": "", "type": "string"}], "type": "function"},
    {"constant": True, "inputs": [], "name": "decimals",
     "outputs": [{"name": "", "type": "uint8"}], "type": "function"},
    {"constant": True, "inputs": [], "name": "totalSupply",
     "outputs": [{"name": "", "type": "uint256"}], "type": "function"},
    {"constant": True, "inputs": [{"name": "owner", "type": "address"}], "name": "balanceOf",
     "outputs": [{"name": "", "type": "uint256"}], "type": "function"},
    {"constant": True, "inputs": [{"name": "owner", "type": "address"}, {"name": "spender", "type": "address"}],
     "name": "allowance", "outputs": [{"name": "", "type": "uint256"}], "type": "function"},
    {"constant": False, "inputs": [{"name": "spender", "type": "address"}, {"name": "amount", "type": "uint256"}],
     "name": "approve", "outputs": [{"name": "", "type": "bool"}], "type": "function"},
    {"constant": False, "inputs": [{"name": "spender", "type": "address"}, {"name": "addedValue", "type": "uint256"}],
     "name": "increaseApproval", "outputs": [{"name": "", "type": "bool"}], "type": "function"},
    {"constant": False, "inputs": [{"name": "spender", "type": "address"}, {"name": "subtractedValue", "type": "uint256"}],
     "name": "decreaseApproval", "outputs": [{"name": "", "type": "bool"}], "type": "function"},
]


def _rpc_error_code(error: Exception) -> Optional[int]:
    """Pull the JSON-RPC error code out of the shapes web3 raises."""
    if isinstance(error, Web3RPCError) and isinstance(error.rpc_response, dict):
        return (error.rpc_response.get("error") or {}).get("code")
    if error.args and isinstance(error.args[0], dict):
        return error.args[0].get("code")
    return None


def classify_call_error(error: Exception, method: str, spender: str) -> ApprovalCallError:
    if isinstance(error, ContractLogicError) or _rpc_error_code(error) == EXECUTION_REVERTED_CODE:
        failure = CallFailure.REVERTED
    else:
        failure = CallFailure.OTHER
    return ApprovalCallError(
        f"{method} failed",
        failure,
        {"spender": spender, "kind": failure.value, "error": error},
        cause=error,
    )


class Web3PendingChange:
    """A sent transaction; confirm() waits for the receipt plus depth."""

    def __init__(self, w3: AsyncWeb3, tx_hash: Any, poll_interval: float = 1.0):
        self.w3 = w3
        self.tx_hash = tx_hash
        self.poll_interval = poll_interval

    async def confirm(self, min_confirmations: int) -> None:
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(self.tx_hash)
        except TimeExhausted as e:
            raise ConfirmationError("Transaction was not mined", {"tx": self.tx_hash.hex()}) from e
        except Exception as e:
            raise TransportError("Receipt query failed", {"tx": self.tx_hash.hex(), "error": e}) from e

        if receipt["status"] != 1:
            raise ConfirmationError("Transaction failed on-chain", {"tx": self.tx_hash.hex()})

        mined_in = receipt["blockNumber"]
        while True:
            try:
                head = await self.w3.eth.block_number
            except Exception as e:
                raise TransportError("Block number query failed", {"error": e}) from e
            if head - mined_in + 1 >= min_confirmations:
                return
            await asyncio.sleep(self.poll_interval)


class Web3Token:
    """One ERC-20 contract, read and (with a sender) written."""

    def __init__(
        self,
        w3:             AsyncWeb3,
        address:        str,
        sender:         Optional[str] = None,
        poll_interval:  float = 1.0,
    ):
        self.w3 = w3
        self.address = checksum(address)
        self.sender = checksum(sender) if sender else None
        self.poll_interval = poll_interval
        self.contract = w3.eth.contract(address=self.address, abi=ERC20_ABI)

    # ── Reads ─────────────────────────────────────────────────

    async def _call(self, name: str, *args) -> Any:
        try:
            return await getattr(self.contract.functions, name)(*args).call()
        except Exception as e:
            raise TransportError(
                f"{name}() query failed",
                {"token": self.address, "error": e},
            ) from e

    async def allowance(self, owner: str, spender: str) -> int:
        return int(await self._call("allowance", owner, spender))

    async def metadata(self, owner: Optional[str] = None) -> TokenMetadata:
        try:
            symbol = await self.contract.functions.symbol().call()
        except Exception as e:
            # Some tokens return bytes32 or nothing for symbol().
            logger.debug("symbol() unavailable for %s: %s", self.address, e)
            symbol = "???"

        decimals, total_supply = await asyncio.gather(
            self._call("decimals"),
            self._call("totalSupply"),
        )
        balance = await self._call("balanceOf", checksum(owner)) if owner else 0
        return TokenMetadata(
            address=      self.address,
            symbol=       symbol,
            decimals=     int(decimals),
            total_supply= int(total_supply),
            balance=      int(balance),
        )

    # ── Writes ────────────────────────────────────────────────

    async def _send(self, method: str, spender: str, amount: int) -> Web3PendingChange:
        if self.sender is None:
            raise ApprovalCallError(
                "No sender configured for writes",
                CallFailure.OTHER,
                {"method": method},
            )
        fn = getattr(self.contract.functions, method)(checksum(spender), amount)
        try:
            tx_hash = await fn.transact({"from": self.sender})
        except Exception as e:
            raise classify_call_error(e, method, spender) from e
        logger.debug("%s(%s, %d) sent: %s", method, spender, amount, tx_hash.hex())
        return Web3PendingChange(self.w3, tx_hash, self.poll_interval)

    async def approve(self, spender: str, amount: int) -> Web3PendingChange:
        return await self._send("approve", spender, amount)

    async def increase_allowance(self, spender: str, delta: int) -> Web3PendingChange:
        return await self._send("increaseApproval", spender, delta)

    async def decrease_allowance(self, spender: str, delta: int) -> Web3PendingChange:
        return await self._send("decreaseApproval", spender, delta)
