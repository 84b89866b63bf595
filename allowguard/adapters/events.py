"""
Approval log scanner.

Pulls Approval(owner, spender, value) logs for one token and one owner,
in fixed-size block chunks (public RPC endpoints cap eth_getLogs ranges),
and decodes each log into an AuthorizationEvent.
"""

import logging
from typing import Iterator, List, Optional, Tuple

from web3 import AsyncWeb3

from allowguard.core.addresses import address_to_topic, checksum
from allowguard.core.exceptions import TransportError
from allowguard.core.models import APPROVAL_TOPIC, AuthorizationEvent


logger = logging.getLogger(__name__)


def chunk_ranges(start: int, end: int, step: int) -> Iterator[Tuple[int, int]]:
    """Inclusive [a, b] block windows covering start..end."""
    cur = start
    while cur <= end:
        yield cur, min(end, cur + step - 1)
        cur += step


class ApprovalLogScanner:

    def __init__(self, w3: AsyncWeb3, chunk_size: int = 3000):
        self.w3 = w3
        self.chunk_size = chunk_size

    async def scan(
        self,
        token:      str,
        owner:      str,
        from_block: int = 0,
        to_block:   Optional[int] = None,
    ) -> List[AuthorizationEvent]:
        token = checksum(token)
        owner_topic = address_to_topic(owner)

        try:
            latest = await self.w3.eth.block_number if to_block is None else to_block
        except Exception as e:
            raise TransportError("Block number query failed", {"error": e}) from e

        events: List[AuthorizationEvent] = []
        for a, b in chunk_ranges(from_block, latest, self.chunk_size):
            try:
                logs = await self.w3.eth.get_logs({
                    "address":   token,
                    "fromBlock": a,
                    "toBlock":   b,
                    "topics":    [APPROVAL_TOPIC, owner_topic],
                })
            except Exception as e:
                raise TransportError(
                    "eth_getLogs failed",
                    {"token": token, "from": a, "to": b, "error": e},
                ) from e
            events.extend(AuthorizationEvent.from_log(log) for log in logs)

        logger.debug("Scanned %d Approval log(s) for %s on %s", len(events), owner, token)
        return events
