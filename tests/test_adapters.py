"""
tests/test_adapters.py

web3-backed adapters exercised against small stand-ins for AsyncWeb3:
error classification, log scanning, token reads/writes, confirmation,
and name resolution.

Run:
    pytest tests/test_adapters.py -v --tb=short
"""

import asyncio

import pytest
from hexbytes import HexBytes
from web3.exceptions import ContractLogicError, TimeExhausted, Web3RPCError

from allowguard.adapters import (
    AppNameRegistry,
    ApprovalLogScanner,
    NameResolver,
    Web3PendingChange,
    Web3Token,
    classify_call_error,
)
from allowguard.adapters.events import chunk_ranges
from allowguard.core.addresses import address_to_topic
from allowguard.core.exceptions import (
    ApprovalCallError,
    CallFailure,
    ConfigError,
    ConfirmationError,
    TransportError,
)
from allowguard.core.models import APPROVAL_TOPIC

from helpers.fakes import OWNER, SPENDER_A, SPENDER_B, TOKEN_ADDRESS


TX_HASH = HexBytes("0x" + "12" * 32)


# ─────────────────────────────────────────────────────────────
# STAND-INS
# ─────────────────────────────────────────────────────────────

class FakeCall:

    def __init__(self, contract, name, args):
        self.contract = contract
        self.name = name
        self.args = args

    async def call(self):
        result = self.contract.results[self.name]
        if isinstance(result, Exception):
            raise result
        return result

    async def transact(self, tx):
        self.contract.sent.append((self.name, self.args, tx))
        error = self.contract.send_errors.get(self.name)
        if error is not None:
            raise error
        return TX_HASH


class FakeFunctions:

    def __init__(self, contract):
        self._contract = contract

    def __getattr__(self, name):
        return lambda *args: FakeCall(self._contract, name, args)


class FakeContract:

    def __init__(self, results=None):
        self.results = results or {}
        self.send_errors = {}
        self.sent = []
        self.functions = FakeFunctions(self)


class FakeEth:

    def __init__(self, heads=(100,), logs=None, receipt=None, receipt_error=None):
        self._heads = list(heads)
        self.logs = logs or {}
        self.log_queries = []
        self.receipt = receipt or {"status": 1, "blockNumber": 100}
        self.receipt_error = receipt_error
        self.contract_instance = FakeContract()

    @property
    def block_number(self):
        head = self._heads.pop(0) if len(self._heads) > 1 else self._heads[0]

        async def _head():
            return head
        return _head()

    async def get_logs(self, params):
        self.log_queries.append(params)
        result = self.logs.get((params["fromBlock"], params["toBlock"]), [])
        if isinstance(result, Exception):
            raise result
        return result

    async def wait_for_transaction_receipt(self, tx_hash):
        if self.receipt_error is not None:
            raise self.receipt_error
        return self.receipt

    def contract(self, address, abi):
        return self.contract_instance


class FakeWeb3:

    def __init__(self, **kwargs):
        self.eth = FakeEth(**kwargs)


def approval_log(spender):
    return {
        "address": TOKEN_ADDRESS,
        "topics": [
            HexBytes(APPROVAL_TOPIC),
            HexBytes(address_to_topic(OWNER)),
            HexBytes(address_to_topic(spender)),
        ],
        "blockNumber": 5,
    }


# ─────────────────────────────────────────────────────────────
# ERROR CLASSIFICATION
# ─────────────────────────────────────────────────────────────

class TestClassifyCallError:

    def test_contract_logic_error_is_revert(self):
        error = classify_call_error(ContractLogicError("execution reverted"), "approve", SPENDER_A)
        assert error.failure is CallFailure.REVERTED

    def test_rpc_execution_reverted_code(self):
        rpc = Web3RPCError("execution reverted", rpc_response={"error": {"code": -32000}})
        assert classify_call_error(rpc, "approve", SPENDER_A).reverted

    def test_dict_payload_code(self):
        error = ValueError({"code": -32000, "message": "execution reverted"})
        assert classify_call_error(error, "approve", SPENDER_A).reverted

    def test_other_rpc_code_is_other(self):
        error = ValueError({"code": -32601, "message": "method not found"})
        assert classify_call_error(error, "approve", SPENDER_A).failure is CallFailure.OTHER

    def test_unrelated_exception_is_other(self):
        error = classify_call_error(RuntimeError("user rejected"), "approve", SPENDER_A)
        assert error.failure is CallFailure.OTHER
        assert isinstance(error.cause, RuntimeError)


# ─────────────────────────────────────────────────────────────
# LOG SCANNING
# ─────────────────────────────────────────────────────────────

class TestChunkRanges:

    def test_exact_cover(self):
        assert list(chunk_ranges(0, 9, 5)) == [(0, 4), (5, 9)]

    def test_partial_tail(self):
        assert list(chunk_ranges(10, 22, 5)) == [(10, 14), (15, 19), (20, 22)]

    def test_empty_when_start_after_end(self):
        assert list(chunk_ranges(10, 9, 5)) == []


class TestApprovalLogScanner:

    def test_scan_decodes_logs_across_chunks(self):
        w3 = FakeWeb3(heads=(7,), logs={
            (0, 3): [approval_log(SPENDER_A)],
            (4, 7): [approval_log(SPENDER_B), approval_log(SPENDER_A)],
        })

        events = asyncio.run(ApprovalLogScanner(w3, chunk_size=4).scan(TOKEN_ADDRESS, OWNER))

        assert [e.spender for e in events] == [SPENDER_A, SPENDER_B, SPENDER_A]
        assert all(e.owner == OWNER for e in events)
        query = w3.eth.log_queries[0]
        assert query["topics"] == [APPROVAL_TOPIC, address_to_topic(OWNER)]
        assert query["address"] == TOKEN_ADDRESS

    def test_explicit_range(self):
        w3 = FakeWeb3(logs={(50, 60): [approval_log(SPENDER_A)]})
        events = asyncio.run(
            ApprovalLogScanner(w3, chunk_size=100).scan(TOKEN_ADDRESS, OWNER, 50, 60)
        )
        assert len(events) == 1

    def test_rpc_failure_is_transport_error(self):
        w3 = FakeWeb3(heads=(10,), logs={(0, 10): RuntimeError("range too large")})
        with pytest.raises(TransportError):
            asyncio.run(ApprovalLogScanner(w3).scan(TOKEN_ADDRESS, OWNER))


# ─────────────────────────────────────────────────────────────
# TOKEN
# ─────────────────────────────────────────────────────────────

class TestWeb3Token:

    def test_allowance_read(self):
        w3 = FakeWeb3()
        w3.eth.contract_instance.results["allowance"] = 42
        assert asyncio.run(Web3Token(w3, TOKEN_ADDRESS).allowance(OWNER, SPENDER_A)) == 42

    def test_read_failure_is_transport_error(self):
        w3 = FakeWeb3()
        w3.eth.contract_instance.results["allowance"] = RuntimeError("timeout")
        with pytest.raises(TransportError):
            asyncio.run(Web3Token(w3, TOKEN_ADDRESS).allowance(OWNER, SPENDER_A))

    def test_metadata(self):
        w3 = FakeWeb3()
        w3.eth.contract_instance.results.update({
            "symbol": "DAI", "decimals": 18, "totalSupply": 10 ** 27, "balanceOf": 5,
        })
        meta = asyncio.run(Web3Token(w3, TOKEN_ADDRESS.lower()).metadata(OWNER))
        assert meta.address == TOKEN_ADDRESS
        assert meta.symbol == "DAI"
        assert meta.decimals == 18
        assert meta.balance == 5

    def test_missing_symbol_tolerated(self):
        w3 = FakeWeb3()
        w3.eth.contract_instance.results.update({
            "symbol": ContractLogicError("no symbol"), "decimals": 6, "totalSupply": 1,
        })
        meta = asyncio.run(Web3Token(w3, TOKEN_ADDRESS).metadata())
        assert meta.symbol == "???"
        assert meta.balance == 0

    def test_write_methods_and_sender(self):
        w3 = FakeWeb3()
        token = Web3Token(w3, TOKEN_ADDRESS, sender=OWNER)

        async def scenario():
            await token.approve(SPENDER_A, 1)
            await token.increase_allowance(SPENDER_A, 2)
            await token.decrease_allowance(SPENDER_A, 3)

        asyncio.run(scenario())

        sent = w3.eth.contract_instance.sent
        assert [(name, args) for name, args, _ in sent] == [
            ("approve", (SPENDER_A, 1)),
            ("increaseApproval", (SPENDER_A, 2)),
            ("decreaseApproval", (SPENDER_A, 3)),
        ]
        assert all(tx == {"from": OWNER} for _, _, tx in sent)

    def test_reverting_write_is_classified(self):
        w3 = FakeWeb3()
        w3.eth.contract_instance.send_errors["approve"] = ContractLogicError("execution reverted")
        token = Web3Token(w3, TOKEN_ADDRESS, sender=OWNER)

        with pytest.raises(ApprovalCallError) as info:
            asyncio.run(token.approve(SPENDER_A, 10))

        assert info.value.reverted

    def test_write_without_sender_is_other(self):
        w3 = FakeWeb3()
        with pytest.raises(ApprovalCallError) as info:
            asyncio.run(Web3Token(w3, TOKEN_ADDRESS).approve(SPENDER_A, 10))
        assert info.value.failure is CallFailure.OTHER
        assert w3.eth.contract_instance.sent == []


class TestWeb3PendingChange:

    def test_waits_for_depth(self):
        w3 = FakeWeb3(heads=(100, 101, 102), receipt={"status": 1, "blockNumber": 100})
        change = Web3PendingChange(w3, TX_HASH, poll_interval=0)
        asyncio.run(change.confirm(3))
        assert w3.eth._heads == [102]

    def test_single_confirmation_returns_once_mined(self):
        w3 = FakeWeb3(heads=(100, 101), receipt={"status": 1, "blockNumber": 100})
        asyncio.run(Web3PendingChange(w3, TX_HASH, poll_interval=0).confirm(1))
        assert w3.eth._heads == [101]

    def test_failed_receipt(self):
        w3 = FakeWeb3(receipt={"status": 0, "blockNumber": 100})
        with pytest.raises(ConfirmationError):
            asyncio.run(Web3PendingChange(w3, TX_HASH, poll_interval=0).confirm(1))

    def test_timeout(self):
        w3 = FakeWeb3(receipt_error=TimeExhausted("not mined"))
        with pytest.raises(ConfirmationError):
            asyncio.run(Web3PendingChange(w3, TX_HASH, poll_interval=0).confirm(1))


# ─────────────────────────────────────────────────────────────
# NAMES
# ─────────────────────────────────────────────────────────────

class TestNames:

    def test_registry_lookup_is_case_insensitive(self):
        registry = AppNameRegistry({SPENDER_A.lower(): "Uniswap V2"})
        assert registry.lookup(SPENDER_A) == "Uniswap V2"
        assert registry.lookup(SPENDER_B) is None
        assert registry.lookup("not an address") is None

    def test_registry_from_yaml(self, tmp_path):
        path = tmp_path / "apps.yaml"
        path.write_text(f"'{SPENDER_A}': 1inch\n'{SPENDER_B}': Curve\n")
        assert len(AppNameRegistry.from_yaml(path)) == 2

    def test_registry_from_yaml_bad_address(self, tmp_path):
        path = tmp_path / "apps.yaml"
        path.write_text("'0xnope': Broken\n")
        with pytest.raises(ConfigError):
            AppNameRegistry.from_yaml(path)

    def test_resolver_without_ens(self):
        resolver = NameResolver(AppNameRegistry({SPENDER_A: "Uniswap V2"}))

        async def scenario():
            return (
                await resolver.application_name(SPENDER_A),
                await resolver.reverse_name(SPENDER_A),
            )

        assert asyncio.run(scenario()) == ("Uniswap V2", None)

    def test_resolver_with_ens(self):

        class StubEns:
            async def reverse_name(self, address):
                return "router.eth"

        resolver = NameResolver(ens=StubEns())
        assert asyncio.run(resolver.reverse_name(SPENDER_A)) == "router.eth"
        assert asyncio.run(resolver.application_name(SPENDER_A)) is None
