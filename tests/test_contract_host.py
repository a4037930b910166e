"""
Contract Host & Call Data Test Suite

Coverage:
  - Selector computation and call data encoding
  - Address normalization and CREATE-style contract addresses
  - Contract external dispatch
  - ContractHost deployment, routing and all-or-nothing calls
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from eth_utils import keccak, to_checksum_address

from govengine.constants import GENESIS_DEPLOYER, ZERO_ADDRESS
from govengine.contracts import (
    CallDepthExceededError,
    Contract,
    ContractHost,
    ContractNotFoundError,
    UnknownSelectorError,
    external,
)
from govengine.crypto import (
    CallDataError,
    decode_arguments,
    encode_call,
    function_selector,
    generate_contract_address,
    hash_description,
    is_valid_address,
    is_zero_address,
    keccak256,
    keccak256_hex,
    normalize_address,
    signature_types,
    split_call,
)
from govengine.exceptions import GovernanceError, InvalidAddressError

ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20


# ══════════════════════════════════════════════════════════════════════
#  TEST CONTRACTS
# ══════════════════════════════════════════════════════════════════════

class Counter(Contract):
    state_fields = ("value", "last_sender")

    def __init__(self):
        self.value = 0
        self.last_sender = None

    @external("increment(uint256)")
    def increment(self, sender, amount):
        self.value += amount
        self.last_sender = sender
        return self.value

    @external("incrementAndFail(uint256)")
    def increment_and_fail(self, sender, amount):
        self.value += amount
        raise RuntimeError("boom")


class Relay(Contract):
    """Forwards to a Counter, then optionally fails."""

    state_fields = ("forwarded",)

    def __init__(self, counter_address):
        self.counter_address = counter_address
        self.forwarded = 0

    @external("forward(uint256,bool)")
    def forward(self, sender, amount, fail):
        self.forwarded += 1
        result = self.host.call(
            self.address, self.counter_address, encode_call("increment(uint256)", amount)
        )
        if fail:
            raise RuntimeError("relay failed after forwarding")
        return result


class Recursor(Contract):

    @external("recurse(uint256)")
    def recurse(self, sender, depth):
        return self.host.call(
            self.address, self.address, encode_call("recurse(uint256)", depth + 1)
        )


def make_host():
    host = ContractHost()
    counter = Counter()
    host.deploy(counter)
    return host, counter


# ══════════════════════════════════════════════════════════════════════
#  CRYPTO HELPERS
# ══════════════════════════════════════════════════════════════════════

class TestCallData:

    def test_known_selector(self):
        assert function_selector("transfer(address,uint256)").hex() == "a9059cbb"

    def test_selector_is_keccak_prefix(self):
        sig = "allowTarget(address)"
        assert function_selector(sig) == keccak(text=sig)[:4]

    def test_signature_types(self):
        assert signature_types("f()") == []
        assert signature_types("propose(address,bytes,bytes32)") == ["address", "bytes", "bytes32"]
        with pytest.raises(CallDataError):
            signature_types("broken")

    def test_encode_and_split(self):
        data = encode_call("increment(uint256)", 5)
        selector, args = split_call(data)
        assert selector == function_selector("increment(uint256)")
        assert decode_arguments(["uint256"], args) == (5,)

    def test_encode_wrong_arity(self):
        with pytest.raises(CallDataError):
            encode_call("increment(uint256)")

    def test_split_short(self):
        with pytest.raises(CallDataError):
            split_call(b"\x01\x02")

    def test_decode_garbage(self):
        with pytest.raises(CallDataError):
            decode_arguments(["uint256"], b"\x01")


class TestAddresses:

    def test_normalize_checksums(self):
        lower = "0x" + "ab" * 20
        assert normalize_address(lower) == to_checksum_address(lower)

    @pytest.mark.parametrize("value", [None, 123, "", "0x1234", "11" * 20, "0x" + "zz" * 20])
    def test_invalid(self, value):
        assert not is_valid_address(value)
        with pytest.raises(InvalidAddressError):
            normalize_address(value)

    def test_bad_checksum_rejected(self):
        checksummed = to_checksum_address("0x" + "ab" * 20)
        tampered = "0x" + checksummed[2:].swapcase()
        assert is_valid_address(checksummed)
        assert not is_valid_address(tampered)
        with pytest.raises(InvalidAddressError):
            normalize_address(tampered)

    def test_single_case_needs_no_checksum(self):
        assert is_valid_address("0x" + "ab" * 20)
        assert is_valid_address("0x" + "AB" * 20)

    def test_zero_address(self):
        assert is_zero_address(ZERO_ADDRESS)
        assert not is_zero_address(ALICE)

    def test_contract_address_vectors(self):
        sender = "0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0"
        assert generate_contract_address(sender, 0).lower() == "0xcd234a471b72ba2f1ccf0a70fcaba648a5eecd8d"
        assert generate_contract_address(sender, 1).lower() == "0x343c43a37d37dff08ae8c4a11544c718abb4fcf8"


class TestHashing:

    def test_keccak_accepts_hex(self):
        assert keccak256("0xdead") == keccak(b"\xde\xad")
        assert keccak256("dead") == keccak(b"\xde\xad")
        assert keccak256_hex(b"") == "0x" + keccak(b"").hex()

    def test_description_hash(self):
        digest = hash_description("Whitelist the treasury")
        assert len(digest) == 32
        assert digest == keccak(text="Whitelist the treasury")
        assert digest != hash_description("Whitelist the treasury ")


# ══════════════════════════════════════════════════════════════════════
#  CONTRACT BASE
# ══════════════════════════════════════════════════════════════════════

class TestContract:

    def test_abi_lists_externals(self):
        names = [fn.signature for fn in Counter.abi()]
        assert names == ["increment(uint256)", "incrementAndFail(uint256)"]
        assert Counter.supports(function_selector("increment(uint256)"))
        assert not Counter.supports(b"\x00\x00\x00\x00")

    def test_abi_is_per_class(self):
        assert not Relay.supports(function_selector("increment(uint256)"))

    def test_snapshot_is_a_copy(self):
        counter = Counter()
        counter.value = 3
        snap = counter.snapshot_state()
        counter.value = 10
        counter.restore_state(snap)
        assert counter.value == 3


# ══════════════════════════════════════════════════════════════════════
#  CONTRACT HOST
# ══════════════════════════════════════════════════════════════════════

class TestDeployment:

    def test_deterministic_addresses(self):
        host = ContractHost()
        first, second = Counter(), Counter()
        assert host.deploy(first) == generate_contract_address(GENESIS_DEPLOYER, 0)
        assert host.deploy(second) == generate_contract_address(GENESIS_DEPLOYER, 1)
        assert first.address != second.address
        assert host.get(first.address) is first
        assert len(host) == 2
        assert list(host) == [first, second]

    def test_nonce_per_deployer(self):
        host = ContractHost()
        counter = Counter()
        assert host.deploy(counter, deployer=ALICE) == generate_contract_address(ALICE, 0)

    def test_deploy_twice_rejected(self):
        host, counter = make_host()
        with pytest.raises(GovernanceError):
            host.deploy(counter)

    def test_lookup_unknown(self):
        host, _ = make_host()
        assert not host.is_deployed(BOB)
        with pytest.raises(ContractNotFoundError):
            host.get(BOB)


class TestCalls:

    def test_call_passes_sender_and_returns(self):
        host, counter = make_host()
        result = host.call(ALICE, counter.address, encode_call("increment(uint256)", 5))
        assert result == 5
        assert counter.value == 5
        assert counter.last_sender == ALICE
        assert host.call_depth == 0

    def test_failed_call_rolls_back(self):
        host, counter = make_host()
        host.call(ALICE, counter.address, encode_call("increment(uint256)", 2))
        with pytest.raises(RuntimeError, match="boom"):
            host.call(ALICE, counter.address, encode_call("incrementAndFail(uint256)", 5))
        assert counter.value == 2
        assert host.call_depth == 0

    def test_nested_failure_rolls_back_callee(self):
        host, counter = make_host()
        relay = Relay(counter.address)
        host.deploy(relay)

        assert host.call(ALICE, relay.address, encode_call("forward(uint256,bool)", 4, False)) == 4
        assert counter.last_sender == relay.address

        with pytest.raises(RuntimeError):
            host.call(ALICE, relay.address, encode_call("forward(uint256,bool)", 4, True))
        assert counter.value == 4
        assert relay.forwarded == 1

    def test_unknown_target(self):
        host, _ = make_host()
        with pytest.raises(ContractNotFoundError):
            host.call(ALICE, BOB, encode_call("increment(uint256)", 1))

    def test_unknown_selector(self):
        host, counter = make_host()
        with pytest.raises(UnknownSelectorError):
            host.call(ALICE, counter.address, encode_call("decrement(uint256)", 1))

    def test_malformed_call_data(self):
        host, counter = make_host()
        with pytest.raises(CallDataError):
            host.call(ALICE, counter.address, b"\x01")
        with pytest.raises(CallDataError):
            host.call(ALICE, counter.address, function_selector("increment(uint256)") + b"\x01")

    def test_call_depth_limit(self):
        host = ContractHost(max_call_depth=3)
        recursor = Recursor()
        host.deploy(recursor)
        with pytest.raises(CallDepthExceededError):
            host.call(ALICE, recursor.address, encode_call("recurse(uint256)", 0))
        assert host.call_depth == 0
