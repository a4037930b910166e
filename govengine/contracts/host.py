"""
Contract Host

In-process execution environment for contracts. It assigns CREATE-style
addresses on deployment, routes call data to the contract at a target
address with the immediate caller attached, and gives every call
all-or-nothing semantics: if the call raises, the journaled state of every
deployed contract is restored before the exception propagates.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List

from ..constants import GENESIS_DEPLOYER
from ..crypto.address import generate_contract_address, normalize_address
from ..exceptions import GovernanceError
from ..logger import get_logger
from .base import Contract

logger = get_logger(__name__)

# Same nesting limit as the EVM
MAX_CALL_DEPTH = 1024


class ContractNotFoundError(GovernanceError):
    """No contract is deployed at the target address."""


class CallDepthExceededError(GovernanceError):
    """Nested calls exceeded MAX_CALL_DEPTH."""


class ContractHost:
    """
    Registry and call router for deployed contracts.
    """

    def __init__(self, max_call_depth: int = MAX_CALL_DEPTH):
        self.max_call_depth = max_call_depth
        self._contracts: Dict[str, Contract] = {}
        self._nonces: Dict[str, int] = {}
        self._depth = 0

    # ── Deployment ────────────────────────────────────────────────────

    def deploy(self, contract: Contract, deployer: str = GENESIS_DEPLOYER) -> str:
        """
        Register *contract* and return its new address.

        Address = keccak256(rlp([deployer, nonce]))[-20:]
        """
        deployer = normalize_address(deployer)
        nonce = self._nonces.get(deployer, 0)
        address = generate_contract_address(deployer, nonce)
        self._nonces[deployer] = nonce + 1

        contract.bind(self, address)
        self._contracts[address] = contract
        logger.debug(f"Deployed {type(contract).__name__} at {address} (deployer={deployer}, nonce={nonce})")
        return address

    def get(self, address: str) -> Contract:
        contract = self._contracts.get(normalize_address(address))
        if contract is None:
            raise ContractNotFoundError(f"No contract deployed at {address}")
        return contract

    def is_deployed(self, address: str) -> bool:
        return normalize_address(address) in self._contracts

    def __iter__(self) -> Iterator[Contract]:
        return iter(list(self._contracts.values()))

    def __len__(self) -> int:
        return len(self._contracts)

    # ── Calls ─────────────────────────────────────────────────────────

    @property
    def call_depth(self) -> int:
        return self._depth

    def call(self, sender: str, target: str, payload: bytes) -> Any:
        """
        Invoke *target* with *payload* on behalf of *sender*.

        Returns whatever the external function returns. Any exception
        raised by the callee propagates after all contract state has been
        rolled back to what it was when this call started.
        """
        sender = normalize_address(sender)
        contract = self.get(target)
        if self._depth >= self.max_call_depth:
            raise CallDepthExceededError(f"Call depth limit {self.max_call_depth} reached")

        journal = self._take_snapshot()
        self._depth += 1
        try:
            return contract.dispatch(sender, bytes(payload))
        except Exception:
            self._restore_snapshot(journal)
            raise
        finally:
            self._depth -= 1

    # ── Snapshot / restore ────────────────────────────────────────────

    def _take_snapshot(self) -> List[tuple]:
        return [(c, c.snapshot_state()) for c in self._contracts.values()]

    def _restore_snapshot(self, journal: List[tuple]) -> None:
        for contract, state in journal:
            contract.restore_state(state)
