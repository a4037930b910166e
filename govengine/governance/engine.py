"""
Governance Lifecycle Engine

Orchestrates create → vote → execute:

  - create_proposal:  before_create chain (access policy, proposer
                      eligibility), then snapshot supply and store
  - vote:             window check, one vote per voter, weight read at the
                      proposal snapshot
  - execute:          reentrancy guard around the whole call, majority
                      check, before_execute chain (quorum), executed flag
                      set before the target call, full rollback if the
                      target call fails

The engine is itself a Contract, so a passed proposal can target it to
grow or shrink its own whitelist.
"""

import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..config.loader import GovernanceConfig
from ..constants import ALLOW_TARGET_SIGNATURE, DISALLOW_TARGET_SIGNATURE, GENESIS_DEPLOYER
from ..contracts.base import Contract, external
from ..contracts.host import ContractHost
from ..crypto.address import normalize_address
from ..exceptions import (
    AuthorizationError,
    ConcurrencyError,
    DownstreamError,
    InputValidationError,
    ProposalRejectedError,
    TemporalError,
)
from ..logger import get_logger
from .access import AccessPolicy
from .events import ProposalCreated, TargetAllowed, TargetDisallowed, Executed, Voted
from .hooks import CreationContext, ExecutionContext, PolicyChain
from .oracle import VotePowerOracle
from .proposals import AlreadyExecutedError, Proposal, ProposalState, ProposalStore
from .quorum import QuorumPolicy
from .voting import AlreadyVotedError, NoVotingPowerError, VoteLedger, VoteTally

logger = get_logger(__name__)

GovernanceEvent = Union[ProposalCreated, Voted, Executed, TargetAllowed, TargetDisallowed]


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class ProposerNotEligibleError(AuthorizationError):
    """Proposer had no voting power at the latest finalized snapshot."""


class ProposalExpiredError(TemporalError):
    """Vote cast at or after the deadline."""


class VotingNotFinishedError(TemporalError):
    """Execution attempted before the deadline."""


class NotApprovedError(ProposalRejectedError):
    """Yes weight does not strictly exceed no weight."""


class TargetCallFailedError(DownstreamError):
    """The target call raised; the whole execution was rolled back."""


class ReentrantCallError(ConcurrencyError):
    """execute() entered while another execute() is running."""


# ══════════════════════════════════════════════════════════════════════
#  ELIGIBILITY POLICY
# ══════════════════════════════════════════════════════════════════════

class ProposerEligibilityPolicy:
    """Proposers need non-zero voting power at the creation snapshot."""

    def __init__(self, oracle: VotePowerOracle):
        self._oracle = oracle

    def before_create(self, ctx: CreationContext) -> None:
        power = self._oracle.voting_power_at(ctx.proposer, ctx.snapshot)
        if power <= 0:
            raise ProposerNotEligibleError(
                f"{ctx.proposer} has no voting power at snapshot {ctx.snapshot}"
            )


def _system_clock() -> int:
    return int(time.time())


# ══════════════════════════════════════════════════════════════════════
#  ENGINE
# ══════════════════════════════════════════════════════════════════════

class GovernanceEngine(Contract):
    """
    Proposal lifecycle engine.

    Args:
        oracle:             VotePowerOracle used for every weight lookup
        host:               ContractHost the engine is deployed on and
                            executes targets through
        config:             governance parameters (quorum, voting period,
                            snapshot lag)
        clock:              callable returning the current time in seconds
        deployer:           address recorded as the engine's deployer
        create_policies:    extra before_create policies, run after the
                            built-in access and eligibility checks
        execute_policies:   extra before_execute policies, run after quorum
    """

    def __init__(
        self,
        oracle: VotePowerOracle,
        host: ContractHost,
        config: Optional[GovernanceConfig] = None,
        clock: Optional[Callable[[], int]] = None,
        deployer: str = GENESIS_DEPLOYER,
        create_policies: Optional[Iterable[object]] = None,
        execute_policies: Optional[Iterable[object]] = None,
    ):
        self.config = config or GovernanceConfig()
        self.config.validate()
        self._oracle = oracle
        self._clock = clock or _system_clock

        self._proposals = ProposalStore()
        self._ledger = VoteLedger()
        self._events: List[GovernanceEvent] = []
        self._executing = False  # reentrancy guard

        host.deploy(self, deployer)
        self.access = AccessPolicy(self.address)
        self.quorum = QuorumPolicy(self.config.quorum_bp)

        self.create_chain = PolicyChain(
            "before_create",
            [self.access, ProposerEligibilityPolicy(oracle), *(create_policies or ())],
        )
        self.execute_chain = PolicyChain(
            "before_execute",
            [self.quorum, *(execute_policies or ())],
        )
        logger.info(
            f"Governance engine deployed at {self.address} "
            f"(quorum={self.config.quorum_bp}bp, voting_period={self.config.voting_period}s)"
        )

    # ── Time ──────────────────────────────────────────────────────────

    def now(self) -> int:
        return int(self._clock())

    def latest_snapshot(self) -> int:
        """Most recent time point considered final (strictly before now)."""
        return self.now() - self.config.snapshot_lag

    # ── Create ────────────────────────────────────────────────────────

    @external("propose(address,bytes,bytes32)")
    def create_proposal(
        self,
        proposer: str,
        target: str,
        payload: bytes,
        description_hash: bytes,
    ) -> int:
        """
        Create a proposal to call *target* with *payload*.

        Returns:
            The new proposal id

        Raises:
            PayloadTooShortError, SelectorNotAllowedError,
            TargetNotWhitelistedError, ProposerNotEligibleError
        """
        proposer = normalize_address(proposer)
        target = normalize_address(target)
        payload = _as_bytes("payload", payload)
        description_hash = _as_bytes("description_hash", description_hash)

        now = self.now()
        snapshot = now - self.config.snapshot_lag
        self.create_chain.run(CreationContext(
            proposer=proposer,
            target=target,
            payload=payload,
            description_hash=description_hash,
            snapshot=snapshot,
            now=now,
        ))

        supply = self._oracle.total_supply_at(snapshot)
        proposal = Proposal(
            id=self._proposals.count(),
            proposer=proposer,
            target=target,
            deadline=now + self.config.voting_period,
            snapshot=snapshot,
            description_hash=description_hash,
            payload=payload,
        )
        self._proposals.append(proposal)
        self._ledger.initialize(proposal.id, supply)

        self._emit(ProposalCreated(proposal.id, proposer, description_hash))
        logger.info(
            f"Proposal #{proposal.id} created by {proposer} → {target} "
            f"selector=0x{proposal.selector.hex()} deadline={proposal.deadline} "
            f"snapshot={snapshot} supply={supply}"
        )
        return proposal.id

    # ── Vote ──────────────────────────────────────────────────────────

    @external("castVote(uint256,bool)")
    def vote(self, voter: str, proposal_id: int, support: bool) -> int:
        """
        Cast *voter*'s full snapshot weight for (support) or against a proposal.

        Returns:
            The weight counted

        Raises:
            OutOfRangeError, ProposalExpiredError, AlreadyVotedError,
            NoVotingPowerError
        """
        voter = normalize_address(voter)
        proposal = self._proposals.get(proposal_id)

        if self.now() >= proposal.deadline:
            raise ProposalExpiredError(
                f"Voting on proposal #{proposal_id} closed at {proposal.deadline}"
            )
        if self._ledger.has_voted(proposal_id, voter):
            raise AlreadyVotedError(f"{voter} has already voted on proposal #{proposal_id}")

        weight = self._oracle.voting_power_at(voter, proposal.snapshot)
        if weight <= 0:
            raise NoVotingPowerError(
                f"{voter} has no voting power at snapshot {proposal.snapshot}"
            )

        self._ledger.add_vote(proposal_id, weight, bool(support))
        self._ledger.mark_voted(proposal_id, voter)

        self._emit(Voted(proposal_id, voter, bool(support), weight))
        logger.info(
            f"Vote: {voter} → {'YES' if support else 'NO'} on proposal #{proposal_id} "
            f"(weight={weight})"
        )
        return weight

    # ── Execute ───────────────────────────────────────────────────────

    def execute(self, proposal_id: int) -> Any:
        """
        Execute a passed proposal.

        Checks, in order:
            1. No other execute() in progress
            2. Proposal exists and is not executed
            3. Voting window closed
            4. yes > no
            5. before_execute chain (quorum)

        The executed flag is set before the target is called. If the call
        raises, every state change of this execute() is rolled back and
        TargetCallFailedError is raised.

        Returns:
            Whatever the target call returned
        """
        if self._executing:
            raise ReentrantCallError(
                f"execute(#{proposal_id}) re-entered while another execution is running"
            )
        self._executing = True
        try:
            return self._execute(proposal_id)
        finally:
            self._executing = False

    @external("execute(uint256)")
    def _execute_external(self, sender: str, proposal_id: int) -> Any:
        return self.execute(proposal_id)

    def _execute(self, proposal_id: int) -> Any:
        proposal = self._proposals.get(proposal_id)
        if self._proposals.is_executed(proposal_id):
            raise AlreadyExecutedError(f"Proposal #{proposal_id} already executed")

        now = self.now()
        if now < proposal.deadline:
            raise VotingNotFinishedError(
                f"Voting on proposal #{proposal_id} ends at {proposal.deadline} (now={now})"
            )

        yes, no, supply = self._ledger.tally(proposal_id)
        if yes <= no:
            raise NotApprovedError(f"Proposal #{proposal_id} not approved (yes={yes}, no={no})")

        self.execute_chain.run(ExecutionContext(
            proposal=proposal,
            yes=yes,
            no=no,
            supply_snapshot=supply,
            now=now,
        ))

        journal = self.snapshot_state()
        self._proposals.mark_executed(proposal_id)
        try:
            result = self.host.call(self.address, proposal.target, proposal.payload)
        except Exception as e:
            # Downstream failures are opaque; any exception aborts the execution
            self.restore_state(journal)
            logger.error(
                f"Proposal #{proposal_id} target call to {proposal.target} failed: "
                f"{type(e).__name__}: {e}"
            )
            raise TargetCallFailedError(
                f"Target call of proposal #{proposal_id} failed: {type(e).__name__}: {e}"
            ) from e

        self._emit(Executed(proposal_id))
        logger.info(f"Proposal #{proposal_id} EXECUTED → {proposal.target}")
        return result

    # ── Whitelist administration (self-call only) ─────────────────────
    #
    # Reachable only as allowTarget / disallowTarget through
    # ContractHost.call, which supplies the immediate caller. The engine
    # is that caller only while executing a passed proposal, so there is
    # no public method that changes the whitelist.

    @external(ALLOW_TARGET_SIGNATURE)
    def _allow_target_external(self, caller: str, target: str) -> None:
        target = self.access.allow(caller, target)
        self._emit(TargetAllowed(target))

    @external(DISALLOW_TARGET_SIGNATURE)
    def _disallow_target_external(self, caller: str, target: str) -> None:
        target = self.access.disallow(caller, target)
        self._emit(TargetDisallowed(target))

    # ── Queries ───────────────────────────────────────────────────────

    def get_proposal(self, proposal_id: int) -> Proposal:
        return self._proposals.get(proposal_id)

    def proposal_count(self) -> int:
        return self._proposals.count()

    def is_executed(self, proposal_id: int) -> bool:
        return self._proposals.is_executed(proposal_id)

    def proposal_votes(self, proposal_id: int) -> Tuple[int, int, int]:
        """(yes, no, supply_snapshot) for a proposal."""
        self._proposals.get(proposal_id)
        return self._ledger.tally(proposal_id)

    def get_tally(self, proposal_id: int) -> VoteTally:
        self._proposals.get(proposal_id)
        return self._ledger.get_tally(proposal_id)

    def has_voted(self, proposal_id: int, account: str) -> bool:
        self._proposals.get(proposal_id)
        return self._ledger.has_voted(proposal_id, normalize_address(account))

    def is_target_allowed(self, target: str) -> bool:
        return self.access.is_target_allowed(target)

    def is_self_operation_allowed(self, target: str, selector: bytes) -> bool:
        return self.access.is_self_operation_allowed(target, selector)

    def state(self, proposal_id: int) -> ProposalState:
        """
        Lifecycle stage of a proposal.

        EXPIRED_APPROVED means execute() would pass every gate: majority
        and the whole before_execute chain, extra policies included.
        """
        proposal = self._proposals.get(proposal_id)
        if self._proposals.is_executed(proposal_id):
            return ProposalState.EXECUTED
        now = self.now()
        if now < proposal.deadline:
            return ProposalState.PENDING
        yes, no, supply = self._ledger.tally(proposal_id)
        if yes > no and self.execute_chain.passes(ExecutionContext(
            proposal=proposal,
            yes=yes,
            no=no,
            supply_snapshot=supply,
            now=now,
        )):
            return ProposalState.EXPIRED_APPROVED
        return ProposalState.EXPIRED

    @property
    def events(self) -> List[GovernanceEvent]:
        return list(self._events)

    @property
    def is_executing(self) -> bool:
        return self._executing

    # ── Events ────────────────────────────────────────────────────────

    def _emit(self, event: GovernanceEvent) -> None:
        self._events.append(event)
        logger.debug(f"Event: {event.to_dict()}")

    # ── Snapshot / restore (for revert) ───────────────────────────────

    def snapshot_state(self) -> Dict[str, Any]:
        return {
            "proposals": self._proposals.snapshot(),
            "ledger": self._ledger.snapshot(),
            "access": self.access.snapshot(),
            "events": len(self._events),
        }

    def restore_state(self, snapshot: Dict[str, Any]) -> None:
        self._proposals.restore(snapshot["proposals"])
        self._ledger.restore(snapshot["ledger"])
        self.access.restore(snapshot["access"])
        del self._events[snapshot["events"]:]

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "config": self.config.to_dict(),
            "proposalCount": self._proposals.count(),
            "proposals": [
                {
                    **p.to_dict(),
                    "executed": self._proposals.is_executed(p.id),
                    "state": self.state(p.id).name,
                    "tally": self._ledger.get_tally(p.id).to_dict(),
                }
                for p in self._proposals
            ],
            "access": self.access.to_dict(),
            "eventCount": len(self._events),
        }

    def __repr__(self) -> str:
        return f"<GovernanceEngine {self.address} proposals={self._proposals.count()}>"


def _as_bytes(name: str, value: Any) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise InputValidationError(f"{name} must be bytes, got {type(value).__name__}")
    return bytes(value)
