"""
Vote Ledger

Per-proposal yes/no tallies, the total-supply snapshot captured at
creation, and the per-voter "has voted" facts.

Tallies only grow. Each voter is recorded at most once per proposal.
"""

from dataclasses import dataclass
from typing import Any, Dict, Set, Tuple

from ..exceptions import AuthorizationError, StateConflictError
from ..logger import get_logger
from .proposals import OutOfRangeError

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class AlreadyVotedError(StateConflictError):
    """Voter already cast a vote on this proposal."""


class NoVotingPowerError(AuthorizationError):
    """Voter had no voting power at the proposal snapshot."""


class LedgerError(StateConflictError):
    """Ledger entry initialized twice."""


# ══════════════════════════════════════════════════════════════════════
#  TALLY
# ══════════════════════════════════════════════════════════════════════

@dataclass
class VoteTally:
    """Aggregated tally for a proposal."""
    proposal_id: int
    supply_snapshot: int
    yes: int = 0
    no: int = 0

    @property
    def total_votes(self) -> int:
        return self.yes + self.no

    @property
    def has_majority(self) -> bool:
        """Strict majority; ties fail."""
        return self.yes > self.no

    def as_tuple(self) -> Tuple[int, int, int]:
        return self.yes, self.no, self.supply_snapshot

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalId": self.proposal_id,
            "yes": self.yes,
            "no": self.no,
            "totalVotes": self.total_votes,
            "supplySnapshot": self.supply_snapshot,
        }


# ══════════════════════════════════════════════════════════════════════
#  LEDGER
# ══════════════════════════════════════════════════════════════════════

class VoteLedger:
    """
    Vote accounting for every proposal.

    Responsibilities:
        - Hold one tally per proposal, created exactly once
        - Accumulate weights into yes or no
        - Remember who has voted
    """

    def __init__(self):
        self._tallies: Dict[int, VoteTally] = {}
        self._voters: Dict[int, Set[str]] = {}  # proposal_id → {voter_addresses}

    def _require(self, proposal_id: int) -> VoteTally:
        tally = self._tallies.get(proposal_id)
        if tally is None:
            raise OutOfRangeError(f"No ledger entry for proposal #{proposal_id}")
        return tally

    def initialize(self, proposal_id: int, supply_snapshot: int) -> VoteTally:
        if proposal_id in self._tallies:
            raise LedgerError(f"Ledger entry for proposal #{proposal_id} already initialized")
        if supply_snapshot < 0:
            raise ValueError(f"Supply snapshot cannot be negative: {supply_snapshot}")
        tally = VoteTally(proposal_id=proposal_id, supply_snapshot=supply_snapshot)
        self._tallies[proposal_id] = tally
        self._voters[proposal_id] = set()
        return tally

    def add_vote(self, proposal_id: int, weight: int, support: bool) -> None:
        """Add *weight* to yes (support) or no. Zero weight changes nothing."""
        if weight < 0:
            raise ValueError(f"Vote weight cannot be negative: {weight}")
        tally = self._require(proposal_id)
        if weight == 0:
            return
        if support:
            tally.yes += weight
        else:
            tally.no += weight

    def tally(self, proposal_id: int) -> Tuple[int, int, int]:
        """(yes, no, supply_snapshot) for *proposal_id*."""
        return self._require(proposal_id).as_tuple()

    def get_tally(self, proposal_id: int) -> VoteTally:
        tally = self._require(proposal_id)
        return VoteTally(
            proposal_id=tally.proposal_id,
            supply_snapshot=tally.supply_snapshot,
            yes=tally.yes,
            no=tally.no,
        )

    # ── Voters ────────────────────────────────────────────────────────

    def has_voted(self, proposal_id: int, voter: str) -> bool:
        return voter in self._voters.get(proposal_id, set())

    def mark_voted(self, proposal_id: int, voter: str) -> None:
        self._require(proposal_id)
        voters = self._voters[proposal_id]
        if voter in voters:
            raise AlreadyVotedError(f"{voter} has already voted on proposal #{proposal_id}")
        voters.add(voter)

    def voter_count(self, proposal_id: int) -> int:
        return len(self._voters.get(proposal_id, set()))

    # ── Snapshot / restore (for revert) ───────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        return {
            "tallies": {pid: t.as_tuple() for pid, t in self._tallies.items()},
            "voters": {pid: set(v) for pid, v in self._voters.items()},
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self._tallies = {
            pid: VoteTally(proposal_id=pid, supply_snapshot=supply, yes=yes, no=no)
            for pid, (yes, no, supply) in snapshot["tallies"].items()
        }
        self._voters = {pid: set(v) for pid, v in snapshot["voters"].items()}

    def __repr__(self) -> str:
        return f"<VoteLedger proposals={len(self._tallies)}>"
