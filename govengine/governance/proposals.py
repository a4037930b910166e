"""
Governance Proposals

Defines the proposal record, its lifecycle states, and the append-only
ProposalStore that owns every proposal together with its executed flag.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterator, List, Tuple

from ..constants import SELECTOR_SIZE
from ..exceptions import InputValidationError, StateConflictError
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class OutOfRangeError(InputValidationError):
    """Raised when a proposal id does not exist."""


class AlreadyExecutedError(StateConflictError):
    """Raised when a proposal has already been executed."""


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class ProposalState(IntEnum):
    """Lifecycle stage, derived from time, tally and the executed flag."""
    PENDING = 0             # Voting window open
    EXPIRED = 1             # Window closed, not approved (terminal in practice)
    EXPIRED_APPROVED = 2    # Window closed, approved and quorate, awaiting execution
    EXECUTED = 3            # Terminal


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Proposal:
    """
    Governance proposal record.

    Fields:
        id:               Sequential index in the store
        proposer:         Address that created the proposal
        target:           Address invoked on execution
        deadline:         End of the voting window (exclusive for votes)
        snapshot:         Time point used for every voting-power lookup
        description_hash: Content hash of the off-engine description
        payload:          Call data handed to the target

    The executed flag is owned by ProposalStore; nothing here ever changes.
    """
    id: int
    proposer: str
    target: str
    deadline: int
    snapshot: int
    description_hash: bytes
    payload: bytes

    @property
    def selector(self) -> bytes:
        return self.payload[:SELECTOR_SIZE]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "proposer": self.proposer,
            "target": self.target,
            "deadline": self.deadline,
            "snapshot": self.snapshot,
            "descriptionHash": "0x" + self.description_hash.hex(),
            "payload": "0x" + self.payload.hex(),
        }

    def __repr__(self) -> str:
        return (
            f"<Proposal #{self.id} target={self.target} "
            f"selector=0x{self.selector.hex()} deadline={self.deadline}>"
        )


# ══════════════════════════════════════════════════════════════════════
#  STORE
# ══════════════════════════════════════════════════════════════════════

class ProposalStore:
    """
    Append-only indexed collection of proposals.

    Ids are list indices: 0..count-1, never reused, never removed.
    """

    def __init__(self):
        self._proposals: List[Proposal] = []
        self._executed: List[bool] = []

    def _index(self, proposal_id: int) -> int:
        if isinstance(proposal_id, bool) or not isinstance(proposal_id, int):
            raise OutOfRangeError(f"Proposal id must be an integer, got {proposal_id!r}")
        if proposal_id < 0 or proposal_id >= len(self._proposals):
            raise OutOfRangeError(
                f"Proposal #{proposal_id} does not exist (count={len(self._proposals)})"
            )
        return proposal_id

    def append(self, proposal: Proposal) -> int:
        """Store *proposal*; its id must be the next free index."""
        expected = len(self._proposals)
        if proposal.id != expected:
            raise ValueError(f"Proposal id {proposal.id} is not the next id ({expected})")
        self._proposals.append(proposal)
        self._executed.append(False)
        return proposal.id

    def get(self, proposal_id: int) -> Proposal:
        return self._proposals[self._index(proposal_id)]

    def is_executed(self, proposal_id: int) -> bool:
        return self._executed[self._index(proposal_id)]

    def mark_executed(self, proposal_id: int) -> None:
        """Flip the executed flag. It never goes back to False."""
        index = self._index(proposal_id)
        if self._executed[index]:
            raise AlreadyExecutedError(f"Proposal #{proposal_id} already executed")
        self._executed[index] = True

    def count(self) -> int:
        return len(self._proposals)

    def __len__(self) -> int:
        return len(self._proposals)

    def __iter__(self) -> Iterator[Proposal]:
        return iter(list(self._proposals))

    # ── Snapshot / restore (for revert) ───────────────────────────────

    def snapshot(self) -> Tuple[int, List[bool]]:
        return len(self._proposals), list(self._executed)

    def restore(self, snapshot: Tuple[int, List[bool]]) -> None:
        count, executed = snapshot
        del self._proposals[count:]
        self._executed = list(executed)
