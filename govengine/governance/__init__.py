"""
govengine Governance

On-chain style proposal governance:

  - Proposal store (append-only, write-once executed flag)
  - Vote ledger (snapshot-weighted yes/no tallies, one vote per voter)
  - Access policy (target whitelist, self-only administration)
  - Quorum policy (basis points of the creation-time supply)
  - Vote power oracle interface + checkpoint reference implementation
  - Lifecycle engine (create → vote → execute, reentrancy guarded)
"""

from .proposals import (
    AlreadyExecutedError,
    OutOfRangeError,
    Proposal,
    ProposalState,
    ProposalStore,
)
from .voting import (
    AlreadyVotedError,
    LedgerError,
    NoVotingPowerError,
    VoteLedger,
    VoteTally,
)
from .hooks import (
    CreationContext,
    ExecutionContext,
    PolicyChain,
    PreCreatePolicy,
    PreExecutePolicy,
)
from .access import (
    ALLOW_TARGET_SELECTOR,
    DISALLOW_TARGET_SELECTOR,
    AccessPolicy,
    CallerNotSelfError,
    PayloadTooShortError,
    SelectorNotAllowedError,
    SelfTargetRejectedError,
    TargetNotWhitelistedError,
    UnknownOrAlreadyDisallowedError,
    ZeroTargetRejectedError,
)
from .quorum import (
    QuorumNotReachedError,
    QuorumPolicy,
    check_quorum,
    is_quorate,
    quorum_threshold,
)
from .oracle import (
    Checkpoint,
    CheckpointError,
    CheckpointHistory,
    CheckpointVotePowerOracle,
    VotePowerOracle,
)
from .events import (
    Executed,
    ProposalCreated,
    TargetAllowed,
    TargetDisallowed,
    Voted,
)
from .engine import (
    GovernanceEngine,
    NotApprovedError,
    ProposalExpiredError,
    ProposerEligibilityPolicy,
    ProposerNotEligibleError,
    ReentrantCallError,
    TargetCallFailedError,
    VotingNotFinishedError,
)

__all__ = [
    # Proposals
    "AlreadyExecutedError", "OutOfRangeError", "Proposal", "ProposalState",
    "ProposalStore",
    # Voting
    "AlreadyVotedError", "LedgerError", "NoVotingPowerError", "VoteLedger",
    "VoteTally",
    # Policy chains
    "CreationContext", "ExecutionContext", "PolicyChain", "PreCreatePolicy",
    "PreExecutePolicy",
    # Access
    "ALLOW_TARGET_SELECTOR", "DISALLOW_TARGET_SELECTOR", "AccessPolicy",
    "CallerNotSelfError", "PayloadTooShortError", "SelectorNotAllowedError",
    "SelfTargetRejectedError", "TargetNotWhitelistedError",
    "UnknownOrAlreadyDisallowedError", "ZeroTargetRejectedError",
    # Quorum
    "QuorumNotReachedError", "QuorumPolicy", "check_quorum", "is_quorate",
    "quorum_threshold",
    # Oracle
    "Checkpoint", "CheckpointError", "CheckpointHistory",
    "CheckpointVotePowerOracle", "VotePowerOracle",
    # Events
    "Executed", "ProposalCreated", "TargetAllowed", "TargetDisallowed", "Voted",
    # Engine
    "GovernanceEngine", "NotApprovedError", "ProposalExpiredError",
    "ProposerEligibilityPolicy", "ProposerNotEligibleError",
    "ReentrantCallError", "TargetCallFailedError", "VotingNotFinishedError",
]
