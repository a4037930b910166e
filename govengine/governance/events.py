"""
Governance Events

Audit-trail records appended to the engine's event log. Events emitted
inside a call that later fails are discarded with the rest of its state.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ProposalCreated:
    """Emitted when a proposal is stored."""
    proposal_id: int
    proposer: str
    description_hash: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalCreated",
            "proposalId": self.proposal_id,
            "proposer": self.proposer,
            "descriptionHash": "0x" + self.description_hash.hex(),
        }


@dataclass(frozen=True)
class Voted:
    """Emitted on every counted vote."""
    proposal_id: int
    voter: str
    support: bool
    weight: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Voted",
            "proposalId": self.proposal_id,
            "voter": self.voter,
            "support": self.support,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class Executed:
    """Emitted after the target call of a proposal succeeded."""
    proposal_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Executed",
            "proposalId": self.proposal_id,
        }


@dataclass(frozen=True)
class TargetAllowed:
    """Emitted when a target joins the whitelist."""
    target: str

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "TargetAllowed", "target": self.target}


@dataclass(frozen=True)
class TargetDisallowed:
    """Emitted when a target leaves the whitelist."""
    target: str

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "TargetDisallowed", "target": self.target}
