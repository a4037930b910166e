"""
Governance Policy Chains

Extension points of the lifecycle engine:
  - before_create:  runs ahead of proposal creation (access control,
                    proposer eligibility)
  - before_execute: runs ahead of execution (quorum)

A policy rejects by raising a GovernanceError. Policies run in
registration order and the first raised error aborts the chain; nothing
is written before the chain has passed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional, Protocol

from ..exceptions import GovernanceError

if TYPE_CHECKING:
    from .proposals import Proposal

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Contexts passed to policies
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CreationContext:
    """Data passed to before_create policies."""
    proposer: str
    target: str
    payload: bytes
    description_hash: bytes
    snapshot: int
    now: int


@dataclass(frozen=True)
class ExecutionContext:
    """Data passed to before_execute policies."""
    proposal: "Proposal"
    yes: int
    no: int
    supply_snapshot: int
    now: int


# ---------------------------------------------------------------------------
# Policy interfaces (Protocol for structural typing)
# ---------------------------------------------------------------------------

class PreCreatePolicy(Protocol):
    """Protocol that creation policies must implement."""

    def before_create(self, ctx: CreationContext) -> None: ...


class PreExecutePolicy(Protocol):
    """Protocol that execution policies must implement."""

    def before_execute(self, ctx: ExecutionContext) -> None: ...


# ---------------------------------------------------------------------------
# Policy chain
# ---------------------------------------------------------------------------

class PolicyChain:
    """
    Ordered list of policies sharing one hook method.

    Policies are executed in registration order. The first one that raises
    short-circuits the chain and the error reaches the caller unchanged.
    """

    def __init__(self, hook: str, policies: Optional[Iterable[object]] = None) -> None:
        self.hook = hook
        self._policies: List[object] = []
        for policy in policies or ():
            self.register(policy)

    def register(self, policy: object) -> None:
        if not callable(getattr(policy, self.hook, None)):
            raise TypeError(f"{type(policy).__name__} does not implement {self.hook}()")
        self._policies.append(policy)
        logger.debug("Policy registered on %s: %s", self.hook, type(policy).__name__)

    def unregister(self, policy: object) -> None:
        self._policies = [p for p in self._policies if p is not policy]

    @property
    def policies(self) -> List[object]:
        return list(self._policies)

    def __len__(self) -> int:
        return len(self._policies)

    def run(self, ctx: object) -> None:
        for policy in self._policies:
            try:
                getattr(policy, self.hook)(ctx)
            except GovernanceError as e:
                logger.warning("%s rejected by %s: %s", self.hook, type(policy).__name__, e)
                raise

    def passes(self, ctx: object) -> bool:
        """Dry run for read-only queries; rejections are not logged."""
        try:
            for policy in self._policies:
                getattr(policy, self.hook)(ctx)
        except GovernanceError:
            return False
        return True
