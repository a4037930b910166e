"""
Quorum Policy

A proposal is quorate when yes + no reaches a fixed share of the total
supply captured at creation:

    yes + no >= supply_snapshot * quorum_bp // 10_000

Integer arithmetic throughout; the threshold is floor-divided.
"""

from ..constants import BASIS_POINTS, DEFAULT_QUORUM_BP
from ..exceptions import ConfigurationError, ProposalRejectedError
from .hooks import ExecutionContext


class QuorumNotReachedError(ProposalRejectedError):
    """Quorum requirement not met."""


def quorum_threshold(supply_snapshot: int, quorum_bp: int = DEFAULT_QUORUM_BP) -> int:
    """Minimum participating weight for *supply_snapshot*."""
    return supply_snapshot * quorum_bp // BASIS_POINTS


def is_quorate(yes: int, no: int, supply_snapshot: int, quorum_bp: int = DEFAULT_QUORUM_BP) -> bool:
    return yes + no >= quorum_threshold(supply_snapshot, quorum_bp)


def check_quorum(yes: int, no: int, supply_snapshot: int, quorum_bp: int = DEFAULT_QUORUM_BP) -> None:
    """
    Raises:
        QuorumNotReachedError: if yes + no is below the threshold
    """
    threshold = quorum_threshold(supply_snapshot, quorum_bp)
    if yes + no < threshold:
        raise QuorumNotReachedError(
            f"Quorum not reached: {yes + no} < {threshold} "
            f"({quorum_bp} bp of {supply_snapshot})"
        )


class QuorumPolicy:
    """Pre-execution gate enforcing check_quorum."""

    def __init__(self, quorum_bp: int = DEFAULT_QUORUM_BP):
        if isinstance(quorum_bp, bool) or not isinstance(quorum_bp, int):
            raise ConfigurationError(f"quorum_bp must be an integer, got {quorum_bp!r}")
        if not 0 <= quorum_bp <= BASIS_POINTS:
            raise ConfigurationError(f"quorum_bp must be within 0..{BASIS_POINTS}, got {quorum_bp}")
        self.quorum_bp = quorum_bp

    def threshold(self, supply_snapshot: int) -> int:
        return quorum_threshold(supply_snapshot, self.quorum_bp)

    def is_satisfied(self, yes: int, no: int, supply_snapshot: int) -> bool:
        return is_quorate(yes, no, supply_snapshot, self.quorum_bp)

    def before_execute(self, ctx: ExecutionContext) -> None:
        check_quorum(ctx.yes, ctx.no, ctx.supply_snapshot, self.quorum_bp)

    def __repr__(self) -> str:
        return f"<QuorumPolicy {self.quorum_bp}bp>"
