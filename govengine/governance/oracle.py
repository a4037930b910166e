"""
Vote Power Oracle

The engine reads voting power only through the VotePowerOracle interface,
always at a historical snapshot. Answers for a given snapshot must never
change afterwards.

CheckpointVotePowerOracle is an in-memory reference implementation that
keeps a checkpoint history per account and for the total supply, in the
style of ERC20Votes getPastVotes / getPastTotalSupply. Reading a time
point finalizes it: later writes must land strictly after every time point
already read, so past answers stay fixed.
"""

import bisect
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from ..crypto.address import normalize_address
from ..exceptions import InputValidationError
from ..logger import get_logger

logger = get_logger(__name__)


class CheckpointError(InputValidationError):
    """Checkpoint written out of order or with an invalid amount."""


class VotePowerOracle(Protocol):
    """Point-in-time voting power source."""

    def voting_power_at(self, account: str, snapshot: int) -> int: ...

    def total_supply_at(self, snapshot: int) -> int: ...


@dataclass(frozen=True)
class Checkpoint:
    """Value in effect from *timepoint* until the next checkpoint."""
    timepoint: int
    value: int


class CheckpointHistory:
    """Ordered checkpoints with binary-search lookup."""

    def __init__(self):
        self._timepoints: List[int] = []
        self._values: List[int] = []

    def push(self, timepoint: int, value: int) -> None:
        if value < 0:
            raise CheckpointError(f"Checkpoint value cannot be negative: {value}")
        if self._timepoints and timepoint < self._timepoints[-1]:
            raise CheckpointError(
                f"Checkpoint at {timepoint} precedes latest checkpoint {self._timepoints[-1]}"
            )
        if self._timepoints and timepoint == self._timepoints[-1]:
            self._values[-1] = value
            return
        self._timepoints.append(timepoint)
        self._values.append(value)

    def at(self, timepoint: int) -> int:
        """Value of the last checkpoint at or before *timepoint* (0 if none)."""
        index = bisect.bisect_right(self._timepoints, timepoint)
        if index == 0:
            return 0
        return self._values[index - 1]

    def latest(self) -> int:
        return self._values[-1] if self._values else 0

    def checkpoints(self) -> List[Checkpoint]:
        return [Checkpoint(t, v) for t, v in zip(self._timepoints, self._values)]

    def __len__(self) -> int:
        return len(self._timepoints)


class CheckpointVotePowerOracle:
    """
    In-memory historical voting power.

    Power is set or moved at explicit time points; lookups return the
    value in effect at the requested snapshot. Total supply tracks the sum
    of all account power.

    Writes are globally ordered and must come after the latest time point
    any lookup has read.
    """

    def __init__(self):
        self._accounts: Dict[str, CheckpointHistory] = {}
        self._supply = CheckpointHistory()
        self._latest_timepoint: Optional[int] = None
        self._finalized_timepoint: Optional[int] = None

    def _history(self, account: str) -> CheckpointHistory:
        account = normalize_address(account)
        if account not in self._accounts:
            self._accounts[account] = CheckpointHistory()
        return self._accounts[account]

    # ── Writes ────────────────────────────────────────────────────────

    def _advance(self, at: int) -> None:
        # Writes are globally ordered so every history stays sorted
        if self._latest_timepoint is not None and at < self._latest_timepoint:
            raise CheckpointError(
                f"Write at {at} precedes latest write at {self._latest_timepoint}"
            )
        if self._finalized_timepoint is not None and at <= self._finalized_timepoint:
            raise CheckpointError(
                f"Write at {at} would change time point {self._finalized_timepoint}, "
                f"which has already been read"
            )
        self._latest_timepoint = at

    def record(self, account: str, power: int, at: int) -> None:
        """Set *account*'s power to *power* from time *at* onwards."""
        if power < 0:
            raise CheckpointError(f"Power cannot be negative: {power}")
        self._advance(at)
        history = self._history(account)
        delta = power - history.latest()
        history.push(at, power)
        self._supply.push(at, self._supply.latest() + delta)
        logger.debug(f"Checkpoint {account}: power={power} at={at}")

    def move(self, source: str, destination: str, amount: int, at: int) -> None:
        """Move *amount* of power from *source* to *destination* at time *at*."""
        if amount <= 0:
            raise CheckpointError("Moved amount must be positive")
        source_history = self._history(source)
        destination_history = self._history(destination)
        if source_history.latest() < amount:
            raise CheckpointError(
                f"{source} has {source_history.latest()} power, cannot move {amount}"
            )
        self._advance(at)
        source_history.push(at, source_history.latest() - amount)
        destination_history.push(at, destination_history.latest() + amount)

    # ── VotePowerOracle ───────────────────────────────────────────────

    def _finalize(self, snapshot: int) -> None:
        if self._finalized_timepoint is None or snapshot > self._finalized_timepoint:
            self._finalized_timepoint = snapshot

    def voting_power_at(self, account: str, snapshot: int) -> int:
        account = normalize_address(account)
        self._finalize(snapshot)
        history = self._accounts.get(account)
        if history is None:
            return 0
        return history.at(snapshot)

    def total_supply_at(self, snapshot: int) -> int:
        self._finalize(snapshot)
        return self._supply.at(snapshot)

    # ── Queries ───────────────────────────────────────────────────────

    def current_power(self, account: str) -> int:
        history = self._accounts.get(normalize_address(account))
        return history.latest() if history else 0

    @property
    def total_supply(self) -> int:
        return self._supply.latest()

    def checkpoints(self, account: str) -> List[Checkpoint]:
        history = self._accounts.get(normalize_address(account))
        return history.checkpoints() if history else []
