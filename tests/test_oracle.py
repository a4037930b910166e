"""
Vote Power Oracle Test Suite

Coverage:
  - CheckpointHistory: ordered writes, same-timepoint overwrite, lookups
  - CheckpointVotePowerOracle: historical lookups, transfers, total supply,
    write ordering
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from govengine.exceptions import InvalidAddressError
from govengine.governance.oracle import (
    Checkpoint,
    CheckpointError,
    CheckpointHistory,
    CheckpointVotePowerOracle,
    VotePowerOracle,
)

ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20
CAROL = "0x" + "33" * 20


def make_oracle() -> CheckpointVotePowerOracle:
    """ALICE 100 from t=10, BOB 50 from t=20."""
    oracle = CheckpointVotePowerOracle()
    oracle.record(ALICE, 100, at=10)
    oracle.record(BOB, 50, at=20)
    return oracle


class TestCheckpointHistory:

    def test_empty(self):
        history = CheckpointHistory()
        assert history.at(100) == 0
        assert history.latest() == 0
        assert len(history) == 0

    def test_lookup_uses_last_checkpoint_at_or_before(self):
        history = CheckpointHistory()
        history.push(10, 1)
        history.push(20, 2)
        history.push(30, 3)
        assert history.at(9) == 0
        assert history.at(10) == 1
        assert history.at(19) == 1
        assert history.at(20) == 2
        assert history.at(1_000) == 3

    def test_same_timepoint_overwrites(self):
        history = CheckpointHistory()
        history.push(10, 1)
        history.push(10, 5)
        assert len(history) == 1
        assert history.at(10) == 5

    def test_out_of_order_rejected(self):
        history = CheckpointHistory()
        history.push(10, 1)
        with pytest.raises(CheckpointError):
            history.push(9, 2)

    def test_negative_rejected(self):
        with pytest.raises(CheckpointError):
            CheckpointHistory().push(1, -1)

    def test_checkpoints(self):
        history = CheckpointHistory()
        history.push(1, 7)
        history.push(4, 8)
        assert history.checkpoints() == [Checkpoint(1, 7), Checkpoint(4, 8)]


class TestCheckpointOracle:

    def test_satisfies_protocol(self):
        oracle: VotePowerOracle = make_oracle()
        assert oracle.voting_power_at(ALICE, 10) == 100

    def test_historical_power(self):
        oracle = make_oracle()
        assert oracle.voting_power_at(ALICE, 9) == 0
        assert oracle.voting_power_at(ALICE, 10) == 100
        assert oracle.voting_power_at(BOB, 19) == 0
        assert oracle.voting_power_at(BOB, 20) == 50

    def test_unknown_account_has_no_power(self):
        assert make_oracle().voting_power_at(CAROL, 1_000) == 0

    def test_total_supply_history(self):
        oracle = make_oracle()
        assert oracle.total_supply_at(9) == 0
        assert oracle.total_supply_at(10) == 100
        assert oracle.total_supply_at(20) == 150
        assert oracle.total_supply == 150

    def test_record_replaces_power(self):
        oracle = make_oracle()
        oracle.record(ALICE, 40, at=30)
        assert oracle.voting_power_at(ALICE, 29) == 100
        assert oracle.voting_power_at(ALICE, 30) == 40
        assert oracle.total_supply_at(30) == 90
        assert oracle.current_power(ALICE) == 40

    def test_move_keeps_supply(self):
        oracle = make_oracle()
        oracle.move(ALICE, CAROL, 30, at=40)
        assert oracle.voting_power_at(ALICE, 39) == 100
        assert oracle.voting_power_at(CAROL, 39) == 0
        assert oracle.voting_power_at(ALICE, 40) == 70
        assert oracle.voting_power_at(CAROL, 40) == 30
        assert oracle.total_supply_at(40) == 150

    def test_move_more_than_balance(self):
        oracle = make_oracle()
        with pytest.raises(CheckpointError):
            oracle.move(BOB, CAROL, 51, at=40)
        assert oracle.current_power(BOB) == 50
        assert oracle.current_power(CAROL) == 0

    @pytest.mark.parametrize("amount", [0, -1])
    def test_move_requires_positive_amount(self, amount):
        with pytest.raises(CheckpointError):
            make_oracle().move(ALICE, BOB, amount, at=40)

    def test_writes_are_globally_ordered(self):
        oracle = make_oracle()
        with pytest.raises(CheckpointError):
            oracle.record(CAROL, 10, at=15)
        with pytest.raises(CheckpointError):
            oracle.move(ALICE, CAROL, 10, at=15)
        assert oracle.voting_power_at(CAROL, 1_000) == 0
        assert oracle.total_supply == 150

    def test_negative_power_rejected(self):
        oracle = make_oracle()
        with pytest.raises(CheckpointError):
            oracle.record(ALICE, -1, at=30)
        assert oracle.current_power(ALICE) == 100

    def test_past_answers_never_change(self):
        oracle = make_oracle()
        before = oracle.voting_power_at(ALICE, 25), oracle.total_supply_at(25)
        oracle.record(ALICE, 0, at=30)
        oracle.move(BOB, ALICE, 50, at=31)
        assert (oracle.voting_power_at(ALICE, 25), oracle.total_supply_at(25)) == before

    def test_read_time_point_is_final(self):
        oracle = make_oracle()
        assert oracle.voting_power_at(BOB, 25) == 50
        with pytest.raises(CheckpointError):
            oracle.record(BOB, 5_000, at=25)
        with pytest.raises(CheckpointError):
            oracle.move(ALICE, CAROL, 10, at=25)
        assert oracle.voting_power_at(BOB, 25) == 50
        assert oracle.total_supply_at(25) == 150
        oracle.record(BOB, 5_000, at=26)
        assert oracle.voting_power_at(BOB, 25) == 50

    def test_supply_read_finalizes_too(self):
        oracle = make_oracle()
        assert oracle.total_supply_at(40) == 150
        with pytest.raises(CheckpointError):
            oracle.record(CAROL, 10, at=40)
        assert oracle.total_supply_at(40) == 150

    def test_current_power_does_not_finalize(self):
        oracle = make_oracle()
        oracle.current_power(ALICE)
        oracle.record(ALICE, 1, at=20)
        assert oracle.voting_power_at(ALICE, 20) == 1

    def test_invalid_address(self):
        with pytest.raises(InvalidAddressError):
            make_oracle().voting_power_at("not-an-address", 10)

    def test_checkpoints(self):
        oracle = make_oracle()
        assert oracle.checkpoints(ALICE) == [Checkpoint(10, 100)]
        assert oracle.checkpoints(CAROL) == []
