"""
Proposal Store & Vote Ledger Test Suite

Coverage:
  - ProposalStore: sequential ids, range checks, write-once executed flag,
    snapshot / restore
  - VoteLedger: single initialization, tally accumulation, zero-weight
    votes, write-once HasVoted, snapshot / restore
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from govengine.exceptions import InputValidationError, StateConflictError
from govengine.governance.proposals import (
    AlreadyExecutedError,
    OutOfRangeError,
    Proposal,
    ProposalStore,
)
from govengine.governance.voting import (
    AlreadyVotedError,
    LedgerError,
    VoteLedger,
    VoteTally,
)

ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20
TARGET = "0x" + "55" * 20


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

def make_proposal(pid=0, target=TARGET, payload=b"\xaa\xbb\xcc\xdd\x01", **kwargs) -> Proposal:
    """Helper to create a proposal record for testing."""
    fields = dict(
        id=pid,
        proposer=ALICE,
        target=target,
        deadline=1_100,
        snapshot=999,
        description_hash=b"\x42" * 32,
        payload=payload,
    )
    fields.update(kwargs)
    return Proposal(**fields)


def make_store(count=3) -> ProposalStore:
    store = ProposalStore()
    for pid in range(count):
        store.append(make_proposal(pid))
    return store


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL STORE
# ══════════════════════════════════════════════════════════════════════

class TestProposalRecord:

    def test_selector_is_payload_head(self):
        assert make_proposal().selector == b"\xaa\xbb\xcc\xdd"

    def test_frozen(self):
        p = make_proposal()
        with pytest.raises(AttributeError):
            p.target = ALICE

    def test_to_dict_hex_encodes_bytes(self):
        d = make_proposal(payload=b"\x01\x02\x03\x04").to_dict()
        assert d["payload"] == "0x01020304"
        assert d["descriptionHash"] == "0x" + "42" * 32
        assert d["deadline"] == 1_100

    def test_repr_mentions_id(self):
        assert "#0" in repr(make_proposal())


class TestProposalStore:

    def test_ids_are_sequential(self):
        store = ProposalStore()
        assert store.append(make_proposal(0)) == 0
        assert store.append(make_proposal(1)) == 1
        assert store.count() == 2
        assert len(store) == 2
        assert [p.id for p in store] == [0, 1]

    def test_append_rejects_wrong_id(self):
        store = make_store(1)
        with pytest.raises(ValueError):
            store.append(make_proposal(5))
        assert store.count() == 1

    def test_get(self):
        store = make_store()
        assert store.get(2).id == 2

    @pytest.mark.parametrize("pid", [-1, 3, 100])
    def test_get_out_of_range(self, pid):
        with pytest.raises(OutOfRangeError):
            make_store().get(pid)

    @pytest.mark.parametrize("pid", [True, "0", 1.0, None])
    def test_non_integer_id_rejected(self, pid):
        with pytest.raises(OutOfRangeError):
            make_store().get(pid)

    def test_out_of_range_is_input_validation(self):
        with pytest.raises(InputValidationError):
            ProposalStore().get(0)

    def test_new_proposals_are_not_executed(self):
        store = make_store()
        assert not any(store.is_executed(pid) for pid in range(3))

    def test_mark_executed_is_write_once(self):
        store = make_store()
        store.mark_executed(1)
        assert store.is_executed(1)
        with pytest.raises(AlreadyExecutedError):
            store.mark_executed(1)
        assert store.is_executed(1)
        assert not store.is_executed(0)

    def test_already_executed_is_state_conflict(self):
        store = make_store()
        store.mark_executed(0)
        with pytest.raises(StateConflictError):
            store.mark_executed(0)

    def test_mark_executed_out_of_range(self):
        with pytest.raises(OutOfRangeError):
            make_store().mark_executed(3)

    def test_restore_discards_later_writes(self):
        store = make_store(2)
        snap = store.snapshot()
        store.append(make_proposal(2))
        store.mark_executed(0)
        store.restore(snap)
        assert store.count() == 2
        assert not store.is_executed(0)
        with pytest.raises(OutOfRangeError):
            store.get(2)


# ══════════════════════════════════════════════════════════════════════
#  VOTE LEDGER
# ══════════════════════════════════════════════════════════════════════

class TestVoteTally:

    def test_majority_is_strict(self):
        assert VoteTally(0, 100, yes=51, no=50).has_majority
        assert not VoteTally(0, 100, yes=50, no=50).has_majority

    def test_as_tuple_order(self):
        assert VoteTally(0, 1000, yes=3, no=2).as_tuple() == (3, 2, 1000)

    def test_to_dict(self):
        d = VoteTally(4, 1000, yes=3, no=2).to_dict()
        assert d == {
            "proposalId": 4,
            "yes": 3,
            "no": 2,
            "totalVotes": 5,
            "supplySnapshot": 1000,
        }


class TestVoteLedger:

    def test_initialize_once(self):
        ledger = VoteLedger()
        ledger.initialize(0, 1000)
        assert ledger.tally(0) == (0, 0, 1000)
        with pytest.raises(LedgerError):
            ledger.initialize(0, 5)
        assert ledger.tally(0) == (0, 0, 1000)

    def test_negative_supply_rejected(self):
        with pytest.raises(ValueError):
            VoteLedger().initialize(0, -1)

    def test_add_vote_accumulates(self):
        ledger = VoteLedger()
        ledger.initialize(0, 1000)
        ledger.add_vote(0, 600, True)
        ledger.add_vote(0, 100, True)
        ledger.add_vote(0, 300, False)
        assert ledger.tally(0) == (700, 300, 1000)

    def test_zero_weight_is_noop(self):
        ledger = VoteLedger()
        ledger.initialize(0, 1000)
        ledger.add_vote(0, 0, True)
        ledger.add_vote(0, 0, False)
        assert ledger.tally(0) == (0, 0, 1000)

    def test_negative_weight_rejected(self):
        ledger = VoteLedger()
        ledger.initialize(0, 1000)
        with pytest.raises(ValueError):
            ledger.add_vote(0, -5, True)

    def test_unknown_proposal(self):
        ledger = VoteLedger()
        with pytest.raises(OutOfRangeError):
            ledger.add_vote(7, 1, True)
        with pytest.raises(OutOfRangeError):
            ledger.tally(7)

    def test_mark_voted_is_write_once(self):
        ledger = VoteLedger()
        ledger.initialize(0, 1000)
        assert not ledger.has_voted(0, ALICE)
        ledger.mark_voted(0, ALICE)
        assert ledger.has_voted(0, ALICE)
        with pytest.raises(AlreadyVotedError):
            ledger.mark_voted(0, ALICE)
        assert ledger.voter_count(0) == 1

    def test_has_voted_is_per_proposal(self):
        ledger = VoteLedger()
        ledger.initialize(0, 1000)
        ledger.initialize(1, 1000)
        ledger.mark_voted(0, ALICE)
        assert not ledger.has_voted(1, ALICE)
        assert not ledger.has_voted(0, BOB)

    def test_get_tally_returns_copy(self):
        ledger = VoteLedger()
        ledger.initialize(0, 1000)
        ledger.add_vote(0, 10, True)
        copy = ledger.get_tally(0)
        copy.yes = 999
        assert ledger.tally(0) == (10, 0, 1000)

    def test_restore(self):
        ledger = VoteLedger()
        ledger.initialize(0, 1000)
        ledger.add_vote(0, 10, True)
        ledger.mark_voted(0, ALICE)
        snap = ledger.snapshot()

        ledger.add_vote(0, 20, False)
        ledger.mark_voted(0, BOB)
        ledger.initialize(1, 50)

        ledger.restore(snap)
        assert ledger.tally(0) == (10, 0, 1000)
        assert ledger.has_voted(0, ALICE)
        assert not ledger.has_voted(0, BOB)
        with pytest.raises(OutOfRangeError):
            ledger.tally(1)
