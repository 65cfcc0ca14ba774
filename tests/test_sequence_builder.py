import pytest

from bidsystem.auction import DoesNotOutbid, TerminationPolicy
from bidsystem.calls import Bid, Strain
from bidsystem.conventions import ConventionDefinition, ConventionTree
from bidsystem.seats import Seat
from bidsystem.service import SequenceBuilder
from bidsystem.store import MemoryStore, StoreError


def test_each_call_materializes_its_node():
    builder = SequenceBuilder()

    view = builder.make_call("1NT")
    assert view.path == ["1NT"]
    assert view.node.label == "1NT"
    assert view.node.is_defined is False

    view = builder.make_call("pass")
    view = builder.make_call("2 ♣")

    assert view.path == ["1NT", "PASS", "2♣"]
    assert view.node.path == ["1NT", "PASS", "2♣"]
    assert view.history[-1].seat == "north"
    assert len(builder.tree) == 3


def test_reentering_a_sequence_reuses_nodes():
    builder = SequenceBuilder()
    builder.make_call("1♣")
    builder.set_meaning("12+ hp, 3+ clubs")
    first_id = builder.current_node().id

    builder.clear(Seat.EAST)
    view = builder.select_bid(Bid(1, Strain.CLUBS))

    assert view.node.id == first_id
    assert view.node.meaning == "12+ hp, 3+ clubs"
    assert view.dealer == "east"
    assert view.history[0].seat == "east"
    assert len(builder.tree) == 1


def test_undo_moves_back_to_parent_node():
    builder = SequenceBuilder()
    builder.make_call("1♥")
    builder.make_call("1♠")

    view = builder.undo()

    assert view.node.label == "1♥"
    assert [child.label for child in view.node.children] == ["1♠"]
    assert view.highest_bid == "1♥"
    assert "1♠" in view.legal_bids

    view = builder.undo()
    assert view.node is None
    assert [opening.label for opening in view.openings] == ["1♥"]


def test_illegal_call_leaves_tree_untouched():
    builder = SequenceBuilder()
    builder.make_call("2♦")

    with pytest.raises(DoesNotOutbid):
        builder.make_call("1♠")

    assert len(builder.tree) == 1
    assert builder.get_view().path == ["2♦"]


def test_undefined_bids_mark_continuations_without_meaning():
    tree = ConventionTree()
    tree.import_batch([], [("1♣", "clubs"), ("1♦", "")])
    builder = SequenceBuilder(tree)

    view = builder.get_view()

    assert "1♣" not in view.undefined_bids
    assert "1♦" in view.undefined_bids
    assert len(view.undefined_bids) == 34


def test_set_definition_on_current_node():
    builder = SequenceBuilder()
    builder.make_call("1NT")

    view = builder.set_definition(ConventionDefinition(min_hp=15, max_hp=17, is_balanced=True, tags=frozenset({"b", "a"})))

    assert view.node.definition["min_hp"] == 15
    assert view.node.definition["tags"] == ["a", "b"]


def test_set_meaning_requires_a_call():
    builder = SequenceBuilder()

    with pytest.raises(RuntimeError):
        builder.set_meaning("anything")


def test_import_batch_defaults_to_current_path():
    builder = SequenceBuilder()
    builder.make_call("1NT")

    builder.import_batch("2♣ - Stayman\n2♦ - Transfer")
    nodes = builder.import_batch("3NT - To play", parent_path=[])

    assert [child.label for child in builder.get_view().node.children] == ["2♣", "2♦"]
    assert builder.tree.find(["3NT"]) is nodes[0]


def test_delete_path_rewinds_auction_onto_existing_node():
    builder = SequenceBuilder()
    builder.make_call("1NT")
    builder.make_call("2♣")
    builder.make_call("2♦")

    removed = builder.delete_path(["1NT", "2♣"])

    assert removed == 2
    view = builder.get_view()
    assert view.path == ["1NT"]
    assert view.node.children == []
    assert builder.delete_path(["7NT"]) == 0


def test_passed_out_policy_flows_through_builder():
    standard = SequenceBuilder(policy=TerminationPolicy.STANDARD)
    three = SequenceBuilder(policy=TerminationPolicy.THREE_PASSES)
    for _ in range(3):
        standard.pass_call()
        three.pass_call()

    assert not standard.get_view().is_terminated
    assert three.get_view().is_passed_out
    assert three.get_view().legal_bids == []
    assert standard.pass_call().is_passed_out


def test_builder_writes_through_to_store():
    store = MemoryStore()
    builder = SequenceBuilder(ConventionTree(store=store))

    builder.make_call("1♠")
    builder.set_meaning("5+ spades")

    assert [record.meaning for record in store.records.values()] == ["5+ spades"]


class FailingStore(MemoryStore):
    def put(self, node):
        raise StoreError("disk full")


def test_store_failure_rolls_back_the_call():
    builder = SequenceBuilder(ConventionTree(store=FailingStore()))

    with pytest.raises(StoreError):
        builder.select_bid(Bid(1, Strain.CLUBS))

    assert builder.engine.path == ()
    assert builder.engine.highest_bid is None
    assert builder.engine.current_seat is Seat.SOUTH
    assert len(builder.tree) == 0

    with pytest.raises(StoreError):
        builder.make_call("pass")
    assert builder.engine.call_history == ()
