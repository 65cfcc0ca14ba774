"""Convenience service layer for authoring UIs."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .auction import AuctionEngine, CallRecord, TerminationPolicy
from .batch import parse_batch
from .calls import Bid, Call, parse_call
from .conventions import ConventionDefinition, ConventionNode, ConventionTree
from .seats import Seat
from .store import StoreError


@dataclass
class ChildView:
    id: str
    label: str
    meaning: str


@dataclass
class NodeView:
    id: str
    label: str
    path: list[str]
    meaning: str
    is_defined: bool
    definition: Optional[dict]
    children: list[ChildView]


@dataclass
class CallView:
    seat: str
    label: str


@dataclass
class BuilderView:
    dealer: str
    current_seat: str
    highest_bid: Optional[str]
    highest_bidder: Optional[str]
    is_terminated: bool
    is_passed_out: bool
    consecutive_passes: int
    legal_bids: list[str]
    undefined_bids: list[str]
    history: list[CallView]
    path: list[str]
    node: Optional[NodeView]
    openings: list[ChildView]


def node_view(tree: ConventionTree, node: ConventionNode) -> NodeView:
    definition = None
    if node.definition is not None:
        definition = asdict(node.definition)
        definition["tags"] = sorted(node.definition.tags)
    return NodeView(
        id=node.id,
        label=node.label,
        path=list(tree.path_of(node)),
        meaning=node.meaning,
        is_defined=node.is_defined,
        definition=definition,
        children=[_child_view(child) for child in tree.children_ordered(node)],
    )


def _child_view(node: ConventionNode) -> ChildView:
    return ChildView(id=node.id, label=node.label, meaning=node.meaning)


class SequenceBuilder:
    """Facade pairing one auction with one convention tree.

    Every accepted call materializes the tree node for the new auction path,
    so the node under edit is always ``tree.find(engine.path)``.
    """

    def __init__(
        self,
        tree: Optional[ConventionTree] = None,
        *,
        dealer: Seat = Seat.SOUTH,
        policy: TerminationPolicy = TerminationPolicy.STANDARD,
    ) -> None:
        self.tree = tree if tree is not None else ConventionTree()
        self.engine = AuctionEngine(dealer=dealer, policy=policy)
        self.engine.subscribe(self._materialize)

    # Auction -------------------------------------------------------------

    def select_bid(self, bid: Bid) -> BuilderView:
        return self._record(self.engine.select_bid, bid)

    def pass_call(self) -> BuilderView:
        return self._record(self.engine.pass_call)

    def make_call(self, call: Call | str) -> BuilderView:
        if isinstance(call, str):
            call = parse_call(call)
        return self._record(self.engine.make_call, call)

    def undo(self) -> BuilderView:
        self.engine.undo_last()
        return self.get_view()

    def clear(self, dealer: Optional[Seat] = None) -> BuilderView:
        self.engine.reset(dealer)
        return self.get_view()

    # Conventions ---------------------------------------------------------

    def current_node(self) -> Optional[ConventionNode]:
        if not self.engine.calls:
            return None
        return self.tree.find(self.engine.path)

    def set_meaning(self, text: str) -> BuilderView:
        self.tree.set_meaning(self._require_node(), text)
        return self.get_view()

    def set_definition(self, definition: Optional[ConventionDefinition]) -> BuilderView:
        self.tree.set_definition(self._require_node(), definition)
        return self.get_view()

    def import_batch(self, text: str, parent_path: Optional[Sequence[str]] = None) -> List[ConventionNode]:
        """Import pasted lines under parent_path (the current auction path by default)."""
        path = tuple(parent_path) if parent_path is not None else self.engine.path
        return self.tree.import_batch(path, parse_batch(text))

    def delete_path(self, path: Sequence[str]) -> int:
        """Delete the subtree at path; returns the number of removed nodes (0 if absent)."""
        node = self.tree.find(path)
        if node is None:
            return 0
        removed = self.tree.delete_subtree(node)
        # Keep the auction on a path that still exists in the tree.
        while self.engine.calls and self.tree.find(self.engine.path) is None:
            self.engine.undo_last()
        return len(removed)

    # Views ---------------------------------------------------------------

    def get_view(self) -> BuilderView:
        engine = self.engine
        node = self.current_node()
        legal = engine.legal_bids()
        return BuilderView(
            dealer=str(engine.dealer),
            current_seat=str(engine.current_seat),
            highest_bid=engine.highest_bid.label if engine.highest_bid else None,
            highest_bidder=str(engine.highest_bidder) if engine.highest_bidder else None,
            is_terminated=engine.is_terminated,
            is_passed_out=engine.is_passed_out,
            consecutive_passes=engine.consecutive_passes,
            legal_bids=[bid.label for bid in legal],
            undefined_bids=self._undefined_labels(node, legal),
            history=[CallView(seat=str(record.seat), label=record.label) for record in engine.calls],
            path=list(engine.path),
            node=node_view(self.tree, node) if node is not None else None,
            openings=[_child_view(root) for root in self.tree.roots()],
        )

    # Helpers -------------------------------------------------------------

    def _record(self, action: Callable[..., CallRecord], *args: Call) -> BuilderView:
        try:
            action(*args)
        except StoreError:
            # The engine accepted the call but its node could not be stored.
            self.engine.undo_last()
            raise
        return self.get_view()

    def _materialize(self, record: CallRecord, path: Tuple[str, ...]) -> None:
        self.tree.find_or_create(path[:-1], record.label)

    def _undefined_labels(self, node: Optional[ConventionNode], legal: Iterable[Bid]) -> list[str]:
        undefined = []
        for bid in legal:
            child = self.tree.find_child(node, bid.label)
            if child is None or not child.is_defined:
                undefined.append(bid.label)
        return undefined

    def _require_node(self) -> ConventionNode:
        node = self.current_node()
        if node is None:
            raise RuntimeError("No call has been made yet.")
        return node
