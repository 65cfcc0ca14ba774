"""Call-sequence tree holding the meaning of every authored auction path."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from .store import ConventionStore

logger = logging.getLogger(__name__)

CallLabel = str


class ConventionTreeError(RuntimeError):
    """Base class for convention tree errors."""


class DuplicateLabelError(ConventionTreeError):
    """Raised when a rename would give two siblings the same label."""


@dataclass(frozen=True)
class ConventionDefinition:
    """Structured hand requirements attached to a call sequence.

    The tree stores whatever it is given; range checks (HP 0..37, suit
    lengths 0..7) belong to the authoring layer, see
    ``bidsystem.rules_schema.DefinitionSchema``.
    """

    min_hp: int = 0
    max_hp: int = 37
    min_clubs: int = 0
    min_diamonds: int = 0
    min_hearts: int = 0
    min_spades: int = 0
    is_balanced: bool = False
    tags: frozenset[str] = field(default_factory=frozenset)

    def with_tags(self, *tags: str) -> "ConventionDefinition":
        return replace(self, tags=self.tags | frozenset(tags))


@dataclass
class ConventionNode:
    id: str
    label: CallLabel
    meaning: str = ""
    creation_order: int = 0
    parent_id: Optional[str] = None
    children: List[str] = field(default_factory=list)
    definition: Optional[ConventionDefinition] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_defined(self) -> bool:
        return bool(self.meaning.strip())


class ConventionTree:
    """Arena of convention nodes keyed by id.

    Each node owns the ids of its children and keeps only a back-reference
    to its parent id. Roots are the opening calls. When a store is given,
    every mutation is written to it before the arena changes, so a failed
    write leaves the tree as it was.
    """

    def __init__(self, store: Optional["ConventionStore"] = None) -> None:
        self._nodes: Dict[str, ConventionNode] = {}
        self._roots: List[str] = []
        self._next_order = 0
        self.store = store

    @classmethod
    def load(cls, store: "ConventionStore") -> "ConventionTree":
        """Rebuild a tree from the records held by store."""
        tree = cls(store=None)
        loaded = sorted(store.load(), key=lambda node: node.creation_order)
        dropped: List[str] = []
        for node in loaded:
            node.children = []
            tree._nodes[node.id] = node
            tree._next_order = max(tree._next_order, node.creation_order + 1)
        for node in loaded:
            if node.parent_id is None:
                tree._roots.append(node.id)
            elif node.parent_id in tree._nodes:
                tree._nodes[node.parent_id].children.append(node.id)
            else:
                logger.warning("Dropping orphaned convention node %s (%s)", node.id, node.label)
                del tree._nodes[node.id]
                dropped.append(node.id)
        if dropped:
            store.delete(dropped)
        tree.store = store
        return tree

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: object) -> bool:
        return isinstance(node, ConventionNode) and self._nodes.get(node.id) is node

    # Lookup --------------------------------------------------------------

    def get(self, node_id: str) -> Optional[ConventionNode]:
        return self._nodes.get(node_id)

    def roots(self) -> List[ConventionNode]:
        return self._ordered(self._roots)

    def children_ordered(self, parent: Optional[ConventionNode]) -> List[ConventionNode]:
        """Children of parent (roots when parent is None) by creation order."""
        if parent is None:
            return self.roots()
        return self._ordered(self._require(parent).children)

    def find_child(self, parent: Optional[ConventionNode], label: CallLabel) -> Optional[ConventionNode]:
        for child in self.children_ordered(parent):
            if child.label == label:
                return child
        return None

    def find(self, path: Sequence[CallLabel]) -> Optional[ConventionNode]:
        """Node at the end of path, or None when any step is missing."""
        node: Optional[ConventionNode] = None
        for label in path:
            node = self.find_child(node, label)
            if node is None:
                return None
        return node

    def path_of(self, node: ConventionNode) -> Tuple[CallLabel, ...]:
        labels: List[CallLabel] = []
        current: Optional[ConventionNode] = self._require(node)
        while current is not None:
            labels.append(current.label)
            current = self._nodes.get(current.parent_id) if current.parent_id else None
        return tuple(reversed(labels))

    def walk(self, parent: Optional[ConventionNode] = None) -> Iterator[Tuple[int, ConventionNode]]:
        """Yield (depth, node) depth-first in presentation order."""
        stack = [(0, child) for child in reversed(self.children_ordered(parent))]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            stack.extend((depth + 1, child) for child in reversed(self.children_ordered(node)))

    # Creation ------------------------------------------------------------

    def create(self, parent: Optional[ConventionNode], label: CallLabel, meaning: str = "") -> ConventionNode:
        node = ConventionNode(
            id=uuid.uuid4().hex,
            label=label,
            meaning=meaning,
            creation_order=self._next_order,
            parent_id=parent.id if parent is not None else None,
        )
        if parent is not None:
            self._require(parent)
        self._persist(node)
        self._next_order += 1
        self._nodes[node.id] = node
        if parent is None:
            self._roots.append(node.id)
        else:
            self._nodes[parent.id].children.append(node.id)
        logger.debug("Created convention node %s at %s", node.id, self.path_of(node))
        return node

    def find_or_create(self, parent_path: Sequence[CallLabel], label: CallLabel) -> ConventionNode:
        """Return the child labelled label under parent_path, creating nodes as needed."""
        parent: Optional[ConventionNode] = None
        for step in parent_path:
            existing = self.find_child(parent, step)
            parent = existing if existing is not None else self.create(parent, step)
        existing = self.find_child(parent, label)
        if existing is not None:
            return existing
        return self.create(parent, label)

    def import_batch(
        self,
        parent_path: Sequence[CallLabel],
        lines: Iterable[Tuple[CallLabel, str]],
    ) -> List[ConventionNode]:
        """Apply (label, meaning) pairs in order; repeated labels reuse one node."""
        nodes: List[ConventionNode] = []
        for label, meaning in lines:
            node = self.find_or_create(parent_path, label)
            self.set_meaning(node, meaning)
            nodes.append(node)
        return nodes

    # Mutation ------------------------------------------------------------

    def set_meaning(self, node: ConventionNode, text: str) -> None:
        node = self._require(node)
        self._persist(replace(node, meaning=text))
        node.meaning = text

    def set_definition(self, node: ConventionNode, definition: Optional[ConventionDefinition]) -> None:
        node = self._require(node)
        self._persist(replace(node, definition=definition))
        node.definition = definition

    def rename(self, node: ConventionNode, label: CallLabel) -> None:
        node = self._require(node)
        parent = self._nodes.get(node.parent_id) if node.parent_id else None
        sibling = self.find_child(parent, label)
        if sibling is not None and sibling is not node:
            raise DuplicateLabelError(f"A sibling labelled {label!r} already exists.")
        self._persist(replace(node, label=label))
        node.label = label

    def delete_subtree(self, node: ConventionNode) -> List[str]:
        """Remove node and every descendant; returns the removed ids."""
        node = self._require(node)
        doomed: List[str] = []
        pending = [node.id]
        while pending:
            node_id = pending.pop()
            doomed.append(node_id)
            pending.extend(self._nodes[node_id].children)

        # Write the store first so a failed write leaves the tree untouched.
        if self.store is not None:
            self.store.delete(doomed)

        if node.parent_id is None:
            self._roots.remove(node.id)
        else:
            self._nodes[node.parent_id].children.remove(node.id)
        for node_id in doomed:
            del self._nodes[node_id]
        logger.debug("Deleted %d convention node(s) under %s", len(doomed), node.label)
        return doomed

    # Helpers -------------------------------------------------------------

    def _ordered(self, ids: Iterable[str]) -> List[ConventionNode]:
        return sorted((self._nodes[node_id] for node_id in ids), key=lambda node: node.creation_order)

    def _require(self, node: ConventionNode) -> ConventionNode:
        stored = self._nodes.get(node.id)
        if stored is None:
            raise ConventionTreeError(f"Node {node.id} does not belong to this tree.")
        return stored

    def _persist(self, node: ConventionNode) -> None:
        if self.store is not None:
            self.store.put(node)
