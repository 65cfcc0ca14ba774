"""Durable storage for convention nodes."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from pydantic import BaseModel, Field, ValidationError

from .conventions import ConventionDefinition, ConventionNode

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class StoreError(RuntimeError):
    """Raised when stored conventions cannot be read or written."""


class DefinitionRecord(BaseModel):
    min_hp: int = 0
    max_hp: int = 37
    min_clubs: int = 0
    min_diamonds: int = 0
    min_hearts: int = 0
    min_spades: int = 0
    is_balanced: bool = False
    tags: List[str] = Field(default_factory=list)

    @classmethod
    def from_definition(cls, definition: ConventionDefinition) -> "DefinitionRecord":
        return cls(
            min_hp=definition.min_hp,
            max_hp=definition.max_hp,
            min_clubs=definition.min_clubs,
            min_diamonds=definition.min_diamonds,
            min_hearts=definition.min_hearts,
            min_spades=definition.min_spades,
            is_balanced=definition.is_balanced,
            tags=sorted(definition.tags),
        )

    def to_definition(self) -> ConventionDefinition:
        return ConventionDefinition(
            min_hp=self.min_hp,
            max_hp=self.max_hp,
            min_clubs=self.min_clubs,
            min_diamonds=self.min_diamonds,
            min_hearts=self.min_hearts,
            min_spades=self.min_spades,
            is_balanced=self.is_balanced,
            tags=frozenset(self.tags),
        )


class NodeRecord(BaseModel):
    """Persisted form of a node; `creation_order` is the sort key across restarts."""

    id: str
    label: str
    meaning: str = ""
    creation_order: int
    parent_id: Optional[str] = None
    definition: Optional[DefinitionRecord] = None

    @classmethod
    def from_node(cls, node: ConventionNode) -> "NodeRecord":
        return cls(
            id=node.id,
            label=node.label,
            meaning=node.meaning,
            creation_order=node.creation_order,
            parent_id=node.parent_id,
            definition=DefinitionRecord.from_definition(node.definition) if node.definition else None,
        )

    def to_node(self) -> ConventionNode:
        return ConventionNode(
            id=self.id,
            label=self.label,
            meaning=self.meaning,
            creation_order=self.creation_order,
            parent_id=self.parent_id,
            definition=self.definition.to_definition() if self.definition else None,
        )


class StoreDocument(BaseModel):
    version: int = STORE_VERSION
    nodes: List[NodeRecord] = Field(default_factory=list)


class ConventionStore(Protocol):
    def load(self) -> List[ConventionNode]:
        ...

    def put(self, node: ConventionNode) -> None:
        ...

    def delete(self, node_ids: Iterable[str]) -> None:
        ...


class MemoryStore:
    """Process-local store; records are copied so callers cannot alias them."""

    def __init__(self) -> None:
        self.records: Dict[str, NodeRecord] = {}

    def load(self) -> List[ConventionNode]:
        return [record.to_node() for record in self.records.values()]

    def put(self, node: ConventionNode) -> None:
        self.records[node.id] = NodeRecord.from_node(node)

    def delete(self, node_ids: Iterable[str]) -> None:
        for node_id in node_ids:
            self.records.pop(node_id, None)


class JsonFileStore(MemoryStore):
    """JSON document store rewritten atomically on every change.

    The in-memory records are replaced only after the file has been written,
    so a failed write leaves both the file and the records as they were.
    """

    def __init__(self, path: Path | str) -> None:
        super().__init__()
        self.path = Path(path)
        self._lock = threading.Lock()
        if self.path.exists():
            self.records = {record.id: record for record in self._read().nodes}

    def put(self, node: ConventionNode) -> None:
        with self._lock:
            records = dict(self.records)
            records[node.id] = NodeRecord.from_node(node)
            self._write(records)
            self.records = records

    def delete(self, node_ids: Iterable[str]) -> None:
        with self._lock:
            records = dict(self.records)
            for node_id in node_ids:
                records.pop(node_id, None)
            self._write(records)
            self.records = records

    def _read(self) -> StoreDocument:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            document = StoreDocument.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise StoreError(f"Cannot read convention store {self.path}: {exc}") from exc
        if document.version != STORE_VERSION:
            raise StoreError(f"Unsupported store version {document.version} in {self.path}.")
        return document

    def _write(self, records: Dict[str, NodeRecord]) -> None:
        document = StoreDocument(nodes=sorted(records.values(), key=lambda record: record.creation_order))
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=self.path.parent)
        except OSError as exc:
            raise StoreError(f"Cannot write convention store {self.path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(document.model_dump_json(indent=2))
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"Cannot write convention store {self.path}: {exc}") from exc
        logger.debug("Wrote %d convention node(s) to %s", len(document.nodes), self.path)
