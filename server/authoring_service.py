"""REST service for building and annotating bidding sequences."""

from __future__ import annotations

import logging
import os
import re
import threading
import uuid
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from bidsystem.auction import IllegalCallError
from bidsystem.calls import InvalidCallLabel
from bidsystem.conventions import ConventionTree
from bidsystem.rules_schema import DefinitionSchema, Settings, StoreConfig, load_settings
from bidsystem.seats import Seat, parse_seat
from bidsystem.service import BuilderView, SequenceBuilder, node_view
from bidsystem.store import JsonFileStore, StoreError

logger = logging.getLogger(__name__)

BOOK_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")


class StartRequest(BaseModel):
    dealer: Optional[str] = None
    book: Optional[str] = Field(
        None,
        description="Name of a convention book stored next to the configured store file.",
    )


class CallRequest(BaseModel):
    call: str = Field(..., description="Call label such as '1♣', '2 NT' or 'pass'.")


class ResetRequest(BaseModel):
    dealer: Optional[str] = None


class MeaningRequest(BaseModel):
    meaning: str


class BatchRequest(BaseModel):
    text: str
    parent_path: Optional[List[str]] = None


class SessionState:
    def __init__(self, builder: SequenceBuilder, store_path: Path) -> None:
        self.builder = builder
        self.store_path = store_path


sessions: Dict[str, SessionState] = {}
# One tree per store file; sessions on the same book share it.
trees: Dict[Path, ConventionTree] = {}
state_lock = threading.RLock()


def load_app_settings() -> Settings:
    rules_file = os.environ.get("BIDSYSTEM_RULES")
    settings = load_settings(rules_file) if rules_file else Settings()
    store_path = os.environ.get("BIDSYSTEM_STORE")
    if store_path:
        settings.store = StoreConfig(path=Path(store_path))
    return settings


settings = load_app_settings()

app = FastAPI(title="Bidding System Builder")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Convention store failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": f"Convention store unavailable: {exc}"})


def resolve_book(name: Optional[str]) -> Path:
    """Store file for a book name; None selects the configured store."""
    if name is None:
        return settings.store.path.resolve()
    if not BOOK_NAME.match(name):
        raise HTTPException(status_code=400, detail=f"Invalid book name: {name!r}")
    return (settings.store.path.parent / f"{name}.json").resolve()


def open_tree(path: Path) -> ConventionTree:
    tree = trees.get(path)
    if tree is None:
        tree = ConventionTree.load(JsonFileStore(path))
        trees[path] = tree
        logger.info("Loaded %d stored node(s) from %s", len(tree), path)
    return tree


def ensure_session(session_id: str) -> SessionState:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def serialize_view(view: BuilderView) -> Dict[str, object]:
    return asdict(view)


def parse_dealer(text: Optional[str]) -> Seat:
    if text is None:
        return settings.rules.dealer()
    try:
        return parse_seat(text)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/session/start")
def start_session(request: StartRequest) -> Dict[str, object]:
    store_path = resolve_book(request.book)
    dealer = parse_dealer(request.dealer)
    with state_lock:
        tree = open_tree(store_path)
        builder = SequenceBuilder(tree, dealer=dealer, policy=settings.rules.policy())
        session_id = uuid.uuid4().hex
        sessions[session_id] = SessionState(builder=builder, store_path=store_path)
        logger.info("Started session %s on %s", session_id, store_path)
        return {"session_id": session_id, "state": serialize_view(builder.get_view())}


@app.delete("/session/{session_id}")
def end_session(session_id: str) -> Dict[str, object]:
    with state_lock:
        ensure_session(session_id)
        del sessions[session_id]
    logger.info("Ended session %s", session_id)
    return {"session_id": session_id, "ended": True}


@app.post("/session/{session_id}/call")
def make_call(session_id: str, request: CallRequest) -> Dict[str, object]:
    with state_lock:
        session = ensure_session(session_id)
        try:
            view = session.builder.make_call(request.call)
        except (IllegalCallError, InvalidCallLabel) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"state": serialize_view(view)}


@app.post("/session/{session_id}/undo")
def undo_call(session_id: str) -> Dict[str, object]:
    with state_lock:
        session = ensure_session(session_id)
        return {"state": serialize_view(session.builder.undo())}


@app.post("/session/{session_id}/reset")
def reset_session(session_id: str, request: ResetRequest) -> Dict[str, object]:
    dealer = parse_dealer(request.dealer) if request.dealer else None
    with state_lock:
        session = ensure_session(session_id)
        return {"state": serialize_view(session.builder.clear(dealer))}


@app.put("/session/{session_id}/meaning")
def set_meaning(session_id: str, request: MeaningRequest) -> Dict[str, object]:
    with state_lock:
        session = ensure_session(session_id)
        if session.builder.current_node() is None:
            raise HTTPException(status_code=400, detail="Make a call before describing it")
        return {"state": serialize_view(session.builder.set_meaning(request.meaning))}


@app.put("/session/{session_id}/definition")
def set_definition(session_id: str, request: DefinitionSchema) -> Dict[str, object]:
    with state_lock:
        session = ensure_session(session_id)
        if session.builder.current_node() is None:
            raise HTTPException(status_code=400, detail="Make a call before defining it")
        return {"state": serialize_view(session.builder.set_definition(request.to_definition()))}


@app.post("/session/{session_id}/batch")
def import_batch(session_id: str, request: BatchRequest) -> Dict[str, object]:
    with state_lock:
        session = ensure_session(session_id)
        nodes = session.builder.import_batch(request.text, request.parent_path)
        return {
            "imported": [{"id": node.id, "label": node.label, "meaning": node.meaning} for node in nodes],
            "state": serialize_view(session.builder.get_view()),
        }


@app.delete("/session/{session_id}/node")
def delete_node(session_id: str, path: List[str] = Query(...)) -> Dict[str, object]:
    with state_lock:
        session = ensure_session(session_id)
        removed = session.builder.delete_path(path)
        if removed == 0:
            raise HTTPException(status_code=404, detail="No node at that path")
        logger.info("Session %s deleted %d node(s) at %s", session_id, removed, path)
        return {"removed": removed, "state": serialize_view(session.builder.get_view())}


@app.get("/session/{session_id}/tree")
def get_tree(session_id: str, path: List[str] = Query(default=[])) -> Dict[str, object]:
    with state_lock:
        session = ensure_session(session_id)
        tree = session.builder.tree
        if not path:
            return {"node": None, "children": [asdict(node_view(tree, root)) for root in tree.roots()]}
        node = tree.find(path)
        if node is None:
            raise HTTPException(status_code=404, detail="No node at that path")
        view = node_view(tree, node)
        return {"node": asdict(view), "children": [asdict(child) for child in view.children]}
