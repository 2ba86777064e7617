"""API routes for the funnel builder canvas."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field

from funnel_backbone.analysis.validation import ValidationSummary, summarize
from funnel_backbone.models.changes import Connection, EdgeChange, NodeChange
from funnel_backbone.models.funnel import (
    NODE_TYPE_CONFIGS,
    NodeType,
    NodeTypeConfig,
    Position,
)
from funnel_backbone.persistence import dump_funnel
from funnel_backbone.store import FunnelStore

logger = logging.getLogger(__name__)

router = APIRouter()


def get_store(request: Request) -> FunnelStore:
    """The store owned by the running application."""
    return request.app.state.funnel_store


StoreDep = Annotated[FunnelStore, Depends(get_store)]


# --- Request/Response Models ---


class AddNodeRequest(BaseModel):
    """Request body for dropping a new step onto the canvas."""

    type: NodeType
    position: Position


class UpdateNodeDataRequest(BaseModel):
    """Request body for editing a step's texts or warning badge."""

    model_config = {"populate_by_name": True, "extra": "forbid"}

    label: str | None = None
    button_label: str | None = Field(default=None, alias="buttonLabel")
    has_warning: bool | None = Field(default=None, alias="hasWarning")
    warning_message: str | None = Field(default=None, alias="warningMessage")


# --- Helper Functions ---


def _json(content: str) -> Response:
    return Response(content=content, media_type="application/json")


def _state_response(store: FunnelStore) -> Response:
    """Current funnel in the saved/exported JSON shape."""
    return _json(dump_funnel(store.state))


# --- Routes ---


@router.get("/funnel")
def get_funnel(store: StoreDep) -> Response:
    """get the current nodes and edges."""
    return _state_response(store)


@router.get("/funnel/node-types")
def list_node_types() -> list[NodeTypeConfig]:
    """list the step types the palette offers."""
    return list(NODE_TYPE_CONFIGS.values())


@router.post("/funnel/nodes", status_code=201)
def add_node(request: AddNodeRequest, store: StoreDep) -> Response:
    """add a step at a canvas position."""
    node = store.add_node(request.type, request.position)
    return Response(
        content=node.model_dump_json(by_alias=True),
        media_type="application/json",
        status_code=201,
    )


@router.patch("/funnel/nodes")
def apply_node_changes(changes: list[NodeChange], store: StoreDep) -> Response:
    """apply a batch of node changes reported by the canvas."""
    store.apply_node_changes(changes)
    return _state_response(store)


@router.patch("/funnel/edges")
def apply_edge_changes(changes: list[EdgeChange], store: StoreDep) -> Response:
    """apply a batch of edge changes reported by the canvas."""
    store.apply_edge_changes(changes)
    return _state_response(store)


@router.post("/funnel/connect")
def connect(connection: Connection, store: StoreDep) -> dict:
    """connect two steps.

    A refused connection is not an HTTP error; the result says why.
    """
    outcome = store.connect(connection)
    return {
        "result": outcome.result.value,
        "edge": (
            outcome.edge.model_dump(mode="json", by_alias=True)
            if outcome.edge is not None
            else None
        ),
    }


@router.patch("/funnel/nodes/{node_id}/data")
def update_node_data(node_id: str, request: UpdateNodeDataRequest, store: StoreDep) -> Response:
    """edit a step's label, button text or warning badge."""
    node = store.update_node_data(node_id, **request.model_dump(exclude_none=True))
    if node is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
    return _json(node.model_dump_json(by_alias=True))


@router.delete("/funnel/nodes/{node_id}")
def delete_node(node_id: str, store: StoreDep) -> Response:
    """delete a step together with its connections."""
    if store.state.node(node_id) is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id}")
    store.delete_node(node_id)
    return _state_response(store)


@router.delete("/funnel/edges/{edge_id}")
def delete_edge(edge_id: str, store: StoreDep) -> Response:
    """delete a single connection."""
    if store.state.edge(edge_id) is None:
        raise HTTPException(status_code=404, detail=f"Edge not found: {edge_id}")
    store.delete_edge(edge_id)
    return _state_response(store)


@router.get("/funnel/validation")
def validate_funnel(store: StoreDep) -> ValidationSummary:
    """validate the current funnel."""
    return summarize(store.validate())


@router.post("/funnel/save")
def save_funnel(store: StoreDep) -> dict:
    """save the funnel to the server-side store."""
    if not store.save_funnel():
        raise HTTPException(status_code=500, detail="Failed to save funnel")
    return {"saved": True}


@router.get("/funnel/export")
def export_funnel(store: StoreDep) -> Response:
    """download the funnel as a JSON file."""
    filename = store.export_filename()
    return Response(
        content=store.export_funnel(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/funnel/import")
async def import_funnel(request: Request, store: StoreDep) -> Response:
    """replace the funnel with an uploaded JSON document (raw request body)."""
    body = await request.body()
    if not store.import_funnel(body):
        raise HTTPException(status_code=400, detail="Invalid funnel file")
    return _state_response(store)


@router.delete("/funnel")
def clear_funnel(store: StoreDep) -> Response:
    """empty the funnel and erase the saved copy."""
    if not store.clear_funnel():
        logger.warning("Funnel cleared but the saved copy could not be erased")
    return _state_response(store)
