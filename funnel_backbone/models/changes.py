"""Change descriptors delivered by the rendering UI.

The canvas reports every user gesture (drag, resize, select, delete, add)
as a batch of small change records keyed by element id. Nodes and edges
each get their own closed union, discriminated on ``type``.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from funnel_backbone.models.funnel import Dimensions, FunnelEdge, FunnelNode, Position


class _Change(BaseModel):
    model_config = {"frozen": True, "populate_by_name": True}


# --- Node changes ---


class NodeAddChange(_Change):
    type: Literal["add"] = "add"
    item: FunnelNode
    index: int | None = None


class NodeRemoveChange(_Change):
    type: Literal["remove"] = "remove"
    id: str


class NodeReplaceChange(_Change):
    type: Literal["replace"] = "replace"
    id: str
    item: FunnelNode


class NodePositionChange(_Change):
    type: Literal["position"] = "position"
    id: str
    position: Position | None = None
    dragging: bool | None = None


class NodeDimensionsChange(_Change):
    type: Literal["dimensions"] = "dimensions"
    id: str
    dimensions: Dimensions | None = None
    resizing: bool | None = None
    # True copies both measured values onto width/height, a name copies one
    set_attributes: bool | Literal["width", "height"] | None = Field(
        default=None, alias="setAttributes"
    )


class NodeSelectionChange(_Change):
    type: Literal["select"] = "select"
    id: str
    selected: bool


NodeChange = Annotated[
    Union[
        NodeAddChange,
        NodeRemoveChange,
        NodeReplaceChange,
        NodePositionChange,
        NodeDimensionsChange,
        NodeSelectionChange,
    ],
    Field(discriminator="type"),
]


# --- Edge changes ---


class EdgeAddChange(_Change):
    type: Literal["add"] = "add"
    item: FunnelEdge
    index: int | None = None


class EdgeRemoveChange(_Change):
    type: Literal["remove"] = "remove"
    id: str


class EdgeReplaceChange(_Change):
    type: Literal["replace"] = "replace"
    id: str
    item: FunnelEdge


class EdgeSelectionChange(_Change):
    type: Literal["select"] = "select"
    id: str
    selected: bool


EdgeChange = Annotated[
    Union[EdgeAddChange, EdgeRemoveChange, EdgeReplaceChange, EdgeSelectionChange],
    Field(discriminator="type"),
]


# --- Connections ---


class Connection(BaseModel):
    """A connection request from the canvas: drag from one handle to another."""

    model_config = {"frozen": True, "populate_by_name": True}

    source: str
    target: str
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")


class ConnectResult(str, Enum):
    """Why a connection request was or was not turned into an edge."""

    connected = "connected"
    rejected_no_outgoing = "rejected_no_outgoing"  # source step is terminal
    rejected_unknown_node = "rejected_unknown_node"
    duplicate = "duplicate"
