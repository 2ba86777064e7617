"""Funnel graph data model.

Nodes, edges and the funnel state exchanged with the rendering UI, plus the
static per-type configuration. Field names follow the JSON shape the UI
reads and writes (camelCase aliases), python attributes stay snake_case.

Node data is a closed union over the five step types, discriminated on
``nodeType``. Type-specific behaviour (default button text, whether the
step may lead anywhere, numbered labels) lives on the variant classes.
"""

from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import (
    BaseModel,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
)


class NodeType(str, Enum):
    """Funnel step types."""

    sales = "sales"
    order = "order"
    upsell = "upsell"
    downsell = "downsell"
    thankyou = "thankyou"


FALLBACK_NODE_COLOR = "#64748b"


class NodeTypeConfig(BaseModel):
    """Static description of a funnel step type."""

    model_config = {"frozen": True}

    type: NodeType
    label: str
    default_button_label: str
    icon: str
    color: str
    description: str
    max_outgoing: int | None = None  # declared for sales only, not enforced on connect
    can_have_outgoing: bool


class _CanvasModel(BaseModel):
    """Base for elements exchanged with the canvas.

    Declared optional fields still at None are left out of dumps. Extra keys
    written by the renderer are dumped as they came in, nulls included.
    """

    @model_serializer(mode="wrap")
    def _omit_empty_optionals(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> dict[str, Any]:
        data = handler(self)
        for name, field in type(self).model_fields.items():
            if field.default is None and getattr(self, name) is None:
                key = field.alias if info.by_alias and field.alias else name
                data.pop(key, None)
        return data


# --- Node data variants ---


class _NodeDataBase(_CanvasModel):
    model_config = {"frozen": True, "populate_by_name": True, "extra": "forbid"}

    type_config: ClassVar[NodeTypeConfig]
    numbered: ClassVar[bool] = False  # label gets a running number per type

    label: str
    button_label: str = Field(alias="buttonLabel")
    has_warning: bool | None = Field(default=None, alias="hasWarning")
    warning_message: str | None = Field(default=None, alias="warningMessage")


class SalesNodeData(_NodeDataBase):
    type_config: ClassVar[NodeTypeConfig] = NodeTypeConfig(
        type=NodeType.sales,
        label="Sales Page",
        default_button_label="Buy Now",
        icon="ShoppingBag",
        color="#0d9488",
        description="Landing page with product info",
        max_outgoing=1,
        can_have_outgoing=True,
    )

    node_type: Literal["sales"] = Field(default="sales", alias="nodeType")


class OrderNodeData(_NodeDataBase):
    type_config: ClassVar[NodeTypeConfig] = NodeTypeConfig(
        type=NodeType.order,
        label="Order Page",
        default_button_label="Complete Order",
        icon="CreditCard",
        color="#3b82f6",
        description="Checkout and payment form",
        can_have_outgoing=True,
    )

    node_type: Literal["order"] = Field(default="order", alias="nodeType")


class UpsellNodeData(_NodeDataBase):
    type_config: ClassVar[NodeTypeConfig] = NodeTypeConfig(
        type=NodeType.upsell,
        label="Upsell",
        default_button_label="Yes, Add This!",
        icon="TrendingUp",
        color="#22c55e",
        description="Additional offer after purchase",
        can_have_outgoing=True,
    )
    numbered: ClassVar[bool] = True

    node_type: Literal["upsell"] = Field(default="upsell", alias="nodeType")


class DownsellNodeData(_NodeDataBase):
    type_config: ClassVar[NodeTypeConfig] = NodeTypeConfig(
        type=NodeType.downsell,
        label="Downsell",
        default_button_label="Get This Instead",
        icon="TrendingDown",
        color="#f59e0b",
        description="Alternative offer if upsell declined",
        can_have_outgoing=True,
    )
    numbered: ClassVar[bool] = True

    node_type: Literal["downsell"] = Field(default="downsell", alias="nodeType")


class ThankYouNodeData(_NodeDataBase):
    type_config: ClassVar[NodeTypeConfig] = NodeTypeConfig(
        type=NodeType.thankyou,
        label="Thank You",
        default_button_label="Continue",
        icon="CheckCircle",
        color="#8b5cf6",
        description="Order confirmation page",
        can_have_outgoing=False,
    )

    node_type: Literal["thankyou"] = Field(default="thankyou", alias="nodeType")


FunnelNodeData = Annotated[
    Union[SalesNodeData, OrderNodeData, UpsellNodeData, DownsellNodeData, ThankYouNodeData],
    Field(discriminator="node_type"),
]


def node_data_class(node_type: NodeType | str) -> type[_NodeDataBase]:
    """Return the data variant for a node type."""
    match NodeType(node_type):
        case NodeType.sales:
            return SalesNodeData
        case NodeType.order:
            return OrderNodeData
        case NodeType.upsell:
            return UpsellNodeData
        case NodeType.downsell:
            return DownsellNodeData
        case NodeType.thankyou:
            return ThankYouNodeData


NODE_TYPE_CONFIGS: dict[NodeType, NodeTypeConfig] = {
    node_type: node_data_class(node_type).type_config for node_type in NodeType
}


def node_color(node_type: NodeType | str | None) -> str:
    """Minimap/legend colour for a node type. Presentation only."""
    try:
        return node_data_class(node_type).type_config.color
    except ValueError:
        return FALLBACK_NODE_COLOR


# --- Graph elements ---


class Position(BaseModel):
    """Canvas coordinates of a node."""

    model_config = {"frozen": True}

    x: float
    y: float


class Dimensions(BaseModel):
    model_config = {"frozen": True}

    width: float
    height: float


class FunnelNode(_CanvasModel):
    """A single funnel step placed on the canvas.

    Presentation fields written by the renderer (selection, drag state,
    measured size, anything unknown) are kept so they survive a save.
    """

    model_config = {"frozen": True, "populate_by_name": True, "extra": "allow"}

    id: str
    type: Literal["funnelNode"] = "funnelNode"
    position: Position
    data: FunnelNodeData

    selected: bool | None = None
    dragging: bool | None = None
    resizing: bool | None = None
    measured: Dimensions | None = None
    width: float | None = None
    height: float | None = None

    @property
    def node_type(self) -> NodeType:
        return NodeType(self.data.node_type)

    @property
    def type_config(self) -> NodeTypeConfig:
        return self.data.type_config


class FunnelEdge(_CanvasModel):
    """A directed connection: the customer proceeds from source to target."""

    model_config = {"frozen": True, "populate_by_name": True, "extra": "allow"}

    id: str
    source: str
    target: str
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")

    # presentation only
    type: str | None = None
    animated: bool | None = None
    style: dict[str, Any] | None = None
    selected: bool | None = None


class FunnelState(BaseModel):
    """The whole funnel graph. Replaced wholesale on every change."""

    model_config = {"frozen": True}

    nodes: tuple[FunnelNode, ...] = ()
    edges: tuple[FunnelEdge, ...] = ()

    def node(self, node_id: str) -> FunnelNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def edge(self, edge_id: str) -> FunnelEdge | None:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}


# --- Diagnostics ---


class IssueKind(str, Enum):
    """Severity of a validation issue."""

    error = "error"  # structurally invalid
    warning = "warning"  # suspicious or incomplete


class ValidationIssue(BaseModel):
    """A diagnostic about the funnel's shape. Derived, never persisted."""

    model_config = {"frozen": True, "populate_by_name": True}

    kind: IssueKind = Field(alias="type")
    message: str
    node_id: str | None = Field(default=None, alias="nodeId")
