"""Mutation operations over a FunnelState.

Each function takes a state and returns a new one; the input is never
touched, so whoever holds the previous snapshot keeps a consistent graph.

Invariants upheld by every operation here:
  - node ids are unique, edge ids are unique
  - every edge's source and target is a node in the same state
  - a step whose type cannot have outgoing edges is never an edge source
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from funnel_backbone.models.changes import (
    Connection,
    ConnectResult,
    EdgeAddChange,
    EdgeChange,
    EdgeRemoveChange,
    EdgeReplaceChange,
    EdgeSelectionChange,
    NodeAddChange,
    NodeChange,
    NodeDimensionsChange,
    NodePositionChange,
    NodeRemoveChange,
    NodeReplaceChange,
    NodeSelectionChange,
)
from funnel_backbone.models.funnel import (
    FunnelEdge,
    FunnelNode,
    FunnelState,
    NodeType,
    Position,
    node_data_class,
)
from funnel_backbone.utils.identifiers import generate_edge_id, generate_node_id

logger = logging.getLogger(__name__)

# styling applied to edges created through connect()
DEFAULT_EDGE_PRESENTATION: dict[str, Any] = {
    "type": "smoothstep",
    "animated": True,
    "style": {"strokeWidth": 2},
}


@dataclass(frozen=True)
class ConnectOutcome:
    """Result of a connection request."""

    result: ConnectResult
    edge: FunnelEdge | None = None

    @property
    def connected(self) -> bool:
        return self.result == ConnectResult.connected


# --- Nodes ---


def add_node(
    state: FunnelState,
    node_type: NodeType | str,
    position: Position | Mapping[str, float],
) -> tuple[FunnelState, FunnelNode]:
    """Append a new step with default labels.

    Upsell and downsell labels are numbered by how many steps of the same
    type already exist: "Upsell 1", "Upsell 2", ...
    """
    node_type = NodeType(node_type)
    data_cls = node_data_class(node_type)
    config = data_cls.type_config

    label = config.label
    if data_cls.numbered:
        count = sum(1 for node in state.nodes if node.node_type == node_type)
        label = f"{config.label} {count + 1}"

    node = FunnelNode(
        id=generate_node_id(node_type, state.node_ids()),
        position=Position.model_validate(position),
        data=data_cls(label=label, button_label=config.default_button_label),
    )
    logger.debug("Added %s node %s", node_type.value, node.id)
    return FunnelState(nodes=(*state.nodes, node), edges=state.edges), node


def delete_node(state: FunnelState, node_id: str) -> FunnelState:
    """Remove a node and every edge touching it, in one step."""
    return FunnelState(
        nodes=tuple(node for node in state.nodes if node.id != node_id),
        edges=_drop_edges_touching(state.edges, {node_id}),
    )


def update_node_data(
    state: FunnelState,
    node_id: str,
    *,
    label: str | None = None,
    button_label: str | None = None,
    has_warning: bool | None = None,
    warning_message: str | None = None,
) -> FunnelState:
    """Edit the mutable data fields of a node. The node type never changes."""
    update = {
        key: value
        for key, value in (
            ("label", label),
            ("button_label", button_label),
            ("has_warning", has_warning),
            ("warning_message", warning_message),
        )
        if value is not None
    }
    if not update:
        return state
    nodes = tuple(
        node.model_copy(update={"data": node.data.model_copy(update=update)})
        if node.id == node_id
        else node
        for node in state.nodes
    )
    return FunnelState(nodes=nodes, edges=state.edges)


def apply_node_changes(state: FunnelState, changes: Iterable[NodeChange]) -> FunnelState:
    """Apply a batch of node changes from the canvas.

    Removals cascade to the edges of the removed nodes. Changes for unknown
    ids are ignored, as are adds that reuse an existing id and replacements
    that would change a node's type.
    """
    adds, by_id = _group_changes(changes)

    nodes: list[FunnelNode] = []
    removed: set[str] = set()
    for node in state.nodes:
        pending = by_id.get(node.id)
        if not pending:
            nodes.append(node)
            continue
        first = pending[0]
        if isinstance(first, NodeRemoveChange):
            removed.add(node.id)
            continue
        if isinstance(first, NodeReplaceChange):
            nodes.append(_replace_node(node, first.item))
            continue
        for change in pending:
            node = _apply_node_change(node, change)
        nodes.append(node)

    taken = {node.id for node in nodes}
    for change in adds:
        if change.item.id in taken:
            logger.debug("Ignoring add for existing node %s", change.item.id)
            continue
        taken.add(change.item.id)
        _insert(nodes, change.item, change.index)

    edges = _drop_edges_touching(state.edges, removed) if removed else state.edges
    return FunnelState(nodes=tuple(nodes), edges=edges)


def _replace_node(current: FunnelNode, item: FunnelNode) -> FunnelNode:
    if item.node_type != current.node_type:
        logger.debug("Ignoring replace that changes the type of node %s", current.id)
        return current
    return item.model_copy(update={"id": current.id})


def _apply_node_change(node: FunnelNode, change: NodeChange) -> FunnelNode:
    update: dict[str, Any] = {}
    match change:
        case NodePositionChange():
            if change.position is not None:
                update["position"] = change.position
            if change.dragging is not None:
                update["dragging"] = change.dragging
        case NodeDimensionsChange():
            if change.dimensions is not None:
                update["measured"] = change.dimensions
                if change.set_attributes is True or change.set_attributes == "width":
                    update["width"] = change.dimensions.width
                if change.set_attributes is True or change.set_attributes == "height":
                    update["height"] = change.dimensions.height
            if change.resizing is not None:
                update["resizing"] = change.resizing
        case NodeSelectionChange():
            update["selected"] = change.selected
    return node.model_copy(update=update) if update else node


# --- Edges ---


def connect(state: FunnelState, connection: Connection) -> tuple[FunnelState, ConnectOutcome]:
    """Turn a connection request into an edge.

    A request from a step that cannot lead anywhere is dropped without a
    diagnostic; the outcome says why. The sales step's declared maximum of
    one outgoing edge is not checked here, only reported by validation.
    """
    source = state.node(connection.source)
    if source is None:
        return state, ConnectOutcome(ConnectResult.rejected_unknown_node)
    if not source.type_config.can_have_outgoing:
        logger.debug("Dropped connection from terminal node %s", source.id)
        return state, ConnectOutcome(ConnectResult.rejected_no_outgoing)
    if state.node(connection.target) is None:
        return state, ConnectOutcome(ConnectResult.rejected_unknown_node)

    edge_id = generate_edge_id(
        connection.source,
        connection.target,
        connection.source_handle,
        connection.target_handle,
    )
    for existing in state.edges:
        if existing.id == edge_id or _same_connection(existing, connection):
            return state, ConnectOutcome(ConnectResult.duplicate, existing)

    edge = FunnelEdge(
        id=edge_id,
        source=connection.source,
        target=connection.target,
        source_handle=connection.source_handle,
        target_handle=connection.target_handle,
        **DEFAULT_EDGE_PRESENTATION,
    )
    logger.debug("Connected %s -> %s", edge.source, edge.target)
    return (
        FunnelState(nodes=state.nodes, edges=(*state.edges, edge)),
        ConnectOutcome(ConnectResult.connected, edge),
    )


def delete_edge(state: FunnelState, edge_id: str) -> FunnelState:
    """Remove exactly one edge."""
    return FunnelState(
        nodes=state.nodes,
        edges=tuple(edge for edge in state.edges if edge.id != edge_id),
    )


def apply_edge_changes(state: FunnelState, changes: Iterable[EdgeChange]) -> FunnelState:
    """Apply a batch of edge changes from the canvas.

    Adds and replacements that would dangle, duplicate an id, or leave a
    terminal step with an outgoing edge are ignored.
    """
    adds, by_id = _group_changes(changes)

    edges: list[FunnelEdge] = []
    for edge in state.edges:
        pending = by_id.get(edge.id)
        if not pending:
            edges.append(edge)
            continue
        first = pending[0]
        if isinstance(first, EdgeRemoveChange):
            continue
        if isinstance(first, EdgeReplaceChange):
            item = first.item.model_copy(update={"id": edge.id})
            edges.append(item if _edge_allowed(state, item) else edge)
            continue
        for change in pending:
            if isinstance(change, EdgeSelectionChange):
                edge = edge.model_copy(update={"selected": change.selected})
        edges.append(edge)

    taken = {edge.id for edge in edges}
    for change in adds:
        if change.item.id in taken or not _edge_allowed(state, change.item):
            logger.debug("Ignoring edge add %s", change.item.id)
            continue
        taken.add(change.item.id)
        _insert(edges, change.item, change.index)

    return FunnelState(nodes=state.nodes, edges=tuple(edges))


def _edge_allowed(state: FunnelState, edge: FunnelEdge) -> bool:
    source = state.node(edge.source)
    if source is None or state.node(edge.target) is None:
        return False
    return source.type_config.can_have_outgoing


def _same_connection(edge: FunnelEdge, connection: Connection) -> bool:
    # missing and empty handles count as the same handle
    return (
        edge.source == connection.source
        and edge.target == connection.target
        and (edge.source_handle or None) == (connection.source_handle or None)
        and (edge.target_handle or None) == (connection.target_handle or None)
    )


def _drop_edges_touching(
    edges: tuple[FunnelEdge, ...], node_ids: set[str]
) -> tuple[FunnelEdge, ...]:
    return tuple(
        edge for edge in edges if edge.source not in node_ids and edge.target not in node_ids
    )


# --- Shared batch handling ---


def _group_changes(changes: Iterable[Any]) -> tuple[list[Any], dict[str, list[Any]]]:
    """Split a batch into adds and per-id change lists.

    A remove or replace for an id discards whatever was queued for it
    earlier in the batch; later attribute changes queue behind it and are
    ignored.
    """
    adds: list[Any] = []
    by_id: dict[str, list[Any]] = {}
    for change in changes:
        if isinstance(change, (NodeAddChange, EdgeAddChange)):
            adds.append(change)
        elif isinstance(change, (NodeRemoveChange, NodeReplaceChange, EdgeRemoveChange, EdgeReplaceChange)):
            by_id[change.id] = [change]
        else:
            by_id.setdefault(change.id, []).append(change)
    return adds, by_id


def _insert(items: list, item: Any, index: int | None) -> None:
    if index is None:
        items.append(item)
    else:
        items.insert(index, item)
