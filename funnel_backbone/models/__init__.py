"""Core data models for the funnel backbone."""

from funnel_backbone.models.funnel import (
    DownsellNodeData,
    FunnelEdge,
    FunnelNode,
    FunnelNodeData,
    FunnelState,
    IssueKind,
    NodeType,
    NodeTypeConfig,
    OrderNodeData,
    Position,
    SalesNodeData,
    ThankYouNodeData,
    UpsellNodeData,
    ValidationIssue,
    NODE_TYPE_CONFIGS,
    node_color,
    node_data_class,
)
from funnel_backbone.models.changes import (
    Connection,
    ConnectResult,
    EdgeChange,
    NodeChange,
)

__all__ = [
    # Graph elements
    "FunnelEdge",
    "FunnelNode",
    "FunnelState",
    "Position",
    # Node types and data variants
    "NodeType",
    "NodeTypeConfig",
    "NODE_TYPE_CONFIGS",
    "FunnelNodeData",
    "SalesNodeData",
    "OrderNodeData",
    "UpsellNodeData",
    "DownsellNodeData",
    "ThankYouNodeData",
    "node_color",
    "node_data_class",
    # Changes from the canvas
    "Connection",
    "ConnectResult",
    "EdgeChange",
    "NodeChange",
    # Diagnostics
    "IssueKind",
    "ValidationIssue",
]
