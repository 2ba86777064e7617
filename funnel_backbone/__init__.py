"""Funnel Backbone - graph state, validation and persistence for funnel building."""

from funnel_backbone.models.funnel import (
    FunnelEdge,
    FunnelNode,
    FunnelState,
    IssueKind,
    NodeType,
    NodeTypeConfig,
    Position,
    ValidationIssue,
    NODE_TYPE_CONFIGS,
)
from funnel_backbone.models.changes import (
    Connection,
    ConnectResult,
)
from funnel_backbone.analysis.validation import (
    ValidationSummary,
    summarize,
    validate,
)
from funnel_backbone.errors import (
    FunnelError,
    FunnelParseError,
    StorageError,
)
from funnel_backbone.store import FunnelStore

__all__ = [
    # Graph model
    "FunnelEdge",
    "FunnelNode",
    "FunnelState",
    "NodeType",
    "NodeTypeConfig",
    "Position",
    "NODE_TYPE_CONFIGS",
    # Connections
    "Connection",
    "ConnectResult",
    # Validation
    "IssueKind",
    "ValidationIssue",
    "ValidationSummary",
    "summarize",
    "validate",
    # Errors
    "FunnelError",
    "FunnelParseError",
    "StorageError",
    # High-level API
    "FunnelStore",
]
