"""Funnel validation rules.

Turns the shape of a funnel graph into an ordered list of diagnostics for
the UI. Pure and cheap enough to run on every change, so nothing is cached.

Rule order is fixed so the output is deterministic:
  1. per node, in node order:
     a. orphan: no incoming and no outgoing edge (warning)
     b. sales page: needs exactly one outgoing edge (warning)
     c. thank-you page: must not have outgoing edges (error)
  2. whole funnel, only when it has nodes:
     missing sales page, then missing thank-you page (warnings)
"""

from collections import Counter
from collections.abc import Sequence

from pydantic import BaseModel

from funnel_backbone.models.funnel import (
    DownsellNodeData,
    FunnelEdge,
    FunnelNode,
    IssueKind,
    OrderNodeData,
    SalesNodeData,
    ThankYouNodeData,
    UpsellNodeData,
    ValidationIssue,
)

MISSING_SALES_PAGE = "Missing Sales Page"
MISSING_THANK_YOU_PAGE = "Missing Thank You Page"


class ValidationSummary(BaseModel):
    """Validation issues with counts, as shown in the issues panel."""

    issues: list[ValidationIssue]
    error_count: int
    warning_count: int
    is_valid: bool  # no errors; warnings are allowed


def _warning(message: str, node_id: str | None = None) -> ValidationIssue:
    return ValidationIssue(kind=IssueKind.warning, message=message, node_id=node_id)


def _error(message: str, node_id: str | None = None) -> ValidationIssue:
    return ValidationIssue(kind=IssueKind.error, message=message, node_id=node_id)


def validate(
    nodes: Sequence[FunnelNode],
    edges: Sequence[FunnelEdge],
) -> list[ValidationIssue]:
    """Validate a funnel graph snapshot.

    Args:
        nodes: funnel steps in their current order.
        edges: connections between steps.

    Returns:
        Issues in rule order. Per-node issues carry the node id, funnel-wide
        issues do not.
    """
    outgoing = Counter(edge.source for edge in edges)
    incoming = Counter(edge.target for edge in edges)

    issues: list[ValidationIssue] = []
    for node in nodes:
        data = node.data
        label = data.label

        if not incoming[node.id] and not outgoing[node.id]:
            issues.append(_warning(f'"{label}" is not connected', node.id))

        match data:
            case SalesNodeData():
                # only the class is reported, not the count
                if outgoing[node.id] == 0:
                    issues.append(_warning(f'"{label}" needs connection to Order Page', node.id))
                elif outgoing[node.id] > 1:
                    issues.append(_warning(f'"{label}" has too many connections', node.id))
            case ThankYouNodeData():
                if outgoing[node.id] > 0:
                    issues.append(_error(f'"{label}" cannot have outgoing connections', node.id))
            case OrderNodeData() | UpsellNodeData() | DownsellNodeData():
                pass

    if nodes:
        if not any(isinstance(node.data, SalesNodeData) for node in nodes):
            issues.append(_warning(MISSING_SALES_PAGE))
        if not any(isinstance(node.data, ThankYouNodeData) for node in nodes):
            issues.append(_warning(MISSING_THANK_YOU_PAGE))

    return issues


def summarize(issues: Sequence[ValidationIssue]) -> ValidationSummary:
    """Count errors and warnings."""
    error_count = sum(1 for issue in issues if issue.kind == IssueKind.error)
    warning_count = len(issues) - error_count
    return ValidationSummary(
        issues=list(issues),
        error_count=error_count,
        warning_count=warning_count,
        is_valid=error_count == 0,
    )
