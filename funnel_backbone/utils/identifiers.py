"""ID generation and timestamp utilities."""

import time
from collections.abc import Container
from datetime import datetime, timezone

from funnel_backbone.models.funnel import NodeType


def current_millis() -> int:
    """Milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def generate_node_id(
    node_type: NodeType | str,
    taken: Container[str] = (),
    now_ms: int | None = None,
) -> str:
    """Generate a node ID of the form ``{type}-{creation ms}``.

    Two nodes created within the same millisecond would collide, so the
    timestamp is advanced until the ID is not in ``taken``.
    """
    prefix = NodeType(node_type).value
    stamp = current_millis() if now_ms is None else now_ms
    node_id = f"{prefix}-{stamp}"
    while node_id in taken:
        stamp += 1
        node_id = f"{prefix}-{stamp}"
    return node_id


def generate_edge_id(
    source: str,
    target: str,
    source_handle: str | None = None,
    target_handle: str | None = None,
) -> str:
    """Edge ID derived from its endpoints, matching the canvas convention."""
    return f"xy-edge__{source}{source_handle or ''}-{target}{target_handle or ''}"


def export_filename(now_ms: int | None = None) -> str:
    """Suggested filename for an exported funnel."""
    stamp = current_millis() if now_ms is None else now_ms
    return f"funnel-{stamp}.json"


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()
