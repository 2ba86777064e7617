"""Utility functions for the funnel backbone."""

from funnel_backbone.utils.identifiers import (
    current_millis,
    export_filename,
    generate_edge_id,
    generate_node_id,
    utc_timestamp,
)

__all__ = [
    "current_millis",
    "export_filename",
    "generate_edge_id",
    "generate_node_id",
    "utc_timestamp",
]
