"""The funnel store: one object owning the current funnel.

The application root constructs it (optionally seeded from storage), hands
it to whatever renders or edits the funnel, and closes it on shutdown.
"""

import logging
import threading
from collections.abc import Iterable, Mapping

from funnel_backbone.adapters.storage import KeyValueStore, MemoryKeyValueStore
from funnel_backbone.analysis.validation import validate
from funnel_backbone.errors import FunnelParseError, StorageError
from funnel_backbone.graph import mutations
from funnel_backbone.graph.mutations import ConnectOutcome
from funnel_backbone.models.changes import Connection, EdgeChange, NodeChange
from funnel_backbone.models.funnel import (
    FunnelEdge,
    FunnelNode,
    FunnelState,
    NodeType,
    Position,
    ValidationIssue,
    node_color,
)
from funnel_backbone.persistence import (
    EXPORT_INDENT,
    STORAGE_KEY,
    dump_funnel,
    load_initial_state,
    parse_funnel,
)
from funnel_backbone.utils.identifiers import export_filename

logger = logging.getLogger(__name__)


class FunnelStore:
    """Holds the funnel and applies every change to it.

    Each operation swaps the whole state for a new one, so readers of
    ``state`` always see a matching nodes/edges pair.

    Usage:
        store = FunnelStore(storage=SqliteKeyValueStore(path))
        node = store.add_node("sales", {"x": 0, "y": 0})
        issues = store.validate()
        store.save_funnel()
        store.close()
    """

    def __init__(
        self,
        storage: KeyValueStore | None = None,
        storage_key: str = STORAGE_KEY,
    ) -> None:
        """Create a store.

        Args:
            storage: medium the funnel is saved to. If None, an in-memory
                medium is used and nothing outlives the store.
            storage_key: key the funnel is saved under.
        """
        self._storage = storage if storage is not None else MemoryKeyValueStore()
        self._storage_key = storage_key
        self._lock = threading.Lock()
        self._state = load_initial_state(self._storage, storage_key)
        logger.info(
            "Funnel store ready with %d nodes and %d edges",
            len(self._state.nodes),
            len(self._state.edges),
        )

    @property
    def state(self) -> FunnelState:
        """The latest committed funnel."""
        return self._state

    @property
    def nodes(self) -> tuple[FunnelNode, ...]:
        return self._state.nodes

    @property
    def edges(self) -> tuple[FunnelEdge, ...]:
        return self._state.edges

    @property
    def storage(self) -> KeyValueStore:
        return self._storage

    # --- mutations ---

    def add_node(self, node_type: NodeType | str, position: Position | Mapping[str, float]) -> FunnelNode:
        with self._lock:
            self._state, node = mutations.add_node(self._state, node_type, position)
        return node

    def apply_node_changes(self, changes: Iterable[NodeChange]) -> None:
        with self._lock:
            self._state = mutations.apply_node_changes(self._state, changes)

    def apply_edge_changes(self, changes: Iterable[EdgeChange]) -> None:
        with self._lock:
            self._state = mutations.apply_edge_changes(self._state, changes)

    def connect(self, connection: Connection) -> ConnectOutcome:
        with self._lock:
            self._state, outcome = mutations.connect(self._state, connection)
        return outcome

    def delete_node(self, node_id: str) -> None:
        with self._lock:
            self._state = mutations.delete_node(self._state, node_id)

    def delete_edge(self, edge_id: str) -> None:
        with self._lock:
            self._state = mutations.delete_edge(self._state, edge_id)

    def update_node_data(self, node_id: str, **fields) -> FunnelNode | None:
        """Edit label, button label or warning fields. Returns the updated node."""
        with self._lock:
            self._state = mutations.update_node_data(self._state, node_id, **fields)
            return self._state.node(node_id)

    def validate(self) -> list[ValidationIssue]:
        """Validate the current funnel."""
        snapshot = self._state
        return validate(snapshot.nodes, snapshot.edges)

    @staticmethod
    def node_color(node_type: NodeType | str | None) -> str:
        return node_color(node_type)

    # --- persistence ---

    def save_funnel(self) -> bool:
        """Write the funnel to storage, replacing the saved copy."""
        snapshot = self._state
        try:
            self._storage.set(self._storage_key, dump_funnel(snapshot))
        except StorageError as exc:
            logger.error("Failed to save funnel: %s", exc)
            return False
        logger.debug("Saved funnel with %d nodes", len(snapshot.nodes))
        return True

    def load_funnel(self, state: FunnelState) -> None:
        """Replace the funnel with an already-built state."""
        with self._lock:
            self._state = state

    def export_funnel(self) -> str:
        """Pretty-printed JSON of the funnel, for saving to a file."""
        return dump_funnel(self._state, indent=EXPORT_INDENT)

    @staticmethod
    def export_filename() -> str:
        return export_filename()

    def import_funnel(self, text: str | bytes) -> bool:
        """Replace the funnel with one parsed from ``text``.

        Returns False and leaves the funnel untouched if the text does not
        parse.
        """
        try:
            imported = parse_funnel(text)
        except FunnelParseError as exc:
            logger.warning("Rejected funnel import: %s", exc)
            return False
        with self._lock:
            self._state = imported
        logger.info("Imported funnel with %d nodes", len(imported.nodes))
        return True

    def clear_funnel(self) -> bool:
        """Empty the funnel and erase the saved copy.

        The in-memory funnel is always cleared; returns False if the saved
        copy could not be removed.
        """
        with self._lock:
            self._state = FunnelState()
        try:
            self._storage.delete(self._storage_key)
        except StorageError as exc:
            logger.error("Failed to erase saved funnel: %s", exc)
            return False
        return True

    # --- lifecycle ---

    def close(self) -> None:
        self._storage.close()

    def __enter__(self) -> "FunnelStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FunnelStore(nodes={len(self._state.nodes)}, edges={len(self._state.edges)})"
