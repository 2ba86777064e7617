"""Tests for the FunnelStore facade."""

import json

import pytest

from funnel_backbone.adapters.storage import KeyValueStore, MemoryKeyValueStore
from funnel_backbone.errors import StorageError
from funnel_backbone.models.changes import (
    Connection,
    ConnectResult,
    EdgeRemoveChange,
    NodePositionChange,
    NodeRemoveChange,
)
from funnel_backbone.models.funnel import FunnelState, IssueKind, NodeType, Position
from funnel_backbone.persistence import STORAGE_KEY
from funnel_backbone.store import FunnelStore


class ReadOnlyStore(MemoryKeyValueStore):
    """A medium that can be read but not written."""

    def set(self, key: str, value: str) -> None:
        raise StorageError("read-only")

    def delete(self, key: str) -> None:
        raise StorageError("read-only")


class ClosingStore(MemoryKeyValueStore):
    def __init__(self) -> None:
        super().__init__()
        self.closed = False

    def close(self) -> None:
        self.closed = True


def _build_funnel(store: FunnelStore) -> dict[str, str]:
    """sales -> order -> thankyou; returns node ids by type."""
    sales = store.add_node("sales", {"x": 0, "y": 0})
    order = store.add_node("order", {"x": 0, "y": 200})
    thankyou = store.add_node("thankyou", {"x": 0, "y": 400})
    store.connect(Connection(source=sales.id, target=order.id))
    store.connect(Connection(source=order.id, target=thankyou.id))
    return {"sales": sales.id, "order": order.id, "thankyou": thankyou.id}


class TestConstruction:
    """Test seeding the store."""

    def test_starts_empty_without_storage(self):
        store = FunnelStore()
        assert store.nodes == ()
        assert store.edges == ()
        assert isinstance(store.storage, MemoryKeyValueStore)

    def test_seeds_from_storage(self):
        source = FunnelStore()
        _build_funnel(source)
        storage = MemoryKeyValueStore({STORAGE_KEY: source.export_funnel()})
        store = FunnelStore(storage)
        assert store.state == source.state

    def test_corrupt_storage_gives_empty_funnel(self):
        store = FunnelStore(MemoryKeyValueStore({STORAGE_KEY: "garbage"}))
        assert store.state == FunnelState()

    def test_context_manager_closes_storage(self):
        storage = ClosingStore()
        with FunnelStore(storage) as store:
            store.add_node("sales", {"x": 0, "y": 0})
        assert storage.closed


class TestMutations:
    """Test mutations through the facade."""

    def test_add_node_replaces_state(self):
        """Readers holding the old snapshot keep it unchanged."""
        store = FunnelStore()
        before = store.state
        node = store.add_node(NodeType.upsell, Position(x=1, y=2))
        assert before.nodes == ()
        assert store.nodes == (node,)
        assert node.data.label == "Upsell 1"

    def test_connect_from_thankyou_is_dropped(self):
        store = FunnelStore()
        ids = _build_funnel(store)
        outcome = store.connect(Connection(source=ids["thankyou"], target=ids["sales"]))
        assert outcome.result == ConnectResult.rejected_no_outgoing
        assert all(edge.source != ids["thankyou"] for edge in store.edges)

    def test_delete_node_cascades(self):
        store = FunnelStore()
        ids = _build_funnel(store)
        store.delete_node(ids["order"])
        assert len(store.nodes) == 2
        assert store.edges == ()

    def test_delete_edge(self):
        store = FunnelStore()
        _build_funnel(store)
        store.delete_edge(store.edges[0].id)
        assert len(store.edges) == 1

    def test_change_batches(self):
        store = FunnelStore()
        ids = _build_funnel(store)
        store.apply_node_changes([NodePositionChange(id=ids["sales"], position=Position(x=9, y=9))])
        assert store.state.node(ids["sales"]).position == Position(x=9, y=9)
        store.apply_edge_changes([EdgeRemoveChange(id=store.edges[0].id)])
        assert len(store.edges) == 1
        store.apply_node_changes([NodeRemoveChange(id=ids["thankyou"])])
        assert store.edges == ()

    def test_update_node_data(self):
        store = FunnelStore()
        ids = _build_funnel(store)
        node = store.update_node_data(ids["order"], button_label="Pay now")
        assert node.data.button_label == "Pay now"
        assert store.update_node_data("ghost", label="x") is None

    def test_validate_recomputes_each_call(self):
        store = FunnelStore()
        assert store.validate() == []
        ids = _build_funnel(store)
        assert store.validate() == []
        store.delete_node(ids["thankyou"])
        assert [i.message for i in store.validate()] == ["Missing Thank You Page"]

    def test_node_color(self):
        assert FunnelStore.node_color("order") == "#3b82f6"


class TestPersistence:
    """Test save, export, import and clear."""

    def test_save_overwrites_stored_copy(self):
        storage = MemoryKeyValueStore({STORAGE_KEY: "old"})
        store = FunnelStore(storage)
        store.add_node("sales", {"x": 0, "y": 0})
        assert store.save_funnel() is True
        saved = json.loads(storage.get(STORAGE_KEY))
        assert len(saved["nodes"]) == 1
        assert saved["edges"] == []

    def test_save_uses_custom_key(self):
        storage = MemoryKeyValueStore()
        store = FunnelStore(storage, storage_key="team-funnel")
        store.save_funnel()
        assert storage.get("team-funnel") is not None
        assert storage.get(STORAGE_KEY) is None

    def test_save_failure_returns_false(self):
        store = FunnelStore(ReadOnlyStore())
        store.add_node("sales", {"x": 0, "y": 0})
        assert store.save_funnel() is False
        assert len(store.nodes) == 1

    def test_export_is_pretty_printed(self):
        store = FunnelStore()
        _build_funnel(store)
        exported = store.export_funnel()
        assert "\n  " in exported
        document = json.loads(exported)
        assert set(document) == {"nodes", "edges"}
        assert document["nodes"][0]["type"] == "funnelNode"
        assert document["nodes"][0]["data"]["nodeType"] == "sales"

    def test_export_import_round_trip(self):
        store = FunnelStore()
        ids = _build_funnel(store)
        store.update_node_data(ids["sales"], has_warning=True, warning_message="check copy")
        store.apply_node_changes([NodePositionChange(id=ids["order"], position=Position(x=3.5, y=-2))])
        original = store.state

        other = FunnelStore()
        assert other.import_funnel(store.export_funnel()) is True
        assert other.state == original

    def test_import_invalid_text_leaves_state(self):
        store = FunnelStore()
        _build_funnel(store)
        before = store.state
        assert store.import_funnel("{not json") is False
        assert store.import_funnel('{"nodes": []}') is False
        assert store.state is before

    def test_import_deeply_nested_text_leaves_state(self):
        store = FunnelStore()
        _build_funnel(store)
        before = store.state
        assert store.import_funnel("[" * 100000) is False
        assert store.import_funnel('{"nodes": ' + "[" * 100000) is False
        assert store.state is before

    def test_import_replaces_nodes_and_edges_together(self):
        store = FunnelStore()
        _build_funnel(store)
        assert store.import_funnel('{"nodes": [], "edges": []}') is True
        assert store.state == FunnelState()

    def test_load_funnel(self):
        source = FunnelStore()
        _build_funnel(source)
        store = FunnelStore()
        store.load_funnel(source.state)
        assert store.state == source.state

    def test_clear_erases_saved_copy(self):
        storage = MemoryKeyValueStore()
        store = FunnelStore(storage)
        _build_funnel(store)
        store.save_funnel()
        assert store.clear_funnel() is True
        assert store.state == FunnelState()
        assert storage.get(STORAGE_KEY) is None
        assert FunnelStore(storage).state == FunnelState()

    def test_clear_with_failing_storage_still_empties(self):
        store = FunnelStore(ReadOnlyStore())
        store.add_node("sales", {"x": 0, "y": 0})
        assert store.clear_funnel() is False
        assert store.nodes == ()

    def test_export_filename(self):
        name = FunnelStore.export_filename()
        assert name.startswith("funnel-")
        assert name.endswith(".json")


class TestRoundTripThroughValidation:
    def test_issues_survive_round_trip(self):
        """Validation of an imported funnel matches the original."""
        store = FunnelStore()
        store.add_node("sales", {"x": 0, "y": 0})
        store.add_node("thankyou", {"x": 0, "y": 0})
        copy = FunnelStore()
        copy.import_funnel(store.export_funnel())
        assert copy.validate() == store.validate()
        assert any(issue.kind == IssueKind.warning for issue in copy.validate())


class TestKeyValueStoreBase:
    def test_base_methods_are_abstract(self):
        base = KeyValueStore()
        with pytest.raises(NotImplementedError):
            base.get("k")
        with pytest.raises(NotImplementedError):
            base.set("k", "v")
        with pytest.raises(NotImplementedError):
            base.delete("k")
