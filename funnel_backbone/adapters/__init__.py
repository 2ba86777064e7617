"""Storage adapters for persisting funnels."""

from funnel_backbone.adapters.storage import KeyValueStore, MemoryKeyValueStore

__all__ = ["KeyValueStore", "MemoryKeyValueStore"]
