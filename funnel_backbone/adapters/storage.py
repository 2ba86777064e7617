"""Key-value media the funnel is persisted into."""


class KeyValueStore:
    """Protocol for a durable string key-value medium."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        """Store a value, overwriting any previous one."""
        raise NotImplementedError

    def delete(self, key: str) -> None:
        """Remove a key. Absent keys are ignored."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any resources held by the medium."""


class MemoryKeyValueStore(KeyValueStore):
    """Stores values in a dict. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)
