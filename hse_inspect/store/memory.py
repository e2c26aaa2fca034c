"""Process-local key-value store (tests and single-process dev runs)."""

import copy
from typing import Any

from hse_inspect.store.base import KeyValueStore


class InMemoryStore(KeyValueStore):
    """Values are deep-copied in and out so callers never share mutable state with the store."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        super().__init__()
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def load(self, name: str, default: Any = None) -> Any:
        if name not in self._data:
            return default
        return copy.deepcopy(self._data[name])

    def save(self, name: str, value: Any) -> None:
        self._data[name] = copy.deepcopy(value)

    def remove(self, name: str) -> None:
        self._data.pop(name, None)
