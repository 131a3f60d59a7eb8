"""FieldStore - answer values keyed by question key."""

import copy
from typing import Any, Dict, Iterable, Iterator, List, Optional


class FieldStore:
    """
    Holds the answer for each question key in a flow.

    Values are deep-copied on the way in and out so callers cannot mutate
    stored answers behind the store's back. Every effective change marks the
    store dirty and bumps ``revision``; writing a value equal to the one
    already held is a no-op.
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = copy.deepcopy(dict(values or {}))
        self.dirty = False
        self.revision = 0

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def keys(self) -> List[str]:
        return list(self._values)

    def get(self, key: str, default: Any = None) -> Any:
        """Return a copy of the answer for ``key`` or ``default``."""
        if key not in self._values:
            return default
        return copy.deepcopy(self._values[key])

    def set(self, key: str, value: Any) -> bool:
        """Store ``value`` under ``key``.

        Returns:
            True if the store changed, False if ``key`` already held an
            equal value.
        """
        if key in self._values and self._values[key] == value:
            return False
        self._values[key] = copy.deepcopy(value)
        self._touch()
        return True

    def clear_many(self, keys: Iterable[str]) -> List[str]:
        """Remove every present key in ``keys``.

        Returns:
            The keys actually removed, in the order given.
        """
        removed = []
        for key in keys:
            if key in self._values:
                del self._values[key]
                removed.append(key)
        if removed:
            self._touch()
        return removed

    def snapshot(self) -> Dict[str, Any]:
        """Return a deep copy of all answers."""
        return copy.deepcopy(self._values)

    def replace(self, values: Dict[str, Any]) -> None:
        """Replace all answers at once (used when resuming a draft)."""
        self._values = copy.deepcopy(dict(values))
        self.revision += 1
        self.dirty = False

    def mark_clean(self) -> None:
        self.dirty = False

    def _touch(self) -> None:
        self.dirty = True
        self.revision += 1

    def __repr__(self) -> str:
        return f"FieldStore({self._values!r})"
