"""Growable vectors with explicit capacity management."""

from __future__ import annotations

from typing import Any, Callable, Iterator

from binderkit.binder_string import BinderString

VECTOR_INIT_CAPACITY = 16


class Vector:
    """Ordered sequence whose capacity doubles when full and halves when sparse.

    Indices are plain positions: negative indices are out of range.
    """

    def __init__(self) -> None:
        self._items: list[Any] = []
        self._capacity = VECTOR_INIT_CAPACITY

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._items!r})"

    @property
    def capacity(self) -> int:
        """Number of slots reserved."""
        return self._capacity

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._items):
            raise IndexError(f"index {index} out of range for {len(self._items)} items")

    def resize(self, capacity: int) -> None:
        """Reserve exactly ``capacity`` slots; it may not drop below the item count."""
        if capacity < 1 or capacity < len(self._items):
            raise ValueError(
                f"capacity {capacity} cannot hold {len(self._items)} items"
            )
        self._capacity = capacity

    def add(self, value: Any) -> int:
        """Append ``value`` and return the new item count."""
        if len(self._items) == self._capacity:
            self.resize(self._capacity * 2)
        self._items.append(value)
        return len(self._items)

    def set(self, index: int, value: Any) -> None:
        """Replace the item at ``index``; an index out of range is ignored."""
        if 0 <= index < len(self._items):
            self._items[index] = value

    def get(self, index: int) -> Any:
        """Return the item at ``index``; IndexError if out of range."""
        self._check_index(index)
        return self._items[index]

    def delete(self, index: int) -> Any:
        """Remove and return the item at ``index``, shrinking when a quarter full."""
        self._check_index(index)
        value = self._items.pop(index)
        total = len(self._items)
        if total > 0 and total == self._capacity // 4:
            self.resize(self._capacity // 2)
        return value

    def clear(self, free: Callable[[Any], object] | None = None) -> None:
        """Remove every item, passing each to ``free`` first if given."""
        if free is not None:
            for item in self._items:
                free(item)
        self._items.clear()

    def push(self, value: Any) -> None:
        """Append ``value``."""
        self.add(value)

    def remove_at(self, index: int) -> None:
        """Remove the item at ``index``; an index out of range is ignored."""
        if 0 <= index < len(self._items):
            self.delete(index)

    def append(self, value: Any, num_items: int = 1) -> None:
        """Append ``num_items`` copies of ``value``, reserving room up front."""
        if num_items < 0:
            raise ValueError(f"num_items must not be negative, got {num_items}")
        if self._capacity < len(self._items) + num_items:
            self.resize(self._capacity * 2 + num_items)
        for _ in range(num_items):
            self.add(value)

    def is_empty(self) -> bool:
        return not self._items

    def remove_item_at(self, index: int) -> Any:
        """Remove and return the item at ``index``, or None if out of range."""
        if not 0 <= index < len(self._items):
            return None
        return self.delete(index)

    def edit_item_at(self, index: int) -> Any:
        """Return the item at ``index`` for in-place editing."""
        return self.get(index)


class StringVector(Vector):
    """Vector of :class:`BinderString` values, each stored as a private copy."""

    def add(self, string: BinderString | str) -> int:  # type: ignore[override]
        """Append a copy of ``string`` and return the new item count."""
        copy = BinderString()
        copy.dup(string if isinstance(string, BinderString) else BinderString(string))
        return super().add(copy)

    def get(self, index: int) -> BinderString:
        """Return the string at ``index``; IndexError if out of range."""
        return super().get(index)