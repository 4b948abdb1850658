"""Chained hash map with power-of-two bucket counts and Fibonacci hashing."""

from __future__ import annotations

import enum
from typing import Any, Hashable, Iterator

from binderkit.binder_string import BinderString

_MASK64 = (1 << 64) - 1
_FIB_MULTIPLIER = 11400714819323198485

# start with 4 buckets
_MIN_CAP_BITS = 2


def hash_bits(h: int, bits: int) -> int:
    """Shuffle the bits of ``h`` and return its upper ``bits`` bits."""
    if bits == 0:
        return 0
    if not 0 < bits <= 64:
        raise ValueError(f"bits must be between 0 and 64, got {bits}")
    return ((h & _MASK64) * _FIB_MULTIPLIER & _MASK64) >> (64 - bits)


def str_hash(s: str | bytes) -> int:
    """Polynomial (base 31) hash of a string, wrapped to 64 bits."""
    raw = s.encode("utf-8") if isinstance(s, str) else s
    h = 0
    for byte in raw:
        if byte == 0:
            break
        h = (h * 31 + byte) & _MASK64
    return h


class InsertStrategy(enum.Enum):
    """How :meth:`HashMap.insert_entry` treats an existing key."""

    ADD = enum.auto()
    SET = enum.auto()
    UPDATE = enum.auto()
    APPEND = enum.auto()


class HashMap:
    """Hash map keyed by integers (or any hashable), with separate chaining.

    Buckets double when the map would become more than 75% full; entries are
    pushed on the front of their chain.
    """

    def __init__(self) -> None:
        self._buckets: list[list[list[Any]]] = []
        self._cap_bits = 0
        self._size = 0

    # -- hashing hooks -------------------------------------------------

    def hash_key(self, key: Hashable) -> int:
        """Return the raw hash of ``key``."""
        if isinstance(key, int):
            return key & _MASK64
        return hash(key) & _MASK64

    def keys_equal(self, key1: Any, key2: Any) -> bool:
        """Return whether two keys name the same entry."""
        return key1 == key2

    # -- internals -----------------------------------------------------

    @property
    def capacity(self) -> int:
        """Number of buckets."""
        return len(self._buckets)

    def _bucket_index(self, key: Any) -> int:
        return hash_bits(self.hash_key(key), self._cap_bits)

    def _find_entry(self, key: Any) -> tuple[list[list[Any]], int] | None:
        if not self._buckets:
            return None
        chain = self._buckets[self._bucket_index(key)]
        for position, entry in enumerate(chain):
            if self.keys_equal(entry[0], key):
                return chain, position
        return None

    def _needs_to_grow(self) -> bool:
        return self.capacity == 0 or (self._size + 1) * 4 // 3 > self.capacity

    def _grow(self) -> None:
        new_bits = max(self._cap_bits + 1, _MIN_CAP_BITS)
        new_buckets: list[list[list[Any]]] = [[] for _ in range(1 << new_bits)]
        for chain in self._buckets:
            for entry in chain:
                new_buckets[hash_bits(self.hash_key(entry[0]), new_bits)].insert(0, entry)
        self._buckets = new_buckets
        self._cap_bits = new_bits

    # -- core operations -----------------------------------------------

    def insert_entry(
        self, key: Any, value: Any, strategy: InsertStrategy = InsertStrategy.ADD
    ) -> tuple[Any, Any] | None:
        """Insert according to ``strategy``; return the replaced (key, value) if any.

        Raises KeyError when ``ADD`` meets an existing key or ``UPDATE`` finds none.
        """
        if strategy is not InsertStrategy.APPEND:
            found = self._find_entry(key)
            if found is not None:
                chain, position = found
                entry = chain[position]
                old = (entry[0], entry[1])
                if strategy in (InsertStrategy.SET, InsertStrategy.UPDATE):
                    entry[0] = key
                    entry[1] = value
                    return old
                raise KeyError(key)

        if strategy is InsertStrategy.UPDATE:
            raise KeyError(key)

        if self._needs_to_grow():
            self._grow()

        self._buckets[self._bucket_index(key)].insert(0, [key, value])
        self._size += 1
        return None

    def delete(self, key: Any) -> tuple[Any, Any]:
        """Remove ``key`` and return the removed (key, value); KeyError if absent."""
        found = self._find_entry(key)
        if found is None:
            raise KeyError(key)
        chain, position = found
        old_key, old_value = chain.pop(position)
        self._size -= 1
        return old_key, old_value

    def find(self, key: Any) -> Any:
        """Return the value stored under ``key``; KeyError if absent."""
        found = self._find_entry(key)
        if found is None:
            raise KeyError(key)
        chain, position = found
        return chain[position][1]

    def get(self, key: Any) -> Any:
        """Return the value stored under ``key``, or None if absent."""
        found = self._find_entry(key)
        if found is None:
            return None
        chain, position = found
        return chain[position][1]

    def put(self, key: Any, value: Any) -> None:
        """Add a new entry; KeyError if ``key`` is already present."""
        self.insert_entry(key, value, InsertStrategy.ADD)

    def insert(self, key: Any, value: Any) -> None:
        """Add a new entry; KeyError if ``key`` is already present."""
        self.insert_entry(key, value, InsertStrategy.ADD)

    def erase(self, key: Any) -> None:
        """Remove ``key``; KeyError if absent."""
        self.delete(key)

    def clear(self) -> None:
        """Remove every entry, keeping the bucket table."""
        for chain in self._buckets:
            chain.clear()
        self._size = 0

    def items(self) -> Iterator[tuple[Any, Any]]:
        """Yield (key, value) pairs in bucket order; safe against removals."""
        snapshot = [(entry[0], entry[1]) for chain in self._buckets for entry in chain]
        yield from snapshot

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Any]:
        for key, _ in self.items():
            yield key

    def __contains__(self, key: object) -> bool:
        return self._find_entry(key) is not None

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"{type(self).__name__}({{{body}}})"


def _text(key: BinderString | str) -> str:
    if isinstance(key, BinderString):
        return key.data
    if isinstance(key, str):
        return key
    raise TypeError(f"string key expected, got {type(key).__name__}")


class StringHashMap(HashMap):
    """Hash map keyed by strings; ``str`` and :class:`BinderString` keys mix freely."""

    def hash_key(self, key: BinderString | str) -> int:
        return str_hash(_text(key))

    def keys_equal(self, key1: BinderString | str, key2: BinderString | str) -> bool:
        return _text(key1) == _text(key2)