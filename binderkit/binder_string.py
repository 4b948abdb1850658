"""Fixed-capacity string used for service names and descriptors."""

from __future__ import annotations

STRING_INIT_CAPACITY = 64


class BinderString:
    """A NUL-terminated string held in a buffer of ``STRING_INIT_CAPACITY`` bytes.

    Text longer than the buffer allows is cut to ``STRING_INIT_CAPACITY - 1``
    bytes of UTF-8, never splitting a character.
    """

    __slots__ = ("_raw",)

    def __init__(self, data: str | None = None) -> None:
        self._raw = b""
        if data is not None:
            raw = data.encode("utf-8").split(b"\0", 1)[0]
            self._raw = (
                raw[: STRING_INIT_CAPACITY - 1].decode("utf-8", "ignore").encode("utf-8")
            )

    @property
    def data(self) -> str:
        """The held text."""
        return self._raw.decode("utf-8")

    def __len__(self) -> int:
        return len(self._raw)

    def copy_to(self, length: int) -> bytes:
        """Return the first ``length`` bytes of the zero-padded buffer."""
        if not 0 <= length <= STRING_INIT_CAPACITY:
            raise ValueError(
                f"length must be between 0 and {STRING_INIT_CAPACITY}, got {length}"
            )
        return self._raw.ljust(STRING_INIT_CAPACITY, b"\0")[:length]

    def dup(self, other: BinderString) -> None:
        """Make this string a copy of ``other``."""
        self._raw = other._raw

    def clear(self) -> None:
        """Empty the string."""
        self._raw = b""

    def compare(self, other: BinderString) -> int:
        """Return a negative, zero or positive value, ordering bytewise."""
        return (self._raw > other._raw) - (self._raw < other._raw)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BinderString):
            return self._raw == other._raw
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._raw)

    def __str__(self) -> str:
        return self.data

    def __repr__(self) -> str:
        return f"BinderString({self.data!r})"