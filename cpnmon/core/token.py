"""
Colored tokens and token multisets.

Tokens form a small closed set of protocol entities: thread ids, lock
ids, memory locations, memory regions, and the payload-free ``Unit``
marker.  A :class:`Multiset` is the bag of tokens held by one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple


class Token:
    """
    Base class for all token variants.

    Tokens are immutable, compared structurally (``Lock(1) != Loc(1)``),
    and hashable.  ``str(token)`` is the canonical text form used for
    ordering in hashes and diagnostics.
    """

    __slots__ = ()

    @property
    def kind(self) -> str:
        """Variant name (``"Lock"``, ``"Tid"``, ...)."""
        return type(self).__name__

    def __str__(self) -> str:
        return f"{self.kind}({getattr(self, 'value')})"

    def __repr__(self) -> str:
        return str(self)


def _check_value(token: Token, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(
            f"{token.kind} value must be a non-negative integer, got {value!r}"
        )


@dataclass(frozen=True, repr=False)
class Tid(Token):
    """Thread identifier."""

    value: int

    def __post_init__(self) -> None:
        _check_value(self, self.value)


@dataclass(frozen=True, repr=False)
class Lock(Token):
    """Lock (mutex) identifier."""

    value: int

    def __post_init__(self) -> None:
        _check_value(self, self.value)


@dataclass(frozen=True, repr=False)
class Loc(Token):
    """Atomic memory location identifier."""

    value: int

    def __post_init__(self) -> None:
        _check_value(self, self.value)


@dataclass(frozen=True, repr=False)
class Region(Token):
    """Memory region identifier (unsafe accesses)."""

    value: int

    def __post_init__(self) -> None:
        _check_value(self, self.value)


@dataclass(frozen=True, repr=False)
class Unit(Token):
    """Token without payload."""

    def __str__(self) -> str:
        return "Unit"


UNIT = Unit()

TOKEN_KINDS = {
    "Tid": Tid,
    "Lock": Lock,
    "Loc": Loc,
    "Region": Region,
}


def make_token(kind: str, value: Optional[int] = None) -> Token:
    """
    Build a token from a kind name and a value.

    Unrecognized kinds (including ``"Unit"``) map to :data:`UNIT`.

    Raises:
        ValueError: If the kind is known but the value is not a
            non-negative integer.
    """
    cls = TOKEN_KINDS.get(kind)
    if cls is None:
        return UNIT
    return cls(value)


class Multiset:
    """
    Bag of tokens: token -> positive count.

    A token that is absent has count zero; no entry is ever stored with
    a zero count.  ``remove`` is all-or-nothing.
    """

    __slots__ = ("_counts",)

    def __init__(self, counts: Optional[Dict[Token, int]] = None) -> None:
        self._counts: Dict[Token, int] = {}
        for token, n in (counts or {}).items():
            self.add(token, n)

    def add(self, token: Token, count: int = 1) -> None:
        """Increase the count of *token* by *count*."""
        _check_count(count)
        if count == 0:
            return
        self._counts[token] = self._counts.get(token, 0) + count

    def remove(self, token: Token, count: int = 1) -> bool:
        """
        Decrease the count of *token* by *count*.

        Returns:
            True on success.  False if fewer than *count* copies are
            stored, in which case the multiset is left unchanged.
        """
        _check_count(count)
        stored = self._counts.get(token, 0)
        if stored < count:
            return False
        if stored == count:
            self._counts.pop(token, None)
        else:
            self._counts[token] = stored - count
        return True

    def contains(self, token: Token, count: int = 1) -> bool:
        """True iff at least *count* copies of *token* are stored."""
        _check_count(count)
        return self._counts.get(token, 0) >= count

    def count(self, token: Token) -> int:
        """Number of stored copies of *token* (zero if absent)."""
        return self._counts.get(token, 0)

    def is_empty(self) -> bool:
        return not self._counts

    def total(self) -> int:
        """Sum of all counts."""
        return sum(self._counts.values())

    def items(self) -> Iterator[Tuple[Token, int]]:
        """Yield ``(token, count)`` pairs sorted by canonical text."""
        for token in sorted(self._counts, key=str):
            yield token, self._counts[token]

    def copy(self) -> Multiset:
        clone = Multiset()
        clone._counts = dict(self._counts)
        return clone

    def __iter__(self) -> Iterator[Token]:
        return (token for token, _ in self.items())

    def __len__(self) -> int:
        """Number of distinct tokens."""
        return len(self._counts)

    def __contains__(self, token: object) -> bool:
        return token in self._counts

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Multiset):
            return NotImplemented
        return self._counts == other._counts

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return "[" + ", ".join(f"{t} x{n}" for t, n in self.items()) + "]"

    def __repr__(self) -> str:
        entries = ", ".join(f"{t}: {n}" for t, n in self.items())
        return f"Multiset({{{entries}}})"


def _check_count(count: int) -> None:
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ValueError(f"count must be a non-negative integer, got {count!r}")
