"""
Markings: the assignment of token multisets to places.

A marking is the complete mutable state of a monitored net.  A place
that is absent from the mapping is equivalent to an empty multiset, for
lookups as well as for equality and hashing.
"""

from __future__ import annotations

import hashlib
from typing import Dict, Iterator, List, Optional, Tuple

from cpnmon.core.token import Multiset, Token

PlaceId = str


class Marking:
    """
    Mapping from place name to :class:`Multiset`.

    Owned by the engine; everything else reaches it read-only.
    """

    __slots__ = ("_places",)

    def __init__(self, places: Optional[Dict[PlaceId, Multiset]] = None) -> None:
        self._places: Dict[PlaceId, Multiset] = {}
        for place, multiset in (places or {}).items():
            self._places[place] = multiset.copy()

    # ------------------------------------------------------------------ #
    # Access
    # ------------------------------------------------------------------ #

    def add_token(self, place: PlaceId, token: Token, count: int = 1) -> None:
        """Add *count* copies of *token* to *place*, creating the place if needed."""
        self.get_or_insert(place).add(token, count)

    def get(self, place: PlaceId) -> Multiset:
        """
        Return the multiset stored at *place*.

        An unknown place yields a fresh empty multiset that is not
        inserted into the marking.
        """
        multiset = self._places.get(place)
        return multiset if multiset is not None else Multiset()

    def get_or_insert(self, place: PlaceId) -> Multiset:
        """Return the multiset at *place*, inserting an empty one if absent."""
        multiset = self._places.get(place)
        if multiset is None:
            multiset = Multiset()
            self._places[place] = multiset
        return multiset

    def places(self) -> List[PlaceId]:
        """All stored place names, sorted."""
        return sorted(self._places)

    def items(self) -> Iterator[Tuple[PlaceId, Multiset]]:
        """Yield ``(place, multiset)`` for non-empty places, sorted by name."""
        for place in sorted(self._places):
            multiset = self._places[place]
            if not multiset.is_empty():
                yield place, multiset

    def is_empty(self) -> bool:
        """True if no place holds any token."""
        return all(m.is_empty() for m in self._places.values())

    def copy(self) -> Marking:
        """Deep copy: the clone shares no multiset with this marking."""
        return Marking(self._places)

    # ------------------------------------------------------------------ #
    # Hashing
    # ------------------------------------------------------------------ #

    def digest(self) -> int:
        """
        Deterministic 64-bit hash of the marking contents.

        Places are visited in lexicographic order and tokens within a
        place in order of their canonical text, folding place name,
        token text and count into a BLAKE2b accumulator.  Empty places
        do not contribute, so the result depends on contents only and
        never on insertion order.
        """
        hasher = hashlib.blake2b(digest_size=8)
        for place, multiset in self.items():
            hasher.update(_field(place))
            hasher.update(_field(str(len(multiset))))
            for token, count in multiset.items():
                hasher.update(_field(str(token)))
                hasher.update(_field(str(count)))
        return int.from_bytes(hasher.digest(), "big")

    # ------------------------------------------------------------------ #
    # Equality / repr
    # ------------------------------------------------------------------ #

    def _contents(self) -> Dict[PlaceId, Multiset]:
        return {p: m for p, m in self._places.items() if not m.is_empty()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Marking):
            return NotImplemented
        return self._contents() == other._contents()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        entries = ", ".join(f"{p}: {m}" for p, m in self.items())
        return f"Marking({{{entries}}})"


def _field(text: str) -> bytes:
    """Length-prefixed encoding so adjacent fields cannot run together."""
    data = text.encode("utf-8")
    return len(data).to_bytes(4, "big") + data
