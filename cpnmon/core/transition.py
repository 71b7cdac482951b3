"""
Transition definitions: pre/post arcs with token patterns.

An arc names a place and a token pattern.  A pattern is either a
concrete token or a variable that is resolved against the binding
supplied with each firing attempt.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple, Union

from cpnmon.core.token import Token

TransitionId = str
Binding = Mapping[str, Token]


@dataclass(frozen=True)
class Concrete:
    """Pattern matching exactly one token."""

    token: Token

    def resolve(self, binding: Binding) -> Optional[Token]:
        return self.token

    def __str__(self) -> str:
        return str(self.token)


@dataclass(frozen=True)
class Variable:
    """Pattern bound by name at firing time."""

    name: str

    def resolve(self, binding: Binding) -> Optional[Token]:
        """The bound token, or None when the binding lacks *name*."""
        return binding.get(self.name)

    def __str__(self) -> str:
        return self.name


Pattern = Union[Concrete, Variable]


@dataclass(frozen=True)
class ArcSpec:
    """
    One arc of a transition.

    Attributes:
        place: Place consumed from (pre-arc) or produced into (post-arc).
        pattern: Token pattern carried by the arc.
    """

    place: str
    pattern: Pattern

    def resolve(self, binding: Binding) -> Optional[Token]:
        return self.pattern.resolve(binding)

    def __str__(self) -> str:
        return f"{self.place}:{self.pattern}"


@dataclass(frozen=True)
class Transition:
    """
    Immutable transition definition.

    Attributes:
        id: Transition identifier.
        pre: Arcs consumed, in order.
        post: Arcs produced, in order.
    """

    id: TransitionId
    pre: Tuple[ArcSpec, ...] = field(default_factory=tuple)
    post: Tuple[ArcSpec, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept any iterable of arcs but store tuples.
        object.__setattr__(self, "pre", tuple(self.pre))
        object.__setattr__(self, "post", tuple(self.post))

    def variables(self) -> frozenset[str]:
        """Names of all variables referenced by any arc."""
        return frozenset(
            arc.pattern.name
            for arc in self.pre + self.post
            if isinstance(arc.pattern, Variable)
        )

    def __str__(self) -> str:
        pre = ", ".join(str(a) for a in self.pre) or "-"
        post = ", ".join(str(a) for a in self.post) or "-"
        return f"{self.id}: {pre} -> {post}"


@dataclass(frozen=True)
class LazySeed:
    """
    Token created on demand before a transition fires.

    Before the owning transition fires, the token bound to *variable*
    is put into *place* unless the place already holds it.  This models
    objects (such as locks) that exist before their first observed use.
    """

    place: str
    variable: str
