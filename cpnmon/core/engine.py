"""
Colored Petri Net execution engine.

Holds the transition table and the current marking, and fires
transitions against a variable binding with all-or-nothing semantics:
a pure check pass collects every missing token first, and the marking
is only mutated once the check pass found nothing missing.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from cpnmon.core.marking import Marking, PlaceId
from cpnmon.core.token import UNIT, Token
from cpnmon.core.transition import Binding, Transition, TransitionId

MissingToken = Tuple[PlaceId, Token]


class NotEnabled(Exception):
    """
    Raised when a transition cannot fire.

    Attributes:
        transition: Id of the transition that was attempted.
        missing: ``(place, token)`` pairs that failed the precondition
            check.  Empty when the transition id is unknown.
    """

    def __init__(self, transition: TransitionId, missing: Sequence[MissingToken] = ()) -> None:
        self.transition: TransitionId = transition
        self.missing: List[MissingToken] = list(missing)
        super().__init__(self._describe())

    def _describe(self) -> str:
        if not self.missing:
            return f"Transition {self.transition} not enabled. Missing tokens: (none)"
        parts = " ".join(f"{token} in place '{place}'" for place, token in self.missing)
        return f"Transition {self.transition} not enabled. Missing tokens: {parts}"


class CPNEngine:
    """
    Single-threaded CPN state machine.

    The transition table is configuration; the marking is the only
    mutable state and changes only through :meth:`fire`,
    :meth:`seed_token`, :meth:`withdraw_token` and
    :meth:`set_initial_marking`.

    Attributes:
        transitions: Transition table keyed by id.
    """

    def __init__(self) -> None:
        self.transitions: Dict[TransitionId, Transition] = {}
        self._marking: Marking = Marking()

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    def add_transition(self, transition: Transition) -> None:
        """Register *transition*, replacing any existing one with the same id."""
        self.transitions[transition.id] = transition

    def set_initial_marking(self, marking: Marking) -> None:
        """Replace the current marking wholesale."""
        self._marking = marking

    def transition(self, transition_id: TransitionId) -> Optional[Transition]:
        return self.transitions.get(transition_id)

    @property
    def marking(self) -> Marking:
        """The current marking.  Callers must treat it as read-only."""
        return self._marking

    # ------------------------------------------------------------------ #
    # Firing
    # ------------------------------------------------------------------ #

    def missing_tokens(
        self, transition_id: TransitionId, binding: Binding,
    ) -> List[MissingToken]:
        """
        Check pass: list every pre-arc token that is not available.

        A variable without a binding entry is reported as missing with
        the ``Unit`` placeholder.  This method never mutates state.

        Raises:
            NotEnabled: If the transition id is unknown.
        """
        transition = self.transitions.get(transition_id)
        if transition is None:
            raise NotEnabled(transition_id)

        missing: List[MissingToken] = []
        # Several pre-arcs may draw the same token from the same place.
        demand: Dict[MissingToken, int] = {}
        for arc in transition.pre:
            token = arc.resolve(binding)
            if token is None:
                missing.append((arc.place, UNIT))
                continue
            key = (arc.place, token)
            demand[key] = demand.get(key, 0) + 1
            if not self._marking.get(arc.place).contains(token, demand[key]):
                missing.append(key)
        return missing

    def is_enabled(self, transition_id: TransitionId, binding: Binding) -> bool:
        """True if :meth:`fire` would succeed for this binding."""
        try:
            return not self.missing_tokens(transition_id, binding)
        except NotEnabled:
            return False

    def fire(self, transition_id: TransitionId, binding: Binding) -> None:
        """
        Fire a transition atomically.

        Consumes one token per pre-arc, then produces one token per
        post-arc.  A post-arc variable that is unbound produces ``Unit``.

        Args:
            transition_id: Id of the transition to fire.
            binding: Variable name to token mapping for this attempt.

        Raises:
            NotEnabled: If the id is unknown or any pre-arc token is
                missing.  The marking is left exactly as it was.
        """
        missing = self.missing_tokens(transition_id, binding)
        if missing:
            raise NotEnabled(transition_id, missing)

        transition = self.transitions[transition_id]
        for arc in transition.pre:
            token = arc.resolve(binding) or UNIT
            self._marking.get_or_insert(arc.place).remove(token, 1)
        for arc in transition.post:
            token = arc.resolve(binding) or UNIT
            self._marking.get_or_insert(arc.place).add(token, 1)

    def seed_token(self, place: PlaceId, token: Token) -> bool:
        """
        Put one *token* into *place* unless the place already holds it.

        Returns:
            True if a token was added.
        """
        if self._marking.get(place).contains(token, 1):
            return False
        self._marking.add_token(place, token, 1)
        return True

    def withdraw_token(self, place: PlaceId, token: Token) -> bool:
        """
        Take one *token* back out of *place*.

        Undoes a :meth:`seed_token` whose firing was rejected.

        Returns:
            True if a token was removed.
        """
        return self._marking.get(place).remove(token, 1)

    # ------------------------------------------------------------------ #
    # Hashing
    # ------------------------------------------------------------------ #

    def marking_hash(self) -> int:
        """Deterministic unsigned 64-bit hash of the current marking."""
        return self._marking.digest()
