"""
JSON net definition reader.

Loads places, transitions, the event-to-transition mapping, the initial
marking and optional lazy-seeding rules from a JSON document::

    {
      "places": ["free", "held"],
      "transitions": {
        "acquire": {"pre":  [{"place": "free", "variable": "L"}],
                    "post": [{"place": "held", "variable": "L"}]},
        "release": {"pre":  [{"place": "held", "variable": "L"}],
                    "post": [{"place": "free", "variable": "L"}]}
      },
      "event_mapping": {"LockAcquire": "acquire", "LockRelease": "release"},
      "initial_marking": {"free": [["Lock", 42], {"kind": "Lock", "value": 7}]},
      "lazy_seed": {"acquire": [{"place": "free", "variable": "L"}]}
    }

A definition is accepted or rejected as a whole; no partially loaded
net is ever returned.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from cpnmon.core.engine import CPNEngine
from cpnmon.core.marking import Marking
from cpnmon.core.token import UNIT, Token, make_token
from cpnmon.core.transition import ArcSpec, Concrete, LazySeed, Transition, Variable
from cpnmon.parser.grammar import ParseError
from cpnmon.parser.lexer import LexerError
from cpnmon.parser.notation import parse_token


class LoadError(Exception):
    """Raised when a net definition cannot be read or is malformed."""
    pass


@dataclass
class NetDefinition:
    """
    A fully parsed net definition.

    Attributes:
        places: Declared place names (informational; places are
            created on first use).
        transitions: Transition table keyed by id, in file order.
        event_mapping: Event type name to transition id.
        initial_marking: Marking at the start of every execution.
        lazy_seed: Lazy-seeding rules per transition id, or None when
            the definition does not declare any.
    """

    places: List[str] = field(default_factory=list)
    transitions: Dict[str, Transition] = field(default_factory=dict)
    event_mapping: Dict[str, str] = field(default_factory=dict)
    initial_marking: Marking = field(default_factory=Marking)
    lazy_seed: Optional[Dict[str, Tuple[LazySeed, ...]]] = None

    def build_engine(self) -> CPNEngine:
        """Create an engine holding these transitions and a copy of the initial marking."""
        engine = CPNEngine()
        for transition in self.transitions.values():
            engine.add_transition(transition)
        engine.set_initial_marking(self.initial_marking.copy())
        return engine

    def all_places(self) -> List[str]:
        """Declared places plus every place referenced by arcs or the marking."""
        names = set(self.places) | set(self.initial_marking.places())
        for transition in self.transitions.values():
            names.update(arc.place for arc in transition.pre + transition.post)
        return sorted(names)


class NetReader:
    """
    Reads JSON net definition files.

    Attributes:
        filepath: Path to the definition file.
    """

    def __init__(self, filepath: Path) -> None:
        self.filepath: Path = Path(filepath)

    def read(self) -> NetDefinition:
        """
        Read and parse the definition.

        Raises:
            LoadError: If the file cannot be read, is not valid JSON, or
                is not a well-formed net definition.
        """
        try:
            text = self.filepath.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(
                f"Failed to read net definition {self.filepath}: {exc}"
            ) from exc
        return parse_net_text(text, source=str(self.filepath))

    def validate(self) -> List[str]:
        """
        Validate the definition file and return a list of error strings.

        Returns:
            List of error messages (empty if valid).
        """
        try:
            self.read()
        except LoadError as exc:
            return [str(exc)]
        return []

    # ------------------------------------------------------------------ #
    # Static helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def parse_arc(data: Any, where: str) -> ArcSpec:
        """
        Parse one arc: ``{"place": p, "variable": v}``,
        ``{"place": p, "kind": k, "value": n}``; any other pattern is Unit.
        """
        if not isinstance(data, dict):
            raise LoadError(f"{where}: arc must be an object, got {data!r}")
        place = data.get("place")
        if not isinstance(place, str) or not place:
            raise LoadError(f"{where}: arc needs a non-empty string 'place'")

        if "variable" in data:
            name = data["variable"]
            if not isinstance(name, str) or not name:
                raise LoadError(f"{where}: 'variable' must be a non-empty string")
            return ArcSpec(place, Variable(name))
        kind, value = data.get("kind"), data.get("value")
        if isinstance(kind, str) and _is_token_value(value):
            return ArcSpec(place, Concrete(make_token(kind, value)))
        # Anything else decodes as the payload-free token.
        return ArcSpec(place, Concrete(UNIT))

    @staticmethod
    def parse_initial_token(data: Any, where: str) -> Token:
        """
        Parse an initial-marking token descriptor: ``["Lock", 1]``,
        ``{"kind": "Lock", "value": 1}`` or ``"Lock(1)"``.
        """
        if isinstance(data, list):
            if len(data) != 2:
                raise LoadError(f"{where}: token array must be [kind, value], got {data!r}")
            return _kind_value_token(data[0], data[1], where)
        if isinstance(data, dict):
            return _kind_value_token(data.get("kind"), data.get("value"), where)
        if isinstance(data, str):
            try:
                return parse_token(data)
            except (LexerError, ParseError) as exc:
                raise LoadError(f"{where}: {exc}") from exc
        raise LoadError(f"{where}: unsupported token descriptor {data!r}")


def load_net(path: Path) -> NetDefinition:
    """Read the net definition at *path*."""
    return NetReader(path).read()


def parse_net_text(text: str, source: str = "<string>") -> NetDefinition:
    """Parse a JSON document into a :class:`NetDefinition`."""
    try:
        data = json.loads(text, object_pairs_hook=_reject_duplicate_keys)
    except ValueError as exc:
        raise LoadError(f"Failed to parse net definition {source}: {exc}") from exc
    return parse_net(data)


def parse_net(data: Any) -> NetDefinition:
    """
    Build a :class:`NetDefinition` from already-decoded JSON data.

    Raises:
        LoadError: If the data is not a well-formed net definition.
    """
    if not isinstance(data, dict):
        raise LoadError("Net definition must be a JSON object")

    places = data.get("places", [])
    if not isinstance(places, list) or not all(isinstance(p, str) for p in places):
        raise LoadError("'places' must be a list of strings")

    if "transitions" not in data:
        raise LoadError("Net definition has no 'transitions'")
    raw_transitions = data["transitions"]
    if not isinstance(raw_transitions, dict):
        raise LoadError("'transitions' must be an object mapping ids to arcs")

    transitions: Dict[str, Transition] = {}
    for tid, tdef in raw_transitions.items():
        where = f"transition '{tid}'"
        if not isinstance(tdef, dict):
            raise LoadError(f"{where}: must be an object with 'pre' and 'post'")
        arcs = {}
        for side in ("pre", "post"):
            raw_arcs = tdef.get(side)
            if not isinstance(raw_arcs, list):
                raise LoadError(f"{where}: '{side}' must be a list of arcs")
            arcs[side] = [
                NetReader.parse_arc(arc, f"{where} {side}[{i}]")
                for i, arc in enumerate(raw_arcs)
            ]
        transitions[tid] = Transition(tid, arcs["pre"], arcs["post"])

    event_mapping = data.get("event_mapping", {})
    if not isinstance(event_mapping, dict) or not all(
        isinstance(v, str) for v in event_mapping.values()
    ):
        raise LoadError("'event_mapping' must map event type names to transition ids")

    raw_marking = data.get("initial_marking", {})
    if not isinstance(raw_marking, dict):
        raise LoadError("'initial_marking' must map place names to token lists")
    marking = Marking()
    for place, tokens in raw_marking.items():
        if not isinstance(tokens, list):
            raise LoadError(f"initial marking of '{place}' must be a list of tokens")
        marking.get_or_insert(place)
        for i, descriptor in enumerate(tokens):
            token = NetReader.parse_initial_token(
                descriptor, f"initial marking '{place}'[{i}]"
            )
            marking.add_token(place, token, 1)

    lazy_seed = None
    if "lazy_seed" in data:
        lazy_seed = _parse_lazy_seed(data["lazy_seed"], transitions)

    return NetDefinition(
        places=list(places),
        transitions=transitions,
        event_mapping=dict(event_mapping),
        initial_marking=marking,
        lazy_seed=lazy_seed,
    )


# ---------------------------------------------------------------------- #
# Internal helpers
# ---------------------------------------------------------------------- #


def _kind_value_token(kind: Any, value: Any, where: str) -> Token:
    if not isinstance(kind, str):
        raise LoadError(f"{where}: token kind must be a string, got {kind!r}")
    try:
        return make_token(kind, value)
    except ValueError as exc:
        raise LoadError(f"{where}: {exc}") from exc


def _parse_lazy_seed(
    data: Any, transitions: Dict[str, Transition],
) -> Dict[str, Tuple[LazySeed, ...]]:
    if not isinstance(data, dict):
        raise LoadError("'lazy_seed' must map transition ids to lists of seeds")
    rules: Dict[str, Tuple[LazySeed, ...]] = {}
    for tid, seeds in data.items():
        if not isinstance(seeds, list):
            raise LoadError(f"lazy_seed '{tid}': must be a list")
        parsed = []
        for seed in seeds:
            if not (
                isinstance(seed, dict)
                and isinstance(seed.get("place"), str)
                and isinstance(seed.get("variable"), str)
            ):
                raise LoadError(
                    f"lazy_seed '{tid}': entries need string 'place' and 'variable'"
                )
            transition = transitions.get(tid)
            if transition is not None and seed["variable"] not in transition.variables():
                raise LoadError(
                    f"lazy_seed '{tid}': variable '{seed['variable']}' "
                    f"is not used by any arc of the transition"
                )
            parsed.append(LazySeed(seed["place"], seed["variable"]))
        rules[tid] = tuple(parsed)
    return rules


def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise LoadError(f"Duplicate key '{key}' in net definition")
        result[key] = value
    return result


def _is_token_value(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
