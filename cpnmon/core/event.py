"""
Protocol events reported by the host program.

Each event variant is an immutable record carrying the thread that
performed it and, for lock, atomic and unsafe-memory events, the object
it touched.  The class name is the stable type name used to map events
onto transitions, and the ``type`` tag of the structured form.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional, Type


class MonitorEvent:
    """
    Base class for all event variants.

    Subclasses expose :attr:`thread_id` and :attr:`object_id`; the
    :attr:`type_name` is the class name.
    """

    __slots__ = ()

    @property
    def type_name(self) -> str:
        return type(self).__name__

    @property
    def thread_id(self) -> int:
        return getattr(self, "tid")

    @property
    def object_id(self) -> Optional[int]:
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Structured form: ``{"type": <name>, <field>: <value>, ...}``."""
        data: Dict[str, Any] = {"type": self.type_name}
        data.update(asdict(self))  # type: ignore[call-overload]
        return data


# ---------------------------------------------------------------------- #
# Thread lifecycle
# ---------------------------------------------------------------------- #


@dataclass(frozen=True)
class ThreadSpawn(MonitorEvent):
    parent: int
    child: int

    @property
    def thread_id(self) -> int:
        return self.parent


@dataclass(frozen=True)
class ThreadJoin(MonitorEvent):
    joiner: int
    joinee: int

    @property
    def thread_id(self) -> int:
        return self.joiner


@dataclass(frozen=True)
class Yield(MonitorEvent):
    tid: int


@dataclass(frozen=True)
class Block(MonitorEvent):
    tid: int
    reason: str


@dataclass(frozen=True)
class Wake(MonitorEvent):
    tid: int


# ---------------------------------------------------------------------- #
# Locks
# ---------------------------------------------------------------------- #


@dataclass(frozen=True)
class LockAcquire(MonitorEvent):
    tid: int
    lock_id: int

    @property
    def object_id(self) -> Optional[int]:
        return self.lock_id


@dataclass(frozen=True)
class LockRelease(MonitorEvent):
    tid: int
    lock_id: int

    @property
    def object_id(self) -> Optional[int]:
        return self.lock_id


# ---------------------------------------------------------------------- #
# Atomics
# ---------------------------------------------------------------------- #


@dataclass(frozen=True)
class AtomicLoad(MonitorEvent):
    tid: int
    loc_id: int
    ordering: str

    @property
    def object_id(self) -> Optional[int]:
        return self.loc_id


@dataclass(frozen=True)
class AtomicStore(MonitorEvent):
    tid: int
    loc_id: int
    ordering: str

    @property
    def object_id(self) -> Optional[int]:
        return self.loc_id


# ---------------------------------------------------------------------- #
# Unsafe memory accesses
# ---------------------------------------------------------------------- #


@dataclass(frozen=True)
class UnsafeRead(MonitorEvent):
    tid: int
    region_id: int
    size: int

    @property
    def object_id(self) -> Optional[int]:
        return self.region_id


@dataclass(frozen=True)
class UnsafeWrite(MonitorEvent):
    tid: int
    region_id: int
    size: int

    @property
    def object_id(self) -> Optional[int]:
        return self.region_id


EVENT_TYPES: Dict[str, Type[MonitorEvent]] = {
    cls.__name__: cls
    for cls in (
        ThreadSpawn, ThreadJoin, Yield, Block, Wake,
        LockAcquire, LockRelease,
        AtomicLoad, AtomicStore,
        UnsafeRead, UnsafeWrite,
    )
}


def make_event(type_name: str, values: Dict[str, Any]) -> MonitorEvent:
    """
    Build an event from its type name and field values.

    Integer fields accept ``int`` only (not ``bool``); string fields
    accept ``str`` only.

    Raises:
        ValueError: On an unknown type, a missing or unexpected field,
            or a value of the wrong type.
    """
    cls = EVENT_TYPES.get(type_name)
    if cls is None:
        raise ValueError(
            f"Unknown event type '{type_name}' (known: {sorted(EVENT_TYPES)})"
        )

    expected = {f.name: f.type for f in fields(cls)}  # type: ignore[arg-type]
    unexpected = set(values) - set(expected)
    if unexpected:
        raise ValueError(f"{type_name}: unexpected fields {sorted(unexpected)}")
    missing = set(expected) - set(values)
    if missing:
        raise ValueError(f"{type_name}: missing fields {sorted(missing)}")

    for name, annotation in expected.items():
        value = values[name]
        if annotation == "int":
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(
                    f"{type_name}.{name} must be a non-negative integer, got {value!r}"
                )
        elif not isinstance(value, str):
            raise ValueError(f"{type_name}.{name} must be a string, got {value!r}")

    return cls(**values)


def event_from_dict(data: Dict[str, Any]) -> MonitorEvent:
    """Inverse of :meth:`MonitorEvent.to_dict`."""
    if not isinstance(data, dict) or "type" not in data:
        raise ValueError(f"Event object must carry a 'type' field: {data!r}")
    values = {k: v for k, v in data.items() if k != "type"}
    return make_event(str(data["type"]), values)
