"""
Monitor runtime: maps events to transitions and drives the engine.

Coordinates event-to-transition mapping, variable binding, lazy token
seeding, firing, violation reporting, marking coverage across repeated
executions, and the optional execution log.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Set, TextIO, Tuple

from cpnmon.core.config import MonitorConfig
from cpnmon.core.diagnostic import SourceLocation, Violation
from cpnmon.core.engine import CPNEngine, NotEnabled
from cpnmon.core.event import (
    AtomicLoad,
    AtomicStore,
    LockAcquire,
    LockRelease,
    MonitorEvent,
    UnsafeRead,
    UnsafeWrite,
)
from cpnmon.core.marking import Marking
from cpnmon.core.token import Lock, Loc, Region, Tid, Token
from cpnmon.core.transition import LazySeed
from cpnmon.utils.logger import LogLevel, MonitorLogger
from cpnmon.utils.net_reader import NetDefinition, load_net

# Applied only when the explicit event mapping has no entry.
DEFAULT_EVENT_MAPPING: Mapping[str, str] = {
    "LockAcquire": "acquire",
    "LockRelease": "release",
}

# Locks exist before their first observed acquisition.
DEFAULT_LAZY_SEED: Mapping[str, Tuple[LazySeed, ...]] = {
    "acquire": (LazySeed("free", "L"),),
}


class MonitorRuntime:
    """
    Online protocol monitor over one CPN engine.

    Not thread-safe: the host must serialize calls.

    Attributes:
        net: The loaded net definition.
        config: Runtime configuration.
        logger: Logger for traces and diagnostics.
        event_mapping: Explicit event type to transition id mapping.
        lazy_seed: Lazy-seeding rules per transition id.
    """

    def __init__(
        self,
        net: NetDefinition,
        config: Optional[MonitorConfig] = None,
        logger: Optional[MonitorLogger] = None,
    ) -> None:
        """
        Initialize the runtime from a parsed net definition.

        Args:
            net: The net definition.
            config: Optional configuration.  Without one the runtime
                has no log sink, is fail-fast, and emits no traces.
            logger: Optional logger (default: silent).
        """
        self.net: NetDefinition = net
        self.config: Optional[MonitorConfig] = config
        self.logger: MonitorLogger = logger or MonitorLogger(LogLevel.SILENT)
        self.event_mapping: Dict[str, str] = dict(net.event_mapping)
        self.lazy_seed: Dict[str, Tuple[LazySeed, ...]] = dict(
            net.lazy_seed if net.lazy_seed is not None else DEFAULT_LAZY_SEED
        )

        self._engine: CPNEngine = net.build_engine()
        self._initial_marking: Marking = net.initial_marking.copy()
        self._seen_markings: Set[int] = set()
        self._log: Optional[TextIO] = None
        self._stats: Dict[str, int] = {
            "events_processed": 0,
            "events_ignored": 0,
            "transitions_fired": 0,
            "tokens_seeded": 0,
            "violations": 0,
        }

        if config is not None and config.log_path is not None:
            try:
                self._log = open(config.log_path, "w", encoding="utf-8")
            except OSError as exc:
                self.logger.info(f"Execution log disabled: {exc}")

    @classmethod
    def load(
        cls,
        config: MonitorConfig,
        logger: Optional[MonitorLogger] = None,
    ) -> MonitorRuntime:
        """
        Create a runtime from the net definition named in *config*.

        Raises:
            LoadError: If the definition cannot be read or parsed.
        """
        net = load_net(config.net_path)
        runtime = cls(net, config=config, logger=logger)
        runtime.logger.info(
            f"Loaded net {config.net_path}: "
            f"{len(net.transitions)} transitions, "
            f"{len(net.all_places())} places"
        )
        return runtime

    # ------------------------------------------------------------------ #
    # Event processing
    # ------------------------------------------------------------------ #

    def on_event(
        self,
        event: MonitorEvent,
        location: Optional[SourceLocation] = None,
    ) -> Optional[Violation]:
        """
        Process one event.

        Args:
            event: The event reported by the host.
            location: Optional source location of the event.

        Returns:
            None if the event was accepted (fired, or ignored because no
            transition is mapped to it), otherwise the :class:`Violation`.
            A rejected event leaves the marking unchanged.
        """
        self._stats["events_processed"] += 1

        transition_id = self.transition_for(event)
        if transition_id is None:
            self._stats["events_ignored"] += 1
            self.logger.debug(f"No transition mapped for {event.type_name}, ignored")
            return None

        binding = self.make_binding(event)
        seeded = self._seed_lazily(transition_id, binding)

        try:
            self._engine.fire(transition_id, binding)
        except NotEnabled as exc:
            for place, token in seeded:
                self._engine.withdraw_token(place, token)
            self._stats["violations"] += 1
            return Violation(
                event=event,
                tid=event.thread_id,
                object_id=event.object_id,
                location=location,
                transition=exc.transition,
                missing_tokens=tuple(exc.missing),
                marking=self._engine.marking.copy(),
            )

        self._stats["transitions_fired"] += 1
        self._stats["tokens_seeded"] += len(seeded)
        if self.config is not None and self.config.debug:
            self.logger.marking_trace(event.type_name, self._engine.marking_hash())
        self._append_log(event)
        return None

    def transition_for(self, event: MonitorEvent) -> Optional[str]:
        """
        Transition id for *event*: the explicit mapping first, then the
        built-in lock defaults, otherwise None.
        """
        type_name = event.type_name
        if type_name in self.event_mapping:
            return self.event_mapping[type_name]
        return DEFAULT_EVENT_MAPPING.get(type_name)

    @staticmethod
    def make_binding(event: MonitorEvent) -> Dict[str, Token]:
        """
        Variable binding derived from the event fields.

        ``tid`` is always bound; ``L`` for lock events, ``loc`` for
        atomic events and ``region`` for unsafe memory events.
        """
        binding: Dict[str, Token] = {"tid": Tid(event.thread_id)}
        if isinstance(event, (LockAcquire, LockRelease)):
            binding["L"] = Lock(event.lock_id)
        elif isinstance(event, (AtomicLoad, AtomicStore)):
            binding["loc"] = Loc(event.loc_id)
        elif isinstance(event, (UnsafeRead, UnsafeWrite)):
            binding["region"] = Region(event.region_id)
        return binding

    def _seed_lazily(
        self, transition_id: str, binding: Mapping[str, Token],
    ) -> List[Tuple[str, Token]]:
        """Apply the lazy-seed rules; return the ``(place, token)`` pairs added."""
        seeded: List[Tuple[str, Token]] = []
        for seed in self.lazy_seed.get(transition_id, ()):
            token = binding.get(seed.variable)
            if token is not None and self._engine.seed_token(seed.place, token):
                seeded.append((seed.place, token))
                self.logger.debug(f"Seeded {token} into '{seed.place}'")
        return seeded

    def _append_log(self, event: MonitorEvent) -> None:
        """Append ``{event, marking_hash}``; write failures are ignored."""
        if self._log is None:
            return
        record = {"event": event.to_dict(), "marking_hash": self._engine.marking_hash()}
        try:
            self._log.write(json.dumps(record) + "\n")
            self._log.flush()
        except (OSError, ValueError):
            pass

    # ------------------------------------------------------------------ #
    # Executions and coverage
    # ------------------------------------------------------------------ #

    def record_execution_end(self) -> Tuple[int, bool]:
        """
        Record the current marking as the final state of an execution.

        Returns:
            The marking hash and whether it had not been seen before.
        """
        marking_hash = self._engine.marking_hash()
        is_new = marking_hash not in self._seen_markings
        self._seen_markings.add(marking_hash)
        return marking_hash, is_new

    def reset(self) -> None:
        """Restore the initial marking.  Coverage is kept."""
        self._engine.set_initial_marking(self._initial_marking.copy())

    def clear_coverage(self) -> None:
        """Forget every recorded final marking."""
        self._seen_markings.clear()

    @property
    def seen_markings_count(self) -> int:
        return len(self._seen_markings)

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def marking(self) -> Marking:
        """The current marking (read-only view)."""
        return self._engine.marking

    @property
    def engine(self) -> CPNEngine:
        return self._engine

    def marking_hash(self) -> int:
        return self._engine.marking_hash()

    @property
    def fail_fast(self) -> bool:
        """Whether the host should abort on a violation (default True)."""
        return self.config.fail_fast if self.config is not None else True

    @property
    def statistics(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = dict(self._stats)
        stats["distinct_final_markings"] = len(self._seen_markings)
        return stats

    # ------------------------------------------------------------------ #
    # Resources
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """Close the execution log, if any."""
        if self._log is not None:
            try:
                self._log.close()
            except OSError:
                pass
            self._log = None

    def __enter__(self) -> MonitorRuntime:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
