"""
Host adapter between an event source and the monitor runtime.

The adapter is the only place that decides what a violation means for
the host: with fail-fast it raises :class:`ProtocolViolationError`,
otherwise it logs the report and lets execution continue.
"""

from __future__ import annotations

from typing import List, Optional

from cpnmon.core.diagnostic import SourceLocation, Violation, format_violation
from cpnmon.core.event import MonitorEvent
from cpnmon.core.runtime import MonitorRuntime


class ProtocolViolationError(Exception):
    """
    Raised by :class:`MonitorHook` in fail-fast mode.

    Attributes:
        violation: The violation that stopped execution.
    """

    def __init__(self, violation: Violation) -> None:
        self.violation: Violation = violation
        super().__init__(format_violation(violation))


class MonitorHook:
    """
    Feeds host events into a :class:`MonitorRuntime`.

    Attributes:
        runtime: The monitor runtime.
        violations: Violations reported so far (continue mode keeps
            collecting; fail-fast mode stops at the first).
    """

    def __init__(self, runtime: Optional[MonitorRuntime]) -> None:
        """
        Args:
            runtime: The runtime, or None to make :meth:`emit` a no-op
                (monitoring disabled).
        """
        self.runtime: Optional[MonitorRuntime] = runtime
        self.violations: List[Violation] = []

    def emit(
        self,
        event: MonitorEvent,
        location: Optional[SourceLocation] = None,
    ) -> None:
        """
        Report one event.

        Raises:
            ProtocolViolationError: If the event violates the protocol
                and the runtime is configured fail-fast.
        """
        if self.runtime is None:
            return
        violation = self.runtime.on_event(event, location)
        if violation is None:
            return
        self.violations.append(violation)
        if self.runtime.fail_fast:
            raise ProtocolViolationError(violation)
        self.runtime.logger.violation(format_violation(violation))
