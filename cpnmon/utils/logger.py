"""
Structured logging for the CPN monitor.

Provides configurable log levels (silent, normal, verbose, debug)
with consistent formatting for marking traces, violation reports,
execution coverage, verdicts, and monitoring statistics.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any, Dict, TextIO


class LogLevel(Enum):
    """
    Logging levels for the monitor.

    SILENT:  No output at all.
    NORMAL:  Violations and the final verdict.
    VERBOSE: Progress information, coverage and statistics.
    DEBUG:   Detailed per-event processing output.
    """

    SILENT = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


class MonitorLogger:
    """
    Structured logger for the CPN monitor.

    Output is filtered by the configured log level.

    Attributes:
        level: The minimum log level to display.
        stream: The output stream (defaults to stdout).
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.NORMAL,
        stream: TextIO = sys.stdout,
    ) -> None:
        self.level: LogLevel = level
        self.stream: TextIO = stream

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message (only shown at DEBUG level)."""
        if self.level.value >= LogLevel.DEBUG.value:
            self._write(f"[DEBUG] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message (shown at VERBOSE and DEBUG levels)."""
        if self.level.value >= LogLevel.VERBOSE.value:
            self._write(f"[INFO] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def marking_trace(self, event_type: str, marking_hash: int) -> None:
        """
        Log the marking hash after a fired event.

        The runtime only calls this when its debug flag is set, so the
        line is shown at every level except SILENT.
        """
        if self.level.value >= LogLevel.NORMAL.value:
            self._write(f"[Petri] After {event_type}: marking hash = {marking_hash}")

    def violation(self, report: str) -> None:
        """Log a formatted violation report (NORMAL level and above)."""
        if self.level.value >= LogLevel.NORMAL.value:
            self._write(f"[Petri] {report.rstrip()}")

    def execution_end(self, label: str, marking_hash: int, is_new: bool) -> None:
        """
        Log the final marking of one execution (VERBOSE level and above).

        Args:
            label: Name of the execution (e.g. the trace file).
            marking_hash: Hash of the final marking.
            is_new: Whether this final marking had not been seen before.
        """
        if self.level.value >= LogLevel.VERBOSE.value:
            status = "new" if is_new else "seen"
            self._write(f"[COVERAGE] {label}: final marking {marking_hash} ({status})")

    def verdict_ok(self) -> None:
        """Log an OK verdict (shown at NORMAL level and above)."""
        if self.level.value >= LogLevel.NORMAL.value:
            self._write("OK: All events conform to the protocol")

    def verdict_violated(self, count: int) -> None:
        """Log a VIOLATED verdict (shown at NORMAL level and above)."""
        if self.level.value >= LogLevel.NORMAL.value:
            plural = "" if count == 1 else "s"
            self._write(f"VIOLATED: {count} protocol violation{plural} detected")

    def statistics(self, stats: Dict[str, Any]) -> None:
        """Log monitoring statistics (shown at VERBOSE level and above)."""
        if self.level.value >= LogLevel.VERBOSE.value:
            self._write("=== Statistics ===")
            for key, value in stats.items():
                label = key.replace("_", " ").title()
                self._write(f"  {label}: {value}")

    def _write(self, message: str) -> None:
        """Write a line to the output stream."""
        self.stream.write(message + "\n")
