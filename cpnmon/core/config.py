"""
Configuration for the monitor runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class MonitorConfig:
    """
    Settings supplied by the host integration.

    Attributes:
        net_path: Path to the net definition (JSON).
        log_path: Optional path of the execution log (one JSON record
            per line).  The file is truncated when the runtime opens it.
        fail_fast: Abort the host on the first violation (True) or
            report and continue (False).  The runtime only reports this
            flag; the host adapter enforces it.
        debug: Emit a marking-hash trace line after every fired event.
    """

    net_path: Path
    log_path: Optional[Path] = None
    fail_fast: bool = True
    debug: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "net_path", Path(self.net_path))
        if self.log_path is not None:
            object.__setattr__(self, "log_path", Path(self.log_path))

    def with_log_path(self, path: Path) -> MonitorConfig:
        return replace(self, log_path=Path(path))

    def with_fail_fast(self, fail_fast: bool) -> MonitorConfig:
        return replace(self, fail_fast=fail_fast)

    def with_debug(self, debug: bool) -> MonitorConfig:
        return replace(self, debug=debug)
