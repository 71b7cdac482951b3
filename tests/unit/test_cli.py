"""
Tests for the CPNMON command-line interface.

Tests cover argument parsing, exit codes, fail-fast and continue modes,
debug marking traces, coverage output, the execution log, statistics,
and visualization flags.
"""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent.parent
FIXTURES = Path(__file__).parent.parent / "fixtures"
NETS = FIXTURES / "nets"
TRACES = FIXTURES / "traces"

MUTEX_NET = str(NETS / "mutex.json")
OWNERSHIP_NET = str(NETS / "ownership.json")
MUTEX_OK = str(TRACES / "mutex_ok.trace")
MUTEX_OK_JSON = str(TRACES / "mutex_ok.ndjson")
MUTEX_HELD = str(TRACES / "mutex_held.trace")
DOUBLE_RELEASE = str(TRACES / "double_release.trace")
BAD_SYNTAX = str(TRACES / "bad_syntax.trace")


def _run_cli(*args: str, timeout: int = 30) -> subprocess.CompletedProcess[str]:
    """Run the CPNMON CLI as a subprocess."""
    cmd = [sys.executable, "-m", "cpnmon", *args]
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
        cwd=str(ROOT),
    )


# ---------------------------------------------------------------------------
# Tests: Required Arguments
# ---------------------------------------------------------------------------


class TestRequiredArguments:
    """Test that required arguments are enforced."""

    def test_missing_net(self) -> None:
        """Missing -n flag exits with code 2."""
        result = _run_cli("-t", MUTEX_OK)
        assert result.returncode == 2

    def test_missing_trace(self) -> None:
        """Missing -t flag exits with code 2."""
        result = _run_cli("-n", MUTEX_NET)
        assert result.returncode == 2

    def test_version(self) -> None:
        result = _run_cli("--version")
        assert result.returncode == 0
        assert result.stdout.strip() == "cpnmon 0.1.0"


# ---------------------------------------------------------------------------
# Tests: Error Handling
# ---------------------------------------------------------------------------


class TestErrorHandling:
    """Test error handling for invalid inputs."""

    def test_nonexistent_net(self) -> None:
        result = _run_cli("-n", "/nonexistent/net.json", "-t", MUTEX_OK)
        assert result.returncode == 2
        assert "Net definition not found" in result.stderr

    def test_nonexistent_trace(self) -> None:
        result = _run_cli("-n", MUTEX_NET, "-t", "/nonexistent/run.trace")
        assert result.returncode == 2
        assert "Trace file not found" in result.stderr

    def test_malformed_net(self) -> None:
        result = _run_cli("-n", str(NETS / "malformed.json"), "-t", MUTEX_OK)
        assert result.returncode == 2
        assert result.stderr.startswith("Error:")

    def test_malformed_trace(self) -> None:
        result = _run_cli("-n", MUTEX_NET, "-t", BAD_SYNTAX)
        assert result.returncode == 2
        assert "bad_syntax.trace:2:" in result.stderr


# ---------------------------------------------------------------------------
# Tests: Verdicts
# ---------------------------------------------------------------------------


class TestVerdicts:
    """Test exit codes and verdict lines."""

    @pytest.mark.parametrize("trace", [MUTEX_OK, MUTEX_OK_JSON, MUTEX_HELD])
    def test_conforming(self, trace: str) -> None:
        result = _run_cli("-n", MUTEX_NET, "-t", trace)
        assert result.returncode == 0
        assert "OK: All events conform to the protocol" in result.stdout

    def test_fail_fast(self) -> None:
        result = _run_cli("-n", MUTEX_NET, "-t", DOUBLE_RELEASE, MUTEX_OK)
        assert result.returncode == 1
        assert "[Petri] Petri net protocol violation" in result.stdout
        assert "  Location: src/main.rs:20:5" in result.stdout
        assert "    - Lock(7) in place 'held'" in result.stdout
        assert "VIOLATED: 1 protocol violation detected" in result.stdout

    def test_continue(self) -> None:
        result = _run_cli(
            "-n", MUTEX_NET, "-t", DOUBLE_RELEASE, DOUBLE_RELEASE, "--continue"
        )
        assert result.returncode == 1
        assert result.stdout.count("[Petri] Petri net protocol violation") == 2
        assert "VIOLATED: 2 protocol violations detected" in result.stdout

    def test_silent(self) -> None:
        result = _run_cli("-n", MUTEX_NET, "-t", DOUBLE_RELEASE, "-o", "silent")
        assert result.returncode == 1
        assert result.stdout == ""

    def test_ownership_net(self, tmp_path: Path) -> None:
        trace = tmp_path / "handoff.trace"
        trace.write_text(
            "LockAcquire(tid=1, lock_id=1)\n"
            "LockRelease(tid=2, lock_id=1) @ src/pool.rs:40:13\n"
        )
        result = _run_cli("-n", OWNERSHIP_NET, "-t", str(trace))
        assert result.returncode == 1
        assert "  Transition: unlock" in result.stdout
        assert "    - Tid(2) in place 'owner'" in result.stdout


# ---------------------------------------------------------------------------
# Tests: Diagnostics Output
# ---------------------------------------------------------------------------


class TestDiagnosticsOutput:
    """Test debug traces, coverage, logs and statistics."""

    def test_debug_marking_trace(self) -> None:
        result = _run_cli("-n", MUTEX_NET, "-t", MUTEX_OK, "-d", "1")
        assert result.returncode == 0
        lines = [l for l in result.stdout.splitlines() if l.startswith("[Petri] After")]
        assert len(lines) == 4
        assert lines[0].startswith("[Petri] After LockAcquire: marking hash = ")

    def test_coverage(self) -> None:
        result = _run_cli(
            "-n", MUTEX_NET, "-t", MUTEX_OK, MUTEX_OK, MUTEX_HELD, "-o", "verbose"
        )
        coverage = [l for l in result.stdout.splitlines() if l.startswith("[COVERAGE]")]
        assert len(coverage) == 3
        assert coverage[0].endswith("(new)")
        assert coverage[1].endswith("(seen)")
        assert coverage[2].endswith("(new)")
        assert "Distinct Final Markings: 2" in result.stdout

    def test_execution_log(self, tmp_path: Path) -> None:
        log = tmp_path / "run.ndjson"
        result = _run_cli("-n", MUTEX_NET, "-t", MUTEX_OK, "-l", str(log))
        assert result.returncode == 0
        records = [json.loads(line) for line in log.read_text().splitlines()]
        assert len(records) == 4
        assert records[0]["event"]["type"] == "LockAcquire"
        assert isinstance(records[0]["marking_hash"], int)

    def test_log_replays(self, tmp_path: Path) -> None:
        """An execution log is itself a valid NDJSON trace."""
        log = tmp_path / "run.ndjson"
        _run_cli("-n", MUTEX_NET, "-t", MUTEX_OK, "-l", str(log))
        result = _run_cli("-n", MUTEX_NET, "-t", str(log))
        assert result.returncode == 0

    def test_stats(self) -> None:
        result = _run_cli("-n", MUTEX_NET, "-t", MUTEX_OK, "--stats")
        assert "=== Statistics ===" in result.stdout
        assert "Events Processed: 5" in result.stdout
        assert "Events Ignored: 1" in result.stdout


# ---------------------------------------------------------------------------
# Tests: Visualization
# ---------------------------------------------------------------------------


class TestVisualization:
    """Test visualization flags."""

    def test_ascii(self) -> None:
        result = _run_cli("-n", MUTEX_NET, "-t", MUTEX_HELD, "--visualize-ascii")
        assert "=== Marking ===" in result.stdout
        assert "held | Lock(7) x1" in result.stdout

    def test_dot_stdout(self) -> None:
        result = _run_cli("-n", MUTEX_NET, "-t", MUTEX_OK, "--visualize")
        assert "digraph CPN {" in result.stdout

    def test_dot_file(self, tmp_path: Path) -> None:
        out = tmp_path / "net.dot"
        result = _run_cli("-n", MUTEX_NET, "-t", MUTEX_OK, "--visualize", str(out))
        assert result.returncode == 0
        assert out.read_text().startswith("digraph CPN {")
