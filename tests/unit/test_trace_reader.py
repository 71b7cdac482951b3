"""
Tests for the trace reader.

Tests cover the text notation and NDJSON formats, execution log replay,
comment and blank line handling, and line-numbered error reporting.
"""

from pathlib import Path

import pytest

from cpnmon.core.diagnostic import SourceLocation
from cpnmon.core.event import Block, LockAcquire, LockRelease, ThreadSpawn, Yield
from cpnmon.utils.trace_reader import TraceError, TraceReader


class TestTextTraces:
    """Test ``.trace`` files."""

    def test_mutex_ok(self, traces_dir: Path) -> None:
        entries = TraceReader(traces_dir / "mutex_ok.trace").read_all()
        assert [e.event for e in entries] == [
            LockAcquire(tid=1, lock_id=7),
            LockRelease(tid=1, lock_id=7),
            Yield(tid=1),
            LockAcquire(tid=2, lock_id=7),
            LockRelease(tid=2, lock_id=7),
        ]
        assert entries[0].location == SourceLocation("src/main.rs", 12, 9)
        assert entries[0].lineno == 2
        assert entries[2].location is None

    def test_comment_lines_skipped(self, traces_dir: Path) -> None:
        entries = TraceReader(traces_dir / "mutex_held.trace").read_all()
        assert [e.event for e in entries] == [
            ThreadSpawn(parent=0, child=1),
            LockAcquire(tid=1, lock_id=7),
        ]

    def test_bad_syntax(self, traces_dir: Path) -> None:
        reader = TraceReader(traces_dir / "bad_syntax.trace")
        with pytest.raises(TraceError) as excinfo:
            reader.read_all()
        assert excinfo.value.lineno == 2
        assert "bad_syntax.trace:2:" in str(excinfo.value)

    def test_lazy_iteration(self, traces_dir: Path) -> None:
        """Events before a malformed line are delivered first."""
        entries = TraceReader(traces_dir / "bad_syntax.trace").iter_entries()
        assert next(entries).event == LockAcquire(tid=1, lock_id=7)
        with pytest.raises(TraceError):
            next(entries)

    def test_validate(self, traces_dir: Path) -> None:
        assert TraceReader(traces_dir / "mutex_ok.trace").validate() == []
        errors = TraceReader(traces_dir / "bad_syntax.trace").validate()
        assert len(errors) == 1

    def test_utf8_text(self, tmp_path: Path) -> None:
        path = tmp_path / "wait.trace"
        path.write_bytes('Block(tid=1, reason="attente café")\n'.encode("utf-8"))
        entries = TraceReader(path).read_all()
        assert entries[0].event == Block(tid=1, reason="attente café")

    def test_missing_file(self, tmp_path: Path) -> None:
        reader = TraceReader(tmp_path / "absent.trace")
        with pytest.raises(FileNotFoundError):
            reader.read_all()
        assert reader.validate() == [f"File not found: {tmp_path / 'absent.trace'}"]


class TestJsonTraces:
    """Test newline-delimited JSON traces."""

    def test_mutex_ok(self, traces_dir: Path) -> None:
        reader = TraceReader(traces_dir / "mutex_ok.ndjson")
        assert not reader.is_text
        entries = reader.read_all()
        assert len(entries) == 5
        assert entries[0].location == SourceLocation("src/main.rs", 12, 9)
        assert entries[1].location == SourceLocation("src/main.rs", 14, 5)
        assert entries[4].event == LockRelease(tid=2, lock_id=7)

    def test_execution_log_record(self) -> None:
        event, location = TraceReader.parse_json_record(
            {"event": {"type": "Yield", "tid": 3}, "marking_hash": 12345}
        )
        assert event == Yield(tid=3)
        assert location is None

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.ndjson"
        path.write_text('{"type": "Yield", "tid": 1}\n{"type": \n')
        with pytest.raises(TraceError) as excinfo:
            TraceReader(path).read_all()
        assert excinfo.value.lineno == 2

    def test_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "list.ndjson"
        path.write_text("[1, 2]\n")
        with pytest.raises(TraceError, match="Expected a JSON object"):
            TraceReader(path).read_all()

    @pytest.mark.parametrize(
        "data",
        ["main.rs", {"file": "a.rs"}, {"file": "a.rs", "line": "x"}, 12],
    )
    def test_bad_location(self, data) -> None:
        with pytest.raises(ValueError):
            TraceReader.parse_location(data)

    def test_location_without_column(self) -> None:
        assert TraceReader.parse_location({"file": "a.rs", "line": 4}) == (
            SourceLocation("a.rs", 4, 0)
        )
