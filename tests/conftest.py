"""
Shared pytest fixtures for the CPNMON test suite.

Provides reusable nets, engines and fixture file paths used across
unit and integration tests.
"""

from pathlib import Path

import pytest

from cpnmon.core.engine import CPNEngine
from cpnmon.core.marking import Marking
from cpnmon.core.token import Lock
from cpnmon.core.transition import ArcSpec, Transition, Variable
from cpnmon.utils.net_reader import NetDefinition


def mutex_transitions() -> list:
    """The two-transition mutex protocol: free:L <-> held:L."""
    return [
        Transition(
            "acquire",
            pre=[ArcSpec("free", Variable("L"))],
            post=[ArcSpec("held", Variable("L"))],
        ),
        Transition(
            "release",
            pre=[ArcSpec("held", Variable("L"))],
            post=[ArcSpec("free", Variable("L"))],
        ),
    ]


@pytest.fixture
def mutex_engine() -> CPNEngine:
    """Mutex engine whose 'free' place holds Lock(42)."""
    engine = CPNEngine()
    for transition in mutex_transitions():
        engine.add_transition(transition)
    marking = Marking()
    marking.add_token("free", Lock(42))
    engine.set_initial_marking(marking)
    return engine


@pytest.fixture
def mutex_net() -> NetDefinition:
    """Mutex net definition with an empty initial marking."""
    return NetDefinition(
        places=["free", "held"],
        transitions={t.id: t for t in mutex_transitions()},
    )


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def nets_dir(fixtures_dir: Path) -> Path:
    """Path to the net definition fixtures directory."""
    return fixtures_dir / "nets"


@pytest.fixture
def traces_dir(fixtures_dir: Path) -> Path:
    """Path to the trace fixtures directory."""
    return fixtures_dir / "traces"


@pytest.fixture
def tmp_log_file(tmp_path: Path) -> Path:
    """Path for a temporary execution log."""
    return tmp_path / "execution.ndjson"
