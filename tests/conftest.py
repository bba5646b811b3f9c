# tests/conftest.py
"""
Shared pytest fixtures for the controller tests.

Provides:
- Position guard doubles with per-call return value injection
- Condition input snapshots
- A freshly initialised sequencer
"""
import pytest
from unittest.mock import MagicMock

from condsel import ConditionInputs
from seqnet import Sequencer


@pytest.fixture
def guards():
    """Guard double; both positions plausible unless a test overrides it."""
    mock = MagicMock()
    mock.elevator_position_ok.return_value = True
    mock.door_position_ok.return_value = True
    return mock


@pytest.fixture
def no_inputs():
    return ConditionInputs()


@pytest.fixture
def all_inputs():
    return ConditionInputs(
        call_pending_below=True,
        call_pending_same=True,
        call_pending_above=True,
        door_open=True,
        door_closed=True,
    )


@pytest.fixture
def sequencer():
    seq = Sequencer()
    seq.initialize()
    return seq
