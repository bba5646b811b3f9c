#!/usr/bin/env python3
"""
Condition selector: the multiplexer that turns one condition index into a
single boolean for the sequencer.

Index  Condition                       Guard
  0    call pending below/same/above   elevator position
  1    call pending below              elevator position
  2    call pending on this floor      elevator position
  3    call pending above              elevator position
  4    door fully closed               door position
  5    door fully open                 door position
  6    reserved (always inactive)      -
  7    always inactive                 -

Indices 0-5 are forced inactive when their position guard reports an
implausible sensor reading. The invert flag is applied after that, so an
inverted condition reads active whenever its guard fails.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol


class Condition(IntEnum):
    ANY_CALL = 0
    CALL_BELOW = 1
    CALL_SAME = 2
    CALL_ABOVE = 3
    DOOR_CLOSED = 4
    DOOR_OPEN = 5
    RESERVED = 6
    ALWAYS_FALSE = 7


@dataclass(frozen=True)
class ConditionInputs:
    """Snapshot of plant facts, sampled fresh by the driver every cycle."""
    call_pending_below: bool = False
    call_pending_same: bool = False
    call_pending_above: bool = False
    door_open: bool = False
    door_closed: bool = False


class PositionGuards(Protocol):
    """Position-validity sensors consulted before a condition is trusted."""

    def elevator_position_ok(self) -> bool:
        ...

    def door_position_ok(self) -> bool:
        ...


class StubPositionGuards:
    """
    Reference position detector.

    A real installation would read the level detector switch and the door
    end-position switches here. This one always reports a plausible position.
    """

    def elevator_position_ok(self) -> bool:
        return True

    def door_position_ok(self) -> bool:
        return True


STUB_GUARDS = StubPositionGuards()


def gated_condition(index: int, inputs: ConditionInputs, guards: PositionGuards) -> bool:
    """Select a condition by index and apply its position guard (no inversion)."""
    if not 0 <= index < len(Condition):
        return False

    condition = Condition(index)

    if condition == Condition.ANY_CALL:
        if guards.elevator_position_ok():
            return inputs.call_pending_below or inputs.call_pending_same or inputs.call_pending_above
    elif condition == Condition.CALL_BELOW:
        if guards.elevator_position_ok():
            return inputs.call_pending_below
    elif condition == Condition.CALL_SAME:
        if guards.elevator_position_ok():
            return inputs.call_pending_same
    elif condition == Condition.CALL_ABOVE:
        if guards.elevator_position_ok():
            return inputs.call_pending_above
    elif condition == Condition.DOOR_CLOSED:
        if guards.door_position_ok():
            return inputs.door_closed
    elif condition == Condition.DOOR_OPEN:
        if guards.door_position_ok():
            return inputs.door_open
    # RESERVED and ALWAYS_FALSE never consult a guard

    return False


def evaluate(invert: bool, index: int, inputs: ConditionInputs,
             guards: PositionGuards = STUB_GUARDS) -> bool:
    """Return the selected, gated and optionally inverted condition."""
    result = bool(gated_condition(index, inputs, guards))
    if invert:
        result = not result
    return result


class ConditionSelector:
    """evaluate() bound to one set of position guards."""

    def __init__(self, guards: PositionGuards = STUB_GUARDS):
        self.guards = guards

    def evaluate(self, invert: bool, index: int, inputs: ConditionInputs) -> bool:
        return evaluate(invert, index, inputs, self.guards)
