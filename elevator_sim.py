#!/usr/bin/env python3
"""
Elevator plant simulation driven by the microcoded controller.

Each cycle:
  1. step the sequencer with the condition computed last cycle
  2. apply the returned requests to the plant (door, motor, call reset)
  3. sample the plant and compute the next condition from the returned
     cond_select/cond_invert fields

Plant rules:
  - the door follows the door request only while the car is stopped
  - the car moves only while the door is closed, one floor per cycle
  - a reset request clears the call at the floor the car is on

A run stops after max_steps cycles, or as soon as no call is pending and the
door is open.

Usage:
  elevator_sim.py --scenario call-to-3
  elevator_sim.py --floor 3 --call 5 --call 1
  elevator_sim.py --list
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from condsel import ConditionInputs, ConditionSelector, PositionGuards, STUB_GUARDS
from elevator_program import state_label
from microcode import Instruction, ProgramMemory
from seqnet import Sequencer

logger = logging.getLogger(__name__)

NUM_FLOORS = 6
MAX_STEPS = 100


class DoorStatus(Enum):
    OPEN = "Open"
    CLOSED = "Closed"


class MovementStatus(Enum):
    STOPPED = 0
    UP = 1
    DOWN = 2


@dataclass
class ElevatorSimulation:
    """Plant state: car position, door, motor and registered calls."""
    num_floors: int = NUM_FLOORS
    current_floor: int = 0
    door_status: DoorStatus = DoorStatus.OPEN
    movement_status: MovementStatus = MovementStatus.STOPPED
    pending_calls: list[bool] = field(default_factory=list)

    def __post_init__(self):
        if self.num_floors < 1:
            raise ValueError(f"Need at least one floor, got {self.num_floors}")
        if not 0 <= self.current_floor < self.num_floors:
            raise ValueError(f"Floor out of range: {self.current_floor} (0-{self.num_floors - 1})")
        if not self.pending_calls:
            self.pending_calls = [False] * self.num_floors
        elif len(self.pending_calls) != self.num_floors:
            raise ValueError(f"Expected {self.num_floors} call flags, got {len(self.pending_calls)}")

    def call(self, floor: int):
        """Register a call to a floor."""
        if not 0 <= floor < self.num_floors:
            raise ValueError(f"Floor out of range: {floor} (0-{self.num_floors - 1})")
        self.pending_calls[floor] = True

    def any_calls_pending(self) -> bool:
        return any(self.pending_calls)

    def condition_inputs(self) -> ConditionInputs:
        """Sample the plant for the condition selector."""
        below = any(self.pending_calls[:self.current_floor])
        same = self.pending_calls[self.current_floor]
        above = any(self.pending_calls[self.current_floor + 1:])
        return ConditionInputs(
            call_pending_below=below,
            call_pending_same=same,
            call_pending_above=above,
            door_open=self.door_status == DoorStatus.OPEN,
            door_closed=self.door_status == DoorStatus.CLOSED
        )

    def calls_string(self) -> str:
        return "".join("1" if c else "0" for c in self.pending_calls)


def update_simulation(sim: ElevatorSimulation, out: Instruction):
    """Apply one cycle of controller requests to the plant."""
    if sim.movement_status == MovementStatus.STOPPED:
        sim.door_status = DoorStatus.OPEN if out.req_door_open else DoorStatus.CLOSED

    if sim.door_status == DoorStatus.CLOSED:
        if out.req_move_up and sim.current_floor < sim.num_floors - 1:
            sim.movement_status = MovementStatus.UP
        elif out.req_move_down and sim.current_floor > 0:
            sim.movement_status = MovementStatus.DOWN
        else:
            sim.movement_status = MovementStatus.STOPPED
    else:
        sim.movement_status = MovementStatus.STOPPED

    if sim.movement_status == MovementStatus.UP:
        sim.current_floor += 1
    elif sim.movement_status == MovementStatus.DOWN:
        sim.current_floor -= 1

    if out.req_reset:
        sim.pending_calls[sim.current_floor] = False


class ElevatorController:
    """Driver that wires a sequencer to a condition selector across cycles."""

    def __init__(self, program: Optional[ProgramMemory] = None,
                 guards: PositionGuards = STUB_GUARDS):
        self.sequencer = Sequencer(program)
        self.selector = ConditionSelector(guards)
        self.condition_active = False

    def initialize(self):
        self.sequencer.initialize()
        self.condition_active = False

    def cycle(self, sim: ElevatorSimulation) -> Instruction:
        """Run one control cycle against the plant and latch the next condition."""
        out = self.sequencer.step(self.condition_active)
        update_simulation(sim, out)
        self.condition_active = self.selector.evaluate(out.cond_invert, out.cond_select,
                                                       sim.condition_inputs())
        return out


@dataclass(frozen=True)
class CycleRecord:
    cycle: int
    pc: int
    floor: int
    movement: MovementStatus
    door: DoorStatus
    calls: str

    def __str__(self) -> str:
        return (f" Floor={self.floor}, Movement={self.movement.value}, "
                f"Door={self.door.value:<6}, Calls={self.calls}")


def run_simulation_steps(sim: ElevatorSimulation, controller: ElevatorController,
                         max_steps: int = MAX_STEPS) -> list[CycleRecord]:
    """Cycle until max_steps, or until no call is pending and the door is open."""
    records = []

    for i in range(max_steps):
        controller.cycle(sim)

        pc = controller.sequencer.pc
        record = CycleRecord(
            cycle=i,
            pc=pc,
            floor=sim.current_floor,
            movement=sim.movement_status,
            door=sim.door_status,
            calls=sim.calls_string()
        )
        records.append(record)
        logger.debug("cycle %d pc=%02X (%s) cond=%s%s",
                     i, pc, state_label(pc), controller.condition_active, record)

        if not sim.any_calls_pending() and sim.door_status == DoorStatus.OPEN:
            break

    return records


@dataclass
class Scenario:
    """
    A reproducible run: starting floor, calls, and optional calls added
    mid-run after a fixed number of cycles without restarting the controller.
    """
    description: str
    start_floor: int
    calls: list[int]
    max_steps: int = MAX_STEPS
    later_calls: list[int] = field(default_factory=list)
    later_after: int = 0


SCENARIOS = {
    "call-to-3": Scenario("Call to Floor 3", 0, [3]),
    "calls-5-and-1": Scenario("Calls to Floor 5 and 1", 0, [1, 5]),
    "calls-5-and-1-from-3": Scenario("Calls to Floor 5 and 1 from Floor 3", 3, [1, 5]),
    "call-during-movement": Scenario("Call during movement", 0, [5],
                                     later_calls=[0], later_after=10),
    "call-to-0": Scenario("Call to Floor 0", 0, [0]),
}


def run_scenario(scenario: Scenario, num_floors: int = NUM_FLOORS,
                 guards: PositionGuards = STUB_GUARDS) -> tuple[ElevatorSimulation, list[CycleRecord]]:
    """Run a scenario on a fresh plant and controller."""
    sim = ElevatorSimulation(num_floors=num_floors, current_floor=scenario.start_floor)
    for floor in scenario.calls:
        sim.call(floor)

    controller = ElevatorController(guards=guards)
    controller.initialize()

    if scenario.later_calls:
        records = run_simulation_steps(sim, controller, scenario.later_after)
        for floor in scenario.later_calls:
            logger.info("Adding call to floor %d mid-trip", floor)
            sim.call(floor)
        records += run_simulation_steps(sim, controller, scenario.max_steps)
    else:
        records = run_simulation_steps(sim, controller, scenario.max_steps)

    return sim, records


def main():
    parser = argparse.ArgumentParser(
        description="Simulate the elevator under the microcoded controller",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --scenario call-to-3              # Run a built-in scenario
  %(prog)s --all                              # Run every built-in scenario
  %(prog)s --floor 3 --call 5 --call 1        # Custom start floor and calls
  %(prog)s --scenario call-to-3 --log-level DEBUG   # Trace PC per cycle
        """
    )

    group = parser.add_mutually_exclusive_group()
    group.add_argument("--scenario", choices=sorted(SCENARIOS), help="Run a built-in scenario")
    group.add_argument("--all", action="store_true", help="Run every built-in scenario")
    group.add_argument("--list", action="store_true", help="List built-in scenarios")

    parser.add_argument("--floor", type=int, default=0, help="Starting floor for a custom run")
    parser.add_argument("--call", type=int, action="append", default=[], metavar="FLOOR",
                        help="Register a call (repeatable)")
    parser.add_argument("--floors", type=int, default=NUM_FLOORS, help="Number of floors")
    parser.add_argument("--max-steps", type=int, default=MAX_STEPS, help="Cycle limit per run")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")

    args = parser.parse_args()

    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.list:
        for name in sorted(SCENARIOS):
            print(f"{name:<24} {SCENARIOS[name].description}")
        return

    if args.all:
        names = list(SCENARIOS)
    elif args.scenario:
        names = [args.scenario]
    else:
        names = []

    try:
        if names:
            runs = [replace(SCENARIOS[n], max_steps=args.max_steps) for n in names]
        else:
            if not args.call:
                raise ValueError("No calls given (use --call FLOOR or --scenario NAME)")
            runs = [Scenario("Custom run", args.floor, args.call, args.max_steps)]

        for scenario in runs:
            print(f"\n{scenario.description}")
            sim, records = run_scenario(scenario, args.floors)
            for record in records:
                print(record)
            status = "finished" if not sim.any_calls_pending() else "stopped at cycle limit"
            print(f"\nRun {status} after {len(records)} cycles")

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
