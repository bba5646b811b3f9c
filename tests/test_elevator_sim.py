import logging
from unittest.mock import MagicMock

import pytest

from elevator_sim import (
    SCENARIOS,
    DoorStatus,
    ElevatorController,
    ElevatorSimulation,
    MovementStatus,
    Scenario,
    run_scenario,
    run_simulation_steps,
    update_simulation,
)
from microcode import Instruction


def make_sim(floor=0, calls=(), **kwargs):
    sim = ElevatorSimulation(current_floor=floor, **kwargs)
    for f in calls:
        sim.call(f)
    return sim


# ═══════════════════════════════════════════════════════
# PLANT
# ═══════════════════════════════════════════════════════

def test_condition_inputs_relative_to_current_floor():
    sim = make_sim(floor=3, calls=[1, 3])
    inputs = sim.condition_inputs()

    assert inputs.call_pending_below is True
    assert inputs.call_pending_same is True
    assert inputs.call_pending_above is False
    assert inputs.door_open is True
    assert inputs.door_closed is False


def test_call_out_of_range_rejected():
    sim = make_sim()
    with pytest.raises(ValueError):
        sim.call(6)
    with pytest.raises(ValueError):
        sim.call(-1)


def test_invalid_start_floor_rejected():
    with pytest.raises(ValueError):
        ElevatorSimulation(num_floors=4, current_floor=4)


def test_door_follows_request_only_while_stopped():
    sim = make_sim()
    update_simulation(sim, Instruction(req_door_open=False))
    assert sim.door_status == DoorStatus.CLOSED

    sim.movement_status = MovementStatus.UP
    update_simulation(sim, Instruction(req_door_open=True))
    assert sim.door_status == DoorStatus.CLOSED
    assert sim.movement_status == MovementStatus.STOPPED


def test_car_moves_only_with_door_closed():
    sim = make_sim()
    update_simulation(sim, Instruction(req_door_open=True, req_move_up=True))
    assert sim.current_floor == 0
    assert sim.movement_status == MovementStatus.STOPPED

    update_simulation(sim, Instruction(req_move_up=True))
    assert sim.current_floor == 1
    assert sim.movement_status == MovementStatus.UP


def test_car_does_not_leave_the_shaft():
    top = make_sim(floor=5, door_status=DoorStatus.CLOSED)
    update_simulation(top, Instruction(req_move_up=True))
    assert top.current_floor == 5

    bottom = make_sim(floor=0, door_status=DoorStatus.CLOSED)
    update_simulation(bottom, Instruction(req_move_down=True))
    assert bottom.current_floor == 0


def test_reset_clears_call_at_current_floor_only():
    sim = make_sim(floor=2, calls=[2, 4])
    update_simulation(sim, Instruction(req_door_open=True, req_reset=True))
    assert sim.pending_calls == [False, False, False, False, True, False]


# ═══════════════════════════════════════════════════════
# CONTROLLER + PLANT
# ═══════════════════════════════════════════════════════

def test_call_to_floor_3():
    sim = make_sim(calls=[3])
    controller = ElevatorController()
    controller.initialize()

    records = run_simulation_steps(sim, controller, 100)

    assert sim.current_floor == 3
    assert sim.door_status == DoorStatus.OPEN
    assert not sim.any_calls_pending()
    assert len(records) == 11
    assert [r.floor for r in records if r.movement == MovementStatus.UP] == [1, 2, 3]


def test_door_never_open_while_moving():
    sim, records = run_scenario(SCENARIOS["calls-5-and-1-from-3"])
    for record in records:
        if record.movement != MovementStatus.STOPPED:
            assert record.door == DoorStatus.CLOSED


@pytest.mark.parametrize("name", sorted(SCENARIOS))
def test_scenarios_serve_every_call(name):
    sim, records = run_scenario(SCENARIOS[name])

    assert not sim.any_calls_pending()
    assert sim.door_status == DoorStatus.OPEN
    assert len(records) < 100


def test_calls_above_served_before_calls_below():
    sim, records = run_scenario(SCENARIOS["calls-5-and-1-from-3"])

    floors = [r.floor for r in records]
    assert floors.index(5) < floors.index(1)
    assert sim.current_floor == 1


def test_call_during_movement_keeps_direction():
    sim, records = run_scenario(SCENARIOS["call-during-movement"])

    floors = [r.floor for r in records]
    assert max(floors[10:]) == 5
    assert floors.index(5) > 10
    assert sim.current_floor == 0


def test_call_to_current_floor_finishes_at_once():
    sim, records = run_scenario(SCENARIOS["call-to-0"])

    assert sim.current_floor == 0
    assert all(r.movement == MovementStatus.STOPPED for r in records)


def test_cycle_limit_stops_run():
    scenario = Scenario("Short run", 0, [5], max_steps=3)
    sim, records = run_scenario(scenario)

    assert len(records) == 3
    assert sim.any_calls_pending()


def test_controller_initialize_clears_latched_condition():
    sim = make_sim(calls=[2])
    controller = ElevatorController()
    controller.cycle(sim)
    assert controller.condition_active is True

    controller.initialize()
    assert controller.condition_active is False
    assert controller.sequencer.pc == 0


def test_controllers_do_not_share_state():
    first, second = ElevatorController(), ElevatorController()
    first.cycle(make_sim(calls=[4]))
    first.cycle(make_sim(calls=[4]))

    assert first.sequencer.pc != second.sequencer.pc
    assert second.condition_active is False


def test_failed_elevator_guard_keeps_car_idle():
    """With the level sensor implausible no call is ever seen, so the car waits with the door open."""
    guards = MagicMock()
    guards.elevator_position_ok.return_value = False
    guards.door_position_ok.return_value = True

    sim, records = run_scenario(Scenario("Guard failure", 0, [3], max_steps=20), guards=guards)

    assert len(records) == 20
    assert sim.current_floor == 0
    assert all(r.door == DoorStatus.OPEN for r in records)
    guards.door_position_ok.assert_not_called()


def test_trace_logged_at_debug(caplog):
    with caplog.at_level(logging.DEBUG, logger="elevator_sim"):
        run_scenario(SCENARIOS["call-to-3"])

    messages = [r.getMessage() for r in caplog.records if r.name == "elevator_sim"]
    assert any("CLOSE_DOOR" in m for m in messages)
    assert any("ARRIVED" in m for m in messages)
