import pytest

from repcoach.exercise_analysis.phase_machine import ExercisePhase, PhaseEvent, PhaseStateMachine


def run(machine, angles):
    return [machine.update(angle) for angle in angles]


@pytest.fixture
def machine():
    return PhaseStateMachine(top_min_angle=160, bottom_max_angle=100, hysteresis_buffer=10)


def test_full_excursion_counts_once(machine):
    transitions = run(machine, [170, 170, 90, 90, 170, 170])
    assert [t.current for t in transitions] == [
        ExercisePhase.TOP,
        ExercisePhase.TOP,
        ExercisePhase.DESCENDING,
        ExercisePhase.BOTTOM,
        ExercisePhase.ASCENDING,
        ExercisePhase.TOP,
    ]
    events = [t.event for t in transitions if t.event is not None]
    assert events == [PhaseEvent.REP_STARTED, PhaseEvent.REP_COMPLETED]


def test_shallow_dip_never_completes(machine):
    transitions = run(machine, [170, 150, 170])
    assert PhaseEvent.REP_COMPLETED not in [t.event for t in transitions]
    assert machine.phase == ExercisePhase.TOP


def test_descent_abandoned_on_return_to_top(machine):
    transitions = run(machine, [170, 140, 165])
    assert transitions[1].current == ExercisePhase.DESCENDING
    assert transitions[2].current == ExercisePhase.TOP
    assert transitions[2].event == PhaseEvent.REP_ABANDONED


def test_ascent_abandoned_on_return_to_bottom(machine):
    transitions = run(machine, [170, 140, 95, 115, 100])
    assert transitions[3].current == ExercisePhase.ASCENDING
    assert transitions[4].current == ExercisePhase.BOTTOM
    assert transitions[4].event == PhaseEvent.REP_ABANDONED


def test_oscillation_at_top_threshold_stays_top(machine):
    machine.update(170)
    for angle in [161, 159] * 20:
        transition = machine.update(angle)
        assert transition.current == ExercisePhase.TOP
        assert transition.event is None


def test_oscillation_at_bottom_threshold_stays_bottom(machine):
    run(machine, [170, 140, 90])
    for angle in [101, 99, 109] * 10:
        assert machine.update(angle).current == ExercisePhase.BOTTOM


def test_dead_zone_from_unknown(machine):
    assert machine.update(130).current == ExercisePhase.UNKNOWN


def test_one_transition_per_update(machine):
    assert machine.update(90).current == ExercisePhase.BOTTOM
    # Far above the top threshold, but BOTTOM may only move to ASCENDING
    transition = machine.update(175)
    assert transition.current == ExercisePhase.ASCENDING
    assert transition.event is None
    assert machine.update(175).event == PhaseEvent.REP_COMPLETED


def test_start_from_bottom_without_rep_started(machine):
    transitions = run(machine, [90, 120, 170])
    assert [t.event for t in transitions] == [None, None, PhaseEvent.REP_COMPLETED]


def test_reset_returns_to_unknown(machine):
    run(machine, [170, 140])
    machine.reset()
    assert machine.phase == ExercisePhase.UNKNOWN
    assert not machine.in_rep_attempt


@pytest.mark.parametrize("top, bottom", [(100, 100), (90, 120)])
def test_invalid_thresholds(top, bottom):
    with pytest.raises(ValueError):
        PhaseStateMachine(top_min_angle=top, bottom_max_angle=bottom)
