import pytest

from repcoach.exercise_analysis.smoothing import AngleSmoother


def test_constant_input_converges():
    smoother = AngleSmoother(window_size=5)
    for _ in range(3):
        smoother.update(40.0)
    outputs = [smoother.update(120.0) for _ in range(5)]
    assert outputs[-1] == pytest.approx(120.0)
    assert outputs == sorted(outputs)


def test_window_evicts_oldest():
    smoother = AngleSmoother(window_size=3)
    for angle in (10.0, 20.0, 30.0, 40.0):
        value = smoother.update(angle)
    assert value == pytest.approx(30.0)
    assert len(smoother) == 3


def test_clear_empties_window():
    smoother = AngleSmoother(window_size=3)
    smoother.update(90.0)
    smoother.clear()
    assert len(smoother) == 0
    assert smoother.update(30.0) == pytest.approx(30.0)


def test_window_must_be_positive():
    with pytest.raises(ValueError):
        AngleSmoother(window_size=0)
