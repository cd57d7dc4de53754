"""Tests for the action mapper and the discrete action set."""

import numpy as np
import pytest

from quadhover.motor_model import ActionSet, map_action_to_motor_speeds
from quadhover.params import QuadParams


P = QuadParams()


def _speeds(action):
    return map_action_to_motor_speeds(
        np.asarray(action, dtype=np.float64), P.min_thrust, P.max_thrust, P.k_thrust,
    )


# ---- map_action_to_motor_speeds ---------------------------------------------

def test_full_negative_command_gives_min_thrust_speed():
    assert np.array_equal(_speeds([-1, -1, -1, -1]), np.full(4, P.min_thrust / P.k_thrust))


def test_full_positive_command_gives_max_thrust_speed():
    assert np.array_equal(_speeds([1, 1, 1, 1]), np.full(4, P.max_thrust / P.k_thrust))


def test_zero_command_gives_hover_speed():
    speeds = _speeds(np.zeros(4))
    assert np.allclose(speeds * P.k_thrust, P.hover_thrust_per_motor)


def test_mapping_is_linear_and_per_motor():
    speeds = _speeds([-1.0, -0.5, 0.5, 1.0])
    thrust = speeds * P.k_thrust
    expected = P.max_thrust - 0.5 * (P.max_thrust - P.min_thrust) * (1 - np.array([-1.0, -0.5, 0.5, 1.0]))
    assert np.allclose(thrust, expected)
    assert np.all(np.diff(thrust) > 0), "Thrust should increase with command"


@pytest.mark.parametrize("bad", [[1.5, 0, 0, 0], [0, 0, 0, -1.01]])
def test_out_of_range_command_rejected(bad):
    with pytest.raises(ValueError):
        _speeds(bad)


def test_wrong_length_command_rejected():
    with pytest.raises(ValueError):
        _speeds([0.0, 0.0, 0.0])


# ---- ActionSet --------------------------------------------------------------

@pytest.mark.parametrize("n", [2, 3, 5])
def test_action_set_size(n):
    aset = ActionSet(n)
    assert len(aset) == n ** 4
    assert aset.actions.shape == (n ** 4, 4)
    assert np.array_equal(aset.levels, np.linspace(-1, 1, n))


@pytest.mark.parametrize("n", [1, 0, -3])
def test_action_set_rejects_degenerate_range(n):
    with pytest.raises(ValueError):
        ActionSet(n)


def test_action_index_lookup_round_trip():
    aset = ActionSet(3)
    for i in range(len(aset)):
        assert aset.index(aset.action(i)) == i


def test_action_set_order_last_motor_fastest():
    aset = ActionSet(3)
    assert np.array_equal(aset.action(0), [-1, -1, -1, -1])
    assert np.array_equal(aset.action(1), [-1, -1, -1, 0])
    assert np.array_equal(aset.action(len(aset) - 1), [1, 1, 1, 1])


def test_action_set_is_static():
    aset = ActionSet(3)
    with pytest.raises(ValueError):
        aset.actions[0, 0] = 0.5
    a = aset.action(5)
    a[:] = 0.0
    assert not np.array_equal(aset.action(5), a), "action() should return a copy"


def test_action_not_on_grid_rejected():
    aset = ActionSet(3)
    with pytest.raises(ValueError):
        aset.index([0.25, 0, 0, 0])
    with pytest.raises(ValueError):
        aset.action(len(aset))


def test_zero_index():
    assert ActionSet(3).zero_index == 40
    assert np.array_equal(ActionSet(5).action(ActionSet(5).zero_index), np.zeros(4))
    assert ActionSet(4).zero_index is None
