"""Tests for the step, reset and rollout functions."""

import numpy as np
import pytest

from quadhover.dynamics import total_thrust
from quadhover.params import QuadParams, SimConfig
from quadhover.sim import check_termination, compute_reward, reset_state, run_episode, step
from quadhover.types import STATE_DIM, State


P = QuadParams()
CFG = SimConfig()
ZERO_ACTION = np.zeros(4)


def _state_at(p=(0.0, 0.0, 0.0), euler_deg=(0.0, 0.0, 0.0)):
    x = np.zeros(STATE_DIM)
    x[0:3] = p
    x[6:9] = np.deg2rad(euler_deg)
    return x


# ---- End-to-end hover step --------------------------------------------------

def test_hover_step_from_rest():
    result = step(ZERO_ACTION, np.zeros(STATE_DIM), 0.01, P, CFG)

    assert np.isclose(total_thrust(result.motor_speeds, P), P.m * P.g)
    assert np.allclose(result.next_state[3:6], 0.0, atol=1e-12), "Net acceleration should vanish"
    assert result.next_state[12] == 0.01
    assert not result.done
    assert result.reason == ""


def test_step_result_unpacks_as_triple():
    next_state, reward, done = step(ZERO_ACTION, np.zeros(STATE_DIM), 0.01, P, CFG)
    assert next_state.shape == (STATE_DIM,)
    assert reward == 1.0
    assert done is False


def test_time_advances_by_dt_each_step():
    x = np.zeros(STATE_DIM)
    for k in range(1, 6):
        x = step(ZERO_ACTION, x, 0.02, P, CFG).next_state
        assert x[12] == pytest.approx(0.02 * k)


def test_step_does_not_mutate_input():
    x = _state_at(p=(0.5, -0.2, 0.1), euler_deg=(5.0, -3.0, 10.0))
    x[9:12] = [0.1, 0.2, -0.3]
    before = x.copy()
    result = step(np.array([1.0, -1.0, 0.0, 0.5]), x, 0.01, P, CFG)
    assert np.array_equal(x, before)
    assert result.next_state is not x


def test_step_rejects_bad_state_length():
    with pytest.raises(ValueError):
        step(ZERO_ACTION, np.zeros(12), 0.01, P, CFG)


def test_step_defaults():
    result = step(ZERO_ACTION, np.zeros(STATE_DIM), 0.01)
    assert not result.done


# ---- Reward -----------------------------------------------------------------

def test_reward_at_target_is_one():
    assert compute_reward(np.zeros(3), ZERO_ACTION, False, CFG) == 1.0


@pytest.mark.parametrize("level", [-1.0, -0.5, 0.0, 0.5, 1.0])
def test_balanced_command_has_no_spread_penalty(level):
    p = np.array([0.3, -0.1, 0.2])
    r = compute_reward(p, np.full(4, level), False, CFG)
    assert r == pytest.approx(1.0 - np.tanh(np.linalg.norm(p)))


def test_spread_penalty():
    r = compute_reward(np.zeros(3), np.array([1.0, -1.0, 0.0, 0.0]), False, CFG)
    assert r == pytest.approx(1.0 - 0.1 * 2.0)


def test_proximity_bonus_decays_with_distance():
    near = compute_reward(np.array([0.1, 0.0, 0.0]), ZERO_ACTION, False, CFG)
    far = compute_reward(np.array([2.5, 0.0, 0.0]), ZERO_ACTION, False, CFG)
    assert 1.0 > near > far > 0.0


def test_terminal_penalty():
    r = compute_reward(np.zeros(3), ZERO_ACTION, True, CFG)
    assert r == pytest.approx(1.0 - 50.0)


# ---- Termination ------------------------------------------------------------

@pytest.mark.parametrize("x, reason", [
    (_state_at(p=(3.5, 0.0, 0.0)), "displacement"),
    (_state_at(p=(2.0, 2.0, 2.0)), "displacement"),
    (_state_at(euler_deg=(81.0, 0.0, 0.0)), "attitude"),
    (_state_at(euler_deg=(0.0, -85.0, 0.0)), "attitude"),
    (_state_at(euler_deg=(0.0, 0.0, 175.0)), "yaw"),
    (_state_at(euler_deg=(0.0, 0.0, -171.0)), "yaw"),
])
def test_termination_conditions(x, reason):
    assert check_termination(x, CFG) == (True, reason)


def test_within_limits_not_terminal():
    x = _state_at(p=(1.0, 1.0, 1.0), euler_deg=(79.0, -79.0, 169.0))
    assert check_termination(x, CFG) == (False, "")


def test_displacement_exit_is_terminal_with_penalty():
    x = _state_at(p=(3.5, 0.0, 0.0))
    result = step(ZERO_ACTION, x, 0.01, P, CFG)
    assert result.done
    assert result.reason == "displacement"
    expected = 1.0 - np.tanh(np.linalg.norm(result.next_state[0:3])) - 50.0
    assert result.reward == pytest.approx(expected)


# ---- NaN containment --------------------------------------------------------

def test_nan_divergence_rolls_back_and_terminates():
    x = np.zeros(STATE_DIM)
    x[11] = np.inf   # infinite yaw rate: 0 * inf terms turn the rates into NaN
    result = step(ZERO_ACTION, x, 0.01, P, CFG)

    assert result.done
    assert result.reason == "diverged"
    assert np.array_equal(result.next_state, x), "State should be frozen at pre-step value"
    assert result.reward == pytest.approx(1.0 - 50.0)


def test_nan_in_input_is_contained():
    x = _state_at(p=(0.2, 0.0, 0.0))
    x[3] = np.nan
    result = step(ZERO_ACTION, x, 0.01, P, CFG)
    assert result.done
    assert result.reason == "diverged"
    assert np.isfinite(result.reward)
    assert np.array_equal(result.next_state, x, equal_nan=True)


# ---- Reset ------------------------------------------------------------------

def test_reset_reproducible_and_zero_by_default():
    cfg = SimConfig(initial_radius=0.0, initial_deviation=0.0)
    x1 = reset_state(np.random.default_rng(7), cfg)
    x2 = reset_state(np.random.default_rng(7), cfg)
    assert np.array_equal(x1, x2)
    assert np.array_equal(x1, np.zeros(STATE_DIM))


def test_reset_radius_and_deviation():
    cfg = SimConfig(initial_radius=1.5, initial_deviation=20.0)
    for seed in range(10):
        s = State.from_vector(reset_state(np.random.default_rng(seed), cfg))
        assert np.isclose(np.linalg.norm(s.p), 1.5)
        assert np.array_equal(s.v, np.zeros(3))
        assert np.array_equal(s.euler, np.zeros(3))
        assert np.all(np.abs(s.euler_rates) <= np.deg2rad(20.0))
        assert s.t == 0.0


def test_reset_ignores_global_random_state():
    cfg = SimConfig(initial_radius=1.0, initial_deviation=30.0)
    np.random.seed(1)
    x1 = reset_state(np.random.default_rng(3), cfg)
    np.random.seed(2)
    x2 = reset_state(np.random.default_rng(3), cfg)
    assert np.array_equal(x1, x2)


def test_reset_differs_across_seeds():
    cfg = SimConfig(initial_radius=1.0, initial_deviation=30.0)
    x1 = reset_state(np.random.default_rng(0), cfg)
    x2 = reset_state(np.random.default_rng(1), cfg)
    assert not np.array_equal(x1, x2)


# ---- Rollout ----------------------------------------------------------------

def test_hover_episode_runs_to_step_budget():
    log = run_episode(lambda s: ZERO_ACTION, P, CFG, np.random.default_rng(0), max_steps=50)
    assert len(log) == 50
    assert log.term_reason == "max_steps"
    assert np.allclose(log.reward, 1.0)
    assert log.final_state[12] == pytest.approx(0.5)


def test_full_thrust_climbs_out_of_bounds():
    log = run_episode(lambda s: np.ones(4), P, CFG, np.random.default_rng(0))
    assert log.term_reason == "displacement"
    assert len(log) < CFG.max_steps
    assert log.reward[-1] < -49.0
    assert log.final_state[2] > 3.0


def test_rollout_is_deterministic_given_seed():
    cfg = SimConfig(initial_radius=0.5, initial_deviation=15.0)
    policy = lambda s: np.array([0.5, 0.0, -0.5, 0.0])
    log1 = run_episode(policy, P, cfg, np.random.default_rng(11), max_steps=100)
    log2 = run_episode(policy, P, cfg, np.random.default_rng(11), max_steps=100)
    assert np.array_equal(log1.state, log2.state)
    assert np.array_equal(log1.reward, log2.reward)


# ---- Episode statistics -----------------------------------------------------

def test_episode_statistics(capsys):
    from quadhover.log import compute_statistics

    log = run_episode(lambda s: np.ones(4), P, CFG, np.random.default_rng(0), verbose=True)
    stats = compute_statistics(log)
    assert stats["steps"] == len(log)
    assert stats["term_reason"] == "displacement"
    assert stats["final_pos_error"] > CFG.max_displacement
    assert stats["max_pos_error"] <= CFG.max_displacement
    assert stats["total_reward"] == pytest.approx(float(np.sum(log.reward)))
    assert "Statistics" in capsys.readouterr().out


def test_state_view_matches_layout():
    x = np.arange(STATE_DIM, dtype=np.float64)
    s = State.from_vector(x)
    assert np.array_equal(s.p, [0, 1, 2])
    assert np.array_equal(s.euler_rates, [9, 10, 11])
    assert s.t == 12.0
    assert np.array_equal(s.as_vector(), x)
    s.p[0] = -1.0
    assert x[0] == 0.0, "State view should not alias the source vector"
