"""
Simulation step and reset functions.

The pipeline per step is:
    1. Action mapper  →  motor speeds
    2. Dynamics model  →  linear + Euler-angle accelerations
    3. Forward Euler  →  candidate next state
    4. NaN guard  →  roll back and terminate on divergence
    5. Termination checks  →  displacement / attitude / yaw limits
    6. Reward  →  proximity bonus + spread penalty + crash penalty

Both ``step`` and ``reset_state`` are pure with respect to global state:
everything they need arrives through their arguments, and the caller's
state array is never modified.
"""

from typing import Callable, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from quadhover.params import QuadParams, SimConfig, default_config, default_params
from quadhover.types import EULER, EULER_RATES, POS, STATE_DIM, SimLog, StepResult, as_state_vector
from quadhover.dynamics import state_derivative
from quadhover.motor_model import map_action_to_motor_speeds
from quadhover.log import allocate_log, print_statistics, record_step


def compute_reward(
    position: NDArray[np.float64],
    action: NDArray[np.float64],
    done: bool,
    config: SimConfig,
) -> float:
    """
    Reward for one step.

        r1 = 1 - |tanh(||p||)|              proximity bonus in (0, 1]
        r2 = -k_spread * (max(a) - min(a))  motor-command spread penalty
        r3 = -crash_penalty if done else 0

    Args:
        position: Position relative to the target [m], shape (3,)
        action: Motor commands, shape (4,)
        done: Terminal flag
        config: Reward weights

    Returns:
        r1 + r2 + r3
    """
    r1 = 1.0 - abs(np.tanh(np.linalg.norm(position)))
    r2 = -config.k_spread * (np.max(action) - np.min(action))
    r3 = -config.crash_penalty if done else 0.0
    return float(r1 + r2 + r3)


def check_termination(state: NDArray[np.float64], config: SimConfig) -> Tuple[bool, str]:
    """
    Check the displacement and attitude limits.

    Returns:
        (done, reason) where reason is "displacement", "attitude", "yaw" or "".
    """
    phi, theta, psi = state[EULER]
    if np.linalg.norm(state[POS]) > config.max_displacement:
        return True, "displacement"
    if abs(phi) > config.max_tilt or abs(theta) > config.max_tilt:
        return True, "attitude"
    if abs(psi) > config.max_yaw:
        return True, "yaw"
    return False, ""


def step(
    action: NDArray[np.float64],
    state: NDArray[np.float64],
    dt: float,
    params: Optional[QuadParams] = None,
    config: Optional[SimConfig] = None,
) -> StepResult:
    """
    Advance the simulation by one forward-Euler step.

    If integration produces NaN anywhere in the state, the step is
    rejected: the pre-step state is returned unchanged and the episode
    is marked terminal with reason "diverged". The reward on that branch
    is evaluated at the pre-step position and includes the crash penalty.

    Args:
        action: Motor commands in [-1, 1], shape (4,)
        state: Current state, shape (13,)
        dt: Time step [s]
        params: Physical constants (default: default_params())
        config: Limits and reward weights (default: default_config())

    Returns:
        StepResult with next_state, reward and done
    """
    if params is None:
        params = default_params()
    if config is None:
        config = default_config()

    x = as_state_vector(state)
    a = np.asarray(action, dtype=np.float64)

    # 1) Action → motor speeds
    speeds = map_action_to_motor_speeds(a, params.min_thrust, params.max_thrust, params.k_thrust)

    # 2-3) Accelerations + forward Euler
    with np.errstate(all="ignore"):
        x_next = x + dt * state_derivative(x, speeds, params)

    # 4) NaN guard
    if np.any(np.isnan(x_next)):
        reward = compute_reward(x[POS], a, True, config)
        return StepResult(next_state=x, reward=reward, done=True,
                          reason="diverged", motor_speeds=speeds)

    # 5) Termination
    done, reason = check_termination(x_next, config)

    # 6) Reward
    reward = compute_reward(x_next[POS], a, done, config)

    return StepResult(next_state=x_next, reward=reward, done=done,
                      reason=reason, motor_speeds=speeds)


def reset_state(
    rng: np.random.Generator,
    config: Optional[SimConfig] = None,
) -> NDArray[np.float64]:
    """
    Draw an initial state.

    Position is placed ``initial_radius`` from the target along a random
    direction, velocity and attitude are zero, and each Euler rate is
    drawn uniformly from ±``initial_deviation`` deg/s.

    Args:
        rng: Seeded generator; the only source of randomness.
        config: Reset settings (default: default_config())

    Returns:
        Initial state, shape (13,)
    """
    if config is None:
        config = default_config()

    direction = rng.standard_normal(3)
    norm = np.linalg.norm(direction)
    if norm < 1e-12:
        direction = np.array([1.0, 0.0, 0.0])
    else:
        direction = direction / norm

    dev = config.initial_deviation
    rates_deg = 2.0 * dev * rng.random(3) - dev

    x0 = np.zeros(STATE_DIM)
    x0[POS] = config.initial_radius * direction
    x0[EULER_RATES] = np.deg2rad(rates_deg)
    return x0


def run_episode(
    policy: Callable[[NDArray[np.float64]], NDArray[np.float64]],
    params: Optional[QuadParams] = None,
    config: Optional[SimConfig] = None,
    rng: Optional[np.random.Generator] = None,
    max_steps: Optional[int] = None,
    verbose: bool = False,
) -> SimLog:
    """
    Run one reset-to-termination episode.

    Args:
        policy: Maps the current state (13,) to a motor command (4,)
        params: Physical constants (default: default_params())
        config: Simulation settings (default: default_config())
        rng: Generator for the reset draw (default: unseeded)
        max_steps: Step budget (default: config.max_steps)
        verbose: Print progress updates

    Returns:
        SimLog containing the episode history
    """
    if params is None:
        params = default_params()
    if config is None:
        config = default_config()
    if rng is None:
        rng = np.random.default_rng()
    if max_steps is None:
        max_steps = config.max_steps

    state = reset_state(rng, config)
    log = allocate_log(max_steps)

    if verbose:
        print(f"Starting episode: dt={config.dt*1000:.1f}ms, max_steps={max_steps}")

    for i in range(max_steps):
        action = np.asarray(policy(state.copy()), dtype=np.float64)
        result = step(action, state, config.dt, params, config)
        record_step(log, state, action, result)
        state = result.next_state

        if verbose and (i + 1) % 100 == 0:
            pos_err = np.linalg.norm(state[POS])
            print(f"  t={state[-1]:.2f}s, pos_err={pos_err*1000:.1f}mm, r={result.reward:+.3f}")

        if result.done:
            break
    else:
        log.term_reason = "max_steps"

    log = log.trim()

    if verbose:
        print_statistics(log)

    return log
