"""
Episode logging utilities.

Provides pre-allocated logging for efficient data collection
during rollouts.
"""

import numpy as np
from numpy.typing import NDArray

from quadhover.types import POS, EULER, SimLog, StepResult


def allocate_log(n_steps: int) -> SimLog:
    """
    Allocate a SimLog with pre-allocated arrays.

    This is a convenience wrapper around SimLog.allocate().

    Args:
        n_steps: Number of steps to allocate

    Returns:
        Pre-allocated SimLog
    """
    return SimLog.allocate(n_steps)


def record_step(
    log: SimLog,
    state: NDArray[np.float64],
    action: NDArray[np.float64],
    result: StepResult,
) -> None:
    """
    Record one step of episode data.

    This is a convenience wrapper around SimLog.record().

    Args:
        log: SimLog instance to record into
        state: State before the step, shape (13,)
        action: Motor commands applied, shape (4,)
        result: Outcome of the step
    """
    log.record(state, action, result)


def compute_statistics(log: SimLog) -> dict:
    """
    Compute summary statistics from an episode log.

    Args:
        log: Completed (trimmed) episode log

    Returns:
        Dictionary with statistics:
        - steps: Number of steps taken
        - total_reward: Sum of step rewards
        - pos_rmse: RMS distance from the target [m]
        - max_pos_error: Maximum distance from the target [m]
        - max_tilt_deg: Largest roll/pitch magnitude [deg]
        - final_pos_error: Distance from the target after the last step [m]
        - simulation_time: Time at the end of the episode [s]
        - term_reason: Why the episode ended
    """
    if len(log) == 0:
        return {
            "steps": 0,
            "total_reward": 0.0,
            "pos_rmse": 0.0,
            "max_pos_error": 0.0,
            "max_tilt_deg": 0.0,
            "final_pos_error": float(np.linalg.norm(log.final_state[POS])),
            "simulation_time": float(log.final_state[-1]),
            "term_reason": log.term_reason,
        }

    pos_err_mag = np.linalg.norm(log.state[:, POS], axis=1)
    tilt = np.abs(log.state[:, EULER][:, :2])

    stats = {
        "steps": len(log),
        "total_reward": float(np.sum(log.reward)),
        "pos_rmse": float(np.sqrt(np.mean(pos_err_mag**2))),
        "max_pos_error": float(np.max(pos_err_mag)),
        "max_tilt_deg": float(np.degrees(np.max(tilt))),
        "final_pos_error": float(np.linalg.norm(log.final_state[POS])),
        "simulation_time": float(log.final_state[-1]),
        "term_reason": log.term_reason,
    }

    return stats


def print_statistics(log: SimLog, name: str = "Episode") -> None:
    """
    Print summary statistics to console.

    Args:
        log: Completed episode log
        name: Name of the episode for display
    """
    stats = compute_statistics(log)

    print(f"\n{name} Statistics:")
    print(f"  Steps:           {stats['steps']}")
    print(f"  Duration:        {stats['simulation_time']:.2f} s")
    print(f"  Total reward:    {stats['total_reward']:+.2f}")
    print(f"  Position RMSE:   {stats['pos_rmse']*1000:.2f} mm")
    print(f"  Max pos error:   {stats['max_pos_error']*1000:.2f} mm")
    print(f"  Max tilt:        {stats['max_tilt_deg']:.2f} deg")
    print(f"  Ended by:        {stats['term_reason'] or 'n/a'}")
