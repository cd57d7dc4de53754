"""
quadhover: Quadrotor Hover Stabilisation with Reinforcement Learning

A rigid-body quadrotor simulation in Euler-angle form with a discrete
motor-command action set, wrapped as a Gymnasium environment.
"""

from quadhover.types import State, StepResult, SimLog
from quadhover.params import QuadParams, SimConfig, default_params, default_config
from quadhover.motor_model import ActionSet, map_action_to_motor_speeds
from quadhover.sim import step, reset_state, run_episode

__version__ = "0.1.0"

__all__ = [
    "State",
    "StepResult",
    "SimLog",
    "QuadParams",
    "SimConfig",
    "default_params",
    "default_config",
    "ActionSet",
    "map_action_to_motor_speeds",
    "step",
    "reset_state",
    "run_episode",
]
