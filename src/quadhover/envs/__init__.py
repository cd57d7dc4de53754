"""
Gymnasium environments for quadrotor hover RL.

Requires ``gymnasium``::

    pip install gymnasium
"""

from quadhover.envs.hover_env import HoverEnv

__all__ = [
    "HoverEnv",
]
