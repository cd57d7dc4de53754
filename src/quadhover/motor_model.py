"""
Mapping from normalised motor commands to motor speeds.

Each motor receives a command a in [-1, 1] which is mapped linearly
onto the per-motor thrust window:

    T = T_max - 0.5 * (T_max - T_min) * (1 - a)

so a = -1 gives T_min, a = 0 the midpoint and a = 1 gives T_max.
The thrust is then converted to a motor speed via

    speed = T / k_thrust

Physically thrust scales with speed², so a square root is missing here.
The linear form is kept on purpose: the dynamics model computes thrust as
k_thrust * sum(speeds), which makes the pair consistent and keeps hover
exactly at a = 0.

The discrete action set used by the environment is the Cartesian product
of ``action_range`` evenly spaced levels per motor.
"""

from __future__ import annotations

import itertools
from typing import Dict, Tuple

import numpy as np
from numpy.typing import NDArray


def map_action_to_motor_speeds(
    action: NDArray[np.float64],
    min_thrust: float,
    max_thrust: float,
    k_thrust: float,
) -> NDArray[np.float64]:
    """
    Map normalised per-motor commands to motor speeds.

    Args:
        action: Motor commands in [-1, 1], shape (4,)
        min_thrust: Per-motor thrust at a = -1 [N]
        max_thrust: Per-motor thrust at a = 1 [N]
        k_thrust: Thrust proportionality constant

    Returns:
        Motor speeds, shape (4,)

    Raises:
        ValueError: If the action has the wrong shape or leaves [-1, 1].
    """
    a = np.asarray(action, dtype=np.float64)
    if a.shape != (4,):
        raise ValueError(f"action must have 4 components, got shape {a.shape}")
    if np.any(np.abs(a) > 1.0):
        raise ValueError(f"action components must lie in [-1, 1], got {a}")

    # Same line as T_max - 0.5*(T_max - T_min)*(1 - a), written as a convex
    # blend so both endpoints come out bit-exact.
    thrust = 0.5 * (1.0 - a) * min_thrust + 0.5 * (1.0 + a) * max_thrust
    return thrust / k_thrust


class ActionSet:
    """Static, indexed enumeration of discrete 4-motor actions.

    Built once from ``action_range`` levels per motor, evenly spaced on
    [-1, 1].  Index order follows :func:`itertools.product`, so the last
    motor varies fastest.

    Parameters
    ----------
    action_range : int
        Number of levels per motor axis (>= 2).
    """

    def __init__(self, action_range: int):
        if int(action_range) != action_range or action_range < 2:
            raise ValueError(
                f"action_range must be an integer >= 2, got {action_range}"
            )
        self.action_range = int(action_range)
        self.levels: NDArray[np.float64] = np.linspace(-1.0, 1.0, self.action_range)

        actions = np.array(
            list(itertools.product(self.levels, repeat=4)), dtype=np.float64,
        )
        actions.setflags(write=False)
        self.actions: NDArray[np.float64] = actions  # (n, 4)

        self._lookup: Dict[Tuple[int, ...], int] = {
            combo: i
            for i, combo in enumerate(itertools.product(range(self.action_range), repeat=4))
        }

    def __len__(self) -> int:
        return len(self.actions)

    def action(self, index: int) -> NDArray[np.float64]:
        """Return a copy of the action at ``index``."""
        i = int(index)
        if not 0 <= i < len(self.actions):
            raise ValueError(f"action index {index} out of range [0, {len(self.actions)})")
        return self.actions[i].copy()

    def index(self, action: NDArray[np.float64]) -> int:
        """Return the index of ``action`` (must be one of the grid points)."""
        a = np.asarray(action, dtype=np.float64)
        if a.shape != (4,):
            raise ValueError(f"action must have 4 components, got shape {a.shape}")
        # Position of each component on the level grid
        step = 2.0 / (self.action_range - 1)
        pos = (a + 1.0) / step
        key = tuple(int(round(v)) for v in pos)
        if not np.allclose(pos, key, atol=1e-9) or key not in self._lookup:
            raise ValueError(f"action {a} is not in the action set")
        return self._lookup[key]

    @property
    def zero_index(self) -> int | None:
        """Index of the all-zero (hover) action, or None for even ranges."""
        if self.action_range % 2 == 0:
            return None
        return self.index(np.zeros(4))
