"""
Observation wrappers for HoverEnv.

Both are off by default and selected from ``PPOConfig`` (``--normalize-obs``,
``--drop-time``).  They never touch the underlying simulation state.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

import gymnasium as gym

from quadhover.params import SimConfig
from quadhover.types import EULER, EULER_RATES, POS, STATE_DIM, TIME, VEL


def observation_scale(
    config: SimConfig,
    vel_scale: float = 2.0,
    rate_scale: float = np.pi,
) -> NDArray[np.float64]:
    """Per-component divisors that map the hover state onto roughly [-1, 1].

    Position and attitude are scaled by their termination limits, so an
    observation component reaching ±1 means the episode is about to end.
    Velocities and Euler rates have no limit and use fixed scales instead.
    Time is scaled by the episode horizon.
    """
    scale = np.ones(STATE_DIM)
    scale[POS] = config.max_displacement
    scale[VEL] = vel_scale
    scale[EULER] = [config.max_tilt, config.max_tilt, config.max_yaw]
    scale[EULER_RATES] = rate_scale
    scale[TIME] = config.sim_end
    return scale


# ---------------------------------------------------------------------------
# Limit-based observation scaling
# ---------------------------------------------------------------------------

class NormalizeObservation(gym.ObservationWrapper):
    """Divide each state component by a fixed physical scale and clip.

    The scales come from :func:`observation_scale` and the wrapped env's
    ``SimConfig``, so the mapping is stationary: training and evaluation
    see identical inputs for identical states.
    """

    def __init__(
        self,
        env: gym.Env,
        vel_scale: float = 2.0,
        rate_scale: float = np.pi,
        clip: float = 5.0,
    ):
        super().__init__(env)
        self.clip = clip
        self.scale = observation_scale(env.unwrapped.cfg, vel_scale, rate_scale)
        self.observation_space = gym.spaces.Box(
            low=-clip, high=clip, shape=(STATE_DIM,), dtype=np.float32,
        )

    def observation(self, obs: NDArray) -> NDArray:
        scaled = np.clip(obs.astype(np.float64) / self.scale, -self.clip, self.clip)
        return scaled.astype(np.float32)


# ---------------------------------------------------------------------------
# Drop the clock from the observation
# ---------------------------------------------------------------------------

class DropTimeObservation(gym.ObservationWrapper):
    """Remove the trailing simulation-time entry from the observation.

    Gives the policy the 12 physical state variables only.
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)
        base = self.observation_space
        self.observation_space = gym.spaces.Box(
            low=base.low[:-1], high=base.high[:-1], dtype=base.dtype,
        )

    def observation(self, obs: NDArray) -> NDArray:
        return obs[:-1]


def wrap_env(
    env: gym.Env,
    drop_time: bool = False,
    normalize_obs: bool = False,
) -> gym.Env:
    """Apply the optional observation wrappers to a HoverEnv.

    Scaling runs before the time entry is dropped, so both can be combined.
    """
    if normalize_obs:
        env = NormalizeObservation(env)
    if drop_time:
        env = DropTimeObservation(env)
    return env
