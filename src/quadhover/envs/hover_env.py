"""
Gymnasium environment wrapping the hover simulation.

The policy picks one of ``action_range**4`` discrete motor-command
combinations each step.  The chosen 4-vector goes straight through the
action mapper → dynamics → forward-Euler step in :mod:`quadhover.sim`.
The observation is the full 13-component state.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

import gymnasium as gym
from gymnasium import logger, spaces

from quadhover.params import QuadParams, SimConfig, default_config, default_params
from quadhover.types import EULER, POS, STATE_DIM, TIME
from quadhover.motor_model import ActionSet
from quadhover.sim import reset_state, step as sim_step


OBS_DIM = STATE_DIM
# Layout (identical to the simulation state):
#   [0:3]   position relative to target
#   [3:6]   velocity (inertial frame)
#   [6:9]   Euler angles  (roll, pitch, yaw)
#   [9:12]  Euler-angle rates
#   [12]    elapsed simulation time


def _obs_space() -> spaces.Box:
    return spaces.Box(low=-np.inf, high=np.inf, shape=(OBS_DIM,), dtype=np.float32)


class HoverEnv(gym.Env):
    """Gymnasium environment for quadrotor hover stabilisation.

    Parameters
    ----------
    config : SimConfig, optional
        Timing, discretisation, reset, termination and reward settings.
    params : QuadParams, optional
        Physical constants.
    render_mode : str, optional
        ``"human"`` prints periodic status lines; ``"ansi"`` returns a string.
    render_every : int
        Print a status line every N steps when render_mode="human".
    """

    metadata = {"render_modes": ["human", "ansi"], "render_fps": 100}

    def __init__(
        self,
        config: Optional[SimConfig] = None,
        params: Optional[QuadParams] = None,
        render_mode: Optional[str] = None,
        render_every: int = 100,
    ):
        super().__init__()

        self.cfg = config or default_config()
        self.params = params or default_params()
        self.render_mode = render_mode
        self.render_every = render_every

        self.action_set = ActionSet(self.cfg.action_range)

        # Gymnasium spaces
        self.observation_space = _obs_space()
        self.action_space = spaces.Discrete(len(self.action_set))

        # Internal state (populated in reset)
        self._state: Optional[NDArray[np.float64]] = None
        self._last_action: NDArray[np.float64] = np.zeros(4)
        self._step_count: int = 0
        self._total_reward: float = 0.0
        self._done: bool = False

    @property
    def max_steps(self) -> int:
        return self.cfg.max_steps

    @property
    def state(self) -> NDArray[np.float64]:
        """Copy of the current 13-vector state."""
        assert self._state is not None, "Call reset() before reading state"
        return self._state.copy()

    # ------------------------------------------------------------------
    # reset
    # ------------------------------------------------------------------

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[NDArray[np.float32], Dict[str, Any]]:
        super().reset(seed=seed)

        if options and "state" in options:
            # Explicit start state, e.g. for tests and scripted evaluation
            self._state = np.array(options["state"], dtype=np.float64).reshape(-1)
            if self._state.shape != (STATE_DIM,):
                raise ValueError(
                    f"options['state'] must have {STATE_DIM} components, "
                    f"got {self._state.size}"
                )
        else:
            self._state = reset_state(self.np_random, self.cfg)

        self._last_action = np.zeros(4)
        self._step_count = 0
        self._total_reward = 0.0
        self._done = False

        obs = self._get_obs()
        info = self._info()
        return obs, info

    # ------------------------------------------------------------------
    # step
    # ------------------------------------------------------------------

    def step(
        self, action: int,
    ) -> Tuple[NDArray[np.float32], float, bool, bool, Dict[str, Any]]:
        assert self._state is not None, "Call reset() before step()"
        if self._done:
            logger.warn(
                "step() called after the episode ended; call reset() first. "
                "The simulation keeps integrating from the last state."
            )

        motor_cmd = self.action_set.action(int(action))
        result = sim_step(motor_cmd, self._state, self.cfg.dt, self.params, self.cfg)

        self._state = result.next_state
        self._last_action = motor_cmd
        self._step_count += 1
        self._total_reward += result.reward

        terminated = bool(result.done)
        truncated = False
        term_reason = result.reason

        if not terminated and self._step_count >= self.cfg.max_steps:
            truncated = True
            term_reason = "max_steps"

        self._done = terminated or truncated

        obs = self._get_obs()
        info = self._info()
        info["term_reason"] = term_reason

        if self.render_mode == "human" and (
            self._step_count % self.render_every == 0
            or terminated
            or truncated
        ):
            self._render_human()

        return obs, float(result.reward), terminated, truncated, info

    # ------------------------------------------------------------------
    # render / close
    # ------------------------------------------------------------------

    def render(self) -> Optional[str]:
        if self.render_mode == "ansi":
            return self._render_ansi()
        elif self.render_mode == "human":
            self._render_human()
        return None

    def close(self) -> None:
        pass  # no resources to clean up

    # ==================================================================
    # Internal helpers
    # ==================================================================

    def _get_obs(self) -> NDArray[np.float32]:
        return self._state.astype(np.float32)

    def _info(self) -> Dict[str, Any]:
        s = self._state if self._state is not None else np.zeros(STATE_DIM)
        return {
            "sim_time": float(s[TIME]),
            "step_count": self._step_count,
            "total_reward": self._total_reward,
            "position": s[POS].copy(),
            "euler_deg": np.degrees(s[EULER]),
            "dist_to_target": float(np.linalg.norm(s[POS])),
            "action": self._last_action.copy(),
        }

    def _render_human(self) -> None:
        info = self._info()
        pos = info["position"]
        att = info["euler_deg"]
        print(
            f"[step {info['step_count']:5d}]  "
            f"t={info['sim_time']:6.2f}s  "
            f"pos=({pos[0]:+6.3f}, {pos[1]:+6.3f}, {pos[2]:+6.3f})  "
            f"rpy=({att[0]:+6.1f}, {att[1]:+6.1f}, {att[2]:+6.1f})deg  "
            f"R={info['total_reward']:+8.2f}"
        )

    def _render_ansi(self) -> str:
        info = self._info()
        return (
            f"step={info['step_count']} "
            f"t={info['sim_time']:.2f} "
            f"pos={info['position']} "
            f"dist={info['dist_to_target']:.3f} "
            f"R={info['total_reward']:.2f}"
        )
