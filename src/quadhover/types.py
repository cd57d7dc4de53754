"""
Core data types for the hover simulation.

The simulation state is a flat 13-vector with fixed layout:

    [x, y, z,  dx, dy, dz,  phi, theta, psi,  dphi, dtheta, dpsi,  t]

Positions and velocities are in the inertial frame, angles in radians.
``State`` is a named view over that vector for code that prefers fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray


STATE_DIM = 13

# Layout of the state vector
POS = slice(0, 3)
VEL = slice(3, 6)
EULER = slice(6, 9)
EULER_RATES = slice(9, 12)
TIME = 12


def as_state_vector(x) -> NDArray[np.float64]:
    """Return ``x`` as a float64 copy, checking the 13-vector layout."""
    arr = np.array(x, dtype=np.float64).reshape(-1)
    if arr.shape != (STATE_DIM,):
        raise ValueError(f"state must have {STATE_DIM} components, got {arr.size}")
    return arr


@dataclass
class State:
    """
    Named view of the 13-component state.

    Attributes:
        p: Position in inertial frame [m], shape (3,)
        v: Velocity in inertial frame [m/s], shape (3,)
        euler: Roll, pitch, yaw [rad], shape (3,)
        euler_rates: Euler-angle rates [rad/s], shape (3,)
        t: Elapsed simulation time [s]
    """

    p: NDArray[np.float64]  # (3,)
    v: NDArray[np.float64]  # (3,)
    euler: NDArray[np.float64]  # (3,) [phi, theta, psi]
    euler_rates: NDArray[np.float64]  # (3,)
    t: float = 0.0

    def copy(self) -> "State":
        """Create a deep copy of this state."""
        return State(
            p=self.p.copy(),
            v=self.v.copy(),
            euler=self.euler.copy(),
            euler_rates=self.euler_rates.copy(),
            t=self.t,
        )

    def as_vector(self) -> NDArray[np.float64]:
        """Pack into the flat 13-vector."""
        return np.concatenate([self.p, self.v, self.euler, self.euler_rates, [self.t]])

    @staticmethod
    def from_vector(x) -> "State":
        """Unpack a flat 13-vector (the result does not alias ``x``)."""
        arr = as_state_vector(x)
        return State(
            p=arr[POS].copy(),
            v=arr[VEL].copy(),
            euler=arr[EULER].copy(),
            euler_rates=arr[EULER_RATES].copy(),
            t=float(arr[TIME]),
        )

    @staticmethod
    def zeros() -> "State":
        """State at the target with level attitude, at rest, t = 0."""
        return State(
            p=np.zeros(3),
            v=np.zeros(3),
            euler=np.zeros(3),
            euler_rates=np.zeros(3),
            t=0.0,
        )


@dataclass
class StepResult:
    """
    Outcome of a single simulation step.

    Attributes:
        next_state: State after the step, shape (13,). Equals the pre-step
            state when the step diverged.
        reward: Scalar reward
        done: Terminal flag
        reason: Why the episode ended ("" while running)
        motor_speeds: Commanded motor speeds used for the step, shape (4,)
    """

    next_state: NDArray[np.float64]
    reward: float
    done: bool
    reason: str = ""
    motor_speeds: NDArray[np.float64] = field(default_factory=lambda: np.zeros(4))

    def __iter__(self):
        # Allows ``next_state, reward, done = step(...)``
        return iter((self.next_state, self.reward, self.done))


@dataclass
class SimLog:
    """
    Episode log storing time histories of all relevant quantities.

    Arrays have shape (N,) or (N, k) where N is the number of steps taken.
    Row i holds the state *before* step i together with the action applied
    and the reward received for it.
    """

    t: NDArray[np.float64]  # (N,)
    state: NDArray[np.float64]  # (N, 13)
    action: NDArray[np.float64]  # (N, 4)
    motor_speeds: NDArray[np.float64]  # (N, 4)
    reward: NDArray[np.float64]  # (N,)
    final_state: NDArray[np.float64] = field(default_factory=lambda: np.zeros(STATE_DIM))
    term_reason: str = ""

    _idx: int = field(default=0, repr=False)

    @staticmethod
    def allocate(n_steps: int) -> "SimLog":
        """Pre-allocate arrays for n_steps steps."""
        return SimLog(
            t=np.zeros(n_steps),
            state=np.zeros((n_steps, STATE_DIM)),
            action=np.zeros((n_steps, 4)),
            motor_speeds=np.zeros((n_steps, 4)),
            reward=np.zeros(n_steps),
            _idx=0,
        )

    def __len__(self) -> int:
        return self._idx

    def record(
        self,
        state: NDArray[np.float64],
        action: NDArray[np.float64],
        result: StepResult,
    ) -> None:
        """Record one step of data."""
        i = self._idx
        self.t[i] = state[TIME]
        self.state[i] = state
        self.action[i] = action
        self.motor_speeds[i] = result.motor_speeds
        self.reward[i] = result.reward
        self.final_state = result.next_state.copy()
        if result.done:
            self.term_reason = result.reason
        self._idx += 1

    def trim(self) -> "SimLog":
        """Trim arrays to actual recorded length."""
        n = self._idx
        return SimLog(
            t=self.t[:n],
            state=self.state[:n],
            action=self.action[:n],
            motor_speeds=self.motor_speeds[:n],
            reward=self.reward[:n],
            final_state=self.final_state,
            term_reason=self.term_reason,
            _idx=n,
        )
