"""
Quadrotor physical constants and simulation settings.

Default physical values are for a ~470g hobby quadrotor.
Both containers are frozen: they are built once per run and shared
read-only between environments.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class QuadParams:
    """
    Physical constants for the quadrotor.

    Physical Parameters:
        m: Mass [kg]
        g: Gravitational acceleration [m/s²]
        rho: Air density [kg/m³]
        inertia_diag: Principal moments of inertia (Ixx, Iyy, Izz) [kg·m²]
        arm_length: Distance from centre to each rotor [m]

    Rotor Constants:
        k_thrust: Thrust proportionality constant
        b_drag: Reactive (yaw) drag-torque constant

    Aerodynamic Drag:
        drag_coeff: Quadratic drag coefficient Cd
        ref_area: Drag reference area [m²]

    Thrust Limits:
        n_motors: Number of rotors
        thrust_margin: Fractional slack around per-motor hover thrust.
            min/max per-motor thrust are (1 -/+ margin) * m*g/n_motors.
    """

    m: float = 0.468
    g: float = 9.81
    rho: float = 1.225
    inertia_diag: Tuple[float, float, float] = (4.856e-3, 4.856e-3, 8.801e-3)
    arm_length: float = 0.225

    k_thrust: float = 2.980e-6
    b_drag: float = 1.140e-7

    drag_coeff: float = 1.0
    ref_area: float = 0.011

    n_motors: int = 4
    thrust_margin: float = 0.2

    def __post_init__(self) -> None:
        for name in ("m", "g"):
            if not (math.isfinite(getattr(self, name)) and getattr(self, name) > 0):
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("rho", "arm_length", "b_drag", "drag_coeff", "ref_area"):
            if not (math.isfinite(getattr(self, name)) and getattr(self, name) >= 0):
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if len(self.inertia_diag) != 3 or min(self.inertia_diag) <= 0:
            raise ValueError(
                f"inertia_diag must hold 3 positive values, got {self.inertia_diag}"
            )
        if self.k_thrust <= 0:
            raise ValueError(f"k_thrust must be positive, got {self.k_thrust}")
        if self.n_motors != 4:
            raise ValueError(f"only quadrotors are supported, got n_motors={self.n_motors}")
        if not 0.0 <= self.thrust_margin < 1.0:
            raise ValueError(
                f"thrust_margin must lie in [0, 1), got {self.thrust_margin}"
            )
        # Normalise sequences to a tuple so the instance stays hashable
        object.__setattr__(self, "inertia_diag", tuple(float(v) for v in self.inertia_diag))

    @property
    def inertia(self) -> NDArray[np.float64]:
        """Diagonal inertia tensor, shape (3, 3)."""
        return np.diag(self.inertia_diag)

    @property
    def inertia_inv(self) -> NDArray[np.float64]:
        """Inverse inertia tensor, shape (3, 3)."""
        return np.diag([1.0 / v for v in self.inertia_diag])

    @property
    def hover_thrust(self) -> float:
        """Total thrust required for hover [N]."""
        return self.m * self.g

    @property
    def hover_thrust_per_motor(self) -> float:
        return self.hover_thrust / self.n_motors

    @property
    def min_thrust(self) -> float:
        """Minimum per-motor thrust [N]."""
        return (1.0 - self.thrust_margin) * self.hover_thrust_per_motor

    @property
    def max_thrust(self) -> float:
        """Maximum per-motor thrust [N]."""
        return (1.0 + self.thrust_margin) * self.hover_thrust_per_motor


@dataclass(frozen=True)
class SimConfig:
    """
    Simulation, reset and reward settings.

    Timing:
        dt: Fixed integration step [s]
        sim_end: Episode horizon [s]; max_steps = ceil(sim_end / dt)

    Action Discretisation:
        action_range: Number of levels per motor axis (>= 2).
            The action set has action_range**4 entries.

    Reset Randomisation:
        initial_radius: Distance of the spawn point from the target [m]
        initial_deviation: Bound on initial Euler rates [deg/s]

    Termination:
        max_displacement: Position-norm limit [m]
        max_tilt_deg: Roll/pitch magnitude limit [deg]
        max_yaw_deg: Yaw magnitude limit [deg]

    Reward:
        k_spread: Weight on motor-command spread (max - min)
        crash_penalty: Added (negatively) on any terminal step
    """

    dt: float = 0.01
    sim_end: float = 10.0
    action_range: int = 3

    initial_radius: float = 0.0
    initial_deviation: float = 0.0

    max_displacement: float = 3.0
    max_tilt_deg: float = 80.0
    max_yaw_deg: float = 170.0

    k_spread: float = 0.1
    crash_penalty: float = 50.0

    def __post_init__(self) -> None:
        if int(self.action_range) != self.action_range or self.action_range < 2:
            raise ValueError(
                f"action_range must be an integer >= 2, got {self.action_range}"
            )
        if not (math.isfinite(self.dt) and self.dt > 0):
            raise ValueError(f"dt must be positive and finite, got {self.dt}")
        if not (math.isfinite(self.sim_end) and self.sim_end > 0):
            raise ValueError(f"sim_end must be positive and finite, got {self.sim_end}")
        if self.initial_radius < 0:
            raise ValueError(f"initial_radius must be >= 0, got {self.initial_radius}")
        if self.initial_deviation < 0:
            raise ValueError(
                f"initial_deviation must be >= 0, got {self.initial_deviation}"
            )
        for name in ("max_displacement", "max_tilt_deg", "max_yaw_deg"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        object.__setattr__(self, "action_range", int(self.action_range))

    @property
    def max_steps(self) -> int:
        """Episode length in steps."""
        # Round first so 10.0 / 0.01 does not become 1001 through float noise
        return int(math.ceil(round(self.sim_end / self.dt, 9)))

    @property
    def n_actions(self) -> int:
        return self.action_range ** 4

    @property
    def max_tilt(self) -> float:
        """Roll/pitch limit [rad]."""
        return float(np.deg2rad(self.max_tilt_deg))

    @property
    def max_yaw(self) -> float:
        """Yaw limit [rad]."""
        return float(np.deg2rad(self.max_yaw_deg))


def default_params() -> QuadParams:
    """Create default physical constants."""
    return QuadParams()


def default_config() -> SimConfig:
    """Create default simulation settings (spawn exactly at the target)."""
    return SimConfig()


if __name__ == "__main__":
    # Quick sanity check
    p = default_params()
    c = default_config()
    print("Default Parameters:")
    print(f"  Mass: {p.m} kg")
    print(f"  Inertia diagonal: {p.inertia_diag}")
    print(f"  Hover thrust: {p.hover_thrust:.3f} N")
    print(f"  Per-motor thrust limits: [{p.min_thrust:.3f}, {p.max_thrust:.3f}] N")
    print("Default Config:")
    print(f"  dt: {c.dt} s, horizon: {c.sim_end} s, max steps: {c.max_steps}")
    print(f"  Action set size: {c.n_actions}")
