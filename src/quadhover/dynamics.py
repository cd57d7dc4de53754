"""
Quadrotor rigid body dynamics.

Implements the continuous-time equations of motion in Euler-angle form.

Rotor layout (body frame, "+" configuration):
    motor 1 on +y, motor 2 on -x, motor 3 on -y, motor 4 on +x.
Motors 1/3 and 2/4 spin in opposite directions, giving the reactive
yaw torque b * (s1 - s2 + s3 - s4).
"""

import numpy as np
from numpy.typing import NDArray

from quadhover.params import QuadParams
from quadhover.types import EULER, EULER_RATES, STATE_DIM, VEL
from quadhover.math3d import (
    body_rates_to_euler_rates,
    body_to_inertial,
    euler_rates_to_body_rates,
    inertial_to_body,
)


def total_thrust(motor_speeds: NDArray[np.float64], params: QuadParams) -> float:
    """Total thrust along body z [N]."""
    return float(params.k_thrust * np.sum(motor_speeds))


def body_torques(motor_speeds: NDArray[np.float64], params: QuadParams) -> NDArray[np.float64]:
    """
    Body-frame torques from the four motor speeds.

    Roll and pitch come from differences across opposite rotor pairs,
    yaw from the alternating sum of reactive drag torques.

    Args:
        motor_speeds: Motor speeds, shape (4,)
        params: Physical constants

    Returns:
        Torque [tau_phi, tau_theta, tau_psi] [N·m], shape (3,)
    """
    s1, s2, s3, s4 = motor_speeds
    L = params.arm_length
    k = params.k_thrust
    return np.array([
        L * k * (s1 - s3),
        L * k * (s2 - s4),
        params.b_drag * (s1 - s2 + s3 - s4),
    ])


def drag_force_body(v_body: NDArray[np.float64], params: QuadParams) -> NDArray[np.float64]:
    """
    Quadratic aerodynamic drag in body frame [N].

    Squares each velocity component, so the sign of motion is discarded
    and the force always points along the negative body axes.
    """
    return -params.drag_coeff * 0.5 * params.rho * params.ref_area * v_body ** 2


def compute_accelerations(
    state: NDArray[np.float64],
    motor_speeds: NDArray[np.float64],
    params: QuadParams,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Compute linear and Euler-angle accelerations.

    Dynamics:
        a = (R @ [0, 0, T] + R @ F_drag_body + [0, 0, -m g]) / m
        w_dot = J^{-1} (tau - w × (J @ w))
        euler_ddot ≈ W^{-1}(euler) @ w_dot

    The last line reuses the rate transform on the angular acceleration,
    dropping the dW/dt term. It is accurate while attitude changes slowly
    within a step.

    Args:
        state: Current state, shape (13,)
        motor_speeds: Motor speeds, shape (4,)
        params: Physical constants

    Returns:
        Tuple of (linear acceleration in inertial frame [m/s²],
        Euler-angle acceleration [rad/s²]), each shape (3,)
    """
    v = state[VEL]
    euler = state[EULER]
    euler_rates = state[EULER_RATES]

    T = total_thrust(motor_speeds, params)
    tau = body_torques(motor_speeds, params)

    # Body angular velocity from Euler rates
    w = euler_rates_to_body_rates(euler, euler_rates)

    R = body_to_inertial(euler)
    v_body = inertial_to_body(euler) @ v

    thrust_body = np.array([0.0, 0.0, T])
    drag_body = drag_force_body(v_body, params)
    weight = np.array([0.0, 0.0, -params.m * params.g])

    linear_accel = (R @ thrust_body + R @ drag_body + weight) / params.m

    # Euler's rotation equation with diagonal inertia
    J = params.inertia
    gyroscopic = np.cross(w, J @ w)
    w_dot = params.inertia_inv @ (tau - gyroscopic)

    euler_accel = body_rates_to_euler_rates(euler, w_dot)

    return linear_accel, euler_accel


def state_derivative(
    state: NDArray[np.float64],
    motor_speeds: NDArray[np.float64],
    params: QuadParams,
) -> NDArray[np.float64]:
    """
    Time derivative of the full 13-vector.

    Layout matches the state: [v, a, euler_rates, euler_accel, 1].
    The trailing 1 advances simulation time.
    """
    linear_accel, euler_accel = compute_accelerations(state, motor_speeds, params)
    x_dot = np.empty(STATE_DIM)
    x_dot[0:3] = state[VEL]
    x_dot[3:6] = linear_accel
    x_dot[6:9] = state[EULER_RATES]
    x_dot[9:12] = euler_accel
    x_dot[12] = 1.0
    return x_dot


if __name__ == "__main__":
    """Quick tests for dynamics module."""
    print("Running dynamics tests...")

    params = QuadParams()
    state = np.zeros(STATE_DIM)

    # Test 1: Hover equilibrium
    speeds = np.full(4, params.hover_thrust_per_motor / params.k_thrust)
    a, euler_accel = compute_accelerations(state, speeds, params)
    assert np.allclose(a, 0.0, atol=1e-10), f"Hover accel should be zero, got {a}"
    assert np.allclose(euler_accel, 0.0, atol=1e-10), f"Hover euler accel should be zero, got {euler_accel}"
    print("  [PASS] Hover equilibrium")

    # Test 2: Free fall (motors off)
    a, _ = compute_accelerations(state, np.zeros(4), params)
    assert np.allclose(a, [0, 0, -params.g], atol=1e-10), "Zero thrust should give free fall"
    print("  [PASS] Free fall")

    # Test 3: Roll torque sign
    speeds_roll = speeds.copy()
    speeds_roll[0] *= 1.1
    _, euler_accel = compute_accelerations(state, speeds_roll, params)
    assert euler_accel[0] > 0, "Faster motor 1 should roll positive"
    print("  [PASS] Roll torque sign")

    print("\nAll dynamics tests passed!")
