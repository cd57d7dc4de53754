"""
3D math utilities for Euler-angle rotations.

Euler convention: [phi, theta, psi] = [roll, pitch, yaw], ZYX order.
Rotation convention: R rotates vectors from body to inertial frame:
    v_inertial = R @ v_body

The Euler-rate kinematics are singular at theta = ±pi/2 (gimbal lock).
No guard is applied here; callers see very large or non-finite values.
"""

import numpy as np
from numpy.typing import NDArray


def body_to_inertial(euler: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Rotation matrix from body frame to inertial frame.

    R = Rz(psi) @ Ry(theta) @ Rx(phi)

    Args:
        euler: Euler angles [phi, theta, psi] in radians, shape (3,)

    Returns:
        Rotation matrix, shape (3, 3)
    """
    phi, theta, psi = euler
    cphi, sphi = np.cos(phi), np.sin(phi)
    cth, sth = np.cos(theta), np.sin(theta)
    cpsi, spsi = np.cos(psi), np.sin(psi)

    R = np.array([
        [cpsi * cth, cpsi * sth * sphi - spsi * cphi, cpsi * sth * cphi + spsi * sphi],
        [spsi * cth, spsi * sth * sphi + cpsi * cphi, spsi * sth * cphi - cpsi * sphi],
        [-sth,       cth * sphi,                      cth * cphi],
    ])
    return R


def inertial_to_body(euler: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Rotation matrix from inertial frame to body frame.

    Orthonormal inverse (transpose) of :func:`body_to_inertial`.

    Args:
        euler: Euler angles [phi, theta, psi] in radians, shape (3,)

    Returns:
        Rotation matrix, shape (3, 3)
    """
    return body_to_inertial(euler).T


def euler_rate_matrix(euler: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Kinematic matrix W mapping Euler rates to body angular velocity.

    omega_body = W(phi, theta) @ [dphi, dtheta, dpsi]

    Args:
        euler: Euler angles [phi, theta, psi] in radians, shape (3,)

    Returns:
        W, shape (3, 3)
    """
    phi, theta, _ = euler
    cphi, sphi = np.cos(phi), np.sin(phi)
    cth, sth = np.cos(theta), np.sin(theta)

    return np.array([
        [1.0, 0.0,   -sth],
        [0.0, cphi,  cth * sphi],
        [0.0, -sphi, cth * cphi],
    ])


def euler_rates_to_body_rates(
    euler: NDArray[np.float64],
    euler_rates: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Convert Euler-angle rates to body-frame angular velocity.

    Args:
        euler: Euler angles [phi, theta, psi], shape (3,)
        euler_rates: [dphi, dtheta, dpsi] [rad/s], shape (3,)

    Returns:
        Body angular velocity [p, q, r] [rad/s], shape (3,)
    """
    return euler_rate_matrix(euler) @ euler_rates


def body_rates_to_euler_rates(
    euler: NDArray[np.float64],
    omega_body: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Convert body-frame angular velocity to Euler-angle rates.

    Applies the closed-form inverse of :func:`euler_rate_matrix`. Divides by
    cos(theta), so the result blows up as pitch approaches ±90°.

    Args:
        euler: Euler angles [phi, theta, psi], shape (3,)
        omega_body: Body angular velocity [rad/s], shape (3,)

    Returns:
        Euler-angle rates [dphi, dtheta, dpsi] [rad/s], shape (3,)
    """
    phi, theta, _ = euler
    cphi, sphi = np.cos(phi), np.sin(phi)
    cth, tth = np.cos(theta), np.tan(theta)

    W_inv = np.array([
        [1.0, sphi * tth,  cphi * tth],
        [0.0, cphi,        -sphi],
        [0.0, sphi / cth,  cphi / cth],
    ])
    return W_inv @ omega_body


# ============================================================================
# Unit tests (run with: python -m quadhover.math3d)
# ============================================================================

if __name__ == "__main__":
    print("Running math3d unit tests...")

    # Test 1: Zero angles -> identity rotation
    R_id = body_to_inertial(np.zeros(3))
    assert np.allclose(R_id, np.eye(3)), "Zero Euler angles should give identity matrix"
    print("  [PASS] body_to_inertial identity")

    # Test 2: Rotation matrix is orthonormal
    E = np.array([0.3, -0.4, 1.2])
    R = body_to_inertial(E)
    assert np.allclose(R @ R.T, np.eye(3)), "R should be orthonormal (R @ R.T = I)"
    assert np.allclose(np.linalg.det(R), 1.0), "det(R) should be 1"
    print("  [PASS] body_to_inertial orthonormality")

    # Test 3: Inverse is transpose
    assert np.allclose(inertial_to_body(E), R.T), "inertial_to_body should be R.T"
    print("  [PASS] inertial_to_body transpose")

    # Test 4: Rate transform round trip
    rates = np.array([0.1, -0.2, 0.3])
    omega = euler_rates_to_body_rates(E, rates)
    assert np.allclose(body_rates_to_euler_rates(E, omega), rates), "Rate round trip failed"
    print("  [PASS] Euler rate round trip")

    print("\nAll math3d tests passed!")
