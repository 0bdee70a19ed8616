"""
Finger Orientation (U/V/W)

Converts between the finger basis (forward, right) and the sequential-axis
angles U (roll about global forward), V (pitch about global right) and
W (yaw about global up). Axes are expressed in the arm base frame.

Composition order is fixed:
    forward = Rw * Rv * FORWARD
    right   = Rw * Rv * Ru * RIGHT
Decomposition peels them off in reverse: W first, then V, then U.
"""

import logging
from typing import Optional, Tuple

import numpy as np
from spatialmath.base import angvec2r

logger = logging.getLogger(__name__)

GLOBAL_FORWARD = np.array([1.0, 0.0, 0.0])
GLOBAL_RIGHT = np.array([0.0, -1.0, 0.0])
GLOBAL_UP = np.array([0.0, 0.0, 1.0])


def rotate(vector: np.ndarray, axis: np.ndarray, angle_deg: float) -> np.ndarray:
    """Rotate vector about axis by angle_deg (right hand rule)."""
    return angvec2r(float(angle_deg), axis, unit='deg') @ np.asarray(vector, dtype=float)


def signed_angle(a: np.ndarray, b: np.ndarray, axis: np.ndarray) -> float:
    """Angle in degrees from a to b, measured about axis, in (-180, 180]."""
    return float(np.degrees(np.arctan2(np.dot(np.cross(a, b), axis), np.dot(a, b))))


def compose(u: float, v: float, w: float) -> Tuple[np.ndarray, np.ndarray]:
    """Build (forward, right) from U/V/W angles in degrees."""
    forward = rotate(rotate(GLOBAL_FORWARD, GLOBAL_RIGHT, v), GLOBAL_UP, w)
    right = rotate(GLOBAL_RIGHT, GLOBAL_FORWARD, u)
    right = rotate(rotate(right, GLOBAL_RIGHT, v), GLOBAL_UP, w)
    return forward, right


def _axis_angle(reference: np.ndarray, vector: np.ndarray, axis: np.ndarray,
                epsilon: float) -> Optional[float]:
    """Signed angle of vector's projection onto the plane normal to axis, None if degenerate."""
    projected = vector - np.dot(vector, axis) * axis
    if np.linalg.norm(projected) < epsilon:
        return None
    return signed_angle(reference, projected, axis)


def decompose(forward: np.ndarray, right: np.ndarray,
              previous: Tuple[float, float, float] = (0.0, 0.0, 0.0),
              epsilon: float = 1e-5) -> Tuple[float, float, float]:
    """
    Split a finger basis into (U, V, W) degrees.

    When forward is within epsilon of the vertical (gimbal case) yaw is
    undefined; the previous W is kept and only V/U are solved. The same
    applies to V if the pitched vector degenerates.

    Args:
        forward: Finger forward unit vector
        right: Finger right unit vector
        previous: (U, V, W) of the previous keyframe, used as the gimbal fallback
        epsilon: Degeneracy threshold

    Returns:
        (U, V, W) such that compose(U, V, W) reproduces (forward, right)
    """
    _, prev_v, prev_w = previous

    w = _axis_angle(GLOBAL_FORWARD, forward, GLOBAL_UP, epsilon)
    if w is None:
        logger.debug(f"[Orientation] Gimbal case, keeping W={prev_w:.3f}")
        w = prev_w
    f1 = rotate(forward, GLOBAL_UP, -w)
    r1 = rotate(right, GLOBAL_UP, -w)

    v = _axis_angle(GLOBAL_FORWARD, f1, GLOBAL_RIGHT, epsilon)
    if v is None:
        v = prev_v
    r2 = rotate(r1, GLOBAL_RIGHT, -v)

    u = _axis_angle(GLOBAL_RIGHT, r2, GLOBAL_FORWARD, epsilon)
    return (0.0 if u is None else u), v, w
