"""
Keyframe and Base Transform

A Keyframe is one complete, immutable snapshot of the arm: joint angles,
joint positions in the arm base frame, the finger orientation basis and its
U/V/W decomposition. The BaseTransform places the arm base in the world.

Solvers never mutate a keyframe; they return a new one, so a failed solve
cannot leave a half-written state behind.

Author: Sixi Team
Date: 2025-02-03
"""

from collections import namedtuple
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
from spatialmath import SE3

# Origin plus unit axes of an intermediate joint frame (for visualization)
JointFrame = namedtuple('JointFrame', ['origin', 'x', 'y', 'z'])


def as_vector(values: Sequence[float]) -> np.ndarray:
    """Copy values into a read-only float 3-vector."""
    v = np.array(values, dtype=float).reshape(3)
    v.flags.writeable = False
    return v


def unit(v: np.ndarray) -> np.ndarray:
    return v / np.linalg.norm(v)


# ============================================================================
# Base Transform
# ============================================================================

@dataclass(frozen=True, eq=False)
class BaseTransform:
    """Pose of the arm base in the world. Pan and tilt are in degrees."""
    anchor: np.ndarray
    pan: float
    tilt: float
    forward: np.ndarray
    right: np.ndarray
    up: np.ndarray

    @classmethod
    def from_pan_tilt(cls, pan: float = 0.0, tilt: float = 0.0,
                      anchor: Sequence[float] = (0.0, 0.0, 0.0)) -> 'BaseTransform':
        """
        Build the base basis from pan (about world Z) and tilt (above horizon).

        Raises:
            ValueError: If the tilt points forward straight up or down
        """
        p = np.radians(pan)
        t = np.radians(tilt)
        forward = unit(np.array([np.cos(p) * np.cos(t), np.sin(p) * np.cos(t), np.sin(t)]))
        right = np.cross(forward, [0.0, 0.0, 1.0])
        if np.linalg.norm(right) < 1e-9:
            raise ValueError(f"Base tilt {tilt} leaves no horizontal reference")
        right = unit(right)
        up = unit(np.cross(right, forward))
        return cls(as_vector(anchor), float(pan), float(tilt),
                   as_vector(forward), as_vector(right), as_vector(up))

    def with_anchor(self, anchor: Sequence[float]) -> 'BaseTransform':
        return replace(self, anchor=as_vector(anchor))

    def to_se3(self) -> SE3:
        """Base-to-world transform. Local +Y maps to world -right."""
        R = np.column_stack([self.forward, -self.right, self.up])
        return SE3.Rt(R, self.anchor, check=False)

    def to_world(self, local: Sequence[float]) -> np.ndarray:
        """world = anchor + forward*x - right*y + up*z"""
        return (self.to_se3().A @ np.r_[np.asarray(local, dtype=float), 1.0])[:3]


IDENTITY_BASE = BaseTransform.from_pan_tilt()


# ============================================================================
# Keyframe
# ============================================================================

@dataclass(frozen=True, eq=False)
class Keyframe:
    """
    Snapshot of joint angles plus derived Cartesian state.

    Positions are in the arm base frame. `ulna` is None for arms without
    an ulna joint. `frames` holds intermediate joint frames by name and is
    informational only.
    """
    angles: Tuple[float, ...]
    shoulder: np.ndarray
    elbow: np.ndarray
    wrist: np.ndarray
    finger: np.ndarray
    forward: np.ndarray
    right: np.ndarray
    u: float = 0.0
    v: float = 0.0
    w: float = 0.0
    ulna: Optional[np.ndarray] = None
    base: BaseTransform = IDENTITY_BASE
    frames: Dict[str, JointFrame] = field(default_factory=dict)

    @property
    def up(self) -> np.ndarray:
        return np.cross(self.forward, self.right)

    @property
    def orientation(self) -> Tuple[float, float, float]:
        return (self.u, self.v, self.w)

    def with_base(self, base: BaseTransform) -> 'Keyframe':
        return replace(self, base=base)

    def world_finger(self) -> np.ndarray:
        return self.base.to_world(self.finger)

    def is_close(self, other: 'Keyframe', tol: float = 1e-6) -> bool:
        """Angles, finger position and basis agree within tol."""
        if len(self.angles) != len(other.angles):
            return False
        return (np.allclose(self.angles, other.angles, atol=tol)
                and np.allclose(self.finger, other.finger, atol=tol)
                and np.allclose(self.forward, other.forward, atol=tol)
                and np.allclose(self.right, other.right, atol=tol))

    def summary(self) -> str:
        angles = ", ".join(f"{a:.3f}" for a in self.angles)
        x, y, z = self.finger
        return f"angles=[{angles}] finger=({x:.3f}, {y:.3f}, {z:.3f}) uvw=({self.u:.2f}, {self.v:.2f}, {self.w:.2f})"
