"""
Simple-Arm Solver (Arm3)

Three joints: base yaw (J0), shoulder pitch (J1) and elbow pitch (J2).
The finger always points radially outward along the arm plane, so only
position is solvable; orientation follows from the position.

Author: Sixi Team
Date: 2025-02-05
"""

import logging
import math
from dataclasses import replace
from typing import Optional, Sequence, Tuple

import numpy as np

from .dimensions import ARM3_DIMENSIONS, SimpleArmDimensions
from .errors import Singular, Unreachable
from .keyframe import IDENTITY_BASE, JointFrame, Keyframe, as_vector, unit
from .orientation import GLOBAL_UP, decompose
from .solver import ArmSolver, IKResult, ik_failure

logger = logging.getLogger(__name__)

# Finger right of the simple arm always points down
FINGER_RIGHT = np.array([0.0, 0.0, -1.0])


class SimpleArmSolver(ArmSolver):
    """Analytic solver for the 3-joint arm."""

    def __init__(self, dimensions: SimpleArmDimensions = ARM3_DIMENSIONS, logger: Optional[logging.Logger] = None):
        if not isinstance(dimensions, SimpleArmDimensions):
            raise TypeError(f"SimpleArmSolver needs SimpleArmDimensions, got {type(dimensions).__name__}")
        super().__init__(dimensions, logger)

    def _shoulder(self, arm_plane: np.ndarray) -> np.ndarray:
        dims = self.dimensions
        return arm_plane * dims.base_to_shoulder_x + GLOBAL_UP * dims.base_to_shoulder_z

    def forward_kinematics(self, angles: Sequence[float], previous: Optional[Keyframe] = None) -> Keyframe:
        """Joint angles (degrees) to a keyframe. Forward is the arm-plane direction."""
        dims = self.dimensions
        angles = self._check_joint_count(angles)
        a0, a1, a2 = (math.radians(a) for a in angles)

        arm_plane = np.array([math.cos(a0), math.sin(a0), 0.0])
        shoulder = self._shoulder(arm_plane)
        elbow = shoulder + (arm_plane * math.cos(-a1) + GLOBAL_UP * math.sin(-a1)) * dims.shoulder_to_elbow
        wrist = elbow - (arm_plane * math.cos(a2) + GLOBAL_UP * math.sin(a2)) * dims.elbow_to_wrist
        finger = wrist + arm_plane * dims.wrist_to_finger

        prev_uvw = previous.orientation if previous is not None else (0.0, 0.0, 0.0)
        u, v, w = decompose(arm_plane, FINGER_RIGHT, prev_uvw, dims.epsilon)

        return Keyframe(
            angles=angles,
            shoulder=as_vector(shoulder),
            elbow=as_vector(elbow),
            wrist=as_vector(wrist),
            finger=as_vector(finger),
            forward=as_vector(arm_plane),
            right=as_vector(FINGER_RIGHT),
            u=u, v=v, w=w,
            base=previous.base if previous is not None else IDENTITY_BASE,
            frames={
                'arm_plane': JointFrame(as_vector(shoulder), as_vector(arm_plane),
                                        as_vector(np.cross(GLOBAL_UP, arm_plane)), as_vector(GLOBAL_UP)),
            },
        )

    def inverse_kinematics(self, finger: Sequence[float], forward: Sequence[float], right: Sequence[float],
                           previous: Optional[Keyframe] = None,
                           orientation: Optional[Tuple[float, float, float]] = None) -> IKResult:
        """
        Finger position to joint angles.

        The wrist is placed at finger - forward * tool length; right is
        ignored. Pass a radial forward (see reachable_orientation) for the
        result to land exactly on finger.

        Returns:
            IKResult; the keyframe is rebuilt through FK so positions and
            angles always agree
        """
        dims = self.dimensions
        eps = dims.epsilon
        finger = np.asarray(finger, dtype=float)
        forward = np.asarray(forward, dtype=float)
        if np.linalg.norm(forward) < eps:
            return ik_failure(Singular("Finger forward vector is zero"))

        wrist = finger - unit(forward) * dims.wrist_to_finger
        horizontal = np.array([wrist[0], wrist[1], 0.0])
        if np.linalg.norm(horizontal) < eps:
            return ik_failure(Singular("Wrist is on the base axis, azimuth undefined"))
        arm_plane = unit(horizontal)
        shoulder = self._shoulder(arm_plane)

        # Circle-circle intersection in the arm plane
        r0 = dims.shoulder_to_elbow
        r1 = dims.elbow_to_wrist
        es = wrist - shoulder
        d = float(np.linalg.norm(es))
        if d > r0 + r1:
            return ik_failure(Unreachable(f"Wrist distance {d:.3f} exceeds reach {r0 + r1:.3f}"))
        if d < dims.min_reach:
            return ik_failure(Unreachable(f"Wrist distance {d:.3f} below min reach {dims.min_reach:.3f}"))
        a = (r0 * r0 - r1 * r1 + d * d) / (2.0 * d)
        h2 = r0 * r0 - a * a
        if h2 < 0:
            return ik_failure(Unreachable(f"No elbow position for wrist distance {d:.3f}"))
        mid = shoulder + es * (a / d)

        # Elbow always on the upper side of the shoulder-wrist line
        normal = np.array([-arm_plane[1], arm_plane[0], 0.0])
        elbow = mid - unit(np.cross(normal, es)) * math.sqrt(h2)

        bicep = elbow - shoulder
        ulna = elbow - wrist
        angle0 = math.degrees(math.atan2(wrist[1], wrist[0]))
        angle1 = -math.degrees(math.atan2(bicep[2], np.dot(bicep, arm_plane)))
        angle2 = math.degrees(math.atan2(ulna[2], np.dot(ulna, arm_plane)))

        keyframe = self.forward_kinematics((angle0, angle1, angle2), previous)
        if orientation is not None:
            u, v, w = orientation
            keyframe = replace(keyframe, u=float(u), v=float(v), w=float(w))
        return IKResult(True, keyframe, None)

    def reachable_orientation(self, finger: np.ndarray, forward: np.ndarray,
                              right: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Radial heading through finger with right pointing down."""
        horizontal = np.array([finger[0], finger[1], 0.0])
        if np.linalg.norm(horizontal) < self.dimensions.epsilon:
            return forward, right
        return unit(horizontal), FINGER_RIGHT.copy()
