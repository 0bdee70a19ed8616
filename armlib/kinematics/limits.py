"""
Limit Checker

Per-joint range validation and workspace (reach/floor/ceiling) checks.
Both checks return (ok, error) so callers can log the specific joint and
bound and carry on; nothing here raises for an out-of-range pose.

Author: Sixi Team
Date: 2025-02-04
"""

import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np

from .dimensions import ArmDimensions
from .errors import KinematicsError, LimitViolation, Unreachable


# Numeric slack so angles solved exactly onto a bound still pass
LIMIT_TOLERANCE_DEG = 1e-6


class LimitChecker:
    """
    Validates joint angles and finger placement against an ArmDimensions.

    Bounds are inclusive: an angle on its min or max (within
    LIMIT_TOLERANCE_DEG) passes. Non-finite angles and positions always fail.
    """

    def __init__(self, dimensions: ArmDimensions, logger: Optional[logging.Logger] = None):
        self.dimensions = dimensions
        self.logger = logger or logging.getLogger(__name__)

    def check_angle_limits(self, angles: Sequence[float]) -> Tuple[bool, Optional[LimitViolation]]:
        """
        Check every joint against its range, stopping at the first violation.

        Args:
            angles: Joint angles in degrees, one per joint

        Returns:
            (True, None) if all joints are in range (or limits are disabled),
            otherwise (False, LimitViolation) for the first offending joint
        """
        if not self.dimensions.enforce_joint_limits:
            return True, None

        for joint, (angle, (lo, hi)) in enumerate(zip(angles, self.dimensions.joint_limits)):
            if not math.isfinite(angle):
                bound, limit = ("min", lo) if angle < 0 else ("max", hi)
                violation = LimitViolation(joint, bound, angle, limit,
                                           f"Joint {joint} angle {angle} is not finite")
            elif angle < lo - LIMIT_TOLERANCE_DEG:
                violation = LimitViolation(joint, "min", angle, lo)
            elif angle > hi + LIMIT_TOLERANCE_DEG:
                violation = LimitViolation(joint, "max", angle, hi)
            else:
                continue
            self.logger.debug(f"[LimitChecker] {violation}")
            return False, violation

        return True, None

    def check_workspace(self, finger: np.ndarray, shoulder: np.ndarray) -> Tuple[bool, Optional[KinematicsError]]:
        """
        Check floor, ceiling and reach of a finger position.

        Args:
            finger: Finger position in the arm base frame
            shoulder: Shoulder position in the arm base frame

        Returns:
            (True, None) or (False, Unreachable) describing the failed check
        """
        dims = self.dimensions
        if not np.all(np.isfinite(finger)):
            return False, Unreachable(f"Finger position {np.asarray(finger).tolist()} is not finite")
        z = float(finger[2])
        if dims.floor is not None and z < dims.floor:
            return False, Unreachable(f"Finger height {z:.3f} below floor {dims.floor:.3f}")
        if dims.ceiling is not None and z > dims.ceiling:
            return False, Unreachable(f"Finger height {z:.3f} above ceiling {dims.ceiling:.3f}")

        reach = float(np.linalg.norm(np.asarray(finger) - np.asarray(shoulder)))
        if not math.isfinite(reach):
            return False, Unreachable(f"Reach {reach} is not finite")
        if reach > dims.max_reach:
            return False, Unreachable(f"Reach {reach:.3f} exceeds max {dims.max_reach:.3f}")
        if reach < dims.min_reach:
            return False, Unreachable(f"Reach {reach:.3f} below min {dims.min_reach:.3f}")

        return True, None
