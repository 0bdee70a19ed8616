"""
Solver Base

Shared plumbing for the analytic arm solvers: the IKResult value, angle
canonicalization helpers, home pose construction and the move_permitted
check (IK success, workspace, angle limits).

Author: Sixi Team
Date: 2025-02-04
"""

import logging
from collections import namedtuple
from typing import Optional, Sequence, Tuple

import numpy as np

from .dimensions import ArmDimensions
from .errors import KinematicsError
from .keyframe import IDENTITY_BASE, BaseTransform, Keyframe
from .limits import LimitChecker

# success: bool, keyframe: Keyframe or None, error: KinematicsError or None
IKResult = namedtuple('IKResult', ['success', 'keyframe', 'error'])


def ik_failure(error: KinematicsError) -> IKResult:
    return IKResult(False, None, error)


def wrap_360(angle: float) -> float:
    """Canonical [0, 360) form of an angle in degrees."""
    return float(angle) % 360.0


def unwrap_toward(angle: float, reference: float) -> float:
    """Equivalent of angle (mod 360) nearest to reference, in [reference-180, reference+180)."""
    return reference + ((wrap_360(angle) - reference + 180.0) % 360.0 - 180.0)


class ArmSolver:
    """
    Base class for closed-form FK/IK solvers.

    Subclasses implement forward_kinematics and inverse_kinematics.
    FK always succeeds; IK returns an IKResult and never raises for
    geometric failures.
    """

    def __init__(self, dimensions: ArmDimensions, logger: Optional[logging.Logger] = None):
        self.dimensions = dimensions
        self.logger = logger or logging.getLogger(__name__)
        self.limits = LimitChecker(dimensions, self.logger)

    @property
    def joint_count(self) -> int:
        return self.dimensions.joint_count

    def forward_kinematics(self, angles: Sequence[float], previous: Optional[Keyframe] = None) -> Keyframe:
        raise NotImplementedError

    def inverse_kinematics(self, finger: Sequence[float], forward: Sequence[float], right: Sequence[float],
                           previous: Optional[Keyframe] = None,
                           orientation: Optional[Tuple[float, float, float]] = None) -> IKResult:
        raise NotImplementedError

    def reachable_orientation(self, finger: np.ndarray, forward: np.ndarray,
                              right: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Closest finger basis this arm can hold at finger. Full 6-DOF arms return the input."""
        return forward, right

    def _check_joint_count(self, angles: Sequence[float]) -> Tuple[float, ...]:
        if len(angles) != self.joint_count:
            raise ValueError(f"{self.dimensions.name} expects {self.joint_count} joint angles, got {len(angles)}")
        return tuple(float(a) for a in angles)

    # ========================================================================
    # Validation
    # ========================================================================

    def home_keyframe(self, base: BaseTransform = IDENTITY_BASE) -> Keyframe:
        """FK of the configured home angles."""
        return self.forward_kinematics(self.dimensions.home_angles).with_base(base)

    def check_angle_limits(self, angles: Sequence[float]):
        return self.limits.check_angle_limits(angles)

    def validate_target(self, keyframe: Keyframe) -> Optional[KinematicsError]:
        """First workspace or limit error of a solved keyframe, None when it may be committed."""
        ok, error = self.limits.check_workspace(keyframe.finger, keyframe.shoulder)
        if not ok:
            return error
        ok, violation = self.limits.check_angle_limits(keyframe.angles)
        if not ok:
            return violation
        return None

    def move_permitted(self, keyframe: Keyframe, previous: Optional[Keyframe] = None) -> bool:
        """
        True when the keyframe's finger pose solves and the solution passes
        the workspace and angle-limit checks.

        Args:
            keyframe: Target keyframe (its finger, forward and right are used)
            previous: Continuity reference for IK (defaults to keyframe itself)
        """
        result = self.inverse_kinematics(keyframe.finger, keyframe.forward, keyframe.right,
                                         previous or keyframe)
        if not result.success:
            self.logger.debug(f"[{self.dimensions.name}] Move refused: {result.error}")
            return False
        error = self.validate_target(result.keyframe)
        if error is not None:
            self.logger.debug(f"[{self.dimensions.name}] Move refused: {error}")
            return False
        return True
