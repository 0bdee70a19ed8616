"""
Kinematics Error Taxonomy

Failures produced by the FK/IK solvers and the limit checker.

Geometric failures (Unreachable, Singular, LimitViolation) are handed back
as values inside an IKResult or a TickResult and never abort the caller.
InvalidConfiguration is the only error that is raised, and only while
building dimension objects.

Author: Sixi Team
Date: 2025-02-03
"""

from typing import Optional


class KinematicsError(Exception):
    """Base class for every kinematics failure."""


class Unreachable(KinematicsError):
    """Target lies outside the annulus the arm can reach."""


class Singular(KinematicsError):
    """A reference direction degenerated (within epsilon) so the pose is undefined."""


class LimitViolation(KinematicsError):
    """
    A joint angle fell outside its configured range.

    Attributes:
        joint: Joint index (0-based)
        bound: 'min' or 'max'
        value: Offending angle in degrees
        limit: The bound that was crossed, in degrees
    """

    def __init__(self, joint: int, bound: str, value: float, limit: float, message: Optional[str] = None):
        self.joint = joint
        self.bound = bound
        self.value = value
        self.limit = limit
        if message is None:
            relation = "below" if bound == "min" else "above"
            message = f"Joint {joint} angle {value:.3f} is {relation} {bound} limit {limit:.3f}"
        super().__init__(message)


class InvalidConfiguration(KinematicsError, ValueError):
    """Malformed arm dimensions. Raised at construction time."""
