"""
Kinematics Module

Contains the analytic FK/IK solvers, arm dimensions, limit checking and
collision proxy generation for the Sixi arm family.

Exports:
- dimensions: Immutable per-variant arm configuration and presets
- six_axis: Six-axis solver with L-shaped bone offsets
- simple_arm: Three-joint solver
- limits: Joint range and workspace checks
- bounding: Collision proxy builder
- orientation: U/V/W compose/decompose
"""

# Import submodules so they can be accessed as:
from . import bounding
from . import dimensions
from . import errors
from . import keyframe
from . import limits
from . import orientation
from . import simple_arm
from . import six_axis
from . import solver

# Also expose commonly used items directly
from .bounding import CollisionProxy, build_bounding_volumes
from .dimensions import (
    ARM3_DIMENSIONS,
    SIXI_DIMENSIONS,
    ArmDimensions,
    SimpleArmDimensions,
    SixAxisDimensions,
    dimensions_from_config,
)
from .errors import InvalidConfiguration, KinematicsError, LimitViolation, Singular, Unreachable
from .keyframe import BaseTransform, JointFrame, Keyframe
from .limits import LimitChecker
from .simple_arm import SimpleArmSolver
from .six_axis import SixAxisSolver
from .solver import ArmSolver, IKResult


def solver_for(dimensions: ArmDimensions, logger=None) -> ArmSolver:
    """Pick the solver class matching a dimension object."""
    if isinstance(dimensions, SixAxisDimensions):
        return SixAxisSolver(dimensions, logger)
    if isinstance(dimensions, SimpleArmDimensions):
        return SimpleArmSolver(dimensions, logger)
    raise InvalidConfiguration(f"No solver for {type(dimensions).__name__}")


__all__ = [
    'bounding',
    'dimensions',
    'errors',
    'keyframe',
    'limits',
    'orientation',
    'simple_arm',
    'six_axis',
    'solver',
    'CollisionProxy',
    'build_bounding_volumes',
    'ARM3_DIMENSIONS',
    'SIXI_DIMENSIONS',
    'ArmDimensions',
    'SimpleArmDimensions',
    'SixAxisDimensions',
    'dimensions_from_config',
    'InvalidConfiguration',
    'KinematicsError',
    'LimitViolation',
    'Singular',
    'Unreachable',
    'BaseTransform',
    'JointFrame',
    'Keyframe',
    'LimitChecker',
    'SimpleArmSolver',
    'SixAxisSolver',
    'ArmSolver',
    'IKResult',
    'solver_for',
]
