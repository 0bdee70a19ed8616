"""
Arm Dimensions

Immutable per-variant configuration consumed by the solvers, the limit
checker and the bounding volume builder. Built once per robot variant.

Two variants are provided:
- SixAxisDimensions: 6-joint Sixi arm with L-shaped bone offsets
- SimpleArmDimensions: 3-joint planar arm (Arm3)

Malformed values are rejected at construction with InvalidConfiguration.

Author: Sixi Team
Date: 2025-02-03
"""

import math
from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import InvalidConfiguration


# ============================================================================
# Base Model
# ============================================================================

class ArmDimensions(BaseModel):
    """Fields shared by every arm variant. Lengths are in model units, angles in degrees."""

    model_config = ConfigDict(frozen=True, extra='forbid')

    joint_count: ClassVar[int] = 0

    name: str = Field(..., description="Variant name, used in log messages")
    joint_limits: Tuple[Tuple[float, float], ...] = Field(..., description="Inclusive (min, max) per joint")
    home_angles: Tuple[float, ...] = Field(..., description="Joint angles of the home pose")
    min_reach: float = Field(..., ge=0, description="Minimum finger distance from the shoulder")
    max_reach: float = Field(..., gt=0, description="Maximum finger distance from the shoulder")
    floor: Optional[float] = Field(None, description="Lowest permitted finger height")
    ceiling: Optional[float] = Field(None, description="Highest permitted finger height")
    enforce_joint_limits: bool = Field(True, description="When false the angle-limit check always passes")
    bounding_radii: Tuple[float, ...] = Field((), description="Collision proxy radius per link")
    epsilon: float = Field(1e-5, gt=0, description="Degeneracy threshold")

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidConfiguration(f"Invalid {type(self).__name__}: {e}") from e

    @field_validator('joint_limits')
    @classmethod
    def validate_joint_limits(cls, v):
        for i, (lo, hi) in enumerate(v):
            if lo > hi:
                raise ValueError(f"joint {i} limit min {lo} exceeds max {hi}")
        return v

    @field_validator('bounding_radii')
    @classmethod
    def validate_radii(cls, v):
        if any(r <= 0 for r in v):
            raise ValueError("bounding radii must be positive")
        return v

    @model_validator(mode='after')
    def validate_shape(self):
        n = self.joint_count
        if len(self.joint_limits) != n:
            raise ValueError(f"expected {n} joint limits, got {len(self.joint_limits)}")
        if len(self.home_angles) != n:
            raise ValueError(f"expected {n} home angles, got {len(self.home_angles)}")
        if self.min_reach >= self.max_reach:
            raise ValueError(f"min_reach {self.min_reach} must be below max_reach {self.max_reach}")
        if self.floor is not None and self.ceiling is not None and self.floor >= self.ceiling:
            raise ValueError(f"floor {self.floor} must be below ceiling {self.ceiling}")
        if self.enforce_joint_limits:
            for i, (angle, (lo, hi)) in enumerate(zip(self.home_angles, self.joint_limits)):
                if not lo <= angle <= hi:
                    raise ValueError(f"home angle {angle} of joint {i} outside [{lo}, {hi}]")
        return self


# ============================================================================
# Six-Axis Variant
# ============================================================================

class SixAxisDimensions(ArmDimensions):
    """
    Sixi six-axis arm.

    The bicep and forearm are L-shaped: each carries a Y offset as well as
    a Z length, so the shoulder-elbow and elbow-wrist spans are not collinear
    with their joint axes. The bone-bend angles derived from those offsets
    are exposed as properties.
    """

    joint_count: ClassVar[int] = 6

    floor_to_shoulder: float = Field(..., gt=0)
    floor_adjust: float = Field(0.0, ge=0)
    shoulder_to_elbow_y: float
    shoulder_to_elbow_z: float = Field(..., gt=0)
    elbow_to_ulna_y: float
    elbow_to_ulna_z: float = Field(..., gt=0)
    ulna_to_wrist_z: float = Field(..., gt=0)
    wrist_to_tool_z: float = Field(..., gt=0)

    @model_validator(mode='after')
    def validate_bones(self):
        if self.floor_adjust >= self.floor_to_shoulder:
            raise ValueError("floor_adjust must be smaller than floor_to_shoulder")
        if self.bounding_radii and len(self.bounding_radii) != 6:
            raise ValueError(f"expected 6 bounding radii, got {len(self.bounding_radii)}")
        return self

    @property
    def shoulder_height(self) -> float:
        return self.floor_to_shoulder - self.floor_adjust

    @property
    def shoulder_to_elbow(self) -> float:
        """Straight-line bicep span (R)."""
        return math.hypot(self.shoulder_to_elbow_y, self.shoulder_to_elbow_z)

    @property
    def elbow_to_wrist(self) -> float:
        """Straight-line forearm span (r), elbow through ulna to wrist."""
        return math.hypot(self.elbow_to_ulna_y, self.elbow_to_ulna_z + self.ulna_to_wrist_z)

    @property
    def shoulder_elbow_offset(self) -> float:
        """Bone-bend angle of the bicep in degrees (11.31 for the Sixi)."""
        return math.degrees(math.atan2(self.shoulder_to_elbow_y, self.shoulder_to_elbow_z))

    @property
    def wrist_elbow_offset(self) -> float:
        """Bone-bend angle of the forearm in degrees (14.04 for the Sixi)."""
        return math.degrees(math.atan2(-self.elbow_to_ulna_y, self.elbow_to_ulna_z + self.ulna_to_wrist_z))

    @property
    def tool_length(self) -> float:
        return self.wrist_to_tool_z


# ============================================================================
# Simple Arm Variant
# ============================================================================

class SimpleArmDimensions(ArmDimensions):
    """Three-joint arm: base yaw plus two pitch joints, finger kept radial."""

    joint_count: ClassVar[int] = 3

    base_to_shoulder_x: float = Field(..., ge=0)
    base_to_shoulder_z: float = Field(..., gt=0)
    shoulder_to_elbow: float = Field(..., gt=0)
    elbow_to_wrist: float = Field(..., gt=0)
    wrist_to_finger: float = Field(..., gt=0)

    @model_validator(mode='after')
    def validate_radii_count(self):
        if self.bounding_radii and len(self.bounding_radii) != 3:
            raise ValueError(f"expected 3 bounding radii, got {len(self.bounding_radii)}")
        return self

    @property
    def tool_length(self) -> float:
        return self.wrist_to_finger


# ============================================================================
# Presets
# ============================================================================

SIXI_DIMENSIONS = SixAxisDimensions(
    name="sixi",
    floor_to_shoulder=25.8,
    floor_adjust=0.75538,
    shoulder_to_elbow_y=5.0,
    shoulder_to_elbow_z=25.0,
    elbow_to_ulna_y=-5.0,
    elbow_to_ulna_z=10.0,
    ulna_to_wrist_z=10.0,
    wrist_to_tool_z=5.0,
    joint_limits=((-90.0, 265.0), (0.0, 180.0), (5.0, 188.0), (0.0, 355.0), (-90.0, 90.0), (0.0, 355.0)),
    home_angles=(-45.0, 0.0, 188.0, 0.0, -90.0, 0.0),
    min_reach=5.0,
    max_reach=50.0,
    bounding_radii=(3.2, 3.0 * 0.575, 2.2, 1.15, 1.2, 1.0 * 0.575),
)

# Limits kept for reference; the arm3 firmware does not enforce them
ARM3_DIMENSIONS = SimpleArmDimensions(
    name="arm3",
    base_to_shoulder_x=5.0,
    base_to_shoulder_z=8.0,
    shoulder_to_elbow=25.0,
    elbow_to_wrist=25.0,
    wrist_to_finger=4.0,
    joint_limits=((-180.0, 180.0), (-150.0, 80.0), (-20.0, 180.0)),
    home_angles=(0.0, -60.0, 160.0),
    min_reach=7.5,
    max_reach=50.0,
    floor=0.25,
    ceiling=50.0,
    enforce_joint_limits=False,
)

PRESETS: Dict[str, ArmDimensions] = {
    SIXI_DIMENSIONS.name: SIXI_DIMENSIONS,
    ARM3_DIMENSIONS.name: ARM3_DIMENSIONS,
}


def dimensions_from_config(robot_config: Dict[str, Any]) -> ArmDimensions:
    """
    Build a dimension object from the `robot` section of config.yaml.

    Args:
        robot_config: Dict with 'variant' (preset name) and optional
                      'overrides' (field name -> value)

    Returns:
        Validated dimension object

    Raises:
        InvalidConfiguration: Unknown variant or overrides that fail validation
    """
    variant = str(robot_config.get('variant', SIXI_DIMENSIONS.name)).lower()
    preset = PRESETS.get(variant)
    if preset is None:
        raise InvalidConfiguration(f"Unknown robot variant: {variant} (expected one of {sorted(PRESETS)})")

    overrides = robot_config.get('overrides') or {}
    if not overrides:
        return preset

    data = preset.model_dump()
    data.update(overrides)
    return type(preset)(**data)
