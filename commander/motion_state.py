"""
Motion State Controller for the Sixi Arm

Owns the committed ("now") keyframe and turns per-tick directional intents
into new committed keyframes through the FK/IK solvers and limit checks.

Each tick is a pure attempt:
    Idle -> Proposing -> Committed | Reverted -> Idle
attempt_cartesian() / attempt_joint() take the committed keyframe and
return a TickResult holding either the new keyframe or the error that
caused the revert. The controller only swaps its committed keyframe when
the outcome is COMMITTED, so a failed tick never leaves a partial state.

Not thread safe: one controller per control loop.

Author: Sixi Team
Date: 2025-02-06
"""

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from armlib.kinematics import (
    ArmSolver,
    BaseTransform,
    CollisionProxy,
    KinematicsError,
    Keyframe,
    LimitViolation,
    build_bounding_volumes,
)
from armlib.kinematics.orientation import compose

from .constants import (
    CARTESIAN_AXES,
    DEFAULT_FEED_RATE,
    DEFAULT_STEP_SIZE,
    GCODE_HOME,
)
from .gcode import format_move_line

# Module logger
logger = logging.getLogger(__name__)


# ============================================================================
# Tick Result
# ============================================================================

class TickOutcome(Enum):
    IDLE = "idle"            # No intent was pending
    COMMITTED = "committed"  # Proposal accepted and now committed
    REVERTED = "reverted"    # Proposal rejected, committed state unchanged


@dataclass(frozen=True)
class TickResult:
    """
    Result of resolving one tick.

    keyframe is always the committed keyframe after the tick. proposed is
    the rejected or accepted solver output when one was produced.
    """
    outcome: TickOutcome
    keyframe: Keyframe
    proposed: Optional[Keyframe] = None
    error: Optional[KinematicsError] = None
    transport_line: Optional[str] = None

    @property
    def committed(self) -> bool:
        return self.outcome is TickOutcome.COMMITTED


def attempt_cartesian(solver: ArmSolver, now: Keyframe, position_deltas: Sequence[float],
                      rotation_deltas: Sequence[float], step_size: float) -> TickResult:
    """
    Propose a finger move of step_size * delta along X/Y/Z and U/V/W.

    Orientation changes rebuild forward/right from the U/V/W angles in the
    fixed rotation order. Targets the arm cannot orient to are snapped to
    the solver's reachable orientation before solving.
    """
    if not any(position_deltas) and not any(rotation_deltas):
        return TickResult(TickOutcome.IDLE, now)

    finger = now.finger + step_size * np.asarray(position_deltas, dtype=float)
    forward, right = now.forward, now.right
    orientation = now.orientation
    if any(rotation_deltas):
        orientation = tuple(a + step_size * d for a, d in zip(now.orientation, rotation_deltas))
        forward, right = compose(*orientation)

    reach_forward, reach_right = solver.reachable_orientation(finger, forward, right)
    if not (np.allclose(reach_forward, forward) and np.allclose(reach_right, right)):
        orientation = None

    result = solver.inverse_kinematics(finger, reach_forward, reach_right, now, orientation)
    if not result.success:
        return TickResult(TickOutcome.REVERTED, now, error=result.error)

    error = solver.validate_target(result.keyframe)
    if error is not None:
        return TickResult(TickOutcome.REVERTED, now, result.keyframe, error)
    return TickResult(TickOutcome.COMMITTED, result.keyframe, result.keyframe)


def attempt_joint(solver: ArmSolver, now: Keyframe, joint_deltas: Sequence[float],
                  step_size: float) -> TickResult:
    """Propose advancing each joint by step_size * delta, validated before FK."""
    if not any(joint_deltas):
        return TickResult(TickOutcome.IDLE, now)

    angles = tuple(a + step_size * d for a, d in zip(now.angles, joint_deltas))
    ok, violation = solver.check_angle_limits(angles)
    if not ok:
        return TickResult(TickOutcome.REVERTED, now, error=violation)

    proposed = solver.forward_kinematics(angles, now)
    error = solver.validate_target(proposed)
    if error is not None:
        return TickResult(TickOutcome.REVERTED, now, proposed, error)
    return TickResult(TickOutcome.COMMITTED, proposed, proposed)


# ============================================================================
# Motion Intent
# ============================================================================

@dataclass
class MotionIntent:
    """Pending signed deltas for the next tick. Only one group is ever non-zero."""
    cartesian: List[float] = field(default_factory=lambda: [0.0] * len(CARTESIAN_AXES))
    joints: List[float] = field(default_factory=lambda: [0.0] * 6)

    @property
    def has_cartesian(self) -> bool:
        return any(self.cartesian)

    @property
    def has_joint(self) -> bool:
        return any(self.joints)

    def clear_cartesian(self):
        self.cartesian = [0.0] * len(self.cartesian)

    def clear_joints(self):
        self.joints = [0.0] * len(self.joints)

    def clear(self):
        self.clear_cartesian()
        self.clear_joints()


# ============================================================================
# Controller
# ============================================================================

class MotionStateController:
    """
    Double-buffered motion state driven one tick at a time.

    Usage:
        controller = MotionStateController(SixAxisSolver())
        controller.jog_cartesian('X', +1)
        result = controller.tick()
        if result.transport_line:
            transport.send(result.transport_line)
    """

    def __init__(self,
                 solver: ArmSolver,
                 step_size: float = DEFAULT_STEP_SIZE,
                 feed_rate: float = DEFAULT_FEED_RATE,
                 base: Optional[BaseTransform] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the controller at the home pose.

        Args:
            solver: FK/IK solver for the arm variant
            step_size: Distance (units or degrees) per unit of intent per tick
            feed_rate: Feed rate appended to transport lines
            base: Base placement in the world (identity when omitted)
            logger: Logger instance
        """
        self.solver = solver
        self.logger = logger or logging.getLogger(__name__)
        self._step_size = DEFAULT_STEP_SIZE
        self._feed_rate = DEFAULT_FEED_RATE
        self.set_step_size(step_size)
        self.set_feed_rate(feed_rate)

        self.now = solver.home_keyframe(base or BaseTransform.from_pan_tilt())
        self.last_result = TickResult(TickOutcome.IDLE, self.now)
        self.intent = MotionIntent(joints=[0.0] * solver.joint_count)
        self._proxies = self._build_proxies()

        self.logger.info(f"[MotionState] Ready at home: {self.now.summary()}")

    # ========================================================================
    # Settings
    # ========================================================================

    @property
    def step_size(self) -> float:
        return self._step_size

    @property
    def feed_rate(self) -> float:
        return self._feed_rate

    def set_step_size(self, value: float) -> bool:
        """Set the step size. Negative or non-finite values are ignored; returns whether it was applied."""
        if not math.isfinite(value) or value < 0:
            self.logger.warning(f"[MotionState] Ignoring step size {value}")
            return False
        self._step_size = float(value)
        return True

    def set_feed_rate(self, value: float) -> bool:
        """Set the feed rate. Negative or non-finite values are ignored; returns whether it was applied."""
        if not math.isfinite(value) or value < 0:
            self.logger.warning(f"[MotionState] Ignoring feed rate {value}")
            return False
        self._feed_rate = float(value)
        return True

    # ========================================================================
    # Intents
    # ========================================================================

    def jog_cartesian(self, axis: Union[int, str], direction: float):
        """Add a signed Cartesian/orientation intent ('X'..'W' or 0..5). Clears joint intent."""
        index = CARTESIAN_AXES.index(axis.upper()) if isinstance(axis, str) else int(axis)
        if not 0 <= index < len(CARTESIAN_AXES):
            raise ValueError(f"Cartesian axis out of range: {axis}")
        if self.intent.has_joint:
            self.logger.debug("[MotionState] Cartesian jog cancels pending joint intent")
        self.intent.clear_joints()
        self.intent.cartesian[index] += float(direction)

    def jog_joint(self, joint: int, direction: float):
        """Add a signed joint intent. Clears Cartesian intent."""
        if not 0 <= joint < self.solver.joint_count:
            raise ValueError(f"Joint index out of range: {joint}")
        if self.intent.has_cartesian:
            self.logger.debug("[MotionState] Joint jog cancels pending Cartesian intent")
        self.intent.clear_cartesian()
        self.intent.joints[joint] += float(direction)

    def apply_cartesian_intent(self, axis_deltas: Sequence[float], rotation_deltas: Sequence[float],
                               step_size: Optional[float] = None) -> TickResult:
        """Replace any pending intent with the given X/Y/Z and U/V/W deltas and resolve it."""
        if len(axis_deltas) != 3 or len(rotation_deltas) != 3:
            raise ValueError("Cartesian intent needs 3 axis deltas and 3 rotation deltas")
        self.intent.clear()
        self.intent.cartesian = [float(d) for d in axis_deltas] + [float(d) for d in rotation_deltas]
        return self.tick(step_size)

    def apply_joint_intent(self, joint_deltas: Sequence[float], step_size: Optional[float] = None) -> TickResult:
        """Replace any pending intent with the given per-joint deltas and resolve it."""
        if len(joint_deltas) != self.solver.joint_count:
            raise ValueError(f"Joint intent needs {self.solver.joint_count} deltas, got {len(joint_deltas)}")
        self.intent.clear()
        self.intent.joints = [float(d) for d in joint_deltas]
        return self.tick(step_size)

    # ========================================================================
    # Tick
    # ========================================================================

    def tick(self, step_size: Optional[float] = None) -> TickResult:
        """
        Resolve the pending intent (at most one group) and clear it.

        Args:
            step_size: Override for this tick only

        Returns:
            TickResult; transport_line is set when the commit changed any joint
        """
        step = self._step_size if step_size is None else float(step_size)
        if not math.isfinite(step) or step < 0:
            raise ValueError(f"Step size must be finite and >= 0, got {step}")

        if self.intent.has_cartesian:
            deltas = self.intent.cartesian
            result = attempt_cartesian(self.solver, self.now, deltas[:3], deltas[3:], step)
        elif self.intent.has_joint:
            result = attempt_joint(self.solver, self.now, self.intent.joints, step)
        else:
            result = TickResult(TickOutcome.IDLE, self.now)
        self.intent.clear()

        if result.outcome is TickOutcome.COMMITTED:
            line = format_move_line(self.now.angles, result.keyframe.angles, self._feed_rate)
            result = replace(result, transport_line=line)
            self._commit(result.keyframe)
            self.logger.debug(f"[MotionState] Committed {self.now.summary()}")
        elif result.outcome is TickOutcome.REVERTED:
            if isinstance(result.error, LimitViolation):
                self.logger.info(f"[MotionState] Reverted: {result.error}")
            else:
                self.logger.debug(f"[MotionState] Reverted: {result.error}")

        self.last_result = result
        return result

    def _commit(self, keyframe: Keyframe):
        self.now = keyframe
        self._proxies = self._build_proxies()

    # ========================================================================
    # Absolute Commands
    # ========================================================================

    def home(self) -> str:
        """Reset to the home pose, keeping the base placement. Returns the home transport line."""
        self.intent.clear()
        self._commit(self.solver.home_keyframe(self.now.base))
        self.logger.info(f"[MotionState] Homed: {self.now.summary()}")
        return GCODE_HOME

    def rotate_base(self, pan: float, tilt: float):
        """Re-aim the base (degrees). Joint state is unchanged."""
        base = BaseTransform.from_pan_tilt(pan, tilt, self.now.base.anchor)
        self._commit(self.now.with_base(base))

    def move_base(self, anchor: Sequence[float]):
        """Move the base anchor in the world."""
        self._commit(self.now.with_base(self.now.base.with_anchor(anchor)))

    def sync_from_feedback(self, reported: Dict[int, float]) -> Keyframe:
        """
        Adopt angles reported by the machine.

        Reported angles are the machine's truth, so they are committed
        through FK even when they fall outside the configured limits
        (a warning is logged).

        Args:
            reported: {joint_index: degrees}; joints not reported keep their angle
        """
        angles = list(self.now.angles)
        for joint, value in reported.items():
            if 0 <= joint < len(angles):
                angles[joint] = float(value)
        ok, violation = self.solver.check_angle_limits(angles)
        if not ok:
            self.logger.warning(f"[MotionState] Reported angles outside limits: {violation}")
        self.intent.clear()
        self._commit(self.solver.forward_kinematics(angles, self.now))
        return self.now

    # ========================================================================
    # Outputs
    # ========================================================================

    def _build_proxies(self) -> List[CollisionProxy]:
        return build_bounding_volumes(self.now, self.solver.dimensions.bounding_radii)

    def bounding_volumes(self) -> List[CollisionProxy]:
        """Collision proxies of the committed keyframe, in world coordinates."""
        return list(self._proxies)
