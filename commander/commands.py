"""
Command Classes for the Sixi Commander

Each command wraps one operator action on the MotionStateController.
Commands follow a simple execution model:
1. __init__(): parameter validation (sets is_valid)
2. execute_step(): called once per control tick until it returns True

execute_step() receives the controller and an `emit` callable that takes
transport lines. Jog commands run for a number of ticks; everything else
finishes in one.
"""

import logging
import math
from typing import Callable, Optional, Sequence

from .constants import CARTESIAN_AXES, GCODE_ABSOLUTE, GCODE_RELATIVE
from .gcode import parse_feedback_line
from .motion_state import MotionStateController, TickOutcome

# Module logger
logger = logging.getLogger(__name__)

Emit = Callable[[str], None]


#########################################################################
# Jog Commands
#########################################################################
class JogCartesianCommand:
    """
    Jog the finger along one Cartesian or orientation axis for a number of ticks.
    Stops early on the first reverted tick.
    """
    def __init__(self, axis: str, direction: float, ticks: int = 1):
        self.is_valid = False
        self.is_finished = False
        self.axis = axis.upper()
        self.direction = direction
        self.ticks_remaining = ticks

        if self.axis not in CARTESIAN_AXES:
            logger.debug(f"  -> VALIDATION FAILED: Unknown Cartesian axis {axis}")
            return
        if ticks < 1 or direction == 0 or not math.isfinite(direction):
            logger.debug(f"  -> VALIDATION FAILED: ticks={ticks} direction={direction}")
            return
        self.is_valid = True

    def execute_step(self, controller: MotionStateController, emit: Emit, **kwargs) -> bool:
        if self.is_finished:
            return True

        controller.jog_cartesian(self.axis, self.direction)
        result = controller.tick()
        if result.transport_line:
            emit(result.transport_line)

        self.ticks_remaining -= 1
        if result.outcome is TickOutcome.REVERTED:
            logger.info(f"Cartesian jog {self.axis} stopped: {result.error}")
            self.is_finished = True
        elif self.ticks_remaining <= 0:
            self.is_finished = True
        return self.is_finished


class JogJointCommand:
    """Jog one joint for a number of ticks. Stops early on the first reverted tick."""
    def __init__(self, joint: int, direction: float, ticks: int = 1):
        self.is_valid = False
        self.is_finished = False
        self.joint = joint
        self.direction = direction
        self.ticks_remaining = ticks

        if joint < 0 or ticks < 1 or direction == 0 or not math.isfinite(direction):
            logger.debug(f"  -> VALIDATION FAILED: joint={joint} ticks={ticks} direction={direction}")
            return
        self.is_valid = True

    def execute_step(self, controller: MotionStateController, emit: Emit, **kwargs) -> bool:
        if self.is_finished:
            return True

        if self.joint >= controller.solver.joint_count:
            logger.warning(f"Joint {self.joint} does not exist on {controller.solver.dimensions.name}")
            self.is_finished = True
            return True

        controller.jog_joint(self.joint, self.direction)
        result = controller.tick()
        if result.transport_line:
            emit(result.transport_line)

        self.ticks_remaining -= 1
        if result.outcome is TickOutcome.REVERTED:
            logger.info(f"Joint jog J{self.joint} stopped: {result.error}")
            self.is_finished = True
        elif self.ticks_remaining <= 0:
            self.is_finished = True
        return self.is_finished


#########################################################################
# Single-Tick Commands
#########################################################################
class _InstantCommand:
    """Base for commands that complete in a single tick."""
    def __init__(self):
        self.is_valid = True
        self.is_finished = False

    def execute_step(self, controller: MotionStateController, emit: Emit, **kwargs) -> bool:
        if not self.is_finished:
            self.run(controller, emit, **kwargs)
            self.is_finished = True
        return True

    def run(self, controller: MotionStateController, emit: Emit, **kwargs):
        raise NotImplementedError


class HomeCommand(_InstantCommand):
    """Send the arm home and reset the model to the home pose."""
    def run(self, controller, emit, **kwargs):
        logger.info("Homing...")
        emit(controller.home())


class SetStepSizeCommand(_InstantCommand):
    def __init__(self, value: float):
        super().__init__()
        self.value = value
        self.is_valid = math.isfinite(value) and value >= 0

    def run(self, controller, emit, **kwargs):
        controller.set_step_size(self.value)


class SetFeedRateCommand(_InstantCommand):
    def __init__(self, value: float):
        super().__init__()
        self.value = value
        self.is_valid = math.isfinite(value) and value >= 0

    def run(self, controller, emit, **kwargs):
        controller.set_feed_rate(self.value)


class SetModeCommand(_InstantCommand):
    """Switch the machine between absolute (G90) and relative (G91) positioning."""
    def __init__(self, absolute: bool):
        super().__init__()
        self.absolute = absolute

    def run(self, controller, emit, **kwargs):
        emit(GCODE_ABSOLUTE if self.absolute else GCODE_RELATIVE)


class RotateBaseCommand(_InstantCommand):
    def __init__(self, pan: float, tilt: float):
        super().__init__()
        self.pan = pan
        self.tilt = tilt
        # Straight up or down leaves the base without a heading
        self.is_valid = math.isfinite(pan) and -90.0 < tilt < 90.0

    def run(self, controller, emit, **kwargs):
        controller.rotate_base(self.pan, self.tilt)


class MoveBaseCommand(_InstantCommand):
    def __init__(self, anchor: Sequence[float]):
        super().__init__()
        self.anchor = tuple(anchor)
        self.is_valid = len(self.anchor) == 3 and all(math.isfinite(v) for v in self.anchor)

    def run(self, controller, emit, **kwargs):
        controller.move_base(self.anchor)


class FeedbackCommand(_InstantCommand):
    """Adopt the joint angles reported in a firmware feedback line."""
    def __init__(self, line: str):
        super().__init__()
        self.reported = parse_feedback_line(line)
        self.is_valid = self.reported is not None

    def run(self, controller, emit, **kwargs):
        keyframe = controller.sync_from_feedback(self.reported)
        logger.debug(f"Synced from feedback: {keyframe.summary()}")


class RecordCommand(_InstantCommand):
    """Start or stop the motion recorder passed to execute_step as `recorder`."""
    def __init__(self, start: bool, name: Optional[str] = None):
        super().__init__()
        self.start = start
        self.name = name

    def run(self, controller, emit, recorder=None, **kwargs):
        if recorder is None:
            logger.warning("RECORD ignored: no motion recorder configured")
            return
        if self.start:
            recorder.start_recording(self.name)
        else:
            recorder.stop_recording()
