"""
Sixi Commander Constants

Central configuration constants for the Sixi commander loop.
Timing values, motion defaults, axis mappings and command words in one place.

Author: Sixi Team
Date: 2025-02-06
"""

# ============================================================================
# Timing Constants
# ============================================================================

# Control loop timing
CONTROL_LOOP_HZ = 30

# ============================================================================
# Motion Defaults
# ============================================================================

DEFAULT_STEP_SIZE = 2.0     # Units (or degrees) per unit of intent per tick
DEFAULT_FEED_RATE = 1000.0  # Feed rate sent with every move line

# ============================================================================
# Axis Mapping
# ============================================================================

# Cartesian intent axes: position first, then orientation
CARTESIAN_AXES = ('X', 'Y', 'Z', 'U', 'V', 'W')

# Transport letters per joint index (joint 0 -> X ... joint 5 -> W)
JOINT_AXIS_LETTERS = ('X', 'Y', 'Z', 'U', 'V', 'W')

# Feedback letters reported by the firmware, per joint index
FEEDBACK_AXIS_LETTERS = ('F', 'E', 'D', 'C', 'B', 'A')

# ============================================================================
# Transport Constants
# ============================================================================

GCODE_MOVE = "G0"
GCODE_HOME = "G28"
GCODE_ABSOLUTE = "G90"
GCODE_RELATIVE = "G91"
GCODE_ROUNDING_SCALE = 1000.0  # Values rounded to 3 decimals

# ============================================================================
# Command Constants
# ============================================================================

COMMAND_SEPARATOR = '|'
COMMAND_QUEUE_MAX_SIZE = 100  # Maximum number of queued commands

# ============================================================================
# Recording Constants
# ============================================================================

RECORDING_MAX_SAMPLES = 30000  # ~16 minutes at 30Hz
RECORDINGS_DIR_DEFAULT = "motion_recordings"

# ============================================================================
# Module Metadata
# ============================================================================

__version__ = "0.3.0"
__author__ = "Sixi Team"
__date__ = "2025-02-06"
__description__ = "Central constants for the Sixi commander"
