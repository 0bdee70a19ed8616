"""
Transport Line Codec

Builds the text lines handed to the transport collaborator and parses the
angle reports it hands back. Framing and acknowledgement belong to the
transport, not to this module.

Move line:     G0 X<a0> Y<a1> Z<a2> U<a3> V<a4> W<a5> F<feed>
               (only joints whose angle changed since the last commit)
Feedback line: A<a5> B<a4> C<a3> D<a2> E<a1> [F<a0>]

Author: Sixi Team
Date: 2025-02-06
"""

import logging
import math
from typing import Dict, Optional, Sequence

from .constants import (
    FEEDBACK_AXIS_LETTERS,
    GCODE_MOVE,
    GCODE_ROUNDING_SCALE,
    JOINT_AXIS_LETTERS,
)

logger = logging.getLogger(__name__)


def round_off(value: float) -> float:
    """Round to 3 decimals the way the firmware expects."""
    return round(value * GCODE_ROUNDING_SCALE) / GCODE_ROUNDING_SCALE


def format_move_line(previous: Sequence[float], current: Sequence[float], feed_rate: float) -> Optional[str]:
    """
    Build the move line for a commit.

    Args:
        previous: Joint angles before the commit
        current: Joint angles after the commit
        feed_rate: Feed rate appended as the F field

    Returns:
        The line, or None if no joint changed
    """
    fields = [
        f" {letter}{round_off(new)}"
        for letter, old, new in zip(JOINT_AXIS_LETTERS, previous, current)
        if round_off(new) != round_off(old)
    ]
    if not fields:
        return None
    return GCODE_MOVE + "".join(fields) + f" F{round_off(feed_rate)}"


def parse_feedback_line(line: str) -> Optional[Dict[int, float]]:
    """
    Parse an angle report into {joint_index: degrees}.

    Lines that are not angle reports (including 'As...' status lines)
    return None. Unparseable or non-finite fields are skipped with a warning.
    """
    line = line.strip()
    if not line.startswith('A') or line.startswith('As'):
        return None

    joints: Dict[int, float] = {}
    for item in line.split():
        letter = item[:1]
        if letter not in FEEDBACK_AXIS_LETTERS:
            continue
        try:
            value = float(item[1:])
        except ValueError:
            logger.warning(f"[GCode] Ignoring malformed feedback field: {item!r}")
            continue
        if not math.isfinite(value):
            logger.warning(f"[GCode] Ignoring non-finite feedback field: {item!r}")
            continue
        joints[FEEDBACK_AXIS_LETTERS.index(letter)] = value
    return joints or None
