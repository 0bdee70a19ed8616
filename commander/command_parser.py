"""
Command Parser Module for the Sixi Commander

Turns operator command strings into command objects.

Grammar (fields separated by '|', names case-insensitive):
    CARTJOG|<X|Y|Z|U|V|W>|<direction>[|ticks]
    JOINTJOG|<joint>|<direction>[|ticks]
    HOME
    STEP|<step size>
    FEED|<feed rate>
    MODE|<ABS|REL>
    BASE|<pan>|<tilt>
    ANCHOR|<x>,<y>,<z>
    FEEDBACK|<firmware angle report>
    RECORD|<START|STOP>[|name]

Author: Sixi Team
Date: 2025-02-07
"""

import logging
from typing import Any, List, Optional, Tuple

from .commands import (
    FeedbackCommand,
    HomeCommand,
    JogCartesianCommand,
    JogJointCommand,
    MoveBaseCommand,
    RecordCommand,
    RotateBaseCommand,
    SetFeedRateCommand,
    SetModeCommand,
    SetStepSizeCommand,
)
from .constants import CARTESIAN_AXES, COMMAND_SEPARATOR

ParseResult = Tuple[Optional[Any], Optional[str]]


# ============================================================================
# Command Parser Class
# ============================================================================

class CommandParser:
    """
    Parses command strings into command objects.

    Returns (command_object, error_message) tuple.
    On success: (cmd_obj, None)
    On failure: (None, "error description")
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize command parser.

        Args:
            logger: Logger instance for parsing messages
        """
        self.logger = logger or logging.getLogger(__name__)

        # Command parser registry
        self._parsers = {
            'CARTJOG': self._parse_cartesian_jog,
            'JOINTJOG': self._parse_joint_jog,
            'HOME': self._parse_home,
            'STEP': self._parse_step,
            'FEED': self._parse_feed,
            'MODE': self._parse_mode,
            'BASE': self._parse_base,
            'ANCHOR': self._parse_anchor,
            'FEEDBACK': self._parse_feedback,
            'RECORD': self._parse_record,
        }

    @property
    def command_names(self) -> List[str]:
        return sorted(self._parsers)

    def parse(self, message: str) -> ParseResult:
        """
        Parse command string into command object.

        Args:
            message: Raw command string (e.g., "CARTJOG|X|1|10")

        Returns:
            Tuple of (command_object, error_message)
        """
        parts = [p.strip() for p in message.strip().split(COMMAND_SEPARATOR)]
        if not parts[0]:
            return None, "Empty command"

        command_name = parts[0].upper()
        parser_method = self._parsers.get(command_name)
        if not parser_method:
            return None, f"Unknown command: {command_name}"

        try:
            cmd_obj, error = parser_method(parts)
        except ValueError as e:
            error_msg = f"{command_name} parameter error: {e}"
            self.logger.warning(f"[CommandParser] {error_msg}")
            return None, error_msg

        if cmd_obj is not None and not cmd_obj.is_valid:
            return None, f"{command_name} rejected: invalid parameters {parts[1:]}"
        return cmd_obj, error

    @staticmethod
    def _expect(parts: List[str], minimum: int, maximum: int, usage: str) -> Optional[str]:
        if not minimum <= len(parts) <= maximum:
            return f"{parts[0].upper()} expects {usage}, got {len(parts) - 1} field(s)"
        return None

    # ========================================================================
    # Motion Command Parsers
    # ========================================================================

    def _parse_cartesian_jog(self, parts: List[str]) -> ParseResult:
        """Parse CARTJOG|axis|direction[|ticks]"""
        error = self._expect(parts, 3, 4, "axis|direction[|ticks]")
        if error:
            return None, error
        axis = parts[1].upper()
        if axis not in CARTESIAN_AXES:
            return None, f"CARTJOG axis must be one of {''.join(CARTESIAN_AXES)}, got {parts[1]}"
        ticks = int(parts[3]) if len(parts) == 4 else 1
        return JogCartesianCommand(axis, float(parts[2]), ticks), None

    def _parse_joint_jog(self, parts: List[str]) -> ParseResult:
        """Parse JOINTJOG|joint|direction[|ticks]"""
        error = self._expect(parts, 3, 4, "joint|direction[|ticks]")
        if error:
            return None, error
        ticks = int(parts[3]) if len(parts) == 4 else 1
        return JogJointCommand(int(parts[1]), float(parts[2]), ticks), None

    def _parse_home(self, parts: List[str]) -> ParseResult:
        """Parse HOME command: HOME"""
        error = self._expect(parts, 1, 1, "no fields")
        if error:
            return None, error
        return HomeCommand(), None

    # ========================================================================
    # Settings Parsers
    # ========================================================================

    def _parse_step(self, parts: List[str]) -> ParseResult:
        """Parse STEP|value"""
        error = self._expect(parts, 2, 2, "value")
        if error:
            return None, error
        return SetStepSizeCommand(float(parts[1])), None

    def _parse_feed(self, parts: List[str]) -> ParseResult:
        """Parse FEED|value"""
        error = self._expect(parts, 2, 2, "value")
        if error:
            return None, error
        return SetFeedRateCommand(float(parts[1])), None

    def _parse_mode(self, parts: List[str]) -> ParseResult:
        """Parse MODE|ABS or MODE|REL"""
        error = self._expect(parts, 2, 2, "ABS|REL")
        if error:
            return None, error
        mode = parts[1].upper()
        if mode not in ('ABS', 'REL'):
            return None, f"MODE must be ABS or REL, got {parts[1]}"
        return SetModeCommand(absolute=(mode == 'ABS')), None

    # ========================================================================
    # Base Placement Parsers
    # ========================================================================

    def _parse_base(self, parts: List[str]) -> ParseResult:
        """Parse BASE|pan|tilt"""
        error = self._expect(parts, 3, 3, "pan|tilt")
        if error:
            return None, error
        return RotateBaseCommand(float(parts[1]), float(parts[2])), None

    def _parse_anchor(self, parts: List[str]) -> ParseResult:
        """Parse ANCHOR|x,y,z"""
        error = self._expect(parts, 2, 2, "x,y,z")
        if error:
            return None, error
        values = [float(v) for v in parts[1].split(',')]
        if len(values) != 3:
            return None, f"ANCHOR expects 3 coordinates, got {len(values)}"
        return MoveBaseCommand(values), None

    # ========================================================================
    # Utility Parsers
    # ========================================================================

    def _parse_feedback(self, parts: List[str]) -> ParseResult:
        """Parse FEEDBACK|<angle report>"""
        error = self._expect(parts, 2, 2, "angle report")
        if error:
            return None, error
        command = FeedbackCommand(parts[1])
        if not command.is_valid:
            return None, f"FEEDBACK line carries no angles: {parts[1]!r}"
        return command, None

    def _parse_record(self, parts: List[str]) -> ParseResult:
        """Parse RECORD|START[|name] or RECORD|STOP"""
        error = self._expect(parts, 2, 3, "START[|name] or STOP")
        if error:
            return None, error
        action = parts[1].upper()
        if action == 'START':
            return RecordCommand(True, parts[2] if len(parts) == 3 else None), None
        if action == 'STOP' and len(parts) == 2:
            return RecordCommand(False), None
        return None, f"RECORD expects START[|name] or STOP, got {'|'.join(parts[1:])}"
