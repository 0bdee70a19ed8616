'''
Commander control loop for the Sixi arm.

Handles:
- Loading config.yaml and configuring logging
- Parsing operator command lines into command objects
- Executing one command step per control tick on the motion state
- Emitting transport lines (G-code) to a sink
- Optional motion recording of committed keyframes

Command lines come from a file given on the command line, or stdin.
Transport lines go to stdout; logs go to stderr.
'''

import copy
import logging
import sys
from collections import deque
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import yaml

from armlib.kinematics import BaseTransform, dimensions_from_config, solver_for

from .command_parser import CommandParser
from .constants import COMMAND_QUEUE_MAX_SIZE, CONTROL_LOOP_HZ, DEFAULT_FEED_RATE, DEFAULT_STEP_SIZE
from .logging_handler import setup_logging
from .motion_recorder import MotionRecorder
from .motion_state import MotionStateController

# Project root (parent of commander directory)
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_PATH = PROJECT_ROOT / "config.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    'robot': {'variant': 'sixi'},
    'motion': {'step_size': DEFAULT_STEP_SIZE, 'feed_rate': DEFAULT_FEED_RATE},
    'base': {'pan': 0.0, 'tilt': 0.0, 'anchor': [0.0, 0.0, 0.0]},
    'commander': {'tick_hz': CONTROL_LOOP_HZ, 'realtime': True},
    'recording': {'enabled': False, 'directory': 'motion_recordings', 'sample_rate_hz': None},
    'logging': {'level': 'INFO'},
}


def load_config(path: Path = CONFIG_PATH) -> Dict[str, Any]:
    """
    Load config.yaml, falling back to defaults for a missing file or section.
    """
    try:
        with open(path, "r") as f:
            loaded = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logging.getLogger(__name__).warning(f"config.yaml not found at {path}, using defaults")
        loaded = {}

    config = copy.deepcopy(DEFAULT_CONFIG)
    for key, section in loaded.items():
        if isinstance(section, dict) and key in config:
            config[key].update(section)
        else:
            config[key] = section
    return config


class Commander:
    """
    Runs operator commands against a MotionStateController, one step per tick.

    Usage:
        commander = Commander(load_config())
        commander.submit("CARTJOG|X|1|5")
        commander.run_until_idle(realtime=False)
    """

    def __init__(self,
                 config: Dict[str, Any],
                 sink: Optional[Callable[[str], None]] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or logging.getLogger('commander')
        self.sink = sink or self._print_line

        dimensions = dimensions_from_config(config.get('robot', {}))
        base_cfg = config.get('base', {})
        base = BaseTransform.from_pan_tilt(base_cfg.get('pan', 0.0), base_cfg.get('tilt', 0.0),
                                           base_cfg.get('anchor', (0.0, 0.0, 0.0)))
        motion_cfg = config.get('motion', {})
        self.controller = MotionStateController(
            solver_for(dimensions, self.logger),
            step_size=motion_cfg.get('step_size', DEFAULT_STEP_SIZE),
            feed_rate=motion_cfg.get('feed_rate', DEFAULT_FEED_RATE),
            base=base,
            logger=self.logger,
        )
        self.parser = CommandParser(self.logger)

        recording_cfg = config.get('recording', {})
        self.recorder = MotionRecorder(
            self.logger,
            sample_rate_hz=recording_cfg.get('sample_rate_hz'),
            recordings_dir=Path(recording_cfg.get('directory', 'motion_recordings')),
        )
        if recording_cfg.get('enabled'):
            self.recorder.start_recording()

        self.command_queue = deque()
        self.active_command = None
        self.tick_count = 0

        commander_cfg = config.get('commander', {})
        self.tick_hz = float(commander_cfg.get('tick_hz', CONTROL_LOOP_HZ))
        self.realtime = bool(commander_cfg.get('realtime', True))

    @staticmethod
    def _print_line(line: str):
        sys.stdout.write(line + "\n")
        sys.stdout.flush()

    # ========================================================================
    # Command Intake
    # ========================================================================

    def submit(self, message: str) -> Tuple[bool, Optional[str]]:
        """
        Parse a command line and queue it.

        Returns:
            (True, None) when queued, (False, error) otherwise
        """
        message = message.strip()
        if not message or message.startswith('#'):
            return False, None

        if len(self.command_queue) >= COMMAND_QUEUE_MAX_SIZE:
            self.logger.warning(f"[Commander] Queue full, dropping: {message}")
            return False, "Command queue full"

        cmd_obj, error = self.parser.parse(message)
        if cmd_obj is None:
            self.logger.warning(f"[Commander] {error}")
            return False, error

        self.command_queue.append(cmd_obj)
        self.logger.debug(f"[Commander] Queued {type(cmd_obj).__name__}")
        return True, None

    # ========================================================================
    # Tick Execution
    # ========================================================================

    @property
    def is_idle(self) -> bool:
        return self.active_command is None and not self.command_queue

    def step(self) -> bool:
        """
        Run one control tick.

        Returns:
            True if a command was executed this tick
        """
        if self.active_command is None:
            if not self.command_queue:
                return False
            self.active_command = self.command_queue.popleft()

        self.tick_count += 1
        finished = self.active_command.execute_step(self.controller, self.sink, recorder=self.recorder)
        outcome = self.controller.last_result.outcome
        self.recorder.maybe_capture_sample(self.controller.now, outcome.value)
        if finished:
            self.active_command = None
        return True

    def run_until_idle(self, realtime: Optional[bool] = None) -> int:
        """
        Execute queued commands until nothing is pending.

        Args:
            realtime: Pace ticks at tick_hz (defaults to config commander.realtime)

        Returns:
            Number of ticks executed
        """
        realtime = self.realtime if realtime is None else realtime
        timer = None
        if realtime:
            from oclock import Timer
            timer = Timer(interval=1.0 / self.tick_hz, warnings=False, precise=True)

        ticks = 0
        try:
            while not self.is_idle:
                self.step()
                ticks += 1
                if timer is not None:
                    timer.checkpt()
        finally:
            if timer is not None:
                timer.stop()
        return ticks

    def run(self, lines: Iterable[str], realtime: Optional[bool] = None) -> int:
        """Queue and execute every line, one command at a time. Returns ticks executed."""
        ticks = 0
        for line in lines:
            ok, _ = self.submit(line)
            if ok:
                ticks += self.run_until_idle(realtime)
        return ticks

    def shutdown(self):
        if self.recorder.is_recording:
            self.recorder.stop_recording()
        self.logger.info(f"[Commander] Stopped after {self.tick_count} ticks at {self.controller.now.summary()}")


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    config = load_config()
    logger = setup_logging(config.get('logging', {}), 'commander')

    commander = Commander(config, logger=logger)
    controller = commander.controller
    logger.info(f"[Commander] {controller.solver.dimensions.name} arm ready, "
                f"step={controller.step_size} feed={controller.feed_rate}")

    try:
        if argv:
            with open(argv[0], "r") as f:
                commander.run(f)
        else:
            commander.run(sys.stdin)
    except KeyboardInterrupt:
        logger.info("[Commander] Interrupted")
    finally:
        commander.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
