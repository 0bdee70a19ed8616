"""Pytest configuration and shared fixtures for all tests."""

import logging
import sys
from pathlib import Path
from typing import Generator, List

import pytest

# Ensure the project root is in path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from armlib.kinematics import SimpleArmSolver, SixAxisSolver  # noqa: E402
from commander.motion_state import MotionStateController  # noqa: E402

# Joint poses used across the solver tests
HOME_ANGLES = (-45.0, 0.0, 188.0, 0.0, -90.0, 0.0)
MID_ANGLES = (30.0, 80.0, 100.0, 90.0, 30.0, 90.0)
ROUND_TRIP_POSES = [
    HOME_ANGLES,
    MID_ANGLES,
    (0.0, 90.0, 90.0, 45.0, 45.0, 45.0),
    (120.0, 60.0, 140.0, 200.0, -60.0, 300.0),
    (-30.0, 120.0, 60.0, 10.0, 80.0, 10.0),
]


# ---------------------------------------------------------------------------
# Solver Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def six_solver() -> SixAxisSolver:
    """Six-axis solver with the Sixi preset."""
    return SixAxisSolver()


@pytest.fixture
def simple_solver() -> SimpleArmSolver:
    """Three-joint solver with the arm3 preset."""
    return SimpleArmSolver()


# ---------------------------------------------------------------------------
# Controller Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def controller(six_solver: SixAxisSolver) -> MotionStateController:
    """Six-axis controller at home with the default step and feed."""
    return MotionStateController(six_solver)


@pytest.fixture
def mid_controller(controller: MotionStateController) -> MotionStateController:
    """Six-axis controller synced to a mid-workspace pose."""
    controller.sync_from_feedback(dict(enumerate(MID_ANGLES)))
    return controller


@pytest.fixture
def simple_controller(simple_solver: SimpleArmSolver) -> MotionStateController:
    """Three-joint controller at home."""
    return MotionStateController(simple_solver)


@pytest.fixture
def sink() -> List[str]:
    """Collects transport lines emitted by commands."""
    return []


# ---------------------------------------------------------------------------
# Logging Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def restore_root_logging() -> Generator[None, None, None]:
    """Drop handlers a test added to the root logger and reset the levels it changed."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    logging.getLogger('commander').setLevel(logging.NOTSET)
