"""Unit tests for the three-joint solver."""

import dataclasses

import numpy as np
import pytest
from numpy.testing import assert_allclose

from armlib.kinematics import SIXI_DIMENSIONS, Singular, SimpleArmSolver, Unreachable
from armlib.kinematics.simple_arm import FINGER_RIGHT

HOME = (0.0, -60.0, 160.0)


def test_home_positions(simple_solver: SimpleArmSolver) -> None:
    home = simple_solver.forward_kinematics(HOME)
    assert_allclose(home.shoulder, [5.0, 0.0, 8.0])
    assert_allclose(home.elbow, [17.5, 0.0, 29.650635], atol=1e-6)
    assert_allclose(home.finger, [44.992316, 0.0, 21.100132], atol=1e-6)


def test_finger_points_radially(simple_solver: SimpleArmSolver) -> None:
    kf = simple_solver.forward_kinematics((90.0, -30.0, 120.0))
    assert_allclose(kf.forward, [0.0, 1.0, 0.0], atol=1e-12)
    assert_allclose(kf.right, FINGER_RIGHT)
    assert kf.ulna is None


def test_home_orientation(simple_solver: SimpleArmSolver) -> None:
    home = simple_solver.forward_kinematics(HOME)
    assert home.u == pytest.approx(90.0)
    assert home.v == pytest.approx(0.0)
    assert home.w == pytest.approx(0.0)


def test_rejects_six_axis_dimensions() -> None:
    with pytest.raises(TypeError):
        SimpleArmSolver(SIXI_DIMENSIONS)


@pytest.mark.parametrize(
    "angles",
    [
        HOME,
        (45.0, -30.0, 120.0),
        (-90.0, -80.0, 150.0),
    ],
)
def test_round_trip(simple_solver: SimpleArmSolver, angles) -> None:
    kf = simple_solver.forward_kinematics(angles)
    result = simple_solver.inverse_kinematics(kf.finger, kf.forward, kf.right, kf)
    assert result.success, result.error
    assert_allclose(result.keyframe.angles, angles, atol=1e-6)
    assert_allclose(result.keyframe.finger, kf.finger, atol=1e-6)


def test_elbow_stays_above_reach_line(simple_solver: SimpleArmSolver) -> None:
    result = simple_solver.inverse_kinematics([30.0, 0.0, 5.0], [1.0, 0.0, 0.0], FINGER_RIGHT)
    kf = result.keyframe
    # Elbow sits above the shoulder-wrist line in the arm plane
    line = kf.wrist - kf.shoulder
    t = np.dot(kf.elbow - kf.shoulder, line) / np.dot(line, line)
    assert kf.elbow[2] > kf.shoulder[2] + t * line[2]


def test_reachable_orientation(simple_solver: SimpleArmSolver) -> None:
    forward, right = simple_solver.reachable_orientation(
        np.array([3.0, 4.0, 10.0]), np.array([0.0, 0.0, 1.0]), np.array([1.0, 0.0, 0.0]))
    assert_allclose(forward, [0.6, 0.8, 0.0])
    assert_allclose(right, [0.0, 0.0, -1.0])


def test_orientation_override(simple_solver: SimpleArmSolver) -> None:
    home = simple_solver.forward_kinematics(HOME)
    result = simple_solver.inverse_kinematics(home.finger, home.forward, home.right, home, (1.0, 2.0, 3.0))
    assert result.keyframe.orientation == (1.0, 2.0, 3.0)


class TestFailures:
    """IK failures come back as values."""

    def test_too_far(self, simple_solver: SimpleArmSolver) -> None:
        result = simple_solver.inverse_kinematics([60.0, 0.0, 20.0], [1.0, 0.0, 0.0], FINGER_RIGHT)
        assert not result.success
        assert isinstance(result.error, Unreachable)

    def test_inside_min_reach(self, simple_solver: SimpleArmSolver) -> None:
        result = simple_solver.inverse_kinematics([6.0, 0.0, 10.0], [1.0, 0.0, 0.0], FINGER_RIGHT)
        assert isinstance(result.error, Unreachable)

    def test_wrist_on_axis(self, simple_solver: SimpleArmSolver) -> None:
        result = simple_solver.inverse_kinematics([0.0, 0.0, 30.0], [0.0, 0.0, 1.0], FINGER_RIGHT)
        assert isinstance(result.error, Singular)
        assert result.keyframe is None

    def test_zero_forward(self, simple_solver: SimpleArmSolver) -> None:
        result = simple_solver.inverse_kinematics([30.0, 0.0, 10.0], [0.0, 0.0, 0.0], FINGER_RIGHT)
        assert isinstance(result.error, Singular)


class TestMovePermitted:
    """Workspace checks for the three-joint arm."""

    def _at(self, simple_solver: SimpleArmSolver, finger):
        return dataclasses.replace(simple_solver.home_keyframe(), finger=np.array(finger, dtype=float))

    def test_home(self, simple_solver: SimpleArmSolver) -> None:
        assert simple_solver.move_permitted(simple_solver.home_keyframe())

    def test_reach_beyond_max(self, simple_solver: SimpleArmSolver) -> None:
        # Wrist solves (47 from the shoulder) but the finger is 51 away
        assert not simple_solver.move_permitted(self._at(simple_solver, [56.0, 0.0, 8.0]))

    def test_below_floor(self, simple_solver: SimpleArmSolver) -> None:
        assert not simple_solver.move_permitted(self._at(simple_solver, [30.0, 0.0, 0.1]))

    def test_above_ceiling(self, simple_solver: SimpleArmSolver) -> None:
        assert not simple_solver.move_permitted(self._at(simple_solver, [10.0, 0.0, 51.0]))

    def test_too_close(self, simple_solver: SimpleArmSolver) -> None:
        assert not simple_solver.move_permitted(self._at(simple_solver, [6.0, 0.0, 10.0]))

    def test_joint_limits_not_enforced(self, simple_solver: SimpleArmSolver) -> None:
        kf = simple_solver.forward_kinematics((0.0, 30.0, 20.0))
        assert simple_solver.check_angle_limits(kf.angles) == (True, None)
