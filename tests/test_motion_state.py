"""Unit tests for the motion state controller."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from armlib.kinematics import LimitViolation, Unreachable
from commander.motion_state import (
    MotionStateController,
    TickOutcome,
    attempt_joint,
)
from conftest import HOME_ANGLES, MID_ANGLES


class TestCartesianIntent:
    """Finger moves along X/Y/Z and U/V/W."""

    def test_home_plus_x_reverts_on_elbow_limit(self, controller: MotionStateController) -> None:
        before = controller.now
        p0 = before.finger.copy()

        result = controller.apply_cartesian_intent((1.0, 0.0, 0.0), (0.0, 0.0, 0.0), 2.0)

        assert result.outcome is TickOutcome.REVERTED
        assert isinstance(result.error, LimitViolation)
        assert result.error.joint == 2
        assert result.error.bound == "max"
        assert result.transport_line is None
        assert controller.now is before
        assert np.array_equal(controller.now.finger, p0)

    def test_mid_pose_plus_x_commits(self, mid_controller: MotionStateController) -> None:
        p0 = mid_controller.now.finger.copy()
        forward0 = mid_controller.now.forward.copy()

        result = mid_controller.apply_cartesian_intent((1.0, 0.0, 0.0), (0.0, 0.0, 0.0), 2.0)

        assert result.committed
        assert_allclose(mid_controller.now.finger, p0 + [2.0, 0.0, 0.0], atol=1e-6)
        assert_allclose(mid_controller.now.forward, forward0, atol=1e-9)
        assert result.transport_line.startswith("G0 X")
        assert result.transport_line.endswith(" F1000.0")

    def test_roll_keeps_forward(self, mid_controller: MotionStateController) -> None:
        before = mid_controller.now
        result = mid_controller.apply_cartesian_intent((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), 2.0)

        assert result.committed
        assert mid_controller.now.u == pytest.approx(before.u + 2.0)
        assert_allclose(mid_controller.now.forward, before.forward, atol=1e-9)
        assert_allclose(mid_controller.now.finger, before.finger, atol=1e-6)

    def test_unreachable_target_reverts(self, mid_controller: MotionStateController) -> None:
        before = mid_controller.now
        result = mid_controller.apply_cartesian_intent((1.0, 0.0, 0.0), (0.0, 0.0, 0.0), 100.0)
        assert result.outcome is TickOutcome.REVERTED
        assert mid_controller.now is before

    def test_needs_three_and_three(self, controller: MotionStateController) -> None:
        with pytest.raises(ValueError):
            controller.apply_cartesian_intent((1.0, 0.0), (0.0, 0.0, 0.0))

    def test_simple_arm_stays_radial(self, simple_controller: MotionStateController) -> None:
        p0 = simple_controller.now.finger.copy()
        result = simple_controller.apply_cartesian_intent((0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 2.0)

        assert result.committed
        assert_allclose(simple_controller.now.finger, p0 + [0.0, 0.0, 2.0], atol=1e-6)
        # Base yaw unchanged, so only Y and Z go out
        assert " X" not in result.transport_line
        assert " Y" in result.transport_line
        assert " Z" in result.transport_line


class TestJointIntent:
    """Per-joint moves."""

    def test_joint1_commits(self, controller: MotionStateController) -> None:
        result = controller.apply_joint_intent((0, 1, 0, 0, 0, 0), 2.0)
        assert result.committed
        assert controller.now.angles == (-45.0, 2.0, 188.0, 0.0, -90.0, 0.0)
        assert result.transport_line == "G0 Y2.0 F1000.0"

    def test_joint2_past_limit_reverts(self, controller: MotionStateController) -> None:
        before = controller.now
        result = controller.apply_joint_intent((0, 0, 1, 0, 0, 0), 2.0)
        assert result.outcome is TickOutcome.REVERTED
        assert result.error.joint == 2
        assert result.proposed is None
        assert controller.now is before

    def test_attempt_is_pure(self, six_solver) -> None:
        home = six_solver.home_keyframe()
        result = attempt_joint(six_solver, home, (1, 0, 0, 0, 0, 0), 2.0)
        assert result.committed
        assert home.angles == HOME_ANGLES
        assert result.keyframe.angles[0] == -43.0

    def test_wrong_delta_count(self, controller: MotionStateController) -> None:
        with pytest.raises(ValueError):
            controller.apply_joint_intent((0, 1, 0))


class TestNonFiniteIntent:
    """NaN and infinite intents revert instead of committing a broken pose."""

    def test_nan_joint_intent_reverts(self, controller: MotionStateController) -> None:
        before = controller.now
        result = controller.apply_joint_intent((0, float("nan"), 0, 0, 0, 0), 2.0)
        assert result.outcome is TickOutcome.REVERTED
        assert isinstance(result.error, LimitViolation)
        assert result.transport_line is None
        assert controller.now is before

    def test_nan_cartesian_jog_reverts(self, mid_controller: MotionStateController) -> None:
        before = mid_controller.now
        mid_controller.jog_cartesian("X", float("nan"))
        result = mid_controller.tick()
        assert result.outcome is TickOutcome.REVERTED
        assert isinstance(result.error, Unreachable)
        assert mid_controller.now is before

    def test_simple_arm_nan_intent_reverts(self, simple_controller: MotionStateController) -> None:
        before = simple_controller.now
        result = simple_controller.apply_joint_intent((0, float("nan"), 0), 2.0)
        assert result.outcome is TickOutcome.REVERTED
        assert simple_controller.now is before

    def test_infinite_tick_step_rejected(self, mid_controller: MotionStateController) -> None:
        before = mid_controller.now
        mid_controller.jog_cartesian("Z", 1.0)
        with pytest.raises(ValueError):
            mid_controller.tick(float("inf"))
        assert mid_controller.now is before


class TestIntentBookkeeping:
    """At most one intent group is ever pending."""

    def test_joint_jog_clears_cartesian(self, controller: MotionStateController) -> None:
        controller.jog_cartesian('X', 1)
        controller.jog_joint(1, 1)
        assert not controller.intent.has_cartesian
        result = controller.tick()
        assert result.committed
        assert controller.now.angles[1] == 2.0

    def test_cartesian_jog_clears_joints(self, controller: MotionStateController) -> None:
        controller.jog_joint(1, 1)
        controller.jog_cartesian(2, -1)
        assert not controller.intent.has_joint
        assert controller.intent.cartesian == [0.0, 0.0, -1.0, 0.0, 0.0, 0.0]

    def test_tick_clears_intent(self, controller: MotionStateController) -> None:
        controller.jog_joint(0, 1)
        controller.tick()
        assert not controller.intent.has_joint
        assert controller.tick().outcome is TickOutcome.IDLE

    def test_reverted_tick_clears_intent(self, controller: MotionStateController) -> None:
        controller.jog_joint(2, 1)
        assert controller.tick().outcome is TickOutcome.REVERTED
        assert not controller.intent.has_joint

    def test_jogs_accumulate(self, controller: MotionStateController) -> None:
        controller.jog_joint(0, 1)
        controller.jog_joint(0, 1)
        controller.tick()
        assert controller.now.angles[0] == -41.0

    def test_unknown_axis(self, controller: MotionStateController) -> None:
        with pytest.raises(ValueError):
            controller.jog_cartesian('Q', 1)
        with pytest.raises(ValueError):
            controller.jog_joint(6, 1)

    def test_idle_tick(self, controller: MotionStateController) -> None:
        before = controller.now
        result = controller.tick()
        assert result.outcome is TickOutcome.IDLE
        assert result.keyframe is before
        assert result.transport_line is None


class TestSettings:
    """Step size and feed rate setters."""

    def test_negative_step_ignored(self, controller: MotionStateController) -> None:
        assert controller.set_step_size(-1.0) is False
        assert controller.step_size == 2.0

    def test_negative_feed_ignored(self, controller: MotionStateController) -> None:
        assert controller.set_feed_rate(-5.0) is False
        assert controller.feed_rate == 1000.0

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_settings_ignored(self, controller: MotionStateController, value: float) -> None:
        assert controller.set_step_size(value) is False
        assert controller.set_feed_rate(value) is False
        assert controller.step_size == 2.0
        assert controller.feed_rate == 1000.0

    def test_feed_rate_in_transport_line(self, controller: MotionStateController) -> None:
        controller.set_feed_rate(250.0)
        result = controller.apply_joint_intent((0, 1, 0, 0, 0, 0), 2.0)
        assert result.transport_line == "G0 Y2.0 F250.0"

    def test_step_size_used_by_default(self, controller: MotionStateController) -> None:
        controller.set_step_size(0.5)
        controller.apply_joint_intent((1, 0, 0, 0, 0, 0))
        assert controller.now.angles[0] == -44.5

    def test_negative_tick_step_rejected(self, controller: MotionStateController) -> None:
        with pytest.raises(ValueError):
            controller.tick(-1.0)

    def test_zero_step_commits_nothing_new(self, controller: MotionStateController) -> None:
        result = controller.apply_joint_intent((0, 1, 0, 0, 0, 0), 0.0)
        assert result.committed
        assert result.transport_line is None


class TestAbsoluteCommands:
    """Home, feedback sync and base placement."""

    def test_home(self, controller: MotionStateController) -> None:
        controller.apply_joint_intent((0, 1, 0, 0, 0, 0), 2.0)
        assert controller.home() == "G28"
        assert_allclose(controller.now.angles, HOME_ANGLES)

    def test_home_matches_home_keyframe(self, controller: MotionStateController) -> None:
        home = controller.solver.home_keyframe()
        controller.apply_joint_intent((1, 1, 0, 0, 0, 0), 2.0)
        assert not controller.now.is_close(home)
        controller.home()
        assert controller.now.is_close(home)

    def test_is_close_needs_same_joint_count(self, controller: MotionStateController,
                                             simple_controller: MotionStateController) -> None:
        assert not controller.now.is_close(simple_controller.now)

    def test_home_keeps_base(self, controller: MotionStateController) -> None:
        controller.move_base((1.0, 2.0, 3.0))
        controller.home()
        assert_allclose(controller.now.base.anchor, [1.0, 2.0, 3.0])

    def test_sync_from_feedback(self, controller: MotionStateController) -> None:
        kf = controller.sync_from_feedback(dict(enumerate(MID_ANGLES)))
        assert kf is controller.now
        assert kf.angles == MID_ANGLES

    def test_sync_partial_report(self, controller: MotionStateController) -> None:
        controller.sync_from_feedback({1: 10.0})
        assert controller.now.angles == (-45.0, 10.0, 188.0, 0.0, -90.0, 0.0)

    def test_sync_outside_limits_still_commits(self, controller: MotionStateController) -> None:
        controller.sync_from_feedback({2: 190.0})
        assert controller.now.angles[2] == 190.0

    def test_move_base_shifts_proxies(self, controller: MotionStateController) -> None:
        before = controller.bounding_volumes()
        controller.move_base((10.0, 0.0, 0.0))
        after = controller.bounding_volumes()
        for a, b in zip(before, after):
            assert_allclose(b.start - a.start, [10.0, 0.0, 0.0], atol=1e-9)
        # Joint state is untouched
        assert controller.now.angles == HOME_ANGLES

    def test_rotate_base_moves_proxies(self, controller: MotionStateController) -> None:
        before = controller.bounding_volumes()
        controller.rotate_base(90.0, 0.0)
        after = controller.bounding_volumes()
        assert not np.allclose(before[-1].end, after[-1].end)
        assert_allclose(after[-1].end, controller.now.world_finger(), atol=1e-9)

    def test_proxies_follow_commit(self, controller: MotionStateController) -> None:
        before = controller.bounding_volumes()
        controller.apply_joint_intent((1, 0, 0, 0, 0, 0), 2.0)
        after = controller.bounding_volumes()
        assert len(after) == 6
        assert not np.allclose(before[-1].end, after[-1].end)
