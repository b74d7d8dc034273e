import pytest
import numpy as np
from unittest.mock import Mock
import sys
import os

# Add the src directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from livetrain.noise.noise import NoiseGenerator, NoiseKind
from livetrain.robot.follower import NoTrajectoryError, TrajectoryFollower
from livetrain.robot.robot import Robot
from livetrain.simulation.clock import Clock
from livetrain.simulation.motion import Pose
from livetrain.simulation.trajectory import PathType, ProfileType


@pytest.fixture
def clock(fake_time):
    return Clock(fake_time)


@pytest.fixture
def mock_follower():
    follower = Mock(spec=TrajectoryFollower)
    follower.update.return_value = np.zeros(4)
    follower.path_pose = follower.path_velocity = follower.path_acceleration = None
    return follower


def make_robot(clock, noise=None, **kwargs):
    return Robot(clock, noise or NoiseGenerator(), **kwargs)


class TestRobotConfiguration:
    """Test robot construction and setters"""

    def test_defaults(self, clock):
        robot = make_robot(clock, x=24.0, y=24.0)
        assert robot.pose() == Pose(24.0, 24.0, 0.0)
        assert robot.width == 18.0 and robot.height == 18.0
        assert robot.update_frequency == 100.0
        assert robot.is_following_trajectory == False
        assert robot.drivetrain.half_width == 9.0

    def test_set_size_updates_drivetrain(self, clock):
        robot = make_robot(clock)
        robot.set_size(20.0, 10.0)
        assert (robot.drivetrain.half_width, robot.drivetrain.half_length) == (10.0, 5.0)

    def test_invalid_size_rejected(self, clock):
        robot = make_robot(clock)
        with pytest.raises(ValueError):
            robot.set_size(-1.0, 10.0)
        assert robot.width == 18.0

    @pytest.mark.parametrize("frequency", [0.0, -10.0, np.inf])
    def test_invalid_update_frequency(self, clock, frequency):
        robot = make_robot(clock)
        with pytest.raises(ValueError):
            robot.set_update_frequency(frequency)
        assert robot.update_frequency == 100.0

    def test_build_trajectory_uses_constraints(self, clock):
        robot = make_robot(clock)
        robot.set_motion_constraints(10.0, 5.0, 2.0)
        trajectory = robot.build_trajectory([Pose(0.0, 0.0, 0.0), Pose(50.0, 0.0, 0.0)],
                                            PathType.HERMITE_QUINTIC, ProfileType.TRAPEZOIDAL)
        assert robot.follower.trajectory is trajectory
        assert trajectory.profile.constraints.max_velocity == 10.0


class TestRobotKinematics:
    """Test the open-loop drive pipeline"""

    def test_forward_drive_rotated_into_world(self, clock):
        """Test full power at heading pi/2 moves the robot along +y at 100 units/s"""
        robot = make_robot(clock, heading=np.pi / 2)
        robot.drivetrain.set_powers(1.0, 1.0, 1.0, 1.0)
        robot.update(0.0)
        velocity = robot.velocity()
        np.testing.assert_allclose([velocity.x, velocity.y], [0.0, 100.0], atol=1e-9)
        assert np.hypot(velocity.x, velocity.y) == pytest.approx(100.0)

        robot.update(0.1)
        np.testing.assert_allclose(robot.pose().position, [0.0, 10.0], atol=1e-9)

    def test_angular_velocity_is_negated(self, clock):
        robot = make_robot(clock)
        robot.drivetrain.set_powers(-1.0, -1.0, 1.0, 1.0)
        robot.update(0.0)
        expected = robot.drivetrain.state().heading
        assert expected > 0.0
        assert robot.velocity().heading == pytest.approx(-expected)

    def test_no_control_when_not_following(self, clock, mock_follower):
        robot = make_robot(clock, follower=mock_follower)
        robot.update(0.0)
        robot.update(1.0)
        mock_follower.update.assert_not_called()
        assert robot.estimated_pose is None


class TestControllerGate:
    """Test controller rate limiting"""

    def test_fires_on_first_update(self, clock, mock_follower):
        robot = make_robot(clock, follower=mock_follower)
        robot.set_is_following_trajectory(True)
        robot.update(0.0)
        assert mock_follower.update.call_count == 1

    def test_calls_within_period_are_gated(self, clock, mock_follower):
        """Test 10 Hz gating rejects a call 0.05 s after a firing"""
        robot = make_robot(clock, follower=mock_follower, update_frequency=10.0)
        robot.set_is_following_trajectory(True)
        robot.update(0.0)
        robot.update(0.05)
        assert mock_follower.update.call_count == 1

    def test_calls_past_period_fire(self, clock, mock_follower):
        robot = make_robot(clock, follower=mock_follower, update_frequency=10.0)
        robot.set_is_following_trajectory(True)
        robot.update(0.0)
        robot.update(0.11)
        assert mock_follower.update.call_count == 2

    def test_gate_measures_from_last_firing(self, clock, mock_follower):
        """Test gated cycles do not push the next firing back"""
        robot = make_robot(clock, follower=mock_follower, update_frequency=10.0)
        robot.set_is_following_trajectory(True)
        for t in np.arange(0.0, 1.0, 0.01):
            robot.update(float(t))
        assert 9 <= mock_follower.update.call_count <= 10

    def test_reset_timestamp_reopens_gate(self, clock, mock_follower):
        robot = make_robot(clock, follower=mock_follower, update_frequency=10.0)
        robot.set_is_following_trajectory(True)
        robot.update(0.0)
        robot.reset_timestamp()
        robot.update(0.01)
        assert mock_follower.update.call_count == 2

    def test_powers_applied_clamped(self, clock, mock_follower):
        mock_follower.update.return_value = np.array([2.0, -2.0, 0.5, 0.0])
        robot = make_robot(clock, follower=mock_follower)
        robot.set_is_following_trajectory(True)
        robot.update(0.0)
        assert robot.powers == (1.0, -1.0, 0.5, 0.0)

    def test_follower_sees_estimated_pose(self, clock, mock_follower):
        robot = make_robot(clock, follower=mock_follower, x=3.0, y=4.0)
        robot.set_is_following_trajectory(True)
        robot.update(2.0)
        mock_follower.update.assert_called_once_with(Pose(3.0, 4.0, 0.0), 2.0)
        assert robot.actual_pose == Pose(3.0, 4.0, 0.0)


class TestRobotNoise:
    """Test how pose noise reaches the controller"""

    def test_static_noise_does_not_accumulate(self, clock, mock_follower):
        noise = NoiseGenerator(enabled=True)
        noise.set_static(NoiseKind.SINUSOIDAL, 0.0, 4.0)
        robot = make_robot(clock, noise, follower=mock_follower, update_frequency=10.0)
        robot.set_is_following_trajectory(True)
        robot.update(0.0)
        robot.update(2.0 * np.pi)
        np.testing.assert_allclose(robot.estimated_pose.to_array(), [1.0, 1.0, 1.0], atol=1e-9)
        assert robot.noise_pose == Pose()
        assert robot.pose() == Pose()

    def test_additive_noise_accumulates(self, clock, mock_follower):
        noise = NoiseGenerator(enabled=True)
        noise.set_additive(NoiseKind.SINUSOIDAL, 0.0, 1.0)
        robot = make_robot(clock, noise, follower=mock_follower, update_frequency=10.0)
        robot.set_is_following_trajectory(True)
        robot.update(0.0)
        robot.update(0.0 + 2.0 * np.pi)
        # sin(0) = sin(2 pi) leaves the quarter-range offset each firing
        np.testing.assert_allclose(robot.noise_pose.to_array(), [0.5, 0.5, 0.5], atol=1e-9)
        np.testing.assert_allclose(robot.estimated_pose.to_array(), [0.5, 0.5, 0.5], atol=1e-9)

    def test_reset_timestamp_clears_additive_offset(self, clock, mock_follower):
        noise = NoiseGenerator(enabled=True)
        noise.set_additive(NoiseKind.RANDOM, 1.0, 1.0)
        robot = make_robot(clock, noise, follower=mock_follower)
        robot.set_is_following_trajectory(True)
        robot.update(0.0)
        assert robot.noise_pose == Pose(1.0, 1.0, 1.0)
        robot.reset_timestamp()
        assert robot.noise_pose == Pose()

    def test_noise_never_touches_true_pose(self, clock):
        noise = NoiseGenerator(enabled=True, seed=3)
        noise.set_static(NoiseKind.RANDOM, -5.0, 5.0)
        noise.set_additive(NoiseKind.RANDOM, -5.0, 5.0)
        robot = make_robot(clock, noise, x=24.0, y=24.0, follower=TrajectoryFollower())
        robot.build_trajectory([Pose(24.0, 24.0, 0.0), Pose(144.0, 24.0, 0.0)])
        robot.set_is_following_trajectory(True)
        robot.update(0.0)
        assert robot.pose() == Pose(24.0, 24.0, 0.0)
        assert robot.estimated_pose != robot.actual_pose


class TestFailedControlCycle:
    """Test that a failing controller cycle leaves the robot untouched"""

    def test_missing_trajectory_commits_nothing(self, clock):
        noise = NoiseGenerator(enabled=True)
        noise.set_additive(NoiseKind.RANDOM, 1.0, 1.0)
        robot = make_robot(clock, noise, follower=TrajectoryFollower())
        robot.set_is_following_trajectory(True)

        with pytest.raises(NoTrajectoryError):
            robot.update(0.0)

        assert robot.noise_pose == Pose()
        assert robot.actual_pose is None
        assert robot.estimated_pose is None
        assert robot.body.last_update_timestamp is None

    def test_rejected_powers_keep_previous_state(self, clock, mock_follower):
        noise = NoiseGenerator(enabled=True)
        noise.set_additive(NoiseKind.RANDOM, 1.0, 1.0)
        robot = make_robot(clock, noise, follower=mock_follower, update_frequency=10.0)
        robot.set_is_following_trajectory(True)
        mock_follower.update.return_value = np.array([0.5, 0.5, 0.5, 0.5])
        robot.update(0.0)

        mock_follower.update.side_effect = ValueError("non-finite powers")
        with pytest.raises(ValueError):
            robot.update(1.0)

        assert robot.noise_pose == Pose(1.0, 1.0, 1.0)
        assert robot.estimated_pose == Pose(1.0, 1.0, 1.0)
        assert robot.powers == (0.5, 0.5, 0.5, 0.5)

        # The gate stays open, so the next cycle retries immediately
        mock_follower.update.side_effect = None
        robot.update(1.01)
        assert mock_follower.update.call_count == 3


class TestInitialState:
    """Test the pose and powers restored on reset"""

    def test_initial_powers_applied(self, clock):
        robot = make_robot(clock, initial_powers=(2.0, 0.5, -0.5, 0.0))
        assert robot.initial_powers == (1.0, 0.5, -0.5, 0.0)
        assert robot.powers == (1.0, 0.5, -0.5, 0.0)

    def test_non_finite_initial_powers_rejected(self, clock):
        robot = make_robot(clock)
        with pytest.raises(ValueError):
            robot.set_initial_powers(np.nan, 0.0, 0.0, 0.0)
        assert robot.initial_powers == (0.0, 0.0, 0.0, 0.0)

    def test_restore_initial_state(self, clock):
        robot = make_robot(clock, x=1.0, y=2.0, heading=3.0, initial_powers=(0.1, 0.1, 0.1, 0.1))
        robot.set_pose(50.0, 60.0, 0.0)
        robot.drivetrain.set_powers(-1.0, -1.0, -1.0, -1.0)
        robot.body.set_velocity(5.0, 5.0, 5.0)
        robot.set_initial_pose(4.0, 5.0, 6.0)

        robot.restore_initial_state()
        assert robot.pose() == Pose(4.0, 5.0, 6.0)
        assert robot.powers == pytest.approx((0.1, 0.1, 0.1, 0.1))
        assert robot.velocity() == Pose()


class TestRobotState:
    """Test telemetry snapshots"""

    def test_get_current_state(self, clock):
        robot = make_robot(clock, x=1.0)
        state = robot.get_current_state()
        assert state['pose'] == Pose(1.0, 0.0, 0.0)
        assert state['powers'] == (0.0, 0.0, 0.0, 0.0)
        assert state['estimated_pose'] is None
        assert state['is_following_trajectory'] == False
