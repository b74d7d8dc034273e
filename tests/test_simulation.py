import pytest
import numpy as np
from unittest.mock import Mock
import sys
import os

# Add the src directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from livetrain.noise.noise import NoiseGenerator
from livetrain.robot.robot import Robot
from livetrain.simulation.clock import Clock
from livetrain.simulation.engine import Simulation
from livetrain.simulation.motion import Pose


@pytest.fixture
def clock(fake_time):
    return Clock(fake_time)


@pytest.fixture
def driving_robot(clock):
    """Open-loop robot at full forward power: 100 units/s along +x."""
    robot = Robot(clock, NoiseGenerator())
    robot.drivetrain.set_powers(1.0, 1.0, 1.0, 1.0)
    return robot


def mock_body():
    body = Mock()
    body.get_current_state.return_value = {}
    return body


class TestRegistry:
    """Test object registration and update order"""

    def test_robot_registered_first(self, clock, driving_robot):
        simulation = Simulation(clock, driving_robot)
        assert simulation.objects == [driving_robot]

    def test_update_order_and_shared_timestamp(self, clock, fake_time):
        calls = []
        robot = mock_body()
        other = mock_body()
        robot.update.side_effect = lambda t: calls.append(('robot', t))
        other.update.side_effect = lambda t: calls.append(('other', t))

        simulation = Simulation(clock, robot)
        simulation.add_object(other)
        simulation.set_run(True)
        fake_time.advance(0.5)
        simulation.update()

        assert [name for name, _ in calls] == ['robot', 'other']
        assert calls[0][1] == calls[1][1] == pytest.approx(0.5)

    def test_objects_is_a_copy(self, clock, driving_robot):
        simulation = Simulation(clock, driving_robot)
        simulation.objects.append(mock_body())
        assert len(simulation.objects) == 1

    def test_invalid_resolution(self, clock, driving_robot):
        with pytest.raises(ValueError):
            Simulation(clock, driving_robot, resolution=0.0)


class TestRunState:
    """Test pause, resume and reset"""

    def test_paused_update_is_noop(self, clock, fake_time):
        robot = mock_body()
        simulation = Simulation(clock, robot)
        fake_time.advance(1.0)
        simulation.update()
        robot.update.assert_not_called()

    def test_set_run_resets_timestamps(self, clock):
        robot = mock_body()
        other = mock_body()
        simulation = Simulation(clock, robot)
        simulation.add_object(other)
        simulation.set_run(True)
        simulation.set_run(False)
        assert robot.reset_timestamp.call_count == 2
        assert other.reset_timestamp.call_count == 2

    def test_resume_does_not_integrate_paused_interval(self, clock, fake_time, driving_robot):
        """Test the first cycle after resuming only records a baseline"""
        simulation = Simulation(clock, driving_robot)
        simulation.set_run(True)
        simulation.update()
        fake_time.advance(0.1)
        simulation.update()
        assert driving_robot.pose().x == pytest.approx(10.0)

        simulation.set_run(False)
        fake_time.advance(5.0)
        simulation.set_run(True)
        simulation.update()
        assert driving_robot.pose().x == pytest.approx(10.0)

    def test_speed_scales_motion(self, clock, fake_time, driving_robot):
        simulation = Simulation(clock, driving_robot)
        simulation.set_speed(2.0)
        simulation.set_run(True)
        simulation.update()
        fake_time.advance(0.1)
        simulation.update()
        assert driving_robot.pose().x == pytest.approx(20.0)
        assert clock.simulation_time() == pytest.approx(0.1)

    def test_reset(self, clock, fake_time, driving_robot):
        simulation = Simulation(clock, driving_robot)
        simulation.set_run(True)
        simulation.update()
        fake_time.advance(1.0)
        simulation.update()

        simulation.reset()
        assert not simulation.run
        assert clock.simulation_time() == 0.0
        assert driving_robot.velocity() == Pose()
        assert driving_robot.pose() == Pose(0.0, 0.0, 0.0)
        assert driving_robot.powers == (0.0, 0.0, 0.0, 0.0)

    def test_robot_stays_still_after_reset(self, clock, fake_time, driving_robot):
        """Test a reset robot with zero initial powers does not drive on resume"""
        simulation = Simulation(clock, driving_robot)
        simulation.set_run(True)
        simulation.update()
        fake_time.advance(1.0)
        simulation.update()

        simulation.reset()
        simulation.set_run(True)
        simulation.update()
        fake_time.advance(0.5)
        simulation.update()
        assert driving_robot.pose() == Pose(0.0, 0.0, 0.0)

    def test_reset_restores_initial_pose_and_powers(self, clock, fake_time):
        robot = Robot(clock, NoiseGenerator(), x=24.0, y=24.0, heading=0.5,
                      initial_powers=(1.0, 1.0, 1.0, 1.0))
        simulation = Simulation(clock, robot)
        simulation.set_run(True)
        simulation.update()
        fake_time.advance(1.0)
        simulation.update()
        assert robot.pose() != Pose(24.0, 24.0, 0.5)

        robot.drivetrain.set_powers(0.2, -0.2, 0.2, -0.2)
        simulation.reset()
        assert robot.pose() == Pose(24.0, 24.0, 0.5)
        assert robot.powers == (1.0, 1.0, 1.0, 1.0)
        assert robot.velocity() == Pose()


class TestAdvance:
    """Test batched time advancement"""

    def test_advance_steps_at_resolution(self, clock):
        robot = mock_body()
        simulation = Simulation(clock, robot, resolution=0.01)
        simulation.advance(0.05)
        assert simulation.advance_pending
        simulation.update()

        timestamps = [call.args[0] for call in robot.update.call_args_list]
        np.testing.assert_allclose(timestamps, [0.01, 0.02, 0.03, 0.04, 0.05])
        assert not simulation.advance_pending
        assert not simulation.run

    def test_advance_moves_robot(self, clock, driving_robot):
        """Test the first replayed step is a baseline and the rest integrate"""
        simulation = Simulation(clock, driving_robot, resolution=0.01)
        simulation.advance(1.0)
        simulation.update()
        assert clock.simulation_time() == pytest.approx(1.0)
        assert driving_robot.pose().x == pytest.approx(99.0)

    def test_chained_advances_integrate_continuously(self, clock, driving_robot):
        simulation = Simulation(clock, driving_robot, resolution=0.01)
        simulation.advance(0.5)
        simulation.update()
        simulation.advance(0.5, reset_timestamps=False)
        simulation.update()
        assert driving_robot.pose().x == pytest.approx(99.0)

    def test_partial_step_rounds_up(self, clock):
        robot = mock_body()
        simulation = Simulation(clock, robot, resolution=0.1)
        simulation.advance(0.25)
        simulation.update()
        assert robot.update.call_count == 3

    def test_zero_advance(self, clock):
        robot = mock_body()
        simulation = Simulation(clock, robot)
        simulation.advance(0.0)
        simulation.update()
        robot.update.assert_not_called()

    @pytest.mark.parametrize("duration", [-1.0, np.nan, np.inf])
    def test_invalid_duration(self, clock, driving_robot, duration):
        simulation = Simulation(clock, driving_robot)
        with pytest.raises(ValueError):
            simulation.advance(duration)
        assert not simulation.advance_pending

    def test_long_advance_warns(self, clock, driving_robot):
        simulation = Simulation(clock, driving_robot)
        with pytest.warns(UserWarning):
            simulation.advance(120.0)

    def test_advance_then_live_pass(self, clock, fake_time):
        """Test a running simulation replays the advance before its live pass"""
        robot = mock_body()
        simulation = Simulation(clock, robot, resolution=0.5)
        simulation.set_run(True)
        fake_time.advance(0.25)
        simulation.advance(1.0)
        simulation.update()
        timestamps = [call.args[0] for call in robot.update.call_args_list]
        np.testing.assert_allclose(timestamps, [0.75, 1.25, 1.25])


class TestSimulationState:
    """Test telemetry snapshots"""

    def test_get_current_state(self, clock, driving_robot):
        simulation = Simulation(clock, driving_robot)
        state = simulation.get_current_state()
        assert state['simulation_time'] == 0.0
        assert state['running'] == False
        assert state['speed'] == 1.0
        assert state['object_count'] == 1
        assert state['powers'] == (1.0, 1.0, 1.0, 1.0)
        assert 'pose' in state
