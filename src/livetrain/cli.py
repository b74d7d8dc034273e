"""
Command-line front end for the Livetrain simulator.

Runs a trajectory-following simulation headlessly, prints a tracking summary
and optionally plots the run.

Run with: livetrain --duration 20 --profile trapezoidal --plot
"""

import sys
import math
import time
import logging
import argparse
from typing import List, Optional

from .app import build_simulation
from .config import NoiseConfig, RobotConfig, SimulationConfig
from .noise.noise import NoiseKind
from .simulation.engine import Simulation
from .simulation.motion import Pose
from .simulation.trajectory import MotionConstraints, PathType, ProfileType
from .visualization.plotter import RunRecorder, plot_run

logger = logging.getLogger(__name__)

PATH_CHOICES = {'cubic': PathType.HERMITE_CUBIC, 'quintic': PathType.HERMITE_QUINTIC}
PROFILE_CHOICES = {
    'triangular': ProfileType.TRIANGULAR,
    'trapezoidal': ProfileType.TRAPEZOIDAL,
    's-curve': ProfileType.S_CURVE,
}
NOISE_CHOICES = {'random': NoiseKind.RANDOM, 'sinusoidal': NoiseKind.SINUSOIDAL}


def parse_waypoint(text: str) -> Pose:
    """Parse 'x,y,heading_degrees' into a Pose."""
    try:
        x, y, heading = (float(part) for part in text.split(','))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Waypoint must be 'x,y,heading_deg', got '{text}'")
    return Pose(x, y, math.radians(heading))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Mecanum robot trajectory-following simulator')
    parser.add_argument('--duration', type=float, default=None,
                        help='Simulated seconds to run (default: trajectory duration + 2)')
    parser.add_argument('--waypoint', type=parse_waypoint, action='append', dest='waypoints',
                        help="Waypoint 'x,y,heading_deg'; repeat for each knot")
    parser.add_argument('--path', choices=sorted(PATH_CHOICES), default='cubic',
                        help='Hermite path type (default: cubic)')
    parser.add_argument('--profile', choices=sorted(PROFILE_CHOICES), default='triangular',
                        help='Motion profile type (default: triangular)')
    parser.add_argument('--constraints', type=float, nargs=3, metavar=('V', 'A', 'J'),
                        default=(12.0, 6.0, 4.0),
                        help='Max velocity, acceleration and jerk (default: 12 6 4)')
    parser.add_argument('--speed', type=float, default=1.0,
                        help='Simulation speed multiplier (default: 1.0)')
    parser.add_argument('--frequency', type=float, default=100.0,
                        help='Controller update frequency in Hz (default: 100)')
    parser.add_argument('--noise', choices=['off'] + sorted(NOISE_CHOICES), default='off',
                        help='Static pose noise waveform (default: off)')
    parser.add_argument('--noise-bounds', type=float, nargs=2, metavar=('LO', 'HI'),
                        default=(-0.5, 0.5), help='Static noise bounds (default: -0.5 0.5)')
    parser.add_argument('--additive-noise', choices=['off'] + sorted(NOISE_CHOICES), default='off',
                        help='Accumulated pose noise waveform (default: off)')
    parser.add_argument('--additive-noise-bounds', type=float, nargs=2, metavar=('LO', 'HI'),
                        default=(-0.01, 0.01), help='Accumulated noise bounds (default: -0.01 0.01)')
    parser.add_argument('--initial-powers', type=float, nargs=4, metavar=('P0', 'P1', 'P2', 'P3'),
                        default=(0.0, 0.0, 0.0, 0.0),
                        help='Wheel powers at start and after reset (default: 0 0 0 0)')
    parser.add_argument('--seed', type=int, default=None, help='Seed for random noise')
    parser.add_argument('--sample-interval', type=float, default=0.1,
                        help='Telemetry sampling interval in simulated seconds (default: 0.1)')
    parser.add_argument('--real-time', action='store_true',
                        help='Run against the wall clock instead of batched advancement')
    parser.add_argument('--plot', action='store_true', help='Plot the run with matplotlib')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: WARNING)')
    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    noise_kwargs = {'seed': args.seed}
    if args.noise != 'off':
        noise_kwargs.update(static_kind=NOISE_CHOICES[args.noise],
                            static_bounds=tuple(args.noise_bounds))
    if args.additive_noise != 'off':
        noise_kwargs.update(additive_kind=NOISE_CHOICES[args.additive_noise],
                            additive_bounds=tuple(args.additive_noise_bounds))
    noise = NoiseConfig(enabled=len(noise_kwargs) > 1, **noise_kwargs)

    robot_kwargs = {'update_frequency': args.frequency,
                    'initial_powers': tuple(args.initial_powers)}
    extra = {}
    if args.waypoints:
        first = args.waypoints[0]
        robot_kwargs.update(x=first.x, y=first.y, heading=first.heading)
        extra['waypoints'] = tuple(args.waypoints)

    return SimulationConfig(
        speed=args.speed,
        robot=RobotConfig(**robot_kwargs),
        noise=noise,
        constraints=MotionConstraints(*args.constraints),
        path_type=PATH_CHOICES[args.path],
        profile_type=PROFILE_CHOICES[args.profile],
        **extra,
    )


def run_batched(simulation: Simulation, duration: float, interval: float,
                recorder: RunRecorder) -> None:
    """Advance the paused simulation in interval-sized chunks, sampling after each."""
    elapsed = 0.0
    while elapsed < duration - 1e-9:
        chunk = min(interval, duration - elapsed)
        simulation.advance(chunk, reset_timestamps=False)
        simulation.update()
        elapsed += chunk
        recorder.record(simulation)


def run_real_time(simulation: Simulation, duration: float, interval: float,
                  recorder: RunRecorder) -> None:
    """Run against the wall clock, sampling every interval of simulation time."""
    simulation.set_run(True)
    next_sample = 0.0
    while simulation.clock.simulation_time() < duration:
        simulation.update()
        if simulation.clock.simulation_time() >= next_sample:
            recorder.record(simulation)
            next_sample += interval
        time.sleep(0.001)
    simulation.set_run(False)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    if args.sample_interval <= 0:
        parser.error(f"--sample-interval must be positive, got {args.sample_interval}")

    try:
        config = config_from_args(args)
        simulation = build_simulation(config)
    except ValueError as e:
        parser.error(str(e))

    trajectory = simulation.robot.follower.trajectory
    duration = args.duration if args.duration is not None else trajectory.duration + 2.0

    print(f"=== Livetrain: {config.path_type.value} path, {config.profile_type.value} profile ===")
    print(f"Trajectory length: {trajectory.path.length:.2f}, duration: {trajectory.duration:.2f}s")
    print(f"Simulating {duration:.2f}s ({'real time' if args.real_time else 'batched'})")

    recorder = RunRecorder()
    if args.real_time:
        run_real_time(simulation, duration, args.sample_interval, recorder)
    else:
        run_batched(simulation, duration, args.sample_interval, recorder)

    final = simulation.robot.pose()
    print(f"Final pose: x={final.x:.2f} y={final.y:.2f} heading={math.degrees(final.heading):.1f}°")

    stats = recorder.summary()
    if stats is not None:
        print(f"Tracking error: mean={stats.mean_error:.3f} max={stats.max_error:.3f} "
              f"rms={stats.rms_error:.3f} final={stats.final_error:.3f}")

    if args.plot:
        plot_run(recorder, trajectory)

    return 0


if __name__ == "__main__":
    sys.exit(main())
