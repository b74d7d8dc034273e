"""
Reference Trajectory Generation for Trajectory Following

This module provides the reference-trajectory service consumed by the
trajectory follower: Hermite paths through user waypoints, time
parameterised by a one-dimensional motion profile along the path's arc
length.

Mathematical Framework:
    Path: each pair of consecutive waypoints P_k = (x_k, y_k, θ_k) is joined
    by a parametric Hermite segment p(u), u ∈ [0, 1], with end tangents

        p'(0) = L (cos θ_k, sin θ_k),   p'(1) = L (cos θ_k+1, sin θ_k+1)

    where L is the chord length. Quintic segments additionally pin the
    second derivative to zero at both ends.

    Arc length:  s(u) = ∫₀ᵘ |p'(w)| dw         (trapezoidal quadrature)
    Curvature:   κ    = (x'y'' - y'x'') / |p'|³

    Profile: s(t), v(t), a(t) built from constant-jerk phases
        - Triangular:  accelerate / decelerate at a_max
        - Trapezoidal: a_max ramps with a cruise at v_max when reachable
        - S-curve:     seven jerk-limited phases, peak velocity solved
                       numerically when no cruise phase fits

    Reference kinematics at time t, with heading θ(s) along the path:
        v_ref = v (cos θ, sin θ, κ)
        a_ref = (a cos θ - v²κ sin θ, a sin θ + v²κ cos θ, a κ)

Author: Scientific Computing Team
License: MIT
"""

import logging
import numpy as np
from typing import List, Sequence, Tuple
from dataclasses import dataclass
from enum import Enum

from scipy.integrate import cumulative_trapezoid
from scipy.interpolate import BPoly
from scipy.optimize import brentq

from .motion import MotionState1D, Pose

logger = logging.getLogger(__name__)


class ProfileType(Enum):
    """Velocity profile shapes available for traversing a path."""
    TRIANGULAR = "triangular"
    TRAPEZOIDAL = "trapezoidal"
    S_CURVE = "s-curve"


class PathType(Enum):
    """Hermite path families."""
    HERMITE_CUBIC = "cubic"
    HERMITE_QUINTIC = "quintic"


@dataclass(frozen=True)
class MotionConstraints:
    """Kinematic limits used to time-parameterise a path."""

    max_velocity: float = 12.0
    max_acceleration: float = 6.0
    max_jerk: float = 4.0

    def __post_init__(self):
        """Validate constraint values."""
        for name in ("max_velocity", "max_acceleration", "max_jerk"):
            value = getattr(self, name)
            if not np.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be finite and non-negative, got {value}")


# (duration, acceleration at phase start, jerk)
Phase = Tuple[float, float, float]


class MotionProfile:
    """
    One-dimensional motion profile covering a fixed distance.

    The profile is a sequence of constant-jerk phases. Boundary states are
    chained once at construction; sampling integrates from the start of the
    active phase.

    Attributes:
        distance (float): Total distance covered [units]
        constraints (MotionConstraints): Limits used to plan the profile
        profile_type (ProfileType): Shape of the profile
        duration (float): Time to cover the distance [s]
    """

    def __init__(self, distance: float, constraints: MotionConstraints,
                 profile_type: ProfileType = ProfileType.TRIANGULAR):
        if not np.isfinite(distance) or distance < 0:
            raise ValueError(f"Profile distance must be finite and non-negative, got {distance}")

        self.distance = float(distance)
        self.constraints = constraints
        self.profile_type = profile_type

        self._phases = self._plan() if self.distance > 0 else []

        start_times = []
        start_states = []
        t = 0.0
        state = MotionState1D()
        for duration, acceleration, jerk in self._phases:
            state = MotionState1D(state.x, state.v, acceleration, jerk)
            start_times.append(t)
            start_states.append(state)
            state = state.state_at_time(duration)
            t += duration

        self._start_times = np.array(start_times)
        self._start_states = start_states
        self.duration = t

    def _plan(self) -> List[Phase]:
        v_max = self.constraints.max_velocity
        a_max = self.constraints.max_acceleration
        j_max = self.constraints.max_jerk
        L = self.distance

        if self.profile_type == ProfileType.TRIANGULAR:
            self._require_positive(max_acceleration=a_max)
            t_acc = np.sqrt(L / a_max)
            return [(t_acc, a_max, 0.0), (t_acc, -a_max, 0.0)]

        if self.profile_type == ProfileType.TRAPEZOIDAL:
            self._require_positive(max_velocity=v_max, max_acceleration=a_max)
            t_acc = v_max / a_max
            d_acc = v_max * v_max / (2.0 * a_max)
            if 2.0 * d_acc >= L:
                t_acc = np.sqrt(L / a_max)
                return [(t_acc, a_max, 0.0), (t_acc, -a_max, 0.0)]
            cruise = (L - 2.0 * d_acc) / v_max
            return [(t_acc, a_max, 0.0), (cruise, 0.0, 0.0), (t_acc, -a_max, 0.0)]

        if self.profile_type == ProfileType.S_CURVE:
            self._require_positive(max_velocity=v_max, max_acceleration=a_max, max_jerk=j_max)
            return self._plan_s_curve(v_max, a_max, j_max, L)

        raise ValueError(f"Unknown profile type: {self.profile_type}")

    @staticmethod
    def _plan_s_curve(v_max: float, a_max: float, j_max: float, L: float) -> List[Phase]:
        def ramp(v_peak: float) -> Tuple[float, float, float]:
            # (jerk time, constant-acceleration time, acceleration reached)
            if v_peak * j_max >= a_max * a_max:
                return a_max / j_max, v_peak / a_max - a_max / j_max, a_max
            t_jerk = np.sqrt(v_peak / j_max)
            return t_jerk, 0.0, j_max * t_jerk

        def ramp_distance(v_peak: float) -> float:
            # Symmetric ramp: average velocity is v_peak / 2
            t_jerk, t_const, _ = ramp(v_peak)
            return v_peak * (2.0 * t_jerk + t_const) / 2.0

        v_peak = v_max
        if 2.0 * ramp_distance(v_max) > L:
            v_peak = brentq(lambda v: 2.0 * ramp_distance(v) - L, 0.0, v_max)
            cruise = 0.0
        else:
            cruise = (L - 2.0 * ramp_distance(v_max)) / v_max

        t_jerk, t_const, a_peak = ramp(v_peak)
        return [
            (t_jerk, 0.0, j_max),
            (t_const, a_peak, 0.0),
            (t_jerk, a_peak, -j_max),
            (cruise, 0.0, 0.0),
            (t_jerk, 0.0, -j_max),
            (t_const, -a_peak, 0.0),
            (t_jerk, -a_peak, j_max),
        ]

    def _require_positive(self, **limits: float) -> None:
        for name, value in limits.items():
            if value <= 0:
                raise ValueError(
                    f"{self.profile_type.value} profile requires positive {name}, got {value}")

    def state(self, t: float) -> MotionState1D:
        """
        Sample the profile.

        Args:
            t: Time since the profile start [s]. Clamped to [0, duration].

        Returns:
            MotionState1D with x = distance travelled along the path
        """
        if not self._phases or t <= 0:
            return MotionState1D()
        if t >= self.duration:
            return MotionState1D(x=self.distance)

        index = int(np.searchsorted(self._start_times, t, side="right")) - 1
        state = self._start_states[index].state_at_time(t - self._start_times[index])
        return MotionState1D(float(np.clip(state.x, 0.0, self.distance)), state.v, state.a, state.j)

    def __repr__(self) -> str:
        return (f"MotionProfile({self.profile_type.value}, distance={self.distance:.3f}, "
                f"duration={self.duration:.3f}s)")


class HermiteSegment:
    """
    Parametric Hermite curve between two waypoints.

    Attributes:
        start (Pose): Start waypoint
        end (Pose): End waypoint
        path_type (PathType): Cubic or quintic basis
        length (float): Arc length of the segment
    """

    SAMPLES = 257

    def __init__(self, start: Pose, end: Pose, path_type: PathType = PathType.HERMITE_CUBIC):
        chord = float(np.hypot(end.x - start.x, end.y - start.y))
        if chord <= 0:
            raise ValueError(f"Consecutive waypoints must be distinct, got {start} twice")

        self.start = start
        self.end = end
        self.path_type = path_type

        t0 = chord * np.array([np.cos(start.heading), np.sin(start.heading)])
        t1 = chord * np.array([np.cos(end.heading), np.sin(end.heading)])

        if path_type == PathType.HERMITE_CUBIC:
            x_knots = [[start.x, t0[0]], [end.x, t1[0]]]
            y_knots = [[start.y, t0[1]], [end.y, t1[1]]]
        elif path_type == PathType.HERMITE_QUINTIC:
            x_knots = [[start.x, t0[0], 0.0], [end.x, t1[0], 0.0]]
            y_knots = [[start.y, t0[1], 0.0], [end.y, t1[1], 0.0]]
        else:
            raise ValueError(f"Unknown path type: {path_type}")

        self._x = BPoly.from_derivatives([0.0, 1.0], x_knots)
        self._y = BPoly.from_derivatives([0.0, 1.0], y_knots)
        self._dx, self._dy = self._x.derivative(1), self._y.derivative(1)
        self._ddx, self._ddy = self._x.derivative(2), self._y.derivative(2)

        # Arc-length and heading tables
        self._u_table = np.linspace(0.0, 1.0, self.SAMPLES)
        dx, dy = self._dx(self._u_table), self._dy(self._u_table)
        self._s_table = cumulative_trapezoid(np.hypot(dx, dy), self._u_table, initial=0.0)
        self.length = float(self._s_table[-1])

        heading = np.unwrap(np.arctan2(dy, dx))
        # Align the table with the waypoint heading, which is not wrapped
        heading += 2.0 * np.pi * np.round((start.heading - heading[0]) / (2.0 * np.pi))
        self._heading_table = heading

    def parameter_at(self, s: float) -> float:
        """Curve parameter u for arc length s (clamped to the segment)."""
        return float(np.interp(s, self._s_table, self._u_table))

    def pose_at(self, s: float) -> Pose:
        """
        Pose at arc length s along the segment.

        Args:
            s: Arc length from the segment start

        Returns:
            Pose with the path tangent as heading
        """
        u = self.parameter_at(s)
        return Pose(float(self._x(u)), float(self._y(u)),
                    float(np.interp(u, self._u_table, self._heading_table)))

    def curvature_at(self, s: float) -> float:
        u = self.parameter_at(s)
        dx, dy = float(self._dx(u)), float(self._dy(u))
        ddx, ddy = float(self._ddx(u)), float(self._ddy(u))
        speed = np.hypot(dx, dy)
        if speed < 1e-12:
            return 0.0
        return (dx * ddy - dy * ddx) / speed ** 3

    def __repr__(self) -> str:
        return (f"HermiteSegment({self.path_type.value}, {self.start!r} -> {self.end!r}, "
                f"length={self.length:.3f})")


class HermitePath:
    """
    Piecewise Hermite path through an ordered list of waypoints.

    Attributes:
        waypoints (List[Pose]): Knots the path passes through
        segments (List[HermiteSegment]): Renderable segments
        length (float): Total arc length
    """

    def __init__(self, waypoints: Sequence[Pose], path_type: PathType = PathType.HERMITE_CUBIC):
        if len(waypoints) < 2:
            raise ValueError(f"A path needs at least 2 waypoints, got {len(waypoints)}")

        self.waypoints = list(waypoints)
        self.path_type = path_type
        self.segments = [HermiteSegment(a, b, path_type)
                         for a, b in zip(self.waypoints[:-1], self.waypoints[1:])]

        self._offsets = np.concatenate(([0.0], np.cumsum([seg.length for seg in self.segments])))
        self.length = float(self._offsets[-1])

    def _locate(self, s: float) -> Tuple[HermiteSegment, float]:
        s = float(np.clip(s, 0.0, self.length))
        index = int(np.searchsorted(self._offsets, s, side="right")) - 1
        index = min(max(index, 0), len(self.segments) - 1)
        return self.segments[index], s - self._offsets[index]

    def pose_at(self, s: float) -> Pose:
        segment, local = self._locate(s)
        return segment.pose_at(local)

    def curvature_at(self, s: float) -> float:
        segment, local = self._locate(s)
        return segment.curvature_at(local)


class Trajectory:
    """
    Time-parameterised path: a HermitePath traversed with a MotionProfile.

    Attributes:
        path (HermitePath): Geometric path
        profile (MotionProfile): Distance profile along the path
        duration (float): Total traversal time [s]
    """

    def __init__(self, path: HermitePath, profile: MotionProfile):
        self.path = path
        self.profile = profile

    @property
    def duration(self) -> float:
        return self.profile.duration

    def pose_at_time(self, t: float) -> Pose:
        """Reference pose at time t."""
        return self.path.pose_at(self.profile.state(t).x)

    def velocity_at_time(self, t: float) -> Pose:
        """Reference world-frame velocity <vx, vy, omega> at time t."""
        state = self.profile.state(t)
        heading = self.path.pose_at(state.x).heading
        curvature = self.path.curvature_at(state.x)
        return Pose(state.v * np.cos(heading), state.v * np.sin(heading), state.v * curvature)

    def acceleration_at_time(self, t: float) -> Pose:
        """Reference world-frame acceleration <ax, ay, alpha> at time t."""
        state = self.profile.state(t)
        heading = self.path.pose_at(state.x).heading
        curvature = self.path.curvature_at(state.x)
        normal = state.v * state.v * curvature
        return Pose(state.a * np.cos(heading) - normal * np.sin(heading),
                    state.a * np.sin(heading) + normal * np.cos(heading),
                    state.a * curvature)

    def __repr__(self) -> str:
        return (f"Trajectory({self.path.path_type.value}, {len(self.path.waypoints)} waypoints, "
                f"length={self.path.length:.3f}, {self.profile!r})")


class TrajectoryBuilder:
    """Factory for trajectories from waypoints and motion constraints."""

    @staticmethod
    def build(path_type: PathType, constraints: MotionConstraints,
              profile_type: ProfileType, waypoints: Sequence[Pose]) -> Trajectory:
        path = HermitePath(waypoints, path_type)
        profile = MotionProfile(path.length, constraints, profile_type)
        trajectory = Trajectory(path, profile)
        logger.debug(f"Built {trajectory!r}")
        return trajectory

    @staticmethod
    def build_hermite_cubic(constraints: MotionConstraints, profile_type: ProfileType,
                            waypoints: Sequence[Pose]) -> Trajectory:
        return TrajectoryBuilder.build(PathType.HERMITE_CUBIC, constraints, profile_type, waypoints)

    @staticmethod
    def build_hermite_quintic(constraints: MotionConstraints, profile_type: ProfileType,
                              waypoints: Sequence[Pose]) -> Trajectory:
        return TrajectoryBuilder.build(PathType.HERMITE_QUINTIC, constraints, profile_type, waypoints)
