"""Guidance for ascent and circularization.

Available modules:
    orbital_mechanics: Launch azimuth, burn sizing and geometry helpers
    attitude_program: Phase-dependent steering vectors
"""

from ascent.guidance.attitude_program import AttitudeProgram, SteeringCommand
from ascent.guidance.orbital_mechanics import (
    Intersection,
    IntersectionKind,
    circularization_delta_v,
    ideal_burn_time,
    launch_azimuth,
    line_plane_intersection,
)

__all__ = [
    "AttitudeProgram",
    "Intersection",
    "IntersectionKind",
    "SteeringCommand",
    "circularization_delta_v",
    "ideal_burn_time",
    "launch_azimuth",
    "line_plane_intersection",
]
