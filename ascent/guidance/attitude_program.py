"""Phase-dependent steering targets for ascent and circularization.

Steering program:
1. Launch: straight up
2. Pitchover: fixed heading (launch azimuth) and pitch (90 deg - pitchover
   angle), held until the vehicle faces it within 1 deg
3. AOA settle: same vector, held until the surface velocity lines up with
   the facing within 2 deg (zero angle of attack)
4. Ascent: pitch follows the surface velocity, a zero-lift gravity turn,
   while the heading stays on the launch azimuth. Left free, the heading
   drifts with the Coriolis push on the steep early climb and the orbit
   ends up several degrees off the target inclination. On airless bodies
   there is nothing to settle against and the pitchover vector is held
   for the whole ascent instead.
5. Coast and circularization: the direction of the velocity the vehicle
   will have at the next apoapsis crossing

This is flight software - every method takes the current snapshot and
returns a fresh command; nothing is cached between ticks.
"""

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from ascent.guidance.orbital_mechanics import (
    angle_between,
    heading_pitch_vector,
    velocity_at_apoapsis,
)
from ascent.vehicle import VehicleSnapshot

# Convergence thresholds [deg]
PITCHOVER_TOLERANCE: float = 1.0
AOA_TOLERANCE: float = 2.0

# Below this surface speed the velocity direction is meaningless [m/s]
MIN_TRACKING_SPEED: float = 1.0


class SteeringCommand(NamedTuple):
    """Steering target.

    Attributes:
        direction: Unit vector to point the vehicle along (inertial)
        top: Roll reference, the direction the vehicle top should face
    """
    direction: NDArray[np.float64]
    top: NDArray[np.float64]


@dataclass(frozen=True)
class AttitudeProgram:
    """Steering vectors for each ascent phase.

    Attributes:
        azimuth: Launch heading [deg]
        pitchover_angle: Pitchover angle from vertical [deg]
        has_atmosphere: Whether the launch body has an atmosphere
    """
    azimuth: float
    pitchover_angle: float
    has_atmosphere: bool = True

    @property
    def pitchover_pitch(self) -> float:
        """Pitch above the horizon held during pitchover [deg]."""
        return 90.0 - self.pitchover_angle

    def launch(self, snapshot: VehicleSnapshot) -> SteeringCommand:
        """Vertical climb; the roll reference only needs to be stable."""
        return SteeringCommand(snapshot.up, snapshot.north)

    def pitchover(self, snapshot: VehicleSnapshot) -> SteeringCommand:
        """Fixed heading and pitch from the launch azimuth."""
        direction = heading_pitch_vector(
            snapshot.up, snapshot.north, self.azimuth, self.pitchover_pitch,
        )
        return SteeringCommand(direction, snapshot.up)

    def pitchover_converged(self, snapshot: VehicleSnapshot) -> bool:
        """Vehicle faces the pitchover vector."""
        target = self.pitchover(snapshot).direction
        return angle_between(snapshot.facing, target) < PITCHOVER_TOLERANCE

    def aoa_converged(self, snapshot: VehicleSnapshot) -> bool:
        """Surface velocity lines up with the vehicle facing."""
        if np.linalg.norm(snapshot.surface_velocity) < MIN_TRACKING_SPEED:
            return False
        return angle_between(snapshot.surface_velocity, snapshot.facing) < AOA_TOLERANCE

    def ascent(self, snapshot: VehicleSnapshot) -> SteeringCommand:
        """Gravity turn on the surface velocity pitch, or pitch hold when airless."""
        if not self.has_atmosphere:
            return self.pitchover(snapshot)

        speed = np.linalg.norm(snapshot.surface_velocity)
        if speed < MIN_TRACKING_SPEED:
            return self.pitchover(snapshot)
        climb = np.clip(np.dot(snapshot.surface_velocity, snapshot.up) / speed, -1.0, 1.0)
        direction = heading_pitch_vector(
            snapshot.up, snapshot.north, self.azimuth, float(np.degrees(np.arcsin(climb))),
        )
        return SteeringCommand(direction, snapshot.up)

    def burn(self, snapshot: VehicleSnapshot) -> SteeringCommand:
        """Predicted velocity direction at the next apoapsis."""
        v_apo = velocity_at_apoapsis(snapshot.position, snapshot.velocity, snapshot.body.mu)
        return SteeringCommand(v_apo / np.linalg.norm(v_apo), snapshot.up)
