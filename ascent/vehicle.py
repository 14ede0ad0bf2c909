"""Vehicle interfaces consumed and commanded by the flight software.

The flight software never touches the simulation directly. It reads a
point-in-time ``VehicleSnapshot`` through ``VehicleStateQuery`` and issues
actuator commands through ``VehicleCommands``. Any host (the ``spacesim``
plant, a game bridge, a hardware-in-the-loop rig) implements both.

Frames:
    All vectors are in a body-centered inertial frame [m, m/s].
    ``up`` is the local radial unit vector, ``north`` the local north unit
    vector tangent to the surface.
"""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Protocol

import numpy as np
from numpy.typing import NDArray

from ascent.config import WarpMode

# =============================================================================
# Snapshot Types
# =============================================================================


class VesselStatus(Enum):
    """Flight status reported by the host."""

    PRELAUNCH = "PRELAUNCH"
    LANDED = "LANDED"
    FLYING = "FLYING"
    SUB_ORBITAL = "SUB_ORBITAL"
    ORBITING = "ORBITING"


class EngineInfo(NamedTuple):
    """One engine on the vessel.

    Attributes:
        thrust: Available thrust at full throttle [N]
        isp: Current specific impulse [s]
        stage: Stage index that ignites this engine
        active: Whether the engine is currently ignited
    """
    thrust: float
    isp: float
    stage: int
    active: bool


class OrbitSnapshot(NamedTuple):
    """Osculating orbit of the vessel.

    Attributes:
        apoapsis: Apoapsis altitude above the surface [m]
        periapsis: Periapsis altitude above the surface [m]
        eccentricity: Orbital eccentricity [-]
        semi_major_axis: Semi-major axis [m]
        time_to_apoapsis: Time until the next apoapsis crossing [s]
        inclination: Inclination [deg]
    """
    apoapsis: float
    periapsis: float
    eccentricity: float
    semi_major_axis: float
    time_to_apoapsis: float
    inclination: float


class BodyInfo(NamedTuple):
    """Reference body the vessel is launching from.

    Attributes:
        name: Body name
        mu: Gravitational parameter [m^3/s^2]
        radius: Mean radius [m]
        rotation_period: Sidereal rotation period [s]
        atmosphere_height: Top of the sensible atmosphere [m], 0 if airless
    """
    name: str
    mu: float
    radius: float
    rotation_period: float
    atmosphere_height: float = 0.0

    @property
    def has_atmosphere(self) -> bool:
        return self.atmosphere_height > 0.0


@dataclass(frozen=True)
class VehicleSnapshot:
    """Point-in-time read of the vehicle.

    Produced on demand by the host. The flight software never keeps one
    beyond a single control-loop iteration.
    """
    time: float
    name: str
    status: VesselStatus
    mass: float
    available_thrust: float
    current_isp: float
    stage_fuel: float
    stage_index: int
    engines: tuple[EngineInfo, ...]
    altitude: float
    latitude: float
    orbit: OrbitSnapshot
    position: NDArray[np.float64]
    velocity: NDArray[np.float64]
    surface_velocity: NDArray[np.float64]
    facing: NDArray[np.float64]
    up: NDArray[np.float64]
    north: NDArray[np.float64]
    body: BodyInfo

    @property
    def east(self) -> NDArray[np.float64]:
        """Local east unit vector."""
        return np.cross(self.north, self.up)

    @property
    def pitch(self) -> float:
        """Facing elevation above the local horizon [deg]."""
        s = float(np.dot(self.facing, self.up))
        return float(np.degrees(np.arcsin(np.clip(s, -1.0, 1.0))))

    @property
    def speed(self) -> float:
        """Inertial speed [m/s]."""
        return float(np.linalg.norm(self.velocity))


# =============================================================================
# Host Protocols
# =============================================================================


class VehicleStateQuery(Protocol):
    """Read-only access to the vehicle."""

    def snapshot(self) -> VehicleSnapshot:
        """Return the current vehicle state."""
        ...


class VehicleCommands(Protocol):
    """Actuator commands accepted by the host."""

    def set_throttle(self, throttle: float) -> None:
        """Command throttle fraction in [0, 1]."""
        ...

    def set_steering(self, direction: NDArray[np.float64], top: NDArray[np.float64]) -> None:
        """Lock steering to a direction with a roll reference vector."""
        ...

    def unlock_steering(self) -> None:
        """Release the steering lock."""
        ...

    def stage(self) -> None:
        """Advance to the next stage."""
        ...

    def warp_to(self, time: float, mode: WarpMode) -> None:
        """Request time compression until the given simulation time."""
        ...

    def cancel_warp(self) -> None:
        """Exit time compression."""
        ...

    @property
    def warp_active(self) -> bool:
        """Whether time compression is in progress."""
        ...
