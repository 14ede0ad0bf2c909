"""Orbital mechanics for ascent and circularization.

Pure functions used by the ascent state machine to size and aim the
circularization burn and to pick the launch heading.

Key functions:
- launch_azimuth: Compass heading for a target inclination, corrected for
  body rotation
- circularization_delta_v: Vis-viva delta-v to circularize at apoapsis
- ideal_burn_time: Burn duration from the ideal rocket equation
- line_plane_intersection: Line/plane intersection with a tagged result
- velocity_at_apoapsis: Predicted inertial velocity at the next apoapsis

Angles at the API boundary are in degrees, like the mission parameters.
Scalar kernels are numba-compiled.

Example:
    >>> from ascent.guidance.orbital_mechanics import launch_azimuth
    >>> from ascent.config import LaunchDirection
    >>>
    >>> az = launch_azimuth(28.5, 51.6, LaunchDirection.NORTH, 7700.0, 465.0)
    >>> print(f"Azimuth: {az:.1f} deg")
"""

from enum import Enum, auto
from typing import NamedTuple

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

from ascent.config import LaunchDirection
from ascent.vehicle import EngineInfo

# Standard gravity used for ISP conversion, as the flight computer has it
G0: float = 9.82

# =============================================================================
# Numba Kernels
# =============================================================================


@njit(cache=True)
def _launch_azimuth_core(
    latitude: float,
    inclination: float,
    orbital_speed: float,
    equatorial_speed: float,
    north: bool,
) -> float:
    """Launch azimuth in degrees from North (angles in radians)."""
    cos_inc = np.cos(inclination)
    cos_lat = np.cos(latitude)

    if abs(cos_inc) <= abs(cos_lat):
        sin_az = min(max(cos_inc / cos_lat, -1.0), 1.0)
        inertial_az = np.arcsin(sin_az)
        num = orbital_speed * np.sin(inertial_az) - equatorial_speed * cos_lat
        den = orbital_speed * np.cos(inertial_az)
        rot_az = np.degrees(np.arctan2(num, den))
    elif inclination <= np.pi / 2.0:
        # Orbit cannot be shallower than the launch site latitude
        rot_az = 90.0
    else:
        rot_az = -90.0

    if north:
        az = rot_az if rot_az >= 0.0 else 360.0 + rot_az
    else:
        az = 180.0 - rot_az

    return az % 360.0


@njit(cache=True)
def _vis_viva_core(mu: float, r: float, sma: float) -> float:
    """Orbital speed at radius r on an orbit of semi-major axis sma."""
    return np.sqrt(mu * (2.0 / r - 1.0 / sma))


@njit(cache=True)
def _ideal_burn_time_core(
    delta_v: float,
    mass: float,
    thrust: float,
    isp: float,
    g0: float,
) -> float:
    """Burn time from the ideal rocket equation."""
    exhaust_velocity = isp * g0
    final_mass = mass * np.exp(-delta_v / exhaust_velocity)
    mass_flow = thrust / exhaust_velocity
    return (mass - final_mass) / mass_flow


# =============================================================================
# Launch Azimuth
# =============================================================================


@beartype
def launch_azimuth(
    latitude: float | int,
    target_inclination: float | int,
    direction: LaunchDirection,
    orbital_speed: float | int,
    equatorial_speed: float | int,
) -> float:
    """Compute the launch heading for a target inclination.

    Solves the inertial azimuth ``asin(cos(inc) / cos(lat))`` and corrects
    it for the rotation of the body under the launch site. When the target
    inclination is lower than the site latitude the orbit cannot be reached
    directly and the heading clamps to due east (inc <= 90) or due west.

    Two headings reach each inclination; ``direction`` selects the north-
    going or south-going one.

    Args:
        latitude: Launch site latitude [deg]
        target_inclination: Target orbit inclination [deg]
        direction: NORTH or SOUTH solution
        orbital_speed: Circular speed at the target altitude [m/s]
        equatorial_speed: Surface rotation speed at the equator [m/s]

    Returns:
        Compass heading in [0, 360) [deg]
    """
    return _launch_azimuth_core(
        float(np.radians(latitude)),
        float(np.radians(target_inclination)),
        float(orbital_speed),
        float(equatorial_speed),
        direction is LaunchDirection.NORTH,
    )


def equatorial_speed(radius: float, rotation_period: float) -> float:
    """Surface speed at the equator of a rotating body [m/s]."""
    return 2.0 * np.pi * radius / rotation_period


# =============================================================================
# Burn Sizing
# =============================================================================


def vis_viva_speed(mu: float, radius: float, semi_major_axis: float) -> float:
    """Orbital speed at a radius from the vis-viva equation [m/s]."""
    return _vis_viva_core(mu, radius, semi_major_axis)


def circular_speed(mu: float, radius: float) -> float:
    """Circular orbital speed at a radius [m/s]."""
    return _vis_viva_core(mu, radius, radius)


@beartype
def circularization_delta_v(
    mu: float | int,
    body_radius: float | int,
    apoapsis: float | int,
    semi_major_axis: float | int,
) -> float:
    """Delta-v needed at apoapsis to circularize the current orbit.

    Args:
        mu: Gravitational parameter [m^3/s^2]
        body_radius: Body radius [m]
        apoapsis: Apoapsis altitude [m]
        semi_major_axis: Current semi-major axis [m]

    Returns:
        Circular speed at apoapsis minus current speed at apoapsis [m/s]
    """
    r = float(body_radius + apoapsis)
    return _vis_viva_core(float(mu), r, r) - _vis_viva_core(float(mu), r, float(semi_major_axis))


@beartype
def ideal_burn_time(
    delta_v: float | int,
    mass: float | int,
    thrust: float | int,
    isp: float | int,
    g0: float | int = G0,
) -> float:
    """Estimate burn duration with the ideal rocket equation.

    Assumes constant thrust and ISP for the whole burn (no staging).

    Args:
        delta_v: Required delta-v [m/s]
        mass: Vehicle mass at ignition [kg]
        thrust: Available thrust [N]
        isp: Specific impulse [s]
        g0: Standard gravity for ISP conversion [m/s^2]

    Returns:
        Burn time [s]
    """
    if thrust <= 0 or isp <= 0:
        raise ValueError(f"Thrust and ISP must be positive, got {thrust} N, {isp} s")
    return _ideal_burn_time_core(float(delta_v), float(mass), float(thrust), float(isp), float(g0))


def stage_isp(engines: tuple[EngineInfo, ...] | list[EngineInfo]) -> float:
    """Combined ISP of the active engines.

    Each engine is weighted by its share of the total propellant flow,
    which is the ISP of the stage as a whole.
    """
    thrust = 0.0
    flow = 0.0
    for engine in engines:
        if engine.active and engine.isp > 0:
            thrust += engine.thrust
            flow += engine.thrust / engine.isp
    if flow == 0.0:
        return 0.0
    return thrust / flow


# =============================================================================
# Geometry
# =============================================================================


class IntersectionKind(Enum):
    """Outcome of a line/plane intersection."""

    POINT = auto()
    COINCIDENT = auto()  # Line lies in the plane
    PARALLEL = auto()    # Line never meets the plane


class Intersection(NamedTuple):
    """Line/plane intersection result.

    ``point`` is the zero vector for both degenerate kinds, so callers that
    only test for the zero sentinel see no difference between them.
    """
    kind: IntersectionKind
    point: NDArray[np.float64]

    @property
    def degenerate(self) -> bool:
        return self.kind is not IntersectionKind.POINT


def line_plane_intersection(
    line_dir: NDArray[np.float64],
    plane_normal: NDArray[np.float64],
    line_point: NDArray[np.float64],
    plane_point: NDArray[np.float64],
) -> Intersection:
    """Intersect a line with a plane.

    Args:
        line_dir: Direction of the line
        plane_normal: Normal of the plane
        line_point: Any point on the line
        plane_point: Any point on the plane

    Returns:
        Intersection; degenerate when ``dot(line_dir, plane_normal) == 0``
    """
    denom = float(np.dot(line_dir, plane_normal))
    offset = float(np.dot(plane_point - line_point, plane_normal))

    if denom == 0.0:
        kind = IntersectionKind.COINCIDENT if offset == 0.0 else IntersectionKind.PARALLEL
        return Intersection(kind, np.zeros(3))

    t = offset / denom
    return Intersection(IntersectionKind.POINT, line_point + t * line_dir)


def angle_between(u: NDArray[np.float64], v: NDArray[np.float64]) -> float:
    """Angle between two vectors [deg]."""
    nu = np.linalg.norm(u)
    nv = np.linalg.norm(v)
    if nu < 1e-12 or nv < 1e-12:
        return 0.0
    c = np.dot(u, v) / (nu * nv)
    return float(np.degrees(np.arccos(np.clip(c, -1.0, 1.0))))


def heading_pitch_vector(
    up: NDArray[np.float64],
    north: NDArray[np.float64],
    heading: float,
    pitch: float,
) -> NDArray[np.float64]:
    """Unit vector for a compass heading and elevation above the horizon.

    Args:
        up: Local up unit vector
        north: Local north unit vector
        heading: Compass heading [deg]
        pitch: Elevation above the horizon [deg]
    """
    east = np.cross(north, up)
    hdg = np.radians(heading)
    pit = np.radians(pitch)
    horizontal = np.cos(hdg) * north + np.sin(hdg) * east
    v = np.cos(pit) * horizontal + np.sin(pit) * up
    return v / np.linalg.norm(v)


def velocity_at_apoapsis(
    position: NDArray[np.float64],
    velocity: NDArray[np.float64],
    mu: float,
) -> NDArray[np.float64]:
    """Predict the inertial velocity vector at the next apoapsis crossing.

    At apoapsis the velocity is perpendicular to the radius, in the orbit
    plane, with the vis-viva magnitude. For a (near) circular orbit the
    apoapsis is undefined and the current prograde horizontal direction is
    used instead.
    """
    r = np.linalg.norm(position)
    v = np.linalg.norm(velocity)
    h = np.cross(position, velocity)
    h_hat = h / np.linalg.norm(h)

    energy = 0.5 * v * v - mu / r
    sma = -mu / (2.0 * energy)
    ecc_vec = np.cross(velocity, h) / mu - position / r
    ecc = np.linalg.norm(ecc_vec)

    if ecc < 1e-6:
        r_hat = position / r
        return np.cross(h_hat, r_hat) * v

    # Apoapsis lies opposite the eccentricity vector
    r_apo_hat = -ecc_vec / ecc
    r_apo = sma * (1.0 + ecc)
    direction = np.cross(h_hat, r_apo_hat)
    return direction * _vis_viva_core(mu, r_apo, sma)
