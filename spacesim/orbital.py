"""Osculating orbit of the simulated vessel.

Numba-compiled two-body element computation from state vectors, used by
the plant to report the vessel's orbit every tick.

Example:
    >>> from spacesim.orbital import osculating_orbit
    >>> from spacesim.bodies import KERBIN
    >>>
    >>> orbit = osculating_orbit(position, velocity, KERBIN.mu, KERBIN.radius)
    >>> print(f"Apoapsis: {orbit.apoapsis/1000:.1f} km")
"""

import numpy as np
from numba import njit
from numpy.typing import NDArray

from ascent.vehicle import OrbitSnapshot

# Reported for apoapsis of open (escape) trajectories [m]
ESCAPE_APOAPSIS: float = 1e12

# =============================================================================
# Core Numba Functions
# =============================================================================


@njit(cache=True, fastmath=True)
def _clamp(x: float, lo: float, hi: float) -> float:
    """Clamp scalar to range [lo, hi]."""
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


@njit(cache=True, fastmath=True)
def _orbit_core(
    rx: float, ry: float, rz: float,
    vx: float, vy: float, vz: float,
    mu: float,
    r_body: float,
) -> tuple[float, float, float, float, float, float]:
    """Orbit summary from state vectors.

    Returns tuple of:
        (apoapsis_alt, periapsis_alt, ecc, sma, time_to_apoapsis, inc)
    """
    r = np.sqrt(rx*rx + ry*ry + rz*rz)
    v = np.sqrt(vx*vx + vy*vy + vz*vz)

    energy = v*v / 2.0 - mu / r
    if abs(energy) < 1e-10:
        sma = 1e12
    else:
        sma = -mu / (2.0 * energy)

    # Angular momentum h = r x v
    hx = ry * vz - rz * vy
    hy = rz * vx - rx * vz
    hz = rx * vy - ry * vx
    h = np.sqrt(hx*hx + hy*hy + hz*hz)

    if h > 1e-10:
        inc = np.degrees(np.arccos(_clamp(hz / h, -1.0, 1.0)))
    else:
        inc = 0.0

    # Eccentricity vector e = (v x h) / mu - r / |r|
    ex = (vy * hz - vz * hy) / mu - rx / r
    ey = (vz * hx - vx * hz) / mu - ry / r
    ez = (vx * hy - vy * hx) / mu - rz / r
    ecc = np.sqrt(ex*ex + ey*ey + ez*ez)

    if ecc >= 1.0 or sma <= 0.0:
        periapsis = sma * (1.0 - ecc) - r_body if sma > 0 else -sma * (ecc - 1.0) - r_body
        return (ESCAPE_APOAPSIS, periapsis, ecc, sma, 0.0, inc)

    apoapsis = sma * (1.0 + ecc) - r_body
    periapsis = sma * (1.0 - ecc) - r_body

    # Time to apoapsis from the mean anomaly (M = pi at apoapsis)
    if ecc < 1e-9:
        return (apoapsis, periapsis, ecc, sma, 0.0, inc)

    n = np.sqrt(mu / sma**3)
    cos_e = _clamp((1.0 - r / sma) / ecc, -1.0, 1.0)
    big_e = np.arccos(cos_e)
    if rx * vx + ry * vy + rz * vz < 0:
        big_e = 2.0 * np.pi - big_e
    mean_anomaly = big_e - ecc * np.sin(big_e)

    if mean_anomaly <= np.pi:
        t_apo = (np.pi - mean_anomaly) / n
    else:
        t_apo = (3.0 * np.pi - mean_anomaly) / n

    return (apoapsis, periapsis, ecc, sma, t_apo, inc)


# =============================================================================
# Python API Functions
# =============================================================================


def osculating_orbit(
    position: NDArray[np.float64],
    velocity: NDArray[np.float64],
    mu: float,
    r_body: float,
) -> OrbitSnapshot:
    """Compute the osculating orbit from state vectors.

    Args:
        position: Position vector in body-centered inertial frame [m]
        velocity: Velocity vector in body-centered inertial frame [m/s]
        mu: Gravitational parameter [m^3/s^2]
        r_body: Body radius [m]

    Returns:
        OrbitSnapshot with altitudes above the surface
    """
    apo, peri, ecc, sma, t_apo, inc = _orbit_core(
        position[0], position[1], position[2],
        velocity[0], velocity[1], velocity[2],
        mu, r_body,
    )
    return OrbitSnapshot(
        apoapsis=float(apo),
        periapsis=float(peri),
        eccentricity=float(ecc),
        semi_major_axis=float(sma),
        time_to_apoapsis=float(t_apo),
        inclination=float(inc),
    )
