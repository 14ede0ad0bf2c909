"""Celestial bodies for the simulation plant.

Spherical rotating bodies with an optional isothermal (exponential)
atmosphere:

    rho(h) = rho0 * exp(-h / H)    for h < atmosphere_height, else 0

Gravity is a point mass. Core functions are numba-compiled.

Bodies available:
- KERBIN: Small atmospheric homeworld, 70 km sensible atmosphere
- MUN: Airless moon

Example:
    >>> from spacesim.bodies import KERBIN
    >>>
    >>> rho = KERBIN.density(10e3)
    >>> g = KERBIN.surface_gravity
"""

from dataclasses import dataclass

import numpy as np
from beartype import beartype
from numba import njit

from ascent.vehicle import BodyInfo

# =============================================================================
# Numba-Optimized Core Functions
# =============================================================================


@njit(cache=True, fastmath=True)
def _density(altitude: float, rho0: float, scale_height: float, top: float) -> float:
    """Exponential atmosphere density, zero above the top."""
    if top <= 0.0 or altitude >= top:
        return 0.0
    if altitude < 0.0:
        altitude = 0.0
    return rho0 * np.exp(-altitude / scale_height)


@njit(cache=True, fastmath=True)
def _pressure_ratio(altitude: float, scale_height: float, top: float) -> float:
    """Static pressure relative to sea level (isothermal)."""
    if top <= 0.0 or altitude >= top:
        return 0.0
    if altitude < 0.0:
        altitude = 0.0
    return np.exp(-altitude / scale_height)


# =============================================================================
# Celestial Body
# =============================================================================


@beartype
@dataclass(frozen=True)
class CelestialBody:
    """Spherical rotating body.

    Attributes:
        name: Body name
        mu: Gravitational parameter [m^3/s^2]
        radius: Mean radius [m]
        rotation_period: Sidereal rotation period [s]
        atmosphere_height: Top of the atmosphere [m], 0 for airless
        sea_level_density: Air density at the surface [kg/m^3]
        scale_height: Atmospheric scale height [m]
    """
    name: str
    mu: float
    radius: float
    rotation_period: float
    atmosphere_height: float = 0.0
    sea_level_density: float = 0.0
    scale_height: float = 5600.0

    @property
    def has_atmosphere(self) -> bool:
        return self.atmosphere_height > 0.0

    @property
    def rotation_rate(self) -> float:
        """Angular rotation rate [rad/s]."""
        return 2.0 * np.pi / self.rotation_period

    @property
    def surface_gravity(self) -> float:
        """Gravitational acceleration at the surface [m/s^2]."""
        return self.mu / self.radius**2

    def density(self, altitude: float) -> float:
        """Air density at altitude [kg/m^3]."""
        return _density(altitude, self.sea_level_density, self.scale_height, self.atmosphere_height)

    def pressure_ratio(self, altitude: float) -> float:
        """Static pressure relative to sea level [-]."""
        return _pressure_ratio(altitude, self.scale_height, self.atmosphere_height)

    def info(self) -> BodyInfo:
        """Body description as the flight software sees it."""
        return BodyInfo(
            name=self.name,
            mu=self.mu,
            radius=self.radius,
            rotation_period=self.rotation_period,
            atmosphere_height=self.atmosphere_height,
        )


KERBIN = CelestialBody(
    name="Kerbin",
    mu=3.5316e12,
    radius=600000.0,
    rotation_period=21549.425,
    atmosphere_height=70000.0,
    sea_level_density=1.225,
    scale_height=5600.0,
)

MUN = CelestialBody(
    name="Mun",
    mu=6.5138398e10,
    radius=200000.0,
    rotation_period=138984.38,
)
