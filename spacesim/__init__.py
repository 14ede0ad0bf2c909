"""Simulation plant for the ascent flight software.

Point-mass vessel dynamics on a rotating spherical body, exposed through
the same query and command interfaces a real host would provide.

Example:
    >>> from spacesim import MUN, MUN_LANDER, Simulator
    >>>
    >>> sim = Simulator.on_pad(design=MUN_LANDER, body=MUN)
    >>> sim.snapshot().status
    <VesselStatus.PRELAUNCH: 'PRELAUNCH'>
"""

from spacesim.bodies import KERBIN, MUN, CelestialBody
from spacesim.orbital import osculating_orbit
from spacesim.simulator import (
    FlightHistory,
    FlightSample,
    SimConfig,
    SimulationError,
    Simulator,
)
from spacesim.vehicle import (
    KERBIN_ORBITER,
    MUN_LANDER,
    EngineSpec,
    StageSpec,
    VesselDesign,
)

__all__ = [
    # Bodies
    "CelestialBody",
    "KERBIN",
    "MUN",
    # Vessels
    "EngineSpec",
    "StageSpec",
    "VesselDesign",
    "KERBIN_ORBITER",
    "MUN_LANDER",
    # Simulation
    "Simulator",
    "SimConfig",
    "SimulationError",
    "FlightHistory",
    "FlightSample",
    "osculating_orbit",
]
