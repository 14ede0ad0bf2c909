"""Vessel designs for the simulation plant.

A vessel is a stack of stages fired bottom-up. ``stages[0]`` is the
first stage to ignite and the first to be dropped; the last entry is the
upper stage that carries the payload to orbit.

Stage numbering follows the flight software's convention: on the pad the
stage index equals the number of stages, the first stage command lights
``stages[0]`` and leaves the index at N-1, and the upper stage runs at
index 0.

Example:
    >>> from spacesim.vehicle import KERBIN_ORBITER
    >>>
    >>> print(f"Liftoff mass: {KERBIN_ORBITER.liftoff_mass:.0f} kg")
    >>> print(f"Stack delta-v: {KERBIN_ORBITER.delta_v():.0f} m/s")
"""

from dataclasses import dataclass

import numpy as np
from beartype import beartype

G0: float = 9.82


@beartype
@dataclass(frozen=True)
class EngineSpec:
    """Liquid engine with altitude-compensated specific impulse.

    Thrust is fixed; only the propellant flow changes with ambient
    pressure through the ISP.

    Attributes:
        thrust: Thrust at full throttle [N]
        isp_sl: Sea-level specific impulse [s]
        isp_vac: Vacuum specific impulse [s]
    """
    thrust: float
    isp_sl: float
    isp_vac: float

    def __post_init__(self) -> None:
        if self.thrust <= 0 or self.isp_sl <= 0 or self.isp_vac <= 0:
            raise ValueError("Engine thrust and ISP must be positive")

    def isp(self, pressure_ratio: float) -> float:
        """Specific impulse at ambient pressure (fraction of sea level) [s]."""
        return self.isp_vac + (self.isp_sl - self.isp_vac) * pressure_ratio


@beartype
@dataclass(frozen=True)
class StageSpec:
    """One stage of a vessel.

    Attributes:
        name: Stage name
        dry_mass: Structure and engines [kg]
        fuel_mass: Loaded propellant [kg]
        engines: Engines lit when the stage ignites
        drag_area: Drag coefficient times reference area while this stage
            is the bottom of the stack [m^2]
    """
    name: str
    dry_mass: float
    fuel_mass: float
    engines: tuple[EngineSpec, ...]
    drag_area: float = 1.0

    @property
    def thrust(self) -> float:
        """Combined thrust at full throttle [N]."""
        return float(sum(e.thrust for e in self.engines))

    def isp(self, pressure_ratio: float = 0.0) -> float:
        """Combined specific impulse at ambient pressure [s]."""
        if not self.engines:
            return 0.0
        flow = sum(e.thrust / e.isp(pressure_ratio) for e in self.engines)
        return self.thrust / flow

    def mass_flow(self, pressure_ratio: float = 0.0) -> float:
        """Propellant flow at full throttle [kg/s]."""
        if not self.engines:
            return 0.0
        return float(sum(e.thrust / (e.isp(pressure_ratio) * G0) for e in self.engines))


@beartype
@dataclass(frozen=True)
class VesselDesign:
    """A complete vessel.

    Attributes:
        name: Vessel name
        stages: Stages in firing order
        payload_mass: Mass above the upper stage [kg]
    """
    name: str
    stages: tuple[StageSpec, ...]
    payload_mass: float = 0.0

    def __post_init__(self) -> None:
        if not self.stages:
            raise ValueError("A vessel needs at least one stage")

    @property
    def stage_count(self) -> int:
        return len(self.stages)

    @property
    def liftoff_mass(self) -> float:
        """Fully loaded mass [kg]."""
        return self.payload_mass + sum(s.dry_mass + s.fuel_mass for s in self.stages)

    def stack_mass(self, first: int) -> float:
        """Loaded mass of stages[first:] plus payload [kg]."""
        return self.payload_mass + sum(s.dry_mass + s.fuel_mass for s in self.stages[first:])

    def delta_v(self, pressure_ratio: float = 0.0) -> float:
        """Ideal stack delta-v at constant ambient pressure [m/s]."""
        total = 0.0
        for i, stage in enumerate(self.stages):
            m0 = self.stack_mass(i)
            mf = m0 - stage.fuel_mass
            total += stage.isp(pressure_ratio) * G0 * np.log(m0 / mf)
        return float(total)


# =============================================================================
# Reference Designs
# =============================================================================

KERBIN_ORBITER = VesselDesign(
    name="Kerbin Orbiter",
    stages=(
        StageSpec(
            name="Booster",
            dry_mass=1000.0,
            fuel_mass=3500.0,
            engines=(EngineSpec(thrust=140000.0, isp_sl=265.0, isp_vac=300.0),),
            drag_area=0.5,
        ),
        StageSpec(
            name="Upper",
            dry_mass=1000.0,
            fuel_mass=3000.0,
            engines=(EngineSpec(thrust=80000.0, isp_sl=300.0, isp_vac=345.0),),
            drag_area=0.3,
        ),
    ),
)

MUN_LANDER = VesselDesign(
    name="Mun Lander",
    stages=(
        StageSpec(
            name="Ascent",
            dry_mass=800.0,
            fuel_mass=1200.0,
            engines=(EngineSpec(thrust=20000.0, isp_sl=300.0, isp_vac=320.0),),
            drag_area=0.0,
        ),
    ),
)
