"""Circularization burn planning and execution.

The burn is planned once, on entering the coast phase:

    delta_v  = v_circular(r_apo) - v_orbit(r_apo)       (vis-viva)
    duration = ideal rocket equation at current mass, thrust and ISP
    start    = now + time_to_apoapsis - duration / 2

The burn vector is NOT computed at planning time. The velocity direction
drifts during the coast, so the executor computes it at ignition from the
predicted velocity at apoapsis, holds attitude on it, and burns at full
throttle for the estimated duration. There is no re-targeting mid-burn;
staging or thrust changes during the burn show up as residual error.
"""

import logging
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from ascent.control.actuators import ActuatorHandle
from ascent.guidance.attitude_program import AttitudeProgram
from ascent.guidance.orbital_mechanics import (
    circularization_delta_v,
    ideal_burn_time,
)
from ascent.vehicle import VehicleSnapshot

logger = logging.getLogger(__name__)


@dataclass
class BurnPlan:
    """Circularization burn.

    Attributes:
        delta_v: Required delta-v [m/s]
        duration: Estimated burn duration [s]
        start_time: Scheduled ignition time [s]
        vector: Delta-v vector, set at ignition [m/s]
    """
    delta_v: float
    duration: float
    start_time: float
    vector: NDArray[np.float64] | None = field(default=None, repr=False)

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def countdown(self, now: float) -> float:
        """Seconds until ignition (negative once started)."""
        return self.start_time - now


def plan_circularization(snapshot: VehicleSnapshot) -> BurnPlan:
    """Size and schedule the circularization burn at the next apoapsis."""
    body = snapshot.body
    orbit = snapshot.orbit

    delta_v = circularization_delta_v(
        body.mu, body.radius, orbit.apoapsis, orbit.semi_major_axis,
    )
    duration = ideal_burn_time(
        delta_v, snapshot.mass, snapshot.available_thrust, snapshot.current_isp,
    )
    start_time = snapshot.time + orbit.time_to_apoapsis - duration / 2.0

    logger.info(
        "Circularization planned: %.1f m/s, %.1f s, ignition at T=%.1f",
        delta_v, duration, start_time,
    )
    return BurnPlan(delta_v=delta_v, duration=duration, start_time=start_time)


class BurnExecutor:
    """Fly a planned burn along a fixed inertial vector.

    The executor owns throttle and steering while the burn runs. Call
    ``start`` at ignition and ``update`` once per tick until it returns
    True.
    """

    owner = "burn-executor"

    def __init__(self, plan: BurnPlan, program: AttitudeProgram, actuators: ActuatorHandle):
        self.plan = plan
        self.program = program
        self.actuators = actuators
        self.ignition_time: float | None = None
        self._top: NDArray[np.float64] | None = None

    @property
    def burning(self) -> bool:
        return self.ignition_time is not None

    def elapsed(self, now: float) -> float | None:
        if self.ignition_time is None:
            return None
        return now - self.ignition_time

    def start(self, snapshot: VehicleSnapshot) -> NDArray[np.float64]:
        """Compute the burn vector from the current orbit and ignite."""
        steering = self.program.burn(snapshot)
        self.plan.vector = steering.direction * self.plan.delta_v
        self._top = steering.top
        self.ignition_time = snapshot.time

        self.actuators.set_steering(self.owner, steering.direction, steering.top)
        self.actuators.set_throttle(self.owner, 1.0)
        logger.info("Ignition: %.1f m/s burn for %.1f s", self.plan.delta_v, self.plan.duration)
        return self.plan.vector

    def update(self, snapshot: VehicleSnapshot) -> bool:
        """Hold the burn vector; cut the throttle when the time is up."""
        if self.ignition_time is None or self.plan.vector is None:
            raise RuntimeError("Burn has not been started")

        if snapshot.time - self.ignition_time >= self.plan.duration:
            self.actuators.set_throttle(self.owner, 0.0)
            logger.info("Burn complete after %.1f s", snapshot.time - self.ignition_time)
            return True

        direction = self.plan.vector / np.linalg.norm(self.plan.vector)
        self.actuators.set_steering(self.owner, direction, self._top)
        return False
