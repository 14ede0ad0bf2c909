"""Apoapsis-tracking throttle control for powered ascent.

The throttle is regulated so that the apoapsis of the ascent trajectory
climbs to the target orbit altitude and stops there:

    throttle = clip(kp * (target - apoapsis) + ki * integral, 0, 1)

With the default gains the throttle stays at full power until the apoapsis
is within about 1 km of the target and then ramps down linearly. Pure
proportional control would stall just short of the target as the throttle
approaches zero, so a very small integral term keeps pushing until the
apoapsis actually arrives. There is no derivative term.

When the apoapsis reaches the target the throttle is cut to exactly zero
and the controller disarms. If the apoapsis later sags below the target
(atmospheric drag) the controller re-arms from a clean state.
"""

import logging
from dataclasses import dataclass, field

from beartype import beartype

from ascent.control.pid import PIDController

logger = logging.getLogger(__name__)


@beartype
@dataclass
class ApoapsisThrottleController:
    """Throttle regulator with apoapsis as the measured variable.

    Attributes:
        target_altitude: Setpoint, the target orbit altitude [m]
        kp: Proportional gain [1/m]
        ki: Integral gain [1/(m*s)]
    """
    target_altitude: float
    kp: float = 1.0 / 1000.0
    ki: float = 1e-5

    _pid: PIDController = field(init=False, repr=False)
    _armed: bool = field(default=False, init=False)
    _arm_count: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self._pid = PIDController(kp=self.kp, ki=self.ki, kd=0.0, output_limits=(0.0, 1.0))

    @property
    def armed(self) -> bool:
        """Whether the controller currently owns the throttle output."""
        return self._armed

    @property
    def rearm_count(self) -> int:
        """Number of times the controller re-armed after a cut."""
        return max(self._arm_count - 1, 0)

    def arm(self) -> None:
        """Lock the controller onto the throttle with a clean state."""
        self._pid.reset()
        self._armed = True
        self._arm_count += 1

    def disarm(self) -> None:
        """Release the throttle."""
        self._armed = False

    def update(self, apoapsis: float, dt: float) -> float:
        """Compute the throttle for the current apoapsis.

        Re-arms first if the apoapsis has fallen back below the target
        after a previous cut.

        Args:
            apoapsis: Current apoapsis altitude [m]
            dt: Time since the previous update [s]

        Returns:
            Throttle fraction in [0, 1]
        """
        error = self.target_altitude - apoapsis

        if not self._armed:
            if error <= 0.0 or self._arm_count == 0:
                return 0.0
            logger.debug("Apoapsis %.0f m below target, re-arming throttle", error)
            self.arm()

        if error <= 0.0:
            self.disarm()
            logger.debug("Apoapsis %.0f m reached target, throttle cut", apoapsis)
            return 0.0

        return self._pid.update(error, dt)


def ascent_complete(throttle_cut: bool, altitude: float, atmosphere_height: float) -> bool:
    """Powered ascent is over once the throttle is cut above the atmosphere.

    On an airless body (``atmosphere_height == 0``) only the cut matters.
    """
    if not throttle_cut:
        return False
    return atmosphere_height <= 0.0 or altitude >= atmosphere_height
