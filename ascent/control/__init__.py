"""Control algorithms for the ascent.

Available controllers:
    PIDController: General-purpose PID
    ApoapsisThrottleController: Throttle regulation against target apoapsis
    ActuatorHandle: Exclusive throttle/steering ownership
"""

from ascent.control.actuators import ActuatorHandle
from ascent.control.pid import PIDController
from ascent.control.throttle import ApoapsisThrottleController, ascent_complete

__all__ = [
    "ActuatorHandle",
    "ApoapsisThrottleController",
    "PIDController",
    "ascent_complete",
]
