"""Exclusive ownership of the throttle and steering actuators.

Throttle and steering are global to the vehicle, so exactly one component
may command each of them at a time. The state machine acquires them when
the ascent begins and hands ownership from component to component as the
phases change:

    >>> handle = ActuatorHandle(commands)
    >>> handle.acquire("launch")
    >>> handle.set_throttle("launch", 1.0)
    >>> handle.handoff("launch", "throttle-controller", steering=False)
    >>> handle.set_throttle("launch", 0.5)   # raises ActuatorOwnershipError

``release`` cuts the throttle and unlocks steering. It is safe to call on
every exit path, more than once.
"""

import logging
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from ascent.config import WarpMode
from ascent.errors import ActuatorOwnershipError
from ascent.vehicle import VehicleCommands

logger = logging.getLogger(__name__)


@dataclass
class ActuatorHandle:
    """Owner-checked access to the vehicle actuators.

    Attributes:
        commands: Host actuator interface
    """
    commands: VehicleCommands

    _throttle_owner: str | None = field(default=None, init=False)
    _steering_owner: str | None = field(default=None, init=False)
    _throttle: float = field(default=0.0, init=False)
    _steering: NDArray[np.float64] | None = field(default=None, init=False, repr=False)

    @property
    def throttle_owner(self) -> str | None:
        return self._throttle_owner

    @property
    def steering_owner(self) -> str | None:
        return self._steering_owner

    @property
    def locked(self) -> bool:
        """Whether any actuator is currently owned."""
        return self._throttle_owner is not None or self._steering_owner is not None

    @property
    def throttle(self) -> float:
        """Last commanded throttle."""
        return self._throttle

    @property
    def steering(self) -> NDArray[np.float64] | None:
        """Last commanded steering direction, None when unlocked."""
        return self._steering

    def acquire(self, owner: str) -> None:
        """Take both actuators. Fails if either is already owned."""
        if self.locked:
            raise ActuatorOwnershipError(
                f"{owner} cannot acquire actuators held by "
                f"throttle={self._throttle_owner}, steering={self._steering_owner}"
            )
        self._throttle_owner = owner
        self._steering_owner = owner

    def handoff(
        self,
        current: str,
        new: str,
        throttle: bool = True,
        steering: bool = True,
    ) -> None:
        """Transfer ownership from ``current`` to ``new``."""
        if throttle:
            self._check(current, self._throttle_owner, "throttle")
            self._throttle_owner = new
        if steering:
            self._check(current, self._steering_owner, "steering")
            self._steering_owner = new
        logger.debug(
            "Actuator handoff %s -> %s (throttle=%s, steering=%s)",
            current, new, throttle, steering,
        )

    def set_throttle(self, owner: str, value: float) -> None:
        self._check(owner, self._throttle_owner, "throttle")
        self._throttle = float(min(max(value, 0.0), 1.0))
        self.commands.set_throttle(self._throttle)

    def set_steering(
        self,
        owner: str,
        direction: NDArray[np.float64],
        top: NDArray[np.float64],
    ) -> None:
        self._check(owner, self._steering_owner, "steering")
        self._steering = direction
        self.commands.set_steering(direction, top)

    def stage(self) -> None:
        self.commands.stage()

    def warp_to(self, time: float, mode: WarpMode) -> None:
        self.commands.warp_to(time, mode)

    def cancel_warp(self) -> None:
        self.commands.cancel_warp()

    @property
    def warp_active(self) -> bool:
        return self.commands.warp_active

    def release(self) -> None:
        """Cut the throttle, unlock steering and drop all ownership."""
        if not self.locked:
            return
        self._throttle = 0.0
        self._steering = None
        self.commands.set_throttle(0.0)
        self.commands.unlock_steering()
        self._throttle_owner = None
        self._steering_owner = None
        logger.debug("Actuators released")

    @staticmethod
    def _check(owner: str, holder: str | None, actuator: str) -> None:
        if owner != holder:
            raise ActuatorOwnershipError(
                f"{owner} commanded {actuator} owned by {holder}"
            )
