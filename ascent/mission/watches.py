"""Background watches polled once per scheduler tick.

Watches run alongside the main control flow at tick granularity: staging
whenever the active stage is spent, and periodic telemetry refresh. They
are not threads; the state machine polls every active watch once per tick
through a ``WatchGroup``, and the group deactivates all of them when the
mission exits, whichever way it exits:

    >>> with WatchGroup() as watches:
    ...     watches.add(StagingWatch(actuators, telemetry))
    ...     while not done:
    ...         watches.poll(vehicle.snapshot())
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from ascent.control.actuators import ActuatorHandle
from ascent.guidance.orbital_mechanics import stage_isp
from ascent.telemetry import TelemetryFrame, TelemetryPort
from ascent.vehicle import VehicleSnapshot

logger = logging.getLogger(__name__)

BurnClock = Callable[[float], tuple[float | None, float | None]]


class Watch:
    """Event-driven background task."""

    name: str = "watch"

    def __init__(self) -> None:
        self.active = True

    def poll(self, snapshot: VehicleSnapshot) -> None:
        raise NotImplementedError

    def deactivate(self) -> None:
        if self.active:
            logger.debug("Watch %s deactivated", self.name)
        self.active = False


class StagingWatch(Watch):
    """Advance the stage whenever the active stage can no longer thrust.

    Fires when available thrust drops to zero or the active stage's fuel is
    exhausted. After a stage command the watch waits for the host to report
    the new stage before it will fire again. A stage index of zero or below
    means there is nothing left to stage and the watch deactivates itself.
    """

    name = "staging"

    def __init__(self, actuators: ActuatorHandle, telemetry: TelemetryPort):
        super().__init__()
        self.actuators = actuators
        self.telemetry = telemetry
        self.stage_count = 0
        self._pending_from: int | None = None

    def poll(self, snapshot: VehicleSnapshot) -> None:
        if self.actuators.warp_active:
            return

        if self._pending_from is not None:
            if snapshot.stage_index >= self._pending_from:
                return
            self._pending_from = None
            if snapshot.stage_index <= 0:
                self.telemetry.diagnostic("Final stage reached")
                self.deactivate()
                return
            self.stage_count += 1
            isp = stage_isp(snapshot.engines)
            logger.info("Stage %d ready (ISP %.0f s)", snapshot.stage_index, isp)
            self.telemetry.diagnostic(f"Staged: stage {snapshot.stage_index} ready")
            return

        if snapshot.stage_index <= 0:
            self.deactivate()
            return

        if snapshot.available_thrust <= 0.0 or snapshot.stage_fuel <= 0.0:
            logger.info(
                "Stage %d spent (thrust %.0f N, fuel %.1f kg), staging",
                snapshot.stage_index, snapshot.available_thrust, snapshot.stage_fuel,
            )
            self._pending_from = snapshot.stage_index
            self.actuators.stage()


class TelemetryRefreshWatch(Watch):
    """Send a numeric telemetry frame every ``interval`` seconds."""

    name = "telemetry"

    def __init__(
        self,
        telemetry: TelemetryPort,
        interval: float = 1.0,
        burn_clock: BurnClock | None = None,
    ):
        super().__init__()
        self.telemetry = telemetry
        self.interval = interval
        self.burn_clock = burn_clock
        self._next_time: float | None = None

    def poll(self, snapshot: VehicleSnapshot) -> None:
        if self._next_time is not None and snapshot.time < self._next_time:
            return
        self._next_time = snapshot.time + self.interval

        countdown, elapsed = (None, None)
        if self.burn_clock is not None:
            countdown, elapsed = self.burn_clock(snapshot.time)

        self.telemetry.update(TelemetryFrame(
            time=snapshot.time,
            stage=snapshot.stage_index,
            pitch=snapshot.pitch,
            apoapsis=snapshot.orbit.apoapsis,
            periapsis=snapshot.orbit.periapsis,
            eccentricity=snapshot.orbit.eccentricity,
            burn_countdown=countdown,
            burn_elapsed=elapsed,
        ))


@dataclass
class WatchGroup:
    """Set of watches with guaranteed deactivation on exit."""

    watches: list[Watch] = field(default_factory=list)

    def add(self, watch: Watch) -> Watch:
        self.watches.append(watch)
        return watch

    def poll(self, snapshot: VehicleSnapshot) -> None:
        """Poll every active watch once."""
        for watch in self.watches:
            if watch.active:
                watch.poll(snapshot)

    @property
    def active(self) -> list[Watch]:
        return [w for w in self.watches if w.active]

    def close(self) -> None:
        for watch in self.watches:
            watch.deactivate()

    def __enter__(self) -> "WatchGroup":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
