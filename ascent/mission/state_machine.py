"""Ascent-to-orbit state machine.

Sequences a mission from the pad to a circular orbit:

    COUNTDOWN -> LAUNCH -> PITCHOVER -> AOA_SETTLE -> ASCENT
              -> COAST_TO_CIRC -> CIRCULARIZING -> COMPLETE

On an airless body the pitchover vector is held straight into ASCENT and
AOA_SETTLE never runs. ABORTED is entered when the preflight check fails
or on any fatal error.

Each call to ``tick`` reads one vehicle snapshot, polls the background
watches once and dispatches to exactly one phase update method. Blocking
waits of the flight plan (attitude convergence, countdown, burn start,
time compression) are conditions re-checked every tick.

Actuator ownership moves explicitly between components:

    phase            throttle              steering
    COUNTDOWN        mission               mission
    LAUNCH..ASCENT   throttle-controller   attitude-program
    COAST_TO_CIRC    burn-executor         attitude-program
    CIRCULARIZING    burn-executor         burn-executor

Example:
    >>> from ascent import AscentStateMachine, MissionParameters
    >>> from spacesim import Simulator
    >>>
    >>> sim = Simulator.on_pad()
    >>> machine = AscentStateMachine(MissionParameters(), sim, sim)
    >>> machine.run(step=sim.step)
    <AscentPhase.COMPLETE: 8>
"""

import logging
from collections.abc import Callable
from enum import IntEnum

from ascent.config import MissionParameters, WarpMode
from ascent.control.actuators import ActuatorHandle
from ascent.control.throttle import ApoapsisThrottleController, ascent_complete
from ascent.errors import AscentError, PreflightError
from ascent.guidance.attitude_program import AttitudeProgram, SteeringCommand
from ascent.guidance.orbital_mechanics import (
    circular_speed,
    equatorial_speed,
    launch_azimuth,
)
from ascent.mission.burn import BurnExecutor, BurnPlan, plan_circularization
from ascent.mission.countdown import Countdown
from ascent.mission.watches import StagingWatch, TelemetryRefreshWatch, WatchGroup
from ascent.telemetry import MissionInfo, NullTelemetry, TelemetryPort
from ascent.vehicle import VehicleCommands, VehicleSnapshot, VehicleStateQuery, VesselStatus

logger = logging.getLogger(__name__)

MISSION = "mission"
THROTTLE_CONTROLLER = "throttle-controller"
ATTITUDE_PROGRAM = "attitude-program"


class AscentPhase(IntEnum):
    """Ascent mission phases."""
    COUNTDOWN = 1
    LAUNCH = 2
    PITCHOVER = 3
    AOA_SETTLE = 4
    ASCENT = 5
    COAST_TO_CIRC = 6
    CIRCULARIZING = 7
    COMPLETE = 8
    ABORTED = 9

    @property
    def is_terminal(self) -> bool:
        return self in (AscentPhase.COMPLETE, AscentPhase.ABORTED)

    @property
    def label(self) -> str:
        """Human-readable phase name."""
        names = {
            AscentPhase.COUNTDOWN: "Countdown",
            AscentPhase.LAUNCH: "Launch",
            AscentPhase.PITCHOVER: "Pitchover",
            AscentPhase.AOA_SETTLE: "AOA Settle",
            AscentPhase.ASCENT: "Ascent",
            AscentPhase.COAST_TO_CIRC: "Coast to Circ",
            AscentPhase.CIRCULARIZING: "Circularizing",
            AscentPhase.COMPLETE: "Complete",
            AscentPhase.ABORTED: "Aborted",
        }
        return names[self]


class AscentStateMachine:
    """Closed-loop ascent and circularization controller.

    Attributes:
        params: Mission parameters
        vehicle: Vehicle state source
        actuators: Owner-checked actuator access
        telemetry: Display sink
        phase: Current phase, None before ``start``
        history: Phases in the order they were entered
    """

    def __init__(
        self,
        params: MissionParameters,
        vehicle: VehicleStateQuery,
        commands: VehicleCommands,
        telemetry: TelemetryPort | None = None,
        telemetry_interval: float = 1.0,
    ):
        self.params = params
        self.vehicle = vehicle
        self.actuators = ActuatorHandle(commands)
        self.telemetry = telemetry or NullTelemetry()
        self.telemetry_interval = telemetry_interval

        self.phase: AscentPhase | None = None
        self.history: list[AscentPhase] = []
        self.watches = WatchGroup()
        self.throttle = ApoapsisThrottleController(target_altitude=params.target_altitude)

        self.azimuth: float | None = None
        self.program: AttitudeProgram | None = None
        self.countdown: Countdown | None = None
        self.plan: BurnPlan | None = None
        self.executor: BurnExecutor | None = None
        self.completed_burn: BurnPlan | None = None
        self.warp_target: float | None = None

        self._last_time: float | None = None
        self._last_counter: int | None = None

        self._handlers: dict[AscentPhase, Callable[[VehicleSnapshot], None]] = {
            AscentPhase.COUNTDOWN: self._update_countdown,
            AscentPhase.LAUNCH: self._update_launch,
            AscentPhase.PITCHOVER: self._update_pitchover,
            AscentPhase.AOA_SETTLE: self._update_aoa_settle,
            AscentPhase.ASCENT: self._update_ascent,
            AscentPhase.COAST_TO_CIRC: self._update_coast,
            AscentPhase.CIRCULARIZING: self._update_circularizing,
        }

    # =========================================================================
    # Driving the mission
    # =========================================================================

    def start(self) -> AscentPhase:
        """Run preflight checks and begin the countdown."""
        if self.phase is not None:
            raise AscentError(f"Mission already started ({self.phase.label})")

        snapshot = self.vehicle.snapshot()
        self.telemetry.vessel(snapshot.name)

        try:
            self._preflight(snapshot)
        except PreflightError as exc:
            logger.error("Preflight failed: %s", exc)
            self.telemetry.error(str(exc))
            self._enter(AscentPhase.ABORTED)
            return self.phase

        self.azimuth = self.recalculate_azimuth(snapshot)
        self.program = AttitudeProgram(
            azimuth=self.azimuth,
            pitchover_angle=self.params.pitchover_angle,
            has_atmosphere=snapshot.body.has_atmosphere,
        )
        self.telemetry.mission(MissionInfo(
            turn_altitude=self.params.turn_start_altitude,
            turn_pitch=self.params.pitchover_angle,
            target_altitude=self.params.target_altitude,
            target_inclination=self.params.target_inclination,
            launch_direction=self.params.launch_direction.value,
            launch_azimuth=self.azimuth,
        ))

        self.countdown = Countdown.start(
            snapshot.time,
            self.params.countdown,
            sync=self.params.launch_sync,
            period=self.params.sync_period,
        )
        self.actuators.acquire(MISSION)
        self.actuators.set_throttle(MISSION, 0.0)
        launch = self.program.launch(snapshot)
        self.actuators.set_steering(MISSION, launch.direction, launch.top)
        self._last_time = snapshot.time
        self._enter(AscentPhase.COUNTDOWN)
        return self.phase

    def tick(self) -> AscentPhase:
        """Advance the mission by one scheduler tick."""
        if self.phase is None:
            raise AscentError("Mission not started")
        if self.phase.is_terminal:
            return self.phase

        snapshot = self.vehicle.snapshot()
        try:
            self.watches.poll(snapshot)
            self._handlers[self.phase](snapshot)
        except Exception as exc:
            self.abort(f"Fatal error during {self.phase.label}: {exc}")
            raise
        self._last_time = snapshot.time
        return self.phase

    def run(self, step: Callable[[], object], max_time: float = 7200.0) -> AscentPhase:
        """Fly the whole mission.

        Args:
            step: Advances the host by one tick
            max_time: Mission time limit after start [s]

        Returns:
            Terminal phase
        """
        phase = self.start() if self.phase is None else self.phase
        start_time = self._last_time
        try:
            while not phase.is_terminal:
                phase = self.tick()
                if phase.is_terminal:
                    break
                if self._last_time - start_time > max_time:
                    raise AscentError(f"Mission exceeded {max_time:.0f} s in {phase.label}")
                step()
        finally:
            if not self.phase.is_terminal:
                self.abort("Mission interrupted")
        return self.phase

    def abort(self, reason: str) -> None:
        """Fatal exit: release everything and enter ABORTED."""
        logger.error("Mission aborted: %s", reason)
        self.telemetry.error(reason)
        self.plan = None
        self._shutdown()
        self._enter(AscentPhase.ABORTED)

    def recalculate_azimuth(self, snapshot: VehicleSnapshot | None = None) -> float:
        """Launch azimuth for the target inclination from the current site."""
        snapshot = snapshot or self.vehicle.snapshot()
        body = snapshot.body
        self.azimuth = launch_azimuth(
            snapshot.latitude,
            self.params.target_inclination,
            self.params.launch_direction,
            circular_speed(body.mu, body.radius + self.params.target_altitude),
            equatorial_speed(body.radius, body.rotation_period),
        )
        logger.info("Launch azimuth %.2f deg", self.azimuth)
        return self.azimuth

    # =========================================================================
    # Phase updates
    # =========================================================================

    def _update_countdown(self, snapshot: VehicleSnapshot) -> None:
        counter = self.countdown.counter(snapshot.time)
        if counter != self._last_counter:
            self._last_counter = counter
            self.telemetry.diagnostic(f"T-{counter}")

        if not self.countdown.expired(snapshot.time):
            return

        self.actuators.handoff(MISSION, THROTTLE_CONTROLLER, steering=False)
        self.actuators.handoff(MISSION, ATTITUDE_PROGRAM, throttle=False)
        self.throttle.arm()
        self.actuators.set_throttle(THROTTLE_CONTROLLER, 1.0)
        self.actuators.stage()

        self.watches.add(StagingWatch(self.actuators, self.telemetry))
        self.watches.add(TelemetryRefreshWatch(
            self.telemetry, self.telemetry_interval, burn_clock=self._burn_clock,
        ))
        self._enter(AscentPhase.LAUNCH)

    def _update_launch(self, snapshot: VehicleSnapshot) -> None:
        self._steer(self.program.launch(snapshot))
        self._regulate_throttle(snapshot)
        if snapshot.altitude >= self.params.turn_start_altitude:
            self._enter(AscentPhase.PITCHOVER)

    def _update_pitchover(self, snapshot: VehicleSnapshot) -> None:
        self._steer(self.program.pitchover(snapshot))
        self._regulate_throttle(snapshot)
        if not self.program.has_atmosphere:
            self._enter(AscentPhase.ASCENT)
        elif self.program.pitchover_converged(snapshot):
            self._enter(AscentPhase.AOA_SETTLE)

    def _update_aoa_settle(self, snapshot: VehicleSnapshot) -> None:
        self._steer(self.program.pitchover(snapshot))
        self._regulate_throttle(snapshot)
        if self.program.aoa_converged(snapshot):
            self._enter(AscentPhase.ASCENT)

    def _update_ascent(self, snapshot: VehicleSnapshot) -> None:
        self._steer(self.program.ascent(snapshot))
        self._regulate_throttle(snapshot)
        if ascent_complete(
            not self.throttle.armed,
            snapshot.altitude,
            snapshot.body.atmosphere_height,
        ):
            self._begin_coast(snapshot)

    def _begin_coast(self, snapshot: VehicleSnapshot) -> None:
        self.plan = plan_circularization(snapshot)
        self.telemetry.maneuver(self.plan.duration, self.plan.delta_v)

        self.executor = BurnExecutor(self.plan, self.program, self.actuators)
        self.actuators.handoff(THROTTLE_CONTROLLER, BurnExecutor.owner, steering=False)
        self.actuators.set_throttle(BurnExecutor.owner, 0.0)
        self._steer(self.program.burn(snapshot))
        self._enter(AscentPhase.COAST_TO_CIRC)

        if self.params.warp_mode is not WarpMode.NONE:
            target = self.plan.start_time - self.params.steering_duration
            if target > snapshot.time:
                self.warp_target = target
                self.actuators.warp_to(target, self.params.warp_mode)
                self.telemetry.diagnostic(f"Warping to T={target:.0f}")

    def _update_coast(self, snapshot: VehicleSnapshot) -> None:
        if self.warp_target is not None:
            if self.actuators.warp_active:
                if snapshot.time < self.warp_target:
                    return
                self.actuators.cancel_warp()
            self.warp_target = None

        self._steer(self.program.burn(snapshot))
        if snapshot.time >= self.plan.start_time:
            self.actuators.handoff(ATTITUDE_PROGRAM, BurnExecutor.owner, throttle=False)
            self.executor.start(snapshot)
            self._enter(AscentPhase.CIRCULARIZING)

    def _update_circularizing(self, snapshot: VehicleSnapshot) -> None:
        if self.executor.update(snapshot):
            self.completed_burn = self.plan
            self.plan = None
            self._shutdown()
            self.telemetry.diagnostic(
                f"Orbit: {snapshot.orbit.apoapsis / 1000:.2f} x "
                f"{snapshot.orbit.periapsis / 1000:.2f} km"
            )
            self._enter(AscentPhase.COMPLETE)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _preflight(self, snapshot: VehicleSnapshot) -> None:
        if snapshot.status not in (VesselStatus.PRELAUNCH, VesselStatus.LANDED):
            raise PreflightError(snapshot.status.value)

    def _enter(self, phase: AscentPhase) -> None:
        self.phase = phase
        self.history.append(phase)
        logger.info("Phase: %s", phase.label)
        self.telemetry.status(phase.label)

    def _steer(self, command: SteeringCommand) -> None:
        self.actuators.set_steering(ATTITUDE_PROGRAM, command.direction, command.top)

    def _regulate_throttle(self, snapshot: VehicleSnapshot) -> None:
        dt = snapshot.time - self._last_time if self._last_time is not None else 0.0
        value = self.throttle.update(snapshot.orbit.apoapsis, dt)
        self.actuators.set_throttle(THROTTLE_CONTROLLER, value)

    def _burn_clock(self, now: float) -> tuple[float | None, float | None]:
        if self.executor is not None and self.executor.burning:
            return None, self.executor.elapsed(now)
        if self.plan is not None:
            return self.plan.countdown(now), None
        return None, None

    def _shutdown(self) -> None:
        if self.actuators.warp_active:
            self.actuators.cancel_warp()
        self.actuators.release()
        self.watches.close()
