"""Step-driven point-mass flight simulation.

The simulator is the "truth" side of the loop. It implements the two
host protocols the flight software talks to:

    - VehicleStateQuery: sim.snapshot() -> VehicleSnapshot
    - VehicleCommands:   set_throttle, set_steering, stage, warp_to, ...

and is advanced by the caller, one fixed time step per ``step()``:

    >>> from ascent import AscentStateMachine, MissionParameters
    >>> from spacesim import Simulator
    >>>
    >>> sim = Simulator.on_pad()
    >>> machine = AscentStateMachine(MissionParameters(), sim, sim)
    >>> machine.run(step=sim.step)

Physics:
    - Point mass, spherical gravity, exponential atmosphere drag on the
      surface-relative velocity, RK4 integration
    - Constant thrust along the facing vector, ISP (and so propellant
      flow) varies with ambient pressure
    - Facing slews toward the steering target at a fixed rate; roll is not
      modeled
    - On the pad the vessel is held to the rotating surface until thrust
      exceeds weight
    - Time warp advances several integration substeps per step with the
      engines shut down
"""

import logging
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

from ascent.config import WarpMode
from ascent.vehicle import EngineInfo, VehicleSnapshot, VesselStatus
from spacesim.bodies import KERBIN, CelestialBody, _density
from spacesim.orbital import osculating_orbit
from spacesim.vehicle import KERBIN_ORBITER, VesselDesign

logger = logging.getLogger(__name__)


class SimulationError(RuntimeError):
    """The simulated vessel reached a state the plant cannot continue from."""


# =============================================================================
# Configuration
# =============================================================================


@beartype
@dataclass
class SimConfig:
    """Simulation configuration.

    Attributes:
        dt: Integration step [s]
        slew_rate: Maximum attitude slew rate [deg/s]
        physics_warp_substeps: Substeps per step in PHYSICS warp
        rails_warp_substeps: Substeps per step in RAILS warp
        record_interval: Steps between history samples, 0 disables
    """
    dt: float = 0.02
    slew_rate: float = 15.0
    physics_warp_substeps: int = 4
    rails_warp_substeps: int = 50
    record_interval: int = 10

    def __post_init__(self) -> None:
        if self.dt <= 0:
            raise ValueError(f"Time step must be positive, got {self.dt}")
        if self.slew_rate <= 0:
            raise ValueError(f"Slew rate must be positive, got {self.slew_rate}")
        if self.physics_warp_substeps < 1 or self.rails_warp_substeps < 1:
            raise ValueError("Warp substeps must be at least 1")


# =============================================================================
# Numba-Optimized Integration
# =============================================================================


@njit(cache=True, fastmath=True)
def _acceleration(
    px: float, py: float, pz: float,
    vx: float, vy: float, vz: float,
    mass: float,
    # Thrust force (inertial)
    tx: float, ty: float, tz: float,
    # Body
    mu: float, omega: float, radius: float,
    rho0: float, scale_height: float, top: float,
    drag_area: float,
) -> tuple[float, float, float]:
    """Gravity, thrust and drag acceleration."""
    r_sq = px*px + py*py + pz*pz
    r = np.sqrt(r_sq)
    g = -mu / (r_sq * r)

    ax = g * px + tx / mass
    ay = g * py + ty / mass
    az = g * pz + tz / mass

    if drag_area > 0.0:
        rho = _density(r - radius, rho0, scale_height, top)
        if rho > 0.0:
            # Air co-rotates with the body: v_rel = v - omega x r
            sx = vx + omega * py
            sy = vy - omega * px
            sz = vz
            s = np.sqrt(sx*sx + sy*sy + sz*sz)
            k = -0.5 * rho * s * drag_area / mass
            ax += k * sx
            ay += k * sy
            az += k * sz

    return (ax, ay, az)


@njit(cache=True, fastmath=True)
def _rk4_step_core(
    # Initial state
    px: float, py: float, pz: float,
    vx: float, vy: float, vz: float,
    mass: float,
    # Mass flow (positive, consumed) and thrust force (inertial)
    mdot: float,
    tx: float, ty: float, tz: float,
    # Body
    mu: float, omega: float, radius: float,
    rho0: float, scale_height: float, top: float,
    drag_area: float,
    # Time step
    dt: float,
) -> tuple[float, float, float, float, float, float]:
    """Numba-optimized RK4 step of the translational state."""
    h = dt / 2.0

    k1a = _acceleration(px, py, pz, vx, vy, vz, mass, tx, ty, tz,
                        mu, omega, radius, rho0, scale_height, top, drag_area)

    px2 = px + vx*h
    py2 = py + vy*h
    pz2 = pz + vz*h
    vx2 = vx + k1a[0]*h
    vy2 = vy + k1a[1]*h
    vz2 = vz + k1a[2]*h
    k2a = _acceleration(px2, py2, pz2, vx2, vy2, vz2, mass - mdot*h, tx, ty, tz,
                        mu, omega, radius, rho0, scale_height, top, drag_area)

    px3 = px + vx2*h
    py3 = py + vy2*h
    pz3 = pz + vz2*h
    vx3 = vx + k2a[0]*h
    vy3 = vy + k2a[1]*h
    vz3 = vz + k2a[2]*h
    k3a = _acceleration(px3, py3, pz3, vx3, vy3, vz3, mass - mdot*h, tx, ty, tz,
                        mu, omega, radius, rho0, scale_height, top, drag_area)

    px4 = px + vx3*dt
    py4 = py + vy3*dt
    pz4 = pz + vz3*dt
    vx4 = vx + k3a[0]*dt
    vy4 = vy + k3a[1]*dt
    vz4 = vz + k3a[2]*dt
    k4a = _acceleration(px4, py4, pz4, vx4, vy4, vz4, mass - mdot*dt, tx, ty, tz,
                        mu, omega, radius, rho0, scale_height, top, drag_area)

    c = dt / 6.0
    return (
        px + c * (vx + 2*vx2 + 2*vx3 + vx4),
        py + c * (vy + 2*vy2 + 2*vy3 + vy4),
        pz + c * (vz + 2*vz2 + 2*vz3 + vz4),
        vx + c * (k1a[0] + 2*k2a[0] + 2*k3a[0] + k4a[0]),
        vy + c * (k1a[1] + 2*k2a[1] + 2*k3a[1] + k4a[1]),
        vz + c * (k1a[2] + 2*k2a[2] + 2*k3a[2] + k4a[2]),
    )


@njit(cache=True, fastmath=True)
def _slew_core(
    fx: float, fy: float, fz: float,
    tx: float, ty: float, tz: float,
    max_angle: float,
) -> tuple[float, float, float]:
    """Rotate unit vector f toward unit vector t by at most max_angle [rad]."""
    cos_a = fx*tx + fy*ty + fz*tz
    if cos_a > 1.0:
        cos_a = 1.0
    elif cos_a < -1.0:
        cos_a = -1.0
    angle = np.arccos(cos_a)
    if angle <= max_angle:
        return (tx, ty, tz)

    # Rotation axis k = f x t
    kx = fy * tz - fz * ty
    ky = fz * tx - fx * tz
    kz = fx * ty - fy * tx
    kn = np.sqrt(kx*kx + ky*ky + kz*kz)
    if kn < 1e-12:
        # Antiparallel: any axis perpendicular to f
        if abs(fx) < 0.9:
            kx, ky, kz = 0.0, fz, -fy
        else:
            kx, ky, kz = -fz, 0.0, fx
        kn = np.sqrt(kx*kx + ky*ky + kz*kz)
    kx /= kn
    ky /= kn
    kz /= kn

    # Rodrigues with k perpendicular to f
    c = np.cos(max_angle)
    s = np.sin(max_angle)
    nx = fx * c + (ky * fz - kz * fy) * s
    ny = fy * c + (kz * fx - kx * fz) * s
    nz = fz * c + (kx * fy - ky * fx) * s
    n = np.sqrt(nx*nx + ny*ny + nz*nz)
    return (nx / n, ny / n, nz / n)


def _unit(v: NDArray[np.float64]) -> NDArray[np.float64]:
    return v / np.linalg.norm(v)


# =============================================================================
# Flight History
# =============================================================================


class FlightSample(NamedTuple):
    """One recorded simulation sample."""
    time: float
    altitude: float
    speed: float
    surface_speed: float
    mass: float
    throttle: float
    pitch: float
    apoapsis: float
    periapsis: float
    stage_index: int
    status: str


@dataclass
class FlightHistory:
    """Recorded samples of a simulated flight."""

    samples: list[FlightSample] = field(default_factory=list)

    def append(self, sample: FlightSample) -> None:
        self.samples.append(sample)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def time(self) -> NDArray[np.float64]:
        """Time array [s]."""
        return np.array([s.time for s in self.samples])

    @property
    def altitude(self) -> NDArray[np.float64]:
        """Altitude history [m]."""
        return np.array([s.altitude for s in self.samples])

    def to_dataframe(self):
        """Convert to Polars DataFrame."""
        import polars as pl

        return pl.DataFrame(
            {name: [getattr(s, name) for s in self.samples] for name in FlightSample._fields}
        )


# =============================================================================
# Simulator
# =============================================================================


class Simulator:
    """Point-mass ascent simulator and vehicle host.

    Attributes:
        design: Vessel being flown
        body: Body the vessel launches from
        config: Simulation configuration
        history: Recorded flight samples
    """

    def __init__(
        self,
        design: VesselDesign,
        body: CelestialBody,
        position: NDArray[np.float64],
        velocity: NDArray[np.float64],
        time: float = 0.0,
        status: VesselStatus = VesselStatus.PRELAUNCH,
        config: SimConfig | None = None,
    ):
        self.design = design
        self.body = body
        self.config = config or SimConfig()
        self.position = np.asarray(position, dtype=np.float64)
        self.velocity = np.asarray(velocity, dtype=np.float64)
        self.time = float(time)
        self.status = status

        self.stage_index = design.stage_count
        self.fuel = [s.fuel_mass for s in design.stages]
        self.facing = _unit(self.position)
        self.throttle = 0.0
        self.steering_target: NDArray[np.float64] | None = None
        self.steering_top: NDArray[np.float64] | None = None

        self._warp_target: float | None = None
        self._warp_mode = WarpMode.NONE
        self._step_count = 0
        self.history = FlightHistory()
        if self.config.record_interval > 0:
            self._record()

    @classmethod
    @beartype
    def on_pad(
        cls,
        design: VesselDesign = KERBIN_ORBITER,
        body: CelestialBody = KERBIN,
        latitude: float = 0.0,
        longitude: float = 0.0,
        start_time: float = 0.0,
        config: SimConfig | None = None,
    ) -> "Simulator":
        """Create a simulator with the vessel standing on the pad.

        Args:
            design: Vessel design
            body: Launch body
            latitude: Launch site latitude [deg]
            longitude: Launch site longitude at time zero [deg]
            start_time: Initial simulation clock [s]
            config: Simulation configuration
        """
        lat = np.radians(latitude)
        theta = np.radians(longitude) + body.rotation_rate * start_time
        position = body.radius * np.array([
            np.cos(lat) * np.cos(theta),
            np.cos(lat) * np.sin(theta),
            np.sin(lat),
        ])
        omega = np.array([0.0, 0.0, body.rotation_rate])
        return cls(
            design=design,
            body=body,
            position=position,
            velocity=np.cross(omega, position),
            time=start_time,
            status=VesselStatus.PRELAUNCH,
            config=config,
        )

    # =========================================================================
    # Stage bookkeeping
    # =========================================================================

    @property
    def active_stage(self) -> int | None:
        """Index into ``design.stages`` of the burning stage, None before ignition."""
        j = self.design.stage_count - 1 - self.stage_index
        return j if j >= 0 else None

    @property
    def mass(self) -> float:
        first = self.active_stage or 0
        stages = self.design.stages
        return self.design.payload_mass + sum(
            stages[j].dry_mass + self.fuel[j] for j in range(first, len(stages))
        )

    @property
    def altitude(self) -> float:
        return float(np.linalg.norm(self.position)) - self.body.radius

    def _pressure_ratio(self) -> float:
        return self.body.pressure_ratio(self.altitude)

    def _available_thrust(self) -> float:
        j = self.active_stage
        if j is None or self.fuel[j] <= 0.0:
            return 0.0
        return self.design.stages[j].thrust

    def _drag_area(self) -> float:
        return self.design.stages[self.active_stage or 0].drag_area

    # =========================================================================
    # VehicleStateQuery
    # =========================================================================

    def snapshot(self) -> VehicleSnapshot:
        """Read the current vehicle state."""
        r = float(np.linalg.norm(self.position))
        up = self.position / r
        z_axis = np.array([0.0, 0.0, 1.0])
        north = z_axis - np.dot(z_axis, up) * up
        if np.linalg.norm(north) < 1e-9:
            north = np.array([1.0, 0.0, 0.0])
        north = _unit(north)

        omega = np.array([0.0, 0.0, self.body.rotation_rate])
        surface_velocity = self.velocity - np.cross(omega, self.position)

        p = self._pressure_ratio()
        j = self.active_stage
        thrust = self._available_thrust()
        isp = self.design.stages[j].isp(p) if j is not None else 0.0

        n = self.design.stage_count
        first = j or 0
        engines = tuple(
            EngineInfo(
                thrust=e.thrust if k == j and self.fuel[k] > 0.0 else 0.0,
                isp=e.isp(p),
                stage=n - 1 - k,
                active=k == j,
            )
            for k in range(first, n)
            for e in self.design.stages[k].engines
        )

        return VehicleSnapshot(
            time=self.time,
            name=self.design.name,
            status=self.status,
            mass=self.mass,
            available_thrust=thrust,
            current_isp=isp,
            stage_fuel=self.fuel[j] if j is not None else 0.0,
            stage_index=self.stage_index,
            engines=engines,
            altitude=r - self.body.radius,
            latitude=float(np.degrees(np.arcsin(self.position[2] / r))),
            orbit=osculating_orbit(self.position, self.velocity, self.body.mu, self.body.radius),
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            surface_velocity=surface_velocity,
            facing=self.facing.copy(),
            up=up,
            north=north,
            body=self.body.info(),
        )

    # =========================================================================
    # VehicleCommands
    # =========================================================================

    def set_throttle(self, throttle: float) -> None:
        self.throttle = min(max(float(throttle), 0.0), 1.0)

    def set_steering(self, direction: NDArray[np.float64], top: NDArray[np.float64]) -> None:
        self.steering_target = _unit(np.asarray(direction, dtype=np.float64))
        self.steering_top = np.asarray(top, dtype=np.float64)

    def unlock_steering(self) -> None:
        self.steering_target = None
        self.steering_top = None

    def stage(self) -> None:
        """Drop the spent stage and ignite the next one."""
        if self.stage_index <= 0:
            logger.warning("Stage command with nothing left to stage")
            return
        dropped = self.active_stage
        self.stage_index -= 1
        if dropped is not None:
            logger.info(
                "T=%.1f: dropped %s with %.1f kg fuel",
                self.time, self.design.stages[dropped].name, self.fuel[dropped],
            )
        logger.info("T=%.1f: %s ignition", self.time, self.design.stages[self.active_stage].name)

    def warp_to(self, time: float, mode: WarpMode) -> None:
        if mode is WarpMode.NONE or time <= self.time:
            return
        self._warp_target = float(time)
        self._warp_mode = mode
        logger.info("T=%.1f: %s warp to T=%.1f", self.time, mode.value, time)

    def cancel_warp(self) -> None:
        if self._warp_target is not None:
            logger.info("T=%.1f: warp cancelled", self.time)
        self._warp_target = None
        self._warp_mode = WarpMode.NONE

    @property
    def warp_active(self) -> bool:
        return self._warp_target is not None

    # =========================================================================
    # Propagation
    # =========================================================================

    def step(self) -> None:
        """Advance the simulation by one step (several substeps in warp)."""
        dt = self.config.dt
        if self._warp_target is None:
            self._advance(dt, self.throttle)
        else:
            substeps = (
                self.config.rails_warp_substeps
                if self._warp_mode is WarpMode.RAILS
                else self.config.physics_warp_substeps
            )
            for _ in range(substeps):
                h = min(dt, self._warp_target - self.time)
                if h > 0.0:
                    self._advance(h, 0.0)
                if self.time >= self._warp_target - 1e-9:
                    logger.info("T=%.1f: warp complete", self.time)
                    self.cancel_warp()
                    break

        self._step_count += 1
        interval = self.config.record_interval
        if interval > 0 and self._step_count % interval == 0:
            self._record()

    def _advance(self, dt: float, throttle: float) -> None:
        self._slew(dt)

        j = self.active_stage
        p = self._pressure_ratio()
        mass = self.mass
        thrust = 0.0
        mdot = 0.0
        if j is not None and throttle > 0.0 and self.fuel[j] > 0.0:
            stage = self.design.stages[j]
            mdot = throttle * stage.mass_flow(p)
            burn = throttle
            if mdot * dt > self.fuel[j]:
                # Partial step on the last of the fuel
                burn *= self.fuel[j] / (mdot * dt)
                mdot = self.fuel[j] / dt
            thrust = burn * stage.thrust
        force = thrust * self.facing

        if self.status in (VesselStatus.PRELAUNCH, VesselStatus.LANDED):
            up = self.position / np.linalg.norm(self.position)
            weight = self.body.mu / float(np.dot(self.position, self.position)) * mass
            if float(np.dot(force, up)) <= weight:
                self._hold_on_surface(dt)
                if j is not None:
                    self.fuel[j] = max(self.fuel[j] - mdot * dt, 0.0)
                return
            logger.info("T=%.1f: liftoff", self.time)
            self.status = VesselStatus.FLYING

        result = _rk4_step_core(
            self.position[0], self.position[1], self.position[2],
            self.velocity[0], self.velocity[1], self.velocity[2],
            mass,
            mdot,
            force[0], force[1], force[2],
            self.body.mu, self.body.rotation_rate, self.body.radius,
            self.body.sea_level_density, self.body.scale_height, self.body.atmosphere_height,
            self._drag_area(),
            dt,
        )
        self.position = np.array([result[0], result[1], result[2]])
        self.velocity = np.array([result[3], result[4], result[5]])
        self.time += dt
        if j is not None:
            self.fuel[j] = max(self.fuel[j] - mdot * dt, 0.0)

        if self.altitude < -1.0:
            raise SimulationError(f"Vessel impacted the surface at T={self.time:.1f}")
        self._update_status()

    def _hold_on_surface(self, dt: float) -> None:
        angle = self.body.rotation_rate * dt
        c, s = np.cos(angle), np.sin(angle)
        rot = np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])
        self.position = rot @ self.position
        self.velocity = np.cross(np.array([0.0, 0.0, self.body.rotation_rate]), self.position)
        self.facing = rot @ self.facing
        self.time += dt

    def _slew(self, dt: float) -> None:
        if self.steering_target is None:
            return
        f = self.facing
        t = self.steering_target
        result = _slew_core(f[0], f[1], f[2], t[0], t[1], t[2], np.radians(self.config.slew_rate) * dt)
        self.facing = np.array(result)

    def _update_status(self) -> None:
        if self.altitude < self.body.atmosphere_height:
            self.status = VesselStatus.FLYING
            return
        orbit = osculating_orbit(self.position, self.velocity, self.body.mu, self.body.radius)
        floor = max(self.body.atmosphere_height, 0.0)
        status = VesselStatus.ORBITING if orbit.periapsis > floor else VesselStatus.SUB_ORBITAL
        if status is not self.status:
            logger.info("T=%.1f: status %s", self.time, status.value)
        self.status = status

    def _record(self) -> None:
        orbit = osculating_orbit(self.position, self.velocity, self.body.mu, self.body.radius)
        up = self.position / np.linalg.norm(self.position)
        omega = np.array([0.0, 0.0, self.body.rotation_rate])
        surface_velocity = self.velocity - np.cross(omega, self.position)
        self.history.append(FlightSample(
            time=self.time,
            altitude=self.altitude,
            speed=float(np.linalg.norm(self.velocity)),
            surface_speed=float(np.linalg.norm(surface_velocity)),
            mass=self.mass,
            throttle=0.0 if self.warp_active else self.throttle,
            pitch=float(np.degrees(np.arcsin(np.clip(np.dot(self.facing, up), -1.0, 1.0)))),
            apoapsis=orbit.apoapsis,
            periapsis=orbit.periapsis,
            stage_index=self.stage_index,
            status=self.status.value,
        ))
