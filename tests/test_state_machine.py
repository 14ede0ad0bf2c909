"""Tests for the ascent state machine.

The first half drives the machine through hand-built snapshots so each
transition can be checked in isolation. The second half flies complete
missions against the ``spacesim`` plant.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from ascent.config import LaunchDirection, MissionParameters, WarpMode
from ascent.errors import AscentError
from ascent.guidance.orbital_mechanics import heading_pitch_vector
from ascent.mission.burn import BurnExecutor
from ascent.mission.state_machine import (
    ATTITUDE_PROGRAM,
    MISSION,
    THROTTLE_CONTROLLER,
    AscentPhase,
    AscentStateMachine,
)
from ascent.mission.watches import Watch
from ascent.telemetry import RecordingTelemetry
from ascent.vehicle import BodyInfo, OrbitSnapshot, VesselStatus
from spacesim import KERBIN, MUN, MUN_LANDER, SimConfig, Simulator

UP = np.array([1.0, 0.0, 0.0])
NORTH = np.array([0.0, 0.0, 1.0])

MUN_INFO = BodyInfo(
    name="Mun",
    mu=6.5138398e10,
    radius=200000.0,
    rotation_period=138984.38,
    atmosphere_height=0.0,
)


class ScriptedVehicle:
    """State source that returns whatever snapshot the test last set."""

    def __init__(self, snapshot):
        self.current = snapshot

    def snapshot(self):
        return self.current


class ExplodingWatch(Watch):
    name = "exploding"

    def poll(self, snapshot):
        raise RuntimeError("sensor failure")


def suborbital(apoapsis, periapsis=-100000.0, time_to_apoapsis=60.0, radius=600000.0):
    """Orbit of a vessel still climbing toward ``apoapsis``."""
    return OrbitSnapshot(
        apoapsis=apoapsis,
        periapsis=periapsis,
        eccentricity=0.1,
        semi_major_axis=radius + (apoapsis + periapsis) / 2.0,
        time_to_apoapsis=time_to_apoapsis,
        inclination=0.0,
    )


class Flight:
    """Scripted mission: set a snapshot, tick once."""

    def __init__(self, host, make_snapshot, **params):
        self.make_snapshot = make_snapshot
        self.vehicle = ScriptedVehicle(make_snapshot())
        self.telemetry = RecordingTelemetry()
        self.machine = AscentStateMachine(
            MissionParameters(**params), self.vehicle, host, telemetry=self.telemetry,
        )

    def tick(self, **overrides):
        self.vehicle.current = self.make_snapshot(**overrides)
        return self.machine.tick()

    def to_launch(self):
        self.machine.start()
        self.tick(time=10.0)

    def to_pitchover(self, **overrides):
        self.to_launch()
        self.tick(time=12.0, altitude=130.0, status=VesselStatus.FLYING, **overrides)

    def to_ascent(self):
        self.to_pitchover()
        facing = heading_pitch_vector(UP, NORTH, 90.0, 80.0)
        self.tick(time=14.0, altitude=500.0, facing=facing, status=VesselStatus.FLYING)
        self.tick(
            time=16.0,
            altitude=1000.0,
            facing=facing,
            surface_velocity=120.0 * facing,
            status=VesselStatus.FLYING,
        )

    def to_coast(self):
        self.to_ascent()
        return self.tick(
            time=100.0,
            altitude=70500.0,
            orbit=suborbital(80500.0),
            status=VesselStatus.SUB_ORBITAL,
        )


@pytest.fixture
def flight(host, make_snapshot):
    return Flight(host, make_snapshot)


class TestStart:
    """Test preflight and countdown entry."""

    def test_enters_countdown(self, flight, host):
        assert flight.machine.start() is AscentPhase.COUNTDOWN
        assert flight.machine.history == [AscentPhase.COUNTDOWN]
        assert flight.machine.actuators.throttle_owner == MISSION
        assert flight.machine.actuators.steering_owner == MISSION
        assert host.throttle == 0.0
        assert_allclose(host.steering, UP)

    def test_reports_mission(self, flight):
        flight.machine.start()
        info = flight.telemetry.mission_info
        assert flight.telemetry.vessel_name == "Test Vessel"
        assert info.launch_azimuth == pytest.approx(90.0)
        assert info.target_altitude == 80e3
        assert info.launch_direction == "NORTH"

    def test_landed_vessel_may_launch(self, host, make_snapshot):
        flight = Flight(host, make_snapshot)
        flight.vehicle.current = make_snapshot(status=VesselStatus.LANDED)
        assert flight.machine.start() is AscentPhase.COUNTDOWN

    def test_recalculate_azimuth_follows_latitude(self, host, make_snapshot):
        flight = Flight(host, make_snapshot, target_inclination=45.0)
        flight.machine.start()
        equator = flight.machine.azimuth
        assert 0.0 < equator < 90.0

        flight.vehicle.current = make_snapshot(latitude=30.0)
        moved = flight.machine.recalculate_azimuth()
        assert moved == flight.machine.azimuth
        assert equator < moved < 90.0

    def test_tick_before_start(self, flight):
        with pytest.raises(AscentError):
            flight.machine.tick()

    def test_start_twice(self, flight):
        flight.machine.start()
        with pytest.raises(AscentError):
            flight.machine.start()


class TestPreflightAbort:
    """Test the refusal to launch a vessel already in flight."""

    @pytest.mark.parametrize(
        "status", [VesselStatus.FLYING, VesselStatus.SUB_ORBITAL, VesselStatus.ORBITING],
    )
    def test_aborts_without_touching_actuators(self, host, make_snapshot, status):
        flight = Flight(host, make_snapshot)
        flight.vehicle.current = make_snapshot(status=status)

        assert flight.machine.start() is AscentPhase.ABORTED
        assert flight.machine.history == [AscentPhase.ABORTED]
        assert not flight.machine.actuators.locked
        assert host.steering is None
        assert host.stage_calls == 0
        assert host.unlock_calls == 0
        assert len(flight.telemetry.errors) == 1
        assert status.value in flight.telemetry.errors[0]

    def test_terminal_tick_is_noop(self, host, make_snapshot):
        flight = Flight(host, make_snapshot)
        flight.vehicle.current = make_snapshot(status=VesselStatus.FLYING)
        flight.machine.start()
        assert flight.machine.tick() is AscentPhase.ABORTED
        assert flight.machine.history == [AscentPhase.ABORTED]


class TestCountdown:
    """Test countdown display and liftoff."""

    def test_counts_down(self, flight, host):
        flight.machine.start()
        flight.tick(time=0.0)
        flight.tick(time=0.5)
        flight.tick(time=5.0)
        assert flight.machine.phase is AscentPhase.COUNTDOWN
        assert flight.telemetry.diagnostics == ["T-10", "T-5"]
        assert host.stage_calls == 0

    def test_liftoff(self, flight, host):
        flight.to_launch()
        machine = flight.machine

        assert machine.phase is AscentPhase.LAUNCH
        assert host.stage_calls == 1
        assert host.throttle == 1.0
        assert machine.actuators.throttle_owner == THROTTLE_CONTROLLER
        assert machine.actuators.steering_owner == ATTITUDE_PROGRAM
        assert machine.throttle.armed
        assert len(machine.watches.active) == 2

    def test_synced_countdown(self, host, make_snapshot):
        flight = Flight(host, make_snapshot, launch_sync=True)
        flight.vehicle.current = make_snapshot(time=100.0)
        flight.machine.start()

        flight.tick(time=179.9)
        assert flight.machine.phase is AscentPhase.COUNTDOWN
        flight.tick(time=180.0)
        assert flight.machine.phase is AscentPhase.LAUNCH


class TestClimb:
    """Test the vertical climb, pitchover and AOA settle."""

    def test_vertical_below_turn_altitude(self, flight, host):
        flight.to_launch()
        flight.tick(time=11.0, altitude=129.0, status=VesselStatus.FLYING)
        assert flight.machine.phase is AscentPhase.LAUNCH
        assert_allclose(host.steering, UP)

    def test_pitchover_at_turn_altitude(self, flight):
        flight.to_pitchover()
        assert flight.machine.phase is AscentPhase.PITCHOVER

    def test_pitchover_waits_for_attitude(self, flight):
        flight.to_pitchover()
        flight.tick(time=13.0, altitude=300.0, facing=UP, status=VesselStatus.FLYING)
        assert flight.machine.phase is AscentPhase.PITCHOVER

    def test_full_sequence_to_ascent(self, flight):
        flight.to_ascent()
        assert flight.machine.history == [
            AscentPhase.COUNTDOWN,
            AscentPhase.LAUNCH,
            AscentPhase.PITCHOVER,
            AscentPhase.AOA_SETTLE,
            AscentPhase.ASCENT,
        ]

    def test_airless_skips_aoa_settle(self, host, make_snapshot):
        flight = Flight(host, make_snapshot, target_altitude=30e3)
        flight.vehicle.current = make_snapshot(body=MUN_INFO)
        flight.machine.start()
        flight.tick(time=10.0, body=MUN_INFO)
        flight.tick(time=12.0, altitude=130.0, body=MUN_INFO, status=VesselStatus.FLYING)
        flight.tick(time=12.02, altitude=131.0, body=MUN_INFO, status=VesselStatus.FLYING)

        assert flight.machine.phase is AscentPhase.ASCENT
        assert AscentPhase.AOA_SETTLE not in flight.machine.history


class TestCoast:
    """Test the hand-over to the circularization burn."""

    def test_throttle_cut_inside_atmosphere_keeps_ascending(self, flight, host):
        flight.to_ascent()
        flight.tick(
            time=80.0, altitude=50000.0, orbit=suborbital(80500.0), status=VesselStatus.FLYING,
        )
        assert flight.machine.phase is AscentPhase.ASCENT
        assert host.throttle == 0.0

    def test_begins_coast_above_atmosphere(self, flight, host):
        assert flight.to_coast() is AscentPhase.COAST_TO_CIRC
        machine = flight.machine

        assert machine.plan is not None
        assert machine.plan.start_time == pytest.approx(
            100.0 + 60.0 - machine.plan.duration / 2.0
        )
        assert flight.telemetry.maneuvers == [(machine.plan.duration, machine.plan.delta_v)]
        assert machine.actuators.throttle_owner == BurnExecutor.owner
        assert machine.actuators.steering_owner == ATTITUDE_PROGRAM
        assert host.throttle == 0.0
        assert host.warp_requests == []

    def test_warp_to_steering_lead(self, host, make_snapshot):
        flight = Flight(host, make_snapshot, warp_mode=WarpMode.RAILS, steering_duration=20.0)
        flight.to_coast()
        plan = flight.machine.plan

        assert host.warp_requests == [(plan.start_time - 20.0, WarpMode.RAILS)]
        assert flight.machine.warp_target == plan.start_time - 20.0

        steering = host.steering
        host.steering = None
        flight.tick(time=110.0, altitude=75000.0, orbit=suborbital(80500.0, time_to_apoapsis=50.0))
        assert host.steering is None

        # Host dropped out of warp on its own
        host._warping = False
        flight.tick(time=plan.start_time - 20.0, altitude=79000.0,
                    orbit=suborbital(80500.0, time_to_apoapsis=20.0))
        assert flight.machine.warp_target is None
        assert host.steering is not None
        assert host.cancel_calls == 0
        assert steering is not None

    def test_no_warp_when_burn_is_imminent(self, host, make_snapshot):
        flight = Flight(host, make_snapshot, warp_mode=WarpMode.PHYSICS, steering_duration=300.0)
        flight.to_coast()
        assert host.warp_requests == []
        assert flight.machine.warp_target is None


class TestCircularize:
    """Test the burn and mission completion."""

    def test_burn_and_complete(self, flight, host):
        flight.to_coast()
        machine = flight.machine
        plan = machine.plan

        flight.tick(time=plan.start_time - 1.0, altitude=79000.0,
                    orbit=suborbital(80500.0, time_to_apoapsis=plan.duration / 2.0 + 1.0))
        assert machine.phase is AscentPhase.COAST_TO_CIRC

        flight.tick(time=plan.start_time, altitude=79500.0,
                    orbit=suborbital(80500.0, time_to_apoapsis=plan.duration / 2.0))
        assert machine.phase is AscentPhase.CIRCULARIZING
        assert host.throttle == 1.0
        assert machine.actuators.steering_owner == BurnExecutor.owner
        assert plan.vector is not None
        assert np.linalg.norm(plan.vector) == pytest.approx(plan.delta_v)

        flight.tick(time=plan.start_time + plan.duration, altitude=80500.0,
                    orbit=suborbital(80500.0, periapsis=79000.0))
        assert machine.phase is AscentPhase.COMPLETE
        assert machine.completed_burn is plan
        assert machine.plan is None
        assert host.throttle == 0.0
        assert host.steering is None
        assert not machine.actuators.locked
        assert machine.watches.active == []
        assert flight.telemetry.diagnostics[-1] == "Orbit: 80.50 x 79.00 km"


class TestFatalErrors:
    """Test cleanup on every abnormal exit."""

    def test_exception_aborts_and_propagates(self, flight, host):
        flight.to_launch()
        watch = flight.machine.watches.add(ExplodingWatch())

        with pytest.raises(RuntimeError, match="sensor failure"):
            flight.tick(time=10.5, altitude=10.0, status=VesselStatus.FLYING)

        machine = flight.machine
        assert machine.phase is AscentPhase.ABORTED
        assert not machine.actuators.locked
        assert host.throttle == 0.0
        assert host.steering is None
        assert not watch.active
        assert machine.watches.active == []
        assert "sensor failure" in flight.telemetry.errors[0]

    def test_abort_cancels_warp(self, host, make_snapshot):
        flight = Flight(host, make_snapshot, warp_mode=WarpMode.RAILS)
        flight.to_coast()
        flight.machine.abort("operator request")

        assert host.cancel_calls == 1
        assert flight.machine.phase is AscentPhase.ABORTED
        assert flight.machine.history[-1] is AscentPhase.ABORTED

    def test_abort_during_coast_drops_plan(self, flight):
        flight.to_coast()
        assert flight.machine.plan is not None

        flight.machine.abort("operator request")
        assert flight.machine.plan is None
        assert flight.machine.completed_burn is None

    def test_run_time_limit(self, host, make_snapshot):
        flight = Flight(host, make_snapshot, countdown=100.0)
        clock = {"t": 0.0}

        def step():
            clock["t"] += 1.0
            flight.vehicle.current = make_snapshot(time=clock["t"])

        with pytest.raises(AscentError, match="exceeded"):
            flight.machine.run(step, max_time=5.0)
        assert flight.machine.phase is AscentPhase.ABORTED
        assert not flight.machine.actuators.locked


# =============================================================================
# Closed-loop missions
# =============================================================================


class TestClosedLoop:
    """Fly complete missions against the simulator."""

    def test_refuses_vessel_in_flight(self):
        sim = Simulator.on_pad()
        sim.status = VesselStatus.FLYING
        telemetry = RecordingTelemetry()
        machine = AscentStateMachine(MissionParameters(), sim, sim, telemetry=telemetry)

        assert machine.run(step=sim.step) is AscentPhase.ABORTED
        assert machine.history == [AscentPhase.ABORTED]
        assert not machine.actuators.locked
        assert sim.stage_index == sim.design.stage_count
        assert sim.steering_target is None
        assert telemetry.errors

    def test_synced_liftoff_on_grid(self):
        sim = Simulator.on_pad(start_time=100.0)
        machine = AscentStateMachine(MissionParameters(launch_sync=True), sim, sim)
        machine.start()
        while machine.tick() is AscentPhase.COUNTDOWN:
            sim.step()

        assert machine.phase is AscentPhase.LAUNCH
        assert 180.0 <= sim.time < 180.05
        assert sim.stage_index == sim.design.stage_count - 1

    def test_mun_ascent_with_rails_warp(self, monkeypatch):
        sim = Simulator.on_pad(design=MUN_LANDER, body=MUN)
        warps = []
        warp_to = sim.warp_to

        def recording_warp(time, mode):
            warps.append((time, mode))
            warp_to(time, mode)

        monkeypatch.setattr(sim, "warp_to", recording_warp)
        params = MissionParameters(target_altitude=30e3, warp_mode=WarpMode.RAILS, countdown=3.0)
        machine = AscentStateMachine(params, sim, sim)

        assert machine.run(step=sim.step, max_time=3600.0) is AscentPhase.COMPLETE
        assert machine.history == [
            AscentPhase.COUNTDOWN,
            AscentPhase.LAUNCH,
            AscentPhase.PITCHOVER,
            AscentPhase.ASCENT,
            AscentPhase.COAST_TO_CIRC,
            AscentPhase.CIRCULARIZING,
            AscentPhase.COMPLETE,
        ]
        assert len(warps) == 1
        assert warps[0][1] is WarpMode.RAILS
        assert not sim.warp_active
        assert sim.throttle == 0.0

        orbit = sim.snapshot().orbit
        assert orbit.apoapsis == pytest.approx(30e3, rel=0.02)
        assert orbit.periapsis == pytest.approx(30e3, rel=0.02)

    @pytest.mark.slow
    def test_kerbin_ascent_to_80km(self):
        sim = Simulator.on_pad(body=KERBIN, config=SimConfig(dt=0.02))
        telemetry = RecordingTelemetry()
        machine = AscentStateMachine(MissionParameters(), sim, sim, telemetry=telemetry)

        assert machine.run(step=sim.step) is AscentPhase.COMPLETE
        assert machine.history == [
            AscentPhase.COUNTDOWN,
            AscentPhase.LAUNCH,
            AscentPhase.PITCHOVER,
            AscentPhase.AOA_SETTLE,
            AscentPhase.ASCENT,
            AscentPhase.COAST_TO_CIRC,
            AscentPhase.CIRCULARIZING,
            AscentPhase.COMPLETE,
        ]
        assert not machine.actuators.locked
        assert machine.watches.active == []

        snapshot = sim.snapshot()
        assert snapshot.status is VesselStatus.ORBITING
        assert snapshot.orbit.apoapsis == pytest.approx(80e3, rel=0.01)
        assert snapshot.orbit.periapsis == pytest.approx(80e3, rel=0.01)
        assert snapshot.orbit.inclination < 1.0
        assert sim.stage_index == 0
        assert telemetry.frame_count > 0

    @pytest.mark.slow
    def test_kerbin_inclined_ascent(self):
        sim = Simulator.on_pad(body=KERBIN)
        params = MissionParameters(
            target_inclination=45.0, launch_direction=LaunchDirection.SOUTH,
        )
        machine = AscentStateMachine(params, sim, sim)

        assert machine.run(step=sim.step) is AscentPhase.COMPLETE
        assert machine.azimuth == pytest.approx(138.28, abs=0.01)

        snapshot = sim.snapshot()
        assert snapshot.status is VesselStatus.ORBITING
        assert snapshot.orbit.inclination == pytest.approx(45.0, abs=1.0)
        assert snapshot.orbit.apoapsis == pytest.approx(80e3, rel=0.01)
        assert snapshot.orbit.periapsis == pytest.approx(80e3, rel=0.01)
