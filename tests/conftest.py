"""Shared fixtures: hand-built snapshots and a recording vehicle host."""

import numpy as np
import pytest

from ascent.config import WarpMode
from ascent.vehicle import (
    BodyInfo,
    EngineInfo,
    OrbitSnapshot,
    VehicleSnapshot,
    VesselStatus,
)

KERBIN_INFO = BodyInfo(
    name="Kerbin",
    mu=3.5316e12,
    radius=600000.0,
    rotation_period=21549.425,
    atmosphere_height=70000.0,
)


class FakeHost:
    """Vehicle host that records every command it receives."""

    def __init__(self):
        self.throttle = 0.0
        self.steering = None
        self.top = None
        self.stage_calls = 0
        self.warp_requests: list[tuple[float, WarpMode]] = []
        self.cancel_calls = 0
        self.unlock_calls = 0
        self._warping = False

    def set_throttle(self, throttle):
        self.throttle = throttle

    def set_steering(self, direction, top):
        self.steering = direction
        self.top = top

    def unlock_steering(self):
        self.steering = None
        self.unlock_calls += 1

    def stage(self):
        self.stage_calls += 1

    def warp_to(self, time, mode):
        self.warp_requests.append((time, mode))
        self._warping = True

    def cancel_warp(self):
        self.cancel_calls += 1
        self._warping = False

    @property
    def warp_active(self):
        return self._warping


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def make_snapshot():
    """Factory for equatorial snapshots on Kerbin.

    The vessel sits on the x axis: up = +x, north = +z, east = +y.
    """

    def _make(**overrides) -> VehicleSnapshot:
        altitude = overrides.pop("altitude", 0.0)
        r = KERBIN_INFO.radius + altitude
        fields = dict(
            time=0.0,
            name="Test Vessel",
            status=VesselStatus.PRELAUNCH,
            mass=10000.0,
            available_thrust=200000.0,
            current_isp=300.0,
            stage_fuel=1000.0,
            stage_index=1,
            engines=(EngineInfo(thrust=200000.0, isp=300.0, stage=1, active=True),),
            altitude=altitude,
            latitude=0.0,
            orbit=OrbitSnapshot(
                apoapsis=altitude,
                periapsis=-KERBIN_INFO.radius,
                eccentricity=1.0,
                semi_major_axis=r / 2.0,
                time_to_apoapsis=0.0,
                inclination=0.0,
            ),
            position=np.array([r, 0.0, 0.0]),
            velocity=np.array([0.0, 174.9, 0.0]),
            surface_velocity=np.zeros(3),
            facing=np.array([1.0, 0.0, 0.0]),
            up=np.array([1.0, 0.0, 0.0]),
            north=np.array([0.0, 0.0, 1.0]),
            body=KERBIN_INFO,
        )
        fields.update(overrides)
        return VehicleSnapshot(**fields)

    return _make
