"""Ascent flight software - autonomous ascent to circular orbit.

This package contains the guidance, control and mission sequencing that
fly a vehicle from the pad to a circular orbit without human input. It
runs against any host that implements the vehicle protocols in
``ascent.vehicle``; the ``spacesim`` package provides one for testing.

Architecture:
    The host provides the "plant": vehicle state snapshots and actuators.
    The flight software reads a snapshot, decides, and commands, once per
    tick.

        machine = AscentStateMachine(params, vehicle, commands, telemetry)
        machine.start()
        while not machine.phase.is_terminal:
            machine.tick()        # snapshot -> watches -> phase update
            host.step()           # advance the plant

Subpackages:
    guidance: Orbital mechanics and steering program
    control: Throttle regulation and actuator ownership
    mission: State machine, burns, countdown and background watches
"""

from ascent.config import LaunchDirection, MissionParameters, WarpMode
from ascent.errors import (
    ActuatorOwnershipError,
    AscentError,
    ParameterError,
    PreflightError,
)
from ascent.mission import AscentPhase, AscentStateMachine
from ascent.telemetry import LogTelemetry, RecordingTelemetry, TelemetryFrame

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Configuration
    "LaunchDirection",
    "MissionParameters",
    "WarpMode",
    # Errors
    "ActuatorOwnershipError",
    "AscentError",
    "ParameterError",
    "PreflightError",
    # Mission
    "AscentPhase",
    "AscentStateMachine",
    # Telemetry
    "LogTelemetry",
    "RecordingTelemetry",
    "TelemetryFrame",
]
