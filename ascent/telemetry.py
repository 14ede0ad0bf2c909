"""Telemetry sink for the ascent flight software.

The display is a passive collaborator: it receives discrete events (vessel
name, mission parameters, phase status lines, maneuver plans, errors) and
periodic numeric frames, and renders them. All numeric telemetry is
point-in-time.

Sinks:
    LogTelemetry: Renders telemetry through ``logging``
    RecordingTelemetry: Keeps the latest values and the event lines
    NullTelemetry: Discards everything
"""

import logging
from dataclasses import dataclass, field
from typing import NamedTuple, Protocol

logger = logging.getLogger(__name__)

# =============================================================================
# Telemetry Records
# =============================================================================


class MissionInfo(NamedTuple):
    """Static mission parameters shown once at mission start.

    Attributes:
        turn_altitude: Turn start altitude [m]
        turn_pitch: Pitchover angle [deg]
        target_altitude: Target orbit altitude [m]
        target_inclination: Target inclination [deg]
        launch_direction: NORTH or SOUTH
        launch_azimuth: Launch heading [deg]
    """
    turn_altitude: float
    turn_pitch: float
    target_altitude: float
    target_inclination: float
    launch_direction: str
    launch_azimuth: float


class TelemetryFrame(NamedTuple):
    """Periodic numeric telemetry.

    Attributes:
        time: Simulation time [s]
        stage: Active stage index
        pitch: Facing pitch above the horizon [deg]
        apoapsis: Apoapsis altitude [m]
        periapsis: Periapsis altitude [m]
        eccentricity: Eccentricity [-]
        burn_countdown: Time until burn start [s], None if no burn planned
        burn_elapsed: Time since burn start [s], None unless burning
    """
    time: float
    stage: int
    pitch: float
    apoapsis: float
    periapsis: float
    eccentricity: float
    burn_countdown: float | None = None
    burn_elapsed: float | None = None


class TelemetryPort(Protocol):
    """Display interface."""

    def vessel(self, name: str) -> None: ...

    def mission(self, info: MissionInfo) -> None: ...

    def status(self, text: str) -> None: ...

    def update(self, frame: TelemetryFrame) -> None: ...

    def maneuver(self, duration: float, delta_v: float) -> None: ...

    def error(self, text: str) -> None: ...

    def diagnostic(self, text: str) -> None: ...


# =============================================================================
# Sinks
# =============================================================================


def format_frame(frame: TelemetryFrame) -> str:
    """One-line rendering of a telemetry frame."""
    line = (
        f"T+{frame.time:7.1f}s | Stage: {frame.stage:2d} | "
        f"Pitch: {frame.pitch:5.1f} deg | "
        f"Apo: {frame.apoapsis / 1000:7.2f} km | "
        f"Peri: {frame.periapsis / 1000:8.2f} km | "
        f"Ecc: {frame.eccentricity:.4f}"
    )
    if frame.burn_elapsed is not None:
        line += f" | Burn: +{frame.burn_elapsed:.1f}s"
    elif frame.burn_countdown is not None:
        line += f" | Burn in: {frame.burn_countdown:.1f}s"
    return line


class LogTelemetry:
    """Telemetry rendered as log lines."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def vessel(self, name: str) -> None:
        self.log.info("Vessel: %s", name)

    def mission(self, info: MissionInfo) -> None:
        self.log.info(
            "Turn: %.0f m / %.1f deg | Target: %.1f km @ %.2f deg | Launch: %s, azimuth %.2f deg",
            info.turn_altitude, info.turn_pitch,
            info.target_altitude / 1000, info.target_inclination,
            info.launch_direction, info.launch_azimuth,
        )

    def status(self, text: str) -> None:
        self.log.info("Status: %s", text)

    def update(self, frame: TelemetryFrame) -> None:
        self.log.info(format_frame(frame))

    def maneuver(self, duration: float, delta_v: float) -> None:
        self.log.info("Maneuver: %.1f m/s over %.1f s", delta_v, duration)

    def error(self, text: str) -> None:
        self.log.error(text)

    def diagnostic(self, text: str) -> None:
        self.log.debug(text)


@dataclass
class RecordingTelemetry:
    """Telemetry sink that remembers what it was told.

    Numeric frames are point-in-time: only the latest one is kept.
    """
    vessel_name: str | None = None
    mission_info: MissionInfo | None = None
    statuses: list[str] = field(default_factory=list)
    frame: TelemetryFrame | None = None
    frame_count: int = 0
    maneuvers: list[tuple[float, float]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)

    def vessel(self, name: str) -> None:
        self.vessel_name = name

    def mission(self, info: MissionInfo) -> None:
        self.mission_info = info

    def status(self, text: str) -> None:
        self.statuses.append(text)

    def update(self, frame: TelemetryFrame) -> None:
        self.frame = frame
        self.frame_count += 1

    def maneuver(self, duration: float, delta_v: float) -> None:
        self.maneuvers.append((duration, delta_v))

    def error(self, text: str) -> None:
        self.errors.append(text)

    def diagnostic(self, text: str) -> None:
        self.diagnostics.append(text)


class NullTelemetry:
    """Discards all telemetry."""

    def vessel(self, name: str) -> None:
        pass

    def mission(self, info: MissionInfo) -> None:
        pass

    def status(self, text: str) -> None:
        pass

    def update(self, frame: TelemetryFrame) -> None:
        pass

    def maneuver(self, duration: float, delta_v: float) -> None:
        pass

    def error(self, text: str) -> None:
        pass

    def diagnostic(self, text: str) -> None:
        pass
