"""Mission parameters for an ascent to circular orbit.

All inputs a mission needs are collected in a single frozen dataclass,
validated once when the mission starts and never mutated afterwards.

Example:
    >>> from ascent.config import MissionParameters, LaunchDirection
    >>>
    >>> params = MissionParameters(target_altitude=80e3, target_inclination=6.0)
    >>> params = MissionParameters.from_strings("80", "6", "SOUTH")
    >>> print(params.launch_direction)
    LaunchDirection.SOUTH
"""

from dataclasses import dataclass
from enum import Enum

from beartype import beartype

from ascent.errors import ParameterError

# =============================================================================
# Enumerations
# =============================================================================


class LaunchDirection(Enum):
    """Which of the two launch azimuth solutions to fly."""

    NORTH = "NORTH"
    SOUTH = "SOUTH"


class WarpMode(Enum):
    """Time compression used while coasting to the circularization burn."""

    NONE = "NOWARP"
    PHYSICS = "PHYSICS"
    RAILS = "RAILS"


def _parse_enum(enum_cls, text: str, what: str):
    key = text.strip().upper()
    for member in enum_cls:
        if key in (member.name, member.value):
            return member
    choices = "|".join(m.value for m in enum_cls)
    raise ParameterError(f"Invalid {what} '{text}', expected one of {choices}")


def _parse_float(text: str, what: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise ParameterError(f"Invalid {what} '{text}', expected a number") from None


# =============================================================================
# Mission Parameters
# =============================================================================


_NUMERIC_FIELDS = (
    "target_altitude",
    "target_inclination",
    "turn_start_altitude",
    "pitchover_angle",
    "steering_duration",
    "countdown",
    "sync_period",
)


@beartype
@dataclass(frozen=True)
class MissionParameters:
    """Immutable mission input.

    Attributes:
        target_altitude: Target circular orbit altitude [m]
        target_inclination: Target orbit inclination [deg]
        launch_direction: NORTH or SOUTH launch azimuth solution
        turn_start_altitude: Altitude at which the pitchover begins [m]
        pitchover_angle: Pitchover angle from vertical [deg]
        steering_duration: Time allowed for steering to settle on the burn
            vector before the circularization burn [s]
        warp_mode: Time compression mode for the coast phase
        countdown: Countdown duration [s]
        launch_sync: Align launch to the next sync period boundary
        sync_period: Launch synchronization period [s]
    """
    target_altitude: float | int = 80e3
    target_inclination: float | int = 0.0
    launch_direction: LaunchDirection = LaunchDirection.NORTH
    turn_start_altitude: float | int = 130.0
    pitchover_angle: float | int = 10.0
    steering_duration: float | int = 30.0
    warp_mode: WarpMode = WarpMode.NONE
    countdown: float | int = 10.0
    launch_sync: bool = False
    sync_period: float | int = 180.0

    def __post_init__(self) -> None:
        # Whole numbers are stored as floats for the controllers downstream
        for name in _NUMERIC_FIELDS:
            object.__setattr__(self, name, float(getattr(self, name)))

        if self.target_altitude <= 0:
            raise ParameterError(f"Target altitude must be positive, got {self.target_altitude}")
        if not 0.0 <= self.target_inclination <= 180.0:
            raise ParameterError(
                f"Target inclination must be within [0, 180] deg, got {self.target_inclination}"
            )
        if self.turn_start_altitude < 0:
            raise ParameterError(
                f"Turn start altitude must not be negative, got {self.turn_start_altitude}"
            )
        if not 0.0 <= self.pitchover_angle < 90.0:
            raise ParameterError(
                f"Pitchover angle must be within [0, 90) deg, got {self.pitchover_angle}"
            )
        if self.steering_duration < 0:
            raise ParameterError(
                f"Steering duration must not be negative, got {self.steering_duration}"
            )
        if self.countdown < 0:
            raise ParameterError(f"Countdown must not be negative, got {self.countdown}")
        if self.sync_period <= 0:
            raise ParameterError(f"Sync period must be positive, got {self.sync_period}")

    @classmethod
    def from_strings(
        cls,
        target_altitude_km: str = "80",
        target_inclination_deg: str = "0",
        launch_direction: str = "NORTH",
        turn_start_altitude_m: str = "130",
        pitchover_angle_deg: str = "10",
        steering_duration_s: str = "30",
        warp_mode: str = "NOWARP",
        countdown_s: str = "10",
        sync: str = "NOSYNC",
    ) -> "MissionParameters":
        """Build parameters from textual program inputs.

        Altitude is given in kilometers, as an operator would type it.
        """
        sync_key = sync.strip().upper()
        if sync_key not in ("SYNC", "NOSYNC"):
            raise ParameterError(f"Invalid sync flag '{sync}', expected SYNC|NOSYNC")

        return cls(
            target_altitude=_parse_float(target_altitude_km, "target altitude") * 1000.0,
            target_inclination=_parse_float(target_inclination_deg, "target inclination"),
            launch_direction=_parse_enum(LaunchDirection, launch_direction, "launch direction"),
            turn_start_altitude=_parse_float(turn_start_altitude_m, "turn start altitude"),
            pitchover_angle=_parse_float(pitchover_angle_deg, "pitchover angle"),
            steering_duration=_parse_float(steering_duration_s, "steering duration"),
            warp_mode=_parse_enum(WarpMode, warp_mode, "warp mode"),
            countdown=_parse_float(countdown_s, "countdown"),
            launch_sync=sync_key == "SYNC",
        )

    def summary(self) -> dict[str, str]:
        """Static mission parameters as display strings."""
        return {
            "turn_altitude": f"{self.turn_start_altitude:.0f} m",
            "turn_pitch": f"{self.pitchover_angle:.1f} deg",
            "target_altitude": f"{self.target_altitude / 1000:.1f} km",
            "target_inclination": f"{self.target_inclination:.2f} deg",
            "launch_direction": self.launch_direction.value,
        }
