"""Exceptions raised by the ascent flight software.

Degenerate geometry is reported through return values, not exceptions;
see ``ascent.guidance.orbital_mechanics.line_plane_intersection``.
"""


class AscentError(Exception):
    """Base class for all ascent flight software errors."""


class ParameterError(AscentError, ValueError):
    """Mission parameters failed validation or could not be parsed."""


class PreflightError(AscentError):
    """Vehicle is not in a state from which an ascent may begin."""

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Vessel status is {status}, expected PRELAUNCH or LANDED")


class ActuatorOwnershipError(AscentError):
    """A component commanded an actuator it does not currently own."""
