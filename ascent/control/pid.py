"""PID regulator with output saturation.

Parallel form:

    u = kp * e + ki * integral(e) + kd * de/dt

While the output sits on a limit and the error keeps pushing it further
out, the integral is frozen (conditional integration). Without this the
long full-throttle climb would wind the integral up far enough to hold
the throttle open through the final approach to the setpoint.

Example:
    >>> from ascent.control.pid import PIDController
    >>>
    >>> ctrl = PIDController(kp=1e-3, ki=1e-5, output_limits=(0.0, 1.0))
    >>> throttle = ctrl.update(target_apoapsis - apoapsis, dt=0.02)
"""

from dataclasses import dataclass, field

from beartype import beartype


@beartype
@dataclass
class PIDController:
    """Single-input PID regulator.

    Attributes:
        kp: Proportional gain
        ki: Integral gain
        kd: Derivative gain
        output_limits: (min, max) output limits
        integral_limits: (min, max) bounds on the accumulated integral
    """
    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0
    output_limits: tuple[float, float] | None = None
    integral_limits: tuple[float, float] | None = None

    _integral: float = field(default=0.0, init=False, repr=False)
    _prev_error: float | None = field(default=None, init=False, repr=False)
    _saturated: bool = field(default=False, init=False, repr=False)

    def reset(self) -> None:
        """Forget the integral and error history."""
        self._integral = 0.0
        self._prev_error = None
        self._saturated = False

    def update(self, error: float, dt: float) -> float:
        """Compute the control output.

        Args:
            error: Setpoint minus measurement
            dt: Time since the previous update [s]; 0 skips integration

        Returns:
            Control output, clamped to ``output_limits``
        """
        derivative = 0.0
        if self._prev_error is not None and dt > 0:
            derivative = (error - self._prev_error) / dt
        self._prev_error = error

        integral = self._integral
        if dt > 0:
            integral += error * dt
            if self.integral_limits:
                lo, hi = self.integral_limits
                integral = min(max(integral, lo), hi)

        output = self.kp * error + self.ki * integral + self.kd * derivative
        self._saturated = False
        if self.output_limits:
            lo, hi = self.output_limits
            clamped = min(max(output, lo), hi)
            if clamped != output and (output - clamped) * error > 0:
                # Pushing further into the limit: hold the integral
                self._saturated = True
                return float(clamped)
            output = clamped

        self._integral = integral
        return float(output)

    @property
    def integral(self) -> float:
        """Accumulated integral of the error."""
        return self._integral

    @property
    def saturated(self) -> bool:
        """Whether the last output was held at a limit."""
        return self._saturated
