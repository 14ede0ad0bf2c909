"""Launch countdown, optionally synchronized to an absolute time grid.

With synchronization enabled the countdown is replaced so that liftoff
falls on the next boundary of a fixed period of absolute mission time.
Independently launched vehicles using the same period lift off together:

    counter = period - (floor(now) mod period) - 1

The counter starts at the next whole second, so liftoff happens at
``floor(now) + 1 + counter``, which is a multiple of the period. A host
that ticks coarsely can step over the boundary; liftoff then happens on
the first tick after it.
"""

import math
from dataclasses import dataclass

from beartype import beartype


@beartype
def synced_countdown(now: float | int, period: float | int = 180.0) -> int:
    """Countdown counter that ends on the next period boundary.

    Args:
        now: Absolute simulation time [s]
        period: Synchronization period [s]

    Returns:
        Countdown counter [s]
    """
    whole_period = int(period)
    return whole_period - (math.floor(now) % whole_period) - 1


@dataclass(frozen=True)
class Countdown:
    """Countdown to a fixed liftoff time.

    Attributes:
        launch_time: Absolute liftoff time [s]
    """
    launch_time: float

    @classmethod
    def start(
        cls,
        now: float,
        countdown: float,
        sync: bool = False,
        period: float = 180.0,
    ) -> "Countdown":
        """Begin a countdown at ``now``."""
        if sync:
            counter = synced_countdown(now, period)
            return cls(launch_time=float(math.floor(now) + 1 + counter))
        return cls(launch_time=now + countdown)

    def remaining(self, now: float) -> float:
        """Seconds until liftoff, never negative."""
        return max(self.launch_time - now, 0.0)

    def counter(self, now: float) -> int:
        """Whole-second counter as displayed."""
        return math.ceil(self.remaining(now))

    def expired(self, now: float) -> bool:
        return now >= self.launch_time
