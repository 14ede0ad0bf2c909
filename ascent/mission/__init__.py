"""Mission sequencing: state machine, burns, countdown and watches."""

from ascent.mission.burn import BurnExecutor, BurnPlan, plan_circularization
from ascent.mission.countdown import Countdown, synced_countdown
from ascent.mission.state_machine import AscentPhase, AscentStateMachine
from ascent.mission.watches import (
    StagingWatch,
    TelemetryRefreshWatch,
    Watch,
    WatchGroup,
)

__all__ = [
    "AscentPhase",
    "AscentStateMachine",
    "BurnExecutor",
    "BurnPlan",
    "Countdown",
    "StagingWatch",
    "TelemetryRefreshWatch",
    "Watch",
    "WatchGroup",
    "plan_circularization",
    "synced_countdown",
]
