#!/usr/bin/env python
"""Launch to orbit: fly the ascent flight software against the simulator.

This script wires the two halves together:
- Simulation plant (spacesim/) - the vessel, body and physics
- Flight software (ascent/) - countdown, gravity turn, circularization

Mission inputs are given the way an operator types them, all optional
and positional:

    TARGET_KM INCLINATION_DEG NORTH|SOUTH TURN_ALT_M PITCHOVER_DEG
    STEERING_S NOWARP|PHYSICS|RAILS COUNTDOWN_S SYNC|NOSYNC

Usage:
    uv run python scripts/launch_to_orbit.py
    uv run python scripts/launch_to_orbit.py 100 6 SOUTH 130 10 30 RAILS 10 NOSYNC
    uv run python scripts/launch_to_orbit.py --mun 30
"""

import argparse
import logging
import sys
from pathlib import Path

from ascent import AscentPhase, AscentStateMachine, LogTelemetry, MissionParameters
from ascent.errors import ParameterError
from ascent.vehicle import VesselStatus
from spacesim import KERBIN, KERBIN_ORBITER, MUN, MUN_LANDER, Simulator

FIELDS = (
    "target_altitude_km",
    "target_inclination_deg",
    "launch_direction",
    "turn_start_altitude_m",
    "pitchover_angle_deg",
    "steering_duration_s",
    "warp_mode",
    "countdown_s",
    "sync",
)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("mission", nargs="*", help="Mission inputs, in order")
    parser.add_argument("--mun", action="store_true", help="Launch the lander from the Mun")
    parser.add_argument("--latitude", type=float, default=0.0, help="Launch site latitude [deg]")
    parser.add_argument("--output", default="outputs/launch_telemetry.html")
    parser.add_argument("--no-plot", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)
    if len(args.mission) > len(FIELDS):
        parser.error(f"At most {len(FIELDS)} mission inputs")
    return args


def run_launch(args: argparse.Namespace):
    """Run one mission and return the simulator and state machine."""
    params = MissionParameters.from_strings(**dict(zip(FIELDS, args.mission)))

    if args.mun:
        sim = Simulator.on_pad(design=MUN_LANDER, body=MUN, latitude=args.latitude)
    else:
        sim = Simulator.on_pad(design=KERBIN_ORBITER, body=KERBIN, latitude=args.latitude)

    print("=" * 60)
    print("LAUNCH TO ORBIT")
    print("=" * 60)
    print(f"\nVessel: {sim.design.name} from {sim.body.name}")
    print(f"  Liftoff mass: {sim.design.liftoff_mass:.0f} kg")
    print(f"  Stack delta-V (vacuum): {sim.design.delta_v():.0f} m/s")
    print("\nMission:")
    for key, value in params.summary().items():
        print(f"  {key.replace('_', ' ').capitalize()}: {value}")
    print("-" * 60)

    machine = AscentStateMachine(params, sim, sim, telemetry=LogTelemetry(), telemetry_interval=10.0)
    machine.run(step=sim.step)
    return sim, machine


def exit_code(phase: AscentPhase, status: VesselStatus) -> int:
    """0 only when the program finished and the vessel is actually in orbit."""
    if phase is AscentPhase.COMPLETE and status is VesselStatus.ORBITING:
        return 0
    return 1


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    try:
        sim, machine = run_launch(args)
    except ParameterError as exc:
        print(f"Invalid mission input: {exc}", file=sys.stderr)
        return 2

    snapshot = sim.snapshot()
    print("-" * 60)
    print("\nFINAL STATE:")
    print(f"  Phase: {machine.phase.label}")
    print(f"  Time: {snapshot.time:.1f} s")
    print(f"  Apoapsis: {snapshot.orbit.apoapsis/1000:.2f} km")
    print(f"  Periapsis: {snapshot.orbit.periapsis/1000:.2f} km")
    print(f"  Inclination: {snapshot.orbit.inclination:.2f} deg")
    print(f"  Eccentricity: {snapshot.orbit.eccentricity:.5f}")
    print(f"  Remaining mass: {snapshot.mass:.0f} kg")

    if snapshot.status is VesselStatus.ORBITING:
        print("\n✓ Orbit achieved")
    else:
        print(f"\n✗ {snapshot.status.value} - periapsis at {snapshot.orbit.periapsis/1000:.2f} km")

    if not args.no_plot:
        from spacesim.plotting import plot_launch_dashboard

        fig = plot_launch_dashboard(
            sim.history,
            title=f"{sim.design.name} - Ascent Telemetry",
            target_altitude=machine.params.target_altitude,
        )
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        fig.write_html(output)
        print(f"\nDashboard saved to: {output}")

    return exit_code(machine.phase, snapshot.status)


if __name__ == "__main__":
    sys.exit(main())
