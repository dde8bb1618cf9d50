#!/usr/bin/env python3
"""
Command-line runner for the airborne EO tracking twin.

Runs the frame-driven simulation at a constant frame rate (emulating a
display refresh callback) and prints a tracking performance summary.

Usage:
    python -m eo_tracking_twin.runner --preset vcm_tracking --duration 10
    python -m eo_tracking_twin.runner --mode TRACKING --actuator PZT --seed 7
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from eo_tracking_twin.core.simulation.parameters import (
    SimulationParameters,
    SimulationMode,
    ActuatorType,
    HISTORY_LENGTH,
    load_preset,
)
from eo_tracking_twin.core.simulation.simulation_runner import TrackingSimulationRunner
from eo_tracking_twin.core.simulation.performance_analyzer import PerformanceAnalyzer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Airborne EO Tracking Twin - aircraft / gimbal / FSM pointing simulation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "--preset",
        type=str,
        default=None,
        help="Named parameter preset from the preset file"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Preset file to read instead of config/tracking_presets.json"
    )
    parser.add_argument(
        "--mode",
        type=str,
        default=None,
        choices=[m.value for m in SimulationMode],
        help="Operating mode (overrides the preset)"
    )
    parser.add_argument(
        "--actuator",
        type=str,
        default=None,
        choices=[a.value for a in ActuatorType],
        help="FSM actuator technology (overrides the preset)"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=10.0,
        help="Simulated duration in seconds"
    )
    parser.add_argument(
        "--frame-rate",
        type=float,
        default=60.0,
        help="Host frame rate driving the simulation [Hz]"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for deterministic execution"
    )
    parser.add_argument(
        "--history",
        type=int,
        default=HISTORY_LENGTH,
        help="History buffer capacity"
    )
    parser.add_argument(
        "--requirement",
        type=float,
        default=1.0,
        help="RMS LOS error requirement [mrad]"
    )
    return parser


def resolve_parameters(args: argparse.Namespace) -> SimulationParameters:
    """Preset (if any) with command-line overrides applied."""
    if args.preset is not None or args.config is not None:
        params = load_preset(args.preset or "default", args.config)
    else:
        params = SimulationParameters()

    overrides = {}
    if args.mode is not None:
        overrides["mode"] = args.mode
    if args.actuator is not None:
        overrides["fsm_actuator_type"] = args.actuator
    return params.replace(**overrides) if overrides else params


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        params = resolve_parameters(args)
        if args.frame_rate <= 0.0:
            raise ValueError(f"--frame-rate must be positive, got {args.frame_rate}")
        runner = TrackingSimulationRunner(params, seed=args.seed, history_capacity=args.history)
    except (ValueError, FileNotFoundError) as e:
        print(f"Configuration Error: {e}")
        return 1

    frame_dt = 1.0 / args.frame_rate

    print("=" * 60)
    print("Airborne EO Tracking Twin")
    print("=" * 60)
    print(f"  Mode:      {params.mode.value}")
    print(f"  Actuator:  {params.fsm_actuator_type.value}")
    print(f"  Duration:  {args.duration:.2f} s at {args.frame_rate:.0f} Hz frames")
    print(f"  Target:    {params.target_distance:.0f} m, speed {params.target_speed:.2f}")
    print(f"  Seed:      {args.seed}")

    frames = runner.run(args.duration, frame_dt)

    diagnostics = runner.get_diagnostics()
    print(f"Simulation complete: {runner.time:.3f} simulated seconds")
    print(f"  Frames: {diagnostics['frame_count']}, gimbal steps: {diagnostics['gimbal_steps']}, "
          f"FSM steps: {diagnostics['fsm_steps']}")

    analyzer = PerformanceAnalyzer(rms_requirement_mrad=args.requirement)
    print(analyzer.generate_report(analyzer.analyze(frames)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
