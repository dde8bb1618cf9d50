"""
Multi-Rate Simulation Runner for the Airborne Tracking Twin

This module owns the authoritative simulation state and advances it one
display frame at a time, integrating:
- Aircraft attitude disturbances and target motion
- Rigid-body LOS kinematics (ideal angles, actual pointing, scalar error)
- Coarse gimbal loop (50 Hz) and fine FSM loop (500 Hz)
- Bounded, throttled state history

Multi-Rate Architecture:
-----------------------
- Outer frame: variable wall-clock delta from the host, clamped to 0.1 s
- Gimbal loop: Δt_g = 20 ms, driven by its own fixed-step accumulator
- FSM loop:    Δt_f = 2 ms,  driven by its own fixed-step accumulator

Each accumulator runs as many whole sub-steps as it holds and keeps the
remainder, so simulated control time never drifts from frame time. The
gimbal accumulator is always drained before the FSM accumulator, giving a
deterministic sub-step order and at most 5 gimbal / 50 FSM sub-steps per
frame.

Data Flow:
---------
wall dt → t → disturbances, target → ideal angles → gimbal sub-steps →
FSM sub-steps → pointing vector, LOS error → SystemState → history
"""

import numpy as np
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from eo_tracking_twin.core.simulation.parameters import (
    SimulationParameters,
    SimulationMode,
    GIMBAL_DT,
    FSM_DT,
    MAX_FRAME_DT,
    HISTORY_LENGTH,
    HISTORY_INTERVAL,
)
from eo_tracking_twin.core.simulation.system_state import SystemState
from eo_tracking_twin.core.disturbances.disturbance_models import AircraftDisturbanceModel
from eo_tracking_twin.core.disturbances.target_motion import TargetMotionModel
from eo_tracking_twin.core.coordinate_frames.transformations import LineOfSightKinematics
from eo_tracking_twin.core.controllers.gimbal_controller import GimbalController
from eo_tracking_twin.core.controllers.fsm_controller import FSMController


class FixedStepAccumulator:
    """
    Converts variable frame deltas into whole fixed-length sub-steps.

    >>> acc = FixedStepAccumulator(0.02)
    >>> acc.add(0.05)
    >>> acc.drain()
    2
    """

    def __init__(self, step: float):
        if step <= 0.0:
            raise ValueError(f"Accumulator step must be positive, got {step}")
        self.step = step
        self.remainder: float = 0.0

    def add(self, dt: float) -> None:
        self.remainder += dt

    def drain(self) -> int:
        """Consume all whole steps currently held and return their count."""
        count = 0
        while self.remainder >= self.step:
            self.remainder -= self.step
            count += 1
        return count

    def reset(self) -> None:
        self.remainder = 0.0


@dataclass
class SimulationContext:
    """Mutable cross-frame state owned by the runner."""

    time: float = 0.0
    frame_count: int = 0
    gimbal_accumulator: FixedStepAccumulator = field(
        default_factory=lambda: FixedStepAccumulator(GIMBAL_DT)
    )
    fsm_accumulator: FixedStepAccumulator = field(
        default_factory=lambda: FixedStepAccumulator(FSM_DT)
    )
    gimbal_steps: int = 0
    fsm_steps: int = 0
    last_history_time: Optional[float] = None


class TrackingSimulationRunner:
    """
    Frame-driven simulation of the aircraft / gimbal / FSM tracking chain.

    The runner exposes the three operations consumed by the outer
    application: :meth:`step`, :meth:`set_parameters` and
    :meth:`get_history`.

    Usage:
    ------
    >>> runner = TrackingSimulationRunner(SimulationParameters(mode='TRACKING'), seed=42)
    >>> for _ in range(600):
    ...     state = runner.step(1.0 / 60.0)
    >>> print(f"LOS error: {state.los_error * 1e3:.3f} mrad")
    """

    def __init__(
        self,
        parameters: Optional[SimulationParameters] = None,
        seed: Optional[int] = None,
        history_capacity: int = HISTORY_LENGTH,
        config: Optional[Dict] = None
    ):
        """
        Initialize the tracking simulation.

        Parameters
        ----------
        parameters : SimulationParameters, optional
            Initial configuration (defaults when omitted)
        seed : int, optional
            Seed for turbulence and gain-uncertainty draws. ``None`` gives a
            non-reproducible run.
        history_capacity : int
            Maximum number of history entries retained
        config : Dict, optional
            Component configuration:
            - 'kinematics': passed to LineOfSightKinematics
            - 'gimbal': passed to GimbalController
            - 'fsm': passed to FSMController
            - 'target': passed to TargetMotionModel
        """
        if history_capacity < 1:
            raise ValueError(f"history_capacity must be >= 1, got {history_capacity}")

        config = config or {}
        self._parameters = parameters if parameters is not None else SimulationParameters()
        self.seed = seed
        self.history_capacity = history_capacity
        self.config = config

        self.rng = np.random.default_rng(seed)

        self.disturbances = AircraftDisturbanceModel(rng=self.rng)
        self.target_motion = TargetMotionModel(config.get('target'))
        self.kinematics = LineOfSightKinematics(config.get('kinematics'))
        self.gimbal = GimbalController(config.get('gimbal'))
        self.fsm = FSMController(config.get('fsm'), rng=self.rng)

        self.context = SimulationContext()
        self.history: deque = deque(maxlen=history_capacity)
        self._state = SystemState()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def state(self) -> SystemState:
        """Most recently published snapshot."""
        return self._state

    @property
    def parameters(self) -> SimulationParameters:
        return self._parameters

    @property
    def time(self) -> float:
        return self.context.time

    def set_parameters(self, parameters: Union[SimulationParameters, Dict]) -> None:
        """
        Replace the active configuration.

        Takes effect on the next :meth:`step`; existing history entries are
        not altered.

        Parameters
        ----------
        parameters : SimulationParameters or Dict
            New configuration. A dictionary is converted with
            :meth:`SimulationParameters.from_dict`.
        """
        if isinstance(parameters, dict):
            parameters = SimulationParameters.from_dict(parameters)
        if not isinstance(parameters, SimulationParameters):
            raise TypeError(
                f"Expected SimulationParameters or dict, got {type(parameters).__name__}"
            )
        self._parameters = parameters

    def get_history(self) -> List[SystemState]:
        """History snapshots, oldest first."""
        return list(self.history)

    def step(self, wall_dt: float) -> SystemState:
        """
        Advance the simulation by one host frame.

        Parameters
        ----------
        wall_dt : float
            Wall-clock time since the previous frame [s]. Clamped to
            [0, 0.1] s; a non-finite delta counts as 0.

        Returns
        -------
        SystemState
            The new authoritative snapshot
        """
        # One consistent parameter set for the whole frame
        params = self._parameters
        ctx = self.context

        dt = float(wall_dt)
        if not np.isfinite(dt):
            dt = 0.0
        dt = min(max(dt, 0.0), MAX_FRAME_DT)
        t = ctx.time + dt

        # 1. Platform attitude and target
        attitude = self.disturbances.compute(t, params)
        target_pos = self.target_motion.position(t, params)

        # 2. Ideal gimbal angles from the current geometry
        q_platform = self.kinematics.platform_rotation(attitude.roll, attitude.pitch, attitude.yaw)
        ideal_az, ideal_el, los_world = self.kinematics.ideal_gimbal_angles(q_platform, target_pos)

        # 3. Gimbal loop (50 Hz), fully drained before the FSM
        ctx.gimbal_accumulator.add(dt)
        for _ in range(ctx.gimbal_accumulator.drain()):
            self.gimbal.update(ideal_az, ideal_el, t, params)
            ctx.gimbal_steps += 1

        # 4. FSM loop (500 Hz) on the residual left by the gimbal
        ctx.fsm_accumulator.add(dt)
        for _ in range(ctx.fsm_accumulator.drain()):
            self.fsm.update(ideal_az - self.gimbal.az, ideal_el - self.gimbal.el, t, params)
            ctx.fsm_steps += 1

        # 5. Actual pointing and true 3D error
        pointing = self.kinematics.pointing_vector(
            q_platform, self.gimbal.az, self.gimbal.el, self.fsm.x, self.fsm.y
        )
        los_error = self.kinematics.angle_between(pointing, los_world)

        tracking = params.mode == SimulationMode.TRACKING
        hx, hy = self.fsm.hysteresis_state

        state = SystemState(
            time=t,
            roll=attitude.roll,
            pitch=attitude.pitch,
            yaw=attitude.yaw,
            gimbal_az=self.gimbal.az,
            gimbal_el=self.gimbal.el,
            gimbal_cmd_az=ideal_az,
            gimbal_cmd_el=ideal_el,
            fsm_x=self.fsm.x,
            fsm_y=self.fsm.y,
            fsm_cmd_x=(ideal_el - self.gimbal.el) if tracking else 0.0,
            fsm_cmd_y=(ideal_az - self.gimbal.az) if tracking else 0.0,
            hyst_x=hx,
            hyst_y=hy,
            target_x=float(target_pos[0]),
            target_y=float(target_pos[1]),
            target_z=float(target_pos[2]),
            los_error=los_error,
        )

        # PZT rate reference for the next frame, even if no FSM sub-step ran
        self.fsm.latch_command(state.fsm_cmd_x, state.fsm_cmd_y)

        ctx.time = t
        ctx.frame_count += 1
        self._state = state
        self._append_history(state)
        return state

    def run(self, duration: float, frame_dt: float = 1.0 / 60.0) -> List[SystemState]:
        """
        Drive the simulation with a constant frame delta.

        Parameters
        ----------
        duration : float
            Simulated time to advance [s]
        frame_dt : float
            Frame delta handed to :meth:`step` [s]

        Returns
        -------
        List[SystemState]
            Every published snapshot, in order
        """
        if frame_dt <= 0.0:
            raise ValueError(f"frame_dt must be positive, got {frame_dt}")

        n_frames = int(np.ceil(duration / frame_dt - 1e-9))
        return [self.step(frame_dt) for _ in range(n_frames)]

    def reset(self) -> None:
        """Return to the initial state; the random stream restarts from the seed."""
        self.rng = np.random.default_rng(self.seed)
        self.disturbances.rng = self.rng
        self.fsm.rng = self.rng
        self.gimbal.reset()
        self.fsm.reset()
        self.context = SimulationContext()
        self.history.clear()
        self._state = SystemState()

    def to_telemetry(self) -> Dict[str, np.ndarray]:
        """History as a dict of numpy arrays, one key per SystemState field."""
        names = SystemState.__dataclass_fields__.keys()
        return {name: np.array([getattr(s, name) for s in self.history]) for name in names}

    def get_diagnostics(self) -> Dict:
        ctx = self.context
        return {
            'time': ctx.time,
            'frame_count': ctx.frame_count,
            'gimbal_steps': ctx.gimbal_steps,
            'fsm_steps': ctx.fsm_steps,
            'gimbal_remainder': ctx.gimbal_accumulator.remainder,
            'fsm_remainder': ctx.fsm_accumulator.remainder,
            'history_length': len(self.history),
            'gimbal': self.gimbal.get_state(),
            'fsm': self.fsm.get_state(),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _append_history(self, state: SystemState) -> None:
        """Throttled append; the deque evicts the oldest entry when full."""
        last = self.context.last_history_time
        reference = last if last is not None else 0.0
        if state.time - reference >= HISTORY_INTERVAL:
            self.history.append(state)
            self.context.last_history_time = state.time
