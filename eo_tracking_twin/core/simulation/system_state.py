"""
Immutable state snapshot published once per simulation frame.

The snapshot is the only channel between the simulation core and its
consumers (renderers, dashboards, analysis). It is never modified after
construction; each frame produces a new one.
"""

import numpy as np
from dataclasses import dataclass


@dataclass(frozen=True)
class SystemState:
    """Container for one frame of the tracking chain."""

    # Time
    time: float = 0.0                # Simulation time [s]

    # Aircraft attitude [rad]
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    # Coarse stage
    gimbal_az: float = 0.0           # Actual azimuth [rad]
    gimbal_el: float = 0.0           # Actual elevation [rad]
    gimbal_cmd_az: float = 0.0       # Ideal azimuth [rad]
    gimbal_cmd_el: float = 0.0       # Ideal elevation [rad]

    # Fine stage
    fsm_x: float = 0.0               # FSM pitch-axis angle [rad]
    fsm_y: float = 0.0               # FSM yaw-axis angle [rad]
    fsm_cmd_x: float = 0.0           # Elevation residual fed to FSM [rad]
    fsm_cmd_y: float = 0.0           # Azimuth residual fed to FSM [rad]

    # PZT Bouc-Wen internal state
    hyst_x: float = 0.0
    hyst_y: float = 0.0

    # Target position in world frame [m]
    target_x: float = 0.0
    target_y: float = 5.0
    target_z: float = 2000.0

    # Performance
    los_error: float = 0.0           # Angle between pointing and ideal LOS [rad]

    # Reserved control signal
    control_az: float = 0.0
    control_el: float = 0.0

    @property
    def target_position(self) -> np.ndarray:
        """Target position as a 3-vector [m]."""
        return np.array([self.target_x, self.target_y, self.target_z])

    @property
    def attitude(self) -> np.ndarray:
        """Aircraft attitude as [roll, pitch, yaw] [rad]."""
        return np.array([self.roll, self.pitch, self.yaw])
