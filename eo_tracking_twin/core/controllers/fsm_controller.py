"""
Fast Steering Mirror Controller (500 Hz)

This module implements the high-bandwidth fine pointing loop. The FSM
receives the residual error left by the coarse gimbal loop and steers the
mirror to cancel it, within its mechanical stroke.

Axis Mapping:
------------
- FSM X rotates the beam in pitch and follows the elevation residual
- FSM Y rotates the beam in yaw and follows the azimuth residual

Control Law (TRACKING mode):
---------------------------
    r = θ_ideal - θ_gimbal                  (residual)
    k = kp_fsm · (1 + 0.2·σ·(u - 0.5))      (σ: parameter uncertainty, u ~ U[0,1))
    φ[k+1] = clip(φ[k] + k·(r - φ[k]) + d_actuator, ±φ_max)

Outside TRACKING the mirror re-centers geometrically and the command is
zeroed. The PZT hysteresis state is left untouched outside TRACKING, and is
forced to zero on every TRACKING sub-step while the VCM actuator is active.

PZT Rate Input:
--------------
The Bouc-Wen rate u̇ = (r - r_ref)/Δt uses the reference command r_ref
latched once per frame with :meth:`FSMController.latch_command` (the FSM
command published with the previous frame). Every sub-step of a frame sees
the same reference.
"""

import numpy as np
from typing import Dict, Optional, Tuple

from eo_tracking_twin.core.simulation.parameters import (
    SimulationParameters,
    SimulationMode,
    ActuatorType,
    FSM_DT,
    FSM_ANGLE_LIMIT,
)
from eo_tracking_twin.core.actuators.fsm_actuator import VcmActuator, PztActuator


RECENTER_RETENTION = 0.9
UNCERTAINTY_SPAN = 0.2


class FSMController:
    """
    Fixed-rate proportional controller for the two FSM axes.

    The controller owns the mirror angles, the last command and both
    actuator models; the actuator in use is selected per sub-step from
    ``params.fsm_actuator_type``.

    Usage:
    ------
    >>> fsm = FSMController(rng=np.random.default_rng(0))
    >>> x, y = fsm.update(residual_az, residual_el, t, params)
    """

    def __init__(self, config: Optional[dict] = None, rng: Optional[np.random.Generator] = None):
        """
        Parameters
        ----------
        config : dict, optional
            - 'dt': Sub-step duration [s] (default 1/500)
            - 'angle_limit': Mechanical stroke [rad] (default 0.025)
            - 'pzt_config': Passed to :class:`PztActuator`
        rng : np.random.Generator, optional
            Random source for the gain perturbation
        """
        config = config or {}
        self.dt: float = config.get('dt', FSM_DT)
        self.angle_limit: float = config.get('angle_limit', FSM_ANGLE_LIMIT)
        self.rng = rng if rng is not None else np.random.default_rng()

        self.actuators = {
            ActuatorType.VCM: VcmActuator(),
            ActuatorType.PZT: PztActuator(config.get('pzt_config')),
        }

        self.angle = np.zeros(2)       # [x, y] actual [rad]
        self.command = np.zeros(2)     # [x, y] residual fed to the mirror [rad]
        self.reference_command = np.zeros(2)   # [x, y] latched per frame [rad]

        # Diagnostics
        self.last_gain: float = 0.0
        self.last_disturbance = np.zeros(2)
        self.saturated = np.zeros(2, dtype=bool)
        self.update_count: int = 0

    @property
    def x(self) -> float:
        return float(self.angle[0])

    @property
    def y(self) -> float:
        return float(self.angle[1])

    @property
    def hysteresis_state(self) -> Tuple[float, float]:
        """PZT Bouc-Wen state (hx, hy)."""
        return self.actuators[ActuatorType.PZT].hysteresis_state

    def effective_gain(self, params: SimulationParameters) -> float:
        """Base gain randomly perturbed by up to ±10% of the uncertainty scale."""
        jitter = self.rng.random() - 0.5
        return params.kp_fsm * (1.0 + params.parameter_uncertainty * UNCERTAINTY_SPAN * jitter)

    def update(
        self,
        residual_az: float,
        residual_el: float,
        t: float,
        params: SimulationParameters
    ) -> Tuple[float, float]:
        """
        Advance the mirror by one fixed sub-step.

        Parameters
        ----------
        residual_az, residual_el : float
            Error left by the gimbal loop (ideal - actual) [rad]
        t : float
            Simulation time of the enclosing frame [s]
        params : SimulationParameters
            Active configuration

        Returns
        -------
        Tuple[float, float]
            Updated (x, y) mirror angles [rad]
        """
        self.update_count += 1

        if params.mode != SimulationMode.TRACKING:
            self.angle *= RECENTER_RETENTION
            self.command[:] = 0.0
            self.last_disturbance[:] = 0.0
            self.saturated[:] = False
            return self.x, self.y

        command = np.array([residual_el, residual_az])

        actuator = self.actuators[params.fsm_actuator_type]
        if params.fsm_actuator_type == ActuatorType.VCM:
            # VCM has no hysteresis; drop any state left from PZT operation
            self.actuators[ActuatorType.PZT].reset()

        disturbance = actuator.disturbance(command, self.reference_command, t, self.dt, params)
        gain = self.effective_gain(params)

        unclipped = self.angle + (command - self.angle) * gain + disturbance
        self.angle = np.clip(unclipped, -self.angle_limit, self.angle_limit)

        self.saturated = np.abs(unclipped) > self.angle_limit
        self.command = command
        self.last_gain = gain
        self.last_disturbance = disturbance
        return self.x, self.y

    def latch_command(self, cmd_x: float, cmd_y: float) -> None:
        """Set the PZT rate reference used by every sub-step of the next frame."""
        self.reference_command = np.array([cmd_x, cmd_y], dtype=float)

    def reset(self) -> None:
        """Center the mirror and clear actuator state."""
        self.angle = np.zeros(2)
        self.command = np.zeros(2)
        self.reference_command = np.zeros(2)
        for actuator in self.actuators.values():
            actuator.reset()
        self.last_gain = 0.0
        self.last_disturbance = np.zeros(2)
        self.saturated = np.zeros(2, dtype=bool)
        self.update_count = 0

    def get_state(self) -> Dict:
        return {
            'x': self.x,
            'y': self.y,
            'cmd_x': float(self.command[0]),
            'cmd_y': float(self.command[1]),
            'reference_command': self.reference_command.copy(),
            'hysteresis': self.hysteresis_state,
            'gain': self.last_gain,
            'disturbance': self.last_disturbance.copy(),
            'saturated': self.saturated.copy(),
            'update_count': self.update_count,
        }
