"""
Fast Steering Mirror (FSM) Actuator Models

This module implements the actuator-specific non-idealities of the FSM fine
stage. Two technologies are modeled behind a common interface:

- VCM (voice coil motor): highly linear, small force ripple at 200/180 Hz,
  no appreciable hysteresis.
- PZT (piezoelectric stack): rate-dependent hysteresis described by the
  Bouc-Wen differential model, with persistent internal state per axis.

Both actuators return an additive angular disturbance [rad] that the FSM
controller adds to its proportional correction on every sub-step.

Bouc-Wen Model:
--------------
    ḣ = α·u̇ + β·|u̇|·|h|^(n-1)·h - γ·u̇·|h|^n
    y = d·u + h
    θ = arctan(y / l)

The hysteresis-induced angular deviation is -(θ - u).
"""

import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

from eo_tracking_twin.core.simulation.parameters import SimulationParameters, ActuatorType


# VCM ripple [rad] at unit intensity
VCM_RIPPLE_AMP = 0.0002
VCM_RIPPLE_FREQ_X = 200.0      # [Hz]
VCM_RIPPLE_FREQ_Y = 180.0
VCM_RIPPLE_PHASE_X = np.pi / 4

# Bouc-Wen fixed constants
BOUC_WEN_D = 1.408             # Piezo displacement gain
BOUC_WEN_L = 0.02              # Lever / focal length parameter
BOUC_WEN_N = 1                 # Shape exponent


@dataclass
class BoucWenState:
    """Internal hysteresis state of a two-axis PZT mirror."""
    hx: float = 0.0
    hy: float = 0.0

    def as_tuple(self) -> Tuple[float, float]:
        return self.hx, self.hy


class FSMActuatorModel(ABC):
    """
    Abstract base class for FSM actuator non-idealities.

    Subclasses compute the additive angular disturbance for one FSM
    sub-step from the current command and the command published with the
    previous frame.
    """

    actuator_type: ActuatorType

    @abstractmethod
    def disturbance(
        self,
        command: np.ndarray,
        prev_command: np.ndarray,
        t: float,
        dt: float,
        params: SimulationParameters
    ) -> np.ndarray:
        """
        Compute actuator disturbance for one sub-step.

        Parameters
        ----------
        command : np.ndarray
            Current command [x, y] (residual fed to the FSM) [rad]
        prev_command : np.ndarray
            Command published with the previous frame [x, y] [rad]
        t : float
            Simulation time [s]
        dt : float
            Sub-step duration [s]
        params : SimulationParameters
            Active configuration

        Returns
        -------
        np.ndarray
            Angular disturbance [d_x, d_y] [rad]
        """

    @property
    def hysteresis_state(self) -> Tuple[float, float]:
        """Hysteresis internal state; zero for actuators without hysteresis."""
        return 0.0, 0.0

    def reset(self) -> None:
        """Clear any internal state."""


class VcmActuator(FSMActuatorModel):
    """Voice coil actuator: two-tone force ripple, no hysteresis."""

    actuator_type = ActuatorType.VCM

    def disturbance(self, command, prev_command, t, dt, params):
        scale = params.vcm_ripple * VCM_RIPPLE_AMP
        return np.array([
            scale * np.sin(2 * np.pi * VCM_RIPPLE_FREQ_X * t + VCM_RIPPLE_PHASE_X),
            scale * np.cos(2 * np.pi * VCM_RIPPLE_FREQ_Y * t),
        ])


class PztActuator(FSMActuatorModel):
    """
    Piezoelectric actuator with Bouc-Wen hysteresis.

    The shape parameters α, β, γ and the hysteresis intensity are read from
    the active :class:`SimulationParameters` on every sub-step so they can be
    tuned while the simulation runs. The internal state (hx, hy) persists
    until :meth:`reset`.
    """

    actuator_type = ActuatorType.PZT

    def __init__(self, config: dict = None):
        """
        Parameters
        ----------
        config : dict, optional
            - 'd': Displacement gain (default 1.408)
            - 'l': Lever parameter (default 0.02)
            - 'n': Bouc-Wen exponent (default 1)
        """
        config = config or {}
        self.d: float = config.get('d', BOUC_WEN_D)
        self.l: float = config.get('l', BOUC_WEN_L)
        self.n: int = config.get('n', BOUC_WEN_N)
        self.state = BoucWenState()

    @property
    def hysteresis_state(self) -> Tuple[float, float]:
        return self.state.as_tuple()

    def hysteresis_rate(
        self,
        h: float,
        u_dot: float,
        params: SimulationParameters
    ) -> float:
        """Bouc-Wen state derivative ḣ for one axis."""
        alpha = params.pzt_hysteresis_alpha
        beta = params.pzt_hysteresis_beta
        gamma = params.pzt_hysteresis_gamma
        abs_h = abs(h)
        return (alpha * u_dot
                + beta * abs(u_dot) * abs_h ** (self.n - 1) * h
                - gamma * u_dot * abs_h ** self.n)

    def _step_axis(
        self,
        h: float,
        u: float,
        u_prev: float,
        dt: float,
        params: SimulationParameters
    ) -> Tuple[float, float]:
        """
        Integrate one axis and return (new_h, angular_disturbance).
        """
        u_dot = (u - u_prev) / dt
        h_new = h + self.hysteresis_rate(h, u_dot, params) * dt * params.pzt_hysteresis

        y = self.d * u + h_new
        theta = np.arctan(y / self.l)
        return h_new, -(theta - u)

    def disturbance(self, command, prev_command, t, dt, params):
        self.state.hx, d_x = self._step_axis(
            self.state.hx, command[0], prev_command[0], dt, params
        )
        self.state.hy, d_y = self._step_axis(
            self.state.hy, command[1], prev_command[1], dt, params
        )
        return np.array([d_x, d_y])

    def reset(self) -> None:
        self.state = BoucWenState()


def create_fsm_actuator(actuator_type, config: dict = None) -> FSMActuatorModel:
    """
    Factory for FSM actuator models.

    Parameters
    ----------
    actuator_type : ActuatorType or str
        'VCM' or 'PZT'
    config : dict, optional
        Passed to the PZT model

    Returns
    -------
    FSMActuatorModel
    """
    actuator_type = ActuatorType(actuator_type) if not isinstance(actuator_type, ActuatorType) \
        else actuator_type
    if actuator_type == ActuatorType.VCM:
        return VcmActuator()
    return PztActuator(config)
