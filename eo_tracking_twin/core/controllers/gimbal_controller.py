"""
Coarse Gimbal Controller (50 Hz)

This module implements the two-axis (azimuth/elevation) coarse pointing loop.
The gimbal is modeled kinematically: each sub-step integrates a proportional
rate command plus the servo-frame disturbances acting on the axes.

Servo Frame Disturbances:
------------------------
- Motor torque ripple: commutation ripple at 70 Hz (Az) / 75 Hz (El)
- Nonlinear friction: LuGre-like Coulomb term, odd in the error, vanishing
  at zero error and saturating for large error
- Unbalanced torque: slow mass-imbalance torque at 0.5 Hz (Az) / 0.3 Hz (El)

Control Law:
-----------
    e = θ_ideal - θ
    θ[k+1] = θ[k] + (K·e + τ_ripple - τ_friction + τ_unbalance)·Δt
    K = kp_gimbal · 50

In PASSIVE mode no command is applied; the axes settle geometrically toward
zero at a rate reduced by friction.
"""

import numpy as np
from typing import Dict, Tuple

from eo_tracking_twin.core.simulation.parameters import (
    SimulationParameters,
    SimulationMode,
    GIMBAL_DT,
    GIMBAL_RATE_HZ,
)


# Disturbance amplitudes at unit intensity [rad/s]
RIPPLE_AMP = 0.001
RIPPLE_FREQ_AZ = 70.0          # [Hz]
RIPPLE_FREQ_EL = 75.0
FRICTION_AMP = 0.0005
FRICTION_SHARPNESS = 100.0     # [1/rad]
UNBALANCE_AMP_AZ = 0.002
UNBALANCE_AMP_EL = 0.0015
UNBALANCE_FREQ_AZ = 0.5        # [Hz]
UNBALANCE_FREQ_EL = 0.3

# Passive settling
PASSIVE_RETENTION = 0.98
PASSIVE_FRICTION_SLOPE = 0.02


def nonlinear_friction(error: float, scale: float) -> float:
    """
    Saturating Coulomb-like friction as a function of tracking error.

    ``np.sign(0) == 0`` so the term vanishes exactly at zero error.
    """
    return scale * FRICTION_AMP * np.sign(error) * (1.0 - np.exp(-abs(error) * FRICTION_SHARPNESS))


class GimbalController:
    """
    Fixed-rate proportional controller for the two gimbal axes.

    The controller owns the actual gimbal angles; they persist across
    frames and are advanced only by :meth:`update`.

    Usage:
    ------
    >>> gimbal = GimbalController()
    >>> az, el = gimbal.update(ideal_az, ideal_el, t, params)
    """

    def __init__(self, config: dict = None):
        """
        Parameters
        ----------
        config : dict, optional
            - 'dt': Sub-step duration [s] (default 1/50)
            - 'gain_scale': Multiplier from kp_gimbal to loop gain [1/s]
            - 'initial_az', 'initial_el': Starting angles [rad]
        """
        config = config or {}
        self.dt: float = config.get('dt', GIMBAL_DT)
        self.gain_scale: float = config.get('gain_scale', GIMBAL_RATE_HZ)

        self._initial = (config.get('initial_az', 0.0), config.get('initial_el', 0.0))
        self.az: float = self._initial[0]
        self.el: float = self._initial[1]

        # Last sub-step diagnostics
        self.last_error = np.zeros(2)
        self.last_disturbance = np.zeros(2)
        self.update_count: int = 0

    def servo_disturbance(
        self,
        error_az: float,
        error_el: float,
        t: float,
        params: SimulationParameters
    ) -> Tuple[float, float]:
        """
        Net servo-frame disturbance rate per axis [rad/s].

        Returns
        -------
        Tuple[float, float]
            ripple - friction + unbalance for (az, el)
        """
        ripple_az = params.motor_torque_ripple * RIPPLE_AMP * np.sin(2 * np.pi * RIPPLE_FREQ_AZ * t)
        ripple_el = params.motor_torque_ripple * RIPPLE_AMP * np.cos(2 * np.pi * RIPPLE_FREQ_EL * t)

        friction_az = nonlinear_friction(error_az, params.nonlinear_friction)
        friction_el = nonlinear_friction(error_el, params.nonlinear_friction)

        unbalance_az = params.unbalanced_torque * UNBALANCE_AMP_AZ * np.sin(2 * np.pi * UNBALANCE_FREQ_AZ * t)
        unbalance_el = params.unbalanced_torque * UNBALANCE_AMP_EL * np.cos(2 * np.pi * UNBALANCE_FREQ_EL * t)

        return (ripple_az - friction_az + unbalance_az,
                ripple_el - friction_el + unbalance_el)

    def update(
        self,
        ideal_az: float,
        ideal_el: float,
        t: float,
        params: SimulationParameters
    ) -> Tuple[float, float]:
        """
        Advance the gimbal by one fixed sub-step.

        Parameters
        ----------
        ideal_az, ideal_el : float
            Commanded (ideal) gimbal angles [rad]
        t : float
            Simulation time of the enclosing frame [s]
        params : SimulationParameters
            Active configuration

        Returns
        -------
        Tuple[float, float]
            Updated (az, el) [rad]
        """
        self.update_count += 1

        if params.mode == SimulationMode.PASSIVE:
            retention = PASSIVE_RETENTION - params.nonlinear_friction * PASSIVE_FRICTION_SLOPE
            self.az *= retention
            self.el *= retention
            self.last_error[:] = 0.0
            self.last_disturbance[:] = 0.0
            return self.az, self.el

        error_az = ideal_az - self.az
        error_el = ideal_el - self.el
        k_gimbal = params.kp_gimbal * self.gain_scale

        dist_az, dist_el = self.servo_disturbance(error_az, error_el, t, params)

        self.az += (error_az * k_gimbal + dist_az) * self.dt
        self.el += (error_el * k_gimbal + dist_el) * self.dt

        self.last_error[:] = (error_az, error_el)
        self.last_disturbance[:] = (dist_az, dist_el)
        return self.az, self.el

    def reset(self) -> None:
        """Return the axes to their initial angles."""
        self.az, self.el = self._initial
        self.last_error[:] = 0.0
        self.last_disturbance[:] = 0.0
        self.update_count = 0

    def get_state(self) -> Dict:
        return {
            'az': self.az,
            'el': self.el,
            'error': self.last_error.copy(),
            'disturbance': self.last_disturbance.copy(),
            'update_count': self.update_count,
        }
