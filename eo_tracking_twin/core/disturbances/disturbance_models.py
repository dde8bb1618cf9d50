"""
Aircraft Disturbance Models for the Airborne Tracking Twin

This module synthesizes the attitude perturbations of the carrier aircraft
that the gimbal and FSM must reject:

1. Maneuver: Low-frequency coordinated-turn motion (roll/pitch/yaw sinusoids)
2. Atmospheric Turbulence: Random jitter modulated by per-axis sinusoids
3. Wind Gust: "1-cos" discrete gust, active in the first half of a 4 s period
4. Aircraft Vibration: Engine/airframe harmonics around 15 Hz

All contributions are additive and expressed as attitude offsets [rad].

Reproducibility:
---------------
Turbulence draws its jitter from an injected ``numpy.random.Generator``.
Two models built with generators of the same seed produce identical
sequences for identical call sequences.
"""

import numpy as np
from typing import Optional
from dataclasses import dataclass

from eo_tracking_twin.core.simulation.parameters import SimulationParameters


# Maneuver harmonics
PITCH_FREQ_RATIO = 0.8          # Pitch runs at 0.8x the maneuver frequency
YAW_RATE = 0.5                  # Fixed slow yaw [rad/s]

# Turbulence modulation (frequency [Hz], amplitude [rad] at full scale)
TURBULENCE_ROLL = (2.5, 0.02)
TURBULENCE_PITCH = (3.2, 0.015)
TURBULENCE_YAW = (1.8, 0.01)

# Discrete gust
GUST_PERIOD = 4.0               # [s]
GUST_ROLL_AMP = 0.03            # [rad] at full scale
GUST_PITCH_AMP = 0.025

# Airframe vibration
VIBRATION_FREQ = 15.0           # Primary band [Hz]


@dataclass
class AttitudeDisturbance:
    """Attitude perturbation contributions [rad]."""

    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    def __add__(self, other: 'AttitudeDisturbance') -> 'AttitudeDisturbance':
        return AttitudeDisturbance(
            self.roll + other.roll,
            self.pitch + other.pitch,
            self.yaw + other.yaw,
        )

    def as_array(self) -> np.ndarray:
        return np.array([self.roll, self.pitch, self.yaw])


class AircraftDisturbanceModel:
    """
    Composite aircraft attitude disturbance generator.

    The maneuver term is deterministic in ``t``; turbulence consumes three
    uniform draws per call from the model's generator; gust and vibration are
    deterministic.

    Usage:
    ------
    >>> model = AircraftDisturbanceModel(rng=np.random.default_rng(42))
    >>> d = model.compute(t=1.25, params=SimulationParameters())
    >>> roll, pitch, yaw = d.roll, d.pitch, d.yaw
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        """
        Parameters
        ----------
        rng : np.random.Generator, optional
            Random source for turbulence jitter. A fresh unseeded generator
            is used when omitted.
        """
        self.rng = rng if rng is not None else np.random.default_rng()

    def maneuver(self, t: float, params: SimulationParameters) -> AttitudeDisturbance:
        """Coordinated-turn maneuver at the configured frequency."""
        amp = params.disturbance_amp
        freq = params.disturbance_freq
        return AttitudeDisturbance(
            roll=amp * np.sin(2 * np.pi * freq * t),
            pitch=0.5 * amp * np.cos(2 * np.pi * freq * PITCH_FREQ_RATIO * t),
            yaw=0.3 * amp * np.sin(t * YAW_RATE),
        )

    def turbulence(self, t: float, params: SimulationParameters) -> AttitudeDisturbance:
        """
        Simplified Dryden-style turbulence.

        Each axis multiplies a centered uniform draw by a fixed-frequency
        sinusoid. The draws are taken even at zero intensity so the random
        stream does not depend on the configuration.
        """
        scale = params.atmospheric_turbulence
        jitter = self.rng.random(3) - 0.5

        f_r, a_r = TURBULENCE_ROLL
        f_p, a_p = TURBULENCE_PITCH
        f_y, a_y = TURBULENCE_YAW
        return AttitudeDisturbance(
            roll=scale * a_r * jitter[0] * np.sin(2 * np.pi * f_r * t),
            pitch=scale * a_p * jitter[1] * np.cos(2 * np.pi * f_p * t),
            yaw=scale * a_y * jitter[2] * np.sin(2 * np.pi * f_y * t),
        )

    @staticmethod
    def gust_factor(t: float) -> float:
        """
        Raised-cosine gust envelope in [0, 1].

        Non-zero only during the first half of each gust period.
        """
        phase = (t % GUST_PERIOD) / GUST_PERIOD
        if phase >= 0.5:
            return 0.0
        return 0.5 * (1.0 - np.cos(4 * np.pi * phase))

    def wind_gust(self, t: float, params: SimulationParameters) -> AttitudeDisturbance:
        """1-cos discrete gust on roll and pitch."""
        factor = self.gust_factor(t)
        scale = params.wind_gust_intensity
        return AttitudeDisturbance(
            roll=scale * GUST_ROLL_AMP * factor,
            pitch=scale * GUST_PITCH_AMP * factor,
        )

    def vibration(self, t: float, params: SimulationParameters) -> AttitudeDisturbance:
        """Primary 15 Hz band plus 3x and 5x harmonics."""
        scale = params.aircraft_vibration
        w = 2 * np.pi * VIBRATION_FREQ

        roll = 0.008 * np.sin(w * t) + 0.003 * np.sin(3 * w * t)
        pitch = 0.006 * np.cos(w * t) + 0.002 * np.cos(5 * w * t)
        yaw = 0.004 * np.sin(1.2 * w * t)
        return AttitudeDisturbance(scale * roll, scale * pitch, scale * yaw)

    def compute(self, t: float, params: SimulationParameters) -> AttitudeDisturbance:
        """
        Total aircraft attitude at time ``t``.

        Parameters
        ----------
        t : float
            Simulation time [s]
        params : SimulationParameters
            Active configuration

        Returns
        -------
        AttitudeDisturbance
            Sum of maneuver, turbulence, gust and vibration [rad]
        """
        return (self.maneuver(t, params)
                + self.turbulence(t, params)
                + self.wind_gust(t, params)
                + self.vibration(t, params))
