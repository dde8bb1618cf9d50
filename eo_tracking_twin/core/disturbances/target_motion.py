"""
Target trajectory model.

The target weaves horizontally and vertically at a fixed slant range. Lateral
amplitudes scale with range so that the angular motion seen from the aircraft
stays roughly constant across the 500-7000 m envelope.
"""

import numpy as np

from eo_tracking_twin.core.simulation.parameters import SimulationParameters


BASELINE_DISTANCE = 2000.0   # [m]
HORIZONTAL_AMP = 150.0       # [m] at baseline distance
VERTICAL_AMP = 120.0         # [m] at baseline distance
BASE_ALTITUDE = 20.0         # [m]


class TargetMotionModel:
    """Sinusoidal target motion in world coordinates."""

    def __init__(self, config: dict = None):
        config = config or {}
        self.horizontal_rate = config.get('horizontal_rate', 0.5)
        self.vertical_rate = config.get('vertical_rate', 0.3)

    def position(self, t: float, params: SimulationParameters) -> np.ndarray:
        """
        Target position at time ``t``.

        Returns
        -------
        np.ndarray
            [x, y, z] in meters; z equals the configured target distance.
        """
        distance_scale = params.target_distance / BASELINE_DISTANCE
        speed = params.target_speed

        x = HORIZONTAL_AMP * distance_scale * np.sin(t * speed * self.horizontal_rate)
        y = BASE_ALTITUDE + VERTICAL_AMP * distance_scale * np.sin(t * speed * self.vertical_rate)
        return np.array([x, y, params.target_distance])
