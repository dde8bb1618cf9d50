"""
Disturbance and scenario models for the airborne tracking twin.

- Aircraft attitude disturbances: maneuver, turbulence, gust, vibration
- Target trajectory at configurable range and speed

Servo-frame and actuator disturbances live with the gimbal controller and
FSM actuator models that they act on.
"""

from .disturbance_models import (
    AircraftDisturbanceModel,
    AttitudeDisturbance,
)
from .target_motion import TargetMotionModel

__all__ = [
    'AircraftDisturbanceModel',
    'AttitudeDisturbance',
    'TargetMotionModel',
]
