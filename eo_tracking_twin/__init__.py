"""
Airborne EO Tracking Twin
=========================
Multi-rate simulation of an airborne electro-optical tracking chain:
aircraft platform, two-axis gimbal servo and fast steering mirror.
"""

from eo_tracking_twin.core.simulation.parameters import (
    SimulationParameters,
    SimulationMode,
    ActuatorType,
    load_preset,
)
from eo_tracking_twin.core.simulation.system_state import SystemState
from eo_tracking_twin.core.simulation.simulation_runner import TrackingSimulationRunner

__all__ = [
    'SimulationParameters',
    'SimulationMode',
    'ActuatorType',
    'SystemState',
    'TrackingSimulationRunner',
    'load_preset',
]
__version__ = '1.0.0'
