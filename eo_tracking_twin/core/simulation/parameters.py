"""
Simulation Parameters for the Airborne Electro-Optical Tracking Twin

This module defines the configuration surface shared by every subsystem of
the three-stage tracking chain (aircraft platform, gimbal servo, FSM):

- Operating mode (passive / stabilized / tracking)
- FSM actuator technology (voice coil or piezoelectric)
- Maneuver, target and controller gains
- Per-layer disturbance intensities (dimensionless, 0-1)

Parameters are immutable. A UI or script changes the configuration by
building a new instance with :meth:`SimulationParameters.replace` and handing
it to the runner, which picks it up on the next frame.

Presets:
-------
Named parameter sets live in ``config/tracking_presets.json`` at the project
root and are loaded with :func:`load_preset`.
"""

import json
import warnings
from dataclasses import dataclass, fields, asdict, replace as dc_replace
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional


class SimulationMode(Enum):
    """Operating mode of the tracking chain."""
    PASSIVE = 'PASSIVE'          # No control, gimbal rides with the aircraft
    STABILIZED = 'STABILIZED'    # Coarse gimbal loop only
    TRACKING = 'TRACKING'        # Coarse gimbal + fine FSM loop


class ActuatorType(Enum):
    """FSM actuator technology."""
    VCM = 'VCM'    # Voice coil motor: linear, small ripple, no hysteresis
    PZT = 'PZT'    # Piezoelectric stack: rate-dependent Bouc-Wen hysteresis


# Control loop rates
GIMBAL_RATE_HZ = 50.0
FSM_RATE_HZ = 500.0
GIMBAL_DT = 1.0 / GIMBAL_RATE_HZ   # 20 ms
FSM_DT = 1.0 / FSM_RATE_HZ         # 2 ms

# Outer frame clamp after a stalled host clock [s]
MAX_FRAME_DT = 0.1

# Mechanical FSM stroke [rad]
FSM_ANGLE_LIMIT = 0.025

# History throttling
HISTORY_LENGTH = 100
HISTORY_INTERVAL = 0.05   # [s] of simulated time between entries

DEFAULT_PRESETS_PATH = Path(__file__).resolve().parents[3] / "config" / "tracking_presets.json"

# Fields constrained to the [0, 1] intensity range
_INTENSITY_FIELDS = (
    'atmospheric_turbulence',
    'wind_gust_intensity',
    'aircraft_vibration',
    'unbalanced_torque',
    'motor_torque_ripple',
    'nonlinear_friction',
    'vcm_ripple',
    'pzt_hysteresis',
    'parameter_uncertainty',
)


def _coerce_enum(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        valid = [m.value for m in enum_cls]
        raise ValueError(f"Unknown {enum_cls.__name__} '{value}', expected one of {valid}") from None


@dataclass(frozen=True)
class SimulationParameters:
    """
    Complete configuration of the tracking simulation.

    Frequencies are in Hz, distances in meters, amplitudes in radians.
    All disturbance intensities are dimensionless scale factors in [0, 1].
    """

    # Operating mode
    mode: SimulationMode = SimulationMode.PASSIVE
    fsm_actuator_type: ActuatorType = ActuatorType.VCM

    # Aircraft maneuver
    disturbance_freq: float = 0.5      # Maneuver frequency [Hz]
    disturbance_amp: float = 0.15      # Maneuver amplitude [rad] (~8.6 deg)

    # Target
    target_speed: float = 0.8          # Target sinusoid rate scale [rad/s]
    target_distance: float = 2000.0    # Slant range [m]

    # Controller gains
    kp_gimbal: float = 0.2
    kp_fsm: float = 0.8

    # Aircraft layer disturbances
    atmospheric_turbulence: float = 0.1
    wind_gust_intensity: float = 0.05
    aircraft_vibration: float = 0.08
    unbalanced_torque: float = 0.06

    # Servo frame layer disturbances
    motor_torque_ripple: float = 0.03
    nonlinear_friction: float = 0.04

    # Fine tracking layer disturbances
    vcm_ripple: float = 0.02
    pzt_hysteresis: float = 0.07
    pzt_hysteresis_alpha: float = -0.475
    pzt_hysteresis_beta: float = 0.023
    pzt_hysteresis_gamma: float = -0.0025

    # System uncertainty (±10% gain perturbation at full scale)
    parameter_uncertainty: float = 0.05

    def __post_init__(self):
        """Coerce enum fields and validate ranges."""
        object.__setattr__(self, 'mode', _coerce_enum(SimulationMode, self.mode))
        object.__setattr__(
            self, 'fsm_actuator_type', _coerce_enum(ActuatorType, self.fsm_actuator_type)
        )

        for name in _INTENSITY_FIELDS:
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must lie in [0, 1], got {value}")

        if self.target_distance <= 0.0:
            raise ValueError(f"target_distance must be positive, got {self.target_distance}")

        for name in ('disturbance_freq', 'disturbance_amp', 'target_speed', 'kp_gimbal', 'kp_fsm'):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

    def replace(self, **changes) -> 'SimulationParameters':
        """Return a copy with the given fields replaced."""
        return dc_replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary with enum members reduced to their string values."""
        data = asdict(self)
        data['mode'] = self.mode.value
        data['fsm_actuator_type'] = self.fsm_actuator_type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimulationParameters':
        """
        Build parameters from a (possibly partial) dictionary.

        Missing keys keep their defaults. Unknown keys are ignored with a
        warning so that presets written for newer versions still load.

        Parameters
        ----------
        data : Dict[str, Any]
            Field name to value mapping. Enum fields accept strings.

        Returns
        -------
        SimulationParameters
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            warnings.warn(f"Ignoring unknown simulation parameters: {unknown}")
        return cls(**{k: v for k, v in data.items() if k in known})


def load_preset(name: str, path: Optional[Path] = None) -> SimulationParameters:
    """
    Load a named parameter preset from the JSON preset file.

    Parameters
    ----------
    name : str
        Preset key under the top-level ``"presets"`` object
    path : Path, optional
        Preset file. Defaults to ``config/tracking_presets.json``.

    Returns
    -------
    SimulationParameters

    Raises
    ------
    FileNotFoundError
        If the preset file does not exist
    ValueError
        If the preset is not defined or holds invalid values
    """
    config_path = Path(path) if path is not None else DEFAULT_PRESETS_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Preset file not found at {config_path}")

    with open(config_path, 'r') as f:
        presets = json.load(f).get("presets", {})

    if name not in presets:
        raise ValueError(f"Preset '{name}' not defined. Available presets: {list(presets.keys())}")

    return SimulationParameters.from_dict(presets[name])
