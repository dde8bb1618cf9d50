"""
Unit tests for simulation parameters, presets and the command-line runner.
"""

import json
import dataclasses

import pytest

from eo_tracking_twin.core.simulation.parameters import (
    SimulationParameters,
    SimulationMode,
    ActuatorType,
    load_preset,
)
from eo_tracking_twin.runner import main


class TestSimulationParameters:
    """Test defaults, coercion and validation."""

    def test_defaults(self):
        params = SimulationParameters()

        assert params.mode == SimulationMode.PASSIVE
        assert params.fsm_actuator_type == ActuatorType.VCM
        assert params.disturbance_freq == 0.5
        assert params.disturbance_amp == 0.15
        assert params.target_speed == 0.8
        assert params.target_distance == 2000.0
        assert params.kp_gimbal == 0.2
        assert params.kp_fsm == 0.8
        assert params.pzt_hysteresis_alpha == -0.475
        assert params.parameter_uncertainty == 0.05

    def test_enum_coercion(self):
        params = SimulationParameters(mode='tracking', fsm_actuator_type='PZT')

        assert params.mode is SimulationMode.TRACKING
        assert params.fsm_actuator_type is ActuatorType.PZT

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="SimulationMode"):
            SimulationParameters(mode='HOVER')

    @pytest.mark.parametrize("field, value", [
        ('atmospheric_turbulence', 1.5),
        ('vcm_ripple', -0.1),
        ('parameter_uncertainty', 2.0),
        ('target_distance', 0.0),
        ('kp_gimbal', -0.2),
        ('disturbance_freq', -1.0),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValueError, match=field):
            SimulationParameters(**{field: value})

    def test_frozen(self):
        params = SimulationParameters()
        with pytest.raises(dataclasses.FrozenInstanceError):
            params.kp_fsm = 1.0

    def test_replace_leaves_original(self):
        params = SimulationParameters()
        changed = params.replace(mode='TRACKING', kp_fsm=0.3)

        assert params.mode == SimulationMode.PASSIVE
        assert params.kp_fsm == 0.8
        assert changed.mode == SimulationMode.TRACKING
        assert changed.kp_fsm == 0.3

    def test_dict_round_trip(self):
        params = SimulationParameters(mode='STABILIZED', target_distance=3500.0)
        data = params.to_dict()

        assert data['mode'] == 'STABILIZED'
        assert json.loads(json.dumps(data)) == data
        assert SimulationParameters.from_dict(data) == params

    def test_from_partial_dict(self):
        params = SimulationParameters.from_dict({'kp_gimbal': 0.4})

        assert params.kp_gimbal == 0.4
        assert params.kp_fsm == 0.8

    def test_unknown_key_warns(self):
        with pytest.warns(UserWarning, match="kd_gimbal"):
            params = SimulationParameters.from_dict({'kd_gimbal': 0.1, 'kp_fsm': 0.5})

        assert params.kp_fsm == 0.5


class TestPresets:
    """Test JSON preset loading."""

    def test_bundled_preset(self):
        params = load_preset('calm_tracking')

        assert params.mode == SimulationMode.TRACKING
        assert params.atmospheric_turbulence == 0.0
        assert params.target_speed == 0.0

    def test_default_preset(self):
        assert load_preset('default') == SimulationParameters()

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="not defined"):
            load_preset('no_such_preset')

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_preset('default', tmp_path / "missing.json")

    def test_custom_file(self, tmp_path):
        path = tmp_path / "presets.json"
        path.write_text(json.dumps({"presets": {"far": {"target_distance": 6000.0}}}))

        assert load_preset('far', path).target_distance == 6000.0

    def test_invalid_values_in_file(self, tmp_path):
        path = tmp_path / "presets.json"
        path.write_text(json.dumps({"presets": {"bad": {"vcm_ripple": 3.0}}}))

        with pytest.raises(ValueError):
            load_preset('bad', path)


class TestCommandLine:
    """Test the command-line runner."""

    def test_preset_run(self, capsys):
        assert main(['--preset', 'calm_tracking', '--duration', '0.5']) == 0

        out = capsys.readouterr().out
        assert "TRACKING PERFORMANCE SUMMARY" in out
        assert "Mode:      TRACKING" in out

    def test_overrides(self, capsys):
        assert main(['--mode', 'STABILIZED', '--actuator', 'PZT', '--duration', '0.2']) == 0
        out = capsys.readouterr().out

        assert "Mode:      STABILIZED" in out
        assert "Actuator:  PZT" in out

    def test_unknown_preset(self, capsys):
        assert main(['--preset', 'no_such_preset']) == 1
        assert "Configuration Error" in capsys.readouterr().out

    def test_bad_frame_rate(self, capsys):
        assert main(['--frame-rate', '0']) == 1
        assert "Configuration Error" in capsys.readouterr().out
