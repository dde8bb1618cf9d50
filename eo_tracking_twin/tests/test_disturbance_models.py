"""
Unit tests for aircraft disturbance and target motion models.

Tests verify:
1. Zero-intensity layers contribute exactly nothing
2. Gust envelope timing and sign
3. Deterministic turbulence with seeded RNG
4. Magnitude bounds of each layer
5. Target trajectory scaling with range
"""

import pytest
import numpy as np

from eo_tracking_twin.core.simulation.parameters import SimulationParameters
from eo_tracking_twin.core.disturbances.disturbance_models import (
    AircraftDisturbanceModel,
    AttitudeDisturbance,
    GUST_PERIOD,
)
from eo_tracking_twin.core.disturbances.target_motion import TargetMotionModel


@pytest.fixture
def quiet_params():
    """Maneuver only; every other layer disabled."""
    return SimulationParameters(
        atmospheric_turbulence=0.0,
        wind_gust_intensity=0.0,
        aircraft_vibration=0.0,
    )


class TestAttitudeDisturbance:
    """Test AttitudeDisturbance container."""

    def test_addition(self):
        a = AttitudeDisturbance(0.1, 0.2, 0.3)
        b = AttitudeDisturbance(0.01, -0.02, 0.03)
        total = a + b

        assert total.roll == pytest.approx(0.11)
        assert total.pitch == pytest.approx(0.18)
        assert total.yaw == pytest.approx(0.33)

    def test_as_array(self):
        np.testing.assert_array_equal(
            AttitudeDisturbance(1.0, 2.0, 3.0).as_array(), [1.0, 2.0, 3.0]
        )


class TestAircraftDisturbanceModel:
    """Test composite aircraft disturbance generator."""

    @pytest.mark.parametrize("t", [0.0, 0.37, 1.0, 2.5, 3.99, 17.123, 250.0])
    def test_zero_scales_leave_only_maneuver(self, quiet_params, t):
        """With all layer intensities at zero only the maneuver term remains."""
        model = AircraftDisturbanceModel(rng=np.random.default_rng(1))

        total = model.compute(t, quiet_params)
        maneuver = model.maneuver(t, quiet_params)

        assert total.roll == maneuver.roll
        assert total.pitch == maneuver.pitch
        assert total.yaw == maneuver.yaw

    def test_zero_scale_layers_are_zero(self, quiet_params):
        model = AircraftDisturbanceModel(rng=np.random.default_rng(1))
        for t in np.linspace(0.0, 10.0, 101):
            for layer in (model.turbulence, model.wind_gust, model.vibration):
                d = layer(t, quiet_params)
                assert d.roll == 0.0
                assert d.pitch == 0.0
                assert d.yaw == 0.0

    def test_maneuver_at_time_zero(self):
        params = SimulationParameters(disturbance_amp=0.2)
        d = AircraftDisturbanceModel(rng=np.random.default_rng(0)).maneuver(0.0, params)

        assert d.roll == 0.0
        assert d.pitch == pytest.approx(0.1)
        assert d.yaw == 0.0

    def test_maneuver_frequency(self):
        """Roll completes one cycle per 1/f seconds."""
        params = SimulationParameters(disturbance_freq=0.5, disturbance_amp=0.15)
        model = AircraftDisturbanceModel(rng=np.random.default_rng(0))

        # Quarter period of a 0.5 Hz sinusoid is 0.5 s
        assert model.maneuver(0.5, params).roll == pytest.approx(0.15)

    def test_gust_zero_in_second_half_of_period(self):
        model = AircraftDisturbanceModel(rng=np.random.default_rng(0))
        params = SimulationParameters(wind_gust_intensity=1.0)

        for k in range(3):
            base = k * GUST_PERIOD
            for t in np.linspace(base + 2.0, base + 3.999, 50):
                assert model.gust_factor(t) == 0.0
                d = model.wind_gust(t, params)
                assert d.roll == 0.0
                assert d.pitch == 0.0

    def test_gust_non_negative_in_first_half(self):
        model = AircraftDisturbanceModel(rng=np.random.default_rng(0))
        params = SimulationParameters(wind_gust_intensity=1.0)

        for t in np.linspace(0.0, 1.999, 200):
            d = model.wind_gust(t, params)
            assert d.roll >= 0.0
            assert d.pitch >= 0.0
            assert d.yaw == 0.0

    def test_gust_peak_at_quarter_period(self):
        model = AircraftDisturbanceModel(rng=np.random.default_rng(0))
        params = SimulationParameters(wind_gust_intensity=1.0)

        assert model.gust_factor(1.0) == pytest.approx(1.0)
        d = model.wind_gust(1.0, params)
        assert d.roll == pytest.approx(0.03)
        assert d.pitch == pytest.approx(0.025)

    def test_deterministic_turbulence(self):
        """Same seed produces identical turbulence sequences."""
        params = SimulationParameters(atmospheric_turbulence=1.0)
        model1 = AircraftDisturbanceModel(rng=np.random.default_rng(123))
        model2 = AircraftDisturbanceModel(rng=np.random.default_rng(123))

        for t in np.linspace(0.1, 5.0, 100):
            d1 = model1.compute(t, params)
            d2 = model2.compute(t, params)
            assert d1.roll == d2.roll
            assert d1.pitch == d2.pitch
            assert d1.yaw == d2.yaw

    def test_different_seeds_produce_different_turbulence(self):
        params = SimulationParameters(atmospheric_turbulence=1.0)
        model1 = AircraftDisturbanceModel(rng=np.random.default_rng(42))
        model2 = AircraftDisturbanceModel(rng=np.random.default_rng(43))

        times = np.linspace(0.11, 5.0, 100)
        differences = sum(
            1 for t in times
            if model1.turbulence(t, params).roll != model2.turbulence(t, params).roll
        )
        assert differences > 50

    def test_turbulence_magnitude_bounds(self):
        params = SimulationParameters(atmospheric_turbulence=1.0)
        model = AircraftDisturbanceModel(rng=np.random.default_rng(7))

        for t in np.linspace(0.0, 20.0, 500):
            d = model.turbulence(t, params)
            assert abs(d.roll) <= 0.5 * 0.02
            assert abs(d.pitch) <= 0.5 * 0.015
            assert abs(d.yaw) <= 0.5 * 0.01

    def test_vibration_at_time_zero(self):
        params = SimulationParameters(aircraft_vibration=1.0)
        d = AircraftDisturbanceModel(rng=np.random.default_rng(0)).vibration(0.0, params)

        assert d.roll == 0.0
        assert d.pitch == pytest.approx(0.006 + 0.002)
        assert d.yaw == 0.0

    def test_vibration_scales_linearly(self):
        model = AircraftDisturbanceModel(rng=np.random.default_rng(0))
        half = model.vibration(0.013, SimulationParameters(aircraft_vibration=0.5))
        full = model.vibration(0.013, SimulationParameters(aircraft_vibration=1.0))

        np.testing.assert_allclose(2.0 * half.as_array(), full.as_array())

    def test_output_finite(self):
        model = AircraftDisturbanceModel(rng=np.random.default_rng(0))
        params = SimulationParameters(
            atmospheric_turbulence=1.0, wind_gust_intensity=1.0, aircraft_vibration=1.0
        )
        for t in np.linspace(0.0, 1e4, 257):
            assert np.all(np.isfinite(model.compute(t, params).as_array()))


class TestTargetMotionModel:
    """Test target trajectory model."""

    def test_stationary_target(self):
        params = SimulationParameters(target_speed=0.0, target_distance=2000.0)
        pos = TargetMotionModel().position(12.3, params)

        np.testing.assert_allclose(pos, [0.0, 20.0, 2000.0])

    def test_range_equals_distance(self):
        model = TargetMotionModel()
        for distance in (500.0, 2000.0, 7000.0):
            params = SimulationParameters(target_distance=distance)
            for t in (0.0, 1.7, 42.0):
                assert model.position(t, params)[2] == distance

    def test_lateral_amplitude_scales_with_distance(self):
        model = TargetMotionModel()
        t = 2.0
        near = model.position(t, SimulationParameters(target_distance=2000.0))
        far = model.position(t, SimulationParameters(target_distance=4000.0))

        assert far[0] == pytest.approx(2.0 * near[0])
        assert far[1] - 20.0 == pytest.approx(2.0 * (near[1] - 20.0))

    def test_horizontal_amplitude_bound(self):
        model = TargetMotionModel()
        params = SimulationParameters(target_distance=2000.0, target_speed=1.0)
        xs = [model.position(t, params)[0] for t in np.linspace(0.0, 60.0, 600)]

        assert max(np.abs(xs)) <= 150.0 + 1e-9
