"""
Tests for the sensors and options modules.
"""

import numpy as np
import pytest

from radiance_forward import Options, SensorCoefficients, SensorType
from radiance_forward.sensors import channel_catalog, resolve_sensor, total_channels


class TestSensorCoefficients:
    """Tests for coefficient validation and defaults."""

    def test_defaults(self):
        sensor = SensorCoefficients("ssmis_f17", SensorType.MICROWAVE, [1, 2], [0.6, 0.7])
        assert sensor.n_channels == 2
        np.testing.assert_array_equal(sensor.solar_irradiance, [0.0, 0.0])
        np.testing.assert_array_equal(sensor.band_c2, [1.0, 1.0])
        assert sensor.absorption_coefficients.shape == (2, 0)
        assert not sensor.has_antenna_correction
        assert not sensor.is_visible

    def test_wavenumber_length(self):
        with pytest.raises(ValueError, match="wavenumbers"):
            SensorCoefficients("bad", SensorType.INFRARED, [1, 2], [700.0])

    def test_irradiance_length(self):
        with pytest.raises(ValueError, match="solar_irradiance"):
            SensorCoefficients("bad", SensorType.VISIBLE, [1], [20000.0],
                               solar_irradiance=[1.0, 2.0])

    def test_visible(self, visible_sensor):
        assert visible_sensor.is_visible


class TestChannelCatalog:
    """Tests for channel selections."""

    def test_all_channels(self, infrared_sensor):
        catalog = channel_catalog(0, infrared_sensor)
        np.testing.assert_array_equal(catalog.channel_index, [0, 1, 2])
        np.testing.assert_array_equal(catalog.sensor_channel, [1, 8, 12])

    def test_subset_order(self, infrared_sensor):
        catalog = channel_catalog(0, infrared_sensor, channels=[12, 1])
        np.testing.assert_array_equal(catalog.channel_index, [2, 0])
        np.testing.assert_array_equal(catalog.sensor_channel, [12, 1])

    def test_missing_channel(self, infrared_sensor):
        with pytest.raises(ValueError, match="99"):
            channel_catalog(0, infrared_sensor, channels=[99])

    def test_total_channels(self, infrared_channels, visible_channels):
        assert total_channels(infrared_channels + visible_channels) == 6
        assert total_channels([]) == 0

    def test_resolve_sensor(self, sensors, infrared_channels):
        assert resolve_sensor(sensors, infrared_channels[0]).sensor_id == "hirs_n19"
        with pytest.raises(KeyError):
            resolve_sensor({}, infrared_channels[0])


class TestOptions:
    """Tests for per-profile options."""

    def test_defaults(self):
        opts = Options()
        assert opts.n_channels == 0
        assert not opts.user_emissivity
        assert opts.sensor_input.absorber_scale == 1.0

    def test_direct_reflectivity_needs_emissivity(self):
        opts = Options(direct_reflectivity_switch=True, direct_reflectivity=[0.1])
        assert not opts.user_direct_reflectivity
        assert opts.n_direct_reflectivity == 1
