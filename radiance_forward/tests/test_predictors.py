"""
Tests for the predictors module.
"""

import numpy as np
import pytest

from radiance_forward import SensorInput, ViewGeometry
from radiance_forward.atmosphere import add_layers
from radiance_forward.constants import STANDARD_PRESSURE
from radiance_forward.geometry import derive_geometry
from radiance_forward.optics import CombinedOpticalState
from radiance_forward.predictors import (
    N_FIXED_PREDICTORS,
    allocate_predictor,
    build_predictors,
    compute_absorption,
)


@pytest.fixture
def extended(clear_profile):
    atm, _ = add_layers(clear_profile)
    return atm


@pytest.fixture
def slant():
    geometry = ViewGeometry(sensor_zenith=60.0)
    derive_geometry(geometry)
    return geometry


class TestBuildPredictors:
    """Tests for predictor construction."""

    def test_shape(self, extended, infrared_sensor):
        predictor = allocate_predictor(infrared_sensor, extended)
        assert predictor.values.shape == (N_FIXED_PREDICTORS + 2, extended.n_layers)
        assert not predictor.built

    def test_dry_path(self, extended, infrared_sensor, slant):
        """Test the dry path row scales with the view secant."""
        predictor = allocate_predictor(infrared_sensor, extended)
        build_predictors(SensorInput(), infrared_sensor, extended, slant, predictor)
        np.testing.assert_allclose(
            predictor.values[0], 2.0 * extended.layer_thickness / STANDARD_PRESSURE
        )
        assert predictor.secant == pytest.approx(2.0)
        assert predictor.built

    def test_absorber_scale(self, extended, infrared_sensor, slant):
        plain = allocate_predictor(infrared_sensor, extended)
        build_predictors(SensorInput(), infrared_sensor, extended, slant, plain)
        scaled = allocate_predictor(infrared_sensor, extended)
        build_predictors(SensorInput(absorber_scale=2.0), infrared_sensor, extended,
                         slant, scaled)
        np.testing.assert_allclose(scaled.values[2:], 2.0 * plain.values[2:])
        np.testing.assert_allclose(scaled.values[:2], plain.values[:2])

    def test_wrong_sensor(self, extended, infrared_sensor, microwave_sensor, slant):
        predictor = allocate_predictor(microwave_sensor, extended)
        with pytest.raises(ValueError, match="amsua_n19"):
            build_predictors(SensorInput(), infrared_sensor, extended, slant, predictor)

    def test_wrong_layering(self, clear_profile, extended, infrared_sensor, slant):
        predictor = allocate_predictor(infrared_sensor, clear_profile)
        with pytest.raises(ValueError, match="layers"):
            build_predictors(SensorInput(), infrared_sensor, extended, slant, predictor)

    def test_geometry_not_derived(self, extended, infrared_sensor):
        predictor = allocate_predictor(infrared_sensor, extended)
        with pytest.raises(ValueError, match="derived"):
            build_predictors(SensorInput(), infrared_sensor, extended,
                             ViewGeometry(), predictor)


class TestComputeAbsorption:
    """Tests for gas absorption optical depth."""

    def test_adds_optical_depth(self, extended, infrared_sensor, slant):
        predictor = allocate_predictor(infrared_sensor, extended)
        build_predictors(SensorInput(), infrared_sensor, extended, slant, predictor)
        optics = CombinedOpticalState(extended.n_layers)
        optics.optical_depth[:] = 1.0
        compute_absorption(SensorInput(), infrared_sensor, 0, predictor, optics)
        assert np.all(optics.optical_depth > 1.0)

    def test_nadir_depth(self, extended, infrared_sensor, slant):
        """Test the stored optical depth does not depend on the view angle."""
        nadir = ViewGeometry()
        derive_geometry(nadir)
        depths = []
        for geometry in (nadir, slant):
            predictor = allocate_predictor(infrared_sensor, extended)
            build_predictors(SensorInput(), infrared_sensor, extended, geometry, predictor)
            optics = CombinedOpticalState(extended.n_layers)
            compute_absorption(SensorInput(), infrared_sensor, 0, predictor, optics)
            depths.append(optics.optical_depth)
        assert np.sum(depths[0]) > 0
        np.testing.assert_allclose(depths[1], depths[0])

    def test_not_built(self, extended, infrared_sensor):
        predictor = allocate_predictor(infrared_sensor, extended)
        with pytest.raises(ValueError, match="not been built"):
            compute_absorption(SensorInput(), infrared_sensor, 0, predictor,
                               CombinedOpticalState(extended.n_layers))

    def test_too_many_coefficients(self, extended, infrared_sensor, slant):
        """Test a profile with fewer absorbers than coefficients fails."""
        extended.absorber = extended.absorber[:, :1]
        predictor = allocate_predictor(infrared_sensor, extended)
        build_predictors(SensorInput(), infrared_sensor, extended, slant, predictor)
        with pytest.raises(ValueError, match="coefficients"):
            compute_absorption(SensorInput(), infrared_sensor, 0, predictor,
                               CombinedOpticalState(extended.n_layers))

    def test_double_release(self, extended, infrared_sensor):
        predictor = allocate_predictor(infrared_sensor, extended)
        predictor.release()
        with pytest.raises(RuntimeError):
            predictor.release()
