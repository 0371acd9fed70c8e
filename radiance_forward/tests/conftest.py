"""
Pytest configuration and shared fixtures for radiance_forward tests.
"""

from collections import Counter

import numpy as np
import pytest

from radiance_forward import (
    AntennaCorrection,
    AtmosphericProfile,
    Cloud,
    ReferenceBackend,
    SensorCoefficients,
    SensorType,
    SurfaceState,
    ViewGeometry,
    channel_catalog,
)
from radiance_forward.atmosphere import layer_pressure


class RecordingBackend(ReferenceBackend):
    """
    Reference physics instrumented for the driver tests.

    Counts workspace allocations and releases, records every solver call
    and can be told to fail a given absorption call or workspace release.
    """

    def __init__(self, fail_absorption_on=None, fail_release=()):
        self.allocated = Counter()
        self.released = Counter()
        self.outstanding_atmospheres = 0
        self.max_outstanding_atmospheres = 0
        self.solves = []
        self.cloud_legendre_terms = []
        self.absorption_calls = 0
        self.fail_absorption_on = fail_absorption_on
        self.fail_release = set(fail_release)

    def _release(self, label):
        self.released[label] += 1
        if label in self.fail_release:
            raise RuntimeError(f"cannot release {label}")

    def add_layers(self, profile):
        extended = super().add_layers(profile)
        self.allocated["atmosphere"] += 1
        self.outstanding_atmospheres += 1
        self.max_outstanding_atmospheres = max(
            self.max_outstanding_atmospheres, self.outstanding_atmospheres
        )
        return extended

    def release_atmosphere(self, extended):
        super().release_atmosphere(extended)
        self.outstanding_atmospheres -= 1
        self._release("atmosphere")

    def allocate_optics(self, n_layers, n_legendre_terms, n_phase_elements):
        self.allocated["optics"] += 1
        return super().allocate_optics(n_layers, n_legendre_terms, n_phase_elements)

    def release_optics(self, optics):
        super().release_optics(optics)
        self._release("optics")

    def allocate_surface_optics(self, n_angles, n_stokes):
        self.allocated["surface_optics"] += 1
        return super().allocate_surface_optics(n_angles, n_stokes)

    def release_surface_optics(self, sfc_optics):
        super().release_surface_optics(sfc_optics)
        self._release("surface_optics")

    def allocate_predictor(self, sensor, atm, view):
        self.allocated["predictor"] += 1
        return super().allocate_predictor(sensor, atm, view)

    def release_predictor(self, predictor):
        super().release_predictor(predictor)
        self._release("predictor")

    def allocate_rt_workspace(self):
        self.allocated["rt_workspace"] += 1
        return super().allocate_rt_workspace()

    def release_rt_workspace(self, rt_workspace):
        super().release_rt_workspace(rt_workspace)
        self._release("rt_workspace")

    def compute_absorption(self, sensor_input, sensor, channel_index, predictor, optics):
        self.absorption_calls += 1
        if self.absorption_calls == self.fail_absorption_on:
            raise RuntimeError("absorption table exhausted")
        super().compute_absorption(sensor_input, sensor, channel_index, predictor, optics)

    def compute_cloud_scatter(self, atm, sensor, channel_index, optics):
        self.cloud_legendre_terms.append(optics.n_legendre_terms)
        super().compute_cloud_scatter(atm, sensor, channel_index, optics)

    def solve(self, atm, sfc, optics, sfc_optics, view, sensor, channel_index,
              mth_azi, rt_workspace):
        call = {
            "sensor_id": sensor.sensor_id,
            "channel_index": int(channel_index),
            "mth_azi": mth_azi,
            "n_legendre_terms": optics.n_legendre_terms,
            "compute_switch": sfc_optics.compute_switch,
            "emissivity": float(sfc_optics.emissivity[0, 0]),
            "reflectivity": float(sfc_optics.reflectivity[0, 0, 0, 0]),
            "direct_reflectivity": float(sfc_optics.direct_reflectivity[0, 0]),
            "has_workspace": rt_workspace is not None,
        }
        call["contribution"] = super().solve(atm, sfc, optics, sfc_optics, view, sensor,
                                             channel_index, mth_azi, rt_workspace)
        self.solves.append(call)
        return call["contribution"]

    def orders(self, sensor_id, channel_index):
        """Fourier orders solved for one channel, in call order."""
        return [
            call["mth_azi"] for call in self.solves
            if call["sensor_id"] == sensor_id and call["channel_index"] == channel_index
        ]

    def contributions(self, sensor_id, channel_index):
        """Radiance returned for each Fourier order of one channel."""
        return [
            call["contribution"] for call in self.solves
            if call["sensor_id"] == sensor_id and call["channel_index"] == channel_index
        ]


def _make_profile(top=100.0, n_layers=10, clouds=None):
    level_p = np.linspace(top, 1000.0, n_layers + 1)
    absorber = np.column_stack([
        np.linspace(0.01, 2.0, n_layers),   # water vapour
        np.full(n_layers, 1.0e-03),         # ozone
    ])
    return AtmosphericProfile(
        level_pressure=level_p,
        pressure=layer_pressure(level_p),
        temperature=np.linspace(220.0, 290.0, n_layers),
        absorber=absorber,
        clouds=clouds or [],
    )


@pytest.fixture
def backend():
    """Instrumented reference backend."""
    return RecordingBackend()


@pytest.fixture
def make_backend():
    """Factory for instrumented backends with injected failures."""
    return RecordingBackend


@pytest.fixture
def clear_profile():
    """Clear-sky profile from 100 hPa to the surface."""
    return _make_profile()


@pytest.fixture
def cloudy_profile():
    """Profile with a water cloud in the lower troposphere."""
    n_layers = 10
    radius = np.zeros(n_layers)
    content = np.zeros(n_layers)
    radius[6:8] = 10.0
    content[6:8] = 0.05
    cloud = Cloud(type="water", effective_radius=radius, water_content=content)
    return _make_profile(clouds=[cloud])


@pytest.fixture
def make_profile():
    """Factory for profiles."""
    return _make_profile


@pytest.fixture
def ocean_surface():
    """Open ocean surface."""
    return SurfaceState(water_coverage=1.0, water_temperature=290.0)


@pytest.fixture
def day_geometry():
    """Off-nadir daytime geometry at scan position 15."""
    return ViewGeometry(
        sensor_zenith=30.0,
        sensor_azimuth=0.0,
        source_zenith=40.0,
        source_azimuth=120.0,
        ifov=15,
    )


@pytest.fixture
def night_geometry():
    """Nadir geometry with the sun below the horizon."""
    return ViewGeometry(sensor_zenith=0.0, source_zenith=120.0)


@pytest.fixture
def infrared_sensor():
    """Three-channel infrared sounder."""
    return SensorCoefficients(
        sensor_id="hirs_n19",
        sensor_type=SensorType.INFRARED,
        sensor_channel=[1, 8, 12],
        wavenumber=[669.0, 900.0, 1400.0],
        absorption_coefficients=[
            [0.50, 0.00, 0.10, 5.0],
            [0.01, 0.00, 0.005, 0.0],
            [0.05, 0.00, 2.00, 0.0],
        ],
    )


@pytest.fixture
def microwave_sensor():
    """Three-channel cross-track microwave sounder with antenna efficiencies."""
    n_fovs, n_channels = 30, 3
    return SensorCoefficients(
        sensor_id="amsua_n19",
        sensor_type=SensorType.MICROWAVE,
        sensor_channel=[1, 3, 15],
        wavenumber=[0.7939, 1.6779, 2.9688],
        absorption_coefficients=[
            [0.01, 0.00],
            [0.50, 0.20],
            [0.05, 0.01],
        ],
        antenna_correction=AntennaCorrection(
            a_earth=np.full((n_fovs, n_channels), 0.97),
            a_space=np.full((n_fovs, n_channels), 0.01),
            a_platform=np.full((n_fovs, n_channels), 0.02),
        ),
    )


@pytest.fixture
def visible_sensor():
    """Three-channel visible imager; the middle channel has no solar irradiance."""
    return SensorCoefficients(
        sensor_id="abi_g16",
        sensor_type=SensorType.VISIBLE,
        sensor_channel=[1, 2, 3],
        wavenumber=[21000.0, 15600.0, 11600.0],
        solar_irradiance=[190.0, 0.0, 100.0],
    )


@pytest.fixture
def sensors(infrared_sensor, microwave_sensor, visible_sensor):
    """Coefficient catalog keyed by sensor index."""
    return {0: infrared_sensor, 1: microwave_sensor, 2: visible_sensor}


@pytest.fixture
def infrared_channels(infrared_sensor):
    return [channel_catalog(0, infrared_sensor)]


@pytest.fixture
def microwave_channels(microwave_sensor):
    return [channel_catalog(1, microwave_sensor)]


@pytest.fixture
def visible_channels(visible_sensor):
    return [channel_catalog(2, visible_sensor)]
