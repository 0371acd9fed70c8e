"""
Combined optical state and the optical property accumulator.

For every channel the accumulator resets the profile's combined optical
state to a zero-scattering baseline and then adds, in order:

1. gas absorption (always)
2. molecular (Rayleigh) scattering, for visible sensors under an active sun
3. cloud scattering, if the atmosphere has clouds
4. aerosol scattering, if the atmosphere has aerosols

before the combiner normalizes the sums. The active Legendre-term count is
set from the stream count and can only widen within a channel; a
widening applies to every later contributor.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from .constants import (
    MAX_N_LEGENDRE_TERMS,
    MAX_N_PHASE_ELEMENTS,
    MIN_VISIBLE_LEGENDRE_TERMS,
    N_EXTRA_STREAMS,
    SCATTERING_ALBEDO_THRESHOLD,
)
from .errors import stage

logger = logging.getLogger(__name__)


@dataclass
class CombinedOpticalState:
    """
    Layer optical properties for the channel being computed.

    While contributors accumulate, ``single_scatter_albedo`` holds the
    scattering optical depth and ``phase_coefficient`` the
    scattering-weighted moments; ``combine_optics`` normalizes both.

    Attributes
    ----------
    n_layers : int
        Number of atmosphere layers.
    max_legendre_terms : int
        Capacity of the Legendre dimension.
    max_phase_elements : int
        Capacity of the phase element dimension.
    optical_depth : ndarray
        Layer optical depth, shape (n_layers,).
    single_scatter_albedo : ndarray
        Layer single-scatter albedo, shape (n_layers,).
    phase_coefficient : ndarray
        Shape (max_legendre_terms + 1, max_phase_elements, n_layers).
    delta_truncation : ndarray
        Delta-M truncation factor, shape (n_layers,).
    n_legendre_terms : int
        Active number of Legendre terms.
    n_phase_elements : int
        Active number of phase elements.
    """

    n_layers: int
    max_legendre_terms: int = MAX_N_LEGENDRE_TERMS
    max_phase_elements: int = MAX_N_PHASE_ELEMENTS
    optical_depth: np.ndarray = field(init=False)
    single_scatter_albedo: np.ndarray = field(init=False)
    phase_coefficient: np.ndarray = field(init=False)
    delta_truncation: np.ndarray = field(init=False)
    n_legendre_terms: int = 0
    n_phase_elements: int = 1
    released: bool = False

    def __post_init__(self):
        if self.n_layers < 1:
            raise ValueError(f"Invalid number of layers {self.n_layers}")
        self.optical_depth = np.zeros(self.n_layers)
        self.single_scatter_albedo = np.zeros(self.n_layers)
        self.phase_coefficient = np.zeros(
            (self.max_legendre_terms + 1, self.max_phase_elements, self.n_layers)
        )
        self.delta_truncation = np.zeros(self.n_layers)

    def reset(self) -> None:
        """Reset to the zero-scattering baseline."""
        self.optical_depth.fill(0.0)
        self.single_scatter_albedo.fill(0.0)
        self.phase_coefficient.fill(0.0)
        self.delta_truncation.fill(0.0)
        self.n_legendre_terms = 0
        self.n_phase_elements = 1

    def widen_legendre(self, n_terms: int) -> None:
        """
        Raise the active Legendre-term count to at least ``n_terms``.

        Raises
        ------
        ValueError
            If ``n_terms`` exceeds the buffer capacity.
        """
        if n_terms > self.max_legendre_terms:
            raise ValueError(
                f"{n_terms} Legendre terms requested, capacity is {self.max_legendre_terms}"
            )
        if n_terms > self.n_legendre_terms:
            self.n_legendre_terms = n_terms

    def release(self) -> None:
        if self.released:
            raise RuntimeError("CombinedOpticalState already released")
        self.released = True


@dataclass
class ChannelControl:
    """
    Per-channel solar/visible classification.

    Attributes
    ----------
    solar_active : bool
        Channel has solar irradiance and the sun is above the configured
        maximum zenith angle.
    visible_active : bool
        ``solar_active`` and the sensor is a visible sensor.
    n_azi : int
        Highest Fourier order to solve.
    """

    solar_active: bool = False
    visible_active: bool = False
    n_azi: int = 0


def combine_optics(optics: CombinedOpticalState) -> None:
    """
    Normalize the accumulated scattering into albedo and phase moments.

    Layers whose single-scatter albedo does not exceed
    ``SCATTERING_ALBEDO_THRESHOLD`` are treated as purely absorbing. For
    scattering layers the moments are divided by the scattering optical
    depth, the delta-M truncation factor is taken from the first moment
    past the active count and optical depth and albedo are delta-scaled.
    """
    tau = optics.optical_depth
    bs = optics.single_scatter_albedo
    n = optics.n_legendre_terms

    omega = np.zeros_like(tau)
    np.divide(bs, tau, out=omega, where=tau > 0)
    scattering = omega > SCATTERING_ALBEDO_THRESHOLD

    optics.single_scatter_albedo[~scattering] = 0.0
    optics.phase_coefficient[:, :, ~scattering] = 0.0
    optics.delta_truncation[~scattering] = 0.0
    if not np.any(scattering):
        return

    phase = optics.phase_coefficient[:, :, scattering] / bs[scattering]
    phase[0, 0, :] = 1.0
    f = phase[n, 0, :].copy() if n > 0 else np.zeros(phase.shape[-1])
    phase[: n, 0, :] = (phase[: n, 0, :] - f) / (1.0 - f)
    phase[n:, :, :] = 0.0
    if n == 0:
        phase[0, 0, :] = 1.0

    w = omega[scattering]
    optics.phase_coefficient[:, :, scattering] = phase
    optics.delta_truncation[scattering] = f
    optics.optical_depth[scattering] = tau[scattering] * (1.0 - f * w)
    optics.single_scatter_albedo[scattering] = (1.0 - f) * w / (1.0 - f * w)


def accumulate_optics(
    backend,
    optics: CombinedOpticalState,
    atmosphere,
    sensor,
    channel_index: int,
    predictor,
    geometry,
    sensor_input,
    result,
    max_n_azi: int,
    max_source_zenith_angle: float,
    profile: int,
    sensor_channel: int,
) -> ChannelControl:
    """
    Build the combined optical state for one channel.

    Parameters
    ----------
    backend : PhysicsBackend
        Provides the stream count and the physics contributors.
    optics : CombinedOpticalState
        The profile's reusable buffer; reset here.
    atmosphere : ExtendedAtmosphere
        The extended atmosphere.
    sensor : SensorCoefficients
        Coefficients of the sensor being processed.
    channel_index : int
        Channel index into the sensor coefficients.
    predictor : PredictorSet
        The sensor's predictors.
    geometry : ViewGeometry
        Derived geometry.
    sensor_input : SensorInput
        Auxiliary sensor input from the profile's options.
    result : RadianceResult
        Receives the stream count and scattering/solar/visible flags.
    max_n_azi : int
        Fourier order limit for visible channels.
    max_source_zenith_angle : float
        Solar zenith angle [deg] below which the sun is active.
    profile : int
        Profile index, for messages.
    sensor_channel : int
        Channel number, for messages.

    Returns
    -------
    ChannelControl
        Solar/visible classification and Fourier order count.

    Raises
    ------
    StageError
        If any contributor fails.
    """
    sensor_id = sensor.sensor_id
    context = dict(profile=profile, sensor_id=sensor_id, channel=sensor_channel)

    optics.reset()

    with stage("streams", "computing nStreams", **context):
        n_streams = backend.compute_stream_count(atmosphere, sensor, channel_index, result)
        optics.widen_legendre(n_streams)

    with stage("absorption", "computing AtmAbsorption", **context):
        backend.compute_absorption(sensor_input, sensor, channel_index, predictor, optics)

    control = ChannelControl()
    control.solar_active = bool(
        sensor.solar_irradiance[channel_index] > 0.0
        and geometry.source_zenith < max_source_zenith_angle
    )
    if sensor.is_visible and control.solar_active:
        control.visible_active = True
        control.n_azi = max_n_azi
        if optics.n_legendre_terms < MIN_VISIBLE_LEGENDRE_TERMS:
            optics.widen_legendre(MIN_VISIBLE_LEGENDRE_TERMS)
            result.scattering_flag = True
            result.n_full_streams = optics.n_legendre_terms + N_EXTRA_STREAMS
        with stage("molecular_scatter", "computing MoleculeScatter", **context):
            backend.compute_molecular_scatter(
                sensor.wavenumber[channel_index], atmosphere, optics
            )

    if atmosphere.n_clouds > 0:
        with stage("cloud_scatter", "computing CloudScatter", **context):
            backend.compute_cloud_scatter(atmosphere, sensor, channel_index, optics)

    if atmosphere.n_aerosols > 0:
        with stage("aerosol_scatter", "computing AerosolScatter", **context):
            backend.compute_aerosol_scatter(atmosphere, sensor, channel_index, optics)

    with stage("combine", "combining AtmOptics", **context):
        backend.combine(optics)

    result.solar_flag = control.solar_active
    result.visible_flag = control.visible_active
    logger.debug(
        f"{sensor_id} channel {sensor_channel}: {optics.n_legendre_terms} Legendre "
        f"terms, visible={control.visible_active}"
    )
    return control
