"""
Radiance results, stream counts and the Fourier-order solve loop.

Each channel's radiance is the sum of the solver's contributions over the
azimuthal Fourier orders 0..n_azi. Order 0 is the azimuth-averaged term and
is always solved; higher orders are only solved for visible channels with
an active sun. Orders are solved strictly in sequence because the solver
workspace carries state from order 0 to the later orders.

This module also holds the reference solver: a non-scattering emission
term plus single-scatter solar radiation.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.polynomial import legendre

from .atmosphere import AtmosphericProfile
from .constants import N_EXTRA_STREAMS, STREAM_THRESHOLDS, T_COSMIC
from .errors import stage
from .geometry import ViewGeometry
from .optics import ChannelControl, CombinedOpticalState
from .planck import channel_radiance, channel_temperature
from .sensors import SensorCoefficients, SensorType
from .surface import SurfaceOpticalState, SurfaceState, model_surface_optics

logger = logging.getLogger(__name__)

#: Azimuth quadrature points used for the phase function Fourier components
N_AZIMUTH_QUADRATURE = 64


@dataclass
class RadianceResult:
    """
    Forward model output for one channel of one profile.

    Attributes
    ----------
    radiance : float
        TOA radiance [mW/(m^2.sr.cm^-1)], summed over Fourier orders.
    brightness_temperature : float
        Brightness temperature [K]; 0 for visible and ultraviolet sensors.
    scattering_flag : bool
        True if the channel was solved with scattering.
    n_full_streams : int
        Number of streams used by the solver.
    solar_flag : bool
        True if the channel had an active sun.
    visible_flag : bool
        True if the visible Fourier expansion was used.
    n_azimuth_orders : int
        Number of Fourier orders solved.
    sensor_id : str
        Sensor the channel belongs to.
    sensor_channel : int
        Channel number.
    """

    radiance: float = 0.0
    brightness_temperature: float = 0.0
    scattering_flag: bool = False
    n_full_streams: int = 0
    solar_flag: bool = False
    visible_flag: bool = False
    n_azimuth_orders: int = 0
    sensor_id: str = ""
    sensor_channel: int = 0

    def reset(self, sensor_id: str = "", sensor_channel: int = 0) -> None:
        """Overwrite all fields for a new computation."""
        self.radiance = 0.0
        self.brightness_temperature = 0.0
        self.scattering_flag = False
        self.n_full_streams = 0
        self.solar_flag = False
        self.visible_flag = False
        self.n_azimuth_orders = 0
        self.sensor_id = sensor_id
        self.sensor_channel = sensor_channel


def allocate_results(n_channels: int, n_profiles: int) -> np.ndarray:
    """
    Allocate a results container.

    Returns
    -------
    ndarray
        Object array of shape (n_channels, n_profiles) holding a fresh
        ``RadianceResult`` in every cell.
    """
    results = np.empty((n_channels, n_profiles), dtype=object)
    for index in np.ndindex(results.shape):
        results[index] = RadianceResult()
    return results


@dataclass
class RTWorkspace:
    """
    Solver state shared by the Fourier orders of one channel.

    Allocated per sensor when scattering or the visible expansion may be
    needed. ``clear`` is called before every channel so no channel sees
    another channel's intermediate state.

    Attributes
    ----------
    mth_azi : int
        Fourier order being solved.
    visible_active : bool
        Whether the current channel uses the visible expansion.
    layer_weight : ndarray, optional
        Single-scatter layer weights cached by order 0.
    phase_table : ndarray, optional
        Layer phase function on the azimuth quadrature, cached by order 0.
    """

    mth_azi: int = 0
    visible_active: bool = False
    layer_weight: Optional[np.ndarray] = None
    phase_table: Optional[np.ndarray] = None
    released: bool = False

    def clear(self) -> None:
        self.mth_azi = 0
        self.visible_active = False
        self.layer_weight = None
        self.phase_table = None

    def release(self) -> None:
        if self.released:
            raise RuntimeError("RTWorkspace already released")
        self.released = True


def compute_stream_count(
    atmosphere: AtmosphericProfile,
    sensor: SensorCoefficients,
    channel_index: int,
    result: RadianceResult,
) -> int:
    """
    Number of Legendre terms (streams) needed for a channel.

    Clear atmospheres need none. Otherwise the count is selected from the
    largest Mie size parameter of the clouds and aerosols present.

    Parameters
    ----------
    atmosphere : AtmosphericProfile
        The extended atmosphere.
    sensor : SensorCoefficients
        Sensor coefficients.
    channel_index : int
        Channel index into the coefficients.
    result : RadianceResult
        Receives ``scattering_flag`` and ``n_full_streams``.

    Returns
    -------
    int
        Number of streams, 0 for a clear atmosphere.
    """
    if atmosphere.n_clouds == 0 and atmosphere.n_aerosols == 0:
        result.scattering_flag = False
        result.n_full_streams = 0
        return 0

    max_radius = max(
        [float(np.max(cloud.effective_radius)) for cloud in atmosphere.clouds]
        + [float(np.max(aerosol.effective_radius)) for aerosol in atmosphere.aerosols]
    )
    wavelength_um = 1.0e04 / sensor.wavenumber[channel_index]
    mie_parameter = 2.0 * np.pi * max_radius / wavelength_um

    n_streams = STREAM_THRESHOLDS[-1][1]
    for limit, streams in STREAM_THRESHOLDS:
        if mie_parameter < limit:
            n_streams = streams
            break

    result.scattering_flag = True
    result.n_full_streams = n_streams + N_EXTRA_STREAMS
    return n_streams


def _azimuth_grid() -> np.ndarray:
    """Midpoint quadrature nodes on [0, pi]."""
    return (np.arange(N_AZIMUTH_QUADRATURE) + 0.5) * np.pi / N_AZIMUTH_QUADRATURE


def _phase_table(optics: CombinedOpticalState, geometry: ViewGeometry) -> np.ndarray:
    """Layer phase functions on the azimuth grid, shape (n_layers, n_quad)."""
    mu = geometry.sensor_cosine
    mu0 = geometry.source_cosine
    phi = _azimuth_grid()
    cos_theta = -mu * mu0 + np.sqrt(1.0 - mu**2) * np.sqrt(1.0 - mu0**2) * np.cos(phi)
    n = optics.n_legendre_terms
    k = np.arange(n + 1)[:, np.newaxis]
    moments = (2 * k + 1) * optics.phase_coefficient[: n + 1, 0, :]
    return legendre.legval(cos_theta, moments)


def _thermal_radiance(
    optics: CombinedOpticalState,
    sfc_optics: SurfaceOpticalState,
    atmosphere: AtmosphericProfile,
    geometry: ViewGeometry,
    sensor: SensorCoefficients,
    channel_index: int,
) -> float:
    """Upwelling emission with surface emission and reflected downwelling."""
    secant = geometry.secant_sensor_zenith
    layer_trans = np.exp(-optics.optical_depth * secant)
    trans_above = np.concatenate([[1.0], np.cumprod(layer_trans)[:-1]])
    trans_below = np.concatenate([np.cumprod(layer_trans[::-1])[::-1][1:], [1.0]])
    total = float(np.prod(layer_trans))

    source = (1.0 - optics.single_scatter_albedo) * channel_radiance(
        sensor, channel_index, atmosphere.temperature
    )
    emission = source * (1.0 - layer_trans)
    upwelling = float(np.sum(emission * trans_above))
    downwelling = float(np.sum(emission * trans_below))
    downwelling += total * float(channel_radiance(sensor, channel_index, T_COSMIC))

    emissivity = sfc_optics.emissivity[0, 0]
    reflectivity = sfc_optics.reflectivity[0, 0, 0, 0]
    surface = emissivity * float(
        channel_radiance(sensor, channel_index, sfc_optics.surface_temperature)
    )
    return upwelling + total * (surface + reflectivity * downwelling)


def solve_rt(
    atmosphere: AtmosphericProfile,
    surface: SurfaceState,
    optics: CombinedOpticalState,
    sfc_optics: SurfaceOpticalState,
    geometry: ViewGeometry,
    sensor: SensorCoefficients,
    channel_index: int,
    mth_azi: int,
    rt_workspace: Optional[RTWorkspace] = None,
) -> float:
    """
    Reference solver: radiance contribution of one Fourier order.

    Order 0 carries the thermal emission, the azimuth-averaged single
    scattered solar radiance and the surface-reflected direct beam. Order
    m > 0 carries the m-th azimuthal component of the single scattered
    solar radiance and needs the layer weights cached by order 0.

    Raises
    ------
    RuntimeError
        If a higher order is requested before order 0 filled the workspace.
    ValueError
        If a higher order is requested without a workspace.
    """
    visible = rt_workspace is not None and rt_workspace.visible_active

    if mth_azi == 0:
        if sfc_optics.compute_switch:
            model_surface_optics(surface, sensor, sfc_optics)
        radiance = _thermal_radiance(
            optics, sfc_optics, atmosphere, geometry, sensor, channel_index
        )
        if not visible:
            return radiance

        mu = geometry.sensor_cosine
        mu0 = geometry.source_cosine
        air_mass = 1.0 / mu + 1.0 / mu0
        tau = optics.optical_depth
        tau_above = np.concatenate([[0.0], np.cumsum(tau)[:-1]])
        rt_workspace.layer_weight = (
            optics.single_scatter_albedo
            * (1.0 - np.exp(-tau * air_mass))
            * np.exp(-tau_above * air_mass)
            * mu0 / (mu0 + mu)
        )
        rt_workspace.phase_table = _phase_table(optics, geometry)

        f0 = sensor.solar_irradiance[channel_index]
        direct = (
            f0 * mu0 / np.pi
            * sfc_optics.direct_reflectivity[0, 0]
            * np.exp(-np.sum(tau) * air_mass)
        )
        return radiance + direct + _solar_component(rt_workspace, sensor, channel_index, geometry, 0)

    if rt_workspace is None:
        raise ValueError(f"Fourier order {mth_azi} requested without a solver workspace")
    if rt_workspace.layer_weight is None:
        raise RuntimeError(f"Fourier order {mth_azi} solved before order 0")
    return _solar_component(rt_workspace, sensor, channel_index, geometry, mth_azi)


def _solar_component(
    rt_workspace: RTWorkspace,
    sensor: SensorCoefficients,
    channel_index: int,
    geometry: ViewGeometry,
    mth_azi: int,
) -> float:
    """m-th Fourier term of the single scattered solar radiance."""
    phi = _azimuth_grid()
    p_m = np.mean(rt_workspace.phase_table * np.cos(mth_azi * phi), axis=-1)
    weight = 1.0 if mth_azi == 0 else 2.0
    f0 = sensor.solar_irradiance[channel_index]
    return float(
        f0 / (4.0 * np.pi)
        * weight * np.cos(mth_azi * geometry.relative_azimuth_rad)
        * np.sum(rt_workspace.layer_weight * p_m)
    )


def run_fourier_loop(
    backend,
    atmosphere: AtmosphericProfile,
    surface: SurfaceState,
    optics: CombinedOpticalState,
    sfc_optics: SurfaceOpticalState,
    geometry: ViewGeometry,
    sensor: SensorCoefficients,
    channel_index: int,
    result: RadianceResult,
    control: ChannelControl,
    rt_workspace: Optional[RTWorkspace],
    profile: int,
    sensor_channel: int,
) -> None:
    """
    Solve Fourier orders 0..n_azi in sequence and accumulate the radiance.

    The result's radiance is zeroed first. After the loop the number of
    orders is recorded and, for non-visible sensors, the brightness
    temperature is derived from the accumulated radiance.

    Raises
    ------
    StageError
        If the solver fails at any order.
    """
    if rt_workspace is not None:
        rt_workspace.clear()
        rt_workspace.visible_active = control.visible_active

    result.radiance = 0.0
    for mth_azi in range(control.n_azi + 1):
        sfc_optics.mth_azi = mth_azi
        if rt_workspace is not None:
            rt_workspace.mth_azi = mth_azi
        with stage(
            "solve", "computing RTSolution", profile, sensor.sensor_id, sensor_channel
        ):
            contribution = backend.solve(
                atmosphere,
                surface,
                optics,
                sfc_optics,
                geometry,
                sensor,
                channel_index,
                mth_azi,
                rt_workspace,
            )
        result.radiance += contribution

    result.n_azimuth_orders = control.n_azi + 1
    logger.debug(
        f"{sensor.sensor_id} channel {sensor_channel}: {result.n_azimuth_orders} "
        f"Fourier orders, radiance {result.radiance:.6g}"
    )
    if sensor.sensor_type in (SensorType.VISIBLE, SensorType.ULTRAVIOLET):
        result.brightness_temperature = 0.0
    else:
        result.brightness_temperature = channel_temperature(
            sensor, channel_index, result.radiance
        )
