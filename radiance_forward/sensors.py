"""
Sensor coefficient catalog and per-sensor channel selections.

Sensor coefficients are passed explicitly to the forward model as a
read-only mapping from sensor index to ``SensorCoefficients``; there is no
process-wide coefficient table. A ``ChannelCatalog`` selects the channels
of one sensor that a forward call should compute.
"""

import enum
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import numpy as np


class SensorType(enum.Enum):
    """Spectral region of a sensor."""

    MICROWAVE = "microwave"
    INFRARED = "infrared"
    VISIBLE = "visible"
    ULTRAVIOLET = "ultraviolet"


@dataclass
class AntennaCorrection:
    """
    Antenna efficiency coefficients of a cross-track microwave sensor.

    All arrays have shape (n_fovs, n_channels).

    Attributes
    ----------
    a_earth : ndarray
        Fraction of the antenna pattern viewing the Earth.
    a_space : ndarray
        Fraction viewing cold space.
    a_platform : ndarray
        Fraction viewing the platform.
    """

    a_earth: np.ndarray
    a_space: np.ndarray
    a_platform: np.ndarray

    def __post_init__(self):
        self.a_earth = np.atleast_2d(np.asarray(self.a_earth, dtype=float))
        self.a_space = np.atleast_2d(np.asarray(self.a_space, dtype=float))
        self.a_platform = np.atleast_2d(np.asarray(self.a_platform, dtype=float))
        if not (self.a_earth.shape == self.a_space.shape == self.a_platform.shape):
            raise ValueError("Antenna correction arrays must share one shape")

    @property
    def n_fovs(self) -> int:
        return self.a_earth.shape[0]


@dataclass
class SensorCoefficients:
    """
    Spectral coefficients of one sensor.

    Attributes
    ----------
    sensor_id : str
        Sensor identifier, e.g. ``"amsua_n19"``.
    sensor_type : SensorType
        Spectral region of the sensor.
    sensor_channel : ndarray
        Channel numbers, shape (n_channels,).
    wavenumber : ndarray
        Channel central wavenumbers [cm^-1], shape (n_channels,).
    solar_irradiance : ndarray, optional
        Channel solar irradiance [mW/(m^2.cm^-1)]. Defaults to zero.
    band_c1, band_c2 : ndarray, optional
        Polychromatic band correction, T_eff = band_c1 + band_c2 * T.
        Default to 0 and 1.
    absorption_coefficients : ndarray, optional
        Gas absorption regression coefficients, shape
        (n_channels, n_predictors). Default is a transparent atmosphere.
    antenna_correction : AntennaCorrection, optional
        Antenna efficiencies; None if the sensor has no known pattern.
    """

    sensor_id: str
    sensor_type: SensorType
    sensor_channel: np.ndarray
    wavenumber: np.ndarray
    solar_irradiance: Optional[np.ndarray] = None
    band_c1: Optional[np.ndarray] = None
    band_c2: Optional[np.ndarray] = None
    absorption_coefficients: Optional[np.ndarray] = None
    antenna_correction: Optional[AntennaCorrection] = None

    def __post_init__(self):
        self.sensor_channel = np.asarray(self.sensor_channel, dtype=int)
        self.wavenumber = np.asarray(self.wavenumber, dtype=float)
        n = len(self.sensor_channel)
        if self.wavenumber.shape != (n,):
            raise ValueError(
                f"{self.sensor_id}: {len(self.wavenumber)} wavenumbers "
                f"for {n} channels"
            )
        if self.solar_irradiance is None:
            self.solar_irradiance = np.zeros(n)
        if self.band_c1 is None:
            self.band_c1 = np.zeros(n)
        if self.band_c2 is None:
            self.band_c2 = np.ones(n)
        if self.absorption_coefficients is None:
            self.absorption_coefficients = np.zeros((n, 0))
        self.solar_irradiance = np.asarray(self.solar_irradiance, dtype=float)
        self.band_c1 = np.asarray(self.band_c1, dtype=float)
        self.band_c2 = np.asarray(self.band_c2, dtype=float)
        self.absorption_coefficients = np.atleast_2d(
            np.asarray(self.absorption_coefficients, dtype=float)
        )
        for name in ("solar_irradiance", "band_c1", "band_c2"):
            if getattr(self, name).shape != (n,):
                raise ValueError(f"{self.sensor_id}: {name} must have shape ({n},)")
        if self.absorption_coefficients.shape[0] != n:
            raise ValueError(
                f"{self.sensor_id}: absorption_coefficients must have {n} rows"
            )
        if (
            self.antenna_correction is not None
            and self.antenna_correction.a_earth.shape[1] != n
        ):
            raise ValueError(
                f"{self.sensor_id}: antenna correction must have {n} channel columns"
            )

    @property
    def n_channels(self) -> int:
        return len(self.sensor_channel)

    @property
    def is_visible(self) -> bool:
        return self.sensor_type is SensorType.VISIBLE

    @property
    def has_antenna_correction(self) -> bool:
        return self.antenna_correction is not None


@dataclass
class ChannelCatalog:
    """
    Channels of one sensor requested from a forward call.

    Attributes
    ----------
    sensor_id : str
        Sensor identifier, used in messages.
    sensor_index : int
        Key of the sensor in the coefficient catalog.
    channel_index : ndarray
        Indices into the sensor's coefficient arrays, in output order.
    sensor_channel : ndarray
        Channel numbers matching ``channel_index``.
    """

    sensor_id: str
    sensor_index: int
    channel_index: np.ndarray
    sensor_channel: np.ndarray

    def __post_init__(self):
        self.channel_index = np.asarray(self.channel_index, dtype=int)
        self.sensor_channel = np.asarray(self.sensor_channel, dtype=int)
        if self.channel_index.shape != self.sensor_channel.shape:
            raise ValueError(
                f"{self.sensor_id}: channel_index and sensor_channel differ in length"
            )

    @property
    def n_channels(self) -> int:
        return len(self.channel_index)


def channel_catalog(
    sensor_index: int,
    coefficients: SensorCoefficients,
    channels: Optional[Sequence[int]] = None,
) -> ChannelCatalog:
    """
    Build the channel selection for a sensor.

    Parameters
    ----------
    sensor_index : int
        Key of the sensor in the coefficient catalog.
    coefficients : SensorCoefficients
        The sensor's coefficients.
    channels : sequence of int, optional
        Channel numbers to select, in output order. All channels if None.

    Raises
    ------
    ValueError
        If a requested channel is not a channel of the sensor.
    """
    if channels is None:
        index = np.arange(coefficients.n_channels)
    else:
        lookup = {int(ch): i for i, ch in enumerate(coefficients.sensor_channel)}
        missing = [ch for ch in channels if int(ch) not in lookup]
        if missing:
            raise ValueError(
                f"Channels {missing} are not channels of {coefficients.sensor_id}"
            )
        index = np.array([lookup[int(ch)] for ch in channels], dtype=int)
    return ChannelCatalog(
        sensor_id=coefficients.sensor_id,
        sensor_index=sensor_index,
        channel_index=index,
        sensor_channel=coefficients.sensor_channel[index],
    )


def total_channels(channel_info: Sequence[ChannelCatalog]) -> int:
    """Total number of requested channels across all sensors."""
    return sum(catalog.n_channels for catalog in channel_info)


def resolve_sensor(
    sensors: Mapping[int, SensorCoefficients],
    catalog: ChannelCatalog,
) -> SensorCoefficients:
    """
    Look up the coefficients for a channel selection.

    Raises
    ------
    KeyError
        If the sensor index is not in the catalog.
    """
    if catalog.sensor_index not in sensors:
        raise KeyError(
            f"No coefficients loaded for sensor {catalog.sensor_id} "
            f"(index {catalog.sensor_index})"
        )
    return sensors[catalog.sensor_index]
