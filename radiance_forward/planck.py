"""
Planck radiance and brightness temperature in wavenumber form.

Channel conversions apply the sensor's polychromatic band correction,
T_eff = band_c1 + band_c2 * T.
"""

import numpy as np
from typing import Union

from .constants import PLANCK_C1, PLANCK_C2
from .sensors import SensorCoefficients


def planck_radiance(
    wavenumber: Union[float, np.ndarray],
    temperature: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Planck radiance [mW/(m^2.sr.cm^-1)].

    Parameters
    ----------
    wavenumber : float or array_like
        Wavenumber [cm^-1].
    temperature : float or array_like
        Temperature [K]; must be positive.
    """
    nu = np.asarray(wavenumber, dtype=float)
    t = np.asarray(temperature, dtype=float)
    # Very cold sources at short wavelengths underflow to zero radiance
    with np.errstate(over="ignore"):
        return PLANCK_C1 * nu**3 / np.expm1(PLANCK_C2 * nu / t)


def planck_temperature(
    wavenumber: Union[float, np.ndarray],
    radiance: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """Inverse of ``planck_radiance``; non-positive radiance maps to 0 K."""
    nu = np.asarray(wavenumber, dtype=float)
    r = np.asarray(radiance, dtype=float)
    safe = np.where(r > 0, r, 1.0)
    t = PLANCK_C2 * nu / np.log1p(PLANCK_C1 * nu**3 / safe)
    return np.where(r > 0, t, 0.0)


def channel_radiance(
    sensor: SensorCoefficients,
    channel_index: int,
    temperature: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """Band-corrected Planck radiance of a sensor channel."""
    t_eff = sensor.band_c1[channel_index] + sensor.band_c2[channel_index] * np.asarray(temperature)
    return planck_radiance(sensor.wavenumber[channel_index], t_eff)


def channel_temperature(
    sensor: SensorCoefficients,
    channel_index: int,
    radiance: float,
) -> float:
    """Brightness temperature of a sensor channel radiance."""
    if radiance <= 0:
        return 0.0
    t_eff = planck_temperature(sensor.wavenumber[channel_index], radiance)
    return float(
        (t_eff - sensor.band_c1[channel_index]) / sensor.band_c2[channel_index]
    )
