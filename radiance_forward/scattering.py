"""
Reference molecular, cloud and aerosol scattering.

Each contributor adds its extinction to the combined optical state's
optical depth, its scattering optical depth to the (not yet normalized)
single-scatter albedo accumulator and its scattering-weighted Legendre
moments to the phase coefficients. ``optics.combine_optics`` turns the
accumulated sums into normalized albedo and phase coefficients.

Phase coefficients are the normalized Legendre moments chi_k with

.. math::

    P(\\cos\\Theta) = \\sum_k (2k + 1) \\chi_k P_k(\\cos\\Theta),
    \\qquad \\chi_0 = 1

Only the first ``optics.n_legendre_terms + 1`` moments are accumulated.

References
----------
.. [1] Bodhaine, B.A., et al. (1999). On Rayleigh optical depth calculations.
       J. Atmos. Oceanic Technol., 16:1854-1861.
.. [2] Henyey, L.G. and Greenstein, J.L. (1941). Diffuse radiation in the
       galaxy. Astrophys. J., 93:70-83.
"""

import numpy as np
from typing import Union

from .atmosphere import AtmosphericProfile
from .constants import (
    AEROSOL_OPTICS,
    CLOUD_OPTICS,
    STANDARD_CO2_PPM,
    STANDARD_PRESSURE,
)
from .optics import CombinedOpticalState
from .sensors import SensorCoefficients


def wavenumber_to_wavelength(
    wavenumber: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """Convert wavenumber [cm^-1] to wavelength [nm]."""
    return 1.0e07 / np.asarray(wavenumber)


def rayleigh_optical_thickness(
    wavelength: Union[float, np.ndarray],
    pressure: float = STANDARD_PRESSURE,
    co2_ppm: float = STANDARD_CO2_PPM,
) -> Union[float, np.ndarray]:
    """
    Calculate Rayleigh optical thickness at given wavelength(s).

    Based on Bodhaine et al. (1999, Eq. 30) for a standard atmosphere,
    scaled linearly with surface pressure.

    Parameters
    ----------
    wavelength : float or array_like
        Wavelength in nanometers.
    pressure : float, optional
        Surface pressure in hPa (default: 1013.25 hPa).
    co2_ppm : float, optional
        CO2 concentration in ppm (default: 360 ppm).

    Returns
    -------
    float or ndarray
        Rayleigh optical thickness (dimensionless).

    Examples
    --------
    >>> tau = rayleigh_optical_thickness(550.0)  # about 0.098
    >>> tau_low = rayleigh_optical_thickness(550.0, pressure=900.0)
    """
    # Convert wavelength to micrometers
    lam = np.asarray(wavelength) / 1000.0

    numerator = 1.0455996 - 341.29061 * lam**(-2) - 0.90230850 * lam**2
    denominator = 1.0 + 0.0027059889 * lam**(-2) - 85.968563 * lam**2
    tau_r0 = 0.0021520 * (numerator / denominator)

    # Small CO2 adjustment relative to the 360 ppm reference
    tau_r0 = tau_r0 * (1.0 + 0.54 * (co2_ppm - STANDARD_CO2_PPM) * 1.0e-06)

    return (pressure / STANDARD_PRESSURE) * tau_r0


def rayleigh_depolarization_ratio(
    wavelength: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Calculate Rayleigh depolarization ratio.

    Parameters
    ----------
    wavelength : float or array_like
        Wavelength in nanometers.

    Returns
    -------
    float or ndarray
        Depolarization ratio (dimensionless), typically ~0.03.
    """
    lam = np.asarray(wavelength) / 1000.0
    return 0.0279 + 0.00013 / (lam**2)


def rayleigh_phase_coefficients(
    depolarization: float,
    n_terms: int,
) -> np.ndarray:
    """
    Legendre moments of the Rayleigh phase function.

    Only chi_0 = 1 and chi_2 = 0.1 (1 - rho) / (1 + rho / 2) are non-zero.

    Parameters
    ----------
    depolarization : float
        Depolarization ratio rho.
    n_terms : int
        Highest moment index to return; at least 2.
    """
    chi = np.zeros(n_terms + 1)
    chi[0] = 1.0
    chi[2] = 0.1 * (1.0 - depolarization) / (1.0 + depolarization / 2.0)
    return chi


def henyey_greenstein_coefficients(g: float, n_terms: int) -> np.ndarray:
    """Legendre moments g**k, k = 0..n_terms, of the Henyey-Greenstein function."""
    return g ** np.arange(n_terms + 1)


def _add_scatterer(
    optics: CombinedOpticalState,
    tau: np.ndarray,
    omega: Union[float, np.ndarray],
    chi: np.ndarray,
) -> None:
    """Accumulate one scatterer's extinction, scattering and moments."""
    bs = tau * omega
    n = optics.n_legendre_terms
    optics.optical_depth += tau
    optics.single_scatter_albedo += bs
    optics.phase_coefficient[: n + 1, 0, :] += chi[: n + 1, np.newaxis] * bs


def compute_molecular_scatter(
    wavenumber: float,
    atmosphere: AtmosphericProfile,
    optics: CombinedOpticalState,
) -> None:
    """
    Add Rayleigh scattering by air molecules.

    The column optical thickness at the surface pressure is distributed
    over the layers in proportion to their pressure thickness.

    Raises
    ------
    ValueError
        If the wavenumber is not positive or fewer than 2 Legendre terms
        are active.
    """
    if wavenumber <= 0:
        raise ValueError(f"Invalid wavenumber {wavenumber}")
    if optics.n_legendre_terms < 2:
        raise ValueError(
            f"Rayleigh scattering needs 2 Legendre terms, {optics.n_legendre_terms} active"
        )
    wavelength = wavenumber_to_wavelength(wavenumber)
    surface_pressure = atmosphere.level_pressure[-1]
    tau_column = rayleigh_optical_thickness(wavelength, pressure=surface_pressure)
    tau = tau_column * atmosphere.layer_thickness / surface_pressure

    chi = rayleigh_phase_coefficients(
        rayleigh_depolarization_ratio(wavelength), optics.n_legendre_terms
    )
    _add_scatterer(optics, tau, 1.0, chi)


def _size_factor(effective_radius: np.ndarray, wavenumber: float) -> np.ndarray:
    """Extinction efficiency scaling x^2 / (1 + x^2) from the Mie size parameter."""
    x = 2.0 * np.pi * effective_radius * wavenumber / 1.0e04
    return x**2 / (1.0 + x**2)


def compute_cloud_scatter(
    atmosphere: AtmosphericProfile,
    sensor: SensorCoefficients,
    channel_index: int,
    optics: CombinedOpticalState,
) -> None:
    """
    Add scattering by every cloud in the atmosphere.

    Raises
    ------
    ValueError
        For an unknown cloud type.
    """
    wavenumber = sensor.wavenumber[channel_index]
    for cloud in atmosphere.clouds:
        if cloud.type not in CLOUD_OPTICS:
            raise ValueError(f"Unknown cloud type '{cloud.type}'")
        k_ext, omega, g = CLOUD_OPTICS[cloud.type]
        tau = k_ext * _size_factor(cloud.effective_radius, wavenumber) * cloud.water_content
        chi = henyey_greenstein_coefficients(g, optics.n_legendre_terms)
        _add_scatterer(optics, tau, omega, chi)


def compute_aerosol_scatter(
    atmosphere: AtmosphericProfile,
    sensor: SensorCoefficients,
    channel_index: int,
    optics: CombinedOpticalState,
) -> None:
    """
    Add scattering by every aerosol in the atmosphere.

    Raises
    ------
    ValueError
        For an unknown aerosol type.
    """
    wavenumber = sensor.wavenumber[channel_index]
    for aerosol in atmosphere.aerosols:
        if aerosol.type not in AEROSOL_OPTICS:
            raise ValueError(f"Unknown aerosol type '{aerosol.type}'")
        k_ext, omega, g = AEROSOL_OPTICS[aerosol.type]
        tau = (
            k_ext
            * _size_factor(aerosol.effective_radius, wavenumber)
            * aerosol.concentration
        )
        chi = henyey_greenstein_coefficients(g, optics.n_legendre_terms)
        _add_scatterer(optics, tau, omega, chi)
