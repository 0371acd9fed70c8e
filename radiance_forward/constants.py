"""
Tunables and physical constants for the forward model.

This module contains constants used throughout the forward model,
including:

- Dimension limits for the profile, sensor and channel loops
- Scattering and Fourier-expansion limits
- Physical constants (Planck radiation constants, cosmic background)
- The reference upper-atmosphere climatology used to extend profiles
- Reference surface emissivities and particle optical properties

The dimension limits are module defaults; every ``ForwardModel`` instance
accepts its own values as keyword arguments.

References
----------
.. [1] U.S. Standard Atmosphere, 1976. NOAA-S/T 76-1562.
.. [2] Bodhaine et al. (1999), J. Atmos. Oceanic Technol., 16:1854-1861
"""

import numpy as np
from typing import Dict, Tuple

# =============================================================================
# Dimension Limits
# =============================================================================

#: Maximum number of profiles processed in one forward call
MAX_N_PROFILES: int = 10000

#: Maximum number of Legendre terms (streams) in the phase expansion
MAX_N_LEGENDRE_TERMS: int = 16

#: Maximum number of phase matrix elements
MAX_N_PHASE_ELEMENTS: int = 1

#: Maximum number of Stokes components
MAX_N_STOKES: int = 4

#: Maximum number of viewing angles in the surface optics
MAX_N_ANGLES: int = 16

#: Maximum azimuth Fourier order for visible channels
MAX_N_AZI: int = 6

#: Maximum source (solar) zenith angle [degrees] for an "active sun"
MAX_SOURCE_ZENITH_ANGLE: float = 85.0

#: Minimum Legendre terms when the Rayleigh phase function is active
MIN_VISIBLE_LEGENDRE_TERMS: int = 4

#: Streams added to the Legendre count to get the full stream count
N_EXTRA_STREAMS: int = 2

#: Single-scatter albedo below which a layer is treated as non-scattering
SCATTERING_ALBEDO_THRESHOLD: float = 1.0e-06

#: Sentinel scan position for the nominal (boresight) field of view
NOMINAL_FOV: int = 0

# =============================================================================
# Physical Constants
# =============================================================================

#: First Planck radiation constant [mW/(m^2.sr.cm^-4)]
PLANCK_C1: float = 1.191042953e-05

#: Second Planck radiation constant [K.cm]
PLANCK_C2: float = 1.4387773538

#: Cosmic background temperature [K]
T_COSMIC: float = 2.7253

#: Standard sea level atmospheric pressure [hPa]
STANDARD_PRESSURE: float = 1013.25

#: Standard temperature [K] for predictor normalisation
STANDARD_TEMPERATURE: float = 273.15

#: Standard CO2 concentration [ppm] for Rayleigh calculations
STANDARD_CO2_PPM: float = 360.0

#: Top-of-atmosphere pressure [hPa] profiles are extended to
TOA_PRESSURE: float = 0.005

# =============================================================================
# Reference Upper Atmosphere (Extender Climatology)
# =============================================================================

#: Name recorded in ExtensionState for layers synthesised from this table
REFERENCE_MODEL_NAME: str = "US Standard Atmosphere 1976"

#: Reference level pressures [hPa], top to bottom
REFERENCE_LEVEL_PRESSURE: np.ndarray = np.array([
    0.005, 0.0161, 0.0384, 0.0769, 0.137, 0.2244, 0.3454, 0.5064,
    0.714, 0.9753, 1.2972, 1.6872, 2.1526, 2.7009, 3.3398, 4.077,
    4.9204, 5.8776, 6.9567, 8.1655, 9.5119, 11.0038, 12.6492, 14.4559,
    16.4318, 18.5847, 20.9224, 23.4526, 26.1829, 29.121, 32.2744,
    35.6505, 39.2566, 43.1001, 47.1882, 51.5278, 56.126, 60.9895,
    66.1253, 71.5398, 77.2396, 83.231, 89.5204, 96.1138, 103.0172,
])

#: Reference level temperatures [K] matching REFERENCE_LEVEL_PRESSURE
REFERENCE_LEVEL_TEMPERATURE: np.ndarray = np.array([
    190.19, 203.65, 215.30, 226.87, 237.83, 247.50, 256.03, 263.48,
    267.09, 270.37, 266.42, 261.56, 256.40, 251.69, 247.32, 243.27,
    239.56, 236.07, 232.84, 229.84, 227.03, 224.34, 221.83, 219.57,
    217.58, 215.86, 214.41, 213.30, 212.44, 211.70, 211.13, 210.61,
    210.21, 209.87, 209.59, 209.36, 209.17, 209.01, 208.90, 208.83,
    208.80, 208.80, 208.80, 208.80, 208.80,
])

# =============================================================================
# Surface Reference Emissivities
# =============================================================================

#: Reference emissivity by surface type and sensor type
SURFACE_EMISSIVITY: Dict[str, Dict[str, float]] = {
    "land": {"microwave": 0.95, "infrared": 0.96, "visible": 0.85},
    "water": {"microwave": 0.55, "infrared": 0.98, "visible": 0.94},
    "snow": {"microwave": 0.90, "infrared": 0.99, "visible": 0.20},
    "ice": {"microwave": 0.92, "infrared": 0.98, "visible": 0.40},
}

# =============================================================================
# Reference Particle Optical Properties
# =============================================================================

#: Cloud (mass extinction [m^2/kg], single-scatter albedo, asymmetry) by type
CLOUD_OPTICS: Dict[str, Tuple[float, float, float]] = {
    "water": (120.0, 0.99, 0.85),
    "ice": (60.0, 0.98, 0.75),
    "rain": (15.0, 0.55, 0.90),
    "snow": (25.0, 0.70, 0.88),
    "graupel": (20.0, 0.60, 0.89),
    "hail": (10.0, 0.50, 0.92),
}

#: Aerosol (mass extinction [m^2/kg], single-scatter albedo, asymmetry) by type
AEROSOL_OPTICS: Dict[str, Tuple[float, float, float]] = {
    "dust": (600.0, 0.92, 0.72),
    "sea_salt": (900.0, 0.99, 0.78),
    "organic_carbon": (3000.0, 0.95, 0.65),
    "black_carbon": (8000.0, 0.25, 0.55),
    "sulfate": (4000.0, 0.99, 0.68),
}

#: Mie size parameter thresholds and the stream counts they select
STREAM_THRESHOLDS: Tuple[Tuple[float, int], ...] = (
    (0.01, 2),
    (1.0, 4),
    (5.0, 6),
    (10.0, 8),
    (20.0, 16),
)
