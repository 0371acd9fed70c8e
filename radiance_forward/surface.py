"""
Surface state and the per-channel surface optical state.

The surface optical state is a reusable per-profile buffer holding the
emissivity and reflectivities for the channel being computed. By default
these are computed from a surface model inside the solver; a caller can
override them through ``Options``.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .constants import MAX_N_ANGLES, MAX_N_STOKES, SURFACE_EMISSIVITY
from .options import Options
from .sensors import SensorCoefficients


@dataclass
class SurfaceState:
    """
    Surface type mixture of one profile.

    Coverages are fractions in [0, 1] and should sum to 1. Temperatures
    are skin temperatures [K].
    """

    land_coverage: float = 0.0
    water_coverage: float = 1.0
    snow_coverage: float = 0.0
    ice_coverage: float = 0.0
    land_temperature: float = 283.0
    water_temperature: float = 283.0
    snow_temperature: float = 263.0
    ice_temperature: float = 263.0

    @property
    def coverage(self) -> dict:
        return {
            "land": self.land_coverage,
            "water": self.water_coverage,
            "snow": self.snow_coverage,
            "ice": self.ice_coverage,
        }


@dataclass
class SurfaceOpticalState:
    """
    Surface optics for the channel being computed.

    Attributes
    ----------
    n_angles : int
        Number of stream angles the arrays are dimensioned for.
    n_stokes : int
        Number of Stokes components.
    emissivity : ndarray
        Shape (n_angles, n_stokes).
    reflectivity : ndarray
        Shape (n_angles, n_stokes, n_angles, n_stokes).
    direct_reflectivity : ndarray
        Shape (n_angles, n_stokes).
    compute_switch : bool
        True when the solver should compute the surface optics from the
        surface model; False when the caller supplied them.
    surface_temperature : float
        Coverage-weighted skin temperature [K], set once per profile.
    mth_azi : int
        Fourier order currently being solved.
    """

    n_angles: int = MAX_N_ANGLES
    n_stokes: int = MAX_N_STOKES
    emissivity: np.ndarray = field(init=False)
    reflectivity: np.ndarray = field(init=False)
    direct_reflectivity: np.ndarray = field(init=False)
    compute_switch: bool = True
    surface_temperature: float = 0.0
    mth_azi: int = 0
    released: bool = False

    def __post_init__(self):
        if self.n_angles < 1 or self.n_stokes < 1:
            raise ValueError(
                f"Invalid surface optics dimensions ({self.n_angles}, {self.n_stokes})"
            )
        self.emissivity = np.zeros((self.n_angles, self.n_stokes))
        self.reflectivity = np.zeros(
            (self.n_angles, self.n_stokes, self.n_angles, self.n_stokes)
        )
        self.direct_reflectivity = np.zeros((self.n_angles, self.n_stokes))

    def reset(self) -> None:
        """Reset to "compute from model" for a new channel."""
        self.emissivity.fill(0.0)
        self.reflectivity.fill(0.0)
        self.direct_reflectivity.fill(0.0)
        self.compute_switch = True
        self.mth_azi = 0

    def release(self) -> None:
        if self.released:
            raise RuntimeError("SurfaceOpticalState already released")
        self.released = True


def compute_surface_temperature(
    surface: SurfaceState,
    sfc_optics: SurfaceOpticalState,
) -> None:
    """
    Set the coverage-weighted surface temperature.

    Parameters
    ----------
    surface : SurfaceState
        The profile's surface.
    sfc_optics : SurfaceOpticalState
        Buffer receiving ``surface_temperature``.
    """
    sfc_optics.surface_temperature = (
        surface.land_coverage * surface.land_temperature
        + surface.water_coverage * surface.water_temperature
        + surface.snow_coverage * surface.snow_temperature
        + surface.ice_coverage * surface.ice_temperature
    )


def build_surface_optics(
    sfc_optics: SurfaceOpticalState,
    options: Optional[Options],
    ln: int,
) -> None:
    """
    Prepare the surface optical state for one channel.

    Resets the state to "compute from model". If ``options`` requests an
    emissivity override, the caller's emissivity at running channel index
    ``ln`` is used, the reflectivity is ``1 - emissivity`` and the direct
    reflectivity comes from the caller's override when supplied, otherwise
    from the derived reflectivity.

    Parameters
    ----------
    sfc_optics : SurfaceOpticalState
        Buffer to prepare.
    options : Options or None
        The profile's options.
    ln : int
        Running channel index within the profile (0-based).
    """
    sfc_optics.reset()
    if options is None or not options.user_emissivity:
        return

    sfc_optics.compute_switch = False
    emissivity = options.emissivity[ln]
    sfc_optics.emissivity[0, 0] = emissivity
    sfc_optics.reflectivity[0, 0, 0, 0] = 1.0 - emissivity
    if options.user_direct_reflectivity:
        sfc_optics.direct_reflectivity[0, 0] = options.direct_reflectivity[ln]
    else:
        sfc_optics.direct_reflectivity[0, 0] = sfc_optics.reflectivity[0, 0, 0, 0]


def model_surface_optics(
    surface: SurfaceState,
    sensor: SensorCoefficients,
    sfc_optics: SurfaceOpticalState,
) -> None:
    """
    Reference surface model: coverage-weighted tabulated emissivity.

    Fills the first angle/Stokes element of the buffer; specular
    reflectivity is ``1 - emissivity``.
    """
    kind = sensor.sensor_type.value
    if kind == "ultraviolet":
        kind = "visible"
    emissivity = sum(
        fraction * SURFACE_EMISSIVITY[name][kind]
        for name, fraction in surface.coverage.items()
    )
    sfc_optics.emissivity[0, 0] = emissivity
    sfc_optics.reflectivity[0, 0, 0, 0] = 1.0 - emissivity
    sfc_optics.direct_reflectivity[0, 0] = 1.0 - emissivity
