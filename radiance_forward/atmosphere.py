"""
Atmospheric profiles and the upper-atmosphere extender.

Profiles supplied by a caller frequently stop well below the top of the
atmosphere, while the absorption and scattering physics need layers up to
``TOA_PRESSURE``. The extender pads a profile with layers synthesised from
a reference climatology and records what it added so the extension can be
reversed.

Pressure arrays are ordered from the top of the atmosphere downward.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Tuple

import numpy as np

from .constants import (
    REFERENCE_LEVEL_PRESSURE,
    REFERENCE_LEVEL_TEMPERATURE,
    REFERENCE_MODEL_NAME,
    TOA_PRESSURE,
)

logger = logging.getLogger(__name__)


@dataclass
class Cloud:
    """
    Cloud loading for one cloud type.

    Attributes
    ----------
    type : str
        Cloud type, a key of ``constants.CLOUD_OPTICS``.
    effective_radius : ndarray
        Layer effective radius [um], shape (n_layers,).
    water_content : ndarray
        Layer water content [kg/m^2], shape (n_layers,).
    """

    type: str
    effective_radius: np.ndarray
    water_content: np.ndarray

    def padded(self, n_top: int) -> "Cloud":
        """Return a copy with ``n_top`` empty layers prepended."""
        return replace(
            self,
            effective_radius=np.concatenate([np.zeros(n_top), self.effective_radius]),
            water_content=np.concatenate([np.zeros(n_top), self.water_content]),
        )

    def trimmed(self, n_top: int) -> "Cloud":
        """Return a copy with the top ``n_top`` layers removed."""
        return replace(
            self,
            effective_radius=self.effective_radius[n_top:].copy(),
            water_content=self.water_content[n_top:].copy(),
        )


@dataclass
class Aerosol:
    """
    Aerosol loading for one aerosol type.

    Attributes
    ----------
    type : str
        Aerosol type, a key of ``constants.AEROSOL_OPTICS``.
    effective_radius : ndarray
        Layer effective radius [um], shape (n_layers,).
    concentration : ndarray
        Layer concentration [kg/m^2], shape (n_layers,).
    """

    type: str
    effective_radius: np.ndarray
    concentration: np.ndarray

    def padded(self, n_top: int) -> "Aerosol":
        """Return a copy with ``n_top`` empty layers prepended."""
        return replace(
            self,
            effective_radius=np.concatenate([np.zeros(n_top), self.effective_radius]),
            concentration=np.concatenate([np.zeros(n_top), self.concentration]),
        )

    def trimmed(self, n_top: int) -> "Aerosol":
        """Return a copy with the top ``n_top`` layers removed."""
        return replace(
            self,
            effective_radius=self.effective_radius[n_top:].copy(),
            concentration=self.concentration[n_top:].copy(),
        )


@dataclass
class AtmosphericProfile:
    """
    One atmospheric state.

    Attributes
    ----------
    level_pressure : ndarray
        Level pressures [hPa], shape (n_layers + 1,), top to bottom.
    pressure : ndarray
        Layer pressures [hPa], shape (n_layers,).
    temperature : ndarray
        Layer temperatures [K], shape (n_layers,).
    absorber : ndarray
        Layer absorber amounts, shape (n_layers, n_absorbers).
    clouds : list of Cloud
        Cloud loadings present in the profile.
    aerosols : list of Aerosol
        Aerosol loadings present in the profile.
    """

    level_pressure: np.ndarray
    pressure: np.ndarray
    temperature: np.ndarray
    absorber: np.ndarray
    clouds: List[Cloud] = field(default_factory=list)
    aerosols: List[Aerosol] = field(default_factory=list)

    @property
    def n_layers(self) -> int:
        return len(self.pressure)

    @property
    def n_absorbers(self) -> int:
        return self.absorber.shape[1]

    @property
    def n_clouds(self) -> int:
        return len(self.clouds)

    @property
    def n_aerosols(self) -> int:
        return len(self.aerosols)

    @property
    def layer_thickness(self) -> np.ndarray:
        """Layer pressure thickness [hPa]."""
        return np.diff(self.level_pressure)

    def validate(self) -> None:
        """
        Check the profile arrays for consistency.

        Raises
        ------
        ValueError
            If any array has the wrong shape or the pressures are not
            positive and increasing downward.
        """
        n = self.n_layers
        if n == 0:
            raise ValueError("Profile has no layers")
        if self.level_pressure.shape != (n + 1,):
            raise ValueError(
                f"level_pressure has shape {self.level_pressure.shape}, "
                f"expected ({n + 1},)"
            )
        if self.temperature.shape != (n,):
            raise ValueError(
                f"temperature has shape {self.temperature.shape}, expected ({n},)"
            )
        if self.absorber.ndim != 2 or self.absorber.shape[0] != n:
            raise ValueError(
                f"absorber has shape {self.absorber.shape}, expected ({n}, n_absorbers)"
            )
        if np.any(self.level_pressure <= 0) or np.any(np.diff(self.level_pressure) <= 0):
            raise ValueError("level_pressure must be positive and increase downward")
        for cloud in self.clouds:
            if cloud.water_content.shape != (n,) or cloud.effective_radius.shape != (n,):
                raise ValueError(f"{cloud.type} cloud arrays do not match {n} layers")
        for aerosol in self.aerosols:
            if aerosol.concentration.shape != (n,) or aerosol.effective_radius.shape != (n,):
                raise ValueError(f"{aerosol.type} aerosol arrays do not match {n} layers")


@dataclass
class ExtendedAtmosphere(AtmosphericProfile):
    """Working copy of a profile, padded up to the top of the atmosphere."""


@dataclass
class ExtensionState:
    """
    Bookkeeping needed to reverse an atmosphere extension.

    Attributes
    ----------
    n_added_layers : int
        Number of layers synthesised above the profile top.
    n_original_layers : int
        Number of layers in the caller's profile.
    source : str
        Name of the climatology the added layers came from; empty when
        nothing was added.
    released : bool
        Set once the owning scope has released the extension.
    """

    n_added_layers: int = 0
    n_original_layers: int = 0
    source: str = ""
    released: bool = False

    def release(self) -> None:
        if self.released:
            raise RuntimeError("ExtensionState already released")
        self.released = True


def layer_pressure(level_pressure: np.ndarray) -> np.ndarray:
    """
    Layer-mean pressure from bounding level pressures.

    Uses the log-weighted mean ``(p2 - p1) / ln(p2 / p1)``.
    """
    p1 = level_pressure[:-1]
    p2 = level_pressure[1:]
    return (p2 - p1) / np.log(p2 / p1)


def _reference_temperature(pressure: np.ndarray) -> np.ndarray:
    """Reference temperature interpolated linearly in log-pressure."""
    return np.interp(
        np.log(pressure),
        np.log(REFERENCE_LEVEL_PRESSURE),
        REFERENCE_LEVEL_TEMPERATURE,
    )


def add_layers(
    profile: AtmosphericProfile,
) -> Tuple[ExtendedAtmosphere, ExtensionState]:
    """
    Extend a profile with upper-atmosphere layers up to ``TOA_PRESSURE``.

    Parameters
    ----------
    profile : AtmosphericProfile
        The caller's profile. It is not modified.

    Returns
    -------
    atmosphere : ExtendedAtmosphere
        Copy of the profile with the missing layers prepended.
    state : ExtensionState
        Number of added layers and their source. ``n_added_layers`` is 0
        when the profile already reaches the top of the atmosphere.

    Raises
    ------
    ValueError
        If the profile is malformed.

    Notes
    -----
    Added layer temperatures come from the reference climatology, shifted
    so they join the profile's top layer without a discontinuity. Absorber
    amounts in the added layers repeat the top layer's values and the
    added layers carry no cloud or aerosol loading.
    """
    profile.validate()

    top = profile.level_pressure[0]
    # Reference levels strictly above the profile top; the TOA level is
    # always the first reference level.
    new_levels = REFERENCE_LEVEL_PRESSURE[REFERENCE_LEVEL_PRESSURE < top * (1.0 - 1.0e-06)]
    n_added = len(new_levels)

    if n_added == 0:
        atmosphere = ExtendedAtmosphere(
            level_pressure=profile.level_pressure.copy(),
            pressure=profile.pressure.copy(),
            temperature=profile.temperature.copy(),
            absorber=profile.absorber.copy(),
            clouds=[cloud.padded(0) for cloud in profile.clouds],
            aerosols=[aerosol.padded(0) for aerosol in profile.aerosols],
        )
        return atmosphere, ExtensionState(n_original_layers=profile.n_layers)

    level_p = np.concatenate([new_levels, profile.level_pressure])
    added_p = layer_pressure(level_p[: n_added + 1])

    offset = profile.temperature[0] - _reference_temperature(profile.pressure[:1])[0]
    added_t = _reference_temperature(added_p) + offset

    added_absorber = np.repeat(profile.absorber[:1], n_added, axis=0)

    atmosphere = ExtendedAtmosphere(
        level_pressure=level_p,
        pressure=np.concatenate([added_p, profile.pressure]),
        temperature=np.concatenate([added_t, profile.temperature]),
        absorber=np.concatenate([added_absorber, profile.absorber], axis=0),
        clouds=[cloud.padded(n_added) for cloud in profile.clouds],
        aerosols=[aerosol.padded(n_added) for aerosol in profile.aerosols],
    )
    state = ExtensionState(
        n_added_layers=n_added,
        n_original_layers=profile.n_layers,
        source=REFERENCE_MODEL_NAME,
    )
    logger.debug(
        f"Added {n_added} layers above {top:.4g} hPa from {REFERENCE_MODEL_NAME}"
    )
    return atmosphere, state


def remove_added_layers(
    atmosphere: AtmosphericProfile,
    state: ExtensionState,
) -> AtmosphericProfile:
    """
    Reverse an extension, returning a profile on the original layering.

    Parameters
    ----------
    atmosphere : AtmosphericProfile
        An extended atmosphere, or any array on the extended layering.
    state : ExtensionState
        The state returned by ``add_layers`` for that atmosphere.

    Returns
    -------
    AtmosphericProfile
        The original layers only.
    """
    n = state.n_added_layers
    if atmosphere.n_layers != state.n_original_layers + n:
        raise ValueError(
            f"Atmosphere has {atmosphere.n_layers} layers; extension state "
            f"expects {state.n_original_layers + n}"
        )
    return AtmosphericProfile(
        level_pressure=atmosphere.level_pressure[n:].copy(),
        pressure=atmosphere.pressure[n:].copy(),
        temperature=atmosphere.temperature[n:].copy(),
        absorber=atmosphere.absorber[n:].copy(),
        clouds=[cloud.trimmed(n) for cloud in atmosphere.clouds],
        aerosols=[aerosol.trimmed(n) for aerosol in atmosphere.aerosols],
    )
