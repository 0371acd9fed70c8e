"""
Optional per-profile inputs to a forward call.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np


@dataclass
class SensorInput:
    """
    Auxiliary sensor-specific input.

    Attributes
    ----------
    absorber_scale : float
        Multiplier applied to the absorber amounts when building
        predictors, e.g. to emulate a gas-cell pressure change.
    """

    absorber_scale: float = 1.0


@dataclass
class Options:
    """
    Caller-supplied overrides for one profile.

    Override arrays are indexed by the running channel index, i.e. the
    position of the channel in the concatenation of all sensors' channels.

    Attributes
    ----------
    emissivity_switch : bool
        Replace the model surface emissivity with ``emissivity``.
    emissivity : ndarray, optional
        Surface emissivity per channel.
    direct_reflectivity_switch : bool
        Use ``direct_reflectivity`` for the direct (solar) reflectivity
        instead of ``1 - emissivity``. Only honoured with
        ``emissivity_switch``.
    direct_reflectivity : ndarray, optional
        Direct reflectivity per channel.
    antenna_correction_switch : bool
        Apply the antenna correction for sensors that have one.
    sensor_input : SensorInput
        Auxiliary sensor-specific input.

    Examples
    --------
    >>> opts = Options(emissivity_switch=True, emissivity=[0.95])
    >>> opts.n_channels
    1
    """

    emissivity_switch: bool = False
    emissivity: Optional[np.ndarray] = None
    direct_reflectivity_switch: bool = False
    direct_reflectivity: Optional[np.ndarray] = None
    antenna_correction_switch: bool = False
    sensor_input: SensorInput = field(default_factory=SensorInput)

    def __post_init__(self):
        if self.emissivity is not None:
            self.emissivity = np.atleast_1d(np.asarray(self.emissivity, dtype=float))
        if self.direct_reflectivity is not None:
            self.direct_reflectivity = np.atleast_1d(
                np.asarray(self.direct_reflectivity, dtype=float)
            )

    @property
    def n_channels(self) -> int:
        """Length of the emissivity override array."""
        return 0 if self.emissivity is None else len(self.emissivity)

    @property
    def n_direct_reflectivity(self) -> int:
        return 0 if self.direct_reflectivity is None else len(self.direct_reflectivity)

    @property
    def user_emissivity(self) -> bool:
        return self.emissivity_switch

    @property
    def user_direct_reflectivity(self) -> bool:
        return self.emissivity_switch and self.direct_reflectivity_switch
