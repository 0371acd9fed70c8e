"""
Gas absorption predictors.

A ``PredictorSet`` holds the per-layer quantities the gas absorption
regression is evaluated on. It depends on the sensor, so it is allocated,
built and released once per sensor within a profile.

Predictor rows:

0. dry path: layer pressure thickness / standard pressure
1. temperature-weighted path: row 0 * T / T_std
2... absorber paths: absorber amount per layer, one row per absorber

All rows are multiplied by the sensor zenith secant. The absorption
optical depth is stored as a nadir (vertical) depth so that it combines
with the vertical scattering depths; the solver applies the slant path.
"""

from dataclasses import dataclass, field

import numpy as np

from .atmosphere import AtmosphericProfile
from .constants import STANDARD_PRESSURE, STANDARD_TEMPERATURE
from .geometry import ViewGeometry
from .options import SensorInput
from .sensors import SensorCoefficients

#: Predictor rows preceding the absorber rows
N_FIXED_PREDICTORS = 2


@dataclass
class PredictorSet:
    """
    Predictors for one sensor within one profile.

    Attributes
    ----------
    sensor_id : str
        Sensor the predictors were built for.
    n_layers : int
        Number of atmosphere layers.
    n_predictors : int
        Number of predictor rows.
    values : ndarray
        Shape (n_predictors, n_layers).
    secant : float
        Sensor zenith secant used to build the predictors.
    built : bool
        Whether ``build_predictors`` has filled the set.
    """

    sensor_id: str
    n_layers: int
    n_predictors: int
    values: np.ndarray = field(init=False)
    secant: float = 1.0
    built: bool = False
    released: bool = False

    def __post_init__(self):
        self.values = np.zeros((self.n_predictors, self.n_layers))

    def release(self) -> None:
        if self.released:
            raise RuntimeError(f"Predictors for {self.sensor_id} already released")
        self.released = True


def allocate_predictor(
    sensor: SensorCoefficients,
    atmosphere: AtmosphericProfile,
) -> PredictorSet:
    """Allocate an empty predictor set for a sensor and atmosphere."""
    return PredictorSet(
        sensor_id=sensor.sensor_id,
        n_layers=atmosphere.n_layers,
        n_predictors=N_FIXED_PREDICTORS + atmosphere.n_absorbers,
    )


def build_predictors(
    sensor_input: SensorInput,
    sensor: SensorCoefficients,
    atmosphere: AtmosphericProfile,
    geometry: ViewGeometry,
    predictor: PredictorSet,
) -> None:
    """
    Fill a predictor set from the extended atmosphere and geometry.

    Parameters
    ----------
    sensor_input : SensorInput
        Auxiliary input; ``absorber_scale`` multiplies the absorber rows.
    sensor : SensorCoefficients
        The sensor the predictors are for.
    atmosphere : AtmosphericProfile
        The extended atmosphere.
    geometry : ViewGeometry
        Derived geometry.
    predictor : PredictorSet
        Set allocated for this sensor and atmosphere.

    Raises
    ------
    ValueError
        If the predictor set does not match the sensor or atmosphere, or
        the geometry has not been derived.
    """
    if predictor.sensor_id != sensor.sensor_id:
        raise ValueError(
            f"Predictors allocated for {predictor.sensor_id}, not {sensor.sensor_id}"
        )
    if predictor.n_layers != atmosphere.n_layers:
        raise ValueError(
            f"Predictors sized for {predictor.n_layers} layers, "
            f"atmosphere has {atmosphere.n_layers}"
        )
    if not geometry.is_derived:
        raise ValueError("Geometry must be derived before building predictors")

    secant = geometry.secant_sensor_zenith
    dry = atmosphere.layer_thickness / STANDARD_PRESSURE
    predictor.values[0] = dry
    predictor.values[1] = dry * atmosphere.temperature / STANDARD_TEMPERATURE
    predictor.values[N_FIXED_PREDICTORS:] = (
        atmosphere.absorber.T * sensor_input.absorber_scale
    )
    predictor.values *= secant
    predictor.secant = secant
    predictor.built = True


def compute_absorption(
    sensor_input: SensorInput,
    sensor: SensorCoefficients,
    channel_index: int,
    predictor: PredictorSet,
    optics,
) -> None:
    """
    Add gas absorption optical depth for one channel.

    The layer optical depth is the channel's regression coefficients
    applied to the leading predictor rows, floored at zero and divided
    by the predictor secant to give a nadir depth. The
    auxiliary ``sensor_input`` is already folded into the predictors.

    Raises
    ------
    ValueError
        If the predictors have not been built or the channel has more
        coefficients than there are predictors.
    """
    if not predictor.built:
        raise ValueError(f"Predictors for {predictor.sensor_id} have not been built")
    coefficients = sensor.absorption_coefficients[channel_index]
    n_coef = len(coefficients)
    if n_coef > predictor.n_predictors:
        raise ValueError(
            f"{sensor.sensor_id}: {n_coef} absorption coefficients for "
            f"{predictor.n_predictors} predictors"
        )
    tau = coefficients @ predictor.values[:n_coef]
    optics.optical_depth += np.maximum(tau, 0.0) / predictor.secant
