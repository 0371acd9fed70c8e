"""
Antenna-pattern correction for cross-track microwave sensors.

The measured antenna temperature mixes the Earth scene with cold space
and the platform. The correction applied to the computed scene
brightness temperature is

.. math::

    T_A = (A_{earth} + A_{platform}) T_B + A_{space} T_{cosmic}

with efficiencies tabulated per field of view and channel.
"""

from .constants import NOMINAL_FOV, T_COSMIC
from .geometry import ViewGeometry
from .planck import channel_radiance
from .rtsolution import RadianceResult
from .sensors import SensorCoefficients


def antenna_correction_applies(
    requested: bool,
    sensor: SensorCoefficients,
    geometry: ViewGeometry,
) -> bool:
    """
    Whether the antenna correction should be applied for a sensor.

    True only when the caller requested it, the sensor has antenna
    efficiencies and the scan position is a field of view in its table
    rather than the nominal sentinel.
    """
    if not (requested and sensor.has_antenna_correction):
        return False
    return NOMINAL_FOV < geometry.ifov <= sensor.antenna_correction.n_fovs


def apply_antenna_correction(
    geometry: ViewGeometry,
    sensor: SensorCoefficients,
    channel_index: int,
    result: RadianceResult,
) -> None:
    """
    Convert a channel's scene brightness temperature to antenna temperature.

    Modifies ``result`` in place: the brightness temperature is corrected
    and the radiance recomputed from it.

    Parameters
    ----------
    geometry : ViewGeometry
        Geometry; ``ifov`` (1-based) selects the efficiency row.
    sensor : SensorCoefficients
        Sensor with ``antenna_correction``.
    channel_index : int
        Channel index into the coefficients.
    result : RadianceResult
        The channel's result.

    Raises
    ------
    ValueError
        If ``ifov`` is not a field of view in the efficiency table.
    """
    ac = sensor.antenna_correction
    if not 1 <= geometry.ifov <= ac.n_fovs:
        raise ValueError(
            f"Field of view {geometry.ifov} outside {sensor.sensor_id} "
            f"antenna table (1-{ac.n_fovs})"
        )
    row = geometry.ifov - 1
    a_earth = ac.a_earth[row, channel_index]
    a_space = ac.a_space[row, channel_index]
    a_platform = ac.a_platform[row, channel_index]

    tb = (a_earth + a_platform) * result.brightness_temperature + a_space * T_COSMIC
    result.brightness_temperature = float(tb)
    result.radiance = float(channel_radiance(sensor, channel_index, tb))
