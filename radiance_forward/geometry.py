"""
Viewing and source geometry.

A ``ViewGeometry`` is the only input the forward call mutates: geometry
derivation fills in path-length secants and the relative azimuth in place.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .constants import NOMINAL_FOV


@dataclass
class ViewGeometry:
    """
    Sensor and solar geometry for one profile.

    All angles are in degrees.

    Attributes
    ----------
    sensor_zenith : float
        Sensor zenith angle at the surface.
    sensor_azimuth : float
        Sensor azimuth angle.
    source_zenith : float
        Solar zenith angle.
    source_azimuth : float
        Solar azimuth angle.
    ifov : int
        Scan position (field-of-view index, 1-based). ``NOMINAL_FOV`` (0)
        is the boresight sentinel.
    secant_sensor_zenith : float, optional
        Derived: 1/cos(sensor_zenith).
    secant_source_zenith : float, optional
        Derived: 1/cos(source_zenith), 0 when the sun is below the horizon.
    relative_azimuth : float, optional
        Derived: sensor/source relative azimuth in [0, 180].
    """

    sensor_zenith: float = 0.0
    sensor_azimuth: float = 0.0
    source_zenith: float = 100.0
    source_azimuth: float = 0.0
    ifov: int = NOMINAL_FOV
    secant_sensor_zenith: Optional[float] = None
    secant_source_zenith: Optional[float] = None
    relative_azimuth: Optional[float] = None

    @property
    def is_derived(self) -> bool:
        return self.secant_sensor_zenith is not None

    @property
    def sensor_cosine(self) -> float:
        return float(np.cos(np.deg2rad(self.sensor_zenith)))

    @property
    def source_cosine(self) -> float:
        return float(np.cos(np.deg2rad(self.source_zenith)))

    @property
    def relative_azimuth_rad(self) -> float:
        """Relative azimuth angle in radians."""
        return float(np.deg2rad(self.relative_azimuth))


def derive_geometry(geometry: ViewGeometry) -> None:
    """
    Fill in the derived fields of a geometry in place.

    Parameters
    ----------
    geometry : ViewGeometry
        Geometry to update.

    Raises
    ------
    ValueError
        If the sensor zenith angle is outside [0, 90), the source zenith
        angle is outside [0, 180] or the scan position is negative.
    """
    if not 0.0 <= geometry.sensor_zenith < 90.0:
        raise ValueError(
            f"Sensor zenith angle {geometry.sensor_zenith} outside [0, 90)"
        )
    if not 0.0 <= geometry.source_zenith <= 180.0:
        raise ValueError(
            f"Source zenith angle {geometry.source_zenith} outside [0, 180]"
        )
    if geometry.ifov < 0:
        raise ValueError(f"Invalid scan position {geometry.ifov}")

    geometry.secant_sensor_zenith = 1.0 / geometry.sensor_cosine
    if geometry.source_zenith < 90.0:
        geometry.secant_source_zenith = 1.0 / geometry.source_cosine
    else:
        geometry.secant_source_zenith = 0.0

    relative_azimuth = abs(geometry.sensor_azimuth - geometry.source_azimuth) % 360.0
    # Normalize to [0, 180]
    if relative_azimuth > 180.0:
        relative_azimuth = 360.0 - relative_azimuth
    geometry.relative_azimuth = relative_azimuth
