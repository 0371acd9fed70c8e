"""
radiance_forward: Forward Radiative Transfer Driver
===================================================

Computes top-of-atmosphere radiances and brightness temperatures for
batches of atmospheric profiles and the channels of one or more
satellite sensors (microwave, infrared, visible and ultraviolet).

For every profile the atmosphere is extended to the top of the
atmosphere; for every sensor the gas absorption predictors are built;
for every channel the optical properties of gases, molecules, clouds and
aerosols are accumulated and combined, the surface optics are prepared
and the radiative transfer equation is solved over the azimuthal Fourier
orders. Cross-track microwave sensors can be corrected for their antenna
pattern.

Main Classes
------------
ForwardModel
    Driver for the profile/sensor/channel loops.
PhysicsBackend
    Interface of the physics collaborators called by the driver.
ReferenceBackend
    Reference implementation of every collaborator.

Modules
-------
atmosphere
    Atmospheric profiles and the upper-atmosphere extender.
geometry
    Viewing and source geometry.
sensors
    Sensor coefficients and channel selections.
options
    Optional per-profile overrides.
surface
    Surface state and surface optics.
predictors
    Gas absorption predictors.
scattering
    Molecular, cloud and aerosol scattering.
optics
    Combined optical state and the optical property accumulator.
rtsolution
    Radiance results and the Fourier-order solve loop.
antenna
    Antenna-pattern correction.
planck
    Planck radiance and brightness temperature.
export
    Conversion of results to an xarray Dataset.

Example
-------
>>> from radiance_forward import forward, channel_catalog
>>> results, status = forward([profile], [surface], [geometry],
...                           [channel_catalog(0, amsua)], {0: amsua})
>>> status.code
<Status.SUCCESS: 'success'>
"""

__version__ = "0.1.0"

from radiance_forward.forward import ForwardModel, forward
from radiance_forward.backend import PhysicsBackend, ReferenceBackend
from radiance_forward.atmosphere import Aerosol, AtmosphericProfile, Cloud
from radiance_forward.geometry import ViewGeometry
from radiance_forward.sensors import (
    AntennaCorrection,
    ChannelCatalog,
    SensorCoefficients,
    SensorType,
    channel_catalog,
)
from radiance_forward.options import Options, SensorInput
from radiance_forward.surface import SurfaceState
from radiance_forward.rtsolution import RadianceResult, allocate_results
from radiance_forward.errors import (
    CleanupWarning,
    ForwardModelError,
    ForwardStatus,
    StageError,
    Status,
    ValidationError,
)

__all__ = [
    "ForwardModel",
    "forward",
    "PhysicsBackend",
    "ReferenceBackend",
    "Aerosol",
    "AtmosphericProfile",
    "Cloud",
    "ViewGeometry",
    "AntennaCorrection",
    "ChannelCatalog",
    "SensorCoefficients",
    "SensorType",
    "channel_catalog",
    "Options",
    "SensorInput",
    "SurfaceState",
    "RadianceResult",
    "allocate_results",
    "CleanupWarning",
    "ForwardModelError",
    "ForwardStatus",
    "StageError",
    "Status",
    "ValidationError",
    "__version__",
]
