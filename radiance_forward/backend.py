"""
Physics collaborators driven by the forward model.

``PhysicsBackend`` is the contract the forward driver calls through: the
physics methods are abstract, the allocate/release methods have default
implementations creating the package's workspace types. Collaborators
signal failure by raising; the driver adds the profile, sensor and
channel to the error.

``ReferenceBackend`` implements every collaborator with the package's
simple reference physics.
"""

import abc
from typing import Optional, Tuple

from . import antenna, atmosphere, geometry, predictors, rtsolution, scattering, surface
from .atmosphere import AtmosphericProfile, ExtendedAtmosphere, ExtensionState
from .geometry import ViewGeometry
from .optics import CombinedOpticalState, combine_optics
from .options import SensorInput
from .predictors import PredictorSet
from .rtsolution import RadianceResult, RTWorkspace
from .sensors import SensorCoefficients
from .surface import SurfaceOpticalState, SurfaceState


class PhysicsBackend(abc.ABC):
    """Collaborator interface of the forward model."""

    # ------------------------------------------------------------------
    # Workspace allocation
    # ------------------------------------------------------------------

    def add_layers(
        self, profile: AtmosphericProfile
    ) -> Tuple[ExtendedAtmosphere, ExtensionState]:
        """Extend a profile to the top of the atmosphere."""
        return atmosphere.add_layers(profile)

    def release_atmosphere(
        self, extended: Tuple[ExtendedAtmosphere, ExtensionState]
    ) -> None:
        extended[1].release()

    def allocate_optics(
        self, n_layers: int, n_legendre_terms: int, n_phase_elements: int
    ) -> CombinedOpticalState:
        return CombinedOpticalState(n_layers, n_legendre_terms, n_phase_elements)

    def release_optics(self, optics: CombinedOpticalState) -> None:
        optics.release()

    def allocate_surface_optics(self, n_angles: int, n_stokes: int) -> SurfaceOpticalState:
        return SurfaceOpticalState(n_angles=n_angles, n_stokes=n_stokes)

    def release_surface_optics(self, sfc_optics: SurfaceOpticalState) -> None:
        sfc_optics.release()

    def allocate_predictor(
        self,
        sensor: SensorCoefficients,
        atm: AtmosphericProfile,
        view: ViewGeometry,
    ) -> PredictorSet:
        return predictors.allocate_predictor(sensor, atm)

    def release_predictor(self, predictor: PredictorSet) -> None:
        predictor.release()

    def allocate_rt_workspace(self) -> RTWorkspace:
        return RTWorkspace()

    def release_rt_workspace(self, rt_workspace: RTWorkspace) -> None:
        rt_workspace.release()

    # ------------------------------------------------------------------
    # Physics
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def derive_geometry(self, view: ViewGeometry) -> None:
        """Fill in derived geometry fields in place."""

    @abc.abstractmethod
    def compute_surface_temperature(
        self, sfc: SurfaceState, sfc_optics: SurfaceOpticalState
    ) -> None:
        """Set the effective surface temperature of the surface optics."""

    @abc.abstractmethod
    def build_predictors(
        self,
        sensor_input: SensorInput,
        sensor: SensorCoefficients,
        atm: AtmosphericProfile,
        view: ViewGeometry,
        predictor: PredictorSet,
    ) -> None:
        """Fill the predictor set for a sensor."""

    @abc.abstractmethod
    def compute_stream_count(
        self,
        atm: AtmosphericProfile,
        sensor: SensorCoefficients,
        channel_index: int,
        result: RadianceResult,
    ) -> int:
        """Number of Legendre terms needed; sets the result's stream fields."""

    @abc.abstractmethod
    def compute_absorption(
        self,
        sensor_input: SensorInput,
        sensor: SensorCoefficients,
        channel_index: int,
        predictor: PredictorSet,
        optics: CombinedOpticalState,
    ) -> None:
        """Add gas absorption to the optical state."""

    @abc.abstractmethod
    def compute_molecular_scatter(
        self, wavenumber: float, atm: AtmosphericProfile, optics: CombinedOpticalState
    ) -> None:
        """Add molecular scattering to the optical state."""

    @abc.abstractmethod
    def compute_cloud_scatter(
        self,
        atm: AtmosphericProfile,
        sensor: SensorCoefficients,
        channel_index: int,
        optics: CombinedOpticalState,
    ) -> None:
        """Add cloud scattering to the optical state."""

    @abc.abstractmethod
    def compute_aerosol_scatter(
        self,
        atm: AtmosphericProfile,
        sensor: SensorCoefficients,
        channel_index: int,
        optics: CombinedOpticalState,
    ) -> None:
        """Add aerosol scattering to the optical state."""

    @abc.abstractmethod
    def combine(self, optics: CombinedOpticalState) -> None:
        """Normalize the accumulated optical state."""

    @abc.abstractmethod
    def solve(
        self,
        atm: AtmosphericProfile,
        sfc: SurfaceState,
        optics: CombinedOpticalState,
        sfc_optics: SurfaceOpticalState,
        view: ViewGeometry,
        sensor: SensorCoefficients,
        channel_index: int,
        mth_azi: int,
        rt_workspace: Optional[RTWorkspace],
    ) -> float:
        """Radiance contribution of Fourier order ``mth_azi``."""

    @abc.abstractmethod
    def apply_antenna_correction(
        self,
        view: ViewGeometry,
        sensor: SensorCoefficients,
        channel_index: int,
        result: RadianceResult,
    ) -> None:
        """Correct the result in place for the antenna pattern."""


class ReferenceBackend(PhysicsBackend):
    """
    Reference physics for every collaborator.

    Examples
    --------
    >>> from radiance_forward import ForwardModel, ReferenceBackend
    >>> model = ForwardModel(sensors, backend=ReferenceBackend())
    """

    def derive_geometry(self, view):
        geometry.derive_geometry(view)

    def compute_surface_temperature(self, sfc, sfc_optics):
        surface.compute_surface_temperature(sfc, sfc_optics)

    def build_predictors(self, sensor_input, sensor, atm, view, predictor):
        predictors.build_predictors(sensor_input, sensor, atm, view, predictor)

    def compute_stream_count(self, atm, sensor, channel_index, result):
        return rtsolution.compute_stream_count(atm, sensor, channel_index, result)

    def compute_absorption(self, sensor_input, sensor, channel_index, predictor, optics):
        predictors.compute_absorption(sensor_input, sensor, channel_index, predictor, optics)

    def compute_molecular_scatter(self, wavenumber, atm, optics):
        scattering.compute_molecular_scatter(wavenumber, atm, optics)

    def compute_cloud_scatter(self, atm, sensor, channel_index, optics):
        scattering.compute_cloud_scatter(atm, sensor, channel_index, optics)

    def compute_aerosol_scatter(self, atm, sensor, channel_index, optics):
        scattering.compute_aerosol_scatter(atm, sensor, channel_index, optics)

    def combine(self, optics):
        combine_optics(optics)

    def solve(self, atm, sfc, optics, sfc_optics, view, sensor, channel_index,
              mth_azi, rt_workspace):
        return rtsolution.solve_rt(
            atm, sfc, optics, sfc_optics, view, sensor, channel_index,
            mth_azi, rt_workspace,
        )

    def apply_antenna_correction(self, view, sensor, channel_index, result):
        antenna.apply_antenna_correction(view, sensor, channel_index, result)
