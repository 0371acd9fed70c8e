"""
Forward Model Driver
====================

Computes top-of-atmosphere radiances and brightness temperatures for a
set of atmospheric profiles and the requested channels of a set of
sensors.

The computation is a set of nested loops::

    for each profile:
        derive geometry, extend the atmosphere,
        allocate the optical state and surface optics,
        compute the effective surface temperature
        for each sensor:
            allocate and build predictors (and a solver workspace)
            for each channel:
                accumulate optical properties
                build the surface optics
                solve Fourier orders 0..n_azi
                apply the antenna correction

Workspaces live exactly as long as the loop level that owns them and are
released on every exit path. The first failure aborts the whole call;
results already written are left in place.
"""

import logging
from contextlib import ExitStack
from typing import Mapping, Optional, Sequence, Tuple

import numpy as np

from . import constants
from .antenna import antenna_correction_applies
from .atmosphere import AtmosphericProfile
from .backend import PhysicsBackend, ReferenceBackend
from .errors import (
    ForwardModelError,
    ForwardStatus,
    ValidationError,
    stage,
)
from .geometry import ViewGeometry
from .optics import accumulate_optics
from .options import Options, SensorInput
from .rtsolution import RadianceResult, allocate_results, run_fourier_loop
from .sensors import ChannelCatalog, SensorCoefficients, resolve_sensor, total_channels
from .surface import SurfaceState, build_surface_optics
from .workspace import scoped_workspace

logger = logging.getLogger(__name__)


class ForwardModel:
    """
    Forward model driver.

    Parameters
    ----------
    sensors : mapping of int to SensorCoefficients
        Read-only coefficient catalog, keyed by sensor index.
    backend : PhysicsBackend, optional
        Physics collaborators. Default is ``ReferenceBackend()``.
    max_n_profiles : int, optional
        Maximum number of profiles per call.
    max_n_legendre_terms : int, optional
        Legendre capacity of the optical state; at least 4.
    max_n_phase_elements : int, optional
        Phase element capacity of the optical state.
    max_n_stokes : int, optional
        Stokes capacity of the surface optics.
    max_n_angles : int, optional
        Angle capacity of the surface optics.
    max_n_azi : int, optional
        Highest Fourier order solved for visible channels.
    max_source_zenith_angle : float, optional
        Solar zenith angle [deg] below which the sun is active.

    Examples
    --------
    >>> model = ForwardModel({0: amsua})
    >>> results = allocate_results(15, 1)
    >>> status = model.run([profile], [surface], [geometry],
    ...                    [channel_catalog(0, amsua)], results)
    >>> results[0, 0].brightness_temperature
    """

    def __init__(
        self,
        sensors: Mapping[int, SensorCoefficients],
        backend: Optional[PhysicsBackend] = None,
        max_n_profiles: int = constants.MAX_N_PROFILES,
        max_n_legendre_terms: int = constants.MAX_N_LEGENDRE_TERMS,
        max_n_phase_elements: int = constants.MAX_N_PHASE_ELEMENTS,
        max_n_stokes: int = constants.MAX_N_STOKES,
        max_n_angles: int = constants.MAX_N_ANGLES,
        max_n_azi: int = constants.MAX_N_AZI,
        max_source_zenith_angle: float = constants.MAX_SOURCE_ZENITH_ANGLE,
    ):
        if max_n_legendre_terms < constants.MIN_VISIBLE_LEGENDRE_TERMS:
            raise ValueError(
                f"max_n_legendre_terms must be at least "
                f"{constants.MIN_VISIBLE_LEGENDRE_TERMS}, got {max_n_legendre_terms}"
            )
        for name, value in (
            ("max_n_profiles", max_n_profiles),
            ("max_n_phase_elements", max_n_phase_elements),
            ("max_n_stokes", max_n_stokes),
            ("max_n_angles", max_n_angles),
        ):
            if value < 1:
                raise ValueError(f"{name} must be positive, got {value}")
        if max_n_azi < 0:
            raise ValueError(f"max_n_azi must be non-negative, got {max_n_azi}")
        if not 0.0 < max_source_zenith_angle <= 180.0:
            raise ValueError(
                f"max_source_zenith_angle must be in (0, 180], got {max_source_zenith_angle}"
            )

        self.sensors = sensors
        self.backend = backend if backend is not None else ReferenceBackend()
        self.max_n_profiles = max_n_profiles
        self.max_n_legendre_terms = max_n_legendre_terms
        self.max_n_phase_elements = max_n_phase_elements
        self.max_n_stokes = max_n_stokes
        self.max_n_angles = max_n_angles
        self.max_n_azi = max_n_azi
        self.max_source_zenith_angle = max_source_zenith_angle

    def run(
        self,
        profiles: Sequence[AtmosphericProfile],
        surfaces: Sequence[SurfaceState],
        geometries: Sequence[ViewGeometry],
        channel_info: Sequence[ChannelCatalog],
        results: np.ndarray,
        options: Optional[Sequence[Optional[Options]]] = None,
        status: Optional[ForwardStatus] = None,
    ) -> ForwardStatus:
        """
        Run the forward model.

        Parameters
        ----------
        profiles : sequence of AtmosphericProfile
            Atmospheric profiles, length M. Not modified.
        surfaces : sequence of SurfaceState
            Surfaces, length M.
        geometries : sequence of ViewGeometry
            Geometries, length M. Derived fields are filled in place.
        channel_info : sequence of ChannelCatalog
            Requested channels, one entry per sensor.
        results : ndarray
            Object array of shape (>= L, M), e.g. from
            ``allocate_results``; written in place. Row order is the
            concatenation of each sensor's channels.
        options : sequence of Options, optional
            Per-profile overrides, length M; entries may be None.
        status : ForwardStatus, optional
            Status to record cleanup warnings in; a new one if None.

        Returns
        -------
        ForwardStatus
            SUCCESS, or WARNING if a workspace failed to release.

        Raises
        ------
        ValidationError
            If the argument dimensions are inconsistent. Nothing has been
            computed.
        StageError
            If a pipeline stage fails. Results of earlier channels and
            profiles have been written; later ones are unspecified.

        Either error carries the cleanup warnings collected so far in its
        ``warnings`` attribute.
        """
        if status is None:
            status = ForwardStatus()
        try:
            self._run(status, profiles, surfaces, geometries, channel_info, results, options)
        except ForwardModelError as exc:
            exc.warnings = list(status.warnings)
            raise
        return status

    def _run(self, status, profiles, surfaces, geometries, channel_info, results, options):
        n_channels = total_channels(channel_info)
        if len(channel_info) == 0 or n_channels == 0:
            logger.debug("No channels requested")
            return

        self._validate(profiles, surfaces, geometries, channel_info, results, options, n_channels)

        n_profiles = len(profiles)
        for m in range(n_profiles):
            opts = options[m] if options is not None else None
            self._process_profile(
                status, m, profiles[m], surfaces[m], geometries[m],
                channel_info, results, opts,
            )
        logger.info(
            f"Computed {n_channels} channels for {n_profiles} profiles "
            f"({status.code.value})"
        )

    def _validate(self, profiles, surfaces, geometries, channel_info, results, options, n_channels):
        """Check argument dimensions before any profile is processed."""
        shape = getattr(results, "shape", None)
        if shape is None or len(shape) != 2:
            raise ValidationError(
                "Output results must be a 2-D array indexed [channel, profile]"
            )
        dtype = getattr(results, "dtype", None)
        if dtype != object:
            raise ValidationError(
                f"Output results must be an object array of RadianceResult, "
                f"not {dtype}"
            )
        if shape[0] < n_channels:
            raise ValidationError(
                f"Output results array too small ({shape[0]}) to hold results "
                f"for the number of requested channels ({n_channels})"
            )

        n_profiles = len(profiles)
        if n_profiles > self.max_n_profiles:
            raise ValidationError(
                f"Number of passed profiles ({n_profiles}) > maximum number "
                f"of profiles allowed ({self.max_n_profiles})"
            )
        if (
            len(surfaces) != n_profiles
            or len(geometries) != n_profiles
            or shape[1] != n_profiles
        ):
            raise ValidationError(
                f"Inconsistent profile dimensionality for input arguments: "
                f"{n_profiles} profiles, {len(surfaces)} surfaces, "
                f"{len(geometries)} geometries, {shape[1]} result columns"
            )

        if options is not None:
            if len(options) != n_profiles:
                raise ValidationError(
                    f"Inconsistent profile dimensionality for Options optional "
                    f"input argument ({len(options)} options, {n_profiles} profiles)"
                )
            for m, opts in enumerate(options):
                if opts is None or not opts.emissivity_switch:
                    continue
                if opts.n_channels < n_channels:
                    raise ValidationError(
                        f"Input Options channel dimension ({opts.n_channels}) is "
                        f"less than the number of requested channels "
                        f"({n_channels}) for profile #{m}"
                    )
                if opts.direct_reflectivity_switch and opts.n_direct_reflectivity < n_channels:
                    raise ValidationError(
                        f"Input Options direct reflectivity dimension "
                        f"({opts.n_direct_reflectivity}) is less than the number "
                        f"of requested channels ({n_channels}) for profile #{m}"
                    )

        for catalog in channel_info:
            try:
                sensor = resolve_sensor(self.sensors, catalog)
            except KeyError as exc:
                raise ValidationError(exc.args[0]) from exc
            n_available = sensor.n_channels
            if catalog.n_channels and (
                catalog.channel_index.min() < 0 or catalog.channel_index.max() >= n_available
            ):
                raise ValidationError(
                    f"ChannelInfo for {catalog.sensor_id} indexes channels outside "
                    f"its {n_available} coefficients"
                )

    def _process_profile(self, status, m, profile, sfc, view, channel_info, results, opts):
        """Run the sensor loop for one profile inside its workspace scope."""
        backend = self.backend

        with stage("geometry", "computing derived GeometryInfo components", m):
            backend.derive_geometry(view)

        with ExitStack() as scope:
            atm, ext_state = scope.enter_context(scoped_workspace(
                "extra layers Atmosphere",
                lambda: backend.add_layers(profile),
                backend.release_atmosphere,
                status, m,
                stage_name="extension",
                action="adding extra layers",
            ))
            optics = scope.enter_context(scoped_workspace(
                "AtmOptics",
                lambda: backend.allocate_optics(
                    atm.n_layers, self.max_n_legendre_terms, self.max_n_phase_elements
                ),
                backend.release_optics,
                status, m,
            ))
            sfc_optics = scope.enter_context(scoped_workspace(
                "SfcOptics",
                lambda: backend.allocate_surface_optics(self.max_n_angles, self.max_n_stokes),
                backend.release_surface_optics,
                status, m,
            ))
            logger.debug(
                f"Profile #{m}: {atm.n_layers} layers "
                f"({ext_state.n_added_layers} added), {atm.n_clouds} clouds, "
                f"{atm.n_aerosols} aerosols"
            )

            with stage("surface_temperature", "computing surface temperature", m):
                backend.compute_surface_temperature(sfc, sfc_optics)

            ln = 0
            for catalog in channel_info:
                sensor = resolve_sensor(self.sensors, catalog)
                self._process_sensor(
                    status, m, ln, catalog, sensor, atm, sfc, view,
                    optics, sfc_optics, results, opts,
                )
                ln += catalog.n_channels

    def _process_sensor(self, status, m, ln0, catalog, sensor, atm, sfc, view,
                        optics, sfc_optics, results, opts):
        """Run the channel loop for one sensor inside its workspace scope."""
        backend = self.backend
        sensor_id = sensor.sensor_id
        user_antcorr = opts is not None and opts.antenna_correction_switch
        sensor_input = opts.sensor_input if opts is not None else SensorInput()
        compute_antcorr = antenna_correction_applies(user_antcorr, sensor, view)
        need_rt_workspace = atm.n_clouds > 0 or atm.n_aerosols > 0 or sensor.is_visible
        logger.debug(
            f"Profile #{m}, {sensor_id}: {catalog.n_channels} channels, "
            f"antenna correction={compute_antcorr}"
        )

        with ExitStack() as scope:
            predictor = scope.enter_context(scoped_workspace(
                "Predictor",
                lambda: backend.allocate_predictor(sensor, atm, view),
                backend.release_predictor,
                status, m, sensor_id,
            ))
            rt_workspace = None
            if need_rt_workspace:
                rt_workspace = scope.enter_context(scoped_workspace(
                    "RTV",
                    backend.allocate_rt_workspace,
                    backend.release_rt_workspace,
                    status, m, sensor_id,
                ))

            with stage("predictors", "computing Predictors", m, sensor_id):
                backend.build_predictors(sensor_input, sensor, atm, view, predictor)

            for l, (channel_index, sensor_channel) in enumerate(
                zip(catalog.channel_index, catalog.sensor_channel)
            ):
                ln = ln0 + l
                if not isinstance(results[ln, m], RadianceResult):
                    results[ln, m] = RadianceResult()
                result = results[ln, m]
                result.reset(sensor_id, int(sensor_channel))

                control = accumulate_optics(
                    backend, optics, atm, sensor, channel_index, predictor,
                    view, sensor_input, result,
                    self.max_n_azi, self.max_source_zenith_angle,
                    m, int(sensor_channel),
                )
                build_surface_optics(sfc_optics, opts, ln)
                run_fourier_loop(
                    backend, atm, sfc, optics, sfc_optics, view, sensor,
                    channel_index, result, control, rt_workspace,
                    m, int(sensor_channel),
                )
                if compute_antcorr:
                    backend.apply_antenna_correction(view, sensor, channel_index, result)


def forward(
    profiles: Sequence[AtmosphericProfile],
    surfaces: Sequence[SurfaceState],
    geometries: Sequence[ViewGeometry],
    channel_info: Sequence[ChannelCatalog],
    sensors: Mapping[int, SensorCoefficients],
    results: Optional[np.ndarray] = None,
    options: Optional[Sequence[Optional[Options]]] = None,
    backend: Optional[PhysicsBackend] = None,
    **config,
) -> Tuple[np.ndarray, ForwardStatus]:
    """
    Run the forward model and report failures as a status.

    Parameters
    ----------
    profiles, surfaces, geometries, channel_info, options
        As for ``ForwardModel.run``.
    sensors : mapping of int to SensorCoefficients
        Coefficient catalog keyed by sensor index.
    results : ndarray, optional
        Results container; allocated with ``allocate_results`` if None.
    backend : PhysicsBackend, optional
        Physics collaborators.
    **config
        Tunables passed to ``ForwardModel``.

    Returns
    -------
    results : ndarray
        The results container.
    status : ForwardStatus
        FAILURE with the first error's message if the call failed.
    """
    if results is None:
        results = allocate_results(total_channels(channel_info), len(profiles))
    model = ForwardModel(sensors, backend=backend, **config)
    status = ForwardStatus()
    try:
        model.run(profiles, surfaces, geometries, channel_info, results, options, status)
    except ForwardModelError as exc:
        logger.error(str(exc))
        status.fail(exc)
    return results, status
