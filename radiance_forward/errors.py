"""
Error types and the aggregate status returned by a forward call.

Three classes of problem can occur:

ValidationError
    Dimension or size mismatches between the input arguments. Detected
    before any profile is processed; nothing is written to the results.
StageError
    A named pipeline stage (geometry, extension, allocation, predictors,
    absorption, scattering, combination, solve) failed for a specific
    profile, sensor and channel. Aborts the whole call.
CleanupWarning
    Releasing a scoped workspace failed. Reported, never fatal, and never
    allowed to replace a failure already in flight.
"""

import enum
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional


class ForwardModelError(Exception):
    """
    Base class for fatal forward model errors.

    Attributes
    ----------
    warnings : list of str
        Cleanup warnings collected before the error was raised.
    """

    def __init__(self, *args):
        super().__init__(*args)
        self.warnings: List[str] = []


class ValidationError(ForwardModelError, ValueError):
    """Inconsistent input dimensionality detected before processing."""


class StageError(ForwardModelError, RuntimeError):
    """
    A pipeline stage failed for a specific profile/sensor/channel.

    Parameters
    ----------
    stage : str
        Name of the failing stage, e.g. ``"absorption"``.
    message : str
        Human-readable description including the identifiers.
    profile : int, optional
        Index of the profile being processed.
    sensor_id : str, optional
        Identifier of the sensor being processed.
    channel : int, optional
        Sensor channel number being processed.
    """

    def __init__(
        self,
        stage: str,
        message: str,
        profile: Optional[int] = None,
        sensor_id: Optional[str] = None,
        channel: Optional[int] = None,
    ):
        super().__init__(message)
        self.stage = stage
        self.profile = profile
        self.sensor_id = sensor_id
        self.channel = channel


class CleanupWarning(RuntimeWarning):
    """Releasing a scoped workspace failed."""


class Status(enum.Enum):
    """Aggregate outcome of a forward call."""

    SUCCESS = "success"
    WARNING = "warning"
    FAILURE = "failure"


@dataclass
class ForwardStatus:
    """
    Aggregate status of a forward call.

    Attributes
    ----------
    code : Status
        SUCCESS, WARNING (succeeded with cleanup problems) or FAILURE.
    message : str
        Message of the first failure, empty on success.
    warnings : list of str
        Cleanup warnings collected during the call.
    error : ForwardModelError, optional
        The failure, when ``code`` is FAILURE.
    """

    code: Status = Status.SUCCESS
    message: str = ""
    warnings: List[str] = field(default_factory=list)
    error: Optional[ForwardModelError] = None

    @property
    def ok(self) -> bool:
        """True unless the call failed."""
        return self.code is not Status.FAILURE

    def warn(self, message: str) -> None:
        """Record a cleanup warning without overriding a failure."""
        self.warnings.append(message)
        if self.code is Status.SUCCESS:
            self.code = Status.WARNING

    def fail(self, error: ForwardModelError) -> None:
        """Record the first failure of the call."""
        if self.code is Status.FAILURE:
            return
        self.code = Status.FAILURE
        self.message = str(error)
        self.error = error


def describe(
    action: str,
    profile: int,
    sensor_id: Optional[str] = None,
    channel: Optional[int] = None,
) -> str:
    """Build a failure message naming the sensor, channel and profile."""
    if sensor_id is not None and channel is not None:
        return f"Error {action} for {sensor_id}, channel {channel}, profile #{profile}"
    if sensor_id is not None:
        return f"Error {action} for {sensor_id}, profile #{profile}"
    return f"Error {action} for profile #{profile}"


@contextmanager
def stage(
    name: str,
    action: str,
    profile: int,
    sensor_id: Optional[str] = None,
    channel: Optional[int] = None,
) -> Iterator[None]:
    """
    Run one pipeline stage, converting collaborator failures to StageError.

    Parameters
    ----------
    name : str
        Stage name recorded on the error, e.g. ``"cloud_scatter"``.
    action : str
        Phrase used in the message, e.g. ``"computing CloudScatter"``.
    profile : int
        Profile index.
    sensor_id, channel : optional
        Sensor identifier and channel number, when inside those loops.

    Examples
    --------
    >>> with stage("geometry", "computing GeometryInfo", 0):
    ...     derive_geometry(geometry)
    """
    try:
        yield
    except ForwardModelError:
        raise
    except Exception as exc:
        message = f"{describe(action, profile, sensor_id, channel)}: {exc}"
        raise StageError(name, message, profile, sensor_id, channel) from exc
