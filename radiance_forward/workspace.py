"""
Scoped workspace lifetimes.

Every workspace allocated for a profile or sensor scope is released
exactly once when the scope exits, whichever way it exits. A failed
release is reported as a ``CleanupWarning`` and recorded on the call's
status; it never raises, so a failure already propagating out of the
scope is left untouched.
"""

import logging
import warnings
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from .errors import CleanupWarning, ForwardStatus, stage

logger = logging.getLogger(__name__)


@contextmanager
def scoped_workspace(
    label: str,
    allocate: Callable[[], Any],
    release: Callable[[Any], None],
    status: ForwardStatus,
    profile: int,
    sensor_id: Optional[str] = None,
    stage_name: str = "allocation",
    action: Optional[str] = None,
) -> Iterator[Any]:
    """
    Allocate a workspace for the duration of a ``with`` block.

    Parameters
    ----------
    label : str
        Name of the workspace, used in messages.
    allocate : callable
        Returns the workspace. Failures are raised as a StageError.
    release : callable
        Releases the workspace; called on every exit path.
    status : ForwardStatus
        Receives a warning when the release fails.
    profile : int
        Profile index, for messages.
    sensor_id : str, optional
        Sensor identifier for sensor-scope workspaces.
    stage_name : str, optional
        Stage recorded on an allocation failure.
    action : str, optional
        Message phrase for an allocation failure; defaults to
        ``"allocating <label>"``.

    Examples
    --------
    >>> with scoped_workspace("AtmOptics", alloc, backend.release_optics,
    ...                       status, profile=0) as optics:
    ...     use(optics)
    """
    with stage(stage_name, action or f"allocating {label}", profile, sensor_id):
        resource = allocate()
    try:
        yield resource
    finally:
        try:
            release(resource)
        except Exception as exc:
            where = f"profile #{profile}"
            if sensor_id is not None:
                where = f"{sensor_id}, {where}"
            message = f"Error deallocating {label} for {where}: {exc}"
            logger.warning(message)
            warnings.warn(message, CleanupWarning, stacklevel=3)
            status.warn(message)
