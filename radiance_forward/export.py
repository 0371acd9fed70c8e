"""
Export of forward model results to labelled arrays.
"""

from typing import Sequence

import numpy as np

from .sensors import ChannelCatalog, total_channels


def results_to_dataset(results: np.ndarray, channel_info: Sequence[ChannelCatalog]):
    """
    Convert a results container to an xarray Dataset.

    Parameters
    ----------
    results : ndarray
        Object array of ``RadianceResult`` indexed [channel, profile].
    channel_info : sequence of ChannelCatalog
        The channel selection the results were computed for.

    Returns
    -------
    xarray.Dataset
        Variables ``radiance``, ``brightness_temperature``,
        ``n_azimuth_orders``, ``scattering_flag``, ``solar_flag`` and
        ``visible_flag`` on dimensions (channel, profile), with
        ``sensor_id`` and ``sensor_channel`` as channel coordinates.

    Raises
    ------
    ValueError
        If ``results`` has fewer rows than requested channels.

    Examples
    --------
    >>> ds = results_to_dataset(results, channel_info)
    >>> ds["brightness_temperature"].sel(profile=0)
    """
    import xarray as xr

    n_channels = total_channels(channel_info)
    if results.shape[0] < n_channels:
        raise ValueError(
            f"Results hold {results.shape[0]} channels, {n_channels} requested"
        )
    n_profiles = results.shape[1]
    cells = results[:n_channels]

    def field(name, dtype):
        return np.array(
            [[getattr(cells[l, m], name) for m in range(n_profiles)]
             for l in range(n_channels)],
            dtype=dtype,
        ).reshape(n_channels, n_profiles)

    sensor_id = np.concatenate(
        [np.full(catalog.n_channels, catalog.sensor_id, dtype=object)
         for catalog in channel_info]
    )
    sensor_channel = np.concatenate([catalog.sensor_channel for catalog in channel_info])

    dims = ("channel", "profile")
    ds = xr.Dataset(
        {
            "radiance": (dims, field("radiance", float)),
            "brightness_temperature": (dims, field("brightness_temperature", float)),
            "n_azimuth_orders": (dims, field("n_azimuth_orders", int)),
            "scattering_flag": (dims, field("scattering_flag", bool)),
            "solar_flag": (dims, field("solar_flag", bool)),
            "visible_flag": (dims, field("visible_flag", bool)),
        },
        coords={
            "channel": np.arange(n_channels),
            "profile": np.arange(n_profiles),
            "sensor_id": ("channel", sensor_id),
            "sensor_channel": ("channel", sensor_channel),
        },
    )
    ds["radiance"].attrs["units"] = "mW/(m^2.sr.cm^-1)"
    ds["brightness_temperature"].attrs["units"] = "K"
    return ds
