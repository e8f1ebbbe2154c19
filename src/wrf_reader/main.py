"""
WRF Reader Main Interface

This module provides the convenience functions for opening WRF output and
reading single variables.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import xarray as xr

from .core.core_types import ChunkSetting, CollectionOptions
from .core.config import DEFAULT_CHUNKS, DEFAULT_ENGINE
from .data_collection import WRFDataCollection

# Get logger for this module
logger = logging.getLogger('wrf_reader.main')

PathLike = Union[str, Path]


# ============================================================================
# Main API Functions
# ============================================================================

def open_wrf_collection(
    files: Union[PathLike, Sequence[PathLike], xr.Dataset, Sequence[xr.Dataset]],
    *,
    engine: Optional[str] = DEFAULT_ENGINE,
    chunks: ChunkSetting = DEFAULT_CHUNKS,
) -> WRFDataCollection:
    """
    Open WRF output files as an initialized data collection.

    Files are concatenated along the Time dimension in the order given.

    Args:
        files: WRF output path(s) or in-memory dataset(s)
        engine: xarray backend engine (default from WRF_READER_ENGINE)
        chunks: Dask chunking; None reads eagerly

    Returns:
        WRFDataCollection: Initialized collection; close it when done

    Examples:
        >>> with open_wrf_collection(["wrfout_d01_000000", "wrfout_d01_000001"]) as dc:
        ...     print(dc.get_data_var_names())
        ...     print(dc.get_map_projection())
    """
    options = CollectionOptions(engine=engine, chunks=chunks)
    dc = WRFDataCollection()
    dc.initialize(files, options)
    logger.info("Opened WRF collection with %d time steps", dc.get_num_time_steps())
    return dc


def read_wrf_variable(
    files: Union[PathLike, Sequence[PathLike], xr.Dataset, Sequence[xr.Dataset]],
    varname: str,
    time_step: int = 0,
    *,
    engine: Optional[str] = DEFAULT_ENGINE,
    chunks: ChunkSetting = DEFAULT_CHUNKS,
) -> xr.DataArray:
    """
    Read one variable at one time step.

    Derived coordinates such as XLONG_U or Time can be read like stored
    variables.

    Examples:
        >>> t2 = read_wrf_variable("wrfout_d01_2000-01-24_12:00:00", "T2")
        >>> t2.dims
        ('south_north', 'west_east')
    """
    with open_wrf_collection(files, engine=engine, chunks=chunks) as dc:
        return dc.read_variable(time_step, varname)
