"""
WRF Reader - handle-based access to WRF model output.

This package reads WRF (Weather Research and Forecasting model) netCDF output
through a uniform open/read/close interface. Coordinates that the files do not
store, or store differently, are computed on read:

Key Features:
- Staggered XLONG_U/XLAT_U/XLONG_V/XLAT_V derived from XLONG/XLAT when absent
- Unitless index coordinates for vertical dimensions
- Chronologically ordered "Time" coordinate decoded from the Times strings
- PROJ string (and pyproj CRS) for the WRF map projection
- Structured grid topology: cell/node adjacency, periodic clamping, traversal
- Multi-file collections concatenated along Time, lazily via Dask if requested

Quick Start:
    >>> import wrf_reader as wrf
    >>> with wrf.open_wrf_collection("wrfout_d01_2000-01-24_12:00:00") as dc:
    ...     print(dc.get_data_var_names())
    ...     with dc.open_variable(0, "XLONG_U") as fd:
    ...         nx, ny = dc.get_dim_lens("XLONG_U")
    ...         lon_u = dc.read_region(fd, [0, 0], [nx - 1, ny - 1])
"""

__version__ = "1.0.0"
__author__ = "WRF Reader Development Team"

# Import main interface functions
from .main import (
    open_wrf_collection,
    read_wrf_variable,
)
from .data_collection import WRFDataCollection
from .io.collection import NetCDFCollection

# Import metadata types
from .core.core_types import (
    Attribute,
    CollectionOptions,
    CoordinateVariable,
    DataVariable,
    Dimension,
    GlobalAttributes,
    GridLocation,
    Mesh,
)
from .metadata.store import MetadataStore

# Import grid topology
from .grid.structured import (
    StructuredGrid,
    ForwardCellIterator,
    ForwardNodeIterator,
)

# Import projection helpers
from .coordinates.projection import resolve_projection, projection_crs

# Import utility functions
from .utils import get_collection_info, print_collection_info

# Import exceptions for error handling
from .core.exceptions import (
    WRFReaderError,
    InitializationError,
    MissingAttributeError,
    MissingDimensionError,
    UnsupportedProjectionError,
    CoordinateError,
    InvalidHandleError,
    TimeStepOutOfRangeError,
    InvalidFormatError,
    UnsupportedOperationError,
    VariableNotFoundError,
    ParameterError,
    NotInitializedError,
)

# Import logging configuration
from .core.logging_config import setup_logging, set_log_level

# Define what gets imported with "from wrf_reader import *"
__all__ = [
    # Version info
    '__version__',

    # Main interface
    'open_wrf_collection',
    'read_wrf_variable',
    'WRFDataCollection',
    'NetCDFCollection',

    # Metadata types
    'Attribute',
    'CollectionOptions',
    'CoordinateVariable',
    'DataVariable',
    'Dimension',
    'GlobalAttributes',
    'GridLocation',
    'Mesh',
    'MetadataStore',

    # Grid topology
    'StructuredGrid',
    'ForwardCellIterator',
    'ForwardNodeIterator',

    # Projection
    'resolve_projection',
    'projection_crs',

    # Utility functions
    'get_collection_info',
    'print_collection_info',

    # Exception classes
    'WRFReaderError',
    'InitializationError',
    'MissingAttributeError',
    'MissingDimensionError',
    'UnsupportedProjectionError',
    'CoordinateError',
    'InvalidHandleError',
    'TimeStepOutOfRangeError',
    'InvalidFormatError',
    'UnsupportedOperationError',
    'VariableNotFoundError',
    'ParameterError',
    'NotInitializedError',

    # Logging configuration
    'setup_logging',
    'set_log_level',
]
