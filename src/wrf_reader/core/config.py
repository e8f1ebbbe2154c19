"""
WRF Reader Configuration and Constants

This module centralizes all configuration parameters, constants, and default values
for better maintainability and consistency across the codebase.
"""

import os

# ============================================================================
# Backend Defaults
# ============================================================================

# Users can override the xarray backend via WRF_READER_ENGINE environment variable
DEFAULT_ENGINE = os.environ.get("WRF_READER_ENGINE") or None
DEFAULT_CHUNKS = None

# ============================================================================
# Dimension Names
# ============================================================================

TIME_DIM = "Time"
WEST_EAST_DIM = "west_east"
WEST_EAST_STAG_DIM = "west_east_stag"
SOUTH_NORTH_DIM = "south_north"
SOUTH_NORTH_STAG_DIM = "south_north_stag"

# Dimensions every WRF collection must carry
REQUIRED_DIMENSIONS = (
    WEST_EAST_DIM,
    WEST_EAST_STAG_DIM,
    SOUTH_NORTH_DIM,
    SOUTH_NORTH_STAG_DIM,
    TIME_DIM,
)

# Vertical dimensions that get a unitless 1D index coordinate when present
VERTICAL_DIMS = ("bottom_top", "bottom_top_stag", "soil_layers_stag")

# ============================================================================
# Coordinate Variables
# ============================================================================

LON_VAR = "XLONG"
LAT_VAR = "XLAT"

# Horizontal coordinate variables, in registration order, with their axis
HORIZONTAL_COORD_VARS = (
    ("XLONG", 0),
    ("XLAT", 1),
    ("XLONG_U", 0),
    ("XLAT_U", 1),
    ("XLONG_V", 0),
    ("XLAT_V", 1),
)

AXIS_UNITS = {
    0: "degrees_east",
    1: "degrees_north",
}

# Staggered coordinates that may be derived from an unstaggered source:
# name -> (source variable, source dimension, staggered dimension, stagger axis)
STAGGER_CONFIG = {
    "XLONG_U": (LON_VAR, WEST_EAST_DIM, WEST_EAST_STAG_DIM, 0),
    "XLAT_U": (LAT_VAR, WEST_EAST_DIM, WEST_EAST_STAG_DIM, 0),
    "XLONG_V": (LON_VAR, SOUTH_NORTH_DIM, SOUTH_NORTH_STAG_DIM, 1),
    "XLAT_V": (LAT_VAR, SOUTH_NORTH_DIM, SOUTH_NORTH_STAG_DIM, 1),
}

# Leading horizontal dimension pair (fastest first) -> coordinate variable pair
MESH_COORDINATE_TABLE = {
    (WEST_EAST_DIM, SOUTH_NORTH_DIM): ("XLONG", "XLAT"),
    (WEST_EAST_STAG_DIM, SOUTH_NORTH_DIM): ("XLONG_U", "XLAT_U"),
    (WEST_EAST_DIM, SOUTH_NORTH_STAG_DIM): ("XLONG_V", "XLAT_V"),
}

VERTICAL_AXIS = 2
TIME_AXIS = 3

# ============================================================================
# Time Coordinate
# ============================================================================

TIME_TEXT_VAR = "Times"
DERIVED_TIME_NAME = "Time"
TIME_UNITS = "seconds"
WRF_TIME_PATTERN = r"^\d{4}-\d{2}-\d{2}_\d{2}:\d{2}:\d{2}$"

# ============================================================================
# Global Attributes
# ============================================================================

REQUIRED_GLOBAL_ATTRIBUTES = ("DX", "DY", "CEN_LAT", "CEN_LON")

DEFAULT_POLE_LAT = 90.0
DEFAULT_POLE_LON = 0.0
DEFAULT_GRAVITY = 9.81
DEFAULT_RADIUS = 0.0
DEFAULT_P2SI = 1.0

# ============================================================================
# Map Projections
# ============================================================================

MAP_PROJ_LATLON = 0
MAP_PROJ_LAMBERT = 1
MAP_PROJ_POLAR_STEREO = 2
MAP_PROJ_MERCATOR = 3
MAP_PROJ_ROTATED_LATLON = 6

# ============================================================================
# Data Variables
# ============================================================================

# Spatial ranks scanned for data variables
DATA_VAR_RANKS = (1, 2, 3)

# Unit strings treated as "no unit"
DIMENSIONLESS_UNITS = ("", "-", "none", "None", "dimensionless")

MESH_NAME_SEPARATOR = "x"
