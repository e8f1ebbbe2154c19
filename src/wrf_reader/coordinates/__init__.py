"""
WRF Reader Coordinate Handling

This package provides derived coordinate variables (staggered horizontal
coordinates, vertical index coordinates, decoded time) and map projection
resolution.
"""

# Derived coordinate variables
from .derived import (
    DerivedCoordVar,
    StaggeredCoordVar,
    Index1DCoordVar,
    WRFTimeCoordVar,
    DerivedVariableManager,
    stagger_array,
    parse_wrf_time,
)

# Map projection
from .projection import (
    resolve_projection,
    ellipsoid_clause,
    projection_crs,
)

__all__ = [
    # Derived coordinate variables
    "DerivedCoordVar",
    "StaggeredCoordVar",
    "Index1DCoordVar",
    "WRFTimeCoordVar",
    "DerivedVariableManager",
    "stagger_array",
    "parse_wrf_time",
    # Map projection
    "resolve_projection",
    "ellipsoid_clause",
    "projection_crs",
]
