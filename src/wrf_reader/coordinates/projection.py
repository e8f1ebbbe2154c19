"""
WRF Reader Map Projection Resolution

This module builds a PROJ string from the WRF MAP_PROJ code and the global
attributes describing the projection. The string maps geographic coordinates
in degrees to cartographic coordinates in meters.
"""

from typing import Callable, Optional

import pyproj

from ..core.config import (
    MAP_PROJ_LATLON, MAP_PROJ_LAMBERT, MAP_PROJ_POLAR_STEREO,
    MAP_PROJ_MERCATOR, MAP_PROJ_ROTATED_LATLON,
    DEFAULT_POLE_LAT, DEFAULT_POLE_LON,
)
from ..core.core_types import GlobalAttributes
from ..core.exceptions import MissingAttributeError, UnsupportedProjectionError

# Attribute lookup: name -> scalar value, or None when absent
AttributeLookup = Callable[[str], Optional[float]]

# Degrees to radians, used as the output unit of rotated-pole grids
ROTATED_TO_METER = "0.0174532925199"


def _fmt(value: float) -> str:
    """Format a number the way a default C++ ostream would (6 significant digits)."""
    return f"{float(value):g}"


def _require(get_att: AttributeLookup, name: str) -> float:
    value = get_att(name)
    if value is None:
        raise MissingAttributeError(name)
    return float(value)


def _latlon_string(atts: GlobalAttributes) -> str:
    return f"+proj=eqc +lon_0={_fmt(atts.cen_lon)} +lat_0={_fmt(atts.cen_lat)}"


def resolve_projection(
    map_proj: int,
    get_att: AttributeLookup,
    atts: GlobalAttributes,
) -> str:
    """
    Build the PROJ string for a WRF map projection.

    Args:
        map_proj: WRF MAP_PROJ code (0, 1, 2, 3 or 6)
        get_att: Lookup for projection-specific global attributes
                 (STAND_LON, TRUELAT1, TRUELAT2)
        atts: Resolved global attributes (reference location, pole, radius)

    Returns:
        str: PROJ string, ending with the ellipsoid clause

    Raises:
        MissingAttributeError: If an attribute required by the projection is absent
        UnsupportedProjectionError: If map_proj is not supported

    Examples:
        >>> atts = GlobalAttributes(dx=3000, dy=3000, cen_lat=40, cen_lon=-100)
        >>> resolve_projection(1, {"STAND_LON": -100, "TRUELAT1": 30,
        ...                        "TRUELAT2": 60}.get, atts)
        '+proj=lcc +lon_0=-100 +lat_1=30 +lat_2=60 +ellps=WGS84'
    """
    if map_proj == MAP_PROJ_LATLON:
        projstring = _latlon_string(atts)

    elif map_proj == MAP_PROJ_LAMBERT:
        lon0 = _require(get_att, "STAND_LON")
        lat1 = _require(get_att, "TRUELAT1")
        lat2 = _require(get_att, "TRUELAT2")
        projstring = f"+proj=lcc +lon_0={_fmt(lon0)} +lat_1={_fmt(lat1)} +lat_2={_fmt(lat2)}"

    elif map_proj == MAP_PROJ_POLAR_STEREO:
        # Pole follows the hemisphere of the true latitude
        latts = _require(get_att, "TRUELAT1")
        lat0 = -90.0 if latts < 0.0 else 90.0
        lon0 = _require(get_att, "STAND_LON")
        projstring = f"+proj=stere +lat_0={_fmt(lat0)} +lat_ts={_fmt(latts)} +lon_0={_fmt(lon0)}"

    elif map_proj == MAP_PROJ_MERCATOR:
        latts = _require(get_att, "TRUELAT1")
        lon0 = _require(get_att, "STAND_LON")
        projstring = f"+proj=merc +lon_0={_fmt(lon0)} +lat_ts={_fmt(latts)}"

    elif map_proj == MAP_PROJ_ROTATED_LATLON:
        if atts.pole_lat == DEFAULT_POLE_LAT and atts.pole_lon == DEFAULT_POLE_LON:
            projstring = _latlon_string(atts)
        else:
            lon0 = _require(get_att, "STAND_LON")
            projstring = (
                "+proj=ob_tran +o_proj=eqc"
                f" +to_meter={ROTATED_TO_METER}"
                f" +o_lat_p={_fmt(atts.pole_lat)}d"
                f" +o_lon_p={_fmt(180.0 - atts.pole_lon)}d"
                f" +lon_0={_fmt(-lon0)}d"
            )

    else:
        raise UnsupportedProjectionError(map_proj)

    return projstring + ellipsoid_clause(atts.radius)


def ellipsoid_clause(radius: float) -> str:
    """Sphere of the given radius for planetary data, WGS84 otherwise."""
    if radius > 0:
        return f" +ellps=sphere +a={_fmt(radius)} +es=0"
    return " +ellps=WGS84"


def projection_crs(projstring: str) -> pyproj.CRS:
    """
    Create a pyproj CRS from a PROJ string.

    Raises:
        pyproj.exceptions.CRSError: If PROJ rejects the string
    """
    return pyproj.CRS.from_proj4(projstring)
