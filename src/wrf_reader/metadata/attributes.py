"""
WRF Reader Global Attribute Handling

Reads the scalar global attributes needed by the rest of initialization
(grid spacing, reference location, pole displacement and the PlanetWRF
gravity/radius/time-scale group).
"""

import logging
from typing import Optional

from ..core.config import (
    DEFAULT_GRAVITY, DEFAULT_P2SI, DEFAULT_POLE_LAT, DEFAULT_POLE_LON, DEFAULT_RADIUS,
    REQUIRED_GLOBAL_ATTRIBUTES,
)
from ..core.core_types import GlobalAttributes
from ..core.exceptions import MissingAttributeError
from ..io.collection import NetCDFCollection

logger = logging.getLogger('wrf_reader.metadata.attributes')


def get_scalar_att(collection: NetCDFCollection, attname: str, varname: str = "") -> Optional[float]:
    """
    Single numeric attribute value, or None unless exactly one value is present.
    """
    values = collection.get_att_values(varname, attname)
    if values is None or values.size != 1:
        return None
    return float(values[0])


def require_scalar_att(collection: NetCDFCollection, attname: str, varname: str = "") -> float:
    value = get_scalar_att(collection, attname, varname)
    if value is None:
        raise MissingAttributeError(attname, varname)
    return value


def read_map_proj(collection: NetCDFCollection) -> int:
    """WRF MAP_PROJ code (required)."""
    return int(require_scalar_att(collection, "MAP_PROJ"))


def read_global_attributes(collection: NetCDFCollection) -> GlobalAttributes:
    """
    Read required and optional global attributes.

    DX, DY, CEN_LAT and CEN_LON are required. POLE_LAT/POLE_LON default
    to the geographic north pole. When the PlanetWRF gravity attribute G
    is present, RADIUS and P2SI become required; otherwise Earth defaults
    apply (radius 0 means "use WGS84").

    Args:
        collection: Raw storage collection

    Returns:
        GlobalAttributes: Resolved attributes (map_proj left at 0)

    Raises:
        MissingAttributeError: If a required attribute is absent
    """
    dx, dy, cen_lat, cen_lon = (
        require_scalar_att(collection, name) for name in REQUIRED_GLOBAL_ATTRIBUTES
    )

    pole_lat = get_scalar_att(collection, "POLE_LAT")
    pole_lon = get_scalar_att(collection, "POLE_LON")

    grav = get_scalar_att(collection, "G")
    if grav is not None:
        radius = require_scalar_att(collection, "RADIUS")
        p2si = require_scalar_att(collection, "P2SI")
        logger.info("PlanetWRF attributes found: G=%g RADIUS=%g P2SI=%g", grav, radius, p2si)
    else:
        grav, radius, p2si = DEFAULT_GRAVITY, DEFAULT_RADIUS, DEFAULT_P2SI

    return GlobalAttributes(
        dx=dx,
        dy=dy,
        cen_lat=cen_lat,
        cen_lon=cen_lon,
        pole_lat=DEFAULT_POLE_LAT if pole_lat is None else pole_lat,
        pole_lon=DEFAULT_POLE_LON if pole_lon is None else pole_lon,
        grav=grav,
        radius=radius,
        p2si=p2si,
    )
