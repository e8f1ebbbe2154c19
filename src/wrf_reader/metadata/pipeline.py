"""
WRF Reader Initialization Pipeline

Builds the metadata store and the derived variable registry from a raw
storage collection. Every step may fail; any failure aborts initialization
and nothing built so far is published. Data variables whose mesh cannot be
resolved are skipped individually.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core.config import (
    AXIS_UNITS, DATA_VAR_RANKS, DERIVED_TIME_NAME, DIMENSIONLESS_UNITS,
    HORIZONTAL_COORD_VARS, LAT_VAR, LON_VAR, MESH_COORDINATE_TABLE,
    REQUIRED_DIMENSIONS, STAGGER_CONFIG, TIME_DIM, TIME_TEXT_VAR, VERTICAL_DIMS,
)
from ..core.core_types import (
    CoordinateVariable, DataVariable, Dimension, GlobalAttributes, GridLocation,
    Mesh, make_attributes, reversed_tuple,
)
from ..core.exceptions import CoordinateError, MissingDimensionError
from ..coordinates.derived import (
    DerivedVariableManager, Index1DCoordVar, StaggeredCoordVar, WRFTimeCoordVar,
)
from ..coordinates.projection import resolve_projection
from ..io.collection import NetCDFCollection
from ..io.handle_table import StorageAccessor
from .attributes import get_scalar_att, read_global_attributes, read_map_proj
from .store import MetadataStore

logger = logging.getLogger('wrf_reader.metadata.pipeline')


@dataclass(frozen=True)
class InitializationResult:
    """Everything produced by a successful initialization."""
    store: MetadataStore
    derived: DerivedVariableManager
    time_var: WRFTimeCoordVar
    global_attributes: GlobalAttributes
    map_projection: str


# ============================================================================
# Pipeline
# ============================================================================

def build_metadata(collection: NetCDFCollection) -> InitializationResult:
    """
    Run the initialization pipeline over a raw storage collection.

    Args:
        collection: Raw storage provider

    Returns:
        InitializationResult: Metadata store, derived registry and resolved
        global configuration

    Raises:
        InitializationError: If a required attribute, dimension or
            coordinate is missing, or the map projection is unsupported
    """
    logger.info("Initializing WRF metadata (%d time steps)", collection.num_time_steps)

    # 1. Global attributes
    atts = read_global_attributes(collection)

    # 2. Dimensions
    dimensions = build_dimensions(collection)

    # 3. Map projection
    map_proj = read_map_proj(collection)
    projstring = resolve_projection(
        map_proj, lambda name: get_scalar_att(collection, name), atts
    )
    atts = replace(atts, map_proj=map_proj)
    logger.debug("Map projection %d: %s", map_proj, projstring)

    storage = StorageAccessor(collection)
    derived = DerivedVariableManager()
    coord_vars: Dict[str, CoordinateVariable] = {}

    # 4. Horizontal coordinates
    coord_vars.update(register_horizontal_coords(collection, storage, derived))

    # 5. Vertical coordinates
    coord_vars.update(register_vertical_coords(collection, dimensions, derived))

    # 6. Time coordinate
    time_var = WRFTimeCoordVar(
        DERIVED_TIME_NAME, collection, TIME_TEXT_VAR, collection.time_dim, atts.p2si
    )
    time_var.initialize()
    derived.add_coord_var(time_var)
    coord_vars[time_var.name] = time_var.coord_var_info

    # 7. Data variables
    data_vars, meshes = register_data_vars(collection, coord_vars)

    store = MetadataStore(
        dimensions=dimensions,
        coord_vars=coord_vars,
        data_vars=data_vars,
        meshes=meshes,
        global_attributes=atts,
        global_atts=make_attributes(collection.get_atts("")),
        map_projection=projstring,
    )
    logger.info(
        "Initialized: %d dimensions, %d coordinate variables, %d data variables",
        len(dimensions), len(coord_vars), len(data_vars)
    )
    return InitializationResult(store, derived, time_var, atts, projstring)

# ============================================================================
# Steps
# ============================================================================

def build_dimensions(collection: NetCDFCollection) -> Dict[str, Dimension]:
    """
    Dimension set of the collection.

    Raises:
        MissingDimensionError: If any required dimension is absent
    """
    names = collection.get_dim_names()
    lengths = collection.get_dims()
    dimensions = {name: Dimension(name, int(n)) for name, n in zip(names, lengths)}

    required = [collection.time_dim if d == TIME_DIM else d for d in REQUIRED_DIMENSIONS]
    missing = [d for d in required if d not in dimensions]
    if missing:
        raise MissingDimensionError(missing, sorted(dimensions))
    return dimensions


def _check_lonlat(collection: NetCDFCollection) -> None:
    """XLONG and XLAT must both exist as (Time, south_north, west_east) fields."""
    for name in (LON_VAR, LAT_VAR):
        if not collection.variable_exists(name):
            raise CoordinateError(name, "variable not found")
        if len(collection.get_dim_names(name)) != 3:
            raise CoordinateError(name, "expected 3 dimensions (Time, south_north, west_east)")
        if not collection.get_time_dim_name(name):
            raise CoordinateError(name, f"missing time dimension '{collection.time_dim}'")

    if collection.get_dims(LON_VAR) != collection.get_dims(LAT_VAR):
        raise CoordinateError(
            LON_VAR,
            f"shape {collection.get_dims(LON_VAR)} differs from {LAT_VAR} "
            f"{collection.get_dims(LAT_VAR)}"
        )


def _stored_coord_var(collection: NetCDFCollection, name: str, axis: int) -> CoordinateVariable:
    dim_names = reversed_tuple(collection.get_spatial_dim_names(name))
    return CoordinateVariable(
        name=name,
        units=AXIS_UNITS[axis],
        xtype=str(collection.get_xtype(name)),
        periodic=(False,) * len(dim_names),
        attributes=make_attributes(collection.get_atts(name)),
        axis=axis,
        dim_names=dim_names,
        time_dim_name=collection.get_time_dim_name(name),
    )


def register_horizontal_coords(
    collection: NetCDFCollection,
    storage: StorageAccessor,
    derived: DerivedVariableManager,
) -> Dict[str, CoordinateVariable]:
    """
    Register longitude/latitude coordinates for all horizontal staggerings.

    Stored variables are used as-is. Missing staggered variables are
    derived from XLONG/XLAT; one that cannot be derived is skipped.

    Raises:
        CoordinateError: If XLONG/XLAT are missing or malformed
    """
    _check_lonlat(collection)

    coord_vars: Dict[str, CoordinateVariable] = {}
    for name, axis in HORIZONTAL_COORD_VARS:
        if collection.variable_exists(name):
            coord_vars[name] = _stored_coord_var(collection, name, axis)
            continue

        if name not in STAGGER_CONFIG:
            raise CoordinateError(name, "variable not found")

        in_name, dim_name, stag_dim_name, stag_axis = STAGGER_CONFIG[name]
        var = StaggeredCoordVar(
            name, stag_dim_name, storage, in_name, dim_name, axis, AXIS_UNITS[axis]
        )
        try:
            var.initialize()
        except CoordinateError as e:
            logger.warning("Skipping coordinate %s: %s", name, e)
            continue

        derived.add_coord_var(var)
        coord_vars[name] = var.coord_var_info
        logger.debug("Derived %s from %s along axis %d", name, in_name, stag_axis)

    return coord_vars


def register_vertical_coords(
    collection: NetCDFCollection,
    dimensions: Dict[str, Dimension],
    derived: DerivedVariableManager,
) -> Dict[str, CoordinateVariable]:
    """One unitless index coordinate per vertical dimension present."""
    coord_vars = {}
    for dim_name in VERTICAL_DIMS:
        if dim_name not in dimensions:
            continue
        var = Index1DCoordVar(dim_name, collection, dim_name)
        var.initialize()
        derived.add_coord_var(var)
        coord_vars[dim_name] = var.coord_var_info
    return coord_vars

# ============================================================================
# Data Variables
# ============================================================================

def resolve_mesh(
    dim_names: Sequence[str],
    time_dim: str,
    coord_vars: Dict[str, CoordinateVariable],
) -> Optional[Tuple[Mesh, str]]:
    """
    Resolve the mesh of a variable from its dimension names.

    Args:
        dim_names: Variable dimensions in netCDF order (slowest first)
        time_dim: Name of the time dimension
        coord_vars: Registered coordinate variables

    Returns:
        (mesh, time coordinate name) or None when the dimensions do not
        match a known horizontal layout

    A (Time, bottom_top, south_north, west_east) variable resolves to mesh
    "west_eastxsouth_northxbottom_top" with coordinates
    (XLONG, XLAT, bottom_top) and time coordinate "Time".
    """
    dims: List[str] = list(reversed(dim_names))

    time_coord = ""
    if dims and dims[-1] == time_dim:
        dims.pop()
        time_coord = DERIVED_TIME_NAME

    if len(dims) < 2 or time_dim in dims:
        return None

    pair = MESH_COORDINATE_TABLE.get((dims[0], dims[1]))
    if pair is None:
        return None

    coords = list(pair)
    if len(dims) > 2:
        if len(dims) > 3 or dims[2] not in coord_vars:
            return None
        coords.append(dims[2])

    if any(c not in coord_vars for c in coords):
        return None
    if time_coord and time_coord not in coord_vars:
        return None

    return Mesh.from_dims(dims, coords), time_coord


def _units(collection: NetCDFCollection, name: str) -> str:
    units = collection.get_att_text(name, "units")
    if units is None or units.strip() in DIMENSIONLESS_UNITS:
        return ""
    return units.strip()


def register_data_vars(
    collection: NetCDFCollection,
    coord_vars: Dict[str, CoordinateVariable],
) -> Tuple[Dict[str, DataVariable], Dict[str, Mesh]]:
    """
    Scan the storage inventory for numeric data variables of spatial rank 1-3.

    Variables already registered as coordinates are excluded; variables
    whose mesh cannot be resolved are skipped.
    """
    data_vars: Dict[str, DataVariable] = {}
    meshes: Dict[str, Mesh] = {}

    for rank in DATA_VAR_RANKS:
        for name in collection.get_variable_names(rank, numeric_only=True):
            if name in coord_vars or name == TIME_TEXT_VAR:
                continue

            dtype = collection.get_xtype(name)
            if not np.issubdtype(dtype, np.number):
                continue

            resolved = resolve_mesh(collection.get_dim_names(name), collection.time_dim, coord_vars)
            if resolved is None:
                logger.debug(
                    "Skipping %s: no mesh for dimensions %s", name, collection.get_dim_names(name)
                )
                continue

            mesh, time_coord = resolved
            meshes.setdefault(mesh.name, mesh)
            data_vars[name] = DataVariable(
                name=name,
                units=_units(collection, name),
                xtype=str(dtype),
                periodic=(False,) * mesh.topology_dim,
                attributes=make_attributes(collection.get_atts(name)),
                mesh=mesh.name,
                time_coord_var=time_coord,
                location=GridLocation.NODE,
            )

    return data_vars, meshes
