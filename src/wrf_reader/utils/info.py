"""
WRF Reader Information Utilities

This module provides summaries of an initialized WRF data collection:
dimensions, coordinates, data variables, meshes, time range and projection.
"""

from typing import Dict, List

from ..data_collection import WRFDataCollection


# ============================================================================
# Collection Summary
# ============================================================================

def get_collection_info(dc: WRFDataCollection) -> Dict:
    """
    Get summary information for an initialized collection.

    Args:
        dc: Initialized WRFDataCollection

    Returns:
        Dict: Dimensions, variables, meshes, time range and projection

    Examples:
        >>> info = get_collection_info(dc)
        >>> print(f"Grid: {info['dimensions']['west_east']} x {info['dimensions']['south_north']}")
        >>> print(f"Times: {info['time_range']}")
    """
    store = dc.store
    atts = store.global_attributes

    num_steps = dc.get_num_time_steps()
    time_range = None
    if num_steps:
        time_range = (dc.get_time_text(0), dc.get_time_text(num_steps - 1))

    return {
        'dimensions': {name: store.get_dimension(name).length for name in store.get_dimension_names()},
        'num_time_steps': num_steps,
        'time_range': time_range,
        'coordinate_variables': store.get_coord_var_names(),
        'data_variables': store.get_data_var_names(),
        'meshes': {
            name: list(store.get_mesh(name).coord_vars) for name in store.get_mesh_names()
        },
        'map_proj': atts.map_proj,
        'map_projection': store.map_projection,
        'dx': atts.dx,
        'dy': atts.dy,
        'center': (atts.cen_lat, atts.cen_lon),
        'planetary': atts.is_planetary,
    }


def get_variables_by_mesh(dc: WRFDataCollection) -> Dict[str, List[str]]:
    """Data variable names grouped by mesh name."""
    grouped: Dict[str, List[str]] = {name: [] for name in dc.get_mesh_names()}
    for name in dc.get_data_var_names():
        grouped[dc.get_data_var_info(name).mesh].append(name)
    return grouped


def print_collection_info(dc: WRFDataCollection) -> None:
    """Print a human-readable summary of a collection."""
    info = get_collection_info(dc)

    print("WRF collection")
    print("=" * 40)
    dims = ", ".join(f"{k}={v}" for k, v in info['dimensions'].items())
    print(f"Dimensions: {dims}")
    print(f"Time steps: {info['num_time_steps']}")
    if info['time_range']:
        print(f"Time range: {info['time_range'][0]} .. {info['time_range'][1]}")
    print(f"Grid spacing: {info['dx']:g} x {info['dy']:g} m")
    print(f"Center: lat={info['center'][0]:g}, lon={info['center'][1]:g}")
    print(f"Projection (MAP_PROJ={info['map_proj']}): {info['map_projection']}")
    print(f"Coordinate variables: {', '.join(info['coordinate_variables'])}")

    for mesh, names in get_variables_by_mesh(dc).items():
        print(f"Mesh {mesh} ({', '.join(info['meshes'][mesh])}):")
        print(f"  {', '.join(names)}")
