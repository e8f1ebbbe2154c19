"""
Initialization pipeline tests: global attributes, required dimensions,
coordinate registration, variable-to-mesh resolution, the metadata store
query surface and determinism.
"""

import logging

import pytest

from wrf_reader.core.core_types import GridLocation
from wrf_reader.core.exceptions import (
    CoordinateError, MissingAttributeError, MissingDimensionError,
    UnsupportedProjectionError,
)
from wrf_reader.io.collection import NetCDFCollection
from wrf_reader.metadata.attributes import read_global_attributes
from wrf_reader.metadata.pipeline import build_metadata, resolve_mesh

from conftest import NX, NY, NZ


def _build(ds):
    return build_metadata(NetCDFCollection([ds]))

# ============================================================================
# Global attributes
# ============================================================================

def test_global_attribute_defaults(collection):
    atts = read_global_attributes(collection)
    assert (atts.dx, atts.dy, atts.cen_lat, atts.cen_lon) == (3000.0, 3000.0, 40.0, -100.0)
    assert (atts.pole_lat, atts.pole_lon) == (90.0, 0.0)
    assert (atts.grav, atts.radius, atts.p2si) == (9.81, 0.0, 1.0)
    assert not atts.is_planetary


def test_planetary_attribute_group(dataset_factory):
    ds = dataset_factory(global_attrs={"G": 3.72, "RADIUS": 3396000.0, "P2SI": 1.0275})
    result = _build(ds)
    atts = result.global_attributes
    assert (atts.grav, atts.radius, atts.p2si) == (3.72, 3396000.0, 1.0275)
    assert atts.is_planetary
    assert result.map_projection.endswith(" +ellps=sphere +a=3.396e+06 +es=0")
    assert result.time_var.times()[0] == pytest.approx(948715200.0 * 1.0275)


def test_gravity_makes_radius_required(dataset_factory):
    ds = dataset_factory(global_attrs={"G": 3.72, "P2SI": 1.0275})
    with pytest.raises(MissingAttributeError, match="RADIUS"):
        _build(ds)


@pytest.mark.parametrize("name", ["DX", "DY", "CEN_LAT", "CEN_LON", "MAP_PROJ"])
def test_required_global_attributes(dataset_factory, name):
    with pytest.raises(MissingAttributeError, match=name):
        _build(dataset_factory(drop_attrs=[name]))


def test_unsupported_map_proj(dataset_factory):
    with pytest.raises(UnsupportedProjectionError):
        _build(dataset_factory(global_attrs={"MAP_PROJ": 4}))

# ============================================================================
# Dimensions and coordinates
# ============================================================================

def test_missing_required_dimension(dataset_factory):
    with pytest.raises(MissingDimensionError, match="south_north_stag"):
        _build(dataset_factory(with_v_stag=False))


def test_missing_longitude_is_fatal(wrf_dataset):
    with pytest.raises(CoordinateError, match="XLONG"):
        _build(wrf_dataset.drop_vars("XLONG"))


def test_malformed_latitude_is_fatal(wrf_dataset):
    ds = wrf_dataset.assign(XLAT=wrf_dataset["XLAT"].isel(Time=0))
    with pytest.raises(CoordinateError, match="XLAT"):
        _build(ds)


def test_coordinate_variables(wrf_dataset):
    store = _build(wrf_dataset).store
    assert store.get_coord_var_names() == [
        "Time", "XLAT", "XLAT_U", "XLAT_V", "XLONG", "XLONG_U", "XLONG_V",
        "bottom_top", "bottom_top_stag",
    ]

    xlong = store.get_coord_var_info("XLONG")
    assert xlong.units == "degrees_east"
    assert xlong.dim_names == ("west_east", "south_north")
    assert xlong.time_varying
    assert xlong.get_attribute("description").as_text() == "LONGITUDE, WEST IS NEGATIVE"

    xlat_u = store.get_coord_var_info("XLAT_U")
    assert (xlat_u.axis, xlat_u.units) == (1, "degrees_north")
    assert xlat_u.dim_names == ("west_east_stag", "south_north")

    vertical = store.get_coord_var_info("bottom_top_stag")
    assert (vertical.axis, vertical.units, vertical.time_varying) == (2, "", False)


def test_stored_staggered_coordinates_are_not_derived(wrf_dataset):
    result = _build(wrf_dataset)
    assert result.derived.is_coord_var("XLONG_U")
    assert not result.derived.is_coord_var("XLONG_V")
    assert result.derived.list_all() == ["Time", "XLAT_U", "XLONG_U", "bottom_top", "bottom_top_stag"]


def test_underivable_staggered_coordinate_is_skipped(dataset_factory, caplog):
    ds = dataset_factory(u_stag_len=NX + 3)
    with caplog.at_level(logging.WARNING, logger="wrf_reader"):
        store = _build(ds).store
    assert store.get_coord_var_info("XLONG_U") is None
    assert store.get_data_var_info("U") is None
    assert "Skipping coordinate XLONG_U" in caplog.text

# ============================================================================
# Data variables and meshes
# ============================================================================

def test_data_variables(wrf_dataset):
    store = _build(wrf_dataset).store
    assert store.get_data_var_names() == ["HGT", "LU_INDEX", "T", "T2", "U", "V", "W"]
    for skipped in ("ZNU", "BAD", "TSLB", "Times", "XLONG"):
        assert store.get_data_var_info(skipped) is None


def test_data_variable_descriptor(wrf_dataset):
    store = _build(wrf_dataset).store
    t = store.get_data_var_info("T")
    assert t.mesh == "west_eastxsouth_northxbottom_top"
    assert t.units == "K"
    assert t.xtype == "float32"
    assert t.time_coord_var == "Time"
    assert t.location == GridLocation.NODE
    assert t.periodic == (False, False, False)

    assert store.get_data_var_info("LU_INDEX").xtype == "int32"
    assert store.get_data_var_info("LU_INDEX").units == ""
    assert store.get_data_var_info("HGT").time_coord_var == ""


def test_meshes(wrf_dataset):
    store = _build(wrf_dataset).store
    assert store.get_mesh("west_eastxsouth_northxbottom_top").coord_vars == ("XLONG", "XLAT", "bottom_top")
    assert store.get_mesh("west_east_stagxsouth_northxbottom_top").coord_vars == ("XLONG_U", "XLAT_U", "bottom_top")
    assert store.get_mesh("west_eastxsouth_north_stagxbottom_top").coord_vars == ("XLONG_V", "XLAT_V", "bottom_top")
    assert store.get_mesh("west_eastxsouth_northxbottom_top_stag").coord_vars == ("XLONG", "XLAT", "bottom_top_stag")
    assert store.get_mesh("west_eastxsouth_north").coord_vars == ("XLONG", "XLAT")
    for name in store.get_mesh_names():
        mesh = store.get_mesh(name)
        assert len(mesh.dim_names) == len(mesh.coord_vars)


def test_resolve_mesh(wrf_dataset):
    store = _build(wrf_dataset).store
    coords = {name: store.get_coord_var_info(name) for name in store.get_coord_var_names()}

    mesh, time_coord = resolve_mesh(("Time", "south_north", "west_east_stag"), "Time", coords)
    assert mesh.dim_names == ("west_east_stag", "south_north")
    assert mesh.coord_vars == ("XLONG_U", "XLAT_U")
    assert time_coord == "Time"

    assert resolve_mesh(("south_north_stag", "west_east_stag"), "Time", coords) is None
    assert resolve_mesh(("Time", "bottom_top"), "Time", coords) is None
    assert resolve_mesh(("Time", "soil_layers", "south_north", "west_east"), "Time", coords) is None
    assert resolve_mesh(("Time",), "Time", coords) is None

# ============================================================================
# Store queries
# ============================================================================

def test_dimensions(wrf_dataset):
    store = _build(wrf_dataset).store
    assert store.get_dimension("west_east_stag").length == NX + 1
    assert store.get_dimension("Time").length == 2
    assert store.get_dimension("nope") is None
    assert store.get_dimension_names() == sorted(store.get_dimension_names())


def test_var_dim_lens(wrf_dataset):
    store = _build(wrf_dataset).store
    assert store.get_var_dim_lens("T") == [NX, NY, NZ]
    assert store.get_var_dim_lens("T", spatial=False) == [NX, NY, NZ, 2]
    assert store.get_var_dim_lens("HGT", spatial=False) == [NX, NY]
    assert store.get_var_dim_lens("Time") == []
    assert store.get_var_dim_lens("Time", spatial=False) == [2]
    assert store.get_var_dim_lens("nope") is None


def test_attribute_queries(wrf_dataset):
    store = _build(wrf_dataset).store
    assert store.get_att("", "DX") == (3000.0,)
    assert store.get_att("", "MAP_PROJ", "long") == (1,)
    assert store.get_att_type("", "MAP_PROJ") == "long"
    assert store.get_att_type("", "DX") == "double"
    assert store.get_att_type("", "TITLE") == "text"
    assert store.get_att("T", "units", "text") == "K"
    assert store.get_att("T", "units") is None
    assert store.get_att("T", "nope") is None
    assert store.get_att_names("T") == ["description", "units"]
    assert store.get_att_names("nope") == []
    assert "CEN_LAT" in store.get_att_names("")
    with pytest.raises(ValueError):
        store.get_att("", "DX", "complex")


def test_map_projection_in_store(wrf_dataset):
    result = _build(wrf_dataset)
    assert result.store.map_projection == "+proj=lcc +lon_0=-100 +lat_1=30 +lat_2=60 +ellps=WGS84"
    assert result.global_attributes.map_proj == 1

# ============================================================================
# Determinism
# ============================================================================

def test_initialization_is_deterministic(wrf_dataset):
    first = _build(wrf_dataset).store
    second = _build(wrf_dataset).store
    assert first == second
    assert repr(first.to_dict()) == repr(second.to_dict())


def test_variable_order_does_not_matter(wrf_dataset):
    shuffled = wrf_dataset[list(reversed(list(wrf_dataset.data_vars)))]
    assert _build(shuffled).store == _build(wrf_dataset).store
