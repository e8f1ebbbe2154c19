"""
Shared fixtures for the WRF Reader test suite.

``make_wrf_dataset`` builds small in-memory datasets laid out like WRF
output (raw character Times array, staggered dimensions, Lambert conformal
projection attributes) so no files are needed.

Grid values are chosen so expected results are easy to compute:
    XLONG = 100 + 10 * i      (i along west_east)
    XLAT  = 30 + 10 * j       (j along south_north)
    T2    = 280 + 100 * t + 10 * j + i
"""

from typing import Dict, Optional, Sequence

import numpy as np
import pytest
import xarray as xr

from wrf_reader.io.collection import NetCDFCollection

NX, NY, NZ = 4, 3, 2

DEFAULT_TIMES = ("2000-01-24_12:00:00", "2000-01-24_13:00:00")

DEFAULT_GLOBAL_ATTRS = {
    "TITLE": " OUTPUT FROM WRF V4.4 MODEL",
    "DX": np.float32(3000.0),
    "DY": np.float32(3000.0),
    "CEN_LAT": np.float32(40.0),
    "CEN_LON": np.float32(-100.0),
    "TRUELAT1": np.float32(30.0),
    "TRUELAT2": np.float32(60.0),
    "STAND_LON": np.float32(-100.0),
    "MAP_PROJ": np.int32(1),
}


def _times_array(times: Sequence[str]) -> np.ndarray:
    return np.array([list(t.ljust(19)) for t in times], dtype="S1")


def make_wrf_dataset(
    times: Sequence[str] = DEFAULT_TIMES,
    nx: int = NX,
    ny: int = NY,
    nz: int = NZ,
    global_attrs: Optional[Dict] = None,
    drop_attrs: Sequence[str] = (),
    with_v_stag: bool = True,
    u_stag_len: Optional[int] = None,
    t2_offset: float = 0.0,
) -> xr.Dataset:
    """
    Build a synthetic WRF output dataset.

    Args:
        times: Times strings, one per step
        nx, ny, nz: Unstaggered grid size
        global_attrs: Global attributes overriding the defaults
        drop_attrs: Global attribute names to remove
        with_v_stag: Include south_north_stag (V, XLONG_V, XLAT_V)
        u_stag_len: Length of west_east_stag (default nx + 1)
        t2_offset: Added to T2, to tell datasets apart
    """
    nt = len(times)
    nu = nx + 1 if u_stag_len is None else u_stag_len
    t = np.arange(nt).reshape(nt, 1, 1)
    j = np.arange(ny).reshape(1, ny, 1)
    i = np.arange(nx).reshape(1, 1, nx)

    xlong = np.broadcast_to(100.0 + 10.0 * i, (nt, ny, nx)).astype(np.float32)
    xlat = np.broadcast_to(30.0 + 10.0 * j, (nt, ny, nx)).astype(np.float32)
    t2 = (280.0 + t2_offset + 100.0 * t + 10.0 * j + i).astype(np.float32)

    data_vars = {
        "Times": (("Time", "DateStrLen"), _times_array(times)),
        "XLONG": (("Time", "south_north", "west_east"), xlong,
                  {"units": "degree_east", "description": "LONGITUDE, WEST IS NEGATIVE"}),
        "XLAT": (("Time", "south_north", "west_east"), xlat,
                 {"units": "degree_north", "description": "LATITUDE, SOUTH IS NEGATIVE"}),
        "T": (("Time", "bottom_top", "south_north", "west_east"),
              np.arange(nt * nz * ny * nx, dtype=np.float32).reshape(nt, nz, ny, nx),
              {"units": "K", "description": "perturbation potential temperature (theta-t0)"}),
        "U": (("Time", "bottom_top", "south_north", "west_east_stag"),
              np.ones((nt, nz, ny, nu), dtype=np.float32),
              {"units": "m s-1", "stagger": "X"}),
        "W": (("Time", "bottom_top_stag", "south_north", "west_east"),
              np.zeros((nt, nz + 1, ny, nx), dtype=np.float32),
              {"units": "m s-1", "stagger": "Z"}),
        "T2": (("Time", "south_north", "west_east"), t2, {"units": "K"}),
        "LU_INDEX": (("Time", "south_north", "west_east"),
                     np.full((nt, ny, nx), 16, dtype=np.int32),
                     {"units": "", "description": "LAND USE CATEGORY"}),
        "HGT": (("south_north", "west_east"), np.full((ny, nx), 250.0, dtype=np.float32),
                {"units": "m"}),
        # Not resolvable to a mesh
        "ZNU": (("Time", "bottom_top"), np.tile(np.linspace(1.0, 0.0, nz, dtype=np.float32), (nt, 1))),
        "BAD": (("Time", "west_east", "south_north"), np.zeros((nt, nx, ny), dtype=np.float32)),
        "TSLB": (("Time", "soil_layers", "south_north", "west_east"),
                 np.zeros((nt, 4, ny, nx), dtype=np.float32), {"units": "K"}),
    }

    if with_v_stag:
        jv = np.arange(ny + 1).reshape(1, ny + 1, 1)
        data_vars["XLONG_V"] = (("Time", "south_north_stag", "west_east"),
                                np.broadcast_to(100.0 + 10.0 * i, (nt, ny + 1, nx)).astype(np.float32),
                                {"units": "degree_east"})
        data_vars["XLAT_V"] = (("Time", "south_north_stag", "west_east"),
                               np.broadcast_to(25.0 + 10.0 * jv, (nt, ny + 1, nx)).astype(np.float32),
                               {"units": "degree_north"})
        data_vars["V"] = (("Time", "bottom_top", "south_north_stag", "west_east"),
                          np.ones((nt, nz, ny + 1, nx), dtype=np.float32),
                          {"units": "m s-1", "stagger": "Y"})

    attrs = dict(DEFAULT_GLOBAL_ATTRS)
    attrs.update(global_attrs or {})
    for name in drop_attrs:
        attrs.pop(name, None)

    return xr.Dataset(data_vars, attrs=attrs)


@pytest.fixture
def wrf_dataset() -> xr.Dataset:
    return make_wrf_dataset()


@pytest.fixture
def collection(wrf_dataset) -> NetCDFCollection:
    coll = NetCDFCollection([wrf_dataset])
    yield coll
    coll.close_all()


@pytest.fixture
def dataset_factory():
    return make_wrf_dataset
