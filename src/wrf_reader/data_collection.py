"""
WRF Data Collection

This module provides WRFDataCollection, the public entry point tying the
raw storage collection, the metadata store, the derived variable registry
and the handle table together.

Regions are inclusive index ranges given fastest-varying axis first
(west_east, south_north, vertical); returned arrays are ordered
slowest-varying axis first, matching netCDF memory layout.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import numpy as np
import pyproj
import xarray as xr

from .coordinates.projection import projection_crs
from .core.core_types import (
    BaseVariable, CollectionOptions, CoordinateVariable, DataVariable, Dimension, Mesh,
)
from .core.exceptions import NotInitializedError, VariableNotFoundError
from .io.collection import NetCDFCollection
from .io.handle_table import StorageAccessor, VariableHandleTable
from .metadata.pipeline import InitializationResult, build_metadata
from .metadata.store import MetadataStore

logger = logging.getLogger('wrf_reader.data_collection')

Source = Union[str, Path, Sequence[Union[str, Path]], xr.Dataset, Sequence[xr.Dataset], NetCDFCollection]


def _as_collection(source: Source, options: CollectionOptions) -> NetCDFCollection:
    """Wrap files, datasets or an existing collection as a NetCDFCollection."""
    if isinstance(source, NetCDFCollection):
        return source
    if isinstance(source, xr.Dataset):
        return NetCDFCollection([source], time_dim=options.time_dim)
    if isinstance(source, (list, tuple)) and source and all(isinstance(s, xr.Dataset) for s in source):
        return NetCDFCollection(list(source), time_dim=options.time_dim)
    return NetCDFCollection.from_files(source, options)


class WRFDataCollection:
    """
    Handle-based read access to a WRF output collection.

    Stored variables and derived coordinates (staggered longitude/latitude,
    vertical index coordinates and the decoded "Time") are read through the
    same open/read/close calls.

    Examples:
        >>> dc = WRFDataCollection()
        >>> dc.initialize(["wrfout_d01_2000-01-24_12:00:00"])
        >>> with dc.open_variable(0, "T2") as fd:
        ...     nx, ny = dc.get_dim_lens("T2")
        ...     t2 = dc.read_region(fd, [0, 0], [nx - 1, ny - 1])
        >>> t2.shape
        (ny, nx)
    """

    def __init__(self):
        self._collection: Optional[NetCDFCollection] = None
        self._result: Optional[InitializationResult] = None
        self._handles: Optional[VariableHandleTable] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, source: Source, options: Optional[CollectionOptions] = None) -> None:
        """
        Open a collection and build its metadata.

        On failure the previous state, if any, is left untouched.

        Args:
            source: File path(s), xarray Dataset(s) or a NetCDFCollection
            options: Engine/chunk options for file sources

        Raises:
            InitializationError: If the collection is not usable WRF output
        """
        options = options or CollectionOptions()
        collection = _as_collection(source, options)
        try:
            result = build_metadata(collection)
        except Exception:
            if collection is not source:
                collection.close_all()
            raise

        handles = VariableHandleTable(
            StorageAccessor(collection), result.derived, result.time_var.time_lookup
        )

        self.close()
        self._collection = collection
        self._result = result
        self._handles = handles

    def close(self) -> None:
        """Close all open handles and the underlying files."""
        if self._handles is not None:
            self._handles.close_all()
        if self._collection is not None:
            self._collection.close_all()
        self._collection = None
        self._result = None
        self._handles = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def initialized(self) -> bool:
        return self._result is not None

    @property
    def store(self) -> MetadataStore:
        if self._result is None:
            raise NotInitializedError()
        return self._result.store

    @property
    def collection(self) -> NetCDFCollection:
        if self._collection is None:
            raise NotInitializedError()
        return self._collection

    @property
    def _table(self) -> VariableHandleTable:
        if self._handles is None:
            raise NotInitializedError()
        return self._handles

    # ------------------------------------------------------------------
    # Metadata queries
    # ------------------------------------------------------------------

    def get_dimension(self, name: str) -> Optional[Dimension]:
        return self.store.get_dimension(name)

    def get_dimension_names(self) -> List[str]:
        return self.store.get_dimension_names()

    def get_mesh(self, name: str) -> Optional[Mesh]:
        return self.store.get_mesh(name)

    def get_mesh_names(self) -> List[str]:
        return self.store.get_mesh_names()

    def get_coord_var_info(self, name: str) -> Optional[CoordinateVariable]:
        return self.store.get_coord_var_info(name)

    def get_data_var_info(self, name: str) -> Optional[DataVariable]:
        return self.store.get_data_var_info(name)

    def get_base_var_info(self, name: str) -> Optional[BaseVariable]:
        return self.store.get_base_var_info(name)

    def get_coord_var_names(self) -> List[str]:
        return self.store.get_coord_var_names()

    def get_data_var_names(self) -> List[str]:
        return self.store.get_data_var_names()

    def get_att(self, varname: str, attname: str, kind: str = "double"):
        """Attribute values by expected type; varname "" for global attributes."""
        return self.store.get_att(varname, attname, kind)

    def get_att_names(self, varname: str) -> List[str]:
        return self.store.get_att_names(varname)

    def get_att_type(self, varname: str, attname: str) -> Optional[str]:
        return self.store.get_att_type(varname, attname)

    def get_dim_lens(self, name: str, spatial: bool = True) -> Optional[List[int]]:
        """
        Dimension lengths of a variable, fastest-varying first.

        With ``spatial=False`` the number of time steps is appended for
        time-varying variables. Returns None for unknown variables.
        """
        return self.store.get_var_dim_lens(name, spatial)

    def get_num_time_steps(self) -> int:
        return self.collection.num_time_steps

    def variable_exists(self, time_step: int, name: str) -> bool:
        """True if ``name`` is a known variable with data at ``time_step``."""
        if self.store.get_base_var_info(name) is None:
            return False
        if not 0 <= time_step < self.get_num_time_steps():
            return False
        storage_step = self._result.time_var.time_lookup(time_step)
        if self._result.derived.is_coord_var(name):
            return self._result.derived.variable_exists(storage_step, name)
        return self.collection.variable_exists(name, storage_step)

    def get_map_projection(self) -> str:
        """PROJ string mapping geographic degrees to projected meters."""
        return self.store.map_projection

    def get_map_projection_crs(self) -> pyproj.CRS:
        return projection_crs(self.get_map_projection())

    def get_time_text(self, time_step: int) -> str:
        """WRF time string at a logical time step."""
        time_var = self._result.time_var if self._result else None
        if time_var is None:
            raise NotInitializedError()
        return time_var.time_text(time_var.time_lookup(time_step))

    def get_times(self) -> np.ndarray:
        """Time coordinate values (seconds) for all logical time steps."""
        if self._result is None:
            raise NotInitializedError()
        return self._result.time_var.times()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def open_variable_read(self, time_step: int, name: str) -> int:
        """
        Open a variable for reading.

        Returns:
            int: Handle for read_region/close_variable

        Raises:
            VariableNotFoundError: If the variable is unknown
            TimeStepOutOfRangeError: If time_step is out of range
        """
        if self.store.get_base_var_info(name) is None:
            raise VariableNotFoundError(
                [name], self.store.get_coord_var_names() + self.store.get_data_var_names()
            )
        return self._table.open(time_step, name)

    def read_region(
        self,
        fd: int,
        min_idx: Sequence[int],
        max_idx: Sequence[int],
        dtype: Any = np.float32,
    ) -> np.ndarray:
        """
        Read an inclusive region from an open variable.

        The time coordinate is always returned as float64; other variables
        are cast to ``dtype`` (pass None to keep the stored type).

        Raises:
            InvalidHandleError: If fd is not open
            ParameterError: If the region is out of bounds
            InvalidFormatError: If the time string of this step is malformed
        """
        table = self._table
        data = table.read(fd, min_idx, max_idx)
        if dtype is None or table.get_entry(fd).varname == self._result.time_var.name:
            return data
        return data.astype(dtype, copy=False)

    def close_variable(self, fd: int) -> None:
        self._table.close(fd)

    @contextmanager
    def open_variable(self, time_step: int, name: str) -> Iterator[int]:
        """Open a variable for the duration of a with-block."""
        fd = self.open_variable_read(time_step, name)
        try:
            yield fd
        finally:
            self.close_variable(fd)

    def read_variable(self, time_step: int, name: str, dtype: Any = None) -> xr.DataArray:
        """
        Read the full spatial extent of a variable at one time step.

        Args:
            time_step: Logical time step
            name: Variable name
            dtype: Output type, stored type by default

        Returns:
            xr.DataArray: Values with dimension names (slowest first) and attributes
        """
        dim_names = self.store.get_var_dim_names(name)
        if dim_names is None:
            raise VariableNotFoundError(
                [name], self.store.get_coord_var_names() + self.store.get_data_var_names()
            )
        lens = self.store.get_var_dim_lens(name)

        with self.open_variable(time_step, name) as fd:
            data = self.read_region(fd, [0] * len(lens), [n - 1 for n in lens], dtype=dtype)

        var = self.store.get_base_var_info(name)
        attrs: Dict[str, Any] = {}
        for att in var.attributes:
            values = att.values
            attrs[att.name] = values[0] if isinstance(values, tuple) and len(values) == 1 else values
        if var.units:
            attrs["units"] = var.units

        return xr.DataArray(
            data, dims=tuple(reversed(dim_names)), name=name, attrs=attrs
        )

    def __repr__(self) -> str:
        if self._result is None:
            return "WRFDataCollection(uninitialized)"
        return f"WRFDataCollection({self.store!r}, {self.get_num_time_steps()} time steps)"
