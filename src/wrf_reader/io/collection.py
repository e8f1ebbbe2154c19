"""
WRF Reader NetCDF Collection

This module provides the raw storage provider: a collection of WRF netCDF files
(or in-memory xarray datasets) concatenated along the time dimension. All
dimension orders here are the native netCDF order (slowest-varying first);
normalization to the fastest-first convention happens in the handle table.
"""

import itertools
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import xarray as xr

from ..core.core_types import CollectionOptions
from ..core.exceptions import (
    InvalidHandleError, NoDataError, TimeStepOutOfRangeError, VariableNotFoundError,
    validate_region,
)

logger = logging.getLogger('wrf_reader.io.collection')

PathLike = Union[str, Path]

# ============================================================================
# Collection Class
# ============================================================================

class NetCDFCollection:
    """
    Time-concatenated view over one or more WRF datasets.

    Variables and dimensions are taken from the first dataset; the time
    dimension length is the total number of steps across all datasets.
    Variables without the time dimension are read from the first dataset.
    """

    def __init__(
        self,
        datasets: Sequence[xr.Dataset],
        time_dim: str = "Time",
        paths: Optional[Sequence[Path]] = None,
    ):
        if not datasets:
            raise NoDataError("at least one dataset is required")

        self.time_dim = time_dim
        self.paths = list(paths) if paths else []
        self._datasets = list(datasets)
        self._owns_datasets = bool(paths)

        # (dataset index, local step) for every global time step
        self._steps: List[Tuple[int, int]] = []
        for ds_index, ds in enumerate(self._datasets):
            n = int(ds.sizes.get(time_dim, 1))
            self._steps.extend((ds_index, i) for i in range(n))

        self._open: Dict[int, Tuple[int, str]] = {}
        self._ids = itertools.count()
        self._lock = threading.Lock()

        logger.debug(
            "Collection with %d dataset(s), %d time step(s)",
            len(self._datasets), len(self._steps)
        )

    @classmethod
    def from_files(
        cls,
        files: Union[PathLike, Sequence[PathLike]],
        options: Optional[CollectionOptions] = None,
    ) -> "NetCDFCollection":
        """
        Open WRF files lazily.

        Character arrays keep their raw dimensions (``concat_characters=False``)
        and no CF decoding is applied, so the collection exposes the file
        contents as stored.

        Args:
            files: One path or a sequence of paths
            options: Engine/chunk options

        Returns:
            NetCDFCollection: Collection over the files in the given order
        """
        options = options or CollectionOptions()
        if isinstance(files, (str, Path)):
            files = [files]
        paths = [Path(f) for f in files]
        if not paths:
            raise NoDataError("empty file list")

        datasets = []
        try:
            for path in paths:
                if not path.is_file():
                    raise FileNotFoundError(f"File not found: {path}")
                datasets.append(xr.open_dataset(
                    path,
                    engine=options.engine,
                    chunks=options.chunks,
                    decode_cf=False,
                    decode_times=False,
                    mask_and_scale=False,
                    concat_characters=False,
                ))
        except Exception:
            for ds in datasets:
                ds.close()
            raise

        logger.info("Opened %d WRF file(s)", len(paths))
        return cls(datasets, time_dim=options.time_dim, paths=paths)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close_all(self) -> None:
        """Release open tokens and close file-backed datasets."""
        with self._lock:
            self._open.clear()
        if self._owns_datasets:
            for ds in self._datasets:
                ds.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close_all()

    # ------------------------------------------------------------------
    # Dimensions
    # ------------------------------------------------------------------

    @property
    def num_time_steps(self) -> int:
        return len(self._steps)

    @property
    def _first(self) -> xr.Dataset:
        return self._datasets[0]

    def get_dim_names(self, varname: Optional[str] = None) -> List[str]:
        """Dimension names of the collection, or of one variable (netCDF order)."""
        if varname is None:
            return list(self._first.sizes)
        return list(self._variable(varname).dims)

    def get_dims(self, varname: Optional[str] = None) -> List[int]:
        """Dimension lengths of the collection, or of one variable (netCDF order)."""
        names = self.get_dim_names(varname)
        lengths = []
        for name in names:
            if name == self.time_dim:
                lengths.append(self.num_time_steps)
            else:
                lengths.append(int(self._first.sizes[name]))
        return lengths

    def get_time_dim_name(self, varname: str) -> str:
        """Time dimension of a variable, empty string when time-invariant."""
        dims = self._variable(varname).dims
        return self.time_dim if self.time_dim in dims else ""

    def get_spatial_dim_names(self, varname: str) -> List[str]:
        return [d for d in self._variable(varname).dims if d != self.time_dim]

    def get_spatial_dims(self, varname: str) -> List[int]:
        var = self._variable(varname)
        return [int(var.sizes[d]) for d in var.dims if d != self.time_dim]

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def get_att(self, varname: str, attname: str) -> Any:
        """
        Raw attribute value, or None when absent.

        Args:
            varname: Variable name, or "" for global attributes
            attname: Attribute name
        """
        if varname == "":
            return self._first.attrs.get(attname)
        if varname not in self._first.variables:
            return None
        return self._first[varname].attrs.get(attname)

    def get_att_values(self, varname: str, attname: str) -> Optional[np.ndarray]:
        """Numeric attribute values as a 1-D array, or None if absent or textual."""
        raw = self.get_att(varname, attname)
        if raw is None:
            return None
        arr = np.atleast_1d(np.asarray(raw))
        if arr.dtype.kind not in ("i", "u", "f", "b"):
            return None
        return arr.ravel()

    def get_att_text(self, varname: str, attname: str) -> Optional[str]:
        raw = self.get_att(varname, attname)
        if raw is None:
            return None
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return raw if isinstance(raw, str) else None

    def get_atts(self, varname: str) -> Dict[str, Any]:
        """All attributes of a variable ("" for global), empty when unknown."""
        if varname == "":
            return dict(self._first.attrs)
        if varname not in self._first.variables:
            return {}
        return dict(self._first[varname].attrs)

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def get_variable_names(self, spatial_rank: int, numeric_only: bool = True) -> List[str]:
        """
        Variables with exactly ``spatial_rank`` non-time dimensions.

        Returns names sorted alphabetically.
        """
        names = []
        for name, var in self._first.variables.items():
            if len([d for d in var.dims if d != self.time_dim]) != spatial_rank:
                continue
            if numeric_only and not np.issubdtype(var.dtype, np.number):
                continue
            names.append(str(name))
        return sorted(names)

    def variable_exists(self, varname: str, time_step: Optional[int] = None) -> bool:
        if varname not in self._first.variables:
            return False
        if time_step is None:
            return True
        return 0 <= time_step < self.num_time_steps

    def get_xtype(self, varname: str) -> np.dtype:
        return self._variable(varname).dtype

    def _variable(self, varname: str) -> xr.Variable:
        if varname not in self._first.variables:
            raise VariableNotFoundError([varname])
        return self._first.variables[varname]

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def open_read(self, time_step: int, varname: str) -> int:
        """Open a variable at a storage time step and return a token."""
        if not self.variable_exists(varname):
            raise VariableNotFoundError([varname])
        if not 0 <= time_step < self.num_time_steps:
            raise TimeStepOutOfRangeError(time_step, self.num_time_steps)

        with self._lock:
            token = next(self._ids)
            self._open[token] = (time_step, varname)
        return token

    def read(self, start: Sequence[int], count: Sequence[int], token: int) -> np.ndarray:
        """
        Read a hyperslab of the spatial dimensions (netCDF order).

        Args:
            start: Start index per spatial dimension
            count: Number of samples per spatial dimension
            token: Token from open_read

        Returns:
            np.ndarray: Values with shape ``count``
        """
        with self._lock:
            entry = self._open.get(token)
        if entry is None:
            raise InvalidHandleError(token)
        time_step, varname = entry

        spatial = self.get_spatial_dim_names(varname)
        stop = [s + c - 1 for s, c in zip(start, count)]
        validate_region(varname, self.get_spatial_dims(varname), list(start), stop)

        indexers = {dim: slice(s, s + c) for dim, s, c in zip(spatial, start, count)}
        if self.get_time_dim_name(varname):
            ds_index, local_step = self._steps[time_step]
            indexers[self.time_dim] = local_step
            var = self._datasets[ds_index].variables[varname]
        else:
            var = self._first.variables[varname]

        # .values computes only the selected block for dask-backed variables
        return np.asarray(var.isel(indexers).values)

    def close(self, token: int) -> None:
        with self._lock:
            if self._open.pop(token, None) is None:
                raise InvalidHandleError(token)

    def read_text(self, varname: str, time_step: int) -> str:
        """
        Read a character-array variable at one time step as a string.

        Handles both raw ``(Time, DateStrLen)`` char arrays and already
        concatenated string variables.
        """
        if not 0 <= time_step < self.num_time_steps:
            raise TimeStepOutOfRangeError(time_step, self.num_time_steps)
        var = self._variable(varname)
        if self.get_time_dim_name(varname):
            ds_index, local_step = self._steps[time_step]
            var = self._datasets[ds_index].variables[varname].isel({self.time_dim: local_step})
        values = np.asarray(var.values)
        return _decode_text(values)

    def __repr__(self) -> str:
        return (
            f"NetCDFCollection({len(self._datasets)} dataset(s), "
            f"{self.num_time_steps} time steps)"
        )


def _decode_text(values: np.ndarray) -> str:
    """Join a character array (or decode a string scalar) into text."""
    if values.dtype.kind == "S":
        return b"".join(values.ravel().tolist()).decode("utf-8", errors="replace").rstrip("\x00 ")
    if values.dtype.kind in ("U", "O"):
        parts = [v.decode("utf-8", errors="replace") if isinstance(v, bytes) else str(v)
                 for v in values.ravel().tolist()]
        return "".join(parts).rstrip("\x00 ")
    raise ValueError(f"not a character array: dtype {values.dtype}")
