"""
Derived Coordinate Variable Registry

This module provides coordinate variables that are not stored in the WRF files
but computed on read:

- Staggered horizontal coordinates (XLONG_U, XLAT_V, ...) interpolated from the
  unstaggered XLONG/XLAT fields
- Unitless 1D index coordinates for vertical dimensions
- The "Time" coordinate decoded from the "Times" character array

Each derived variable hands out tokens from open_read(); the state behind a
token is private to that token, so opens at different time steps never share
mutable data. Regions are inclusive index ranges, fastest-varying axis first;
returned arrays are ordered slowest-varying axis first, like stored variables.
"""

import itertools
import logging
import re
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core.config import (
    TIME_AXIS, TIME_UNITS, VERTICAL_AXIS, WRF_TIME_PATTERN,
)
from ..core.core_types import CoordinateVariable
from ..core.exceptions import (
    CoordinateError, InvalidFormatError, InvalidHandleError, TimeStepOutOfRangeError,
    VariableNotFoundError, validate_region,
)
from ..io.collection import NetCDFCollection
from ..io.handle_table import StorageAccessor

logger = logging.getLogger('wrf_reader.coordinates.derived')

# ============================================================================
# Numerical Helpers
# ============================================================================

def stagger_array(values: np.ndarray, axis: int) -> np.ndarray:
    """
    Interpolate samples onto the staggered (half-step offset) positions.

    For n samples along ``axis`` the result has n + 1 samples. Interior
    values are midpoints of adjacent samples; the two boundary values are
    linear extrapolations of the nearest two samples.

    Args:
        values: Unstaggered samples
        axis: Axis to stagger

    Returns:
        np.ndarray: Staggered samples (float64)

    Examples:
        >>> stagger_array(np.array([10.0, 20.0, 30.0]), 0)
        array([ 5., 15., 25., 35.])
    """
    values = np.asarray(values, dtype=np.float64)
    n = values.shape[axis]
    if n == 0:
        raise ValueError("cannot stagger an empty axis")

    a = np.moveaxis(values, axis, -1)
    out = np.empty(a.shape[:-1] + (n + 1,), dtype=np.float64)

    if n == 1:
        # Nothing to extrapolate from
        out[..., 0] = a[..., 0]
        out[..., 1] = a[..., 0]
    else:
        out[..., 1:n] = 0.5 * (a[..., :-1] + a[..., 1:])
        out[..., 0] = a[..., 0] - 0.5 * (a[..., 1] - a[..., 0])
        out[..., n] = a[..., -1] + 0.5 * (a[..., -1] - a[..., -2])

    return np.moveaxis(out, -1, axis)


def parse_wrf_time(text: str) -> float:
    """
    Convert a WRF time string (YYYY-MM-DD_HH:MM:SS) to POSIX seconds.

    Raises:
        InvalidFormatError: If the string is malformed
    """
    text = text.strip()
    if not re.match(WRF_TIME_PATTERN, text):
        raise InvalidFormatError("WRF time string", "YYYY-MM-DD_HH:MM:SS", repr(text))
    try:
        value = np.datetime64(text.replace("_", "T"), "s")
    except ValueError as e:
        raise InvalidFormatError("WRF time string", "YYYY-MM-DD_HH:MM:SS", f"{text!r} ({e})") from e
    return float(value.astype("int64"))

# ============================================================================
# Base Class
# ============================================================================

class DerivedCoordVar(ABC):
    """
    A coordinate variable computed on read.

    Subclasses implement initialize(), get_dim_lens() and _compute().
    """

    def __init__(self, name: str):
        self.name = name
        self._info: Optional[CoordinateVariable] = None
        self._tokens: Dict[int, int] = {}
        self._ids = itertools.count()
        self._lock = threading.Lock()

    @abstractmethod
    def initialize(self) -> None:
        """Validate sources and cache shape/unit metadata."""

    @abstractmethod
    def get_dim_lens(self) -> List[int]:
        """Spatial dimension lengths, fastest-varying first."""

    @abstractmethod
    def _compute(self, time_step: int, min_idx: Sequence[int], max_idx: Sequence[int]) -> np.ndarray:
        """Compute values for one region at a storage time step."""

    @property
    def coord_var_info(self) -> CoordinateVariable:
        if self._info is None:
            raise CoordinateError(self.name, "derived variable is not initialized")
        return self._info

    def variable_exists(self, time_step: int) -> bool:
        return True

    def open_read(self, time_step: int) -> int:
        with self._lock:
            token = next(self._ids)
            self._tokens[token] = time_step
        return token

    def close_variable(self, token: int) -> None:
        with self._lock:
            if self._tokens.pop(token, None) is None:
                raise InvalidHandleError(token)

    def read_region(self, token: int, min_idx: Sequence[int], max_idx: Sequence[int]) -> np.ndarray:
        with self._lock:
            time_step = self._tokens.get(token)
        if time_step is None:
            raise InvalidHandleError(token)
        validate_region(self.name, self.get_dim_lens(), list(min_idx), list(max_idx))
        return self._compute(time_step, list(min_idx), list(max_idx))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

# ============================================================================
# Staggered Horizontal Coordinates
# ============================================================================

class StaggeredCoordVar(DerivedCoordVar):
    """
    Coordinate on a staggered dimension, derived from its unstaggered source.

    Older WRF files have no XLONG_U/XLAT_U/XLONG_V/XLAT_V; these are
    interpolated from XLONG/XLAT along the staggered axis.
    """

    def __init__(
        self,
        name: str,
        stag_dim_name: str,
        storage: StorageAccessor,
        in_name: str,
        dim_name: str,
        axis: int,
        units: str,
    ):
        super().__init__(name)
        self.stag_dim_name = stag_dim_name
        self.storage = storage
        self.in_name = in_name
        self.dim_name = dim_name
        self.axis = axis
        self.units = units
        self._stag_axis = -1
        self._in_lens: List[int] = []
        self._dim_lens: List[int] = []

    def initialize(self) -> None:
        collection = self.storage.collection
        if not collection.variable_exists(self.in_name):
            raise CoordinateError(self.name, f"source variable '{self.in_name}' not found")

        in_dims = self.storage.get_dim_names(self.in_name)
        if self.dim_name not in in_dims:
            raise CoordinateError(
                self.name, f"source '{self.in_name}' has no dimension '{self.dim_name}'"
            )
        self._stag_axis = in_dims.index(self.dim_name)
        self._in_lens = self.storage.get_dim_lens(self.in_name)

        self._dim_lens = list(self._in_lens)
        self._dim_lens[self._stag_axis] += 1

        global_dims = dict(zip(collection.get_dim_names(), collection.get_dims()))
        stag_len = global_dims.get(self.stag_dim_name)
        if stag_len is not None and stag_len != self._dim_lens[self._stag_axis]:
            raise CoordinateError(
                self.name,
                f"'{self.stag_dim_name}' has length {stag_len}, expected "
                f"{self._dim_lens[self._stag_axis]}"
            )

        dim_names = list(in_dims)
        dim_names[self._stag_axis] = self.stag_dim_name
        self._info = CoordinateVariable(
            name=self.name,
            units=self.units,
            xtype="float32",
            periodic=(False,) * len(dim_names),
            axis=self.axis,
            dim_names=tuple(dim_names),
            time_dim_name=collection.get_time_dim_name(self.in_name),
        )

    def get_dim_lens(self) -> List[int]:
        return list(self._dim_lens)

    def _compute(self, time_step, min_idx, max_idx):
        k = self._stag_axis

        # Read the full line along the staggered axis; other axes as requested
        src_min = list(min_idx)
        src_max = list(max_idx)
        src_min[k] = 0
        src_max[k] = self._in_lens[k] - 1

        token = self.storage.open(time_step, self.in_name)
        try:
            source = self.storage.read(token, src_min, src_max)
        finally:
            self.storage.close(token)

        np_axis = source.ndim - 1 - k
        staggered = stagger_array(source, np_axis)
        selection = [slice(None)] * staggered.ndim
        selection[np_axis] = slice(min_idx[k], max_idx[k] + 1)
        return staggered[tuple(selection)].astype(np.float32)

# ============================================================================
# 1D Index Coordinates
# ============================================================================

class Index1DCoordVar(DerivedCoordVar):
    """
    Unitless coordinate 0, 1, ..., N-1 along a single dimension.

    Used for vertical dimensions, which WRF does not describe with a
    physical coordinate variable. Time-invariant.
    """

    def __init__(
        self,
        name: str,
        collection: NetCDFCollection,
        dim_name: str,
        axis: int = VERTICAL_AXIS,
        units: str = "",
    ):
        super().__init__(name)
        self.collection = collection
        self.dim_name = dim_name
        self.axis = axis
        self.units = units
        self._length = 0

    def initialize(self) -> None:
        dims = dict(zip(self.collection.get_dim_names(), self.collection.get_dims()))
        if self.dim_name not in dims:
            raise CoordinateError(self.name, f"dimension '{self.dim_name}' not found")
        self._length = int(dims[self.dim_name])
        self._info = CoordinateVariable(
            name=self.name,
            units=self.units,
            xtype="float32",
            periodic=(False,),
            axis=self.axis,
            dim_names=(self.dim_name,),
            time_dim_name="",
        )

    def get_dim_lens(self) -> List[int]:
        return [self._length]

    def _compute(self, time_step, min_idx, max_idx):
        return np.arange(min_idx[0], max_idx[0] + 1, dtype=np.float32)

# ============================================================================
# Time Coordinate
# ============================================================================

class WRFTimeCoordVar(DerivedCoordVar):
    """
    Time in seconds decoded from the WRF "Times" character array.

    Logical time steps are ordered chronologically; time_lookup() maps a
    logical step to the storage step holding it. Seconds are scaled by
    the planetary day factor (P2SI). A malformed time string only fails
    the read of that step.
    """

    def __init__(
        self,
        name: str,
        collection: NetCDFCollection,
        wrf_var_name: str,
        dim_name: str,
        p2si: float = 1.0,
    ):
        super().__init__(name)
        self.collection = collection
        self.wrf_var_name = wrf_var_name
        self.dim_name = dim_name
        self.p2si = p2si
        self._texts: Tuple[str, ...] = ()
        self._perm: Tuple[int, ...] = ()

    def initialize(self) -> None:
        if not self.collection.variable_exists(self.wrf_var_name):
            raise CoordinateError(self.name, f"time variable '{self.wrf_var_name}' not found")

        n = self.collection.num_time_steps
        self._texts = tuple(self.collection.read_text(self.wrf_var_name, ts) for ts in range(n))

        # Fixed-width WRF time strings sort chronologically as text
        self._perm = tuple(sorted(range(n), key=lambda ts: self._texts[ts]))

        self._info = CoordinateVariable(
            name=self.name,
            units=TIME_UNITS,
            xtype="float64",
            periodic=(),
            axis=TIME_AXIS,
            dim_names=(),
            time_dim_name=self.dim_name,
        )

    def get_dim_lens(self) -> List[int]:
        return []

    def time_lookup(self, time_step: int) -> int:
        """Storage time step for a logical time step."""
        if not 0 <= time_step < len(self._perm):
            raise TimeStepOutOfRangeError(time_step, len(self._perm))
        return self._perm[time_step]

    def variable_exists(self, time_step: int) -> bool:
        return 0 <= time_step < len(self._texts)

    def time_text(self, storage_step: int) -> str:
        return self._texts[storage_step]

    def times(self) -> np.ndarray:
        """All times in seconds, in logical (chronological) order."""
        return np.array(
            [parse_wrf_time(self._texts[ts]) * self.p2si for ts in self._perm],
            dtype=np.float64,
        )

    def _compute(self, time_step, min_idx, max_idx):
        seconds = parse_wrf_time(self._texts[time_step]) * self.p2si
        return np.asarray(seconds, dtype=np.float64)

# ============================================================================
# Manager
# ============================================================================

class DerivedVariableManager:
    """
    Registry of derived coordinate variables, looked up by name.

    Tokens returned by open_read() are manager-level; each maps to the
    owning variable and the variable's own token.
    """

    def __init__(self):
        self._registry: Dict[str, DerivedCoordVar] = {}
        self._open: Dict[int, Tuple[DerivedCoordVar, int]] = {}
        self._ids = itertools.count()
        self._lock = threading.Lock()
        logger.debug("Initialized derived variable manager")

    def add_coord_var(self, var: DerivedCoordVar) -> None:
        """Register an initialized derived variable."""
        if var.name in self._registry:
            logger.warning(f"Derived variable '{var.name}' already registered, overwriting")
        self._registry[var.name] = var
        logger.debug(f"Registered derived variable: {var.name}")

    def is_coord_var(self, name: str) -> bool:
        return name in self._registry

    def get(self, name: str) -> Optional[DerivedCoordVar]:
        return self._registry.get(name)

    def get_coord_var_info(self, name: str) -> Optional[CoordinateVariable]:
        var = self._registry.get(name)
        return var.coord_var_info if var else None

    def list_all(self) -> List[str]:
        return sorted(self._registry)

    def get_dim_lens(self, name: str) -> List[int]:
        return self._require(name).get_dim_lens()

    def variable_exists(self, time_step: int, name: str) -> bool:
        var = self._registry.get(name)
        return bool(var and var.variable_exists(time_step))

    def open_read(self, time_step: int, name: str) -> int:
        var = self._require(name)
        var_token = var.open_read(time_step)
        with self._lock:
            token = next(self._ids)
            self._open[token] = (var, var_token)
        return token

    def read_region(self, token: int, min_idx: Sequence[int], max_idx: Sequence[int]) -> np.ndarray:
        with self._lock:
            entry = self._open.get(token)
        if entry is None:
            raise InvalidHandleError(token)
        var, var_token = entry
        return var.read_region(var_token, min_idx, max_idx)

    def close_variable(self, token: int) -> None:
        with self._lock:
            entry = self._open.pop(token, None)
        if entry is None:
            raise InvalidHandleError(token)
        var, var_token = entry
        var.close_variable(var_token)

    def _require(self, name: str) -> DerivedCoordVar:
        var = self._registry.get(name)
        if var is None:
            raise VariableNotFoundError([name], self.list_all())
        return var

    def __repr__(self) -> str:
        return f"DerivedVariableManager({len(self._registry)} variables registered)"
