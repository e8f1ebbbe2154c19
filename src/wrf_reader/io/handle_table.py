"""
WRF Reader Variable Handle Table

This module multiplexes open read handles between the raw storage collection
and the derived variable manager. It is also the single place where the
fastest-first index order used by callers is converted to the slowest-first
order used by netCDF storage.
"""

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

import numpy as np

from ..core.core_types import reversed_tuple
from ..core.exceptions import InvalidHandleError, TimeStepOutOfRangeError
from .collection import NetCDFCollection

logger = logging.getLogger('wrf_reader.io.handle_table')

# ============================================================================
# Index Order Normalization
# ============================================================================

def to_storage_region(
    min_idx: Sequence[int], max_idx: Sequence[int]
) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """
    Convert an inclusive fastest-first region into netCDF start/count.

    Args:
        min_idx: Inclusive lower corner, fastest-varying axis first
        max_idx: Inclusive upper corner, fastest-varying axis first

    Returns:
        Tuple of (start, count), slowest-varying axis first
    """
    if len(min_idx) != len(max_idx):
        raise ValueError("min and max must have the same length")
    start = reversed_tuple(int(v) for v in min_idx)
    stop = reversed_tuple(int(v) for v in max_idx)
    count = tuple(hi - lo + 1 for lo, hi in zip(start, stop))
    return start, count


class StorageAccessor:
    """
    Fastest-first view of a NetCDFCollection.

    Used by the handle table for stored variables and by derived variables
    to read their sources. Time steps passed here are storage time steps.
    """

    def __init__(self, collection: NetCDFCollection):
        self.collection = collection

    def open(self, time_step: int, varname: str) -> int:
        return self.collection.open_read(time_step, varname)

    def read(self, token: int, min_idx: Sequence[int], max_idx: Sequence[int]) -> np.ndarray:
        start, count = to_storage_region(min_idx, max_idx)
        return self.collection.read(start, count, token)

    def close(self, token: int) -> None:
        self.collection.close(token)

    def get_dim_lens(self, varname: str) -> List[int]:
        """Spatial dimension lengths, fastest-varying first."""
        return list(reversed(self.collection.get_spatial_dims(varname)))

    def get_dim_names(self, varname: str) -> List[str]:
        """Spatial dimension names, fastest-varying first."""
        return list(reversed(self.collection.get_spatial_dim_names(varname)))

    def read_all(self, time_step: int, varname: str) -> np.ndarray:
        """Read the full spatial extent of a variable at one time step."""
        dims = self.get_dim_lens(varname)
        token = self.open(time_step, varname)
        try:
            return self.read(token, [0] * len(dims), [n - 1 for n in dims])
        finally:
            self.close(token)

# ============================================================================
# Handle Table
# ============================================================================

@dataclass(frozen=True)
class HandleEntry:
    """State of one open variable."""
    time_step: int
    varname: str
    aux: int
    derived: bool


class VariableHandleTable:
    """
    Arena of open variable handles.

    Handles are stable integers mapping to a HandleEntry that records the
    backend token and whether a derived variable serviced the open.
    """

    def __init__(
        self,
        storage: StorageAccessor,
        derived,
        time_lookup: Callable[[int], int],
    ):
        """
        Args:
            storage: Accessor for stored variables
            derived: DerivedVariableManager for computed variables
            time_lookup: Maps a logical time step to a storage time step
        """
        self.storage = storage
        self.derived = derived
        self.time_lookup = time_lookup
        self._entries: Dict[int, HandleEntry] = {}
        self._ids = itertools.count()
        self._lock = threading.Lock()

    @property
    def num_time_steps(self) -> int:
        return self.storage.collection.num_time_steps

    def open(self, time_step: int, varname: str) -> int:
        """
        Open a variable for reading at a logical time step.

        Raises:
            TimeStepOutOfRangeError: If time_step is not a valid step
        """
        if not 0 <= time_step < self.num_time_steps:
            raise TimeStepOutOfRangeError(time_step, self.num_time_steps)
        ts = self.time_lookup(time_step)

        if self.derived.is_coord_var(varname):
            aux = self.derived.open_read(ts, varname)
            derived = True
        else:
            aux = self.storage.open(ts, varname)
            derived = False

        with self._lock:
            handle = next(self._ids)
            self._entries[handle] = HandleEntry(ts, varname, aux, derived)

        logger.debug("Opened %s at step %d (handle %d, derived=%s)", varname, time_step, handle, derived)
        return handle

    def read(self, handle: int, min_idx: Sequence[int], max_idx: Sequence[int]) -> np.ndarray:
        """Read an inclusive region, fastest-varying axis first."""
        entry = self.get_entry(handle)
        if entry.derived:
            return self.derived.read_region(entry.aux, min_idx, max_idx)
        return self.storage.read(entry.aux, min_idx, max_idx)

    def close(self, handle: int) -> None:
        with self._lock:
            entry = self._entries.pop(handle, None)
        if entry is None:
            raise InvalidHandleError(handle)

        if entry.derived:
            self.derived.close_variable(entry.aux)
        else:
            self.storage.close(entry.aux)

    def close_all(self) -> None:
        """Close every open handle."""
        with self._lock:
            handles = list(self._entries)
        for handle in handles:
            self.close(handle)

    def get_entry(self, handle: int) -> HandleEntry:
        with self._lock:
            entry = self._entries.get(handle)
        if entry is None:
            raise InvalidHandleError(handle)
        return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
