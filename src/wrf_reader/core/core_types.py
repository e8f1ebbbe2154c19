"""
WRF Reader Type Definitions and Data Classes

This module defines all data structures and type aliases used throughout the codebase
for better type safety and code clarity. Metadata entities are frozen: they are built
once during initialization and are read-only afterwards.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union, Dict, Any, Sequence, Iterable
import numbers
import numpy as np

from .config import DEFAULT_ENGINE, DEFAULT_CHUNKS, TIME_DIM, MESH_NAME_SEPARATOR

# ============================================================================
# Type Aliases
# ============================================================================

AttributeValue = Union[str, Tuple[float, ...], Tuple[int, ...]]
IndexVector = Sequence[int]
ChunkSetting = Optional[Union[str, Dict[str, int]]]

# ============================================================================
# Enumerations
# ============================================================================

class GridLocation(str, Enum):
    """Where a data variable is sampled on its mesh."""
    NODE = "node"
    CELL = "cell"

# ============================================================================
# Attributes
# ============================================================================

@dataclass(frozen=True)
class Attribute:
    """
    A named, typed attribute value.

    Numeric values are stored as tuples so descriptors stay hashable and
    compare by value. ``xtype`` is one of ``"text"``, ``"long"`` or ``"double"``.
    """
    name: str
    values: AttributeValue

    @classmethod
    def from_raw(cls, name: str, raw: Any) -> "Attribute":
        """Build an attribute from a raw netCDF/xarray attribute value."""
        if isinstance(raw, bytes):
            return cls(name, raw.decode("utf-8", errors="replace"))
        if isinstance(raw, str):
            return cls(name, raw)

        arr = np.atleast_1d(np.asarray(raw))
        if arr.dtype.kind in ("S", "U", "O"):
            text = "".join(
                v.decode("utf-8", errors="replace") if isinstance(v, bytes) else str(v)
                for v in arr.ravel()
            )
            return cls(name, text)
        if arr.dtype.kind in ("i", "u", "b"):
            return cls(name, tuple(int(v) for v in arr.ravel()))
        return cls(name, tuple(float(v) for v in arr.ravel()))

    @property
    def xtype(self) -> str:
        if isinstance(self.values, str):
            return "text"
        if all(isinstance(v, numbers.Integral) for v in self.values):
            return "long"
        return "double"

    def as_doubles(self) -> Optional[Tuple[float, ...]]:
        """Values as floats, or None for text attributes."""
        if isinstance(self.values, str):
            return None
        return tuple(float(v) for v in self.values)

    def as_longs(self) -> Optional[Tuple[int, ...]]:
        """Values as integers (truncated), or None for text attributes."""
        if isinstance(self.values, str):
            return None
        return tuple(int(v) for v in self.values)

    def as_text(self) -> str:
        if isinstance(self.values, str):
            return self.values
        return " ".join(str(v) for v in self.values)


def make_attributes(raw_attrs: Dict[str, Any]) -> Tuple[Attribute, ...]:
    """Convert a raw attribute mapping into a name-sorted attribute tuple."""
    return tuple(Attribute.from_raw(name, raw_attrs[name]) for name in sorted(raw_attrs))

# ============================================================================
# Dimensions and Meshes
# ============================================================================

@dataclass(frozen=True)
class Dimension:
    """A named axis and its number of samples."""
    name: str
    length: int

    def __post_init__(self):
        if self.length < 0:
            raise ValueError(f"Dimension '{self.name}' length must be non-negative")


@dataclass(frozen=True)
class Mesh:
    """
    Association between spatial dimensions and their coordinate variables.

    Order is significant: ``coord_vars[i]`` gives the coordinate for
    ``dim_names[i]``. Dimension names are ordered fastest-varying first.
    """
    name: str
    dim_names: Tuple[str, ...]
    coord_vars: Tuple[str, ...]
    location: GridLocation = GridLocation.NODE

    def __post_init__(self):
        if len(self.dim_names) != len(self.coord_vars):
            raise ValueError(
                f"Mesh '{self.name}' has {len(self.dim_names)} dimensions "
                f"but {len(self.coord_vars)} coordinate variables"
            )

    @classmethod
    def from_dims(cls, dim_names: Sequence[str], coord_vars: Sequence[str]) -> "Mesh":
        """Create a mesh whose name is synthesized from its dimension names."""
        return cls(
            name=MESH_NAME_SEPARATOR.join(dim_names),
            dim_names=tuple(dim_names),
            coord_vars=tuple(coord_vars),
        )

    @property
    def topology_dim(self) -> int:
        return len(self.dim_names)

# ============================================================================
# Variables
# ============================================================================

@dataclass(frozen=True)
class BaseVariable:
    """Properties shared by coordinate and data variables."""
    name: str
    units: str
    xtype: str
    periodic: Tuple[bool, ...]
    attributes: Tuple[Attribute, ...] = ()

    def get_attribute(self, name: str) -> Optional[Attribute]:
        for att in self.attributes:
            if att.name == name:
                return att
        return None

    @property
    def attribute_names(self) -> Tuple[str, ...]:
        return tuple(att.name for att in self.attributes)


@dataclass(frozen=True)
class CoordinateVariable(BaseVariable):
    """
    A variable whose values are spatial or temporal positions.

    Attributes:
        axis: Logical axis (0=X, 1=Y, 2=Z, 3=T)
        dim_names: Spatial dimension names, fastest-varying first
        time_dim_name: Time dimension name, empty when time-invariant
    """
    axis: int = 0
    dim_names: Tuple[str, ...] = ()
    time_dim_name: str = ""

    @property
    def time_varying(self) -> bool:
        return bool(self.time_dim_name)


@dataclass(frozen=True)
class DataVariable(BaseVariable):
    """A physical field sampled on a mesh."""
    mesh: str = ""
    time_coord_var: str = ""
    location: GridLocation = GridLocation.NODE

# ============================================================================
# Global Attributes
# ============================================================================

@dataclass(frozen=True)
class GlobalAttributes:
    """
    Scalar global attributes resolved during initialization.

    Passed explicitly to the projection resolver and the derived
    variables that need them.

    Attributes:
        dx, dy: Grid spacing in meters
        cen_lat, cen_lon: Reference location in degrees
        pole_lat, pole_lon: Pole location for rotated lat-lon grids
        grav: Gravitational acceleration
        radius: Planetary radius; 0 means Earth (WGS84)
        p2si: Planetary day length in Earth days (time scaling factor)
        map_proj: WRF MAP_PROJ code
    """
    dx: float
    dy: float
    cen_lat: float
    cen_lon: float
    pole_lat: float = 90.0
    pole_lon: float = 0.0
    grav: float = 9.81
    radius: float = 0.0
    p2si: float = 1.0
    map_proj: int = 0

    @property
    def is_planetary(self) -> bool:
        """True when the data describe a non-Earth body."""
        return self.radius > 0

# ============================================================================
# Collection Options
# ============================================================================

@dataclass
class CollectionOptions:
    """
    Options for opening the raw storage collection.

    Attributes:
        engine: xarray backend engine
        chunks: Dask chunking configuration, None for eager numpy reads
        time_dim: Name of the time dimension used to concatenate files
    """
    engine: Optional[str] = DEFAULT_ENGINE
    chunks: ChunkSetting = DEFAULT_CHUNKS
    time_dim: str = TIME_DIM

    def __post_init__(self):
        """Validate collection options."""
        if isinstance(self.chunks, dict):
            for key, value in self.chunks.items():
                if not isinstance(key, str):
                    raise ValueError("Chunk keys must be strings")
                if not isinstance(value, int) or value <= 0:
                    raise ValueError("Chunk values must be positive integers")
        if not self.time_dim:
            raise ValueError("time_dim must be a non-empty string")

# ============================================================================
# Helpers
# ============================================================================

def reversed_tuple(values: Iterable) -> tuple:
    """Return the values in reverse order as a tuple."""
    return tuple(reversed(tuple(values)))
