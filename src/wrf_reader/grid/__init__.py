"""
WRF Reader Grid Topology

Adjacency, clamping and traversal for structured meshes.
"""

from .structured import (
    StructuredGrid,
    ForwardCellIterator,
    ForwardNodeIterator,
    cell_extents,
)

__all__ = [
    "StructuredGrid",
    "ForwardCellIterator",
    "ForwardNodeIterator",
    "cell_extents",
]
