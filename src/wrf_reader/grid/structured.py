"""
WRF Reader Structured Grid Topology

Cell/node adjacency, coordinate clamping and odometer-order traversal for
regular 2-D and 3-D meshes. Works purely from dimension lengths and
periodicity; no data values are touched.

Conventions:
- Indices are tuples ordered fastest-varying axis first (x, y[, z]).
- ``dims`` are node counts per axis; a cell spans two consecutive nodes
  along every axis, so cell indices satisfy ``index <= n - 2``.
- A 3-D grid with depth 1 is a single layer of 2-D cells with z index 0.
"""

import logging
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..core.exceptions import ParameterError, UnsupportedOperationError

logger = logging.getLogger('wrf_reader.grid.structured')

Index = Tuple[int, ...]


def cell_extents(dims: Sequence[int]) -> List[int]:
    """Number of cells along each axis of a grid with ``dims`` nodes."""
    extents = [max(int(n) - 1, 0) for n in dims]
    if len(dims) == 3 and dims[2] == 1:
        extents[2] = 1
    return extents

# ============================================================================
# Iterators
# ============================================================================

class _ForwardIterator:
    """
    Odometer traversal over ``extents`` (fastest axis first).

    The end position has every axis at 0 except the last, which sits one
    past its range. Equality compares cursors only.
    """

    def __init__(self, extents: Sequence[int], at_end: bool = False):
        if len(extents) not in (2, 3):
            raise ParameterError(
                "dims", str(list(extents)), "Only 2-D and 3-D traversal is supported"
            )
        self._extents = [int(e) for e in extents]
        self._index = [0] * len(self._extents)
        if at_end or any(e <= 0 for e in self._extents):
            self._index[-1] = self._extents[-1]

    @property
    def index(self) -> Index:
        return tuple(self._index)

    @property
    def at_end(self) -> bool:
        return self._index[-1] >= self._extents[-1]

    def advance(self) -> "_ForwardIterator":
        """Step to the next index; a no-op at the end position."""
        if self.at_end:
            return self
        self._index[0] += 1
        for axis in range(len(self._index) - 1):
            if self._index[axis] < self._extents[axis]:
                break
            self._index[axis] = 0
            self._index[axis + 1] += 1
        return self

    def __iter__(self) -> Iterator[Index]:
        return self

    def __next__(self) -> Index:
        if self.at_end:
            raise StopIteration
        current = self.index
        self.advance()
        return current

    def __eq__(self, other) -> bool:
        if not isinstance(other, _ForwardIterator):
            return NotImplemented
        return self._index == other._index

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.index})"


class ForwardCellIterator(_ForwardIterator):
    """Traverses the cells of a grid with the given node dimensions."""

    def __init__(self, dims: Sequence[int], at_end: bool = False):
        super().__init__(cell_extents(dims), at_end)


class ForwardNodeIterator(_ForwardIterator):
    """Traverses the nodes of a grid with the given node dimensions."""

    def __init__(self, dims: Sequence[int], at_end: bool = False):
        super().__init__(dims, at_end)

# ============================================================================
# Grid
# ============================================================================

class StructuredGrid:
    """
    Topology of a regular grid.

    Args:
        dims: Node count per axis, fastest-varying first (1 to 3 axes)
        periodic: Per-axis periodicity, all False by default
        min_ext: Per-axis lower extent used by clamp_coord, default 0
        max_ext: Per-axis upper extent used by clamp_coord, default n - 1

    Examples:
        >>> grid = StructuredGrid([3, 3])
        >>> grid.get_cell_nodes((0, 0))
        [(0, 0), (1, 0), (1, 1), (0, 1)]
    """

    def __init__(
        self,
        dims: Sequence[int],
        periodic: Optional[Sequence[bool]] = None,
        min_ext: Optional[Sequence[float]] = None,
        max_ext: Optional[Sequence[float]] = None,
    ):
        if not 1 <= len(dims) <= 3:
            raise ParameterError("dims", str(list(dims)), "Grid must have 1 to 3 axes")
        if any(int(n) < 1 for n in dims):
            raise ParameterError("dims", str(list(dims)), "Every axis needs at least one node")

        self.dims: Tuple[int, ...] = tuple(int(n) for n in dims)
        rank = len(self.dims)

        self.periodic = tuple(bool(p) for p in periodic) if periodic is not None else (False,) * rank
        self.min_ext = tuple(min_ext) if min_ext is not None else (0.0,) * rank
        self.max_ext = tuple(max_ext) if max_ext is not None else tuple(float(n - 1) for n in self.dims)

        for name, values in (("periodic", self.periodic), ("min_ext", self.min_ext), ("max_ext", self.max_ext)):
            if len(values) != rank:
                raise ParameterError(name, str(list(values)), f"Expected {rank} values")

    @property
    def topology_dim(self) -> int:
        return len(self.dims)

    @property
    def is_layer(self) -> bool:
        """True for a 3-D grid that is a single layer deep."""
        return self.topology_dim == 3 and self.dims[2] == 1

    @property
    def num_nodes(self) -> int:
        return int(np.prod(self.dims))

    @property
    def num_cells(self) -> int:
        return int(np.prod(cell_extents(self.dims)))

    def _check_rank(self, index: Sequence[int], what: str) -> None:
        if len(index) != self.topology_dim:
            raise ParameterError(
                what, str(list(index)), f"Expected {self.topology_dim} components"
            )

    def is_valid_cell(self, cell: Sequence[int]) -> bool:
        self._check_rank(cell, "cell")
        return all(0 <= c < n for c, n in zip(cell, cell_extents(self.dims)))

    def is_valid_node(self, node: Sequence[int]) -> bool:
        self._check_rank(node, "node")
        return all(0 <= c < n for c, n in zip(node, self.dims))

    # ------------------------------------------------------------------
    # Adjacency
    # ------------------------------------------------------------------

    def get_cell_nodes(self, cell: Sequence[int]) -> Optional[List[Index]]:
        """
        Corner nodes of a cell, counter-clockwise from the cell's own index.

        3-D cells list the bottom face, then the top face with the same
        winding. Returns None when the cell index is out of range.
        """
        if not self.is_valid_cell(cell):
            return None

        if self.topology_dim == 1:
            i = cell[0]
            return [(i,), (i + 1,)]

        i, j = cell[0], cell[1]
        face = [(i, j), (i + 1, j), (i + 1, j + 1), (i, j + 1)]
        if self.topology_dim == 2:
            return face

        k = cell[2]
        if self.is_layer:
            return [(x, y, k) for x, y in face]
        return [(x, y, k) for x, y in face] + [(x, y, k + 1) for x, y in face]

    def _require_2d(self, operation: str) -> None:
        if self.topology_dim != 2:
            raise UnsupportedOperationError(
                operation, f"{self.topology_dim}-D grids are handled in 2-D only"
            )

    def get_cell_neighbors(self, cell: Sequence[int]) -> Optional[List[Optional[Index]]]:
        """
        Neighbouring cells in the order below, right, top, left.

        Slots for neighbours outside the grid hold None. Returns None when
        the cell index itself is out of range.

        Raises:
            UnsupportedOperationError: For grids that are not 2-D
        """
        self._require_2d("GetCellNeighbors")
        if not self.is_valid_cell(cell):
            return None

        i, j = cell
        candidates = [(i, j - 1), (i + 1, j), (i, j + 1), (i - 1, j)]
        return [c if self.is_valid_cell(c) else None for c in candidates]

    def get_node_cells(self, node: Sequence[int]) -> Optional[List[Optional[Index]]]:
        """
        Cells sharing a node, counter-clockwise from the one below-left.

        Order is below-left, below-right, top-right, top-left; slots for
        cells outside the grid hold None. Returns None when the node index
        is out of range.

        Raises:
            UnsupportedOperationError: For grids that are not 2-D
        """
        self._require_2d("GetNodeCells")
        if not self.is_valid_node(node):
            return None

        i, j = node
        candidates = [(i - 1, j - 1), (i, j - 1), (i, j), (i - 1, j)]
        return [c if self.is_valid_cell(c) else None for c in candidates]

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------

    def clamp_coord(self, coords: Sequence[float]) -> List[float]:
        """
        Bring a user coordinate into the grid domain.

        Components beyond the grid rank are dropped. Single-node axes are
        pinned to their lower extent; periodic axes wrap into
        ``[min_ext, max_ext)``. Other out-of-range values are unchanged.

        Raises:
            ParameterError: If fewer components than the grid rank are given
        """
        if len(coords) < self.topology_dim:
            raise ParameterError(
                "coords", str(list(coords)), f"Expected at least {self.topology_dim} components"
            )

        out = list(coords[:self.topology_dim])
        for axis, value in enumerate(out):
            lo, hi = self.min_ext[axis], self.max_ext[axis]
            if self.dims[axis] == 1:
                out[axis] = lo
            elif self.periodic[axis] and hi > lo and not lo <= value < hi:
                out[axis] = lo + (value - lo) % (hi - lo)
        return out

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def cell_begin(self) -> ForwardCellIterator:
        return ForwardCellIterator(self.dims)

    def cell_end(self) -> ForwardCellIterator:
        return ForwardCellIterator(self.dims, at_end=True)

    def node_begin(self) -> ForwardNodeIterator:
        return ForwardNodeIterator(self.dims)

    def node_end(self) -> ForwardNodeIterator:
        return ForwardNodeIterator(self.dims, at_end=True)

    def iter_cells(self) -> Iterator[Index]:
        """Fresh traversal of all cell indices."""
        return self.cell_begin()

    def iter_nodes(self) -> Iterator[Index]:
        """Fresh traversal of all node indices."""
        return self.node_begin()

    def __repr__(self) -> str:
        return f"StructuredGrid(dims={self.dims}, periodic={self.periodic})"
