"""
Structured grid topology tests.

Covers cell/node adjacency (interior and edge cases, with the None
placeholder for neighbours outside the grid), coordinate clamping on
periodic and degenerate axes, and odometer-order traversal with its end
sentinel.
"""

import pytest

from wrf_reader.core.exceptions import ParameterError, UnsupportedOperationError
from wrf_reader.grid.structured import (
    ForwardCellIterator, ForwardNodeIterator, StructuredGrid, cell_extents,
)


# ============================================================================
# Cell nodes
# ============================================================================

def test_cell_nodes_2d_counter_clockwise():
    grid = StructuredGrid([3, 3])
    assert grid.get_cell_nodes((0, 0)) == [(0, 0), (1, 0), (1, 1), (0, 1)]
    assert grid.get_cell_nodes((1, 1)) == [(1, 1), (2, 1), (2, 2), (1, 2)]


@pytest.mark.parametrize("cell", [(2, 0), (0, 2), (-1, 0), (5, 5)])
def test_cell_nodes_out_of_range_returns_none(cell):
    assert StructuredGrid([3, 3]).get_cell_nodes(cell) is None


def test_cell_nodes_3d_bottom_then_top():
    grid = StructuredGrid([3, 3, 3])
    nodes = grid.get_cell_nodes((0, 1, 1))
    assert nodes == [
        (0, 1, 1), (1, 1, 1), (1, 2, 1), (0, 2, 1),
        (0, 1, 2), (1, 1, 2), (1, 2, 2), (0, 2, 2),
    ]
    assert grid.get_cell_nodes((0, 0, 2)) is None


def test_cell_nodes_single_layer_3d():
    grid = StructuredGrid([3, 3, 1])
    assert grid.get_cell_nodes((1, 1, 0)) == [(1, 1, 0), (2, 1, 0), (2, 2, 0), (1, 2, 0)]
    assert grid.get_cell_nodes((0, 0, 1)) is None


def test_cell_index_rank_mismatch():
    with pytest.raises(ParameterError):
        StructuredGrid([3, 3]).get_cell_nodes((0, 0, 0))

# ============================================================================
# Neighbours
# ============================================================================

def test_cell_neighbors_interior():
    grid = StructuredGrid([4, 4])
    # below, right, top, left
    assert grid.get_cell_neighbors((1, 1)) == [(1, 0), (2, 1), (1, 2), (0, 1)]


def test_cell_neighbors_edges_keep_slots():
    grid = StructuredGrid([4, 4])
    assert grid.get_cell_neighbors((0, 0)) == [None, (1, 0), (0, 1), None]
    assert grid.get_cell_neighbors((2, 2)) == [(2, 1), None, None, (1, 2)]
    assert grid.get_cell_neighbors((3, 0)) is None


def test_node_cells_interior_and_corners():
    grid = StructuredGrid([4, 4])
    assert grid.get_node_cells((1, 1)) == [(0, 0), (1, 0), (1, 1), (0, 1)]
    assert grid.get_node_cells((0, 0)) == [None, None, (0, 0), None]
    assert grid.get_node_cells((3, 3)) == [(2, 2), None, None, None]
    assert grid.get_node_cells((3, 1)) == [(2, 0), None, None, (2, 1)]
    assert grid.get_node_cells((4, 0)) is None


def test_neighbor_queries_reject_3d():
    grid = StructuredGrid([3, 3, 3])
    with pytest.raises(UnsupportedOperationError, match="not yet supported"):
        grid.get_cell_neighbors((0, 0, 0))
    with pytest.raises(UnsupportedOperationError):
        grid.get_node_cells((0, 0, 0))

# ============================================================================
# Clamping
# ============================================================================

def test_clamp_periodic_axis_wraps():
    grid = StructuredGrid([361, 5], periodic=[True, False], min_ext=[0, 0], max_ext=[360, 4])
    assert grid.clamp_coord([370, 2]) == [10, 2]
    assert grid.clamp_coord([-10, 2]) == [350, 2]
    assert grid.clamp_coord([360, 2]) == [0, 2]
    assert grid.clamp_coord([725.5, 2]) == [5.5, 2]


def test_clamp_non_periodic_unchanged():
    grid = StructuredGrid([361, 5], min_ext=[0, 0], max_ext=[360, 4])
    assert grid.clamp_coord([370, -3]) == [370, -3]


def test_clamp_degenerate_axis_pins_to_min():
    grid = StructuredGrid([4, 4, 1], min_ext=[0, 0, 5.0], max_ext=[3, 3, 5.0])
    assert grid.clamp_coord([1.5, 2.5, 99.0]) == [1.5, 2.5, 5.0]


def test_clamp_truncates_extra_components():
    grid = StructuredGrid([4, 4])
    assert grid.clamp_coord([1, 2, 3, 4]) == [1, 2]


def test_clamp_too_few_components():
    with pytest.raises(ParameterError):
        StructuredGrid([4, 4]).clamp_coord([1])


def test_default_extents_are_index_space():
    grid = StructuredGrid([5, 3])
    assert grid.min_ext == (0.0, 0.0)
    assert grid.max_ext == (4.0, 2.0)

# ============================================================================
# Traversal
# ============================================================================

def test_cell_iteration_odometer_order():
    grid = StructuredGrid([4, 3])
    cells = list(grid.iter_cells())
    assert cells == [(0, 0), (1, 0), (2, 0), (0, 1), (1, 1), (2, 1)]
    assert len(set(cells)) == (4 - 1) * (3 - 1) == grid.num_cells


def test_cell_iterator_reaches_end_sentinel():
    grid = StructuredGrid([4, 3])
    it = grid.cell_begin()
    end = grid.cell_end()
    assert end.index == (0, 2)

    steps = 0
    while it != end:
        it.advance()
        steps += 1
    assert steps == 6
    assert it == end
    # advancing past the end stays put
    assert it.advance() == end


def test_node_iteration():
    grid = StructuredGrid([4, 3])
    nodes = list(grid.iter_nodes())
    assert len(nodes) == 12 == grid.num_nodes
    assert nodes[:5] == [(0, 0), (1, 0), (2, 0), (3, 0), (0, 1)]
    assert grid.node_end().index == (0, 3)


def test_node_iteration_3d():
    nodes = list(StructuredGrid([2, 2, 2]).iter_nodes())
    assert nodes == [
        (0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0),
        (0, 0, 1), (1, 0, 1), (0, 1, 1), (1, 1, 1),
    ]


def test_cell_iteration_3d_and_single_layer():
    assert list(StructuredGrid([3, 2, 2]).iter_cells()) == [(0, 0, 0), (1, 0, 0)]
    assert list(StructuredGrid([3, 2, 1]).iter_cells()) == [(0, 0, 0), (1, 0, 0)]


def test_traversal_is_restartable():
    grid = StructuredGrid([3, 3])
    assert list(grid.iter_cells()) == list(grid.iter_cells())


def test_no_cells_begin_equals_end():
    grid = StructuredGrid([1, 3])
    assert grid.cell_begin() == grid.cell_end()
    assert list(grid.iter_cells()) == []


def test_iterator_equality_compares_cursor_only():
    a = ForwardCellIterator([4, 3])
    b = ForwardCellIterator([5, 5])
    assert a == b
    a.advance()
    assert a != b


@pytest.mark.parametrize("dims", [[4], [2, 2, 2, 2]])
def test_iterator_rank_rejected(dims):
    with pytest.raises(ParameterError):
        ForwardNodeIterator(dims)


def test_cell_extents():
    assert cell_extents([4, 3]) == [3, 2]
    assert cell_extents([4, 3, 1]) == [3, 2, 1]
    assert cell_extents([4, 3, 5]) == [3, 2, 4]


def test_grid_rejects_bad_dims():
    with pytest.raises(ParameterError):
        StructuredGrid([])
    with pytest.raises(ParameterError):
        StructuredGrid([0, 3])
    with pytest.raises(ParameterError):
        StructuredGrid([3, 3], periodic=[True])
