import pytest

from minededuce.board import Board


def _check_invariants(board: Board) -> None:
    for cell in board.iter_cells():
        buckets = (cell.mine_neighbors, cell.free_neighbors, cell.unknown_neighbors)
        assert set().union(*buckets) == set(cell.neighbors)
        assert sum(len(b) for b in buckets) == len(cell.neighbors)

        for coord in cell.neighbors:
            neighbor = board.cell(coord)
            if neighbor.is_mine:
                assert coord in cell.mine_neighbors
            elif neighbor.is_free:
                assert coord in cell.free_neighbors
            else:
                assert coord in cell.unknown_neighbors


@pytest.fixture
def check_invariants():
    """Assert the partition and symmetry invariants on every cell of a board."""
    return _check_invariants
