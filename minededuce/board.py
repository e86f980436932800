"""The constraint graph: a fixed grid of cells plus global mine bookkeeping."""

from collections import deque
from typing import Deque, Dict, Iterator, List, Sequence, Set, Tuple

from .cell import Cell
from .exceptions import InconsistentBoardError
from .utils import Coord, format_grid, get_neighborhoods, parse_grid


class Board:
    """
    Grid of cells wired into a shared neighbor graph.

    The Board owns every Cell and is the only place classifications change.
    Each reclassification moves the cell between partition buckets of all its
    neighbors (one hop) and queues those neighbors on ``changed`` so the
    driver can tell whether a sweep made progress.
    """

    def __init__(self, grid: Sequence[Sequence[str]], total_mines: int) -> None:
        """
        Build the cells and wire their neighbor partitions in one pass.

        Args:
            grid: Rows of tokens ("x", "?", or a count).
            total_mines: Number of mines hidden on the whole board.

        Raises:
            ValueError: If the grid is empty or ragged, or total_mines is invalid.
        """
        if not grid or not grid[0]:
            raise ValueError("Grid must have at least one cell.")
        if any(len(row) != len(grid[0]) for row in grid):
            raise ValueError("Grid rows must all have the same length.")

        self.rows: int = len(grid)
        self.cols: int = len(grid[0])
        if total_mines < 0 or total_mines > self.rows * self.cols:
            raise ValueError("total_mines must lie between 0 and the number of cells.")
        self.total_mines: int = total_mines

        self._neighborhoods: Dict[Coord, Tuple[Coord, ...]] = get_neighborhoods(
            self.rows, self.cols
        )
        self.cells: List[List[Cell]] = [
            [
                Cell(row, col, grid[row][col], self._neighborhoods[(row, col)])
                for col in range(self.cols)
            ]
            for row in range(self.rows)
        ]

        self.found_mines: Set[Coord] = set()
        self.unresolved: Set[Coord] = set()
        self.pending_reveal: Deque[Coord] = deque()
        self.changed: Deque[Coord] = deque()

        for cell in self.iter_cells():
            cell.set_neighbors(self.cell(n) for n in cell.neighbors)
            if cell.is_mine:
                self.found_mines.add(cell.coord)
            elif not cell.is_resolved:
                self.unresolved.add(cell.coord)

        if len(self.found_mines) > total_mines:
            raise ValueError("Grid marks more mines than total_mines.")

    @classmethod
    def from_text(cls, text: str, total_mines: int) -> "Board":
        """Build a board from grid text (rows on lines, cells split by spaces)."""
        return cls(parse_grid(text), total_mines)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def cell(self, coord: Coord) -> Cell:
        row, col = coord
        return self.cells[row][col]

    def iter_cells(self) -> Iterator[Cell]:
        for row in self.cells:
            yield from row

    @property
    def remaining_mines(self) -> int:
        return self.total_mines - len(self.found_mines)

    def unknown_cells(self) -> List[Coord]:
        """Unclassified cells in row-major order."""
        return sorted(c for c in self.unresolved if self.cell(c).is_unknown)

    def open_constraints(self) -> List[Coord]:
        """Counted free cells that still border an unknown cell, in row-major order."""
        return sorted(
            c
            for c in self.unresolved
            if self.cell(c).is_counted and self.cell(c).unknown_neighbors
        )

    # -------------------------------------------------------------------------
    # Reclassification
    # -------------------------------------------------------------------------

    def mark_mine(self, coord: Coord) -> bool:
        """
        Classify a cell as a mine and move it into every neighbor's mine bucket.

        Returns:
            True if the classification changed.
        """
        cell = self.cell(coord)
        if cell.is_mine:
            return False

        cell.classify_mine()
        self.found_mines.add(coord)
        self.unresolved.discard(coord)
        if len(self.found_mines) > self.total_mines:
            raise InconsistentBoardError(
                f"Marking {coord} exceeds the total of {self.total_mines} mines."
            )

        for n in cell.neighbors:
            if self.cell(n).set_neighbor_mine(coord):
                self._touch(n)
        return True

    def mark_free(self, coord: Coord) -> bool:
        """
        Classify a cell as free (pending reveal) and move it into every neighbor's free bucket.

        Returns:
            True if the classification changed.
        """
        cell = self.cell(coord)
        if cell.is_free:
            return False

        cell.classify_free()
        self.pending_reveal.append(coord)

        for n in cell.neighbors:
            if self.cell(n).set_neighbor_free(coord):
                self._touch(n)
        return True

    def set_revealed(self, coord: Coord, mines: int) -> None:
        """Store the count returned by the oracle for a cell proved free."""
        cell = self.cell(coord)
        cell.set_count(mines)
        if cell.is_resolved:
            self.unresolved.discard(coord)
        else:
            self.unresolved.add(coord)

    def _touch(self, coord: Coord) -> None:
        self.changed.append(coord)
        if self.cell(coord).is_resolved:
            self.unresolved.discard(coord)

    def drain_changes(self) -> List[Coord]:
        """Pop every queued neighbor update, oldest first."""
        drained = list(self.changed)
        self.changed.clear()
        return drained

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def to_grid(self) -> List[List[str]]:
        return [[cell.token for cell in row] for row in self.cells]

    def to_text(self) -> str:
        return format_grid(self.to_grid())
