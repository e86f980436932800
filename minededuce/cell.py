"""Constraint-graph node and the local deduction rules it supports."""

import itertools
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Set, Tuple

from .exceptions import InconsistentBoardError
from .utils import MINE_TOKEN, UNKNOWN_TOKEN, Coord

if TYPE_CHECKING:
    from .board import Board

# (cells proved to be mines, cells proved to be free)
Proof = Tuple[Set[Coord], Set[Coord]]

RULE_NAMES: Tuple[str, ...] = ("all_mines", "all_free", "subset", "single_mine")


def no_proof() -> Proof:
    return set(), set()


class Cell:
    """
    One grid cell together with a three-way partition of its neighbors.

    Neighbors are held by coordinate only. The partition buckets
    (``mine_neighbors``, ``free_neighbors``, ``unknown_neighbors``) always
    cover the fixed neighborhood exactly once; the Board keeps them in sync
    with every neighbor's classification.
    """

    def __init__(self, row: int, col: int, token: str, neighbors: Tuple[Coord, ...]) -> None:
        """
        Create a cell from its grid token.

        Args:
            row: Row index.
            col: Column index.
            token: "x" for a mine, "?" for an unknown cell, or a count "0".."8".
            neighbors: Fixed geometric neighborhood of the cell.
        """
        self.row: int = row
        self.col: int = col
        self.neighbors: Tuple[Coord, ...] = neighbors

        self.is_mine: bool = token == MINE_TOKEN
        self.is_free: bool = token not in (MINE_TOKEN, UNKNOWN_TOKEN)
        # Neighbor mine count; None until the oracle (or the grid) provides it.
        self.mines: Optional[int] = int(token) if self.is_free else None

        self.mine_neighbors: Set[Coord] = set()
        self.free_neighbors: Set[Coord] = set()
        self.unknown_neighbors: Set[Coord] = set()

    def __repr__(self) -> str:
        return (
            f"Cell(row={self.row}, col={self.col}, token={self.token!r}, "
            f"unknown_neighbors={sorted(self.unknown_neighbors)})"
        )

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    @property
    def coord(self) -> Coord:
        return (self.row, self.col)

    @property
    def is_unknown(self) -> bool:
        return not self.is_mine and not self.is_free

    @property
    def is_counted(self) -> bool:
        """True for a free cell whose neighbor mine count is known."""
        return self.is_free and self.mines is not None

    @property
    def is_pending(self) -> bool:
        """True for a cell proved free but not yet revealed."""
        return self.is_free and self.mines is None

    @property
    def is_resolved(self) -> bool:
        return self.is_mine or (self.is_counted and not self.unknown_neighbors)

    @property
    def token(self) -> str:
        if self.is_mine:
            return MINE_TOKEN
        if self.mines is not None:
            return str(self.mines)
        return UNKNOWN_TOKEN

    @property
    def unknown_mines(self) -> int:
        """Mines still to be found among the unknown neighbors (the deficit)."""
        if self.mines is None:
            raise ValueError(f"Cell {self.coord} has no revealed neighbor count.")
        return self.mines - len(self.mine_neighbors)

    @property
    def unknown_free(self) -> int:
        """Free cells still to be found among the unknown neighbors (the surplus)."""
        return len(self.unknown_neighbors) - self.unknown_mines

    def set_neighbors(self, neighbor_cells: Iterable["Cell"]) -> None:
        """Sort every neighbor into its partition bucket from its current classification."""
        self.mine_neighbors.clear()
        self.free_neighbors.clear()
        self.unknown_neighbors.clear()
        for neighbor in neighbor_cells:
            if neighbor.is_mine:
                self.mine_neighbors.add(neighbor.coord)
            elif neighbor.is_free:
                self.free_neighbors.add(neighbor.coord)
            else:
                self.unknown_neighbors.add(neighbor.coord)

    def classify_mine(self) -> None:
        if self.is_free:
            raise InconsistentBoardError(f"Cell {self.coord} is free, cannot be a mine.")
        self.is_mine = True

    def classify_free(self) -> None:
        if self.is_mine:
            raise InconsistentBoardError(f"Cell {self.coord} is a mine, cannot be free.")
        self.is_free = True

    def set_count(self, mines: int) -> None:
        """Record the revealed neighbor mine count, checking it against the partitions."""
        if not self.is_free:
            raise InconsistentBoardError(f"Cell {self.coord} was revealed before being proved free.")
        deficit = mines - len(self.mine_neighbors)
        if deficit < 0 or deficit > len(self.unknown_neighbors):
            raise InconsistentBoardError(
                f"Count {mines} at {self.coord} does not fit "
                f"{len(self.mine_neighbors)} known and "
                f"{len(self.unknown_neighbors)} unknown neighbors."
            )
        self.mines = mines

    def set_neighbor_mine(self, coord: Coord) -> bool:
        """Move a neighbor from the unknown bucket to the mine bucket."""
        if coord not in self.unknown_neighbors:
            return False
        self.unknown_neighbors.remove(coord)
        self.mine_neighbors.add(coord)
        return True

    def set_neighbor_free(self, coord: Coord) -> bool:
        """Move a neighbor from the unknown bucket to the free bucket."""
        if coord not in self.unknown_neighbors:
            return False
        self.unknown_neighbors.remove(coord)
        self.free_neighbors.add(coord)
        return True

    # -------------------------------------------------------------------------
    # Deduction rules
    # -------------------------------------------------------------------------

    def overlapping_free_cells(self, board: "Board") -> List["Cell"]:
        """
        Return counted free cells that share at least one unknown neighbor with this cell.

        The result is in row-major order and excludes the cell itself.
        """
        seen: Set[Coord] = {self.coord}
        overlapping: List[Cell] = []

        for unknown in self.unknown_neighbors:
            for other_coord in board.cell(unknown).free_neighbors:
                if other_coord in seen:
                    continue
                seen.add(other_coord)
                other = board.cell(other_coord)
                if other.is_counted and other.unknown_neighbors:
                    overlapping.append(other)

        return sorted(overlapping, key=lambda c: c.coord)

    def all_unknown_mines(self) -> Proof:
        """Every unknown neighbor is a mine when the deficit equals their number."""
        if self.unknown_neighbors and self.unknown_mines == len(self.unknown_neighbors):
            return set(self.unknown_neighbors), set()
        return no_proof()

    def all_unknown_free(self) -> Proof:
        """Every unknown neighbor is free once all neighbor mines are found."""
        if self.unknown_neighbors and self.unknown_mines == 0:
            return set(), set(self.unknown_neighbors)
        return no_proof()

    def subset_proof(self, others: Sequence["Cell"]) -> Proof:
        """
        Compare this cell against free cells whose unknown sets are pairwise disjoint.

        The unknowns shared with each ``other`` can hold at most
        ``min(shared, own deficit, other's deficit)`` mines (likewise for free
        cells with the surplus). Whatever the shared parts cannot absorb must
        sit in the cells unique to this one; when that forced amount equals the
        number of unique cells they are all proved.
        """
        remaining = set(self.unknown_neighbors)
        deficit = self.unknown_mines
        surplus = self.unknown_free
        mine_bound = 0
        free_bound = 0

        for other in others:
            common = self.unknown_neighbors & other.unknown_neighbors
            remaining -= other.unknown_neighbors
            mine_bound += min(len(common), deficit, other.unknown_mines)
            free_bound += min(len(common), surplus, other.unknown_free)

        if not remaining:
            return no_proof()
        if len(remaining) == deficit - mine_bound:
            return remaining, set()
        if len(remaining) == surplus - free_bound:
            return set(), remaining
        return no_proof()

    def found_by_subsets(self, board: "Board") -> Proof:
        """Apply subset elimination against one overlapping cell, then against disjoint pairs."""
        others = self.overlapping_free_cells(board)

        for other in others:
            mines, frees = self.subset_proof([other])
            if mines or frees:
                return mines, frees

        for first, second in itertools.combinations(others, 2):
            if first.unknown_neighbors & second.unknown_neighbors:
                continue
            mines, frees = self.subset_proof([first, second])
            if mines or frees:
                return mines, frees

        return no_proof()

    def single_mine_placement(self, board: "Board") -> Proof:
        """
        Locate this cell's last mine by eliminating every impossible position.

        A candidate is dropped when placing the single mine there (and freeing
        the other unknown neighbors) would leave some overlapping cell unable
        to reach its own deficit. A lone survivor is the mine.
        """
        if self.unknown_mines != 1 or len(self.unknown_neighbors) < 2:
            return no_proof()

        others = self.overlapping_free_cells(board)
        survivors = [
            candidate
            for candidate in sorted(self.unknown_neighbors)
            if self._fits_single_mine(candidate, others)
        ]
        if len(survivors) != 1:
            return no_proof()

        mine = survivors[0]
        return {mine}, self.unknown_neighbors - {mine}

    def _fits_single_mine(self, candidate: Coord, others: Sequence["Cell"]) -> bool:
        for other in others:
            outside = len(other.unknown_neighbors - self.unknown_neighbors)
            needed = other.unknown_mines - (1 if candidate in other.unknown_neighbors else 0)
            if needed < 0 or needed > outside:
                return False
        return True

    def deduce(self, board: "Board") -> Tuple[Optional[str], Proof]:
        """
        Try the rules in order and return the first that proves anything.

        Returns:
            (rule_name, (mines, frees)); rule_name is None when nothing fired.
        """
        if not self.is_counted or not self.unknown_neighbors:
            return None, no_proof()

        attempts = (
            ("all_mines", self.all_unknown_mines),
            ("all_free", self.all_unknown_free),
            ("subset", lambda: self.found_by_subsets(board)),
            ("single_mine", lambda: self.single_mine_placement(board)),
        )
        for name, rule in attempts:
            mines, frees = rule()
            if mines or frees:
                return name, (mines, frees)
        return None, no_proof()
