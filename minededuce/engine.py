"""Ground-truth mine field acting as the reveal oracle."""

import random
from collections import deque
from typing import Deque, Dict, List, Optional, Set, Tuple

from .exceptions import MineRevealedError
from .utils import (
    MINE_TOKEN,
    UNKNOWN_TOKEN,
    Coord,
    format_grid,
    get_neighborhoods,
    parse_grid,
)

MINES_GENERATION_ALGORITHMS = ("safe_first_action_rule", "safe_neighborhood_rule")


class MineField:
    """Fully known board that answers reveal requests and builds puzzles from itself."""

    def __init__(self, solution: List[List[str]]) -> None:
        """
        Wrap a solved grid.

        Args:
            solution: Rows of tokens, each "x" (mine) or a neighbor count.

        Raises:
            ValueError: If the grid is ragged, holds unknown cells, or a count
                disagrees with the mines around it.
        """
        if not solution or not solution[0]:
            raise ValueError("Solution grid must have at least one cell.")
        if any(len(row) != len(solution[0]) for row in solution):
            raise ValueError("Solution rows must all have the same length.")

        self.height: int = len(solution)
        self.width: int = len(solution[0])
        self.board: List[List[str]] = [list(row) for row in solution]

        self._neighborhoods: Dict[Coord, Tuple[Coord, ...]] = get_neighborhoods(
            self.height, self.width
        )

        for row in range(self.height):
            for col in range(self.width):
                token = self.board[row][col]
                if token == UNKNOWN_TOKEN:
                    raise ValueError(f"Solution has an unknown cell at ({row}, {col}).")
                if token != MINE_TOKEN and int(token) != self._count_mines(row, col):
                    raise ValueError(f"Count at ({row}, {col}) disagrees with its neighbors.")

        self.mines_count: int = sum(
            1 for row in self.board for token in row if token == MINE_TOKEN
        )
        self.revealed: List[List[bool]] = [
            [False for _ in range(self.width)] for _ in range(self.height)
        ]
        self.reveal_count: int = 0

    @classmethod
    def from_text(cls, text: str) -> "MineField":
        return cls(parse_grid(text, allowed=(MINE_TOKEN,)))

    @classmethod
    def random(
        cls,
        height: int,
        width: int,
        mines_count: int,
        first_row: int,
        first_col: int,
        mines_generation_algorithm: str = "safe_neighborhood_rule",
        seed: Optional[int] = None,
    ) -> "MineField":
        """
        Place mines uniformly at random, keeping the first opened cell safe.

        Args:
            height: Number of rows, must be > 0.
            width: Number of columns, must be > 0.
            mines_count: Mines to place, must be >= 0.
            first_row: Row of the cell the puzzle is opened from.
            first_col: Column of the cell the puzzle is opened from.
            mines_generation_algorithm: "safe_first_action_rule" keeps only the
                first cell safe; "safe_neighborhood_rule" also keeps its neighbors safe.
            seed: Optional seed for reproducible placement.

        Raises:
            ValueError: If dimensions are invalid, the algorithm is unrecognized,
                or the safe zone leaves too few cells for the mines.
        """
        if height <= 0 or width <= 0:
            raise ValueError("Width and height must be positive.")
        if mines_count < 0:
            raise ValueError("mines_count must be non-negative.")
        if mines_generation_algorithm not in MINES_GENERATION_ALGORITHMS:
            raise ValueError(
                'mines_generation_algorithm must be "safe_first_action_rule" '
                'or "safe_neighborhood_rule".'
            )
        if not (0 <= first_row < height and 0 <= first_col < width):
            raise ValueError("First cell is outside the board.")

        neighborhoods = get_neighborhoods(height, width)
        safe: Set[Coord] = {(first_row, first_col)}
        if mines_generation_algorithm == "safe_neighborhood_rule":
            safe |= set(neighborhoods[(first_row, first_col)])

        eligible: List[Coord] = [
            (row, col)
            for row in range(height)
            for col in range(width)
            if (row, col) not in safe
        ]
        if mines_count > len(eligible):
            raise ValueError(
                f"Cannot place enough safe cells to satisfy {mines_generation_algorithm}."
            )

        rng = random.Random(seed)
        mines = set(rng.sample(eligible, mines_count))

        board: List[List[str]] = []
        for row in range(height):
            line: List[str] = []
            for col in range(width):
                if (row, col) in mines:
                    line.append(MINE_TOKEN)
                else:
                    line.append(str(sum(1 for n in neighborhoods[(row, col)] if n in mines)))
            board.append(line)
        return cls(board)

    def neighbors(self, row: int, col: int) -> Tuple[Coord, ...]:
        """Return precomputed neighbor coordinates for a cell."""
        return self._neighborhoods[(row, col)]

    def _count_mines(self, row: int, col: int) -> int:
        return sum(1 for nr, nc in self.neighbors(row, col) if self.board[nr][nc] == MINE_TOKEN)

    def is_mine(self, row: int, col: int) -> bool:
        return self.board[row][col] == MINE_TOKEN

    def reveal(self, row: int, col: int) -> int:
        """
        Reveal a single cell and return its neighbor mine count.

        Raises:
            ValueError: If coordinates are out of bounds.
            MineRevealedError: If the cell holds a mine.
        """
        if row < 0 or row >= self.height or col < 0 or col >= self.width:
            raise ValueError("Cell coordinates are outside the board.")

        if self.board[row][col] == MINE_TOKEN:
            raise MineRevealedError(row, col)

        if not self.revealed[row][col]:
            self.revealed[row][col] = True
            self.reveal_count += 1
        return int(self.board[row][col])

    def flood_fill(self, row: int, col: int) -> Set[Coord]:
        """
        Collect the cells a player would see after opening (row, col).

        Zero cells open their whole neighborhood, as in the classic game.
        The oracle's own reveal bookkeeping is left untouched.
        """
        if self.board[row][col] == MINE_TOKEN:
            raise MineRevealedError(row, col)

        frontier: Deque[Coord] = deque([(row, col)])
        opened: Set[Coord] = {(row, col)}

        while frontier:
            cr, cc = frontier.popleft()
            if self.board[cr][cc] != "0":
                continue
            for n in self.neighbors(cr, cc):
                if n in opened:
                    continue
                opened.add(n)
                frontier.append(n)

        return opened

    def puzzle_text(self, row: int, col: int) -> str:
        """Grid text with only the flood-filled opening around (row, col) shown."""
        opened = self.flood_fill(row, col)
        return format_grid(
            [
                [
                    self.board[r][c] if (r, c) in opened else UNKNOWN_TOKEN
                    for c in range(self.width)
                ]
                for r in range(self.height)
            ]
        )

    def solution_text(self) -> str:
        return format_grid(self.board)
