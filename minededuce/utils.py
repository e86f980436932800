"""Grid helpers shared by the board, the oracle and the solver."""

from typing import Dict, List, Sequence, Tuple

Coord = Tuple[int, int]

MINE_TOKEN = "x"
UNKNOWN_TOKEN = "?"
UNDETERMINED = "?"

ROW_DELIMITER = "\n"
CELL_DELIMITER = " "

# Module-level cache: (rows, cols) -> {(row, col): ((nr, nc), ...), ...}
_NEIGHBORHOODS_CACHE: Dict[Tuple[int, int], Dict[Coord, Tuple[Coord, ...]]] = {}


def get_neighborhoods(rows: int, cols: int) -> Dict[Coord, Tuple[Coord, ...]]:
    """
    Precompute and cache 8-connected neighbor coordinates for every cell in a grid.

    Args:
        rows: Number of grid rows. Must be positive.
        cols: Number of grid columns. Must be positive.

    Returns:
        Mapping from each cell (row, col) to a tuple of valid neighboring
        coordinates (nr, nc) in row-major order.

    Raises:
        ValueError: If rows or cols is non-positive.
    """
    if rows <= 0 or cols <= 0:
        raise ValueError("rows and cols must be positive.")

    key = (rows, cols)
    cached = _NEIGHBORHOODS_CACHE.get(key)
    if cached is not None:
        return cached

    neighborhoods: Dict[Coord, Tuple[Coord, ...]] = {}
    for row in range(rows):
        for col in range(cols):
            nbrs: List[Coord] = []
            for dr in (-1, 0, 1):
                for dc in (-1, 0, 1):
                    if dr == 0 and dc == 0:
                        continue
                    nr, nc = row + dr, col + dc
                    if 0 <= nr < rows and 0 <= nc < cols:
                        nbrs.append((nr, nc))
            neighborhoods[(row, col)] = tuple(nbrs)

    _NEIGHBORHOODS_CACHE[key] = neighborhoods
    return neighborhoods


def is_count_token(token: str) -> bool:
    """Return True for a neighbor-count token ("0".."8")."""
    return token.isdigit() and 0 <= int(token) <= 8


def parse_grid(text: str, allowed: Sequence[str] = (MINE_TOKEN, UNKNOWN_TOKEN)) -> List[List[str]]:
    """
    Split grid text into rows of tokens.

    Args:
        text: Rows separated by newlines, cells separated by single spaces.
        allowed: Non-numeric tokens accepted in the grid.

    Returns:
        The grid as a list of rows.

    Raises:
        ValueError: If the grid is empty, ragged, or holds an unknown token.
    """
    lines = [line.strip() for line in text.strip().split(ROW_DELIMITER)]
    if not lines or not lines[0]:
        raise ValueError("Grid text is empty.")

    grid = [line.split(CELL_DELIMITER) for line in lines]
    width = len(grid[0])
    for row, tokens in enumerate(grid):
        if len(tokens) != width:
            raise ValueError(
                f"Row {row} has {len(tokens)} cells, expected {width}."
            )
        for col, token in enumerate(tokens):
            if token not in allowed and not is_count_token(token):
                raise ValueError(f"Unexpected token {token!r} at ({row}, {col}).")
    return grid


def format_grid(grid: Sequence[Sequence[str]]) -> str:
    """Join a token grid back into its text form."""
    return ROW_DELIMITER.join(CELL_DELIMITER.join(row) for row in grid)
