"""Command line driver: feed a board and a mine count to the solver and print the result."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .board import Board
from .engine import MineField
from .exceptions import MineDeduceError
from .fallback import DEFAULT_MAX_ASSIGNMENTS
from .logger import configure_logging, get_logger
from .solver import FALLBACK_STRATEGIES, SOLVED, MineSolver

LOGGER = get_logger(__name__)

EXIT_SOLVED = 0
EXIT_FAILURE = 1
EXIT_UNDETERMINED = 2


def parse_pair(value: str, sep: str) -> Tuple[int, int]:
    """Parse "A<sep>B" into two integers (e.g. "3,4" or "9x9")."""
    parts = value.lower().split(sep)
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"Expected two integers separated by {sep!r}: {value!r}")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Not an integer pair: {value!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Deduce every cell of a partially revealed mine board without guessing",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "solution",
        nargs="?",
        type=Path,
        help="Solved grid file ('x' for mines, counts elsewhere) used as the reveal oracle",
    )
    source.add_argument(
        "--random",
        type=lambda v: parse_pair(v, "x"),
        metavar="ROWSxCOLS",
        help="Generate a random board of this size instead of reading a solution",
    )
    parser.add_argument(
        "--puzzle",
        type=Path,
        help="Puzzle grid file ('?' for unknown cells); defaults to an opening at --start",
    )
    parser.add_argument(
        "--start",
        type=lambda v: parse_pair(v, ","),
        metavar="ROW,COL",
        help="Cell to open when no puzzle file is given (default: board center)",
    )
    parser.add_argument("--mines", type=int, help="Total mine count (default: from the solution)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for --random")
    parser.add_argument(
        "--strategy",
        choices=FALLBACK_STRATEGIES,
        default="combined",
        help="Fallback strategy once propagation stalls",
    )
    parser.add_argument(
        "--max-assignments",
        type=int,
        default=DEFAULT_MAX_ASSIGNMENTS,
        help="Node budget for each placement search",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def load_field(args: argparse.Namespace) -> MineField:
    if args.random is not None:
        if args.mines is None:
            raise ValueError("--mines is required with --random")
        rows, cols = args.random
        start = args.start or (rows // 2, cols // 2)
        return MineField.random(rows, cols, args.mines, start[0], start[1], seed=args.seed)
    return MineField.from_text(args.solution.read_text(encoding="utf-8"))


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(getattr(logging, args.log_level.upper(), logging.WARNING))

    try:
        field = load_field(args)
        if args.puzzle is not None:
            puzzle = args.puzzle.read_text(encoding="utf-8")
        else:
            start = args.start or (field.height // 2, field.width // 2)
            puzzle = field.puzzle_text(*start)
        mines = field.mines_count if args.mines is None else args.mines

        board = Board.from_text(puzzle, mines)
        solver = MineSolver(
            board,
            field,
            fallback_strategy=args.strategy,
            max_assignments=args.max_assignments,
        )
        status, payload = solver.solve()
    except (MineDeduceError, ValueError, OSError) as exc:
        LOGGER.error("%s", exc)
        return EXIT_FAILURE

    print(payload["board"])
    return EXIT_SOLVED if status == SOLVED else EXIT_UNDETERMINED


if __name__ == "__main__":
    sys.exit(main())
