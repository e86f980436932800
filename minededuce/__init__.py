"""
Mine board deduction engine

Resolves a partially revealed mine board without guessing:
- Propagation: per-cell rules (all-mines, all-free) and cross-cell rules
  (subset elimination, single-mine placement) swept to a fixpoint
- Elimination: once every mine is found, all other cells are free
- Fallback: bounded enumeration of consistent mine placements, with a
  greedy minimal suggestion when enumeration runs out of budget
"""

from .board import Board
from .cell import Cell
from .engine import MineField
from .exceptions import (
    EnumerationLimitExceeded,
    InconsistentBoardError,
    MineDeduceError,
    MineRevealedError,
)
from .solver import MineSolver, solve_board
from .utils import UNDETERMINED
from .analysis import (
    format_solver_knowledge,
    run_solver_single_test,
    run_solver_many_tests,
    run_solver_level_analysis,
)

__version__ = "1.0.0"

__all__ = [
    # Core classes
    "Board",
    "Cell",
    "MineField",
    "MineSolver",
    "solve_board",
    "UNDETERMINED",
    # Errors
    "MineDeduceError",
    "MineRevealedError",
    "InconsistentBoardError",
    "EnumerationLimitExceeded",
    # Analysis functions
    "format_solver_knowledge",
    "run_solver_single_test",
    "run_solver_many_tests",
    "run_solver_level_analysis",
]
