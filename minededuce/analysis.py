"""Analysis and benchmarking tools for the deduction engine."""

from collections import defaultdict
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .board import Board
from .cell import RULE_NAMES
from .engine import MineField
from .solver import SOLVED, MineSolver


def format_solver_knowledge(solver: MineSolver, *, show_coords: bool = True) -> str:
    """
    Format the solver's current board as a human-readable string.

    Args:
        solver: Solver instance whose board will be displayed.
        show_coords: If True, include coordinate labels and a header.

    Returns:
        A text grid where unknown cells are shown as '.', and known values
        are shown as their tokens.
    """
    board = solver.board

    def cell_char(row: int, col: int) -> str:
        cell = board.cells[row][col]
        if cell.is_mine or cell.is_counted:
            return cell.token
        return "."

    lines: List[str] = []
    if show_coords:
        header = " ".join(f"{c:2d}" for c in range(board.cols))
        lines.append("   " + header)
        lines.append("   " + "-" * (3 * board.cols - 1))

    for row in range(board.rows):
        line = " ".join(f" {cell_char(row, col)}" for col in range(board.cols))
        lines.append(f"{row:2d} |" + line if show_coords else line)

    return "\n".join(lines)


def run_solver_single_test(
    height: int,
    width: int,
    mines_count: int,
    *,
    seed: Optional[int] = None,
    mines_generation_algorithm: str = "safe_neighborhood_rule",
    fallback_strategy: str = "combined",
    max_assignments: int = 200_000,
    show_boards: bool = False,
) -> Dict[str, object]:
    """
    Generate one random puzzle, open it at its center and solve it.

    Args:
        height: Board height.
        width: Board width.
        mines_count: Total number of mines on the board.
        seed: Optional seed for mine placement.
        mines_generation_algorithm: Mine placement rule
            ("safe_first_action_rule" or "safe_neighborhood_rule").
        fallback_strategy: Forwarded to MineSolver.
        max_assignments: Forwarded to MineSolver.
        show_boards: If True, print the underlying board and the solver's final
            knowledge state.

    Returns:
        The solver's payload augmented with "status" (1 solved, 0 undetermined)
        and "correct" (the result matches the hidden board).
    """
    first_row, first_col = height // 2, width // 2
    field = MineField.random(
        height,
        width,
        mines_count,
        first_row,
        first_col,
        mines_generation_algorithm=mines_generation_algorithm,
        seed=seed,
    )
    board = Board.from_text(field.puzzle_text(first_row, first_col), mines_count)
    solver = MineSolver(
        board,
        field,
        fallback_strategy=fallback_strategy,
        max_assignments=max_assignments,
        record_moves=False,
    )

    status, payload = solver.solve()

    if show_boards:
        print(f"Generation mode: {mines_generation_algorithm}")
        print("Underlying board:")
        print(field.solution_text())
        print()
        print("Solver knowledge (unknowns shown as '.'):")
        print(format_solver_knowledge(solver, show_coords=True))
        print()
        print(f"Finished with status {status}.")

    correct = all(field.is_mine(row, col) for row, col in board.found_mines)
    if status == SOLVED:
        correct = correct and payload["board"] == field.solution_text()

    out = dict(payload)
    out["status"] = status
    out["correct"] = correct
    return out


def run_solver_many_tests(
    height: int,
    width: int,
    mines_count: int,
    runs: int,
    *,
    seed: Optional[int] = None,
    mines_generation_algorithm: str = "safe_neighborhood_rule",
    fallback_strategy: str = "combined",
    max_assignments: int = 200_000,
) -> Dict[str, float]:
    """
    Run many independent puzzles and return averaged metrics plus the solved rate.

    Args:
        height: Board height.
        width: Board width.
        mines_count: Total number of mines on the board.
        runs: Number of independent puzzles to run.
        seed: Base seed; run i uses seed + i. None for unseeded runs.
        mines_generation_algorithm: Mine placement rule.
        fallback_strategy: Forwarded to MineSolver.
        max_assignments: Forwarded to MineSolver.

    Returns:
        Averages of numeric payload metrics (prefixed with "avg_"), plus:
        - solved_rate
        - undetermined_rate
        - rule_share_<name> for each propagation rule
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    samples: Dict[str, List[float]] = defaultdict(list)
    solved: List[float] = []

    for i in range(runs):
        payload = run_solver_single_test(
            height,
            width,
            mines_count,
            seed=None if seed is None else seed + i,
            mines_generation_algorithm=mines_generation_algorithm,
            fallback_strategy=fallback_strategy,
            max_assignments=max_assignments,
        )
        if not payload["correct"]:
            raise RuntimeError(f"Solver produced a wrong board on run {i}.")
        solved.append(1.0 if payload["status"] == SOLVED else 0.0)

        for k, v in payload.items():
            if k in ("status", "correct"):
                continue
            if isinstance(v, (int, float)) and not isinstance(v, bool):
                samples[f"avg_{k}"].append(float(v))

    out: Dict[str, float] = {k: float(np.mean(v)) for k, v in samples.items()}
    out["solved_rate"] = float(np.mean(solved))
    out["undetermined_rate"] = 1.0 - out["solved_rate"]

    rule_totals = np.array(
        [out.get(f"avg_inferred_{name}_count", 0.0) for name in RULE_NAMES]
    )
    total = rule_totals.sum()
    for name, value in zip(RULE_NAMES, rule_totals):
        out[f"rule_share_{name}"] = float(value / total) if total > 0 else 0.0

    return out


def run_solver_level_analysis(
    runs: int,
    *,
    seed: Optional[int] = None,
    fallback_strategy: str = "combined",
    plot: bool = True,
) -> Dict[str, Dict[str, float]]:
    """
    Run aggregated solver tests on standard difficulty levels and plot summaries.

    Args:
        runs: Number of independent puzzles per difficulty level.
        seed: Base seed forwarded to run_solver_many_tests.
        fallback_strategy: Forwarded to MineSolver.
        plot: If True, show bar charts of rule usage and solved rate.

    Returns:
        Mapping from level name to statistics dict returned by run_solver_many_tests().

    Standard difficulty levels:
        - Beginner: 9x9, 10 mines
        - Intermediate: 16x16, 40 mines
        - Expert: 16x30, 99 mines
    """
    levels: Dict[str, Tuple[int, int, int]] = {
        "beginner": (9, 9, 10),
        "intermediate": (16, 16, 40),
        "expert": (16, 30, 99),
    }

    results: Dict[str, Dict[str, float]] = {}
    for level, (h, w, m) in levels.items():
        results[level] = run_solver_many_tests(
            h, w, m, runs, seed=seed, fallback_strategy=fallback_strategy
        )

    if plot:
        plot_level_results(results)
    return results


def plot_level_results(results: Dict[str, Dict[str, float]]) -> None:
    """Bar charts of average inferences per rule and solved rate per level."""
    level_names = list(results.keys())
    x = np.arange(len(level_names))

    # 1) Inferences made (by rule, plus fallback)
    series = [(name, f"avg_inferred_{name}_count") for name in RULE_NAMES]
    series.append(("enumeration", "avg_inferred_enumeration_count"))
    bar_w = 0.8 / len(series)

    plt.figure()  # type: ignore[misc]
    for i, (label, key) in enumerate(series):
        values = [results[n].get(key, 0.0) for n in level_names]
        plt.bar(x + (i - len(series) / 2) * bar_w, values, width=bar_w, label=label)  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Average inferred count")  # type: ignore[misc]
    plt.title("Average inferences by rule (per puzzle)")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()
    plt.show()  # type: ignore[misc]

    # 2) Solved rate by level
    solved_rates = [results[n]["solved_rate"] for n in level_names]

    plt.figure()  # type: ignore[misc]
    plt.bar(x, solved_rates)  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Solved rate")  # type: ignore[misc]
    plt.ylim(0.0, 1.0)  # type: ignore[misc]
    plt.title("Fully deduced puzzles by difficulty level")  # type: ignore[misc]
    plt.tight_layout()
    plt.show()  # type: ignore[misc]
