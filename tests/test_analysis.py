import matplotlib

matplotlib.use("Agg")

import pytest

from minededuce import Board, MineField, MineSolver
from minededuce.analysis import (
    format_solver_knowledge,
    plot_level_results,
    run_solver_many_tests,
    run_solver_single_test,
)
from minededuce.cell import RULE_NAMES


def test_format_solver_knowledge_hides_unknown_cells():
    board = Board.from_text("? ? ?\n1 2 1", 2)
    solver = MineSolver(board, MineField.from_text("x 2 x\n1 2 1"))

    assert format_solver_knowledge(solver, show_coords=False) == " .  .  .\n 1  2  1"

    solver.solve()
    lines = format_solver_knowledge(solver).splitlines()
    assert lines[0] == "    0  1  2"
    assert lines[2] == " 0 | x  2  x"


def test_single_test_reports_status_and_correctness():
    result = run_solver_single_test(8, 8, 8, seed=5)

    assert result["status"] in (0, 1)
    assert result["correct"] is True
    assert result["moves_sequence"] == []
    if result["status"] == 1:
        assert result["found_mines_count"] == 8


def test_many_tests_aggregates_metrics():
    stats = run_solver_many_tests(6, 6, 4, runs=4, seed=0)

    assert 0.0 <= stats["solved_rate"] <= 1.0
    assert stats["undetermined_rate"] == pytest.approx(1.0 - stats["solved_rate"])
    assert stats["avg_sweeps_count"] >= 1.0
    assert "avg_board" not in stats
    assert "avg_moves_sequence" not in stats

    shares = [stats[f"rule_share_{name}"] for name in RULE_NAMES]
    assert all(0.0 <= share <= 1.0 for share in shares)
    assert sum(shares) == pytest.approx(1.0) or sum(shares) == 0.0


def test_many_tests_requires_positive_runs():
    with pytest.raises(ValueError):
        run_solver_many_tests(6, 6, 4, runs=0)


def test_plot_level_results_draws_without_showing(monkeypatch):
    shown = []
    monkeypatch.setattr("minededuce.analysis.plt.show", lambda: shown.append(True))

    results = {
        "beginner": {"solved_rate": 0.8, "avg_inferred_all_mines_count": 3.0},
        "expert": {"solved_rate": 0.2, "avg_inferred_subset_count": 5.0},
    }
    plot_level_results(results)

    assert shown == [True, True]
