"""
Quickstart example for the mine board deduction engine.

This script demonstrates basic usage of the solver.
"""

from minededuce import (
    Board,
    MineField,
    MineSolver,
    UNDETERMINED,
    run_solver_many_tests,
    solve_board,
)


def main():
    print("=" * 60)
    print("Mine Board Deduction - Quickstart Example")
    print("=" * 60)

    # Example 1: Solve a hand-written puzzle against its solution
    print("\n1. Solving a small hand-written puzzle...")
    print("-" * 60)

    field = MineField.from_text("1 x 1\n1 1 1")
    result = solve_board("? ? ?\n1 1 1", total_mines=1, oracle=field)
    print(result)

    # Example 2: Solve a random Intermediate puzzle
    print("\n2. Solving a random Intermediate puzzle (16x16, 40 mines)...")
    print("-" * 60)

    field = MineField.random(16, 16, 40, 8, 8, seed=7)
    board = Board.from_text(field.puzzle_text(8, 8), 40)
    solver = MineSolver(board, field)
    status, payload = solver.solve()

    print("Result: " + ("SOLVED" if payload["board"] != UNDETERMINED else "UNDETERMINED"))
    print(f"Sweeps: {payload['sweeps_count']}")
    print(f"Reveals: {payload['reveal_moves_count']}")
    print(f"Mines found: {payload['found_mines_count']}")
    print(f"Subset inferences: {payload['inferred_subset_count']}")
    print(f"Enumeration inferences: {payload['inferred_enumeration_count']}")

    # Example 3: Run multiple puzzles for statistics
    print("\n3. Running 20 puzzles for solved-rate statistics...")
    print("-" * 60)

    results = run_solver_many_tests(16, 16, 40, runs=20, seed=1)

    print(f"Solved rate: {results['solved_rate']*100:.1f}%")
    print(f"Average sweeps per puzzle: {results['avg_sweeps_count']:.1f}")
    print(f"Average fallback attempts: {results['avg_attempted_fallback_count']:.1f}")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
