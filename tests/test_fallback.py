import itertools

import pytest

from minededuce.board import Board
from minededuce.exceptions import EnumerationLimitExceeded
from minededuce.fallback import (
    Frontier,
    build_frontier,
    confirm_claims,
    enumerate_mine_placements,
    find_witness,
    forced_cells,
    greedy_forced_cells,
    suggest_minimal_mine_solution,
)


def brute_force_placements(board: Board, frontier: Frontier):
    """Filter every subset of the reachable unknowns against every count."""
    low, high = frontier.mine_window()
    found = []
    for size in range(len(frontier.reachable_unknowns) + 1):
        if not low <= size <= high:
            continue
        for subset in itertools.combinations(frontier.reachable_unknowns, size):
            chosen = set(subset)
            if all(
                len(chosen & board.cell(c).unknown_neighbors) == board.cell(c).unknown_mines
                for c in frontier.uncompleted_free
            ):
                found.append(frozenset(chosen))
    return sorted(found, key=lambda p: (len(p), sorted(p)))


def test_build_frontier_splits_reachable_and_unreachable():
    board = Board.from_text("? ? ? ?\n1 ? ? ?", total_mines=2)
    frontier = build_frontier(board)

    assert frontier.uncompleted_free == [(1, 0)]
    assert frontier.reachable_unknowns == [(0, 0), (0, 1), (1, 1)]
    assert frontier.unreachable_cells == [(0, 2), (0, 3), (1, 2), (1, 3)]
    assert frontier.remaining_mines == 2
    assert frontier.mine_window() == (0, 2)


@pytest.mark.parametrize(
    "text, total",
    [
        ("? ? ?\n? 2 ?\n? ? ?", 2),
        ("? ? ?\n1 2 1", 2),
        ("? ? ? ?\n1 ? ? ?", 2),
        ("? ? ? ? ?\n? 2 ? 3 ?\n? ? ? ? ?", 4),
        ("? 1 ? 1 ?\n1 1 0 1 1", 2),
    ],
)
def test_enumeration_matches_brute_force(text, total):
    board = Board.from_text(text, total)
    frontier = build_frontier(board)

    assert enumerate_mine_placements(board, frontier) == brute_force_placements(board, frontier)


def test_enumeration_over_an_isolated_count():
    board = Board.from_text("? ? ?\n? 2 ?\n? ? ?", total_mines=2)
    frontier = build_frontier(board)

    placements = enumerate_mine_placements(board, frontier)

    assert len(placements) == 28
    assert all(len(p) == 2 for p in placements)
    assert forced_cells(placements, frontier) == (set(), set())


def test_enumeration_budget_is_enforced():
    board = Board.from_text("? ? ?\n? 2 ?\n? ? ?", total_mines=2)
    frontier = build_frontier(board)

    with pytest.raises(EnumerationLimitExceeded):
        enumerate_mine_placements(board, frontier, max_assignments=1)


def test_empty_mine_window_yields_no_placements():
    board = Board.from_text("? 1 ?", total_mines=3)
    frontier = build_frontier(board)

    assert frontier.mine_window() == (3, 2)
    assert enumerate_mine_placements(board, frontier) == []
    assert forced_cells([], frontier) == (set(), set())


def test_forced_cells_settles_reachable_cells():
    board = Board.from_text("? ? ?\n1 2 1", total_mines=2)
    frontier = build_frontier(board)

    placements = enumerate_mine_placements(board, frontier)

    assert placements == [frozenset({(0, 0), (0, 2)})]
    assert forced_cells(placements, frontier) == ({(0, 0), (0, 2)}, {(0, 1)})


def test_forced_cells_fills_unreachable_cells_with_leftover_mines():
    board = Board.from_text("0 1 x ?", total_mines=2)
    frontier = build_frontier(board)

    assert frontier.reachable_unknowns == []
    assert frontier.unreachable_cells == [(0, 3)]

    placements = enumerate_mine_placements(board, frontier)
    assert placements == [frozenset()]
    assert forced_cells(placements, frontier) == ({(0, 3)}, set())


def test_forced_cells_frees_unreachable_cells_when_nothing_is_left():
    frontier = Frontier(
        uncompleted_free=[],
        reachable_unknowns=[(0, 0), (0, 1)],
        unreachable_cells=[(1, 0), (1, 1)],
        remaining_mines=1,
    )
    placements = [frozenset({(0, 0)}), frozenset({(0, 1)})]

    assert forced_cells(placements, frontier) == (set(), {(1, 0), (1, 1)})

    # Leftover counts differ, so only the unused reachable cell is settled.
    mixed = [frozenset({(0, 0)}), frozenset()]
    assert forced_cells(mixed, frontier) == (set(), {(0, 1)})


def test_find_witness_honours_fixed_cells():
    board = Board.from_text("? ? ?\n1 2 1", total_mines=2)
    frontier = build_frontier(board)

    assert find_witness(board, frontier, {(0, 1): True}) is None
    assert find_witness(board, frontier, {(0, 0): True}) == frozenset({(0, 0), (0, 2)})


def test_greedy_suggestion_covers_every_deficit():
    board = Board.from_text("? 1 ? 1 ?\n1 1 0 1 1", total_mines=2)
    frontier = build_frontier(board)

    suggestion = suggest_minimal_mine_solution(board, frontier)

    assert suggestion.mine_number == 2
    assert suggestion.sure_mines == [(0, 0), (0, 4)]

    claims = greedy_forced_cells(board, frontier)
    assert claims == ({(0, 0), (0, 4)}, {(0, 2)})
    assert confirm_claims(board, frontier, claims) == claims


def test_greedy_pigeonhole_claims_the_only_single_neighbor_cell():
    board = Board.from_text("? 1 ? 1 0", total_mines=2)
    frontier = build_frontier(board)

    suggestion = suggest_minimal_mine_solution(board, frontier)

    assert suggestion.mine_number == 1
    assert greedy_forced_cells(board, frontier) == ({(0, 0)}, set())


def test_unsound_greedy_claims_are_rejected():
    # Truth is "x 2 x"; greedy prefers the shared middle cell.
    board = Board.from_text("? ? ?\n1 2 1", total_mines=2)
    frontier = build_frontier(board)

    claims = greedy_forced_cells(board, frontier)

    assert claims == ({(0, 1)}, set())
    assert confirm_claims(board, frontier, claims) == (set(), set())


def test_confirm_claims_skips_unreachable_cells():
    board = Board.from_text("0 1 x ?", total_mines=2)
    frontier = build_frontier(board)

    assert confirm_claims(board, frontier, ({(0, 3)}, set())) == (set(), set())
