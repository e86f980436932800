import pytest

from minededuce.engine import MineField
from minededuce.exceptions import MineRevealedError
from minededuce.utils import parse_grid

SOLUTION = "0 1 x\n0 1 1\n0 0 0"


def test_from_text_counts_mines():
    field = MineField.from_text(SOLUTION)

    assert (field.height, field.width) == (3, 3)
    assert field.mines_count == 1
    assert field.is_mine(0, 2)
    assert not field.is_mine(0, 0)
    assert field.solution_text() == SOLUTION


@pytest.mark.parametrize(
    "text",
    [
        "0 1 x\n0 2 1\n0 0 0",
        "0 ? x",
    ],
)
def test_from_text_rejects_inconsistent_solutions(text):
    with pytest.raises(ValueError):
        MineField.from_text(text)


def test_reveal_returns_counts_and_counts_each_cell_once():
    field = MineField.from_text(SOLUTION)

    assert field.reveal(0, 1) == 1
    assert field.reveal(0, 1) == 1
    assert field.reveal(2, 2) == 0
    assert field.reveal_count == 2
    assert field.revealed[0][1] and field.revealed[2][2]


def test_reveal_rejects_mines_and_out_of_bounds():
    field = MineField.from_text(SOLUTION)

    with pytest.raises(MineRevealedError) as excinfo:
        field.reveal(0, 2)
    assert (excinfo.value.row, excinfo.value.col) == (0, 2)

    with pytest.raises(ValueError):
        field.reveal(3, 0)


def test_puzzle_text_flood_fills_from_a_zero():
    field = MineField.from_text(SOLUTION)

    assert field.puzzle_text(2, 0) == "0 1 ?\n0 1 1\n0 0 0"
    assert field.puzzle_text(0, 1) == "? 1 ?\n? ? ?\n? ? ?"
    assert field.reveal_count == 0


@pytest.mark.parametrize("algorithm", ["safe_first_action_rule", "safe_neighborhood_rule"])
def test_random_keeps_the_first_cell_safe(algorithm):
    for seed in range(20):
        field = MineField.random(6, 6, 10, 2, 3, mines_generation_algorithm=algorithm, seed=seed)

        assert field.mines_count == 10
        assert not field.is_mine(2, 3)
        if algorithm == "safe_neighborhood_rule":
            assert not any(field.is_mine(r, c) for r, c in field.neighbors(2, 3))


def test_random_is_reproducible_with_a_seed():
    first = MineField.random(9, 9, 10, 4, 4, seed=3)
    second = MineField.random(9, 9, 10, 4, 4, seed=3)

    assert first.solution_text() == second.solution_text()
    # The generated grid passes the same validation as a hand-written one.
    assert MineField(parse_grid(first.solution_text(), allowed=("x",))).mines_count == 10


@pytest.mark.parametrize(
    "args, kwargs",
    [
        ((0, 5, 1, 0, 0), {}),
        ((5, 5, -1, 0, 0), {}),
        ((5, 5, 1, 5, 0), {}),
        ((3, 3, 1, 1, 1), {}),
        ((3, 3, 1, 1, 1), {"mines_generation_algorithm": "unknown"}),
    ],
)
def test_random_rejects_invalid_arguments(args, kwargs):
    with pytest.raises(ValueError):
        MineField.random(*args, **kwargs)
