import pytest

from minededuce.utils import format_grid, get_neighborhoods, is_count_token, parse_grid


def test_neighborhoods_cover_corners_edges_and_center():
    nbrs = get_neighborhoods(3, 4)

    assert len(nbrs[(0, 0)]) == 3
    assert len(nbrs[(0, 1)]) == 5
    assert len(nbrs[(1, 1)]) == 8
    assert nbrs[(0, 0)] == ((0, 1), (1, 0), (1, 1))


def test_neighborhoods_are_cached_per_shape():
    assert get_neighborhoods(5, 5) is get_neighborhoods(5, 5)


def test_neighborhoods_reject_empty_grid():
    with pytest.raises(ValueError):
        get_neighborhoods(0, 3)


def test_parse_grid_splits_rows_and_cells():
    grid = parse_grid("1 ? x\n0 1 1\n")

    assert grid == [["1", "?", "x"], ["0", "1", "1"]]
    assert format_grid(grid) == "1 ? x\n0 1 1"


def test_parse_grid_rejects_ragged_rows():
    with pytest.raises(ValueError):
        parse_grid("1 ?\n0")


def test_parse_grid_rejects_unknown_tokens():
    with pytest.raises(ValueError):
        parse_grid("1 F")
    with pytest.raises(ValueError):
        parse_grid("9 ?")


def test_parse_grid_respects_allowed_tokens():
    with pytest.raises(ValueError):
        parse_grid("x ?", allowed=("x",))


def test_count_tokens():
    assert is_count_token("0")
    assert is_count_token("8")
    assert not is_count_token("9")
    assert not is_count_token("x")
