"""Combinatorial fallback used once local propagation reaches a fixpoint."""

import itertools
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from .board import Board
from .cell import Proof, no_proof
from .exceptions import EnumerationLimitExceeded
from .logger import get_logger
from .utils import Coord

LOGGER = get_logger(__name__)

DEFAULT_MAX_ASSIGNMENTS = 200_000


@dataclass
class Frontier:
    """Unresolved cells split by how they are constrained."""

    uncompleted_free: List[Coord]
    reachable_unknowns: List[Coord]
    unreachable_cells: List[Coord]
    remaining_mines: int

    def mine_window(self) -> Tuple[int, int]:
        """Bounds on the number of mines among the reachable unknowns."""
        return (
            max(0, self.remaining_mines - len(self.unreachable_cells)),
            min(self.remaining_mines, len(self.reachable_unknowns)),
        )


@dataclass
class SolutionSuggestion:
    """Greedy placement: the mines it accepted and the total it implies."""

    mine_number: int
    sure_mines: List[Coord] = field(default_factory=list)


def build_frontier(board: Board) -> Frontier:
    """Partition the board's unresolved cells for the fallback strategies."""
    uncompleted_free = board.open_constraints()
    reachable: List[Coord] = []
    unreachable: List[Coord] = []

    for coord in board.unknown_cells():
        if any(board.cell(n).is_counted for n in board.cell(coord).free_neighbors):
            reachable.append(coord)
        else:
            unreachable.append(coord)

    return Frontier(
        uncompleted_free=uncompleted_free,
        reachable_unknowns=reachable,
        unreachable_cells=unreachable,
        remaining_mines=board.remaining_mines,
    )


# -----------------------------------------------------------------------------
# Enumeration
# -----------------------------------------------------------------------------


def iter_mine_placements(
    board: Board,
    frontier: Frontier,
    fixed: Optional[Dict[Coord, bool]] = None,
    max_assignments: int = DEFAULT_MAX_ASSIGNMENTS,
) -> Iterator[frozenset]:
    """
    Yield every set of reachable unknowns that can hold the remaining mines.

    A placement is kept when it meets each uncompleted free cell's deficit
    exactly and its size lies inside ``frontier.mine_window()``. The search
    walks the free cells one at a time and only branches over mine positions
    the current cell still allows, which yields the same placements as
    filtering every subset of the reachable unknowns.

    Args:
        board: Board at a propagation fixpoint.
        frontier: Partition produced by build_frontier(board).
        fixed: Optional reachable cells pinned to mine (True) or free (False).
        max_assignments: Search node budget.

    Raises:
        EnumerationLimitExceeded: If the search visits more than max_assignments nodes.
    """
    low, high = frontier.mine_window()
    if low > high:
        return

    constraints: List[Tuple[Tuple[Coord, ...], int]] = []
    for coord in frontier.uncompleted_free:
        cell = board.cell(coord)
        constraints.append((tuple(sorted(cell.unknown_neighbors)), cell.unknown_mines))

    assignment: Dict[Coord, bool] = dict(fixed or {})
    visited = 0

    def dfs(i: int, mines_used: int) -> Iterator[frozenset]:
        nonlocal visited
        visited += 1
        if visited > max_assignments:
            raise EnumerationLimitExceeded(
                f"Placement search exceeded {max_assignments} nodes."
            )

        if mines_used > high:
            return

        if i == len(constraints):
            if mines_used >= low:
                yield frozenset(c for c, is_mine in assignment.items() if is_mine)
            return

        unknowns, expected_mines = constraints[i]
        assigned_mines = 0
        unassigned: List[Coord] = []
        for n in unknowns:
            v = assignment.get(n)
            if v is None:
                unassigned.append(n)
            elif v:
                assigned_mines += 1

        needed = expected_mines - assigned_mines
        if needed < 0 or needed > len(unassigned) or mines_used + needed > high:
            return

        for mines_tuple in itertools.combinations(unassigned, needed):
            mines_set = set(mines_tuple)
            for c in unassigned:
                assignment[c] = c in mines_set
            yield from dfs(i + 1, mines_used + needed)

        for c in unassigned:
            del assignment[c]

    yield from dfs(0, sum(1 for v in assignment.values() if v))


def enumerate_mine_placements(
    board: Board, frontier: Frontier, max_assignments: int = DEFAULT_MAX_ASSIGNMENTS
) -> List[frozenset]:
    """Collect every consistent placement, smallest first."""
    placements = list(iter_mine_placements(board, frontier, max_assignments=max_assignments))
    return sorted(placements, key=lambda p: (len(p), sorted(p)))


def forced_cells(placements: Sequence[frozenset], frontier: Frontier) -> Proof:
    """
    Extract the cells every placement agrees on.

    Reachable cells in all placements are mines and in none are free. The
    unreachable cells share whatever the placement leaves of the remaining
    mine count, so they are settled when every placement leaves all or none.
    """
    if not placements:
        return no_proof()

    reachable = set(frontier.reachable_unknowns)
    mines: Set[Coord] = set(reachable)
    used: Set[Coord] = set()
    for placement in placements:
        mines &= placement
        used |= placement
    frees = reachable - used

    unreachable = set(frontier.unreachable_cells)
    if unreachable:
        left_over = {frontier.remaining_mines - len(p) for p in placements}
        if left_over == {len(unreachable)}:
            mines |= unreachable
        elif left_over == {0}:
            frees |= unreachable

    return mines, frees


def find_witness(
    board: Board,
    frontier: Frontier,
    fixed: Dict[Coord, bool],
    max_assignments: int = DEFAULT_MAX_ASSIGNMENTS,
) -> Optional[frozenset]:
    """Return one consistent placement honouring ``fixed``, or None if none exists."""
    return next(iter_mine_placements(board, frontier, fixed, max_assignments), None)


# -----------------------------------------------------------------------------
# Greedy suggestion
# -----------------------------------------------------------------------------


def counted_neighbors(board: Board, coord: Coord) -> List[Coord]:
    return sorted(n for n in board.cell(coord).free_neighbors if board.cell(n).is_counted)


def suggest_minimal_mine_solution(board: Board, frontier: Frontier) -> SolutionSuggestion:
    """
    Greedily place mines on unknowns that serve the most free cells.

    Unknowns bordering at least two free cells are visited by decreasing
    number of free neighbors and accepted while every free cell they touch
    still misses a mine. Deficits left after the pass are counted as one mine
    each.
    """
    missing: Dict[Coord, int] = {
        coord: board.cell(coord).unknown_mines for coord in frontier.uncompleted_free
    }

    shared = [
        coord
        for coord in frontier.reachable_unknowns
        if len(counted_neighbors(board, coord)) >= 2
    ]
    shared.sort(key=lambda c: -len(counted_neighbors(board, c)))

    sure_mines: List[Coord] = []
    for coord in shared:
        free_nbrs = counted_neighbors(board, coord)
        if all(missing[n] > 0 for n in free_nbrs):
            for n in free_nbrs:
                missing[n] -= 1
            sure_mines.append(coord)

    still_missing = sum(missing.values())
    return SolutionSuggestion(still_missing + len(sure_mines), sure_mines)


def greedy_forced_cells(board: Board, frontier: Frontier) -> Proof:
    """
    Read conclusions off the greedy suggestion.

    - If the suggestion uses exactly the remaining mines it is taken as the
      solution: its mines are mines, the unreachable cells are free, and when
      no deficit is left over every other reachable unknown is free too.
    - If it uses fewer, there are no unreachable cells and exactly one unknown
      borders a single free cell, that unknown must take the extra mine.

    These claims are heuristic; callers that need soundness confirm them with
    find_witness().
    """
    suggestion = suggest_minimal_mine_solution(board, frontier)
    LOGGER.debug(
        "Greedy suggestion: %d mines, %d placed", suggestion.mine_number, len(suggestion.sure_mines)
    )

    if suggestion.mine_number == frontier.remaining_mines:
        mines = set(suggestion.sure_mines)
        frees = set(frontier.unreachable_cells)
        if suggestion.mine_number == len(suggestion.sure_mines):
            frees |= set(frontier.reachable_unknowns) - mines
        return mines, frees

    if suggestion.mine_number < frontier.remaining_mines and not frontier.unreachable_cells:
        singles = [
            coord
            for coord in frontier.reachable_unknowns
            if len(counted_neighbors(board, coord)) == 1
        ]
        if len(singles) == 1:
            return {singles[0]}, set()

    return no_proof()


def confirm_claims(
    board: Board,
    frontier: Frontier,
    claims: Proof,
    max_assignments: int = DEFAULT_MAX_ASSIGNMENTS,
) -> Proof:
    """
    Keep only the claims no consistent placement contradicts.

    A claimed mine is confirmed when no placement leaves it free, and a
    claimed free cell when no placement puts a mine on it. Claims about
    unreachable cells and claims whose search runs out of budget are dropped.
    """
    reachable = set(frontier.reachable_unknowns)
    mines: Set[Coord] = set()
    frees: Set[Coord] = set()

    claimed_mines, claimed_frees = claims
    for coord, is_mine in [(c, True) for c in sorted(claimed_mines)] + [
        (c, False) for c in sorted(claimed_frees)
    ]:
        if coord not in reachable:
            continue
        try:
            witness = find_witness(board, frontier, {coord: not is_mine}, max_assignments)
        except EnumerationLimitExceeded:
            LOGGER.debug("Could not confirm %s within budget", coord)
            continue
        if witness is None:
            (mines if is_mine else frees).add(coord)

    return mines, frees
