"""Propagation driver that resolves a partially revealed mine board."""

from typing import Any, Dict, List, Tuple

from .board import Board
from .cell import RULE_NAMES, Proof
from .exceptions import EnumerationLimitExceeded, InconsistentBoardError
from .fallback import (
    DEFAULT_MAX_ASSIGNMENTS,
    Frontier,
    build_frontier,
    confirm_claims,
    enumerate_mine_placements,
    forced_cells,
    greedy_forced_cells,
)
from .logger import get_logger
from .utils import UNDETERMINED, Coord

LOGGER = get_logger(__name__)

FALLBACK_STRATEGIES = ("combined", "enumeration", "greedy")

SOLVED = 1
UNDETERMINED_STATUS = 0


class MineSolver:
    """
    Deduction engine for one board and one reveal oracle.

    The solver uses a tiered approach:
    1. Propagation: row-major sweeps applying each free cell's rules
       (all-mines, all-free, subset elimination, single-mine placement)
       until a sweep changes nothing.
    2. Elimination: once every mine is found, all unknown cells are free.
    3. Fallback: enumerate (or greedily suggest) placements consistent with
       every count and keep the cells they all agree on.
    It never guesses; an ambiguous board ends as undetermined.
    """

    def __init__(
        self,
        board: Board,
        oracle: Any,
        fallback_strategy: str = "combined",
        max_assignments: int = DEFAULT_MAX_ASSIGNMENTS,
        record_moves: bool = True,
    ) -> None:
        """
        Bind a solver to a board and the oracle that reveals its free cells.

        Args:
            board: Board to resolve in place.
            oracle: Object with ``reveal(row, col) -> int``; raises
                MineRevealedError if asked to reveal a mine.
            fallback_strategy: "combined" (default): enumeration, then greedy
                claims confirmed by a witness search when enumeration runs out
                of budget. "enumeration": enumeration only. "greedy": greedy
                claims applied unconfirmed.
            max_assignments: Node budget for each placement search.
            record_moves: If True, keep the ordered list of proved cells.
        """
        if fallback_strategy not in FALLBACK_STRATEGIES:
            raise ValueError(
                'fallback_strategy must be "combined", "enumeration" or "greedy".'
            )
        if max_assignments <= 0:
            raise ValueError("max_assignments must be positive.")

        self.board = board
        self.oracle = oracle
        self.fallback_strategy = fallback_strategy
        self.max_assignments = max_assignments
        self.record_moves = record_moves

        # Metrics / counters (for analysis)
        self.sweeps_count: int = 0
        self.reveal_moves_count: int = 0
        self.inferred_counts: Dict[str, int] = {name: 0 for name in RULE_NAMES}
        self.inferred_elimination_count: int = 0
        self.attempted_fallback_count: int = 0
        self.inferred_enumeration_count: int = 0
        self.inferred_greedy_count: int = 0
        self.enumeration_overflow_count: int = 0
        self.max_placements: int = 0

        # (row, col, "x" or "S", method) in the order cells were proved
        self.moves_sequence: List[Tuple[int, int, str, str]] = []
        self._current_method: str = "propagation"

    # -------------------------------------------------------------------------
    # Applying proofs
    # -------------------------------------------------------------------------

    def _record(self, coord: Coord, kind: str) -> None:
        if self.record_moves:
            self.moves_sequence.append((coord[0], coord[1], kind, self._current_method))

    def reveal_pending(self) -> None:
        """Ask the oracle for the count of every cell proved free so far."""
        while self.board.pending_reveal:
            row, col = self.board.pending_reveal.popleft()
            mines = self.oracle.reveal(row, col)
            self.reveal_moves_count += 1
            self.board.set_revealed((row, col), mines)

    def apply_proof(self, proof: Proof) -> int:
        """
        Mark proved mines, then mark and reveal proved free cells.

        Returns:
            Number of cells whose classification changed.
        """
        mines, frees = proof
        changed = 0
        for coord in sorted(mines):
            if self.board.mark_mine(coord):
                self._record(coord, "x")
                changed += 1
        for coord in sorted(frees):
            if self.board.mark_free(coord):
                self._record(coord, "S")
                changed += 1
        self.reveal_pending()
        return changed

    # -------------------------------------------------------------------------
    # Propagation
    # -------------------------------------------------------------------------

    def sweep(self) -> int:
        """
        Run every unresolved free cell's rules once, in row-major order.

        Cells proved during the sweep are visible to later cells of the same
        sweep; cells revealed during it join the next one.

        Returns:
            Number of neighbor-partition updates the sweep caused.
        """
        self.sweeps_count += 1
        self.board.drain_changes()

        for coord in self.board.open_constraints():
            cell = self.board.cell(coord)
            rule, proof = cell.deduce(self.board)
            if rule is None:
                continue

            changed = self.apply_proof(proof)
            self.inferred_counts[rule] += changed
            LOGGER.debug(
                "Rule %s at %s: mines=%s free=%s",
                rule,
                coord,
                sorted(proof[0]),
                sorted(proof[1]),
            )
            if self.board.remaining_mines == 0:
                break

        return len(self.board.drain_changes())

    def reveal_by_elimination(self) -> None:
        """Every mine is found, so every remaining unknown cell is free."""
        self._current_method = "elimination"
        unknowns = self.board.unknown_cells()
        if unknowns:
            LOGGER.debug("All mines found; revealing %d remaining cells", len(unknowns))
        self.inferred_elimination_count += self.apply_proof((set(), set(unknowns)))

    def propagate(self) -> None:
        """Sweep until a fixpoint or until every mine has been found."""
        self._current_method = "propagation"
        self.reveal_pending()
        while True:
            if self.board.remaining_mines == 0:
                self.reveal_by_elimination()
                return
            if not self.board.unresolved:
                return
            if self.sweep() == 0:
                return

    # -------------------------------------------------------------------------
    # Fallback
    # -------------------------------------------------------------------------

    def _enumeration_proof(self, frontier: Frontier) -> Tuple[Proof, bool]:
        """Run the enumeration; the flag is False when the budget ran out."""
        try:
            placements = enumerate_mine_placements(self.board, frontier, self.max_assignments)
        except EnumerationLimitExceeded:
            self.enumeration_overflow_count += 1
            LOGGER.warning(
                "Enumeration over %d reachable cells exceeded %d nodes",
                len(frontier.reachable_unknowns),
                self.max_assignments,
            )
            return (set(), set()), False

        self.max_placements = max(self.max_placements, len(placements))
        LOGGER.info(
            "Enumerated %d placements over %d reachable cells",
            len(placements),
            len(frontier.reachable_unknowns),
        )
        return forced_cells(placements, frontier), True

    def run_fallback(self) -> bool:
        """
        Try the combinatorial strategies on the current fixpoint.

        Returns:
            True if any cell was proved.
        """
        self.attempted_fallback_count += 1
        frontier = build_frontier(self.board)
        LOGGER.info(
            "Fallback: %d open constraints, %d reachable, %d unreachable, %d mines left",
            len(frontier.uncompleted_free),
            len(frontier.reachable_unknowns),
            len(frontier.unreachable_cells),
            frontier.remaining_mines,
        )

        if self.fallback_strategy in ("combined", "enumeration"):
            self._current_method = "enumeration"
            proof, completed = self._enumeration_proof(frontier)
            if proof[0] or proof[1]:
                self.inferred_enumeration_count += self.apply_proof(proof)
                return True
            if completed or self.fallback_strategy == "enumeration":
                return False

        self._current_method = "greedy"
        claims = greedy_forced_cells(self.board, frontier)
        if not claims[0] and not claims[1]:
            return False

        if self.fallback_strategy == "greedy":
            LOGGER.warning("Applying unconfirmed greedy claims: %s", claims)
            proof = claims
        else:
            proof = confirm_claims(self.board, frontier, claims, self.max_assignments)

        changed = self.apply_proof(proof)
        self.inferred_greedy_count += changed
        return changed > 0

    # -------------------------------------------------------------------------
    # Main solving loop
    # -------------------------------------------------------------------------

    def metrics(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "sweeps_count": self.sweeps_count,
            "reveal_moves_count": self.reveal_moves_count,
            "inferred_elimination_count": self.inferred_elimination_count,
            "attempted_fallback_count": self.attempted_fallback_count,
            "inferred_enumeration_count": self.inferred_enumeration_count,
            "inferred_greedy_count": self.inferred_greedy_count,
            "enumeration_overflow_count": self.enumeration_overflow_count,
            "max_placements": self.max_placements,
            "found_mines_count": len(self.board.found_mines),
            "unresolved_count": len(self.board.unresolved),
            "moves_sequence": self.moves_sequence,
        }
        for name, count in self.inferred_counts.items():
            out[f"inferred_{name}_count"] = count
        return out

    def solve(self) -> Tuple[int, Dict[str, Any]]:
        """
        Resolve the board end-to-end by alternating propagation and fallback.

        Returns:
            Tuple of (status, payload) where status is 1 (solved) or 0
            (undetermined) and payload holds "board" (the result text, or
            "?" when undetermined) plus the solver metrics.

        Raises:
            MineRevealedError: If the oracle reports a revealed mine.
            InconsistentBoardError: If the board contradicts its counts.
        """
        while True:
            self.propagate()
            if not self.board.unresolved:
                break
            if not self.run_fallback():
                LOGGER.info(
                    "Undetermined with %d unresolved cells and %d mines left",
                    len(self.board.unresolved),
                    self.board.remaining_mines,
                )
                payload = self.metrics()
                payload["board"] = UNDETERMINED
                return UNDETERMINED_STATUS, payload

        if len(self.board.found_mines) != self.board.total_mines:
            raise InconsistentBoardError(
                f"Resolved board holds {len(self.board.found_mines)} mines, "
                f"expected {self.board.total_mines}."
            )

        LOGGER.info(
            "Solved in %d sweeps with %d reveals", self.sweeps_count, self.reveal_moves_count
        )
        payload = self.metrics()
        payload["board"] = self.board.to_text()
        return SOLVED, payload


def solve_board(text: str, total_mines: int, oracle: Any, **solver_kwargs: Any) -> str:
    """
    Resolve grid text and return the revealed grid, or "?" if undetermined.

    The undetermined marker is the same token as an unknown cell. Callers
    that need to tell the outcomes apart should use the status returned by
    MineSolver.solve() instead of the text.

    Args:
        text: Grid text; "?" marks unknown cells, "x" known mines.
        total_mines: Number of mines on the whole board.
        oracle: Object with ``reveal(row, col) -> int``.
        **solver_kwargs: Forwarded to MineSolver.
    """
    board = Board.from_text(text, total_mines)
    _, payload = MineSolver(board, oracle, **solver_kwargs).solve()
    return payload["board"]
