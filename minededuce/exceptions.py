"""Exception hierarchy for the deduction engine."""


class MineDeduceError(Exception):
    """Base exception for solver failures."""


class MineRevealedError(MineDeduceError):
    """Raised by an oracle when asked to reveal a cell that holds a mine.

    The solver only reveals cells it has proved free, so this always points at
    a defect in the deduction rules and must abort the solve.
    """

    def __init__(self, row: int, col: int) -> None:
        super().__init__(f"Revealed a mine at ({row}, {col}).")
        self.row = row
        self.col = col


class InconsistentBoardError(MineDeduceError):
    """Raised when the board contradicts its own counts."""


class EnumerationLimitExceeded(MineDeduceError):
    """Raised when placement enumeration exhausts its node budget."""
