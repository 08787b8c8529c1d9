"""Core tic-tac-toe rules on the 9-character board string.

A board is a row-major ``str`` of length 9 where ``_`` marks an empty cell and
``X`` / ``O`` mark taken cells. It is also the wire and persisted encoding.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .errors import CellOccupied, OutOfRange

EMPTY = '_'
BOARD_SIZE = 9
EMPTY_BOARD = EMPTY * BOARD_SIZE
DRAW = 'draw'

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Symbol(str, Enum):
    X = 'X'
    O = 'O'

    @property
    def other(self) -> 'Symbol':
        return Symbol.O if self is Symbol.X else Symbol.X


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating a board: in progress, won by a symbol, or drawn."""

    winner: Optional[Symbol] = None
    draw: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.winner is not None or self.draw

    def to_wire(self) -> Optional[str]:
        if self.winner is not None:
            return self.winner.value
        if self.draw:
            return DRAW
        return None

    @classmethod
    def from_wire(cls, value: Optional[str]) -> 'Outcome':
        if not value:
            return IN_PROGRESS
        if value == DRAW:
            return DRAWN
        return cls(winner=Symbol(value))

    @classmethod
    def won(cls, symbol: Symbol) -> 'Outcome':
        return cls(winner=Symbol(symbol))


IN_PROGRESS = Outcome()
DRAWN = Outcome(draw=True)


def is_valid_board(board) -> bool:
    return (
        isinstance(board, str)
        and len(board) == BOARD_SIZE
        and all(c in (EMPTY, Symbol.X.value, Symbol.O.value) for c in board)
    )


def apply_move(board: str, position, symbol: Symbol) -> str:
    """Return a new board with ``symbol`` placed at ``position``.

    Raises OutOfRange for anything that is not an int in [0, 8] and
    CellOccupied when the cell is already taken. Turn order is not checked
    here.
    """
    if isinstance(position, bool) or not isinstance(position, int) or not 0 <= position < BOARD_SIZE:
        raise OutOfRange()
    if board[position] != EMPTY:
        raise CellOccupied()
    return board[:position] + Symbol(symbol).value + board[position + 1:]


def evaluate(board: str) -> Outcome:
    # A completed line wins even when the board is also full
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return Outcome.won(Symbol(v))
    if EMPTY not in board:
        return DRAWN
    return IN_PROGRESS


def count_marks(board: str) -> int:
    return sum(1 for c in board if c != EMPTY)


def turn_from_board(board: str) -> Symbol:
    """X moves on an even number of marks, O on an odd number."""
    return Symbol.X if count_marks(board) % 2 == 0 else Symbol.O
