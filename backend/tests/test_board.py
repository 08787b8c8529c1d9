import pytest

from tictactoe.services.games.board import (
    DRAWN,
    EMPTY_BOARD,
    IN_PROGRESS,
    WINNING_LINES,
    Outcome,
    Symbol,
    apply_move,
    evaluate,
    is_valid_board,
    turn_from_board,
)
from tictactoe.services.games.errors import CellOccupied, OutOfRange


@pytest.mark.parametrize('line', WINNING_LINES)
@pytest.mark.parametrize('symbol', [Symbol.X, Symbol.O])
def test_every_line_wins(line, symbol):
    cells = ['_'] * 9
    for idx in line:
        cells[idx] = symbol.value
    assert evaluate(''.join(cells)) == Outcome.won(symbol)


def test_empty_board_in_progress():
    assert evaluate(EMPTY_BOARD) == IN_PROGRESS
    assert not evaluate(EMPTY_BOARD).is_terminal


def test_full_board_without_line_is_draw():
    assert evaluate('XOXXOOOXX') == DRAWN


def test_line_beats_full_board():
    # Full board where X completed the top row on the last move
    assert evaluate('XXXOOXOXO') == Outcome.won(Symbol.X)


def test_apply_move_returns_new_board():
    board = EMPTY_BOARD
    after = apply_move(board, 4, Symbol.O)
    assert after == '____O____'
    assert board == EMPTY_BOARD


def test_apply_move_twice_on_same_cell_fails():
    board = apply_move(EMPTY_BOARD, 0, Symbol.X)
    for _ in range(2):
        with pytest.raises(CellOccupied):
            apply_move(board, 0, Symbol.O)


@pytest.mark.parametrize('position', [-1, 9, 42, '4', 1.0, None, True])
def test_apply_move_out_of_range(position):
    with pytest.raises(OutOfRange):
        apply_move(EMPTY_BOARD, position, Symbol.X)


def test_turn_from_board_parity():
    assert turn_from_board(EMPTY_BOARD) is Symbol.X
    assert turn_from_board('X________') is Symbol.O
    assert turn_from_board('X___O____') is Symbol.X


def test_outcome_wire_format():
    assert IN_PROGRESS.to_wire() is None
    assert DRAWN.to_wire() == 'draw'
    assert Outcome.won(Symbol.O).to_wire() == 'O'
    assert Outcome.from_wire('draw') == DRAWN
    assert Outcome.from_wire('X') == Outcome.won(Symbol.X)
    assert Outcome.from_wire(None) == IN_PROGRESS


def test_is_valid_board():
    assert is_valid_board('X___O____')
    assert not is_valid_board('X___O___')
    assert not is_valid_board('X___Q____')
    assert not is_valid_board(None)
