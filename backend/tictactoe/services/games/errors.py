"""Exceptions raised by the game services.

Game-logic errors are reported back to the offending caller only and leave
room state unchanged. Store errors mean a durable write or read did not
complete.
"""


class GameError(Exception):
    code = 'game_error'
    message = 'Game error'

    def __init__(self, message=None):
        if message:
            self.message = message
        super().__init__(self.message)


class InvalidInput(GameError):
    code = 'invalid_input'
    message = 'Invalid input'


# ---- Board engine ----

class MoveError(GameError):
    code = 'invalid_move'
    message = 'Invalid move'


class OutOfRange(MoveError):
    code = 'out_of_range'
    message = 'Invalid position'


class CellOccupied(MoveError):
    code = 'cell_occupied'
    message = 'Position already occupied'


# ---- Room state machine ----

class NotYourTurn(GameError):
    code = 'not_your_turn'
    message = 'Not your turn'


class GameAlreadyOver(GameError):
    code = 'game_over'
    message = 'Game is already over'


class UnknownPlayer(GameError):
    code = 'unknown_player'
    message = 'Player not found'


class WaitingForOpponent(GameError):
    code = 'waiting_for_opponent'
    message = 'Waiting for a second player'


class RoomFull(GameError):
    code = 'room_full'
    message = 'Room is full'


class RoomNotFound(GameError):
    code = 'room_not_found'
    message = 'Game not found'


# ---- Persistence gateway ----

class StoreError(GameError):
    code = 'store_error'
    message = 'Game service unavailable, please retry'


class StoreUnavailable(StoreError):
    code = 'store_unavailable'


class NotFound(StoreError):
    code = 'not_found'
    message = 'Game not found'


class GameFull(StoreError):
    code = 'game_full'
    message = 'Game is full'
