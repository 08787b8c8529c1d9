"""Authoritative in-memory state of one game.

A Room owns its players, board, turn and outcome. Every mutation runs under
the room's lock and is checkpointed through the GameStore before the
in-memory state changes, so whatever a caller broadcasts afterwards is
durably recorded.
"""

import contextlib
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .board import EMPTY_BOARD, IN_PROGRESS, Outcome, Symbol, apply_move, evaluate, is_valid_board, turn_from_board
from .errors import (
    GameAlreadyOver,
    GameFull,
    NotYourTurn,
    RoomFull,
    StoreError,
    UnknownPlayer,
    WaitingForOpponent,
)
from .scoring import ScoringPolicy
from .store import GameSnapshot, GameStore, Player

logger = logging.getLogger(__name__)


class RoomState(str, Enum):
    WAITING_FOR_SECOND_PLAYER = 'waiting_for_second_player'
    IN_PROGRESS = 'in_progress'
    FINISHED = 'finished'


@dataclass(frozen=True)
class JoinResult:
    player: Player
    added: bool
    player_count: int


@dataclass(frozen=True)
class MoveResult:
    """Outcome of an accepted move, ready to broadcast.

    ``events()`` yields the board update first and the game-over step second,
    so transports only need to emit them in order.
    """

    board: str
    current_player: Symbol
    outcome: Outcome
    game: dict

    @property
    def board_update(self) -> dict:
        return {'game': self.game, 'currentPlayer': self.current_player.value}

    @property
    def outcome_if_any(self) -> Optional[dict]:
        if not self.outcome.is_terminal:
            return None
        return {'winner': self.outcome.to_wire(), 'game': self.game}

    def events(self):
        steps = [('move-updated', self.board_update)]
        if self.outcome_if_any is not None:
            steps.append(('game-over', self.outcome_if_any))
        return steps


class Room:

    def __init__(self, game_id: str, game_code: str, store: GameStore,
                 scoring: Optional[ScoringPolicy] = None, game_url: Optional[str] = None):
        self.game_id = game_id
        self.game_code = game_code.upper()
        self.game_url = game_url
        self.board = EMPTY_BOARD
        self.turn = Symbol.X
        self.outcome = IN_PROGRESS
        self.last_activity = time.time()
        self._store = store
        self._scoring = scoring or ScoringPolicy()
        self._players: Dict[str, Player] = {}
        self._lock = threading.RLock()

    @classmethod
    def hydrate(cls, snapshot: GameSnapshot, store: GameStore,
                scoring: Optional[ScoringPolicy] = None) -> 'Room':
        """Rebuild a room from its durable snapshot.

        Turn and outcome are copied when persisted; older rows without them
        fall back to cell parity and a fresh evaluation of the board.
        """
        if not is_valid_board(snapshot.board):
            raise StoreError(f"Stored board for {snapshot.game_code} is corrupted")
        room = cls(snapshot.game_id, snapshot.game_code, store, scoring=scoring, game_url=snapshot.game_url)
        room.board = snapshot.board
        for p in snapshot.players[:2]:
            room._players[p.id] = p
        room.turn = snapshot.turn or turn_from_board(snapshot.board)
        room.outcome = snapshot.outcome or evaluate(snapshot.board)
        logger.info(
            f"[hydrate] game={room.game_code} players={len(room._players)} board={room.board} "
            f"turn={room.turn.value} outcome={room.outcome.to_wire()}"
        )
        return room

    # ---- Read side ----

    @property
    def state(self) -> RoomState:
        if self.outcome.is_terminal:
            return RoomState.FINISHED
        if len(self._players) < 2:
            return RoomState.WAITING_FOR_SECOND_PLAYER
        return RoomState.IN_PROGRESS

    @property
    def players(self) -> List[Player]:
        with self._lock:
            return list(self._players.values())

    @property
    def player_count(self) -> int:
        return len(self._players)

    def get_player(self, player_id) -> Optional[Player]:
        return self._players.get(player_id)

    def touch(self) -> None:
        self.last_activity = time.time()

    @contextlib.contextmanager
    def try_lock(self):
        """Hold the room lock if it is free; yields whether it was acquired."""
        acquired = self._lock.acquire(blocking=False)
        try:
            yield acquired
        finally:
            if acquired:
                self._lock.release()

    def is_stale(self, now: float, idle_ttl_sec: int) -> bool:
        return self.state == RoomState.FINISHED or now - self.last_activity > idle_ttl_sec

    def to_dict(self) -> dict:
        with self._lock:
            return self._serialize()

    def _serialize(self) -> dict:
        return {
            'gameId': self.game_id,
            'gameCode': self.game_code,
            'gameUrl': self.game_url,
            'state': self.board,
            'users': [p.to_dict() for p in self._players.values()],
            'currentPlayer': self.turn.value,
            'winner': self.outcome.to_wire(),
            'status': self.state.value,
        }

    # ---- Mutations ----

    def add_player(self, player_id: str, name: str) -> JoinResult:
        # Reconnects are answered without waiting behind in-flight moves
        existing = self._players.get(player_id)
        if existing is not None:
            return JoinResult(existing, False, len(self._players))

        with self._lock:
            existing = self._players.get(player_id)
            if existing is not None:
                return JoinResult(existing, False, len(self._players))
            if len(self._players) >= 2:
                raise RoomFull()
            taken = {p.symbol for p in self._players.values()}
            symbol = Symbol.X if Symbol.X not in taken else Symbol.O
            try:
                self._store.append_player(self.game_id, player_id, name, symbol)
            except GameFull as exc:
                raise RoomFull() from exc
            player = Player(id=player_id, name=name, symbol=symbol)
            self._players[player_id] = player
            self.last_activity = time.time()
            logger.info(
                f"[join] game={self.game_code} player={player_id} symbol={symbol.value} "
                f"players={len(self._players)} state={self.state.value}"
            )
            return JoinResult(player, True, len(self._players))

    def attempt_move(self, position, player_id: str) -> MoveResult:
        with self._lock:
            player = self._players.get(player_id)
            if player is None:
                raise UnknownPlayer()
            if self.outcome.is_terminal:
                raise GameAlreadyOver()
            if len(self._players) < 2:
                raise WaitingForOpponent()
            if player.symbol != self.turn:
                raise NotYourTurn()

            board = apply_move(self.board, position, player.symbol)
            next_turn = self.turn.other
            outcome = evaluate(board)

            # Durable first; memory only changes once every write succeeded
            self._store.checkpoint_board(self.game_id, board, next_turn)
            newly_recorded = False
            if outcome.is_terminal:
                try:
                    newly_recorded = self._store.record_outcome(self.game_id, outcome)
                except StoreError:
                    self._restore_checkpoint()
                    raise

            self.board = board
            self.turn = next_turn
            self.last_activity = time.time()
            logger.info(
                f"[move] game={self.game_code} player={player_id} symbol={player.symbol.value} "
                f"position={position} board={board}"
            )
            if outcome.is_terminal:
                self.outcome = outcome
                logger.info(f"[finish] game={self.game_code} winner={outcome.to_wire()}")
                if newly_recorded:
                    self._award_scores(outcome)

            return MoveResult(
                board=self.board,
                current_player=self.turn,
                outcome=self.outcome,
                game=self._serialize(),
            )

    def _restore_checkpoint(self) -> None:
        try:
            self._store.checkpoint_board(self.game_id, self.board, self.turn)
        except StoreError:
            logger.exception(f"[restore-failed] game={self.game_code} board={self.board}")

    def _award_scores(self, outcome: Outcome) -> None:
        for player, delta in self._scoring.awards(outcome, self._players.values()):
            try:
                self._store.increment_score(player.name, delta, player_id=player.id)
            except StoreError:
                # The result itself is durable; only the leaderboard lags
                logger.exception(f"[score-failed] game={self.game_code} player={player.id} delta={delta}")
