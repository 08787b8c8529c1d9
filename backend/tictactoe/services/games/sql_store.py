import functools
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tictactoe import db
from tictactoe.models import Game, ScoreRecord, User
from .board import Outcome, Symbol
from .errors import GameFull, NotFound, StoreUnavailable
from .store import GameSnapshot, GameStore, Player

logger = logging.getLogger(__name__)


def _translate_errors(fn):
    """Roll back and surface driver failures as StoreUnavailable."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception(f"[store-error] op={fn.__name__}")
            raise StoreUnavailable() from exc

    return wrapper


def _snapshot(game: Game) -> GameSnapshot:
    return GameSnapshot(
        game_id=game.id,
        game_code=game.game_code,
        board=game.state,
        players=[Player(id=u.id, name=u.name, symbol=Symbol(u.symbol)) for u in game.users],
        turn=Symbol(game.current_player) if game.current_player else None,
        outcome=Outcome.from_wire(game.winner) if game.winner else None,
        game_url=game.room_url,
        scores={u.id: u.score or 0 for u in game.users},
    )


class SqlAlchemyGameStore(GameStore):
    """GameStore backed by the Flask-SQLAlchemy models.

    Must be used inside an application context.
    """

    @_translate_errors
    def create_game(self, game_id, game_code, initial_board, game_url=None):
        game = Game(
            id=game_id,
            game_code=game_code.upper(),
            room_url=game_url,
            state=initial_board,
            current_player=Symbol.X.value,
        )
        db.session.add(game)
        db.session.commit()
        logger.info(f"[store-create] game={game_id} code={game.game_code}")

    @_translate_errors
    def append_player(self, game_id, player_id, name, symbol):
        game = db.session.get(Game, game_id)
        if not game:
            raise NotFound()
        linked = {u.id for u in game.users}
        if player_id in linked:
            return
        if len(linked) >= 2:
            raise GameFull()
        symbol = Symbol(symbol)
        user = User(
            id=player_id,
            name=name,
            game_id=game.id,
            symbol=symbol.value,
            seat=0 if symbol is Symbol.X else 1,
        )
        db.session.add(user)
        db.session.commit()

    @_translate_errors
    def checkpoint_board(self, game_id, board, turn=None):
        game = db.session.get(Game, game_id)
        if not game:
            raise NotFound()
        game.state = board
        if turn is not None:
            game.current_player = Symbol(turn).value
        db.session.add(game)
        db.session.commit()

    @_translate_errors
    def record_outcome(self, game_id, outcome):
        game = db.session.get(Game, game_id)
        if not game:
            raise NotFound()
        wire = outcome.to_wire()
        if game.winner:
            if game.winner != wire:
                logger.warning(f"[store-outcome] game={game_id} already={game.winner} ignored={wire}")
            return False
        game.winner = wire
        db.session.add(game)
        db.session.commit()
        return True

    @_translate_errors
    def load_game(self, game_code) -> Optional[GameSnapshot]:
        game = Game.query.filter_by(game_code=game_code.upper()).first()
        return _snapshot(game) if game else None

    @_translate_errors
    def load_game_by_id(self, game_id) -> Optional[GameSnapshot]:
        game = db.session.get(Game, game_id)
        return _snapshot(game) if game else None

    @_translate_errors
    def increment_score(self, display_name, delta, player_id=None):
        if player_id:
            user = db.session.get(User, player_id)
            if user:
                user.score = (user.score or 0) + delta
                db.session.add(user)
        record = db.session.get(ScoreRecord, display_name)
        if record is None:
            record = ScoreRecord(name=display_name, score=0)
            db.session.add(record)
        record.score = (record.score or 0) + delta
        try:
            db.session.commit()
        except IntegrityError:
            # Lost a race creating the row for this name; retry as an update
            db.session.rollback()
            if player_id:
                user = db.session.get(User, player_id)
                if user:
                    user.score = (user.score or 0) + delta
            record = db.session.get(ScoreRecord, display_name)
            record.score = (record.score or 0) + delta
            db.session.commit()

    @_translate_errors
    def game_code_exists(self, game_code):
        return Game.query.filter_by(game_code=game_code.upper()).first() is not None

    @_translate_errors
    def leaderboard(self, limit=10):
        rows = (
            ScoreRecord.query
            .order_by(ScoreRecord.score.desc(), ScoreRecord.name.asc())
            .limit(limit)
            .all()
        )
        return [(r.name, r.score or 0) for r in rows]

    @_translate_errors
    def ping(self):
        db.session.execute(text('SELECT 1'))
