import dataclasses
import os
import sys
import threading

import pytest

# Ensure the backend root (containing the `tictactoe` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from tictactoe import create_app, db, socketio
from tictactoe.services.games.errors import GameFull, NotFound
from tictactoe.services.games.store import GameSnapshot, GameStore, Player


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SERVER_URL = 'http://testserver'
    CORS_ORIGINS = ['http://localhost:5173']
    GAME_CODE_LENGTH = 6
    LEADERBOARD_SIZE = 10
    SCORE_WIN_POINTS = 1
    SCORE_DRAW_POINTS = 0
    SCORE_LOSS_POINTS = 0
    ROOM_IDLE_TTL_SEC = 0
    CHAT_MAX_LENGTH = 500


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        application.extensions['room_directory'].close()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def store(flask_app):
    return flask_app.extensions['game_store']


@pytest.fixture()
def directory(flask_app):
    return flask_app.extensions['room_directory']


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
    yield test_client
    try:
        test_client.disconnect()
    except Exception:
        pass


@pytest.fixture()
def make_sio_client(flask_app):
    """Factory for extra Socket.IO clients, disconnected at teardown."""
    clients = []

    def _make():
        c = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(c)
        return c

    yield _make
    for c in clients:
        try:
            c.disconnect()
        except Exception:
            pass


@pytest.fixture()
def started_game(client):
    """Alice starts a game and Bob joins it through the onboarding API."""
    alice = client.post('/start', json={'name': 'Alice'}).get_json()
    code = alice['game']['gameCode']
    bob = client.post('/join', json={'name': 'Bob', 'gameCode': code}).get_json()
    return {
        'code': code,
        'game_id': alice['game']['gameId'],
        'alice': alice['user'],
        'bob': bob['user'],
    }


class MemoryStore(GameStore):
    """Dict-backed store whose reads and writes can be held open.

    Set ``checkpoint_gate`` or an entry of ``load_gates`` to an Event and the
    matching call blocks until it is set, after flagging ``*_entered``.
    Needs no app context, so worker threads can use it directly.
    """

    def __init__(self):
        self.games = {}
        self.scores = {}
        self.load_calls = []
        self.checkpoint_gate = None
        self.checkpoint_entered = threading.Event()
        self.load_gates = {}
        self.load_entered = threading.Event()

    def _game(self, game_id):
        game = self.games.get(game_id)
        if game is None:
            raise NotFound()
        return game

    @staticmethod
    def _copy(game):
        return dataclasses.replace(game, players=list(game.players), scores=dict(game.scores))

    def create_game(self, game_id, game_code, initial_board, game_url=None):
        self.games[game_id] = GameSnapshot(game_id, game_code.upper(), initial_board, game_url=game_url)

    def append_player(self, game_id, player_id, name, symbol):
        game = self._game(game_id)
        if any(p.id == player_id for p in game.players):
            return
        if len(game.players) >= 2:
            raise GameFull()
        game.players.append(Player(id=player_id, name=name, symbol=symbol))

    def checkpoint_board(self, game_id, board, turn=None):
        if self.checkpoint_gate is not None:
            self.checkpoint_entered.set()
            self.checkpoint_gate.wait(timeout=5)
        game = self._game(game_id)
        game.board = board
        game.turn = turn

    def record_outcome(self, game_id, outcome):
        game = self._game(game_id)
        if game.outcome is not None:
            return False
        game.outcome = outcome
        return True

    def load_game(self, game_code):
        code = game_code.upper()
        self.load_calls.append(code)
        gate = self.load_gates.get(code)
        if gate is not None:
            self.load_entered.set()
            gate.wait(timeout=5)
        for game in self.games.values():
            if game.game_code == code:
                return self._copy(game)
        return None

    def load_game_by_id(self, game_id):
        game = self.games.get(game_id)
        return self._copy(game) if game else None

    def increment_score(self, display_name, delta, player_id=None):
        self.scores[display_name] = self.scores.get(display_name, 0) + delta

    def game_code_exists(self, game_code):
        return any(g.game_code == game_code.upper() for g in self.games.values())

    def leaderboard(self, limit=10):
        return sorted(self.scores.items(), key=lambda kv: -kv[1])[:limit]

    def ping(self):
        pass


@pytest.fixture()
def memory_store():
    return MemoryStore()
