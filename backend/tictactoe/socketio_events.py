from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from tictactoe import socketio, get_directory, get_sessions
from tictactoe.api.onboarding import GAME_CODE_MAX_LENGTH, ID_MAX_LENGTH, NAME_MAX_LENGTH
from tictactoe.services.games.errors import GameError, InvalidInput, StoreError, UnknownPlayer
from dataclasses import dataclass
from typing import Dict, Optional
import threading
import time


@dataclass
class ConnectionSession:
    """What one transport connection currently is: which player in which room."""
    sid: str
    player_id: Optional[str] = None
    game_code: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None


class SessionRegistry:
    """Per-connection session state, updated synchronously on each join."""

    def __init__(self):
        self._sessions: Dict[str, ConnectionSession] = {}
        self._lock = threading.Lock()

    def bind(self, sid, player_id, game_code, name, symbol) -> ConnectionSession:
        with self._lock:
            sess = ConnectionSession(sid=sid, player_id=player_id, game_code=game_code, name=name, symbol=symbol)
            self._sessions[sid] = sess
            return sess

    def get(self, sid) -> Optional[ConnectionSession]:
        return self._sessions.get(sid)

    def drop(self, sid) -> Optional[ConnectionSession]:
        with self._lock:
            return self._sessions.pop(sid, None)


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room_name(game_code: str) -> str:
    return f"game:{game_code.upper()}"


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def _text(value, max_length: int) -> Optional[str]:
    """Stripped string within ``max_length``, or None for anything else."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or len(value) > max_length:
        return None
    return value


def _report(event: str, exc: GameError, **context) -> None:
    """Send a game or store error to the calling connection only."""
    details = ' '.join(f"{k}={v}" for k, v in context.items())
    if isinstance(exc, StoreError):
        current_app.logger.exception(f"[{event}-store-error] {details}")
    else:
        current_app.logger.warning(f"[{event}-rejected] code={exc.code} {details}")
    if event == 'join-room':
        emit('room-joined', {'success': False, 'error': exc.message, 'code': exc.code})
    else:
        emit('invalid-move', {'error': exc.message, 'code': exc.code})


def handle_connect():
    emit('connected', {'message': 'Connected'})


def handle_disconnect(*args):
    # The room and its players survive; only this connection's session goes
    sess = get_sessions().drop(_get_sid())
    if not sess or not sess.game_code:
        return
    current_app.logger.info(f"[disconnect] game={sess.game_code} player={sess.player_id}")
    emit('player-disconnected', {'playerId': sess.player_id}, to=_room_name(sess.game_code), include_self=False)


def handle_join_room(data):
    data = _payload(data)
    user_id = _text(data.get('userId'), ID_MAX_LENGTH)
    game_code = _text(data.get('gameCode'), GAME_CODE_MAX_LENGTH)
    name = _text(data.get('name'), NAME_MAX_LENGTH)
    try:
        if not (user_id and game_code and name):
            raise InvalidInput()
        game_code = game_code.upper()
        room = get_directory().get_or_create(game_code, name)
        result = room.add_player(user_id, name)
    except GameError as exc:
        _report('join-room', exc, game=game_code, player=user_id)
        return

    sid = _get_sid()
    previous = get_sessions().get(sid)
    if previous and previous.game_code and previous.game_code != room.game_code:
        leave_room(_room_name(previous.game_code))
        current_app.logger.info(f"[leave] game={previous.game_code} player={previous.player_id}")
    join_room(_room_name(room.game_code))
    get_sessions().bind(sid, user_id, room.game_code, name, result.player.symbol.value)

    game = room.to_dict()
    emit('room-joined', {'success': True, 'game': game, 'playerCount': result.player_count})
    emit('player-joined', {'game': game, 'playerCount': result.player_count}, to=_room_name(room.game_code))


def handle_make_move(data):
    data = _payload(data)
    sess = get_sessions().get(_get_sid())
    game_code = data.get('gameCode') or (sess.game_code if sess else None)
    player_id = data.get('playerId') or (sess.player_id if sess else None)
    position = data.get('position')

    try:
        game_code = _text(game_code, GAME_CODE_MAX_LENGTH)
        player_id = _text(player_id, ID_MAX_LENGTH)
        if not (game_code and player_id):
            raise InvalidInput()
        room = get_directory().get_or_create(game_code)
        # A connection bound to this room may only move as its own player
        if sess and sess.game_code == room.game_code and player_id != sess.player_id:
            raise UnknownPlayer()
        result = room.attempt_move(position, player_id)
    except GameError as exc:
        _report('make-move', exc, game=game_code, player=player_id, position=position)
        return

    for event, payload in result.events():
        emit(event, payload, to=_room_name(room.game_code))


def handle_chat_message(data):
    data = _payload(data)
    sess = get_sessions().get(_get_sid())
    game_code = _text(data.get('gameCode') or (sess.game_code if sess else None), GAME_CODE_MAX_LENGTH)
    sender = _text(data.get('sender') or (sess.name if sess else None), NAME_MAX_LENGTH)
    message = data.get('message')
    if not game_code or not sender or not isinstance(message, str) or not message.strip():
        emit('error', {'message': 'gameCode, sender and message are required'})
        return
    max_length = int(current_app.config.get('CHAT_MAX_LENGTH', 500))
    emit('chat-message', {
        'sender': sender,
        'message': message.strip()[:max_length],
        'timestamp': int(time.time() * 1000),
    }, to=_room_name(game_code))


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the default namespace."""
    socketio.on_event('connect', handle_connect)
    socketio.on_event('disconnect', handle_disconnect)
    socketio.on_event('join-room', handle_join_room)
    socketio.on_event('make-move', handle_make_move)
    socketio.on_event('chat-message', handle_chat_message)
