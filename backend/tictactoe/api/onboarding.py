from flask import Blueprint, jsonify, request, current_app
from tictactoe import get_store
from tictactoe.services.games.board import EMPTY_BOARD, Symbol
from tictactoe.services.games.errors import GameFull, StoreError
import random
import string
import uuid

onboarding = Blueprint('onboarding', __name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
NAME_MAX_LENGTH = 50
GAME_CODE_MAX_LENGTH = 10
ID_MAX_LENGTH = 36


def generate_game_code(store, length=6):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(CODE_ALPHABET, k=length))
        if not store.game_code_exists(code):
            return code


def validate_fields(data, limits):
    """Check required string fields against their max length.

    Returns a list of ``{field, message}`` problems, empty when valid.
    """
    details = []
    for field, max_length in limits.items():
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            details.append({'field': field, 'message': f'{field} is required'})
        elif len(value.strip()) > max_length:
            details.append({'field': field, 'message': f'{field} is too long'})
    return details


def _invalid(details):
    return jsonify({'success': False, 'error': 'Invalid input', 'details': details}), 400


def _game_payload(snapshot, include_scores=False):
    users = []
    for p in snapshot.players:
        u = p.to_dict()
        if include_scores:
            u['score'] = snapshot.scores.get(p.id, 0)
        users.append(u)
    payload = {
        'gameId': snapshot.game_id,
        'gameCode': snapshot.game_code,
        'gameUrl': snapshot.game_url,
        'state': snapshot.board,
        'users': users,
    }
    if include_scores:
        payload['winner'] = snapshot.outcome.to_wire() if snapshot.outcome else None
    else:
        payload['currentPlayer'] = (snapshot.turn or Symbol.X).value
    return payload


@onboarding.route('/start', methods=['POST'])
def start_game():
    data = request.get_json(silent=True) or {}
    details = validate_fields(data, {'name': NAME_MAX_LENGTH})
    if details:
        return _invalid(details)

    name = data['name'].strip()
    store = get_store()
    cfg = current_app.config
    game_id = str(uuid.uuid4())
    user_id = str(uuid.uuid4())
    try:
        code = generate_game_code(store, int(cfg.get('GAME_CODE_LENGTH', 6)))
        game_url = f"{cfg.get('SERVER_URL', '').rstrip('/')}/game/{code}"
        store.create_game(game_id, code, EMPTY_BOARD, game_url)
        store.append_player(game_id, user_id, name, Symbol.X)
        snapshot = store.load_game_by_id(game_id)
    except StoreError:
        current_app.logger.exception(f"[start] failed name={name}")
        return jsonify({'success': False, 'error': 'Failed to create game'}), 500

    current_app.logger.info(f"[start] game={game_id} code={code} user={user_id}")
    return jsonify({
        'success': True,
        'user': {'id': user_id, 'name': name, 'symbol': Symbol.X.value},
        'game': _game_payload(snapshot),
    })


@onboarding.route('/join', methods=['POST'])
def join_game():
    data = request.get_json(silent=True) or {}
    details = validate_fields(data, {'name': NAME_MAX_LENGTH, 'gameCode': GAME_CODE_MAX_LENGTH})
    if details:
        return _invalid(details)

    name = data['name'].strip()
    game_code = data['gameCode'].strip().upper()
    store = get_store()
    try:
        snapshot = store.load_game(game_code)
        if not snapshot:
            return jsonify({'success': False, 'error': 'Game not found'}), 404
        if len(snapshot.players) >= 2:
            return jsonify({'success': False, 'error': 'Game is full'}), 400

        taken = {p.symbol for p in snapshot.players}
        symbol = Symbol.O if Symbol.X in taken else Symbol.X
        user_id = str(uuid.uuid4())
        store.append_player(snapshot.game_id, user_id, name, symbol)
        snapshot = store.load_game_by_id(snapshot.game_id)
    except GameFull:
        return jsonify({'success': False, 'error': 'Game is full'}), 400
    except StoreError:
        current_app.logger.exception(f"[join] failed code={game_code} name={name}")
        return jsonify({'success': False, 'error': 'Failed to join game'}), 500

    current_app.logger.info(f"[join] game={snapshot.game_id} code={game_code} user={user_id} symbol={symbol.value}")
    return jsonify({
        'success': True,
        'user': {'id': user_id, 'name': name, 'symbol': symbol.value},
        'game': _game_payload(snapshot),
    })


@onboarding.route('/score/<string:game_id>', methods=['GET'])
def get_score(game_id):
    try:
        snapshot = get_store().load_game_by_id(game_id)
    except StoreError:
        current_app.logger.exception(f"[score] failed game={game_id}")
        return jsonify({'success': False, 'error': 'Failed to fetch game'}), 500
    if not snapshot:
        return jsonify({'success': False, 'error': 'Game not found'}), 404
    return jsonify({'success': True, 'game': _game_payload(snapshot, include_scores=True)})


@onboarding.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    limit = int(current_app.config.get('LEADERBOARD_SIZE', 10))
    try:
        rows = get_store().leaderboard(limit)
    except StoreError:
        current_app.logger.exception("[leaderboard] failed")
        return jsonify({'success': False, 'error': 'Failed to fetch leaderboard'}), 500
    leaderboard = [
        {'id': f'{name}-{idx}', 'name': name, 'score': score}
        for idx, (name, score) in enumerate(rows)
    ]
    return jsonify({'success': True, 'leaderboard': leaderboard})


@onboarding.route('/health', methods=['GET'])
def health():
    try:
        get_store().ping()
    except StoreError:
        return jsonify({'health': 'error', 'database': 'disconnected'}), 500
    return jsonify({'health': 'ok', 'database': 'connected'})
