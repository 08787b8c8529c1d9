def test_start_game(client):
    res = client.post('/start', json={'name': 'Alice'})
    assert res.status_code == 200
    data = res.get_json()
    assert data['success'] is True
    assert data['user']['name'] == 'Alice'
    assert data['user']['symbol'] == 'X'
    game = data['game']
    assert game['state'] == '_________'
    assert game['currentPlayer'] == 'X'
    assert len(game['gameCode']) == 6
    assert game['gameUrl'] == f"http://testserver/game/{game['gameCode']}"
    assert game['users'] == [{'id': data['user']['id'], 'name': 'Alice', 'symbol': 'X'}]


def test_join_game(client):
    code = client.post('/start', json={'name': 'Alice'}).get_json()['game']['gameCode']
    res = client.post('/join', json={'name': 'Bob', 'gameCode': code.lower()})
    assert res.status_code == 200
    data = res.get_json()
    assert data['user']['symbol'] == 'O'
    assert data['game']['currentPlayer'] == 'X'
    assert [(u['name'], u['symbol']) for u in data['game']['users']] == [('Alice', 'X'), ('Bob', 'O')]


def test_join_unknown_code(client):
    res = client.post('/join', json={'name': 'Bob', 'gameCode': 'ZZZZZZ'})
    assert res.status_code == 404
    assert res.get_json()['success'] is False


def test_join_full_game(client, started_game):
    res = client.post('/join', json={'name': 'Carol', 'gameCode': started_game['code']})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'Game is full'


def test_validation_errors(client):
    res = client.post('/start', json={'name': '   '})
    assert res.status_code == 400
    body = res.get_json()
    assert body['error'] == 'Invalid input'
    assert body['details'][0]['field'] == 'name'

    res = client.post('/start', json={'name': 'x' * 51})
    assert res.status_code == 400

    res = client.post('/join', json={'name': 'Bob', 'gameCode': 'A' * 11})
    assert res.status_code == 400
    assert [d['field'] for d in res.get_json()['details']] == ['gameCode']

    res = client.post('/join', data='not json', content_type='text/plain')
    assert res.status_code == 400


def test_score_for_game(client, started_game, directory):
    room = directory.get_or_create(started_game['code'])
    alice, bob = started_game['alice']['id'], started_game['bob']['id']
    for pid, pos in [(alice, 0), (bob, 3), (alice, 1), (bob, 4), (alice, 2)]:
        room.attempt_move(pos, pid)

    res = client.get(f"/score/{started_game['game_id']}")
    assert res.status_code == 200
    game = res.get_json()['game']
    assert game['state'] == 'XXXOO____'
    assert game['winner'] == 'X'
    scores = {u['name']: (u['symbol'], u['score']) for u in game['users']}
    assert scores == {'Alice': ('X', 1), 'Bob': ('O', 0)}


def test_score_unknown_game(client):
    assert client.get('/score/does-not-exist').status_code == 404


def test_leaderboard_aggregates_by_name(client, directory):
    def play_win(winner_name, loser_name):
        start = client.post('/start', json={'name': winner_name}).get_json()
        code = start['game']['gameCode']
        join = client.post('/join', json={'name': loser_name, 'gameCode': code}).get_json()
        room = directory.get_or_create(code)
        x, o = start['user']['id'], join['user']['id']
        for pid, pos in [(x, 0), (o, 3), (x, 1), (o, 4), (x, 2)]:
            room.attempt_move(pos, pid)

    play_win('Alice', 'Bob')
    play_win('Alice', 'Carol')
    play_win('Bob', 'Alice')

    res = client.get('/leaderboard')
    assert res.status_code == 200
    board = res.get_json()['leaderboard']
    assert board[0] == {'id': 'Alice-0', 'name': 'Alice', 'score': 2}
    assert board[1] == {'id': 'Bob-1', 'name': 'Bob', 'score': 1}


def test_health(client):
    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json() == {'health': 'ok', 'database': 'connected'}
