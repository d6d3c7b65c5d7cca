def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_health_reports_question_count(client):
    data = client.get('/health').get_json()
    assert data['status'] == 'ok'
    assert data['questions'] > 0
    assert data['sessions'] == 0


def test_token_round_trip(client):
    res = client.post('/api/token', json={'identity': 'u-1', 'name': 'Alice'})
    assert res.status_code == 201
    token = res.get_json()['token']
    me = client.get('/api/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    assert me.get_json() == {'identity': 'u-1', 'name': 'Alice'}


def test_token_requires_identity(client):
    res = client.post('/api/token', json={'name': 'Nobody'})
    assert res.status_code == 400


def test_me_rejects_bad_tokens(client):
    assert client.get('/api/me').status_code == 401
    res = client.get('/api/me', headers={'Authorization': 'Bearer not-a-token'})
    assert res.status_code == 401


def test_token_issuing_can_be_disabled(flask_app, client):
    flask_app.config['DEV_TOKENS_ENABLED'] = False
    res = client.post('/api/token', json={'identity': 'u-1'})
    assert res.status_code == 404


def test_leaderboard_and_user_score(flask_app, client):
    ledger = flask_app.extensions['quizroom'].ledger
    ledger.add('alice', 40)
    ledger.add('bob', 90)
    rows = client.get('/api/leaderboard').get_json()
    assert [r['identity'] for r in rows] == ['bob', 'alice']
    assert client.get('/api/leaderboard?limit=1').get_json()[0]['identity'] == 'bob'
    assert client.get('/api/user/alice/score').get_json() == {'identity': 'alice', 'score': 40}


def test_score_lookup_leaves_leaderboard_unchanged(flask_app, client):
    ledger = flask_app.extensions['quizroom'].ledger
    ledger.add('alice', 10)
    for i in range(3):
        res = client.get(f'/api/user/stranger-{i}/score')
        assert res.get_json() == {'identity': f'stranger-{i}', 'score': 0}
    rows = client.get('/api/leaderboard').get_json()
    assert [(r['identity'], r['score']) for r in rows] == [('alice', 10)]
    assert len(ledger) == 1


def test_leaderboard_rejects_bad_limit(client):
    assert client.get('/api/leaderboard?limit=ten').status_code == 400


def test_leaderboard_resets_with_the_day(flask_app, client, today):
    flask_app.extensions['quizroom'].ledger.add('alice', 40)
    today.next_day()
    assert client.get('/api/user/alice/score').get_json()['score'] == 0


def test_session_state_unknown_key(client):
    res = client.get('/api/sessions/nope/state')
    assert res.status_code == 404
    assert res.get_json()['code'] == 'session_not_found'


def test_session_state_after_join(flask_app, client):
    session = flask_app.extensions['quizroom'].registry.get_or_create('room-9')
    session.join('alice', 'Alice')
    data = client.get('/api/sessions/room-9/state').get_json()
    assert data['host_identity'] == 'alice'
    assert data['round'] is None
    assert data['participants'][0]['name'] == 'Alice'
