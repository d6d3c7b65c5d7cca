from flask import Blueprint, current_app, jsonify, request
from quizroom.errors import SessionNotFound

leaderboard = Blueprint('leaderboard', __name__)


def _services():
    return current_app.extensions['quizroom']


@leaderboard.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    """Top day-scoped scores, highest first."""
    default_limit = int(current_app.config.get('LEADERBOARD_LIMIT', 100))
    try:
        limit = int(request.args.get('limit', default_limit))
    except (TypeError, ValueError):
        return jsonify({'error': 'limit must be an integer'}), 400
    limit = max(0, min(limit, default_limit))
    return jsonify(_services().ledger.top(limit))


@leaderboard.route('/user/<string:identity>/score', methods=['GET'])
def get_user_score(identity):
    return jsonify({'identity': identity, 'score': _services().ledger.get(identity)})


@leaderboard.route('/sessions/<string:session_key>/state', methods=['GET'])
def get_session_state(session_key):
    try:
        session = _services().registry.get(session_key)
    except SessionNotFound as exc:
        return jsonify({'error': exc.message, 'code': exc.code}), 404
    return jsonify(session.snapshot())
