from flask import Blueprint, current_app, jsonify, request
from quizroom.errors import AuthenticationFailed
from quizroom.services.identity import bearer_token

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the quiz room server!'})

@main.route('/health')
def health():
    services = current_app.extensions['quizroom']
    return jsonify({'status': 'ok', 'sessions': len(services.registry), 'questions': len(services.questions)})

@main.route('/api/token', methods=['POST', 'OPTIONS'])
def issue_token():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    if not current_app.config.get('DEV_TOKENS_ENABLED'):
        return jsonify({'error': 'Token issuing is disabled'}), 404
    data = request.get_json(silent=True) or {}
    identity = str(data.get('identity') or '').strip()
    if not identity:
        return jsonify({'error': 'identity is required'}), 400
    name = str(data.get('name') or identity).strip()
    token = current_app.extensions['quizroom'].verifier.issue(identity, name)
    return jsonify({'token': token, 'identity': identity, 'name': name}), 201

@main.route('/api/me', methods=['GET', 'OPTIONS'])
def me():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    token = bearer_token(request.headers.get('Authorization'))
    if not token:
        return jsonify({'error': 'missing auth'}), 401
    try:
        user = current_app.extensions['quizroom'].verifier.verify(token)
    except AuthenticationFailed as exc:
        return jsonify({'error': exc.message}), 401
    return jsonify(user.to_dict())
