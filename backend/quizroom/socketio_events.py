from flask import current_app, request
from flask_socketio import ConnectionRefusedError, emit, join_room, leave_room
from quizroom import socketio
from quizroom.errors import AuthenticationFailed, SessionNotFound, SubmissionRejected
from quizroom.services.rooms.gateway import NAMESPACE, room_name
from typing import Any, Dict, Optional


def _services():
    return current_app.extensions['quizroom']

def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _ctx() -> Optional[Dict[str, Any]]:
    ctx = _services().connections.get(_get_sid())
    if not ctx:
        emit('error', {'code': 'not_authenticated', 'message': 'connect with a token first'})
    return ctx

def _session_for(ctx: Dict[str, Any], data):
    """Session named in the payload, or the one this socket joined."""
    key = (data or {}).get('session_key') or ctx.get('session_key')
    if not key:
        emit('error', {'code': SessionNotFound.code, 'message': 'session_key is required'})
        return None
    try:
        return _services().registry.get(str(key))
    except SessionNotFound as exc:
        emit('error', exc.to_dict())
        return None


def handle_connect(auth=None):
    auth = auth if isinstance(auth, dict) else {}
    services = _services()
    try:
        user = services.verifier.verify(auth.get('token'))
    except AuthenticationFailed as exc:
        current_app.logger.info(f"[auth-failed] sid={_get_sid()} reason={exc.message}")
        raise ConnectionRefusedError(exc.code)
    services.connections[_get_sid()] = {'identity': user.identity, 'name': user.name, 'session_key': None}
    emit('connected', {'identity': user.identity, 'name': user.name})
    room_id = auth.get('roomId') or auth.get('session_key')
    if room_id:
        _join(str(room_id))


def handle_disconnect(reason=None):
    ctx = _services().connections.pop(_get_sid(), None)
    if not ctx:
        return
    _leave(ctx, _get_sid())


def handle_join_session(data):
    ctx = _ctx()
    if not ctx:
        return
    key = (data or {}).get('session_key') or current_app.config.get('DEFAULT_SESSION_KEY', 'default-room')
    _join(str(key))


def handle_leave_session(data):
    ctx = _ctx()
    if not ctx or not ctx.get('session_key'):
        return
    key = ctx['session_key']
    _leave(ctx, _get_sid())
    leave_room(room_name(key))
    ctx['session_key'] = None
    emit('left', {'session_key': key})


def handle_start_round(data):
    ctx = _ctx()
    if not ctx:
        return
    session = _session_for(ctx, data)
    if session is None:
        return
    # Non-host requests come back as None and are dropped on purpose
    session.start_round(ctx['identity'])


def handle_submit_choice(data):
    ctx = _ctx()
    if not ctx:
        return
    session = _session_for(ctx, data)
    if session is None:
        return
    _submit(session, ctx, (data or {}).get('option_index'))


def handle_submit_text(data):
    ctx = _ctx()
    if not ctx:
        return
    session = _session_for(ctx, data)
    if session is None:
        return
    _submit(session, ctx, (data or {}).get('text'))


def handle_ping(data):
    emit('pong', data or {})


def _submit(session, ctx, answer):
    try:
        session.submit(ctx['identity'], answer)
    except SubmissionRejected as exc:
        current_app.logger.info(f"[answer-rejected] session={session.key} identity={ctx['identity']} reason={exc.code}")
        emit('answer_rejected', {'session_key': session.key, 'reason': exc.code})


def _join(key: str) -> None:
    services = _services()
    sid = _get_sid()
    ctx = services.connections[sid]
    if ctx.get('session_key') and ctx['session_key'] != key:
        _leave(ctx, sid)
        leave_room(room_name(ctx['session_key']))
    session = services.registry.get_or_create(key)
    join_room(room_name(key))
    ctx['session_key'] = key
    session.join(ctx['identity'], ctx['name'], sid=sid)
    emit('you_joined', {'identity': ctx['identity'], 'session_key': key, 'host_identity': session.host_identity})


def _leave(ctx: Dict[str, Any], sid: str) -> None:
    key = ctx.get('session_key')
    if not key:
        return
    try:
        session = _services().registry.get(key)
    except SessionNotFound:
        # Already reaped or closed
        return
    session.leave(ctx['identity'], sid=sid)


def register_socketio_handlers(namespace: str = NAMESPACE) -> None:
    """Register Socket.IO event handlers on the given namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join_session', handle_join_session, namespace=namespace)
    socketio.on_event('leave_session', handle_leave_session, namespace=namespace)
    socketio.on_event('start_round', handle_start_round, namespace=namespace)
    socketio.on_event('submit_choice', handle_submit_choice, namespace=namespace)
    socketio.on_event('submit_text', handle_submit_text, namespace=namespace)
    socketio.on_event('ping', handle_ping, namespace=namespace)
