import logging

logger = logging.getLogger(__name__)

NAMESPACE = '/ws'


def room_name(session_key: str) -> str:
    return f"session:{session_key}"


class SocketIOGateway:
    """Fan-out of session events to every socket joined to the session room."""

    def __init__(self, socketio, namespace: str = NAMESPACE):
        self._socketio = socketio
        self.namespace = namespace

    def broadcast(self, session_key: str, event: str, payload: dict) -> None:
        # Delivery is best effort; a broken recipient never stops the caller
        try:
            self._socketio.emit(event, payload, to=room_name(session_key), namespace=self.namespace)
        except Exception:
            logger.exception(f"[broadcast-failed] session={session_key} event={event}")
