import logging
import threading
import time
from typing import Callable, Dict, List

from quizroom.errors import SessionNotFound
from .session import Session

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps a session key to its single live Session.

    Sessions are created on first join and removed by ``close`` or by the
    idle reaper once nobody is connected and nothing happened for a while.
    """

    def __init__(self, factory: Callable[[str], Session], clock: Callable[[], float] = time.time):
        self._factory = factory
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def get_or_create(self, key: str) -> Session:
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = self._factory(key)
                self._sessions[key] = session
                logger.info(f"[session-create] session={key} total={len(self._sessions)}")
            # Keeps the reaper off a session a caller is about to join
            session._touch()
            return session

    def get(self, key: str) -> Session:
        with self._lock:
            session = self._sessions.get(key)
        if session is None:
            raise SessionNotFound(f'session {key} not found')
        return session

    def close(self, key: str) -> bool:
        with self._lock:
            session = self._sessions.pop(key, None)
        if session is None:
            return False
        session.close()
        return True

    def reap_idle(self, idle_timeout: float) -> List[str]:
        """Close sessions with nobody connected, no round running and no
        activity for ``idle_timeout`` seconds. Returns the removed keys."""
        cutoff = self._clock() - idle_timeout
        with self._lock:
            stale = [key for key, s in self._sessions.items() if s.idle_since(cutoff)]
            removed = [self._sessions.pop(key) for key in stale]
        for session in removed:
            session.close()
        if stale:
            logger.info(f"[reap] removed={len(stale)} remaining={len(self._sessions)}")
        return stale

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __contains__(self, key):
        return key in self._sessions

    def __len__(self):
        return len(self._sessions)
