import logging
import threading
from typing import Callable, List

logger = logging.getLogger(__name__)


class TimerHandle:
    """Handle for a scheduled callback.

    ``cancel`` is synchronous and idempotent: cancelling a timer that already
    fired or was already cancelled does nothing. A cancelled timer never runs
    its callback.
    """

    def __init__(self, label: str = ''):
        self.label = label
        self._lock = threading.Lock()
        self._cancelled = False
        self._fired = False

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    def claim(self) -> bool:
        """Mark the timer as fired. False if it was cancelled or already fired."""
        with self._lock:
            if self._cancelled or self._fired:
                return False
            self._fired = True
            return True


def run_callback(handle: TimerHandle, callback: Callable, *args) -> None:
    if not handle.claim():
        logger.info(f"[timer-abort] {handle.label} cancelled before firing")
        return
    logger.info(f"[timer-fire] {handle.label}")
    try:
        callback(*args)
    except Exception:
        # A failing timer must not take the background worker down with it
        logger.exception(f"[timer-error] {handle.label}")


class BackgroundScheduler:
    """Runs delayed callbacks on Flask-SocketIO background tasks.

    Using ``socketio.start_background_task``/``socketio.sleep`` keeps timers
    cooperative under eventlet/gevent and plain threads otherwise.
    """

    def __init__(self, socketio):
        self._socketio = socketio

    def call_later(self, delay: float, callback: Callable, *args, label: str = '') -> TimerHandle:
        handle = TimerHandle(label)

        def _worker():
            self._socketio.sleep(delay)
            run_callback(handle, callback, *args)

        logger.info(f"[timer-set] {label} delay={delay}s")
        self._socketio.start_background_task(_worker)
        return handle

    def every(self, interval: float, callback: Callable, *args, label: str = '') -> TimerHandle:
        handle = TimerHandle(label)

        def _loop():
            while True:
                self._socketio.sleep(interval)
                if handle.cancelled:
                    return
                try:
                    callback(*args)
                except Exception:
                    logger.exception(f"[task-error] {label}")

        self._socketio.start_background_task(_loop)
        return handle


def start_maintenance(app, services) -> List[TimerHandle]:
    """Start the periodic ledger sweep and idle session reaper.

    - No-ops in TESTING mode
    - A non-positive interval disables that task
    """
    if app.config.get('TESTING'):
        return []

    handles = []
    sweep_every = int(app.config.get('LEDGER_SWEEP_INTERVAL_SEC', 3600))
    if sweep_every > 0:
        handles.append(services.scheduler.every(sweep_every, services.ledger.sweep, label='ledger-sweep'))

    reap_every = int(app.config.get('REAPER_INTERVAL_SEC', 60))
    idle_timeout = int(app.config.get('SESSION_IDLE_TIMEOUT_SEC', 1800))
    if reap_every > 0 and idle_timeout > 0:
        handles.append(services.scheduler.every(reap_every, services.registry.reap_idle, idle_timeout, label='reaper'))

    app.logger.info(f"[maintenance] sweep_every={sweep_every}s reap_every={reap_every}s idle_timeout={idle_timeout}s")
    return handles
