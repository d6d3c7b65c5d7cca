import os
import sys
import random
import pytest

# Ensure the backend root (containing the `quizroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from datetime import date, timedelta

from quizroom import create_app, socketio
from quizroom.services.rooms.ledger import ScoreLedger
from quizroom.services.rooms.questions import QuestionBank
from quizroom.services.rooms.scheduler import TimerHandle, run_callback
from quizroom.services.rooms.session import Session


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    ROUND_TIME_BUDGET_SEC = 15
    MAX_POINTS = 150
    SCORING_EXPONENT = 2
    QUESTION_BANK_PATH = ''
    DEFAULT_SESSION_KEY = 'default-room'
    SESSION_IDLE_TIMEOUT_SEC = 1800
    REAPER_INTERVAL_SEC = 60
    LEDGER_SWEEP_INTERVAL_SEC = 3600
    LEADERBOARD_LIMIT = 100
    DEV_TOKENS_ENABLED = True
    TOKEN_MAX_AGE_SEC = 3600


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeToday:
    def __init__(self, day=date(2024, 3, 1)):
        self.day = day

    def __call__(self):
        return self.day

    def next_day(self):
        self.day = self.day + timedelta(days=1)


class ManualScheduler:
    """Keeps timers in a list; tests fire whatever is due on the fake clock."""

    def __init__(self, clock):
        self.clock = clock
        self.timers = []

    def call_later(self, delay, callback, *args, label=''):
        handle = TimerHandle(label)
        self.timers.append((self.clock() + delay, handle, callback, args))
        return handle

    def every(self, interval, callback, *args, label=''):
        return TimerHandle(label)

    def pending(self):
        return [h for (_, h, _, _) in self.timers if not (h.cancelled or h.fired)]

    def run_due(self):
        """Run every due timer, cancelled ones included. Returns how many fired."""
        due = [t for t in self.timers if t[0] <= self.clock()]
        self.timers = [t for t in self.timers if t[0] > self.clock()]
        fired = 0
        for _, handle, callback, args in due:
            run_callback(handle, callback, *args)
            fired += int(handle.fired)
        return fired


class RecordingGateway:
    def __init__(self):
        self.events = []

    def broadcast(self, session_key, event, payload):
        self.events.append((session_key, event, payload))

    def named(self, event):
        return [payload for (_, name, payload) in self.events if name == event]


CHOICE_RECORDS = [
    {'id': 'q1', 'question': 'Capital of France?', 'options': ['A) Berlin', 'B) Paris', 'C) Rome'], 'answer': 'B'},
    {'id': 'q2', 'question': 'Two plus two?', 'options': ['A) 3', 'B) 4', 'C) 5'], 'answer': 'B'},
    {'id': 'q3', 'question': 'Largest planet?', 'options': ['A) Jupiter', 'B) Mars'], 'answer': 'A'},
]
NAME_RECORDS = [
    {'id': 'n1', 'type': 'name', 'question': 'Name this planet', 'name': 'Mars', 'image': '/cards/mars.png'},
]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def today():
    return FakeToday()


@pytest.fixture()
def scheduler(clock):
    return ManualScheduler(clock)


@pytest.fixture()
def gateway():
    return RecordingGateway()


@pytest.fixture()
def ledger(today):
    return ScoreLedger(today=today)


@pytest.fixture()
def make_session(clock, scheduler, gateway, ledger):
    def _make(records=None, key='room-1', time_budget=15):
        bank = QuestionBank.from_records(CHOICE_RECORDS if records is None else records)
        return Session(key, bank, ledger, gateway, scheduler, clock=clock,
                       rng=random.Random(3), time_budget=time_budget, max_points=150, exponent=2)
    return _make


@pytest.fixture()
def flask_app(clock, today):
    application = create_app(TestConfig, scheduler=ManualScheduler(clock), clock=clock,
                             today=today, rng=random.Random(11))
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Open Socket.IO test clients on /ws authenticated as the given identity."""
    opened = []
    verifier = flask_app.extensions['quizroom'].verifier

    def _connect(identity, name=None, room=None, token=None):
        auth = {'token': token if token is not None else verifier.issue(identity, name or identity)}
        if room:
            auth['roomId'] = room
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws',
            auth=auth,
        )
        opened.append(test_client)
        return test_client

    yield _connect
    for test_client in opened:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass
