import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from quizroom.services.identity import SignedTokenVerifier
from quizroom.services.rooms.gateway import SocketIOGateway
from quizroom.services.rooms.ledger import ScoreLedger, utc_today
from quizroom.services.rooms.questions import QuestionBank
from quizroom.services.rooms.registry import SessionRegistry
from quizroom.services.rooms.scheduler import BackgroundScheduler
from quizroom.services.rooms.session import Session


@dataclass
class Services:
    """Process-wide components, built once per app and handed to handlers."""
    ledger: ScoreLedger
    registry: SessionRegistry
    gateway: Any
    scheduler: Any
    verifier: SignedTokenVerifier
    questions: QuestionBank
    # socket id -> {'identity', 'name', 'session_key'}
    connections: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def build_services(app, socketio, scheduler=None, gateway=None, clock: Optional[Callable[[], float]] = None,
                   today=None, rng: Optional[random.Random] = None) -> Services:
    cfg = app.config
    clock = clock or time.time
    scheduler = scheduler or BackgroundScheduler(socketio)
    gateway = gateway or SocketIOGateway(socketio)
    ledger = ScoreLedger(today=today or utc_today)
    questions = QuestionBank.load(cfg.get('QUESTION_BANK_PATH') or None)

    def make_session(key: str) -> Session:
        return Session(
            key, questions, ledger, gateway, scheduler,
            clock=clock,
            rng=rng,
            time_budget=float(cfg.get('ROUND_TIME_BUDGET_SEC', 15)),
            max_points=int(cfg.get('MAX_POINTS', 150)),
            exponent=float(cfg.get('SCORING_EXPONENT', 2)),
        )

    return Services(
        ledger=ledger,
        registry=SessionRegistry(make_session, clock=clock),
        gateway=gateway,
        scheduler=scheduler,
        verifier=SignedTokenVerifier(cfg['SECRET_KEY'], max_age=int(cfg.get('TOKEN_MAX_AGE_SEC', 86400))),
        questions=questions,
    )
