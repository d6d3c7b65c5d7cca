import logging
import random
import threading
import time
from typing import Callable, Dict, List, Optional, Set

from quizroom.errors import (DuplicateAnswer, InvalidAnswer, NoActiveRound, NotParticipant,
                             RoundAlreadyResolving)
from quizroom.models import CHOICE, AnswerRecord, Participant, Round
from .scoring import DEFAULT_EXPONENT, DEFAULT_MAX_POINTS, score_answers

logger = logging.getLogger(__name__)

IDLE = 'idle'
ROUND_ACTIVE = 'round_active'
RESOLVED = 'resolved'

ALL_ANSWERED = 'all_answered'
DEADLINE = 'deadline'


class Session:
    """One room: its participants, host and the lifecycle of its rounds.

    idle -> round_active -> resolved -> idle. A round leaves round_active
    exactly once, either because every connected participant answered or
    because its deadline timer fired. Both paths go through ``_resolve``,
    which moves the state out of round_active and cancels the timer before
    any scoring happens, so the other path finds nothing left to do.

    Every public method takes the session lock; handlers may run on
    several threads under Flask-SocketIO.
    """

    def __init__(self, key: str, questions, ledger, gateway, scheduler,
                 clock: Callable[[], float] = time.time, rng: Optional[random.Random] = None,
                 time_budget: float = 15, max_points: int = DEFAULT_MAX_POINTS,
                 exponent: float = DEFAULT_EXPONENT):
        self.key = key
        self.questions = questions
        self.ledger = ledger
        self.gateway = gateway
        self.scheduler = scheduler
        self.time_budget = time_budget
        self.max_points = max_points
        self.exponent = exponent
        self._clock = clock
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        # Join order; departed participants stay so their session score survives a rejoin
        self._participants: Dict[str, Participant] = {}
        self._round: Optional[Round] = None
        self._rounds_played = 0
        self._state = IDLE
        self.used_questions: Set[str] = set()
        self.host_identity: Optional[str] = None
        self.last_activity = clock()

    @property
    def state(self) -> str:
        return self._state

    @property
    def current_round(self) -> Optional[Round]:
        return self._round

    @property
    def connected(self) -> List[Participant]:
        return [p for p in self._participants.values() if p.connected]

    def participant(self, identity: str) -> Optional[Participant]:
        return self._participants.get(identity)

    @property
    def is_idle(self) -> bool:
        with self._lock:
            return self._state == IDLE and not self.connected

    def idle_since(self, cutoff: float) -> bool:
        """True when idle and untouched since ``cutoff``. Checked under the session lock."""
        with self._lock:
            return self._state == IDLE and not self.connected and self.last_activity <= cutoff

    def _touch(self):
        with self._lock:
            self.last_activity = self._clock()

    # ---- membership ----

    def join(self, identity: str, name: str, sid: Optional[str] = None) -> Participant:
        with self._lock:
            self._touch()
            participant = self._participants.get(identity)
            if participant is None:
                participant = Participant(identity=identity, name=name or identity, sid=sid)
                self._participants[identity] = participant
            else:
                if not participant.connected:
                    # Back of the line for host promotion
                    self._participants.pop(identity)
                    self._participants[identity] = participant
                participant.name = name or participant.name
                participant.sid = sid
                participant.connected = True
            participant.day_score = self.ledger.get(identity)
            if self.host_identity is None:
                self._set_host(identity)
            logger.info(f"[join] session={self.key} identity={identity} connected={len(self.connected)}")
            self._broadcast_room_state()
            return participant

    def leave(self, identity: str, sid: Optional[str] = None) -> bool:
        """Drop a participant from the active set.

        ``sid`` guards against a stale socket disconnecting a participant who
        has since reconnected on a new one. Returns False when nothing changed.
        """
        with self._lock:
            participant = self._participants.get(identity)
            if participant is None or not participant.connected:
                return False
            if sid is not None and participant.sid != sid:
                return False
            self._touch()
            participant.connected = False
            participant.sid = None
            logger.info(f"[leave] session={self.key} identity={identity} connected={len(self.connected)}")
            if self.host_identity == identity:
                remaining = self.connected
                self._set_host(remaining[0].identity if remaining else None)
            # The answered-everyone check uses whoever is still connected right now
            if not self._maybe_resolve_early():
                self._broadcast_room_state()
            return True

    def _set_host(self, identity: Optional[str]) -> None:
        previous = self.host_identity
        self.host_identity = identity
        logger.info(f"[host-change] session={self.key} from={previous} to={identity}")

    # ---- round lifecycle ----

    def start_round(self, requester: str) -> Optional[Round]:
        """Open a new round. Returns None when the request is ignored.

        Requests from anyone but the host, and requests while a round is
        already running, are dropped without an error so duplicate client
        triggers are harmless.
        """
        with self._lock:
            self._touch()
            if requester != self.host_identity:
                logger.debug(f"[start-ignored] session={self.key} requester={requester} host={self.host_identity}")
                return None
            if self._state != IDLE:
                logger.debug(f"[start-ignored] session={self.key} state={self._state}")
                return None
            question = self.questions.draw(self.used_questions, self._rng)
            if question is None:
                logger.warning(f"[start-ignored] session={self.key} question bank is empty")
                return None

            self._rounds_played += 1
            current = Round(number=self._rounds_played, question=question,
                            started_at=self._clock(), time_budget=self.time_budget)
            self._round = current
            self._state = ROUND_ACTIVE
            current.timer = self.scheduler.call_later(
                self.time_budget, self._on_deadline, current.number,
                label=f"session={self.key} round={current.number}",
            )
            logger.info(
                f"[round-start] session={self.key} round={current.number} question={question.id} "
                f"budget={self.time_budget}s deadline={current.deadline}"
            )
            self.gateway.broadcast(self.key, 'round_started', current.to_started_dict())
            return current

    def submit(self, identity: str, answer) -> AnswerRecord:
        """Record one participant's answer for the active round.

        ``answer`` is an option index for multiple choice questions and a
        string for name questions. Time remaining comes from the server
        clock at acceptance. Raises a SubmissionRejected subclass otherwise.
        """
        with self._lock:
            self._touch()
            if self._state == RESOLVED:
                raise RoundAlreadyResolving()
            current = self._round
            if self._state != ROUND_ACTIVE or current is None:
                raise NoActiveRound()
            participant = self._participants.get(identity)
            if participant is None or not participant.connected:
                raise NotParticipant()
            if identity in current.answers:
                raise DuplicateAnswer()
            if not current.question.accepts(answer):
                raise InvalidAnswer()

            remaining = current.time_remaining(self._clock())
            if remaining <= 0:
                # The clock ran out before the timer got to run
                self._resolve(DEADLINE)
                raise RoundAlreadyResolving()

            is_choice = current.question.kind == CHOICE
            record = AnswerRecord(
                identity=identity,
                time_remaining=remaining,
                correct=current.question.is_correct(answer),
                option_index=answer if is_choice else None,
                text=None if is_choice else answer,
            )
            current.answers[identity] = record
            if is_choice:
                ack = {'identity': identity, 'option_index': answer}
            else:
                ack = {'identity': identity, 'correct': record.correct}
            self.gateway.broadcast(self.key, 'answer_acknowledged', ack)
            self._maybe_resolve_early()
            return record

    def submit_choice(self, identity: str, option_index: int) -> AnswerRecord:
        return self.submit(identity, option_index)

    def submit_text(self, identity: str, text: str) -> AnswerRecord:
        return self.submit(identity, text)

    def _maybe_resolve_early(self) -> bool:
        if self._state != ROUND_ACTIVE:
            return False
        answers = self._round.answers
        if all(p.identity in answers for p in self.connected):
            self._resolve(ALL_ANSWERED)
            return True
        return False

    def _on_deadline(self, round_number: int) -> None:
        with self._lock:
            current = self._round
            if self._state != ROUND_ACTIVE or current is None or current.number != round_number:
                logger.info(f"[timer-abort] session={self.key} round={round_number} already resolved")
                return
            self._resolve(DEADLINE)

    def _resolve(self, resolution: str) -> None:
        current = self._round
        self._state = RESOLVED
        if current.timer is not None:
            current.timer.cancel()
        try:
            connected_ids = [p.identity for p in self.connected]
            points = score_answers(connected_ids, current.answers, current.time_budget,
                                   self.max_points, self.exponent)
            for identity, awarded in points.items():
                participant = self._participants.get(identity)
                day_score = self.ledger.add(identity, awarded) if awarded else self.ledger.get(identity)
                if participant is not None:
                    participant.session_score += awarded
                    participant.day_score = day_score
            logger.info(
                f"[resolve] session={self.key} round={current.number} resolution={resolution} "
                f"answered={len(current.answers)}/{len(connected_ids)}"
            )
            self.gateway.broadcast(self.key, 'round_resolved', {
                'round': current.number,
                'resolution': resolution,
                'correct_answer': current.question.correct_answer(),
                'question': current.question.to_dict(),
                'points': points,
                'scores': {p.identity: p.session_score for p in self.connected},
                'answers': {identity: rec.to_dict() for identity, rec in current.answers.items()},
            })
        finally:
            self._round = None
            self._state = IDLE
        self._broadcast_room_state()

    # ---- views ----

    def room_state(self) -> dict:
        with self._lock:
            participants = []
            for p in self.connected:
                p.day_score = self.ledger.get(p.identity)
                participants.append(p.to_dict())
            return {
                'session_key': self.key,
                'participants': participants,
                'host_identity': self.host_identity,
                'state': self._state,
            }

    def snapshot(self) -> dict:
        with self._lock:
            data = self.room_state()
            data['round'] = self._round.to_started_dict() if self._round else None
            data['rounds_played'] = self._rounds_played
            return data

    def _broadcast_room_state(self):
        self.gateway.broadcast(self.key, 'room_state', self.room_state())

    def close(self) -> None:
        with self._lock:
            if self._round is not None and self._round.timer is not None:
                self._round.timer.cancel()
            self._round = None
            self._state = IDLE
            logger.info(f"[close] session={self.key}")
