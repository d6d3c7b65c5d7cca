from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

CHOICE = 'choice'
NAME = 'name'
QUESTION_KINDS = (CHOICE, NAME)


def normalize_name(text: str) -> str:
    return (text or '').strip().lower()


@dataclass
class Question:
    id: str
    kind: str
    prompt: str
    options: List[str] = field(default_factory=list)
    answer_index: Optional[int] = None
    expected: Optional[str] = None
    image_url: Optional[str] = None

    def accepts(self, answer) -> bool:
        """True if the answer has the right shape for this question."""
        if self.kind == CHOICE:
            return isinstance(answer, int) and not isinstance(answer, bool) and 0 <= answer < len(self.options)
        return isinstance(answer, str)

    def is_correct(self, answer) -> bool:
        if self.kind == CHOICE:
            return answer == self.answer_index
        return normalize_name(answer) == normalize_name(self.expected)

    def correct_answer(self):
        return self.answer_index if self.kind == CHOICE else self.expected

    def to_public_dict(self):
        # The answer key stays on the server until the round resolves
        data = {'id': self.id, 'kind': self.kind, 'prompt': self.prompt}
        if self.kind == CHOICE:
            data['options'] = list(self.options)
        if self.image_url:
            data['image_url'] = self.image_url
        return data

    def to_dict(self):
        data = self.to_public_dict()
        if self.kind == CHOICE:
            data['answer_index'] = self.answer_index
        else:
            data['expected'] = self.expected
        return data


@dataclass
class AnswerRecord:
    identity: str
    time_remaining: float
    correct: bool
    option_index: Optional[int] = None
    text: Optional[str] = None

    def to_dict(self):
        data = {
            'identity': self.identity,
            'time_remaining': round(self.time_remaining, 3),
            'correct': self.correct,
        }
        if self.option_index is not None:
            data['option_index'] = self.option_index
        if self.text is not None:
            data['text'] = self.text
        return data


@dataclass
class Round:
    number: int
    question: Question
    started_at: float
    time_budget: float
    answers: Dict[str, AnswerRecord] = field(default_factory=dict)
    timer: Any = None

    @property
    def deadline(self) -> float:
        return self.started_at + self.time_budget

    def time_remaining(self, now: float) -> float:
        return max(0.0, self.deadline - now)

    def to_started_dict(self):
        return {
            'round': self.number,
            'question': self.question.to_public_dict(),
            'start_time': self.started_at,
            'time_budget': self.time_budget,
            'deadline': self.deadline,
        }


@dataclass
class Participant:
    identity: str
    name: str
    sid: Optional[str] = None
    session_score: int = 0
    day_score: int = 0
    connected: bool = True

    def to_dict(self):
        return {
            'identity': self.identity,
            'name': self.name,
            'session_score': self.session_score,
            'day_score': self.day_score,
            'connected': self.connected,
        }
