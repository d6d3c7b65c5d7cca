import json
import os
import random
from typing import Iterable, List, Optional, Set

from quizroom.errors import QuestionBankError
from quizroom.models import CHOICE, NAME, Question

BUNDLED_QUESTIONS = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), 'data', 'questions.json')


def _answer_index(options: List[str], raw) -> int:
    # Keys are either an index or a letter the option text starts with ("B" -> "B) Paris")
    if isinstance(raw, int) and not isinstance(raw, bool):
        index = raw
    elif isinstance(raw, str) and raw.strip():
        key = raw.strip()
        index = next((i for i, opt in enumerate(options) if opt.startswith(key)), -1)
    else:
        index = -1
    if not 0 <= index < len(options):
        raise QuestionBankError(f'answer {raw!r} does not match any option')
    return index


def question_from_record(record: dict, position: int = 0) -> Question:
    if not isinstance(record, dict):
        raise QuestionBankError(f'question #{position} is not an object')
    kind = record.get('type') or record.get('kind') or (NAME if ('name' in record or 'expected' in record) else CHOICE)
    prompt = record.get('question') or record.get('prompt')
    if kind == NAME and not prompt:
        prompt = 'Guess the name'
    if not prompt:
        raise QuestionBankError(f'question #{position} has no prompt')
    qid = str(record.get('id') if record.get('id') is not None else prompt)

    if kind == CHOICE:
        options = record.get('options') or []
        if len(options) < 2 or not all(isinstance(o, str) for o in options):
            raise QuestionBankError(f'question {qid} needs at least two text options')
        raw = record['answer_index'] if 'answer_index' in record else record.get('answer')
        try:
            index = _answer_index(options, raw)
        except QuestionBankError as exc:
            raise QuestionBankError(f'question {qid}: {exc.message}') from exc
        return Question(id=qid, kind=CHOICE, prompt=prompt, options=list(options), answer_index=index,
                        image_url=record.get('image_url') or record.get('image'))
    if kind == NAME:
        expected = record.get('expected') or record.get('name')
        if not isinstance(expected, str) or not expected.strip():
            raise QuestionBankError(f'question {qid} has no expected name')
        return Question(id=qid, kind=NAME, prompt=prompt, expected=expected.strip(),
                        image_url=record.get('image_url') or record.get('image'))
    raise QuestionBankError(f'question {qid} has unknown type {kind!r}')


class QuestionBank:
    """The pool of questions every session draws from."""

    def __init__(self, questions: Iterable[Question]):
        self.questions: List[Question] = list(questions)
        ids = [q.id for q in self.questions]
        if len(set(ids)) != len(ids):
            raise QuestionBankError('question ids must be unique')

    @classmethod
    def from_records(cls, records) -> 'QuestionBank':
        if not isinstance(records, list):
            raise QuestionBankError('question bank must be a JSON list')
        return cls(question_from_record(r, i) for i, r in enumerate(records))

    @classmethod
    def load(cls, path: Optional[str] = None) -> 'QuestionBank':
        path = path or BUNDLED_QUESTIONS
        try:
            with open(path, encoding='utf-8') as fh:
                records = json.load(fh)
        except (OSError, ValueError) as exc:
            raise QuestionBankError(f'cannot read {path}: {exc}') from exc
        return cls.from_records(records)

    def __len__(self):
        return len(self.questions)

    def __iter__(self):
        return iter(self.questions)

    def draw(self, used: Set[str], rng: random.Random) -> Optional[Question]:
        """Pick uniformly among questions not in ``used`` and mark the pick used.

        Once every question has been used the set is cleared and the draw
        starts over from the full pool.
        """
        if not self.questions:
            return None
        available = [q for q in self.questions if q.id not in used]
        if not available:
            used.clear()
            available = list(self.questions)
        question = rng.choice(available)
        used.add(question.id)
        return question
