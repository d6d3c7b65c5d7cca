import math
from typing import Dict, Iterable, Optional

from quizroom.models import AnswerRecord

DEFAULT_MAX_POINTS = 150
DEFAULT_EXPONENT = 2.0


def points_for(time_remaining: float, time_budget: float,
               max_points: int = DEFAULT_MAX_POINTS, exponent: float = DEFAULT_EXPONENT) -> int:
    """Points for a correct answer given the time left on the clock.

    x = clamp(time_remaining / time_budget, 0, 1); points = round(max_points * x**k).
    With k > 1 the reward falls off steeply right after the question opens and
    flattens out as the deadline approaches. Rounds half up.
    """
    if time_budget <= 0:
        return 0
    x = min(1.0, max(0.0, time_remaining / time_budget))
    return int(math.floor(max_points * (x ** exponent) + 0.5))


def score_answers(identities: Iterable[str], answers: Dict[str, AnswerRecord], time_budget: float,
                  max_points: int = DEFAULT_MAX_POINTS, exponent: float = DEFAULT_EXPONENT,
                  ) -> Dict[str, int]:
    """Apply scoring for one round.

    Every identity in ``identities`` gets an entry; unanswered or incorrect
    answers earn 0. Identities that answered but are not listed (they left
    mid-round) are still scored.
    """
    result: Dict[str, int] = {identity: 0 for identity in identities}
    for identity, record in answers.items():
        result[identity] = _record_points(record, time_budget, max_points, exponent)
    return result


def _record_points(record: Optional[AnswerRecord], time_budget, max_points, exponent) -> int:
    if record is None or not record.correct:
        return 0
    return points_for(record.time_remaining, time_budget, max_points, exponent)
