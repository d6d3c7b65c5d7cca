import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass
class DayScore:
    score: int
    day: date


class ScoreLedger:
    """Day-scoped cumulative score per participant identity.

    Records carry the UTC day they were last written on. A record from an
    earlier day reads as 0 and is replaced by the next ``add``, so a
    participant idle across midnight starts the new day clean. Only ``add``
    creates records; ``sweep`` drops the stale ones.
    """

    def __init__(self, today: Callable[[], date] = utc_today):
        self._today = today
        self._records: Dict[str, DayScore] = {}
        self._lock = threading.Lock()

    def get(self, identity: str) -> int:
        with self._lock:
            record = self._records.get(identity)
            if record is None or record.day != self._today():
                return 0
            return record.score

    def add(self, identity: str, points: int) -> int:
        with self._lock:
            day = self._today()
            record = self._records.get(identity)
            if record is None or record.day != day:
                if record is not None:
                    logger.info(f"[ledger-reset] identity={identity} from={record.day} to={day}")
                record = DayScore(score=0, day=day)
                self._records[identity] = record
            record.score += int(points)
            return record.score

    def sweep(self) -> int:
        """Drop every record written on an earlier day. Returns how many were dropped."""
        with self._lock:
            day = self._today()
            stale = [identity for identity, record in self._records.items() if record.day != day]
            for identity in stale:
                del self._records[identity]
        if stale:
            logger.info(f"[ledger-sweep] dropped={len(stale)} day={day}")
        return len(stale)

    def top(self, limit: int = 100) -> List[dict]:
        with self._lock:
            day = self._today()
            rows = [
                {'identity': identity, 'score': record.score, 'day': day.isoformat()}
                for identity, record in self._records.items() if record.day == day
            ]
        rows.sort(key=lambda r: (-r['score'], r['identity']))
        return rows[:max(0, limit)]

    def __len__(self):
        return len(self._records)
