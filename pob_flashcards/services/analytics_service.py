# pob_flashcards/services/analytics_service.py
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pob_flashcards.core.formatting import parse_finite_number
from pob_flashcards.schemas import ScoreRecord, ScoreSummary
from pob_flashcards.services.gateway import MAX_SCORE_HISTORY

# Range filter options shown on the analytics page: (label key, days)
RANGE_OPTIONS: Dict[str, Optional[int]] = {'all': None, '30': 30, '7': 7}
ROLLING_WINDOW = 5
SECONDS_PER_DAY = 24 * 60 * 60


def _number(value: Any, default: float = 0.0) -> float:
    number = parse_finite_number(value)
    return default if number is None else number


def _entries(payload: Union[Dict[str, Any], List[Any], None]) -> Iterable[Tuple[str, Any]]:
    if not payload:
        return []
    if isinstance(payload, list):
        return [(str(index), record) for index, record in enumerate(payload) if record]
    return payload.items()


def normalize_scores(payload: Union[Dict[str, Any], List[Any], None], chapter: int = 0) -> List[ScoreRecord]:
    """
    Turns a raw score history (key -> record mapping, or a list) into
    ScoreRecords sorted by date, oldest first.

    Missing totals come from correct + incorrect, missing accuracy from
    correct / total, and a missing date falls back to the numeric key.
    """
    records = []
    for key, raw in _entries(payload):
        if not isinstance(raw, dict):
            continue
        correct = int(_number(raw.get('correct')))
        incorrect = int(_number(raw.get('incorrect')))
        date = _number(raw.get('date')) or _number(key)
        total = int(_number(raw.get('total'))) or correct + incorrect

        accuracy = parse_finite_number(raw.get('accuracy'))
        if accuracy is None:
            accuracy = correct / total if total else 0.0
        accuracy = min(max(accuracy, 0.0), 1.0)

        duration = parse_finite_number(raw.get('duration_ms'))
        records.append(ScoreRecord(
            chapter=int(_number(raw.get('chapter'), chapter)),
            correct=max(correct, 0),
            incorrect=max(incorrect, 0),
            total=max(total, 0),
            accuracy=accuracy,
            date=date,
            duration_ms=int(duration) if duration is not None else None,
        ))

    return sorted(records, key=lambda record: record.date)


def filter_window(records: List[ScoreRecord], days: Optional[int], now: Optional[float] = None) -> List[ScoreRecord]:
    """Keeps records from the trailing `days` days; None keeps everything."""
    if days is None:
        return list(records)
    now = time.time() if now is None else now
    cutoff = now - days * SECONDS_PER_DAY
    return [record for record in records if record.date >= cutoff]


def best_time(records: List[ScoreRecord]) -> Optional[int]:
    durations = [record.duration_ms for record in records if record.duration_ms is not None]
    return min(durations) if durations else None


def rolling_average(records: List[ScoreRecord], k: int = ROLLING_WINDOW) -> float:
    """Mean accuracy of the last k records by date; 0 when there are none."""
    if not records:
        return 0.0
    recent = sorted(records, key=lambda record: record.date)[-k:]
    return sum(record.accuracy for record in recent) / len(recent)


def summarize(records: List[ScoreRecord]) -> ScoreSummary:
    ordered = sorted(records, key=lambda record: record.date)
    return ScoreSummary(
        last=ordered[-1] if ordered else None,
        best_accuracy=max((record.accuracy for record in ordered), default=0.0),
        best_time=best_time(ordered),
        rolling_average=rolling_average(ordered),
        rounds=len(ordered),
    )


async def load_chapter_summary(gateway, user_id: int, chapter: int, days: Optional[int] = None, limit: int = MAX_SCORE_HISTORY) -> Tuple[List[ScoreRecord], ScoreSummary]:
    """Fetches the recent history for one chapter and aggregates it."""
    payload = await gateway.fetch_score_history(user_id, chapter, limit)
    records = filter_window(normalize_scores(payload, chapter), days)
    return records, summarize(records)
