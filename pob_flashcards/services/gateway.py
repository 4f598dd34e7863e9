# pob_flashcards/services/gateway.py
"""
Content / score / sharing backend.

`ContentGateway` is the surface the study, analytics and sharing flows
consume. `SqlGateway` implements it over the SQLModel tables; blocking SQL
runs in a worker thread so page handlers never stall the event loop, and
every SQLAlchemy or JSON failure is translated into GatewayError / NotFound
before it reaches a caller.
"""
import asyncio
import json
from typing import Any, Callable, Dict, List, Protocol, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, delete, select

from pob_flashcards.core.errors import GatewayError, NotFound
from pob_flashcards.core.log_manager import logger
from pob_flashcards.database import engine as default_engine
from pob_flashcards.models import ChapterRow, ScoreRow, SharedDeckRow, TermRow
from pob_flashcards.schemas import Chapter, ScoreRecord, ShareRecord, Term

MAX_SCORE_HISTORY = 100


class ContentGateway(Protocol):
    async def fetch_chapters(self) -> List[Chapter]: ...

    async def fetch_terms(self, chapter: int) -> List[Term]: ...

    async def fetch_score_history(self, user_id: int, chapter: int, limit: int = MAX_SCORE_HISTORY) -> Dict[str, Dict[str, Any]]: ...

    async def write_score(self, user_id: int, chapter: int, timestamp_key: str, record: ScoreRecord) -> None: ...

    async def write_shared_deck(self, key: str, payload: ShareRecord) -> None: ...

    async def read_shared_deck(self, key: str) -> Dict[str, Any]: ...


class SqlGateway:
    def __init__(self, engine=None):
        self.engine = engine or default_engine

    async def _call(self, operation: str, fn: Callable, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as e:
            logger.error(f"Gateway failed to {operation}: {e}")
            raise GatewayError(f"Unable to {operation}. Please try again.") from e

    # --- CONTENT ---

    async def fetch_chapters(self) -> List[Chapter]:
        return await self._call("load chapters", self._fetch_chapters)

    def _fetch_chapters(self) -> List[Chapter]:
        with Session(self.engine) as session:
            rows = session.exec(select(ChapterRow).order_by(ChapterRow.chapter)).all()
            return [Chapter(chapter=row.chapter, name=row.name) for row in rows]

    async def fetch_terms(self, chapter: int) -> List[Term]:
        return await self._call("load terms", self._fetch_terms, chapter)

    def _fetch_terms(self, chapter: int) -> List[Term]:
        with Session(self.engine) as session:
            statement = select(TermRow).where(TermRow.chapter == chapter).order_by(TermRow.id)
            rows = session.exec(statement).all()
            return [Term(term=r.term, definition=r.definition, chapter=r.chapter) for r in rows]

    # --- SCORES ---

    async def fetch_score_history(self, user_id: int, chapter: int, limit: int = MAX_SCORE_HISTORY) -> Dict[str, Dict[str, Any]]:
        return await self._call("load analytics", self._fetch_score_history, user_id, chapter, limit)

    def _fetch_score_history(self, user_id: int, chapter: int, limit: int) -> Dict[str, Dict[str, Any]]:
        """The most recent `limit` rounds, keyed by timestamp key, oldest first."""
        with Session(self.engine) as session:
            statement = (
                select(ScoreRow)
                .where(ScoreRow.user_id == user_id, ScoreRow.chapter == chapter)
                .order_by(col(ScoreRow.date).desc())
                .limit(limit)
            )
            rows = list(reversed(session.exec(statement).all()))
            return {
                row.timestamp_key: {
                    "chapter": row.chapter,
                    "correct": row.correct,
                    "incorrect": row.incorrect,
                    "total": row.total,
                    "accuracy": row.accuracy,
                    "date": row.date,
                    "duration_ms": row.duration_ms,
                }
                for row in rows
            }

    async def write_score(self, user_id: int, chapter: int, timestamp_key: str, record: ScoreRecord) -> None:
        await self._call("save score", self._write_score, user_id, chapter, timestamp_key, record)

    def _write_score(self, user_id: int, chapter: int, timestamp_key: str, record: ScoreRecord) -> None:
        with Session(self.engine) as session:
            row = session.exec(
                select(ScoreRow).where(
                    ScoreRow.user_id == user_id,
                    ScoreRow.chapter == chapter,
                    ScoreRow.timestamp_key == timestamp_key,
                )
            ).first()
            if row is None:
                row = ScoreRow(user_id=user_id, chapter=chapter, timestamp_key=timestamp_key, date=record.date)

            row.correct = record.correct
            row.incorrect = record.incorrect
            row.total = record.total
            row.accuracy = record.accuracy
            row.date = record.date
            row.duration_ms = record.duration_ms

            session.add(row)
            session.commit()
            logger.info(f"Saved score for user {user_id}, chapter {chapter} under key {timestamp_key}")

    # --- SHARED DECKS ---

    async def write_shared_deck(self, key: str, payload: ShareRecord) -> None:
        await self._call("share this set", self._write_shared_deck, key, payload)

    def _write_shared_deck(self, key: str, payload: ShareRecord) -> None:
        with Session(self.engine) as session:
            session.add(SharedDeckRow(key=key, payload=payload.model_dump_json()))
            session.commit()

    async def read_shared_deck(self, key: str) -> Dict[str, Any]:
        return await self._call("load the shared set", self._read_shared_deck, key)

    def _read_shared_deck(self, key: str) -> Dict[str, Any]:
        """Returns the stored payload as plain data; shape checks belong to the importer."""
        with Session(self.engine) as session:
            row = session.get(SharedDeckRow, key)
            if row is None:
                raise NotFound(key)
            try:
                return json.loads(row.payload)
            except ValueError as e:
                logger.error(f"Shared set {key} holds unreadable data: {e}")
                raise GatewayError("The shared set could not be read.") from e


# --- SEEDING ---

def _as_list(value: Union[list, dict, None]) -> list:
    """Accepts both JSON arrays and key -> object exports."""
    if isinstance(value, dict):
        return list(value.values())
    return list(value or [])


def load_content_file(path: str, target_engine=None) -> int:
    """
    Seeds chapters and terms from a JSON file shaped like
    {"chapters": [{chapter, name}], "terms": [{term, definition, chapter}]}.
    Terms of every chapter mentioned in the file are replaced.
    Returns the number of terms written.
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    chapters = [Chapter(**item) for item in _as_list(data.get("chapters"))]
    terms = [Term(**item) for item in _as_list(data.get("terms"))]
    touched = {c.chapter for c in chapters} | {t.chapter for t in terms}

    with Session(target_engine or default_engine) as session:
        for chapter in chapters:
            session.merge(ChapterRow(chapter=chapter.chapter, name=chapter.name))
        if touched:
            session.exec(delete(TermRow).where(col(TermRow.chapter).in_(sorted(touched))))
        for term in terms:
            session.add(TermRow(chapter=term.chapter, term=term.term, definition=term.definition))
        session.commit()

    logger.info(f"Seeded {len(chapters)} chapters and {len(terms)} terms from {path}")
    return len(terms)
