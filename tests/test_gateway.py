"""
Tests for services/gateway.py and database.py.

Uses a real SQLite file in a pytest tmp_path so every test gets an isolated DB.
"""
import asyncio
import json
import pytest
from sqlmodel import Session, create_engine

from pob_flashcards.core.errors import GatewayError, NotFound
from pob_flashcards.database import init_db
from pob_flashcards.models import ChapterRow, SharedDeckRow, TermRow
from pob_flashcards.schemas import Card, ScoreRecord, ShareRecord
from pob_flashcards.services.gateway import SqlGateway, load_content_file


# ── Fixture ───────────────────────────────────────────────────

@pytest.fixture()
def engine(tmp_path):
    db_engine = create_engine(f"sqlite:///{tmp_path / 'nested' / 'test.db'}",
                              connect_args={"check_same_thread": False})
    init_db(db_engine)
    return db_engine


@pytest.fixture()
def gateway(engine):
    return SqlGateway(engine)


def _record(date, correct=2, incorrect=1):
    total = correct + incorrect
    return ScoreRecord(chapter=1, correct=correct, incorrect=incorrect, total=total,
                       accuracy=correct / total, date=date, duration_ms=30_000)


# ── Content ───────────────────────────────────────────────────

class TestContent:
    def test_chapters_are_ordered(self, engine, gateway):
        with Session(engine) as session:
            session.add(ChapterRow(chapter=3, name='Three'))
            session.add(ChapterRow(chapter=1, name='One'))
            session.commit()
        chapters = asyncio.run(gateway.fetch_chapters())
        assert [c.chapter for c in chapters] == [1, 3]

    def test_terms_by_chapter(self, engine, gateway):
        with Session(engine) as session:
            session.add(TermRow(chapter=1, term='A', definition='a'))
            session.add(TermRow(chapter=2, term='B', definition='b'))
            session.commit()
        terms = asyncio.run(gateway.fetch_terms(1))
        assert [(t.term, t.chapter) for t in terms] == [('A', 1)]

    def test_load_content_file_replaces_terms(self, engine, gateway, tmp_path):
        path = tmp_path / 'content.json'
        path.write_text(json.dumps({
            'chapters': [{'chapter': 1, 'name': 'One'}],
            'terms': [{'chapter': 1, 'term': 'A', 'definition': 'a'},
                      {'chapter': 1, 'term': 'B', 'definition': 'b'}],
        }), encoding='utf-8')
        assert load_content_file(str(path), engine) == 2

        path.write_text(json.dumps({
            'chapters': {'c1': {'chapter': 1, 'name': 'Chapter One'}},
            'terms': {'t1': {'chapter': 1, 'term': 'C', 'definition': 'c'}},
        }), encoding='utf-8')
        load_content_file(str(path), engine)

        chapters = asyncio.run(gateway.fetch_chapters())
        terms = asyncio.run(gateway.fetch_terms(1))
        assert [c.name for c in chapters] == ['Chapter One']
        assert [t.term for t in terms] == ['C']


# ── Scores ────────────────────────────────────────────────────

class TestScores:
    def test_write_and_fetch(self, gateway):
        asyncio.run(gateway.write_score(7, 1, '200', _record(200.0)))
        asyncio.run(gateway.write_score(7, 1, '100', _record(100.0)))
        history = asyncio.run(gateway.fetch_score_history(7, 1))
        assert list(history) == ['100', '200']
        assert history['200']['correct'] == 2
        assert history['200']['duration_ms'] == 30_000

    def test_same_key_overwrites(self, gateway):
        asyncio.run(gateway.write_score(7, 1, '100', _record(100.0, correct=1)))
        asyncio.run(gateway.write_score(7, 1, '100', _record(100.0, correct=3)))
        history = asyncio.run(gateway.fetch_score_history(7, 1))
        assert len(history) == 1
        assert history['100']['correct'] == 3

    def test_history_is_per_user_and_chapter(self, gateway):
        asyncio.run(gateway.write_score(7, 1, '100', _record(100.0)))
        asyncio.run(gateway.write_score(8, 1, '100', _record(100.0)))
        asyncio.run(gateway.write_score(7, 2, '100', _record(100.0)))
        assert len(asyncio.run(gateway.fetch_score_history(7, 1))) == 1

    def test_history_keeps_most_recent(self, gateway):
        for i in range(5):
            asyncio.run(gateway.write_score(7, 1, str(i), _record(float(i))))
        history = asyncio.run(gateway.fetch_score_history(7, 1, limit=2))
        assert list(history) == ['3', '4']


# ── Shared decks ──────────────────────────────────────────────

class TestSharedDecks:
    def test_write_then_read(self, gateway):
        record = ShareRecord(title='Set', cards=[Card(term='A', definition='a')], created_at=5)
        asyncio.run(gateway.write_shared_deck('abc', record))
        data = asyncio.run(gateway.read_shared_deck('abc'))
        assert data == record.model_dump()

    def test_missing_key_is_not_found(self, gateway):
        with pytest.raises(NotFound):
            asyncio.run(gateway.read_shared_deck('nope'))

    def test_corrupt_payload_is_gateway_error(self, engine, gateway):
        with Session(engine) as session:
            session.add(SharedDeckRow(key='bad', payload='{oops'))
            session.commit()
        with pytest.raises(GatewayError):
            asyncio.run(gateway.read_shared_deck('bad'))

    def test_duplicate_key_is_gateway_error(self, gateway):
        record = ShareRecord(title='Set', cards=[Card(term='A', definition='a')], created_at=5)
        asyncio.run(gateway.write_shared_deck('abc', record))
        with pytest.raises(GatewayError):
            asyncio.run(gateway.write_shared_deck('abc', record))


class TestDatabaseErrors:
    def test_missing_tables_become_gateway_error(self, tmp_path):
        bare = create_engine(f"sqlite:///{tmp_path / 'bare.db'}")
        with pytest.raises(GatewayError):
            asyncio.run(SqlGateway(bare).fetch_chapters())
