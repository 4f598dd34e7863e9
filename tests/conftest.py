"""
Shared fixtures: an in-memory gateway, a controllable clock and timer,
and a plain dict standing in for the per-browser storage slot.
"""
import asyncio
import pytest

from pob_flashcards.core.errors import GatewayError, NotFound
from pob_flashcards.schemas import Chapter, Term
from pob_flashcards.services.user_service import UserContext


# ── Fakes ─────────────────────────────────────────────────────

class FakeGateway:
    """
    Dict-backed gateway. Set `fail_*` flags to make the next calls raise and
    `delay` (seconds) to make term fetches slow.
    """

    def __init__(self, chapters=None, terms=None):
        self.chapters = list(chapters or [])
        self.terms = list(terms or [])
        self.delay = 0
        self.scores = {}
        self.shared = {}
        self.fail_terms = False
        self.fail_scores = False
        self.fail_shared = False
        self.write_calls = 0

    async def fetch_chapters(self):
        return list(self.chapters)

    async def fetch_terms(self, chapter):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_terms:
            raise GatewayError("Unable to load terms. Please try again.")
        return [t for t in self.terms if t.chapter == chapter]

    async def fetch_score_history(self, user_id, chapter, limit=100):
        if self.fail_scores:
            raise GatewayError("Unable to load analytics. Please try again.")
        return dict(self.scores.get((user_id, chapter), {}))

    async def write_score(self, user_id, chapter, timestamp_key, record):
        self.write_calls += 1
        if self.fail_scores:
            raise GatewayError("Unable to save score. Please try again.")
        self.scores.setdefault((user_id, chapter), {})[timestamp_key] = record.model_dump()

    async def write_shared_deck(self, key, payload):
        if self.fail_shared:
            raise GatewayError("Unable to share this set. Please try again.")
        self.shared[key] = payload.model_dump()

    async def read_shared_deck(self, key):
        if self.fail_shared:
            raise GatewayError("Unable to load the shared set. Please try again.")
        if key not in self.shared:
            raise NotFound(key)
        return dict(self.shared[key])


class FakeTimer:
    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.callback()


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class BrokenSlot(dict):
    """A storage slot that refuses every write, like a full browser store."""

    def __setitem__(self, key, value):
        raise OSError("quota exceeded")


# ── Fixtures ──────────────────────────────────────────────────

@pytest.fixture()
def user():
    return UserContext(user_id=7, email='student@example.com', name='Student')


@pytest.fixture()
def chapter_terms():
    return [
        Term(term='Reinforcer', definition='A stimulus that increases behavior.', chapter=2),
        Term(term='Punisher', definition='A stimulus that decreases behavior.', chapter=2),
        Term(term='Extinction', definition='Stopping reinforcement of a behavior.', chapter=2),
    ]


@pytest.fixture()
def gateway(chapter_terms):
    return FakeGateway(
        chapters=[Chapter(chapter=2, name='Reinforcement')],
        terms=chapter_terms + [Term(term='Other', definition='Other chapter.', chapter=3)],
    )


@pytest.fixture()
def timers():
    """Collects every timer the code under test creates."""
    created = []

    def factory(interval, callback):
        timer = FakeTimer(interval, callback)
        created.append(timer)
        return timer

    factory.created = created
    return factory


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def identity():
    """Shuffler that keeps the original order, for deterministic sessions."""
    return lambda items: list(items)
