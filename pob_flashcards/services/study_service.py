# pob_flashcards/services/study_service.py
import time
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence

from pob_flashcards.core.errors import FlashcardsError, GatewayError, SessionStateError
from pob_flashcards.core.log_manager import logger
from pob_flashcards.core.shuffle import shuffle_items
from pob_flashcards.schemas import ScoreRecord, Term
from pob_flashcards.services.user_service import UserContext

# --- CONSTANTS ---
TICK_INTERVAL_SECONDS = 1.0


class RoundState(str, Enum):
    LOADING = 'loading'
    ACTIVE = 'active'
    COMPLETE = 'complete'
    EMPTY = 'empty'
    FAILED = 'failed'


class CancellableTimer(Protocol):
    def cancel(self) -> None: ...


# (interval_seconds, callback) -> running timer; in the app this is ui.timer
TimerFactory = Callable[[float, Callable[[], None]], CancellableTimer]


def compute_accuracy(correct: int, incorrect: int) -> float:
    """Ratio in [0, 1]; a round with no answers scores 0."""
    total = correct + incorrect
    return correct / total if total else 0.0


class StudyRound:
    """
    One timed, self-scored pass through a chapter's shuffled terms.

    LOADING -> ACTIVE -> COMPLETE, or LOADING -> EMPTY / FAILED.
    COMPLETE -> ACTIVE again through retry(). Only the summary of a completed
    round is ever persisted, through commit().
    """

    def __init__(
        self,
        gateway,
        user: UserContext,
        chapter: int,
        clock: Callable[[], float] = time.time,
        shuffler: Callable[[Sequence[Term]], List[Term]] = shuffle_items,
        timer_factory: Optional[TimerFactory] = None,
        on_tick: Optional[Callable[[int], None]] = None,
    ):
        self.gateway = gateway
        self.user = user
        self.chapter = chapter
        self.clock = clock
        self.shuffler = shuffler
        self.timer_factory = timer_factory
        self.on_tick = on_tick

        self.state = RoundState.LOADING
        self.error: Optional[FlashcardsError] = None
        self.terms: List[Term] = []
        self._reset_counters()
        self._timer: Optional[CancellableTimer] = None
        self.saved_record: Optional[ScoreRecord] = None
        self._disposed = False
        # Bumped by every load(); a fetch that finishes under an older number is dropped
        self._load_generation = 0

    def _reset_counters(self) -> None:
        self.current_index = 0
        self.is_revealed = False
        self.correct_count = 0
        self.incorrect_count = 0
        self.start_time: Optional[float] = None
        self.completed_at: Optional[float] = None
        self.elapsed_ms = 0
        self.duration_ms: Optional[int] = None

    # --- DERIVED VALUES ---

    @property
    def total(self) -> int:
        return self.correct_count + self.incorrect_count

    @property
    def accuracy(self) -> float:
        return compute_accuracy(self.correct_count, self.incorrect_count)

    @property
    def current_term(self) -> Optional[Term]:
        if self.state != RoundState.ACTIVE:
            return None
        return self.terms[self.current_index]

    @property
    def position(self) -> str:
        shown = min(self.current_index + 1, len(self.terms))
        return f"{shown} / {len(self.terms)}"

    # --- LIFECYCLE ---

    async def load(self) -> RoundState:
        """
        Fetches and shuffles the chapter's terms. Safe to call again after a
        failure; that is the manual retry path.
        """
        if self._disposed:
            logger.warning(f"Ignored load for chapter {self.chapter} after dispose")
            return self.state

        self._stop_timer()
        self._reset_counters()
        self.state = RoundState.LOADING
        self.error = None
        self.saved_record = None
        self._load_generation += 1
        generation = self._load_generation

        try:
            terms = await self.gateway.fetch_terms(self.chapter)
        except GatewayError as e:
            if self._is_stale(generation):
                return self.state
            logger.error(f"Failed to load terms for chapter {self.chapter}: {e}")
            self.error = e
            self.state = RoundState.FAILED
            return self.state

        if self._is_stale(generation):
            return self.state

        self.terms = self.shuffler([t for t in terms if t.chapter == self.chapter])
        if not self.terms:
            logger.info(f"Chapter {self.chapter} has no terms")
            self.state = RoundState.EMPTY
            return self.state

        self._begin()
        logger.info(f"Started round for chapter {self.chapter} with {len(self.terms)} terms")
        return self.state

    def _is_stale(self, generation: int) -> bool:
        """True when the page went away or a newer load() started during the fetch."""
        if self._disposed or generation != self._load_generation:
            logger.info(f"Dropped superseded term fetch for chapter {self.chapter}")
            return True
        return False

    def _begin(self) -> None:
        self._stop_timer()
        self.state = RoundState.ACTIVE
        self.start_time = self.clock()
        if self.timer_factory is not None:
            self._timer = self.timer_factory(TICK_INTERVAL_SECONDS, self._tick)

    def _tick(self) -> None:
        if self.state != RoundState.ACTIVE or self.start_time is None:
            return
        self.elapsed_ms = int((self.clock() - self.start_time) * 1000)
        if self.on_tick:
            self.on_tick(self.elapsed_ms)

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def dispose(self) -> None:
        """Stops the display timer and any load still in flight. Call when the page goes away."""
        self._disposed = True
        self._stop_timer()

    # --- GAMEPLAY ---

    def toggle_reveal(self) -> None:
        if self.state != RoundState.ACTIVE:
            return
        self.is_revealed = not self.is_revealed

    def score(self, is_correct: bool) -> RoundState:
        if self.state != RoundState.ACTIVE:
            logger.warning(f"Ignored score in state {self.state.value}")
            return self.state

        if is_correct:
            self.correct_count += 1
        else:
            self.incorrect_count += 1
        self.is_revealed = False

        if self.current_index + 1 >= len(self.terms):
            self._complete()
        else:
            self.current_index += 1
        return self.state

    def _complete(self) -> None:
        self._stop_timer()
        self.completed_at = self.clock()
        self.duration_ms = int((self.completed_at - self.start_time) * 1000)
        self.elapsed_ms = self.duration_ms
        self.state = RoundState.COMPLETE
        logger.info(
            f"Round complete for chapter {self.chapter}: "
            f"{self.correct_count} correct, {self.incorrect_count} incorrect in {self.duration_ms}ms"
        )

    def retry(self) -> RoundState:
        """Reshuffles the same terms and starts a fresh round. No re-fetch."""
        if self.state != RoundState.COMPLETE or self._disposed:
            logger.warning(f"Ignored retry in state {self.state.value}")
            return self.state
        self._stop_timer()
        self._reset_counters()
        self.saved_record = None
        self.terms = self.shuffler(self.terms)
        self._begin()
        return self.state

    # --- PERSISTENCE ---

    def build_record(self) -> ScoreRecord:
        if self.state != RoundState.COMPLETE:
            raise SessionStateError("A round can only be saved once it is complete.")
        return ScoreRecord(
            chapter=self.chapter,
            correct=self.correct_count,
            incorrect=self.incorrect_count,
            total=self.total,
            accuracy=self.accuracy,
            date=self.completed_at,
            duration_ms=self.duration_ms,
        )

    async def commit(self) -> ScoreRecord:
        """
        Writes the round's ScoreRecord under its completion second. On failure
        the round stays COMPLETE with its counters, so commit() can be retried.
        """
        if self.saved_record is not None:
            return self.saved_record

        record = self.build_record()
        timestamp_key = str(int(record.date))
        await self.gateway.write_score(self.user.user_id, self.chapter, timestamp_key, record)
        self.saved_record = record
        return record
