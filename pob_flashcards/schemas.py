# pob_flashcards/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any

MAX_CARDS_PER_SET = 1000
MAX_FIELD_LENGTH = 500
MAX_IMPORT_SIZE_BYTES = 500_000  # measured on the UTF-8 encoded JSON payload


# --- CANONICAL CONTENT (owned by the gateway) ---

class Chapter(BaseModel):
    model_config = ConfigDict(frozen=True)

    chapter: int
    name: str


class Term(BaseModel):
    model_config = ConfigDict(frozen=True)

    term: str
    definition: str
    chapter: int


# --- PERSONAL DECKS ---

class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    term: str = Field(min_length=1, max_length=MAX_FIELD_LENGTH)
    definition: str = Field(min_length=1, max_length=MAX_FIELD_LENGTH)


class DeckPayload(BaseModel):
    """
    The transportable part of a deck: what goes into share links and
    shared storage. Count and size limits are enforced by the import service.
    """
    title: str = Field(min_length=1)
    description: str = ""
    cards: List[Card]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "cards": [card.model_dump() for card in self.cards],
        }


class Deck(DeckPayload):
    """
    A personal flashcard set as stored in the browser slot.
    Timestamps are epoch milliseconds.
    """
    id: str
    created_at: int
    imported_at: Optional[int] = None
    original_share_id: Optional[str] = None

    def to_storage(self) -> Dict[str, Any]:
        # Optional keys are omitted rather than written as null
        return self.model_dump(exclude_none=True)


class ShareRecord(DeckPayload):
    """Write-once projection of a deck kept in shared storage."""
    created_at: int


# --- SCORES ---

class ScoreRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    chapter: int
    correct: int = Field(ge=0)
    incorrect: int = Field(ge=0)
    total: int = Field(ge=0)
    accuracy: float = Field(ge=0.0, le=1.0)
    date: float  # epoch seconds of round completion
    duration_ms: Optional[int] = None


class ScoreSummary(BaseModel):
    """Read-side aggregate shown on the analytics page."""
    last: Optional[ScoreRecord] = None
    best_accuracy: float = 0.0
    best_time: Optional[int] = None
    rolling_average: float = 0.0
    rounds: int = 0
