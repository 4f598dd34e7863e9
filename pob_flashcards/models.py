from typing import Optional
from datetime import datetime, timezone
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

# --- 1. IDENTITY ---

class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: str
    picture_url: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

# --- 2. CANONICAL CONTENT (read-only for the app) ---

class ChapterRow(SQLModel, table=True):
    __tablename__ = "chapter"

    chapter: int = Field(primary_key=True)
    name: str

class TermRow(SQLModel, table=True):
    __tablename__ = "term"

    id: Optional[int] = Field(default=None, primary_key=True)
    chapter: int = Field(index=True)
    term: str
    definition: str

# --- 3. PER-USER SCORE LOG ---

class ScoreRow(SQLModel, table=True):
    """
    One completed study round. `timestamp_key` is the completion time in whole
    epoch seconds; writing the same key twice overwrites the earlier row.
    """
    __tablename__ = "score"
    __table_args__ = (UniqueConstraint("user_id", "chapter", "timestamp_key"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    chapter: int = Field(index=True)
    timestamp_key: str

    correct: int = Field(default=0)
    incorrect: int = Field(default=0)
    total: int = Field(default=0)
    accuracy: float = Field(default=0.0)
    date: float
    duration_ms: Optional[int] = None

# --- 4. SHARED DECKS ---

class SharedDeckRow(SQLModel, table=True):
    """Write-once copy of a personal deck, addressed by its share code."""
    __tablename__ = "shared_deck"

    key: str = Field(primary_key=True)
    payload: str  # JSON {title, description, cards, created_at}
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
