# pob_flashcards/database.py
import os
from sqlmodel import SQLModel, create_engine

from pob_flashcards.config import DATABASE_URL
from pob_flashcards.core.log_manager import logger

# check_same_thread=False is needed for SQLite with NiceGUI/FastAPI concurrency
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=_connect_args)

def init_db(target_engine=None):
    """
    Creates the database tables based on the models.
    Should be called on app startup.
    """
    target_engine = target_engine or engine
    from pob_flashcards.models import User, ChapterRow, TermRow, ScoreRow, SharedDeckRow # Import to register models

    url = target_engine.url
    if url.drivername.startswith("sqlite") and url.database and url.database != ":memory:":
        folder = os.path.dirname(url.database)
        if folder:
            os.makedirs(folder, exist_ok=True)

    SQLModel.metadata.create_all(target_engine)
    logger.info(f"Database initialized at {url.render_as_string(hide_password=True)}")

