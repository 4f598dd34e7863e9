import secrets
from typing import List, Optional
import dotenv
import os
dotenv.load_dotenv("secrets.env")

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    SECRET_KEY = secrets.token_hex(32)

GOOGLE_AUTH_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_AUTH_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")

_allowed_users_str = os.getenv("ALLOWED_USERS", "")
ALLOWED_USERS: List[str] = [
    email.strip() for email in _allowed_users_str.split(",") if email.strip()
]

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///db/flashcards.db")

# Optional JSON file with {"chapters": [...], "terms": [...]} seeded on startup
CONTENT_FILE: Optional[str] = os.getenv("CONTENT_FILE") or None

# Overrides the request origin when building share links (e.g. behind a proxy)
PUBLIC_ORIGIN: Optional[str] = (os.getenv("PUBLIC_ORIGIN") or "").rstrip("/") or None

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
