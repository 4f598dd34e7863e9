# pob_flashcards/services/user_service.py
from dataclasses import dataclass
from typing import MutableMapping, Optional

from sqlmodel import Session, select
from pob_flashcards.database import engine as default_engine
from pob_flashcards.models import User
from pob_flashcards.core.log_manager import logger
from pob_flashcards.config import ALLOWED_USERS

# Keys written to per-browser storage at sign-in. The deck slot is not one of
# them, so personal decks survive a sign-out.
IDENTITY_KEYS = ('id', 'email', 'name', 'picture')


class AuthError(Exception):
    """Custom exception for authentication failures."""
    pass


@dataclass(frozen=True)
class UserContext:
    """The signed-in user, passed explicitly to every flow that needs identity."""
    user_id: int
    email: str
    name: str
    picture: Optional[str] = None


def get_or_create_user(google_user_info: dict, target_engine=None) -> User:
    """
    Finds the user by email, syncing name/picture from the identity provider,
    or creates a new record. Honours the ALLOWED_USERS whitelist.
    """
    email = google_user_info.get('email')
    name = google_user_info.get('name') or email
    picture = google_user_info.get('picture')

    if not email:
        raise ValueError("Cannot create user without email")

    if ALLOWED_USERS and email not in ALLOWED_USERS:
        logger.warning(f"Login attempt blocked for non-whitelisted user: {email}")
        raise AuthError("This email is not authorized to access the study app.")

    with Session(target_engine or default_engine) as session:
        user = session.exec(select(User).where(User.email == email)).first()

        if user is None:
            user = User(email=email, name=name, picture_url=picture)
            logger.info(f"Created new user: {email}")
        elif user.name != name or user.picture_url != picture:
            user.name = name
            user.picture_url = picture
            logger.info(f"Updated user profile for: {email}")
        else:
            logger.info(f"User login (existing): {email}")
            return user

        session.add(user)
        session.commit()
        session.refresh(user)
        return user


def sign_in(storage: MutableMapping, user: User) -> UserContext:
    storage['id'] = user.id
    storage['email'] = user.email
    storage['name'] = user.name
    storage['picture'] = user.picture_url
    return UserContext(user_id=user.id, email=user.email, name=user.name, picture=user.picture_url)


def current_user(storage: MutableMapping) -> Optional[UserContext]:
    """Builds the context from per-browser storage, or None when signed out."""
    user_id = storage.get('id')
    if not user_id:
        return None
    return UserContext(
        user_id=user_id,
        email=storage.get('email', ''),
        name=storage.get('name', ''),
        picture=storage.get('picture'),
    )


def sign_out(storage: MutableMapping) -> None:
    """Forgets the identity only; personal decks stay in storage."""
    for key in IDENTITY_KEYS:
        storage.pop(key, None)
    logger.info("User signed out")
