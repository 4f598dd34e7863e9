# pob_flashcards/services/deck_service.py
import json
from typing import Iterable, List, MutableMapping, Optional

from pob_flashcards.core.errors import InvalidFormat, StorageError, ValidationError
from pob_flashcards.core.ids import create_id, now_ms
from pob_flashcards.core.log_manager import logger
from pob_flashcards.schemas import Card, Deck, MAX_CARDS_PER_SET, MAX_FIELD_LENGTH
from pob_flashcards.services.import_service import (
    EMPTY_DECK_MESSAGE,
    deck_from_storage,
    validate_import_data,
)

# --- CONSTANTS ---
STORAGE_KEY = 'safmeds_sets'


# --- LOCAL STORE ---

class DeckStore:
    """
    Reads and writes the list of personal decks in a single key of a
    key-value slot (in the app: NiceGUI's per-browser `app.storage.user`).

    The slot holds a JSON string so the stored shape stays exactly
    [{title, description, cards, id, created_at, imported_at?, original_share_id?}, ...].
    """

    def __init__(self, slot: MutableMapping, key: str = STORAGE_KEY):
        self.slot = slot
        self.key = key

    def load(self) -> List[Deck]:
        """Never raises. Missing or unreadable data means no decks."""
        try:
            raw = self.slot.get(self.key)
        except Exception as e:
            logger.error(f"Deck storage unavailable on load: {e}")
            return []

        if not raw:
            return []

        try:
            parsed = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        except ValueError:
            logger.warning(f"Stored sets under '{self.key}' are not valid JSON; starting empty.")
            return []

        if not isinstance(parsed, list):
            logger.warning(f"Stored sets under '{self.key}' are not a list; starting empty.")
            return []

        decks = []
        for index, entry in enumerate(parsed):
            try:
                decks.append(deck_from_storage(entry))
            except ValidationError as e:
                logger.warning(f"Skipping stored set #{index}: {e}")
        return decks

    def save(self, decks: Iterable[Deck]) -> None:
        """Raises StorageError if the slot refuses the write."""
        serialized = json.dumps([deck.to_storage() for deck in decks], ensure_ascii=False)
        try:
            self.slot[self.key] = serialized
        except Exception as e:
            logger.error(f"Failed to save sets to storage: {e}")
            raise StorageError(
                "Unable to save your sets because storage is full or unavailable. "
                "Your latest changes may not be saved."
            ) from e


# --- IN-MEMORY LIBRARY ---

class DeckLibrary:
    """
    The user's decks for the current page. The in-memory list is the source
    of truth; every change is written through to the store, and a failed write
    is remembered in `persist_error` instead of rolling the change back.
    """

    def __init__(self, store: DeckStore):
        self.store = store
        self.decks: List[Deck] = store.load()
        self.persist_error: Optional[StorageError] = None

    def __len__(self) -> int:
        return len(self.decks)

    def get(self, deck_id: str) -> Optional[Deck]:
        return next((deck for deck in self.decks if deck.id == deck_id), None)

    def add(self, deck: Deck) -> Deck:
        """Prepends an already validated deck."""
        self.decks = [deck, *self.decks]
        self._persist()
        return deck

    def create(self, title: str, description: str, cards: Iterable[Card]) -> Deck:
        """Validates a new user-authored deck and prepends it."""
        title = (title or '').strip()
        description = (description or '').strip()
        cards = list(cards)

        if not title:
            raise InvalidFormat("Please name your Safmeds set.")
        if not cards:
            raise InvalidFormat(EMPTY_DECK_MESSAGE)

        payload = validate_import_data({
            "title": title,
            "description": description,
            "cards": [card.model_dump() for card in cards],
        })
        deck = Deck(**payload.model_dump(), id=create_id(), created_at=now_ms())
        logger.info(f"Created set '{deck.title}' with {len(deck.cards)} cards")
        return self.add(deck)

    def delete(self, deck_id: str) -> bool:
        remaining = [deck for deck in self.decks if deck.id != deck_id]
        if len(remaining) == len(self.decks):
            logger.warning(f"Delete requested for unknown set {deck_id}")
            return False
        self.decks = remaining
        self._persist()
        return True

    def _persist(self) -> None:
        try:
            self.store.save(self.decks)
            self.persist_error = None
        except StorageError as e:
            self.persist_error = e


# --- DRAFT BUILDER ---

class DeckDraft:
    """Cards collected one by one in the 'create a set' form before saving."""

    def __init__(self):
        self.cards: List[Card] = []

    def add_card(self, term: str, definition: str) -> Card:
        term = (term or '').strip()
        definition = (definition or '').strip()

        if not term or not definition:
            raise InvalidFormat("Add both a term and definition before saving.")
        if len(term) > MAX_FIELD_LENGTH:
            raise InvalidFormat(f"Term must be {MAX_FIELD_LENGTH} characters or less.")
        if len(definition) > MAX_FIELD_LENGTH:
            raise InvalidFormat(f"Definition must be {MAX_FIELD_LENGTH} characters or less.")
        if len(self.cards) >= MAX_CARDS_PER_SET:
            raise InvalidFormat(f"A set can hold at most {MAX_CARDS_PER_SET} cards.")

        card = Card(term=term, definition=definition)
        self.cards.append(card)
        return card

    def remove_card(self, index: int) -> None:
        if 0 <= index < len(self.cards):
            del self.cards[index]

    def clear(self) -> None:
        self.cards = []

    def save_to(self, library: DeckLibrary, title: str, description: str) -> Deck:
        """Saves the draft as a new deck; the draft is only cleared on success."""
        deck = library.create(title, description, self.cards)
        self.clear()
        return deck
