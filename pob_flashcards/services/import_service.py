# pob_flashcards/services/import_service.py
import math
from typing import Any, List, Optional

from pob_flashcards.core.errors import InvalidFormat, TooManyCards, PayloadTooLarge
from pob_flashcards.core.ids import create_id, now_ms
from pob_flashcards.core.log_manager import logger
from pob_flashcards.schemas import (
    Card,
    Deck,
    DeckPayload,
    MAX_CARDS_PER_SET,
    MAX_FIELD_LENGTH,
    MAX_IMPORT_SIZE_BYTES,
)
from pob_flashcards.services.share_service import decode_inline_payload, serialize_payload

EMPTY_DECK_MESSAGE = "Add at least one card to save your set."


def _usable_cards(raw_cards: List[Any]) -> List[dict]:
    """Keeps entries that carry a non-empty text term and definition."""
    usable = []
    for card in raw_cards:
        if not isinstance(card, dict):
            continue
        term = card.get('term')
        definition = card.get('definition')
        if isinstance(term, str) and term and isinstance(definition, str) and definition:
            usable.append({'term': term, 'definition': definition})
    return usable


def validate_import_data(data: Any) -> DeckPayload:
    """
    Validates an incoming deck payload, whatever transport it came from.

    1. Requires a non-empty title and a list of cards.
    2. Drops cards missing a term or definition.
    3. Enforces the card count, field length and payload size limits.

    Raises a ValidationError subclass; nothing is stored by this function.
    """
    if not isinstance(data, dict):
        raise InvalidFormat("Invalid share payload format.")

    title = data.get('title')
    raw_cards = data.get('cards')
    if not isinstance(title, str) or not title or not isinstance(raw_cards, list):
        raise InvalidFormat("Invalid share payload format.")

    description = data.get('description')
    if not isinstance(description, str):
        description = ""

    cards = _usable_cards(raw_cards)
    dropped = len(raw_cards) - len(cards)
    if dropped:
        logger.warning(f"Dropped {dropped} incomplete card(s) from set '{title}'.")

    if len(cards) > MAX_CARDS_PER_SET:
        raise TooManyCards(len(cards), MAX_CARDS_PER_SET)

    if not cards:
        raise InvalidFormat(EMPTY_DECK_MESSAGE)

    for card in cards:
        if len(card['term']) > MAX_FIELD_LENGTH or len(card['definition']) > MAX_FIELD_LENGTH:
            raise InvalidFormat(
                f"Terms and definitions must be {MAX_FIELD_LENGTH} characters or less."
            )

    filtered = {"title": title, "description": description, "cards": cards}
    size_bytes = len(serialize_payload(filtered).encode('utf-8'))
    if size_bytes > MAX_IMPORT_SIZE_BYTES:
        raise PayloadTooLarge(size_bytes, MAX_IMPORT_SIZE_BYTES)

    return DeckPayload(
        title=title,
        description=description,
        cards=[Card(**card) for card in cards],
    )


def deck_from_storage(raw: Any) -> Deck:
    """
    Rebuilds a stored deck through the same checks an import goes through,
    plus the identity fields only stored decks carry.
    """
    payload = validate_import_data(raw)

    deck_id = raw.get('id')
    created_at = _as_timestamp(raw.get('created_at'))
    if not isinstance(deck_id, str) or not deck_id:
        raise InvalidFormat("Stored set has no id.")
    if created_at is None:
        raise InvalidFormat("Stored set has no creation time.")

    share_id = raw.get('original_share_id')
    return Deck(
        **payload.model_dump(),
        id=deck_id,
        created_at=created_at,
        imported_at=_as_timestamp(raw.get('imported_at')),
        original_share_id=share_id if isinstance(share_id, str) and share_id else None,
    )


def _as_timestamp(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return int(value)


def build_imported_deck(payload: DeckPayload, share_id: Optional[str] = None) -> Deck:
    """A fresh local copy of an incoming deck. Never reuses an existing id."""
    timestamp = now_ms()
    return Deck(
        **payload.model_dump(),
        id=create_id(),
        created_at=timestamp,
        imported_at=timestamp,
        original_share_id=share_id,
    )


# --- IMPORT PATHS ---

def import_inline(library, blob: str) -> Deck:
    """
    Imports a deck from an inline share link payload into the library.
    Every call creates a new deck, even for a link imported before.
    """
    data = decode_inline_payload(blob)
    deck = build_imported_deck(validate_import_data(data))
    library.add(deck)
    logger.info(f"Import Success: Set '{deck.title}' ({len(deck.cards)} cards) from inline link")
    return deck


async def import_shared(library, gateway, key: str) -> Deck:
    """
    Fetches a shared deck by code and imports it into the library.
    Raises NotFound / GatewayError from the gateway unchanged.
    """
    record = await gateway.read_shared_deck(key)
    data = record.model_dump() if hasattr(record, 'model_dump') else record
    deck = build_imported_deck(validate_import_data(data), share_id=key)
    library.add(deck)
    logger.info(f"Import Success: Set '{deck.title}' ({len(deck.cards)} cards) from code {key}")
    return deck
