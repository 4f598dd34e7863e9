# pob_flashcards/services/review_service.py
from typing import Callable, List, Optional, Sequence

from pob_flashcards.core.log_manager import logger
from pob_flashcards.core.shuffle import shuffle_items
from pob_flashcards.schemas import Card, Deck


class DeckReview:
    """
    Unscored flip-through of one personal deck.

    States: empty (no deck or no cards) and browsing(index, revealed).
    Reaching past the last card reshuffles the deck and starts over at 0.
    """

    def __init__(self, shuffler: Callable[[Sequence[Card]], List[Card]] = shuffle_items):
        self.shuffler = shuffler
        self.deck_id: Optional[str] = None
        self.cards: List[Card] = []
        self.current_index: int = 0
        self.is_revealed: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.cards

    @property
    def current_card(self) -> Optional[Card]:
        if self.is_empty:
            return None
        return self.cards[self.current_index]

    @property
    def position(self) -> str:
        """1-based 'n / total' label for the card counter."""
        if self.is_empty:
            return "0 / 0"
        return f"{self.current_index + 1} / {len(self.cards)}"

    def select(self, deck: Optional[Deck]) -> None:
        """
        (Re)starts the review for `deck`. Call it again whenever the deck list
        changes under the active selection; passing None empties the session.
        """
        if deck is None:
            self.deck_id = None
            self.cards = []
        else:
            self.deck_id = deck.id
            self.cards = self.shuffler(deck.cards)
            logger.info(f"Reviewing set '{deck.title}' ({len(self.cards)} cards)")
        self.current_index = 0
        self.is_revealed = False

    def toggle_reveal(self) -> None:
        if self.is_empty:
            return
        self.is_revealed = not self.is_revealed

    def advance(self) -> None:
        if self.is_empty:
            return
        if self.current_index + 1 < len(self.cards):
            self.current_index += 1
        else:
            self.cards = self.shuffler(self.cards)
            self.current_index = 0
        self.is_revealed = False

    def retreat(self) -> None:
        if self.current_index > 0:
            self.current_index -= 1
            self.is_revealed = False
