"""
Tests for services/deck_service.py.

The storage slot is a plain dict (or a dict that refuses writes), standing
in for NiceGUI's per-browser user storage.
"""
import json
import pytest

from pob_flashcards.core.errors import InvalidFormat, StorageError
from pob_flashcards.schemas import Card, Deck
from pob_flashcards.services.deck_service import STORAGE_KEY, DeckDraft, DeckLibrary, DeckStore
from tests.conftest import BrokenSlot


def _deck(deck_id='d1', title='Set', cards=None, **extra):
    return Deck(
        id=deck_id,
        title=title,
        description='',
        cards=cards or [Card(term='A', definition='a')],
        created_at=1_700_000_000_000,
        **extra,
    )


# ── DeckStore ─────────────────────────────────────────────────

class TestDeckStore:
    def test_missing_key_loads_empty(self):
        assert DeckStore({}).load() == []

    def test_save_then_load_round_trip(self):
        slot = {}
        store = DeckStore(slot)
        deck = _deck(imported_at=1_700_000_000_500, original_share_id='abc123')
        store.save([deck])
        assert store.load() == [deck]

    def test_saved_shape_omits_missing_optionals(self):
        slot = {}
        DeckStore(slot).save([_deck()])
        stored = json.loads(slot[STORAGE_KEY])
        assert set(stored[0]) == {'id', 'title', 'description', 'cards', 'created_at'}

    def test_non_ascii_is_kept_verbatim(self):
        slot = {}
        DeckStore(slot).save([_deck(title='Café ✓')])
        assert 'Café ✓' in slot[STORAGE_KEY]

    def test_corrupt_json_loads_empty(self):
        assert DeckStore({STORAGE_KEY: '{not json'}).load() == []

    def test_non_list_loads_empty(self):
        assert DeckStore({STORAGE_KEY: '{"title": "x"}'}).load() == []

    def test_invalid_entries_are_skipped(self):
        good = _deck().to_storage()
        no_id = dict(good, id='')
        no_cards = dict(good, id='d2', cards=[])
        slot = {STORAGE_KEY: json.dumps([good, no_id, no_cards, 'junk'])}
        decks = DeckStore(slot).load()
        assert [d.id for d in decks] == ['d1']

    def test_already_decoded_list_is_accepted(self):
        slot = {STORAGE_KEY: [_deck().to_storage()]}
        assert len(DeckStore(slot).load()) == 1

    def test_refused_write_raises_storage_error(self):
        with pytest.raises(StorageError):
            DeckStore(BrokenSlot()).save([_deck()])


# ── DeckLibrary ───────────────────────────────────────────────

class TestDeckLibrary:
    def test_create_prepends_and_persists(self):
        slot = {}
        library = DeckLibrary(DeckStore(slot))
        library.add(_deck('old'))
        deck = library.create('  Bio  ', ' notes ', [Card(term='Cell', definition='Unit of life')])

        assert deck.title == 'Bio'
        assert deck.description == 'notes'
        assert [d.id for d in library.decks] == [deck.id, 'old']
        assert [d.id for d in DeckStore(slot).load()] == [deck.id, 'old']

    def test_create_then_reload_sees_same_deck(self):
        slot = {}
        library = DeckLibrary(DeckStore(slot))
        deck = library.create('Bio', '', [Card(term='Cell', definition='Unit of life')])
        reloaded = DeckLibrary(DeckStore(slot))
        assert reloaded.get(deck.id) == deck

    def test_create_requires_title(self):
        library = DeckLibrary(DeckStore({}))
        with pytest.raises(InvalidFormat, match="name your Safmeds set"):
            library.create('   ', '', [Card(term='A', definition='a')])

    def test_create_requires_cards(self):
        library = DeckLibrary(DeckStore({}))
        with pytest.raises(InvalidFormat, match="at least one card"):
            library.create('Bio', '', [])

    def test_delete(self):
        slot = {}
        library = DeckLibrary(DeckStore(slot))
        library.add(_deck('a'))
        library.add(_deck('b'))
        assert library.delete('a') is True
        assert [d.id for d in DeckStore(slot).load()] == ['b']

    def test_delete_unknown_returns_false(self):
        library = DeckLibrary(DeckStore({}))
        assert library.delete('missing') is False

    def test_failed_write_keeps_memory_and_reports(self):
        library = DeckLibrary(DeckStore(BrokenSlot()))
        deck = library.create('Bio', '', [Card(term='A', definition='a')])
        assert library.get(deck.id) == deck
        assert isinstance(library.persist_error, StorageError)

    def test_successful_write_clears_error(self):
        slot = BrokenSlot()
        library = DeckLibrary(DeckStore(slot))
        library.add(_deck('a'))
        assert library.persist_error is not None
        library.store = DeckStore({})
        library.add(_deck('b'))
        assert library.persist_error is None


# ── DeckDraft ─────────────────────────────────────────────────

class TestDeckDraft:
    def test_add_card_trims(self):
        draft = DeckDraft()
        card = draft.add_card('  Term ', ' Def  ')
        assert card == Card(term='Term', definition='Def')

    def test_blank_fields_rejected(self):
        draft = DeckDraft()
        with pytest.raises(InvalidFormat, match="both a term and definition"):
            draft.add_card('Term', '   ')
        assert draft.cards == []

    def test_long_fields_rejected(self):
        draft = DeckDraft()
        with pytest.raises(InvalidFormat, match="Term must be 500"):
            draft.add_card('x' * 501, 'ok')
        with pytest.raises(InvalidFormat, match="Definition must be 500"):
            draft.add_card('ok', 'x' * 501)
        draft.add_card('x' * 500, 'y' * 500)
        assert len(draft.cards) == 1

    def test_card_cap(self):
        draft = DeckDraft()
        for i in range(1000):
            draft.add_card(f't{i}', 'd')
        with pytest.raises(InvalidFormat):
            draft.add_card('one more', 'd')

    def test_remove_card_ignores_bad_index(self):
        draft = DeckDraft()
        draft.add_card('A', 'a')
        draft.remove_card(5)
        draft.remove_card(0)
        assert draft.cards == []

    def test_save_to_clears_only_on_success(self):
        library = DeckLibrary(DeckStore({}))
        draft = DeckDraft()
        draft.add_card('A', 'a')

        with pytest.raises(InvalidFormat):
            draft.save_to(library, '', '')
        assert len(draft.cards) == 1

        deck = draft.save_to(library, 'Set', '')
        assert draft.cards == []
        assert deck.cards == [Card(term='A', definition='a')]
        assert len(library) == 1

    def test_save_to_with_full_storage_reports_error(self):
        library = DeckLibrary(DeckStore(BrokenSlot()))
        draft = DeckDraft()
        draft.add_card('A', 'a')

        deck = draft.save_to(library, 'Set', '')
        assert library.get(deck.id) == deck
        assert isinstance(library.persist_error, StorageError)
        assert "storage is full or unavailable" in str(library.persist_error)
