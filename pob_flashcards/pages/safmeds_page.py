from nicegui import ui, app, events
from starlette.requests import Request
from pob_flashcards.components.flashcard import Flashcard
from pob_flashcards.core.errors import FlashcardsError, GatewayError, NotFound, ValidationError
from pob_flashcards.core.formatting import format_date_ymd
from pob_flashcards.core.locale_manager import T
from pob_flashcards.core.log_manager import logger
from pob_flashcards.pages.common import setup_page, create_navbar, page_origin, strip_url_params
from pob_flashcards.schemas import MAX_CARDS_PER_SET, MAX_FIELD_LENGTH
from pob_flashcards.services.deck_service import DeckDraft, DeckLibrary, DeckStore
from pob_flashcards.services.gateway import SqlGateway
from pob_flashcards.services.import_service import import_inline, import_shared
from pob_flashcards.services.review_service import DeckReview
from pob_flashcards.services.share_service import (
    IMPORT_PARAM,
    build_inline_link,
    CLIPBOARD_TIMEOUT_SECONDS,
    build_share_code_link,
    clipboard_write_script,
    detect_import,
    publish_deck,
    qr_code_url,
)

@ui.page('/safmeds', title='Safmeds | PoB Flashcards')
async def safmeds_page(request: Request):
    if setup_page(restricted=True) is None:
        return
    create_navbar()

    gateway = SqlGateway()
    library = DeckLibrary(DeckStore(app.storage.user))
    draft = DeckDraft()
    review = DeckReview()
    origin = page_origin(request)

    # Share panel state; a new code is only minted on request
    share_state = {"deck_id": None, "code": None}
    deletion_state = {"id": None}
    pending_import = detect_import(dict(request.query_params))

    # --- STORAGE WARNING ---

    def refresh_storage_warning():
        storage_warning.set_visibility(library.persist_error is not None)
        if library.persist_error is not None:
            storage_warning_label.set_text(str(library.persist_error))

    # --- CREATE FORM ---

    def add_draft_card():
        try:
            draft.add_card(term_input.value, definition_input.value)
        except ValidationError as e:
            ui.notify(str(e), type='warning')
            return
        term_input.set_value('')
        definition_input.set_value('')
        render_draft()

    def remove_draft_card(index: int):
        draft.remove_card(index)
        render_draft()

    def save_draft():
        try:
            deck = draft.save_to(library, title_input.value, description_input.value)
        except ValidationError as e:
            ui.notify(str(e), type='warning')
            return
        refresh_storage_warning()
        title_input.set_value('')
        description_input.set_value('')
        render_draft()
        ui.notify(T("set_saved", title=deck.title), type='positive')
        select_deck(deck.id)

    def render_draft():
        draft_area.clear()
        with draft_area:
            ui.label(T("draft_card_count", count=len(draft.cards), limit=MAX_CARDS_PER_SET)) \
                .classes('text-xs text-gray-500 font-mono')
            for index, card in enumerate(draft.cards):
                with ui.row().classes('w-full items-center justify-between bg-black/20 rounded px-3 py-1'):
                    with ui.column().classes('gap-0 flex-1 min-w-0'):
                        ui.label(card.term).classes('text-sm text-gray-100 truncate')
                        ui.label(card.definition).classes('text-xs text-gray-400 truncate')
                    ui.button(icon='close', on_click=lambda i=index: remove_draft_card(i)) \
                        .props('flat round dense size=sm color=grey')

    # --- DECK LIST ---

    def select_deck(deck_id):
        review.select(library.get(deck_id) if deck_id else None)
        if share_state["deck_id"] != review.deck_id:
            share_state["deck_id"] = review.deck_id
            share_state["code"] = None
        render_decks()
        render_review()
        render_share()

    async def execute_deletion():
        delete_dialog.close()
        deck_id = deletion_state["id"]
        if not library.delete(deck_id):
            ui.notify(T("set_delete_failed"), type='negative')
            return
        ui.notify(T("set_deleted"), type='positive')
        refresh_storage_warning()
        select_deck(review.deck_id if review.deck_id != deck_id else None)

    with ui.dialog() as delete_dialog, ui.card() as delete_card:
        delete_card.classes('bg-gray-900 border border-white/10')
        delete_title_label = ui.label().classes('text-xl font-bold text-white')
        ui.label(T("confirm_delete_set_message")).classes('text-gray-400')
        with ui.row().classes('w-full justify-end gap-4 mt-6'):
            ui.button(T("cancel"), on_click=delete_dialog.close).props('flat color=white')
            ui.button(T("confirm_delete"), color='red', on_click=execute_deletion).props('raised')

    def open_delete_dialog(deck):
        deletion_state["id"] = deck.id
        delete_title_label.set_text(T("confirm_delete_set_title", title=deck.title))
        delete_dialog.open()

    def render_decks():
        decks_area.clear()
        with decks_area:
            if not library.decks:
                ui.label(T("no_sets_yet")).classes('text-gray-500')
                return
            for deck in library.decks:
                is_active = deck.id == review.deck_id
                border = 'border-indigo-500' if is_active else 'border-white/10'
                with ui.card().classes(f'w-full bg-black/40 border {border} p-3'):
                    ui.label(deck.title).classes('text-lg font-bold text-gray-100 line-clamp-1')
                    if deck.description:
                        ui.label(deck.description).classes('text-sm text-gray-400 line-clamp-2')
                    with ui.row().classes('w-full justify-between items-center'):
                        ui.label(T("set_meta", count=len(deck.cards), date=format_date_ymd(deck.created_at / 1000))) \
                            .classes('text-xs text-gray-500 font-mono')
                        with ui.row().classes('gap-1'):
                            ui.button(icon='style', on_click=lambda d=deck: select_deck(d.id)) \
                                .props('flat round dense color=indigo').tooltip(T("review_set"))
                            ui.button(icon='delete_outline', on_click=lambda d=deck: open_delete_dialog(d)) \
                                .props('flat round dense color=red-4').tooltip(T("delete"))

    # --- REVIEW ---

    def review_toggle():
        review.toggle_reveal()
        render_review()

    def review_next():
        review.advance()
        render_review()

    def review_previous():
        review.retreat()
        render_review()

    def render_review():
        review_area.clear()
        with review_area:
            card = review.current_card
            if card is None:
                ui.label(T("review_empty")).classes('text-gray-500')
                return
            ui.label(review.position).classes('text-xs text-gray-400 font-mono self-end')
            Flashcard(on_toggle=review_toggle).show(card.term, card.definition, review.is_revealed)
            with ui.row().classes('w-full justify-between mt-4'):
                ui.button(T("previous"), icon='chevron_left', on_click=review_previous) \
                    .props('flat color=white no-caps').set_enabled(review.current_index > 0)
                ui.button(T("next"), icon='chevron_right', on_click=review_next) \
                    .props('color=indigo-9 no-caps')

    def handle_key(e: events.KeyEventArguments):
        if review.is_empty or not e.action.keydown:
            return
        if e.key == ' ':
            review_toggle()
        elif e.key == 'ArrowRight':
            review_next()
        elif e.key == 'ArrowLeft':
            review_previous()

    ui.keyboard(on_key=handle_key, ignore=['input', 'textarea'])

    # --- SHARE ---

    async def copy_link(link: str):
        try:
            copied = await ui.run_javascript(clipboard_write_script(link), timeout=CLIPBOARD_TIMEOUT_SECONDS)
        except TimeoutError:
            copied = False
        if copied is True:
            ui.notify(T("link_copied"), type='positive')
        else:
            logger.warning("Clipboard write was refused or timed out")
            ui.notify(T("link_copy_failed"), type='negative')

    async def create_share_code():
        deck = library.get(share_state["deck_id"])
        if deck is None:
            return
        share_button.disable()
        try:
            share_state["code"] = await publish_deck(gateway, deck)
        except GatewayError as e:
            logger.error(f"Publishing set '{deck.title}' failed: {e}")
            ui.notify(str(e), type='negative')
            share_button.enable()
            return
        render_share()

    def render_share():
        nonlocal share_button
        share_area.clear()
        deck = library.get(share_state["deck_id"]) if share_state["deck_id"] else None
        with share_area:
            if deck is None:
                return
            ui.label(T("share_title")).classes('text-lg font-bold text-gray-100')

            inline_link = build_inline_link(origin, deck)
            ui.label(T("share_inline_hint")).classes('text-xs text-gray-400')
            with ui.row().classes('w-full items-center no-wrap gap-2'):
                ui.input(value=inline_link).props('readonly dense dark outlined').classes('flex-1')
                ui.button(icon='content_copy', on_click=lambda: copy_link(inline_link)).props('flat round color=white')

            if share_state["code"]:
                code_link = build_share_code_link(origin, share_state["code"])
                ui.label(T("share_code_label", code=share_state["code"])).classes('text-sm text-indigo-200 font-mono mt-2')
                with ui.row().classes('w-full items-center no-wrap gap-2'):
                    ui.input(value=code_link).props('readonly dense dark outlined').classes('flex-1')
                    ui.button(icon='content_copy', on_click=lambda: copy_link(code_link)).props('flat round color=white')
                ui.image(qr_code_url(code_link)).classes('w-[180px] h-[180px] mt-2 bg-white rounded')
                share_button = None
            else:
                share_button = ui.button(T("create_share_code"), icon='qr_code', on_click=create_share_code) \
                    .props('no-caps').classes('bg-indigo-600 text-white mt-2')

    share_button = None

    # --- IMPORT FROM LINK ---

    async def run_import(request_to_run):
        try:
            if request_to_run.kind == IMPORT_PARAM:
                deck = import_inline(library, request_to_run.value)
            else:
                deck = await import_shared(library, gateway, request_to_run.value)
        except NotFound:
            ui.notify(T("share_code_not_found"), type='negative')
            return
        except GatewayError as e:
            logger.error(f"Shared set lookup failed: {e}")
            import_error_area.clear()
            with import_error_area:
                ui.label(str(e)).classes('text-red-400')
                ui.button(T("retry"), icon='refresh', on_click=lambda: retry_import(request_to_run)) \
                    .props('flat color=white')
            return
        except FlashcardsError as e:
            ui.notify(str(e), type='negative')
            return
        finally:
            refresh_storage_warning()

        import_error_area.clear()
        ui.notify(T("set_imported", title=deck.title, count=len(deck.cards)), type='positive')
        select_deck(deck.id)

    async def retry_import(request_to_run):
        import_error_area.clear()
        await run_import(request_to_run)

    # --- LAYOUT ---
    with ui.column().classes('w-screen min-h-screen gradient-bg text-white p-8 overflow-y-auto'):
        with ui.column().classes('w-full max-w-6xl mx-auto gap-6'):
            with ui.column().classes('gap-1'):
                ui.label(T("safmeds_title")).classes('text-4xl font-bold')
                ui.label(T("safmeds_subtitle")).classes('text-gray-400')

            with ui.row().classes('w-full items-center gap-2 bg-red-900/40 border border-red-500/40 rounded p-3') as storage_warning:
                ui.icon('warning', color='red-4')
                storage_warning_label = ui.label('').classes('text-sm text-red-200')
            import_error_area = ui.row().classes('w-full items-center gap-4')

            with ui.row().classes('w-full gap-8 items-start no-wrap'):
                # LEFT: create + list
                with ui.column().classes('w-1/3 gap-4'):
                    with ui.card().classes('w-full bg-black/40 border border-white/10 gap-2'):
                        ui.label(T("create_set")).classes('text-lg font-bold text-gray-100')
                        title_input = ui.input(T("set_title")).props('dense dark outlined').classes('w-full')
                        description_input = ui.input(T("set_description")).props('dense dark outlined').classes('w-full')
                        term_input = ui.input(T("term"), validation={
                            T("field_too_long", limit=MAX_FIELD_LENGTH): lambda v: len(v or '') <= MAX_FIELD_LENGTH
                        }).props('dense dark outlined').classes('w-full')
                        definition_input = ui.textarea(T("definition"), validation={
                            T("field_too_long", limit=MAX_FIELD_LENGTH): lambda v: len(v or '') <= MAX_FIELD_LENGTH
                        }).props('dense dark outlined autogrow').classes('w-full')
                        with ui.row().classes('w-full justify-between'):
                            ui.button(T("add_card"), icon='add', on_click=add_draft_card).props('flat color=white no-caps')
                            ui.button(T("save_set"), icon='save', on_click=save_draft) \
                                .props('no-caps').classes('bg-indigo-600 text-white')
                        draft_area = ui.column().classes('w-full gap-1')

                    ui.label(T("your_sets")).classes('text-xl font-bold text-gray-200')
                    decks_area = ui.column().classes('w-full gap-3')

                # RIGHT: review + share
                with ui.column().classes('flex-1 gap-6'):
                    review_area = ui.column().classes('w-full gap-2')
                    share_area = ui.column().classes('w-full gap-1 bg-black/30 rounded-lg p-4')

    refresh_storage_warning()
    render_draft()
    select_deck(library.decks[0].id if library.decks else None)

    # The query string is dropped whatever the import's outcome, so a reload doesn't import twice
    if pending_import is not None:
        strip_url_params()
        await run_import(pending_import)
