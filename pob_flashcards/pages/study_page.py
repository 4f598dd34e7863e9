from nicegui import ui, events
from pob_flashcards.components.flashcard import Flashcard
from pob_flashcards.core.errors import FlashcardsError
from pob_flashcards.core.formatting import format_duration_ms, format_percent
from pob_flashcards.core.locale_manager import T
from pob_flashcards.core.log_manager import logger
from pob_flashcards.pages.common import setup_page, create_navbar
from pob_flashcards.services.gateway import SqlGateway
from pob_flashcards.services.study_service import RoundState, StudyRound

@ui.page('/study/{chapter}', title='Study | PoB Flashcards')
async def study_page(chapter: int):
    user = setup_page(restricted=True)
    if user is None:
        return
    create_navbar()

    # --- UI REFERENCES ---
    position_label = None
    elapsed_label = None
    card_view = None
    save_button = None

    def make_timer(interval, callback):
        with timer_host:
            return ui.timer(interval, callback)

    def on_tick(elapsed_ms: int):
        if elapsed_label:
            elapsed_label.set_text(T("elapsed", time=format_duration_ms(elapsed_ms)))

    study_round = StudyRound(
        SqlGateway(),
        user,
        chapter,
        timer_factory=make_timer,
        on_tick=on_tick,
    )
    ui.context.client.on_disconnect(study_round.dispose)

    # --- LOGIC CONTROLLERS ---

    def refresh_header():
        if position_label:
            position_label.set_text(T("card_position", position=study_round.position))
        on_tick(study_round.elapsed_ms)

    def refresh_card():
        term = study_round.current_term
        if card_view and term:
            card_view.show(term.term, term.definition, study_round.is_revealed)

    def toggle():
        study_round.toggle_reveal()
        refresh_card()

    def submit_answer(is_correct: bool):
        state = study_round.score(is_correct)
        if state == RoundState.COMPLETE:
            render()
            return
        refresh_header()
        refresh_card()

    def retry_round():
        study_round.retry()
        render()

    async def load_round():
        body.clear()
        with body:
            ui.spinner('dots', size='xl', color='primary')
            ui.label(T("loading_terms")).classes('text-gray-400')
        await study_round.load()
        render()

    async def save_round():
        save_button.disable()
        try:
            await study_round.commit()
        except FlashcardsError as e:
            logger.error(f"Saving round for chapter {chapter} failed: {e}")
            ui.notify(str(e), type='negative')
            save_button.enable()
            return
        ui.notify(T("round_saved"), type='positive')
        ui.navigate.to('/chapters')

    # --- KEYBOARD ---
    def handle_key(e: events.KeyEventArguments):
        if study_round.state != RoundState.ACTIVE or not e.action.keydown:
            return
        if e.key == ' ':
            toggle()
        elif e.key == '1' or e.key == 'ArrowLeft':
            submit_answer(False)
        elif e.key == '2' or e.key == 'ArrowRight':
            submit_answer(True)

    ui.keyboard(on_key=handle_key)

    # --- RENDERING ---
    def render():
        nonlocal card_view, save_button
        refresh_header()
        body.clear()
        with body:
            if study_round.state == RoundState.FAILED:
                ui.label(str(study_round.error)).classes('text-red-400')
                ui.button(T("retry"), icon='refresh', on_click=load_round).props('flat color=white')

            elif study_round.state == RoundState.EMPTY:
                ui.label(T("no_terms_for_chapter")).classes('text-xl text-gray-400')
                ui.button(T("return_to_chapters"), on_click=lambda: ui.navigate.to('/chapters'))

            elif study_round.state == RoundState.ACTIVE:
                card_view = Flashcard(on_toggle=toggle)
                with ui.row().classes('w-full justify-center gap-4 mt-6'):
                    ui.button(T("incorrect"), icon='close', on_click=lambda: submit_answer(False)) \
                        .props('color=red-9 size=lg').classes('min-w-[10rem]')
                    ui.button(T("correct"), icon='check', on_click=lambda: submit_answer(True)) \
                        .props('color=green-9 size=lg').classes('min-w-[10rem]')
                refresh_card()

            elif study_round.state == RoundState.COMPLETE:
                ui.label(T("round_complete")).classes('text-3xl font-black text-white')
                with ui.grid(columns=4).classes('w-full gap-4'):
                    render_stat(T("correct"), str(study_round.correct_count))
                    render_stat(T("incorrect"), str(study_round.incorrect_count))
                    render_stat(T("accuracy"), format_percent(study_round.accuracy))
                    render_stat(T("duration"), format_duration_ms(study_round.duration_ms))
                with ui.row().classes('gap-4 mt-4'):
                    save_button = ui.button(T("save_and_return"), icon='save', on_click=save_round) \
                        .classes('bg-indigo-600 text-white font-bold')
                    ui.button(T("retry_chapter"), icon='replay', on_click=retry_round).props('flat color=white')

    def render_stat(label: str, value: str):
        with ui.column().classes('p-4 bg-black/30 rounded-lg border border-white/10 items-center gap-1'):
            ui.label(label).classes('text-xs text-gray-400 uppercase tracking-wider')
            ui.label(value).classes('text-2xl font-bold text-indigo-200')

    # --- LAYOUT ---
    with ui.column().classes('w-screen min-h-screen gradient-bg text-white items-center p-4'):
        with ui.column().classes('w-full max-w-3xl gap-6'):
            with ui.row().classes('w-full justify-between items-end'):
                ui.label(T("chapter_number", chapter=chapter)).classes('text-3xl font-extrabold text-indigo-300')
                with ui.column().classes('items-end gap-0'):
                    position_label = ui.label('').classes('text-xs text-gray-400 font-mono')
                    elapsed_label = ui.label('').classes('text-sm text-gray-300 font-mono')
            body = ui.column().classes('w-full items-center gap-4')
            timer_host = ui.element('div').classes('hidden')

    # Terms load once the page is on screen; the timer starts with the first card
    ui.timer(0.1, load_round, once=True)
