from nicegui import ui
from pob_flashcards.core.errors import GatewayError
from pob_flashcards.core.locale_manager import T
from pob_flashcards.core.log_manager import logger
from pob_flashcards.pages.common import setup_page, create_navbar
from pob_flashcards.services.gateway import SqlGateway

@ui.page('/chapters', title='Chapters | PoB Flashcards')
async def chapters_page():
    if setup_page(restricted=True) is None:
        return
    create_navbar()

    gateway = SqlGateway()

    with ui.column().classes('w-screen min-h-screen gradient-bg text-white p-8 overflow-y-auto'):
        with ui.column().classes('w-full max-w-5xl mx-auto gap-2 mb-6'):
            ui.label(T("chapters_title")).classes('text-4xl font-bold')
            ui.label(T("chapters_subtitle")).classes('text-gray-400')

        content_area = ui.column().classes('w-full max-w-5xl mx-auto gap-6')

    def render_chapter_card(chapter):
        with ui.card().classes('bg-black/40 border border-white/10 hover:border-indigo-500/80 transition-all duration-300'):
            ui.label(T("chapter_number", chapter=chapter.chapter)).classes('text-xs text-gray-500 uppercase tracking-widest')
            ui.label(chapter.name).classes('text-xl font-bold text-gray-100 line-clamp-2')
            with ui.row().classes('w-full justify-between mt-4'):
                ui.button(T("study"), icon='play_arrow', on_click=lambda: ui.navigate.to(f'/study/{chapter.chapter}')) \
                    .props('dense color=green-7 no-caps').classes('px-4')
                ui.button(T("analytics"), icon='insights', on_click=lambda: ui.navigate.to(f'/analytics/{chapter.chapter}')) \
                    .props('flat dense color=indigo no-caps')

    async def refresh_chapters():
        content_area.clear()
        with content_area:
            ui.spinner('dots', size='lg')

        try:
            chapters = await gateway.fetch_chapters()
        except GatewayError as e:
            logger.error(f"Chapter list failed: {e}")
            content_area.clear()
            with content_area:
                ui.label(str(e)).classes('text-red-400')
                ui.button(T("retry"), icon='refresh', on_click=refresh_chapters).props('flat color=white')
            return

        content_area.clear()
        with content_area:
            if not chapters:
                ui.label(T("no_chapters")).classes('text-xl text-gray-500')
                return
            with ui.grid(columns='1').classes('w-full sm:grid-cols-2 lg:grid-cols-3 gap-6'):
                for chapter in chapters:
                    render_chapter_card(chapter)

    await refresh_chapters()
