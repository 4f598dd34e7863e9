from nicegui import ui
from pob_flashcards.core.errors import GatewayError
from pob_flashcards.core.formatting import format_duration_ms, format_full_date, format_percent
from pob_flashcards.core.locale_manager import T
from pob_flashcards.core.log_manager import logger
from pob_flashcards.pages.common import setup_page, create_navbar
from pob_flashcards.services.analytics_service import RANGE_OPTIONS, load_chapter_summary
from pob_flashcards.services.gateway import SqlGateway

@ui.page('/analytics/{chapter}', title='Analytics | PoB Flashcards')
async def analytics_page(chapter: int):
    user = setup_page(restricted=True)
    if user is None:
        return
    create_navbar()

    gateway = SqlGateway()
    selected_range = {'value': 'all'}

    def render_stat(label: str, value: str):
        with ui.column().classes('p-4 bg-black/30 rounded-lg border border-white/10 gap-1'):
            ui.label(label).classes('text-xs text-gray-400 uppercase tracking-wider')
            ui.label(value).classes('text-2xl font-bold text-indigo-200')

    async def refresh():
        content_area.clear()
        with content_area:
            ui.spinner('dots', size='lg')

        try:
            records, summary = await load_chapter_summary(
                gateway, user.user_id, chapter, days=RANGE_OPTIONS[selected_range['value']]
            )
        except GatewayError as e:
            logger.error(f"Score history for chapter {chapter} failed: {e}")
            content_area.clear()
            with content_area:
                ui.label(str(e)).classes('text-red-400')
                ui.button(T("retry"), icon='refresh', on_click=refresh).props('flat color=white')
            return

        content_area.clear()
        with content_area:
            if not records:
                ui.label(T("no_rounds_yet")).classes('text-xl text-gray-500')
                ui.button(T("study"), icon='play_arrow', on_click=lambda: ui.navigate.to(f'/study/{chapter}')) \
                    .props('color=green-7 no-caps')
                return

            last = summary.last
            with ui.grid(columns=4).classes('w-full gap-4'):
                render_stat(T("last_accuracy"), format_percent(last.accuracy))
                render_stat(T("best_accuracy"), format_percent(summary.best_accuracy))
                render_stat(T("rolling_average"), format_percent(summary.rolling_average))
                render_stat(T("best_time"), format_duration_ms(summary.best_time))

            ui.label(T("rounds_count", count=summary.rounds)).classes('text-sm text-gray-400')

            columns = [
                {'name': 'date', 'label': T("date"), 'field': 'date', 'align': 'left'},
                {'name': 'correct', 'label': T("correct"), 'field': 'correct'},
                {'name': 'incorrect', 'label': T("incorrect"), 'field': 'incorrect'},
                {'name': 'accuracy', 'label': T("accuracy"), 'field': 'accuracy'},
                {'name': 'duration', 'label': T("duration"), 'field': 'duration'},
            ]
            rows = [
                {
                    'date': format_full_date(record.date),
                    'correct': record.correct,
                    'incorrect': record.incorrect,
                    'accuracy': format_percent(record.accuracy),
                    'duration': format_duration_ms(record.duration_ms),
                }
                for record in reversed(records)
            ]
            ui.table(columns=columns, rows=rows).classes('w-full bg-black/30 text-white').props('flat dark dense')

    def on_range_change(e):
        selected_range['value'] = e.value
        return refresh()

    with ui.column().classes('w-screen min-h-screen gradient-bg text-white p-8 overflow-y-auto'):
        with ui.column().classes('w-full max-w-5xl mx-auto gap-6'):
            with ui.row().classes('w-full justify-between items-end'):
                with ui.column().classes('gap-0'):
                    ui.label(T("chapter_number", chapter=chapter)).classes('text-xs text-gray-500 uppercase tracking-widest')
                    ui.label(T("analytics_title")).classes('text-4xl font-bold')
                ui.toggle(
                    {'7': T("range_7_days"), '30': T("range_30_days"), 'all': T("range_all")},
                    value='all',
                    on_change=on_range_change,
                ).props('no-caps color=indigo-9')
            content_area = ui.column().classes('w-full gap-6')

    await refresh()
