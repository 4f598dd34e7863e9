from nicegui import ui
from pob_flashcards.pages.common import setup_page
from pob_flashcards.components.google_auth import GoogleSignInButton
from pob_flashcards.core.locale_manager import T

@ui.page('/')
def landing_page():
    user = setup_page(restricted=False)
    if user is not None:
        ui.navigate.to('/chapters')
        return

    ui.add_head_html('<script src="https://accounts.google.com/gsi/client" async defer></script>')

    with ui.column().classes('w-screen h-screen gradient-bg overflow-hidden justify-center items-center'):
        with ui.card().classes("transparent shadow-none max-w-3xl w-full p-10"):
            with ui.column().classes('gap-6'):
                ui.label(T("app_title")).classes('text-5xl font-extrabold text-indigo-300')
                ui.label(T("app_subtitle")).classes('text-xl text-white/80')
                ui.label(T("app_description")).classes('text-white/60 italic max-w-lg text-lg')

                with ui.column().classes('items-center backdrop-blur-md bg-black/30 p-6 mt-4 w-full rounded-xl'):
                    GoogleSignInButton()
                    ui.label(T("login_disclaimer")).classes('text-white/60 text-sm max-w-md border-t border-white/20 pt-2 mt-2')
