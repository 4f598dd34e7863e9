from typing import Optional
from nicegui import app, ui
from pob_flashcards.config import PUBLIC_ORIGIN
from pob_flashcards.core.locale_manager import T
from pob_flashcards.services.user_service import UserContext, current_user, sign_out

def setup_page(restricted: bool = True, remove_url_params: bool = False) -> Optional[UserContext]:
    """
    Common page preamble. For restricted pages, returns the signed-in user's
    context or redirects to the landing page and returns None.
    """
    ui.dark_mode() # Enable dark mode globally. For now, we keep it here.
    ui.add_head_html("<style>html, #c3 { padding: 0 !important;}</style>") # Remove default padding from html and #c3

    user = current_user(app.storage.user)
    if restricted and user is None:
        ui.notify(T("access_denied_login_required"), type='negative')
        ui.navigate.to('/')
        return None

    if remove_url_params:
        strip_url_params()

    return user

def strip_url_params():
    """Removes the query string from the visible location without reloading."""
    ui.run_javascript("window.history.replaceState(null, '', window.location.pathname);")

def page_origin(request) -> str:
    """Origin used in share links: PUBLIC_ORIGIN when configured, else the request's."""
    if PUBLIC_ORIGIN:
        return PUBLIC_ORIGIN
    return str(request.base_url).rstrip('/')

def handle_sign_out():
    sign_out(app.storage.user)
    ui.navigate.to('/')

def create_navbar():
    with ui.header().classes('w-full bg-black text-white justify-between items-center px-6 py-2 shadow-md'):

        with ui.row().classes('items-center gap-4'):
            with ui.button(icon='menu').props('flat round color=white'):
                with ui.menu().props('auto-close'):
                    ui.menu_item(T("chapters"), on_click=lambda: ui.navigate.to('/chapters'))
                    ui.menu_item(T("safmeds"), on_click=lambda: ui.navigate.to('/safmeds'))

            ui.label(T("app_title")).classes('text-xl font-bold tracking-tight')

        with ui.row().classes('items-center gap-4'):
            with ui.avatar(size='32px').classes('bg-gray-700 cursor-pointer'):
                if app.storage.user.get("picture"):
                    ui.image(app.storage.user.get("picture"))
                else:
                    ui.icon('person') # Fallback icon if no image

                with ui.menu().props('auto-close'):
                    ui.menu_item(T("logout"), on_click=handle_sign_out)
