# pob_flashcards/pages/auth_callback.py
import asyncio
from nicegui import ui, app
from sqlalchemy.exc import SQLAlchemyError
from pob_flashcards.components.google_auth import verify_google_token
from pob_flashcards.core.log_manager import logger
from pob_flashcards.core.locale_manager import T
from pob_flashcards.pages.common import setup_page
from pob_flashcards.services.user_service import AuthError, get_or_create_user, sign_in

@ui.page('/auth/google/callback')
async def auth_callback_page(token: str = None):
    """
    Receives the Google Token via URL Query Parameter.
    Example: /auth/google/callback?token=eyJ...
    """
    setup_page(restricted=False, remove_url_params=True)

    if not token:
        ui.notify(T("login_no_token"), type='negative')
        logger.warning("Auth callback visited without token.")
        ui.navigate.to('/')
        return

    with ui.column().classes('w-screen h-screen justify-center items-center gradient-bg') as loading_container:
        ui.spinner('dots', size='xl', color='primary')
        ui.label(T("verifying_login")).classes('text-xl mt-4 animate-pulse text-white/80')

    logger.info("Received token via HTTP Redirect. Verifying...")
    user_info = await verify_google_token(token)

    if not user_info:
        logger.error("Token verification failed.")
        ui.notify(T("login_failed"), type='negative')
        ui.navigate.to('/')
        return

    try:
        db_user = await asyncio.to_thread(get_or_create_user, user_info)
    except AuthError as e:
        logger.warning(f"Auth Blocked: {e}")
        loading_container.clear()
        with loading_container:
            ui.icon('block', size='64px', color='red').classes('mb-4')
            ui.label(T("whitelist_blocked_user")).classes('text-xl text-white/80')
        return
    except (SQLAlchemyError, ValueError) as e:
        logger.error(f"Database Sync Error: {e}")
        ui.notify(T("login_sync_failed"), type='negative')
        ui.navigate.to('/')
        return

    user = sign_in(app.storage.user, db_user)
    logger.info(f"Login Complete. User ID: {user.user_id}")

    ui.notify(T("welcome_user", name=user.name), type='positive')
    ui.navigate.to('/chapters')
