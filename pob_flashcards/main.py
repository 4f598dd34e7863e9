# main.py
import os
from nicegui import ui, app
from pob_flashcards.config import SECRET_KEY, CONTENT_FILE
from pob_flashcards.core.locale_manager import T
from pob_flashcards.core.log_manager import logger
from pob_flashcards.database import init_db
from pob_flashcards.services.gateway import load_content_file

# --- PAGE REGISTRATION ---
import pob_flashcards.pages.landing
import pob_flashcards.pages.auth_callback
import pob_flashcards.pages.chapters_page
import pob_flashcards.pages.study_page
import pob_flashcards.pages.analytics_page
import pob_flashcards.pages.safmeds_page

# --- PATH & STYLING SETUP ---
PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(PACKAGE_DIR)
ASSETS_DIR = os.path.join(PROJECT_ROOT, 'assets')

if os.path.exists(ASSETS_DIR):
    app.add_static_files('/assets', ASSETS_DIR)

ui.add_css("""
.gradient-bg {
    background: radial-gradient(circle at top left, #1e1b4b 0%, #0f172a 45%, #020617 100%);
}
""", shared=True)

def main():
    init_db()
    if CONTENT_FILE:
        count = load_content_file(CONTENT_FILE)
        logger.info(f"Loaded {count} terms from {CONTENT_FILE}")
    ui.run(title=T("app_title", use_fallback=True), reload=False, port=8080, storage_secret=SECRET_KEY)

# --- STARTUP ---
if __name__ in {"__main__", "__mp_main__"}:
    main()
