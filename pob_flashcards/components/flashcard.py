# components/flashcard.py
from typing import Callable, Optional
import bleach
from nicegui import ui
from pob_flashcards.core.locale_manager import T

ALLOWED_TAGS = ['b', 'i', 'strong', 'em', 'p', 'br', 'ul', 'ol', 'li', 'code', 'sub', 'sup', 'span']

def sanitize_html(content: Optional[str]) -> str:
    """Strips markup outside ALLOWED_TAGS before user text is rendered as markdown."""
    if not content:
        return ""
    return bleach.clean(content, tags=ALLOWED_TAGS, strip=True)

class Flashcard(ui.element):
    """
    A tap-to-flip card: the term is always shown, the definition only while
    revealed. Used by both the study round and the personal set review.
    """

    def __init__(self, on_toggle: Callable[[], None]):
        super().__init__('div')
        self.classes('w-full min-h-[280px] bg-gray-900 border border-white/20 rounded-xl '
                     'flex flex-col items-center justify-center p-8 cursor-pointer select-none')
        self.on('click', lambda _: on_toggle())

        with self:
            self.front = ui.markdown('').classes('text-2xl text-center text-white')
            self.separator = ui.separator().classes('w-1/2 my-6 opacity-30')
            self.back = ui.markdown('').classes('text-lg text-center text-gray-300')
            self.hint = ui.label(T("tap_to_flip")).classes('text-xs text-gray-500 mt-6 uppercase tracking-widest')

    def show(self, term: str, definition: str, is_revealed: bool) -> None:
        self.front.set_content(sanitize_html(term))
        self.back.set_content(sanitize_html(definition))
        self.back.set_visibility(is_revealed)
        self.separator.set_visibility(is_revealed)
        self.hint.set_visibility(not is_revealed)
