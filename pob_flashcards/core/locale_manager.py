# core/locale_manager.py

import json
from pathlib import Path
from typing import Dict, Any, List
from nicegui import app
from pob_flashcards.core.log_manager import logger

# Directory holding one <locale>.json file per supported language
I18N_DIR = Path(__file__).resolve().parent.parent / 'i18n'

FALLBACK_LOCALE = 'en'

class LocaleManager:
    """
    Loads every <locale>.json under the i18n directory and translates keys
    for the locale stored in the NiceGUI user session ('ui_language').
    """

    def __init__(self, i18n_dir: Path = I18N_DIR):
        self.i18n_dir = i18n_dir
        self._all_translations: Dict[str, Dict[str, str]] = {}

        self._fallback_translations = self._load_translations(FALLBACK_LOCALE)
        self._all_translations[FALLBACK_LOCALE] = self._fallback_translations

        if not self.i18n_dir.is_dir():
            logger.error(f"I18N directory not found at {self.i18n_dir}. Only keys will be shown.")
            return

        for path in sorted(self.i18n_dir.glob('*.json')):
            if path.stem not in self._all_translations:
                self._all_translations[path.stem] = self._load_translations(path.stem)

        logger.info(f"LocaleManager initialized. Supported: {self.supported_locales}. Fallback: {FALLBACK_LOCALE}")

    def _load_translations(self, locale: str) -> Dict[str, str]:
        file_path = self.i18n_dir / f'{locale}.json'
        try:
            with file_path.open('r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Translation file not found for locale '{locale}' ({file_path.name}).")
            return {}
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON format in file for locale '{locale}': {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Translation file for locale '{locale}' must hold a JSON object.")
            return {}
        return data

    @property
    def supported_locales(self) -> List[str]:
        return list(self._all_translations.keys())

    def T(self, key: str, use_fallback=False, **kwargs: Any) -> str:
        """
        Translates `key` for the session's locale, falling back to English and
        finally to a visible '!! key !!' marker. kwargs are interpolated with
        str.format.
        """
        if use_fallback:
            current_locale = FALLBACK_LOCALE
        else:
            current_locale = app.storage.user.get('ui_language', FALLBACK_LOCALE)

        translated_string = self._all_translations.get(current_locale, {}).get(key)

        if translated_string is None:
            translated_string = self._fallback_translations.get(key)
            if translated_string is None:
                logger.warning(f"Missing translation key '{key}' in both current and fallback locales.")
                return f"!! {key} !!"

        if kwargs:
            try:
                return translated_string.format(**kwargs)
            except (KeyError, IndexError, ValueError) as e:
                logger.error(f"Formatting failed for key '{key}' in locale '{current_locale}': {e}")
                return translated_string

        return translated_string

# Create a globally accessible singleton instance
global_locale_manager = LocaleManager()

# Define the short alias for translation for ease of use in UI files
T = global_locale_manager.T

SUPPORTED_LOCALES = global_locale_manager.supported_locales
