import json
from collections import defaultdict
from pathlib import Path
from typing import Dict, Set

I18N_DIR = Path(__file__).resolve().parent

def find_missing_keys(i18n_dir: Path = I18N_DIR) -> Dict[str, Set[str]]:
    """Maps every locale file under `i18n_dir` to the keys other locales have and it lacks."""
    all_keys = set()
    locale_key_map = defaultdict(set)

    for file_path in sorted(i18n_dir.glob('*.json')):
        with file_path.open('r', encoding='utf-8') as f:
            keys = set(json.load(f).keys())
        locale_key_map[file_path.stem] = keys
        all_keys.update(keys)

    return {locale: all_keys - keys for locale, keys in locale_key_map.items()}

def print_translation_summary():
    """"Prints a summary stating all keys that are missing in any locale"""
    for locale, missing_keys in find_missing_keys().items():
        if missing_keys:
            print(f"Locale '{locale}' is missing {len(missing_keys)} keys:")
            for key in sorted(missing_keys):
                print(f"  - {key}")
        else:
            print(f"Locale '{locale}' has all keys.")

if __name__ == "__main__":
    print_translation_summary()
