"""
Tests for the small helpers in core/: formatting, shuffling, ids and the
translation key checker.
"""
import json
import random
import re
import uuid
from datetime import datetime

import pytest

from pob_flashcards.core.formatting import (
    format_date_ymd,
    format_duration_ms,
    format_full_date,
    format_percent,
    format_time_label,
    parse_finite_number,
)
from pob_flashcards.core.ids import create_id, now_ms
from pob_flashcards.core.shuffle import shuffle_items
from pob_flashcards.i18n.tools import I18N_DIR, find_missing_keys


# ── Formatting ────────────────────────────────────────────────

class TestFormatting:
    @pytest.mark.parametrize('value, expected', [
        (0, "00:00"),
        (59_999, "00:59"),
        (61_000, "01:01"),
        (3_600_000, "60:00"),
        (None, "00:00"),
        (float('nan'), "00:00"),
        (float('inf'), "00:00"),
    ])
    def test_duration(self, value, expected):
        assert format_duration_ms(value) == expected

    @pytest.mark.parametrize('value, expected', [
        (3, 3.0), ('4.5', 4.5), (True, None), ('abc', None), (None, None), (float('nan'), None),
    ])
    def test_parse_finite_number(self, value, expected):
        assert parse_finite_number(value) == expected

    def test_percent_rounds_half_up(self):
        assert format_percent(2 / 3) == "67%"
        assert format_percent(0.125) == "13%"
        assert format_percent(None) == "0%"

    def test_dates(self):
        moment = datetime(2024, 3, 4, 9, 30)
        assert format_date_ymd(moment) == "2024-03-04"
        assert format_date_ymd(moment.timestamp()) == "2024-03-04"
        assert format_time_label(moment.timestamp()) == "Mar 4"
        assert format_full_date(moment.timestamp()) == "2024-03-04 09:30"
        assert format_full_date(None) == ""


# ── Shuffle & ids ─────────────────────────────────────────────

class TestShuffle:
    def test_returns_permutation_without_mutating(self):
        items = list(range(20))
        shuffled = shuffle_items(items)
        assert items == list(range(20))
        assert sorted(shuffled) == items

    def test_seeded_rng_is_reproducible(self):
        items = list(range(20))
        assert shuffle_items(items, random.Random(1)) == shuffle_items(items, random.Random(1))

    def test_empty(self):
        assert shuffle_items([]) == []


class TestIds:
    def test_ids_are_unique(self):
        assert len({create_id() for _ in range(100)}) == 100

    def test_falls_back_without_os_randomness(self, monkeypatch):
        def no_uuid4():
            raise NotImplementedError("no entropy source")

        monkeypatch.setattr(uuid, 'uuid4', no_uuid4)
        first = create_id()
        second = create_id()
        assert re.fullmatch(r'safmeds_\d{13,}_[0-9a-f]+', first)
        assert first != second

    def test_now_ms_is_milliseconds(self):
        assert now_ms() > 1_600_000_000_000


# ── Translations ──────────────────────────────────────────────

class TestTranslations:
    def test_shipped_locales_are_complete(self):
        assert all(not missing for missing in find_missing_keys(I18N_DIR).values())

    def test_reports_missing_keys(self, tmp_path):
        (tmp_path / 'en.json').write_text(json.dumps({'a': 'A', 'b': 'B'}), encoding='utf-8')
        (tmp_path / 'es.json').write_text(json.dumps({'a': 'A'}), encoding='utf-8')
        assert find_missing_keys(tmp_path) == {'en': set(), 'es': {'b'}}
