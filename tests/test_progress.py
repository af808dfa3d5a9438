"""Tests for the preference store and user progress."""
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from llm_easy_japanese import db
from llm_easy_japanese.decks import Card
from llm_easy_japanese.progress import (
    CardMode,
    CardStatus,
    FilterMode,
    UserProgress,
    category_menu_key,
    collection_key,
    generate_card_id,
    group_menu_key,
)


@pytest.fixture
def store(tmp_path):
    """Fresh SQLite preference store for each test."""
    pref_store = db.PreferenceStore(str(tmp_path / "test_prefs.db"))
    yield pref_store
    pref_store.close()


@pytest.fixture
def progress(store):
    return UserProgress(store)


# ── Preference store ──────────────────────────────────────────────

def test_store_defaults_for_unknown_keys(store):
    assert store.get_string("missing", "fallback") == "fallback"
    assert store.get_int("missing", 7) == 7
    assert store.get_bool("missing", True) is True


def test_store_typed_round_trip(store):
    store.set_string("name", "ringo")
    store.set_int("count", 3)
    store.set_bool("flag", True)
    assert store.get_string("name", "") == "ringo"
    assert store.get_int("count", 0) == 3
    assert store.get_bool("flag", False) is True


def test_store_overwrites_value(store):
    store.set_int("count", 3)
    store.set_int("count", 4)
    assert store.get_int("count", 0) == 4
    assert store.count() == 1


def test_store_type_mismatch_returns_default(store):
    store.set_string("count", "three")
    assert store.get_int("count", 0) == 0


def test_store_prefix_matching_is_literal(store):
    store.set_string("status_a", "WRONG")
    store.set_string("statusXb", "WRONG")
    store.set_int("position_a", 1)
    assert store.keys_with_prefix("status_") == ["status_a"]
    assert store.items_with_prefix("position_") == {"position_a": "1"}


def test_store_prefix_escapes_like_wildcards(store):
    store.set_string("100%_done", "1")
    store.set_string("100x_done", "1")
    store.set_string("100%xdone", "1")
    assert store.keys_with_prefix("100%_") == ["100%_done"]


def test_store_remove_keys(store):
    store.set_string("a", "1")
    store.set_string("b", "2")
    assert store.remove_keys(["a", "missing"]) == 1
    assert store.remove_keys([]) == 0
    assert store.keys_with_prefix("") == ["b"]


def test_store_persists_across_instances(tmp_path):
    path = str(tmp_path / "persist.db")
    first = db.PreferenceStore(path)
    first.set_string("filter_mode", "WRONG_ONLY")
    first.close()
    second = db.PreferenceStore(path)
    assert second.get_string("filter_mode", "ALL") == "WRONG_ONLY"
    second.close()


def test_store_path_from_environment(tmp_path, monkeypatch):
    path = str(tmp_path / "env.db")
    monkeypatch.setenv("EASY_JP_DB", path)
    store = db.open_store()
    assert store.db_path == path
    assert db.is_db_initialized(store.engine)
    store.close()


# ── Ids and keys ──────────────────────────────────────────────────

def test_generate_card_id_format():
    assert generate_card_id("Noun", "Food", "Fruit", "Mandarin Orange") == "noun-food-fruit-mandarin_orange"
    assert generate_card_id("N5", "All", None, "Good morning") == "n5-all-none-good_morning"


def test_generate_card_id_is_deterministic():
    ids = {generate_card_id("Verb", "Daily Life", None, "to eat") for _ in range(5)}
    assert ids == {"verb-daily_life-none-to_eat"}


def test_generate_card_id_collides_on_case_and_spacing():
    assert generate_card_id("N5", "All", None, "Thank you") == generate_card_id("N5", "All", None, "thank_you")


def test_collection_and_menu_keys():
    assert collection_key("Noun", "Food", "Fruit") == "Noun-Food-Fruit"
    assert collection_key("N5", "All", None) == "N5-All-"
    assert category_menu_key("Noun") == "category_Noun"
    assert group_menu_key("Noun", "Food") == "level1_Noun_Food"


# ── Statuses, positions and modes ─────────────────────────────────

def test_card_status_defaults_to_unseen(progress):
    assert progress.get_card_status("n5-all-none-hello") == CardStatus.UNSEEN


def test_card_status_last_write_wins(progress):
    progress.set_card_status("n5-all-none-hello", CardStatus.CORRECT)
    progress.set_card_status("n5-all-none-hello", CardStatus.WRONG)
    assert progress.get_card_status("n5-all-none-hello") == CardStatus.WRONG


def test_get_all_card_statuses(progress):
    progress.set_card_status("a", CardStatus.CORRECT)
    progress.set_card_status("b", CardStatus.WRONG)
    progress.set_current_position("Noun-Food-", 2)
    assert progress.get_all_card_statuses() == {"a": CardStatus.CORRECT, "b": CardStatus.WRONG}


def test_unknown_stored_status_reads_as_unseen(store, progress):
    store.set_string("status_a", "MAYBE")
    assert progress.get_card_status("a") == CardStatus.UNSEEN


def test_position_defaults_to_zero(progress):
    assert progress.get_current_position("Noun-Food-Fruit") == 0
    progress.set_current_position("Noun-Food-Fruit", 3)
    assert progress.get_current_position("Noun-Food-Fruit") == 3


def test_modes_default_and_update(progress):
    assert progress.get_filter_mode() == FilterMode.ALL
    assert progress.get_card_mode() == CardMode.RECALL
    progress.set_filter_mode(FilterMode.WRONG_AND_UNSEEN)
    progress.set_card_mode(CardMode.READ)
    assert progress.get_filter_mode() == FilterMode.WRONG_AND_UNSEEN
    assert progress.get_card_mode() == CardMode.READ


def test_unknown_stored_filter_mode_reads_as_all(store, progress):
    store.set_string("filter_mode", "EVERYTHING")
    assert progress.get_filter_mode() == FilterMode.ALL


def test_menu_expansion(progress):
    assert progress.is_menu_expanded("vocabulary_section") is False
    progress.set_menu_expanded("vocabulary_section", True)
    assert progress.is_menu_expanded("vocabulary_section") is True


# ── Resets ────────────────────────────────────────────────────────

def test_reset_all_progress_keeps_positions(progress):
    progress.set_card_status("a", CardStatus.WRONG)
    progress.set_current_position("Noun-Food-Fruit", 2)
    progress.set_filter_mode(FilterMode.WRONG_ONLY)
    assert progress.reset_all_progress() == 1
    assert progress.get_all_card_statuses() == {}
    assert progress.get_current_position("Noun-Food-Fruit") == 2
    assert progress.get_filter_mode() == FilterMode.WRONG_ONLY


def test_reset_all_positions_keeps_statuses(progress):
    progress.set_card_status("a", CardStatus.CORRECT)
    progress.set_current_position("Noun-Food-Fruit", 2)
    progress.set_current_position("N5-All-", 1)
    progress.set_current_card("N5-All-", "n5-all-none-hello")
    assert progress.reset_all_positions() == 2
    assert progress.get_current_position("Noun-Food-Fruit") == 0
    assert progress.get_current_card("N5-All-") is None
    assert progress.get_card_status("a") == CardStatus.CORRECT


def test_collection_summary(progress):
    cards = [Card("🍎", "apple", "ringo"), Card("🍌", "banana", "banana"), Card("🍓", "strawberry", "ichigo")]
    progress.set_card_status(generate_card_id("Noun", "Food", "Fruit", "apple"), CardStatus.CORRECT)
    progress.set_card_status(generate_card_id("Noun", "Food", "Fruit", "banana"), CardStatus.WRONG)
    summary = progress.collection_summary("Noun", "Food", "Fruit", cards)
    assert summary == {"total": 3, "correct": 1, "wrong": 1, "unseen": 1}
