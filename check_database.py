#!/usr/bin/env python3
"""
Script to examine the Easy Japanese preference database:
card statuses, saved positions and settings.
"""

import sys
import os

# Add the current directory to the path so we can import our modules
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from llm_easy_japanese import db
from llm_easy_japanese.progress import (
    POSITION_PREFIX,
    EXPANDED_PREFIX,
    CardStatus,
    UserProgress,
)


def check_database_contents(store: db.PreferenceStore) -> None:
    """Print a summary of everything stored in the preference database."""
    print("🔍 Examining Easy Japanese Preference Database")
    print("=" * 60)

    progress = UserProgress(store)

    statuses = progress.get_all_card_statuses()
    correct = sum(1 for s in statuses.values() if s == CardStatus.CORRECT)
    wrong = sum(1 for s in statuses.values() if s == CardStatus.WRONG)
    print(f"\n🃏 CARD STATUSES ({len(statuses)} cards):")
    print(f"     Correct: {correct}")
    print(f"     Wrong: {wrong}")
    wrong_ids = [card_id for card_id, s in statuses.items() if s == CardStatus.WRONG]
    for i, card_id in enumerate(wrong_ids[:10], 1):
        print(f"  {i:2d}. {card_id}")
    if len(wrong_ids) > 10:
        print(f"     ... and {len(wrong_ids) - 10} more wrong cards")

    positions = store.items_with_prefix(POSITION_PREFIX)
    print(f"\n📍 SAVED POSITIONS ({len(positions)} collections):")
    for key, value in positions.items():
        print(f"     {key[len(POSITION_PREFIX):]}: card {int(value) + 1}")

    expanded = [key[len(EXPANDED_PREFIX):] for key, value in store.items_with_prefix(EXPANDED_PREFIX).items()
                if value == "1"]
    print(f"\n📂 EXPANDED MENUS ({len(expanded)}):")
    for key in expanded:
        print(f"     {key}")

    print(f"\n⚙️  SETTINGS:")
    print(f"     Filter mode: {progress.get_filter_mode().name}")
    print(f"     Card mode: {progress.get_card_mode().name}")

    print(f"\n📊 SUMMARY:")
    print(f"     Total stored entries: {store.count()}")


if __name__ == "__main__":
    db_path = db.get_db_path()
    if "://" not in db_path and not os.path.exists(db_path):
        print(f"❌ Database file '{db_path}' not found!")
        print("   Make sure you're running this from the correct directory or set EASY_JP_DB.")
        sys.exit(1)

    try:
        check_database_contents(db.open_store(db_path))
    except Exception as e:
        print(f"❌ Error examining database: {e}")
        sys.exit(1)
