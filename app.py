#!/usr/bin/env python3
"""
Easy Japanese - Flask Web Application
JSON API for studying the bundled phrase and vocabulary flashcards.
"""

import os
import sys
import traceback
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request

# Add the current directory to the path so we can import our modules
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from llm_easy_japanese import db
from llm_easy_japanese.decks import Category, Library
from llm_easy_japanese.flashcards import FlashcardSession
from llm_easy_japanese.progress import (
    PHRASES_SECTION,
    VOCABULARY_SECTION,
    CardMode,
    FilterMode,
    UserProgress,
    category_menu_key,
    group_menu_key,
)

# Check for debug mode
DEBUG = os.environ.get("DEBUG", "0") == "1"

CARD_ACTIONS = ("next", "previous", "correct", "wrong")


def _tree_to_dict(categories: "tuple[Category, ...]", progress: UserProgress) -> List[Dict[str, Any]]:
    result: List[Dict[str, Any]] = []
    for category in categories:
        groups: List[Dict[str, Any]] = []
        for group in category.groups:
            entry: Dict[str, Any] = {
                "name": group.name,
                "card_count": group.card_count(),
                "has_sub_groups": group.has_sub_groups,
            }
            if group.has_sub_groups:
                entry["expanded"] = progress.is_menu_expanded(group_menu_key(category.name, group.name))
                entry["sub_groups"] = [
                    {"name": sub.name, "card_count": len(sub.cards)} for sub in group.sub_groups
                ]
            groups.append(entry)
        result.append({
            "name": category.name,
            "card_count": category.card_count(),
            "expanded": progress.is_menu_expanded(category_menu_key(category.name)),
            "groups": groups,
        })
    return result


def _path_from(data: Dict[str, Any]) -> Optional[tuple]:
    category = data.get("category")
    group = data.get("group")
    if not category or not group:
        return None
    return category, group, data.get("sub_group") or None


def create_app(store: Optional[Any] = None, library: Optional[Library] = None) -> Flask:
    """Build the Flask app around a preference store and deck library."""
    app = Flask(__name__)
    progress = UserProgress(store if store is not None else db.open_store())
    decks = library if library is not None else Library.default()

    def open_session(category: str, group: str, sub_group: Optional[str]) -> FlashcardSession:
        return FlashcardSession.open(progress, decks, category, group, sub_group)

    @app.route('/api/decks')
    def api_decks() -> Any:
        """Both deck hierarchies with menu expansion state."""
        try:
            return jsonify({
                'status': 'success',
                'phrases': {
                    'expanded': progress.is_menu_expanded(PHRASES_SECTION),
                    'categories': _tree_to_dict(decks.phrases.load(), progress),
                },
                'vocabulary': {
                    'expanded': progress.is_menu_expanded(VOCABULARY_SECTION),
                    'categories': _tree_to_dict(decks.vocabulary.load(), progress),
                },
            })
        except Exception as e:
            if DEBUG:
                print(f"Error loading decks: {e}")
                traceback.print_exc()
            return jsonify({'status': 'error', 'message': str(e)}), 500

    @app.route('/api/menu', methods=['POST'])
    def api_menu() -> Any:
        data = request.get_json(silent=True) or {}
        key = data.get('key')
        if not key or not isinstance(key, str):
            return jsonify({'status': 'error', 'message': 'Missing menu key'}), 400
        try:
            progress.set_menu_expanded(key, bool(data.get('expanded')))
            return jsonify({'status': 'success', 'key': key, 'expanded': progress.is_menu_expanded(key)})
        except Exception as e:
            if DEBUG:
                print(f"Error updating menu {key}: {e}")
                traceback.print_exc()
            return jsonify({'status': 'error', 'message': str(e)}), 500

    @app.route('/api/cards')
    def api_cards() -> Any:
        """Current card of a collection under the active filter."""
        path = _path_from(request.args)
        if path is None:
            return jsonify({'status': 'error', 'message': 'category and group are required'}), 400
        try:
            study = open_session(*path)
            return jsonify({'status': 'success', 'session': study.to_dict()})
        except Exception as e:
            if DEBUG:
                print(f"Error opening collection: {e}")
                traceback.print_exc()
            return jsonify({'status': 'error', 'message': str(e)}), 500

    @app.route('/api/cards/<action>', methods=['POST'])
    def api_card_action(action: str) -> Any:
        """Navigate or grade the current card of a collection."""
        if action not in CARD_ACTIONS:
            return jsonify({'status': 'error', 'message': f'Unknown action: {action}'}), 404
        path = _path_from(request.get_json(silent=True) or {})
        if path is None:
            return jsonify({'status': 'error', 'message': 'category and group are required'}), 400
        try:
            study = open_session(*path)
            if action == 'next':
                study.advance()
            elif action == 'previous':
                study.retreat()
            elif action == 'correct':
                study.mark_correct()
            else:
                study.mark_wrong()
            return jsonify({'status': 'success', 'session': study.to_dict()})
        except Exception as e:
            if DEBUG:
                print(f"Error on card action {action}: {e}")
                traceback.print_exc()
            return jsonify({'status': 'error', 'message': str(e)}), 500

    @app.route('/api/settings', methods=['GET', 'POST'])
    def api_settings() -> Any:
        if request.method == 'POST':
            data = request.get_json(silent=True) or {}
            try:
                if 'filter_mode' in data:
                    progress.set_filter_mode(FilterMode[data['filter_mode']])
                if 'card_mode' in data:
                    progress.set_card_mode(CardMode[data['card_mode']])
            except (KeyError, TypeError) as e:
                return jsonify({'status': 'error', 'message': f'Invalid mode: {e}'}), 400
        return jsonify({
            'status': 'success',
            'filter_mode': progress.get_filter_mode().name,
            'card_mode': progress.get_card_mode().name,
        })

    @app.route('/api/settings/reset_positions', methods=['POST'])
    def api_reset_positions() -> Any:
        try:
            removed = progress.reset_all_positions()
            return jsonify({'status': 'success', 'removed': removed})
        except Exception as e:
            if DEBUG:
                print(f"Error resetting positions: {e}")
                traceback.print_exc()
            return jsonify({'status': 'error', 'message': str(e)}), 500

    @app.route('/api/settings/reset_progress', methods=['POST'])
    def api_reset_progress() -> Any:
        try:
            removed = progress.reset_all_progress()
            return jsonify({'status': 'success', 'removed': removed})
        except Exception as e:
            if DEBUG:
                print(f"Error resetting progress: {e}")
                traceback.print_exc()
            return jsonify({'status': 'error', 'message': str(e)}), 500

    return app


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Easy Japanese flashcards')
    parser.add_argument('--host', default='127.0.0.1', help='Host IP to bind to (default: 127.0.0.1)')
    parser.add_argument('--port', type=int, default=5000, help='Port to bind to (default: 5000)')
    parser.add_argument('--db', help='Preference database path (default: $EASY_JP_DB or easy_japanese.db)')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    args = parser.parse_args()

    if args.debug:
        DEBUG = True

    try:
        store = db.open_store(args.db)
        print(f"✅ Preferences loaded from {store.db_path}")
    except Exception as e:
        print(f"❌ Database initialization failed: {str(e)}")
        sys.exit(1)

    library = Library.default()
    try:
        library.phrases.load()
        library.vocabulary.load()
    except FileNotFoundError as e:
        print(f"❌ Data file not found: {e.filename}")
        sys.exit(1)

    print(f"🚀 Starting server on http://{args.host}:{args.port}")
    create_app(store, library).run(debug=DEBUG, host=args.host, port=args.port)
