"""
LLM Easy Japanese Plugin

Japanese vocabulary and phrase flashcards with correct/wrong tracking,
study filters and per-collection resume positions.
"""

from . import db
from . import decks
from . import progress
from . import flashcards
from . import plugin

__version__ = "0.1.0"
__all__ = ["db", "decks", "progress", "flashcards", "plugin"]
