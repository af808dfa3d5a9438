"""
Deck loading: turns the bundled CSV word lists into a category tree.

Phrases use a flat ``level, glyph, phrase, meaning`` layout and become one
category per level with a single "All" group. Vocabulary uses
``category, group, sub_group, glyph, meaning, pronunciation`` and keeps the
full three-level hierarchy.
"""

from __future__ import annotations

import csv
import os
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .db import DEBUG_MODE

PHRASES_FILE = "phrases.csv"
VOCABULARY_FILE = "vocabulary.csv"
PHRASE_GROUP = "All"

PHRASE_MIN_FIELDS = 4
# Five fields is the legacy vocabulary layout without pronunciation
VOCABULARY_MIN_FIELDS = 5

_PHRASE_LEVEL = re.compile(r"N[1-5]")


@dataclass(frozen=True)
class Card:
    glyph: str
    primary_text: str  # English meaning, front face in recall mode
    secondary_text: str  # Romaji pronunciation


@dataclass(frozen=True)
class SubGroup:
    name: str
    cards: Tuple[Card, ...]


@dataclass(frozen=True)
class DirectCards:
    cards: Tuple[Card, ...]


@dataclass(frozen=True)
class NestedGroups:
    sub_groups: Tuple[SubGroup, ...]


GroupContents = Union[DirectCards, NestedGroups]


@dataclass(frozen=True)
class Group:
    name: str
    contents: GroupContents

    @property
    def has_sub_groups(self) -> bool:
        return isinstance(self.contents, NestedGroups)

    @property
    def cards(self) -> Tuple[Card, ...]:
        if isinstance(self.contents, DirectCards):
            return self.contents.cards
        return ()

    @property
    def sub_groups(self) -> Tuple[SubGroup, ...]:
        if isinstance(self.contents, NestedGroups):
            return self.contents.sub_groups
        return ()

    def card_count(self) -> int:
        if isinstance(self.contents, NestedGroups):
            return sum(len(sub.cards) for sub in self.contents.sub_groups)
        return len(self.contents.cards)


@dataclass(frozen=True)
class Category:
    name: str
    groups: Tuple[Group, ...]

    def card_count(self) -> int:
        return sum(group.card_count() for group in self.groups)


Builder = Callable[[Sequence[Sequence[str]]], Tuple[Category, ...]]


def get_data_dir() -> str:
    default = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")
    return os.environ.get("EASY_JP_DATA", default)


def read_rows(csv_path: str) -> List[List[str]]:
    """Read a CSV file, drop the header row and trim every field."""
    rows: List[List[str]] = []
    with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.reader(f)
        next(reader, None)
        for raw in reader:
            fields = [field.strip() for field in raw]
            if not any(fields):
                continue
            rows.append(fields)
    return rows


def build_phrase_categories(rows: Sequence[Sequence[str]]) -> Tuple[Category, ...]:
    """Build one category per level, each with a single "All" group."""
    levels: Dict[str, List[Card]] = {}
    for fields in rows:
        if len(fields) < PHRASE_MIN_FIELDS:
            continue
        level, glyph, phrase, meaning = fields[:4]
        levels.setdefault(level, []).append(Card(glyph, meaning, phrase))

    return tuple(
        Category(level, (Group(PHRASE_GROUP, DirectCards(tuple(cards))),))
        for level, cards in levels.items()
    )


def build_vocabulary_categories(rows: Sequence[Sequence[str]]) -> Tuple[Category, ...]:
    """Build the category -> group -> sub-group tree from vocabulary rows.

    A group whose rows all leave the sub-group column empty holds its cards
    directly. As soon as one named sub-group exists, cards with an empty
    sub-group in that group are dropped.
    """
    tree: Dict[str, Dict[str, Dict[str, List[Card]]]] = {}
    for fields in rows:
        if len(fields) < VOCABULARY_MIN_FIELDS:
            continue
        category, group, sub_group, glyph, meaning = fields[:5]
        pronunciation = fields[5] if len(fields) > 5 else ""
        (tree.setdefault(category, {})
             .setdefault(group, {})
             .setdefault(sub_group, [])
             .append(Card(glyph, meaning, pronunciation)))

    categories: List[Category] = []
    for category_name, groups in tree.items():
        built_groups: List[Group] = []
        for group_name, buckets in groups.items():
            if list(buckets) == [""]:
                contents: GroupContents = DirectCards(tuple(buckets[""]))
            else:
                contents = NestedGroups(tuple(
                    SubGroup(name, tuple(cards))
                    for name, cards in buckets.items()
                    if name
                ))
                if DEBUG_MODE and "" in buckets:
                    print(f"⚠️ Dropped {len(buckets[''])} cards without sub-group in {category_name}/{group_name}")
            built_groups.append(Group(group_name, contents))
        categories.append(Category(category_name, tuple(built_groups)))
    return tuple(categories)


def cards_for_path(categories: Sequence[Category], category: str, group: str,
                   sub_group: Optional[str] = None) -> Tuple[Card, ...]:
    """Return the cards at a path, or an empty tuple if any part is unknown."""
    cat = next((c for c in categories if c.name == category), None)
    if cat is None:
        return ()
    grp = next((g for g in cat.groups if g.name == group), None)
    if grp is None:
        return ()
    if sub_group is None:
        return grp.cards
    sub = next((s for s in grp.sub_groups if s.name == sub_group), None)
    return sub.cards if sub is not None else ()


class DeckRepository:
    """Loads one CSV data file and caches the built tree."""

    def __init__(self, csv_path: str, builder: Builder) -> None:
        self.csv_path = csv_path
        self.builder = builder
        self._categories: Optional[Tuple[Category, ...]] = None

    def load(self) -> Tuple[Category, ...]:
        if self._categories is None:
            rows = read_rows(self.csv_path)
            self._categories = self.builder(rows)
            if DEBUG_MODE:
                total = sum(c.card_count() for c in self._categories)
                print(f"📚 Loaded {total} cards in {len(self._categories)} categories from {self.csv_path}")
        return self._categories

    def cards_for_path(self, category: str, group: str,
                       sub_group: Optional[str] = None) -> Tuple[Card, ...]:
        return cards_for_path(self.load(), category, group, sub_group)


def phrases_repository(data_dir: Optional[str] = None) -> DeckRepository:
    return DeckRepository(os.path.join(data_dir or get_data_dir(), PHRASES_FILE), build_phrase_categories)


def vocabulary_repository(data_dir: Optional[str] = None) -> DeckRepository:
    return DeckRepository(os.path.join(data_dir or get_data_dir(), VOCABULARY_FILE), build_vocabulary_categories)


def is_phrase_path(category: str, group: str) -> bool:
    return bool(_PHRASE_LEVEL.fullmatch(category)) and group == PHRASE_GROUP


class Library:
    """Both decks, with path resolution to the right one."""

    def __init__(self, phrases: DeckRepository, vocabulary: DeckRepository) -> None:
        self.phrases = phrases
        self.vocabulary = vocabulary

    @classmethod
    def default(cls, data_dir: Optional[str] = None) -> "Library":
        return cls(phrases_repository(data_dir), vocabulary_repository(data_dir))

    def cards_for_path(self, category: str, group: str,
                       sub_group: Optional[str] = None) -> Tuple[Card, ...]:
        if is_phrase_path(category, group):
            # A phrase level has no sub-groups
            return self.phrases.cards_for_path(category, group)
        return self.vocabulary.cards_for_path(category, group, sub_group)
