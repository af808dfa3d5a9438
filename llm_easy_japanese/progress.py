from __future__ import annotations
import enum
from typing import Dict, Iterable, Optional, Protocol, Type, TypeVar, List

from .db import DEBUG_MODE

STATUS_PREFIX = "status_"
POSITION_PREFIX = "position_"
CURSOR_PREFIX = "cursor_"
EXPANDED_PREFIX = "expanded_"
FILTER_MODE_KEY = "filter_mode"
CARD_MODE_KEY = "card_mode"

PHRASES_SECTION = "phrases_section"
VOCABULARY_SECTION = "vocabulary_section"


class CardStatus(enum.Enum):
    UNSEEN = "UNSEEN"
    CORRECT = "CORRECT"
    WRONG = "WRONG"


class FilterMode(enum.Enum):
    ALL = "ALL"  # Show all cards
    WRONG_ONLY = "WRONG_ONLY"
    WRONG_AND_UNSEEN = "WRONG_AND_UNSEEN"


class CardMode(enum.Enum):
    RECALL = "RECALL"  # English first
    READ = "READ"  # Romaji first, glyph hidden


class KeyValueStore(Protocol):
    """What the progress layer needs from persistent storage."""

    def get_string(self, key: str, default: str) -> str: ...
    def set_string(self, key: str, value: str) -> None: ...
    def get_int(self, key: str, default: int) -> int: ...
    def set_int(self, key: str, value: int) -> None: ...
    def get_bool(self, key: str, default: bool) -> bool: ...
    def set_bool(self, key: str, value: bool) -> None: ...
    def keys_with_prefix(self, prefix: str) -> List[str]: ...
    def items_with_prefix(self, prefix: str) -> Dict[str, str]: ...
    def remove_keys(self, keys: Iterable[str]) -> int: ...


E = TypeVar("E", bound=enum.Enum)


def _enum_from_name(enum_type: Type[E], name: str, default: E) -> E:
    try:
        return enum_type[name]
    except KeyError:
        if DEBUG_MODE:
            print(f"⚠️ Unknown {enum_type.__name__} '{name}', using {default.name}")
        return default


def generate_card_id(category: str, group: str, sub_group: Optional[str], primary_text: str) -> str:
    """Stable persistence id for a card.

    Two cards in one collection whose English text differs only by case or
    spacing share an id.
    """
    return f"{category}-{group}-{sub_group or 'none'}-{primary_text}".replace(" ", "_").lower()


def collection_key(category: str, group: str, sub_group: Optional[str]) -> str:
    return f"{category}-{group}-{sub_group or ''}"


def category_menu_key(category: str) -> str:
    return f"category_{category}"


def group_menu_key(category: str, group: str) -> str:
    return f"level1_{category}_{group}"


class UserProgress:
    """Card statuses, resume positions and display settings on top of a store."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # Card status

    def get_card_status(self, card_id: str) -> CardStatus:
        name = self.store.get_string(STATUS_PREFIX + card_id, CardStatus.UNSEEN.name)
        return _enum_from_name(CardStatus, name, CardStatus.UNSEEN)

    def set_card_status(self, card_id: str, status: CardStatus) -> None:
        self.store.set_string(STATUS_PREFIX + card_id, status.name)

    def get_all_card_statuses(self) -> Dict[str, CardStatus]:
        statuses: Dict[str, CardStatus] = {}
        for key, name in self.store.items_with_prefix(STATUS_PREFIX).items():
            statuses[key[len(STATUS_PREFIX):]] = _enum_from_name(CardStatus, name, CardStatus.UNSEEN)
        return statuses

    # Position per collection

    def get_current_position(self, key: str) -> int:
        return self.store.get_int(POSITION_PREFIX + key, 0)

    def set_current_position(self, key: str, position: int) -> None:
        self.store.set_int(POSITION_PREFIX + key, position)

    def get_current_card(self, key: str) -> Optional[str]:
        """Id of the card the cursor was last moved onto, if any."""
        return self.store.get_string(CURSOR_PREFIX + key, "") or None

    def set_current_card(self, key: str, card_id: str) -> None:
        self.store.set_string(CURSOR_PREFIX + key, card_id)

    def reset_all_positions(self) -> int:
        """Forget the resume position of every collection. Statuses are kept.

        Returns the number of collections whose position was cleared.
        """
        self.store.remove_keys(self.store.keys_with_prefix(CURSOR_PREFIX))
        return self.store.remove_keys(self.store.keys_with_prefix(POSITION_PREFIX))

    # Filter and card mode

    def get_filter_mode(self) -> FilterMode:
        name = self.store.get_string(FILTER_MODE_KEY, FilterMode.ALL.name)
        return _enum_from_name(FilterMode, name, FilterMode.ALL)

    def set_filter_mode(self, mode: FilterMode) -> None:
        self.store.set_string(FILTER_MODE_KEY, mode.name)

    def get_card_mode(self) -> CardMode:
        name = self.store.get_string(CARD_MODE_KEY, CardMode.RECALL.name)
        return _enum_from_name(CardMode, name, CardMode.RECALL)

    def set_card_mode(self, mode: CardMode) -> None:
        self.store.set_string(CARD_MODE_KEY, mode.name)

    def reset_all_progress(self) -> int:
        """Forget every correct/wrong mark. Positions are kept."""
        return self.store.remove_keys(self.store.keys_with_prefix(STATUS_PREFIX))

    # Menu expansion

    def is_menu_expanded(self, menu_key: str) -> bool:
        return self.store.get_bool(EXPANDED_PREFIX + menu_key, False)

    def set_menu_expanded(self, menu_key: str, expanded: bool) -> None:
        self.store.set_bool(EXPANDED_PREFIX + menu_key, expanded)

    def collection_summary(self, category: str, group: str, sub_group: Optional[str],
                           cards: Iterable) -> Dict[str, int]:
        """Count correct, wrong and unseen cards in one collection."""
        statuses = self.get_all_card_statuses()
        summary = {"total": 0, "correct": 0, "wrong": 0, "unseen": 0}
        for card in cards:
            card_id = generate_card_id(category, group, sub_group, card.primary_text)
            status = statuses.get(card_id, CardStatus.UNSEEN)
            summary["total"] += 1
            summary[status.name.lower()] += 1
        return summary
