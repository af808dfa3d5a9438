from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Sequence

from .decks import Card, Library, is_phrase_path
from .progress import (
    CardMode,
    CardStatus,
    FilterMode,
    UserProgress,
    collection_key,
    generate_card_id,
)


def filter_cards(cards: Sequence[Card], mode: FilterMode,
                 status_of: Callable[[Card], CardStatus]) -> List[Card]:
    """Keep the cards the filter mode selects, in their original order."""
    if mode == FilterMode.WRONG_ONLY:
        return [card for card in cards if status_of(card) == CardStatus.WRONG]
    if mode == FilterMode.WRONG_AND_UNSEEN:
        return [card for card in cards if status_of(card) in (CardStatus.WRONG, CardStatus.UNSEEN)]
    return list(cards)


class FlashcardSession:
    """Study state for one collection: filtered cards, cursor and face."""

    def __init__(self, progress: UserProgress, cards: Sequence[Card], category: str,
                 group: str, sub_group: Optional[str] = None) -> None:
        self.progress = progress
        self.all_cards = tuple(cards)
        self.category = category
        self.group = group
        self.sub_group = sub_group
        self.collection_key = collection_key(category, group, sub_group)
        self.cards: List[Card] = []
        self.current_index = 0
        self.is_flipped = False
        self.is_filtered_fallback = False
        self.card_mode = CardMode.RECALL
        self.reload()

    @classmethod
    def open(cls, progress: UserProgress, library: Library, category: str,
             group: str, sub_group: Optional[str] = None) -> "FlashcardSession":
        if is_phrase_path(category, group):
            sub_group = None
        cards = library.cards_for_path(category, group, sub_group)
        return cls(progress, cards, category, group, sub_group)

    def card_id(self, card: Card) -> str:
        return generate_card_id(self.category, self.group, self.sub_group, card.primary_text)

    def status_of(self, card: Card) -> CardStatus:
        return self.progress.get_card_status(self.card_id(card))

    def reload(self) -> None:
        """Re-apply the stored filter mode and resume position."""
        self.card_mode = self.progress.get_card_mode()
        filtered = filter_cards(self.all_cards, self.progress.get_filter_mode(), self.status_of)
        if not filtered:
            # Never show an empty deck
            self.cards = list(self.all_cards)
            self.current_index = 0
            self.is_filtered_fallback = bool(self.all_cards)
        else:
            self.cards = filtered
            self.current_index = self._resume_index()
            self.is_filtered_fallback = False
        self.is_flipped = False

    def _resume_index(self) -> int:
        # The card last moved onto wins over the raw index
        anchor = self.progress.get_current_card(self.collection_key)
        if anchor is not None:
            for index, card in enumerate(self.cards):
                if self.card_id(card) == anchor:
                    return index
        saved = self.progress.get_current_position(self.collection_key)
        return max(0, min(saved, len(self.cards) - 1))

    @property
    def current_card(self) -> Optional[Card]:
        if not self.cards:
            return None
        return self.cards[self.current_index]

    def front_text(self) -> str:
        card = self.current_card
        if card is None:
            return ""
        if self.card_mode == CardMode.READ:
            return card.secondary_text
        return card.primary_text

    def back_text(self) -> str:
        card = self.current_card
        if card is None:
            return ""
        if self.card_mode == CardMode.READ:
            return card.primary_text
        return card.secondary_text

    def show_glyph(self) -> bool:
        return self.card_mode == CardMode.RECALL

    def flip(self) -> None:
        self.is_flipped = not self.is_flipped

    def _move_to(self, index: int) -> None:
        self.progress.set_current_position(self.collection_key, index)
        self.progress.set_current_card(self.collection_key, self.card_id(self.cards[index]))
        self.current_index = index
        self.is_flipped = False

    def advance(self) -> None:
        if not self.cards:
            return
        self._move_to((self.current_index + 1) % len(self.cards))

    def retreat(self) -> None:
        if not self.cards:
            return
        if self.current_index == 0:
            self._move_to(len(self.cards) - 1)
        else:
            self._move_to(self.current_index - 1)

    def _mark(self, status: CardStatus) -> None:
        card = self.current_card
        if card is None:
            return
        self.progress.set_card_status(self.card_id(card), status)
        self.advance()

    def mark_correct(self) -> None:
        self._mark(CardStatus.CORRECT)

    def mark_wrong(self) -> None:
        self._mark(CardStatus.WRONG)

    def to_dict(self) -> Dict[str, Any]:
        card = self.current_card
        current: Optional[Dict[str, Any]] = None
        if card is not None:
            current = {
                "id": self.card_id(card),
                "glyph": card.glyph if self.show_glyph() else "",
                "front": self.front_text(),
                "back": self.back_text(),
                "status": self.status_of(card).name,
            }
        return {
            "collection": self.collection_key,
            "category": self.category,
            "group": self.group,
            "sub_group": self.sub_group,
            "total": len(self.cards),
            "index": self.current_index,
            "card_mode": self.card_mode.name,
            "filtered_fallback": self.is_filtered_fallback,
            "card": current,
        }
