from contextlib import contextmanager
from typing import Any, Iterator, Optional

import click
import llm  # type: ignore

from . import db
from .decks import Category, Library, is_phrase_path
from .flashcards import FlashcardSession
from .progress import CardMode, FilterMode, UserProgress

FILTER_CHOICES = [mode.name for mode in FilterMode]
CARD_MODE_CHOICES = [mode.name for mode in CardMode]

FILTER_LABELS = {
    FilterMode.ALL: "All Questions",
    FilterMode.WRONG_ONLY: "Wrong Only",
    FilterMode.WRONG_AND_UNSEEN: "Wrong + Unseen",
}


@contextmanager
def _open_progress() -> Iterator[UserProgress]:
    """Progress over the configured store, closed when the command ends."""
    store = db.open_store()
    try:
        yield UserProgress(store)
    finally:
        store.close()


def _echo_tree(title: str, categories: "tuple[Category, ...]", progress: UserProgress) -> None:
    click.echo(title)
    for category in categories:
        click.echo(f"  {category.name} ({category.card_count()} cards)")
        for group in category.groups:
            if group.has_sub_groups:
                click.echo(f"    {group.name}")
                for sub in group.sub_groups:
                    summary = progress.collection_summary(category.name, group.name, sub.name, sub.cards)
                    click.echo(f"      {sub.name}: {summary['total']} cards, "
                               f"{summary['correct']} correct, {summary['wrong']} wrong")
            else:
                summary = progress.collection_summary(category.name, group.name, None, group.cards)
                click.echo(f"    {group.name}: {summary['total']} cards, "
                           f"{summary['correct']} correct, {summary['wrong']} wrong")


def _echo_card(study: FlashcardSession) -> None:
    card = study.current_card
    if card is None:
        click.echo("No cards in this collection.")
        return
    status = study.status_of(card).name.lower()
    click.echo(f"\n[{study.current_index + 1}/{len(study.cards)}] ({status})")
    if study.show_glyph() and card.glyph:
        click.echo(f"  {card.glyph}")
    click.echo(f"  {study.front_text()}")
    if study.is_flipped:
        click.echo(f"  → {study.back_text()}")


@llm.hookimpl  # type: ignore[misc]
def register_commands(cli: Any) -> None:

    @cli.command("jp-decks")  # type: ignore[misc]
    @click.option("--dataset", type=click.Choice(["phrases", "vocabulary", "all"]), default="all",
                  help="Which deck to list")
    def decks(dataset: str) -> None:
        """List the phrase and vocabulary decks with progress counts."""
        library = Library.default()
        with _open_progress() as progress:
            if dataset in ("phrases", "all"):
                _echo_tree("Phrases", library.phrases.load(), progress)
            if dataset in ("vocabulary", "all"):
                _echo_tree("Vocabulary", library.vocabulary.load(), progress)

    @cli.command("jp-study")  # type: ignore[misc]
    @click.argument("category")
    @click.argument("group")
    @click.argument("sub_group", required=False)
    def study(category: str, group: str, sub_group: Optional[str]) -> None:
        """Study one collection interactively."""
        with _open_progress() as progress:
            session = FlashcardSession.open(progress, Library.default(), category, group, sub_group)
            if not session.cards:
                click.echo(f"No cards found for {session.collection_key}.")
                return
            if session.is_filtered_fallback:
                click.echo("No cards match the current filter, showing all cards.")

            while True:
                _echo_card(session)
                action = click.prompt(
                    "[f]lip [n]ext [p]revious [c]orrect [w]rong [q]uit",
                    type=click.Choice(["f", "n", "p", "c", "w", "q"]),
                    show_choices=False,
                )
                if action == "q":
                    break
                if action == "f":
                    session.flip()
                elif action == "n":
                    session.advance()
                elif action == "p":
                    session.retreat()
                elif action == "c":
                    session.mark_correct()
                elif action == "w":
                    session.mark_wrong()

    @cli.command("jp-progress")  # type: ignore[misc]
    @click.argument("category")
    @click.argument("group")
    @click.argument("sub_group", required=False)
    def progress_cmd(category: str, group: str, sub_group: Optional[str]) -> None:
        """Show correct/wrong/unseen counts for one collection."""
        if is_phrase_path(category, group):
            sub_group = None
        cards = Library.default().cards_for_path(category, group, sub_group)
        with _open_progress() as progress:
            summary = progress.collection_summary(category, group, sub_group, cards)
        click.echo(f"Total: {summary['total']}")
        click.echo(f"Correct: {summary['correct']}")
        click.echo(f"Wrong: {summary['wrong']}")
        click.echo(f"Unseen: {summary['unseen']}")

    @cli.command("jp-filter")  # type: ignore[misc]
    @click.argument("mode", required=False, type=click.Choice(FILTER_CHOICES, case_sensitive=False))
    def filter_mode(mode: Optional[str]) -> None:
        """Show or set which cards are studied."""
        with _open_progress() as progress:
            if mode:
                progress.set_filter_mode(FilterMode[mode.upper()])
            current = progress.get_filter_mode()
        click.echo(f"Filter mode: {current.name} ({FILTER_LABELS[current]})")

    @cli.command("jp-card-mode")  # type: ignore[misc]
    @click.argument("mode", required=False, type=click.Choice(CARD_MODE_CHOICES, case_sensitive=False))
    def card_mode(mode: Optional[str]) -> None:
        """Show or set the card face order (RECALL: English first, READ: romaji first)."""
        with _open_progress() as progress:
            if mode:
                progress.set_card_mode(CardMode[mode.upper()])
            current = progress.get_card_mode()
        click.echo(f"Card mode: {current.name}")

    @cli.command("jp-menu")  # type: ignore[misc]
    @click.argument("key")
    @click.option("--expand/--collapse", default=None, help="Set the expansion flag")
    def menu(key: str, expand: Optional[bool]) -> None:
        """Show or set a menu expansion flag (e.g. vocabulary_section)."""
        with _open_progress() as progress:
            if expand is not None:
                progress.set_menu_expanded(key, expand)
            state = "expanded" if progress.is_menu_expanded(key) else "collapsed"
        click.echo(f"{key}: {state}")

    @cli.command("jp-reset-positions")  # type: ignore[misc]
    @click.option("--yes", is_flag=True, help="Do not ask for confirmation")
    def reset_positions(yes: bool) -> None:
        """Reset the current position in every collection."""
        if not yes and not click.confirm("Reset your position in all collections? Correct/wrong marks are kept."):
            click.echo("Cancelled.")
            return
        with _open_progress() as progress:
            removed = progress.reset_all_positions()
        click.echo(f"Reset {removed} saved positions.")

    @cli.command("jp-reset-progress")  # type: ignore[misc]
    @click.option("--yes", is_flag=True, help="Do not ask for confirmation")
    def reset_progress(yes: bool) -> None:
        """Clear every correct/wrong mark."""
        if not yes and not click.confirm("Clear all correct/wrong marks? This cannot be undone."):
            click.echo("Cancelled.")
            return
        with _open_progress() as progress:
            removed = progress.reset_all_progress()
        click.echo(f"Cleared {removed} card statuses.")


@click.group()
def cli() -> None:
    """Easy Japanese flashcards."""


register_commands(cli)
