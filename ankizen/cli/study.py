"""Command line front end for decks, cards and daily study."""

from __future__ import annotations

import asyncio
import logging
import logging.handlers
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ankizen.application_services.study.study_service import StudyService
from ankizen.domain.analytics.events.analytics_events import LeechDetectedEvent
from ankizen.domain.learning.models.learning_models import Card
from ankizen.domain.shared.models import Grade
from ankizen.domain.shared.services import DomainServiceError
from ankizen.infrastructure.config.settings import get_settings
from ankizen.infrastructure.database.database import DatabaseManager, SqlStudyRepository

console = Console()


def _build_service(db_path: Path) -> StudyService:
    service = StudyService(SqlStudyRepository(DatabaseManager(db_path)))

    def notify_leech(event: LeechDetectedEvent) -> None:
        console.print(
            f"[yellow]⚠️  '{event.front}' is now a leech and was moved out of "
            f"your study queue[/yellow]"
        )

    service.event_bus.subscribe(LeechDetectedEvent, notify_leech)
    return service


def _service(ctx: click.Context) -> StudyService:
    service: StudyService = ctx.obj["service"]
    return service


def _card_table(title: str, cards: list[Card]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Front")
    table.add_column("Translation")
    table.add_column("Due")
    table.add_column("Interval", justify="right")
    table.add_column("Ease", justify="right")
    for card in cards:
        table.add_row(
            card.id,
            card.front,
            card.translation,
            card.due_date.isoformat(),
            str(card.interval),
            f"{card.ease_factor:.2f}",
        )
    return table


def _configure_logging(level: str, log_file: str, verbose: bool) -> None:
    handlers: list[logging.Handler] = [
        RichHandler(rich_tracebacks=True, console=Console(stderr=True))
    ]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if verbose else level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )


@click.group()
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="SQLite database file (default: ANKIZEN_DATABASE_PATH)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version="0.1.0", prog_name="ankizen")
@click.pass_context
def cli(ctx: click.Context, db_path: Path | None, verbose: bool) -> None:
    """Spaced-repetition flashcard trainer."""
    settings = get_settings()
    _configure_logging(settings.log_level, settings.log_file, verbose)
    ctx.ensure_object(dict)
    ctx.obj["service"] = _build_service(db_path or Path(settings.database_path))


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database tables."""
    _service(ctx)
    console.print("[green]✅ Database ready[/green]")


@cli.command("add-deck")
@click.argument("name")
@click.option("--new-per-day", type=int, default=None, help="New cards per day")
@click.option("--max-reviews", type=int, default=None, help="Max reviews per day")
@click.pass_context
def add_deck(
    ctx: click.Context, name: str, new_per_day: int | None, max_reviews: int | None
) -> None:
    """Create a deck."""
    config = {}
    if new_per_day is not None:
        config["new_cards_per_day"] = new_per_day
    if max_reviews is not None:
        config["max_reviews_per_day"] = max_reviews
    deck = _service(ctx).create_deck(name, **config)
    console.print(f"[green]✅ Created deck {deck.name} ({deck.id})[/green]")


@cli.command()
@click.pass_context
def decks(ctx: click.Context) -> None:
    """List decks with today's queue sizes."""
    service = _service(ctx)
    table = Table(title="Decks")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("New", justify="right")
    table.add_column("Due", justify="right")
    for deck in service.repository.list_decks():
        queue = service.get_study_queue(deck.id)
        table.add_row(
            deck.id, deck.name, str(len(queue.new_cards)), str(len(queue.due_cards))
        )
    console.print(table)


@cli.command("add-card")
@click.argument("deck_id")
@click.argument("front")
@click.option("--reading", default="", help="Pronunciation or reading")
@click.option("--translation", default="", help="Meaning")
@click.option("--notes", default=None, help="Free-form notes")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.pass_context
def add_card(
    ctx: click.Context,
    deck_id: str,
    front: str,
    reading: str,
    translation: str,
    notes: str | None,
    tags: tuple[str, ...],
) -> None:
    """Add a card to a deck."""
    try:
        card = _service(ctx).add_card(deck_id, front, reading, translation, notes, tags)
    except DomainServiceError as e:
        raise click.ClickException(str(e)) from e
    console.print(f"[green]✅ Added card {card.id}[/green]")


@cli.command("edit-card")
@click.argument("card_id")
@click.option("--front", default=None, help="New word or phrase")
@click.option("--reading", default=None, help="New pronunciation or reading")
@click.option("--translation", default=None, help="New meaning")
@click.option("--notes", default=None, help="New notes")
@click.option("--tag", "tags", multiple=True, help="Replace tags (repeatable)")
@click.pass_context
def edit_card(
    ctx: click.Context,
    card_id: str,
    front: str | None,
    reading: str | None,
    translation: str | None,
    notes: str | None,
    tags: tuple[str, ...],
) -> None:
    """Edit a card's content without touching its schedule."""
    try:
        card = _service(ctx).update_card(
            card_id,
            front=front,
            reading=reading,
            translation=translation,
            notes=notes,
            tags=tags or None,
        )
    except DomainServiceError as e:
        raise click.ClickException(str(e)) from e
    console.print(f"[green]✅ Updated card {card.id}[/green]")


@cli.command()
@click.argument("deck_id")
@click.pass_context
def queue(ctx: click.Context, deck_id: str) -> None:
    """Show today's study queue for a deck."""
    try:
        study_queue = _service(ctx).get_study_queue(deck_id)
    except DomainServiceError as e:
        raise click.ClickException(str(e)) from e
    console.print(_card_table("New cards", study_queue.new_cards))
    console.print(_card_table("Due cards", study_queue.due_cards))


@cli.command()
@click.argument("card_id")
@click.argument("grade", type=click.Choice([g.value for g in Grade]))
@click.pass_context
def review(ctx: click.Context, card_id: str, grade: str) -> None:
    """Grade a card."""
    result = asyncio.run(_service(ctx).review_card(card_id, grade))
    if not result.success or result.card is None:
        raise click.ClickException(result.error_message or "Review failed")
    console.print(
        f"[green]Next review {result.card.due_date.isoformat()} "
        f"(in {result.card.interval} days)[/green]"
    )


@cli.command()
@click.argument("deck_id")
@click.confirmation_option(prompt="Reset all progress and statistics of this deck?")
@click.pass_context
def reset(ctx: click.Context, deck_id: str) -> None:
    """Reset a deck's progress to new."""
    try:
        asyncio.run(_service(ctx).reset_deck_progress(deck_id))
    except DomainServiceError as e:
        raise click.ClickException(str(e)) from e
    console.print("[green]✅ Deck progress reset[/green]")


@cli.command("suspend")
@click.argument("card_id")
@click.pass_context
def suspend_card(ctx: click.Context, card_id: str) -> None:
    """Suspend a card."""
    try:
        _service(ctx).suspend_card(card_id)
    except DomainServiceError as e:
        raise click.ClickException(str(e)) from e
    console.print("[green]Card suspended[/green]")


@cli.command("unsuspend")
@click.argument("card_id")
@click.pass_context
def unsuspend_card(ctx: click.Context, card_id: str) -> None:
    """Unsuspend a card and make it due today."""
    try:
        _service(ctx).unsuspend_card(card_id)
    except DomainServiceError as e:
        raise click.ClickException(str(e)) from e
    console.print("[green]Card unsuspended[/green]")


@cli.command("bury")
@click.argument("card_id")
@click.pass_context
def bury_card(ctx: click.Context, card_id: str) -> None:
    """Bury a card until tomorrow."""
    try:
        _service(ctx).bury_card(card_id)
    except DomainServiceError as e:
        raise click.ClickException(str(e)) from e
    console.print("[green]Card buried until tomorrow[/green]")


@cli.command()
@click.option("--deck", "deck_id", default=None, help="Limit to one deck")
@click.option("--days", default=30, show_default=True, help="Activity window")
@click.pass_context
def stats(ctx: click.Context, deck_id: str | None, days: int) -> None:
    """Show study statistics."""
    try:
        statistics = _service(ctx).deck_statistics(deck_id, days)
    except DomainServiceError as e:
        raise click.ClickException(str(e)) from e

    console.print(f"[bold]Cards:[/bold] {statistics.total_cards}")
    for status, count in statistics.status_counts.items():
        console.print(f"  {status.value}: {count}")
    console.print(f"[bold]Reviews:[/bold] {statistics.total_reviews}")
    console.print(
        f"[bold]Streak:[/bold] {statistics.current_streak} days "
        f"(longest {statistics.longest_streak})"
    )

    table = Table(title="Intervals")
    table.add_column("Days")
    table.add_column("Cards", justify="right")
    for label, count in statistics.interval_distribution.items():
        table.add_row(label, str(count))
    console.print(table)


def main() -> None:
    """Entry point for the ankizen command."""
    cli(obj={})


if __name__ == "__main__":
    main()
