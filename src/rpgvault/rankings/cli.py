"""Command-line interface for rpgvault rankings.

Built with Typer for commands and Rich for output.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import get_config
from .db.schemas import AdventureType, Genre, ItemType, RpgItemCreate, Theme
from .errors import InvalidArgumentError, NotFoundError, ReassignmentFailedError
from .logs import setup_logging
from .reviews.schemas import ReviewCreate
from .services import Services, build_services

# Create the main app
app = typer.Typer(
    name="rpgvault",
    help="Rate, rank and browse tabletop RPG products.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
review_app = typer.Typer(help="Manage item reviews.")
app.add_typer(review_app, name="review")

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def get_services() -> Services:
    """Build the components against the configured database."""
    return build_services()


def format_ranking_table(items: list, title: str = "Rankings") -> Table:
    """Create a rich table for displaying ranked items."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="bold yellow")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Genre", style="green")
    table.add_column("Type")
    table.add_column("Avg", justify="right")
    table.add_column("Bayesian", justify="right")
    table.add_column("Reviews", justify="right")

    for item in items:
        table.add_row(
            str(item.rank_position) if item.rank_position else "-",
            item.title,
            item.genre,
            item.item_type,
            f"{item.average_rating:.1f}",
            f"{item.bayesian_rating:.2f}",
            str(item.review_count),
        )

    return table


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging for every command."""
    setup_logging("DEBUG" if verbose else get_config().log_level)


# ============================================================================
# Setup and Catalogue Commands
# ============================================================================


@app.command("init-db")
def init_db() -> None:
    """Create the database tables."""
    config = get_config()
    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)

    services = get_services()
    services.db.create_tables()
    print_success(f"Database ready at {services.db.db_path}")


@app.command("add-item")
def add_item(
    title: str = typer.Argument(..., help="Product title"),
    genre: Genre = typer.Option(Genre.FANTASY, "--genre", "-g", help="Genre"),
    item_type: ItemType = typer.Option(ItemType.ADVENTURE, "--type", "-t", help="Product type"),
    system: Optional[str] = typer.Option(None, "--system", "-s", help="RPG system"),
    publisher: Optional[str] = typer.Option(None, "--publisher", "-p", help="Publisher"),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Publication year"),
    theme: Optional[Theme] = typer.Option(None, "--theme", help="Theme"),
    adventure_type: Optional[AdventureType] = typer.Option(
        None, "--adventure-type", "-a", help="Adventure format"
    ),
) -> None:
    """Add a product to the catalogue."""
    services = get_services()
    item = services.items.add_item(
        RpgItemCreate(
            title=title,
            genre=genre,
            item_type=item_type,
            system=system,
            publisher=publisher,
            year=year,
            theme=theme,
            adventure_type=adventure_type,
        )
    )
    console.print(Panel(
        f"[bold]{item.title}[/bold]\n"
        f"ID: {item.id}\n"
        f"{item.genre} / {item.item_type}",
        title="[green]Item Added[/green]",
    ))


@app.command("list-items")
def list_items(
    limit: int = typer.Option(20, "--limit", "-l", help="Max items to show"),
) -> None:
    """List catalogue items with their aggregates."""
    services = get_services()
    items = services.items.list_items()

    if not items:
        console.print("[dim]No items found.[/dim]")
        return

    console.print(format_ranking_table(items[:limit], title="Catalogue"))
    if len(items) > limit:
        console.print(f"[dim]Showing {limit} of {len(items)} items[/dim]")


@app.command("delete-item")
def delete_item(
    item_id: str = typer.Argument(..., help="Item ID"),
) -> None:
    """Delete a product and its reviews."""
    services = get_services()
    if services.items.delete_item(item_id):
        print_success(f"Item {item_id} deleted")
    else:
        print_error(f"Item not found: {item_id}")
        raise typer.Exit(1)


# ============================================================================
# Review Commands
# ============================================================================


@review_app.command("add")
def review_add(
    item_id: str = typer.Argument(..., help="Item ID"),
    user_id: str = typer.Argument(..., help="Reviewer ID"),
    rating: float = typer.Argument(..., help="Rating (1-10, one decimal)"),
    text: Optional[str] = typer.Option(None, "--text", "-t", help="Review text"),
) -> None:
    """Write a new review."""
    services = get_services()

    try:
        review = services.reviews.create_review(
            ReviewCreate(item_id=item_id, user_id=user_id, rating=rating, review_text=text)
        )
    except (NotFoundError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Review {review.id} added ({review.rating:.1f})")


@review_app.command("rate")
def review_rate(
    item_id: str = typer.Argument(..., help="Item ID"),
    user_id: str = typer.Argument(..., help="Reviewer ID"),
    rating: float = typer.Argument(..., help="Rating (1-10, one decimal)"),
) -> None:
    """Create or update a reviewer's rating of an item."""
    services = get_services()

    try:
        review = services.reviews.rate(item_id, user_id, rating)
    except (NotFoundError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    item = services.db.get_item(item_id)
    console.print(
        f"[green]Rated[/green] {item.title}: {review.rating:.1f} "
        f"(avg {item.average_rating:.2f}, bayesian {item.bayesian_rating:.2f}, "
        f"{item.review_count} reviews)"
    )


@review_app.command("delete")
def review_delete(
    review_id: str = typer.Argument(..., help="Review ID"),
) -> None:
    """Delete a review."""
    services = get_services()
    if services.reviews.delete_review(review_id):
        print_success(f"Review {review_id} deleted")
    else:
        print_error(f"Review not found: {review_id}")
        raise typer.Exit(1)


@review_app.command("list")
def review_list(
    item_id: str = typer.Argument(..., help="Item ID"),
) -> None:
    """List an item's reviews."""
    services = get_services()
    reviews = services.reviews.list_reviews_for_item(item_id)

    if not reviews:
        console.print("[dim]No reviews yet.[/dim]")
        return

    table = Table(title="Reviews", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Reviewer", style="cyan")
    table.add_column("Rating", justify="right")
    table.add_column("Review", max_width=50)
    for review in reviews:
        table.add_row(review.id, review.user_id, f"{review.rating:.1f}", review.review_text or "")
    console.print(table)


# ============================================================================
# Ranking Commands
# ============================================================================


@app.command()
def recompute(
    item_id: Optional[str] = typer.Argument(None, help="Item ID (omit with --all)"),
    all_items: bool = typer.Option(False, "--all", help="Recompute every item"),
) -> None:
    """Recompute rating aggregates."""
    services = get_services()

    if all_items:
        services.aggregator.prior.refresh()
        count = services.aggregator.recompute_all()
        print_success(f"Recomputed {count} items")
        return

    if not item_id:
        print_error("Give an item ID or --all")
        raise typer.Exit(1)

    aggregate = services.aggregator.recompute(item_id)
    if aggregate is None:
        print_error(f"Item not found: {item_id}")
        raise typer.Exit(1)
    console.print(f"[bold]{item_id}[/bold]")
    console.print(
        f"Reviews: {aggregate.review_count}  "
        f"Avg: {aggregate.average_rating:.2f}  "
        f"Bayesian: {aggregate.bayesian_rating:.3f}"
    )


@app.command()
def reassign() -> None:
    """Reassign global rank positions now."""
    services = get_services()
    try:
        ranked = services.assigner.reassign_all()
    except ReassignmentFailedError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Ranked {ranked} items")


@app.command()
def maintain() -> None:
    """Run one full maintenance cycle."""
    services = get_services()
    result = services.maintenance.run_cycle()

    prior = f"{result.prior_mean:.3f}" if result.prior_mean is not None else "unavailable"
    console.print(Panel(
        f"Prior mean: {prior}\n"
        f"Ranked: {result.ranked}\n"
        f"Recomputed: {result.recomputed}\n"
        f"Retried: {result.retried}",
        title="[green]Maintenance[/green]" if result.success else "[red]Maintenance[/red]",
    ))
    for error in result.errors:
        print_error(error)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def rankings(
    category: str = typer.Argument("overall", help="Category ID"),
    subcategory: Optional[str] = typer.Option(None, "--sub", "-s", help="Subcategory ID"),
    limit: int = typer.Option(20, "--limit", "-l", help="Page size"),
    offset: int = typer.Option(0, "--offset", "-o", help="Items to skip"),
) -> None:
    """Show a page of a category ranking."""
    services = get_services()

    try:
        page = services.rankings.query(category, subcategory, limit=limit, offset=offset)
    except (NotFoundError, InvalidArgumentError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not page.items:
        console.print("[dim]No ranked items in this category.[/dim]")
        return

    title = f"Rankings - {category}" + (f"/{subcategory}" if subcategory else "")
    console.print(format_ranking_table(page.items, title=title))
    console.print(
        f"[dim]Showing {offset + 1}-{offset + len(page.items)} of {page.total_count}"
        f"{' (more available)' if page.has_more else ''}[/dim]"
    )


@app.command()
def categories() -> None:
    """List the category taxonomy."""
    services = get_services()

    table = Table(title="Categories", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Subcategories", style="dim")
    for category in services.index.categories():
        table.add_row(
            category.id,
            category.name,
            ", ".join(sub.id for sub in category.subcategories),
        )
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(5000, "--port", "-p", help="Port"),
    debug: bool = typer.Option(False, "--debug", help="Flask debug mode"),
) -> None:
    """Run the rankings HTTP API."""
    from .api import run_server

    run_server(host=host, port=port, debug=debug, services=get_services())


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
