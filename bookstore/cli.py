import asyncio
import subprocess
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from bookstore.book import Book
from bookstore.config import settings
from bookstore.database import seed_from_json
from bookstore.errors import NotFoundError, ValidationError
from bookstore.mutations import MutationGateway
from bookstore.queries import QueryBuilder
from bookstore.services.http_client import build_async_client
from bookstore.services.summary_enricher import SummaryEnricher
from bookstore.store import CatalogStore, SqliteCatalogStore

APP_NAME = "Bookstore CLI"

console = Console()
app = typer.Typer(help=APP_NAME)


def get_store() -> CatalogStore:
    return SqliteCatalogStore(settings.database_file)


async def _summarize(book: Book) -> str:
    async with build_async_client() as client:
        return await SummaryEnricher(client=client).summarize(book)


@app.command("list")
def cli_list(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter by title or author"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    page_size: Optional[int] = typer.Option(None, "--page-size", help="Books per page"),
):
    """List books one page at a time."""
    result = QueryBuilder(get_store()).search(search, page, page_size)
    if not result.items:
        console.print("No books found.")
        return

    table = Table(title=f"Books (page {result.page}/{result.total_pages})", box=box.SIMPLE)
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Genre")
    for book in result.items:
        table.add_row(str(book.id), book.title, book.author, book.genre or "-")
    console.print(table)
    console.print(f"{result.total} matching book(s).")


@app.command("show")
def cli_show(
    book_id: int = typer.Argument(..., help="Book ID"),
    summary: bool = typer.Option(False, "--summary", help="Also generate an AI summary"),
):
    """Show a single book."""
    try:
        book = MutationGateway(get_store()).get(book_id)
    except NotFoundError as e:
        console.print(f"[bold red]{e}[/]")
        raise typer.Exit(code=1)

    lines = [
        f"Title: {book.title}",
        f"Author: {book.author}",
        f"Genre: {book.genre or '-'}",
    ]
    if book.description:
        lines.append(f"Description: {book.description}")
    console.print(Panel("\n".join(lines), title=f"Book {book.id}"))

    if summary:
        console.print(Panel(asyncio.run(_summarize(book)), title="Summary"))


@app.command("add")
def cli_add(
    title: str = typer.Option(..., "--title", "-t"),
    author: str = typer.Option(..., "--author", "-a"),
    genre: Optional[str] = typer.Option(None, "--genre", "-g"),
):
    """Add a new book."""
    try:
        book = MutationGateway(get_store()).create(Book(title=title, author=author, genre=genre))
    except ValidationError as e:
        for field, message in e.errors.items():
            console.print(f"[bold red]{field}:[/] {message}")
        raise typer.Exit(code=1)
    console.print(f"Added book {book.id}: {book.title} by {book.author}")


@app.command("remove")
def cli_remove(book_id: int = typer.Argument(..., help="Book ID")):
    """Delete a book."""
    try:
        MutationGateway(get_store()).delete(book_id)
    except NotFoundError as e:
        console.print(f"[bold red]{e}[/]")
        raise typer.Exit(code=1)
    console.print(f"Book {book_id} has been removed.")


@app.command("seed")
def cli_seed(path: Optional[str] = typer.Argument(None, help="JSON file with an array of books")):
    """Load books from a JSON file when the catalog is empty."""
    added = seed_from_json(get_store(), path or settings.seed_file)
    console.print(f"{added} book(s) seeded.")


@app.command("serve")
def cli_serve(reload: bool = typer.Option(False, "--reload", help="Restart on code changes")):
    """Start the REST API with uvicorn."""
    host = settings.api_host
    port = int(settings.api_port)
    console.print(f"Starting API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "bookstore.api:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")
    try:
        subprocess.run(args, check=False)
    except KeyboardInterrupt:
        console.print("Server stopped.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
