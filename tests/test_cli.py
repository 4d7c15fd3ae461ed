from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from bookstore import cli
from bookstore.book import Book
from bookstore.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_store(store, monkeypatch):
    monkeypatch.setattr(cli, "get_store", lambda: store)
    return store


def test_list_no_books():
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "No books found." in result.stdout


def test_list_with_search(cli_store):
    cli_store.add(Book("The Hobbit", "Tolkien"))
    cli_store.add(Book("Dune", "Herbert"))

    result = runner.invoke(app, ["list", "--search", "tolkien"])

    assert result.exit_code == 0
    assert "The Hobbit" in result.stdout
    assert "Dune" not in result.stdout
    assert "1 matching book(s)." in result.stdout


def test_add_book_success(cli_store):
    result = runner.invoke(app, ["add", "--title", "Emma", "--author", "Jane Austen", "--genre", "Romance"])

    assert result.exit_code == 0
    assert "Emma by Jane Austen" in result.stdout
    assert cli_store.count() == 1


def test_add_book_validation_error(cli_store):
    result = runner.invoke(app, ["add", "--title", " ", "--author", "Someone"])

    assert result.exit_code == 1
    assert "title" in result.stdout
    assert cli_store.count() == 0


def test_show_book(cli_store):
    book = cli_store.add(Book("Found Book", "Finder", "Mystery"))

    result = runner.invoke(app, ["show", str(book.id)])

    assert result.exit_code == 0
    assert "Title: Found Book" in result.stdout
    assert "Author: Finder" in result.stdout


def test_show_with_summary(cli_store, monkeypatch):
    book = cli_store.add(Book("Found Book", "Finder"))

    async def fake_summarize(_book):
        return "A short description."

    monkeypatch.setattr(cli, "_summarize", fake_summarize)
    result = runner.invoke(app, ["show", str(book.id), "--summary"])

    assert result.exit_code == 0
    assert "A short description." in result.stdout


def test_show_book_not_found():
    result = runner.invoke(app, ["show", "999"])
    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_remove_book(cli_store):
    book = cli_store.add(Book("To Be Removed", "Remover"))

    result = runner.invoke(app, ["remove", str(book.id)])

    assert result.exit_code == 0
    assert f"Book {book.id} has been removed." in result.stdout
    assert cli_store.exists(book.id) is False


def test_remove_book_not_found():
    result = runner.invoke(app, ["remove", "12345"])
    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_seed_command(cli_store, tmp_path):
    seed = tmp_path / "books.json"
    seed.write_text('[{"title": "Dune", "author": "Frank Herbert"}]', encoding="utf-8")

    result = runner.invoke(app, ["seed", str(seed)])

    assert result.exit_code == 0
    assert "1 book(s) seeded." in result.stdout
    assert cli_store.count() == 1


@patch("subprocess.run")
def test_serve_command(mock_subprocess_run):
    mock_subprocess_run.return_value = MagicMock(returncode=0)

    result = runner.invoke(app, ["serve"])

    assert result.exit_code == 0
    assert "Starting API on" in result.stdout
    mock_subprocess_run.assert_called_once()
    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "bookstore.api:app" in args
    assert "--host" in args
    assert "--port" in args
