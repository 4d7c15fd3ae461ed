import pytest

from bookstore.book import Book
from bookstore.store import InMemoryCatalogStore, SqliteCatalogStore


@pytest.fixture
def store(tmp_path, request):
    # Create a unique database file for every test
    db_file = str(tmp_path / f"test_{request.node.name}.db")
    store = SqliteCatalogStore(db_file)
    yield store
    store.close()


@pytest.fixture
def memory_store():
    return InMemoryCatalogStore()


@pytest.fixture(params=["sqlite", "memory"])
def any_store(request, tmp_path):
    if request.param == "sqlite":
        return SqliteCatalogStore(str(tmp_path / "any_store.db"))
    return InMemoryCatalogStore()


@pytest.fixture
def sample_books():
    return [
        Book("The Hobbit", "J.R.R. Tolkien", "Fantasy"),
        Book("The Silmarillion", "J.R.R. Tolkien", "Fantasy"),
        Book("Dune", "Frank Herbert", "SciFi"),
        Book("Neuromancer", "William Gibson", "SciFi"),
        Book("Emma", "Jane Austen", "Romance"),
        Book("Persuasion", "Jane Austen", "Romance"),
        Book("Foundation", "Isaac Asimov", "SciFi"),
    ]
