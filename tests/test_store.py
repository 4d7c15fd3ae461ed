import pytest

from bookstore.book import Book
from bookstore.errors import StaleRecordError
from bookstore.store import SqliteCatalogStore


def test_add_assigns_id_and_find(any_store):
    assert any_store.list_all() == []

    book = any_store.add(Book("Ulysses", "James Joyce", "Modernist"))

    assert book.id is not None
    found = any_store.find(book.id)
    assert found is not None
    assert found.title == "Ulysses"
    assert found.author == "James Joyce"
    assert found.genre == "Modernist"


def test_add_ignores_supplied_id(any_store):
    first = any_store.add(Book("First", "Author"))
    second = any_store.add(Book("Second", "Author", id=first.id))

    assert second.id != first.id
    assert any_store.count() == 2


def test_ids_are_unique(any_store):
    ids = {any_store.add(Book(f"Title {i}", "Author")).id for i in range(5)}
    assert len(ids) == 5


def test_list_all_ordered_by_title(any_store, sample_books):
    for book in sample_books:
        any_store.add(book)

    titles = [b.title for b in any_store.list_all()]
    assert titles == sorted(titles)


def test_update_replaces_fields(any_store):
    book = any_store.add(Book("Old Title", "Old Author", "Drama", description="old"))

    updated = any_store.update(Book("New Title", "New Author", None, id=book.id, price=4.5))

    assert updated.title == "New Title"
    assert updated.author == "New Author"
    assert updated.genre is None
    assert updated.description is None
    assert updated.price == 4.5
    assert any_store.find(book.id).title == "New Title"


def test_update_missing_raises_stale(any_store):
    with pytest.raises(StaleRecordError):
        any_store.update(Book("Ghost", "Nobody", id=999))


def test_remove_and_exists(any_store):
    book = any_store.add(Book("Test", "Author"))

    assert any_store.exists(book.id) is True
    assert any_store.remove(book.id) is True
    assert any_store.exists(book.id) is False
    assert any_store.remove(book.id) is False


def test_search_matches_title_or_author_case_insensitively(any_store, sample_books):
    for book in sample_books:
        any_store.add(book)

    by_author = any_store.search("TOLKIEN", 0, 10)
    assert {b.title for b in by_author} == {"The Hobbit", "The Silmarillion"}

    by_title = any_store.search("dune", 0, 10)
    assert [b.title for b in by_title] == ["Dune"]


def test_search_ignores_genre(any_store, sample_books):
    for book in sample_books:
        any_store.add(book)

    assert any_store.search("SciFi", 0, 10) == []
    assert any_store.count("SciFi") == 0


def test_search_treats_wildcards_literally(any_store):
    any_store.add(Book("100% Pure", "Someone"))
    any_store.add(Book("Plain", "Other"))

    assert [b.title for b in any_store.search("%", 0, 10)] == ["100% Pure"]
    assert any_store.count("_") == 0


def test_search_offset_and_limit(any_store, sample_books):
    for book in sample_books:
        any_store.add(book)

    everything = any_store.search(None, 0, 100)
    assert any_store.search(None, 2, 3) == everything[2:5]


def test_sqlite_persistence(tmp_path):
    db_file = str(tmp_path / "persist.db")
    SqliteCatalogStore(db_file).add(Book("Sapiens", "Yuval Noah Harari"))

    # A new instance should read persisted data from SQLite
    reopened = SqliteCatalogStore(db_file)
    assert reopened.count() == 1
    assert reopened.list_all()[0].title == "Sapiens"
    assert reopened.list_all()[0].created_at is not None


def test_memory_store_returns_copies(memory_store):
    book = memory_store.add(Book("Original", "Author"))
    fetched = memory_store.find(book.id)
    fetched.title = "Changed locally"

    assert memory_store.find(book.id).title == "Original"


def test_update_raises_stale_when_row_vanishes_before_read_back(store, monkeypatch):
    book = store.add(Book("Short Lived", "Writer"))
    monkeypatch.setattr(store, "find", lambda book_id: None)

    with pytest.raises(StaleRecordError):
        store.update(book.copy(title="Renamed"))
