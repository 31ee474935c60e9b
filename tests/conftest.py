"""Shared fixtures: an in-memory books collection."""
import mongomock
import pytest

from bookstore.database import BookstoreDatabase
from bookstore.models import Book


def _make_book(title, year, price=10.0, **overrides):
    """Build a Book with sensible defaults for the fields a test doesn't care about."""
    fields = {
        "title": title,
        "author": "Anon",
        "genre": "Fiction",
        "published_year": year,
        "price": price,
        "pages": 200,
        "in_stock": True,
        "publisher": "Test House",
    }
    fields.update(overrides)
    return Book(**fields)


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def db(mongo_client):
    """Empty books collection backed by mongomock."""
    database = BookstoreDatabase(
        "mongodb://localhost:27017", "plp_bookstore_test", "books", client=mongo_client
    )
    yield database
    database.close()


@pytest.fixture
def make_book():
    return _make_book
