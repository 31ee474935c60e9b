"""Tests for parsing functions."""
from bson import ObjectId

from bookstore.parse import parse_book, parse_books, book_to_document
from bookstore.models import Book


def test_parse_book_complete():
    """Test parsing a document with all fields present."""
    oid = ObjectId()
    doc = {
        "_id": oid,
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "genre": "Fantasy",
        "published_year": 1937,
        "price": 14.99,
        "pages": 310,
        "in_stock": True,
        "publisher": "George Allen & Unwin"
    }

    book = parse_book(doc)

    assert book is not None
    assert book.id == str(oid)
    assert book.title == "The Hobbit"
    assert book.author == "J.R.R. Tolkien"
    assert book.published_year == 1937
    assert book.availability == "In stock"


def test_parse_book_missing_fields():
    """Test parsing a document with missing optional fields."""
    book = parse_book({"title": "Mystery Book"})

    assert book is not None
    assert book.title == "Mystery Book"
    assert book.author == "Unknown"
    assert book.id is None
    assert book.in_stock is False


def test_parse_book_no_title():
    """Test that a document without a title returns None."""
    assert parse_book({"author": "Nobody"}) is None


def test_parse_book_bad_year():
    """Test that an unparseable field drops the document instead of raising."""
    assert parse_book({"title": "Odd", "published_year": "nineteen fifty"}) is None


def test_parse_books():
    """Test parsing a batch, dropping bad documents."""
    docs = [
        {"title": "Book 1", "published_year": 2001},
        {"author": "No Title"},
        {"title": "Book 2", "published_year": 2002},
    ]

    books = parse_books(docs)

    assert len(books) == 2
    assert books[0].title == "Book 1"
    assert books[1].title == "Book 2"


def test_book_to_document_omits_id():
    book = Book("Book A", "X", "Fiction", 2000, 1.0, 10, True, "P", id="abc")

    doc = book_to_document(book)

    assert "_id" not in doc
    assert "id" not in doc
    assert parse_book(doc) == Book("Book A", "X", "Fiction", 2000, 1.0, 10, True, "P")
