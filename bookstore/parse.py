"""Parse and normalize documents from the books collection."""
import logging
from typing import Dict, Any, Iterable, List, Optional

from bookstore.models import Book

logger = logging.getLogger(__name__)


def parse_book(doc: Dict[str, Any]) -> Optional[Book]:
    """
    Parse a single document from the books collection.

    Args:
        doc: Raw document as returned by pymongo

    Returns:
        Book object or None if parsing fails
    """
    try:
        title = doc.get("title")
        if not title:
            return None

        raw_id = doc.get("_id")

        return Book(
            title=title,
            author=doc.get("author", "Unknown"),
            genre=doc.get("genre", "Unknown"),
            published_year=int(doc.get("published_year", 0)),
            price=float(doc.get("price", 0.0)),
            pages=int(doc.get("pages", 0)),
            in_stock=bool(doc.get("in_stock", False)),
            publisher=doc.get("publisher", "Unknown"),
            id=str(raw_id) if raw_id is not None else None,
        )
    except (TypeError, ValueError) as e:
        # Documents are schemaless; skip the bad one rather than fail the whole batch
        logger.warning(f"Failed to parse book {doc.get('title')!r}: {e}")
        return None


def parse_books(docs: Iterable[Dict[str, Any]]) -> List[Book]:
    """
    Parse a sequence of documents.

    Args:
        docs: Documents from a find() call

    Returns:
        List of Book objects (documents that fail to parse are dropped)
    """
    books = []

    for doc in docs:
        book = parse_book(doc)
        if book:
            books.append(book)

    return books


def book_to_document(book: Book) -> Dict[str, Any]:
    """Convert a Book into an insertable document (without ``_id``)."""
    return {
        "title": book.title,
        "author": book.author,
        "genre": book.genre,
        "published_year": book.published_year,
        "price": book.price,
        "pages": book.pages,
        "in_stock": book.in_stock,
        "publisher": book.publisher,
    }
