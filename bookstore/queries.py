"""Catalog of reusable queries, aggregations and index definitions for the books collection.

Every function here is pure: it validates its arguments and returns a fresh,
immutable spec. Nothing touches the database until the spec is handed to
:class:`bookstore.database.BookstoreDatabase`.
"""
import math
from decimal import Decimal
from typing import Any, FrozenSet, Iterable, Optional

from bookstore.models import (
    AggregationPipeline,
    CountSpec,
    DeleteSpec,
    DistinctSpec,
    ExplainSpec,
    IndexSpec,
    Pagination,
    QuerySpec,
    UpdateSpec,
)

ASCENDING = 1
DESCENDING = -1

EXPLAIN_VERBOSITIES = ("queryPlanner", "executionStats", "allPlansExecution")


class InvalidArgument(ValueError):
    """Raised when a query is built from malformed caller input."""


# ── Validation helpers ────────────────────────────────────

def _require_text(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{name} must be a non-empty string, got {value!r}")
    return value


def _require_int(value: Any, name: str) -> int:
    # bool is an int subclass; True is never a year
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    return value


def _require_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidArgument(f"{name} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidArgument(f"{name} must be finite, got {value!r}")
        return float(value)
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidArgument(f"{name} must be finite, got {value!r}")
    return value


def _require_non_negative(value: Any, name: str) -> float:
    number = _require_number(value, name)
    if number < 0:
        raise InvalidArgument(f"{name} must not be negative, got {value!r}")
    return number


def _text_set(values: Iterable[str], name: str) -> list:
    if isinstance(values, str):
        raise InvalidArgument(f"{name} must be a collection of strings, not a string")
    try:
        items = sorted({_require_text(v, name) for v in values})
    except TypeError:
        raise InvalidArgument(f"{name} must be a collection of strings, got {values!r}") from None
    if not items:
        raise InvalidArgument(f"{name} must not be empty")
    return items


# ── Basic CRUD ────────────────────────────────────────────

def find_by_genre(genre: str) -> QuerySpec:
    """Books in a specific genre."""
    return QuerySpec(filter={"genre": _require_text(genre, "genre")})


def find_published_after(year: int) -> QuerySpec:
    """Books published strictly after ``year``."""
    return QuerySpec(filter={"published_year": {"$gt": _require_int(year, "year")}})


def find_by_author(author: str) -> QuerySpec:
    return QuerySpec(filter={"author": _require_text(author, "author")})


def find_by_title(title: str) -> QuerySpec:
    return QuerySpec(filter={"title": _require_text(title, "title")})


def find_by_publisher(publisher: str) -> QuerySpec:
    return QuerySpec(filter={"publisher": _require_text(publisher, "publisher")})


def update_price(title: str, new_price) -> UpdateSpec:
    """
    Set the price of a single book.

    Args:
        title: Exact title of the book to update
        new_price: New price (int, float or Decimal, not negative)

    Returns:
        An updateOne spec. When no book matches, the driver reports
        ``matched_count == 0``; that is the caller's not-found signal.
    """
    return UpdateSpec(
        filter={"title": _require_text(title, "title")},
        update={"$set": {"price": _require_non_negative(new_price, "new_price")}},
    )


def delete_by_title(title: str) -> DeleteSpec:
    """Delete a single book by its title."""
    return DeleteSpec(filter={"title": _require_text(title, "title")})


# ── Advanced queries ──────────────────────────────────────

def find_in_stock_after_year(year: int) -> QuerySpec:
    """Books that are in stock and published strictly after ``year``."""
    return QuerySpec(filter={
        "$and": [
            {"in_stock": True},
            {"published_year": {"$gt": _require_int(year, "year")}},
        ]
    })


def project_fields(spec: QuerySpec, fields: Iterable[str]) -> QuerySpec:
    """
    Attach an inclusion-only projection to ``spec``.

    ``_id`` is always excluded. Fields are emitted in sorted order so the
    same set of fields always produces the same projection.
    """
    names = _text_set(fields, "fields")
    if "_id" in names:
        raise InvalidArgument("_id is excluded from projections and cannot be requested")
    projection = {name: 1 for name in names}
    projection["_id"] = 0
    return spec.with_changes(projection=projection)


def sort_by_price(ascending: bool = True, spec: Optional[QuerySpec] = None) -> QuerySpec:
    """Sort by price, ascending (+1) or descending (-1)."""
    if not isinstance(ascending, bool):
        raise InvalidArgument(f"ascending must be a boolean, got {ascending!r}")
    base = spec if spec is not None else QuerySpec()
    return base.with_changes(sort=(("price", ASCENDING if ascending else DESCENDING),))


def paginate(page_size: int, page: int) -> Pagination:
    """
    Compute limit/skip for a 1-based page number.

    Args:
        page_size: Books per page (must be positive)
        page: Page number, starting at 1

    Returns:
        Pagination with ``limit = page_size`` and ``skip = page_size * (page - 1)``
    """
    _require_int(page_size, "page_size")
    _require_int(page, "page")
    if page_size <= 0:
        raise InvalidArgument(f"page_size must be positive, got {page_size}")
    if page < 1:
        raise InvalidArgument(f"page must be 1 or greater, got {page}")
    return Pagination(limit=page_size, skip=page_size * (page - 1))


def with_pagination(spec: QuerySpec, pagination: Pagination) -> QuerySpec:
    """Apply a :class:`Pagination` to a find spec."""
    return spec.with_changes(limit=pagination.limit, skip=pagination.skip)


# ── Aggregation pipelines ─────────────────────────────────

def average_price_by_genre() -> AggregationPipeline:
    """Average price and book count per genre, most expensive genre first."""
    return AggregationPipeline(
        name="average_price_by_genre",
        stages=(
            {"$group": {
                "_id": "$genre",
                "averagePrice": {"$avg": "$price"},
                "count": {"$sum": 1},
            }},
            {"$sort": {"averagePrice": DESCENDING}},
        ),
    )


def top_author_by_book_count() -> AggregationPipeline:
    """
    The author with the most books.

    Ties are resolved by the server and are not deterministic.
    """
    return AggregationPipeline(
        name="top_author_by_book_count",
        stages=(
            {"$group": {"_id": "$author", "bookCount": {"$sum": 1}}},
            {"$sort": {"bookCount": DESCENDING}},
            {"$limit": 1},
        ),
    )


def books_by_decade() -> AggregationPipeline:
    """Titles and counts grouped by publication decade, oldest first."""
    return AggregationPipeline(
        name="books_by_decade",
        stages=(
            {"$project": {
                "title": 1,
                "published_year": 1,
                "decade": {
                    "$subtract": [
                        "$published_year",
                        {"$mod": ["$published_year", 10]},
                    ]
                },
            }},
            {"$group": {
                "_id": "$decade",
                "bookCount": {"$sum": 1},
                "books": {"$push": "$title"},
            }},
            {"$sort": {"_id": ASCENDING}},
        ),
    )


# ── Indexing ──────────────────────────────────────────────

def ensure_indexes() -> FrozenSet[IndexSpec]:
    """Single-field index on title and compound index on (author, published_year)."""
    return frozenset({
        IndexSpec(keys=(("title", ASCENDING),)),
        IndexSpec(keys=(("author", ASCENDING), ("published_year", ASCENDING))),
    })


def find_by_author_since(author: str, year: int) -> QuerySpec:
    """Books by ``author`` published in or after ``year``; served by the compound index."""
    return QuerySpec(filter={
        "author": _require_text(author, "author"),
        "published_year": {"$gte": _require_int(year, "year")},
    })


def explain(spec: QuerySpec, verbosity: str = "executionStats") -> ExplainSpec:
    """Wrap a find spec in an explain request."""
    if not isinstance(spec, QuerySpec):
        raise InvalidArgument(f"only find queries can be explained, got {type(spec).__name__}")
    if verbosity not in EXPLAIN_VERBOSITIES:
        raise InvalidArgument(
            f"verbosity must be one of {', '.join(EXPLAIN_VERBOSITIES)}, got {verbosity!r}"
        )
    return ExplainSpec(query=spec, verbosity=verbosity)


# ── Additional queries ────────────────────────────────────

def price_range(min_price, max_price) -> QuerySpec:
    """Books priced between ``min_price`` and ``max_price``, both inclusive."""
    low = _require_non_negative(min_price, "min_price")
    high = _require_non_negative(max_price, "max_price")
    if low > high:
        raise InvalidArgument(f"min_price ({min_price}) is greater than max_price ({max_price})")
    return QuerySpec(filter={"price": {"$gte": low, "$lte": high}})


def by_authors(names: Iterable[str]) -> QuerySpec:
    """Books written by any of ``names``."""
    return QuerySpec(filter={"author": {"$in": _text_set(names, "names")}})


def count_all() -> CountSpec:
    return CountSpec(filter={})


def pages_greater_than(n: int) -> QuerySpec:
    """Books with strictly more than ``n`` pages."""
    return QuerySpec(filter={"pages": {"$gt": _require_int(n, "n")}})


def bulk_price_multiply(factor) -> UpdateSpec:
    """Multiply every book's price by ``factor``. Carries no filter."""
    value = _require_number(factor, "factor")
    if value <= 0:
        raise InvalidArgument(f"factor must be positive, got {factor!r}")
    return UpdateSpec(filter={}, update={"$mul": {"price": value}}, many=True)


def distinct_genres() -> DistinctSpec:
    return DistinctSpec(key="genre", filter={})
