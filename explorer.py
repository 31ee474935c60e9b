#!/usr/bin/env python3
"""Bookstore Explorer CLI - query catalog over the MongoDB books collection."""
import argparse
import sys
import json
from decimal import Decimal, InvalidOperation
from tabulate import tabulate
from pymongo.errors import PyMongoError
from bookstore import queries
from bookstore.config import Config
from bookstore.database import BookstoreDatabase
from bookstore.parse import parse_books
from bookstore.sample_data import SAMPLE_BOOKS
import logging

logger = logging.getLogger(__name__)


def setup_database(config: Config) -> BookstoreDatabase:
    """Connect to the configured books collection."""
    return BookstoreDatabase.from_config(config)


def _decimal(text: str) -> Decimal:
    """argparse type for prices and factors."""
    try:
        return Decimal(text)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid decimal value: {text!r}") from None


def build_find(args, config: Config) -> queries.QuerySpec:
    """Translate a find subcommand plus its shared options into a QuerySpec."""
    if args.command == "genre":
        spec = queries.find_by_genre(args.genre)
    elif args.command == "after":
        spec = queries.find_published_after(args.year)
    elif args.command == "author":
        if args.since is not None:
            spec = queries.find_by_author_since(args.author, args.since)
        else:
            spec = queries.find_by_author(args.author)
    elif args.command == "title":
        spec = queries.find_by_title(args.title)
    elif args.command == "publisher":
        spec = queries.find_by_publisher(args.publisher)
    elif args.command == "in-stock":
        spec = queries.find_in_stock_after_year(args.after)
    elif args.command == "price-range":
        spec = queries.price_range(args.min_price, args.max_price)
    elif args.command == "authors":
        spec = queries.by_authors(args.names)
    elif args.command == "pages":
        spec = queries.pages_greater_than(args.pages)
    else:
        spec = queries.QuerySpec()

    if args.fields:
        spec = queries.project_fields(spec, args.fields)
    if args.sort:
        spec = queries.sort_by_price(ascending=args.sort == "asc", spec=spec)
    if args.page is not None:
        page_size = args.page_size if args.page_size is not None else config.DEFAULT_PAGE_SIZE
        spec = queries.with_pagination(spec, queries.paginate(page_size, args.page))
    return spec


def display_books(books, format_type: str):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["Title", "Author", "Genre", "Year", "Price", "Pages", "Stock"]
        rows = [
            [
                book.title[:40] + "..." if len(book.title) > 40 else book.title,
                book.author,
                book.genre,
                book.published_year,
                f"{book.price:.2f}",
                book.pages,
                book.availability
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        books_dict = [
            {
                "title": book.title,
                "author": book.author,
                "genre": book.genre,
                "published_year": book.published_year,
                "price": book.price,
                "pages": book.pages,
                "in_stock": book.in_stock,
                "publisher": book.publisher
            }
            for book in books
        ]
        print(json.dumps(books_dict, indent=2, ensure_ascii=False))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.author} ({book.published_year})")


def display_documents(docs, format_type: str):
    """Display raw documents (projections, aggregation rows)."""
    if format_type == "json":
        print(json.dumps(docs, indent=2, default=str, ensure_ascii=False))
    elif format_type == "compact":
        for i, doc in enumerate(docs, 1):
            print(f"{i}. " + ", ".join(f"{key}={value}" for key, value in doc.items()))
    else:
        print("\n" + tabulate(docs, headers="keys", tablefmt="grid"))


def summarize_explain(result) -> dict:
    """Pull the numbers worth comparing out of an executionStats explain."""
    winning = result.get("queryPlanner", {}).get("winningPlan", {})
    plan = winning.get("queryPlan", winning)
    stages = []
    while plan:
        stages.append(plan.get("stage", "?"))
        plan = plan.get("inputStage")

    stats = result.get("executionStats", {})
    return {
        "stages": " <- ".join(stages),
        "nReturned": stats.get("nReturned"),
        "totalKeysExamined": stats.get("totalKeysExamined"),
        "totalDocsExamined": stats.get("totalDocsExamined"),
        "executionTimeMillis": stats.get("executionTimeMillis"),
    }


def run_find(args, config: Config, db: BookstoreDatabase):
    """Run (or explain) one of the find subcommands."""
    spec = build_find(args, config)

    if args.explain:
        result = db.explain(queries.explain(spec, args.explain))
        summary = summarize_explain(result)
        if args.format == "json":
            print(json.dumps(summary, indent=2))
        else:
            print("\n" + tabulate(list(summary.items()), headers=["Metric", "Value"], tablefmt="grid"))
        return

    docs = db.find(spec)
    logger.info(f"Found {len(docs)} books")

    if spec.projection is not None:
        for doc in docs:
            doc.pop("_id", None)
        display_documents(docs, args.format)
    else:
        display_books(parse_books(docs), args.format)


def run_aggregate(args, config: Config, db: BookstoreDatabase):
    """Run one of the aggregation subcommands."""
    pipelines = {
        "avg-price": queries.average_price_by_genre,
        "top-author": queries.top_author_by_book_count,
        "decades": queries.books_by_decade,
    }
    rows = db.aggregate(pipelines[args.command]())

    if args.command == "decades" and args.format == "table":
        rows = [
            {"decade": row["_id"], "bookCount": row["bookCount"], "books": ", ".join(row["books"])}
            for row in rows
        ]
    elif args.command == "avg-price" and args.format != "json":
        # $avg is null when no book in the genre has a numeric price
        rows = [
            {
                "genre": row["_id"],
                "averagePrice": round(row["averagePrice"], 2) if row["averagePrice"] is not None else None,
                "count": row["count"]
            }
            for row in rows
        ]
    display_documents(rows, args.format)


def run_write(args, config: Config, db: BookstoreDatabase):
    """Run one of the update/delete subcommands."""
    if args.command == "update-price":
        result = db.update(queries.update_price(args.title, args.price))
        if result.matched_count == 0:
            print(f"No book titled {args.title!r}")
        else:
            print(f"Updated price of {args.title!r} to {args.price}")

    elif args.command == "delete":
        result = db.delete(queries.delete_by_title(args.title))
        if result.deleted_count == 0:
            print(f"No book titled {args.title!r}")
        else:
            print(f"Deleted {args.title!r}")

    elif args.command == "bump-prices":
        result = db.update(queries.bulk_price_multiply(args.factor))
        print(f"Multiplied price by {args.factor} on {result.modified_count} books")


def run_info(args, config: Config, db: BookstoreDatabase):
    """Run count, genres, indexes, ping and seed."""
    if args.command == "count":
        print(db.count(queries.count_all()))

    elif args.command == "genres":
        genres = sorted(db.distinct(queries.distinct_genres()))
        if args.format == "json":
            print(json.dumps(genres, indent=2, ensure_ascii=False))
        else:
            for genre in genres:
                print(genre)

    elif args.command == "indexes":
        for name in db.create_indexes(queries.ensure_indexes()):
            print(name)

    elif args.command == "ping":
        db.ping()
        print(f"Connected to {config.MONGO_URI}")

    elif args.command == "seed":
        inserted = db.seed(SAMPLE_BOOKS, drop=args.drop)
        print(f"Inserted {inserted} books")


FIND_COMMANDS = {
    "genre", "after", "author", "title", "publisher", "in-stock",
    "list", "price-range", "authors", "pages",
}
AGGREGATE_COMMANDS = {"avg-price", "top-author", "decades"}
WRITE_COMMANDS = {"update-price", "delete", "bump-prices"}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per catalog query."""
    parser = argparse.ArgumentParser(
        description="Bookstore Explorer - MongoDB query catalog CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Load the sample books
  %(prog)s seed --drop

  # Fiction titles, cheapest first, page 2 of 5
  %(prog)s genre Fiction --fields title author price --sort asc --page 2

  # Compare plans with and without an index
  %(prog)s publisher HarperOne --explain
  %(prog)s indexes
  %(prog)s title "The Alchemist" --explain

  # Aggregations
  %(prog)s avg-price
  %(prog)s --format json decades
        """
    )
    parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    find_options = argparse.ArgumentParser(add_help=False)
    find_options.add_argument("--fields", nargs="+", help="Only return these fields (excludes _id)")
    find_options.add_argument("--sort", choices=["asc", "desc"], help="Sort by price")
    find_options.add_argument("--page", type=int, help="Page number, starting at 1")
    find_options.add_argument("--page-size", type=int, help="Books per page (default: DEFAULT_PAGE_SIZE)")
    find_options.add_argument(
        "--explain",
        nargs="?",
        const="executionStats",
        choices=queries.EXPLAIN_VERBOSITIES,
        help="Explain the query instead of running it (default: executionStats)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Find commands
    p = subparsers.add_parser("genre", parents=[find_options], help="Books in a genre")
    p.add_argument("genre")
    p = subparsers.add_parser("after", parents=[find_options], help="Books published after a year")
    p.add_argument("year", type=int)
    p = subparsers.add_parser("author", parents=[find_options], help="Books by an author")
    p.add_argument("author")
    p.add_argument("--since", type=int, help="Published in or after this year")
    p = subparsers.add_parser("title", parents=[find_options], help="Book by exact title")
    p.add_argument("title")
    p = subparsers.add_parser("publisher", parents=[find_options], help="Books by a publisher")
    p.add_argument("publisher")
    p = subparsers.add_parser("in-stock", parents=[find_options], help="In-stock books published after a year")
    p.add_argument("--after", type=int, default=2010, help="Year (default: 2010)")
    subparsers.add_parser("list", parents=[find_options], help="All books")
    p = subparsers.add_parser("price-range", parents=[find_options], help="Books within a price range (inclusive)")
    p.add_argument("min_price", type=_decimal)
    p.add_argument("max_price", type=_decimal)
    p = subparsers.add_parser("authors", parents=[find_options], help="Books by any of several authors")
    p.add_argument("names", nargs="+")
    p = subparsers.add_parser("pages", parents=[find_options], help="Books with more than N pages")
    p.add_argument("pages", type=int)

    # Write commands
    p = subparsers.add_parser("update-price", help="Set the price of one book")
    p.add_argument("title")
    p.add_argument("price", type=_decimal)
    p = subparsers.add_parser("delete", help="Delete one book by title")
    p.add_argument("title")
    p = subparsers.add_parser("bump-prices", help="Multiply every price by a factor")
    p.add_argument("factor", type=_decimal)

    # Aggregations
    subparsers.add_parser("avg-price", help="Average price by genre")
    subparsers.add_parser("top-author", help="Author with the most books")
    subparsers.add_parser("decades", help="Books grouped by publication decade")

    # Collection info
    subparsers.add_parser("count", help="Count all books")
    subparsers.add_parser("genres", help="Distinct genres")
    subparsers.add_parser("indexes", help="Create the title and author/year indexes")
    subparsers.add_parser("ping", help="Check the server is reachable")
    p = subparsers.add_parser("seed", help="Insert the sample books")
    p.add_argument("--drop", action="store_true", help="Remove existing books first")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()

    try:
        db = setup_database(config)
        try:
            if args.command in FIND_COMMANDS:
                run_find(args, config, db)
            elif args.command in AGGREGATE_COMMANDS:
                run_aggregate(args, config, db)
            elif args.command in WRITE_COMMANDS:
                run_write(args, config, db)
            else:
                run_info(args, config, db)
        finally:
            db.close()

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except queries.InvalidArgument as e:
        logger.error(f"❌ Invalid argument: {e}")
        sys.exit(1)
    except PyMongoError as e:
        logger.error(f"❌ Database error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
