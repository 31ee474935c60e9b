"""Tests for the explorer CLI."""
import json
from unittest.mock import MagicMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

import explorer
from bookstore.sample_data import SAMPLE_BOOKS


@pytest.fixture
def seeded(db, monkeypatch):
    """Point the CLI at a mongomock collection holding the sample books."""
    db.seed(SAMPLE_BOOKS)
    monkeypatch.setattr(explorer, "setup_database", lambda config: db)
    return db


def test_no_command_exits_with_help(capsys):
    with pytest.raises(SystemExit) as excinfo:
        explorer.main([])

    assert excinfo.value.code == 1
    assert "Bookstore Explorer" in capsys.readouterr().out


def test_genre_table(seeded, capsys):
    explorer.main(["genre", "Fantasy"])

    out = capsys.readouterr().out
    assert "The Hobbit" in out
    assert "The Lord of the Rings" in out
    assert "1984" not in out


def test_genre_projection_json(seeded, capsys):
    explorer.main(["--format", "json", "genre", "Fiction", "--fields", "title", "author", "price", "--sort", "desc"])

    rows = json.loads(capsys.readouterr().out)
    assert all(set(row) == {"title", "author", "price"} for row in rows)
    assert [row["price"] for row in rows] == sorted((row["price"] for row in rows), reverse=True)


def test_list_second_page(seeded, capsys):
    explorer.main(["--format", "compact", "list", "--sort", "asc", "--page", "2", "--page-size", "5"])

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 5


def test_count(seeded, capsys):
    explorer.main(["count"])
    assert capsys.readouterr().out.strip() == str(len(SAMPLE_BOOKS))


def test_genres_json(seeded, capsys):
    explorer.main(["--format", "json", "genres"])
    assert json.loads(capsys.readouterr().out) == sorted({book.genre for book in SAMPLE_BOOKS})


def test_update_price_unknown_title(seeded, capsys):
    explorer.main(["update-price", "No Such Book", "3.50"])
    assert "No book titled 'No Such Book'" in capsys.readouterr().out


def test_update_price_and_delete(seeded, capsys):
    explorer.main(["update-price", "The Great Gatsby", "11.99"])
    explorer.main(["delete", "Moby Dick"])

    out = capsys.readouterr().out
    assert "Updated price of 'The Great Gatsby' to 11.99" in out
    assert "Deleted 'Moby Dick'" in out
    assert seeded.collection.count_documents({"title": "Moby Dick"}) == 0


def test_decades_json(seeded, capsys):
    explorer.main(["--format", "json", "decades"])

    rows = json.loads(capsys.readouterr().out)
    decades = [row["_id"] for row in rows]
    assert decades == sorted(decades)
    fifties = next(row for row in rows if row["_id"] == 1950)
    assert sorted(fifties["books"]) == ["The Catcher in the Rye", "The Lord of the Rings"]


def test_avg_price_table(seeded, capsys):
    explorer.main(["avg-price"])
    out = capsys.readouterr().out
    assert "averagePrice" in out
    assert "Fantasy" in out


def test_indexes(seeded, capsys):
    explorer.main(["indexes"])
    assert capsys.readouterr().out.split() == ["author_1_published_year_1", "title_1"]


def test_explain_prints_summary(monkeypatch, capsys):
    db = MagicMock()
    db.explain.return_value = {
        "queryPlanner": {"winningPlan": {"stage": "FETCH", "inputStage": {"stage": "IXSCAN"}}},
        "executionStats": {"nReturned": 1, "totalKeysExamined": 1, "totalDocsExamined": 1},
    }
    monkeypatch.setattr(explorer, "setup_database", lambda config: db)

    explorer.main(["--format", "json", "title", "The Alchemist", "--explain"])

    summary = json.loads(capsys.readouterr().out)
    assert summary["stages"] == "FETCH <- IXSCAN"
    assert summary["totalDocsExamined"] == 1
    spec = db.explain.call_args.args[0]
    assert spec.verbosity == "executionStats"
    assert spec.query.filter == {"title": "The Alchemist"}


def test_invalid_argument_exits_1(seeded):
    with pytest.raises(SystemExit) as excinfo:
        explorer.main(["list", "--page", "0"])
    assert excinfo.value.code == 1


def test_database_error_exits_1(monkeypatch):
    db = MagicMock()
    db.count.side_effect = ServerSelectionTimeoutError("no servers")
    monkeypatch.setattr(explorer, "setup_database", lambda config: db)

    with pytest.raises(SystemExit) as excinfo:
        explorer.main(["count"])

    assert excinfo.value.code == 1
    db.close.assert_called_once()


def test_seed_drop(db, monkeypatch, capsys):
    monkeypatch.setattr(explorer, "setup_database", lambda config: db)

    explorer.main(["seed", "--drop"])

    assert capsys.readouterr().out.strip() == f"Inserted {len(SAMPLE_BOOKS)} books"
    assert db.collection.count_documents({}) == len(SAMPLE_BOOKS)


@pytest.mark.parametrize("argv", [
    ["price-range", "abc", "10"],
    ["update-price", "The Great Gatsby", "cheap"],
    ["bump-prices", "1.1x"],
])
def test_bad_decimal_is_usage_error(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        explorer.main(argv)

    assert excinfo.value.code == 2
    assert "invalid decimal value" in capsys.readouterr().err


def test_zero_page_size_exits_1(seeded, capsys):
    with pytest.raises(SystemExit) as excinfo:
        explorer.main(["list", "--page", "1", "--page-size", "0"])

    assert excinfo.value.code == 1
    assert capsys.readouterr().out == ""


def test_bump_prices(monkeypatch, capsys):
    db = MagicMock()
    db.update.return_value.modified_count = 12
    monkeypatch.setattr(explorer, "setup_database", lambda config: db)

    explorer.main(["bump-prices", "1.1"])

    spec = db.update.call_args.args[0]
    assert spec.filter == {}
    assert spec.update == {"$mul": {"price": 1.1}}
    assert capsys.readouterr().out.strip() == "Multiplied price by 1.1 on 12 books"


def test_ping(monkeypatch, capsys):
    db = MagicMock()
    monkeypatch.setattr(explorer, "setup_database", lambda config: db)

    explorer.main(["ping"])

    db.ping.assert_called_once_with()
    assert capsys.readouterr().out.startswith("Connected to ")


def test_avg_price_without_numeric_prices(monkeypatch, capsys):
    """Test a genre whose average is null still renders."""
    db = MagicMock()
    db.aggregate.return_value = [
        {"_id": "Fiction", "averagePrice": 12.345, "count": 2},
        {"_id": "Zines", "averagePrice": None, "count": 1},
    ]
    monkeypatch.setattr(explorer, "setup_database", lambda config: db)

    explorer.main(["--format", "compact", "avg-price"])

    lines = capsys.readouterr().out.strip().splitlines()
    assert lines == [
        "1. genre=Fiction, averagePrice=12.35, count=2",
        "2. genre=Zines, averagePrice=None, count=1",
    ]
