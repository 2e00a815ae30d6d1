import pytest
from unittest.mock import AsyncMock, MagicMock

from main import batch_iter, build_parser, load_queries_from_csv, process_query
from menulens.errors import InvalidInputError
from menulens.models import ComparisonError, Coordinates


def test_load_queries_from_csv(tmp_path):
    path = tmp_path / "queries.csv"
    path.write_text(
        "query,lat,lng\n"
        "Compare Chipotle vs Qdoba,40.74,-74.03\n"
        "Chipotle vs Qdoba for $15,,\n"
    )

    rows = load_queries_from_csv(str(path))

    assert rows[0] == {"query": "Compare Chipotle vs Qdoba", "coordinates": Coordinates(40.74, -74.03)}
    assert rows[1] == {"query": "Chipotle vs Qdoba for $15", "coordinates": None}


def test_csv_without_query_column_is_rejected(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("text\nhello\n")

    with pytest.raises(InvalidInputError):
        load_queries_from_csv(str(path))


def test_batch_iter():
    rows = list(range(7))
    assert list(batch_iter(rows, 3)) == [(0, [0, 1, 2]), (3, [3, 4, 5]), (6, [6])]


@pytest.mark.asyncio
async def test_process_query_flattens_outcomes():
    orchestrator = MagicMock()
    row = {"query": "hello", "coordinates": None}

    orchestrator.compare_text = AsyncMock(return_value=None)
    assert await process_query(orchestrator, row) == ["hello", "not_a_comparison", "", "", "", ""]

    orchestrator.compare_text = AsyncMock(
        return_value=ComparisonError(missing_restaurants=["Qdoba"], error="Could not find: Qdoba")
    )
    assert await process_query(orchestrator, row) == ["hello", "unresolved", "", "", "", "Could not find: Qdoba"]

    orchestrator.compare_text = AsyncMock(side_effect=InvalidInputError("Budget must be positive, got 0"))
    assert (await process_query(orchestrator, row))[1] == "invalid"


def test_parser_subcommands():
    args = build_parser().parse_args(["compare", "Chipotle vs Qdoba", "--lat", "40.7", "--lng", "-74.0"])
    assert (args.command, args.text, args.lat, args.lng) == ("compare", "Chipotle vs Qdoba", 40.7, -74.0)

    args = build_parser().parse_args(["--verbose", "batch"])
    assert args.verbose
    assert args.input == "comparisons.csv"
