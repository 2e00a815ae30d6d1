import argparse
import asyncio
import csv
import json
import os
import sys
from typing import List, Optional

import pandas as pd
from loguru import logger

from menulens.clients import VisionClient, YelpClient
from menulens.config import BATCH_SIZE, INPUT_CSV, LOG_LEVEL, OUTPUT_CSV
from menulens.errors import InvalidInputError
from menulens.models import ComparisonError, Coordinates, UserProfile
from menulens.pipeline import PipelineOrchestrator


def load_queries_from_csv(file_path: str, nrows: int = None) -> List[dict]:
    """Load comparison queries from CSV. Requires a `query` column; `lat`/`lng` are optional."""
    df = pd.read_csv(file_path, nrows=nrows)
    if "query" not in df.columns:
        raise InvalidInputError(f"{file_path} has no 'query' column")

    rows = []
    for _, row in df.iterrows():
        query = str(row["query"]) if pd.notna(row["query"]) else ""
        coordinates = None
        if "lat" in row.index and "lng" in row.index and pd.notna(row["lat"]) and pd.notna(row["lng"]):
            try:
                coordinates = Coordinates(float(row["lat"]), float(row["lng"]))
            except (ValueError, TypeError):
                coordinates = None
        rows.append({"query": query, "coordinates": coordinates})
    return rows


def batch_iter(rows: List[dict], batch_size: int):
    """
    Yield index and row slices of size `batch_size` for batched processing.
    """
    n = len(rows)
    for i in range(0, n, batch_size):
        yield i, rows[i:i+batch_size]


async def process_query(orchestrator: PipelineOrchestrator, row: dict) -> List[str]:
    """Run one comparison query and flatten it into an output CSV row."""
    try:
        result = await orchestrator.compare_text(row["query"], row["coordinates"])
    except InvalidInputError as e:
        return [row["query"], "invalid", "", "", "", str(e)]

    if result is None:
        return [row["query"], "not_a_comparison", "", "", "", ""]
    if isinstance(result, ComparisonError):
        return [row["query"], "unresolved", "", "", "", result.error]
    return [
        row["query"],
        result.winner,
        result.option1.label,
        result.option2.label,
        f"{result.option1.value_score}/{result.option2.value_score}",
        "",
    ]


async def run_batch(input_path: str, output_path: str):
    """
    Process a CSV of comparison queries.

    - Loads the input CSV.
    - Processes each batch concurrently with asyncio.gather.
    - Writes results incrementally to the output CSV.
    """
    rows = load_queries_from_csv(input_path)

    if os.path.exists(output_path):
        os.remove(output_path)
    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["query", "winner", "option1", "option2", "scores", "error"])

    places_client = YelpClient()
    orchestrator = PipelineOrchestrator(places_client)
    try:
        for start_idx, batch_rows in batch_iter(rows, BATCH_SIZE):
            logger.info(f"Processing rows {start_idx}..{start_idx + len(batch_rows) - 1}")
            results = await asyncio.gather(*[process_query(orchestrator, row) for row in batch_rows])

            with open(output_path, "a", newline="") as f:
                writer = csv.writer(f)
                writer.writerows(results)
    finally:
        await places_client.close()


async def run_compare(text: str, coordinates: Optional[Coordinates]):
    places_client = YelpClient()
    try:
        result = await PipelineOrchestrator(places_client).compare_text(text, coordinates)
    finally:
        await places_client.close()

    if result is None:
        print('Not a comparison request. Try: "Compare Karma Kafe biryani $18 vs Chipotle burrito $18"')
        return 1
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0 if result.success else 2


async def run_recognize(image_path: str, coordinates: Coordinates, profile: Optional[UserProfile]):
    with open(image_path, "rb") as f:
        image_bytes = f.read()

    places_client = YelpClient()
    vision_client = VisionClient()
    try:
        result = await PipelineOrchestrator(places_client, vision_client).recognize(
            image_bytes, coordinates, profile
        )
    finally:
        await places_client.close()
        await vision_client.close()

    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    if result.google_match is None:
        print(result.message, file=sys.stderr)
        return 2
    return 0


def load_profile(path: Optional[str]) -> Optional[UserProfile]:
    if not path:
        return None
    with open(path) as f:
        data = json.load(f)
    return UserProfile(
        user_id=data.get("user_id", ""),
        favorites=data.get("favorites", []),
        dietary_preferences=data.get("dietary_preferences", []),
        liked_cuisines=data.get("liked_cuisines", []),
        past_visits=data.get("past_visits", []),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Restaurant recognition and value comparison")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    recognize = sub.add_parser("recognize", help="Identify a restaurant from a photo of its signage")
    recognize.add_argument("image", help="Path to a JPEG/PNG image")
    recognize.add_argument("--lat", type=float, required=True)
    recognize.add_argument("--lng", type=float, required=True)
    recognize.add_argument("--profile", help="Path to a user profile JSON file")

    compare = sub.add_parser("compare", help='Compare two options, e.g. "Compare A $18 vs B $18"')
    compare.add_argument("text")
    compare.add_argument("--lat", type=float)
    compare.add_argument("--lng", type=float)

    batch = sub.add_parser("batch", help="Run comparison queries from a CSV file")
    batch.add_argument("--input", default=INPUT_CSV)
    batch.add_argument("--output", default=OUTPUT_CSV)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Initialize logs
    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        level="DEBUG" if args.verbose else LOG_LEVEL,
        format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>",
    )

    try:
        if args.command == "recognize":
            coordinates = Coordinates(args.lat, args.lng)
            return asyncio.run(run_recognize(args.image, coordinates, load_profile(args.profile)))
        if args.command == "compare":
            coordinates = None
            if args.lat is not None and args.lng is not None:
                coordinates = Coordinates(args.lat, args.lng)
            return asyncio.run(run_compare(args.text, coordinates))
        asyncio.run(run_batch(args.input, args.output))
        return 0
    except InvalidInputError as e:
        logger.error(f"Invalid input: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
