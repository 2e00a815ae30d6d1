import asyncio
import math
import re
import time
from typing import Any, Dict, List, Optional

from loguru import logger

from menulens.models import Coordinates, FetchResult, GeoBusiness, haversine_meters

PRICE_RE = re.compile(r"^\${1,4}$")


def _float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Finite float from a provider field, `default` for anything else."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def parse_business(record: Dict[str, Any], origin: Optional[Coordinates] = None) -> Optional[GeoBusiness]:
    """
    Build a GeoBusiness from a raw places-directory record.

    Args:
        record: Business dictionary as returned by the provider.
        origin: Query point, used to compute the distance when the provider omits it.

    Fields with an unexpected shape are dropped rather than raising.

    Returns:
        Optional[GeoBusiness]: None when the record has no id or name.
    """
    if not isinstance(record, dict):
        return None
    business_id = record.get("id")
    name = record.get("name")
    if not business_id or not name:
        return None

    coordinates = None
    raw_coords = record.get("coordinates")
    if isinstance(raw_coords, dict):
        lat = _float(raw_coords.get("latitude"), None)
        lng = _float(raw_coords.get("longitude"), None)
        if lat is not None and lng is not None:
            coordinates = Coordinates(lat, lng)

    distance = _float(record.get("distance"), None)
    if distance is None and coordinates is not None and origin is not None:
        distance = haversine_meters(origin, coordinates)

    # Only "$".."$$$$" strings count as a price; numeric price levels are ignored
    price = record.get("price")
    if not (isinstance(price, str) and PRICE_RE.match(price)):
        price = None

    raw_categories = record.get("categories")
    categories = [
        str(c["title"]) for c in raw_categories
        if isinstance(c, dict) and c.get("title")
    ] if isinstance(raw_categories, list) else []

    address = ""
    location = record.get("location")
    if isinstance(location, dict):
        lines = location.get("display_address")
        if isinstance(lines, list):
            address = ", ".join(str(line) for line in lines if line)
        address = address or str(location.get("address1") or "")

    return GeoBusiness(
        id=str(business_id),
        name=str(name),
        coordinates=coordinates,
        distance_meters=distance,
        rating=_float(record.get("rating")),
        review_count=int(_float(record.get("review_count"))),
        price_level=len(price) if price else 0,
        categories=categories,
        price=price,
        address=address,
        phone=str(record.get("display_phone") or record.get("phone") or ""),
        image_url=str(record.get("image_url") or ""),
        url=str(record.get("url") or ""),
    )



async def search_businesses(
    places_client,
    term: str,
    coordinates: Coordinates,
    limit: int = 5,
    categories: Optional[str] = None,
) -> FetchResult[List[GeoBusiness]]:
    """
    Execute a single places search for a term near a point.

    Never raises: any transport or API failure yields an empty list with `error` set.
    Results keep the provider's relevance order.

    Args:
        places_client: Client exposing `search(term, latitude, longitude, limit, categories)`.
        term: Name or free-text query.
        coordinates: Search center.
        limit: Desired number of results.
        categories: Optional category restriction.

    Returns:
        FetchResult[List[GeoBusiness]]: Parsed businesses.
    """
    start = time.perf_counter()
    logger.debug(f"▶️ Places search for '{term}' (limit={limit})")
    try:
        records = await places_client.search(
            term,
            coordinates.lat,
            coordinates.lng,
            limit=limit,
            categories=categories,
        )
    except asyncio.TimeoutError:
        logger.debug(f"⏱️ TIMEOUT places search for '{term}'")
        return FetchResult([], error=f"timeout searching '{term}'")
    except Exception as e:
        logger.debug(f"⚠️ ERROR places search for '{term}': {e}")
        return FetchResult([], error=str(e))

    businesses = []
    for record in records or []:
        business = parse_business(record, origin=coordinates)
        if business is None:
            logger.debug(f"Skipping malformed places record: {record!r}")
            continue
        businesses.append(business)

    duration = time.perf_counter() - start
    logger.debug(f"✅ Places search for '{term}' returned {len(businesses)} in {duration:.2f}s")
    return FetchResult(businesses)
