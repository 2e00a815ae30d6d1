import pytest
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from menulens.models import Coordinates

SF = Coordinates(37.7749, -122.4194)


def yelp_record(
    business_id: str,
    name: str,
    distance: Optional[float] = None,
    price: Optional[str] = "$$",
    categories: List[str] = ("Restaurants",),
    rating: float = 4.0,
    review_count: int = 100,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
) -> Dict:
    """Build a business dictionary shaped like a Yelp search result."""
    record = {
        "id": business_id,
        "name": name,
        "rating": rating,
        "review_count": review_count,
        "categories": [{"alias": c.lower(), "title": c} for c in categories],
        "location": {"display_address": ["1 Market St", "San Francisco, CA"]},
        "image_url": f"https://img.example/{business_id}.jpg",
    }
    if price:
        record["price"] = price
    if distance is not None:
        record["distance"] = distance
    if lat is not None and lng is not None:
        record["coordinates"] = {"latitude": lat, "longitude": lng}
    return record


def make_places_client(search=None, details=None, reviews=None) -> MagicMock:
    """
    Fake places client. Each argument is either a return value or an async callable
    used as side_effect.
    """
    client = MagicMock()
    for attr, value, default in (
        ("search", search, []),
        ("business_details", details, {}),
        ("reviews", reviews, []),
    ):
        if callable(value) or isinstance(value, Exception):
            setattr(client, attr, AsyncMock(side_effect=value))
        else:
            setattr(client, attr, AsyncMock(return_value=default if value is None else value))
    return client


@pytest.fixture
def coordinates() -> Coordinates:
    return SF
