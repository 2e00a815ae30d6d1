import asyncio
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger

from menulens.config import REVIEW_LIMIT
from menulens.models import BusinessDetails, EnrichedProfile, FetchResult, GeoBusiness, Review

POSITIVE_KEYWORDS = ["amazing", "excellent", "delicious", "great", "best", "loved", "perfect"]

FOOD_NOUNS = "burger|pizza|pasta|salad|steak|chicken|fish|taco|burrito|sandwich"
DISH_PATTERNS = [
    re.compile(rf"the ([a-z\s]+(?:{FOOD_NOUNS}))", re.IGNORECASE),
    re.compile(rf"([a-z\s]+(?:{FOOD_NOUNS})) (?:is|was|are)", re.IGNORECASE),
]
MAX_DISHES = 5
MAX_HIGHLIGHTS = 3

# (keyword, label) scanned over category titles, then over review text
CATEGORY_DIETARY_LABELS = [
    ("vegan", "Vegan"),
    ("vegetarian", "Vegetarian"),
    ("gluten-free", "Gluten-Free"),
    ("halal", "Halal"),
    ("kosher", "Kosher"),
]
REVIEW_DIETARY_LABELS = [
    ("vegan", "Vegan Options"),
    ("vegetarian", "Vegetarian Options"),
    ("gluten free", "Gluten-Free Options"),
    ("gluten-free", "Gluten-Free Options"),
    ("halal", "Halal"),
    ("kosher", "Kosher"),
]


@dataclass
class BusinessContext:
    """Details and reviews gathered for one business."""
    business: GeoBusiness
    details: BusinessDetails
    reviews: List[Review] = field(default_factory=list)
    degraded: bool = False


def details_from_search(business: GeoBusiness) -> BusinessDetails:
    """Fallback details built from the fields the search result already had."""
    return BusinessDetails(
        name=business.name,
        rating=business.rating,
        review_count=business.review_count,
        categories=list(business.categories),
        photos=[business.image_url] if business.image_url else [],
        price=business.price,
        from_search_result=True,
    )


def parse_details(data: Dict[str, Any], business: GeoBusiness) -> BusinessDetails:
    categories = [
        c.get("title", "") for c in data.get("categories") or []
        if isinstance(c, dict) and c.get("title")
    ]
    return BusinessDetails(
        name=data.get("name") or business.name,
        rating=float(data.get("rating") or business.rating or 0),
        review_count=int(data.get("review_count") or business.review_count or 0),
        categories=categories or list(business.categories),
        photos=[p for p in data.get("photos") or [] if isinstance(p, str)],
        price=data.get("price") or business.price,
    )


def parse_reviews(records: List[Dict[str, Any]]) -> List[Review]:
    reviews = []
    for record in records or []:
        if not isinstance(record, dict) or not record.get("text"):
            continue
        reviews.append(Review(text=str(record["text"]), rating=record.get("rating")))
    return reviews


async def fetch_details(places_client, business: GeoBusiness) -> FetchResult[Optional[BusinessDetails]]:
    """Fail-soft details lookup; None with `error` set on failure."""
    start = time.perf_counter()
    try:
        data = await places_client.business_details(business.id)
        logger.debug(f"🏁 Details for {business.id} in {time.perf_counter() - start:.2f}s")
        return FetchResult(parse_details(data, business))
    except asyncio.TimeoutError:
        logger.debug(f"⏱️ TIMEOUT fetching details for {business.id}")
        return FetchResult(None, error="timeout fetching details")
    except Exception as e:
        logger.debug(f"⚠️ ERROR fetching details for {business.id}: {e}")
        return FetchResult(None, error=str(e))


async def fetch_reviews(places_client, business_id: str, limit: int = REVIEW_LIMIT) -> FetchResult[List[Review]]:
    """Fail-soft reviews lookup; empty list with `error` set on failure."""
    start = time.perf_counter()
    try:
        records = await places_client.reviews(business_id, limit=limit)
        reviews = parse_reviews(records)[:limit]
        logger.debug(f"🏁 {len(reviews)} reviews for {business_id} in {time.perf_counter() - start:.2f}s")
        return FetchResult(reviews)
    except asyncio.TimeoutError:
        logger.debug(f"⏱️ TIMEOUT fetching reviews for {business_id}")
        return FetchResult([], error="timeout fetching reviews")
    except Exception as e:
        logger.debug(f"⚠️ ERROR fetching reviews for {business_id}: {e}")
        return FetchResult([], error=str(e))


async def fetch_business_context(places_client, business: GeoBusiness) -> BusinessContext:
    """
    Fetch details and reviews concurrently.

    A failed details call falls back to the search result's own fields and a failed
    reviews call to an empty list; either marks the context as degraded.
    """
    details, reviews = await asyncio.gather(
        fetch_details(places_client, business),
        fetch_reviews(places_client, business.id),
    )
    degraded = not details.ok or not reviews.ok
    if not details.ok:
        logger.warning(f"Using search result data for '{business.name}' details")
    return BusinessContext(
        business=business,
        details=details.value or details_from_search(business),
        reviews=reviews.value,
        degraded=degraded,
    )


def leading_sentence(text: str) -> str:
    return text.split(".")[0].strip()


def generate_summary(details: BusinessDetails, reviews: List[Review]) -> str:
    categories = ", ".join(details.categories) or "Restaurant"
    summary = f"{details.name} is a {categories} with {details.rating} stars from {details.review_count} reviews."
    if reviews:
        summary += f" {leading_sentence(reviews[0].text)[:150]}."
    return summary


def extract_highlights(reviews: List[Review]) -> List[str]:
    """Leading sentences of the first five reviews that use a positive keyword, up to three."""
    highlights = []
    for review in reviews[:5]:
        text = review.text.lower()
        if any(keyword in text for keyword in POSITIVE_KEYWORDS):
            highlights.append(leading_sentence(review.text))
    highlights = [h for h in highlights if h][:MAX_HIGHLIGHTS]
    if not highlights and reviews:
        return [reviews[0].text[:200]]
    return highlights


def extract_popular_dishes(reviews: List[Review]) -> List[str]:
    dishes: List[str] = []
    for review in reviews:
        for pattern in DISH_PATTERNS:
            for match in pattern.finditer(review.text):
                dish = re.sub(r"^the ", "", " ".join(match.group(1).split()).lower())
                if 3 < len(dish) < 50 and dish not in dishes:
                    dishes.append(dish)
    return dishes[:MAX_DISHES]


def extract_dietary_labels(details: BusinessDetails, reviews: List[Review]) -> List[str]:
    labels: List[str] = []
    categories = [c.lower() for c in details.categories]
    for keyword, label in CATEGORY_DIETARY_LABELS:
        if any(keyword in c for c in categories) and label not in labels:
            labels.append(label)

    review_text = " ".join(r.text.lower() for r in reviews)
    for keyword, label in REVIEW_DIETARY_LABELS:
        if keyword in review_text and label not in labels:
            labels.append(label)
    return labels


def build_profile(details: BusinessDetails, reviews: List[Review]) -> EnrichedProfile:
    """Derive the enriched profile from details and reviews. Pure."""
    return EnrichedProfile(
        summary=generate_summary(details, reviews),
        highlights=extract_highlights(reviews),
        popular_dishes=extract_popular_dishes(reviews),
        dietary_labels=extract_dietary_labels(details, reviews),
        photos=list(details.photos),
        categories=list(details.categories),
        rating=details.rating,
        review_count=details.review_count,
    )

