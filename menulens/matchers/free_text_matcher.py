import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from loguru import logger

from menulens.config import BROAD_SEARCH_LIMIT, NARROW_SEARCH_LIMIT
from menulens.models import Coordinates, GeoBusiness
from menulens.parsing import DISH_NOUNS, PRICE_RE
from menulens.places_search import search_businesses

LOCATION_PREFIXES = ["hoboken", "new york", "nyc", "manhattan", "brooklyn", "queens", "bronx"]


def clean_restaurant_name(name: str) -> str:
    """
    Remove city prefixes, dish nouns and price tokens from a restaurant name.

    "Brooklyn Karma Kafe biryani $18" -> "Karma Kafe". Falls back to the input
    when nothing is left.
    """
    cleaned = (name or "").strip()

    for prefix in LOCATION_PREFIXES:
        cleaned = re.sub(rf"^{prefix}\s+", "", cleaned, flags=re.IGNORECASE)

    for dish in DISH_NOUNS:
        cleaned = re.sub(rf"\s+{dish}\b", "", cleaned, flags=re.IGNORECASE)

    cleaned = PRICE_RE.sub("", cleaned).strip()
    # Stray separators left at either end
    cleaned = re.sub(r"^[,\-–]\s*|\s*[,\-–]$", "", cleaned).strip()
    cleaned = re.sub(r"\s{2,}", " ", cleaned)

    return cleaned or (name or "").strip()


def _search_words(search_name: str) -> List[str]:
    return [w for w in search_name.lower().split() if len(w) > 2]


def find_best_match(businesses: Sequence[GeoBusiness], search_name: str) -> Optional[GeoBusiness]:
    """
    Pick the business whose name best matches a search string.

    1. Exact case-insensitive name equality wins outright.
    2. Else the first business containing at least min(2, #words) of the search words;
       with no words longer than 2 characters that is the first business.
    3. Else the business containing the most search words (at least one); first wins ties.

    Args:
        businesses: Search results in provider order.
        search_name: The cleaned restaurant name.

    Returns:
        Optional[GeoBusiness]: None when nothing shares a word with the search string.
    """
    if not businesses:
        return None

    search_lower = search_name.strip().lower()
    words = _search_words(search_lower)

    for business in businesses:
        if business.name.strip().lower() == search_lower:
            return business

    # Every business contains all of zero words
    if not words:
        return businesses[0]

    required = min(len(words), 2)
    for business in businesses:
        name = business.name.lower()
        if sum(1 for w in words if w in name) >= required:
            return business

    best, best_count = None, 0
    for business in businesses:
        name = business.name.lower()
        count = sum(1 for w in words if w in name)
        if count > best_count:
            best, best_count = business, count

    return best if best_count >= 1 else None


@dataclass(frozen=True)
class SearchAttempt:
    """One query of the resolution cascade."""
    strategy: str
    query: str
    limit: int


@dataclass
class Resolution:
    """Outcome of resolving one free-text restaurant name."""
    query: str
    cleaned: str
    business: Optional[GeoBusiness] = None
    strategy: Optional[str] = None
    attempts: List[SearchAttempt] = field(default_factory=list)
    degraded: bool = False


def build_attempts(name: str, cleaned: str) -> List[SearchAttempt]:
    """
    The ordered search cascade for a restaurant name.

    cleaned/narrow, original/narrow, cleaned/broad, then each word (>3 chars) of
    the cleaned name broad when it has more than one such word.
    """
    attempts = [
        SearchAttempt("cleaned_narrow", cleaned, NARROW_SEARCH_LIMIT),
        SearchAttempt("original_narrow", name, NARROW_SEARCH_LIMIT),
        SearchAttempt("cleaned_broad", cleaned, BROAD_SEARCH_LIMIT),
    ]
    parts = [part for part in cleaned.split() if len(part) > 3]
    if len(parts) > 1:
        attempts.extend(SearchAttempt("word_broad", part, BROAD_SEARCH_LIMIT) for part in parts)
    return attempts


async def resolve_business(places_client, name: str, coordinates: Coordinates) -> Resolution:
    """
    Resolve a free-text restaurant name to a single business.

    Each attempt re-queries the places directory; results are judged against the
    cleaned name with find_best_match. When every attempt comes back without a
    match but the last one returned businesses, its first result is used.

    Args:
        places_client: Client exposing `search(...)`.
        name (str): Restaurant name as typed by the user.
        coordinates (Coordinates): Search center.

    Returns:
        Resolution: `business` is None when nothing could be found.
    """
    name = (name or "").strip()
    cleaned = clean_restaurant_name(name)
    resolution = Resolution(query=name, cleaned=cleaned)
    last_results: List[GeoBusiness] = []

    for attempt in build_attempts(name, cleaned):
        resolution.attempts.append(attempt)
        search = await search_businesses(places_client, attempt.query, coordinates, limit=attempt.limit)
        if not search.ok:
            resolution.degraded = True
        last_results = search.value

        match = find_best_match(last_results, cleaned)
        if match is not None:
            logger.info(f"✅ Resolved '{name}' -> '{match.name}' via {attempt.strategy}")
            resolution.business = match
            resolution.strategy = attempt.strategy
            return resolution

    if last_results:
        logger.warning(f"⚠️ No confident match for '{name}', using first result '{last_results[0].name}'")
        resolution.business = last_results[0]
        resolution.strategy = "last_resort"
        return resolution

    logger.info(f"❌ Could not resolve '{name}' after {len(resolution.attempts)} searches")
    return resolution
