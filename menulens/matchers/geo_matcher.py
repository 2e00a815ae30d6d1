from typing import List, Optional

from loguru import logger

from menulens.config import (
    DISTANCE_WEIGHT,
    MATCH_THRESHOLD,
    MAX_SEARCH_RADIUS_METERS,
    MIN_SEARCH_RADIUS_METERS,
    NAME_WEIGHT,
    RECOGNITION_SEARCH_LIMIT,
    SEARCH_RADIUS_METERS,
)
from menulens.errors import InvalidInputError
from menulens.matchers.name_similarity import name_similarity
from menulens.models import (
    Coordinates,
    GeoBusiness,
    MatchResult,
    MatchScore,
    MatchStrategy,
    TextCandidate,
)
from menulens.places_search import search_businesses


def distance_score(distance_meters: Optional[float], radius: float) -> float:
    """1.0 at the query point, falling linearly to 0.0 at `radius` and beyond. Unknown distance scores 0."""
    if distance_meters is None:
        return 0.0
    return max(0.0, 1.0 - distance_meters / radius)


def score_pair(
    candidate: TextCandidate,
    business: GeoBusiness,
    radius: float = SEARCH_RADIUS_METERS,
    name_weight: float = NAME_WEIGHT,
    distance_weight: float = DISTANCE_WEIGHT,
) -> MatchScore:
    """
    Score a single (candidate, business) pair.

    Signage text is the primary signal; distance only confirms, so it carries the
    smaller weight.
    """
    name_score = name_similarity(candidate.text, business.name)
    dist_score = distance_score(business.distance_meters, radius)
    combined = name_weight * name_score + distance_weight * dist_score
    return MatchScore(
        candidate=candidate,
        business=business,
        name_similarity=name_score,
        distance_score=dist_score,
        combined=combined,
    )


async def match_candidates(
    places_client,
    candidates: List[TextCandidate],
    coordinates: Coordinates,
    radius: float = SEARCH_RADIUS_METERS,
    threshold: float = MATCH_THRESHOLD,
    limit: int = RECOGNITION_SEARCH_LIMIT,
) -> MatchResult:
    """
    Fuse OCR candidates with nearby businesses and pick the best pair above threshold.

    Candidates are searched one at a time, best tier first. After each candidate's
    result set is scored, the search stops if the best pair so far clears the
    threshold. Ties keep the first pair found.

    Args:
        places_client: Client exposing `search(...)`.
        candidates (List[TextCandidate]): Ranked candidates from the extractor.
        coordinates (Coordinates): GPS fix of the camera.
        radius (float): Distance in meters at which the distance score reaches 0.
            Expected within 100-150m; other positive values are used but logged.
        threshold (float): Minimum combined score to accept a match.
        limit (int): Results requested per candidate search.

    Returns:
        MatchResult: Matched business with its combined score as confidence, or a no-match.
    """
    if radius <= 0:
        raise InvalidInputError(f"Search radius must be positive, got {radius}")
    if not MIN_SEARCH_RADIUS_METERS <= radius <= MAX_SEARCH_RADIUS_METERS:
        logger.warning(
            f"Search radius {radius}m is outside the {MIN_SEARCH_RADIUS_METERS}-{MAX_SEARCH_RADIUS_METERS}m "
            f"storefront range; distance scores will be skewed"
        )

    best: Optional[MatchScore] = None
    tried: List[str] = []
    degraded = False

    for candidate in candidates:
        tried.append(candidate.text)
        search = await search_businesses(places_client, candidate.text, coordinates, limit=limit)
        if not search.ok:
            degraded = True

        for business in search.value:
            scored = score_pair(candidate, business, radius)
            logger.debug(
                f"   '{candidate.text}' vs '{business.name}': name={scored.name_similarity:.2f} "
                f"dist={scored.distance_score:.2f} combined={scored.combined:.2f}"
            )
            if best is None or scored.combined > best.combined:
                best = scored

        # Early exit once the best pair so far is good enough
        if best is not None and best.combined >= threshold:
            break

    if best is not None and best.combined >= threshold:
        logger.info(f"✅ Matched '{best.business.name}' from '{best.candidate.text}' ({best.combined:.2f})")
        return MatchResult(
            business=best.business,
            confidence=best.combined,
            strategy_used=MatchStrategy.MATCHED,
            candidates_tried=tried,
            degraded=degraded,
        )

    logger.info(f"❌ No business cleared {threshold} after {len(tried)} candidates")
    return MatchResult(
        business=None,
        confidence=0.0,
        strategy_used=MatchStrategy.NO_MATCH,
        candidates_tried=tried,
        degraded=degraded,
    )
