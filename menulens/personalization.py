from typing import List, Optional

from menulens.models import EnrichedProfile, GeoBusiness, Personalization, UserProfile

MAX_RECOMMENDATIONS = 3


def personalize(
    user: Optional[UserProfile],
    business: GeoBusiness,
    profile: Optional[EnrichedProfile],
) -> Personalization:
    """
    Tag a matched business against the user's stored preferences.

    Args:
        user (Optional[UserProfile]): Preferences; None yields neutral personalization.
        business (GeoBusiness): The matched business.
        profile (Optional[EnrichedProfile]): Enrichment, when available.

    Returns:
        Personalization: Favorite flag, cuisine/diet matches and short recommendations.
    """
    if user is None:
        return Personalization()

    categories = [c.lower() for c in (profile.categories if profile else business.categories)]
    dietary_labels = profile.dietary_labels if profile else []
    dishes = profile.popular_dishes if profile else []

    liked = [c.lower() for c in user.liked_cuisines if c]
    cuisine_hits = [c for c in liked if any(c in category for category in categories)]
    cuisine_score = round(len(cuisine_hits) / len(liked), 2) if liked else 0.0

    prefs = [p.lower() for p in user.dietary_preferences if p]
    diet_hits = [label for label in dietary_labels if any(p in label.lower() for p in prefs)]

    recommendations: List[str] = []
    if dishes:
        recommendations.append(f"Try the {dishes[0]}")
    if diet_hits:
        recommendations.append(f"Offers {diet_hits[0].lower()} that fit your diet")
    visited = any(visit.get("place_id") == business.id for visit in user.past_visits)
    if visited:
        recommendations.append("You've been here before")
    elif cuisine_hits:
        recommendations.append(f"Matches your taste for {cuisine_hits[0]}")

    return Personalization(
        is_favorite=business.id in user.favorites,
        cuisine_match_score=cuisine_score,
        user_diet_match=", ".join(diet_hits),
        personalized_recommendations=recommendations[:MAX_RECOMMENDATIONS],
    )
