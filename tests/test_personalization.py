from conftest import yelp_record
from menulens.models import EnrichedProfile, Personalization, UserProfile
from menulens.personalization import personalize
from menulens.places_search import parse_business

KARMA = parse_business(yelp_record("karma-kafe", "Karma Kafe", categories=["Indian", "Halal"]))
PROFILE = EnrichedProfile(
    summary="Karma Kafe is an Indian restaurant.",
    popular_dishes=["lamb biryani", "butter chicken"],
    dietary_labels=["Halal", "Vegetarian Options"],
    categories=["Indian", "Halal"],
)


def test_no_user_gives_neutral_personalization():
    assert personalize(None, KARMA, PROFILE) == Personalization()


def test_matching_user():
    user = UserProfile(
        user_id="u1",
        favorites=["karma-kafe"],
        dietary_preferences=["vegetarian"],
        liked_cuisines=["Indian", "Mexican"],
    )

    result = personalize(user, KARMA, PROFILE)

    assert result.is_favorite
    assert result.cuisine_match_score == 0.5
    assert result.user_diet_match == "Vegetarian Options"
    assert result.personalized_recommendations == [
        "Try the lamb biryani",
        "Offers vegetarian options that fit your diet",
        "Matches your taste for indian",
    ]


def test_past_visit_replaces_cuisine_note():
    user = UserProfile(liked_cuisines=["indian"], past_visits=[{"place_id": "karma-kafe", "date": "2024-05-01"}])

    result = personalize(user, KARMA, PROFILE)

    assert not result.is_favorite
    assert result.cuisine_match_score == 1.0
    assert result.personalized_recommendations == ["Try the lamb biryani", "You've been here before"]


def test_without_enrichment_uses_business_categories():
    user = UserProfile(liked_cuisines=["halal"], dietary_preferences=["vegan"])

    result = personalize(user, KARMA, None)

    assert result.cuisine_match_score == 1.0
    assert result.user_diet_match == ""
    assert result.personalized_recommendations == ["Matches your taste for halal"]
