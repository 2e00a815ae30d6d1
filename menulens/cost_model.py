"""
Cost, calorie and portion estimates for one side of a comparison.

Heuristic tables keyed by price level, dish noun and category; review text
nudges portion size up or down.
"""
from typing import List, Optional

from menulens.models import Review

DEFAULT_PRICE = "$$"

PRICE_MULTIPLIERS = {"$": 0.6, "$$": 0.8, "$$$": 0.95, "$$$$": 1.1}
PRICE_CALORIE_ADJUSTMENT = {"$": 0.9, "$$": 1.0, "$$$": 1.2, "$$$$": 1.4}
QUANTITY_BY_PRICE = {
    "$": "Single serving",
    "$$": "1-2 servings",
    "$$$": "2-3 servings",
    "$$$$": "2-3 servings (premium)",
}

DISH_CALORIES = {
    "biryani": 800, "burrito": 900, "burrito bowl": 700, "bowl": 700, "pizza": 600,
    "burger": 800, "taco": 300, "tacos": 600, "salad": 400, "sandwich": 600,
    "pasta": 700, "curry": 650, "noodles": 550, "rice": 400, "wrap": 500,
    "quesadilla": 600, "nachos": 700, "chicken": 600, "beef": 700, "pork": 650,
    "fish": 500, "seafood": 550,
}
DEFAULT_DISH_CALORIES = 600
DISH_COST_BASELINE = 15.0

CATEGORY_CALORIES = [
    ("pizza", 800), ("italian", 900), ("burgers", 1000), ("american", 950),
    ("mexican", 850), ("asian", 700), ("chinese", 750), ("japanese", 650),
    ("indian", 800), ("thai", 700), ("seafood", 600), ("mediterranean", 750),
    ("fast food", 1100), ("sandwiches", 700), ("salad", 400),
]
DEFAULT_CATEGORY_CALORIES = 700
BUDGET_BASELINE = 25.0

LARGE_WORDS = ("large", "big", "huge")
SMALL_WORDS = ("small", "tiny")


def _review_text(reviews: List[Review]) -> str:
    return " ".join(r.text.lower() for r in reviews)


def _mentions(text: str, words) -> bool:
    return any(word in text for word in words)


def estimate_cost(price: Optional[str], budget: float, specific_cost: Optional[float] = None) -> float:
    """Explicit cost when known, else a share of the budget by price level, capped at 110% of budget."""
    if specific_cost:
        return float(specific_cost)
    multiplier = PRICE_MULTIPLIERS.get(price or DEFAULT_PRICE, PRICE_MULTIPLIERS[DEFAULT_PRICE])
    return min(budget * multiplier, budget * 1.1)


def estimate_dish_calories(dish: str, reviews: List[Review], price: Optional[str], cost: float) -> int:
    dish_lower = dish.lower()
    base = DEFAULT_DISH_CALORIES
    # Longest key first so "burrito bowl" is not read as "burrito"
    for key in sorted(DISH_CALORIES, key=len, reverse=True):
        if key in dish_lower:
            base = DISH_CALORIES[key]
            break

    calories = base * PRICE_CALORIE_ADJUSTMENT.get(price or DEFAULT_PRICE, 1.0)
    calories *= cost / DISH_COST_BASELINE

    text = _review_text(reviews)
    if dish_lower in text:
        if _mentions(text, LARGE_WORDS):
            calories *= 1.3
        if _mentions(text, SMALL_WORDS):
            calories *= 0.8
    return round(calories)


def estimate_category_calories(
    categories: List[str], reviews: List[Review], price: Optional[str], budget: float
) -> int:
    titles = [c.lower() for c in categories]
    base = DEFAULT_CATEGORY_CALORIES
    for key, value in CATEGORY_CALORIES:
        if any(key in title for title in titles):
            base = value
            break

    calories = base * PRICE_CALORIE_ADJUSTMENT.get(price or DEFAULT_PRICE, 1.0)
    calories *= budget / BUDGET_BASELINE

    text = _review_text(reviews)
    if _mentions(text, LARGE_WORDS):
        calories *= 1.3
    elif _mentions(text, SMALL_WORDS):
        calories *= 0.8
    return round(calories)


def estimate_quantity(reviews: List[Review], price: Optional[str], dish: Optional[str] = None) -> str:
    """
    Portion descriptor from review mentions, then dish defaults, then price level.

    With a dish, reviews only count when they mention that dish.
    """
    text = _review_text(reviews)
    dish_lower = (dish or "").lower()

    small_words = SMALL_WORDS if dish else SMALL_WORDS + ("little",)

    if not dish or dish_lower in text:
        if _mentions(text, ("share", "splitting")):
            return "2-3 servings (sharable)"
        if _mentions(text, LARGE_WORDS):
            return "Large portion (1-2 servings)"
        if _mentions(text, small_words):
            return "Single serving"

    if dish:
        if "biryani" in dish_lower or "biriyani" in dish_lower:
            return "Large portion (1-2 servings)"
        if "burrito" in dish_lower or "bowl" in dish_lower:
            return "Single serving (generous)"
        if "pizza" in dish_lower:
            return "2-3 servings"
        if "taco" in dish_lower:
            return "2-3 pieces (single serving)"

    return QUANTITY_BY_PRICE.get(price or DEFAULT_PRICE, "1-2 servings")


def restaurant_summary(name: str, price: str, categories: List[str], rating: float,
                       review_count: int, reviews: List[Review]) -> str:
    category_text = ", ".join(categories) or "Restaurant"
    tail = f"{reviews[0].text[:100]}..." if reviews else "Well-rated establishment."
    return f"{name} ({price}) - {category_text} with {rating}⭐ from {review_count} reviews. {tail}"


def dish_summary(name: str, dish: str, cost: float, rating: float, review_count: int) -> str:
    return f"{name} - {dish} for ${cost:.2f}. {rating}⭐ rating from {review_count} reviews."
