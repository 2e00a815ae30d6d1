from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from menulens.cost_model import (
    DEFAULT_PRICE,
    dish_summary,
    estimate_category_calories,
    estimate_cost,
    estimate_dish_calories,
    estimate_quantity,
    restaurant_summary,
)
from menulens.enrichment import fetch_business_context
from menulens.matchers.free_text_matcher import Resolution, resolve_business
from menulens.models import ComparisonOption, ComparisonResult, Coordinates, ParsedOption
from menulens.value_scorer import parse_quantity, value_score


@dataclass
class OptionEstimate:
    """Outcome of estimating one comparison side."""
    parsed: ParsedOption
    resolution: Resolution
    option: Optional[ComparisonOption] = None
    degraded: bool = False


async def estimate_option(
    places_client,
    parsed: ParsedOption,
    budget: float,
    coordinates: Coordinates,
) -> OptionEstimate:
    """
    Resolve one side to a business, enrich it and score its value.

    Args:
        places_client: Client exposing `search`, `business_details` and `reviews`.
        parsed (ParsedOption): Restaurant, optional dish and optional cost.
        budget (float): Comparison budget.
        coordinates (Coordinates): Search center.

    Returns:
        OptionEstimate: `option` is None when the restaurant could not be resolved.
    """
    resolution = await resolve_business(places_client, parsed.restaurant, coordinates)
    if resolution.business is None:
        return OptionEstimate(parsed=parsed, resolution=resolution, degraded=resolution.degraded)

    business = resolution.business
    context = await fetch_business_context(places_client, business)
    details, reviews = context.details, context.reviews

    price = business.price or details.price or DEFAULT_PRICE
    cost = estimate_cost(price, budget, parsed.cost)
    if parsed.dish:
        calories = estimate_dish_calories(parsed.dish, reviews, price, cost)
        summary = dish_summary(details.name, parsed.dish, cost, details.rating, details.review_count)
    else:
        calories = estimate_category_calories(details.categories, reviews, price, budget)
        summary = restaurant_summary(
            details.name, price, details.categories, details.rating, details.review_count, reviews
        )
    quantity = estimate_quantity(reviews, price, parsed.dish)
    score = value_score(cost, calories, quantity, budget)

    logger.info(f"💰 {parsed.label}: cost=${cost:.2f} calories={calories} quantity='{quantity}' score={score}")
    option = ComparisonOption(
        restaurant_name=business.name,
        dish_name=parsed.dish,
        restaurant_id=business.id,
        price_level=price,
        estimated_cost=cost,
        estimated_calories=calories,
        estimated_quantity=quantity,
        value_score=score,
        summary=summary,
        categories=list(details.categories),
    )
    return OptionEstimate(
        parsed=parsed,
        resolution=resolution,
        option=option,
        degraded=resolution.degraded or context.degraded,
    )


def better_of(first: float, second: float) -> str:
    """'option1', 'option2' or 'tie' for the larger value."""
    if first > second:
        return "option1"
    if second > first:
        return "option2"
    return "tie"


def personalized_reason(
    option1: ComparisonOption,
    option2: ComparisonOption,
    better_calories: str,
    better_quantity: str,
    better_value: str,
    budget: float,
) -> str:
    """Plain-language explanation of the comparison verdict."""
    if better_value == "tie":
        lines: List[str] = [
            f"{option1.label} and {option2.label} offer the same value for your ${budget:g} budget."
        ]
    else:
        winner = option1 if better_value == "option1" else option2
        lines = [f"{winner.label} offers the best value for your ${budget:g} budget."]

    if better_calories != "tie":
        more, fewer = (option1, option2) if better_calories == "option1" else (option2, option1)
        diff = more.estimated_calories - fewer.estimated_calories
        lines.append(
            f"• More Calories: {more.label} provides {more.estimated_calories} calories "
            f"vs {fewer.estimated_calories} calories ({diff} more)."
        )

    if better_quantity != "tie":
        bigger, smaller = (option1, option2) if better_quantity == "option1" else (option2, option1)
        lines.append(
            f"• Better Portion Size: {bigger.label} offers \"{bigger.estimated_quantity}\" compared to "
            f"\"{smaller.estimated_quantity}\" from {smaller.label}."
        )

    cost_diff = abs(option1.estimated_cost - option2.estimated_cost)
    if cost_diff > 0.5:
        cheaper, pricier = (option1, option2) if option1.estimated_cost < option2.estimated_cost else (option2, option1)
        lines.append(
            f"• Cost: {cheaper.label} costs ${cheaper.estimated_cost:.2f}, saving you ${cost_diff:.2f} "
            f"compared to {pricier.label} (${pricier.estimated_cost:.2f})."
        )

    if better_value != "tie":
        winner = option1 if better_value == "option1" else option2
        lines.append(
            f"Recommendation: Choose {winner.label} for the best combination of calories, "
            f"quantity, and value within your budget!"
        )
    return "\n\n".join(lines)


def build_comparison(option1: ComparisonOption, option2: ComparisonOption, budget: float) -> ComparisonResult:
    """Pick the winner by value score and compare calories and portions."""
    winner = better_of(option1.value_score, option2.value_score)
    better_calories = better_of(option1.estimated_calories, option2.estimated_calories)
    better_quantity = better_of(
        parse_quantity(option1.estimated_quantity), parse_quantity(option2.estimated_quantity)
    )
    return ComparisonResult(
        option1=option1,
        option2=option2,
        budget=budget,
        winner=winner,
        better_calories=better_calories,
        better_quantity=better_quantity,
        better_value=winner,
        personalized_reason=personalized_reason(
            option1, option2, better_calories, better_quantity, winner, budget
        ),
    )
