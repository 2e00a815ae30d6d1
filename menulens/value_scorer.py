import math

COST_WEIGHT = 40
CALORIE_CAP = 30
QUANTITY_CAP = 30


def parse_quantity(quantity: str) -> float:
    """
    Map a portion descriptor to a rough number of servings.

    "2-3 servings" -> 3, "1-2 servings" -> 2, "Large portion" -> 2.5, anything else -> 1.
    """
    text = (quantity or "").lower()
    if "3" in text:
        return 3
    if "2" in text:
        return 2
    if "large" in text or "big" in text:
        return 2.5
    return 1


def value_score(cost: float, calories: float, quantity: str, budget: float) -> int:
    """
    Score one option's value for money on a 0-100 scale.

    Up to 40 points for how far the cost stays under budget, up to 30 for calories
    per dollar and up to 30 for portion size. Scored per option, so the result does
    not depend on what it is compared against.

    Args:
        cost (float): Estimated cost of the option.
        calories (float): Estimated calories.
        quantity (str): Portion descriptor, see parse_quantity.
        budget (float): The user's budget, must be positive.

    Returns:
        int: Rounded score clamped to [0, 100].
    """
    if budget <= 0:
        raise ValueError(f"Budget must be positive, got {budget}")

    cost_efficiency = (budget - cost) / budget * COST_WEIGHT
    # A free option gets full calorie credit
    calorie_value = CALORIE_CAP if cost <= 0 else min(CALORIE_CAP, calories / cost * CALORIE_CAP)
    quantity_value = min(QUANTITY_CAP, parse_quantity(quantity) * QUANTITY_CAP)

    score = min(100.0, cost_efficiency + calorie_value + quantity_value)
    # Round half up
    return int(max(0, math.floor(score + 0.5)))
