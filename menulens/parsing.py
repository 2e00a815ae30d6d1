"""
Free-text parsing for the comparison feature.

Both parsers are ordered lists of named strategies: the first strategy that
returns something wins, so each one can be tested on its own and the fallback
order stays visible in one place.
"""
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from loguru import logger

from menulens.config import DEFAULT_BUDGET
from menulens.errors import InvalidInputError
from menulens.models import (
    ComparisonRequest,
    OptionInput,
    OptionSource,
    ParsedOption,
    StructuredOption,
)

# Order matters: the first noun found after the restaurant name is taken as the dish
DISH_NOUNS = [
    "biryani", "biriyani", "burrito", "pizza", "burger", "taco", "tacos", "bowl",
    "salad", "curry", "pasta", "noodles", "quesadilla",
]

PRICE_RE = re.compile(r"\$\s?(\d+(?:\.\d+)?)")
BARE_NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?)")

# (restaurant, dish)
Split = Tuple[str, Optional[str]]


@dataclass(frozen=True)
class NamedStrategy:
    name: str
    apply: Callable


def extract_cost(text: str) -> Optional[float]:
    """First `$<number>` in the text, if any."""
    match = PRICE_RE.search(text or "")
    return float(match.group(1)) if match else None


def strip_prices(text: str) -> str:
    return re.sub(r"\s{2,}", " ", PRICE_RE.sub("", text or "")).strip()


AT_RE = re.compile(r"^(.+?)\s+(?:at|from|in)\s+(.+)$", re.IGNORECASE)
COMMA_RE = re.compile(r"^(.+?)\s*,\s*(.+)$")
DASH_RE = re.compile(r"^(.+?)\s+[-–]\s+(.+)$")


def split_dish_at_restaurant(text: str) -> Optional[Split]:
    """'biryani at Karma Kafe' -> ('Karma Kafe', 'biryani')"""
    match = AT_RE.match(text)
    if not match:
        return None
    return match.group(2).strip(), match.group(1).strip()


def split_restaurant_separator_dish(text: str) -> Optional[Split]:
    """'Karma Kafe, biryani' or 'Karma Kafe - biryani' -> ('Karma Kafe', 'biryani')"""
    match = COMMA_RE.match(text) or DASH_RE.match(text)
    if not match:
        return None
    return match.group(1).strip(), match.group(2).strip()


def split_dish_noun(text: str) -> Optional[Split]:
    """'Karma Kafe biryani' or 'biryani Karma Kafe' -> ('Karma Kafe', 'biryani')"""
    for dish in DISH_NOUNS:
        after = re.match(rf"^(.+?)\s+{dish}\b", text, re.IGNORECASE)
        if after:
            return after.group(1).strip(), dish
        before = re.match(rf"^{dish}\s+(.+)$", text, re.IGNORECASE)
        if before:
            return before.group(1).strip(), dish
    return None


OPTION_STRATEGIES: List[NamedStrategy] = [
    NamedStrategy("dish_at_restaurant", split_dish_at_restaurant),
    NamedStrategy("restaurant_separator_dish", split_restaurant_separator_dish),
    NamedStrategy("dish_noun", split_dish_noun),
]


def parse_option(text: str, default_cost: Optional[float] = None) -> ParsedOption:
    """
    Split a free-text option into restaurant, dish and cost.

    Args:
        text (str): e.g. "Karma Kafe biryani $18".
        default_cost (Optional[float]): Cost to use when the text carries no price.

    Returns:
        ParsedOption: The whole text becomes the restaurant when no strategy applies.
    """
    raw = (text or "").strip()
    if not raw:
        raise InvalidInputError("Option text is empty")

    cost = extract_cost(raw)
    if cost is None:
        cost = default_cost
    cleaned = strip_prices(raw)

    for strategy in OPTION_STRATEGIES:
        split = strategy.apply(cleaned)
        if split and split[0]:
            restaurant, dish = split
            logger.debug(f"Parsed '{raw}' with {strategy.name}: restaurant='{restaurant}' dish={dish!r}")
            return ParsedOption(restaurant=restaurant, dish=dish or None, cost=cost, raw=raw)

    return ParsedOption(restaurant=cleaned or raw, cost=cost, raw=raw)


def to_parsed_option(value: OptionInput, default_cost: Optional[float] = None) -> ParsedOption:
    """
    Ingest one comparison side, free text or structured, into a ParsedOption.
    """
    if isinstance(value, ParsedOption):
        return value
    if isinstance(value, StructuredOption):
        if not (value.restaurant or "").strip():
            raise InvalidInputError("Structured option has no restaurant")
        return ParsedOption(
            restaurant=value.restaurant.strip(),
            dish=value.dish,
            cost=value.cost if value.cost is not None else default_cost,
            source=OptionSource.STRUCTURED,
            raw=value.restaurant,
        )
    if isinstance(value, str):
        return parse_option(value, default_cost)
    raise InvalidInputError(f"Unsupported option type: {type(value).__name__}")


# Comparison requests

REQUEST_KEYWORDS_RE = re.compile(r"compare|cost|estimator|which is better|\bvs\b|versus", re.IGNORECASE)
_TAIL = r"(?:\s+(?:for|with|budget)\b.*)?$"

REQUEST_STRATEGIES: List[NamedStrategy] = [
    NamedStrategy(
        "compare_x_vs_y",
        re.compile(rf"compare\s+(.+?)\s+(?:vs\.?|versus|or)\s+(.+?){_TAIL}", re.IGNORECASE).search,
    ),
    NamedStrategy(
        "which_is_better",
        re.compile(r"which is better\s+(.+?)\s+or\s+(.+?)(?:\s+(?:for|with)\b.*)?$", re.IGNORECASE).search,
    ),
    NamedStrategy(
        "cost_estimator",
        re.compile(r"cost estimator[:\s]+(.+?)\s+vs\.?\s+(.+?)(?:\s+budget\b.*)?$", re.IGNORECASE).search,
    ),
    NamedStrategy(
        "x_vs_y_with_budget",
        re.compile(r"^(.+?)\s+(?:vs\.?|versus|or)\s+(.+?)\s+(?:for|with|budget)\b", re.IGNORECASE).search,
    ),
]

SEPARATOR_RE = re.compile(r"\s+(?:vs\.?|versus|or)\s+", re.IGNORECASE)


def _split_on_separator(text: str) -> Optional[Tuple[str, str]]:
    parts = SEPARATOR_RE.split(text, maxsplit=1)
    if len(parts) < 2:
        return None
    first = re.sub(r"compare|cost estimator:?", "", parts[0], flags=re.IGNORECASE).strip()
    second = re.sub(r"\s+(?:for|with|budget)\b.*$", "", parts[1], flags=re.IGNORECASE).strip()
    return first, second


def extract_budget(text: str, default: float = DEFAULT_BUDGET) -> float:
    """Largest `$N` amount, else the first bare number, else the default."""
    amounts = [float(m) for m in PRICE_RE.findall(text)]
    if amounts:
        return max(amounts)
    bare = BARE_NUMBER_RE.search(text)
    return float(bare.group(1)) if bare else default


def split_request(text: str) -> Optional[Tuple[str, str]]:
    """Pull the two raw option strings out of a comparison request."""
    for strategy in REQUEST_STRATEGIES:
        match = strategy.apply(text)
        if match and match.group(1).strip() and match.group(2).strip():
            logger.debug(f"Split request with {strategy.name}")
            return match.group(1).strip(), match.group(2).strip()

    split = _split_on_separator(text)
    if split and split[0] and split[1]:
        logger.debug("Split request on separator")
        return split
    return None


def parse_comparison_request(text: str) -> Optional[ComparisonRequest]:
    """
    Parse a chat message such as "Compare Karma Kafe biryani $18 vs Chipotle $18".

    Returns:
        Optional[ComparisonRequest]: None when the message is not a comparison request
        or its two sides cannot be separated. Options without their own price use the
        budget as their cost.
    """
    text = (text or "").strip()
    if not text or not REQUEST_KEYWORDS_RE.search(text):
        return None

    budget = extract_budget(text)
    split = split_request(text)
    if split is None:
        return None

    first, second = split
    return ComparisonRequest(
        option1=parse_option(first, default_cost=budget),
        option2=parse_option(second, default_cost=budget),
        budget=budget,
    )
