import pytest

from menulens.errors import InvalidInputError
from menulens.models import OptionSource, ParsedOption, StructuredOption
from menulens.parsing import (
    extract_budget,
    extract_cost,
    parse_comparison_request,
    parse_option,
    split_request,
    to_parsed_option,
)


def test_chat_comparison_request():
    request = parse_comparison_request("Compare Karma Kafe biryani $18 vs Chipotle $18")

    assert request.budget == 18.0
    assert request.option1 == ParsedOption(
        restaurant="Karma Kafe", dish="biryani", cost=18.0, raw="Karma Kafe biryani $18"
    )
    assert request.option1.label == "biryani at Karma Kafe"
    assert request.option2.restaurant == "Chipotle"
    assert request.option2.dish is None
    assert request.option2.cost == 18.0
    assert request.option2.label == "Chipotle"


@pytest.mark.parametrize(
    "text,restaurant,dish",
    [
        ("biryani at Karma Kafe", "Karma Kafe", "biryani"),
        ("tacos from Los Tacos No. 1", "Los Tacos No. 1", "tacos"),
        ("Karma Kafe, biryani", "Karma Kafe", "biryani"),
        ("Chick-fil-A - chicken sandwich", "Chick-fil-A", "chicken sandwich"),
        ("Karma Kafe biryani", "Karma Kafe", "biryani"),
        ("burrito Chipotle", "Chipotle", "burrito"),
        ("Chick-fil-A", "Chick-fil-A", None),
        ("Shake Shack", "Shake Shack", None),
    ],
)
def test_option_splitting(text, restaurant, dish):
    parsed = parse_option(text)

    assert parsed.restaurant == restaurant
    assert parsed.dish == dish
    assert parsed.source == OptionSource.FREE_TEXT
    assert parsed.raw == text


def test_option_cost_comes_from_first_price_in_the_text():
    parsed = parse_option("biryani at Karma Kafe $15.50", default_cost=25)

    assert parsed.cost == 15.5
    assert parsed.restaurant == "Karma Kafe"
    assert parse_option("Chipotle", default_cost=25).cost == 25
    assert parse_option("Chipotle").cost is None
    assert extract_cost("Chipotle $ 12 or $14") == 12.0


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_option_is_rejected(text):
    with pytest.raises(InvalidInputError):
        parse_option(text)


def test_structured_option_skips_text_parsing():
    parsed = to_parsed_option(StructuredOption(" Chipotle ", "burrito bowl"), default_cost=20)

    assert parsed.source == OptionSource.STRUCTURED
    assert parsed.restaurant == "Chipotle"
    assert parsed.dish == "burrito bowl"
    assert parsed.cost == 20
    assert parsed.label == "burrito bowl at Chipotle"


def test_structured_option_keeps_its_own_cost():
    parsed = to_parsed_option(StructuredOption("Chipotle", cost=11.25), default_cost=20)
    assert parsed.cost == 11.25


def test_parsed_option_passes_through():
    parsed = ParsedOption(restaurant="Chipotle")
    assert to_parsed_option(parsed) is parsed


@pytest.mark.parametrize("value", [StructuredOption(""), StructuredOption("   "), 42, None])
def test_invalid_option_inputs(value):
    with pytest.raises(InvalidInputError):
        to_parsed_option(value)


@pytest.mark.parametrize(
    "text,first,second",
    [
        ("Compare Chipotle vs Qdoba", "Chipotle", "Qdoba"),
        ("compare Chipotle versus Qdoba for $20", "Chipotle", "Qdoba"),
        ("Which is better Chipotle or Shake Shack burger for $20", "Chipotle", "Shake Shack burger"),
        ("Cost estimator: Chipotle vs Sweetgreen salad budget 30", "Chipotle", "Sweetgreen salad"),
        ("Chipotle vs Qdoba for $15", "Chipotle", "Qdoba"),
        ("Chipotle versus Qdoba", "Chipotle", "Qdoba"),
    ],
)
def test_request_forms(text, first, second):
    assert split_request(text) == (first, second)


def test_budget_extraction():
    assert extract_budget("Compare A $12 vs B $18.50") == 18.5
    assert extract_budget("Cost estimator: A vs B budget 30") == 30.0
    assert extract_budget("Chipotle vs Qdoba") == 25.0
    assert extract_budget("Chipotle vs Qdoba", default=40) == 40


def test_request_options_default_to_budget_cost():
    request = parse_comparison_request("Cost estimator: Chipotle vs Sweetgreen salad budget 30")

    assert request.budget == 30.0
    assert request.option1.cost == 30.0
    assert request.option2.restaurant == "Sweetgreen"
    assert request.option2.dish == "salad"


@pytest.mark.parametrize("text", ["", "What's good around here?", "Compare prices", None])
def test_non_requests_return_none(text):
    assert parse_comparison_request(text) is None
