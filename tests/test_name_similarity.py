import pytest

from menulens.matchers.name_similarity import name_similarity, name_tokens


@pytest.mark.parametrize("name", ["Starbucks", "Karma Kafe", "Joe's Pizza & Grill", "!!!", "a"])
def test_identical_strings_score_one(name):
    assert name_similarity(name, name) == 1.0


def test_exact_match_is_case_and_whitespace_insensitive():
    assert name_similarity("STARBUCKS", "Starbucks") == 1.0
    assert name_similarity("  Karma Kafe ", "karma kafe") == 1.0
    assert name_similarity("Joe's Pizza", "joe's   pizza") == 1.0


@pytest.mark.parametrize(
    "a,b",
    [
        ("Golden Dragon", "Blue Bottle Coffee"),
        ("STARBUCKS", "Coffee Bean"),
        ("Chipotle", "Shake Shack"),
    ],
)
def test_disjoint_tokens_score_zero(a, b):
    assert name_similarity(a, b) == 0.0


def test_empty_inputs_score_zero():
    assert name_similarity("", "Starbucks") == 0.0
    assert name_similarity("", "") == 0.0
    assert name_similarity(None, "Starbucks") == 0.0


def test_partial_overlap_is_token_jaccard():
    assert name_similarity("COFFEE", "Coffee Bean") == pytest.approx(0.5)
    assert name_similarity("Karma Kafe", "Karma Kafe Indian Bistro") == pytest.approx(0.5)


@pytest.mark.parametrize(
    "a,b",
    [
        ("COFFEE", "Coffee Bean"),
        ("Karma Kafe", "Karma Kafe Indian Bistro"),
        ("Pizza Hut Express", "Hut"),
    ],
)
def test_symmetric(a, b):
    assert name_similarity(a, b) == name_similarity(b, a)


def test_adding_shared_tokens_never_lowers_the_score():
    base = name_similarity("Karma Kafe Indian", "Karma Grill")
    more = name_similarity("Karma Kafe Indian", "Karma Kafe Grill")
    most = name_similarity("Karma Kafe Indian", "Karma Kafe Indian Grill")

    assert base <= more <= most
    assert base == pytest.approx(0.25)
    assert most == pytest.approx(0.75)


def test_tokens_drop_punctuation_and_single_characters():
    assert name_tokens("Joe's Pizza & Grill") == frozenset({"joe", "pizza", "grill"})
