import pytest
from unittest.mock import AsyncMock, MagicMock

from menulens.candidate_extraction import classify_block, extract_candidates, read_sign_text
from menulens.clients.vision_client import parse_annotations
from menulens.models import CandidateTier, OCRResult


def test_storefront_blocks_keep_names_and_drop_noise():
    """Signage words survive in source order; the year and opening hours are dropped."""
    candidates = extract_candidates(["STARBUCKS", "COFFEE", "EST 1971", "OPEN DAILY"])

    assert [c.text for c in candidates] == ["STARBUCKS", "COFFEE"]
    assert all(c.tier == CandidateTier.ALL_CAPS for c in candidates)


def test_tiers_order_keyword_then_proper_noun_then_all_caps():
    candidates = extract_candidates(["SALE", "Golden Dragon", "Harbor Grill", "PHO", "Blue Door"])

    assert [c.text for c in candidates] == ["Harbor Grill", "Golden Dragon", "Blue Door", "SALE", "PHO"]
    assert [c.tier for c in candidates] == [
        CandidateTier.KEYWORD_MATCH,
        CandidateTier.PROPER_NOUN,
        CandidateTier.PROPER_NOUN,
        CandidateTier.ALL_CAPS,
        CandidateTier.ALL_CAPS,
    ]


def test_keyword_matches_keep_source_order():
    candidates = extract_candidates(["Luna Cafe", "Golden Dragon", "Harbor Grill"])
    assert [c.text for c in candidates] == ["Luna Cafe", "Harbor Grill", "Golden Dragon"]


def test_accented_keyword_is_recognized():
    candidate = classify_block("Café Luna")
    assert candidate == classify_block("  Café Luna ")
    assert candidate.tier == CandidateTier.KEYWORD_MATCH
    assert candidate.text == "Café Luna"


@pytest.mark.parametrize("block", ["OPEN", "Menu", "Mon - Fri", "Open Daily", "The", "Sunday Brunch", "9 AM"])
def test_stop_words_are_rejected(block):
    assert classify_block(block) is None


@pytest.mark.parametrize("block", ["$12.99", "1971", "555-1234", "50%"])
def test_numeric_and_price_tokens_are_rejected(block):
    assert classify_block(block) is None


def test_length_bounds():
    assert classify_block("AB") is None
    assert classify_block("Z" * 51) is None
    assert classify_block("Abc").text == "Abc"
    assert classify_block("Pho " + "a" * 46).text == "Pho " + "a" * 46


def test_blocks_with_digits_or_mixed_case_noise_are_not_candidates():
    assert classify_block("EST 1971") is None
    assert classify_block("www.example.com") is None
    assert classify_block("iPhone") is None


def test_duplicates_are_exact_string_only():
    candidates = extract_candidates(["Golden Dragon", "Golden Dragon", "GOLDEN DRAGON", " Golden Dragon "])
    assert [c.text for c in candidates] == ["Golden Dragon", "GOLDEN DRAGON"]


def test_result_is_capped_at_eight():
    blocks = [f"Place {letter}" for letter in "ABCDEFGHIJKL"]
    candidates = extract_candidates(blocks)
    assert [c.text for c in candidates] == blocks[:8]


def test_candidates_always_within_bounds_and_unique():
    blocks = [
        "", "  ", "Ok", "Joe's Diner", "JOE'S", "Joe's Diner", "A" * 60, "TACOS & MORE",
        "Fri-Sat", "$5", "Mama Mia Pizzeria", "Rock & Roll Tavern", "x" * 50, "Bella Vista",
    ]
    candidates = extract_candidates(blocks)
    texts = [c.text for c in candidates]

    assert len(texts) == len(set(texts))
    assert all(3 <= len(t) <= 50 for t in texts)
    assert texts[:3] == ["Joe's Diner", "Mama Mia Pizzeria", "Rock & Roll Tavern"]


def test_extraction_is_deterministic():
    blocks = ["Harbor Grill", "SALE", "Golden Dragon"]
    assert extract_candidates(blocks) == extract_candidates(list(blocks))


def test_parse_annotations_collects_blocks_and_logos():
    response = {
        "responses": [
            {
                "textAnnotations": [
                    {"description": "STARBUCKS\nCOFFEE"},
                    {"description": "STARBUCKS"},
                    {"description": "COFFEE"},
                    {"description": "of"},
                    {"description": "STARBUCKS"},
                ],
                "logoAnnotations": [{"description": "Starbucks"}],
            }
        ]
    }

    ocr = parse_annotations(response)

    assert ocr.full_text == "STARBUCKS\nCOFFEE"
    assert ocr.blocks == ["STARBUCKS", "COFFEE", "Starbucks"]
    assert ocr.confidence == pytest.approx(0.8)


@pytest.mark.parametrize("response", [{}, {"responses": []}, {"responses": [{}]}, {"responses": "garbage"}])
def test_parse_annotations_empty_or_malformed(response):
    assert parse_annotations(response) == OCRResult()


@pytest.mark.asyncio
async def test_read_sign_text_is_fail_soft():
    vision = MagicMock()
    vision.extract_text = AsyncMock(side_effect=RuntimeError("quota exceeded"))

    result = await read_sign_text(vision, b"jpeg")

    assert not result.ok
    assert result.value == OCRResult()
    assert "quota exceeded" in result.error


@pytest.mark.asyncio
async def test_read_sign_text_passes_through_success():
    ocr = OCRResult(full_text="PHO", blocks=["PHO"], confidence=0.9)
    vision = MagicMock()
    vision.extract_text = AsyncMock(return_value=ocr)

    result = await read_sign_text(vision, b"jpeg")

    assert result.ok
    assert result.value is ocr
