import re
import time
from typing import FrozenSet, Iterable, List, Optional

from loguru import logger

from menulens.config import MAX_CANDIDATES
from menulens.models import CandidateTier, FetchResult, OCRResult, TextCandidate

# Whole-token indicators that a sign names an eating place. Product words such
# as "coffee" are not included.
RESTAURANT_KEYWORDS: FrozenSet[str] = frozenset({
    "restaurant", "cafe", "café", "bar", "grill", "kitchen", "bistro", "eatery",
    "diner", "pizzeria", "steakhouse", "brewery", "tavern", "taqueria", "cantina",
})

# Reject a block when any of its tokens is one of these
STOP_WORDS: FrozenSet[str] = frozenset({
    "open", "closed", "hours", "daily", "menu", "welcome", "delivery", "takeout",
    "mon", "tue", "wed", "thu", "fri", "sat", "sun",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "am", "pm",
})

# Reject a block only when it is exactly one of these
FILLER_WORDS: FrozenSet[str] = frozenset({
    "the", "and", "or", "we", "our", "your", "you", "all", "for", "from", "with",
    "not", "at", "in", "on", "of", "to",
})

MIN_LENGTH = 3
MAX_LENGTH = 50

NUMERIC_RE = re.compile(r"^[\d$€£.,\-\s%]+$")
PROPER_NOUN_RE = re.compile(r"^[A-Z][a-z]")
PROPER_NOUN_CHARS_RE = re.compile(r"^[A-Za-z\s'&.\-]+$")
ALL_CAPS_RE = re.compile(r"^(?=.*[A-Z]{2})[A-Z][A-Z\s'&\-]*$")
TOKEN_RE = re.compile(r"[a-zà-ÿ]+")


def _tokens(text: str) -> List[str]:
    return TOKEN_RE.findall(text.lower())


def classify_block(
    text: str,
    keywords: FrozenSet[str] = RESTAURANT_KEYWORDS,
    stop_words: FrozenSet[str] = STOP_WORDS,
) -> Optional[TextCandidate]:
    """
    Classify a single OCR block into a candidate tier, or None when it is not a plausible name.

    Args:
        text: Raw OCR block.
        keywords: Restaurant indicator words.
        stop_words: Words that disqualify a block when they appear as a token.

    Returns:
        Optional[TextCandidate]: The trimmed candidate with its tier.
    """
    trimmed = (text or "").strip()
    if len(trimmed) < MIN_LENGTH or len(trimmed) > MAX_LENGTH:
        return None

    lower = trimmed.lower()
    tokens = _tokens(trimmed)
    if lower in stop_words or lower in FILLER_WORDS:
        return None
    if any(token in stop_words for token in tokens):
        return None
    if NUMERIC_RE.match(trimmed):
        return None

    if any(token in keywords for token in tokens):
        return TextCandidate(trimmed, CandidateTier.KEYWORD_MATCH)
    if PROPER_NOUN_RE.match(trimmed) and PROPER_NOUN_CHARS_RE.match(trimmed):
        return TextCandidate(trimmed, CandidateTier.PROPER_NOUN)
    if ALL_CAPS_RE.match(trimmed):
        return TextCandidate(trimmed, CandidateTier.ALL_CAPS)
    return None


def extract_candidates(
    blocks: Iterable[str],
    keywords: FrozenSet[str] = RESTAURANT_KEYWORDS,
    stop_words: FrozenSet[str] = STOP_WORDS,
    limit: int = MAX_CANDIDATES,
) -> List[TextCandidate]:
    """
    Turn raw OCR text blocks into ranked business-name candidates, best first.

    Candidates are ordered by tier (keyword, proper noun, all caps) and keep their
    source order inside a tier. Exact duplicates are dropped and the list is capped
    at `limit`.
    """
    seen = set()
    classified: List[TextCandidate] = []
    for block in blocks:
        candidate = classify_block(block, keywords, stop_words)
        if candidate is None or candidate.text in seen:
            continue
        seen.add(candidate.text)
        classified.append(candidate)

    # sorted() is stable, so source order survives within a tier
    ranked = sorted(classified, key=lambda c: c.tier.value)[:limit]
    logger.debug(f"🎯 Candidates: {[c.text for c in ranked]}")
    return ranked


async def read_sign_text(vision_client, image_bytes: bytes) -> FetchResult[OCRResult]:
    """
    Fail-soft OCR call.

    Args:
        vision_client: Client exposing `extract_text(image_bytes)`.
        image_bytes: Camera frame content.

    Returns:
        FetchResult[OCRResult]: Empty OCRResult with `error` set when the call fails.
    """
    start = time.perf_counter()
    try:
        ocr = await vision_client.extract_text(image_bytes)
        logger.debug(f"✅ OCR finished in {time.perf_counter() - start:.2f}s with {len(ocr.blocks)} blocks")
        return FetchResult(ocr)
    except Exception as e:
        logger.warning(f"⚠️ OCR failed: {e}")
        return FetchResult(OCRResult(), error=str(e))
