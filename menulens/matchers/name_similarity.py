from typing import FrozenSet

from rapidfuzz.utils import default_process


def name_tokens(name: str) -> FrozenSet[str]:
    """
    Lowercased alphanumeric tokens of a name, single characters dropped.

    "Joe's Pizza & Grill" -> {"joe", "pizza", "grill"}
    """
    return frozenset(token for token in default_process(name or "").split() if len(token) > 1)


def name_similarity(a: str, b: str) -> float:
    """
    Score how alike two business names are, in [0, 1].

    Case-insensitive token Jaccard: |shared tokens| / |all tokens|. Names that are
    identical after normalization score 1.0, names without a shared token score 0.0.
    Symmetric: name_similarity(a, b) == name_similarity(b, a).

    Args:
        a (str): First name, e.g. OCR text.
        b (str): Second name, e.g. a directory listing.

    Returns:
        float: Similarity score.
    """
    a, b = (a or "").strip(), (b or "").strip()
    if a and a.lower() == b.lower():
        return 1.0
    processed_a = default_process(a)
    if processed_a and processed_a == default_process(b):
        return 1.0

    tokens_a = name_tokens(a)
    tokens_b = name_tokens(b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)
