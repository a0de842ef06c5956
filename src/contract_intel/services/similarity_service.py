"""
Lexical similarity between contract texts.

A deterministic keyword-overlap heuristic: no embeddings, no model calls.
"""

import re
from collections import Counter

from contract_intel.models.contract import SimilarContract

FEATURE_TAGS = ("termination", "payment", "liability", "confidentiality", "indemnification")

MIN_KEYWORD_LENGTH = 5
MAX_KEYWORDS = 20

_NON_WORD = re.compile(r"[^\w\s]")


def extract_keywords(text: str, max_keywords: int = MAX_KEYWORDS) -> list[str]:
    """
    Most frequent words of at least five characters.

    Ties keep the order of first occurrence.
    """
    words = _NON_WORD.sub("", text.lower()).split()
    counts = Counter(w for w in words if len(w) >= MIN_KEYWORD_LENGTH)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [word for word, _ in ranked[:max_keywords]]


def keyword_similarity(keywords: list[str], candidate_text: str) -> float:
    """Fraction of keywords appearing as substrings of the candidate."""
    if not keywords or not candidate_text:
        return 0.0
    candidate = candidate_text.lower()
    matches = sum(1 for k in keywords if k in candidate)
    return matches / len(keywords)


def matched_features(text_a: str, text_b: str) -> list[str]:
    """Feature tags found verbatim in both texts; matching is case-sensitive."""
    return [tag for tag in FEATURE_TAGS if tag in text_a and tag in text_b]


def find_similar(
    target_text: str,
    candidates: list[tuple[str, str]],
    limit: int = 5,
    threshold: float = 0.3,
) -> list[SimilarContract]:
    """
    Rank candidate (contract_id, text) pairs by keyword overlap with the target.

    Only candidates scoring strictly above the threshold are returned, best
    first, at most ``limit`` of them.
    """
    keywords = extract_keywords(target_text)

    scored = []
    for contract_id, text in candidates:
        score = keyword_similarity(keywords, text)
        if score > threshold:
            scored.append(
                SimilarContract(
                    contract_id=contract_id,
                    similarity=score,
                    matched_features=matched_features(target_text, text),
                )
            )

    scored.sort(key=lambda s: s.similarity, reverse=True)
    return scored[:limit]
