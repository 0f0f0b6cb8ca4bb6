"""Hybrid lexical similarity: token Jaccard blended with normalized Levenshtein."""

from __future__ import annotations

import re

JACCARD_WEIGHT = 0.6
LEVENSHTEIN_WEIGHT = 0.4

_WHITESPACE = re.compile(r"\s+")
# Stored findings are compound, e.g.
# "Ketidaksesuaian: APD\nSub Ketidaksesuaian: Cara Penggunaan APD\nDeskripsi Temuan: ..."
_FINDING_LABEL = re.compile(r"Deskripsi Temuan:\s*(.+?)(?:\n|$)", re.IGNORECASE)


def normalize_text(text: str | None) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text.lower().strip())


def jaccard_similarity(a: str, b: str) -> float:
    tokens_a = set(a.split())
    tokens_b = set(b.split())
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def levenshtein_distance(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def text_similarity(a: str | None, b: str | None) -> float:
    """Similarity in [0, 1]; 0 if either side is empty after normalization."""
    norm_a = normalize_text(a)
    norm_b = normalize_text(b)
    if not norm_a or not norm_b:
        return 0.0
    if norm_a == norm_b:
        return 1.0

    jaccard = jaccard_similarity(norm_a, norm_b)
    max_len = max(len(norm_a), len(norm_b))
    lev_sim = 1.0 - levenshtein_distance(norm_a, norm_b) / max_len
    score = JACCARD_WEIGHT * jaccard + LEVENSHTEIN_WEIGHT * lev_sim
    return max(0.0, min(1.0, score))


def extract_finding_description(stored: str | None) -> str:
    """Pull the labeled description out of a compound finding string.

    Falls back to the whole field when the label is absent.
    """
    if not stored:
        return ""
    match = _FINDING_LABEL.search(stored)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return stored
