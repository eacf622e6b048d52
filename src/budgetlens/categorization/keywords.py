"""Keyword extraction for learned rules.

Bank descriptions embed the merchant name among metadata that drifts between
occurrences (dates, references, card numbers). Reducing a description to its
first few meaningful tokens gives a pattern that keeps matching the same
merchant next month while staying specific enough not to over-match.
"""

from __future__ import annotations

import re

# Generic leading boilerplate: payment rail first, then its qualifier.
_RAIL_PREFIX = re.compile(r"^(PAIEMENT|PRLV|PRELEVEMENT|VIREMENT|VIR|CB|CARTE)\s*", re.IGNORECASE)
_QUALIFIER_PREFIX = re.compile(r"^(SEPA|INST|EURO)\s*", re.IGNORECASE)
_DATE = re.compile(r"\d{2}/\d{2}/\d{2,4}")
_LONG_NUMBER = re.compile(r"\d{10,}")
_ASTERISKS = re.compile(r"[*]{2,}")
_NUMERIC = re.compile(r"^\d+$")

STOPWORDS: frozenset[str] = frozenset(
    {"DE", "DU", "LA", "LE", "LES", "EN", "AU", "AUX", "PAR", "POUR", "SUR", "AVEC"}
)

MIN_KEYWORD_LENGTH = 3
DEFAULT_MAX_KEYWORDS = 3


def _strip_boilerplate(text: str) -> str:
    cleaned = _RAIL_PREFIX.sub("", text)
    cleaned = _QUALIFIER_PREFIX.sub("", cleaned)
    cleaned = _DATE.sub("", cleaned)
    cleaned = _LONG_NUMBER.sub("", cleaned)
    cleaned = _ASTERISKS.sub("", cleaned)
    return cleaned.strip()


def _is_keyword(word: str) -> bool:
    if len(word) < MIN_KEYWORD_LENGTH:
        return False
    if _NUMERIC.match(word):
        return False
    return word not in STOPWORDS


def extract_keywords(description: str | None, limit: int = DEFAULT_MAX_KEYWORDS) -> list[str]:
    """Extract up to `limit` meaningful keywords, in order of appearance.

    Args:
        description: Raw bank transaction description.
        limit: Maximum number of keywords to return.

    Returns:
        Uppercased keywords; empty when nothing meaningful survives.

    Example:
        >>> extract_keywords("PRLV SEPA NETFLIX INTERNATIONAL B.V. 12/03/2024")
        ['NETFLIX', 'INTERNATIONAL', 'B.V.']
    """
    normalized = (description or "").upper().strip()
    words = _strip_boilerplate(normalized).split()
    return [w for w in words if _is_keyword(w)][:limit]


def create_pattern(keywords: list[str]) -> str:
    """Build a regex matching all keywords in order, gaps allowed.

    Returns:
        Pattern string, or "" when there are no keywords.
    """
    if not keywords:
        return ""
    return ".*".join(re.escape(kw) for kw in keywords)
