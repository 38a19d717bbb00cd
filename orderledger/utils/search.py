"""
Search text normalization shared by list search, customer autocomplete and
ledger owner keys.
"""
import re
import unicodedata
from typing import List, Optional

DJ_CHAR = "đ"
WHITESPACE = re.compile(r"\s+")
NON_DIGITS = re.compile(r"[^\d]")


def normalize_search_text(value: Optional[str]) -> str:
    """Lowercase, fold đ to dj and strip combining diacritical marks."""
    if not value:
        return ""
    lowered = value.lower().replace(DJ_CHAR, "dj")
    decomposed = unicodedata.normalize("NFD", lowered)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_owner_key(value: Optional[str]) -> str:
    """Merge key for shipping account owners: "Miloš", "milos" and "MILOŠ " collide."""
    return normalize_search_text((value or "").strip())


def normalize_phone(value: Optional[str]) -> str:
    return NON_DIGITS.sub("", value or "")


def to_search_tokens(value: Optional[str]) -> List[str]:
    normalized = normalize_search_text(value)
    return [token for token in WHITESPACE.split(normalized) if token]


def matches_all_tokens(normalized_text: str, tokens: List[str]) -> bool:
    if not tokens:
        return True
    return all(token in normalized_text for token in tokens)


def text_contains(haystack: Optional[str], normalized_needle: str) -> bool:
    """Substring match after normalizing the haystack; the needle must already be normalized."""
    if not normalized_needle:
        return True
    return normalized_needle in normalize_search_text(haystack)
