"""
Text utilities for product names with German umlauts and accents.

Used for name matching in the comparator and for locale-aware sorting.
"""

import re
import unicodedata
from typing import Optional

_WHITESPACE_RE = re.compile(r"\s+")


def clean_name(name: Optional[str]) -> Optional[str]:
    """
    Clean a product name for storage (preserves accents).

    - Strips whitespace
    - Collapses inner whitespace runs to one space
    - Returns None for empty/whitespace-only strings
    """
    if not name:
        return None

    name = _WHITESPACE_RE.sub(" ", name).strip()

    if not name:
        return None

    return name


def name_key(name: str) -> str:
    """
    Key for case-insensitive name comparison.

    "Äpfel  rot" and "äpfel rot" share a key; accents are kept so
    that "Pâte" and "Pate" stay distinct products.
    """
    return (clean_name(name) or "").casefold()


def _strip_accents(text: str) -> str:
    # NFD separates base chars from accents (category 'Mn')
    normalized = unicodedata.normalize("NFD", text)
    return "".join(c for c in normalized if unicodedata.category(c) != "Mn")


def german_sort_key(name: Optional[str]) -> tuple[str, str, str]:
    """
    Sort key approximating German dictionary collation.

    - "Äpfel" sorts with "Apfel", "ß" with "ss"
    - Case-insensitive at first level
    - Accents, then case, break ties so ordering is total

    Examples:
        sorted(["Zucchini", "Äpfel", "Birnen"], key=german_sort_key)
        -> ["Äpfel", "Birnen", "Zucchini"]
    """
    if not name:
        return ("", "", "")

    folded = name.casefold()
    return (_strip_accents(folded), folded, name)
