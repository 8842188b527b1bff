"""Normalization rules shared by the SKU lookup and approver resolution."""
import re
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_key(value) -> str:
    """Trim, collapse inner whitespace and casefold."""
    if value is None:
        return ""
    return WHITESPACE_PATTERN.sub(" ", str(value)).strip().casefold()


def clean_identifier(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def numeric_variant(value: str) -> Optional[str]:
    """Canonical string for a numeric identifier ("0012", "12.0" -> "12").

    Returns None when the identifier is not numeric or is already canonical.
    """
    try:
        number = Decimal(value)
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    if number == number.to_integral_value():
        canonical = str(int(number))
    else:
        canonical = format(number.normalize(), "f")
    return canonical if canonical != value else None


def lookup_candidates(raw_id) -> List[str]:
    """Identifier candidates in priority order: exact, then numeric-coerced."""
    cleaned = clean_identifier(raw_id)
    if not cleaned:
        return []
    candidates = [cleaned]
    variant = numeric_variant(cleaned)
    if variant is not None:
        candidates.append(variant)
    return candidates


def split_locations(raw: Optional[str]) -> List[str]:
    """Split a legacy "A, B" location string into its trimmed parts."""
    if not raw:
        return []
    return [part.strip() for part in re.split(r"[,;]", raw) if part.strip()]


def unique_locations(values: Iterable[Optional[str]]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        cleaned = WHITESPACE_PATTERN.sub(" ", value or "").strip()
        key = cleaned.casefold()
        if cleaned and key not in seen:
            seen.add(key)
            result.append(cleaned)
    return result


def location_matches(location: str, locations: Optional[Iterable[str]], mapped_location: Optional[str] = None) -> bool:
    """Approver eligibility rule.

    Exact (normalized) match against any entry of ``locations``, or a
    case-insensitive substring match inside the legacy ``mapped_location``.
    """
    target = normalize_key(location)
    if not target:
        return False
    if any(normalize_key(loc) == target for loc in (locations or [])):
        return True
    return bool(mapped_location) and target in normalize_key(mapped_location)
