from __future__ import annotations

from typing import AbstractSet, Any, Optional

FRANCHISE_ID_WIDTH = 4
COMMISSIONER_ID = "0000"
FIRST_FRANCHISE_ID = "0001"


def normalize_franchise_id(candidate: Any) -> Optional[str]:
    """
    Zero-pad a numeric id to 4 digits and fold the commissioner id onto 0001.
    Returns None for empty or non-numeric input.
    """
    if candidate is None:
        return None
    s = str(candidate).strip()
    if not s or not s.isascii() or not s.isdigit():
        return None
    padded = s.zfill(FRANCHISE_ID_WIDTH)
    return FIRST_FRANCHISE_ID if padded == COMMISSIONER_ID else padded


def validate_franchise_id(candidate: Any, known_ids: AbstractSet[str]) -> Optional[str]:
    normalized = normalize_franchise_id(candidate)
    if normalized is None or normalized not in known_ids:
        return None
    return normalized
