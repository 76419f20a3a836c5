"""Text helpers for pt-BR sorting and searching."""

from __future__ import annotations

import unicodedata
from typing import Iterable, Optional, Tuple


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


# PUBLIC_INTERFACE
def pt_br_sort_key(value: str) -> Tuple[str, str, str]:
    """
    Collation key approximating pt-BR locale comparison.

    Primary order ignores accents and case, then unaccented sorts before
    accented, then lower case before upper case.
    """
    return (
        strip_accents(value).casefold(),
        unicodedata.normalize("NFKD", value).casefold(),
        value.swapcase(),
    )


# PUBLIC_INTERFACE
def matches_term(term: Optional[str], *fields: Optional[str]) -> bool:
    """Case-insensitive substring search; a blank term matches everything."""
    needle = (term or "").strip().lower()
    if not needle:
        return True
    return any(needle in (field or "").lower() for field in fields)


def first_text(values: Iterable[object]) -> Optional[str]:
    """First value that is a string with non-blank content."""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value
    return None
