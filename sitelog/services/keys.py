"""
Composite catalog identity and the catalog sort policy.

Catalog rows (companies, materials, equipment) and the sparse transactional rows that
reference them are merged on `(name, specification)`. For companies the trade plays
the role of the specification.
"""
from __future__ import annotations

import json
import re
from typing import Optional, Tuple

_DIGITS_RE = re.compile(r"\d+")


def catalog_key(name: str, specification: Optional[str]) -> str:
    """
    Stable composite key for `(name, specification)`.

    Encoded as a JSON array, so no separator can be forged by field content and a
    NULL specification (`null`) never equals an empty one (`""`).
    """
    if not isinstance(name, str):
        raise TypeError(f"catalog name must be a string, got {type(name).__name__}")
    if specification is not None and not isinstance(specification, str):
        raise TypeError(
            f"catalog specification must be a string or None, got {type(specification).__name__}"
        )
    return json.dumps([name, specification], ensure_ascii=False, separators=(",", ":"))


def spec_number(specification: Optional[str]) -> int:
    """Numeric sort value of a specification: its first run of digits, else 0.

    Sorting only. The stored specification is never coerced.
    """
    if not specification:
        return 0
    m = _DIGITS_RE.search(specification)
    return int(m.group(0)) if m else 0


def catalog_sort_key(name: str, specification: Optional[str]) -> Tuple[str, int, str]:
    """Name first, then the numeric value of the spec ("50" before "100"), then the raw spec."""
    return (name, spec_number(specification), specification or "")


def company_sort_key(name: str, trade: Optional[str], display_order: Optional[int]) -> Tuple:
    """Explicit print position first (unset positions last), then alphabetical."""
    return (display_order is None, display_order or 0, name, trade or "")
