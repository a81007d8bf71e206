"""
Fixed-height pages: each printed page has a per-page row limit and always renders
exactly that many lines, real rows first and blank placeholders after.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sitelog.services.errors import ReportInputError
from sitelog.services.stores import RowLimitStore
from sitelog.utils.validators import parse_max_rows

logger = logging.getLogger(__name__)

MANPOWER_PAGE = "ManpowerFinalPaper"
WORK_STATUS_PAGE = "WorkStatusFinalPaper"
COMBINED_PAGE = "CombinedFinalPaper"
SMATY_PAGE = "WorkStatusForSmaty"

PAGE_DEFAULTS: Dict[str, int] = {
    MANPOWER_PAGE: 88,
    WORK_STATUS_PAGE: 50,
    COMBINED_PAGE: 50,
    SMATY_PAGE: 50,
}


@dataclass
class BudgetedRows:
    slots: List[Optional[Any]] = field(default_factory=list)
    overflow: bool = False
    dropped: int = 0

    @property
    def filled(self) -> int:
        return sum(1 for s in self.slots if s is not None)

    def to_dict(self) -> dict:
        return dict(
            slots=[s.to_dict() if hasattr(s, "to_dict") else s for s in self.slots],
            overflow=self.overflow,
            dropped=self.dropped,
        )


def budget_rows(rows: Sequence[Any], max_rows: int, *, page: Optional[str] = None) -> BudgetedRows:
    """
    Exactly `max_rows` slots: the first min(len(rows), max_rows) rows, then None.

    Rows beyond the limit are dropped from the page; the result says so and an
    operator-facing warning is logged.
    """
    limit = parse_max_rows(max_rows)
    rows = list(rows)
    kept = rows[:limit]
    slots: List[Optional[Any]] = kept + [None] * (limit - len(kept))
    dropped = len(rows) - len(kept)
    if dropped:
        logger.warning(json.dumps({
            "event": "report.rows_overflow",
            "page": page,
            "max_rows": limit,
            "rows": len(rows),
            "dropped": dropped,
        }))
    return BudgetedRows(slots=slots, overflow=dropped > 0, dropped=dropped)


def _known_page(page_name: str) -> str:
    if page_name not in PAGE_DEFAULTS:
        raise ReportInputError(
            f"Unknown page {page_name!r}; expected one of {', '.join(sorted(PAGE_DEFAULTS))}."
        )
    return page_name


def get_max_rows(store: RowLimitStore, page_name: str) -> int:
    page_name = _known_page(page_name)
    stored = store.get(page_name)
    return stored if stored else PAGE_DEFAULTS[page_name]


def set_max_rows(store: RowLimitStore, page_name: str, max_rows: Any) -> int:
    page_name = _known_page(page_name)
    n = parse_max_rows(max_rows)
    store.set(page_name, n)
    logger.info("row limit for %s set to %d", page_name, n)
    return n


def all_row_limits(store: RowLimitStore) -> Dict[str, int]:
    """Effective limit of every known page (stored value, else the default)."""
    stored = store.all()
    return {page: stored.get(page) or default for page, default in PAGE_DEFAULTS.items()}
