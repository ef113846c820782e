"""Expansion of recurring items into per-period occurrences."""

from __future__ import annotations

from typing import Dict, List, Optional

from . import config
from .models import Recurrence, TransactionItem
from .periods import Period, iter_periods

STEP_MONTHS: Dict[Recurrence, int] = {
    Recurrence.MONTHLY: 1,
    Recurrence.QUARTERLY: 3,
    Recurrence.YEARLY: 12,
}


def occurrence_id(parent_id: str, period: Period) -> str:
    """Id of the occurrence of ``parent_id`` generated for ``period``."""
    return f"{parent_id}-{period}"


def end_bound(item: TransactionItem, horizon: Optional[Period] = None) -> Period:
    """Last period the item may occupy: its end date's period, capped at the horizon."""
    horizon = horizon or config.HORIZON
    if item.end_date is None:
        return horizon
    return min(Period.from_date(item.end_date), horizon)


def expand(
    item: TransactionItem,
    anchor: Optional[Period] = None,
    horizon: Optional[Period] = None,
) -> List[Period]:
    """Periods of the derived occurrences of ``item``.

    The anchor period (the item's base period unless given) is excluded:
    it already holds the original occurrence.  Periods step by the
    recurrence interval up to and including the end bound.
    """
    step = STEP_MONTHS.get(item.recurrence)
    if step is None:
        return []
    if item.end_date is not None and item.end_date < item.start_date:
        return []
    anchor = anchor or item.base_period
    return list(iter_periods(anchor.shift(step), end_bound(item, horizon), step))


def active_periods(item: TransactionItem, horizon: Optional[Period] = None) -> List[Period]:
    """Base period followed by every derived period."""
    return [item.base_period] + expand(item, horizon=horizon)
