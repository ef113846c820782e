"""Composition root tying the ledger, goals, storage and clock together.

:class:`FinanceSession` is the surface that forms, lists and charts call
into.  It also tracks the month currently selected in the view; moving
the selection forward advances goal contributions for every month
crossed.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from . import analytics, config
from .goals import GoalTracker
from .ledger import LedgerStore
from .models import Goal, Kind, PeriodRecord, TransactionItem
from .periods import Period, PeriodLike, to_period
from .storage import JsonFileStorage, MemoryStorage, StoragePort

logger = logging.getLogger(__name__)


class FinanceSession:
    def __init__(
        self,
        storage: Optional[StoragePort] = None,
        *,
        savings_mode: Optional[str] = None,
        horizon: Optional[Period] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self._clock = clock or date.today
        self.ledger = LedgerStore(
            self.storage, savings_mode=savings_mode, horizon=horizon, clock=self._clock
        )
        self.goals = GoalTracker(self.storage, clock=self._clock)
        self.selected_period = Period.from_date(self._clock())

    @classmethod
    def from_data_dir(cls, data_dir: Optional[Path] = None, **kwargs: Any) -> "FinanceSession":
        """Session persisted as JSON files in ``data_dir`` (default: config.DATA_DIR)."""
        if data_dir is None:
            config.ensure_data_directories()
            data_dir = config.DATA_DIR
        return cls(JsonFileStorage(data_dir), **kwargs)

    # Ledger
    def add_item(self, item=None, **fields: Any) -> TransactionItem:
        return self.ledger.add_item(item, **fields)

    def edit_item(self, item_id: str, **changes: Any) -> bool:
        return self.ledger.edit_item(item_id, **changes)

    def delete_item(self, item_id: str) -> bool:
        return self.ledger.delete_item(item_id)

    def set_initial_balance(self, amount: Any, period: Optional[PeriodLike] = None) -> None:
        self.ledger.set_initial_balance(amount, period)

    def deposit_to_savings(self, amount: Any, period: Optional[PeriodLike] = None) -> None:
        self.ledger.deposit_to_savings(amount, period or self.selected_period)

    def withdraw_from_savings(self, amount: Any, period: Optional[PeriodLike] = None) -> None:
        self.ledger.withdraw_from_savings(amount, period or self.selected_period)

    def get_period_data(self, year: int, month: int) -> PeriodRecord:
        return self.ledger.get_period_data(year, month)

    def get_balance(self, when: Optional[PeriodLike] = None) -> Decimal:
        return self.ledger.get_balance(when)

    # Goals
    def add_goal(self, name: Any, target_amount: Any, target_date: Any, monthly_savings: Any = 0) -> Goal:
        return self.goals.add_goal(name, target_amount, target_date, monthly_savings)

    def edit_goal(self, goal_id: str, **changes: Any) -> bool:
        return self.goals.edit_goal(goal_id, **changes)

    def delete_goal(self, goal_id: str) -> bool:
        return self.goals.delete_goal(goal_id)

    def list_goals(self) -> List[Goal]:
        return self.goals.list_goals()

    def goal_progress(self) -> List[Dict[str, Any]]:
        return self.goals.progress_report(self._clock())

    # Month selection
    def select_period(self, period: PeriodLike) -> Period:
        """Move the view to ``period``; goals catch up on forward moves."""
        self.selected_period = to_period(period)
        applied = self.goals.advance_to(self.selected_period)
        logger.debug("Selected %s (%d goal month(s) applied)", self.selected_period, applied)
        return self.selected_period

    def advance_period(self, months: int = 1) -> Period:
        return self.select_period(self.selected_period.shift(months))

    # Summaries
    def monthly_summary(self, year: Optional[int] = None, month: Optional[int] = None) -> Dict[str, Any]:
        period = self.selected_period if year is None or month is None else Period(year, month)
        return analytics.monthly_summary(self.ledger.get_period_data(*period))

    def period_frame(self, start: Optional[PeriodLike] = None, end: Optional[PeriodLike] = None) -> pd.DataFrame:
        return analytics.period_frame(self.ledger.periods(start, end))

    def distribution(self, kind: Kind, period: Optional[PeriodLike] = None) -> pd.Series:
        target = to_period(period) if period is not None else self.selected_period
        return analytics.distribution(self.ledger.get_period_data(*target), kind)
