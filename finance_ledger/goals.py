"""Savings goals and their month-by-month progress."""

from __future__ import annotations

import logging
import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Optional

from . import config
from .errors import LedgerError, NotFoundError, PersistenceError, ValidationError
from .models import (
    ZERO,
    Goal,
    new_id,
    parse_amount,
    parse_name,
    parse_required_date,
)
from .periods import Period, PeriodLike, to_period
from .storage import MemoryStorage, StoragePort

logger = logging.getLogger(__name__)

STATE_VERSION = 1
EDITABLE_FIELDS = {'name', 'target_amount', 'target_date', 'monthly_savings'}
CENT = Decimal('0.01')


class GoalTracker:
    """Owns goals and applies monthly contributions as months go by.

    ``last_advanced`` is the period whose contribution was applied most
    recently.  Advancing to a later period replays one contribution per
    month crossed; advancing to the same or an earlier period does
    nothing, so no month is ever counted twice.
    """

    def __init__(
        self,
        storage: Optional[StoragePort] = None,
        *,
        clock: Optional[Callable[[], date]] = None,
        autoload: bool = True,
    ):
        self._storage = storage if storage is not None else MemoryStorage()
        self._clock = clock or date.today
        self._goals: Dict[str, Goal] = {}
        self.last_advanced = Period.from_date(self._clock())
        if autoload:
            self.load()

    def add_goal(
        self,
        name: Any,
        target_amount: Any,
        target_date: Any,
        monthly_savings: Any = 0,
        id: Optional[str] = None,
    ) -> Goal:
        goal = Goal(
            id=id or new_id(),
            name=parse_name(name),
            target_amount=parse_amount(target_amount, 'Target amount'),
            target_date=parse_required_date(target_date, 'target date'),
            monthly_savings=parse_amount(monthly_savings, 'Monthly savings'),
        )
        if goal.id in self._goals:
            raise ValidationError(f"A goal with id {goal.id!r} already exists.")
        self._goals[goal.id] = goal
        logger.debug("Added goal %r targeting %s", goal.name, goal.target_amount)
        self._save()
        return goal

    def edit_goal(self, goal_id: str, **changes: Any) -> bool:
        """Update goal fields, keeping the savings accrued so far."""
        goal = self._goals.get(goal_id)
        if goal is None:
            logger.debug("edit_goal: no goal with id %s", goal_id)
            return False
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit field(s): {', '.join(sorted(unknown))}.")

        values = {
            'name': goal.name,
            'target_amount': goal.target_amount,
            'target_date': goal.target_date,
            'monthly_savings': goal.monthly_savings,
        }
        values.update(changes)
        name = parse_name(values['name'])
        target = parse_amount(values['target_amount'], 'Target amount')
        target_date = parse_required_date(values['target_date'], 'target date')
        monthly = parse_amount(values['monthly_savings'], 'Monthly savings')

        goal.name = name
        goal.target_amount = target
        goal.target_date = target_date
        goal.monthly_savings = monthly
        goal.current_savings = min(goal.current_savings, target)
        self._save()
        return True

    def delete_goal(self, goal_id: str) -> bool:
        if self._goals.pop(goal_id, None) is None:
            return False
        self._save()
        return True

    def get_goal(self, goal_id: str) -> Goal:
        try:
            return self._goals[goal_id]
        except KeyError:
            raise NotFoundError(f"No goal with id {goal_id!r}") from None

    def list_goals(self) -> List[Goal]:
        return list(self._goals.values())

    def advance_period(self, months: int = 1) -> Period:
        """Apply ``months`` monthly contributions, one month at a time."""
        if months < 0:
            raise ValidationError("Cannot advance by a negative number of months.")
        for _ in range(months):
            for goal in self._goals.values():
                goal.current_savings = min(
                    goal.target_amount, goal.current_savings + goal.monthly_savings
                )
        if months:
            self.last_advanced = self.last_advanced.shift(months)
            logger.debug("Goals advanced %d month(s) to %s", months, self.last_advanced)
            self._save()
        return self.last_advanced

    def advance_to(self, period: PeriodLike) -> int:
        """Replay every month between ``last_advanced`` and ``period``.

        Returns the number of months applied.
        """
        months = self.last_advanced.months_until(to_period(period))
        if months <= 0:
            return 0
        self.advance_period(months)
        return months

    def sync(self) -> int:
        """Catch up to the clock's current month."""
        return self.advance_to(Period.from_date(self._clock()))

    def progress(self, goal: Goal, today: Optional[date] = None) -> Dict[str, Any]:
        """Calculate progress towards a goal."""
        today = today or self._clock()
        target = goal.target_amount
        if target > 0:
            progress_percentage = float(goal.current_savings / target * 100)
        else:
            progress_percentage = 100.0
        remaining = max(goal.remaining, ZERO)

        months_left = max(Period.from_date(today).months_until(Period.from_date(goal.target_date)), 0)
        if remaining == 0:
            months_to_goal: float = 0
        elif goal.monthly_savings > 0:
            months_to_goal = math.ceil(remaining / goal.monthly_savings)
        else:
            months_to_goal = float('inf')
        if months_left > 0:
            required_monthly = (remaining / months_left).quantize(CENT, rounding=ROUND_HALF_UP)
        else:
            required_monthly = remaining

        return {
            'id': goal.id,
            'name': goal.name,
            'current_amount': goal.current_savings,
            'target_amount': target,
            'progress_percentage': min(progress_percentage, 100.0),
            'remaining_amount': remaining,
            'months_left': months_left,
            'months_to_goal': months_to_goal,
            'required_monthly': required_monthly,
            'on_track': months_to_goal <= months_left,
            'status': 'Completed' if goal.is_complete else 'In Progress',
        }

    def progress_report(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        return [self.progress(goal, today) for goal in self._goals.values()]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': STATE_VERSION,
            'last_advanced': str(self.last_advanced),
            'goals': [goal.to_dict() for goal in self._goals.values()],
        }

    def load(self) -> bool:
        """Hydrate from storage; falls back to no goals on any failure."""
        self._goals = {}
        try:
            payload = self._storage.load(config.GOALS_KEY)
            if payload is None:
                return False
            goals, last_advanced = self._decode(payload)
        except PersistenceError as exc:
            logger.warning("Goals could not be loaded, starting empty: %s", exc)
            return False
        self._goals = {goal.id: goal for goal in goals}
        if last_advanced is not None:
            self.last_advanced = last_advanced
        return True

    @staticmethod
    def _decode(payload: Dict[str, Any]):
        version = payload.get('version', STATE_VERSION)
        if version != STATE_VERSION:
            raise PersistenceError(f"Unsupported goals state version: {version!r}")
        try:
            goals = [Goal.from_dict(raw) for raw in payload.get('goals') or []]
            raw_period = payload.get('last_advanced')
            last_advanced = Period.parse(raw_period) if raw_period else None
        except (KeyError, TypeError, ValueError, AttributeError, LedgerError) as exc:
            raise PersistenceError(f"Corrupt goals state: {exc}") from exc
        return goals, last_advanced

    def _save(self) -> None:
        self._storage.save(config.GOALS_KEY, self.to_dict())
