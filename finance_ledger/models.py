"""Data model for the ledger: items, occurrences, period records and goals."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .errors import ValidationError
from .periods import Period, format_date, parse_date

ZERO = Decimal("0")


class Kind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Recurrence(str, Enum):
    ONCE = "once"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class Rating(str, Enum):
    GOOD = "good"
    NEUTRAL = "neutral"
    BAD = "bad"


def new_id() -> str:
    return uuid4().hex


def parse_decimal(value: Any, label: str = "Amount") -> Decimal:
    """Convert user input (str, int, float, Decimal) to a finite Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{label} must be a number.")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(f"{label} must be a finite number.")
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{label} must be a number, got {value!r}.") from None
    if not amount.is_finite():
        raise ValidationError(f"{label} must be a finite number.")
    return amount


def parse_amount(value: Any, label: str = "Amount") -> Decimal:
    """Like :func:`parse_decimal` but rejects negative values."""
    amount = parse_decimal(value, label)
    if amount < 0:
        raise ValidationError(f"{label} cannot be negative.")
    return amount


def parse_kind(value: Any) -> Kind:
    try:
        return Kind(value)
    except ValueError:
        raise ValidationError("Type must be income or expense.") from None


def parse_recurrence(value: Any) -> Recurrence:
    try:
        return Recurrence(value)
    except ValueError:
        choices = ", ".join(r.value for r in Recurrence)
        raise ValidationError(f"Recurrence must be one of: {choices}.") from None


def parse_required_date(value: Any, label: str) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(f"Invalid {label}: {value!r}.")
    return parsed


def parse_name(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Name cannot be empty.")
    return value.strip()


@dataclass
class TransactionItem:
    id: str
    kind: Kind
    name: str
    amount: Decimal
    recurrence: Recurrence
    start_date: date
    end_date: Optional[date] = None

    @classmethod
    def create(
        cls,
        kind: Any,
        name: Any,
        amount: Any,
        start_date: Any,
        recurrence: Any = Recurrence.ONCE,
        end_date: Any = None,
        id: Optional[str] = None,
    ) -> "TransactionItem":
        """Validate raw field values and build an item."""
        return cls(
            id=id or new_id(),
            kind=parse_kind(kind),
            name=parse_name(name),
            amount=parse_amount(amount),
            recurrence=parse_recurrence(recurrence),
            start_date=parse_required_date(start_date, "start date"),
            end_date=parse_required_date(end_date, "end date") if end_date else None,
        )

    @property
    def base_period(self) -> Period:
        return Period.from_date(self.start_date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'kind': self.kind.value,
            'name': self.name,
            'amount': str(self.amount),
            'recurrence': self.recurrence.value,
            'start_date': format_date(self.start_date),
            'end_date': format_date(self.end_date) if self.end_date else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionItem":
        return cls.create(
            id=data['id'],
            kind=data['kind'],
            name=data['name'],
            amount=data['amount'],
            recurrence=data.get('recurrence', 'once'),
            start_date=data['start_date'],
            end_date=data.get('end_date'),
        )


@dataclass
class Occurrence:
    """One period's materialized instance of an item.

    ``name`` and ``amount`` are snapshots so that a forward-only edit
    leaves occurrences in earlier periods as they were.
    """

    id: str
    parent_id: str
    kind: Kind
    name: str
    amount: Decimal
    period: Period

    @property
    def is_base(self) -> bool:
        return self.id == self.parent_id

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.kind is Kind.INCOME else -self.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'parent_id': self.parent_id,
            'kind': self.kind.value,
            'name': self.name,
            'amount': str(self.amount),
            'period': str(self.period),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Occurrence":
        return cls(
            id=str(data['id']),
            parent_id=str(data['parent_id']),
            kind=parse_kind(data['kind']),
            name=str(data['name']),
            amount=parse_amount(data['amount']),
            period=Period.parse(data['period']),
        )


@dataclass
class PeriodRecord:
    period: Period
    occurrences: List[Occurrence] = field(default_factory=list)
    balance: Decimal = ZERO
    savings: Decimal = ZERO
    rating: Rating = Rating.NEUTRAL

    @property
    def incomes(self) -> List[Occurrence]:
        return [occ for occ in self.occurrences if occ.kind is Kind.INCOME]

    @property
    def expenses(self) -> List[Occurrence]:
        return [occ for occ in self.occurrences if occ.kind is Kind.EXPENSE]

    @property
    def total_income(self) -> Decimal:
        return sum((occ.amount for occ in self.incomes), ZERO)

    @property
    def total_expenses(self) -> Decimal:
        return sum((occ.amount for occ in self.expenses), ZERO)

    @property
    def net(self) -> Decimal:
        return self.total_income - self.total_expenses

    def to_dict(self) -> Dict[str, Any]:
        return {
            'period': str(self.period),
            'incomes': [occ.to_dict() for occ in self.incomes],
            'expenses': [occ.to_dict() for occ in self.expenses],
            'balance': str(self.balance),
            'savings': str(self.savings),
            'rating': self.rating.value,
        }


@dataclass
class Goal:
    id: str
    name: str
    target_amount: Decimal
    target_date: date
    monthly_savings: Decimal = ZERO
    current_savings: Decimal = ZERO

    @property
    def remaining(self) -> Decimal:
        return self.target_amount - self.current_savings

    @property
    def is_complete(self) -> bool:
        return self.current_savings >= self.target_amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'target_amount': str(self.target_amount),
            'target_date': format_date(self.target_date),
            'monthly_savings': str(self.monthly_savings),
            'current_savings': str(self.current_savings),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Goal":
        target = parse_amount(data['target_amount'], 'Target amount')
        current = parse_amount(data.get('current_savings', 0), 'Current savings')
        return cls(
            id=str(data['id']),
            name=parse_name(data['name']),
            target_amount=target,
            target_date=parse_required_date(data['target_date'], 'target date'),
            monthly_savings=parse_amount(data.get('monthly_savings', 0), 'Monthly savings'),
            current_savings=min(current, target),
        )
