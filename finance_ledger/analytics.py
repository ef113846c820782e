"""Read-only summaries of projected ledger periods.

Functions here take :class:`~finance_ledger.models.PeriodRecord`
objects (as returned by :meth:`LedgerStore.periods` or
:meth:`LedgerStore.get_period_data`) and turn them into plain dicts or
pandas objects ready for display and charting.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable

import pandas as pd

from .models import Kind, PeriodRecord

PERIOD_COLUMNS = [
    'Period', 'Year', 'Month', 'Income', 'Expenses', 'Net', 'Balance', 'Savings', 'Rating',
]


def period_frame(records: Iterable[PeriodRecord]) -> pd.DataFrame:
    """One row per period with income, expenses, balance, savings and rating."""
    rows = [
        {
            'Period': str(record.period),
            'Year': record.period.year,
            'Month': record.period.month,
            'Income': float(record.total_income),
            'Expenses': float(record.total_expenses),
            'Net': float(record.net),
            'Balance': float(record.balance),
            'Savings': float(record.savings),
            'Rating': record.rating.value,
        }
        for record in records
    ]
    if not rows:
        return pd.DataFrame(columns=PERIOD_COLUMNS)
    return pd.DataFrame(rows, columns=PERIOD_COLUMNS)


def monthly_summary(record: PeriodRecord) -> Dict[str, Any]:
    """Calculate the headline figures for a single period."""
    income = float(record.total_income)
    expenses = float(record.total_expenses)
    net_flow = income - expenses
    savings_rate = (net_flow / income * 100) if income > 0 else 0.0
    return {
        'period': str(record.period),
        'income': income,
        'expenses': expenses,
        'net_flow': net_flow,
        'savings_rate': savings_rate,
        'balance': float(record.balance),
        'savings': float(record.savings),
        'rating': record.rating.value,
        'transaction_count': len(record.occurrences),
    }


def distribution(record: PeriodRecord, kind: Kind) -> pd.Series:
    """Amounts of one kind in a period, summed by item name, largest first."""
    entries = record.incomes if kind is Kind.INCOME else record.expenses
    if not entries:
        return pd.Series(dtype=float, name='Amount')
    df = pd.DataFrame(
        [{'Name': occ.name, 'Amount': float(occ.amount)} for occ in entries]
    )
    series = df.groupby('Name')['Amount'].sum().sort_values(ascending=False)
    series.name = 'Amount'
    return series


def rating_counts(frame: pd.DataFrame) -> pd.Series:
    """How many periods fall into each rating."""
    counts = frame['Rating'].value_counts() if not frame.empty else pd.Series(dtype=int)
    return counts.reindex(['good', 'neutral', 'bad'], fill_value=0)


def period_summary(frame: pd.DataFrame) -> Dict[str, Any]:
    """Totals over a span of periods, e.g. a year."""
    if frame.empty:
        return {
            'income': 0.0,
            'expenses': 0.0,
            'net_flow': 0.0,
            'savings_rate': 0.0,
            'ending_balance': 0.0,
            'ending_savings': 0.0,
            'period_count': 0,
        }
    income = float(frame['Income'].sum())
    expenses = float(frame['Expenses'].sum())
    net_flow = income - expenses
    last = frame.iloc[-1]
    return {
        'income': income,
        'expenses': expenses,
        'net_flow': net_flow,
        'savings_rate': (net_flow / income * 100) if income > 0 else 0.0,
        'ending_balance': float(last['Balance']),
        'ending_savings': float(last['Savings']),
        'period_count': len(frame),
    }
