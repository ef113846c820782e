from datetime import date

import pytest

from finance_ledger.analytics import (
    distribution,
    monthly_summary,
    period_frame,
    period_summary,
    rating_counts,
)
from finance_ledger.formatting import format_currency, format_percent, format_rating
from finance_ledger.ledger import LedgerStore
from finance_ledger.models import Kind, Rating
from finance_ledger.periods import Period
from finance_ledger.storage import MemoryStorage
from finance_ledger.visualization import (
    create_balance_chart,
    create_distribution_pie,
    create_income_expense_chart,
    create_rating_chart,
)


def _budget():
    store = LedgerStore(MemoryStorage(), horizon=Period(2024, 3), clock=lambda: date(2024, 1, 15))
    store.add_item(kind='income', name='Salary', amount=3000, recurrence='monthly', start_date='2024-01-01')
    store.add_item(kind='expense', name='Rent', amount=1200, recurrence='monthly', start_date='2024-01-01')
    store.add_item(kind='expense', name='Groceries', amount=300, recurrence='monthly', start_date='2024-01-05')
    store.add_item(kind='expense', name='Groceries', amount=200, recurrence='monthly', start_date='2024-01-20')
    return store


def test_monthly_summary():
    summary = monthly_summary(_budget().get_period_data(2024, 1))
    assert summary['period'] == '2024-01'
    assert summary['income'] == 3000.0
    assert summary['expenses'] == 1700.0
    assert summary['net_flow'] == 1300.0
    assert summary['savings_rate'] == pytest.approx(43.333, rel=1e-3)
    assert summary['balance'] == 1300.0
    assert summary['rating'] == 'good'
    assert summary['transaction_count'] == 4


def test_monthly_summary_without_income():
    store = LedgerStore(MemoryStorage(), horizon=Period(2024, 3))
    store.add_item(kind='expense', name='Repair', amount=50, start_date='2024-02-10')
    summary = monthly_summary(store.get_period_data(2024, 2))
    assert summary['savings_rate'] == 0.0
    assert summary['rating'] == 'bad'


def test_distribution_groups_by_name():
    record = _budget().get_period_data(2024, 2)
    series = distribution(record, Kind.EXPENSE)
    assert list(series.index) == ['Rent', 'Groceries']
    assert series['Groceries'] == 500.0
    assert distribution(record, Kind.INCOME).to_dict() == {'Salary': 3000.0}


def test_distribution_of_empty_period():
    record = _budget().get_period_data(2030, 1)
    assert distribution(record, Kind.EXPENSE).empty


def test_period_frame_and_summary():
    frame = period_frame(_budget().periods())
    assert list(frame['Period']) == ['2024-01', '2024-02', '2024-03']
    assert list(frame['Balance']) == [1300.0, 2600.0, 3900.0]

    counts = rating_counts(frame)
    assert counts['good'] == 3
    assert counts['bad'] == 0

    totals = period_summary(frame)
    assert totals['net_flow'] == 3900.0
    assert totals['ending_balance'] == 3900.0
    assert totals['period_count'] == 3


def test_empty_frame_summaries():
    frame = period_frame([])
    assert frame.empty
    assert 'Balance' in frame.columns
    assert period_summary(frame)['period_count'] == 0
    assert rating_counts(frame).sum() == 0


def test_charts():
    store = _budget()
    frame = period_frame(store.periods())

    assert len(create_income_expense_chart(frame).data) == 3
    assert len(create_balance_chart(frame).data) == 2
    assert len(create_rating_chart(frame).data) == 1
    pie = create_distribution_pie(distribution(store.get_period_data(2024, 1), Kind.EXPENSE), title='Expenses')
    assert pie.layout.title.text == 'Expenses'


def test_charts_handle_empty_input():
    frame = period_frame([])
    for fig in (create_income_expense_chart(frame), create_balance_chart(frame), create_rating_chart(frame)):
        assert fig.layout.title.text == 'No data to display'


def test_formatting():
    assert format_currency(1234.5, symbol='kr.') == '1,234.50 kr.'
    assert format_currency(-20, symbol='$') == '-$20.00'
    assert format_currency(1234.5, include_sign=False) == '1,234.50'
    assert format_currency(0, symbol='') == '0.00'
    assert format_percent(43.3333) == '43.33%'
    assert format_rating(Rating.GOOD) == 'Good'
    assert format_rating('bad') == 'Bad'
