from datetime import date

from finance_ledger.models import TransactionItem
from finance_ledger.periods import Period
from finance_ledger.recurrence import active_periods, end_bound, expand, occurrence_id

HORIZON = Period(2026, 12)


def _item(recurrence='monthly', start='2024-01-15', end=None, **extra):
    return TransactionItem.create(
        id='rent',
        kind='expense',
        name='Rent',
        amount=1200,
        recurrence=recurrence,
        start_date=start,
        end_date=end,
        **extra,
    )


def test_monthly_item_expands_from_the_following_month():
    periods = expand(_item(end='2024-05-31'), horizon=HORIZON)
    assert periods == [Period(2024, 2), Period(2024, 3), Period(2024, 4), Period(2024, 5)]


def test_quarterly_and_yearly_steps():
    quarterly = expand(_item('quarterly', end='2024-12-31'), horizon=HORIZON)
    assert quarterly == [Period(2024, 4), Period(2024, 7), Period(2024, 10)]

    yearly = expand(_item('yearly'), horizon=HORIZON)
    assert yearly == [Period(2025, 1), Period(2026, 1)]


def test_end_date_month_is_included_even_before_the_start_day():
    # the bound is the period containing the end date
    periods = expand(_item(start='2024-01-20', end='2024-03-01'), horizon=HORIZON)
    assert periods == [Period(2024, 2), Period(2024, 3)]


def test_open_ended_item_stops_at_horizon():
    periods = expand(_item(), horizon=HORIZON)
    assert periods[0] == Period(2024, 2)
    assert periods[-1] == HORIZON
    assert len(periods) == 35


def test_default_horizon_is_end_of_2099():
    assert end_bound(_item()) == Period(2099, 12)
    assert expand(_item())[-1] == Period(2099, 12)


def test_end_date_beyond_horizon_is_capped():
    assert end_bound(_item(end='2400-01-01'), HORIZON) == HORIZON


def test_once_item_ignores_end_date():
    item = _item('once', end='2025-12-31')
    assert expand(item, horizon=HORIZON) == []
    assert active_periods(item, horizon=HORIZON) == [Period(2024, 1)]


def test_end_date_before_start_date_produces_no_occurrences():
    assert expand(_item(start='2024-06-01', end='2024-03-31'), horizon=HORIZON) == []


def test_expand_from_a_later_anchor():
    periods = expand(_item('quarterly', end='2025-01-31'), anchor=Period(2024, 5), horizon=HORIZON)
    assert periods == [Period(2024, 8), Period(2024, 11)]


def test_occurrence_id_encodes_parent_and_period():
    assert occurrence_id('rent', Period(2024, 3)) == 'rent-2024-03'
    assert occurrence_id('rent', Period(2031, 11)) == 'rent-2031-11'


def test_active_periods_start_with_base_period():
    item = _item(end=date(2024, 3, 31))
    assert active_periods(item, HORIZON) == [Period(2024, 1), Period(2024, 2), Period(2024, 3)]
