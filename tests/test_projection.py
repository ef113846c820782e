from decimal import Decimal

from finance_ledger.models import Kind, Occurrence, PeriodRecord, Rating
from finance_ledger.periods import Period
from finance_ledger.projection import BalanceProjector, rate


def _occ(kind, amount, period, name='x'):
    return Occurrence(
        id=f"{name}-{period}",
        parent_id=name,
        kind=kind,
        name=name,
        amount=Decimal(str(amount)),
        period=period,
    )


def _records(layout):
    records = {}
    for period, entries in layout.items():
        records[period] = PeriodRecord(
            period=period,
            occurrences=[_occ(kind, amount, period, name=f"i{n}") for n, (kind, amount) in enumerate(entries)],
        )
    return records, sorted(records)


def test_rate_rules():
    assert rate(Decimal(10), Decimal(5)) is Rating.GOOD
    assert rate(Decimal(-1), Decimal(500)) is Rating.BAD
    assert rate(Decimal(10), Decimal(-5)) is Rating.BAD
    assert rate(Decimal(0), Decimal(100)) is Rating.NEUTRAL
    assert rate(Decimal(10), Decimal(0)) is Rating.NEUTRAL


def test_fold_carries_balance_forward():
    jan, feb, apr = Period(2024, 1), Period(2024, 2), Period(2024, 4)
    records, keys = _records({
        jan: [(Kind.INCOME, 1000), (Kind.EXPENSE, 300)],
        feb: [(Kind.EXPENSE, 900)],
        apr: [],
    })
    BalanceProjector().project(records, keys)

    assert records[jan].balance == Decimal('700')
    assert records[jan].rating is Rating.GOOD
    assert records[feb].balance == Decimal('-200')
    assert records[feb].rating is Rating.BAD
    # empty period keeps the prior balance
    assert records[apr].balance == Decimal('-200')


def test_override_replaces_opening_balance():
    jan, feb = Period(2024, 1), Period(2024, 2)
    records, keys = _records({jan: [(Kind.INCOME, 100)], feb: [(Kind.INCOME, 50)]})
    BalanceProjector().project(records, keys, overrides={feb: Decimal('1000')})

    assert records[jan].balance == Decimal('100')
    assert records[feb].balance == Decimal('1050')


def test_savings_movements_by_mode():
    jan, feb = Period(2024, 1), Period(2024, 2)
    movements = {jan: Decimal('400')}

    records, keys = _records({jan: [(Kind.INCOME, 1000)], feb: []})
    BalanceProjector('balance').project(records, keys, movements=movements)
    assert (records[jan].balance, records[jan].savings) == (Decimal('600'), Decimal('400'))
    assert (records[feb].balance, records[feb].savings) == (Decimal('600'), Decimal('400'))

    records, keys = _records({jan: [(Kind.INCOME, 1000)], feb: []})
    BalanceProjector('separate').project(records, keys, movements=movements)
    assert (records[jan].balance, records[jan].savings) == (Decimal('1000'), Decimal('400'))


def test_partial_projection_starts_from_previous_record():
    jan, feb, mar = Period(2024, 1), Period(2024, 2), Period(2024, 3)
    records, keys = _records({jan: [(Kind.INCOME, 100)], feb: [(Kind.INCOME, 100)], mar: []})
    projector = BalanceProjector()
    projector.project(records, keys)

    records[feb].occurrences.append(_occ(Kind.EXPENSE, 250, feb, name='late'))
    touched = projector.project(records, keys, start=feb)

    assert touched == [feb, mar]
    assert records[jan].balance == Decimal('100')
    assert records[mar].balance == Decimal('-50')


def test_projection_is_idempotent():
    jan, feb = Period(2024, 1), Period(2024, 2)
    records, keys = _records({jan: [(Kind.INCOME, 10)], feb: [(Kind.EXPENSE, 3)]})
    projector = BalanceProjector()
    projector.project(records, keys, movements={feb: Decimal('2')})
    first = [(r.balance, r.savings, r.rating) for r in records.values()]
    projector.project(records, keys, movements={feb: Decimal('2')})
    projector.project(records, keys, start=feb, movements={feb: Decimal('2')})
    assert [(r.balance, r.savings, r.rating) for r in records.values()] == first
