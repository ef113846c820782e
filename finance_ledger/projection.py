"""Balance projection over materialized periods.

The projector is a left-to-right fold over period keys in chronological
order.  Each period's ending balance is the opening balance (the previous
period's ending balance, or an explicit override) plus that period's
income minus its expenses.  Savings movements accumulate into a separate
running savings figure and, in ``balance`` mode, are taken out of the
spendable balance as well.

Nothing is retained between runs: the fold reads the occurrences,
overrides and movements it is given and overwrites ``balance``,
``savings`` and ``rating`` on every record it visits.
"""

from __future__ import annotations

from bisect import bisect_left
from decimal import Decimal
from typing import List, Mapping, MutableMapping, Optional, Sequence, Tuple

from .models import ZERO, PeriodRecord, Rating
from .periods import Period


def rate(net: Decimal, balance: Decimal) -> Rating:
    """Qualitative health of a period from its net income and ending balance."""
    if net > 0 and balance > 0:
        return Rating.GOOD
    if net < 0 or balance < 0:
        return Rating.BAD
    return Rating.NEUTRAL


class BalanceProjector:
    def __init__(self, savings_mode: str = 'balance'):
        self.savings_mode = savings_mode

    @property
    def routes_savings_through_balance(self) -> bool:
        return self.savings_mode == 'balance'

    def opening_state(
        self,
        records: Mapping[Period, PeriodRecord],
        keys: Sequence[Period],
        index: int,
    ) -> Tuple[Decimal, Decimal]:
        """(balance, savings) carried into ``keys[index]``."""
        if index <= 0:
            return ZERO, ZERO
        previous = records[keys[index - 1]]
        return previous.balance, previous.savings

    def project(
        self,
        records: MutableMapping[Period, PeriodRecord],
        keys: Sequence[Period],
        start: Optional[Period] = None,
        overrides: Optional[Mapping[Period, Decimal]] = None,
        movements: Optional[Mapping[Period, Decimal]] = None,
    ) -> List[Period]:
        """Recompute every period from ``start`` (default: the first) onward.

        ``keys`` must be sorted.  Returns the keys that were recomputed.
        """
        overrides = overrides or {}
        movements = movements or {}
        index = 0 if start is None else bisect_left(keys, start)
        balance, savings = self.opening_state(records, keys, index)

        touched = list(keys[index:])
        for key in touched:
            record = records[key]
            movement = movements.get(key, ZERO)
            opening = overrides.get(key, balance)
            net = record.net
            savings = savings + movement
            balance = opening + net
            if self.routes_savings_through_balance:
                balance -= movement
            record.balance = balance
            record.savings = savings
            record.rating = rate(net, balance)
        return touched
