"""Top-level package for the finance ledger.

The package models a personal budget as recurring and one-off income
and expense items, expands them into monthly occurrences and projects
running balances, savings and a good/neutral/bad rating per month.

The primary modules are:

* ``ledger`` - the :class:`LedgerStore` holding items and period records
* ``recurrence`` - expansion of recurring items into monthly occurrences
* ``projection`` - the balance fold and monthly rating
* ``goals`` - savings goals advanced month by month
* ``session`` - :class:`FinanceSession`, the API used by front ends
* ``analytics`` / ``visualization`` - pandas summaries and Plotly figures

To print a summary of persisted state from the command line:

```bash
python scripts/show_period.py --month 2024-01 --months 12
```
"""

from .errors import (  # noqa: F401  # re-exported for convenience
    InsufficientFundsError,
    LedgerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .goals import GoalTracker  # noqa: F401
from .ledger import LedgerStore  # noqa: F401
from .models import Goal, Kind, Occurrence, PeriodRecord, Rating, Recurrence, TransactionItem  # noqa: F401
from .periods import Period  # noqa: F401
from .session import FinanceSession  # noqa: F401
from .storage import JsonFileStorage, MemoryStorage  # noqa: F401

__all__ = [
    'FinanceSession',
    'LedgerStore',
    'GoalTracker',
    'JsonFileStorage',
    'MemoryStorage',
    'Period',
    'TransactionItem',
    'Occurrence',
    'PeriodRecord',
    'Goal',
    'Kind',
    'Recurrence',
    'Rating',
    'LedgerError',
    'ValidationError',
    'NotFoundError',
    'InsufficientFundsError',
    'PersistenceError',
]
