#!/usr/bin/env python3
"""Print projected balances and ratings from the persisted ledger."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from finance_ledger import FinanceSession, Kind, Period, config
from finance_ledger.analytics import period_summary
from finance_ledger.formatting import format_currency, format_percent, format_rating


def main(month: str | None = None, months: int = 12, data_dir: str | None = None) -> None:
    session = FinanceSession.from_data_dir(Path(data_dir) if data_dir else None)
    start = Period.parse(month) if month else session.selected_period
    end = start.shift(max(months, 1) - 1)

    summary = session.monthly_summary(*start)
    print(f"Summary for {start}")
    print(f"  Income:       {format_currency(summary['income'])}")
    print(f"  Expenses:     {format_currency(summary['expenses'])}")
    print(f"  Net:          {format_currency(summary['net_flow'])}")
    print(f"  Savings rate: {format_percent(summary['savings_rate'])}")
    print(f"  Balance:      {format_currency(summary['balance'])}")
    print(f"  Savings:      {format_currency(summary['savings'])}")
    print(f"  Rating:       {format_rating(summary['rating'])}")

    for kind in (Kind.INCOME, Kind.EXPENSE):
        series = session.distribution(kind, start)
        if not series.empty:
            print(f"\n{kind.value.capitalize()} by item:")
            print(series.to_string())

    frame = session.period_frame(start, end)
    if frame.empty:
        print(f"\nNo recorded periods between {start} and {end}.")
    else:
        columns: List[str] = ['Period', 'Income', 'Expenses', 'Net', 'Balance', 'Savings', 'Rating']
        print(f"\nPeriods {start} to {end}:")
        print(frame[columns].to_string(index=False))
        totals = period_summary(frame)
        print(f"\nNet over span: {format_currency(totals['net_flow'])}")

    goals = session.goal_progress()
    if goals:
        print("\nGoals:")
        for goal in goals:
            print(
                f"  {goal['name']}: {format_currency(goal['current_amount'])} of "
                f"{format_currency(goal['target_amount'])} "
                f"({format_percent(goal['progress_percentage'], 0)}) - {goal['status']}"
            )


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show projected monthly balances.')
    parser.add_argument('--month', help='First month to show, YYYY-MM (default: current month)')
    parser.add_argument('--months', type=int, default=12, help='How many months to list')
    parser.add_argument('--data-dir', help=f'State directory (default: {config.get_data_dir()})')
    args = parser.parse_args()
    logging.basicConfig(level=config.LOG_LEVEL)
    main(month=args.month, months=args.months, data_dir=args.data_dir)
