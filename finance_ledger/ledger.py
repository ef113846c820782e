"""The ledger store: transaction items, their occurrences and period records.

The store keeps flat mappings rather than a nested year/month tree:

* ``_items`` maps item id to :class:`TransactionItem`;
* ``_occurrences`` maps occurrence id to :class:`Occurrence`;
* ``_derived`` maps an item id to the ids of its derived occurrences,
  oldest first, so a recurring item's instances are found without
  parsing ids;
* ``_records`` maps :class:`Period` to :class:`PeriodRecord`, with
  ``_keys`` holding the same periods in sorted order.

Every mutation re-projects the suffix of periods starting at the
earliest one it touched and then flushes state to storage, so reads
always observe fully propagated balances.
"""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right, insort
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from . import config
from .errors import InsufficientFundsError, LedgerError, NotFoundError, PersistenceError, ValidationError
from .models import (
    ZERO,
    Kind,
    Occurrence,
    PeriodRecord,
    Recurrence,
    TransactionItem,
    parse_amount,
    parse_decimal,
)
from .periods import Period, PeriodLike, to_period
from .projection import BalanceProjector, rate
from .recurrence import expand, occurrence_id
from .storage import MemoryStorage, StoragePort

logger = logging.getLogger(__name__)

STATE_VERSION = 1
EDITABLE_FIELDS = {'kind', 'name', 'amount', 'recurrence', 'start_date', 'end_date'}


def _item_fields(item: Union[TransactionItem, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(item, TransactionItem):
        return {
            'id': item.id,
            'kind': item.kind,
            'name': item.name,
            'amount': item.amount,
            'recurrence': item.recurrence,
            'start_date': item.start_date,
            'end_date': item.end_date,
        }
    return dict(item)


def _snapshot(record: PeriodRecord) -> PeriodRecord:
    return replace(record, occurrences=[replace(occ) for occ in record.occurrences])


class LedgerStore:
    """Owns transaction items and the per-period records derived from them."""

    def __init__(
        self,
        storage: Optional[StoragePort] = None,
        *,
        savings_mode: Optional[str] = None,
        horizon: Optional[Period] = None,
        clock: Optional[Callable[[], date]] = None,
        autoload: bool = True,
    ):
        self._storage = storage if storage is not None else MemoryStorage()
        self.savings_mode = savings_mode or config.SAVINGS_MODE
        if self.savings_mode not in config.SAVINGS_MODES:
            raise ValueError(f"Unknown savings mode: {self.savings_mode!r}")
        self.horizon = horizon or config.HORIZON
        self._clock = clock or date.today
        self._projector = BalanceProjector(self.savings_mode)
        self._reset()
        if autoload:
            self.load()

    def _reset(self) -> None:
        self._items: Dict[str, TransactionItem] = {}
        self._occurrences: Dict[str, Occurrence] = {}
        self._derived: Dict[str, List[str]] = {}
        self._records: Dict[Period, PeriodRecord] = {}
        self._keys: List[Period] = []
        self._overrides: Dict[Period, Decimal] = {}
        self._movements: Dict[Period, Decimal] = {}

    # ------------------------------------------------------------------
    # Item operations
    # ------------------------------------------------------------------
    def add_item(
        self,
        item: Union[TransactionItem, Mapping[str, Any], None] = None,
        **fields: Any,
    ) -> TransactionItem:
        """Add an item and materialize its occurrences.

        Accepts a :class:`TransactionItem`, a mapping of fields, or the
        fields as keyword arguments.  A fresh id is assigned when absent.
        """
        if item is not None:
            fields = {**_item_fields(item), **fields}
        new_item = TransactionItem.create(**fields)
        if new_item.id in self._items or new_item.id in self._occurrences:
            raise ValidationError(f"An item with id {new_item.id!r} already exists.")
        self._check_ids(new_item)

        self._items[new_item.id] = new_item
        self._materialize(new_item)
        logger.debug(
            "Added %s %r (%s) from %s",
            new_item.kind.value, new_item.name, new_item.recurrence.value, new_item.base_period,
        )
        self._propagate(new_item.base_period)
        return new_item

    def edit_item(self, item_id: str, **changes: Any) -> bool:
        """Edit an item; returns False when the id is unknown.

        ``item_id`` may be the item's own id, in which case the whole
        series is rebuilt from the new values, or the id of one of its
        derived occurrences, in which case the new values apply from that
        occurrence's period onward and earlier periods are left as they
        were.
        """
        try:
            item, anchor = self._resolve(item_id)
        except NotFoundError:
            logger.debug("edit_item: no item or occurrence with id %s", item_id)
            return False

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit field(s): {', '.join(sorted(unknown))}.")
        if anchor is not None and 'start_date' in changes:
            raise ValidationError("The start date can only be changed on the first occurrence.")
        updated = TransactionItem.create(**{**_item_fields(item), **changes, 'id': item.id})
        if (
            anchor is not None
            and updated.recurrence is not Recurrence.ONCE
            and updated.end_date is not None
            and Period.from_date(updated.end_date) < anchor.period
        ):
            raise ValidationError("The end date falls before the edited occurrence.")

        if anchor is None:
            start = min(item.base_period, updated.base_period)
            replaced = self._lineage(item.id)
            self._check_ids(updated, replaced=replaced)
            for occ_id in replaced:
                self._remove_occurrence(occ_id)
            self._apply_fields(item, updated)
            self._materialize(item)
        else:
            start = anchor.period
            replaced = [
                occ_id for occ_id in self._lineage(item.id)
                if self._occurrences[occ_id].period >= start
            ]
            self._check_ids(updated, start, anchor.id, replaced=replaced)
            for occ_id in replaced:
                self._remove_occurrence(occ_id)
            self._apply_fields(item, updated)
            self._materialize(item, anchor=start, anchor_id=anchor.id)

        logger.debug("Edited %s from %s", item.id, start)
        self._propagate(start)
        return True

    def delete_item(self, item_id: str) -> bool:
        """Delete an item, or one occurrence and everything after it.

        Deleting by item id removes the item and all of its occurrences.
        Deleting by a derived occurrence id removes that occurrence and
        every later one and ends the item in the previous period.
        Returns False when the id is unknown.
        """
        try:
            item, anchor = self._resolve(item_id)
        except NotFoundError:
            logger.debug("delete_item: no item or occurrence with id %s", item_id)
            return False

        lineage = self._lineage(item.id)
        if anchor is None:
            periods = [self._occurrences[occ_id].period for occ_id in lineage]
            start = min(periods) if periods else item.base_period
            for occ_id in lineage:
                self._remove_occurrence(occ_id)
            del self._items[item.id]
            self._derived.pop(item.id, None)
        else:
            start = anchor.period
            for occ_id in lineage:
                if self._occurrences[occ_id].period >= start:
                    self._remove_occurrence(occ_id)
            item.end_date = start.shift(-1).last_day

        logger.debug("Deleted %s from %s", item_id, start)
        self._propagate(start)
        return True

    # ------------------------------------------------------------------
    # Balance and savings operations
    # ------------------------------------------------------------------
    def set_initial_balance(self, amount: Any, period: Optional[PeriodLike] = None) -> None:
        """Replace the balance carried into ``period`` (default: current month)."""
        value = parse_decimal(amount, "Balance")
        target = self._period_or_current(period)
        self._record(target)
        self._overrides[target] = value
        logger.debug("Initial balance for %s set to %s", target, value)
        self._propagate(target)

    def clear_initial_balance(self, period: Optional[PeriodLike] = None) -> bool:
        target = self._period_or_current(period)
        if self._overrides.pop(target, None) is None:
            return False
        self._propagate(target)
        return True

    def deposit_to_savings(self, amount: Any, period: Optional[PeriodLike] = None) -> None:
        value = parse_amount(amount)
        target = self._period_or_current(period)
        self._record(target)
        self._movements[target] = self._movements.get(target, ZERO) + value
        logger.debug("Deposited %s to savings in %s", value, target)
        self._propagate(target)

    def withdraw_from_savings(self, amount: Any, period: Optional[PeriodLike] = None) -> None:
        """Move money out of savings; raises InsufficientFundsError if short."""
        value = parse_amount(amount)
        target = self._period_or_current(period)
        available = self.available_savings(target)
        if value > available:
            logger.warning(
                "Rejected withdrawal of %s in %s: only %s in savings", value, target, available
            )
            raise InsufficientFundsError(value, available)
        self._record(target)
        self._movements[target] = self._movements.get(target, ZERO) - value
        logger.debug("Withdrew %s from savings in %s", value, target)
        self._propagate(target)

    def available_savings(self, period: PeriodLike) -> Decimal:
        """Largest amount that can be withdrawn in ``period``.

        Savings must stay non-negative in that period and in every later
        one, so this is the minimum running savings from ``period`` on.
        """
        target = to_period(period)
        _, savings = self._carried(target)
        later = self._keys[bisect_left(self._keys, target):]
        return min([savings] + [self._records[key].savings for key in later])

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_item(self, item_id: str) -> TransactionItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise NotFoundError(f"No item with id {item_id!r}") from None

    def list_items(self, kind: Optional[Kind] = None) -> List[TransactionItem]:
        items = [item for item in self._items.values() if kind is None or item.kind == kind]
        return sorted(items, key=lambda item: (item.start_date, item.name))

    def occurrences_of(self, item_id: str) -> List[Occurrence]:
        return [replace(self._occurrences[occ_id]) for occ_id in self._lineage(item_id)]

    def get_period_data(self, year: int, month: int) -> PeriodRecord:
        """Snapshot of a period; unmaterialized periods carry the prior balance.

        The returned record is a copy, so changing it does not touch the
        ledger; use the item operations for that.
        """
        period = Period(int(year), int(month))
        record = self._records.get(period)
        if record is not None:
            return _snapshot(record)
        balance, savings = self._carried(period)
        return PeriodRecord(period=period, balance=balance, savings=savings, rating=rate(ZERO, balance))

    def get_balance(self, when: Optional[PeriodLike] = None) -> Decimal:
        """Ending balance of the period containing ``when`` (default: today)."""
        balance, _ = self._carried(self._period_or_current(when))
        return balance

    def get_savings(self, when: Optional[PeriodLike] = None) -> Decimal:
        _, savings = self._carried(self._period_or_current(when))
        return savings

    def periods(
        self,
        start: Optional[PeriodLike] = None,
        end: Optional[PeriodLike] = None,
    ) -> List[PeriodRecord]:
        """Snapshots of the materialized records between ``start`` and ``end`` inclusive."""
        lo = bisect_left(self._keys, to_period(start)) if start is not None else 0
        hi = bisect_right(self._keys, to_period(end)) if end is not None else len(self._keys)
        return [_snapshot(self._records[key]) for key in self._keys[lo:hi]]

    @property
    def period_keys(self) -> List[Period]:
        return list(self._keys)

    @property
    def balance_overrides(self) -> Dict[Period, Decimal]:
        return dict(self._overrides)

    @property
    def savings_movements(self) -> Dict[Period, Decimal]:
        return dict(self._movements)

    def current_period(self) -> Period:
        return Period.from_date(self._clock())

    def recalculate_all(self) -> None:
        self._projector.project(self._records, self._keys, None, self._overrides, self._movements)
        self._save()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': STATE_VERSION,
            'items': [item.to_dict() for item in self._items.values()],
            'occurrences': [
                occ.to_dict() for key in self._keys for occ in self._records[key].occurrences
            ],
            'balance_overrides': {str(k): str(v) for k, v in sorted(self._overrides.items())},
            'savings_movements': {str(k): str(v) for k, v in sorted(self._movements.items())},
        }

    def load(self) -> bool:
        """Hydrate from storage; falls back to empty state on any failure."""
        self._reset()
        try:
            payload = self._storage.load(config.LEDGER_KEY)
            if payload is None:
                return False
            self._restore(payload)
        except PersistenceError as exc:
            logger.warning("Ledger state could not be loaded, starting empty: %s", exc)
            self._reset()
            return False
        self._projector.project(self._records, self._keys, None, self._overrides, self._movements)
        logger.debug("Loaded %d items over %d periods", len(self._items), len(self._keys))
        return True

    def _restore(self, payload: Mapping[str, Any]) -> None:
        version = payload.get('version', STATE_VERSION)
        if version != STATE_VERSION:
            raise PersistenceError(f"Unsupported ledger state version: {version!r}")
        try:
            for raw in payload.get('items') or []:
                item = TransactionItem.from_dict(raw)
                self._items[item.id] = item
            for raw in payload.get('occurrences') or []:
                occ = Occurrence.from_dict(raw)
                if occ.parent_id not in self._items:
                    logger.warning("Dropping occurrence %s of unknown item %s", occ.id, occ.parent_id)
                    continue
                if occ.id in self._occurrences:
                    raise PersistenceError(f"Duplicate occurrence id {occ.id!r}")
                self._place(occ)
            for key, value in (payload.get('balance_overrides') or {}).items():
                period = Period.parse(key)
                self._record(period)
                self._overrides[period] = parse_decimal(value, "Balance")
            for key, value in (payload.get('savings_movements') or {}).items():
                period = Period.parse(key)
                self._record(period)
                self._movements[period] = parse_decimal(value, "Savings movement")
        except (KeyError, TypeError, ValueError, AttributeError, LedgerError) as exc:
            raise PersistenceError(f"Corrupt ledger state: {exc}") from exc
        for item in self._items.values():
            if item.id in self._occurrences:
                continue
            if self._derived.get(item.id):
                raise PersistenceError(f"Item {item.id!r} has derived occurrences but no base occurrence")
            try:
                self._check_ids(item)
            except ValidationError as exc:
                raise PersistenceError(str(exc)) from exc
            self._materialize(item)

    def _save(self) -> None:
        self._storage.save(config.LEDGER_KEY, self.to_dict())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _period_or_current(self, value: Optional[PeriodLike]) -> Period:
        return to_period(value) if value is not None else self.current_period()

    def _resolve(self, some_id: str) -> Tuple[TransactionItem, Optional[Occurrence]]:
        """Map an item or occurrence id to (item, anchor occurrence or None)."""
        if some_id in self._items:
            return self._items[some_id], None
        occ = self._occurrences.get(some_id)
        if occ is None or occ.parent_id not in self._items:
            raise NotFoundError(f"No item or occurrence with id {some_id!r}")
        return self._items[occ.parent_id], occ

    def _lineage(self, item_id: str) -> List[str]:
        ids = [item_id] if item_id in self._occurrences else []
        return ids + list(self._derived.get(item_id, []))

    def _record(self, period: Period) -> PeriodRecord:
        record = self._records.get(period)
        if record is None:
            record = PeriodRecord(period=period)
            self._records[period] = record
            insort(self._keys, period)
        return record

    def _carried(self, period: Period) -> Tuple[Decimal, Decimal]:
        """(balance, savings) at the end of ``period``."""
        index = bisect_right(self._keys, period)
        if index == 0:
            return ZERO, ZERO
        record = self._records[self._keys[index - 1]]
        return record.balance, record.savings

    def _place(self, occ: Occurrence) -> None:
        self._occurrences[occ.id] = occ
        self._record(occ.period).occurrences.append(occ)
        if not occ.is_base:
            self._derived.setdefault(occ.parent_id, []).append(occ.id)

    def _remove_occurrence(self, occ_id: str) -> None:
        occ = self._occurrences.pop(occ_id)
        record = self._records[occ.period]
        record.occurrences = [o for o in record.occurrences if o is not occ]
        if not occ.is_base:
            self._derived[occ.parent_id].remove(occ_id)

    def _planned(
        self,
        item: TransactionItem,
        anchor: Optional[Period] = None,
        anchor_id: Optional[str] = None,
    ) -> List[Tuple[Period, str]]:
        """(period, occurrence id) pairs that materializing ``item`` creates."""
        anchor = anchor or item.base_period
        planned = [(anchor, anchor_id or item.id)]
        for period in expand(item, anchor=anchor, horizon=self.horizon):
            planned.append((period, occurrence_id(item.id, period)))
        return planned

    def _check_ids(
        self,
        item: TransactionItem,
        anchor: Optional[Period] = None,
        anchor_id: Optional[str] = None,
        replaced: Iterable[str] = (),
    ) -> None:
        """Raise ValidationError if a generated id is held by another item."""
        free = set(replaced)
        for _, occ_id in self._planned(item, anchor, anchor_id):
            taken = occ_id in self._occurrences and occ_id not in free
            if taken or (occ_id != item.id and occ_id in self._items):
                raise ValidationError(
                    f"Occurrence id {occ_id!r} of item {item.id!r} is already in use."
                )

    def _materialize(
        self,
        item: TransactionItem,
        anchor: Optional[Period] = None,
        anchor_id: Optional[str] = None,
    ) -> None:
        """Place the occurrence at ``anchor`` and every derived one after it."""
        for period, occ_id in self._planned(item, anchor, anchor_id):
            self._place(self._occurrence(item, period, occ_id))

    @staticmethod
    def _occurrence(item: TransactionItem, period: Period, occ_id: str) -> Occurrence:
        return Occurrence(
            id=occ_id,
            parent_id=item.id,
            kind=item.kind,
            name=item.name,
            amount=item.amount,
            period=period,
        )

    @staticmethod
    def _apply_fields(item: TransactionItem, updated: TransactionItem) -> None:
        for name in EDITABLE_FIELDS:
            setattr(item, name, getattr(updated, name))

    def _propagate(self, start: Period) -> None:
        self._projector.project(self._records, self._keys, start, self._overrides, self._movements)
        self._save()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[TransactionItem]:
        return iter(self.list_items())
