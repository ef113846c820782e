import logging
from datetime import date
from decimal import Decimal

import pytest

from finance_ledger.errors import NotFoundError, ValidationError
from finance_ledger.goals import GoalTracker
from finance_ledger.periods import Period
from finance_ledger.storage import MemoryStorage


def _tracker(storage=None, today=date(2024, 1, 10)):
    return GoalTracker(storage if storage is not None else MemoryStorage(), clock=lambda: today)


def test_new_goal_starts_with_no_savings():
    tracker = _tracker()
    goal = tracker.add_goal('Holiday', 1000, '2024-12-01', monthly_savings=300)
    assert goal.current_savings == Decimal('0')
    assert tracker.list_goals() == [goal]
    assert tracker.last_advanced == Period(2024, 1)


def test_advancing_accrues_and_caps_at_target():
    tracker = _tracker()
    goal = tracker.add_goal('Holiday', 1000, '2024-12-01', monthly_savings=300)

    tracker.advance_period()
    assert goal.current_savings == Decimal('300')

    tracker.advance_period(3)
    assert goal.current_savings == Decimal('1000')
    assert tracker.last_advanced == Period(2024, 5)

    tracker.advance_period(12)
    assert goal.current_savings == Decimal('1000')


def test_skipping_months_replays_each_month_once():
    tracker = _tracker()
    goal = tracker.add_goal('Bike', 5000, '2025-01-01', monthly_savings=250)

    assert tracker.advance_to('2024-04') == 3
    assert goal.current_savings == Decimal('750')
    # same month again, and an earlier month, change nothing
    assert tracker.advance_to('2024-04') == 0
    assert tracker.advance_to('2024-02') == 0
    assert goal.current_savings == Decimal('750')
    assert tracker.advance_to(date(2024, 5, 31)) == 1
    assert goal.current_savings == Decimal('1000')


def test_sync_catches_up_to_the_clock():
    storage = MemoryStorage()
    tracker = _tracker(storage)
    goal = tracker.add_goal('Car', 9000, '2026-01-01', monthly_savings=100)

    later = GoalTracker(storage, clock=lambda: date(2024, 7, 2))
    assert later.sync() == 6
    assert later.get_goal(goal.id).current_savings == Decimal('600')
    assert later.sync() == 0


def test_negative_advance_is_rejected():
    with pytest.raises(ValidationError):
        _tracker().advance_period(-1)


def test_edit_goal_keeps_savings_and_clamps_to_new_target():
    tracker = _tracker()
    goal = tracker.add_goal('Phone', 800, '2024-06-01', monthly_savings=200)
    tracker.advance_period(3)

    assert tracker.edit_goal(goal.id, name='New phone', monthly_savings=50) is True
    assert goal.name == 'New phone'
    assert goal.current_savings == Decimal('600')

    tracker.edit_goal(goal.id, target_amount=500)
    assert goal.current_savings == Decimal('500')


def test_edit_goal_validation():
    tracker = _tracker()
    goal = tracker.add_goal('Phone', 800, '2024-06-01')
    with pytest.raises(ValidationError):
        tracker.edit_goal(goal.id, target_amount='lots')
    with pytest.raises(ValidationError):
        tracker.edit_goal(goal.id, current_savings=10)
    assert goal.target_amount == Decimal('800')
    assert tracker.edit_goal('missing', name='x') is False


def test_delete_goal():
    tracker = _tracker()
    goal = tracker.add_goal('Phone', 800, '2024-06-01')
    assert tracker.delete_goal(goal.id) is True
    assert tracker.delete_goal(goal.id) is False
    with pytest.raises(NotFoundError):
        tracker.get_goal(goal.id)


def test_add_goal_rejects_bad_input():
    tracker = _tracker()
    with pytest.raises(ValidationError):
        tracker.add_goal('', 100, '2024-06-01')
    with pytest.raises(ValidationError):
        tracker.add_goal('Trip', -100, '2024-06-01')
    with pytest.raises(ValidationError):
        tracker.add_goal('Trip', 100, 'soon')
    assert tracker.list_goals() == []


def test_progress_report():
    tracker = _tracker()
    goal = tracker.add_goal('Holiday', 1200, '2024-07-01', monthly_savings=200)
    tracker.advance_period(2)

    progress = tracker.progress(goal, today=date(2024, 3, 1))
    assert progress['progress_percentage'] == pytest.approx(100 / 3)
    assert progress['remaining_amount'] == Decimal('800')
    assert progress['months_left'] == 4
    assert progress['months_to_goal'] == 4
    assert progress['required_monthly'] == Decimal('200.00')
    assert progress['on_track'] is True
    assert progress['status'] == 'In Progress'


def test_progress_without_monthly_savings_never_arrives():
    tracker = _tracker()
    goal = tracker.add_goal('House', 100000, '2030-01-01')
    progress = tracker.progress_report()[0]
    assert progress['id'] == goal.id
    assert progress['months_to_goal'] == float('inf')
    assert progress['on_track'] is False


def test_goals_survive_reload():
    storage = MemoryStorage()
    tracker = _tracker(storage)
    goal = tracker.add_goal('Holiday', 1000, '2024-12-01', monthly_savings=300)
    tracker.advance_period(2)

    reloaded = _tracker(storage, today=date(2024, 3, 5))
    assert reloaded.last_advanced == Period(2024, 3)
    assert reloaded.get_goal(goal.id).current_savings == Decimal('600')
    assert reloaded.to_dict() == tracker.to_dict()


def test_corrupt_goals_fall_back_to_empty(caplog):
    storage = MemoryStorage({'goals-state': {'version': 1, 'goals': [{'id': 'g', 'name': 'x'}]}})
    with caplog.at_level(logging.WARNING, logger='finance_ledger.goals'):
        tracker = _tracker(storage)
    assert tracker.list_goals() == []
    assert 'Goals could not be loaded' in caplog.text


def test_stored_savings_above_target_are_clamped():
    storage = MemoryStorage({'goals-state': {
        'version': 1,
        'last_advanced': '2024-01',
        'goals': [{
            'id': 'g', 'name': 'Trip', 'target_amount': '100', 'target_date': '2024-09-01',
            'monthly_savings': '10', 'current_savings': '250',
        }],
    }})
    tracker = _tracker(storage)
    assert tracker.get_goal('g').current_savings == Decimal('100')
