"""
Background job tests: day-before pickup reminders
"""
from datetime import date, timedelta

import pytest

import notifications
from models import db
from scheduler import _send_pickup_reminders, init_scheduler


@pytest.fixture
def sent_reminders(monkeypatch):
    sent = {'email': [], 'sms': []}
    monkeypatch.setattr(notifications, 'send_pickup_reminder_email',
                        lambda *args: sent['email'].append(args))
    monkeypatch.setattr(notifications, 'send_pickup_reminder_sms',
                        lambda *args: sent['sms'].append(args))
    return sent


class TestPickupReminders:
    """Test _send_pickup_reminders"""

    def test_reminds_tomorrows_pickups(self, app, producer, make_pickup, sent_reminders):
        tomorrow = make_pickup(days_ahead=1)
        later = make_pickup(days_ahead=5)

        assert _send_pickup_reminders(app, today=date.today()) == 1

        db.session.refresh(tomorrow)
        db.session.refresh(later)
        assert tomorrow.reminder_sent_at is not None
        assert later.reminder_sent_at is None

        assert len(sent_reminders['email']) == 1
        assert sent_reminders['email'][0][0] == producer.email
        assert sent_reminders['email'][0][2] == tomorrow.id
        assert sent_reminders['sms'] == [(producer.phone, 'GreenCycle Ltd',
                                          (date.today() + timedelta(days=1)).isoformat(), 'morning')]

    def test_reminds_only_once(self, app, make_pickup, sent_reminders):
        make_pickup(days_ahead=1)

        assert _send_pickup_reminders(app) == 1
        assert _send_pickup_reminders(app) == 0
        assert len(sent_reminders['email']) == 1

    def test_skips_closed_pickups(self, app, make_pickup, sent_reminders):
        make_pickup(days_ahead=1, status='cancelled')
        make_pickup(days_ahead=1, status='completed')

        assert _send_pickup_reminders(app) == 0

    def test_scheduler_disabled_in_tests(self, app):
        assert init_scheduler(app) is None
