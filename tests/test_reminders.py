"""Dose reminder matching and the once-per-day tracker."""
from datetime import timedelta

import pytest

from conftest import NOW, make_medication, make_user
from models.medication_log import LogStatus, MedicationLog
from models.notification import Notification, NotificationType
from services.reminders import (
    DueReminder,
    ReminderTracker,
    collect_due_for_user,
    find_due_reminders,
    parse_reminder_time,
    reminder_message,
    run_reminder_pass,
)


@pytest.mark.parametrize(
    "value,expected",
    [("08:00", 480), ("8:05", 485), ("23:59", 1439), ("24:00", None), ("8am", None), ("", None)],
)
def test_parse_reminder_time(value, expected):
    assert parse_reminder_time(value) == expected


@pytest.mark.parametrize("offset,fires", [(-1, False), (0, True), (2, True), (3, False)])
def test_window_is_zero_to_two_minutes_after(db, offset, fires):
    user = make_user(db)
    med = make_medication(db, user, reminder_times=["08:00"])
    due = find_due_reminders([med], set(), NOW + timedelta(minutes=offset), ReminderTracker())
    assert bool(due) is fires


def test_fires_once_per_slot_per_day(db):
    user = make_user(db)
    med = make_medication(db, user, reminder_times=["08:00"])
    tracker = ReminderTracker()

    assert len(find_due_reminders([med], set(), NOW, tracker)) == 1
    assert find_due_reminders([med], set(), NOW + timedelta(minutes=1), tracker) == []
    assert len(tracker) == 1


def test_tracker_resets_on_new_day(db):
    user = make_user(db)
    med = make_medication(db, user, reminder_times=["08:00"])
    tracker = ReminderTracker()

    find_due_reminders([med], set(), NOW, tracker)
    tomorrow = find_due_reminders([med], set(), NOW + timedelta(days=1), tracker)

    assert [r.time for r in tomorrow] == ["08:00"]
    assert len(tracker) == 1


def test_handled_and_malformed_slots_are_skipped(db):
    user = make_user(db)
    med = make_medication(db, user, reminder_times=["08:00", "bogus"])
    inactive = make_medication(db, user, name="Old", reminder_times=["08:00"], is_active=False)

    due = find_due_reminders([med, inactive], {(med.id, "08:00")}, NOW, ReminderTracker())

    assert due == []


def test_logged_dose_suppresses_reminder(db):
    user = make_user(db)
    taken = make_medication(db, user, name="Taken", reminder_times=["08:00"])
    pending = make_medication(db, user, name="Pending", reminder_times=["08:00"])
    db.add(
        MedicationLog(
            user_id=user.id,
            medication_id=taken.id,
            taken_at=NOW - timedelta(minutes=5),
            scheduled_time="08:00",
            status=LogStatus.taken,
            quantity=1,
        )
    )
    db.commit()

    due = collect_due_for_user(db, user.id, ReminderTracker(), NOW)

    assert [r.medication_id for r in due] == [pending.id]


def test_reminder_message_single_and_aggregated():
    one = DueReminder(1, "Aspirin", "1 tablet", "08:00")
    two = DueReminder(2, "Vitamin D", "2 drops", "08:00")

    title, body = reminder_message([one])
    assert title == "Time to take your medication!"
    assert "Aspirin (1 tablet)" in body and "08:00" in body

    title, body = reminder_message([one, two])
    assert "(2 medications)" in title
    assert body.splitlines() == ["• Aspirin (1 tablet)", "• Vitamin D (2 drops)"]


def test_reminder_pass_records_notifications(db):
    alice = make_user(db, "alice")
    bob = make_user(db, "bob")
    make_medication(db, alice, reminder_times=["08:00"])
    make_medication(db, bob, reminder_times=["09:00"])
    tracker = ReminderTracker()

    assert run_reminder_pass(db, tracker, NOW) == 1
    assert run_reminder_pass(db, tracker, NOW + timedelta(minutes=1)) == 0

    rows = db.query(Notification).all()
    assert len(rows) == 1
    assert rows[0].user_id == alice.id
    assert rows[0].type == NotificationType.reminder


def test_reminder_pass_records_one_notification_per_batch(db):
    user = make_user(db)
    for name in ("Aspirin", "Insulin", "Vitamin D"):
        make_medication(db, user, name=name, reminder_times=["08:00"])

    assert run_reminder_pass(db, ReminderTracker(), NOW) == 3

    rows = db.query(Notification).filter(Notification.type == NotificationType.reminder).all()
    assert len(rows) == 1
    assert rows[0].title == "Time to take your medication! (3 medications)"
    assert rows[0].medication_id is None
    assert len(rows[0].content.splitlines()) == 3


def test_single_reminder_keeps_medication_link(db):
    user = make_user(db)
    med = make_medication(db, user, reminder_times=["08:00"])

    run_reminder_pass(db, ReminderTracker(), NOW)

    row = db.query(Notification).one()
    assert row.medication_id == med.id
