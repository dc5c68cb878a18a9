"""
Daily dose reminders.

A reminder for (medication, "HH:mm") fires when the local wall-clock time is
0-2 minutes past the scheduled time and nothing has been logged for that slot
today. Fired keys live in a process-local set that is cleared when the
calendar day changes, so restarts may re-fire a reminder within its window.
"""

import logging
import re
import threading
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from config import REMINDER_WINDOW_MINUTES
from models.medication import Medication
from models.medication_log import MedicationLog
from models.notification import NotificationType
from models.user import User
from services.notifications import create_notification, send_push_if_available
from services.stock import active_medications
from time_utils import day_key, local_day_bounds, to_local, utcnow

logger = logging.getLogger("medremind.reminders")

_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True)
class DueReminder:
    medication_id: int
    medication_name: str
    dosage: str
    time: str


def parse_reminder_time(value: str) -> int | None:
    """Minutes since midnight for "HH:mm", or None when malformed."""
    match = _TIME_RE.match((value or "").strip())
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


class ReminderTracker:
    """Process-local record of reminders already fired today."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._day: str | None = None
        self._notified: set[str] = set()

    def _reset_if_new_day(self, today: str) -> None:
        if today != self._day:
            self._notified.clear()
            self._day = today

    def mark_if_new(self, now: datetime, medication_id: int, time: str) -> bool:
        today = day_key(now)
        key = f"{today}-{medication_id}-{time}"
        with self._lock:
            self._reset_if_new_day(today)
            if key in self._notified:
                return False
            self._notified.add(key)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._notified)


def find_due_reminders(
    medications: list[Medication],
    handled_slots: set[tuple[int, str]],
    now: datetime,
    tracker: ReminderTracker,
) -> list[DueReminder]:
    local = to_local(now)
    current_minutes = local.hour * 60 + local.minute
    due: list[DueReminder] = []

    for med in medications:
        if not med.is_active:
            continue
        for time in med.reminder_time_list:
            if (med.id, time) in handled_slots:
                continue
            target = parse_reminder_time(time)
            if target is None:
                continue
            diff = current_minutes - target
            if 0 <= diff <= REMINDER_WINDOW_MINUTES and tracker.mark_if_new(now, med.id, time):
                due.append(DueReminder(med.id, med.name, med.dosage, time))
    return due


def handled_slots_today(db: Session, user_id: int, now: datetime) -> set[tuple[int, str]]:
    start, end = local_day_bounds(now)
    rows = (
        db.query(MedicationLog.medication_id, MedicationLog.scheduled_time)
        .filter(
            MedicationLog.user_id == user_id,
            MedicationLog.taken_at >= start,
            MedicationLog.taken_at < end,
        )
        .all()
    )
    return {(medication_id, scheduled_time) for medication_id, scheduled_time in rows}


def collect_due_for_user(
    db: Session,
    user_id: int,
    tracker: ReminderTracker,
    now: datetime | None = None,
) -> list[DueReminder]:
    now = now or utcnow()
    return find_due_reminders(
        active_medications(db, user_id),
        handled_slots_today(db, user_id, now),
        now,
        tracker,
    )


def reminder_message(due: list[DueReminder]) -> tuple[str, str]:
    if len(due) == 1:
        item = due[0]
        return "Time to take your medication!", f"{item.medication_name} ({item.dosage})\nScheduled for {item.time}"
    lines = "\n".join(f"• {item.medication_name} ({item.dosage})" for item in due)
    return f"Time to take your medication! ({len(due)} medications)", lines


def dispatch_reminders(db: Session, user: User, due: list[DueReminder], now: datetime) -> None:
    title, body = reminder_message(due)
    # One row per batch; a single-medication batch keeps its medication link.
    medication_id = due[0].medication_id if len(due) == 1 else None
    create_notification(
        db,
        user.id,
        NotificationType.reminder,
        title,
        body,
        medication_id=medication_id,
        sent_at=now,
    )
    db.commit()
    send_push_if_available(user, title, body)


def run_reminder_pass(db: Session, tracker: ReminderTracker, now: datetime | None = None) -> int:
    """One polling pass over every user; returns the number of reminders fired."""
    now = now or utcnow()
    fired = 0
    user_ids = (
        db.query(Medication.user_id)
        .filter(Medication.is_active.is_(True))
        .distinct()
        .all()
    )
    for (user_id,) in user_ids:
        due = collect_due_for_user(db, user_id, tracker, now)
        if not due:
            continue
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            continue
        dispatch_reminders(db, user, due, now)
        fired += len(due)
    if fired:
        logger.info("Reminder pass fired %d reminder(s)", fired)
    return fired


# Separate trackers so the polling endpoint and the background poller each fire once per slot.
request_tracker = ReminderTracker()
background_tracker = ReminderTracker()
