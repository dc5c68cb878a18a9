from datetime import datetime

from sqlalchemy.orm import Session

from models.medication import Medication
from models.medication_log import LogStatus, MedicationLog
from services.exceptions import InsufficientStockError
from time_utils import as_utc, local_day_bounds, utcnow

# Statuses that mean the dose was actually swallowed.
CONSUMING_STATUSES = {LogStatus.taken, LogStatus.late}


def record_dose(
    db: Session,
    user_id: int,
    medication: Medication,
    taken_at: datetime,
    scheduled_time: str,
    status: LogStatus = LogStatus.taken,
    quantity: int = 1,
    notes: str | None = None,
) -> MedicationLog:
    consumes = status in CONSUMING_STATUSES
    if consumes and medication.remaining_quantity < quantity:
        raise InsufficientStockError(
            f"Only {medication.remaining_quantity} left of {medication.name}"
        )

    log = MedicationLog(
        user_id=user_id,
        medication_id=medication.id,
        taken_at=as_utc(taken_at),
        scheduled_time=scheduled_time,
        status=status,
        quantity=quantity,
        notes=notes,
    )
    db.add(log)
    if consumes:
        medication.remaining_quantity = max(medication.remaining_quantity - quantity, 0)
    db.commit()
    db.refresh(log)
    return log


def todays_logs(db: Session, user_id: int, now: datetime | None = None) -> list[MedicationLog]:
    start, end = local_day_bounds(now or utcnow())
    return (
        db.query(MedicationLog)
        .filter(
            MedicationLog.user_id == user_id,
            MedicationLog.taken_at >= start,
            MedicationLog.taken_at < end,
        )
        .order_by(MedicationLog.taken_at.desc())
        .all()
    )


def log_history(
    db: Session,
    user_id: int,
    medication_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[MedicationLog]:
    q = db.query(MedicationLog).filter(MedicationLog.user_id == user_id)
    if medication_id is not None:
        q = q.filter(MedicationLog.medication_id == medication_id)
    if start is not None:
        q = q.filter(MedicationLog.taken_at >= as_utc(start))
    if end is not None:
        q = q.filter(MedicationLog.taken_at <= as_utc(end))
    return q.order_by(MedicationLog.taken_at.desc()).all()
