import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from config import LOW_STOCK_DAYS_THRESHOLD, NEVER_EXHAUST_DAYS
from models.medication import Medication
from time_utils import utcnow


@dataclass(frozen=True)
class StockPrediction:
    daily_usage: int
    days_remaining: int
    predicted_exhaust_date: datetime | None

    @property
    def out_of_stock(self) -> bool:
        return self.days_remaining <= 0


def daily_usage(record: Medication) -> int:
    return (record.times_per_day or 0) * (record.dosage_per_time or 0)


def predict(record: Medication, now: datetime | None = None) -> StockPrediction:
    now = now or utcnow()
    usage = daily_usage(record)
    if usage <= 0:
        return StockPrediction(usage, NEVER_EXHAUST_DAYS, None)
    days_remaining = math.floor(record.remaining_quantity / usage)
    return StockPrediction(usage, days_remaining, now + timedelta(days=days_remaining))


def is_low_stock(
    record: Medication,
    prediction: StockPrediction,
    threshold: int = LOW_STOCK_DAYS_THRESHOLD,
) -> bool:
    if prediction.daily_usage <= 0:
        return False
    return prediction.days_remaining <= threshold and record.remaining_quantity > 0


def active_medications(db: Session, user_id: int) -> list[Medication]:
    return (
        db.query(Medication)
        .filter(Medication.user_id == user_id, Medication.is_active.is_(True))
        .order_by(Medication.created_at.desc(), Medication.id.desc())
        .all()
    )


def medications_with_prediction(
    db: Session,
    user_id: int,
    now: datetime | None = None,
) -> list[tuple[Medication, StockPrediction]]:
    now = now or utcnow()
    return [(record, predict(record, now)) for record in active_medications(db, user_id)]


def low_stock_medications(
    db: Session,
    user_id: int,
    threshold: int = LOW_STOCK_DAYS_THRESHOLD,
    now: datetime | None = None,
) -> list[tuple[Medication, StockPrediction]]:
    return [
        (record, prediction)
        for record, prediction in medications_with_prediction(db, user_id, now)
        if is_low_stock(record, prediction, threshold)
    ]
