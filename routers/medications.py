from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from config import LOW_STOCK_DAYS_THRESHOLD
from database import get_db
from dependencies import get_current_user
from models.medication import Medication
from models.user import User
from schemas.medication import (
    CreatedOut,
    MedicationCreate,
    MedicationOut,
    MedicationUpdate,
    RefillRequest,
    SuccessOut,
)
from services.stock import (
    StockPrediction,
    low_stock_medications,
    medications_with_prediction,
    predict,
)
from time_utils import as_utc

router = APIRouter(prefix="/medications", tags=["Medications"])


def _to_out(record: Medication, prediction: StockPrediction) -> MedicationOut:
    return MedicationOut(
        id=record.id,
        name=record.name,
        dosage=record.dosage,
        frequency=record.frequency,
        times_per_day=record.times_per_day,
        reminder_times=record.reminder_time_list,
        total_quantity=record.total_quantity,
        remaining_quantity=record.remaining_quantity,
        dosage_per_time=record.dosage_per_time,
        start_date=record.start_date,
        notes=record.notes,
        is_active=record.is_active,
        created_at=record.created_at,
        daily_usage=prediction.daily_usage,
        days_remaining=prediction.days_remaining,
        predicted_exhaust_date=prediction.predicted_exhaust_date,
    )


def get_owned_medication(db: Session, medication_id: int, user_id: int) -> Medication:
    row = (
        db.query(Medication)
        .filter(Medication.id == medication_id, Medication.user_id == user_id)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Medication not found")
    return row


@router.get("/", response_model=list[MedicationOut])
def list_medications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Active medications with their stock predictions, newest first."""
    return [_to_out(record, prediction) for record, prediction in medications_with_prediction(db, current_user.id)]


@router.get("/low-stock", response_model=list[MedicationOut])
def list_low_stock(
    days_threshold: int = Query(default=LOW_STOCK_DAYS_THRESHOLD, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = low_stock_medications(db, current_user.id, days_threshold)
    return [_to_out(record, prediction) for record, prediction in rows]


@router.get("/{medication_id}", response_model=MedicationOut)
def get_medication(
    medication_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = get_owned_medication(db, medication_id, current_user.id)
    return _to_out(row, predict(row))


@router.post("/", response_model=CreatedOut)
def create_medication(
    data: MedicationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = Medication(
        user_id=current_user.id,
        name=data.name,
        dosage=data.dosage,
        frequency=data.frequency,
        times_per_day=data.times_per_day,
        total_quantity=data.total_quantity,
        remaining_quantity=data.remaining_quantity,
        dosage_per_time=data.dosage_per_time,
        start_date=as_utc(data.start_date),
        notes=data.notes,
    )
    row.reminder_time_list = data.reminder_times
    db.add(row)
    db.commit()
    db.refresh(row)
    return CreatedOut(id=row.id)


@router.put("/{medication_id}", response_model=SuccessOut)
def update_medication(
    medication_id: int,
    data: MedicationUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = get_owned_medication(db, medication_id, current_user.id)
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    reminder_times = update_data.pop("reminder_times", None)
    for key, value in update_data.items():
        setattr(row, key, value)
    if reminder_times is not None:
        row.reminder_time_list = reminder_times
    db.commit()
    return SuccessOut()


@router.delete("/{medication_id}", response_model=SuccessOut)
def delete_medication(
    medication_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Soft delete: the medication disappears from lists but its logs stay."""
    row = get_owned_medication(db, medication_id, current_user.id)
    row.is_active = False
    db.commit()
    return SuccessOut()


@router.post("/{medication_id}/refill", response_model=SuccessOut)
def refill_medication(
    medication_id: int,
    data: RefillRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = get_owned_medication(db, medication_id, current_user.id)
    row.remaining_quantity = row.remaining_quantity + data.add_quantity
    row.total_quantity = row.total_quantity + data.add_quantity
    db.commit()
    return SuccessOut()
