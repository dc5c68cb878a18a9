from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user
from models.user import User
from routers.medications import get_owned_medication
from schemas.log import MedicationLogCreate, MedicationLogOut
from schemas.medication import CreatedOut
from services.dose_log import log_history, record_dose, todays_logs
from services.exceptions import InsufficientStockError

router = APIRouter(prefix="/logs", tags=["Medication Logs"])


@router.post("/", response_model=CreatedOut)
def create_log(
    data: MedicationLogCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Record a dose; taken and late doses come out of the remaining stock."""
    med = get_owned_medication(db, data.medication_id, current_user.id)
    try:
        log = record_dose(
            db,
            current_user.id,
            med,
            taken_at=data.taken_at,
            scheduled_time=data.scheduled_time,
            status=data.status,
            quantity=data.quantity,
            notes=data.notes,
        )
    except InsufficientStockError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return CreatedOut(id=log.id)


@router.get("/today", response_model=list[MedicationLogOut])
def list_today(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return todays_logs(db, current_user.id)


@router.get("/history", response_model=list[MedicationLogOut])
def list_history(
    medication_id: int | None = Query(default=None),
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return log_history(db, current_user.id, medication_id, start, end)
