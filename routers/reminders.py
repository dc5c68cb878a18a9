from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user
from models.user import User
from schemas.reminder import DueReminderOut, DueRemindersOut
from services.reminders import collect_due_for_user, reminder_message, request_tracker

router = APIRouter(prefix="/reminders", tags=["Reminders"])


@router.get("/due", response_model=DueRemindersOut)
def due_reminders(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Polled by clients every 30s; each slot is returned at most once per day."""
    due = collect_due_for_user(db, current_user.id, request_tracker)
    if not due:
        return DueRemindersOut()
    title, body = reminder_message(due)
    return DueRemindersOut(
        title=title,
        body=body,
        reminders=[
            DueReminderOut(
                medication_id=item.medication_id,
                medication_name=item.medication_name,
                dosage=item.dosage,
                time=item.time,
            )
            for item in due
        ],
    )
