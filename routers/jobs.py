import hmac

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from config import JOB_RUN_KEY
from database import get_db
from services.reminders import background_tracker, run_reminder_pass

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get("/run-reminders")
def run_reminders(
    key: str = Query(default=""),
    db: Session = Depends(get_db),
):
    """External scheduler hook: runs one dose-reminder pass for all users."""
    if not JOB_RUN_KEY:
        raise HTTPException(status_code=503, detail="JOB_RUN_KEY is not configured")
    if not hmac.compare_digest(key, JOB_RUN_KEY):
        raise HTTPException(status_code=401, detail="Invalid job key")
    count = run_reminder_pass(db, background_tracker)
    return {"ok": True, "fired_reminders": count}
