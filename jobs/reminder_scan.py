"""Run one dose-reminder pass for every user; meant for cron."""

import logging

import models  # noqa: F401
from database import Base, SessionLocal, engine
from services.notifications import init_firebase
from services.reminders import background_tracker, run_reminder_pass


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    Base.metadata.create_all(bind=engine)
    init_firebase()
    db = SessionLocal()
    try:
        count = run_reminder_pass(db, background_tracker)
        logging.getLogger("medremind.jobs").info("Dose reminders fired: %d", count)
    finally:
        db.close()


if __name__ == "__main__":
    main()
