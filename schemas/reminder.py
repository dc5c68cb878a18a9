from pydantic import BaseModel


class DueReminderOut(BaseModel):
    medication_id: int
    medication_name: str
    dosage: str
    time: str


class DueRemindersOut(BaseModel):
    title: str | None = None
    body: str | None = None
    reminders: list[DueReminderOut] = []
